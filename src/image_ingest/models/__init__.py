"""
Data Models
===========

Typed models for the image ingest pipeline.

This module re-exports all data models for convenient access.

Models:
    Image:
        - DepthTag: Pixel sample type (8U ... 64F)
        - ImageBuffer: Decoded, typed pixel buffer

    Outcome:
        - FrameStage: Per-frame state machine states
        - FrameOutcome: Result value returned for every frame

    Errors:
        - DecodeError, SizeMismatch, UnsupportedEncoding, UnsupportedConversion
        - ConvertError, UnsupportedChannelLayout, UnsupportedDepth
"""

from image_ingest.models.errors import (
    IngestError,
    DecodeError,
    SizeMismatch,
    UnsupportedEncoding,
    UnsupportedConversion,
    ConvertError,
    UnsupportedChannelLayout,
    UnsupportedDepth,
)
from image_ingest.models.image import DepthTag, ImageBuffer
from image_ingest.models.outcome import FrameOutcome, FrameStage

__all__ = [
    # Image
    "DepthTag",
    "ImageBuffer",
    # Outcome
    "FrameStage",
    "FrameOutcome",
    # Errors
    "IngestError",
    "DecodeError",
    "SizeMismatch",
    "UnsupportedEncoding",
    "UnsupportedConversion",
    "ConvertError",
    "UnsupportedChannelLayout",
    "UnsupportedDepth",
]
