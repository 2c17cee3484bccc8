"""
Conversion Module
=================

Pixel-level transforms over decoded ImageBuffers.

Components:
    - PixelSemantic: Named target conversion
    - convert: Apply a semantic, returning a new buffer
"""

from image_ingest.conversion.pixel_format import (
    LUMA_WEIGHTS,
    PixelSemantic,
    convert,
    downsample,
    swap_channels,
    to_grayscale,
)

__all__ = [
    "LUMA_WEIGHTS",
    "PixelSemantic",
    "convert",
    "to_grayscale",
    "swap_channels",
    "downsample",
]
