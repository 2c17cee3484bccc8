"""
Pipeline Module
===============

Per-frame orchestration and the async loop that drives it.

Components:
    - FrameIngestionController: decode -> describe -> convert -> report
    - FrameIngestionMetrics: Controller counters
    - PipelineRunner: Drains a FrameBuffer into the controller
"""

from image_ingest.pipeline.controller import (
    FrameIngestionController,
    FrameIngestionMetrics,
)
from image_ingest.pipeline.runner import PipelineRunner

__all__ = [
    "FrameIngestionController",
    "FrameIngestionMetrics",
    "PipelineRunner",
]
