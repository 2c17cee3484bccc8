"""
Frame Outcome
=============

Result value produced by the controller for every inbound frame.

Per-frame state machine:

    RECEIVED ──decode──> DECODED ──convert──> CONVERTED ──report──> REPORTED
        │                   │  │                  │
        └──────> FAILED <───┘  └──> EMPTY         └──> FAILED

Nothing is carried across frames: each call to process() starts at
RECEIVED. An outcome holds only a summary of the frame, never the
ImageBuffer itself.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from image_ingest.models.errors import IngestError


class FrameStage(str, Enum):
    """
    Per-frame processing state.

    Attributes:
        RECEIVED: Frame accepted from transport
        DECODED: ImageBuffer built from the raw bytes
        CONVERTED: Pixel semantic applied
        REPORTED: Diagnostics emitted (terminal, success)
        EMPTY: Decoded buffer had no pixels (terminal, warning)
        FAILED: A stage raised an IngestError (terminal)
    """

    RECEIVED = "RECEIVED"
    DECODED = "DECODED"
    CONVERTED = "CONVERTED"
    REPORTED = "REPORTED"
    EMPTY = "EMPTY"
    FAILED = "FAILED"


@dataclass(frozen=True)
class FrameOutcome:
    """
    Summary of one frame's trip through the pipeline.

    Attributes:
        stage: Terminal stage reached
        failed_stage: Stage that was being entered when processing failed
        reason: Failure or warning message
        error: Exception that caused the failure, if any
        width: Decoded width (0 if decode failed)
        height: Decoded height (0 if decode failed)
        type_descriptor: e.g. "8UC3" for the decoded buffer
        converted_descriptor: e.g. "8UC1" for the converted buffer
        elapsed_ms: Wall time spent in process()
    """

    stage: FrameStage
    failed_stage: Optional[FrameStage] = None
    reason: Optional[str] = None
    error: Optional[IngestError] = None
    width: int = 0
    height: int = 0
    type_descriptor: Optional[str] = None
    converted_descriptor: Optional[str] = None
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.stage == FrameStage.REPORTED

    @property
    def is_empty(self) -> bool:
        return self.stage == FrameStage.EMPTY

    def to_dict(self) -> dict:
        """Export as a JSON-friendly dict."""
        return {
            "stage": self.stage.value,
            "failed_stage": self.failed_stage.value if self.failed_stage else None,
            "reason": self.reason,
            "width": self.width,
            "height": self.height,
            "type_descriptor": self.type_descriptor,
            "converted_descriptor": self.converted_descriptor,
            "elapsed_ms": round(self.elapsed_ms, 3),
        }
