"""
Frame Ingestion Controller
==========================

Per-frame orchestration: decode -> describe -> convert -> report.

This controller:
    - Decodes each RawFrame into an ImageBuffer
    - Logs dimensions and type descriptor
    - Applies the configured pixel semantic (grayscale by default)
    - Turns every failure into a FrameOutcome instead of raising

Key Design Decisions:
    - One bad frame never stops the pipeline; the next call starts fresh
    - No retries: transport frames are fire-and-forget
    - Empty frames are a warning, not an error, and skip conversion
    - process() is serialised with a lock so any executor thread may call it
    - ImageBuffers never leave process(); outcomes carry only summaries
"""

import logging
import threading
import time
from typing import Callable, Optional

from image_ingest.conversion.pixel_format import PixelSemantic, convert
from image_ingest.models.errors import ConvertError, DecodeError, IngestError
from image_ingest.models.image import ImageBuffer
from image_ingest.models.outcome import FrameOutcome, FrameStage
from image_ingest.observability.type_descriptor import describe
from image_ingest.stream.encodings import is_supported
from image_ingest.stream.frame import RawFrame
from image_ingest.stream.image_decoder import decode


logger = logging.getLogger(__name__)


class FrameIngestionMetrics:
    """Counters for FrameIngestionController observability."""

    __slots__ = (
        "frames_received",
        "frames_reported",
        "empty_frames",
        "decode_errors",
        "convert_errors",
        "last_seq",
    )

    def __init__(self) -> None:
        self.frames_received: int = 0
        self.frames_reported: int = 0
        self.empty_frames: int = 0
        self.decode_errors: int = 0
        self.convert_errors: int = 0
        self.last_seq: int = -1

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "frames_received": self.frames_received,
            "frames_reported": self.frames_reported,
            "empty_frames": self.empty_frames,
            "decode_errors": self.decode_errors,
            "convert_errors": self.convert_errors,
            "last_seq": self.last_seq,
        }


class FrameIngestionController:
    """
    Runs one frame at a time through the pipeline.

    Attributes:
        target_encoding: Encoding frames are decoded into (None = as sent)
        semantic: Pixel semantic applied after decode
        metrics: Operational counters

    Example:
        controller = FrameIngestionController()

        outcome = controller.process(raw_frame)
        if not outcome.ok:
            print(outcome.stage, outcome.reason)
    """

    def __init__(
        self,
        target_encoding: Optional[str] = None,
        semantic: PixelSemantic = PixelSemantic.GRAYSCALE,
        on_converted: Optional[Callable[[ImageBuffer], None]] = None,
    ) -> None:
        """
        Initialize controller.

        Args:
            target_encoding: Encoding to decode into. Must be supported.
            semantic: Conversion applied to every decoded frame
            on_converted: Called with the converted buffer inside
                process(). The buffer must not be retained.

        Raises:
            ValueError: If target_encoding is not a supported encoding
        """
        if target_encoding is not None and not is_supported(target_encoding):
            raise ValueError(f"Unsupported target encoding: {target_encoding!r}")

        self.target_encoding = target_encoding
        self.semantic = PixelSemantic(semantic)
        self.on_converted = on_converted
        self.metrics = FrameIngestionMetrics()

        self._lock = threading.Lock()

        logger.info(
            f"FrameIngestionController initialized: "
            f"target_encoding={target_encoding or 'passthrough'}, "
            f"semantic={self.semantic.value}"
        )

    def process(self, raw: RawFrame) -> FrameOutcome:
        """
        Process a single frame.

        Never raises for a bad frame; the outcome says what happened.

        Args:
            raw: Frame delivered by the transport

        Returns:
            FrameOutcome with the terminal stage reached
        """
        with self._lock:
            return self._process(raw)

    __call__ = process

    def _process(self, raw: RawFrame) -> FrameOutcome:
        started = time.perf_counter()
        self.metrics.frames_received += 1
        self.metrics.last_seq = raw.seq

        logger.info(f"Received image message (seq={raw.seq}, encoding={raw.encoding})")

        # RECEIVED -> DECODED
        try:
            buffer = decode(raw, self.target_encoding)
        except DecodeError as e:
            self.metrics.decode_errors += 1
            logger.error(f"Decode failed (seq={raw.seq}): {e}")
            return self._failed(FrameStage.DECODED, e, started)
        except Exception as e:
            self.metrics.decode_errors += 1
            logger.exception(f"Unexpected decode error (seq={raw.seq}): {e}")
            return self._failed(FrameStage.DECODED, e, started)

        type_descriptor = describe(buffer)

        if buffer.is_empty:
            self.metrics.empty_frames += 1
            logger.warning(f"Received an empty image! (seq={raw.seq})")
            return FrameOutcome(
                stage=FrameStage.EMPTY,
                reason="empty frame",
                width=buffer.width,
                height=buffer.height,
                type_descriptor=type_descriptor,
                elapsed_ms=_elapsed_ms(started),
            )

        logger.info(
            f"Image received: Size = {buffer.width}x{buffer.height}, "
            f"Type = {type_descriptor}"
        )

        # DECODED -> CONVERTED
        try:
            converted = convert(buffer, self.semantic)
            if self.on_converted is not None:
                self.on_converted(converted)
        except ConvertError as e:
            self.metrics.convert_errors += 1
            logger.error(f"Convert failed (seq={raw.seq}): {e}")
            return self._failed(
                FrameStage.CONVERTED, e, started, buffer, type_descriptor
            )
        except Exception as e:
            self.metrics.convert_errors += 1
            logger.exception(f"Unexpected convert error (seq={raw.seq}): {e}")
            return self._failed(
                FrameStage.CONVERTED, e, started, buffer, type_descriptor
            )

        # CONVERTED -> REPORTED
        converted_descriptor = describe(converted)
        self.metrics.frames_reported += 1
        logger.info(
            f"Converted image ({self.semantic.value}): "
            f"Size = {converted.width}x{converted.height}, "
            f"Type = {converted_descriptor}"
        )

        return FrameOutcome(
            stage=FrameStage.REPORTED,
            width=buffer.width,
            height=buffer.height,
            type_descriptor=type_descriptor,
            converted_descriptor=converted_descriptor,
            elapsed_ms=_elapsed_ms(started),
        )

    @staticmethod
    def _failed(
        stage: FrameStage,
        error: Exception,
        started: float,
        buffer: Optional[ImageBuffer] = None,
        type_descriptor: Optional[str] = None,
    ) -> FrameOutcome:
        return FrameOutcome(
            stage=FrameStage.FAILED,
            failed_stage=stage,
            reason=str(error),
            error=error if isinstance(error, IngestError) else None,
            width=buffer.width if buffer is not None else 0,
            height=buffer.height if buffer is not None else 0,
            type_descriptor=type_descriptor,
            elapsed_ms=_elapsed_ms(started),
        )


def _elapsed_ms(started: float) -> float:
    return (time.perf_counter() - started) * 1000.0
