"""
Raw Frame
=========

Transport-level frame representation for the ingestion pipeline.

This module defines the RawFrame class that is handed from the transport
to the FrameIngestionController.

Design Rules:
    - Immutable snapshot owned by the transport
    - Does NOT decode or interpret pixel data
    - The pipeline treats it as a read-only view for one process() call
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class RawFrame:
    """
    Image message as delivered by the transport.

    Attributes:
        encoding: Pixel layout tag, e.g. "bgr8", "mono8", "32FC1"
        width: Columns
        height: Rows
        data: Packed pixel bytes
        step: Row stride in bytes. None means rows are tightly packed.
        is_bigendian: Byte order of multi-byte samples
        frame_id: Sensor frame name from the message header
        seq: Sequence number from the message header
        stamp: UNIX timestamp from the message header

    Note:
        data is expected to be height * step bytes long. The decoder
        checks this; RawFrame itself does not validate anything.
    """

    encoding: str
    width: int
    height: int
    data: bytes
    step: Optional[int] = None
    is_bigendian: bool = False
    frame_id: str = ""
    seq: int = 0
    stamp: float = 0.0

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixel data."""
        return (
            f"RawFrame(encoding={self.encoding!r}, "
            f"width={self.width}, height={self.height}, "
            f"bytes={len(self.data)}, seq={self.seq})"
        )
