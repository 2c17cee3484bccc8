"""
Frame Buffer
============

Bounded asyncio queue between the transport and the processing task.

Mirrors sensor-data delivery: keep only the newest frames, drop the
oldest when a new one arrives and the queue is full. The default depth
of 1 means the processor always sees the most recent frame.

Design Rules:
    - Fixed maximum depth, drop-oldest on overflow
    - Does NOT inspect or modify frames
    - Counts drops for observability
"""

import asyncio
import logging
from typing import Optional

from image_ingest.stream.frame import RawFrame


logger = logging.getLogger(__name__)


class FrameBuffer:
    """
    Drop-oldest bounded queue of RawFrames.

    Attributes:
        depth: Maximum number of frames held
        dropped_count: Frames discarded to make room for newer ones
        total_put: Frames ever offered

    Example:
        buffer = FrameBuffer(depth=1)

        # Producer
        await buffer.put(frame)

        # Consumer
        frame = await buffer.get(timeout=1.0)
    """

    def __init__(self, depth: int = 1) -> None:
        """
        Initialize frame buffer.

        Args:
            depth: Maximum frames to hold. Must be >= 1.
        """
        if depth < 1:
            raise ValueError("depth must be >= 1")

        self._depth = depth
        self._queue: asyncio.Queue[RawFrame] = asyncio.Queue(maxsize=depth)
        self._dropped_count: int = 0
        self._total_put: int = 0

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def size(self) -> int:
        """Frames currently queued."""
        return self._queue.qsize()

    @property
    def dropped_count(self) -> int:
        return self._dropped_count

    @property
    def total_put(self) -> int:
        return self._total_put

    async def put(self, frame: RawFrame) -> bool:
        """
        Queue a frame, dropping the oldest if full.

        Returns:
            True if nothing was dropped, False if an older frame was.
        """
        self._total_put += 1
        dropped = False

        if self._queue.full():
            try:
                stale = self._queue.get_nowait()
                self._dropped_count += 1
                dropped = True
                logger.debug(
                    f"Buffer full, dropped frame seq={stale.seq}. "
                    f"Total dropped: {self._dropped_count}"
                )
            except asyncio.QueueEmpty:
                pass  # consumer took it first

        self._queue.put_nowait(frame)
        return not dropped

    async def get(self, timeout: Optional[float] = None) -> Optional[RawFrame]:
        """
        Wait for the next frame.

        Args:
            timeout: Seconds to wait. None = wait forever.

        Returns:
            Next frame, or None on timeout.
        """
        try:
            if timeout is not None:
                return await asyncio.wait_for(self._queue.get(), timeout=timeout)
            return await self._queue.get()
        except asyncio.TimeoutError:
            return None

    def get_nowait(self) -> Optional[RawFrame]:
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def clear(self) -> int:
        """Drop everything queued. Returns the number of frames cleared."""
        cleared = 0
        while self.get_nowait() is not None:
            cleared += 1
        return cleared

    def metrics(self) -> dict:
        return {
            "size": self.size,
            "depth": self._depth,
            "dropped_count": self._dropped_count,
            "total_put": self._total_put,
        }
