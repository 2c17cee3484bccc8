"""
Pipeline Runner
===============

Async task that drains a FrameBuffer into a FrameIngestionController.

Frames are processed strictly one at a time, in arrival order. Each call
to process() runs in a worker thread so decoding never blocks the event
loop that the transport is receiving on.
"""

import asyncio
import logging
from typing import Optional

from image_ingest.models.outcome import FrameOutcome
from image_ingest.pipeline.controller import FrameIngestionController
from image_ingest.stream.buffer import FrameBuffer


logger = logging.getLogger(__name__)


class PipelineRunner:
    """
    Single-worker loop feeding buffered frames to the controller.

    Attributes:
        buffer: Source of frames
        controller: Per-frame pipeline
        last_outcome: Outcome of the most recent frame
        running: Whether the loop is active

    Example:
        runner = PipelineRunner(buffer, controller)
        task = asyncio.create_task(runner.run())
        ...
        runner.stop()
        await task
    """

    def __init__(
        self,
        buffer: FrameBuffer,
        controller: FrameIngestionController,
        poll_timeout: float = 1.0,
    ) -> None:
        self.buffer = buffer
        self.controller = controller
        self.poll_timeout = poll_timeout

        self.last_outcome: Optional[FrameOutcome] = None
        self._running: bool = False

    @property
    def running(self) -> bool:
        return self._running

    async def run(self) -> None:
        """Process frames until stop() is called or the task is cancelled."""
        self._running = True
        logger.info("Frame processing pipeline started")

        try:
            while self._running:
                frame = await self.buffer.get(timeout=self.poll_timeout)
                if frame is None:
                    continue
                self.last_outcome = await asyncio.to_thread(self.controller.process, frame)
        except asyncio.CancelledError:
            logger.info("Frame processing pipeline cancelled")
            raise
        finally:
            self._running = False
            logger.info("Frame processing pipeline stopped")

    def stop(self) -> None:
        self._running = False
