"""
Frame Consumer
==============

WebSocket subscription delivering RawFrames into a FrameBuffer.

This module provides the FrameConsumer class which:
    - Connects to the image stream endpoint
    - Parses and validates image messages
    - Ignores messages published on other topics
    - Handles reconnection with backoff
    - Pushes frames into a FrameBuffer

Design Rules:
    - Does NOT decode pixel data
    - Logs malformed messages and keeps going
    - Sequence gaps are expected (frames may be dropped under load)
"""

import asyncio
import logging
from typing import Optional, Union

import websockets
from pydantic import ValidationError
from websockets.exceptions import (
    ConnectionClosed,
    ConnectionClosedError,
    ConnectionClosedOK,
)

from image_ingest.stream.message import ImageMessage
from image_ingest.stream.buffer import FrameBuffer
from image_ingest.stream.frame import RawFrame


logger = logging.getLogger(__name__)


class FrameConsumerMetrics:
    """Metrics for FrameConsumer observability."""

    __slots__ = (
        "messages_received",
        "frames_delivered",
        "reconnect_count",
        "parse_errors",
        "skipped_topic",
        "sequence_gaps",
        "last_seq",
    )

    def __init__(self) -> None:
        self.messages_received: int = 0
        self.frames_delivered: int = 0
        self.reconnect_count: int = 0
        self.parse_errors: int = 0
        self.skipped_topic: int = 0
        self.sequence_gaps: int = 0
        self.last_seq: int = -1

    def to_dict(self) -> dict:
        """Export metrics as dict."""
        return {
            "messages_received": self.messages_received,
            "frames_delivered": self.frames_delivered,
            "reconnect_count": self.reconnect_count,
            "parse_errors": self.parse_errors,
            "skipped_topic": self.skipped_topic,
            "sequence_gaps": self.sequence_gaps,
            "last_seq": self.last_seq,
        }


class FrameConsumer:
    """
    Subscription to one image topic over WebSocket.

    Attributes:
        url: WebSocket URL to connect to
        topic: Topic to accept (None = accept all)
        buffer: FrameBuffer frames are pushed into
        connected: Whether currently connected
        metrics: Operational metrics

    Example:
        buffer = FrameBuffer(depth=1)
        consumer = FrameConsumer(
            url="ws://localhost:8000/ws/frames",
            topic="/camera/image_raw",
            buffer=buffer,
        )

        task = asyncio.create_task(consumer.run())

        # Later
        await consumer.stop()
        await task
    """

    def __init__(
        self,
        url: str,
        buffer: FrameBuffer,
        topic: Optional[str] = None,
        reconnect_backoff_ms: int = 500,
        max_reconnect_attempts: int = 0,
    ) -> None:
        """
        Initialize frame consumer.

        Args:
            url: WebSocket URL of the image stream
            buffer: FrameBuffer to push frames into
            topic: Only messages on this topic are accepted
            reconnect_backoff_ms: Backoff between reconnect attempts
            max_reconnect_attempts: Max attempts (0 = unlimited)
        """
        self.url = url
        self.buffer = buffer
        self.topic = topic
        self.reconnect_backoff_ms = reconnect_backoff_ms
        self.max_reconnect_attempts = max_reconnect_attempts

        self._websocket = None
        self._connected: bool = False
        self._running: bool = False
        self._stop_event: asyncio.Event = asyncio.Event()

        self.metrics = FrameConsumerMetrics()

    @property
    def connected(self) -> bool:
        return self._connected

    async def run(self) -> None:
        """
        Start consuming frames.

        Runs until stop() is called or reconnect attempts run out.
        """
        self._running = True
        self._stop_event.clear()

        logger.info(f"FrameConsumer starting, subscribing to {self.topic} at {self.url}")

        while self._running:
            try:
                await self._connect_and_consume()
            except Exception as e:
                if not self._running:
                    break

                logger.error(f"Connection error: {e}")
                self._connected = False

                if (
                    self.max_reconnect_attempts > 0
                    and self.metrics.reconnect_count >= self.max_reconnect_attempts
                ):
                    logger.error(
                        f"Max reconnect attempts ({self.max_reconnect_attempts}) exceeded"
                    )
                    break

                self.metrics.reconnect_count += 1
                backoff_sec = self.reconnect_backoff_ms / 1000.0
                logger.info(
                    f"Reconnecting in {backoff_sec:.1f}s "
                    f"(attempt {self.metrics.reconnect_count})"
                )

                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=backoff_sec)
                    break
                except asyncio.TimeoutError:
                    pass

        logger.info("FrameConsumer stopped")

    async def stop(self) -> None:
        """Signal the run loop to exit and close the connection."""
        logger.info("FrameConsumer stopping...")
        self._running = False
        self._stop_event.set()

        if self._websocket is not None:
            try:
                await self._websocket.close()
            except ConnectionClosed:
                pass

        self._connected = False

    async def _connect_and_consume(self) -> None:
        async with websockets.connect(
            self.url,
            ping_interval=20,
            ping_timeout=10,
            close_timeout=5,
            max_size=None,
        ) as ws:
            self._websocket = ws
            self._connected = True
            logger.info(f"Connected to image stream: {self.url}")

            try:
                async for message in ws:
                    if not self._running:
                        break

                    frame = self.parse_message(message)
                    if frame is not None:
                        await self.buffer.put(frame)
                        self.metrics.frames_delivered += 1

            except ConnectionClosedOK:
                logger.info("Connection closed normally")
            except ConnectionClosedError as e:
                logger.warning(f"Connection closed with error: {e}")
                raise
            finally:
                self._connected = False
                self._websocket = None

    def parse_message(self, raw: Union[str, bytes]) -> Optional[RawFrame]:
        """
        Turn one WebSocket message into a RawFrame.

        Args:
            raw: JSON text (bytes are accepted as UTF-8 JSON)

        Returns:
            RawFrame, or None if the message is malformed or on another topic
        """
        self.metrics.messages_received += 1

        try:
            message = ImageMessage.model_validate_json(raw)
            frame = message.to_raw_frame()
        except ValidationError as e:
            self.metrics.parse_errors += 1
            logger.error(f"Invalid image message: {e.error_count()} validation error(s)")
            return None
        except ValueError as e:
            self.metrics.parse_errors += 1
            logger.error(f"Invalid image message: {e}")
            return None

        if self.topic is not None and message.topic is not None and message.topic != self.topic:
            self.metrics.skipped_topic += 1
            logger.debug(f"Ignoring message on topic {message.topic}")
            return None

        if self.metrics.last_seq >= 0 and frame.seq > self.metrics.last_seq + 1:
            self.metrics.sequence_gaps += 1
            logger.debug(
                f"Sequence gap: got {frame.seq}, expected {self.metrics.last_seq + 1}"
            )
        self.metrics.last_seq = frame.seq

        return frame
