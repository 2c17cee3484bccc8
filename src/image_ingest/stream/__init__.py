"""
Stream Module
=============

Transport-facing side of the pipeline: frames, encodings and decoding.

This module provides:
    - RawFrame: Frame as delivered by the transport
    - FrameBuffer: Drop-oldest bounded queue (depth 1 by default)
    - FrameConsumer: WebSocket subscription to one image topic
    - decode / encode: RawFrame <-> ImageBuffer

Example:
    from image_ingest.stream import FrameBuffer, FrameConsumer

    buffer = FrameBuffer(depth=1)
    consumer = FrameConsumer(
        url="ws://localhost:8000/ws/frames",
        topic="/camera/image_raw",
        buffer=buffer,
    )
    task = asyncio.create_task(consumer.run())

    while True:
        frame = await buffer.get()
        controller.process(frame)
"""

from image_ingest.stream.frame import RawFrame
from image_ingest.stream.buffer import FrameBuffer
from image_ingest.stream.consumer import FrameConsumer, FrameConsumerMetrics
from image_ingest.stream.image_decoder import decode, encode, expected_size


__all__ = [
    "RawFrame",
    "FrameBuffer",
    "FrameConsumer",
    "FrameConsumerMetrics",
    "decode",
    "encode",
    "expected_size",
]
