#!/usr/bin/env python3
"""
Synthetic Frame Publisher
=========================

Standalone WebSocket server that publishes synthetic image messages, for
running the ingest service end to end without a camera.

This script:
    1. Serves image messages at ws://<host>:<port>/ws/frames
    2. Publishes colour gradient frames at a fixed rate
    3. Optionally injects malformed frames (short payload, unknown
       encoding, empty image) to exercise per-frame error handling

Usage:
    python scripts/publish_frames.py --fps 10 --width 64 --height 48
    python scripts/publish_frames.py --bad-every 5

    # In another shell
    IMAGE_INGEST_STREAM_URL=ws://localhost:8000/ws/frames python -m image_ingest.main
"""

import argparse
import asyncio
import itertools
import logging
import time

import numpy as np
import websockets

from image_ingest.stream.frame import RawFrame
from image_ingest.stream.message import ImageMessage


logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%S",
)
logger = logging.getLogger(__name__)


def make_frame(seq: int, width: int, height: int) -> RawFrame:
    """Moving BGR gradient."""
    x = np.linspace(0, 255, width, dtype=np.float32)
    y = np.linspace(0, 255, height, dtype=np.float32)[:, np.newaxis]
    shift = (seq * 8) % 256

    pixels = np.empty((height, width, 3), dtype=np.uint8)
    pixels[:, :, 0] = (x + shift) % 256
    pixels[:, :, 1] = np.broadcast_to(y, (height, width))
    pixels[:, :, 2] = 255 - pixels[:, :, 0]

    return RawFrame(
        encoding="bgr8",
        width=width,
        height=height,
        data=pixels.tobytes(),
        step=width * 3,
        frame_id="synthetic_camera",
        seq=seq,
        stamp=time.time(),
    )


def make_bad_frame(seq: int, kind: int, width: int, height: int) -> RawFrame:
    """Cycle through the malformed cases the pipeline must survive."""
    good = make_frame(seq, width, height)
    if kind == 0:
        return RawFrame(
            encoding=good.encoding,
            width=width,
            height=height,
            data=good.data[:-1],
            seq=seq,
            stamp=good.stamp,
        )
    if kind == 1:
        return RawFrame(encoding="yuv422", width=width, height=height, data=good.data, seq=seq)
    return RawFrame(encoding="bgr8", width=0, height=0, data=b"", seq=seq)


async def publish(websocket, args: argparse.Namespace) -> None:
    logger.info("Subscriber connected")
    period = 1.0 / args.fps
    bad_kinds = itertools.cycle(range(3))

    for seq in itertools.count():
        if args.bad_every and seq > 0 and seq % args.bad_every == 0:
            frame = make_bad_frame(seq, next(bad_kinds), args.width, args.height)
        else:
            frame = make_frame(seq, args.width, args.height)

        message = ImageMessage.from_raw_frame(frame, topic=args.topic)
        try:
            await websocket.send(message.model_dump_json())
        except websockets.ConnectionClosed:
            logger.info("Subscriber disconnected")
            return
        await asyncio.sleep(period)


async def main(args: argparse.Namespace) -> None:
    async def handler(websocket):
        await publish(websocket, args)

    async with websockets.serve(handler, args.host, args.port, max_size=None):
        logger.info(f"Publishing {args.topic} on ws://{args.host}:{args.port}/ws/frames")
        await asyncio.Future()


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Publish synthetic image frames")
    parser.add_argument("--host", default="localhost")
    parser.add_argument("--port", type=int, default=8000)
    parser.add_argument("--topic", default="/camera/image_raw")
    parser.add_argument("--fps", type=float, default=10.0)
    parser.add_argument("--width", type=int, default=64)
    parser.add_argument("--height", type=int, default=48)
    parser.add_argument(
        "--bad-every",
        type=int,
        default=0,
        help="Replace every Nth frame with a malformed one (0 = never)",
    )
    return parser.parse_args()


if __name__ == "__main__":
    try:
        asyncio.run(main(parse_args()))
    except KeyboardInterrupt:
        logger.info("Publisher stopped")
