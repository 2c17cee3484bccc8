"""
Test Configuration
==================

Pytest fixtures and test configuration for the image ingest pipeline.
"""

import numpy as np
import pytest

from image_ingest.stream.frame import RawFrame


# Two pixels: (B, G, R) = (10, 20, 30) and (255, 0, 0)
BGR_PIXELS = bytes([10, 20, 30, 255, 0, 0])


@pytest.fixture
def bgr_frame():
    """2x1 bgr8 frame."""
    return RawFrame(encoding="bgr8", width=2, height=1, data=BGR_PIXELS, seq=1)


@pytest.fixture
def short_frame():
    """2x1 bgr8 frame that is one byte short."""
    return RawFrame(encoding="bgr8", width=2, height=1, data=BGR_PIXELS[:-1], seq=2)


@pytest.fixture
def empty_frame():
    """0x0 bgr8 frame."""
    return RawFrame(encoding="bgr8", width=0, height=0, data=b"", seq=3)


@pytest.fixture
def mono_frame():
    """2x2 mono8 frame."""
    return RawFrame(encoding="mono8", width=2, height=2, data=bytes([1, 2, 3, 4]), seq=4)


@pytest.fixture
def random_bgr_frame():
    """16x8 bgr8 frame with deterministic random content."""
    rng = np.random.default_rng(seed=7)
    pixels = rng.integers(0, 256, size=(8, 16, 3), dtype=np.uint8)
    return RawFrame(encoding="bgr8", width=16, height=8, data=pixels.tobytes(), seq=5)


@pytest.fixture
def sample_image_message():
    """Wire message carrying the 2x1 bgr8 frame."""
    return {
        "topic": "/camera/image_raw",
        "encoding": "bgr8",
        "width": 2,
        "height": 1,
        "step": 6,
        "is_bigendian": False,
        "frame_id": "camera",
        "seq": 10,
        "stamp": 1707321234.567,
        "data": "ChQe/wAA",
    }
