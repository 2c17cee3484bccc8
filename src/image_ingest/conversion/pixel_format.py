"""
Pixel Format Converter
======================

Applies a named pixel semantic to an ImageBuffer, producing a new buffer.

Semantics:
    GRAYSCALE:    3 channel colour -> 1 channel luma, same depth and size
    CHANNEL_SWAP: BGR <-> RGB (alpha, if present, stays last)
    DOWNSAMPLE:   Half width and height, area interpolation

Luma:
    Y = 0.299 R + 0.587 G + 0.114 B

    Channel order comes from the buffer's encoding tag (bgr8 vs rgb8).
    Generic tags ("8UC3") are treated as BGR, the OpenCV convention.
    8U, 16U and 32F go through cv2.cvtColor; the remaining depths use the
    same weights in numpy, rounded and clipped into range.

Design Rules:
    - The input buffer is never modified
    - Each semantic checks its own precondition and raises a ConvertError
"""

import logging
from enum import Enum
from typing import Optional

import cv2
import numpy as np

from image_ingest.models.errors import (
    UnsupportedChannelLayout,
    UnsupportedDepth,
    UnsupportedEncoding,
)
from image_ingest.models.image import DepthTag, ImageBuffer
from image_ingest.stream.encodings import (
    EncodingInfo,
    color_name,
    generic_name,
    lookup,
    mono_name,
)


logger = logging.getLogger(__name__)


LUMA_WEIGHTS = {"r": 0.299, "g": 0.587, "b": 0.114}

_GRAY_CODES = {
    "bgr": cv2.COLOR_BGR2GRAY,
    "rgb": cv2.COLOR_RGB2GRAY,
}

_CV_GRAY_DEPTHS = (DepthTag.U8, DepthTag.U16, DepthTag.F32)
_CV_RESIZE_DEPTHS = (DepthTag.U8, DepthTag.U16, DepthTag.S16, DepthTag.F32, DepthTag.F64)


class PixelSemantic(str, Enum):
    """Target conversion applied by convert()."""

    GRAYSCALE = "grayscale"
    CHANNEL_SWAP = "channel_swap"
    DOWNSAMPLE = "downsample"


def convert(
    buffer: ImageBuffer,
    target: PixelSemantic = PixelSemantic.GRAYSCALE,
) -> ImageBuffer:
    """
    Apply a pixel semantic to a buffer.

    Args:
        buffer: Source buffer (left untouched)
        target: Semantic to apply

    Returns:
        New ImageBuffer

    Raises:
        UnsupportedChannelLayout: If the channel count doesn't fit the semantic
        UnsupportedDepth: If the depth doesn't fit the semantic
    """
    target = PixelSemantic(target)
    logger.debug(f"Applying {target.value} to {buffer!r}")

    if target == PixelSemantic.GRAYSCALE:
        return to_grayscale(buffer)
    if target == PixelSemantic.CHANNEL_SWAP:
        return swap_channels(buffer)
    return downsample(buffer)


def to_grayscale(buffer: ImageBuffer) -> ImageBuffer:
    """Three-channel colour to single-channel luma.

    Alpha input is rejected; decode with target_encoding="bgr8" to drop it.
    """
    if buffer.channel_count != 3:
        raise UnsupportedChannelLayout(
            buffer.channel_count, f"3 (colour) for {PixelSemantic.GRAYSCALE.value}"
        )
    order = _color_order(buffer)
    height, width = buffer.height, buffer.width

    if buffer.is_empty:
        gray = np.empty((height, width), dtype=buffer.depth_tag.dtype)
    elif buffer.depth_tag in _CV_GRAY_DEPTHS:
        gray = cv2.cvtColor(buffer.pixels.copy(), _GRAY_CODES[order])
    else:
        gray = _weighted_luma(buffer.pixels, order, buffer.depth_tag)

    return ImageBuffer.from_array(
        gray.reshape(height, width), mono_name(buffer.depth_tag)
    )


def swap_channels(buffer: ImageBuffer) -> ImageBuffer:
    """Swap the first and third channel, BGR <-> RGB."""
    _require_color(buffer, PixelSemantic.CHANNEL_SWAP)

    index = [2, 1, 0] + list(range(3, buffer.channel_count))
    swapped = buffer.pixels[:, :, index]

    info = _lookup_or_none(buffer.encoding)
    if info is not None and info.is_color:
        swapped_order = info.order[2::-1] + info.order[3:]
        encoding = color_name(swapped_order, buffer.depth_tag)
    else:
        encoding = generic_name(buffer.depth_tag, buffer.channel_count)

    return ImageBuffer.from_array(swapped, encoding)


def downsample(buffer: ImageBuffer) -> ImageBuffer:
    """Halve both dimensions (floored at 1 pixel) with area interpolation."""
    if buffer.depth_tag not in _CV_RESIZE_DEPTHS:
        raise UnsupportedDepth(buffer.depth_tag.code, PixelSemantic.DOWNSAMPLE.value)
    if buffer.channel_count > 4:
        raise UnsupportedChannelLayout(buffer.channel_count, "1 to 4")

    if buffer.is_empty:
        return ImageBuffer.from_array(buffer.pixels, buffer.encoding)

    width = max(1, buffer.width // 2)
    height = max(1, buffer.height // 2)
    resized = cv2.resize(buffer.pixels.copy(), (width, height), interpolation=cv2.INTER_AREA)
    return ImageBuffer.from_array(
        resized.reshape(height, width, buffer.channel_count), buffer.encoding
    )


def _require_color(buffer: ImageBuffer, semantic: PixelSemantic) -> None:
    if buffer.channel_count not in (3, 4):
        raise UnsupportedChannelLayout(
            buffer.channel_count,
            f"3 (colour) or 4 (colour + alpha) for {semantic.value}",
        )


def _lookup_or_none(encoding: str) -> Optional[EncodingInfo]:
    try:
        return lookup(encoding)
    except UnsupportedEncoding:
        return None


def _color_order(buffer: ImageBuffer) -> str:
    info = _lookup_or_none(buffer.encoding)
    if info is not None and info.is_color and info.channel_count == buffer.channel_count:
        return info.order
    return "bgr"


def _weighted_luma(pixels: np.ndarray, order: str, depth_tag: DepthTag) -> np.ndarray:
    samples = pixels.astype(np.float64)
    luma = sum(
        weight * samples[:, :, order.index(channel)]
        for channel, weight in LUMA_WEIGHTS.items()
    )

    dtype = depth_tag.dtype
    if dtype.kind == "f":
        return luma.astype(dtype)

    limits = np.iinfo(dtype)
    return np.clip(np.rint(luma), limits.min, limits.max).astype(dtype)
