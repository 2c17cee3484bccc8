"""
Image Decoder
=============

Dedicated module for turning RawFrames into typed ImageBuffers.

Design Rules:
    - This is the ONLY place in the codebase that interprets raw frame bytes
    - Validates byte length against encoding and dimensions
    - Always copies: the returned buffer never aliases transport memory
    - Fails fast on malformed frames (raises a DecodeError subclass)

Supported conversions (when a target encoding is requested):
    - Between named colour/mono encodings (channel reorder, alpha
      add/drop, colour -> mono, mono -> colour)
    - 8 <-> 16 bit unsigned depth change, scaled by 257
    - Generic <-> any encoding of the same depth and channel count
      (relabel only)
"""

import logging
import sys
from typing import Optional

import cv2
import numpy as np

from image_ingest.models.errors import SizeMismatch, UnsupportedConversion
from image_ingest.models.image import DepthTag, ImageBuffer
from image_ingest.stream.encodings import EncodingInfo, lookup
from image_ingest.stream.frame import RawFrame


logger = logging.getLogger(__name__)


# (source order, target order) -> OpenCV colour conversion code
_COLOR_CODES = {
    ("mono", "bgr"): cv2.COLOR_GRAY2BGR,
    ("mono", "rgb"): cv2.COLOR_GRAY2RGB,
    ("mono", "bgra"): cv2.COLOR_GRAY2BGRA,
    ("mono", "rgba"): cv2.COLOR_GRAY2RGBA,
    ("bgr", "mono"): cv2.COLOR_BGR2GRAY,
    ("bgr", "rgb"): cv2.COLOR_BGR2RGB,
    ("bgr", "bgra"): cv2.COLOR_BGR2BGRA,
    ("bgr", "rgba"): cv2.COLOR_BGR2RGBA,
    ("rgb", "mono"): cv2.COLOR_RGB2GRAY,
    ("rgb", "bgr"): cv2.COLOR_RGB2BGR,
    ("rgb", "bgra"): cv2.COLOR_RGB2BGRA,
    ("rgb", "rgba"): cv2.COLOR_RGB2RGBA,
    ("bgra", "mono"): cv2.COLOR_BGRA2GRAY,
    ("bgra", "bgr"): cv2.COLOR_BGRA2BGR,
    ("bgra", "rgb"): cv2.COLOR_BGRA2RGB,
    ("bgra", "rgba"): cv2.COLOR_BGRA2RGBA,
    ("rgba", "mono"): cv2.COLOR_RGBA2GRAY,
    ("rgba", "bgr"): cv2.COLOR_RGBA2BGR,
    ("rgba", "rgb"): cv2.COLOR_RGBA2RGB,
    ("rgba", "bgra"): cv2.COLOR_RGBA2BGRA,
}

# 65535 / 255
_DEPTH_SCALE = 257


def expected_size(raw: RawFrame, info: Optional[EncodingInfo] = None) -> int:
    """
    Number of bytes a frame must carry.

    Args:
        raw: Frame to measure
        info: Pre-resolved encoding (looked up from raw.encoding if None)

    Returns:
        height * step, where step defaults to width * bytes_per_pixel

    Raises:
        UnsupportedEncoding: If raw.encoding is unknown
    """
    if info is None:
        info = lookup(raw.encoding)
    step = raw.step if raw.step is not None else raw.width * info.bytes_per_pixel
    return raw.height * step


def decode(raw: RawFrame, target_encoding: Optional[str] = None) -> ImageBuffer:
    """
    Decode a RawFrame into an ImageBuffer.

    Args:
        raw: Frame from the transport
        target_encoding: Encoding the buffer should end up in. None, or
            the frame's own encoding, means no conversion.

    Returns:
        ImageBuffer with the frame's dimensions

    Raises:
        UnsupportedEncoding: If raw.encoding or target_encoding is unknown
        SizeMismatch: If the byte count doesn't match the layout
        UnsupportedConversion: If the two encodings can't be converted
    """
    source = lookup(raw.encoding)
    target = None
    if target_encoding is not None and target_encoding != raw.encoding:
        target = lookup(target_encoding)

    buffer = ImageBuffer(
        width=raw.width,
        height=raw.height,
        depth_tag=source.depth_tag,
        channel_count=source.channel_count,
        encoding=source.name,
        pixels=_unpack(raw, source),
    )

    if target is None:
        return buffer
    return convert_encoding(buffer, target.name)


def encode(buffer: ImageBuffer, encoding: Optional[str] = None) -> RawFrame:
    """
    Pack an ImageBuffer back into a tightly packed RawFrame.

    Args:
        buffer: Buffer to pack
        encoding: Encoding of the produced frame. Defaults to the
            buffer's own encoding.

    Returns:
        RawFrame in native byte order

    Raises:
        UnsupportedEncoding: If an encoding involved is unknown
        UnsupportedConversion: If the buffer can't be converted
    """
    if encoding is not None and encoding != buffer.encoding:
        buffer = convert_encoding(buffer, encoding)
    else:
        lookup(buffer.encoding)

    return RawFrame(
        encoding=buffer.encoding,
        width=buffer.width,
        height=buffer.height,
        data=buffer.pixel_data,
        step=buffer.width * buffer.channel_count * buffer.depth_tag.size,
        is_bigendian=sys.byteorder == "big",
    )


def convert_encoding(buffer: ImageBuffer, encoding: str) -> ImageBuffer:
    """
    Re-express a buffer in another encoding.

    Raises:
        UnsupportedEncoding: If either encoding is unknown
        UnsupportedConversion: If no conversion exists between them
    """
    source = lookup(buffer.encoding)
    target = lookup(encoding)

    if source.name == target.name:
        return buffer

    same_layout = (
        source.depth_tag == target.depth_tag
        and source.channel_count == target.channel_count
    )
    if same_layout and (source.is_generic or target.is_generic or source.order == target.order):
        return ImageBuffer(
            width=buffer.width,
            height=buffer.height,
            depth_tag=buffer.depth_tag,
            channel_count=buffer.channel_count,
            encoding=target.name,
            pixels=buffer.pixels,
        )

    if source.is_generic or target.is_generic:
        raise UnsupportedConversion(source.name, target.name)

    pixels = _convert_depth(buffer.pixels, source.depth_tag, target.depth_tag)
    if source.order != target.order:
        pixels = _convert_order(pixels, source.order, target)

    logger.debug(f"Converted {source.name} -> {target.name}")
    return ImageBuffer.from_array(pixels, target.name)


def _unpack(raw: RawFrame, info: EncodingInfo) -> np.ndarray:
    """Validate byte length and copy the frame into a native (H, W, C) array."""
    if raw.width < 0 or raw.height < 0:
        raise SizeMismatch(
            0, len(raw.data), f"invalid dimensions {raw.width}x{raw.height}"
        )

    row_bytes = raw.width * info.bytes_per_pixel
    step = raw.step if raw.step is not None else row_bytes
    if step < row_bytes:
        raise SizeMismatch(
            row_bytes * raw.height,
            len(raw.data),
            f"step {step} is shorter than a {row_bytes} byte row",
        )

    expected = raw.height * step
    if len(raw.data) != expected:
        raise SizeMismatch(expected, len(raw.data))

    rows = np.frombuffer(raw.data, dtype=np.uint8).reshape(raw.height, step)
    rows = np.ascontiguousarray(rows[:, :row_bytes])

    wire_dtype = info.depth_tag.dtype.newbyteorder(">" if raw.is_bigendian else "<")
    samples = rows.view(wire_dtype).astype(info.depth_tag.dtype)
    return samples.reshape(raw.height, raw.width, info.channel_count)


def _convert_depth(pixels: np.ndarray, source: DepthTag, target: DepthTag) -> np.ndarray:
    if source == target:
        return pixels
    if source == DepthTag.U8 and target == DepthTag.U16:
        return pixels.astype(np.uint16) * _DEPTH_SCALE
    if source == DepthTag.U16 and target == DepthTag.U8:
        return np.rint(pixels / _DEPTH_SCALE).astype(np.uint8)
    raise UnsupportedConversion(source.code, target.code)


def _convert_order(pixels: np.ndarray, source_order: str, target: EncodingInfo) -> np.ndarray:
    height, width, _ = pixels.shape
    if height * width == 0:
        return np.empty((height, width, target.channel_count), dtype=pixels.dtype)

    src = pixels[:, :, 0] if pixels.shape[2] == 1 else pixels
    converted = cv2.cvtColor(src.copy(), _COLOR_CODES[(source_order, target.order)])
    return converted.reshape(height, width, target.channel_count)
