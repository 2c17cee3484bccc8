"""
Image Encodings
===============

Fixed lookup table from encoding tag to pixel layout.

Two families are recognised:
    - Named encodings (mono8, bgr8, rgba16, ...): depth, channel count and
      channel order are all known.
    - Generic encodings ("8UC3", "32FC1", "16S", ...): depth and channel
      count only; the channel order is unspecified.

Any other tag is unsupported.
"""

import re
from dataclasses import dataclass
from typing import Optional

from image_ingest.models.errors import UnsupportedEncoding
from image_ingest.models.image import DepthTag


# OpenCV limit on channels per element
MAX_CHANNELS = 512


@dataclass(frozen=True)
class EncodingInfo:
    """
    Pixel layout described by an encoding tag.

    Attributes:
        name: Encoding tag
        depth_tag: Sample type
        channel_count: Channels per pixel
        order: Channel order ("mono", "bgr", "rgb", "bgra", "rgba"),
            or None for generic encodings
    """

    name: str
    depth_tag: DepthTag
    channel_count: int
    order: Optional[str] = None

    @property
    def bytes_per_pixel(self) -> int:
        return self.depth_tag.size * self.channel_count

    @property
    def is_color(self) -> bool:
        return self.order in ("bgr", "rgb", "bgra", "rgba")

    @property
    def is_mono(self) -> bool:
        return self.order == "mono"

    @property
    def is_generic(self) -> bool:
        return self.order is None


def _named(name: str, depth_tag: DepthTag, order: str) -> EncodingInfo:
    channels = 1 if order == "mono" else len(order)
    return EncodingInfo(name, depth_tag, channels, order)


NAMED_ENCODINGS = {
    info.name: info
    for info in (
        _named("mono8", DepthTag.U8, "mono"),
        _named("mono16", DepthTag.U16, "mono"),
        _named("bgr8", DepthTag.U8, "bgr"),
        _named("rgb8", DepthTag.U8, "rgb"),
        _named("bgra8", DepthTag.U8, "bgra"),
        _named("rgba8", DepthTag.U8, "rgba"),
        _named("bgr16", DepthTag.U16, "bgr"),
        _named("rgb16", DepthTag.U16, "rgb"),
        _named("bgra16", DepthTag.U16, "bgra"),
        _named("rgba16", DepthTag.U16, "rgba"),
    )
}

_GENERIC_PATTERN = re.compile(r"^(8U|8S|16U|16S|32S|32F|64F)(?:C(\d+))?$")


def lookup(encoding: str) -> EncodingInfo:
    """
    Resolve an encoding tag.

    Args:
        encoding: Tag such as "bgr8" or "32FC1"

    Returns:
        EncodingInfo for the tag

    Raises:
        UnsupportedEncoding: If the tag is not recognised
    """
    info = NAMED_ENCODINGS.get(encoding)
    if info is not None:
        return info

    match = _GENERIC_PATTERN.match(encoding or "")
    if match is None:
        raise UnsupportedEncoding(encoding)

    depth_code, channels = match.groups()
    channel_count = int(channels) if channels is not None else 1
    if not 1 <= channel_count <= MAX_CHANNELS:
        raise UnsupportedEncoding(encoding)

    return EncodingInfo(encoding, DepthTag.from_code(depth_code), channel_count)


def is_supported(encoding: str) -> bool:
    try:
        lookup(encoding)
    except UnsupportedEncoding:
        return False
    return True


def generic_name(depth_tag: DepthTag, channel_count: int) -> str:
    """Generic tag for a layout, e.g. (U8, 3) -> "8UC3"."""
    return f"{depth_tag.code}C{channel_count}"


def mono_name(depth_tag: DepthTag) -> str:
    """Single-channel tag for a depth: mono8/mono16 where they exist."""
    if depth_tag == DepthTag.U8:
        return "mono8"
    if depth_tag == DepthTag.U16:
        return "mono16"
    return generic_name(depth_tag, 1)


def color_name(order: str, depth_tag: DepthTag) -> str:
    """
    Named colour tag for an order and depth, falling back to generic.

    Example:
        color_name("rgb", DepthTag.U16) -> "rgb16"
        color_name("bgr", DepthTag.F32) -> "32FC3"
    """
    suffix = {DepthTag.U8: "8", DepthTag.U16: "16"}.get(depth_tag)
    if suffix is None:
        return generic_name(depth_tag, len(order))
    return f"{order}{suffix}"
