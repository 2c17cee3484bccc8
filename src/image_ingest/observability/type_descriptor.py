"""
Type Descriptor
===============

Human-readable type strings for diagnostics, e.g. "8UC3" or "32FC1".

Format:
    <depth code> "C" <channel count>

    depth code is one of 8U, 8S, 16U, 16S, 32S, 32F, 64F, or "UNKNOWN"
    for a depth outside the enumeration. The channel count is printed in
    full, so 12 channels gives "8UC12".
"""

from typing import Union

from image_ingest.models.image import DepthTag, ImageBuffer


# OpenCV packs depth into the low 3 bits and (channels - 1) above them
_CV_DEPTH_MASK = 7
_CV_CN_SHIFT = 3

UNKNOWN = "UNKNOWN"


def format_type(depth_tag: Union[DepthTag, int], channel_count: int) -> str:
    """
    Format a depth and channel count as a type descriptor.

    Args:
        depth_tag: DepthTag member, or an OpenCV depth value (0..6)
        channel_count: Channels per pixel

    Returns:
        Descriptor string. Never raises.
    """
    return f"{_depth_code(depth_tag)}C{channel_count}"


def format_cv_type(cv_type: int) -> str:
    """
    Format a packed OpenCV type value (e.g. cv2.CV_8UC3 == 16).

    Example:
        format_cv_type(16) -> "8UC3"
    """
    depth = cv_type & _CV_DEPTH_MASK
    channels = 1 + (cv_type >> _CV_CN_SHIFT)
    return format_type(depth, channels)


def describe(buffer: ImageBuffer) -> str:
    """Type descriptor of a buffer."""
    return format_type(buffer.depth_tag, buffer.channel_count)


def _depth_code(depth_tag: Union[DepthTag, int]) -> str:
    if isinstance(depth_tag, DepthTag):
        return depth_tag.code
    # bool is an int subclass but never a depth
    if isinstance(depth_tag, int) and not isinstance(depth_tag, bool):
        try:
            return DepthTag(depth_tag).code
        except ValueError:
            return UNKNOWN
    return UNKNOWN
