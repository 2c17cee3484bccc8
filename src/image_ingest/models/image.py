"""
Image Buffer Model
==================

Decoded, typed in-memory representation of a frame.

Core Concepts:
    - DepthTag: Closed enumeration of pixel sample types
    - ImageBuffer: Immutable pixel buffer with dimensions and type info

Layout:
    Pixels are held as a numpy array of shape (height, width, channels)
    in row-major order. The packed byte view is always

        len(pixel_data) == width * height * channel_count * depth_tag.size

Design Rules:
    - Buffers are never mutated in place (array is read-only)
    - Conversions produce new buffers
    - No buffer outlives the frame invocation that created it

Example:
    import numpy as np
    from image_ingest.models.image import DepthTag, ImageBuffer

    buf = ImageBuffer.from_array(np.zeros((480, 640, 3), np.uint8), "bgr8")
    print(buf.depth_tag, buf.channel_count)   # DepthTag.U8 3
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np


class DepthTag(Enum):
    """
    Pixel sample type.

    Values are the OpenCV depth constants (CV_8U == 0 ... CV_64F == 6),
    so a depth read from an OpenCV type maps straight onto a member.
    """

    U8 = 0
    S8 = 1
    U16 = 2
    S16 = 3
    S32 = 4
    F32 = 5
    F64 = 6

    @property
    def dtype(self) -> np.dtype:
        """numpy dtype holding one sample of this depth."""
        return np.dtype(_DTYPES[self])

    @property
    def size(self) -> int:
        """Bytes per sample."""
        return self.dtype.itemsize

    @property
    def code(self) -> str:
        """Short descriptor code, e.g. '8U' or '32F'."""
        return _CODES[self]

    @classmethod
    def from_code(cls, code: str) -> "DepthTag":
        """Look up a depth by descriptor code. Raises KeyError if unknown."""
        return _BY_CODE[code]

    @classmethod
    def from_dtype(cls, dtype) -> "DepthTag":
        """Look up a depth by numpy dtype. Raises KeyError if unknown."""
        dtype = np.dtype(dtype)
        return _BY_KIND[(dtype.kind, dtype.itemsize)]


_DTYPES = {
    DepthTag.U8: np.uint8,
    DepthTag.S8: np.int8,
    DepthTag.U16: np.uint16,
    DepthTag.S16: np.int16,
    DepthTag.S32: np.int32,
    DepthTag.F32: np.float32,
    DepthTag.F64: np.float64,
}

_CODES = {
    DepthTag.U8: "8U",
    DepthTag.S8: "8S",
    DepthTag.U16: "16U",
    DepthTag.S16: "16S",
    DepthTag.S32: "32S",
    DepthTag.F32: "32F",
    DepthTag.F64: "64F",
}

_BY_CODE = {code: tag for tag, code in _CODES.items()}
_BY_KIND = {
    (np.dtype(dt).kind, np.dtype(dt).itemsize): tag for tag, dt in _DTYPES.items()
}


@dataclass(frozen=True, eq=False)
class ImageBuffer:
    """
    Decoded image with typed pixels.

    Attributes:
        width: Columns
        height: Rows
        depth_tag: Sample type of every channel
        channel_count: Channels per pixel
        encoding: Encoding tag the buffer is labelled with. Determines
            channel order (bgr vs rgb) for colour conversions.
        pixels: Read-only array of shape (height, width, channel_count)

    Raises:
        ValueError: If the array does not agree with the declared
            dimensions, depth or channel count.
    """

    width: int
    height: int
    depth_tag: DepthTag
    channel_count: int
    encoding: str
    pixels: np.ndarray

    def __post_init__(self) -> None:
        if self.width < 0 or self.height < 0:
            raise ValueError(
                f"Dimensions must be >= 0, got {self.width}x{self.height}"
            )
        if self.channel_count < 1:
            raise ValueError(f"channel_count must be >= 1, got {self.channel_count}")

        expected_shape = (self.height, self.width, self.channel_count)
        if self.pixels.shape != expected_shape:
            raise ValueError(
                f"Pixel array shape {self.pixels.shape} does not match {expected_shape}"
            )
        if self.pixels.dtype != self.depth_tag.dtype:
            raise ValueError(
                f"Pixel dtype {self.pixels.dtype} does not match depth {self.depth_tag.code}"
            )

        # Private read-only copy; the caller's array is left writable.
        pixels = np.array(self.pixels, order="C", copy=True)
        pixels.flags.writeable = False
        object.__setattr__(self, "pixels", pixels)

    @classmethod
    def from_array(cls, pixels: np.ndarray, encoding: str) -> "ImageBuffer":
        """
        Wrap an array (H, W) or (H, W, C) into a buffer.

        The array is copied into a contiguous, native-endian block so the
        buffer owns its memory.
        """
        if pixels.ndim == 2:
            pixels = pixels[:, :, np.newaxis]
        if pixels.ndim != 3:
            raise ValueError(f"Expected 2 or 3 dimensional array, got {pixels.ndim}")

        depth_tag = DepthTag.from_dtype(pixels.dtype)
        native = pixels.astype(depth_tag.dtype, copy=False)
        height, width, channels = native.shape
        return cls(
            width=width,
            height=height,
            depth_tag=depth_tag,
            channel_count=channels,
            encoding=encoding,
            pixels=native,
        )

    @property
    def pixel_data(self) -> bytes:
        """Row-major packed pixel bytes (native byte order)."""
        return self.pixels.tobytes(order="C")

    @property
    def nbytes(self) -> int:
        return self.width * self.height * self.channel_count * self.depth_tag.size

    @property
    def is_empty(self) -> bool:
        return self.width * self.height == 0

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ImageBuffer):
            return NotImplemented
        return (
            self.width == other.width
            and self.height == other.height
            and self.depth_tag == other.depth_tag
            and self.channel_count == other.channel_count
            and self.pixel_data == other.pixel_data
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixels."""
        return (
            f"ImageBuffer({self.width}x{self.height}, "
            f"depth={self.depth_tag.code}, channels={self.channel_count}, "
            f"encoding={self.encoding!r})"
        )
