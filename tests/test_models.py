"""
Model Tests
===========

ImageBuffer invariants, depth tags, encodings and outcomes.
"""

import numpy as np
import pytest

from image_ingest.models import (
    DecodeError,
    DepthTag,
    FrameOutcome,
    FrameStage,
    ImageBuffer,
    IngestError,
    SizeMismatch,
    UnsupportedChannelLayout,
    UnsupportedEncoding,
)
from image_ingest.stream.encodings import color_name, is_supported, lookup, mono_name


class TestDepthTag:

    def test_sizes(self):
        assert [tag.size for tag in DepthTag] == [1, 1, 2, 2, 4, 4, 8]

    def test_codes_round_trip(self):
        for tag in DepthTag:
            assert DepthTag.from_code(tag.code) is tag

    def test_from_dtype_ignores_byte_order(self):
        assert DepthTag.from_dtype(">u2") is DepthTag.U16
        assert DepthTag.from_dtype(np.float32) is DepthTag.F32

    def test_from_dtype_unknown(self):
        with pytest.raises(KeyError):
            DepthTag.from_dtype(np.complex64)


class TestImageBuffer:

    def test_invariant_holds(self):
        buffer = ImageBuffer.from_array(np.zeros((3, 5, 2), np.int16), "16SC2")

        assert buffer.width == 5
        assert buffer.height == 3
        assert len(buffer.pixel_data) == 5 * 3 * 2 * 2
        assert buffer.nbytes == len(buffer.pixel_data)

    def test_two_dimensional_array(self):
        buffer = ImageBuffer.from_array(np.zeros((2, 4), np.uint8), "mono8")
        assert buffer.channel_count == 1

    def test_shape_mismatch_rejected(self):
        with pytest.raises(ValueError):
            ImageBuffer(
                width=2,
                height=2,
                depth_tag=DepthTag.U8,
                channel_count=3,
                encoding="bgr8",
                pixels=np.zeros((2, 2, 1), np.uint8),
            )

    def test_dtype_mismatch_rejected(self):
        with pytest.raises(ValueError):
            ImageBuffer(
                width=1,
                height=1,
                depth_tag=DepthTag.U16,
                channel_count=1,
                encoding="mono16",
                pixels=np.zeros((1, 1, 1), np.uint8),
            )

    def test_from_array_copies(self):
        source = np.zeros((1, 1, 3), np.uint8)
        buffer = ImageBuffer.from_array(source, "bgr8")

        source[0, 0, 0] = 9
        assert buffer.pixels[0, 0, 0] == 0

    def test_constructor_leaves_caller_array_writable(self):
        source = np.zeros((1, 2, 3), np.uint8)
        buffer = ImageBuffer(
            width=2,
            height=1,
            depth_tag=DepthTag.U8,
            channel_count=3,
            encoding="bgr8",
            pixels=source,
        )

        source[0, 0, 0] = 5
        assert buffer.pixels[0, 0, 0] == 0
        assert not buffer.pixels.flags.writeable

    def test_constructor_detaches_from_view(self):
        base = np.zeros((2, 2, 3), np.uint8)
        buffer = ImageBuffer(
            width=2,
            height=1,
            depth_tag=DepthTag.U8,
            channel_count=3,
            encoding="bgr8",
            pixels=base[:1],
        )

        base[0, 1, 2] = 7
        assert buffer.pixels[0, 1, 2] == 0

    def test_equality(self):
        a = ImageBuffer.from_array(np.arange(6, dtype=np.uint8).reshape(1, 2, 3), "bgr8")
        b = ImageBuffer.from_array(np.arange(6, dtype=np.uint8).reshape(1, 2, 3), "bgr8")
        c = ImageBuffer.from_array(np.zeros((1, 2, 3), np.uint8), "bgr8")

        assert a == b
        assert a != c

    def test_repr_is_compact(self):
        buffer = ImageBuffer.from_array(np.zeros((480, 640, 3), np.uint8), "bgr8")
        assert repr(buffer) == "ImageBuffer(640x480, depth=8U, channels=3, encoding='bgr8')"


class TestEncodings:

    def test_named(self):
        info = lookup("bgr8")
        assert (info.depth_tag, info.channel_count, info.order) == (DepthTag.U8, 3, "bgr")
        assert info.bytes_per_pixel == 3
        assert info.is_color

    def test_mono(self):
        info = lookup("mono16")
        assert info.is_mono
        assert info.bytes_per_pixel == 2

    def test_generic(self):
        info = lookup("16SC4")
        assert (info.depth_tag, info.channel_count) == (DepthTag.S16, 4)
        assert info.is_generic

    def test_bare_generic_is_single_channel(self):
        assert lookup("32F").channel_count == 1

    @pytest.mark.parametrize("encoding", ["yuv422", "8UC0", "16UC513", "mono12", ""])
    def test_unsupported(self, encoding):
        assert not is_supported(encoding)
        with pytest.raises(UnsupportedEncoding):
            lookup(encoding)

    def test_names(self):
        assert mono_name(DepthTag.U8) == "mono8"
        assert mono_name(DepthTag.F32) == "32FC1"
        assert color_name("rgb", DepthTag.U16) == "rgb16"
        assert color_name("bgra", DepthTag.F64) == "64FC4"


class TestErrorsAndOutcome:

    def test_hierarchy(self):
        assert issubclass(SizeMismatch, DecodeError)
        assert issubclass(DecodeError, IngestError)
        assert not issubclass(UnsupportedChannelLayout, DecodeError)

    def test_outcome_flags(self):
        assert FrameOutcome(stage=FrameStage.REPORTED).ok
        assert FrameOutcome(stage=FrameStage.EMPTY).is_empty
        assert not FrameOutcome(stage=FrameStage.FAILED).ok

    def test_outcome_to_dict(self):
        outcome = FrameOutcome(
            stage=FrameStage.FAILED,
            failed_stage=FrameStage.DECODED,
            reason="bad",
        )
        data = outcome.to_dict()

        assert data["stage"] == "FAILED"
        assert data["failed_stage"] == "DECODED"
        assert data["reason"] == "bad"
