"""
Stream Tests
============

Frame buffer, wire message parsing, consumer reconnects and the pipeline runner.
"""

import asyncio
import json
import socket

import pytest
from pydantic import ValidationError

from image_ingest.models.outcome import FrameStage
from image_ingest.pipeline import FrameIngestionController, PipelineRunner
from image_ingest.stream import FrameBuffer, FrameConsumer, RawFrame
from image_ingest.stream.message import ImageMessage


def _frame(seq: int) -> RawFrame:
    return RawFrame(encoding="mono8", width=1, height=1, data=b"\x00", seq=seq)


class TestFrameBuffer:

    def test_depth_must_be_positive(self):
        with pytest.raises(ValueError):
            FrameBuffer(depth=0)

    def test_keeps_newest_frame(self):
        """Depth 1 keeps only the latest frame."""

        async def scenario():
            buffer = FrameBuffer(depth=1)
            first = await buffer.put(_frame(1))
            second = await buffer.put(_frame(2))
            return buffer, first, second, await buffer.get(timeout=0.1)

        buffer, first, second, frame = asyncio.run(scenario())

        assert first is True
        assert second is False
        assert frame.seq == 2
        assert buffer.metrics() == {
            "size": 0,
            "depth": 1,
            "dropped_count": 1,
            "total_put": 2,
        }

    def test_preserves_arrival_order(self):
        async def scenario():
            buffer = FrameBuffer(depth=3)
            for seq in range(3):
                await buffer.put(_frame(seq))
            return [buffer.get_nowait().seq for _ in range(3)]

        assert asyncio.run(scenario()) == [0, 1, 2]

    def test_get_timeout(self):
        async def scenario():
            return await FrameBuffer().get(timeout=0.01)

        assert asyncio.run(scenario()) is None

    def test_clear(self):
        async def scenario():
            buffer = FrameBuffer(depth=2)
            await buffer.put(_frame(1))
            await buffer.put(_frame(2))
            return buffer.clear(), buffer.size

        assert asyncio.run(scenario()) == (2, 0)


class TestImageMessage:

    def test_to_raw_frame(self, sample_image_message):
        frame = ImageMessage.model_validate(sample_image_message).to_raw_frame()

        assert frame.encoding == "bgr8"
        assert (frame.width, frame.height, frame.step) == (2, 1, 6)
        assert frame.data == bytes([10, 20, 30, 255, 0, 0])
        assert frame.seq == 10

    def test_round_trip(self, bgr_frame):
        message = ImageMessage.from_raw_frame(bgr_frame, topic="/cam")
        assert message.to_raw_frame() == bgr_frame

    def test_negative_width_rejected(self, sample_image_message):
        sample_image_message["width"] = -1
        with pytest.raises(ValidationError):
            ImageMessage.model_validate(sample_image_message)

    def test_bad_base64(self, sample_image_message):
        sample_image_message["data"] = "not base64!"
        message = ImageMessage.model_validate(sample_image_message)
        with pytest.raises(ValueError):
            message.to_raw_frame()


class TestFrameConsumerParsing:

    @pytest.fixture
    def consumer(self):
        return FrameConsumer(
            url="ws://localhost:1/ws/frames",
            buffer=FrameBuffer(),
            topic="/camera/image_raw",
        )

    def test_valid_message(self, consumer, sample_image_message):
        frame = consumer.parse_message(json.dumps(sample_image_message))

        assert frame is not None
        assert frame.seq == 10
        assert consumer.metrics.last_seq == 10

    def test_bytes_message(self, consumer, sample_image_message):
        frame = consumer.parse_message(json.dumps(sample_image_message).encode())
        assert frame is not None

    def test_malformed_json(self, consumer):
        assert consumer.parse_message("{not json") is None
        assert consumer.metrics.parse_errors == 1

    def test_missing_field(self, consumer, sample_image_message):
        del sample_image_message["encoding"]
        assert consumer.parse_message(json.dumps(sample_image_message)) is None
        assert consumer.metrics.parse_errors == 1

    def test_bad_payload(self, consumer, sample_image_message):
        sample_image_message["data"] = "%%%"
        assert consumer.parse_message(json.dumps(sample_image_message)) is None
        assert consumer.metrics.parse_errors == 1

    def test_other_topic_ignored(self, consumer, sample_image_message):
        sample_image_message["topic"] = "/camera/depth"
        assert consumer.parse_message(json.dumps(sample_image_message)) is None
        assert consumer.metrics.skipped_topic == 1

    def test_bad_length_still_delivered(self, consumer, sample_image_message):
        """Length checks belong to the decoder, not the transport."""
        sample_image_message["width"] = 3
        assert consumer.parse_message(json.dumps(sample_image_message)) is not None

    def test_sequence_gap_counted(self, consumer, sample_image_message):
        consumer.parse_message(json.dumps(sample_image_message))
        sample_image_message["seq"] = 15
        consumer.parse_message(json.dumps(sample_image_message))

        assert consumer.metrics.sequence_gaps == 1
        assert consumer.metrics.to_dict()["messages_received"] == 2


class TestFrameConsumerReconnect:

    def test_gives_up_after_max_attempts(self):
        """An unreachable stream is retried once, then run() returns."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind(("127.0.0.1", 0))
            port = sock.getsockname()[1]

        consumer = FrameConsumer(
            url=f"ws://127.0.0.1:{port}/ws/frames",
            buffer=FrameBuffer(),
            reconnect_backoff_ms=100,
            max_reconnect_attempts=1,
        )
        asyncio.run(asyncio.wait_for(consumer.run(), timeout=10))

        assert consumer.metrics.reconnect_count == 1
        assert consumer.metrics.frames_delivered == 0
        assert not consumer.connected

    def test_stop_interrupts_backoff(self):
        consumer = FrameConsumer(
            url="ws://127.0.0.1:1/ws/frames",
            buffer=FrameBuffer(),
            reconnect_backoff_ms=60_000,
        )

        async def scenario():
            task = asyncio.create_task(consumer.run())
            for _ in range(200):
                if consumer.metrics.reconnect_count:
                    break
                await asyncio.sleep(0.01)
            await consumer.stop()
            await asyncio.wait_for(task, timeout=5)

        asyncio.run(scenario())
        assert consumer.metrics.reconnect_count == 1


class TestPipelineRunner:

    def test_drains_buffer_in_order(self, bgr_frame, short_frame, empty_frame):
        """Every frame is processed, failures included, and the runner stops cleanly."""

        async def scenario():
            buffer = FrameBuffer(depth=4)
            controller = FrameIngestionController()
            runner = PipelineRunner(buffer, controller, poll_timeout=0.05)

            for frame in (bgr_frame, short_frame, empty_frame, bgr_frame):
                await buffer.put(frame)

            task = asyncio.create_task(runner.run())
            for _ in range(200):
                if controller.metrics.frames_received == 4:
                    break
                await asyncio.sleep(0.01)

            runner.stop()
            await task
            return controller, runner

        controller, runner = asyncio.run(scenario())

        assert controller.metrics.frames_received == 4
        assert controller.metrics.decode_errors == 1
        assert controller.metrics.empty_frames == 1
        assert runner.last_outcome.stage == FrameStage.REPORTED
        assert not runner.running
