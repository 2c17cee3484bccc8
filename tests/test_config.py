"""
Configuration Tests
===================
"""

import socket

import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError

from image_ingest.config import Settings, load_config
from image_ingest.conversion import PixelSemantic
from image_ingest.main import IngestService, create_app
from image_ingest.models.outcome import FrameStage


_ENV_VARS = [
    "IMAGE_INGEST_STREAM_URL",
    "IMAGE_INGEST_TOPIC",
    "IMAGE_INGEST_QUEUE_DEPTH",
    "IMAGE_INGEST_RECONNECT_BACKOFF_MS",
    "IMAGE_INGEST_TARGET_ENCODING",
    "IMAGE_INGEST_SEMANTIC",
    "IMAGE_INGEST_PORT",
    "IMAGE_INGEST_LOG_LEVEL",
    "PORT",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestLoadConfig:

    def test_defaults(self, tmp_path):
        settings = load_config(str(tmp_path / "missing.yaml"))

        assert settings.stream.topic == "/camera/image_raw"
        assert settings.stream.queue_depth == 1
        assert settings.pipeline.target_encoding is None
        assert settings.pipeline.semantic == PixelSemantic.GRAYSCALE

    def test_yaml_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "stream:\n"
            "  topic: /front/image\n"
            "  queue_depth: 3\n"
            "pipeline:\n"
            "  target_encoding: bgr8\n"
            "  semantic: downsample\n"
        )
        settings = load_config(str(path))

        assert settings.stream.topic == "/front/image"
        assert settings.stream.queue_depth == 3
        assert settings.pipeline.target_encoding == "bgr8"
        assert settings.pipeline.semantic == PixelSemantic.DOWNSAMPLE

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("stream:\n  topic: /front/image\n")
        monkeypatch.setenv("IMAGE_INGEST_TOPIC", "/rear/image")
        monkeypatch.setenv("IMAGE_INGEST_SEMANTIC", "channel_swap")
        monkeypatch.setenv("PORT", "9000")

        settings = load_config(str(path))

        assert settings.stream.topic == "/rear/image"
        assert settings.pipeline.semantic == PixelSemantic.CHANNEL_SWAP
        assert settings.server.port == 9000

    def test_invalid_target_encoding(self, tmp_path, monkeypatch):
        monkeypatch.setenv("IMAGE_INGEST_TARGET_ENCODING", "hsv8")
        with pytest.raises(ValidationError):
            load_config(str(tmp_path / "missing.yaml"))

    def test_invalid_queue_depth(self):
        with pytest.raises(ValidationError):
            Settings.model_validate({"stream": {"queue_depth": 0}})


class TestService:

    def test_build_wires_settings(self):
        settings = Settings.model_validate(
            {"stream": {"queue_depth": 2}, "pipeline": {"target_encoding": "rgb8"}}
        )
        service = IngestService.build(settings)

        assert service.buffer.depth == 2
        assert service.consumer.topic == "/camera/image_raw"
        assert service.controller.target_encoding == "rgb8"
        assert service.runner.controller is service.controller

    def test_create_app_routes(self):
        app = create_app(Settings())
        paths = {route.path for route in app.routes}

        assert {"/", "/health", "/ready", "/metrics", "/outcome"} <= paths


def _unused_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


@pytest.fixture
def offline_settings():
    """Settings pointing at a stream nobody serves."""
    return Settings.model_validate({
        "stream": {
            "url": f"ws://127.0.0.1:{_unused_port()}/ws/frames",
            "reconnect_backoff_ms": 100,
            "max_reconnect_attempts": 1,
        },
    })


class TestEndpoints:
    """Routes served while the lifespan is running."""

    def test_ready_is_503_while_disconnected(self, offline_settings):
        with TestClient(create_app(offline_settings)) as client:
            response = client.get("/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "not_ready"
        assert data["stream_connected"] is False

    def test_health_is_always_ok(self, offline_settings):
        with TestClient(create_app(offline_settings)) as client:
            response = client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_outcome_before_and_after_first_frame(self, offline_settings, bgr_frame):
        app = create_app(offline_settings)
        with TestClient(app) as client:
            before = client.get("/outcome")

            service = app.state.service
            service.runner.last_outcome = service.controller.process(bgr_frame)
            after = client.get("/outcome")

        assert before.status_code == 503
        assert after.status_code == 200
        assert after.json() == service.runner.last_outcome.to_dict()
        assert after.json()["stage"] == FrameStage.REPORTED.value

    def test_metrics_sections(self, offline_settings):
        with TestClient(create_app(offline_settings)) as client:
            data = client.get("/metrics").json()

        assert {"stream", "buffer", "pipeline"} <= data.keys()
        assert data["buffer"]["depth"] == 1
