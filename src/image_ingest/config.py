"""
Image Ingest Configuration
==========================

This module handles configuration loading for the ingest service.

Configuration Sources (in order of precedence):
    1. Environment variables (highest priority)
    2. config.yaml file
    3. Default values (lowest priority)

Environment Variable Mapping:
    IMAGE_INGEST_STREAM_URL           -> stream.url
    IMAGE_INGEST_TOPIC                -> stream.topic
    IMAGE_INGEST_QUEUE_DEPTH          -> stream.queue_depth
    IMAGE_INGEST_RECONNECT_BACKOFF_MS -> stream.reconnect_backoff_ms
    IMAGE_INGEST_TARGET_ENCODING      -> pipeline.target_encoding
    IMAGE_INGEST_SEMANTIC             -> pipeline.semantic
    IMAGE_INGEST_PORT                 -> server.port
    IMAGE_INGEST_LOG_LEVEL            -> logging.level
    PORT                              -> server.port (Cloud Run)

Example:
    from image_ingest.config import load_config, setup_logging

    settings = load_config()
    setup_logging(settings)
    print(settings.stream.topic)
"""

import os
import logging
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from image_ingest.conversion.pixel_format import PixelSemantic
from image_ingest.stream.encodings import is_supported


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration Models
# =============================================================================

class AgentConfig(BaseModel):
    """Service identification."""

    name: str = Field(default="image-ingest", description="Service name")
    version: str = Field(default="v0.1.0", description="Service version")


class StreamConfig(BaseModel):
    """Image stream subscription."""

    url: str = Field(
        default="ws://localhost:8000/ws/frames",
        description="WebSocket URL of the image stream",
    )
    topic: str = Field(
        default="/camera/image_raw",
        description="Image topic to subscribe to",
    )
    queue_depth: int = Field(
        default=1,
        ge=1,
        description="Frames held before the oldest is dropped",
    )
    reconnect_backoff_ms: int = Field(
        default=500,
        ge=100,
        description="Backoff in milliseconds between reconnect attempts",
    )
    max_reconnect_attempts: int = Field(
        default=0,
        ge=0,
        description="Maximum reconnection attempts (0 = unlimited)",
    )


class PipelineConfig(BaseModel):
    """Per-frame processing."""

    target_encoding: Optional[str] = Field(
        default=None,
        description="Encoding frames are decoded into (None = keep source encoding)",
    )
    semantic: PixelSemantic = Field(
        default=PixelSemantic.GRAYSCALE,
        description="Pixel semantic applied to every decoded frame",
    )

    @field_validator("target_encoding")
    @classmethod
    def _check_encoding(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not is_supported(value):
            raise ValueError(f"unsupported encoding {value!r}")
        return value


class ServerConfig(BaseModel):
    """Server configuration."""

    host: str = Field(default="0.0.0.0", description="Bind host")
    port: int = Field(default=8002, ge=1, le=65535, description="Bind port")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(default="json", description="Log format: json or text")


class Settings(BaseModel):
    """
    Main settings class for the ingest service.

    Loads configuration from YAML file and environment variables.
    Environment variables take precedence over file values.
    """

    agent: AgentConfig = Field(default_factory=AgentConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    pipeline: PipelineConfig = Field(default_factory=PipelineConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


# =============================================================================
# Configuration Loading
# =============================================================================

def load_config(config_path: Optional[str] = None) -> Settings:
    """
    Load configuration from YAML file and environment variables.

    Args:
        config_path: Path to config.yaml. If None, searches common locations.

    Returns:
        Settings: Loaded configuration

    Raises:
        pydantic.ValidationError: If any value is invalid
    """
    if config_path is None:
        search_paths = [
            Path("config.yaml"),
            Path("config.yml"),
            Path("/app/config.yaml"),
            Path(__file__).parent.parent.parent / "config.yaml",
        ]
        for path in search_paths:
            if path.exists():
                config_path = str(path)
                break

    config_data = {}
    if config_path and Path(config_path).exists():
        logger.info(f"Loading config from: {config_path}")
        with open(config_path, "r") as f:
            config_data = yaml.safe_load(f) or {}
    else:
        logger.warning("No config file found, using defaults and environment variables")

    _apply_env_overrides(config_data)

    return Settings.model_validate(config_data)


def _apply_env_overrides(config_data: dict) -> None:
    """Apply environment variable overrides to config data."""

    # Stream settings
    if env_url := os.environ.get("IMAGE_INGEST_STREAM_URL"):
        config_data.setdefault("stream", {})["url"] = env_url
    if env_topic := os.environ.get("IMAGE_INGEST_TOPIC"):
        config_data.setdefault("stream", {})["topic"] = env_topic
    if env_depth := os.environ.get("IMAGE_INGEST_QUEUE_DEPTH"):
        config_data.setdefault("stream", {})["queue_depth"] = int(env_depth)
    if env_backoff := os.environ.get("IMAGE_INGEST_RECONNECT_BACKOFF_MS"):
        config_data.setdefault("stream", {})["reconnect_backoff_ms"] = int(env_backoff)

    # Pipeline settings
    if env_target := os.environ.get("IMAGE_INGEST_TARGET_ENCODING"):
        config_data.setdefault("pipeline", {})["target_encoding"] = env_target
    if env_semantic := os.environ.get("IMAGE_INGEST_SEMANTIC"):
        config_data.setdefault("pipeline", {})["semantic"] = env_semantic

    # Server settings (Cloud Run uses PORT env var)
    if env_port := os.environ.get("PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)
    elif env_port := os.environ.get("IMAGE_INGEST_PORT"):
        config_data.setdefault("server", {})["port"] = int(env_port)

    # Logging settings
    if env_log := os.environ.get("IMAGE_INGEST_LOG_LEVEL"):
        config_data.setdefault("logging", {})["level"] = env_log


def setup_logging(settings: Settings) -> None:
    """Configure logging based on settings."""
    log_level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    if settings.logging.format == "json":
        log_format = '{"time": "%(asctime)s", "level": "%(levelname)s", "module": "%(name)s", "message": "%(message)s"}'
    else:
        log_format = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    logging.basicConfig(
        level=log_level,
        format=log_format,
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
