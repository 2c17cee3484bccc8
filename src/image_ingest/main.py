"""
Image Ingest Main Application
=============================

FastAPI entry point for the image ingest service.

Startup wires one explicit pipeline instance:
    FrameConsumer -> FrameBuffer -> PipelineRunner -> FrameIngestionController

Endpoints:
    GET  /         - Service information
    GET  /health   - Liveness probe (is process alive?)
    GET  /ready    - Readiness probe (stream connected + pipeline running?)
    GET  /metrics  - Transport and pipeline counters
    GET  /outcome  - Outcome of the most recent frame
"""

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from image_ingest.config import Settings, load_config, setup_logging
from image_ingest.pipeline import FrameIngestionController, PipelineRunner
from image_ingest.stream import FrameBuffer, FrameConsumer


logger = logging.getLogger(__name__)


@dataclass
class IngestService:
    """Everything one running pipeline owns."""

    settings: Settings
    buffer: FrameBuffer
    consumer: FrameConsumer
    controller: FrameIngestionController
    runner: PipelineRunner
    started_at: float

    @classmethod
    def build(cls, settings: Settings) -> "IngestService":
        buffer = FrameBuffer(depth=settings.stream.queue_depth)
        consumer = FrameConsumer(
            url=settings.stream.url,
            buffer=buffer,
            topic=settings.stream.topic,
            reconnect_backoff_ms=settings.stream.reconnect_backoff_ms,
            max_reconnect_attempts=settings.stream.max_reconnect_attempts,
        )
        controller = FrameIngestionController(
            target_encoding=settings.pipeline.target_encoding,
            semantic=settings.pipeline.semantic,
        )
        return cls(
            settings=settings,
            buffer=buffer,
            consumer=consumer,
            controller=controller,
            runner=PipelineRunner(buffer, controller),
            started_at=time.time(),
        )


async def _cancel(task: Optional[asyncio.Task]) -> None:
    if task is None or task.done():
        return
    task.cancel()
    try:
        await task
    except asyncio.CancelledError:
        pass


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration. Loaded from file/env when None.
    """
    if settings is None:
        settings = load_config()
        setup_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        service = IngestService.build(settings)
        app.state.service = service

        logger.info(f"Starting {settings.agent.name} {settings.agent.version}")
        logger.info(f"Subscribing to {settings.stream.topic} at {settings.stream.url}")

        consumer_task = asyncio.create_task(service.consumer.run(), name="frame_consumer")
        runner_task = asyncio.create_task(service.runner.run(), name="frame_processing")

        yield

        logger.info("Shutting down gracefully...")
        service.runner.stop()
        await _cancel(runner_task)

        await service.consumer.stop()
        try:
            await asyncio.wait_for(consumer_task, timeout=5.0)
        except asyncio.TimeoutError:
            await _cancel(consumer_task)

        logger.info("Shutdown complete")

    app = FastAPI(
        title="ImageIngest",
        description="Single-subscriber image ingestion pipeline",
        version=settings.agent.version,
        lifespan=lifespan,
    )

    @app.get("/")
    async def root() -> JSONResponse:
        """Service information endpoint."""
        return JSONResponse({
            "service": settings.agent.name,
            "version": settings.agent.version,
            "topic": settings.stream.topic,
            "target_encoding": settings.pipeline.target_encoding,
            "semantic": settings.pipeline.semantic.value,
        })

    @app.get("/health")
    async def health(request: Request) -> JSONResponse:
        """Liveness probe. Always 200 while the process is up."""
        service: IngestService = request.app.state.service
        return JSONResponse({
            "status": "healthy",
            "uptime_seconds": round(time.time() - service.started_at, 1),
        })

    @app.get("/ready")
    async def ready(request: Request) -> JSONResponse:
        """Readiness probe. 503 until the stream is connected and the runner is up."""
        service: IngestService = request.app.state.service
        body = {
            "stream_connected": service.consumer.connected,
            "pipeline_running": service.runner.running,
        }
        if service.consumer.connected and service.runner.running:
            return JSONResponse({"status": "ready", **body})
        return JSONResponse({"status": "not_ready", **body}, status_code=503)

    @app.get("/metrics")
    async def metrics(request: Request) -> JSONResponse:
        """Transport and pipeline counters."""
        service: IngestService = request.app.state.service
        return JSONResponse({
            "uptime_seconds": round(time.time() - service.started_at, 1),
            "stream": service.consumer.metrics.to_dict(),
            "buffer": service.buffer.metrics(),
            "pipeline": service.controller.metrics.to_dict(),
        })

    @app.get("/outcome")
    async def outcome(request: Request) -> JSONResponse:
        """Outcome of the most recent frame."""
        service: IngestService = request.app.state.service
        last = service.runner.last_outcome
        if last is None:
            return JSONResponse({"error": "No frame processed yet"}, status_code=503)
        return JSONResponse(last.to_dict())

    return app


if __name__ == "__main__":
    import uvicorn

    settings = load_config()
    setup_logging(settings)

    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        reload=False,
    )
