"""
Image Ingest
============

Single-subscriber image ingestion pipeline.

This package subscribes to one image stream, decodes each frame into a
typed buffer, logs its dimensions and type, and converts it (colour to
grayscale by default). A malformed frame is logged and dropped; it never
stops the stream.

Components:
    - stream: RawFrame, encodings, decoder, WebSocket subscription
    - models: ImageBuffer, DepthTag, outcomes and errors
    - conversion: Pixel semantics (grayscale, channel swap, downsample)
    - observability: Type descriptors ("8UC3")
    - pipeline: FrameIngestionController and its async runner

Example:
    from image_ingest.pipeline import FrameIngestionController
    from image_ingest.stream import RawFrame

    controller = FrameIngestionController()
    outcome = controller.process(
        RawFrame(encoding="bgr8", width=2, height=1, data=bytes(6))
    )
    print(outcome.stage, outcome.type_descriptor)
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
