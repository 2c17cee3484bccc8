"""
Ingest Errors
=============

Error kinds raised by the decoder and the converter.

Every error is resolved at the frame boundary by the
FrameIngestionController: it is caught, logged and returned inside a
FrameOutcome. None of these is ever allowed to reach the transport.

Hierarchy:
    IngestError
    ├── DecodeError
    │   ├── SizeMismatch
    │   ├── UnsupportedEncoding
    │   └── UnsupportedConversion
    └── ConvertError
        ├── UnsupportedChannelLayout
        └── UnsupportedDepth
"""

from typing import Optional


class IngestError(Exception):
    """Base class for per-frame pipeline errors."""
    pass


class DecodeError(IngestError):
    """Raised when a RawFrame cannot be turned into an ImageBuffer."""
    pass


class SizeMismatch(DecodeError):
    """Packed byte length does not match encoding and dimensions."""

    def __init__(self, expected: int, actual: int, detail: Optional[str] = None) -> None:
        self.expected = expected
        self.actual = actual
        message = f"Size mismatch: expected {expected} bytes, got {actual}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class UnsupportedEncoding(DecodeError):
    """Encoding tag is not in the lookup table."""

    def __init__(self, encoding: str) -> None:
        self.encoding = encoding
        super().__init__(f"Unsupported encoding: {encoding!r}")


class UnsupportedConversion(DecodeError):
    """Both encodings are known but cannot be converted into each other."""

    def __init__(self, source: str, target: str) -> None:
        self.source = source
        self.target = target
        super().__init__(f"Unsupported conversion from {source!r} to {target!r}")


class ConvertError(IngestError):
    """Raised when a pixel semantic cannot be applied to a buffer."""
    pass


class UnsupportedChannelLayout(ConvertError):
    """Buffer channel count violates the semantic's precondition."""

    def __init__(self, channel_count: int, expected: str) -> None:
        self.channel_count = channel_count
        super().__init__(
            f"Unsupported channel layout: {channel_count} channel(s), expected {expected}"
        )


class UnsupportedDepth(ConvertError):
    """Buffer depth is not handled by the requested semantic."""

    def __init__(self, depth_code: str, semantic: str) -> None:
        self.depth_code = depth_code
        super().__init__(f"Unsupported depth {depth_code} for {semantic}")
