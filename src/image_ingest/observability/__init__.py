"""
Observability Module
====================

Diagnostic projections of pipeline data.

Components:
    - format_type: (depth, channels) -> "8UC3" style descriptor
    - format_cv_type: Packed OpenCV type value -> descriptor
    - describe: Descriptor of an ImageBuffer
"""

from image_ingest.observability.type_descriptor import (
    format_type,
    format_cv_type,
    describe,
)

__all__ = [
    "format_type",
    "format_cv_type",
    "describe",
]
