# backend/pinkifier/services/overlay_pipeline/utils/__init__.py
"""
Overlay Utils Module

Source validation and Pillow image primitives used by the overlay pipeline.
"""

from .image_utils import (
    composite_overlay,
    decode_image,
    encode_png,
    ensure_rgba_mode,
    resolve_dimensions,
)
from .source_validation import (
    DomainAllowList,
    SourceReference,
    validate_image_url,
    validate_source_reference,
)

__all__ = [
    "composite_overlay",
    "decode_image",
    "encode_png",
    "ensure_rgba_mode",
    "resolve_dimensions",
    "DomainAllowList",
    "SourceReference",
    "validate_image_url",
    "validate_source_reference",
]
