# backend/pinkifier/services/overlay_pipeline/__init__.py
"""
Overlay Pipeline Module

Pure overlay compute engine plus the validate/fetch/decode/composite/encode
pipeline that applies it to a source image.
"""

from .acquisition import (
    AcquisitionChain,
    AcquisitionStrategy,
    AcquiredImage,
    InlineDataStrategy,
    PlaceholderStrategy,
    ProxyFetchStrategy,
    RemoteFetchStrategy,
    build_acquisition_chain,
)
from .overlay_engine import (
    build_plan,
    compute_alpha,
    compute_transition_factor,
    plan_to_css_rgba,
    resolve_color,
    select_blend_mode,
    validate_intensity,
)
from .overlay_pipeline import OverlayPipeline, resolve_output_mode

__all__ = [
    "OverlayPipeline",
    "resolve_output_mode",
    "AcquisitionChain",
    "AcquisitionStrategy",
    "AcquiredImage",
    "InlineDataStrategy",
    "RemoteFetchStrategy",
    "ProxyFetchStrategy",
    "PlaceholderStrategy",
    "build_acquisition_chain",
    "build_plan",
    "compute_alpha",
    "compute_transition_factor",
    "plan_to_css_rgba",
    "resolve_color",
    "select_blend_mode",
    "validate_intensity",
]
