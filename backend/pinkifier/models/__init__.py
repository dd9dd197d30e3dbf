"""
Pinkifier Pydantic Models Package

Request, plan and response models shared by the overlay pipeline and the
HTTP layer. Import from this package for all model needs:
`from pinkifier.models import OverlayRequest`.
"""

from .overlay_model import (
    RGB,
    RGBA,
    ColorTableResponse,
    ErrorResponse,
    OverlayPlan,
    OverlayPlanResponse,
    OverlayRequest,
    ProcessedImage,
)

__all__ = [
    "RGB",
    "RGBA",
    "ColorTableResponse",
    "ErrorResponse",
    "OverlayPlan",
    "OverlayPlanResponse",
    "OverlayRequest",
    "ProcessedImage",
]
