# backend/pinkifier/models/overlay_model.py
"""
Overlay system models - request, plan and result types for the tint pipeline.

This module provides type-safe interfaces for:
- The validated processing request (Pydantic)
- The per-request overlay plan (immutable dataclass)
- The processed PNG result handed to the HTTP layer
- API response models for the preview helpers and errors
"""

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..constants import INTENSITY_MAX, INTENSITY_MIN
from ..enums import BlendMode, ColorName, OutputMode

RGB = Tuple[int, int, int]
RGBA = Tuple[int, int, int, int]


class OverlayRequest(BaseModel):
    """A fully validated request to tint one image."""

    source: str = Field(
        ..., min_length=1, description="Absolute image URL or inline base64 image data"
    )
    color: ColorName = Field(ColorName.PINK, description="Overlay color name")
    intensity: int = Field(
        ..., ge=INTENSITY_MIN, le=INTENSITY_MAX, description="Overlay strength 0-100"
    )
    output_mode: OutputMode = Field(
        OutputMode.ATTACHMENT_DOWNLOAD, description="Inline preview or download"
    )

    model_config = ConfigDict(frozen=True, use_enum_values=False)


@dataclass(frozen=True)
class OverlayPlan:
    """
    Overlay parameters derived from color and intensity.

    Created fresh for each request and consumed by the compositing step.
    """

    color: ColorName
    intensity: int
    alpha: float
    blend_mode: BlendMode
    fill_color: RGBA
    transition_factor: float
    # Intensity 100: replace every pixel with the flat color
    solid_fill: bool

    @property
    def rgb(self) -> RGB:
        return self.fill_color[:3]

    @property
    def alpha_byte(self) -> int:
        """Alpha quantized to the 0-255 range used by 8-bit rasters."""
        return int(round(self.alpha * 255))


@dataclass
class ProcessedImage:
    """Encoded result of the pipeline plus its response policy."""

    content: bytes
    output_mode: OutputMode
    filename: str
    cache_control: str
    width: int
    height: int
    used_fallback_dimensions: bool = False
    media_type: str = "image/png"

    @property
    def content_disposition(self) -> Optional[str]:
        """Header value for downloads, None for inline previews."""
        if self.output_mode == OutputMode.ATTACHMENT_DOWNLOAD:
            return f'attachment; filename="{self.filename}"'
        return None

    @property
    def headers(self) -> Dict[str, str]:
        headers = {"Cache-Control": self.cache_control}
        if self.content_disposition:
            headers["Content-Disposition"] = self.content_disposition
        return headers


class OverlayPlanResponse(BaseModel):
    """Overlay plan as consumed by an interactive preview."""

    color: ColorName
    intensity: int
    alpha: float = Field(..., ge=0.0, le=1.0)
    blend_mode: BlendMode
    fill_color: str = Field(..., description="Hex color of the overlay layer")
    css_rgba: str = Field(..., description="rgba() fill a canvas preview should use")
    transition_factor: float
    solid_fill: bool
    download_url: Optional[str] = Field(
        None, description="Server-rendered download for the same parameters"
    )


class ColorTableResponse(BaseModel):
    """Available overlay colors."""

    colors: Dict[str, str]
    default: ColorName


class ErrorResponse(BaseModel):
    """Structured error payload returned by every failing request."""

    error: str
    details: str
    correlation_id: Optional[str] = None
