# backend/pinkifier/services/overlay_pipeline/overlay_pipeline.py
"""
Overlay Pipeline - end-to-end processing of one tint request.

Stages run strictly in order:
    VALIDATING -> FETCHING -> DECODING -> COMPOSITING -> ENCODING -> EMITTING

Every stage is a terminal failure point. Output is all-or-nothing: either a
complete PNG is returned or a PinkifierError is raised, never a partially
processed or unfiltered image. The pipeline keeps only immutable
configuration, so one instance can serve concurrent requests.
"""

import threading
import time
from typing import Any, Mapping, Optional, Sequence, Union

from ...config import Settings
from ...constants import (
    CACHE_CONTROL_NO_STORE,
    CACHE_CONTROL_PREVIEW_TEMPLATE,
    DEFAULT_COLOR,
    DOWNLOAD_FILENAME_PREFIX,
    PNG_MEDIA_TYPE,
)
from ...enums import (
    ColorName,
    LogEmoji,
    LoggerName,
    LogSource,
    OutputMode,
    PipelineStage,
)
from ...exceptions import InvalidRequestError, PinkifierError, RequestCancelledError
from ...models.overlay_model import OverlayPlan, OverlayRequest, ProcessedImage
from ..logger import get_service_logger
from .acquisition import AcquisitionChain, AcquisitionStrategy, build_acquisition_chain
from .overlay_engine import build_plan, parse_color_name, validate_intensity
from .utils.image_utils import (
    composite_overlay,
    decode_image,
    encode_png,
    resolve_dimensions,
)
from .utils.source_validation import (
    DomainAllowList,
    SourceReference,
    validate_source_reference,
)

logger = get_service_logger(
    LoggerName.OVERLAY_PIPELINE, LogSource.PIPELINE, LogEmoji.PROCESSING
)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def parse_flag(value: Any) -> bool:
    """Interpret a query/form boolean ("1", "true", "yes", "on")."""
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUE_VALUES


def resolve_output_mode(preview: Any = None, download: Any = None) -> OutputMode:
    """An explicit download flag wins over preview; download is the default."""
    if parse_flag(download):
        return OutputMode.ATTACHMENT_DOWNLOAD
    if parse_flag(preview):
        return OutputMode.INLINE_PREVIEW
    return OutputMode.ATTACHMENT_DOWNLOAD


def build_download_filename(
    color: ColorName, intensity: int, timestamp_ms: Optional[int] = None
) -> str:
    """pinkified-<color>-<intensity>-<millisecond timestamp>.png"""
    if timestamp_ms is None:
        timestamp_ms = int(time.time() * 1000)
    return f"{DOWNLOAD_FILENAME_PREFIX}-{color.value.lower()}-{intensity}-{timestamp_ms}.png"


def build_cache_control(output_mode: OutputMode, preview_cache_seconds: int) -> str:
    if output_mode == OutputMode.INLINE_PREVIEW:
        return CACHE_CONTROL_PREVIEW_TEMPLATE.format(seconds=preview_cache_seconds)
    return CACHE_CONTROL_NO_STORE


class OverlayPipeline:
    """
    Validate, acquire, decode, tint and encode one image per call.

    Args:
        settings: Application settings (read-only)
        strategies: Acquisition strategies in the order they are tried.
            Defaults to the chain described by settings.
    """

    def __init__(
        self,
        settings: Settings,
        strategies: Optional[Sequence[AcquisitionStrategy]] = None,
    ):
        self.settings = settings
        self.allow_list = DomainAllowList(settings.allowed_image_domains_list)
        self.acquisition = (
            AcquisitionChain(strategies)
            if strategies is not None
            else build_acquisition_chain(settings)
        )

    def build_request(self, params: Mapping[str, Any]) -> OverlayRequest:
        """
        Validate raw query/form parameters into an OverlayRequest.

        Accepts "imageUrl" or "url" for the source; "color" defaults to Pink.
        Performs no network I/O.

        Raises:
            InvalidRequestError: Missing source, bad color or bad intensity
        """
        source = params.get("imageUrl") or params.get("url")
        intensity = validate_intensity(params.get("intensity"))

        raw_color = params.get("color")
        color = (
            parse_color_name(raw_color, self.settings.color_fallback_policy)
            if raw_color not in (None, "")
            else DEFAULT_COLOR
        )

        # Source is checked last so a bad color/intensity is reported even
        # when the URL is also missing
        if source is None or not str(source).strip():
            raise InvalidRequestError("Image URL is required")

        return OverlayRequest(
            source=str(source),
            color=color,
            intensity=intensity,
            output_mode=resolve_output_mode(
                params.get("preview"), params.get("download")
            ),
        )

    def validate_source(self, source: str) -> SourceReference:
        return validate_source_reference(
            source,
            self.allow_list,
            max_inline_bytes=self.settings.max_inline_image_bytes,
            allow_bare_base64=self.settings.allow_bare_base64,
        )

    def process(
        self,
        request: Union[OverlayRequest, Mapping[str, Any]],
        cancel_event: Optional[threading.Event] = None,
    ) -> ProcessedImage:
        """
        Run the whole pipeline for one request.

        Args:
            request: A validated OverlayRequest or raw query/form parameters
            cancel_event: Set by the caller when the client disconnects

        Returns:
            ProcessedImage with the PNG bytes and response headers

        Raises:
            PinkifierError: Subclass identifying the failing stage
        """
        started = time.monotonic()
        stage = PipelineStage.VALIDATING

        try:
            if not isinstance(request, OverlayRequest):
                request = self.build_request(request)
            plan = build_plan(
                request.color, request.intensity, self.settings.color_fallback_policy
            )
            source = self.validate_source(request.source)

            stage = PipelineStage.FETCHING
            self._check_cancelled(cancel_event, stage)
            acquired = self.acquisition.acquire(source, cancel_event)

            stage = PipelineStage.DECODING
            self._check_cancelled(cancel_event, stage)
            image = decode_image(acquired.data, self.settings.max_image_pixels)
            width, height, used_fallback = resolve_dimensions(image)

            stage = PipelineStage.COMPOSITING
            self._check_cancelled(cancel_event, stage)
            result = composite_overlay(image, plan, (width, height))

            stage = PipelineStage.ENCODING
            self._check_cancelled(cancel_event, stage)
            content = encode_png(result, self.settings.png_compress_level)

            stage = PipelineStage.EMITTING
            processed = self.build_processed_image(
                content, request, plan, width, height, used_fallback
            )
        except PinkifierError as e:
            if e.stage is None:
                e.stage = stage
            logger.warning(
                f"Pipeline failed during {stage.value}: {e.message}",
                extra_context={"stage": stage.value, "error": type(e).__name__},
                emoji=LogEmoji.CANCELED
                if isinstance(e, RequestCancelledError)
                else LogEmoji.FAILED,
            )
            raise

        logger.info(
            f"Processed {plan.color.value} @ {plan.intensity} "
            f"({width}x{height}, {len(content)} bytes) in "
            f"{(time.monotonic() - started) * 1000:.0f}ms",
            extra_context={
                "source": source.description,
                "strategy": acquired.strategy,
                "output_mode": request.output_mode.value,
                "blend_mode": plan.blend_mode.value,
            },
            emoji=LogEmoji.SUCCESS,
        )
        return processed

    def build_processed_image(
        self,
        content: bytes,
        request: OverlayRequest,
        plan: OverlayPlan,
        width: int,
        height: int,
        used_fallback: bool = False,
    ) -> ProcessedImage:
        return ProcessedImage(
            content=content,
            output_mode=request.output_mode,
            filename=build_download_filename(plan.color, plan.intensity),
            cache_control=build_cache_control(
                request.output_mode, self.settings.preview_cache_seconds
            ),
            width=width,
            height=height,
            used_fallback_dimensions=used_fallback,
            media_type=PNG_MEDIA_TYPE,
        )

    @staticmethod
    def _check_cancelled(
        cancel_event: Optional[threading.Event], stage: PipelineStage
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise RequestCancelledError(
                f"Request cancelled by the client before {stage.value}", stage=stage
            )
