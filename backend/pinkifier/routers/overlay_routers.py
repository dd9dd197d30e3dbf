# backend/pinkifier/routers/overlay_routers.py
"""
Image tint HTTP endpoints.

Role: HTTP surface of the overlay pipeline
Responsibilities: Parameter collection (query, form or JSON body), output mode
                 selection, running the synchronous pipeline off the event loop,
                 cancelling work when the client disconnects
Interactions: Uses OverlayPipeline for processing and the overlay engine for
             the preview plan; errors propagate to ErrorHandlerMiddleware
"""

import asyncio
import contextlib
import threading
from typing import Any, Dict, Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Query, Request, Response
from starlette.concurrency import run_in_threadpool

from ..config import resolve_public_base_url
from ..constants import COLOR_HEX_TABLE, DEFAULT_COLOR
from ..dependencies import OverlayPipelineDep, SettingsDep
from ..enums import LogEmoji, LoggerName, LogSource
from ..exceptions import InvalidRequestError
from ..models.overlay_model import ColorTableResponse, OverlayPlanResponse
from ..services.logger import get_service_logger
from ..services.overlay_pipeline import OverlayPipeline
from ..services.overlay_pipeline.overlay_engine import (
    build_plan,
    plan_fill_hex,
    plan_to_css_rgba,
)

logger = get_service_logger(LoggerName.API, LogSource.API)

router = APIRouter(tags=["images"])

# How often an in-flight request checks whether its client went away
DISCONNECT_POLL_SECONDS = 0.5

_FORM_CONTENT_TYPES = ("application/x-www-form-urlencoded", "multipart/form-data")


async def collect_params(request: Request) -> Dict[str, Any]:
    """
    Merge query parameters with a POST body (form or JSON).

    Body values win over query values with the same name.
    """
    params: Dict[str, Any] = dict(request.query_params)
    if request.method != "POST":
        return params

    content_type = request.headers.get("content-type", "").lower()
    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise InvalidRequestError("Request body is not valid JSON")
        if not isinstance(body, dict):
            raise InvalidRequestError("Request body must be a JSON object")
        params.update({key: value for key, value in body.items() if value is not None})
    elif content_type.startswith(_FORM_CONTENT_TYPES):
        form = await request.form()
        params.update(
            {key: value for key, value in form.items() if isinstance(value, str)}
        )
    return params


async def watch_disconnect(request: Request, cancel_event: threading.Event) -> None:
    """Set cancel_event once the client disconnects."""
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.info(
                f"Client disconnected, cancelling {request.url.path}",
                emoji=LogEmoji.CANCELED,
                correlation_id=getattr(request.state, "correlation_id", None),
            )
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


async def render_image(
    request: Request,
    pipeline: OverlayPipeline,
    params: Dict[str, Any],
) -> Response:
    """Validate, then run the pipeline in the threadpool and emit the PNG."""
    # Validation is CPU-trivial and raises before any fetch is scheduled
    overlay_request = pipeline.build_request(params)

    cancel_event = threading.Event()
    watcher = asyncio.create_task(watch_disconnect(request, cancel_event))
    try:
        processed = await run_in_threadpool(
            pipeline.process, overlay_request, cancel_event
        )
    finally:
        watcher.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            try:
                await watcher
            except Exception as e:
                logger.warning(
                    f"Disconnect watcher failed for {request.url.path}: "
                    f"{type(e).__name__}: {e}",
                    correlation_id=getattr(request.state, "correlation_id", None),
                )

    return Response(
        content=processed.content,
        media_type=processed.media_type,
        headers=processed.headers,
    )


def _force_mode(params: Dict[str, Any], download: bool) -> Dict[str, Any]:
    forced = {k: v for k, v in params.items() if k not in ("preview", "download")}
    forced["download" if download else "preview"] = "true"
    return forced


@router.api_route("/process-image", methods=["GET", "POST"])
async def process_image(request: Request, pipeline: OverlayPipelineDep) -> Response:
    """
    Tint an image and return it as PNG.

    Parameters (query, form or JSON): imageUrl | url, intensity, color,
    preview, download. An explicit download flag wins over preview; the
    default is an attachment download.
    """
    params = await collect_params(request)
    return await render_image(request, pipeline, params)


@router.get("/download-image")
async def download_image(request: Request, pipeline: OverlayPipelineDep) -> Response:
    """Attachment download (legacy path)."""
    params = _force_mode(dict(request.query_params), download=True)
    return await render_image(request, pipeline, params)


@router.get("/download")
async def download(request: Request, pipeline: OverlayPipelineDep) -> Response:
    """Attachment download (legacy path)."""
    params = _force_mode(dict(request.query_params), download=True)
    return await render_image(request, pipeline, params)


@router.get("/preview-image")
async def preview_image(request: Request, pipeline: OverlayPipelineDep) -> Response:
    """Inline preview with short-lived public caching."""
    params = _force_mode(dict(request.query_params), download=False)
    return await render_image(request, pipeline, params)


@router.get("/overlay-plan", response_model=OverlayPlanResponse)
async def get_overlay_plan(
    request: Request,
    settings: SettingsDep,
    intensity: Optional[str] = Query(None, description="Integer 0-100"),
    color: Optional[str] = Query(None, description="Color name, defaults to Pink"),
    image_url: Optional[str] = Query(
        None, alias="imageUrl", description="When given, a download_url is included"
    ),
) -> OverlayPlanResponse:
    """
    Overlay plan an interactive preview should draw.

    Previews render from this plan instead of re-deriving the alpha curve,
    so the preview and the downloaded image cannot drift apart.
    """
    plan = build_plan(
        color if color else DEFAULT_COLOR, intensity, settings.color_fallback_policy
    )

    download_url = None
    if image_url:
        base_url = resolve_public_base_url(settings, str(request.base_url))
        query = urlencode(
            {"imageUrl": image_url, "intensity": plan.intensity, "color": plan.color.value}
        )
        download_url = f"{base_url}/api/download-image?{query}"

    return OverlayPlanResponse(
        color=plan.color,
        intensity=plan.intensity,
        alpha=plan.alpha,
        blend_mode=plan.blend_mode,
        fill_color=plan_fill_hex(plan),
        css_rgba=plan_to_css_rgba(plan),
        transition_factor=plan.transition_factor,
        solid_fill=plan.solid_fill,
        download_url=download_url,
    )


@router.get("/colors", response_model=ColorTableResponse)
async def get_colors() -> ColorTableResponse:
    """Available overlay colors and their hex values."""
    return ColorTableResponse(
        colors={color.value: hex_value for color, hex_value in COLOR_HEX_TABLE.items()},
        default=DEFAULT_COLOR,
    )
