# backend/pinkifier/dependencies.py
"""
Dependency injection for FastAPI routers.

Settings come from the memoized get_settings() factory; tests override it
through app.dependency_overrides. The pipeline holds only read-only
configuration, so building one per request is cheap.
"""

from typing import Annotated

from fastapi import Depends

from .config import Settings, get_settings
from .services.overlay_pipeline import OverlayPipeline


def get_overlay_pipeline(
    settings: Annotated[Settings, Depends(get_settings)],
) -> OverlayPipeline:
    return OverlayPipeline(settings)


SettingsDep = Annotated[Settings, Depends(get_settings)]
OverlayPipelineDep = Annotated[OverlayPipeline, Depends(get_overlay_pipeline)]
