# backend/pinkifier/routers/health_routers.py
"""
Liveness endpoint.

The service has no downstream dependencies to probe, so health is simply
"the process is serving requests".
"""

from typing import Any, Dict

from fastapi import APIRouter

from ..constants import APP_TITLE, APP_VERSION

router = APIRouter(tags=["health"])


@router.get("/health", response_model=Dict[str, Any])
async def health_check() -> Dict[str, Any]:
    """Quick health check endpoint for load balancers and monitoring."""
    return {"status": "healthy", "service": APP_TITLE, "version": APP_VERSION}
