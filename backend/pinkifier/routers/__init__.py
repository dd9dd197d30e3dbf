from . import health_routers, overlay_routers

__all__ = [
    "health_routers",
    "overlay_routers",
]
