"""
Services module for Pinkifier.

Available Services:
- Logger: loguru-backed structured logging (in logger/)
- OverlayPipeline: image tint pipeline and overlay compute engine (in overlay_pipeline/)
"""
