#!/usr/bin/env python3
# backend/tests/conftest.py
"""
Pytest configuration and shared fixtures for Pinkifier tests.
"""

import base64
import io
from typing import Callable, Dict, Optional, Tuple

import pytest
from PIL import Image
from requests.models import Response

from pinkifier.config import Settings, get_settings


# Custom pytest markers for organizing tests
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line("markers", "unit: marks tests as unit tests (no network)")
    config.addinivalue_line(
        "markers", "integration: marks tests that exercise the HTTP API end to end"
    )
    config.addinivalue_line(
        "markers", "overlay: marks tests for overlay math and compositing"
    )


def encode_image(image: Image.Image, image_format: str = "PNG", **save_kwargs) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=image_format, **save_kwargs)
    return buffer.getvalue()


def make_gradient_image(size: Tuple[int, int] = (8, 6)) -> Image.Image:
    """Opaque RGBA image where every pixel differs."""
    width, height = size
    image = Image.new("RGBA", size)
    image.putdata(
        [
            (x * 255 // max(width - 1, 1), y * 255 // max(height - 1, 1), 128, 255)
            for y in range(height)
            for x in range(width)
        ]
    )
    return image


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Every test starts from a fresh settings factory."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    """Factory for settings isolated from any local .env file."""

    def _make(**overrides) -> Settings:
        values = {"environment": "test"}
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def settings(make_settings) -> Settings:
    return make_settings()


@pytest.fixture
def source_image() -> Image.Image:
    return make_gradient_image((8, 6))


@pytest.fixture
def source_png(source_image) -> bytes:
    return encode_image(source_image)


@pytest.fixture
def source_data_uri(source_png) -> str:
    return "data:image/png;base64," + base64.b64encode(source_png).decode("ascii")


@pytest.fixture
def upstream_response() -> Callable[..., Response]:
    """
    Factory for real requests.Response objects as returned by requests.get.

    The body is pre-loaded so iter_content() and close() behave as on a
    streamed response without any socket.
    """

    def _make(
        status_code: int = 200,
        content: bytes = b"",
        headers: Optional[Dict[str, str]] = None,
    ) -> Response:
        response = Response()
        response.status_code = status_code
        response._content = content
        response._content_consumed = True
        response.headers.update(headers or {"Content-Type": "image/png"})
        return response

    return _make
