#!/usr/bin/env python3
"""
Unit tests for the Pillow image primitives: decode, dimension resolution,
overlay compositing and PNG encoding.
"""

import io
from types import SimpleNamespace

import pytest
from PIL import Image

from pinkifier.constants import FALLBACK_IMAGE_DIMENSIONS
from pinkifier.exceptions import CompositingFailedError, DecodeFailedError
from pinkifier.services.overlay_pipeline.overlay_engine import build_plan
from pinkifier.services.overlay_pipeline.utils.image_utils import (
    composite_overlay,
    decode_image,
    encode_png,
    ensure_rgba_mode,
    resolve_dimensions,
)


def _encode(image: Image.Image, image_format: str = "PNG", **kwargs) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=image_format, **kwargs)
    return buffer.getvalue()


def _solid(color, size=(4, 4)) -> Image.Image:
    return Image.new("RGBA", size, color)


@pytest.mark.unit
class TestDecodeImage:
    def test_decodes_png_to_rgba(self, source_png, source_image):
        decoded = decode_image(source_png)

        assert decoded.mode == "RGBA"
        assert decoded.size == (8, 6)
        assert list(decoded.getdata()) == list(source_image.getdata())

    def test_decodes_jpeg(self):
        decoded = decode_image(_encode(Image.new("RGB", (10, 7), "red"), "JPEG"))

        assert decoded.mode == "RGBA"
        assert decoded.size == (10, 7)

    def test_animated_gif_uses_first_frame(self):
        first = Image.new("RGB", (5, 5), (255, 0, 0))
        second = Image.new("RGB", (5, 5), (0, 0, 255))
        data = _encode(first, "GIF", save_all=True, append_images=[second])

        decoded = decode_image(data)

        assert decoded.size == (5, 5)
        assert decoded.getpixel((2, 2)) == (255, 0, 0, 255)

    def test_sixteen_bit_grayscale(self):
        data = _encode(Image.new("I;16", (3, 3), 65535))

        decoded = decode_image(data)

        assert decoded.mode == "RGBA"
        assert decoded.getpixel((1, 1)) == (255, 255, 255, 255)

    @pytest.mark.parametrize("data", [b"", b"definitely not an image", b"GIF89a"])
    def test_rejects_garbage(self, data):
        with pytest.raises(DecodeFailedError):
            decode_image(data)

    def test_rejects_truncated_png(self, source_png):
        with pytest.raises(DecodeFailedError):
            decode_image(source_png[: len(source_png) // 2])

    def test_pixel_limit(self):
        data = _encode(Image.new("RGB", (100, 100)))

        with pytest.raises(DecodeFailedError) as exc_info:
            decode_image(data, max_pixels=1000)

        assert "too large" in exc_info.value.message


@pytest.mark.unit
class TestResolveDimensions:
    def test_uses_decoded_size(self, source_image):
        assert resolve_dimensions(source_image) == (8, 6, False)

    @pytest.mark.parametrize("size", [(0, 0), (0, 10), None])
    def test_falls_back_when_inconclusive(self, size):
        width, height, used_fallback = resolve_dimensions(SimpleNamespace(size=size))

        assert (width, height) == FALLBACK_IMAGE_DIMENSIONS
        assert used_fallback is True


@pytest.mark.unit
@pytest.mark.overlay
class TestCompositeOverlay:
    """Compositing math for each plan shape."""

    def test_solid_fill_replaces_every_pixel(self, source_image):
        result = composite_overlay(source_image, build_plan("Blue", 100), (8, 6))

        assert result.size == (8, 6)
        assert result.getextrema() == ((0, 0), (0, 0), (255, 255), (255, 255))

    def test_zero_alpha_is_identity(self, source_image):
        result = composite_overlay(source_image, build_plan("Pink", 0), (8, 6))

        assert list(result.getdata()) == list(source_image.getdata())
        assert result is not source_image

    def test_normal_blend(self):
        plan = build_plan("Pink", 75)
        alpha = plan.alpha_byte / 255
        backdrop = (100, 100, 100)

        result = composite_overlay(_solid(backdrop + (255,)), plan, (4, 4))

        expected = [b * (1 - alpha) + s * alpha for b, s in zip(backdrop, plan.rgb)]
        actual = result.getpixel((1, 1))
        assert actual[3] == 255
        for channel, value in zip(actual[:3], expected):
            assert abs(channel - value) <= 2

    def test_multiply_blend(self):
        plan = build_plan("Pink", 30)
        alpha = plan.alpha_byte / 255
        backdrop = (200, 100, 50)

        result = composite_overlay(_solid(backdrop + (255,)), plan, (4, 4))

        multiplied = [b * s / 255 for b, s in zip(backdrop, plan.rgb)]
        expected = [b * (1 - alpha) + m * alpha for b, m in zip(backdrop, multiplied)]
        actual = result.getpixel((0, 0))
        for channel, value in zip(actual[:3], expected):
            assert abs(channel - value) <= 2

    def test_multiply_over_transparent_backdrop_uses_overlay_color(self):
        plan = build_plan("Pink", 40)

        result = composite_overlay(_solid((0, 0, 0, 0)), plan, (4, 4))

        r, g, b, a = result.getpixel((2, 2))
        assert abs(a - plan.alpha_byte) <= 1
        for channel, value in zip((r, g, b), plan.rgb):
            assert abs(channel - value) <= 2

    def test_overlay_covers_fallback_canvas(self):
        result = composite_overlay(_solid((0, 0, 0, 255)), build_plan("Red", 60), (6, 5))

        assert result.size == (6, 5)
        # Padded area is still tinted
        assert result.getpixel((5, 4))[0] > 0

    def test_failure_is_wrapped(self):
        with pytest.raises(CompositingFailedError):
            composite_overlay(object(), build_plan("Red", 60), (4, 4))


@pytest.mark.unit
class TestEncodePng:
    def test_png_is_lossless(self, source_image):
        data = encode_png(source_image)

        assert data.startswith(b"\x89PNG\r\n\x1a\n")
        with Image.open(io.BytesIO(data)) as reopened:
            assert list(reopened.convert("RGBA").getdata()) == list(
                source_image.getdata()
            )

    def test_compress_level_does_not_change_pixels(self, source_image):
        fast = decode_image(encode_png(source_image, compress_level=0))
        small = decode_image(encode_png(source_image, compress_level=9))

        assert list(fast.getdata()) == list(small.getdata())


@pytest.mark.unit
def test_ensure_rgba_mode_keeps_rgba_instance(source_image):
    assert ensure_rgba_mode(source_image) is source_image
    assert ensure_rgba_mode(Image.new("L", (2, 2), 9)).getpixel((0, 0)) == (9, 9, 9, 255)
