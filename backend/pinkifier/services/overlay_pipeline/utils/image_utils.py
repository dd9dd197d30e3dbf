# backend/pinkifier/services/overlay_pipeline/utils/image_utils.py
"""
Image Utilities - decode, composite and encode primitives for the tint pipeline.

Compositing follows the same rules a 2D canvas uses for the interactive
preview: the source image is the backdrop, a flat color layer the size of
the source is drawn on top with the plan's alpha and blend mode.
"""

import io
from typing import Tuple

from PIL import Image as PILImage
from PIL import ImageChops, UnidentifiedImageError

from ....constants import (
    FALLBACK_IMAGE_DIMENSIONS,
    MAX_IMAGE_PIXELS,
    PNG_COMPRESS_LEVEL,
)
from ....enums import BlendMode, LogEmoji, LoggerName, LogSource
from ....exceptions import CompositingFailedError, DecodeFailedError, EncodeFailedError
from ....models.overlay_model import OverlayPlan
from ...logger import get_service_logger

logger = get_service_logger(LoggerName.OVERLAY_PIPELINE, LogSource.PIPELINE)

# Modes Pillow cannot convert straight to RGBA without losing the image
_HIGH_BIT_DEPTH_MODES = {"I", "I;16", "I;16B", "I;16L", "I;16N", "F"}


def ensure_rgba_mode(image: PILImage.Image) -> PILImage.Image:
    """
    Ensure image is in RGBA mode for proper transparency handling.

    Args:
        image: PIL Image in any mode

    Returns:
        PIL Image in RGBA mode
    """
    if image.mode == "RGBA":
        return image

    if image.mode in _HIGH_BIT_DEPTH_MODES:
        # Scale 16/32-bit samples down to 8 bits before color conversion
        if image.mode != "F":
            image = image.convert("I")
        _, high = image.getextrema()
        scale = 255.0 / high if high and high > 255 else 1.0
        image = image.point(lambda value: value * scale).convert("L")

    return image.convert("RGBA")


def decode_image(data: bytes, max_pixels: int = MAX_IMAGE_PIXELS) -> PILImage.Image:
    """
    Decode raw bytes into an RGBA raster.

    Multi-frame formats are reduced to their first frame.

    Raises:
        DecodeFailedError: Empty, unrecognized, corrupt or oversized image
    """
    if not data:
        raise DecodeFailedError("Image data is empty")

    try:
        image = PILImage.open(io.BytesIO(data))
        width, height = image.size
        if width * height > max_pixels:
            raise DecodeFailedError(
                f"Image is too large ({width}x{height} exceeds {max_pixels} pixels)"
            )

        if getattr(image, "n_frames", 1) > 1:
            logger.debug(
                f"Multi-frame {image.format} image, using first frame only",
                emoji=LogEmoji.IMAGE,
            )
            image.seek(0)

        image.load()
        source_format = image.format
        decoded = ensure_rgba_mode(image)
    except DecodeFailedError:
        raise
    except UnidentifiedImageError:
        raise DecodeFailedError("Unsupported or unrecognized image format")
    except PILImage.DecompressionBombError as e:
        raise DecodeFailedError(f"Image is too large: {e}")
    except (OSError, SyntaxError, ValueError) as e:
        raise DecodeFailedError(f"Corrupt image data: {e}")

    logger.debug(
        f"Decoded {source_format} image: {decoded.size[0]}x{decoded.size[1]}",
        emoji=LogEmoji.IMAGE,
    )
    return decoded


def resolve_dimensions(image: PILImage.Image) -> Tuple[int, int, bool]:
    """
    Determine the canvas size the overlay must cover.

    Returns:
        (width, height, used_fallback). The fallback size is only used when
        the decoded metadata is inconclusive.
    """
    width, height = getattr(image, "size", (0, 0)) or (0, 0)
    if width and height and width > 0 and height > 0:
        return int(width), int(height), False

    fallback_width, fallback_height = FALLBACK_IMAGE_DIMENSIONS
    logger.warning(
        f"Image dimensions inconclusive ({width}x{height}), "
        f"using fallback {fallback_width}x{fallback_height}",
        extra_context={"reported_width": width, "reported_height": height},
        emoji=LogEmoji.FALLBACK,
    )
    return fallback_width, fallback_height, True


def create_overlay_layer(
    size: Tuple[int, int], plan: OverlayPlan, backdrop: PILImage.Image
) -> PILImage.Image:
    """
    Build the full-canvas RGBA layer drawn over the backdrop.

    For multiply the layer color is the separable blend result
    (1 - a_b) * C_s + a_b * (C_b * C_s), so compositing it with
    source-over reproduces canvas "multiply" semantics.
    """
    layer_rgb = PILImage.new("RGB", size, plan.rgb)

    if plan.blend_mode == BlendMode.MULTIPLY:
        backdrop_rgb = backdrop.convert("RGB")
        multiplied = ImageChops.multiply(backdrop_rgb, layer_rgb)
        layer_rgb = PILImage.composite(multiplied, layer_rgb, backdrop.getchannel("A"))

    layer = layer_rgb.convert("RGBA")
    layer.putalpha(plan.alpha_byte)
    return layer


def composite_overlay(
    image: PILImage.Image, plan: OverlayPlan, size: Tuple[int, int]
) -> PILImage.Image:
    """
    Composite the overlay described by plan over image.

    Args:
        image: Decoded RGBA source (the base layer)
        plan: Overlay plan from the compute engine
        size: Resolved canvas size; the overlay always covers exactly this

    Returns:
        New RGBA image

    Raises:
        CompositingFailedError: Any failure while building or blending layers
    """
    try:
        base = ensure_rgba_mode(image)
        if base.size != size:
            # Only reachable on the fallback-dimension path
            canvas = PILImage.new("RGBA", size, (0, 0, 0, 0))
            canvas.paste(base, (0, 0))
            base = canvas

        if plan.solid_fill:
            return PILImage.new("RGBA", size, (*plan.rgb, 255))

        if plan.alpha_byte == 0:
            return base.copy()

        layer = create_overlay_layer(size, plan, base)
        return PILImage.alpha_composite(base, layer)
    except CompositingFailedError:
        raise
    except Exception as e:
        raise CompositingFailedError(f"Failed to apply overlay: {e}") from e


def encode_png(
    image: PILImage.Image, compress_level: int = PNG_COMPRESS_LEVEL
) -> bytes:
    """
    Serialize image as PNG. PNG is lossless, so decoding the result yields
    the same pixel values.

    Raises:
        EncodeFailedError: Pillow failed to write the PNG
    """
    buffer = io.BytesIO()
    try:
        image.save(buffer, format="PNG", compress_level=compress_level)
    except (OSError, ValueError, KeyError) as e:
        raise EncodeFailedError(f"Failed to encode PNG: {e}") from e
    return buffer.getvalue()
