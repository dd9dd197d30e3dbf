# backend/pinkifier/services/overlay_pipeline/overlay_engine.py
"""
Overlay Compute Engine - deterministic color/intensity to overlay plan mapping.

Pure functions only: no network, file or clock access. This is the single
source of truth for the alpha curve and blend-mode decision; interactive
previews consume it through the /api/overlay-plan endpoint instead of
re-deriving it.

Curve:
    base  = (intensity / 100) ** 0.7
    t     = clamp((intensity - 50) / 50, 0, 1)
    alpha = base * (1 - t) + t

Blend mode is multiply while t == 0 and normal (source-over) once t > 0.
Intensity 100 is a solid, fully opaque fill.
"""

import re
from typing import Any, Union

from ...constants import (
    ALPHA_CURVE_EXPONENT,
    COLOR_HEX_TABLE,
    DEFAULT_COLOR,
    INTENSITY_MAX,
    INTENSITY_MIN,
    TRANSITION_START_INTENSITY,
)
from ...enums import (
    BlendMode,
    ColorFallbackPolicy,
    ColorName,
    LogEmoji,
    LoggerName,
    LogSource,
)
from ...exceptions import InvalidColorError, InvalidIntensityError
from ...models.overlay_model import RGB, OverlayPlan
from ..logger import get_service_logger

logger = get_service_logger(LoggerName.OVERLAY_ENGINE, LogSource.PIPELINE)

_INTEGER_RE = re.compile(r"[+-]?[0-9]+", re.ASCII)


def hex_to_rgb(hex_color: str) -> RGB:
    """Convert "#RRGGBB" to an (r, g, b) tuple."""
    value = hex_color.lstrip("#")
    if len(value) != 6:
        raise ValueError(f"Expected #RRGGBB color, got '{hex_color}'")
    return (int(value[0:2], 16), int(value[2:4], 16), int(value[4:6], 16))


def parse_color_name(
    name: Union[str, ColorName, None],
    policy: ColorFallbackPolicy = ColorFallbackPolicy.STRICT,
) -> ColorName:
    """
    Map a requested color name onto the color table.

    Args:
        name: Case-sensitive canonical name (e.g. "Pink")
        policy: STRICT rejects unknown names, DEFAULT falls back to Pink

    Raises:
        InvalidColorError: Unknown name under the STRICT policy
    """
    if isinstance(name, ColorName):
        return name

    try:
        return ColorName(name)
    except ValueError:
        pass

    if policy == ColorFallbackPolicy.DEFAULT:
        logger.warning(
            f"Unknown color '{name}', falling back to {DEFAULT_COLOR.value}",
            extra_context={"requested_color": name},
            emoji=LogEmoji.COLOR,
        )
        return DEFAULT_COLOR

    allowed = ", ".join(color.value for color in ColorName)
    raise InvalidColorError(f"Unknown color '{name}'. Must be one of: {allowed}")


def resolve_color(
    name: Union[str, ColorName, None],
    policy: ColorFallbackPolicy = ColorFallbackPolicy.STRICT,
) -> RGB:
    """Look up the canonical RGB triple for a color name."""
    return hex_to_rgb(COLOR_HEX_TABLE[parse_color_name(name, policy)])


def validate_intensity(value: Any) -> int:
    """
    Validate a user-supplied intensity.

    Accepts ints and base-10 integer strings (surrounding whitespace is
    ignored). Non-integers are rejected rather than truncated.

    Raises:
        InvalidIntensityError: Missing, non-integer or outside 0-100
    """
    if value is None:
        raise InvalidIntensityError("Intensity is required (integer 0-100)")

    # bool is an int subclass; True must not become intensity 1
    if isinstance(value, bool):
        raise InvalidIntensityError(f"Intensity must be an integer, got {value!r}")

    if isinstance(value, int):
        intensity = value
    elif isinstance(value, str):
        text = value.strip()
        if not _INTEGER_RE.fullmatch(text):
            raise InvalidIntensityError(
                f"Intensity must be an integer 0-100, got '{value}'"
            )
        intensity = int(text)
    else:
        raise InvalidIntensityError(f"Intensity must be an integer, got {value!r}")

    if intensity < INTENSITY_MIN or intensity > INTENSITY_MAX:
        raise InvalidIntensityError(
            f"Intensity must be between {INTENSITY_MIN} and {INTENSITY_MAX}, got {intensity}"
        )
    return intensity


def compute_transition_factor(intensity: int) -> float:
    """How far intensity has ramped from the transition start toward 100."""
    span = INTENSITY_MAX - TRANSITION_START_INTENSITY
    factor = (intensity - TRANSITION_START_INTENSITY) / span
    return min(max(factor, 0.0), 1.0)


def compute_alpha(intensity: int) -> float:
    """
    Perceptual overlay alpha for an intensity.

    Monotonically non-decreasing; 0 -> 0.0, 50 -> 0.5 ** 0.7, 100 -> 1.0.
    """
    if intensity >= INTENSITY_MAX:
        return 1.0

    base = (intensity / INTENSITY_MAX) ** ALPHA_CURVE_EXPONENT
    t = compute_transition_factor(intensity)
    if t == 0.0:
        return base
    return base * (1.0 - t) + t


def select_blend_mode(intensity: int) -> BlendMode:
    """Multiply until the transition ramp starts, normal afterwards."""
    if compute_transition_factor(intensity) > 0.0:
        return BlendMode.NORMAL
    return BlendMode.MULTIPLY


def build_plan(
    color: Union[str, ColorName, None],
    intensity: Any,
    policy: ColorFallbackPolicy = ColorFallbackPolicy.STRICT,
) -> OverlayPlan:
    """
    Build the overlay plan for one request.

    Raises:
        InvalidIntensityError: Intensity fails validation
        InvalidColorError: Unknown color under the STRICT policy
    """
    value = validate_intensity(intensity)
    color_name = parse_color_name(color, policy)
    r, g, b = hex_to_rgb(COLOR_HEX_TABLE[color_name])

    alpha = compute_alpha(value)
    solid_fill = value == INTENSITY_MAX

    plan = OverlayPlan(
        color=color_name,
        intensity=value,
        alpha=alpha,
        blend_mode=select_blend_mode(value),
        fill_color=(r, g, b, int(round(alpha * 255))),
        transition_factor=compute_transition_factor(value),
        solid_fill=solid_fill,
    )

    logger.debug(
        f"Overlay plan: {color_name.value} @ {value} -> alpha={alpha:.4f}, "
        f"blend={plan.blend_mode.value}, solid={solid_fill}",
        emoji=LogEmoji.COLOR,
    )
    return plan


def plan_to_css_rgba(plan: OverlayPlan) -> str:
    """rgba() fill string a canvas preview should draw for this plan."""
    r, g, b = plan.rgb
    return f"rgba({r},{g},{b},{round(plan.alpha, 4)})"


def plan_fill_hex(plan: OverlayPlan) -> str:
    """Overlay color as "#RRGGBB", the form the color table uses."""
    r, g, b = plan.rgb
    return f"#{r:02X}{g:02X}{b:02X}"
