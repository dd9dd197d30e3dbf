#!/usr/bin/env python3
"""
Unit tests for the Overlay Compute Engine.

Covers the alpha curve, the blend-mode switch, color resolution and
intensity validation. All functions under test are pure.
"""

import pytest

from pinkifier.constants import COLOR_HEX_TABLE
from pinkifier.enums import BlendMode, ColorFallbackPolicy, ColorName
from pinkifier.exceptions import (
    InvalidColorError,
    InvalidIntensityError,
    InvalidRequestError,
)
from pinkifier.services.overlay_pipeline.overlay_engine import (
    build_plan,
    compute_alpha,
    compute_transition_factor,
    hex_to_rgb,
    parse_color_name,
    plan_fill_hex,
    plan_to_css_rgba,
    resolve_color,
    select_blend_mode,
    validate_intensity,
)


@pytest.mark.unit
@pytest.mark.overlay
class TestAlphaCurve:
    """Alpha curve and transition ramp."""

    def test_alpha_endpoints(self):
        assert compute_alpha(0) == 0.0
        assert compute_alpha(100) == 1.0

    def test_alpha_at_transition_start_is_pure_power_curve(self):
        assert compute_transition_factor(50) == 0.0
        assert compute_alpha(50) == 0.5**0.7

    def test_alpha_is_monotonic_non_decreasing(self):
        alphas = [compute_alpha(i) for i in range(0, 101)]
        assert all(later >= earlier for earlier, later in zip(alphas, alphas[1:]))
        assert all(0.0 <= alpha <= 1.0 for alpha in alphas)

    def test_alpha_blends_toward_opaque_after_transition(self):
        base = 0.75**0.7
        assert compute_alpha(75) == pytest.approx(base * 0.5 + 0.5)

    @pytest.mark.parametrize(
        "intensity, expected",
        [(0, 0.0), (25, 0.0), (50, 0.0), (60, 0.2), (75, 0.5), (100, 1.0)],
    )
    def test_transition_factor(self, intensity, expected):
        assert compute_transition_factor(intensity) == pytest.approx(expected)


@pytest.mark.unit
@pytest.mark.overlay
class TestBlendMode:
    def test_multiply_up_to_transition_start(self):
        for intensity in range(0, 51):
            assert select_blend_mode(intensity) == BlendMode.MULTIPLY

    def test_normal_after_transition_start(self):
        for intensity in range(51, 101):
            assert select_blend_mode(intensity) == BlendMode.NORMAL


@pytest.mark.unit
class TestColorResolution:
    """Color table lookups and fallback policy."""

    def test_every_color_resolves(self):
        for color in ColorName:
            assert resolve_color(color.value) == hex_to_rgb(COLOR_HEX_TABLE[color])

    def test_known_values(self):
        assert resolve_color("Pink") == (255, 105, 180)
        assert resolve_color("Blue") == (0, 0, 255)
        assert resolve_color("Purple") == (128, 0, 128)

    def test_unknown_color_rejected_by_default(self):
        with pytest.raises(InvalidColorError) as exc_info:
            resolve_color("Chartreuse")

        assert "Chartreuse" in exc_info.value.message
        assert isinstance(exc_info.value, InvalidRequestError)
        assert exc_info.value.status_code == 400

    def test_color_names_are_case_sensitive(self):
        with pytest.raises(InvalidColorError):
            parse_color_name("pink")

    def test_default_policy_falls_back_to_pink(self):
        assert (
            parse_color_name("Chartreuse", ColorFallbackPolicy.DEFAULT)
            == ColorName.PINK
        )

    def test_hex_to_rgb_rejects_short_values(self):
        with pytest.raises(ValueError):
            hex_to_rgb("#FFF")


@pytest.mark.unit
class TestIntensityValidation:
    @pytest.mark.parametrize(
        "value, expected",
        [(0, 0), (100, 100), ("42", 42), (" 7 ", 7), ("+15", 15), ("100", 100)],
    )
    def test_accepts_integers(self, value, expected):
        assert validate_intensity(value) == expected

    @pytest.mark.parametrize(
        "value",
        [
            None, "", "   ", "12.5", 12.5, "abc", "0x10", True, -1, 101, "150", "-5",
            "+-5", "--5", "\u00b2", "\u0665", "1_0",
        ],
    )
    def test_rejects_invalid_values(self, value):
        with pytest.raises(InvalidIntensityError):
            validate_intensity(value)


@pytest.mark.unit
@pytest.mark.overlay
class TestBuildPlan:
    def test_full_intensity_is_solid_fill(self):
        plan = build_plan("Blue", 100)

        assert plan.solid_fill is True
        assert plan.alpha == 1.0
        assert plan.blend_mode == BlendMode.NORMAL
        assert plan.fill_color == (0, 0, 255, 255)

    def test_zero_intensity_is_transparent(self):
        plan = build_plan("Pink", 0)

        assert plan.alpha == 0.0
        assert plan.alpha_byte == 0
        assert plan.solid_fill is False
        assert plan.blend_mode == BlendMode.MULTIPLY

    def test_low_intensity_uses_multiply(self):
        plan = build_plan(ColorName.GOLD, 30)

        assert plan.blend_mode == BlendMode.MULTIPLY
        assert plan.alpha == pytest.approx(0.3**0.7)
        assert plan.rgb == (255, 215, 0)
        assert plan.transition_factor == 0.0

    def test_intensity_string_is_validated(self):
        assert build_plan("Red", "80").intensity == 80
        with pytest.raises(InvalidIntensityError):
            build_plan("Red", "80.0")

    def test_css_rgba_and_hex(self):
        plan = build_plan("Pink", 50)

        assert plan_to_css_rgba(plan) == f"rgba(255,105,180,{round(0.5 ** 0.7, 4)})"
        assert plan_fill_hex(plan) == "#FF69B4"
        assert plan_to_css_rgba(build_plan("Blue", 100)) == "rgba(0,0,255,1.0)"
