"""Tests for easing and interpolation helpers."""

import pytest

from cinematic.utils.interpolation import (
    EASING_FUNCTIONS,
    get_easing_function,
    interpolate,
    lerp,
)


class TestEasing:
    """Tests for the easing lookup."""

    @pytest.mark.parametrize("name", sorted(EASING_FUNCTIONS))
    def test_endpoints_are_fixed(self, name):
        """Test that every easing maps 0 to 0 and 1 to 1."""
        easing = get_easing_function(name)

        assert easing(0.0) == pytest.approx(0.0)
        assert easing(1.0) == pytest.approx(1.0)

    def test_unknown_easing(self):
        """Test that an unknown name lists the available ones."""
        with pytest.raises(ValueError, match="Available: linear"):
            get_easing_function("bounce")


class TestInterpolate:
    """Tests for interpolate."""

    def test_linear(self):
        """Test a simple two-point range."""
        assert interpolate(0.5, [0, 1], [0, 10]) == 5.0
        assert lerp(2.0, 4.0, 0.25) == 2.5

    def test_multi_segment(self):
        """Test a three-point range."""
        assert interpolate(1.5, [0, 1, 2], [0, 10, 0]) == 5.0

    def test_clamps_outside_range(self):
        """Test that values outside the input range clamp to the ends."""
        assert interpolate(-1, [0, 1], [3, 7]) == 3
        assert interpolate(2, [0, 1], [3, 7]) == 7

    def test_easing_is_applied(self):
        """Test that the easing reshapes t."""
        assert interpolate(0.5, [0, 1], [0, 8], easing=lambda t: t * t) == 2.0

    @pytest.mark.parametrize(
        "input_range,output_range",
        [([0, 1], [0]), ([0], [0]), ([1, 0], [0, 1])],
    )
    def test_invalid_ranges(self, input_range, output_range):
        """Test mismatched, too short and decreasing ranges."""
        with pytest.raises(ValueError):
            interpolate(0.5, input_range, output_range)
