"""Interpolation utilities for camera keyframe animation.

Provides easing functions and an interpolate() helper used by the camera
interpolator to compute zoom/bearing/pitch between two keyframes.

Usage:
    from cinematic.utils.interpolation import interpolate, get_easing_function

    # Linear interpolation
    value = interpolate(0.5, [0, 1], [12.0, 15.0])

    # With easing
    value = interpolate(0.5, [0, 1], [12.0, 15.0], easing=get_easing_function("ease_in_out"))
"""

import math
from typing import Callable


# =============================================================================
# Easing Functions
# =============================================================================


def linear(t: float) -> float:
    """Linear easing (no easing)."""
    return t


def ease_in_out(t: float) -> float:
    """Ease in-out (cubic)."""
    if t < 0.5:
        return 4 * t * t * t
    else:
        return 1 - (-2 * t + 2) ** 3 / 2


def ease_in_out_quad(t: float) -> float:
    """Ease in-out (quadratic)."""
    if t < 0.5:
        return 2 * t * t
    else:
        return 1 - (-2 * t + 2) ** 2 / 2


def ease_in_out_sine(t: float) -> float:
    """Ease in-out (sine)."""
    return -(math.cos(math.pi * t) - 1) / 2


def smoothstep(t: float) -> float:
    """Smoothstep: zero derivative at both endpoints."""
    return t * t * (3.0 - 2.0 * t)


# Easing name -> function lookup for settings-based configuration
EASING_FUNCTIONS: dict[str, Callable[[float], float]] = {
    "linear": linear,
    "ease_in_out": ease_in_out,
    "ease_in_out_quad": ease_in_out_quad,
    "ease_in_out_sine": ease_in_out_sine,
    "smoothstep": smoothstep,
}


def get_easing_function(name: str) -> Callable[[float], float]:
    """Get an easing function by name.

    Args:
        name: Easing function name (e.g., "ease_in_out", "linear")

    Returns:
        Easing function

    Raises:
        ValueError: If the easing name is not recognized
    """
    fn = EASING_FUNCTIONS.get(name)
    if fn is None:
        raise ValueError(
            f"Unknown easing function: {name}. "
            f"Available: {', '.join(EASING_FUNCTIONS.keys())}"
        )
    return fn


# =============================================================================
# Core Interpolation
# =============================================================================


def lerp(start: float, end: float, t: float) -> float:
    return start + (end - start) * t


def interpolate(
    value: float,
    input_range: list[float],
    output_range: list[float],
    *,
    easing: Callable[[float], float] = linear,
) -> float:
    """Interpolate a value based on input/output ranges with optional easing.

    Values outside input_range clamp to the first/last output.

    Args:
        value: Current position (e.g. a mile along the route)
        input_range: Input range [start, end] or multi-point [a, b, c, ...]
        output_range: Output range matching input_range length
        easing: Easing function (default: linear)

    Returns:
        Interpolated output value

    Examples:
        interpolate(0.5, [0, 1], [0, 10])  # -> 5.0
        interpolate(1.5, [0, 1, 2], [0, 10, 0])  # -> 5.0
    """
    if len(input_range) != len(output_range):
        raise ValueError("input_range and output_range must have the same length")
    if len(input_range) < 2:
        raise ValueError("input_range must have at least 2 values")

    for i in range(1, len(input_range)):
        if input_range[i] < input_range[i - 1]:
            raise ValueError("input_range must be monotonically non-decreasing")

    if value <= input_range[0]:
        return output_range[0]
    if value >= input_range[-1]:
        return output_range[-1]

    # Find the segment
    segment_idx = len(input_range) - 2
    for i in range(1, len(input_range)):
        if value <= input_range[i]:
            segment_idx = i - 1
            break

    seg_start = input_range[segment_idx]
    seg_range = input_range[segment_idx + 1] - seg_start
    t = 0.0 if seg_range == 0 else (value - seg_start) / seg_range

    return lerp(output_range[segment_idx], output_range[segment_idx + 1], easing(t))
