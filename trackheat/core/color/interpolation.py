"""
Color Threshold Interpolation

Maps a scalar (heatmap count, region visit count, intersection intensity) to
an RGB color using an ordered list of threshold/color knots. Values between
two knots are linearly interpolated per channel; values outside the table
clamp to the nearest end color.

Thresholds must be non-empty and sorted by threshold. This is not checked
here: a malformed table is the caller's bug.
"""

import bisect
from typing import List, Sequence, Tuple, Union

from trackheat.core.models import RGB, ColorThreshold
from trackheat.utils.constants import (
    HEATMAP_BASE_OPACITY,
    HEATMAP_BASE_WEIGHT,
    HEATMAP_COLOR_THRESHOLDS,
    HEATMAP_WEIGHT_RANGE,
    INTERSECTION_INTENSITY_THRESHOLDS,
    REFERENCE_ZOOM_LEVEL,
    REGION_VISIT_THRESHOLDS,
)

ThresholdTable = Sequence[ColorThreshold]


def hex_to_rgb(value: str) -> RGB:
    """Parse "#RRGGBB" (leading # optional) into an RGB tuple."""
    digits = value.lstrip("#")
    if len(digits) != 6:
        raise ValueError(f"Invalid hex color: {value!r}")
    return (int(digits[0:2], 16), int(digits[2:4], 16), int(digits[4:6], 16))


def rgb_to_hex(color: Sequence[int]) -> str:
    return "#" + "".join(f"{int(c):02x}" for c in color[:3])


def build_thresholds(pairs: Sequence[Tuple[float, Union[Sequence[int], str]]]) -> List[ColorThreshold]:
    """
    Build a threshold table from (threshold, color) pairs.

    Args:
        pairs: Colors given as [r, g, b] or "#RRGGBB"

    Returns:
        List of ColorThreshold in the given order
    """
    table = []
    for threshold, color in pairs:
        rgb = hex_to_rgb(color) if isinstance(color, str) else tuple(int(c) for c in color)
        table.append(ColorThreshold(threshold=float(threshold), color=rgb))
    return table


HEATMAP_THRESHOLDS: List[ColorThreshold] = build_thresholds(HEATMAP_COLOR_THRESHOLDS)
REGION_THRESHOLDS: List[ColorThreshold] = build_thresholds(REGION_VISIT_THRESHOLDS)
INTENSITY_THRESHOLDS: List[ColorThreshold] = build_thresholds(INTERSECTION_INTENSITY_THRESHOLDS)


def interpolate_rgb(c1: Sequence[int], c2: Sequence[int], t: float) -> RGB:
    """
    Linear interpolation between two RGB colors.

    Args:
        c1: Color at t=0
        c2: Color at t=1
        t: Interpolation factor in [0, 1]

    Returns:
        Interpolated color with integer channels
    """
    return (
        int(round(c1[0] + (c2[0] - c1[0]) * t)),
        int(round(c1[1] + (c2[1] - c1[1]) * t)),
        int(round(c1[2] + (c2[2] - c1[2]) * t)),
    )


def color_for(value: float, thresholds: ThresholdTable) -> RGB:
    """
    Map a value to a color from a sorted threshold table.

    Values at or below the first threshold get the first color, values at or
    above the last get the last color. A value exactly on an intermediate
    knot gets that knot's color.

    Args:
        value: Scalar to color
        thresholds: Knots sorted by threshold

    Returns:
        RGB tuple with channels in [0, 255]
    """
    first = thresholds[0]
    last = thresholds[-1]
    if value <= first.threshold:
        return tuple(first.color)
    if value >= last.threshold:
        return tuple(last.color)

    # index of the first knot strictly above value; value > first so upper >= 1
    keys = [t.threshold for t in thresholds]
    upper_idx = bisect.bisect_right(keys, value)
    lower = thresholds[upper_idx - 1]
    upper = thresholds[upper_idx]

    span = upper.threshold - lower.threshold
    t = 0.0 if span == 0 else (value - lower.threshold) / span
    return interpolate_rgb(lower.color, upper.color, t)


def normalize_heatmap_count(
    count: float,
    zoom_level: float = REFERENCE_ZOOM_LEVEL,
    line_thickness: int = 1
) -> float:
    """
    Convert a raw accumulator count to an approximate unique-activity count.

    A line of radius r covers ~2r pixels across, so one pass adds ~2r to the
    count of nearby cells; zoom scales relative to the reference level.
    """
    return (count / (line_thickness * 2)) * (zoom_level / REFERENCE_ZOOM_LEVEL)


def heatmap_color_for_count(
    count: float,
    zoom_level: float = REFERENCE_ZOOM_LEVEL,
    line_thickness: int = 1,
    thresholds: ThresholdTable = HEATMAP_THRESHOLDS
) -> RGB:
    """
    Map a pixel accumulator value to a heatmap color.

    Args:
        count: Pixel accumulator value
        zoom_level: Current map zoom level
        line_thickness: Brush radius the accumulator was drawn with
        thresholds: Color table (defaults to the heatmap palette)

    Returns:
        RGB tuple
    """
    return color_for(normalize_heatmap_count(count, zoom_level, line_thickness), thresholds)


def region_color_for_count(count: int, thresholds: ThresholdTable = REGION_THRESHOLDS) -> RGB:
    """Map a region visit count to a fill color."""
    return color_for(count, thresholds)


def intensity_to_hex(intensity: float) -> str:
    """Map an intersection intensity in [0, 1] to a blue-green-yellow-red hex color."""
    return rgb_to_hex(color_for(intensity, INTENSITY_THRESHOLDS))


def heatmap_opacity(intensity: float) -> float:
    return HEATMAP_BASE_OPACITY + intensity * (1.0 - HEATMAP_BASE_OPACITY)


def heatmap_weight(intensity: float) -> float:
    return HEATMAP_BASE_WEIGHT + intensity * HEATMAP_WEIGHT_RANGE
