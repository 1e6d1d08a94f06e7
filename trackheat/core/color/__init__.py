"""
Color Interpolation Module

Contains the piecewise-linear threshold color scale and the palettes used by
the heatmap, region and intersection views.
"""

from trackheat.core.color.interpolation import (
    HEATMAP_THRESHOLDS,
    INTENSITY_THRESHOLDS,
    REGION_THRESHOLDS,
    build_thresholds,
    color_for,
    heatmap_color_for_count,
    heatmap_opacity,
    heatmap_weight,
    hex_to_rgb,
    intensity_to_hex,
    interpolate_rgb,
    region_color_for_count,
    rgb_to_hex,
)

__all__ = [
    "HEATMAP_THRESHOLDS",
    "INTENSITY_THRESHOLDS",
    "REGION_THRESHOLDS",
    "build_thresholds",
    "color_for",
    "heatmap_color_for_count",
    "heatmap_opacity",
    "heatmap_weight",
    "hex_to_rgb",
    "intensity_to_hex",
    "interpolate_rgb",
    "region_color_for_count",
    "rgb_to_hex",
]
