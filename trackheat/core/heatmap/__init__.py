"""
Heatmap Core Module

Modules:
- rasterizer.py - Thick anti-aliased line drawing into a density buffer
- accumulator.py - Per-viewport density buffer and color pass
- projection.py - Web Mercator projection and viewport filtering
"""

from trackheat.core.heatmap.accumulator import HeatmapAccumulator
from trackheat.core.heatmap.projection import (
    Viewport,
    WebMercatorProjector,
    filter_visible_tracks,
    viewport_for_tracks,
)
from trackheat.core.heatmap.rasterizer import brush_kernel, draw_segment

__all__ = [
    "HeatmapAccumulator",
    "Viewport",
    "WebMercatorProjector",
    "brush_kernel",
    "draw_segment",
    "filter_visible_tracks",
    "viewport_for_tracks",
]
