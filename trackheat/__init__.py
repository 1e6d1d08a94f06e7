"""
trackheat - GPS track heatmaps, intersections and region visits.
"""

from trackheat.core.color.interpolation import color_for, heatmap_color_for_count
from trackheat.core.heatmap.accumulator import HeatmapAccumulator
from trackheat.core.heatmap.rasterizer import draw_segment
from trackheat.core.intersections.detector import create_heatmap_segments, detect_intersections
from trackheat.core.models import (
    BoundingBox,
    ColorThreshold,
    HeatmapSegment,
    IntersectionPoint,
    Point,
    Region,
    RegionVisitRecord,
    Track,
    TrackMetadata,
)
from trackheat.core.regions.analyzer import (
    RegionVisitAnalyzer,
    analyze_region_visits,
    clear_bounding_box_cache,
    clear_geometry_cache,
)

__version__ = "0.1.0"

__all__ = [
    "BoundingBox",
    "ColorThreshold",
    "HeatmapAccumulator",
    "HeatmapSegment",
    "IntersectionPoint",
    "Point",
    "Region",
    "RegionVisitAnalyzer",
    "RegionVisitRecord",
    "Track",
    "TrackMetadata",
    "analyze_region_visits",
    "clear_bounding_box_cache",
    "clear_geometry_cache",
    "color_for",
    "create_heatmap_segments",
    "detect_intersections",
    "draw_segment",
    "heatmap_color_for_count",
]
