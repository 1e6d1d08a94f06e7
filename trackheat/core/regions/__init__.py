"""
Region Visit Core Module

Modules:
- geometry.py - Normalized ring cache and point-in-polygon
- spatial.py - Bounding box cache and region grid
- analyzer.py - Per-track region visit counting
"""

from trackheat.core.regions.analyzer import (
    RegionVisitAnalyzer,
    analyze_region_visits,
    clear_bounding_box_cache,
    clear_geometry_cache,
    summarize_visits,
)
from trackheat.core.regions.geometry import GeometryCache, point_in_polygon
from trackheat.core.regions.spatial import BoundingBoxCache, RegionSpatialGrid

__all__ = [
    "BoundingBoxCache",
    "GeometryCache",
    "RegionSpatialGrid",
    "RegionVisitAnalyzer",
    "analyze_region_visits",
    "clear_bounding_box_cache",
    "clear_geometry_cache",
    "point_in_polygon",
    "summarize_visits",
]
