"""
Intersection Detection Core Module

Modules:
- grid.py - Uniform grid index over track segments
- detector.py - Cross-track proximity detection and per-segment intensity
"""

from trackheat.core.intersections.detector import (
    IntersectionDetector,
    closest_point_on_segment,
    create_heatmap_segments,
    detect_intersections,
    segment_proximity,
)
from trackheat.core.intersections.grid import SpatialGridIndex, TrackSegment

__all__ = [
    "IntersectionDetector",
    "SpatialGridIndex",
    "TrackSegment",
    "closest_point_on_segment",
    "create_heatmap_segments",
    "detect_intersections",
    "segment_proximity",
]
