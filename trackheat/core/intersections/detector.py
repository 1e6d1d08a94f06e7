"""
Track Intersection Detection

Finds places where segments of different tracks pass within a proximity
threshold of each other. Segments are bucketed in a SpatialGridIndex so
each segment is only compared against the 3x3 cell neighborhood it starts
in, rather than against every other segment.

Distances are planar in degrees, which is adequate at the ~100 m scale of
the default threshold.
"""

import logging
import math
import time
from typing import Dict, List, Mapping, Optional, Sequence, Tuple, Union

from trackheat.core.intersections.grid import SpatialGridIndex, TrackSegment
from trackheat.core.models import HeatmapSegment, IntersectionPoint, Point, Track
from trackheat.utils.constants import (
    DEFAULT_INTERSECTION_CELL_SIZE,
    DEFAULT_PROXIMITY_THRESHOLD,
    INTERSECTION_KEY_PRECISION,
)

logger = logging.getLogger(__name__)

TrackPoints = Mapping[str, Union[Sequence[Point], Track]]


def closest_point_on_segment(p1: Point, p2: Point, p: Point) -> Point:
    """
    Project p onto segment p1-p2, clamped to the segment's endpoints.

    A zero-length segment projects everything onto p1.
    """
    a = p.lon - p1.lon
    b = p.lat - p1.lat
    c = p2.lon - p1.lon
    d = p2.lat - p1.lat

    len_sq = c * c + d * d
    param = (a * c + b * d) / len_sq if len_sq != 0 else -1.0

    if param < 0:
        return Point(lat=p1.lat, lon=p1.lon)
    if param > 1:
        return Point(lat=p2.lat, lon=p2.lon)
    return Point(lat=p1.lat + param * d, lon=p1.lon + param * c)


def planar_distance(p1: Point, p2: Point) -> float:
    return math.hypot(p1.lon - p2.lon, p1.lat - p2.lat)


def segment_proximity(
    seg1: TrackSegment,
    seg2: TrackSegment,
    threshold: float = DEFAULT_PROXIMITY_THRESHOLD
) -> Optional[Point]:
    """
    Closest approach between two segments, if under the threshold.

    Uses the four endpoint-to-segment projections and keeps the smallest.

    Returns:
        The closest point found, or None if the segments stay apart
    """
    candidates = (
        (closest_point_on_segment(seg1.p1, seg1.p2, seg2.p1), seg2.p1),
        (closest_point_on_segment(seg1.p1, seg1.p2, seg2.p2), seg2.p2),
        (closest_point_on_segment(seg2.p1, seg2.p2, seg1.p1), seg1.p1),
        (closest_point_on_segment(seg2.p1, seg2.p2, seg1.p2), seg1.p2),
    )
    best_point = None
    best_dist = math.inf
    for projected, endpoint in candidates:
        dist = planar_distance(projected, endpoint)
        if dist < best_dist:
            best_point, best_dist = projected, dist

    return best_point if best_dist < threshold else None


def intersection_key(lat: float, lon: float) -> str:
    """Dedup key: coordinates rounded to a fixed number of decimals."""
    return f"{lat:.{INTERSECTION_KEY_PRECISION}f}_{lon:.{INTERSECTION_KEY_PRECISION}f}"


def _points_of(track: Union[Sequence[Point], Track]) -> Sequence[Point]:
    return track.points if isinstance(track, Track) else track


def build_segments(tracks: TrackPoints) -> List[TrackSegment]:
    """Every consecutive point pair of every track, tagged by track id."""
    segments = []
    for track_id, track in tracks.items():
        points = _points_of(track)
        for i in range(len(points) - 1):
            segments.append(TrackSegment(points[i], points[i + 1], track_id))
    return segments


def detect_intersections(
    tracks: TrackPoints,
    cell_size: float = DEFAULT_INTERSECTION_CELL_SIZE,
    proximity_threshold: float = DEFAULT_PROXIMITY_THRESHOLD
) -> List[IntersectionPoint]:
    """
    Detect where segments of different tracks come close.

    Args:
        tracks: Track id -> point list (or Track)
        cell_size: Grid cell size in degrees; should be >= proximity_threshold
        proximity_threshold: Max distance in degrees to count as an intersection

    Returns:
        Intersection points, one per rounded location, in discovery order
    """
    if not tracks:
        return []

    if cell_size < proximity_threshold:
        logger.warning(
            f"cell_size {cell_size} is smaller than proximity_threshold {proximity_threshold}; "
            f"intersections spanning cells may be missed"
        )

    started = time.perf_counter()
    total_tracks = len(tracks)

    grid = SpatialGridIndex(cell_size)
    grid.extend(build_segments(tracks))

    found: Dict[str, IntersectionPoint] = {}
    comparisons = 0

    for cell_key, cell_segments in grid.cells():
        neighbor_segments = list(grid.candidates(cell_key))
        for seg1 in cell_segments:
            for seg2 in neighbor_segments:
                if seg1.track_id == seg2.track_id:
                    continue
                comparisons += 1
                closest = segment_proximity(seg1, seg2, proximity_threshold)
                if closest is None:
                    continue

                key = intersection_key(closest.lat, closest.lon)
                point = found.get(key)
                if point is None:
                    point = IntersectionPoint(lat=closest.lat, lon=closest.lon)
                    found[key] = point
                point.track_ids.add(seg1.track_id)
                point.track_ids.add(seg2.track_id)
                point.intensity = min(1.0, len(point.track_ids) / total_tracks)

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        f"Detected {len(found)} intersections across {total_tracks} tracks "
        f"({len(grid)} segments, {comparisons} comparisons, {elapsed_ms:.1f} ms)"
    )
    return list(found.values())


def point_near_segment(
    point: Union[Point, IntersectionPoint],
    p1: Point,
    p2: Point,
    threshold: float = DEFAULT_PROXIMITY_THRESHOLD
) -> bool:
    """True if the point lies within threshold of segment p1-p2."""
    target = Point(lat=point.lat, lon=point.lon)
    return planar_distance(target, closest_point_on_segment(p1, p2, target)) < threshold


def create_heatmap_segments(
    points: Sequence[Point],
    track_id: str,
    intersections: Sequence[IntersectionPoint],
    proximity_threshold: float = DEFAULT_PROXIMITY_THRESHOLD
) -> List[HeatmapSegment]:
    """
    Tag each segment of a track with how contested it is.

    A segment's intensity is the highest intensity among intersections that
    involve this track and lie on that segment, or 0 if there are none.

    Args:
        points: Ordered track points
        track_id: Id of the track the points belong to
        intersections: Output of detect_intersections
        proximity_threshold: Max distance in degrees from the segment

    Returns:
        One HeatmapSegment per consecutive point pair
    """
    relevant = [i for i in intersections if track_id in i.track_ids]
    segments = []
    for i in range(len(points) - 1):
        start = points[i]
        end = points[i + 1]
        intensity = max(
            (
                inter.intensity for inter in relevant
                if point_near_segment(inter, start, end, proximity_threshold)
            ),
            default=0.0,
        )
        segments.append(HeatmapSegment(start=start, end=end, intensity=intensity, track_id=track_id))
    return segments


class IntersectionDetector:
    """
    Configured intersection detector.

    Args:
        cell_size: Grid cell size in degrees
        proximity_threshold: Max distance in degrees to count as an intersection
    """

    def __init__(
        self,
        cell_size: float = DEFAULT_INTERSECTION_CELL_SIZE,
        proximity_threshold: float = DEFAULT_PROXIMITY_THRESHOLD
    ):
        self.cell_size = cell_size
        self.proximity_threshold = proximity_threshold

    def detect(self, tracks: TrackPoints) -> List[IntersectionPoint]:
        return detect_intersections(tracks, self.cell_size, self.proximity_threshold)

    def heatmap_segments(
        self,
        tracks: TrackPoints,
        intersections: Sequence[IntersectionPoint]
    ) -> List[HeatmapSegment]:
        """Heatmap segments for every track, in track order."""
        segments: List[HeatmapSegment] = []
        for track_id, track in tracks.items():
            segments.extend(
                create_heatmap_segments(
                    _points_of(track), track_id, intersections, self.proximity_threshold
                )
            )
        return segments

    def run(self, tracks: TrackPoints) -> Tuple[List[IntersectionPoint], List[HeatmapSegment]]:
        """Detect intersections and derive heatmap segments in one call."""
        intersections = self.detect(tracks)
        return intersections, self.heatmap_segments(tracks, intersections)
