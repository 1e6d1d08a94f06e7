"""
Track Analysis Data Models

Dataclasses shared by the heatmap, intersection and region analysis modules.
Coordinates are WGS84 degrees throughout; GeoJSON geometry keeps its native
(lon, lat) axis order.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterator, Optional, Set, Tuple

RGB = Tuple[int, int, int]


@dataclass(frozen=True)
class Point:
    """A single GPS sample."""
    lat: float
    lon: float
    elevation: Optional[float] = None
    time: Optional[datetime] = None


@dataclass(frozen=True)
class TrackMetadata:
    """Summary values computed when a track is ingested."""
    distance_km: Optional[float] = None
    duration_s: Optional[float] = None
    date: Optional[datetime] = None


@dataclass(frozen=True)
class Track:
    """
    An ordered sequence of points identified by a unique id.

    Attributes:
        id: Unique identifier within a working set
        name: Display name (from the track file)
        points: Ordered points; consecutive pairs form the track's segments
        metadata: Distance/duration/date summary
    """
    id: str
    name: str
    points: Tuple[Point, ...] = ()
    metadata: TrackMetadata = field(default_factory=TrackMetadata)

    def __post_init__(self):
        """Freeze the point sequence."""
        object.__setattr__(self, "points", tuple(self.points))

    def segments(self) -> Iterator[Tuple[Point, Point]]:
        """Yield consecutive point pairs."""
        for i in range(len(self.points) - 1):
            yield self.points[i], self.points[i + 1]


@dataclass(frozen=True)
class ColorThreshold:
    """A knot in a piecewise-linear color scale."""
    threshold: float
    color: RGB


@dataclass
class IntersectionPoint:
    """
    A location where two or more tracks come within the proximity threshold.

    intensity is the share of all input tracks that pass through this point,
    clamped to 1.0.
    """
    lat: float
    lon: float
    track_ids: Set[str] = field(default_factory=set)
    intensity: float = 0.0


@dataclass(frozen=True)
class HeatmapSegment:
    """One track segment tagged with how contested it is."""
    start: Point
    end: Point
    intensity: float
    track_id: str


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned lat/lon bounds, inclusive."""
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def contains(self, lat: float, lon: float) -> bool:
        return (
            self.min_lat <= lat <= self.max_lat
            and self.min_lon <= lon <= self.max_lon
        )


@dataclass(frozen=True)
class Region:
    """
    An administrative region with GeoJSON Polygon or MultiPolygon geometry.

    Region geometry is assumed static for the lifetime of the process.
    """
    id: str
    name: str
    geometry: Optional[Dict[str, Any]]
    country: str = ""
    admin_level: int = 0
    properties: Dict[str, Any] = field(default_factory=dict, compare=False)


@dataclass
class RegionVisitRecord:
    """Visit statistics for a single region."""
    region_id: str
    region_name: str
    visited: bool = False
    visit_count: int = 0
    track_ids: Set[str] = field(default_factory=set)
    geometry: Optional[Dict[str, Any]] = None
