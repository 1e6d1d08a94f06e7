"""
Viewport Projection

Converts WGS84 lat/lon to canvas pixels for the heatmap accumulator and
filters tracks down to those visible in the current viewport.

Projection follows the slippy-map convention: Web Mercator (EPSG:3857)
metres are scaled to a world of 256 * 2**zoom pixels with the origin at the
north-west corner, then shifted so the viewport's north-west corner is (0, 0).

Dependencies: pyproj
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Tuple, Union

import pyproj

from trackheat.core.models import Track
from trackheat.utils.constants import DEFAULT_PIXEL_DENSITY, WEB_MERCATOR_TILE_SIZE

logger = logging.getLogger(__name__)

# Coordinate Reference Systems
WGS84 = pyproj.CRS("EPSG:4326")  # GPS coordinates (lat/lon)
WEB_MERCATOR = pyproj.CRS("EPSG:3857")  # Web map standard

wgs84_to_webmerc = pyproj.Transformer.from_crs(WGS84, WEB_MERCATOR, always_xy=True)

# Half the Web Mercator world extent in metres
WEB_MERCATOR_HALF_EXTENT = math.pi * 6378137.0


@dataclass(frozen=True)
class Viewport:
    """
    Visible map area and the canvas it is rendered to.

    Attributes:
        north: Top latitude
        south: Bottom latitude
        east: Right longitude
        west: Left longitude
        zoom: Map zoom level
        width: Canvas width in pixels
        height: Canvas height in pixels
    """
    north: float
    south: float
    east: float
    west: float
    zoom: float
    width: int
    height: int

    def contains(self, lat: float, lon: float) -> bool:
        return self.south <= lat <= self.north and self.west <= lon <= self.east


class WebMercatorProjector:
    """
    Callable lat/lon -> canvas pixel converter for a fixed zoom and origin.

    Args:
        zoom: Map zoom level
        origin_x: World pixel x of the canvas' left edge
        origin_y: World pixel y of the canvas' top edge
        tile_size: Tile edge in pixels at zoom 0
        pixel_density: Device pixel ratio applied after projection
    """

    def __init__(
        self,
        zoom: float,
        origin_x: float = 0.0,
        origin_y: float = 0.0,
        tile_size: int = WEB_MERCATOR_TILE_SIZE,
        pixel_density: float = DEFAULT_PIXEL_DENSITY
    ):
        self.zoom = zoom
        self.origin_x = origin_x
        self.origin_y = origin_y
        self.tile_size = tile_size
        self.pixel_density = pixel_density
        self.world_size = tile_size * (2.0 ** zoom)

    @classmethod
    def for_viewport(
        cls,
        viewport: Viewport,
        tile_size: int = WEB_MERCATOR_TILE_SIZE,
        pixel_density: float = DEFAULT_PIXEL_DENSITY
    ) -> "WebMercatorProjector":
        """Create a projector whose (0, 0) is the viewport's north-west corner."""
        base = cls(viewport.zoom, tile_size=tile_size)
        origin_x, origin_y = base.world_pixel(viewport.north, viewport.west)
        return cls(viewport.zoom, origin_x, origin_y, tile_size, pixel_density)

    def world_pixel(self, lat: float, lon: float) -> Tuple[float, float]:
        """Project to absolute world pixels at this zoom (no origin shift)."""
        mx, my = wgs84_to_webmerc.transform(lon, lat)
        x = (mx + WEB_MERCATOR_HALF_EXTENT) / (2 * WEB_MERCATOR_HALF_EXTENT) * self.world_size
        y = (WEB_MERCATOR_HALF_EXTENT - my) / (2 * WEB_MERCATOR_HALF_EXTENT) * self.world_size
        return x, y

    def project(self, lat: float, lon: float) -> Tuple[float, float]:
        """Project to canvas pixels."""
        x, y = self.world_pixel(lat, lon)
        return (
            (x - self.origin_x) * self.pixel_density,
            (y - self.origin_y) * self.pixel_density,
        )

    __call__ = project


TrackCollection = Union[Mapping[str, Track], Iterable[Track]]


def filter_visible_tracks(tracks: TrackCollection, viewport: Viewport) -> List[Track]:
    """
    Keep tracks with at least one point inside the viewport.

    Args:
        tracks: Tracks keyed by id, or any iterable of tracks
        viewport: Current map bounds

    Returns:
        Visible tracks in input order; tracks without points are dropped
    """
    items = tracks.values() if isinstance(tracks, Mapping) else tracks
    visible = [
        track for track in items
        if track.points and any(viewport.contains(p.lat, p.lon) for p in track.points)
    ]
    logger.debug(f"{len(visible)} tracks visible in viewport")
    return visible


def viewport_for_tracks(
    tracks: Iterable[Track],
    zoom: float,
    width: int,
    height: int
) -> Viewport:
    """
    Build a viewport that spans the extent of all track points.

    Raises:
        ValueError: If no track has any points
    """
    lats = []
    lons = []
    for track in tracks:
        for p in track.points:
            lats.append(p.lat)
            lons.append(p.lon)
    if not lats:
        raise ValueError("Cannot derive a viewport from tracks without points")
    return Viewport(
        north=max(lats), south=min(lats),
        east=max(lons), west=min(lons),
        zoom=zoom, width=width, height=height,
    )
