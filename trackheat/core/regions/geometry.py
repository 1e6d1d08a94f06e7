"""
Region Geometry Cache and Point-in-Polygon

Region geometry arrives as GeoJSON Polygon or MultiPolygon dicts. The first
lookup of a region normalizes it through shapely into a list of polygons,
each a list of (lon, lat) numpy rings with the shell first and holes after.
The normalized rings are cached by region id until clear() is called.

Point-in-polygon uses even-odd ray casting: a point is inside a polygon when
it is inside the shell and outside every hole, and inside a multi-polygon
when it is inside any member.

Dependencies: shapely, numpy
"""

import logging
from typing import Dict, List, Optional

import numpy as np
from shapely.geometry import MultiPolygon, Polygon, shape

from trackheat.core.models import Region

logger = logging.getLogger(__name__)

# One polygon = [shell, hole, hole, ...]; each ring is an (n, 2) array of (lon, lat)
PolygonRings = List[np.ndarray]
NormalizedGeometry = List[PolygonRings]


def _polygon_rings(polygon: Polygon) -> PolygonRings:
    rings = [np.asarray(polygon.exterior.coords, dtype=np.float64)[:, :2]]
    for interior in polygon.interiors:
        rings.append(np.asarray(interior.coords, dtype=np.float64)[:, :2])
    return rings


def normalize_geometry(geometry: Dict) -> NormalizedGeometry:
    """
    Convert GeoJSON Polygon/MultiPolygon into cached ring arrays.

    Raises:
        ValueError: If the geometry is not a Polygon or MultiPolygon
    """
    geom = shape(geometry)
    if isinstance(geom, Polygon):
        polygons = [geom]
    elif isinstance(geom, MultiPolygon):
        polygons = list(geom.geoms)
    else:
        raise ValueError(f"Region geometry must be Polygon or MultiPolygon, got {geom.geom_type}")
    return [_polygon_rings(p) for p in polygons if not p.is_empty]


def raycast_point_in_ring(lat: float, lon: float, ring: np.ndarray) -> bool:
    """
    Even-odd ray cast of (lon, lat) against a single ring.

    Each edge runs from the previous vertex to the current one; a closing
    duplicate vertex yields a zero-length edge that never counts.
    """
    if len(ring) < 3:
        return False
    xi = ring[:, 0]
    yi = ring[:, 1]
    xj = np.roll(xi, 1)
    yj = np.roll(yi, 1)

    straddles = (yi > lat) != (yj > lat)
    # non-straddling edges may divide by zero; they are masked out below
    with np.errstate(divide="ignore", invalid="ignore"):
        x_cross = (xj - xi) * (lat - yi) / (yj - yi) + xi
    crossings = straddles & (lon < x_cross)
    return bool(np.count_nonzero(crossings) % 2)


def point_in_rings(lat: float, lon: float, rings: PolygonRings) -> bool:
    """Inside the shell and outside every hole."""
    if not rings or not raycast_point_in_ring(lat, lon, rings[0]):
        return False
    return not any(raycast_point_in_ring(lat, lon, hole) for hole in rings[1:])


def point_in_polygon(lat: float, lon: float, polygons: NormalizedGeometry) -> bool:
    """Union test over all member polygons."""
    return any(point_in_rings(lat, lon, rings) for rings in polygons)


class GeometryCache:
    """
    Region id -> normalized rings, filled on first use.

    Region geometry is treated as static: entries are only dropped by clear().
    """

    def __init__(self):
        self._cache: Dict[str, NormalizedGeometry] = {}

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, region_id: str) -> bool:
        return region_id in self._cache

    def get(self, region: Region) -> Optional[NormalizedGeometry]:
        """
        Normalized rings for a region.

        Returns:
            Cached rings, or None if the region has no geometry
        """
        cached = self._cache.get(region.id)
        if cached is not None:
            return cached
        if not region.geometry:
            logger.debug(f"Region {region.id} has no geometry")
            return None

        rings = normalize_geometry(region.geometry)
        self._cache[region.id] = rings
        return rings

    def clear(self) -> None:
        logger.debug(f"Clearing geometry cache ({len(self._cache)} entries)")
        self._cache.clear()
