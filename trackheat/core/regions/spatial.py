"""
Region Spatial Index

Bounding boxes for cheap rejection and a coarse lat/lon grid that maps each
cell to the regions whose bounding box overlaps it, so a track point is only
tested against nearby regions.

Dependencies: shapely
"""

import logging
import math
from collections import defaultdict
from typing import DefaultDict, Dict, List, Optional, Sequence, Tuple

from shapely.geometry import shape

from trackheat.core.models import BoundingBox, Region
from trackheat.utils.constants import DEFAULT_REGION_GRID_SIZE

logger = logging.getLogger(__name__)

GridKey = Tuple[int, int]


class BoundingBoxCache:
    """
    Region id -> BoundingBox, filled on first use and kept until clear().
    """

    def __init__(self):
        self._cache: Dict[str, BoundingBox] = {}

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, region_id: str) -> bool:
        return region_id in self._cache

    def get(self, region: Region) -> Optional[BoundingBox]:
        """
        Bounding box of a region's geometry.

        Returns:
            Cached box, or None if the region has no (or empty) geometry
        """
        cached = self._cache.get(region.id)
        if cached is not None:
            return cached
        if not region.geometry:
            return None

        geom = shape(region.geometry)
        if geom.is_empty:
            logger.debug(f"Region {region.id} has empty geometry; it will never be visited")
            return None

        min_lon, min_lat, max_lon, max_lat = geom.bounds
        bbox = BoundingBox(min_lat=min_lat, max_lat=max_lat, min_lon=min_lon, max_lon=max_lon)
        self._cache[region.id] = bbox
        return bbox

    def clear(self) -> None:
        logger.debug(f"Clearing bounding box cache ({len(self._cache)} entries)")
        self._cache.clear()


class RegionSpatialGrid:
    """
    Grid of region ids keyed by integer (lat_cell, lon_cell).

    Args:
        regions: Regions to index
        bbox_cache: Source of region bounding boxes
        grid_size: Cell edge length in degrees
    """

    def __init__(
        self,
        regions: Sequence[Region],
        bbox_cache: BoundingBoxCache,
        grid_size: float = DEFAULT_REGION_GRID_SIZE
    ):
        if grid_size <= 0:
            raise ValueError(f"grid_size must be positive, got {grid_size}")
        self.grid_size = grid_size
        self._cells: DefaultDict[GridKey, List[str]] = defaultdict(list)

        for region in regions:
            bbox = bbox_cache.get(region)
            if bbox is None:
                continue
            lat_lo, lon_lo = self.key_for(bbox.min_lat, bbox.min_lon)
            lat_hi, lon_hi = self.key_for(bbox.max_lat, bbox.max_lon)
            for glat in range(lat_lo, lat_hi + 1):
                for glon in range(lon_lo, lon_hi + 1):
                    self._cells[(glat, glon)].append(region.id)

        logger.debug(f"Indexed {len(regions)} regions into {len(self._cells)} grid cells")

    def __len__(self) -> int:
        return len(self._cells)

    def key_for(self, lat: float, lon: float) -> GridKey:
        return math.floor(lat / self.grid_size), math.floor(lon / self.grid_size)

    def candidates(self, lat: float, lon: float) -> List[str]:
        """
        Region ids that may contain the point.

        Checks the point's own cell plus the cells one step north, east and
        north-east so points sitting on a cell boundary are not missed.
        """
        glat, glon = self.key_for(lat, lon)
        seen = []
        for key in ((glat, glon), (glat + 1, glon), (glat, glon + 1), (glat + 1, glon + 1)):
            for region_id in self._cells.get(key, ()):
                if region_id not in seen:
                    seen.append(region_id)
        return seen
