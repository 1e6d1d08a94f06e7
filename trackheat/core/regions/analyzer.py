"""
Region Visit Analysis

Determines which administrative regions each track passes through. For every
track point, the region grid narrows the candidates, bounding boxes reject
the obvious misses, and only then is the exact point-in-polygon test run.

A track counts at most once per region no matter how many of its points fall
inside. Visit results are recomputed on every call; only the static region
geometry (rings and bounding boxes) is cached.
"""

import logging
import time
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from trackheat.core.models import Region, RegionVisitRecord, Track
from trackheat.core.regions.geometry import GeometryCache, point_in_polygon
from trackheat.core.regions.spatial import BoundingBoxCache, RegionSpatialGrid
from trackheat.utils.constants import (
    DEFAULT_REGION_GRID_SIZE,
    PROGRESS_COMPLETE,
    PROGRESS_FINALIZING,
    PROGRESS_INDEX_BUILT,
    PROGRESS_TRACKS_SPAN,
    PROGRESS_TRACKS_START,
)

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, str], None]


class RegionVisitAnalyzer:
    """
    Counts region visits for a set of tracks.

    Args:
        geometry_cache: Normalized ring cache (a private one if omitted)
        bbox_cache: Bounding box cache (a private one if omitted)
        grid_size: Region grid cell size in degrees
    """

    def __init__(
        self,
        geometry_cache: Optional[GeometryCache] = None,
        bbox_cache: Optional[BoundingBoxCache] = None,
        grid_size: float = DEFAULT_REGION_GRID_SIZE
    ):
        self.geometry_cache = geometry_cache if geometry_cache is not None else GeometryCache()
        self.bbox_cache = bbox_cache if bbox_cache is not None else BoundingBoxCache()
        self.grid_size = grid_size

    def clear_caches(self) -> None:
        self.geometry_cache.clear()
        self.bbox_cache.clear()

    def analyze(
        self,
        tracks: Iterable[Track],
        regions: Sequence[Region],
        on_progress: Optional[ProgressCallback] = None
    ) -> List[RegionVisitRecord]:
        """
        Analyze which regions were visited by which tracks.

        Args:
            tracks: Tracks to test
            regions: Regions to test against
            on_progress: Optional callback receiving (percent, message)

        Returns:
            One record per region, in region order
        """
        started = time.perf_counter()

        def report(percent: int, message: str) -> None:
            if on_progress is not None:
                on_progress(percent, message)

        records: Dict[str, RegionVisitRecord] = {}
        regions_by_id: Dict[str, Region] = {}
        for region in regions:
            if region.id in records:
                logger.warning(f"Duplicate region id {region.id!r}; keeping the first definition")
                continue
            regions_by_id[region.id] = region
            records[region.id] = RegionVisitRecord(
                region_id=region.id,
                region_name=region.name,
                geometry=region.geometry,
            )

        report(PROGRESS_INDEX_BUILT, "building spatial index...")
        grid = RegionSpatialGrid(list(regions_by_id.values()), self.bbox_cache, self.grid_size)

        valid_tracks = [t for t in tracks if t.points]
        report(PROGRESS_TRACKS_START, f"processing {len(valid_tracks)} tracks...")

        step = max(1, len(valid_tracks) // 10)
        for i, track in enumerate(valid_tracks):
            self._process_track(track, grid, regions_by_id, records)
            if i % step == 0:
                percent = PROGRESS_TRACKS_START + (i * PROGRESS_TRACKS_SPAN) // len(valid_tracks)
                report(percent, f"processed {i + 1}/{len(valid_tracks)} tracks")

        report(PROGRESS_FINALIZING, "finalizing...")
        visited_count = 0
        for record in records.values():
            record.visited = record.visit_count > 0
            if record.visited:
                visited_count += 1

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            f"Region analysis: {visited_count}/{len(records)} regions visited "
            f"by {len(valid_tracks)} tracks in {elapsed_ms:.1f} ms"
        )
        report(PROGRESS_COMPLETE, f"complete: {visited_count} regions in {elapsed_ms:.2f}ms")
        return list(records.values())

    def _process_track(
        self,
        track: Track,
        grid: RegionSpatialGrid,
        regions_by_id: Dict[str, Region],
        records: Dict[str, RegionVisitRecord]
    ) -> None:
        visited = set()
        for point in track.points:
            for region_id in grid.candidates(point.lat, point.lon):
                if region_id in visited:
                    continue
                region = regions_by_id[region_id]

                bbox = self.bbox_cache.get(region)
                if bbox is None or not bbox.contains(point.lat, point.lon):
                    continue

                polygons = self.geometry_cache.get(region)
                if polygons is None or not point_in_polygon(point.lat, point.lon, polygons):
                    continue

                visited.add(region_id)
                record = records[region_id]
                record.visit_count += 1
                record.track_ids.add(track.id)

            if len(visited) == len(records):
                break


# Process-scoped caches shared by the module-level helpers
_geometry_cache = GeometryCache()
_bbox_cache = BoundingBoxCache()


def analyze_region_visits(
    tracks: Iterable[Track],
    regions: Sequence[Region],
    on_progress: Optional[ProgressCallback] = None,
    grid_size: float = DEFAULT_REGION_GRID_SIZE
) -> List[RegionVisitRecord]:
    """Analyze region visits using the process-wide geometry caches."""
    analyzer = RegionVisitAnalyzer(_geometry_cache, _bbox_cache, grid_size)
    return analyzer.analyze(tracks, regions, on_progress)


def clear_geometry_cache() -> None:
    _geometry_cache.clear()


def clear_bounding_box_cache() -> None:
    _bbox_cache.clear()


def summarize_visits(records: Sequence[RegionVisitRecord]) -> Tuple[int, int]:
    """(visited regions, total regions)."""
    return sum(1 for r in records if r.visited), len(records)
