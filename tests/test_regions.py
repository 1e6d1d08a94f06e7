"""
Unit tests for region geometry, the region grid and visit analysis.
"""

import numpy as np
import pytest

from trackheat.core.models import BoundingBox, Point, Region, Track
from trackheat.core.regions.analyzer import (
    RegionVisitAnalyzer,
    analyze_region_visits,
    clear_bounding_box_cache,
    clear_geometry_cache,
    summarize_visits,
    _bbox_cache,
    _geometry_cache,
)
from trackheat.core.regions.geometry import (
    GeometryCache,
    normalize_geometry,
    point_in_polygon,
    raycast_point_in_ring,
)
from trackheat.core.regions.spatial import BoundingBoxCache, RegionSpatialGrid

SQUARE_WITH_HOLE = {
    "type": "Polygon",
    "coordinates": [
        [[0, 0], [4, 0], [4, 4], [0, 4], [0, 0]],
        [[1, 1], [3, 1], [3, 3], [1, 3], [1, 1]],
    ],
}

TWO_SQUARES = {
    "type": "MultiPolygon",
    "coordinates": [
        [[[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]],
        [[[5, 5], [6, 5], [6, 6], [5, 6], [5, 5]]],
    ],
}


def track_of(track_id, *coords):
    """Track from (lat, lon) pairs."""
    return Track(id=track_id, name=track_id, points=[Point(lat=lat, lon=lon) for lat, lon in coords])


class TestPointInPolygon:
    """Test even-odd ray casting."""

    def test_point_inside_unit_square(self, unit_square_region):
        polygons = normalize_geometry(unit_square_region.geometry)
        assert point_in_polygon(0.5, 0.5, polygons)

    def test_point_outside_unit_square(self, unit_square_region):
        polygons = normalize_geometry(unit_square_region.geometry)
        assert not point_in_polygon(1.5, 0.5, polygons)
        assert not point_in_polygon(0.5, -0.5, polygons)

    def test_hole_is_excluded(self):
        polygons = normalize_geometry(SQUARE_WITH_HOLE)
        assert point_in_polygon(0.5, 0.5, polygons)
        assert not point_in_polygon(2.0, 2.0, polygons)
        assert point_in_polygon(3.5, 2.0, polygons)

    def test_multipolygon_is_union(self):
        polygons = normalize_geometry(TWO_SQUARES)
        assert len(polygons) == 2
        assert point_in_polygon(0.5, 0.5, polygons)
        assert point_in_polygon(5.5, 5.5, polygons)
        assert not point_in_polygon(3.0, 3.0, polygons)

    def test_concave_polygon(self):
        # U shape open to the north
        u_shape = {
            "type": "Polygon",
            "coordinates": [[[0, 0], [3, 0], [3, 3], [2, 3], [2, 1], [1, 1], [1, 3], [0, 3], [0, 0]]],
        }
        polygons = normalize_geometry(u_shape)
        assert point_in_polygon(2.0, 0.5, polygons)
        assert not point_in_polygon(2.0, 1.5, polygons)

    def test_degenerate_ring(self):
        assert not raycast_point_in_ring(0.0, 0.0, np.array([[0.0, 0.0], [1.0, 1.0]]))

    def test_unsupported_geometry_raises(self):
        with pytest.raises(ValueError):
            normalize_geometry({"type": "Point", "coordinates": [0, 0]})


class TestGeometryCaches:
    """Test the ring and bounding box caches."""

    def test_geometry_cache_fills_on_first_use(self, unit_square_region):
        cache = GeometryCache()
        assert "square" not in cache
        first = cache.get(unit_square_region)
        assert "square" in cache
        assert cache.get(unit_square_region) is first

    def test_geometry_cache_clear(self, unit_square_region):
        cache = GeometryCache()
        cache.get(unit_square_region)
        cache.clear()
        assert len(cache) == 0

    def test_region_without_geometry(self):
        region = Region(id="empty", name="Empty", geometry=None)
        assert GeometryCache().get(region) is None
        assert BoundingBoxCache().get(region) is None

    def test_empty_polygon_has_no_bounding_box(self):
        region = Region(id="blank", name="Blank", geometry={"type": "Polygon", "coordinates": []})
        cache = BoundingBoxCache()
        assert cache.get(region) is None
        assert "blank" not in cache

    def test_empty_polygon_is_not_indexed(self):
        region = Region(id="blank", name="Blank", geometry={"type": "Polygon", "coordinates": []})
        grid = RegionSpatialGrid([region], BoundingBoxCache(), grid_size=1.0)
        assert len(grid) == 0
        assert grid.candidates(0.5, 0.5) == []

    def test_bounding_box(self, unit_square_region):
        bbox = BoundingBoxCache().get(unit_square_region)
        assert bbox == BoundingBox(min_lat=0, max_lat=1, min_lon=0, max_lon=1)
        assert bbox.contains(0.5, 0.5)
        assert bbox.contains(1.0, 1.0)
        assert not bbox.contains(1.1, 0.5)

    def test_bounding_box_cache_clear(self, unit_square_region):
        cache = BoundingBoxCache()
        cache.get(unit_square_region)
        assert len(cache) == 1
        cache.clear()
        assert "square" not in cache


class TestRegionSpatialGrid:
    """Test region candidate lookup."""

    def test_rejects_non_positive_grid_size(self, unit_square_region):
        with pytest.raises(ValueError):
            RegionSpatialGrid([unit_square_region], BoundingBoxCache(), grid_size=0)

    def test_candidates_inside_region(self, unit_square_region):
        grid = RegionSpatialGrid([unit_square_region], BoundingBoxCache(), grid_size=0.1)
        assert grid.candidates(0.55, 0.55) == ["square"]

    def test_no_candidates_far_away(self, unit_square_region):
        grid = RegionSpatialGrid([unit_square_region], BoundingBoxCache(), grid_size=0.1)
        assert grid.candidates(10.0, 10.0) == []

    def test_candidates_are_deduplicated_in_order(self):
        a = Region(id="a", name="A", geometry={"type": "Polygon", "coordinates": [[[0, 0], [2, 0], [2, 2], [0, 2], [0, 0]]]})
        b = Region(id="b", name="B", geometry={"type": "Polygon", "coordinates": [[[1, 1], [3, 1], [3, 3], [1, 3], [1, 1]]]})
        grid = RegionSpatialGrid([a, b], BoundingBoxCache(), grid_size=1.0)
        assert grid.candidates(1.5, 1.5) == ["a", "b"]


class TestRegionVisitAnalyzer:
    """Test per-track region visit counting."""

    def test_single_point_inside(self, unit_square_region):
        records = RegionVisitAnalyzer().analyze([track_of("t1", (0.5, 0.5))], [unit_square_region])
        assert len(records) == 1
        assert records[0].visited is True
        assert records[0].visit_count == 1
        assert records[0].track_ids == {"t1"}

    def test_track_entirely_outside(self, unit_square_region):
        records = RegionVisitAnalyzer().analyze([track_of("t1", (2.0, 2.0), (3.0, 3.0))], [unit_square_region])
        assert records[0].visited is False
        assert records[0].visit_count == 0
        assert records[0].track_ids == set()

    def test_many_points_count_once_per_track(self, unit_square_region):
        track = track_of("t1", (0.1, 0.1), (0.2, 0.3), (0.5, 0.5), (0.7, 0.8), (0.9, 0.9))
        records = RegionVisitAnalyzer().analyze([track], [unit_square_region])
        assert records[0].visit_count == 1

    def test_leaving_and_reentering_counts_once(self, unit_square_region):
        track = track_of("t1", (0.5, 0.5), (2.0, 2.0), (0.5, 0.6))
        records = RegionVisitAnalyzer().analyze([track], [unit_square_region])
        assert records[0].visit_count == 1

    def test_each_track_counts(self, unit_square_region):
        tracks = [track_of("t1", (0.5, 0.5)), track_of("t2", (0.2, 0.2)), track_of("t3", (5.0, 5.0))]
        records = RegionVisitAnalyzer().analyze(tracks, [unit_square_region])
        assert records[0].visit_count == 2
        assert records[0].track_ids == {"t1", "t2"}

    def test_records_follow_region_order(self, unit_square_region):
        other = Region(id="other", name="Other", geometry=TWO_SQUARES)
        records = RegionVisitAnalyzer().analyze([track_of("t1", (5.5, 5.5))], [other, unit_square_region])
        assert [r.region_id for r in records] == ["other", "square"]
        assert records[0].visited is True
        assert records[1].visited is False

    def test_hole_is_not_visited(self):
        region = Region(id="donut", name="Donut", geometry=SQUARE_WITH_HOLE)
        records = RegionVisitAnalyzer().analyze([track_of("t1", (2.0, 2.0))], [region])
        assert records[0].visited is False

    def test_region_without_geometry_is_never_visited(self):
        region = Region(id="nowhere", name="Nowhere", geometry=None)
        records = RegionVisitAnalyzer().analyze([track_of("t1", (0.5, 0.5))], [region])
        assert records[0].visited is False
        assert records[0].geometry is None

    @pytest.mark.parametrize("geometry", [
        {"type": "Polygon", "coordinates": []},
        {"type": "MultiPolygon", "coordinates": []},
    ])
    def test_empty_geometry_is_never_visited(self, unit_square_region, geometry):
        blank = Region(id="blank", name="Blank", geometry=geometry)
        records = RegionVisitAnalyzer().analyze([track_of("t1", (0.5, 0.5))], [blank, unit_square_region])
        assert [r.region_id for r in records] == ["blank", "square"]
        assert records[0].visit_count == 0
        assert records[0].visited is False
        assert records[1].visit_count == 1

    def test_duplicate_region_ids_keep_first(self, unit_square_region):
        duplicate = Region(id="square", name="Duplicate", geometry=TWO_SQUARES)
        records = RegionVisitAnalyzer().analyze([track_of("t1", (0.5, 0.5))], [unit_square_region, duplicate])
        assert len(records) == 1
        assert records[0].region_name == "Unit Square"

    def test_empty_inputs(self, unit_square_region):
        analyzer = RegionVisitAnalyzer()
        assert analyzer.analyze([], []) == []
        records = analyzer.analyze([track_of("empty")], [unit_square_region])
        assert records[0].visit_count == 0

    def test_results_are_recomputed_each_call(self, unit_square_region):
        analyzer = RegionVisitAnalyzer()
        tracks = [track_of("t1", (0.5, 0.5))]
        analyzer.analyze(tracks, [unit_square_region])
        records = analyzer.analyze(tracks, [unit_square_region])
        assert records[0].visit_count == 1

    def test_caches_are_reused_until_cleared(self, unit_square_region):
        analyzer = RegionVisitAnalyzer()
        analyzer.analyze([track_of("t1", (0.5, 0.5))], [unit_square_region])
        assert "square" in analyzer.geometry_cache
        assert "square" in analyzer.bbox_cache
        analyzer.clear_caches()
        assert len(analyzer.geometry_cache) == 0
        assert len(analyzer.bbox_cache) == 0

    def test_progress_reports_reach_completion(self, unit_square_region):
        updates = []
        RegionVisitAnalyzer().analyze(
            [track_of("t1", (0.5, 0.5)), track_of("t2", (3.0, 3.0))],
            [unit_square_region],
            on_progress=lambda percent, message: updates.append(percent),
        )
        assert updates[0] == 10
        assert updates[-1] == 100
        assert updates == sorted(updates)

    def test_summarize_visits(self, unit_square_region):
        other = Region(id="other", name="Other", geometry=TWO_SQUARES)
        records = RegionVisitAnalyzer().analyze([track_of("t1", (0.5, 0.5))], [unit_square_region, other])
        assert summarize_visits(records) == (2, 2)
        records = RegionVisitAnalyzer().analyze([track_of("t1", (9.0, 9.0))], [unit_square_region, other])
        assert summarize_visits(records) == (0, 2)


class TestModuleLevelAnalysis:
    """Test the process-wide cache helpers."""

    def test_analyze_region_visits(self, unit_square_region):
        records = analyze_region_visits([track_of("t1", (0.5, 0.5))], [unit_square_region])
        assert records[0].visited is True
        assert "square" in _geometry_cache
        assert "square" in _bbox_cache

    def test_clear_functions(self, unit_square_region):
        analyze_region_visits([track_of("t1", (0.5, 0.5))], [unit_square_region])
        clear_geometry_cache()
        assert len(_geometry_cache) == 0
        assert len(_bbox_cache) == 1
        clear_bounding_box_cache()
        assert len(_bbox_cache) == 0

    def test_changed_geometry_needs_cache_clear(self, unit_square_region):
        analyze_region_visits([track_of("t1", (0.5, 0.5))], [unit_square_region])
        moved = Region(id="square", name="Unit Square", geometry=TWO_SQUARES)

        # stale cache still answers with the old geometry
        stale = analyze_region_visits([track_of("t1", (5.5, 5.5))], [moved])
        assert stale[0].visited is False

        clear_geometry_cache()
        clear_bounding_box_cache()
        fresh = analyze_region_visits([track_of("t1", (5.5, 5.5))], [moved])
        assert fresh[0].visited is True
