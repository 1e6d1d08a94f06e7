"""
Pytest configuration for trackheat tests.

Shared fixtures: crossing and distant track pairs, a unit square region,
and small GPX/GeoJSON files written to tmp_path.
"""

import json

import pytest

from trackheat.core.models import Point, Region, Track
from trackheat.core.regions.analyzer import clear_bounding_box_cache, clear_geometry_cache

UNIT_SQUARE = {
    "type": "Polygon",
    "coordinates": [[[0, 0], [1, 0], [1, 1], [0, 1], [0, 0]]],
}

SAMPLE_GPX = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="trackheat-tests" xmlns="http://www.topografix.com/GPX/1/1">
  <trk>
    <name>Morning Ride</name>
    <trkseg>
      <trkpt lat="45.0000" lon="10.0000"><ele>100.0</ele><time>2024-05-01T08:00:00Z</time></trkpt>
      <trkpt lat="45.0000" lon="10.0050"><ele>101.5</ele><time>2024-05-01T08:01:00Z</time></trkpt>
      <trkpt lat="45.0000" lon="10.0100"><ele>103.0</ele><time>2024-05-01T08:02:00Z</time></trkpt>
    </trkseg>
  </trk>
</gpx>
"""


def horizontal_line(lat, lon_start, steps, step=0.0005):
    """Points along a parallel, west to east."""
    return [Point(lat=lat, lon=round(lon_start + i * step, 6)) for i in range(steps + 1)]


def vertical_line(lon, lat_start, steps, step=0.0005):
    """Points along a meridian, south to north."""
    return [Point(lat=round(lat_start + i * step, 6), lon=lon) for i in range(steps + 1)]


def gpx_document(points, name="Test Track"):
    trkpts = "\n".join(
        f'      <trkpt lat="{p.lat}" lon="{p.lon}"></trkpt>' for p in points
    )
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<gpx version="1.1" creator="trackheat-tests" xmlns="http://www.topografix.com/GPX/1/1">\n'
        f'  <trk>\n    <name>{name}</name>\n    <trkseg>\n{trkpts}\n    </trkseg>\n  </trk>\n'
        '</gpx>\n'
    )


@pytest.fixture(autouse=True)
def clear_region_caches():
    """Module-level region caches must not leak between tests."""
    clear_geometry_cache()
    clear_bounding_box_cache()
    yield
    clear_geometry_cache()
    clear_bounding_box_cache()


@pytest.fixture
def crossing_tracks():
    """Two dense tracks forming a plus sign centered on (45.0, 10.005)."""
    return {
        "east_west": horizontal_line(45.0, 10.0, 20),
        "south_north": vertical_line(10.005, 44.995, 20),
    }


@pytest.fixture
def distant_tracks():
    """Two parallel tracks a full degree apart."""
    return {
        "north": horizontal_line(46.0, 10.0, 20),
        "south": horizontal_line(45.0, 10.0, 20),
    }


@pytest.fixture
def unit_square_region():
    return Region(id="square", name="Unit Square", geometry=UNIT_SQUARE)


@pytest.fixture
def sample_gpx_file(tmp_path):
    path = tmp_path / "morning_ride.gpx"
    path.write_text(SAMPLE_GPX, encoding="utf-8")
    return path


@pytest.fixture
def crossing_gpx_files(tmp_path, crossing_tracks):
    paths = []
    for track_id, points in crossing_tracks.items():
        path = tmp_path / f"{track_id}.gpx"
        path.write_text(gpx_document(points, name=track_id), encoding="utf-8")
        paths.append(path)
    return paths


@pytest.fixture
def regions_geojson_file(tmp_path):
    """Two adjacent squares covering the crossing tracks' western half and beyond."""
    collection = {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "properties": {"id": "west", "name": "West Block", "country": "IT", "admin_level": 6},
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [[[9.9, 44.9], [10.003, 44.9], [10.003, 45.1], [9.9, 45.1], [9.9, 44.9]]],
                },
            },
            {
                "type": "Feature",
                "properties": {"id": "far", "name": "Far Block"},
                "geometry": {
                    "type": "Polygon",
                    "coordinates": [[[20, 50], [21, 50], [21, 51], [20, 51], [20, 50]]],
                },
            },
        ],
    }
    path = tmp_path / "regions.geojson"
    path.write_text(json.dumps(collection), encoding="utf-8")
    return path


@pytest.fixture
def horizontal():
    return horizontal_line


@pytest.fixture
def vertical():
    return vertical_line


@pytest.fixture
def write_gpx(tmp_path):
    """Write a point list to <tmp_path>/<subdir>/<name>.gpx."""
    def write(name, points, subdir=None):
        directory = tmp_path / subdir if subdir else tmp_path
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{name}.gpx"
        path.write_text(gpx_document(points, name=name), encoding="utf-8")
        return path
    return write


@pytest.fixture
def track_factory():
    def make(track_id, points, name=None):
        return Track(id=track_id, name=name or track_id, points=points)
    return make
