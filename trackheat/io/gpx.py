"""
GPX Track Loader

Parses GPX files into Track objects for the heatmap, intersection and region
analyses. Track points are read from every <trkpt> in document order;
elevation and timestamp are optional.
"""

import logging
import math
import xml.etree.ElementTree as ET
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from trackheat.core.models import Point, Track, TrackMetadata
from trackheat.utils.constants import EARTH_RADIUS_KM
from trackheat.utils.error_handling import TrackParseError, log_function_entry

logger = logging.getLogger(__name__)

GPX_NAMESPACES = (
    "http://www.topografix.com/GPX/1/1",
    "http://www.topografix.com/GPX/1/0",
)


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points in kilometers."""
    rlat1, rlon1, rlat2, rlon2 = map(math.radians, (lat1, lon1, lat2, lon2))
    dlat, dlon = rlat2 - rlat1, rlon2 - rlon1
    a = math.sin(dlat / 2) ** 2 + math.cos(rlat1) * math.cos(rlat2) * math.sin(dlon / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def track_distance_km(points: List[Point]) -> float:
    return sum(
        haversine_km(a.lat, a.lon, b.lat, b.lon)
        for a, b in zip(points, points[1:])
    )


def parse_gpx_time(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO 8601 GPX timestamp; unparseable values become None."""
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        logger.warning(f"Failed to parse GPX time '{value}'; ignoring it")
        return None


def _namespace(root: ET.Element) -> str:
    """'{uri}' prefix of the document, or '' for un-namespaced GPX."""
    if root.tag.startswith("{"):
        uri = root.tag[1:].split("}", 1)[0]
        if uri not in GPX_NAMESPACES:
            logger.debug(f"Unrecognized GPX namespace {uri}; reading it anyway")
        return f"{{{uri}}}"
    return ""


def _parse_float(value: Optional[str]) -> Optional[float]:
    if value is None or value.strip() == "":
        return None
    return float(value)


def parse_gpx_text(text: Union[str, bytes], track_id: str, fallback_name: str = "Unknown Track") -> Track:
    """
    Parse GPX document text into a Track.

    Args:
        text: GPX XML content
        track_id: Id to assign to the track
        fallback_name: Name used when the file has no <trk><name>

    Returns:
        Track with points, name and computed metadata

    Raises:
        TrackParseError: If the XML is malformed or a coordinate is not numeric
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise TrackParseError(f"Invalid GPX file for track {track_id}: {e}") from e

    ns = _namespace(root)

    track_name = fallback_name
    for trk in root.iter(f"{ns}trk"):
        name_elem = trk.find(f"{ns}name")
        if name_elem is not None and name_elem.text:
            track_name = name_elem.text.strip()
            break

    points: List[Point] = []
    skipped = 0
    try:
        for trkpt in root.iter(f"{ns}trkpt"):
            lat = _parse_float(trkpt.get("lat"))
            lon = _parse_float(trkpt.get("lon"))
            if lat is None or lon is None:
                skipped += 1
                continue
            ele_elem = trkpt.find(f"{ns}ele")
            time_elem = trkpt.find(f"{ns}time")
            points.append(Point(
                lat=lat,
                lon=lon,
                elevation=_parse_float(ele_elem.text) if ele_elem is not None else None,
                time=parse_gpx_time(time_elem.text) if time_elem is not None else None,
            ))
    except ValueError as e:
        raise TrackParseError(f"Invalid coordinate in GPX track {track_id}: {e}") from e

    if skipped:
        logger.warning(f"{track_id}: skipped {skipped} track points without lat/lon")

    times = [p.time for p in points if p.time is not None]
    metadata = TrackMetadata(
        distance_km=track_distance_km(points),
        duration_s=(times[-1] - times[0]).total_seconds() if len(times) >= 2 else None,
        date=times[0] if times else None,
    )

    logger.debug(f"{track_id}: parsed {len(points)} points, {metadata.distance_km:.3f} km")
    return Track(id=track_id, name=track_name, points=tuple(points), metadata=metadata)


def parse_gpx(path: Union[str, Path], track_id: Optional[str] = None) -> Track:
    """
    Parse a GPX file into a Track.

    Args:
        path: GPX file path
        track_id: Track id; defaults to the file stem

    Raises:
        FileNotFoundError: If the file does not exist
        TrackParseError: If the file is not valid GPX
    """
    filepath = Path(path)
    if not filepath.exists():
        raise FileNotFoundError(f"GPX file not found: {filepath}")
    return parse_gpx_text(
        filepath.read_bytes(),
        track_id=track_id or filepath.stem,
        fallback_name=filepath.name,
    )


@log_function_entry
def load_tracks(paths: Iterable[Union[str, Path]]) -> Dict[str, Track]:
    """
    Load several GPX files keyed by track id.

    Duplicate stems get a numeric suffix so every track keeps a unique id.
    """
    tracks: Dict[str, Track] = {}
    for path in paths:
        filepath = Path(path)
        if filepath.suffix.lower() != ".gpx":
            raise ValueError(f"Track file must have .gpx extension: {filepath}")
        track_id = filepath.stem
        suffix = 2
        while track_id in tracks:
            track_id = f"{filepath.stem}_{suffix}"
            suffix += 1
        track = parse_gpx(filepath, track_id)
        tracks[track.id] = track
        logger.info(f"Loaded {track.id}: {len(track.points)} points, {track.metadata.distance_km:.2f} km")
    return tracks
