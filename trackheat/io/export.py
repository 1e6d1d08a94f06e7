"""
Result Export Utilities

Writes analysis results to disk: heatmap RGBA buffers and region maps as PNG,
region visits as CSV and intersections as JSON. Numeric columns use a fixed
decimal precision so exports diff cleanly between runs.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Union

import matplotlib
matplotlib.use("Agg")  # Headless backend
import matplotlib.pyplot as plt
from matplotlib.patches import PathPatch
from matplotlib.path import Path as MplPath
import numpy as np
import pandas as pd
from shapely.geometry import Polygon, shape
from shapely.geometry.polygon import orient

from trackheat.core.color.interpolation import REGION_THRESHOLDS, ThresholdTable, region_color_for_count, rgb_to_hex
from trackheat.core.models import IntersectionPoint, RegionVisitRecord
from trackheat.utils.error_handling import handle_specific_exceptions

logger = logging.getLogger(__name__)

DECIMAL_PRECISION = 6
UNVISITED_REGION_COLOR = "#d1d5db"

VISIT_COLUMNS = ["region_id", "region_name", "visited", "visit_count", "track_ids"]
INTERSECTION_COLUMNS = ["lat", "lon", "intensity", "track_count", "track_ids"]


def _ensure_parent(path: Union[str, Path]) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    return out


@handle_specific_exceptions((OSError,), error_context="Heatmap export")
def save_heatmap_png(rgba: np.ndarray, path: Union[str, Path]) -> str:
    """
    Save a colorized heatmap buffer as a PNG.

    Args:
        rgba: uint8 array of shape (height, width, 4)
        path: Output file

    Returns:
        Path of the written file
    """
    if rgba.ndim != 3 or rgba.shape[2] != 4:
        raise ValueError(f"Expected an RGBA image of shape (h, w, 4), got {rgba.shape}")
    if rgba.shape[0] == 0 or rgba.shape[1] == 0:
        raise ValueError("Cannot save an empty heatmap image")

    out = _ensure_parent(path)
    plt.imsave(out, rgba)
    logger.info(f"Saved heatmap PNG {rgba.shape[1]}x{rgba.shape[0]} to {out}")
    return str(out)


def visits_to_dataframe(records: Sequence[RegionVisitRecord]) -> pd.DataFrame:
    """One row per region; track ids are joined with ';' in sorted order."""
    rows = [
        {
            "region_id": r.region_id,
            "region_name": r.region_name,
            "visited": r.visited,
            "visit_count": r.visit_count,
            "track_ids": ";".join(sorted(r.track_ids)),
        }
        for r in records
    ]
    return pd.DataFrame(rows, columns=VISIT_COLUMNS)


def intersections_to_dataframe(intersections: Sequence[IntersectionPoint]) -> pd.DataFrame:
    """One row per intersection, most intense first."""
    rows = [
        {
            "lat": ip.lat,
            "lon": ip.lon,
            "intensity": ip.intensity,
            "track_count": len(ip.track_ids),
            "track_ids": ";".join(sorted(ip.track_ids)),
        }
        for ip in intersections
    ]
    df = pd.DataFrame(rows, columns=INTERSECTION_COLUMNS)
    if not df.empty:
        df = df.sort_values(["intensity", "lat", "lon"], ascending=[False, True, True]).reset_index(drop=True)
    return df


@handle_specific_exceptions((OSError,), error_context="Region visit export")
def write_visits_csv(records: Sequence[RegionVisitRecord], path: Union[str, Path]) -> str:
    """
    Export region visit records to CSV.

    Returns:
        Path of the written file
    """
    out = _ensure_parent(path)
    visits_to_dataframe(records).to_csv(out, index=False)
    logger.info(f"Wrote {len(records)} region visit rows to {out}")
    return str(out)


@handle_specific_exceptions((OSError,), error_context="Intersection export")
def write_intersections_csv(intersections: Sequence[IntersectionPoint], path: Union[str, Path]) -> str:
    out = _ensure_parent(path)
    intersections_to_dataframe(intersections).to_csv(
        out, index=False, float_format=f"%.{DECIMAL_PRECISION}f"
    )
    logger.info(f"Wrote {len(intersections)} intersection rows to {out}")
    return str(out)


@handle_specific_exceptions((OSError,), error_context="Intersection export")
def write_intersections_json(intersections: Sequence[IntersectionPoint], path: Union[str, Path]) -> str:
    """
    Export intersections as a JSON list of {lat, lon, intensity, track_ids}.

    Returns:
        Path of the written file
    """
    payload: List[dict] = [
        {
            "lat": round(ip.lat, DECIMAL_PRECISION),
            "lon": round(ip.lon, DECIMAL_PRECISION),
            "intensity": round(ip.intensity, DECIMAL_PRECISION),
            "track_ids": sorted(ip.track_ids),
        }
        for ip in intersections
    ]
    out = _ensure_parent(path)
    with out.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
    logger.info(f"Wrote {len(payload)} intersections to {out}")
    return str(out)


def _polygon_patch(polygon: Polygon, color: str) -> PathPatch:
    """Shell plus holes as one compound path; holes wind opposite to the shell."""
    polygon = orient(polygon, sign=1.0)
    rings = [polygon.exterior] + list(polygon.interiors)
    path = MplPath.make_compound_path(*[MplPath(np.asarray(ring.coords)[:, :2], closed=True) for ring in rings])
    return PathPatch(path, facecolor=color, edgecolor="#374151", linewidth=0.5)


@handle_specific_exceptions((OSError,), error_context="Region map export")
def save_region_map_png(
    records: Sequence[RegionVisitRecord],
    path: Union[str, Path],
    thresholds: Optional[ThresholdTable] = None,
    title: Optional[str] = None
) -> str:
    """
    Render region polygons colored by visit count.

    Unvisited regions are drawn in a neutral gray; records without geometry
    (or with empty geometry) are skipped.

    Returns:
        Path of the written file
    """
    table = thresholds if thresholds is not None else REGION_THRESHOLDS
    fig, ax = plt.subplots(figsize=(10, 8))
    try:
        drawn = 0
        for record in records:
            if not record.geometry:
                continue
            geom = shape(record.geometry)
            if geom.is_empty:
                continue
            polygons = list(geom.geoms) if geom.geom_type == "MultiPolygon" else [geom]
            if record.visit_count > 0:
                color = rgb_to_hex(region_color_for_count(record.visit_count, table))
            else:
                color = UNVISITED_REGION_COLOR
            for polygon in polygons:
                if not polygon.is_empty:
                    ax.add_patch(_polygon_patch(polygon, color))
            drawn += 1

        ax.autoscale_view()
        ax.set_aspect("equal", adjustable="datalim")
        ax.set_xlabel("Longitude")
        ax.set_ylabel("Latitude")
        if title:
            ax.set_title(title)

        out = _ensure_parent(path)
        fig.savefig(out, dpi=150, bbox_inches="tight")
    finally:
        plt.close(fig)

    logger.info(f"Saved region map with {drawn} regions to {out}")
    return str(out)
