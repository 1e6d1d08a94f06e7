"""
trackheat command line

Usage:
    python -m trackheat heatmap --gpx a.gpx b.gpx --zoom 12 --out heatmap.png
    python -m trackheat intersections --gpx a.gpx b.gpx --out intersections.json
    python -m trackheat regions --gpx a.gpx --regions counties.geojson --out visits.csv

Each run writes a log file to <output dir>/logs/trackheat.log unless
--log-dir points elsewhere.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from trackheat.common.config import TrackheatSettings, get_config_dir, load_settings
from trackheat.core.heatmap.accumulator import HeatmapAccumulator
from trackheat.core.heatmap.projection import (
    Viewport,
    WebMercatorProjector,
    filter_visible_tracks,
    viewport_for_tracks,
)
from trackheat.core.intersections.detector import detect_intersections
from trackheat.core.regions.analyzer import RegionVisitAnalyzer, summarize_visits
from trackheat.io.export import (
    save_heatmap_png,
    save_region_map_png,
    write_intersections_csv,
    write_intersections_json,
    write_visits_csv,
)
from trackheat.io.gpx import load_tracks
from trackheat.io.regions import load_regions
from trackheat.utils.constants import CONFIG_FILENAME, LOG_DATE_FORMAT, LOG_FORMAT
from trackheat.utils.error_handling import TrackheatError
from trackheat.utils.run_logging import RunLogHandler

logger = logging.getLogger(__name__)


def resolve_settings(config_path: Optional[str]) -> TrackheatSettings:
    """
    Settings for a run: the explicit --config file, else the default config
    file if present, else built-in defaults.
    """
    if config_path:
        return load_settings(config_path)
    default_path = get_config_dir() / CONFIG_FILENAME
    if default_path.exists():
        return load_settings(default_path)
    logger.info(f"No {CONFIG_FILENAME} found; using built-in defaults")
    return TrackheatSettings()


def run_heatmap(args: argparse.Namespace, settings: TrackheatSettings) -> int:
    tracks = load_tracks(args.gpx)
    zoom = args.zoom if args.zoom is not None else settings.heatmap.zoom_level

    bounds = (args.north, args.south, args.east, args.west)
    if all(b is not None for b in bounds):
        viewport = Viewport(
            north=args.north, south=args.south, east=args.east, west=args.west,
            zoom=zoom, width=args.width, height=args.height,
        )
    elif any(b is not None for b in bounds):
        logger.error("--north, --south, --east and --west must be given together")
        return 1
    else:
        viewport = viewport_for_tracks(tracks.values(), zoom, args.width, args.height)

    visible = filter_visible_tracks(tracks, viewport)
    logger.info(f"{len(visible)}/{len(tracks)} tracks intersect the viewport")

    project = WebMercatorProjector.for_viewport(viewport, pixel_density=settings.heatmap.pixel_density)
    accumulator = HeatmapAccumulator(args.width, args.height, settings.heatmap.line_thickness)
    segments = accumulator.add_tracks(visible, project)
    logger.info(f"Rasterized {segments} segments at zoom {zoom}")

    rgba = accumulator.colorize(zoom, settings.heatmap_thresholds())
    save_heatmap_png(rgba, args.out)
    return 0


def run_intersections(args: argparse.Namespace, settings: TrackheatSettings) -> int:
    tracks = load_tracks(args.gpx)
    cell_size = args.cell_size if args.cell_size is not None else settings.intersections.cell_size
    threshold = args.threshold if args.threshold is not None else settings.intersections.proximity_threshold

    intersections = detect_intersections(tracks, cell_size, threshold)

    out = Path(args.out)
    if out.suffix.lower() == ".csv":
        write_intersections_csv(intersections, out)
    else:
        write_intersections_json(intersections, out)
    return 0


def run_regions(args: argparse.Namespace, settings: TrackheatSettings) -> int:
    tracks = load_tracks(args.gpx)
    regions = load_regions(args.regions, args.id_property, args.name_property)

    def on_progress(percent: int, message: str) -> None:
        logger.debug(f"[{percent:3d}%] {message}")

    analyzer = RegionVisitAnalyzer(grid_size=settings.regions.grid_size)
    records = analyzer.analyze(tracks.values(), regions, on_progress)
    visited, total = summarize_visits(records)
    logger.info(f"{visited}/{total} regions visited")

    write_visits_csv(records, args.out)
    if args.map:
        save_region_map_png(records, args.map, settings.region_thresholds())
    return 0


COMMANDS = {
    "heatmap": run_heatmap,
    "intersections": run_intersections,
    "regions": run_regions,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trackheat",
        description="GPS track heatmaps, intersections and region visits",
    )

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument('--gpx', nargs='+', required=True, metavar='FILE', help='GPX track files')
    common.add_argument('--out', required=True, help='Output file')
    common.add_argument('--config', default=None, help=f'Path to {CONFIG_FILENAME} (default: config/{CONFIG_FILENAME})')
    common.add_argument(
        '--log-level',
        default='INFO',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Console log level (default: INFO)'
    )
    common.add_argument('--log-dir', default=None, help='Run log directory (default: <output dir>/logs)')

    sub = parser.add_subparsers(dest='command', required=True)

    heatmap = sub.add_parser('heatmap', parents=[common], help='Render a track heatmap PNG')
    heatmap.add_argument('--zoom', type=float, default=None, help='Map zoom level (default: from config)')
    heatmap.add_argument('--width', type=int, default=1024, help='Canvas width in pixels (default: 1024)')
    heatmap.add_argument('--height', type=int, default=1024, help='Canvas height in pixels (default: 1024)')
    for edge in ('north', 'south', 'east', 'west'):
        heatmap.add_argument(f'--{edge}', type=float, default=None, help=f'Viewport {edge} bound in degrees')

    intersections = sub.add_parser('intersections', parents=[common], help='Find where tracks cross')
    intersections.add_argument('--cell-size', type=float, default=None, help='Grid cell size in degrees')
    intersections.add_argument('--threshold', type=float, default=None, help='Proximity threshold in degrees')

    regions = sub.add_parser('regions', parents=[common], help='Count region visits')
    regions.add_argument('--regions', required=True, help='GeoJSON FeatureCollection of region polygons')
    regions.add_argument('--id-property', default='id', help='Feature property holding the region id')
    regions.add_argument('--name-property', default='name', help='Feature property holding the region name')
    regions.add_argument('--map', default=None, help='Optional PNG of regions colored by visit count')

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    level = getattr(logging, args.log_level)
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    # basicConfig is a no-op once handlers exist
    logging.getLogger().setLevel(level)
    log_dir = Path(args.log_dir) if args.log_dir else Path(args.out).parent / "logs"

    with RunLogHandler(args.command, log_dir):
        try:
            settings = resolve_settings(args.config)
            return COMMANDS[args.command](args, settings)
        except (TrackheatError, OSError, ValueError) as e:
            logger.error(f"{args.command} failed: {e}")
            return 1


if __name__ == "__main__":
    sys.exit(main())
