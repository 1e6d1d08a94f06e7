"""
Application Constants

This module contains all application-wide constants to avoid magic numbers
and improve maintainability. Values here are the defaults; config/trackheat.yml
overrides them at runtime.
"""

# Earth geometry
EARTH_RADIUS_KM = 6371.0
WEB_MERCATOR_TILE_SIZE = 256

# Heatmap rasterization
DEFAULT_LINE_THICKNESS = 2
DEFAULT_ZOOM_LEVEL = 10
CORE_THICKNESS_RATIO = 0.7  # inner 70% of the brush is solid, outer 30% falls off
DEFAULT_PIXEL_DENSITY = 1.0

# Zoom level at which the heatmap count needs no zoom correction
REFERENCE_ZOOM_LEVEL = 10.0

# Intersection detection (degrees)
DEFAULT_INTERSECTION_CELL_SIZE = 0.01
DEFAULT_PROXIMITY_THRESHOLD = 0.001
INTERSECTION_KEY_PRECISION = 4

# Region analysis
DEFAULT_REGION_GRID_SIZE = 0.1  # ~11 km cells

# Heatmap palette: normalized unique-activity count -> RGB
HEATMAP_COLOR_THRESHOLDS = [
    (1, (139, 0, 0)),        # dark red
    (2, (220, 20, 20)),      # red
    (10, (255, 100, 0)),     # orange-red
    (25, (255, 165, 0)),     # orange
    (50, (255, 255, 0)),     # yellow
    (150, (255, 255, 255)),  # white
]

# Region palette: visit count -> RGB
REGION_VISIT_THRESHOLDS = [
    (1, (34, 197, 94)),      # green
    (2, (234, 179, 8)),      # yellow
    (5, (249, 115, 22)),     # orange
    (10, (220, 38, 38)),     # red
    (20, (255, 255, 255)),   # white cap
]

# Intersection palette: intensity in [0, 1] -> hex color
INTERSECTION_INTENSITY_THRESHOLDS = [
    (0.0, "#0000FF"),
    (0.33, "#00FF00"),
    (0.66, "#FFFF00"),
    (1.0, "#FF0000"),
]

# Intersection line styling
HEATMAP_BASE_OPACITY = 0.5
HEATMAP_BASE_WEIGHT = 2.0
HEATMAP_WEIGHT_RANGE = 4.0

# Progress milestones reported by region analysis
PROGRESS_INDEX_BUILT = 10
PROGRESS_TRACKS_START = 20
PROGRESS_TRACKS_SPAN = 60
PROGRESS_FINALIZING = 85
PROGRESS_COMPLETE = 100

# Config
CONFIG_FILENAME = "trackheat.yml"
CONFIG_DIR_ENV = "TRACKHEAT_CONFIG_DIR"

# Logging
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
RUN_LOG_FILENAME = "trackheat.log"
