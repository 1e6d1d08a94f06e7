"""
Heatmap Accumulator

Owns the per-viewport density buffer and drives the line rasterizer over
every segment of the visible tracks. The color pass reads the buffer back
through a read-only view and maps each count through the heatmap palette.

The buffer is reallocated whenever the viewport dimensions change; partial
reuse across sizes is never attempted.
"""

import logging
from typing import Callable, Iterable, Optional, Sequence, Tuple

import numpy as np

from trackheat.core.color.interpolation import (
    HEATMAP_THRESHOLDS,
    ThresholdTable,
    color_for,
    normalize_heatmap_count,
)
from trackheat.core.heatmap.rasterizer import draw_segment
from trackheat.core.models import Point, Track
from trackheat.utils.constants import DEFAULT_LINE_THICKNESS, REFERENCE_ZOOM_LEVEL

logger = logging.getLogger(__name__)

Projector = Callable[[float, float], Tuple[float, float]]


class HeatmapAccumulator:
    """
    Density buffer for one viewport.

    Args:
        width: Canvas width in pixels
        height: Canvas height in pixels
        thickness: Brush radius used for every segment
    """

    def __init__(self, width: int, height: int, thickness: int = DEFAULT_LINE_THICKNESS):
        self.thickness = thickness
        self.width = 0
        self.height = 0
        self.buffer = np.zeros((0, 0), dtype=np.float32)
        self.resize(width, height)

    @property
    def shape(self) -> Tuple[int, int]:
        return self.height, self.width

    def resize(self, width: int, height: int) -> None:
        """Reallocate a zeroed buffer for new canvas dimensions."""
        if width < 0 or height < 0:
            raise ValueError(f"Canvas dimensions must be non-negative, got {width}x{height}")
        self.width = int(width)
        self.height = int(height)
        self.buffer = np.zeros((self.height, self.width), dtype=np.float32)
        logger.debug(f"Allocated {self.width}x{self.height} heatmap buffer")

    def clear(self) -> None:
        self.buffer.fill(0.0)

    def add_track(self, points: Sequence[Point], project: Projector) -> int:
        """
        Rasterize every segment of one track.

        Args:
            points: Ordered track points
            project: lat/lon -> canvas (x, y) converter

        Returns:
            Number of segments handed to the rasterizer
        """
        if len(points) < 2:
            return 0

        pixels = [project(p.lat, p.lon) for p in points]
        for (x0, y0), (x1, y1) in zip(pixels, pixels[1:]):
            draw_segment(self.buffer, self.width, self.height, x0, y0, x1, y1, self.thickness)
        return len(pixels) - 1

    def add_tracks(self, tracks: Iterable[Track], project: Projector) -> int:
        """Rasterize all tracks; returns the total number of segments drawn."""
        total_segments = 0
        track_count = 0
        for track in tracks:
            total_segments += self.add_track(track.points, project)
            track_count += 1
        logger.info(
            f"Rasterized {total_segments} segments from {track_count} tracks "
            f"into {self.width}x{self.height} buffer"
        )
        return total_segments

    def merge(self, other: "HeatmapAccumulator") -> None:
        """
        Add another accumulator's counts into this one.

        Accumulation is commutative, so per-worker partial buffers can be
        drawn independently and summed here.
        """
        if other.shape != self.shape:
            raise ValueError(
                f"Cannot merge {other.width}x{other.height} buffer into {self.width}x{self.height}"
            )
        self.buffer += other.buffer

    def view(self) -> np.ndarray:
        """Read-only view of the density buffer, shape (height, width)."""
        view = self.buffer.view()
        view.setflags(write=False)
        return view

    def total(self) -> float:
        return float(self.buffer.sum(dtype=np.float64))

    def colorize(
        self,
        zoom_level: float = REFERENCE_ZOOM_LEVEL,
        thresholds: Optional[ThresholdTable] = None
    ) -> np.ndarray:
        """
        Run the color pass over the buffer.

        Args:
            zoom_level: Map zoom used to normalize counts
            thresholds: Color table (defaults to the heatmap palette)

        Returns:
            uint8 RGBA image of shape (height, width, 4); empty pixels are transparent
        """
        table = thresholds if thresholds is not None else HEATMAP_THRESHOLDS
        rgba = np.zeros((self.height, self.width, 4), dtype=np.uint8)

        filled = self.buffer > 0
        if not filled.any():
            return rgba

        # many pixels share a count; color each distinct value once
        values, inverse = np.unique(self.buffer[filled], return_inverse=True)
        palette = np.array(
            [
                color_for(normalize_heatmap_count(float(v), zoom_level, self.thickness), table)
                for v in values
            ],
            dtype=np.uint8,
        )
        rgba[filled, :3] = palette[inverse.ravel()]
        rgba[filled, 3] = 255
        return rgba
