"""
Line Rasterizer

Draws thick, anti-aliased line segments into a density accumulator. Each
stepped pixel along the segment stamps a circular brush: the inner 70% of
the radius adds a full count, the outer ring adds a linear falloff so edges
blend smoothly once the accumulator is colored.

The accumulator is a numpy array, either 2-D (height, width) indexed [y, x]
or flat (height * width) indexed y * width + x. Writes are additive, so
drawing the same segment twice doubles every touched cell.
"""

import math
from functools import lru_cache
from typing import Tuple

import numpy as np

from trackheat.utils.constants import CORE_THICKNESS_RATIO


def _round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +inf (pixel-center rounding)."""
    return int(math.floor(value + 0.5))


@lru_cache(maxsize=32)
def brush_kernel(thickness: float) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Precompute the brush stamp for a given thickness.

    Args:
        thickness: Brush radius in pixels

    Returns:
        Tuple (offset_x, offset_y, weight) of equal-length 1-D arrays. Only
        offsets with a positive weight are kept.
    """
    reach = int(math.ceil(thickness))
    core = math.floor(thickness * CORE_THICKNESS_RATIO)
    core_sq = core * core

    offsets = np.arange(-reach, reach + 1)
    ox, oy = np.meshgrid(offsets, offsets, indexing="xy")
    ox = ox.ravel()
    oy = oy.ravel()
    dist_sq = ox * ox + oy * oy

    inside = dist_sq <= thickness * thickness
    solid = dist_sq <= core_sq

    weight = np.zeros(dist_sq.shape, dtype=np.float64)
    weight[solid] = 1.0
    edge = inside & ~solid
    # sqrt only for the falloff ring
    weight[edge] = np.maximum(0.0, 1.0 - (np.sqrt(dist_sq[edge]) - core))

    keep = weight > 0
    kernel = (ox[keep], oy[keep], weight[keep])
    for arr in kernel:
        arr.setflags(write=False)
    return kernel


def draw_segment(
    accumulator: np.ndarray,
    width: int,
    height: int,
    x0: float,
    y0: float,
    x1: float,
    y1: float,
    thickness: float
) -> None:
    """
    Draw an anti-aliased line segment into the accumulator buffer.

    Endpoints are rounded to pixel centers; a segment that collapses to a
    single pixel contributes nothing. Pixels outside [0, width) x [0, height)
    are skipped.

    Args:
        accumulator: Density buffer, shape (height, width) or (height * width,)
        width: Canvas width in pixels
        height: Canvas height in pixels
        x0: Start x coordinate
        y0: Start y coordinate
        x1: End x coordinate
        y1: End y coordinate
        thickness: Line thickness radius in pixels
    """
    sx = _round_half_up(x0)
    sy = _round_half_up(y0)
    dx = _round_half_up(x1) - sx
    dy = _round_half_up(y1) - sy
    steps = max(abs(dx), abs(dy))

    if steps == 0:
        return

    # pixel centers along the line, one per step, endpoints included
    t = np.arange(steps + 1, dtype=np.float64) / steps
    cx = np.floor(sx + dx * t + 0.5).astype(np.int64)
    cy = np.floor(sy + dy * t + 0.5).astype(np.int64)

    ox, oy, weight = brush_kernel(thickness)
    px = (cx[:, None] + ox[None, :]).ravel()
    py = (cy[:, None] + oy[None, :]).ravel()
    w = np.broadcast_to(weight, (steps + 1, weight.size)).ravel()

    in_bounds = (px >= 0) & (px < width) & (py >= 0) & (py < height)
    if not in_bounds.any():
        return
    px = px[in_bounds]
    py = py[in_bounds]
    w = w[in_bounds]

    # np.add.at accumulates repeated indices (overlapping brush stamps)
    if accumulator.ndim == 2:
        np.add.at(accumulator, (py, px), w)
    else:
        np.add.at(accumulator, py * width + px, w)
