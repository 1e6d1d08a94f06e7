"""
Spatial Grid Index

Uniform lat/lon grid that buckets track segments by the cell of their start
point. Neighborhood queries return the 3x3 block of cells around a cell,
which covers every segment that could be within the proximity threshold as
long as the cell size is at least that threshold.
"""

import math
from collections import defaultdict
from dataclasses import dataclass
from typing import DefaultDict, Iterable, Iterator, List, Tuple

from trackheat.core.models import Point
from trackheat.utils.constants import DEFAULT_INTERSECTION_CELL_SIZE

CellKey = Tuple[int, int]


@dataclass(frozen=True)
class TrackSegment:
    """Two consecutive points of a track, tagged with the owning track id."""
    p1: Point
    p2: Point
    track_id: str


class SpatialGridIndex:
    """
    Segment buckets keyed by integer (cell_x, cell_y).

    Args:
        cell_size: Cell edge length in degrees
    """

    def __init__(self, cell_size: float = DEFAULT_INTERSECTION_CELL_SIZE):
        if cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")
        self.cell_size = cell_size
        self._cells: DefaultDict[CellKey, List[TrackSegment]] = defaultdict(list)

    def __len__(self) -> int:
        return sum(len(bucket) for bucket in self._cells.values())

    def cell_of(self, lat: float, lon: float) -> CellKey:
        return (
            math.floor(lon / self.cell_size),
            math.floor(lat / self.cell_size),
        )

    def insert(self, segment: TrackSegment) -> CellKey:
        key = self.cell_of(segment.p1.lat, segment.p1.lon)
        self._cells[key].append(segment)
        return key

    def extend(self, segments: Iterable[TrackSegment]) -> None:
        for segment in segments:
            self.insert(segment)

    def cells(self) -> Iterator[Tuple[CellKey, List[TrackSegment]]]:
        """Iterate over non-empty cells and their segments."""
        return iter(self._cells.items())

    def bucket(self, key: CellKey) -> List[TrackSegment]:
        # .get keeps lookups of empty neighbors from creating buckets
        return self._cells.get(key, [])

    @staticmethod
    def neighbors(key: CellKey) -> List[CellKey]:
        """The cell itself and its eight adjacent cells."""
        x, y = key
        return [(x + dx, y + dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1)]

    def candidates(self, key: CellKey) -> Iterator[TrackSegment]:
        """Segments bucketed in the 3x3 neighborhood of a cell."""
        for neighbor in self.neighbors(key):
            yield from self.bucket(neighbor)
