"""Local grid indexing and footprint occupancy tracking."""

import math
from typing import Iterable, List, Tuple

import numpy as np

from outpost_generator.src.common.constants import GRID_MARGIN, GRID_STRIDE
from outpost_generator.src.common.geometry import Point, square_offsets


def footprint_cells(position, size: int) -> List[Tuple[int, int]]:
    """World tiles covered by a square entity of ``size`` centred on ``position``."""
    cx = math.floor(position.x)
    cy = math.floor(position.y)
    return [(cx + dx, cy + dy) for dx, dy in square_offsets(size)]


class GridIndexer:
    """Shifts world tiles onto a dense, non-negative local grid.

    The offset is the smallest occupied tile minus ``margin`` on each axis,
    so every occupied tile and a ``margin`` wide border around them map to
    valid array indices. Occupancy is written once on construction; the
    generators only read it afterwards.

    Tiles outside the grid are reported as occupied.
    """

    def __init__(self, occupied_tiles: Iterable[Tuple[int, int]], margin: int = GRID_MARGIN):
        tiles = list(occupied_tiles)
        self.margin = margin

        if tiles:
            min_x = min(t[0] for t in tiles)
            min_y = min(t[1] for t in tiles)
            max_x = max(t[0] for t in tiles) + 1
            max_y = max(t[1] for t in tiles) + 1
        else:
            min_x = min_y = max_x = max_y = 0

        self.offset: Tuple[int, int] = (min_x - margin, min_y - margin)
        self.width = max_x - min_x + margin * 2
        self.height = max_y - min_y + margin * 2
        self.middle = Point(margin + (max_x - min_x) / 2, margin + (max_y - min_y) / 2)

        self.grid = np.zeros((self.height, self.width), dtype=bool)
        for tile in tiles:
            local = self.to_local(Point(*tile))
            self.grid[local.y, local.x] = True

    @classmethod
    def from_footprints(cls, positions: Iterable, size: int, margin: int = GRID_MARGIN) -> "GridIndexer":
        """Build a grid occupied by square footprints centred on ``positions``."""
        tiles = [tile for position in positions for tile in footprint_cells(position, size)]
        return cls(tiles, margin=margin)

    def to_local(self, point) -> Point:
        return Point(math.floor(point.x) - self.offset[0], math.floor(point.y) - self.offset[1])

    def to_world(self, point) -> Point:
        """Centre of the world tile matching a local cell."""
        return Point(point.x + self.offset[0] + 0.5, point.y + self.offset[1] + 0.5)

    def in_bounds(self, point) -> bool:
        return 0 <= point.x < self.width and 0 <= point.y < self.height

    def is_occupied(self, point) -> bool:
        if not self.in_bounds(point):
            return True
        return bool(self.grid[point.y, point.x])

    @staticmethod
    def key(point) -> int:
        """Integer key of a local cell, unique while coordinates stay below the stride."""
        return point.x * GRID_STRIDE + point.y
