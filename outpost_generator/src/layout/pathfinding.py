from __future__ import annotations
from collections import deque
from typing import Dict, List, Optional, Sequence

from outpost_generator.src.common.geometry import Point
from .tile_grid import GridIndexer

"""Breadth-first grid pathfinding and path compression."""


# North, east, south, west
NEIGHBOUR_OFFSETS = ((0, -1), (1, 0), (0, 1), (-1, 0))


def find_path(grid: GridIndexer, start, end) -> List[Point]:
    """Shortest 4-connected path from ``start`` to ``end`` over free cells.

    Both endpoints are included. Returns an empty list when either endpoint
    is occupied or the target cannot be reached. Neighbours are expanded in
    north, east, south, west order, which fixes the path chosen among equally
    short ones.
    """
    start = Point(start.x, start.y)
    end = Point(end.x, end.y)
    if grid.is_occupied(start) or grid.is_occupied(end):
        return []

    parents: Dict[Point, Optional[Point]] = {start: None}
    queue = deque([start])

    while queue:
        node = queue.popleft()
        if node == end:
            return _backtrace(parents, node)

        for dx, dy in NEIGHBOUR_OFFSETS:
            neighbour = Point(node.x + dx, node.y + dy)
            if neighbour in parents or grid.is_occupied(neighbour):
                continue
            parents[neighbour] = node
            queue.append(neighbour)

    return []


def _backtrace(parents: Dict[Point, Optional[Point]], node: Point) -> List[Point]:
    path = [node]
    parent = parents[node]
    while parent is not None:
        path.append(parent)
        parent = parents[parent]
    path.reverse()
    return path


def compress_path(path: Sequence) -> List[Point]:
    """Reduce a path to its waypoints: both ends and every cell where it turns."""
    if len(path) < 3:
        return [Point(p.x, p.y) for p in path]

    compressed = [Point(path[0].x, path[0].y)]
    last_dx = path[1].x - path[0].x
    last_dy = path[1].y - path[0].y

    for i in range(2, len(path)):
        dx = path[i].x - path[i - 1].x
        dy = path[i].y - path[i - 1].y
        if (dx, dy) != (last_dx, last_dy):
            compressed.append(Point(path[i - 1].x, path[i - 1].y))
        last_dx, last_dy = dx, dy

    compressed.append(Point(path[-1].x, path[-1].y))
    return compressed


def turn_count(path: Sequence) -> int:
    """Number of direction changes along ``path``; negative for paths under two cells."""
    return len(compress_path(path)) - 2
