from __future__ import annotations
import math
from typing import Iterable, List, NamedTuple, Sequence, Tuple, TypeVar

import numpy as np
from scipy.spatial import Delaunay, QhullError

"""Point helpers and the Delaunay proximity heuristic."""


class Point(NamedTuple):
    x: float
    y: float


P = TypeVar("P")


def _xy(p) -> Tuple[float, float]:
    return (p.x, p.y)


def manhattan_distance(p0, p1) -> float:
    return abs(p0.x - p1.x) + abs(p0.y - p1.y)


def euclidean_distance(p0, p1) -> float:
    return math.hypot(p0.x - p1.x, p0.y - p1.y)


def point_in_circle(point, origin, radius: float) -> bool:
    return (origin.x - point.x) ** 2 + (origin.y - point.y) ** 2 <= radius * radius


def uniq_points(points: Iterable[P]) -> List[P]:
    """Return the points sorted by (x, y), keeping the first of each position."""
    ordered = sorted(points, key=_xy)
    result: List[P] = []
    for p in ordered:
        if result and _xy(result[-1]) == _xy(p):
            continue
        result.append(p)
    return result


def square_offsets(size: int) -> List[Tuple[int, int]]:
    """Offsets of a ``size`` x ``size`` square centred on the origin, row by row."""
    half = size // 2
    return [(i % size - half, i // size - half) for i in range(size * size)]


def _are_collinear(points: Sequence) -> bool:
    x0, y0 = _xy(points[0])
    x1, y1 = _xy(points[1])
    for p in points[2:]:
        x, y = _xy(p)
        if (x1 - x0) * (y - y0) - (y1 - y0) * (x - x0) != 0:
            return False
    return True


def _chain(points: Sequence[P]) -> List[Tuple[P, P]]:
    return [(points[i - 1], points[i]) for i in range(1, len(points))]


def points_to_lines(nodes: Iterable[P]) -> List[Tuple[P, P]]:
    """Create lines between points based on a Delaunay triangulation.

    Points sharing a position are reduced to the first one in (x, y) order.
    A single point yields a line to itself, two points a single line and
    collinear points the chain of neighbours in sorted order.

    Lines are returned in a deterministic order: sorted by the indices of
    their endpoints within the sorted unique points.
    """
    filtered = uniq_points(nodes)

    if not filtered:
        return []
    if len(filtered) == 1:
        return [(filtered[0], filtered[0])]
    if len(filtered) == 2 or _are_collinear(filtered):
        return _chain(filtered)

    coords = np.array([_xy(p) for p in filtered], dtype=float)
    try:
        triangulation = Delaunay(coords)
    except QhullError:
        return _chain(filtered)

    edges = set()
    for simplex in triangulation.simplices:
        a, b, c = (int(i) for i in simplex)
        for i, j in ((a, b), (b, c), (c, a)):
            edges.add((min(i, j), max(i, j)))

    return [(filtered[i], filtered[j]) for i, j in sorted(edges)]
