from __future__ import annotations
from dataclasses import dataclass, field
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple

from outpost_generator.src.common.constants import PUMPJACK_PLUGS
from outpost_generator.src.common.geometry import Point, points_to_lines
from .inputs import PumpjackInput
from .pathfinding import find_path
from .tile_grid import GridIndexer

"""Candidate pumpjack pairs and the straight pipe connections between them."""


class Plug(NamedTuple):
    """A pumpjack output position on the local grid, with the side it faces."""

    x: int
    y: int
    direction: int

    @property
    def cell(self) -> Point:
        return Point(self.x, self.y)


@dataclass(eq=False)
class Pumpjack:
    """A pumpjack on the local grid.

    ``plug`` is the output chosen once the pumpjack joins a group; its
    direction becomes the pumpjack's final orientation.
    """

    id: int
    x: int
    y: int
    plugs: List[Plug]
    plug: Optional[Plug] = None


@dataclass
class Connection:
    """One way of linking two pumpjacks: a plug of each and the cells between them."""

    plugs: Tuple[Plug, Plug]
    path: List[Point]
    distance: int


@dataclass(eq=False)
class CandidateEdge:
    """A pair of neighbouring pumpjacks and every valid straight connection."""

    endpoints: Tuple[Pumpjack, Pumpjack]
    connections: List[Connection] = field(default_factory=list)

    @property
    def avg_distance(self) -> float:
        if not self.connections:
            return 0.0
        return sum(c.distance for c in self.connections) / len(self.connections)


def place_pumpjacks(pumpjacks: Iterable[PumpjackInput], grid: GridIndexer) -> List[Pumpjack]:
    """Move pumpjacks onto the local grid and keep only the plugs on free cells.

    Pumpjacks without a single free plug cannot be connected and are dropped.
    """
    placed = []
    for pumpjack in pumpjacks:
        pos = grid.to_local(pumpjack.position)
        plugs = [
            Plug(pos.x + dx, pos.y + dy, i * 2)
            for i, (dx, dy) in enumerate(PUMPJACK_PLUGS)
            if not grid.is_occupied(Point(pos.x + dx, pos.y + dy))
        ]
        if plugs:
            placed.append(Pumpjack(id=pumpjack.id, x=pos.x, y=pos.y, plugs=plugs))
    return placed


def path_from_line(a, b) -> Tuple[List[Point], int]:
    """Cells of the axis-aligned segment between ``a`` and ``b`` and its length.

    Cells are ordered by increasing coordinate. The caller guarantees that
    ``a`` and ``b`` share a row or a column.
    """
    dx = abs(a.x - b.x)
    dy = abs(a.y - b.y)
    min_x = min(a.x, b.x)
    min_y = min(a.y, b.y)
    if dx:
        path = [Point(min_x + i, a.y) for i in range(dx + 1)]
    else:
        path = [Point(a.x, min_y + i) for i in range(dy + 1)]
    return path, dx + dy


def is_path_free(path: Sequence, grid: GridIndexer) -> bool:
    return not any(grid.is_occupied(p) for p in path)


def straight_connections(a: Pumpjack, b: Pumpjack, grid: GridIndexer) -> List[Connection]:
    connections = []
    for plug_a in a.plugs:
        for plug_b in b.plugs:
            if plug_a.x != plug_b.x and plug_a.y != plug_b.y:
                continue
            path, distance = path_from_line(plug_a, plug_b)
            # check for other pumpjack collision
            if not is_path_free(path, grid):
                continue
            connections.append(Connection(plugs=(plug_a, plug_b), path=path, distance=distance))
    return connections


def build_candidate_edges(pumpjacks: Sequence[Pumpjack], grid: GridIndexer) -> List[CandidateEdge]:
    """Candidate edges between Delaunay neighbours that can be linked in a straight line."""
    edges = []
    for a, b in points_to_lines(pumpjacks):
        if a is b:
            continue
        connections = straight_connections(a, b, grid)
        if connections:
            edges.append(CandidateEdge(endpoints=(a, b), connections=connections))
    return edges


def best_fallback_connection(
    pumpjacks: Sequence[Pumpjack], grid: GridIndexer
) -> Optional[Tuple[Tuple[Pumpjack, Pumpjack], Connection]]:
    """Shortest pathfinder connection between any two neighbouring pumpjacks.

    Used when no pair can be linked in a straight line. Every plug pair of
    every Delaunay pair is routed; ``None`` if nothing is reachable.
    """
    best: Optional[Tuple[Tuple[Pumpjack, Pumpjack], Connection]] = None
    for a, b in points_to_lines(pumpjacks):
        if a is b:
            continue
        for plug_a in a.plugs:
            for plug_b in b.plugs:
                path = find_path(grid, plug_a, plug_b)
                if not path:
                    continue
                if best is None or len(path) < best[1].distance:
                    best = ((a, b), Connection(plugs=(plug_a, plug_b), path=path, distance=len(path)))
    return best
