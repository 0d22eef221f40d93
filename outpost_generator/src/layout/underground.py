from __future__ import annotations
import math
from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from outpost_generator.src.common.constants import (
    EAST,
    MAX_GAP_BETWEEN_UNDERGROUNDS,
    MIN_GAP_BETWEEN_UNDERGROUNDS,
    NORTH,
    SOUTH,
    WEST,
)
from outpost_generator.src.common.diagnostics import ProgramDiagnostics
from outpost_generator.src.common.geometry import Point, uniq_points
from .candidate_edges import Plug
from .layout_plan import PipePlacement, PipeRoutingInfo
from .pathfinding import compress_path
from .tile_grid import GridIndexer

"""Replacement of straight pipe runs by underground pipe pairs."""


_STEP = {NORTH: (0, -1), EAST: (1, 0), SOUTH: (0, 1), WEST: (-1, 0)}


def step(point, direction: int) -> Point:
    dx, dy = _STEP[direction % 8]
    return Point(point.x + dx, point.y + dy)


class UndergroundPipeOptimizer:
    """Post-process a finished pipe network into plain and underground pipes.

    Straight runs are cut at every intersection: every waypoint of every
    path and every cell shared by two paths. A run may start or end on a
    pumpjack plug only if no pipe sits beside that plug, otherwise its end
    cells stay plain pipe. Runs still long enough are split into pieces
    spanning at most ``max_gap + 2`` cells, each becoming one pair of
    underground pipes.
    """

    def __init__(
        self,
        grid: GridIndexer,
        min_gap: int = MIN_GAP_BETWEEN_UNDERGROUNDS,
        max_gap: int = MAX_GAP_BETWEEN_UNDERGROUNDS,
        diagnostics: Optional[ProgramDiagnostics] = None,
    ) -> None:
        self.grid = grid
        self.min_gap = min_gap
        self.max_gap = max_gap
        self.diagnostics = diagnostics or ProgramDiagnostics()

    @staticmethod
    def intersections(paths: Iterable[Sequence[Point]]) -> Set[Point]:
        """Waypoints of every path plus every cell used by more than one path."""
        cells: Set[Point] = set()
        seen: Dict[int, int] = {}
        for index, path in enumerate(paths):
            cells.update(compress_path(path))
            for cell in path:
                key = GridIndexer.key(cell)
                if seen.setdefault(key, index) != index:
                    cells.add(Point(cell.x, cell.y))
        return cells

    @staticmethod
    def valid_anchor_plugs(plugs: Iterable[Plug], pipe_cells: Set[Point]) -> Set[Point]:
        """Plug cells where an underground pipe may start.

        Plugs shared by two pumpjacks are excluded, as are plugs with a pipe
        on either side perpendicular to the plug direction.
        """
        ordered = sorted(plugs, key=lambda p: (p.x, p.y))
        anchors: Set[Point] = set()
        for i, plug in enumerate(ordered):
            if i > 0 and (ordered[i - 1].x, ordered[i - 1].y) == (plug.x, plug.y):
                continue
            if i < len(ordered) - 1 and (ordered[i + 1].x, ordered[i + 1].y) == (plug.x, plug.y):
                continue
            sides = (step(plug, plug.direction + 2), step(plug, plug.direction + 6))
            if any(side in pipe_cells for side in sides):
                continue
            anchors.add(plug.cell)
        return anchors

    def straight_segments(
        self, paths: Sequence[Sequence[Point]], anchors: Set[Point]
    ) -> List[List[Point]]:
        """Straight runs between intersections, trimmed to valid underground ends."""
        intersections = self.intersections(paths)
        segments: List[List[Point]] = []
        seen: Set[Tuple[Point, ...]] = set()

        for path in paths:
            # not len - 4 because one of the ends might be a valid anchor
            if len(path) - 3 < self.min_gap:
                continue

            indexes = [i for i, cell in enumerate(path) if cell in intersections]
            for start, end in zip(indexes, indexes[1:]):
                run = path[start : end + 1]
                trimmed = [
                    cell
                    for i, cell in enumerate(run)
                    if 0 < i < len(run) - 1 or cell in anchors
                ]
                if len(trimmed) < 2 or len(trimmed) - 2 < self.min_gap:
                    continue
                key = tuple(sorted(trimmed))
                if key in seen:
                    continue
                seen.add(key)
                segments.append(trimmed)

        return segments

    def underground_pairs(
        self, segment: Sequence[Point]
    ) -> List[Tuple[List[Point], Tuple[Point, int], Tuple[Point, int]]]:
        """Split a straight run into underground pairs.

        Returns ``(covered_cells, (start, direction), (end, direction))`` for
        every piece whose gap is at least ``min_gap``; shorter pieces stay
        plain pipe.
        """
        if self.max_gap + 2 <= 0:
            return []
        horizontal = segment[0].y == segment[1].y
        ordered = sorted(segment, key=lambda p: p.x if horizontal else p.y)

        pieces = math.ceil(len(ordered) / (self.max_gap + 2))
        piece_length = len(ordered) / pieces

        pairs = []
        for i in range(pieces):
            start = math.floor(piece_length * i)
            end = math.floor(piece_length * (i + 1)) - 1
            if end - start - 1 < self.min_gap:
                continue
            pairs.append(
                (
                    ordered[start : end + 1],
                    (ordered[start], WEST if horizontal else NORTH),
                    (ordered[end], EAST if horizontal else SOUTH),
                )
            )
        return pairs

    def optimize(
        self, plugs: Iterable[Plug], paths: Sequence[Sequence[Point]]
    ) -> Tuple[List[PipePlacement], PipeRoutingInfo]:
        pipe_cells = uniq_points(cell for path in paths for cell in path)
        anchors = self.valid_anchor_plugs(plugs, set(pipe_cells))

        replaced: Set[Point] = set()
        replaced_count = 0
        undergrounds: List[PipePlacement] = []
        for segment in self.straight_segments(paths, anchors):
            for covered, (start, start_dir), (end, end_dir) in self.underground_pairs(segment):
                if replaced.intersection(covered):
                    continue
                replaced.update(covered)
                replaced_count += len(covered)
                undergrounds.append(
                    PipePlacement("underground", self.grid.to_world(start), start_dir)
                )
                undergrounds.append(
                    PipePlacement("underground", self.grid.to_world(end), end_dir)
                )

        plain = [
            PipePlacement("plain", self.grid.to_world(cell), 0)
            for cell in pipe_cells
            if cell not in replaced
        ]

        info = PipeRoutingInfo(
            pipe_count=len(plain),
            underground_count=len(undergrounds),
            pipes_replaced_count=replaced_count,
        )
        if undergrounds:
            self.diagnostics.info(
                f"Replaced {replaced_count} pipes with {len(undergrounds)} underground pipes "
                f"(ratio {replaced_count / len(undergrounds):.2f})",
                stage="underground",
            )
        return plain + undergrounds, info
