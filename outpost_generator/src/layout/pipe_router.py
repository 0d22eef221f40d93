"""Pipe network generation between pumpjacks.

How the algorithm works:

1. form candidate edges between pumpjacks (DT)
   an edge can only be formed if the 2 pumpjacks can be connected in a straight line

2. form groups from the edges, prioritizing (most to least important):
   - group building (the edge contains an already added pumpjack)
   - how far the edge is from the middle
   - edge connections (the nr of ways the 2 pumpjacks can be connected)
   - average distance of the edge connections

3. connect groups together (DT), prioritizing groups with the shortest paths

4. add leftover pumpjacks (those that couldn't form edges) to the final group

5. generate pipes and underground pipes

DT = using delaunay triangulation to pick neighbours instead of trying all pairs
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from tqdm import tqdm

from outpost_generator.src.common.constants import (
    BASE_MAX_TURNS,
    DEFAULT_CONFIG,
    MAX_NEAREST_CELLS,
    MAX_PATHFINDER_LINES,
    PUMPJACK_SIZE,
    GeneratorConfig,
)
from outpost_generator.src.common.diagnostics import ProgramDiagnostics
from outpost_generator.src.common.geometry import (
    Point,
    manhattan_distance,
    points_to_lines,
)
from .candidate_edges import (
    CandidateEdge,
    Connection,
    Pumpjack,
    best_fallback_connection,
    build_candidate_edges,
    is_path_free,
    path_from_line,
    place_pumpjacks,
)
from .inputs import parse_pumpjacks
from .layout_plan import FacilityRotation, PipeRoutingResult, Visualization
from .pathfinding import find_path, turn_count
from .tile_grid import GridIndexer
from .underground import UndergroundPipeOptimizer


@dataclass(eq=False)
class Group:
    """Connected pumpjacks and the paths joining them; ``x``/``y`` is their centroid."""

    entities: List[Pumpjack] = field(default_factory=list)
    paths: List[List[Point]] = field(default_factory=list)
    x: float = 0.0
    y: float = 0.0

    def update_centroid(self) -> None:
        if not self.entities:
            return
        self.x = sum(e.x for e in self.entities) / len(self.entities)
        self.y = sum(e.y for e in self.entities) / len(self.entities)

    @property
    def path_length(self) -> int:
        return sum(len(p) for p in self.paths)

    def cells(self) -> List[Point]:
        """Distinct path cells in path order."""
        seen = set()
        result = []
        for path in self.paths:
            for cell in path:
                if cell not in seen:
                    seen.add(cell)
                    result.append(cell)
        return result


@dataclass
class GroupLink:
    """Shortest acceptable path from a group to ``target``."""

    target: Any
    path: List[Point]
    distance: int


class PipeRouter:
    """Grow groups of pumpjacks from candidate edges and join them into one network."""

    def __init__(
        self,
        grid: GridIndexer,
        pumpjacks: Sequence[Pumpjack],
        config: GeneratorConfig = DEFAULT_CONFIG,
        diagnostics: Optional[ProgramDiagnostics] = None,
    ) -> None:
        self.grid = grid
        self.pumpjacks = list(pumpjacks)
        self.config = config
        self.diagnostics = diagnostics or ProgramDiagnostics()
        self.middle = grid.middle

        self.groups: List[Group] = []
        self.final_group: Optional[Group] = None
        self.disconnected: List[Group] = []
        self.visualizations: List[Visualization] = []
        self._membership: Dict[Pumpjack, Group] = {}

    def add_visualization(
        self,
        path: Iterable[Point],
        size: int = 32,
        alpha: float = 1.0,
        color: Optional[int] = None,
    ) -> None:
        self.visualizations.append(
            Visualization([self.grid.to_world(p) for p in path], size, alpha, color)
        )

    # ------------------------------------------------------------------
    # Group forming
    # ------------------------------------------------------------------

    def _continues_group(self, edge: CandidateEdge) -> bool:
        for side, pumpjack in enumerate(edge.endpoints):
            if pumpjack not in self._membership:
                continue
            if any(c.plugs[side].direction == pumpjack.plug.direction for c in edge.connections):
                return True
        return False

    def edge_sort_key(self, edge: CandidateEdge) -> Tuple[int, float, int, float]:
        a, b = edge.endpoints
        spread = manhattan_distance(a, self.middle) + manhattan_distance(b, self.middle)
        return (
            0 if self._continues_group(edge) else 1,
            -spread,
            len(edge.connections),
            edge.avg_distance,
        )

    def ordered_connections(self, edge: CandidateEdge) -> List[Connection]:
        return sorted(
            edge.connections,
            key=lambda c: (c.distance, manhattan_distance(c.plugs[0], self.middle)),
        )

    def _new_group(self, entities: List[Pumpjack], path: List[Point]) -> Group:
        group = Group(entities=list(entities), paths=[path])
        self.groups.append(group)
        for entity in entities:
            self._membership[entity] = group
        return group

    def _join(self, group: Group, entity: Pumpjack, path: List[Point]) -> None:
        group.entities.append(entity)
        group.paths.append(path)
        self._membership[entity] = group

    def apply_edge(self, edge: CandidateEdge) -> bool:
        """Use the best applicable connection of ``edge``; False if none applies."""
        a, b = edge.endpoints
        group_a = self._membership.get(a)
        group_b = self._membership.get(b)

        for conn in self.ordered_connections(edge):
            plug_a, plug_b = conn.plugs
            if group_a is None and group_b is None:
                a.plug, b.plug = plug_a, plug_b
                self._new_group([a, b], conn.path)
                return True
            if group_a is None and group_b is not None and b.plug.direction == plug_b.direction:
                a.plug = plug_a
                self._join(group_b, a, conn.path)
                return True
            if group_b is None and group_a is not None and a.plug.direction == plug_a.direction:
                b.plug = plug_b
                self._join(group_a, b, conn.path)
                return True
        return False

    def form_groups(self, edges: List[CandidateEdge]) -> List[Group]:
        remaining = list(edges)
        with tqdm(
            total=len(remaining), desc="Forming groups", disable=not self.config.show_progress
        ) as progress:
            while remaining:
                remaining.sort(key=self.edge_sort_key)
                edge = remaining.pop(0)
                self.apply_edge(edge)
                progress.update(1)

        # if no edges were usable, add 2 pumpjacks to a group here
        # this will only happen when only a few pumpjacks need to be connected
        if not self.groups:
            fallback = best_fallback_connection(self.pumpjacks, self.grid)
            if fallback is not None:
                (a, b), conn = fallback
                a.plug, b.plug = conn.plugs
                self._new_group([a, b], conn.path)

        for group in self.groups:
            self.add_visualization(group.cells(), 32, 0.5)

        self.diagnostics.info(
            f"Formed {len(self.groups)} groups from {len(edges)} candidate edges",
            stage="routing",
        )
        return self.groups

    # ------------------------------------------------------------------
    # Group connection
    # ------------------------------------------------------------------

    def _link_cells(
        self, cells0: Sequence[Point], cells1: Sequence[Point], max_turns: int
    ) -> Optional[Tuple[int, List[Point]]]:
        """Shortest acceptable path between two cell sets, as ``(distance, path)``.

        Straight unobstructed lines between cells sharing a row or column are
        preferred on equal distance; then the few shortest Delaunay lines
        across the two sets are routed by the pathfinder and accepted when
        they turn at least once and at most ``max_turns`` times.
        """
        best: Optional[Tuple[int, List[Point]]] = None

        by_x: Dict[int, List[int]] = {}
        by_y: Dict[int, List[int]] = {}
        for i, cell in enumerate(cells1):
            by_x.setdefault(cell.x, []).append(i)
            by_y.setdefault(cell.y, []).append(i)

        for coord in cells0:
            matches = sorted(set(by_x.get(coord.x, ())) | set(by_y.get(coord.y, ())))
            for i in matches:
                found = cells1[i]
                distance = manhattan_distance(found, coord)
                if best is not None and distance >= best[0]:
                    continue
                path, distance = path_from_line(found, coord)
                if is_path_free(path, self.grid):
                    best = (distance, path)

        # optimization for spread out pumpjacks
        if len(cells0) == 1:
            origin = cells0[0]
            nearest = sorted(cells1, key=lambda c: manhattan_distance(c, origin))[:MAX_NEAREST_CELLS]
        else:
            nearest = list(cells1)

        set0 = set(cells0)
        set1 = set(cells1)
        lines = [
            (p, q)
            for p, q in points_to_lines(list(cells0) + nearest)
            # filter out lines that are in the same group
            if not ((p in set0 and q in set0) or (p in set1 and q in set1))
        ]
        lines.sort(key=lambda l: manhattan_distance(l[0], l[1]))

        routed: Optional[Tuple[int, int, List[Point]]] = None
        for p, q in lines[:MAX_PATHFINDER_LINES]:
            # a routed path is always one cell longer than the manhattan distance
            if best is not None and manhattan_distance(p, q) + 1 >= best[0]:
                continue
            path = find_path(self.grid, p, q)
            turns = turn_count(path)
            if not 0 < turns <= max_turns:
                continue
            if routed is None or (len(path), turns) < routed[:2]:
                routed = (len(path), turns, path)

        if routed is not None and (best is None or routed[0] < best[0]):
            best = (routed[0], routed[2])
        return best

    def path_between_groups(
        self, targets: Sequence[Any], cells: Sequence[Point], max_turns: int = BASE_MAX_TURNS
    ) -> Optional[GroupLink]:
        """Link ``cells`` to the nearest reachable target (a :class:`Group` or a :class:`Plug`)."""
        best: Optional[GroupLink] = None
        for target in targets:
            target_cells = target.cells() if isinstance(target, Group) else [target.cell]
            link = self._link_cells(target_cells, cells, max_turns)
            if link is None:
                continue
            if best is None or link[0] < best.distance:
                best = GroupLink(target=target, path=link[1], distance=link[0])
        return best

    @staticmethod
    def neighbour_groups(groups: Sequence[Group], group: Group) -> List[Group]:
        """Delaunay neighbours of ``group`` by centroid; groups sharing its centroid count too."""
        by_position: Dict[Tuple[float, float], List[Group]] = {}
        for g in groups:
            by_position.setdefault((g.x, g.y), []).append(g)

        own = (group.x, group.y)
        neighbours: List[Group] = []
        for p, q in points_to_lines(groups):
            ends = ((p.x, p.y), (q.x, q.y))
            if own not in ends or ends[0] == ends[1]:
                continue
            other = ends[1] if ends[0] == own else ends[0]
            neighbours.extend(by_position[other])
        neighbours.extend(g for g in by_position[own] if g is not group)
        return neighbours

    def _absorb(self, target: Group, group: Group, path: List[Point]) -> None:
        target.entities.extend(group.entities)
        target.paths.extend(group.paths)
        target.paths.append(path)
        for entity in group.entities:
            self._membership[entity] = target

    def connect_groups(self) -> Optional[Group]:
        """Merge groups smallest-first until one remains.

        Groups that cannot reach a neighbour are set aside; once only one
        active group is left they get another round with one more allowed
        turn, up to ``max_tries`` times. Whatever is still set aside after
        that stays disconnected.
        """
        tries = self.config.max_tries
        groups = list(self.groups)
        alone: List[Group] = []
        final: Optional[Group] = None

        while groups:
            for g in groups:
                g.update_centroid()
            groups.sort(key=lambda g: g.path_length)

            snapshot = list(groups)
            group = groups.pop(0)
            if not groups:
                if alone and tries:
                    groups.extend(alone)
                    groups.append(group)
                    alone = []
                    tries -= 1
                    continue
                final = group
                break

            max_turns = BASE_MAX_TURNS + self.config.max_tries - tries
            link = self.path_between_groups(
                self.neighbour_groups(snapshot, group), group.cells(), max_turns
            )
            if link is None:
                alone.append(group)
                continue

            self._absorb(link.target, group, link.path)
            self.add_visualization(link.path, 16, 0.5)

        self.final_group = final
        self.disconnected = alone
        if alone:
            self.diagnostics.warning(
                f"{len(alone)} group(s) could not be connected to the pipe network",
                stage="routing",
            )
        return final

    # ------------------------------------------------------------------
    # Leftover pumpjacks
    # ------------------------------------------------------------------

    def attach_leftovers(self) -> None:
        leftovers = sorted(
            (p for p in self.pumpjacks if p not in self._membership),
            key=lambda p: manhattan_distance(p, self.middle),
        )

        for pumpjack in leftovers:
            link = None
            if self.final_group is not None:
                link = self.path_between_groups(pumpjack.plugs, self.final_group.cells())

            if link is None:
                self.diagnostics.warning(
                    f"Pumpjack {pumpjack.id} could not be connected", stage="routing"
                )
                group = Group(entities=[pumpjack])
                self._membership[pumpjack] = group
                self.disconnected.append(group)
                continue

            pumpjack.plug = link.target
            self._join(self.final_group, pumpjack, link.path)
            self.add_visualization(link.path, 8, 0.5)

    def route(self) -> List[Group]:
        """Run every routing stage; returns the final group first, then any disconnected ones."""
        edges = build_candidate_edges(self.pumpjacks, self.grid)
        self.form_groups(edges)
        self.connect_groups()
        self.attach_leftovers()

        result = [self.final_group] if self.final_group is not None else []
        return result + self.disconnected

    @property
    def fully_connected(self) -> bool:
        return self.final_group is not None and not self.disconnected


def generate_pipes(
    pumpjacks: Iterable[Any],
    min_gap_between_undergrounds: Optional[int] = None,
    config: GeneratorConfig = DEFAULT_CONFIG,
    diagnostics: Optional[ProgramDiagnostics] = None,
) -> PipeRoutingResult:
    """Connect pumpjacks with pipes and underground pipes.

    Args:
        pumpjacks: ``{id, position}`` records (mappings or objects)
        min_gap_between_undergrounds: overrides ``config.min_gap_between_undergrounds``
        config: generator settings
        diagnostics: collector for warnings and statistics

    Returns:
        The pipes, the pumpjack rotations and statistics. The network is
        best-effort: ``fully_connected`` is False when some pumpjacks could
        not be reached.
    """
    diagnostics = diagnostics or ProgramDiagnostics()
    min_gap = (
        config.min_gap_between_undergrounds
        if min_gap_between_undergrounds is None
        else min_gap_between_undergrounds
    )

    inputs = parse_pumpjacks(pumpjacks)
    if not inputs:
        return PipeRoutingResult()

    grid = GridIndexer.from_footprints([p.position for p in inputs], PUMPJACK_SIZE)
    placed = place_pumpjacks(inputs, grid)
    all_placed = len(placed) == len(inputs)
    if not all_placed:
        diagnostics.warning(
            f"{len(inputs) - len(placed)} pumpjack(s) have no free output and were skipped",
            stage="routing",
        )
    if len(placed) < 2:
        return PipeRoutingResult(fully_connected=all_placed)

    router = PipeRouter(grid, placed, config, diagnostics)
    groups = router.route()

    entities = [e for g in groups for e in g.entities]
    paths = [p for g in groups for p in g.paths]

    optimizer = UndergroundPipeOptimizer(
        grid, min_gap, config.max_gap_between_undergrounds, diagnostics
    )
    pipes, info = optimizer.optimize([e.plug for e in entities if e.plug is not None], paths)

    rotations = [
        FacilityRotation(id=e.id, direction=e.plug.direction)
        for e in entities
        if e.plug is not None
    ]

    diagnostics.info(
        f"Pipes: {info.pipe_count}, underground pipes: {info.underground_count}, "
        f"pipes replaced by underground pipes: {info.pipes_replaced_count}",
        stage="routing",
    )

    return PipeRoutingResult(
        facilities_to_rotate=rotations,
        pipes=pipes,
        info=info,
        visualizations=router.visualizations,
        fully_connected=router.fully_connected and all_placed,
    )
