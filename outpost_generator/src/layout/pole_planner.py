from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

from outpost_generator.src.common.constants import (
    CONNECTION_POLE_COLOR,
    MEDIUM_POLE,
    POLE_COLOR,
    POLE_EFFECT_RADIUS,
    POLE_SIZE,
    POLE_TO_POLE_RADIUS,
)
from outpost_generator.src.common.diagnostics import ProgramDiagnostics
from outpost_generator.src.common.geometry import (
    Point,
    euclidean_distance,
    manhattan_distance,
    point_in_circle,
    points_to_lines,
    uniq_points,
)
from .inputs import FootprintInput, parse_footprints
from .layout_plan import PolePlacement, PoleResult, Visualization
from .tile_grid import GridIndexer, footprint_cells

"""Power pole placement for generated outposts.

How the algorithm works:

1. collect valid pole cells around every powered entity, dropping occupied cells

2. add poles one by one, prioritizing (most to least important):
   - nr of entities powered
   - distance from the average position of all powered entities
   and dropping poles that no longer have entities to power

3. form groups of poles from the DT lines shorter than the wire reach

4. connect groups together (DT), each iteration placing one new pole on the
   smallest group in the direction of its nearest neighbour group

DT = using delaunay triangulation to pick neighbours instead of trying all pairs
"""


@dataclass(frozen=True)
class PoleType:
    """Static data of a power pole prototype."""

    prototype: str
    size: int
    supply_radius: int
    wire_reach: int


MEDIUM_POLE_TYPE = PoleType(
    prototype=MEDIUM_POLE,
    size=POLE_SIZE,
    supply_radius=POLE_EFFECT_RADIUS,
    wire_reach=POLE_TO_POLE_RADIUS,
)


@dataclass(eq=False)
class PoleCandidate:
    """A free cell a pole could take and the entities it would power."""

    x: int
    y: int
    powered: List[int] = field(default_factory=list)
    dist_from_consumers: float = 0.0

    @property
    def power_given(self) -> int:
        return len(self.powered)


@dataclass(eq=False)
class PoleGroup:
    """Poles connected by wires; ``x``/``y`` is their centroid."""

    poles: List[Point] = field(default_factory=list)
    x: float = 0.0
    y: float = 0.0

    def update_centroid(self) -> None:
        self.x = sum(p.x for p in self.poles) / len(self.poles)
        self.y = sum(p.y for p in self.poles) / len(self.poles)


class PolePlanner:
    """Place poles powering every powered entity and wire them into one network."""

    def __init__(
        self,
        footprints: List[FootprintInput],
        diagnostics: ProgramDiagnostics,
        pole_type: PoleType = MEDIUM_POLE_TYPE,
    ) -> None:
        self.footprints = footprints
        self.diagnostics = diagnostics
        self.pole_type = pole_type

        # connection poles may be placed up to a wire reach away from any pole
        margin = pole_type.wire_reach + pole_type.supply_radius + pole_type.size
        self.grid = GridIndexer(
            (tile for fp in footprints for tile in footprint_cells(fp.position, fp.size)),
            margin=margin,
        )
        self.entity_cells: List[List[Point]] = [
            [self.grid.to_local(Point(*tile)) for tile in footprint_cells(fp.position, fp.size)]
            for fp in footprints
        ]
        self.entity_centres = [self.grid.to_local(fp.position) for fp in footprints]
        self.taken: Set[Point] = set()

    def is_free(self, point: Point) -> bool:
        return not self.grid.is_occupied(point) and point not in self.taken

    def candidates(self) -> List[PoleCandidate]:
        pole = self.pole_type
        cells = []
        for fp in self.footprints:
            if fp.powered:
                side = fp.size + pole.size * 2 + (pole.supply_radius - 1) * 2
                cells.extend(self.grid.to_local(Point(*t)) for t in footprint_cells(fp.position, side))

        cell_to_entity: Dict[Point, int] = {}
        for index, fp in enumerate(self.footprints):
            if fp.powered:
                for p in self.entity_cells[index]:
                    cell_to_entity[p] = index

        area = pole.size + pole.supply_radius * 2
        result = []
        for cell in uniq_points(p for p in cells if self.is_free(p)):
            powered: List[int] = []
            for dx, dy in (
                (i % area - area // 2, i // area - area // 2) for i in range(area * area)
            ):
                index = cell_to_entity.get(Point(cell.x + dx, cell.y + dy))
                if index is not None and index not in powered:
                    powered.append(index)
            if not powered:
                continue
            mid_x = sum(self.entity_centres[i].x for i in powered) / len(powered)
            mid_y = sum(self.entity_centres[i].y for i in powered) / len(powered)
            result.append(
                PoleCandidate(
                    x=cell.x,
                    y=cell.y,
                    powered=powered,
                    dist_from_consumers=abs(mid_x - cell.x) + abs(mid_y - cell.y),
                )
            )
        return result

    def select(self, candidates: List[PoleCandidate]) -> List[Point]:
        """Greedy cover of the powered entities; powered entities are struck from the rest."""
        by_entity: Dict[int, List[PoleCandidate]] = {}
        for candidate in candidates:
            for index in candidate.powered:
                by_entity.setdefault(index, []).append(candidate)

        remaining = list(candidates)
        poles: List[Point] = []
        while remaining:
            remaining.sort(key=lambda c: (-c.power_given, c.dist_from_consumers))
            pole = remaining.pop(0)
            poles.append(Point(pole.x, pole.y))

            for index in list(pole.powered):
                for other in by_entity.get(index, ()):
                    if index in other.powered:
                        other.powered.remove(index)
            remaining = [c for c in remaining if c.powered]
        return poles

    def group_poles(self, poles: List[Point]) -> List[PoleGroup]:
        """Group poles joined by Delaunay lines within wire reach; loose poles stand alone."""
        groups: List[PoleGroup] = []
        membership: Dict[Point, PoleGroup] = {}
        reach = self.pole_type.wire_reach

        for a, b in points_to_lines(poles):
            if a == b or not point_in_circle(a, b, reach):
                continue
            g1 = membership.get(a)
            g2 = membership.get(b)
            if g1 is None and g2 is None:
                group = PoleGroup(poles=[a, b])
                groups.append(group)
                membership[a] = membership[b] = group
            elif g1 is not None and g2 is None:
                g1.poles.append(b)
                membership[b] = g1
            elif g1 is None and g2 is not None:
                g2.poles.append(a)
                membership[a] = g2
            elif g1 is not g2:
                g1.poles.extend(g2.poles)
                for p in g2.poles:
                    membership[p] = g1
                groups.remove(g2)

        for pole in poles:
            if pole not in membership:
                groups.append(PoleGroup(poles=[pole]))
        return groups

    def _closest_pair(self, group: PoleGroup, other: PoleGroup) -> Optional[Tuple[float, Point, Point]]:
        own = set(group.poles)
        theirs = set(other.poles)
        best = None
        for a, b in points_to_lines(group.poles + other.poles):
            if a in own and b in theirs:
                pair = (euclidean_distance(a, b), a, b)
            elif b in own and a in theirs:
                pair = (euclidean_distance(a, b), b, a)
            else:
                continue
            if best is None or pair[0] < best[0]:
                best = pair
        return best

    def connect_groups(self, groups: List[PoleGroup]) -> Tuple[List[Point], List[Point]]:
        """Join the groups with connection poles; returns (all poles, connection poles)."""
        reach = self.pole_type.wire_reach
        offsets = [
            (dx, dy)
            for dy in range(-reach, reach + 1)
            for dx in range(-reach, reach + 1)
            if point_in_circle(Point(dx, dy), Point(0, 0), reach)
        ]

        connection_poles: List[Point] = []
        groups = list(groups)
        while len(groups) > 1:
            for g in groups:
                g.update_centroid()
            groups.sort(key=lambda g: len(g.poles))

            snapshot = list(groups)
            group = groups.pop(0)

            neighbours = [
                b if a is group else a
                for a, b in points_to_lines(snapshot)
                if a is not b and (a is group or b is group)
            ]
            # groups sharing a centroid are reduced to one point by the triangulation
            if not neighbours:
                neighbours = groups

            best = None
            for other in neighbours:
                pair = self._closest_pair(group, other)
                if pair is not None and (best is None or pair[0] < best[0][0]):
                    best = (pair, other)
            if best is None:
                groups.append(group)
                break

            (distance, own_pole, other_pole), other = best
            if distance > reach + 2:
                target = other_pole
            else:
                target = Point((own_pole.x + other_pole.x) / 2, (own_pole.y + other_pole.y) / 2)

            free = [
                Point(own_pole.x + dx, own_pole.y + dy)
                for dx, dy in offsets
                if self.is_free(Point(own_pole.x + dx, own_pole.y + dy))
            ]
            if not free:
                groups.append(group)
                break
            new_pole = min(free, key=lambda p: manhattan_distance(p, target))
            self.taken.add(new_pole)
            connection_poles.append(new_pole)

            if point_in_circle(new_pole, other_pole, reach):
                other.poles.extend(group.poles)
                other.poles.append(new_pole)
            else:
                group.poles.append(new_pole)
                groups.append(group)

        if len(groups) > 1:
            self.diagnostics.warning(
                f"{len(groups)} pole networks could not be connected", stage="poles"
            )
        return [p for g in groups for p in g.poles], connection_poles

    def plan(self) -> PoleResult:
        poles = self.select(self.candidates())
        self.taken.update(poles)
        all_poles, connection_poles = self.connect_groups(self.group_poles(poles))

        result = PoleResult(
            poles=[
                PolePlacement(position=self.grid.to_world(p), name=self.pole_type.prototype)
                for p in all_poles
            ],
            visualizations=[
                Visualization([self.grid.to_world(p) for p in poles], 16, 1.0, POLE_COLOR),
                Visualization(
                    [self.grid.to_world(p) for p in connection_poles], 16, 1.0, CONNECTION_POLE_COLOR
                ),
            ],
        )
        self.diagnostics.info(
            f"Placed {result.total_poles} poles ({len(connection_poles)} for connections)",
            stage="poles",
        )
        return result


def generate_poles(
    entities: Iterable[Any],
    diagnostics: Optional[ProgramDiagnostics] = None,
    pole_type: PoleType = MEDIUM_POLE_TYPE,
) -> PoleResult:
    """Power every powered entity and connect the poles into one network.

    ``entities`` are ``{position, size, powered}`` records; unpowered entities
    only block placement.
    """
    diagnostics = diagnostics or ProgramDiagnostics()
    footprints = parse_footprints(entities)
    if not any(fp.powered for fp in footprints):
        return PoleResult()
    return PolePlanner(footprints, diagnostics, pole_type).plan()
