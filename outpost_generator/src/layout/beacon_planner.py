from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

from outpost_generator.src.common.constants import (
    BEACON_COLOR,
    BEACON_EFFECT_RADIUS,
    BEACON_SIZE,
    DEFAULT_CONFIG,
    GeneratorConfig,
)
from outpost_generator.src.common.diagnostics import ProgramDiagnostics
from outpost_generator.src.common.geometry import Point, manhattan_distance, uniq_points
from .inputs import FootprintInput, parse_footprints
from .layout_plan import BeaconPlacement, BeaconResult, Visualization
from .tile_grid import GridIndexer, footprint_cells

"""Greedy beacon placement around effect-receiving entities.

How the algorithm works:

1. collect valid beacon cells by searching a square around every entity that
   receives the effect, dropping cells occupied by any entity

2. every 3x3 area made only of valid cells is a possible beacon

3. score the possible beacons: affected entities, average distance to them
   and the number of other possible beacons they overlap

4. add beacons one by one, prioritizing (most to least important):
   - nr of affected entities
   - if (nr of affected entities == 1)
       - then: farthest beacons from the entity
       - else: least nr of overlaps
   and dropping every possible beacon that shares a cell with an added one
"""


# Effect area side, centred on the beacon
EFFECT_AREA = BEACON_SIZE + BEACON_EFFECT_RADIUS * 2


@dataclass(eq=False)
class BeaconCandidate:
    """A possible beacon: centre cell, its footprint and its score."""

    x: int
    y: int
    footprint: List[Point]
    affected: List[int] = field(default_factory=list)
    avg_distance: float = 0.0
    overlap_count: int = 0

    @property
    def effects_given(self) -> int:
        return len(self.affected)

    def sort_key(self):
        # single-coverage beacons are pushed to the periphery
        secondary = -self.avg_distance if self.effects_given == 1 else self.overlap_count
        return (-self.effects_given, secondary, self.x, self.y)


def search_square(position: Point, size: int) -> List[Point]:
    """Cells where a beacon footprint may start to still reach an entity."""
    side = size + BEACON_SIZE * 2 + (BEACON_EFFECT_RADIUS - 1) * 2
    return [Point(*cell) for cell in footprint_cells(position, side)]


class BeaconPlanner:
    """Enumerate, score and greedily select disjoint beacons."""

    def __init__(
        self,
        footprints: List[FootprintInput],
        min_affected_entities: int,
        diagnostics: ProgramDiagnostics,
    ) -> None:
        self.footprints = footprints
        self.min_affected_entities = min_affected_entities
        self.diagnostics = diagnostics

        # wide enough for the search square and a footprint starting at its edge
        margin = BEACON_SIZE + BEACON_EFFECT_RADIUS * 2
        self.grid = GridIndexer(
            (tile for fp in footprints for tile in footprint_cells(fp.position, fp.size)),
            margin=margin,
        )
        self.entity_cells: List[List[Point]] = [
            [self.grid.to_local(Point(*tile)) for tile in footprint_cells(fp.position, fp.size)]
            for fp in footprints
        ]
        self.entity_centres: List[Point] = [self.grid.to_local(fp.position) for fp in footprints]

    def valid_cells(self) -> Set[Point]:
        cells = []
        for fp in self.footprints:
            if fp.provides_effect:
                cells.extend(self.grid.to_local(p) for p in search_square(fp.position, fp.size))
        return {p for p in cells if not self.grid.is_occupied(p)}

    def candidates(self) -> List[BeaconCandidate]:
        """Every possible beacon, scored, with ``effects_given >= min_affected_entities``."""
        valid = self.valid_cells()

        possible: List[BeaconCandidate] = []
        for origin in uniq_points(valid):
            footprint = [
                Point(origin.x + i % BEACON_SIZE, origin.y + i // BEACON_SIZE)
                for i in range(BEACON_SIZE * BEACON_SIZE)
            ]
            if all(p in valid for p in footprint):
                half = BEACON_SIZE // 2
                possible.append(
                    BeaconCandidate(x=origin.x + half, y=origin.y + half, footprint=footprint)
                )

        by_cell: Dict[Point, List[BeaconCandidate]] = {}
        for candidate in possible:
            for p in candidate.footprint:
                by_cell.setdefault(p, []).append(candidate)

        cell_to_entity: Dict[Point, int] = {}
        for index, fp in enumerate(self.footprints):
            if fp.provides_effect:
                for p in self.entity_cells[index]:
                    cell_to_entity[p] = index

        reach = EFFECT_AREA // 2
        for candidate in possible:
            candidate.affected = self._affected(candidate, cell_to_entity, reach)
            if candidate.affected:
                centre = Point(candidate.x, candidate.y)
                candidate.avg_distance = sum(
                    manhattan_distance(self.entity_centres[i], centre) for i in candidate.affected
                ) / len(candidate.affected)
            overlapping = {id(c) for p in candidate.footprint for c in by_cell[p]}
            candidate.overlap_count = len(overlapping) - 1

        return [c for c in possible if c.effects_given >= self.min_affected_entities]

    def _affected(
        self, candidate: BeaconCandidate, cell_to_entity: Dict[Point, int], reach: int
    ) -> List[int]:
        x0, x1 = candidate.x - reach, candidate.x + reach
        y0, y1 = candidate.y - reach, candidate.y + reach

        seen: Set[int] = set()
        affected = []
        for y in range(y0, y1 + 1):
            for x in range(x0, x1 + 1):
                index = cell_to_entity.get(Point(x, y))
                if index is None or index in seen:
                    continue
                seen.add(index)
                # partially covered entities get no effect
                if all(x0 <= c.x <= x1 and y0 <= c.y <= y1 for c in self.entity_cells[index]):
                    affected.append(index)
        return affected

    def select(self, candidates: List[BeaconCandidate]) -> List[BeaconCandidate]:
        """Greedy disjoint selection; scores never change, so one sort suffices."""
        taken: Set[Point] = set()
        selected = []
        for candidate in sorted(candidates, key=BeaconCandidate.sort_key):
            if any(p in taken for p in candidate.footprint):
                continue
            selected.append(candidate)
            taken.update(candidate.footprint)
        return selected

    def plan(self) -> BeaconResult:
        selected = self.select(self.candidates())
        centres = [self.grid.to_world(Point(b.x, b.y)) for b in selected]

        result = BeaconResult(
            beacons=[
                BeaconPlacement(position=centre, effects_given=b.effects_given)
                for centre, b in zip(centres, selected)
            ],
            visualizations=[Visualization(centres, 16, 1.0, BEACON_COLOR)],
        )
        self.diagnostics.info(
            f"Placed {result.total_beacons} beacons giving {result.total_effects_given} effects",
            stage="beacons",
        )
        return result


def generate_beacons(
    entities: Iterable[Any],
    min_affected_entities: Optional[int] = None,
    config: GeneratorConfig = DEFAULT_CONFIG,
    diagnostics: Optional[ProgramDiagnostics] = None,
) -> BeaconResult:
    """Place beacons around the entities that receive their effect.

    Args:
        entities: ``{position, size, provides_effect}`` records; entities
            without the flag only block placement
        min_affected_entities: overrides ``config.min_affected_entities``
        config: generator settings
        diagnostics: collector for statistics

    Returns:
        Disjoint beacons, each affecting at least ``min_affected_entities``
        entities.
    """
    diagnostics = diagnostics or ProgramDiagnostics()
    threshold = (
        config.min_affected_entities if min_affected_entities is None else min_affected_entities
    )

    footprints = parse_footprints(entities)
    if not any(fp.provides_effect for fp in footprints):
        return BeaconResult()

    return BeaconPlanner(footprints, threshold, diagnostics).plan()
