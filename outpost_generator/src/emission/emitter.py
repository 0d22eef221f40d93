"""
Blueprint emission for generated outposts.

This module turns an :class:`OutpostPlan` into actual Factorio entities using
the factorio-draftsman library to generate blueprint JSON.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple

from draftsman.blueprintable import Blueprint
from draftsman.classes.entity import Entity
from draftsman.constants import Direction
from draftsman.entity import new_entity  # Use draftsman's factory

from outpost_generator.src.common.constants import (
    DEFAULT_CONFIG,
    EAST,
    NORTH,
    PUMPJACK,
    SOUTH,
    WEST,
    GeneratorConfig,
)
from outpost_generator.src.common.diagnostics import ProgramDiagnostics
from outpost_generator.src.layout.inputs import PumpjackInput, parse_pumpjacks
from outpost_generator.src.layout.layout_plan import OutpostPlan

DIRECTIONS = {
    NORTH: Direction.NORTH,
    EAST: Direction.EAST,
    SOUTH: Direction.SOUTH,
    WEST: Direction.WEST,
}


class BlueprintEmitter:
    """Materialize an :class:`OutpostPlan` into a Factorio blueprint."""

    def __init__(
        self,
        config: GeneratorConfig = DEFAULT_CONFIG,
        diagnostics: Optional[ProgramDiagnostics] = None,
    ) -> None:
        self.config = config
        self.diagnostics = diagnostics or ProgramDiagnostics()
        self.blueprint = Blueprint()

    def emit(self, pumpjacks: Iterable, plan: OutpostPlan) -> Blueprint:
        """Emit a blueprint holding the rotated pumpjacks and everything the plan placed."""
        self.blueprint = Blueprint()
        self.blueprint.label = self.config.blueprint_label
        self.blueprint.version = (2, 0)

        rotations = {r.id: r.direction for r in plan.pipes.facilities_to_rotate}
        for pumpjack in parse_pumpjacks(pumpjacks):
            self._emit_pumpjack(pumpjack, rotations.get(pumpjack.id))

        for pipe in plan.pipes.pipes:
            self._add(pipe.name, (pipe.position.x, pipe.position.y), pipe.direction)

        if plan.beacons is not None:
            for beacon in plan.beacons.beacons:
                entity = self._add(beacon.name, (beacon.position.x, beacon.position.y))
                if entity is not None and self.config.beacon_module:
                    self._request_modules(entity, self.config.beacon_module)

        if plan.poles is not None and plan.poles.poles:
            for pole in plan.poles.poles:
                self._add(pole.name, (pole.position.x, pole.position.y))
            self._connect_poles()

        return self.blueprint

    def _emit_pumpjack(self, pumpjack: PumpjackInput, direction: Optional[int]) -> None:
        entity = self._add(
            PUMPJACK,
            (pumpjack.position.x, pumpjack.position.y),
            NORTH if direction is None else direction,
        )
        if entity is not None and self.config.pumpjack_module:
            self._request_modules(entity, self.config.pumpjack_module)

    def _add(
        self, name: str, position: Tuple[float, float], direction: int = NORTH
    ) -> Optional[Entity]:
        try:
            entity = new_entity(name)
        except Exception as exc:  # pragma: no cover - draftsman errors
            self.diagnostics.error(
                f"Failed to instantiate entity '{name}': {exc}", stage="emission"
            )
            return None

        entity.position = position
        if direction != NORTH:
            entity.direction = DIRECTIONS[direction]
        self.blueprint.entities.append(entity, copy=False)
        return entity

    def _request_modules(self, entity: Entity, module: str) -> None:
        count = self.config.modules_per_entity
        try:
            if hasattr(entity, "request_modules"):
                entity.request_modules(module, range(count))
            else:
                entity.set_item_request(module, count)
        except Exception as exc:  # pragma: no cover - draftsman errors
            self.diagnostics.warning(
                f"Could not add {count} x '{module}' to '{entity.name}': {exc}",
                stage="emission",
            )

    def _connect_poles(self) -> None:
        try:
            self.blueprint.generate_power_connections()
        except Exception as exc:  # pragma: no cover - draftsman warnings
            self.diagnostics.warning(
                f"Failed to auto-generate power connections: {exc}", stage="emission"
            )
