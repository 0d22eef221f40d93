from __future__ import annotations
from typing import Any, Iterable, List, Optional

from outpost_generator.src.common.constants import (
    BEACON_SIZE,
    DEFAULT_CONFIG,
    MIN_PUMPJACKS,
    PUMPJACK_SIZE,
    GeneratorConfig,
)
from outpost_generator.src.common.diagnostics import ProgramDiagnostics
from .beacon_planner import generate_beacons
from .inputs import FootprintInput, PumpjackInput, parse_pumpjacks
from .layout_plan import BeaconResult, OutpostPlan, PipeRoutingResult
from .pipe_router import generate_pipes
from .pole_planner import generate_poles

"""Outpost planning: pipes, then beacons, then power poles."""


class OutpostPlanner:
    """Run the generators in order, each one seeing what the previous placed."""

    def __init__(
        self,
        config: GeneratorConfig = DEFAULT_CONFIG,
        diagnostics: Optional[ProgramDiagnostics] = None,
    ) -> None:
        self.config = config
        self.diagnostics = diagnostics or ProgramDiagnostics()

    def plan(self, pumpjacks: Iterable[Any]) -> OutpostPlan:
        inputs = parse_pumpjacks(pumpjacks)
        self._check_count(len(inputs))

        pipes = generate_pipes(inputs, config=self.config, diagnostics=self.diagnostics)
        if not pipes.fully_connected:
            self.diagnostics.warning(
                "Pipe network is not fully connected", stage="planning"
            )

        plan = OutpostPlan(pipes=pipes)
        if self.config.beacons_enabled:
            plan.beacons = generate_beacons(
                self.beacon_entities(inputs, pipes),
                config=self.config,
                diagnostics=self.diagnostics,
            )
        if self.config.poles:
            plan.poles = generate_poles(
                self.pole_entities(inputs, pipes, plan.beacons),
                diagnostics=self.diagnostics,
            )
        return plan

    def _check_count(self, count: int) -> None:
        if count < MIN_PUMPJACKS:
            self.diagnostics.warning(
                f"Only {count} pumpjack(s) given; nothing to connect", stage="planning"
            )
        elif count > self.config.max_pumpjacks:
            self.diagnostics.warning(
                f"{count} pumpjacks exceed the recommended maximum of "
                f"{self.config.max_pumpjacks}; generation may be slow",
                stage="planning",
            )

    @staticmethod
    def beacon_entities(pumpjacks: List[PumpjackInput], pipes: PipeRoutingResult) -> List[FootprintInput]:
        entities = [
            FootprintInput(p.position, PUMPJACK_SIZE, provides_effect=True) for p in pumpjacks
        ]
        entities.extend(FootprintInput(p.position, 1) for p in pipes.pipes)
        return entities

    @staticmethod
    def pole_entities(
        pumpjacks: List[PumpjackInput],
        pipes: PipeRoutingResult,
        beacons: Optional[BeaconResult],
    ) -> List[FootprintInput]:
        entities = [FootprintInput(p.position, PUMPJACK_SIZE, powered=True) for p in pumpjacks]
        entities.extend(FootprintInput(p.position, 1) for p in pipes.pipes)
        if beacons is not None:
            entities.extend(
                FootprintInput(b.position, BEACON_SIZE, powered=True) for b in beacons.beacons
            )
        return entities


def generate_outpost(
    pumpjacks: Iterable[Any],
    config: GeneratorConfig = DEFAULT_CONFIG,
    diagnostics: Optional[ProgramDiagnostics] = None,
) -> OutpostPlan:
    return OutpostPlanner(config, diagnostics).plan(pumpjacks)
