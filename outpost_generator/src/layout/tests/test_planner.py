"""
Tests for layout/planner.py - Running the generators in order.
"""

from dataclasses import replace

from outpost_generator.src.common.constants import DEFAULT_CONFIG
from outpost_generator.src.common.diagnostics import ProgramDiagnostics
from outpost_generator.src.common.geometry import Point
from outpost_generator.src.layout.planner import OutpostPlanner, generate_outpost
from outpost_generator.src.layout.tile_grid import footprint_cells


PUMPJACKS = [
    {"id": 1, "position": {"x": 0.5, "y": 0.5}},
    {"id": 2, "position": {"x": 0.5, "y": 8.5}},
]


class TestOutpostPlanner:
    """Tests for OutpostPlanner.plan."""

    def setup_method(self):
        self.diagnostics = ProgramDiagnostics()
        self.plan = OutpostPlanner(DEFAULT_CONFIG, self.diagnostics).plan(PUMPJACKS)

    def test_all_layers_are_generated(self):
        assert self.plan.pipes.pipes
        assert self.plan.beacons is not None and self.plan.beacons.beacons
        assert self.plan.poles is not None and self.plan.poles.poles

    def test_layers_never_overlap(self):
        taken = set()
        for p in PUMPJACKS:
            taken |= set(footprint_cells(Point(p["position"]["x"], p["position"]["y"]), 3))
        pipe_tiles = {tuple(int(c - 0.5) for c in p.position) for p in self.plan.pipes.pipes}
        assert not pipe_tiles & taken
        taken |= pipe_tiles
        for beacon in self.plan.beacons.beacons:
            cells = set(footprint_cells(beacon.position, 3))
            assert not cells & taken
            taken |= cells
        for pole in self.plan.poles.poles:
            cell = set(footprint_cells(pole.position, 1))
            assert not cell & taken
            taken |= cell

    def test_no_warnings(self):
        assert self.diagnostics.warning_count() == 0

    def test_visualizations_of_every_layer(self):
        sizes = [v.size for v in self.plan.visualizations]
        assert 32 in sizes
        assert 16 in sizes

    def test_to_dict(self):
        data = self.plan.to_dict()
        assert set(data) == {"pipes", "beacons", "poles"}
        assert data["beacons"]["info"]["totalBeacons"] == self.plan.beacons.total_beacons


class TestPlannerConfig:
    """Layers switched off through the configuration."""

    def test_without_beacons(self):
        plan = generate_outpost(PUMPJACKS, replace(DEFAULT_CONFIG, beacons=False))
        assert plan.beacons is None
        assert plan.poles is not None

    def test_beacons_need_a_module(self):
        plan = generate_outpost(PUMPJACKS, replace(DEFAULT_CONFIG, beacon_module=None))
        assert plan.beacons is None

    def test_without_poles(self):
        plan = generate_outpost(PUMPJACKS, replace(DEFAULT_CONFIG, poles=False))
        assert plan.poles is None
        assert plan.to_dict()["poles"] is None


class TestPumpjackCount:
    """Counts outside the supported range only warn."""

    def test_single_pumpjack(self):
        diagnostics = ProgramDiagnostics()
        plan = generate_outpost(PUMPJACKS[:1], diagnostics=diagnostics)
        assert plan.pipes.pipes == []
        assert any("[planning]" in m for m in diagnostics.get_messages())

    def test_too_many_pumpjacks(self):
        diagnostics = ProgramDiagnostics()
        plan = generate_outpost(
            PUMPJACKS, replace(DEFAULT_CONFIG, max_pumpjacks=1), diagnostics
        )
        assert plan.pipes.pipes
        assert any("recommended maximum" in m for m in diagnostics.get_messages())
