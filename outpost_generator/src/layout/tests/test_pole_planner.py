"""
Tests for layout/pole_planner.py - Pole selection, grouping and group connection.
"""

import math

from outpost_generator.src.common.constants import MEDIUM_POLE
from outpost_generator.src.common.diagnostics import ProgramDiagnostics
from outpost_generator.src.common.geometry import Point, euclidean_distance
from outpost_generator.src.layout.pole_planner import (
    MEDIUM_POLE_TYPE,
    PoleGroup,
    PolePlanner,
    generate_poles,
)
from outpost_generator.src.layout.tile_grid import footprint_cells


def _powered(x, y, size=3):
    return {"position": {"x": x, "y": y}, "size": size, "powered": True}


def _tile(position):
    return (math.floor(position.x), math.floor(position.y))


def _occupied(entities):
    return {
        tile
        for e in entities
        for tile in footprint_cells(Point(e["position"]["x"], e["position"]["y"]), e["size"])
    }


def _is_connected(positions, reach):
    if not positions:
        return True
    seen = {0}
    stack = [0]
    while stack:
        current = positions[stack.pop()]
        for index, other in enumerate(positions):
            if index not in seen and euclidean_distance(current, other) <= reach:
                seen.add(index)
                stack.append(index)
    return len(seen) == len(positions)


class TestPoleType:
    """Tests for the medium pole prototype data."""

    def test_medium_pole(self):
        assert MEDIUM_POLE_TYPE.prototype == MEDIUM_POLE
        assert (MEDIUM_POLE_TYPE.size, MEDIUM_POLE_TYPE.supply_radius) == (1, 3)
        assert MEDIUM_POLE_TYPE.wire_reach == 9


class TestPoleGroup:
    """Tests for PoleGroup."""

    def test_centroid(self):
        group = PoleGroup(poles=[Point(0, 0), Point(4, 2)])
        group.update_centroid()
        assert (group.x, group.y) == (2, 1)


class TestGroupPoles:
    """Tests for PolePlanner.group_poles."""

    def test_groups_within_reach(self):
        planner = PolePlanner([], ProgramDiagnostics())
        groups = planner.group_poles([Point(0, 0), Point(5, 0), Point(30, 0)])
        assert sorted(sorted(g.poles) for g in groups) == [
            [Point(0, 0), Point(5, 0)],
            [Point(30, 0)],
        ]

    def test_single_pole(self):
        planner = PolePlanner([], ProgramDiagnostics())
        (group,) = planner.group_poles([Point(3, 3)])
        assert group.poles == [Point(3, 3)]


class TestSinglePumpjack:
    """One powered pumpjack needs exactly one pole."""

    ENTITIES = [_powered(0.5, 0.5)]

    def setup_method(self):
        self.result = generate_poles(self.ENTITIES)

    def test_one_pole(self):
        assert self.result.total_poles == 1
        assert self.result.poles[0].name == MEDIUM_POLE

    def test_pole_powers_the_pumpjack(self):
        x, y = _tile(self.result.poles[0].position)
        assert any(
            abs(x - tx) <= 3 and abs(y - ty) <= 3 for tx, ty in _occupied(self.ENTITIES)
        )

    def test_pole_on_a_free_tile(self):
        assert _tile(self.result.poles[0].position) not in _occupied(self.ENTITIES)

    def test_no_connection_poles(self):
        _, connections = self.result.visualizations
        assert connections.path == []


class TestDistantPumpjacks:
    """Pumpjacks farther apart than the wire reach."""

    ENTITIES = [_powered(0.5, 0.5), _powered(40.5, 0.5)]

    def setup_method(self):
        self.diagnostics = ProgramDiagnostics()
        self.result = generate_poles(self.ENTITIES, diagnostics=self.diagnostics)

    def test_connection_poles_are_added(self):
        _, connections = self.result.visualizations
        assert connections.path
        assert self.result.total_poles > 2

    def test_network_is_connected(self):
        positions = [p.position for p in self.result.poles]
        assert _is_connected(positions, MEDIUM_POLE_TYPE.wire_reach)
        assert self.diagnostics.warning_count() == 0

    def test_poles_are_unique_and_free(self):
        tiles = [_tile(p.position) for p in self.result.poles]
        assert len(tiles) == len(set(tiles))
        assert not set(tiles) & _occupied(self.ENTITIES)


class TestMixedEntities:
    """Powered beacons and pumpjacks with blocking pipes."""

    ENTITIES = [
        _powered(0.5, 0.5),
        _powered(8.5, 0.5),
        _powered(4.5, 4.5, size=3),
        {"position": {"x": 4.5, "y": 0.5}, "size": 1},
        {"position": {"x": 4.5, "y": 1.5}, "size": 1},
    ]

    def test_every_powered_entity_is_supplied(self):
        result = generate_poles(self.ENTITIES)
        poles = [_tile(p.position) for p in result.poles]
        for entity in self.ENTITIES:
            if not entity.get("powered"):
                continue
            tiles = footprint_cells(Point(entity["position"]["x"], entity["position"]["y"]), entity["size"])
            assert any(
                abs(px - tx) <= 3 and abs(py - ty) <= 3 for px, py in poles for tx, ty in tiles
            )

    def test_poles_avoid_every_entity(self):
        result = generate_poles(self.ENTITIES)
        assert not {_tile(p.position) for p in result.poles} & _occupied(self.ENTITIES)


class TestGeneratePolesEdgeCases:
    """Degenerate inputs."""

    def test_empty(self):
        result = generate_poles([])
        assert result.poles == []
        assert result.total_poles == 0

    def test_nothing_powered(self):
        result = generate_poles([{"position": {"x": 0.5, "y": 0.5}, "size": 3}])
        assert result.poles == []

    def test_to_dict(self):
        data = generate_poles([_powered(0.5, 0.5)]).to_dict()
        assert data["info"] == {"totalPoles": 1}
        assert data["poles"][0]["name"] == MEDIUM_POLE
