"""
Tests for layout/pipe_router.py - Group forming, group connection and pipe generation.
"""

from dataclasses import replace

from outpost_generator.src.common.constants import DEFAULT_CONFIG, NORTH, SOUTH, WEST
from outpost_generator.src.common.diagnostics import ProgramDiagnostics
from outpost_generator.src.common.geometry import Point
from outpost_generator.src.layout.candidate_edges import Pumpjack, place_pumpjacks
from outpost_generator.src.layout.inputs import parse_pumpjacks
from outpost_generator.src.layout.pathfinding import turn_count
from outpost_generator.src.layout.pipe_router import Group, PipeRouter, generate_pipes
from outpost_generator.src.layout.tile_grid import GridIndexer, footprint_cells


def _pumpjacks(*positions):
    return [{"id": i + 1, "position": {"x": x, "y": y}} for i, (x, y) in enumerate(positions)]


def _open_router(config=DEFAULT_CONFIG):
    grid = GridIndexer([(0, 0), (20, 20)], margin=2)
    return PipeRouter(grid, [], config)


class TestGroup:
    """Tests for Group."""

    def test_centroid(self):
        group = Group(entities=[Pumpjack(1, 0, 0, []), Pumpjack(2, 4, 2, [])])
        group.update_centroid()
        assert (group.x, group.y) == (2, 1)

    def test_cells_are_distinct_and_ordered(self):
        group = Group(paths=[[Point(0, 0), Point(0, 1)], [Point(0, 1), Point(1, 1)]])
        assert group.cells() == [Point(0, 0), Point(0, 1), Point(1, 1)]
        assert group.path_length == 4


class TestLinkCells:
    """Tests for the shortest link between two cell sets."""

    def test_straight_line_is_preferred(self):
        router = _open_router()
        distance, path = router._link_cells([Point(8, 8)], [Point(8, 12)], 2)
        assert distance == 4
        assert path == [Point(8, y) for y in range(8, 13)]

    def test_routed_line_with_a_turn(self):
        router = _open_router()
        distance, path = router._link_cells([Point(8, 8)], [Point(11, 11)], 2)
        assert distance == 7
        assert len(path) == 7
        assert {path[0], path[-1]} == {Point(8, 8), Point(11, 11)}
        assert turn_count(path) == 1

    def test_turn_budget(self):
        router = _open_router()
        assert router._link_cells([Point(8, 8)], [Point(11, 11)], 0) is None

    def test_nearest_of_many_cells(self):
        router = _open_router()
        cells = [Point(x, 15) for x in range(4, 16)]
        distance, path = router._link_cells([Point(10, 5)], cells, 2)
        assert distance == 10
        assert path[-1] == Point(10, 15) or path[0] == Point(10, 15)


class TestNeighbourGroups:
    """Tests for neighbour_groups."""

    def test_delaunay_neighbours(self):
        groups = [Group(x=0, y=0), Group(x=10, y=0), Group(x=20, y=0)]
        assert PipeRouter.neighbour_groups(groups, groups[0]) == [groups[1]]
        assert set(PipeRouter.neighbour_groups(groups, groups[1])) == {groups[0], groups[2]}

    def test_groups_sharing_a_centroid(self):
        groups = [Group(x=5, y=5), Group(x=5, y=5)]
        assert PipeRouter.neighbour_groups(groups, groups[0]) == [groups[1]]
        assert PipeRouter.neighbour_groups(groups, groups[1]) == [groups[0]]


# free cells of a winding corridor from local (1, 1) to (5, 5): east, south, east, south
CORRIDOR = {(1, 1), (2, 1), (3, 1), (3, 2), (3, 3), (4, 3), (5, 3), (5, 4), (5, 5)}


class TestConnectGroupsRetries:
    """Groups whose only link turns three times need one retry."""

    def _router(self, max_tries):
        walls = [(x, y) for x in range(7) for y in range(7) if (x, y) not in CORRIDOR]
        grid = GridIndexer(walls, margin=0)
        self.diagnostics = ProgramDiagnostics()
        router = PipeRouter(grid, [], replace(DEFAULT_CONFIG, max_tries=max_tries), self.diagnostics)
        self.start = Group(paths=[[Point(1, 1)]], x=1, y=1)
        self.end = Group(paths=[[Point(5, 5)]], x=5, y=5)
        router.groups = [self.start, self.end]
        return router

    def test_corridor_needs_three_turns(self):
        router = self._router(0)
        assert router._link_cells([Point(5, 5)], [Point(1, 1)], 2) is None
        distance, path = router._link_cells([Point(5, 5)], [Point(1, 1)], 3)
        assert distance == 9
        assert turn_count(path) == 3

    def test_without_retries_the_groups_stay_apart(self):
        router = self._router(0)
        final = router.connect_groups()
        assert final is self.end
        assert router.disconnected == [self.start]
        assert not router.fully_connected
        assert self.diagnostics.warning_count() == 1

    def test_a_retry_allows_one_more_turn(self):
        router = self._router(1)
        final = router.connect_groups()
        assert final is self.end
        assert router.disconnected == []
        assert router.fully_connected
        assert len(final.paths) == 3
        assert {tuple(c) for c in final.paths[-1]} == CORRIDOR
        assert self.diagnostics.warning_count() == 0

    def test_more_retries_change_nothing(self):
        router = self._router(3)
        assert router.connect_groups() is self.end
        assert router.fully_connected


class TestGeneratePipesTwoPumpjacks:
    """Two vertically aligned pumpjacks joined by one straight run."""

    def setup_method(self):
        self.result = generate_pipes(_pumpjacks((0.5, 0.5), (0.5, 8.5)))

    def test_connected(self):
        assert self.result.fully_connected

    def test_both_pumpjacks_face_the_run(self):
        assert sorted((r.id, r.direction) for r in self.result.facilities_to_rotate) == [
            (1, WEST),
            (2, WEST),
        ]

    def test_anchor_pipes_stay_plain(self):
        plain = [p.position for p in self.result.pipes if not p.is_underground]
        assert plain == [Point(-1.5, 1.5), Point(-1.5, 9.5)]

    def test_interior_becomes_one_underground_pair(self):
        underground = [(p.position, p.direction) for p in self.result.pipes if p.is_underground]
        assert underground == [(Point(-1.5, 2.5), NORTH), (Point(-1.5, 8.5), SOUTH)]

    def test_info(self):
        info = self.result.info
        assert (info.pipe_count, info.underground_count, info.pipes_replaced_count) == (2, 2, 7)

    def test_min_gap_above_run_length_keeps_plain_pipes(self):
        result = generate_pipes(_pumpjacks((0.5, 0.5), (0.5, 8.5)), min_gap_between_undergrounds=8)
        assert result.info.underground_count == 0
        assert result.info.pipe_count == 9

    def test_visualizations_are_in_world_coordinates(self):
        cells = self.result.visualizations[0].path
        assert Point(-1.5, 5.5) in cells


class TestGeneratePipesTurns:
    """A pumpjack that can only be reached with a turning path."""

    def setup_method(self):
        self.diagnostics = ProgramDiagnostics()
        self.result = generate_pipes(
            _pumpjacks((0.5, 0.5), (0.5, 8.5), (12.5, 30.5)), diagnostics=self.diagnostics
        )

    def test_all_pumpjacks_in_the_final_group(self):
        assert sorted(r.id for r in self.result.facilities_to_rotate) == [1, 2, 3]
        assert self.result.fully_connected

    def test_no_warnings(self):
        assert self.diagnostics.warning_count() == 0

    def test_leftover_path_is_visualized(self):
        assert any(v.size == 8 for v in self.result.visualizations)


class TestGeneratePipesEdgeCases:
    """Degenerate inputs."""

    def test_empty_input(self):
        result = generate_pipes([])
        assert result.pipes == []
        assert result.facilities_to_rotate == []
        assert result.info.pipe_count == 0
        assert result.fully_connected

    def test_single_pumpjack(self):
        result = generate_pipes(_pumpjacks((0.5, 0.5)))
        assert result.pipes == []
        assert result.facilities_to_rotate == []

    def test_pumpjack_without_free_output(self):
        diagnostics = ProgramDiagnostics()
        positions = [(0.5, 0.5), (0.5, -2.5), (3.5, -0.5), (-0.5, 3.5), (-2.5, 0.5)]
        result = generate_pipes(_pumpjacks(*positions), diagnostics=diagnostics)
        assert not result.fully_connected
        assert 1 not in [r.id for r in result.facilities_to_rotate]
        assert diagnostics.warning_count() >= 1

    def test_to_dict(self):
        data = generate_pipes(_pumpjacks((0.5, 0.5), (0.5, 8.5))).to_dict()
        assert data["info"] == {"pipeCount": 2, "undergroundCount": 2, "pipesReplacedCount": 7}
        assert data["fullyConnected"] is True
        assert {"kind", "name", "position", "direction"} <= set(data["pipes"][0])


class TestGeneratePipesInvariants:
    """Properties that hold for any layout."""

    POSITIONS = [(8 * i + 0.5, 8 * j + 0.5) for i in range(3) for j in range(3)]

    def test_each_pumpjack_rotated_at_most_once(self):
        result = generate_pipes(_pumpjacks(*self.POSITIONS))
        ids = [r.id for r in result.facilities_to_rotate]
        assert len(ids) == len(set(ids))

    def test_pipes_never_overlap_pumpjacks(self):
        result = generate_pipes(_pumpjacks(*self.POSITIONS))
        occupied = {
            tile for x, y in self.POSITIONS for tile in footprint_cells(Point(x, y), 3)
        }
        for pipe in result.pipes:
            assert (int(pipe.position.x - 0.5), int(pipe.position.y - 0.5)) not in occupied

    def test_pipe_positions_are_unique(self):
        result = generate_pipes(_pumpjacks(*self.POSITIONS))
        positions = [p.position for p in result.pipes]
        assert len(positions) == len(set(positions))

    def test_underground_pipes_come_in_pairs(self):
        result = generate_pipes(_pumpjacks(*self.POSITIONS))
        underground = [p for p in result.pipes if p.is_underground]
        assert len(underground) % 2 == 0
        assert result.info.underground_count == len(underground)

    def test_deterministic(self):
        first = generate_pipes(_pumpjacks(*self.POSITIONS)).to_dict()
        second = generate_pipes(_pumpjacks(*self.POSITIONS)).to_dict()
        assert first == second

    def test_input_order_does_not_change_the_pipes(self):
        forward = generate_pipes(_pumpjacks(*self.POSITIONS))
        backward = generate_pipes(
            [
                {"id": i + 1, "position": {"x": x, "y": y}}
                for i, (x, y) in reversed(list(enumerate(self.POSITIONS)))
            ]
        )
        assert sorted(p.position for p in forward.pipes) == sorted(
            p.position for p in backward.pipes
        )

    def test_fewer_tries_never_raise(self):
        config = replace(DEFAULT_CONFIG, max_tries=0)
        result = generate_pipes(_pumpjacks(*self.POSITIONS), config=config)
        assert result.pipes

    def test_groups_partition_the_pumpjacks(self):
        inputs = parse_pumpjacks(_pumpjacks(*self.POSITIONS))
        grid = GridIndexer.from_footprints([p.position for p in inputs], 3)
        placed = place_pumpjacks(inputs, grid)
        groups = PipeRouter(grid, placed).route()

        members = [{e.id for e in g.entities} for g in groups]
        for i, first in enumerate(members):
            for second in members[i + 1 :]:
                assert first.isdisjoint(second)
        assert sum(len(g.entities) for g in groups) == len(placed)
        assert set().union(*members) == {p.id for p in placed}
