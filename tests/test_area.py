"""
Tests for the Area model
========================

Classification of connections, position writes, grid maintenance and push
simulation.
"""

import numpy as np
import pytest

from map_fixtures import line_exits, make_area
from mudmap.core.area import Area, LocationStatus, areas_equal
from mudmap.core.definitions import EMPTY_CELL, Direction, Point, Rectangle, RoomMark
from mudmap.core.room import Room


class TestClassification:
    """Five-way connection report."""

    def test_adjacent_rooms_are_normal(self, two_rooms):
        two_rooms.set_positions({1: Point(0, 0), 2: Point(1, 0)})
        report = two_rooms.connection_report()

        assert len(report.normal) == 1
        assert report.normal[0].two_way
        assert report.broken_count == 0
        assert not report.long and not report.intersections

    def test_lone_room_has_empty_report(self):
        area = make_area({1: {'north': 2}, 2: {'south': 1}}, {1: (0, 0)})
        assert area.connection_report().counts() == {
            'normal': 0, 'non_straight': 0, 'with_obstacles': 0, 'long': 0, 'intersections': 0,
        }

    def test_wrong_axis_is_non_straight(self, two_rooms):
        two_rooms.set_positions({1: Point(0, 0), 2: Point(0, 1)})
        report = two_rooms.connection_report()

        assert [c.key for c in report.non_straight] == [(1, 2, Direction.EAST)]
        assert report.non_straight[0].two_way

    def test_unobstructed_gap_is_long(self, two_rooms):
        two_rooms.set_positions({1: Point(0, 0), 2: Point(3, 0)})
        report = two_rooms.connection_report()

        assert len(report.long) == 1
        assert len(two_rooms.pass_through_connections(1, 0)) == 1
        assert len(two_rooms.pass_through_connections(3, 0)) == 0

    def test_diagonals(self):
        area = make_area({1: {'up': 2}, 2: {'down': 1}}, {1: (0, 0), 2: (1, -1)})
        assert len(area.connection_report().normal) == 1

        area.set_position(2, Point(3, -2))
        assert len(area.connection_report().long) == 1

        area.set_position(2, Point(-1, -1))
        assert len(area.connection_report().non_straight) == 1

    def test_non_straight_hidden_by_clean_alternative(self):
        area = make_area({1: {'east': 2, 'north': 2}, 2: {}}, {1: (0, 0), 2: (1, 0)})
        report = area.connection_report()

        assert len(report.normal) == 1
        assert not report.non_straight

    def test_obstacle_recorded(self):
        area = make_area(
            {1: {'east': 3}, 2: {'north': 4, 'south': 5}, 3: {}, 4: {}, 5: {}},
            {1: (0, 0), 2: (1, 0), 3: (2, 0), 4: (1, -1), 5: (1, 1)},
        )
        report = area.connection_report()

        assert [c.key for c in report.with_obstacles] == [(1, 3, Direction.EAST)]
        assert report.with_obstacles[0].obstacles == {2}
        assert report.broken_count == 1

    def test_single_exit_room_on_same_axis_is_exempt(self):
        area = make_area({1: {'east': 3}, 2: {'east': 3}, 3: {}},
                         {1: (0, 0), 2: (1, 0), 3: (2, 0)})
        report = area.connection_report()

        assert not report.with_obstacles
        assert [c.key for c in report.long] == [(1, 3, Direction.EAST)]

    def test_single_exit_room_on_cross_axis_blocks(self):
        area = make_area({1: {'east': 3}, 2: {'north': 4}, 3: {}, 4: {}},
                         {1: (0, 0), 2: (1, 0), 3: (2, 0), 4: (1, -1)})
        assert area.connection_report().with_obstacles[0].obstacles == {2}

    def test_crossing_lines_intersect(self):
        area = make_area({1: {'east': 2}, 2: {}, 3: {'south': 4}, 4: {}},
                         {1: (0, 1), 2: (2, 1), 3: (1, 0), 4: (1, 2)})
        report = area.connection_report()

        assert len(report.long) == 2
        assert [c.key for c in report.intersections] == [
            (1, 2, Direction.EAST),
            (3, 4, Direction.SOUTH),
        ]

    def test_two_way_line_does_not_cross_itself(self, two_rooms):
        two_rooms.set_positions({1: Point(0, 0), 2: Point(4, 0)})
        assert not two_rooms.connection_report().intersections

    def test_report_independent_of_insertion_order(self):
        exits = {1: {'east': 3, 'south': 2}, 2: {'east': 3}, 3: {'west': 1}}
        positions = {1: (0, 0), 2: (0, 2), 3: (3, 1)}

        forward = make_area(exits, positions)
        backward = Area(reversed(forward.rooms))
        for room_id in reversed(list(positions)):
            backward.set_position(room_id, Point(*positions[room_id]))

        assert forward.connection_report().as_dict() == backward.connection_report().as_dict()
        assert forward.connection_report().as_dict() == forward.connection_report().as_dict()


class TestPositions:
    """Position writes and derived views."""

    def test_rectangle_is_tight(self):
        area = make_area({1: {}, 2: {}, 3: {}})
        assert area.rectangle == Rectangle(0, 0, 0, 0)

        area.set_positions({1: Point(-2, 1), 2: Point(1, 3)})
        assert area.rectangle == Rectangle(-2, 1, 4, 3)

        area.clear_position(1)
        assert area.rectangle == Rectangle(1, 3, 1, 1)

    def test_room_lookup(self):
        area = make_area({1: {}, 2: {}}, {1: (5, 5), 2: (6, 7)})

        assert area.room_id_at(6, 7) == 2
        assert area.room_at(5, 5).id == 1
        assert area.room_id_at(6, 5) is None
        assert area.room_id_at(100, 100) is None
        assert area.room_id_at_zero_based(1, 2) == 2

        grid = area.occupancy_grid()
        assert grid.shape == (3, 2)
        assert grid[0, 0] == 1 and grid[1, 0] == EMPTY_CELL

    def test_occupied_cell_rejected(self):
        area = make_area({1: {}, 2: {}}, {1: (0, 0), 2: (1, 0)})

        with pytest.raises(ValueError):
            area.set_position(2, Point(0, 0))
        assert area.get_position(2) == Point(1, 0)

    def test_batch_write_allows_swap(self):
        area = make_area({1: {}, 2: {}}, {1: (0, 0), 2: (1, 0)})
        area.set_positions({1: Point(1, 0), 2: Point(0, 0)})

        assert area.room_id_at(0, 0) == 2

    def test_batch_write_overlap_rejected(self):
        area = make_area({1: {}, 2: {}, 3: {}}, {1: (0, 0)})

        with pytest.raises(ValueError):
            area.set_positions({2: Point(4, 4), 3: Point(4, 4)})
        assert not area.is_placed(2)

    def test_locate(self):
        area = make_area({1: {}, 2: {}}, {1: (2, 3)})

        assert area.locate(1).status is LocationStatus.PLACED
        assert area.locate(1).position == Point(2, 3)
        assert area.locate(2).status is LocationStatus.UNPLACED
        assert area.locate(9).status is LocationStatus.NOT_FOUND

    def test_unknown_room(self):
        area = make_area({1: {}})

        with pytest.raises(KeyError):
            area.get_room(7)
        with pytest.raises(KeyError):
            area.set_position(7, Point(0, 0))
        assert area.find_room(7) is None

    def test_duplicate_room(self):
        area = make_area({1: {}})
        with pytest.raises(ValueError):
            area.add_room(Room(1, "Copy"))

    def test_dangling_exit_fails_validation(self):
        with pytest.raises(ValueError):
            make_area({1: {'east': 2}}).validate()

    def test_read_only_snapshot(self, two_rooms):
        two_rooms.set_position(1, Point(0, 0))
        two_rooms.make_read_only()

        with pytest.raises(RuntimeError):
            two_rooms.set_position(2, Point(1, 0))
        with pytest.raises(RuntimeError):
            two_rooms.mark(1, RoomMark.PLACED)

        copy = two_rooms.clone()
        copy.set_position(2, Point(1, 0))
        assert not two_rooms.is_placed(2)

    def test_read_only_report_cannot_be_altered(self, two_rooms):
        two_rooms.set_positions({1: Point(0, 0), 2: Point(3, 0)})
        two_rooms.make_read_only()

        report = two_rooms.connection_report()
        report.normal.add(1, 2, Direction.EAST)
        report.long[0].obstacles.add(7)
        two_rooms.pass_through_connections(1, 0).add(5, 6, Direction.NORTH)

        fresh = two_rooms.connection_report()
        assert not fresh.normal
        assert fresh.long[0].obstacles == set()
        assert len(two_rooms.pass_through_connections(1, 0)) == 1

    def test_clone_is_independent(self, two_rooms):
        two_rooms.set_position(1, Point(0, 0))
        two_rooms.mark(1, RoomMark.MOVED, Point(1, 0))

        copy = two_rooms.clone()
        copy.set_position(1, Point(3, 3))
        copy.clear_marks()

        assert two_rooms.get_position(1) == Point(0, 0)
        assert two_rooms.get_mark(1) is RoomMark.MOVED
        assert two_rooms.get_force_mark(1) == Point(1, 0)
        assert copy.get_room(1) is two_rooms.get_room(1)

    def test_reachability(self):
        area = make_area({1: {'east': 2}, 2: {'east': 3}, 3: {}})

        assert area.is_reachable(1, 3)
        assert not area.is_reachable(3, 1)


class TestGridMaintenance:
    """Expand, delete empty rows/columns, grouping and comparison."""

    def _square(self):
        return make_area({1: {}, 2: {}, 3: {}, 4: {}},
                         {1: (0, 0), 2: (1, 0), 3: (2, 0), 4: (1, 1)})

    def test_expand_east(self):
        area = self._square()
        area.expand(Point(1, 0), Point(1, 0))

        assert area.positions == {1: Point(0, 0), 2: Point(2, 0), 3: Point(3, 0), 4: Point(2, 1)}

    def test_expand_west(self):
        area = self._square()
        area.expand(Point(1, 0), Point(-1, 0))

        assert area.positions == {1: Point(-1, 0), 2: Point(0, 0), 3: Point(2, 0), 4: Point(0, 1)}

    def test_expand_diagonal(self):
        area = self._square()
        area.expand(Point(1, 1), Point(1, -1))

        assert area.positions == {1: Point(0, -1), 2: Point(2, -1), 3: Point(3, -1), 4: Point(2, 0)}

    def test_delete_empty_rows_and_columns(self):
        area = make_area({1: {}, 2: {}, 3: {}}, {1: (0, 0), 2: (3, 0), 3: (0, 2)})
        result = area.delete_empty_rows_and_columns()

        assert result.columns == [1, 2]
        assert result.rows == [1]
        assert area.positions == {1: Point(0, 0), 2: Point(1, 0), 3: Point(0, 1)}

    def test_delete_on_compact_grid_is_noop(self, two_rooms):
        two_rooms.set_positions({1: Point(0, 0), 2: Point(1, 0)})
        result = two_rooms.delete_empty_rows_and_columns()

        assert result.columns == [] and result.rows == []

    def test_group_connected_positioned_rooms(self):
        exits = {1: {'east': 2}, 2: {}, 3: {'east': 4}, 4: {'east': 5}, 5: {}, 6: {}, 7: {'west': 6}}
        area = make_area(exits, {1: (0, 0), 2: (1, 0), 3: (0, 2), 4: (1, 2), 5: (2, 2), 6: (0, 4)})

        parts = area.group_connected_positioned_rooms()
        assert parts == [{6}, {1, 2}, {3, 4, 5}]

    def test_areas_equal_ignores_offset_and_gaps(self):
        first = make_area({1: {}, 2: {}}, {1: (0, 0), 2: (2, 0)})
        second = make_area({1: {}, 2: {}}, {1: (5, 5), 2: (6, 5)})
        third = make_area({1: {}, 2: {}}, {1: (0, 0), 2: (0, 1)})

        assert areas_equal(first, second)
        assert not areas_equal(first, third)
        assert np.array_equal(first.normalized_grid(), np.array([[1, 2]]))

    def test_fix_single_exit_room_placement(self):
        area = make_area({1: {'east': 2, 'south': 3}, 2: {'west': 1}, 3: {'north': 1}},
                         {1: (0, 0), 2: (2, 0), 3: (0, 1)})

        assert area.fix_single_exit_room_placement() == 1
        assert area.get_position(2) == Point(1, 0)
        assert len(area.connection_report().normal) == 2

    def test_fix_single_exit_needs_free_cell(self):
        area = make_area({1: {'east': 2}, 2: {'west': 1}, 4: {}},
                         {1: (0, 0), 2: (2, 0), 4: (1, 0)})

        assert area.fix_single_exit_room_placement() == 0
        assert area.get_position(2) == Point(2, 0)

    def test_fix_single_exit_ignores_where_the_exit_leads(self):
        """#2 only leads to #3, but still snaps in front of #1's exit."""
        area = make_area({1: {'east': 2, 'south': 3}, 2: {'north': 3}, 3: {}},
                         {1: (0, 0), 2: (2, 0), 3: (0, 1)})

        assert area.fix_single_exit_room_placement() == 1
        assert area.get_position(2) == Point(1, 0)


class TestMeasurePush:
    """Push simulation (nothing is applied)."""

    def test_adjacent_chain_is_carried(self, two_rooms):
        two_rooms.set_positions({1: Point(0, 0), 2: Point(1, 0)})
        result = two_rooms.measure_push(1, Point(1, 0))

        assert result.moved_ids == [1, 2]
        assert all(m.delta == Point(1, 0) for m in result.moved)
        assert result.deleted == []
        assert two_rooms.get_position(1) == Point(0, 0)

    def test_long_line_ahead_absorbs_push(self, two_rooms):
        two_rooms.set_positions({1: Point(0, 0), 2: Point(3, 0)})
        assert two_rooms.measure_push(1, Point(1, 0)).moved_ids == [1]

    def test_room_behind_stays(self, two_rooms):
        two_rooms.set_positions({1: Point(0, 0), 2: Point(1, 0)})
        assert two_rooms.measure_push(2, Point(1, 0)).moved_ids == [2]

    def test_cross_axis_neighbour_is_carried(self):
        area = make_area({1: {'south': 2}, 2: {'north': 1}}, {1: (0, 0), 2: (0, 1)})
        result = area.measure_push(1, Point(1, 0))

        assert result.moved_ids == [1, 2]

    def test_push_accumulates_per_step(self, two_rooms):
        two_rooms.set_positions({1: Point(0, 0), 2: Point(2, 0)})
        result = two_rooms.measure_push(1, Point(2, 0))

        deltas = {m.room_id: m.delta for m in result.moved}
        assert deltas == {1: Point(2, 0), 2: Point(1, 0)}

    def test_unmoved_occupant_is_deleted(self):
        area = make_area({1: {}, 2: {}}, {1: (0, 0), 2: (1, 0)})
        result = area.measure_push(1, Point(1, 0))

        assert result.moved_ids == [1]
        assert result.deleted == [2]

        area.apply_push(result)
        assert area.positions == {1: Point(1, 0)}

    def test_push_requires_placed_room(self, two_rooms):
        with pytest.raises(ValueError):
            two_rooms.measure_push(1, Point(1, 0))
        with pytest.raises(KeyError):
            two_rooms.measure_push(9, Point(1, 0))


class TestMeasureCompactPush:

    def test_long_line_is_shortened(self, two_rooms):
        two_rooms.set_positions({1: Point(0, 0), 2: Point(3, 0)})

        assert two_rooms.measure_compact_push(1, Direction.EAST).moved_ids == [1]
        assert two_rooms.measure_compact_push(2, Direction.WEST).moved_ids == [2]

    def test_room_in_front_is_pushed(self):
        area = make_area({1: {}, 2: {}}, {1: (0, 0), 2: (1, 0)})
        result = area.measure_compact_push(1, Direction.EAST)

        assert result.moved_ids == [1, 2]
        assert result.deleted == []

    def test_room_beside_perpendicular_line_is_pushed(self):
        area = make_area({1: {'east': 2}, 2: {'west': 1}, 3: {}},
                         {1: (0, 1), 2: (3, 1), 3: (1, 0)})
        result = area.measure_compact_push(1, Direction.NORTH)

        assert result.moved_ids == [1, 2, 3]
        assert all(m.delta == Point(0, -1) for m in result.moved)

    def test_diagonal_rejected(self, two_rooms):
        two_rooms.set_position(1, Point(0, 0))
        with pytest.raises(ValueError):
            two_rooms.measure_compact_push(1, Direction.UP)


class TestGraphView:

    def test_to_graph(self):
        area = make_area(line_exits([1, 2, 3]), {1: (0, 0), 2: (1, 0)})

        graph = area.to_graph()
        assert graph.number_of_nodes() == 3
        assert graph.number_of_edges() == 4
        assert graph.edges[1, 2, 'east']['direction'] is Direction.EAST

        placed = area.to_graph(positioned_only=True)
        assert sorted(placed.nodes()) == [1, 2]
        assert placed.nodes[2]['position'] == Point(1, 0)
