"""
Area Model
==========

The aggregate that owns every room of a map, their optional grid positions
and the derived views the layout builder reads after each change.

Derived state (recomputed lazily after any position write):
- rectangle:      tight bounding box over placed rooms
- occupancy grid: numpy array of room ids, EMPTY_CELL where no room sits
- pass-through:   per cell, the connections whose line crosses the cell
- report:         classification of every connection (see ConnectionReport)

Every position write goes through this class and drops the derived state
before returning, so a stale grid can never be observed.

Usage:
    from mudmap.core.area import Area
    from mudmap.core.room import Room

    area = Area([Room.create(1, "Gate", {"east": 2}), Room.create(2, "Road", {"west": 1})])
    area.set_position(1, Point(0, 0))
    area.set_position(2, Point(1, 0))
    report = area.connection_report()
    assert len(report.normal) == 1
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Mapping, NamedTuple, Optional, Set, Tuple

import networkx as nx
import numpy as np

from mudmap.core.connections import ConnectionReport, ConnectionsList
from mudmap.core.definitions import (
    EMPTY_CELL,
    EMPTY_RECTANGLE,
    ZERO,
    Direction,
    Point,
    Rectangle,
    RoomMark,
    same_axis,
    sign,
)
from mudmap.core.room import Room
from mudmap.utils.id_queue import IdQueue

logger = logging.getLogger(__name__)


# ==========================================
# RESULT TYPES
# ==========================================

class LocationStatus(Enum):
    """Outcome of looking a room up by id."""
    NOT_FOUND = "not_found"
    UNPLACED = "unplaced"
    PLACED = "placed"


class RoomLocation(NamedTuple):
    status: LocationStatus
    position: Optional[Point] = None

    @property
    def is_placed(self) -> bool:
        return self.status is LocationStatus.PLACED


@dataclass
class RoomMovement:
    """Simulated displacement of one room."""
    room_id: int
    delta: Point


@dataclass
class MeasurePushResult:
    """
    Outcome of a push simulation. Nothing is applied until a caller passes
    this to Area.apply_push().
    """
    moved: List[RoomMovement] = field(default_factory=list)
    deleted: List[int] = field(default_factory=list)

    @property
    def moved_ids(self) -> List[int]:
        return [m.room_id for m in self.moved]

    @property
    def is_empty(self) -> bool:
        return not self.moved and not self.deleted


@dataclass
class DeleteColsRowsResult:
    """Zero-based indices (in the old rectangle) of removed columns/rows."""
    columns: List[int] = field(default_factory=list)
    rows: List[int] = field(default_factory=list)


class _ConnectionState(Enum):
    NORMAL = 0
    NOT_STRAIGHT = 1
    HAS_OBSTACLES = 2
    LONG = 3


def is_connection_straight(source_pos: Point, target_pos: Point, direction: Direction) -> bool:
    """
    True when the target lies along the exit direction from the source.

    Up/Down only require the target to be in the matching diagonal quadrant.
    """
    dx = target_pos.x - source_pos.x
    dy = target_pos.y - source_pos.y

    if direction is Direction.NORTH:
        return dx == 0 and dy < 0
    if direction is Direction.SOUTH:
        return dx == 0 and dy > 0
    if direction is Direction.WEST:
        return dx < 0 and dy == 0
    if direction is Direction.EAST:
        return dx > 0 and dy == 0
    if direction is Direction.UP:
        return dx > 0 and dy < 0
    return dx < 0 and dy > 0


# Exits a horizontal/vertical push step must not follow (room stays behind)
# and exits it only follows when the target is adjacent.
_PUSH_BEHIND = {
    ('x', 1): (Direction.WEST, Direction.DOWN),
    ('x', -1): (Direction.EAST, Direction.UP),
    ('y', 1): (Direction.NORTH, Direction.UP),
    ('y', -1): (Direction.SOUTH, Direction.DOWN),
}
_PUSH_AHEAD = {
    ('x', 1): (Direction.EAST, Direction.UP),
    ('x', -1): (Direction.WEST, Direction.DOWN),
    ('y', 1): (Direction.SOUTH, Direction.DOWN),
    ('y', -1): (Direction.NORTH, Direction.UP),
}

# Exits dragged along by a compaction push regardless of length
_COMPACT_PULLED = {
    Direction.NORTH: (Direction.WEST, Direction.EAST, Direction.SOUTH, Direction.DOWN),
    Direction.EAST: (Direction.NORTH, Direction.SOUTH, Direction.WEST, Direction.DOWN),
    Direction.SOUTH: (Direction.WEST, Direction.EAST, Direction.NORTH, Direction.UP),
    Direction.WEST: (Direction.NORTH, Direction.SOUTH, Direction.EAST, Direction.UP),
}


def _pulled_by_compact_push(push: Direction, exit_dir: Direction,
                            source_pos: Point, target_pos: Point) -> bool:
    if exit_dir in _COMPACT_PULLED[push]:
        return True

    # Diagonal exits pointing ahead are only dragged when they are one step long
    if push is Direction.NORTH:
        return exit_dir is Direction.UP and source_pos.y - target_pos.y == 1
    if push is Direction.EAST:
        return exit_dir is Direction.UP and target_pos.x - source_pos.x == 1
    if push is Direction.SOUTH:
        return exit_dir is Direction.DOWN and target_pos.y - source_pos.y == 1
    return exit_dir is Direction.DOWN and source_pos.x - target_pos.x == 1


# ==========================================
# AREA
# ==========================================

class Area:
    """
    Room set plus grid positions and cached derived views.

    Rooms are shared between clones (they never change during layout);
    positions, marks and caches are per instance.
    """

    def __init__(self, rooms: Optional[Iterable[Room]] = None, name: str = ""):
        self.name = name
        self.log_message: Optional[str] = None

        self._rooms: Dict[int, Room] = {}
        self._positions: Dict[int, Point] = {}
        self._cells: Dict[Point, int] = {}
        self._marks: Dict[int, RoomMark] = {}
        self._force_marks: Dict[int, Point] = {}
        self._read_only = False

        self._rectangle: Rectangle = EMPTY_RECTANGLE
        self._grid: Optional[np.ndarray] = None
        self._pass_through: Dict[Point, ConnectionsList] = {}
        self._report: Optional[ConnectionReport] = None

        for room in rooms or ():
            self.add_room(room)

    def __repr__(self) -> str:
        return (f"Area(name={self.name!r}, rooms={len(self._rooms)}, "
                f"placed={len(self._positions)})")

    # ------------------------------------------------------------------
    # Room set
    # ------------------------------------------------------------------
    def __len__(self) -> int:
        return len(self._rooms)

    def __iter__(self) -> Iterator[Room]:
        return iter(self._rooms.values())

    def __contains__(self, room_id: int) -> bool:
        return room_id in self._rooms

    @property
    def rooms(self) -> List[Room]:
        return list(self._rooms.values())

    @property
    def room_ids(self) -> List[int]:
        return list(self._rooms)

    def add_room(self, room: Room):
        """
        Raises:
            ValueError: if a room with the same id exists
        """
        self._check_writable()
        if room.id in self._rooms:
            raise ValueError(f"Duplicate room id {room.id}")

        self._rooms[room.id] = room
        self._invalidate()

    def delete_room(self, room_id: int):
        """Remove a room from the set (and from the grid)."""
        self._check_writable()
        self.get_room(room_id)

        self._remove_position(room_id)
        del self._rooms[room_id]
        self._marks.pop(room_id, None)
        self._force_marks.pop(room_id, None)
        self._invalidate()

    def get_room(self, room_id: int) -> Room:
        """
        Raises:
            KeyError: if no room has this id
        """
        try:
            return self._rooms[room_id]
        except KeyError:
            raise KeyError(f"Could not find room with id {room_id}") from None

    def find_room(self, room_id: int) -> Optional[Room]:
        return self._rooms.get(room_id)

    def validate(self):
        """
        Check the input contract: every exit leads to a room of this area.

        Raises:
            ValueError: on the first dangling exit
        """
        for room in self._rooms.values():
            for direction, target_id in room:
                if target_id not in self._rooms:
                    raise ValueError(
                        f"Room {room.id} exit {direction.value} leads to missing room {target_id}"
                    )

    # ------------------------------------------------------------------
    # Positions
    # ------------------------------------------------------------------
    @property
    def read_only(self) -> bool:
        return self._read_only

    def make_read_only(self):
        """Freeze positions and marks (used for recorded snapshots)."""
        self._read_only = True

    def _check_writable(self):
        if self._read_only:
            raise RuntimeError("Area snapshot is read-only")

    def _invalidate(self):
        self._grid = None
        self._report = None
        self._pass_through = {}

    @property
    def positions(self) -> Dict[int, Point]:
        return dict(self._positions)

    @property
    def placed_ids(self) -> List[int]:
        return sorted(self._positions)

    @property
    def positioned_count(self) -> int:
        return len(self._positions)

    def locate(self, room_id: int) -> RoomLocation:
        """Look a room up, telling "unknown id" apart from "not placed"."""
        if room_id not in self._rooms:
            return RoomLocation(LocationStatus.NOT_FOUND)

        position = self._positions.get(room_id)
        if position is None:
            return RoomLocation(LocationStatus.UNPLACED)

        return RoomLocation(LocationStatus.PLACED, position)

    def get_position(self, room_id: int) -> Optional[Point]:
        """
        Raises:
            KeyError: if no room has this id
        """
        self.get_room(room_id)
        return self._positions.get(room_id)

    def is_placed(self, room_id: int) -> bool:
        return room_id in self._positions

    def set_position(self, room_id: int, position: Point):
        """
        Place or move one room.

        Raises:
            KeyError: unknown room id
            ValueError: the cell is held by another room
        """
        self._check_writable()
        self.get_room(room_id)

        position = Point(int(position[0]), int(position[1]))
        occupant = self._cells.get(position)
        if occupant is not None and occupant != room_id:
            raise ValueError(f"Cell {tuple(position)} is occupied by room {occupant}")

        self._remove_position(room_id)
        self._positions[room_id] = position
        self._cells[position] = room_id
        self._invalidate()

    def set_positions(self, positions: Mapping[int, Point]):
        """
        Apply several writes at once. The final state is validated as a
        whole, so rooms may swap or shift along a line.

        Raises:
            KeyError: unknown room id
            ValueError: two rooms would share a cell
        """
        self._check_writable()
        for room_id in positions:
            self.get_room(room_id)

        updated = dict(self._positions)
        updated.update(positions)
        self._replace_positions(updated)

    def clear_position(self, room_id: int):
        """Take a room off the grid without deleting it from the area."""
        self._check_writable()
        self.get_room(room_id)

        if self._remove_position(room_id):
            self._invalidate()

    def clear_positions(self, room_ids: Iterable[int]):
        for room_id in room_ids:
            self.clear_position(room_id)

    def _remove_position(self, room_id: int) -> bool:
        position = self._positions.pop(room_id, None)
        if position is None:
            return False

        del self._cells[position]
        return True

    def _replace_positions(self, positions: Mapping[int, Point]):
        cells: Dict[Point, int] = {}
        normalized: Dict[int, Point] = {}
        for room_id, position in positions.items():
            position = Point(int(position[0]), int(position[1]))
            if position in cells:
                raise ValueError(
                    f"Rooms {cells[position]} and {room_id} would share cell {tuple(position)}"
                )
            cells[position] = room_id
            normalized[room_id] = position

        self._positions = normalized
        self._cells = cells
        self._invalidate()

    def apply_push(self, result: MeasurePushResult):
        """Commit a push simulation: drop deleted rooms, then move the rest."""
        self._check_writable()
        for room_id in result.deleted:
            self._remove_position(room_id)

        updated = dict(self._positions)
        for movement in result.moved:
            updated[movement.room_id] = self._positions[movement.room_id].offset(movement.delta)

        self._replace_positions(updated)

    def expand(self, anchor: Point, vector: Point):
        """
        Open an empty lane at ``anchor``.

        Every placed room whose coordinate lies on the vector's side of the
        anchor (anchor coordinate included) moves by the vector, per axis.
        """
        self._check_writable()

        updated: Dict[int, Point] = {}
        for room_id, (x, y) in self._positions.items():
            if vector.x < 0 and x <= anchor.x:
                x += vector.x
            elif vector.x > 0 and x >= anchor.x:
                x += vector.x

            if vector.y < 0 and y <= anchor.y:
                y += vector.y
            elif vector.y > 0 and y >= anchor.y:
                y += vector.y

            updated[room_id] = Point(x, y)

        self._replace_positions(updated)

    # ------------------------------------------------------------------
    # Marks
    # ------------------------------------------------------------------
    def mark(self, room_id: int, mark: RoomMark, force: Optional[Point] = None):
        """Highlight a room for the next snapshot, optionally with a move vector."""
        self._check_writable()
        self.get_room(room_id)

        self._marks[room_id] = mark
        if force is not None:
            self._force_marks[room_id] = force

    def get_mark(self, room_id: int) -> Optional[RoomMark]:
        return self._marks.get(room_id)

    def get_force_mark(self, room_id: int) -> Optional[Point]:
        return self._force_marks.get(room_id)

    @property
    def marks(self) -> Dict[int, RoomMark]:
        return dict(self._marks)

    def clear_marks(self):
        self._check_writable()
        self._marks.clear()
        self._force_marks.clear()

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------
    def _update(self):
        if self._grid is not None:
            return

        rectangle = self._calculate_rectangle()
        grid = np.full((rectangle.height, rectangle.width), EMPTY_CELL, dtype=np.int64)
        for room_id, position in self._positions.items():
            grid[position.y - rectangle.y, position.x - rectangle.x] = room_id

        pass_through: Dict[Point, ConnectionsList] = {}
        report = self._calculate_report(pass_through)

        self._rectangle = rectangle
        self._pass_through = pass_through
        self._report = report
        self._grid = grid

    def _calculate_rectangle(self) -> Rectangle:
        if not self._positions:
            return EMPTY_RECTANGLE

        xs = [p.x for p in self._positions.values()]
        ys = [p.y for p in self._positions.values()]
        min_x, min_y = min(xs), min(ys)
        return Rectangle(min_x, min_y, max(xs) - min_x + 1, max(ys) - min_y + 1)

    def _check_connection(
        self,
        source_id: int,
        source_pos: Point,
        target_id: int,
        target_pos: Point,
        direction: Direction,
        pass_through: Dict[Point, ConnectionsList]
    ) -> Tuple[_ConnectionState, Set[int]]:
        obstacles: Set[int] = set()

        delta = direction.delta
        if source_pos.offset(delta) == target_pos:
            return _ConnectionState.NORMAL, obstacles

        if not is_connection_straight(source_pos, target_pos, direction):
            return _ConnectionState.NOT_STRAIGHT, obstacles

        if direction in (Direction.UP, Direction.DOWN):
            return _ConnectionState.LONG, obstacles

        # Walk the cells strictly between source and target
        cell = source_pos.offset(delta)
        while cell != target_pos:
            occupant = self._cells.get(cell)
            if occupant is not None:
                obstacles.add(occupant)

            pass_through.setdefault(cell, ConnectionsList()).add(source_id, target_id, direction)
            cell = cell.offset(delta)

        # Single-exit rooms lying along their own axis can't be moved out of the way
        for obstacle_id in list(obstacles):
            obstacle = self._rooms[obstacle_id]
            if obstacle.exits_count != 1:
                continue

            if same_axis(direction, obstacle.single_connection().direction):
                obstacles.discard(obstacle_id)

        if obstacles:
            return _ConnectionState.HAS_OBSTACLES, obstacles

        return _ConnectionState.LONG, obstacles

    def _calculate_report(self, pass_through: Dict[Point, ConnectionsList]) -> ConnectionReport:
        report = ConnectionReport()

        for room_id in sorted(self._positions):
            position = self._positions[room_id]
            room = self._rooms[room_id]

            for direction, target_id in room:
                if target_id == room_id:
                    continue

                target_pos = self._positions.get(target_id)
                if target_pos is None:
                    continue

                state, obstacles = self._check_connection(
                    room_id, position, target_id, target_pos, direction, pass_through
                )

                if state is _ConnectionState.NORMAL:
                    report.normal.add(room_id, target_id, direction)
                elif state is _ConnectionState.NOT_STRAIGHT:
                    report.non_straight.add(room_id, target_id, direction)
                elif state is _ConnectionState.HAS_OBSTACLES:
                    connection = report.with_obstacles.add(room_id, target_id, direction)
                    connection.obstacles.update(obstacles)
                else:
                    report.long.add(room_id, target_id, direction)

        # A clean alternative between the same rooms hides the non-straight one
        for connection in list(report.non_straight):
            source_id, target_id = connection.room_ids
            if (report.normal.find(source_id, target_id) is not None or
                    report.long.find(source_id, target_id) is not None):
                report.non_straight.remove(connection)

        for cell in sorted(pass_through):
            connections = pass_through[cell]
            if len(connections) <= 1:
                continue

            for connection in connections:
                entry = report.intersections.add(*connection.key)
                entry.two_way = entry.two_way or connection.two_way

        report.sort()
        return report

    @property
    def rectangle(self) -> Rectangle:
        self._update()
        return self._rectangle

    @property
    def width(self) -> int:
        return self.rectangle.width

    @property
    def height(self) -> int:
        return self.rectangle.height

    def occupancy_grid(self) -> np.ndarray:
        """Copy of the occupancy grid indexed [row, column] (zero-based)."""
        self._update()
        return self._grid.copy()

    def normalized_grid(self) -> np.ndarray:
        """Occupancy grid with all-empty rows and columns removed."""
        grid = self.occupancy_grid()
        if grid.size == 0:
            return grid

        occupied = grid != EMPTY_CELL
        return grid[occupied.any(axis=1)][:, occupied.any(axis=0)]

    def to_zero_based(self, position: Point) -> Point:
        rectangle = self.rectangle
        return Point(position.x - rectangle.x, position.y - rectangle.y)

    def room_id_at_zero_based(self, x: int, y: int) -> Optional[int]:
        self._update()
        if x < 0 or y < 0 or x >= self._rectangle.width or y >= self._rectangle.height:
            return None

        room_id = int(self._grid[y, x])
        return None if room_id == EMPTY_CELL else room_id

    def room_id_at(self, x: int, y: int) -> Optional[int]:
        """Id of the room at absolute grid coordinates, or None."""
        rectangle = self.rectangle
        return self.room_id_at_zero_based(x - rectangle.x, y - rectangle.y)

    def room_at(self, x: int, y: int) -> Optional[Room]:
        room_id = self.room_id_at(x, y)
        return None if room_id is None else self._rooms[room_id]

    def pass_through_connections(self, x: int, y: int) -> ConnectionsList:
        """Connections whose straight line crosses the cell (absolute coords)."""
        self._update()
        connections = self._pass_through.get(Point(x, y), ConnectionsList())
        return connections.copy() if self._read_only else connections

    def connection_report(self) -> ConnectionReport:
        """
        Classification of every connection between placed rooms.

        Working areas return their shared cache; treat it as read-only.
        Snapshots hand out a copy, so they can never be altered.
        """
        self._update()
        return self._report.copy() if self._read_only else self._report

    @property
    def broken_connections(self) -> ConnectionReport:
        return self.connection_report()

    # ------------------------------------------------------------------
    # Push simulation
    # ------------------------------------------------------------------
    def _require_placed(self, room_id: int) -> Point:
        location = self.locate(room_id)
        if location.status is LocationStatus.NOT_FOUND:
            raise KeyError(f"Could not find room with id {room_id}")
        if location.status is LocationStatus.UNPLACED:
            raise ValueError(f"Room {room_id} is not placed")
        return location.position

    def _moved_position(self, room_id: int, moved: Dict[int, Point]) -> Point:
        return self._positions[room_id].offset(moved.get(room_id, ZERO))

    def _push_step(self, first_room_id: int, axis: str, step: int, moved: Dict[int, Point]):
        """Simulate moving the chain of rooms one cell along ``axis``."""
        behind = _PUSH_BEHIND[(axis, step)]
        ahead = _PUSH_AHEAD[(axis, step)]

        queue = IdQueue.single(first_room_id)
        while queue:
            room_id = queue.pop()
            room = self._rooms[room_id]
            position = self._moved_position(room_id, moved)

            for direction, target_id in room:
                if (target_id == room_id or target_id not in self._positions or
                        queue.was_added(target_id) or queue.was_processed(target_id)):
                    continue

                # Broken connections don't transmit the push
                target_pos = self._moved_position(target_id, moved)
                if not is_connection_straight(position, target_pos, direction):
                    continue

                if direction in behind:
                    continue

                if axis == 'x':
                    distance = abs(target_pos.x - position.x)
                else:
                    distance = abs(target_pos.y - position.y)

                # A longer line ahead absorbs the push
                if direction in ahead and distance > 1:
                    continue

                queue.add(target_id)

            force = moved.get(room_id, ZERO)
            if axis == 'x':
                moved[room_id] = Point(force.x + step, force.y)
            else:
                moved[room_id] = Point(force.x, force.y + step)

    def measure_push(self, room_id: int, force: Point) -> MeasurePushResult:
        """
        Simulate pushing a room by ``force``.

        The room drags every room reachable through still-straight
        connections that would otherwise break, one column at a time for
        |force.x| then one row at a time for |force.y|. When two rooms would
        land on the same cell the later one stays in place; rooms that stay
        in place under a mover are reported as deleted.

        Raises:
            KeyError: unknown room id
            ValueError: the room is not placed
        """
        self._require_placed(room_id)

        moved: Dict[int, Point] = {}
        for axis, amount in (('x', force.x), ('y', force.y)):
            for _ in range(abs(amount)):
                self._push_step(room_id, axis, sign(amount), moved)

        # Resolve rooms that would overlap each other
        landing: Dict[Point, int] = {}
        for moved_id in list(moved):
            new_position = self._positions[moved_id].offset(moved[moved_id])
            if new_position in landing:
                del moved[moved_id]
            else:
                landing[new_position] = moved_id

        deleted: List[int] = []
        for moved_id, delta in moved.items():
            occupant = self._cells.get(self._positions[moved_id].offset(delta))
            if occupant is not None and occupant not in moved and occupant not in deleted:
                deleted.append(occupant)

        return MeasurePushResult(
            [RoomMovement(moved_id, delta) for moved_id, delta in moved.items()],
            deleted,
        )

    def _add_compact_push_neighbours(
        self,
        push: Direction,
        source_pos: Point,
        target_pos: Point,
        exit_dir: Direction,
        queue: IdQueue
    ):
        """Queue rooms sitting next to a perpendicular line, on the side it moves to."""
        cells: List[Point] = []
        if push.is_vertical and exit_dir.is_horizontal:
            y = source_pos.y - 1 if push is Direction.NORTH else source_pos.y + 1
            low, high = sorted((source_pos.x, target_pos.x))
            cells = [Point(x, y) for x in range(low + 1, high)]
        elif push.is_horizontal and exit_dir.is_vertical:
            x = source_pos.x - 1 if push is Direction.WEST else source_pos.x + 1
            low, high = sorted((source_pos.y, target_pos.y))
            cells = [Point(x, y) for y in range(low + 1, high)]

        for cell in cells:
            neighbour_id = self._cells.get(cell)
            if neighbour_id is not None and not queue.was_processed(neighbour_id):
                queue.add(neighbour_id)

    def measure_compact_push(self, room_id: int, direction: Direction) -> MeasurePushResult:
        """
        Simulate a one-cell compaction push of a room in a planar direction.

        Besides the rooms a straight connection would drag, the moving set
        takes the room directly in front of every mover and any room lying
        next to a perpendicular line of a mover, so compaction never drives
        a room through an unrelated connection.

        Raises:
            KeyError: unknown room id
            ValueError: the room is not placed or the direction is diagonal
        """
        if direction in (Direction.UP, Direction.DOWN):
            raise ValueError(f"Compaction push needs a planar direction, got {direction.value}")

        self._require_placed(room_id)
        delta = direction.delta

        queue = IdQueue.single(room_id)
        while queue:
            current_id = queue.pop()
            room = self._rooms[current_id]
            source_pos = self._positions[current_id]

            for exit_dir, target_id in room:
                target_pos = self._positions.get(target_id)
                if target_id == current_id or target_pos is None or queue.was_processed(target_id):
                    continue

                if not is_connection_straight(source_pos, target_pos, exit_dir):
                    continue

                if _pulled_by_compact_push(direction, exit_dir, source_pos, target_pos):
                    queue.add(target_id)

                self._add_compact_push_neighbours(direction, source_pos, target_pos, exit_dir, queue)

            neighbour_id = self._cells.get(source_pos.offset(delta))
            if neighbour_id is not None and not queue.was_processed(neighbour_id):
                queue.add(neighbour_id)

        processed = queue.processed
        processed_set = set(processed)
        deleted: List[int] = []
        for moved_id in processed:
            occupant = self._cells.get(self._positions[moved_id].offset(delta))
            if occupant is not None and occupant not in processed_set and occupant not in deleted:
                deleted.append(occupant)

        return MeasurePushResult([RoomMovement(i, delta) for i in processed], deleted)

    # ------------------------------------------------------------------
    # Grid maintenance
    # ------------------------------------------------------------------
    def fix_single_exit_room_placement(self) -> int:
        """
        Snap every placed single-exit room into the cell in front of a placed
        room exit leading to it, when that cell is free. The snapped room's own
        exit is not consulted.

        Returns:
            Number of rooms moved
        """
        self._check_writable()

        moved = 0
        for room_id in sorted(self._positions):
            position = self._positions.get(room_id)
            if position is None:
                continue

            for direction, target_id in self._rooms[room_id]:
                if target_id == room_id:
                    continue

                target_pos = self._positions.get(target_id)
                if target_pos is None:
                    continue

                target = self._rooms[target_id]
                if target.exits_count != 1:
                    continue

                desired = position.offset(direction.delta)
                if target_pos == desired or desired in self._cells:
                    continue

                self.set_position(target_id, desired)
                moved += 1

        if moved:
            logger.debug(f"Snapped {moved} single-exit rooms next to their neighbours")

        return moved

    def delete_empty_rows_and_columns(self) -> DeleteColsRowsResult:
        """Remove every all-empty row and column inside the rectangle."""
        self._check_writable()

        result = DeleteColsRowsResult()
        if not self._positions:
            return result

        rectangle = self.rectangle
        xs = sorted({p.x for p in self._positions.values()})
        ys = sorted({p.y for p in self._positions.values()})
        new_x = {x: rectangle.x + i for i, x in enumerate(xs)}
        new_y = {y: rectangle.y + i for i, y in enumerate(ys)}

        result.columns = [x - rectangle.x for x in range(rectangle.x, rectangle.x + rectangle.width)
                          if x not in new_x]
        result.rows = [y - rectangle.y for y in range(rectangle.y, rectangle.y + rectangle.height)
                       if y not in new_y]

        if result.columns or result.rows:
            self._replace_positions({
                room_id: Point(new_x[p.x], new_y[p.y])
                for room_id, p in self._positions.items()
            })
            logger.debug(f"Deleted {len(result.columns)} empty columns and {len(result.rows)} empty rows")

        return result

    # ------------------------------------------------------------------
    # Graph views
    # ------------------------------------------------------------------
    def to_graph(self, positioned_only: bool = False) -> nx.MultiDiGraph:
        """
        Room graph as a networkx MultiDiGraph.

        Nodes carry ``name`` and ``position``; edges are keyed by direction
        value and carry ``direction`` and ``connection_type``.
        """
        graph = nx.MultiDiGraph()
        room_ids = sorted(self._positions) if positioned_only else sorted(self._rooms)
        included = set(room_ids)

        for room_id in room_ids:
            graph.add_node(room_id, name=self._rooms[room_id].name,
                           position=self._positions.get(room_id))

        for room_id in room_ids:
            for direction, connection in self._rooms[room_id].connections.items():
                if connection.room_id not in included:
                    continue
                graph.add_edge(room_id, connection.room_id, key=direction.value,
                               direction=direction, connection_type=connection.connection_type)

        return graph

    def group_connected_positioned_rooms(self) -> List[Set[int]]:
        """
        Split placed rooms into connected parts (exits followed both ways).

        Returns:
            Parts sorted ascending by size; among equal sizes the part
            holding the lowest id comes last.
        """
        graph = self.to_graph(positioned_only=True).to_undirected()
        parts = [set(component) for component in nx.connected_components(graph)]
        parts.sort(key=lambda part: (len(part), -min(part)))
        return parts

    def is_reachable(self, first_room_id: int, second_room_id: int) -> bool:
        """True if ``second`` can be reached from ``first`` following exits."""
        self.get_room(first_room_id)
        self.get_room(second_room_id)
        return nx.has_path(self.to_graph(), first_room_id, second_room_id)

    # ------------------------------------------------------------------
    # Copies and comparison
    # ------------------------------------------------------------------
    def clone(self) -> 'Area':
        """Independent copy of positions and marks; room definitions are shared."""
        result = Area(name=self.name)
        result.log_message = self.log_message
        result._rooms = dict(self._rooms)
        result._positions = dict(self._positions)
        result._cells = dict(self._cells)
        result._marks = dict(self._marks)
        result._force_marks = dict(self._force_marks)
        return result

    @staticmethod
    def are_equal(first: 'Area', second: 'Area') -> bool:
        """
        Structural equality: same rooms in the same cells once empty rows
        and columns are removed from both grids.
        """
        return np.array_equal(first.normalized_grid(), second.normalized_grid())


def areas_equal(first: Area, second: Area) -> bool:
    return Area.are_equal(first, second)
