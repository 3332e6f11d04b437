"""
Map Builder
===========

Lays out the rooms of an Area on the grid and records every intermediate
state as a read-only snapshot.

Phases:
    1. Placing:    breadth-first from a seed room; every new room goes one
                   step from its source in the exit direction (the grid is
                   expanded first if that cell is taken or would block a line)
    2. Repairing:  after each placement, obstacles -> straighten ->
                   intersections, looped while any pass changes the map
    3. Second chance: rooms removed by repairs (or never reached) are placed
                   once more, then solitary rooms are laid out below the map
    4. Compacting: drop empty rows/columns, then push the trailing edge
                   inward (E, S, W, N); cycles repeat while the layout gets
                   strictly smaller
    5. Done:       empty rows/columns removed (only left when compaction
                   is switched off)

Every recorded snapshot counts as one step; running past ``max_steps``
stops the build with ResultType.OUT_OF_STEPS and keeps the partial history.

Usage:
    from mudmap.generation.map_builder import BuildOptions, MapBuilder

    result = MapBuilder(area, BuildOptions(max_steps=500)).build()
    final = result.last
    print(final.rectangle, final.connection_report().broken_count)
"""

import logging
from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Set, Tuple

from mudmap.core.area import Area, MeasurePushResult
from mudmap.core.connections import Connection
from mudmap.core.definitions import COMPACT_DIRECTIONS, ZERO, Direction, Point, RoomMark
from mudmap.utils.id_queue import IdQueue

logger = logging.getLogger(__name__)

# Disconnected fragments below this size are dropped together with a removed room
SMALL_FRAGMENT_SIZE = 10


# ==========================================
# OPTIONS AND RESULT
# ==========================================

class ResultType(Enum):
    """Outcome of a build."""
    SUCCESS = "success"
    OUT_OF_STEPS = "out_of_steps"


@dataclass
class BuildOptions:
    """Configuration for a layout run."""
    max_steps: int = 1000  # Snapshot ceiling
    keep_solitary_rooms: bool = True  # Lay out rooms without exits below the map
    fix_obstacles: bool = True
    fix_non_straight: bool = True
    fix_intersected: bool = True
    compact_map: bool = True
    add_debug_info: bool = False  # Append classification counts to snapshot messages
    colorize_connection_issues: bool = True  # Report rooms touching broken lines
    seed_room_id: Optional[int] = None  # None = first room with exits

    def __post_init__(self):
        if isinstance(self.max_steps, bool) or not isinstance(self.max_steps, int) or self.max_steps < 1:
            raise ValueError(f"max_steps must be a positive integer, got {self.max_steps!r}")

        if self.seed_room_id is not None:
            if (isinstance(self.seed_room_id, bool) or not isinstance(self.seed_room_id, int) or
                    self.seed_room_id < 0):
                raise ValueError(f"seed_room_id must be a non-negative integer, got {self.seed_room_id!r}")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BuildOptions':
        """
        Build options from a plain mapping (e.g. parsed JSON/YAML).

        Raises:
            ValueError: on unknown keys or invalid values
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown build options: {', '.join(unknown)}")
        return cls(**data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class MapBuilderResult:
    """
    Immutable outcome of a build.

    Attributes:
        history: Snapshots in the order they were recorded
        start_compact_step: Index of the first compaction snapshot
        result_type: SUCCESS or OUT_OF_STEPS
        options: Options the build ran with
    """
    history: Tuple[Area, ...]
    start_compact_step: int
    result_type: ResultType
    options: BuildOptions = field(default_factory=BuildOptions)

    @property
    def last(self) -> Optional[Area]:
        return self.history[-1] if self.history else None

    @property
    def success(self) -> bool:
        return self.result_type is ResultType.SUCCESS

    def issue_room_ids(self) -> Set[int]:
        """
        Rooms touching an obstructed, non-straight or intersecting connection
        in the final snapshot (empty when colorizing is switched off).
        """
        if not self.options.colorize_connection_issues or self.last is None:
            return set()

        report = self.last.connection_report()
        result: Set[int] = set()
        for connections in (report.non_straight, report.with_obstacles, report.intersections):
            result.update(connections.room_ids())
        return result


class _OutOfSteps(Exception):
    """Raised internally when the snapshot ceiling is reached."""


# ==========================================
# REMOVAL CLOSURE
# ==========================================

def build_remove_list(area: Area, seed_room_ids: Iterable[int]) -> List[int]:
    """
    Rooms to take off the grid when ``seed_room_ids`` are removed.

    The seeds are removed on a clone; every connected part smaller than
    SMALL_FRAGMENT_SIZE, except the largest part, goes with them so that
    no small island is left floating.

    Args:
        area: Area to simulate on (not modified)
        seed_room_ids: Rooms that must be removed

    Returns:
        Seed ids followed by the ids of the dragged fragments
    """
    result: List[int] = []
    for room_id in seed_room_ids:
        if room_id not in result:
            result.append(room_id)

    trial = area.clone()
    trial.clear_positions(result)

    parts = trial.group_connected_positioned_rooms()
    for part in parts[:-1]:
        if len(part) < SMALL_FRAGMENT_SIZE:
            result.extend(sorted(part))

    return result


def _describe(connection: Connection) -> str:
    return f"#{connection.source_room_id} {connection.direction.value} -> #{connection.target_room_id}"


def _format_ids(room_ids: Sequence[int]) -> str:
    return ", ".join(f"#{i}" for i in room_ids)


# ==========================================
# BUILDER
# ==========================================

class MapBuilder:
    """
    Incremental grid layout of one Area.

    The input area is never modified; the builder works on a clone with all
    positions cleared.
    """

    def __init__(self, area: Area, options: Optional[BuildOptions] = None):
        area.validate()

        self.options = options or BuildOptions()
        self._area = area.clone()
        self._area.clear_positions(self._area.placed_ids)
        self._area.clear_marks()
        self._area.log_message = None

        self._history: List[Area] = []
        self._queue = IdQueue()
        self._removed: Set[int] = set()
        self._retried: Set[int] = set()
        self._start_compact_step: Optional[int] = None

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------
    def build(self) -> MapBuilderResult:
        """Run all phases and return the recorded history."""
        logger.info(f"Building map '{self._area.name}' ({len(self._area)} rooms, "
                    f"max_steps={self.options.max_steps})")

        result_type = ResultType.SUCCESS
        try:
            self._place_all()
            self._place_solitary_rooms()
            self._fix_single_exit_rooms()

            self._start_compact_step = len(self._history)
            if self.options.compact_map:
                self._compact()

            self._finalize()
        except _OutOfSteps:
            result_type = ResultType.OUT_OF_STEPS
            logger.warning(f"Map '{self._area.name}' ran out of steps after "
                           f"{len(self._history)} snapshots")

        if self._start_compact_step is None:
            self._start_compact_step = len(self._history)

        result = MapBuilderResult(
            history=tuple(self._history),
            start_compact_step=self._start_compact_step,
            result_type=result_type,
            options=self.options,
        )

        if result.last is not None:
            report = result.last.connection_report()
            logger.info(f"Finished map '{self._area.name}': {result_type.value}, "
                        f"{len(self._history)} steps, {result.last.positioned_count} rooms placed, "
                        f"{report.broken_count} broken connections")
        return result

    @classmethod
    def multi_run(
        cls,
        area: Area,
        options: Optional[BuildOptions] = None,
        seed_room_ids: Optional[Iterable[int]] = None
    ) -> MapBuilderResult:
        """
        Build once per seed room and keep the best outcome.

        Ranking: successful runs first, then fewer broken connections, then
        smaller bounding rectangle. Earlier seeds win ties.

        Args:
            area: Rooms to lay out
            options: Base options (seed_room_id is overridden per run)
            seed_room_ids: Seeds to try (default: every room with exits)
        """
        options = options or BuildOptions()
        if seed_room_ids is None:
            seeds = [room.id for room in area if room.connections]
        else:
            seeds = list(seed_room_ids)

        if not seeds:
            return cls(area, options).build()

        best: Optional[MapBuilderResult] = None
        best_score = None
        for seed in seeds:
            result = cls(area, replace(options, seed_room_id=seed)).build()
            score = (
                not result.success,
                result.last.connection_report().broken_count,
                result.last.rectangle.area,
            )
            if best_score is None or score < best_score:
                best, best_score = result, score

        logger.info(f"Best seed for '{area.name}': #{best.options.seed_room_id}")
        return best

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------
    def _snapshot(self, message: str):
        if len(self._history) >= self.options.max_steps:
            raise _OutOfSteps()

        if self.options.add_debug_info:
            counts = self._area.connection_report().counts()
            message = f"{message} [" + ", ".join(f"{k}={v}" for k, v in counts.items()) + "]"

        snapshot = self._area.clone()
        snapshot.log_message = message
        snapshot.make_read_only()
        self._history.append(snapshot)
        logger.debug(f"[{len(self._history)}] {message}")

        # Marks only decorate the snapshot they were set for
        self._area.clear_marks()

    # ------------------------------------------------------------------
    # Placement
    # ------------------------------------------------------------------
    def _choose_seed(self) -> Optional[int]:
        if self.options.seed_room_id is not None:
            self._area.get_room(self.options.seed_room_id)
            return self.options.seed_room_id

        for room in self._area:
            if room.connections:
                return room.id
        return None

    def _place_all(self):
        seed = self._choose_seed()
        if seed is None:
            return

        self._area.set_position(seed, ZERO)
        self._queue.add(seed)

        while True:
            self._run_frontier()
            if not self._retry_unplaced():
                break

    def _run_frontier(self):
        while self._queue:
            room_id = self._queue.pop()
            room = self._area.get_room(room_id)

            for direction, target_id in room:
                # Repairs may have removed the source meanwhile
                if not self._area.is_placed(room_id):
                    break

                if (target_id == room_id or self._area.is_placed(target_id) or
                        target_id in self._queue or target_id in self._removed):
                    continue

                self._place_room(room_id, target_id, direction)

    def _needs_expand(self, room_id: int, position: Point) -> bool:
        if self._area.room_id_at(position.x, position.y) is not None:
            return True

        before = len(self._area.connection_report().with_obstacles)
        trial = self._area.clone()
        trial.set_position(room_id, position)
        return len(trial.connection_report().with_obstacles) > before

    def _place_room(self, source_id: int, room_id: int, direction: Direction):
        """Put ``room_id`` one step from ``source_id`` and repair around it."""
        delta = direction.delta
        position = self._area.get_position(source_id).offset(delta)

        if self._needs_expand(room_id, position):
            # The source sits behind the anchor, so it stays where it is
            self._area.expand(position, delta)
            self._snapshot(f"Expanded map at {tuple(position)} towards {direction.value} "
                           f"to make room for #{room_id}")

        self._area.set_position(room_id, position)
        self._queue.add(room_id)
        self._area.mark(room_id, RoomMark.PLACED)
        self._snapshot(f"Placed #{room_id} {direction.value} of #{source_id}")

        self._repair(room_id)

    def _retry_unplaced(self) -> bool:
        """Give one unplaced room with exits its single second chance."""
        for room in self._area:
            if room.id in self._retried or not room.connections or self._area.is_placed(room.id):
                continue

            self._retried.add(room.id)
            self._removed.discard(room.id)
            self._second_chance(room.id)
            return True

        return False

    def _second_chance(self, room_id: int):
        # Prefer an exit of a placed room leading here
        for other_id in self._area.placed_ids:
            for direction, target_id in self._area.get_room(other_id):
                if target_id == room_id:
                    self._place_room(other_id, room_id, direction)
                    return

        for direction, neighbour_id in self._area.get_room(room_id):
            if neighbour_id != room_id and self._area.is_placed(neighbour_id):
                self._place_room(neighbour_id, room_id, direction.opposite)
                return

        rectangle = self._area.rectangle
        position = Point(rectangle.x, rectangle.y + rectangle.height)
        self._area.set_position(room_id, position)
        self._queue.add(room_id)
        self._area.mark(room_id, RoomMark.PLACED)
        self._snapshot(f"Placed unreached #{room_id} below the map")

        self._repair(room_id)

    def _place_solitary_rooms(self):
        if not self.options.keep_solitary_rooms:
            return

        solitary = [room.id for room in self._area
                    if not room.connections and not self._area.is_placed(room.id)]
        if not solitary:
            return

        rectangle = self._area.rectangle
        y = rectangle.y + rectangle.height
        for index, room_id in enumerate(solitary):
            self._area.set_position(room_id, Point(rectangle.x + index, y))
            self._area.mark(room_id, RoomMark.PLACED)
            self._snapshot(f"Placed solitary #{room_id}")

    def _fix_single_exit_rooms(self):
        trial = self._area.clone()
        moved = trial.fix_single_exit_room_placement()
        if not moved:
            return

        before = self._area.connection_report()
        after = trial.connection_report()
        if (len(after.with_obstacles) > len(before.with_obstacles) or
                len(after.non_straight) > len(before.non_straight)):
            logger.debug("Skipped single-exit snapping: it would break connections")
            return

        self._area.set_positions(trial.positions)
        self._snapshot(f"Snapped {moved} single-exit rooms next to their neighbours")

    # ------------------------------------------------------------------
    # Repair passes
    # ------------------------------------------------------------------
    def _repair(self, placed_id: int):
        changed = True
        while changed:
            changed = False
            if self.options.fix_obstacles and self._fix_obstacles():
                changed = True
            if self.options.fix_non_straight and self._fix_non_straight():
                changed = True
            if self.options.fix_intersected and self._fix_intersections(placed_id):
                changed = True

    def _remove_rooms(self, room_ids: List[int], reason: str):
        placed = [i for i in room_ids if self._area.is_placed(i)]
        if not placed:
            return

        for room_id in placed:
            self._area.mark(room_id, RoomMark.REMOVED)
        self._snapshot(f"Removing {_format_ids(placed)} {reason}")

        for room_id in placed:
            self._area.clear_position(room_id)
            self._queue.remove(room_id)
            self._removed.add(room_id)
        self._snapshot(f"Removed {_format_ids(placed)}")

    def _fix_obstacles(self) -> bool:
        changed = False
        while True:
            report = self._area.connection_report()
            if not report.with_obstacles:
                return changed

            connection = report.with_obstacles[0]
            remove_ids = build_remove_list(self._area, sorted(connection.obstacles))
            self._remove_rooms(remove_ids, f"blocking {_describe(connection)}")
            changed = True

    def _evaluate_push(self, push: MeasurePushResult) -> Tuple[Tuple[int, int, int], List[int]]:
        trial = self._area.clone()
        trial.apply_push(push)
        remove_ids = build_remove_list(trial, push.deleted)
        trial.clear_positions(remove_ids)

        report = trial.connection_report()
        return (len(report.with_obstacles), len(report.non_straight), len(remove_ids)), remove_ids

    def _straighten(self, connection: Connection, current_count: int) -> bool:
        source_id, target_id = connection.room_ids
        source_pos = self._area.get_position(source_id)
        target_pos = self._area.get_position(target_id)
        force = source_pos.offset(connection.direction.delta).difference(target_pos)

        # Target next to source first, so it wins ties
        candidates = [
            self._area.measure_push(target_id, force),
            self._area.measure_push(source_id, force.negated()),
        ]

        best = None
        for push in candidates:
            if push.is_empty:
                continue

            key, remove_ids = self._evaluate_push(push)
            if best is None or key < best[0]:
                best = (key, push, remove_ids)

        if best is None or best[0][1] >= current_count:
            return False

        _, push, remove_ids = best
        for movement in push.moved:
            self._area.mark(movement.room_id, RoomMark.MOVED, movement.delta)
        for room_id in remove_ids:
            self._area.mark(room_id, RoomMark.REMOVED)
        self._snapshot(f"Straightening {_describe(connection)}: moving {len(push.moved)} rooms")

        self._area.apply_push(push)
        for room_id in remove_ids:
            self._area.clear_position(room_id)
            self._queue.remove(room_id)
            self._removed.add(room_id)
        self._snapshot(f"Straightened {_describe(connection)}")
        return True

    def _fix_non_straight(self) -> bool:
        changed = False
        index = 0
        while True:
            report = self._area.connection_report()
            if index >= len(report.non_straight):
                return changed

            if self._straighten(report.non_straight[index], len(report.non_straight)):
                changed = True
                index = 0
            else:
                index += 1

    def _fix_intersections(self, placed_id: int) -> bool:
        report = self._area.connection_report()
        if not report.intersections:
            return False

        connection = report.intersections[0]
        current_count = len(report.intersections)
        for candidate_id in connection.room_ids:
            if candidate_id == placed_id:
                continue

            remove_ids = build_remove_list(self._area, [candidate_id])
            trial = self._area.clone()
            trial.clear_positions(remove_ids)
            if len(trial.connection_report().intersections) < current_count:
                self._remove_rooms(remove_ids, f"crossing at {_describe(connection)}")
                return True

        return False

    # ------------------------------------------------------------------
    # Compaction
    # ------------------------------------------------------------------
    @staticmethod
    def _compaction_measure(area: Area) -> Tuple[int, int]:
        grid = area.normalized_grid()
        report = area.connection_report()

        length = 0
        for connections in (report.normal, report.long, report.with_obstacles):
            for connection in connections:
                source = area.get_position(connection.source_room_id)
                target = area.get_position(connection.target_room_id)
                length += max(abs(target.x - source.x), abs(target.y - source.y))

        return grid.size, length

    def _trailing_edge(self, direction: Direction) -> List[int]:
        rectangle = self._area.rectangle
        positions = self._area.positions

        if direction is Direction.EAST:
            return sorted(i for i, p in positions.items() if p.x == rectangle.x)
        if direction is Direction.WEST:
            return sorted(i for i, p in positions.items() if p.x == rectangle.right)
        if direction is Direction.SOUTH:
            return sorted(i for i, p in positions.items() if p.y == rectangle.y)
        return sorted(i for i, p in positions.items() if p.y == rectangle.bottom)

    def _try_compact_push(self, room_id: int, direction: Direction) -> bool:
        push = self._area.measure_compact_push(room_id, direction)
        # Compaction never drops rooms
        if push.deleted:
            return False

        trial = self._area.clone()
        trial.apply_push(push)

        before = self._area.connection_report()
        after = trial.connection_report()
        if (len(after.with_obstacles) > len(before.with_obstacles) or
                len(after.non_straight) > len(before.non_straight) or
                len(after.long) > len(before.long)):
            return False

        if trial.width > self._area.width or trial.height > self._area.height:
            return False

        if Area.are_equal(trial, self._area):
            return False

        if self._compaction_measure(trial) >= self._compaction_measure(self._area):
            return False

        self._area.apply_push(push)
        for movement in push.moved:
            self._area.mark(movement.room_id, RoomMark.MOVED, movement.delta)
        self._snapshot(f"Compacted: pushed #{room_id} {direction.value} ({len(push.moved)} rooms)")
        return True

    def _compact_direction(self, direction: Direction) -> bool:
        changed = False
        while True:
            for room_id in self._trailing_edge(direction):
                if self._try_compact_push(room_id, direction):
                    changed = True
                    break
            else:
                return changed

    def _delete_empty_lanes(self, message: str) -> bool:
        deleted = self._area.delete_empty_rows_and_columns()
        if not (deleted.columns or deleted.rows):
            return False

        self._snapshot(f"{message} ({len(deleted.columns)} columns, {len(deleted.rows)} rows)")
        return True

    def _compact(self):
        cycle = 0
        changed = True
        while changed:
            cycle += 1
            changed = False

            # Pushes are judged on normalized grids, so empty lanes must go first
            self._delete_empty_lanes("Deleted empty rows and columns")
            for direction in COMPACT_DIRECTIONS:
                if self._compact_direction(direction):
                    changed = True
            logger.debug(f"Compaction cycle {cycle}: {'changed' if changed else 'stable'}")

    def _finalize(self):
        if not self._delete_empty_lanes("Final layout") and not self._history:
            self._snapshot("Final layout")


def build_map(area: Area, options: Optional[BuildOptions] = None) -> MapBuilderResult:
    """Convenience wrapper: ``MapBuilder(area, options).build()``."""
    return MapBuilder(area, options).build()
