"""
MUDMAP DEFINITIONS
==================
Central constants and small value types shared by the layout engine.

This file is the SINGLE SOURCE OF TRUTH for:
- Exit directions (six logical directions sharing the 2D grid)
- Direction deltas, opposites and axis classification
- Grid points and rectangles
- Room marks used when recording snapshots

Import from here instead of duplicating constants across modules.

"""

from enum import Enum
from typing import Dict, NamedTuple, Tuple


# ==========================================
# GRID VALUE TYPES
# ==========================================

class Point(NamedTuple):
    """Integer grid coordinate (x grows east, y grows south)."""
    x: int
    y: int

    def offset(self, delta: 'Point') -> 'Point':
        """Return this point moved by ``delta``."""
        return Point(self.x + delta.x, self.y + delta.y)

    def difference(self, other: 'Point') -> 'Point':
        """Return the vector from ``other`` to this point."""
        return Point(self.x - other.x, self.y - other.y)

    def negated(self) -> 'Point':
        return Point(-self.x, -self.y)


ZERO = Point(0, 0)


class Rectangle(NamedTuple):
    """Bounding box over grid cells. ``width``/``height`` count cells."""
    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        """Last column covered by the rectangle."""
        return self.x + self.width - 1

    @property
    def bottom(self) -> int:
        """Last row covered by the rectangle."""
        return self.y + self.height - 1

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def contains(self, point: Point) -> bool:
        return (self.x <= point.x < self.x + self.width and
                self.y <= point.y < self.y + self.height)


EMPTY_RECTANGLE = Rectangle(0, 0, 0, 0)

# Occupancy grid value for a cell without a room
EMPTY_CELL = -1


def sign(value: int) -> int:
    """Return -1, 0 or 1."""
    return (value > 0) - (value < 0)


# ==========================================
# DIRECTIONS
# ==========================================

class Direction(Enum):
    """Exit directions. Up/Down are drawn as diagonals on the plane."""
    NORTH = "north"
    EAST = "east"
    SOUTH = "south"
    WEST = "west"
    UP = "up"
    DOWN = "down"

    @property
    def delta(self) -> Point:
        return direction_delta(self)

    @property
    def opposite(self) -> 'Direction':
        return opposite_direction(self)

    @property
    def is_horizontal(self) -> bool:
        return is_horizontal(self)

    @property
    def is_vertical(self) -> bool:
        return is_vertical(self)

    @property
    def order(self) -> int:
        """Position in declaration order, used for canonical sorting."""
        return _DIRECTION_ORDER[self]

    @classmethod
    def parse(cls, value) -> 'Direction':
        """
        Parse a direction from a Direction, a full name or a one-letter alias.

        Raises:
            ValueError: if the value does not name a direction
        """
        if isinstance(value, Direction):
            return value

        key = str(value).strip().lower()
        if key in DIRECTION_ALIASES:
            return DIRECTION_ALIASES[key]

        raise ValueError(f"Unknown direction {value!r}")


_DIRECTION_ORDER: Dict[Direction, int] = {d: i for i, d in enumerate(Direction)}

DIRECTION_DELTAS: Dict[Direction, Point] = {
    Direction.NORTH: Point(0, -1),
    Direction.EAST: Point(1, 0),
    Direction.SOUTH: Point(0, 1),
    Direction.WEST: Point(-1, 0),
    Direction.UP: Point(1, -1),
    Direction.DOWN: Point(-1, 1),
}

OPPOSITE_DIRECTIONS: Dict[Direction, Direction] = {
    Direction.NORTH: Direction.SOUTH,
    Direction.SOUTH: Direction.NORTH,
    Direction.EAST: Direction.WEST,
    Direction.WEST: Direction.EAST,
    Direction.UP: Direction.DOWN,
    Direction.DOWN: Direction.UP,
}

DIRECTION_ALIASES: Dict[str, Direction] = {
    **{d.value: d for d in Direction},
    'n': Direction.NORTH,
    'e': Direction.EAST,
    's': Direction.SOUTH,
    'w': Direction.WEST,
    'u': Direction.UP,
    'd': Direction.DOWN,
}

# Planar directions in the order the compaction pass visits them
COMPACT_DIRECTIONS: Tuple[Direction, ...] = (
    Direction.EAST,
    Direction.SOUTH,
    Direction.WEST,
    Direction.NORTH,
)


def direction_delta(direction: Direction) -> Point:
    """Unit grid step for a direction."""
    return DIRECTION_DELTAS[direction]


def opposite_direction(direction: Direction) -> Direction:
    return OPPOSITE_DIRECTIONS[direction]


def is_horizontal(direction: Direction) -> bool:
    return direction in (Direction.EAST, Direction.WEST)


def is_vertical(direction: Direction) -> bool:
    return direction in (Direction.NORTH, Direction.SOUTH)


def same_axis(first: Direction, second: Direction) -> bool:
    """True when both directions are horizontal or both are vertical."""
    return ((is_horizontal(first) and is_horizontal(second)) or
            (is_vertical(first) and is_vertical(second)))


# ==========================================
# SNAPSHOT MARKS
# ==========================================

class RoomMark(Enum):
    """Highlight applied to a room in a snapshot before a change commits."""
    PLACED = "placed"      # Room just placed on the grid
    MOVED = "moved"        # Room about to be pushed
    REMOVED = "removed"    # Room about to lose its position
