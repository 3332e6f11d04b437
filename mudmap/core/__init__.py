"""
MUDMAP Core Module
==================

Value types and the positional model of a map.

Components:
- definitions: Directions, grid points/rectangles, room marks
- connections: Connection ledger and classification report
- room: Immutable room definitions
- area: Room set with positions, derived grid and push simulation

Usage:
    from mudmap.core import Area, Direction, Point, Room
    from mudmap.core.area import LocationStatus
"""

from mudmap.core.definitions import (
    COMPACT_DIRECTIONS,
    EMPTY_CELL,
    Direction,
    Point,
    Rectangle,
    RoomMark,
    direction_delta,
    is_horizontal,
    is_vertical,
    opposite_direction,
)
from mudmap.core.connections import Connection, ConnectionReport, ConnectionsList
from mudmap.core.room import ConnectionType, Room, RoomConnection
from mudmap.core.area import (
    Area,
    DeleteColsRowsResult,
    LocationStatus,
    MeasurePushResult,
    RoomLocation,
    RoomMovement,
    areas_equal,
)

__all__ = [
    'COMPACT_DIRECTIONS',
    'EMPTY_CELL',
    'Direction',
    'Point',
    'Rectangle',
    'RoomMark',
    'direction_delta',
    'is_horizontal',
    'is_vertical',
    'opposite_direction',
    'Connection',
    'ConnectionReport',
    'ConnectionsList',
    'ConnectionType',
    'Room',
    'RoomConnection',
    'Area',
    'DeleteColsRowsResult',
    'LocationStatus',
    'MeasurePushResult',
    'RoomLocation',
    'RoomMovement',
    'areas_equal',
]
