"""
Room graph builders shared by the test modules.
"""

from mudmap.core.area import Area
from mudmap.core.definitions import Direction, Point
from mudmap.core.room import Room


def make_area(exits, positions=None, name="test"):
    """
    Build an Area from ``{room_id: {direction: target_id}}`` and optional
    ``{room_id: (x, y)}`` positions.
    """
    rooms = [Room.create(room_id, f"Room {room_id}", room_exits)
             for room_id, room_exits in exits.items()]
    area = Area(rooms, name=name)
    if positions:
        area.set_positions({room_id: Point(*p) for room_id, p in positions.items()})
    return area


def line_exits(room_ids):
    """Two-way east/west chain through ``room_ids`` in order."""
    exits = {room_id: {} for room_id in room_ids}
    for left, right in zip(room_ids, room_ids[1:]):
        exits[left]['east'] = right
        exits[right]['west'] = left
    return exits


def grid_exits(width, height):
    """Two-way mesh; room id = y * width + x + 1."""
    exits = {}
    for y in range(height):
        for x in range(width):
            room_id = y * width + x + 1
            room_exits = {}
            if x + 1 < width:
                room_exits['east'] = room_id + 1
            if y + 1 < height:
                room_exits['south'] = room_id + width
            if x > 0:
                room_exits['west'] = room_id - 1
            if y > 0:
                room_exits['north'] = room_id - width
            exits[room_id] = room_exits
    return exits


def complete_exits(count):
    """Every room links to every other one; directions assigned round-robin."""
    directions = list(Direction)
    exits = {}
    for room_id in range(1, count + 1):
        others = [other for other in range(1, count + 1) if other != room_id]
        exits[room_id] = {
            directions[(room_id + index) % len(directions)]: other
            for index, other in enumerate(others)
        }
    return exits


