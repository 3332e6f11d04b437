"""
Room definitions.

A Room is the immutable node of the input graph: id, display name and the
exits leaving it. Grid positions are not stored here; the owning Area keeps
them so that every position write goes through one place.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Mapping, NamedTuple, Tuple, Union

from mudmap.core.definitions import Direction


class ConnectionType(Enum):
    """Where an exit came from."""
    FORWARD = "forward"    # Declared by the world file
    BACKWARD = "backward"  # Mirrored from a one-way exit of the target room


class RoomConnection(NamedTuple):
    """Exit of a room: the target room id and how the exit was obtained."""
    room_id: int
    direction: Direction
    connection_type: ConnectionType = ConnectionType.FORWARD


ExitsInput = Mapping[Union[Direction, str], Union[int, RoomConnection]]


@dataclass(frozen=True)
class Room:
    """
    Node of the room graph.

    Attributes:
        id: Stable non-negative identifier
        name: Display name (may be empty)
        connections: Ordered mapping direction -> RoomConnection
    """
    id: int
    name: str = ""
    connections: Dict[Direction, RoomConnection] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.id, int) or self.id < 0:
            raise ValueError(f"Room id must be a non-negative integer, got {self.id!r}")

    @classmethod
    def create(cls, room_id: int, name: str = "", exits: ExitsInput = None) -> 'Room':
        """
        Build a room from a loose exits mapping.

        Example:
            >>> room = Room.create(1, "Temple", {"north": 2, "e": 3})
            >>> room.target(Direction.EAST)
            3
        """
        connections: Dict[Direction, RoomConnection] = {}
        for key, value in (exits or {}).items():
            direction = Direction.parse(key)
            if isinstance(value, RoomConnection):
                connections[direction] = RoomConnection(value.room_id, direction, value.connection_type)
            else:
                connections[direction] = RoomConnection(int(value), direction)

        return cls(room_id, name, connections)

    def __iter__(self) -> Iterator[Tuple[Direction, int]]:
        """Iterate (direction, target room id) pairs."""
        for direction, connection in self.connections.items():
            yield direction, connection.room_id

    @property
    def exits_count(self) -> int:
        return len(self.connections)

    @property
    def target_ids(self) -> List[int]:
        return [c.room_id for c in self.connections.values()]

    def target(self, direction: Direction) -> int:
        """
        Target room id of an exit.

        Raises:
            KeyError: if the room has no exit in that direction
        """
        return self.connections[direction].room_id

    def has_exit(self, direction: Direction) -> bool:
        return direction in self.connections

    def directions_to(self, room_id: int) -> List[Direction]:
        """All exit directions leading to ``room_id``."""
        return [d for d, c in self.connections.items() if c.room_id == room_id]

    def single_connection(self) -> RoomConnection:
        """
        The only exit of a single-exit room.

        Raises:
            ValueError: if the room does not have exactly one exit
        """
        if len(self.connections) != 1:
            raise ValueError(f"Room {self.id} has {len(self.connections)} exits")
        return next(iter(self.connections.values()))

    def with_connections(self, connections: Dict[Direction, RoomConnection]) -> 'Room':
        """Copy of this room with a different exits mapping."""
        return Room(self.id, self.name, dict(connections))

    def __str__(self) -> str:
        return f"{self.name} (#{self.id})" if self.name else f"#{self.id}"
