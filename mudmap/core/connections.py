"""
Connection Ledger
=================

Directed room-to-room connections and the keyed collection that stores them.

A connection and its geometric opposite (B -> A through the opposite
direction) describe the same drawn line, so the ledger stores them once and
flags the entry as two-way. The classification report of an Area is built
from five of these ledgers.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Set, Tuple

from mudmap.core.definitions import Direction


ConnectionKey = Tuple[int, int, Direction]


@dataclass(eq=False)
class Connection:
    """Directed edge (source, direction) -> target."""
    source_room_id: int
    target_room_id: int
    direction: Direction  # Direction from the source room to the target room
    two_way: bool = False
    obstacles: Set[int] = field(default_factory=set)  # Room ids blocking the line

    @property
    def key(self) -> ConnectionKey:
        return (self.source_room_id, self.target_room_id, self.direction)

    @property
    def opposite_key(self) -> ConnectionKey:
        return (self.target_room_id, self.source_room_id, self.direction.opposite)

    @property
    def sort_key(self) -> Tuple[int, int, int]:
        return (self.source_room_id, self.target_room_id, self.direction.order)

    @property
    def room_ids(self) -> Tuple[int, int]:
        return (self.source_room_id, self.target_room_id)

    def as_tuple(self) -> Tuple:
        """Plain value form, used to compare reports."""
        return (
            self.source_room_id,
            self.target_room_id,
            self.direction.value,
            self.two_way,
            tuple(sorted(self.obstacles)),
        )

    def __repr__(self) -> str:
        arrow = "<->" if self.two_way else "->"
        return (f"Connection({self.source_room_id} {arrow} {self.target_room_id}, "
                f"{self.direction.value})")


def _pair_key(first: int, second: int) -> Tuple[int, int]:
    return (first, second) if first <= second else (second, first)


class ConnectionsList:
    """
    Ordered, keyed collection of connections.

    Lookups treat (A, B, d) and (B, A, opposite(d)) as the same entry.
    """

    def __init__(self, connections: Optional[Iterable[Connection]] = None):
        self._items: List[Connection] = []
        self._by_key: Dict[ConnectionKey, Connection] = {}
        self._by_pair: Dict[Tuple[int, int], List[Connection]] = {}

        if connections is not None:
            for connection in connections:
                self._append(connection)

    def __len__(self) -> int:
        return len(self._items)

    def __bool__(self) -> bool:
        return bool(self._items)

    def __iter__(self) -> Iterator[Connection]:
        return iter(self._items)

    def __getitem__(self, index: int) -> Connection:
        return self._items[index]

    def __repr__(self) -> str:
        return f"ConnectionsList({self._items!r})"

    def _append(self, connection: Connection):
        self._items.append(connection)
        self._by_key[connection.key] = connection
        self._by_pair.setdefault(
            _pair_key(connection.source_room_id, connection.target_room_id), []
        ).append(connection)

    def find(
        self,
        source_room_id: int,
        target_room_id: int,
        direction: Optional[Direction] = None
    ) -> Optional[Connection]:
        """
        Find a connection between two rooms.

        Without a direction any connection linking the pair (in either
        orientation) matches. With a direction, the exact connection or its
        geometric opposite matches.
        """
        if direction is None:
            connections = self._by_pair.get(_pair_key(source_room_id, target_room_id))
            return connections[0] if connections else None

        connection = self._by_key.get((source_room_id, target_room_id, direction))
        if connection is not None:
            return connection

        return self._by_key.get((target_room_id, source_room_id, direction.opposite))

    def add(self, source_room_id: int, target_room_id: int, direction: Direction) -> Connection:
        """
        Add a connection, or return the existing equivalent one.

        If the existing entry runs the opposite way, it is flagged two-way.
        """
        connection = self.find(source_room_id, target_room_id, direction)
        if connection is not None:
            if connection.source_room_id == target_room_id and connection.direction == direction.opposite:
                connection.two_way = True
            return connection

        connection = Connection(source_room_id, target_room_id, direction)
        self._append(connection)
        return connection

    def remove(self, connection: Connection):
        self._items.remove(connection)
        self._by_key.pop(connection.key, None)

        pair = _pair_key(connection.source_room_id, connection.target_room_id)
        connections = self._by_pair.get(pair, [])
        if connection in connections:
            connections.remove(connection)
        if not connections:
            self._by_pair.pop(pair, None)

    def sort(self):
        """Order entries canonically (source id, target id, direction)."""
        self._items.sort(key=lambda c: c.sort_key)
        for connections in self._by_pair.values():
            connections.sort(key=lambda c: c.sort_key)

    def room_ids(self) -> Set[int]:
        """Ids of every room touched by a connection in the list."""
        result = set()
        for connection in self._items:
            result.update(connection.room_ids)
        return result

    def copy(self) -> 'ConnectionsList':
        """Independent copy; entries and their obstacle sets are duplicated."""
        return ConnectionsList(
            Connection(c.source_room_id, c.target_room_id, c.direction, c.two_way, set(c.obstacles))
            for c in self._items
        )

    def as_tuples(self) -> List[Tuple]:
        return [c.as_tuple() for c in self._items]


# ==========================================
# CLASSIFICATION REPORT
# ==========================================

@dataclass
class ConnectionReport:
    """
    Geometric health of every connection between placed rooms.

    Categories:
        normal:          target is one step away along the direction
        non_straight:    target lies off the direction's line or behind it
        with_obstacles:  straight, but rooms sit between source and target
        long:            straight and clear, but longer than one step
        intersections:   shares a pass-through cell with another connection
    """
    normal: ConnectionsList = field(default_factory=ConnectionsList)
    non_straight: ConnectionsList = field(default_factory=ConnectionsList)
    with_obstacles: ConnectionsList = field(default_factory=ConnectionsList)
    long: ConnectionsList = field(default_factory=ConnectionsList)
    intersections: ConnectionsList = field(default_factory=ConnectionsList)

    @property
    def broken_count(self) -> int:
        """Connections that could not be drawn as clean lines."""
        return len(self.non_straight) + len(self.with_obstacles)

    @property
    def is_clean(self) -> bool:
        return self.broken_count == 0 and not self.intersections

    def counts(self) -> Dict[str, int]:
        return {
            'normal': len(self.normal),
            'non_straight': len(self.non_straight),
            'with_obstacles': len(self.with_obstacles),
            'long': len(self.long),
            'intersections': len(self.intersections),
        }

    def as_dict(self) -> Dict[str, List[Tuple]]:
        return {
            'normal': self.normal.as_tuples(),
            'non_straight': self.non_straight.as_tuples(),
            'with_obstacles': self.with_obstacles.as_tuples(),
            'long': self.long.as_tuples(),
            'intersections': self.intersections.as_tuples(),
        }

    def sort(self):
        for connections in (self.normal, self.non_straight, self.with_obstacles,
                            self.long, self.intersections):
            connections.sort()

    def copy(self) -> 'ConnectionReport':
        return ConnectionReport(
            normal=self.normal.copy(),
            non_straight=self.non_straight.copy(),
            with_obstacles=self.with_obstacles.copy(),
            long=self.long.copy(),
            intersections=self.intersections.copy(),
        )
