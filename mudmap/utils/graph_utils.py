"""
Room Graph Utilities
====================

Adapters between plain room descriptions, networkx graphs and Area.

This module provides:
- Room construction from a networkx DiGraph/MultiDiGraph
- Room construction from a plain dict (parsed JSON/YAML world data)
- Input sanitation (dangling exits, empty rooms, mirrored one-way exits)
- Area construction and export back to networkx

Usage:
    import networkx as nx
    from mudmap.utils.graph_utils import rooms_from_graph, build_area

    G = nx.MultiDiGraph()
    G.add_node(1, name="Gate")
    G.add_node(2, name="Road")
    G.add_edge(1, 2, direction="east")
    area = build_area(rooms_from_graph(G), name="town")
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping

import networkx as nx

from mudmap.core.area import Area
from mudmap.core.definitions import Direction
from mudmap.core.room import ConnectionType, Room, RoomConnection

logger = logging.getLogger(__name__)


# ==========================================
# CONSTRUCTION
# ==========================================

def rooms_from_graph(G: nx.DiGraph) -> List[Room]:
    """
    Build rooms from a directed graph.

    Nodes must be non-negative integer ids and may carry a ``name``
    attribute. Every edge must carry a ``direction`` attribute (Direction or
    direction name); an optional ``connection_type`` is kept.

    Raises:
        ValueError: missing/invalid direction, or two exits of one room in
            the same direction
    """
    exits: Dict[int, Dict[Direction, RoomConnection]] = {node: {} for node in G.nodes()}

    for source, target, data in G.edges(data=True):
        if 'direction' not in data:
            raise ValueError(f"Edge {source} -> {target} has no 'direction' attribute")

        direction = Direction.parse(data['direction'])
        if direction in exits[source]:
            raise ValueError(f"Room {source} has two exits towards {direction.value}")

        connection_type = data.get('connection_type', ConnectionType.FORWARD)
        exits[source][direction] = RoomConnection(int(target), direction, ConnectionType(connection_type))

    return [
        Room(int(node), str(G.nodes[node].get('name', '')), exits[node])
        for node in G.nodes()
    ]


def rooms_from_dict(data: Mapping[Any, Mapping[str, Any]]) -> List[Room]:
    """
    Build rooms from ``{id: {"name": ..., "exits": {direction: target_id}}}``.

    Ids may be given as strings (JSON object keys).

    Example:
        >>> rooms = rooms_from_dict({1: {"name": "Hall", "exits": {"n": 2}},
        ...                          2: {"name": "Yard", "exits": {"s": 1}}})
        >>> [r.id for r in rooms]
        [1, 2]
    """
    return [
        Room.create(int(room_id), str(entry.get('name', '')), entry.get('exits', {}))
        for room_id, entry in data.items()
    ]


# ==========================================
# SANITATION
# ==========================================

def sanitize_rooms(
    rooms: Iterable[Room],
    mirror_one_way: bool = True,
    keep_single_outside_exit: bool = True
) -> List[Room]:
    """
    Clean world data before layout.

    - exits leading to unknown rooms are dropped
    - rooms without a name, exits or incoming exits are dropped
    - unless ``keep_single_outside_exit``, rooms whose only exit leads out
      of the room set (and that nothing leads to) are dropped
    - with ``mirror_one_way``, an exit A -> B through d that B does not
      answer with B -> A through opposite(d) gets a BACKWARD exit
      B -> A when that slot of B is free

    Returns:
        New list of rooms in the input order
    """
    rooms = list(rooms)
    ids = {room.id for room in rooms}

    dangling = 0
    outside_only: List[int] = []
    connections: Dict[int, Dict[Direction, RoomConnection]] = {}
    for room in rooms:
        kept = {d: c for d, c in room.connections.items() if c.room_id in ids}
        dangling += len(room.connections) - len(kept)
        connections[room.id] = kept
        if room.exits_count == 1 and not kept:
            outside_only.append(room.id)

    if dangling:
        logger.info(f"Dropped {dangling} exits leading to missing rooms")

    targeted = {c.room_id for exits in connections.values() for c in exits.values()}
    empty = [room.id for room in rooms
             if not room.name and not connections[room.id] and room.id not in targeted]
    if empty:
        logger.info(f"Dropped {len(empty)} rooms without name or exits")
        for room_id in empty:
            del connections[room_id]

    if not keep_single_outside_exit:
        leaving = [i for i in outside_only if i in connections and i not in targeted]
        if leaving:
            logger.info(f"Dropped {len(leaving)} rooms whose only exit leaves the area")
            for room_id in leaving:
                del connections[room_id]

    if mirror_one_way:
        mirrored = 0
        for source_id in list(connections):
            for direction, connection in list(connections[source_id].items()):
                if (connection.room_id == source_id or
                        connection.connection_type is ConnectionType.BACKWARD):
                    continue

                # Occupied slot: either the answering exit or an unrelated one
                opposite = direction.opposite
                target_exits = connections[connection.room_id]
                if opposite in target_exits:
                    continue

                target_exits[opposite] = RoomConnection(source_id, opposite, ConnectionType.BACKWARD)
                mirrored += 1

        if mirrored:
            logger.debug(f"Mirrored {mirrored} one-way exits")

    return [room.with_connections(connections[room.id]) for room in rooms if room.id in connections]


def build_area(rooms: Iterable[Room], name: str = "", sanitize: bool = True) -> Area:
    """
    Create a validated Area from rooms.

    Raises:
        ValueError: duplicate ids, or dangling exits when ``sanitize`` is off
    """
    if sanitize:
        rooms = sanitize_rooms(rooms)

    area = Area(rooms, name=name)
    area.validate()
    return area


def area_from_graph(G: nx.DiGraph, name: str = "", sanitize: bool = True) -> Area:
    return build_area(rooms_from_graph(G), name=name, sanitize=sanitize)


def area_to_graph(area: Area, positioned_only: bool = False) -> nx.MultiDiGraph:
    """Export an area (or only its placed rooms) as a networkx MultiDiGraph."""
    return area.to_graph(positioned_only=positioned_only)
