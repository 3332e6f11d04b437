"""
MUDMAP - Room Graph Layout Engine
=================================

Turns a MUD room/exit graph into a 2D grid layout where as many exits as
possible are drawn as short, straight, unobstructed lines.

Submodules:
- core: Directions, connections, rooms and the Area model
- generation: MapBuilder (placement, repair, compaction, snapshots)
- utils: Frontier queue and networkx adapters

Usage:
    from mudmap import BuildOptions, MapBuilder, rooms_from_dict, build_area

    area = build_area(rooms_from_dict(world), name="midgaard")
    result = MapBuilder(area, BuildOptions()).build()
    final = result.last
"""

from mudmap.core import (
    Area,
    Connection,
    ConnectionReport,
    ConnectionsList,
    ConnectionType,
    Direction,
    MeasurePushResult,
    Point,
    Rectangle,
    Room,
    RoomConnection,
    RoomLocation,
    RoomMark,
    areas_equal,
)
from mudmap.generation.map_builder import (
    BuildOptions,
    MapBuilder,
    MapBuilderResult,
    ResultType,
    build_map,
)
from mudmap.utils.graph_utils import (
    area_to_graph,
    build_area,
    rooms_from_dict,
    rooms_from_graph,
    sanitize_rooms,
)

__version__ = "1.0.0"

__all__ = [
    'Area',
    'Connection',
    'ConnectionReport',
    'ConnectionsList',
    'ConnectionType',
    'Direction',
    'MeasurePushResult',
    'Point',
    'Rectangle',
    'Room',
    'RoomConnection',
    'RoomLocation',
    'RoomMark',
    'areas_equal',
    'BuildOptions',
    'MapBuilder',
    'MapBuilderResult',
    'ResultType',
    'build_map',
    'area_to_graph',
    'build_area',
    'rooms_from_dict',
    'rooms_from_graph',
    'sanitize_rooms',
]
