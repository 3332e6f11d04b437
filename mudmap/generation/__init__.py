"""Layout generation: MapBuilder and its options/result types."""

from mudmap.generation.map_builder import (
    SMALL_FRAGMENT_SIZE,
    BuildOptions,
    MapBuilder,
    MapBuilderResult,
    ResultType,
    build_map,
    build_remove_list,
)

__all__ = [
    'SMALL_FRAGMENT_SIZE',
    'BuildOptions',
    'MapBuilder',
    'MapBuilderResult',
    'ResultType',
    'build_map',
    'build_remove_list',
]
