"""Terrain, generation and path planning for exofleet."""

from .grid import GenerationFailure, OutOfBoundsError, TerrainGrid
from .generation import (
    ValueNoise2D,
    build_terrain,
    connect_resources,
    expose_hidden_cells,
    generate_terrain,
    terrain_from_layout,
)
from .helpers import (
    bfs_distances,
    cells_within,
    grid_shortest_path,
    manhattan,
    passable_neighbors,
    reachable_cells,
)
from .pathfinding import PathNotFound, find_path

__all__ = [
    "TerrainGrid",
    "GenerationFailure",
    "OutOfBoundsError",
    "ValueNoise2D",
    "build_terrain",
    "connect_resources",
    "expose_hidden_cells",
    "generate_terrain",
    "terrain_from_layout",
    "bfs_distances",
    "cells_within",
    "grid_shortest_path",
    "manhattan",
    "passable_neighbors",
    "reachable_cells",
    "PathNotFound",
    "find_path",
]
