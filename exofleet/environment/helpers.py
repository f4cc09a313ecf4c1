"""Utilities for walking the terrain grid."""

from __future__ import annotations

from collections import deque
from typing import Dict, Iterable, Iterator, List, Optional, Set

from ..schemas import Coord
from .grid import TerrainGrid

# Four-directional movement. The order fixes tie-breaking wherever neighbours are
# expanded in sequence: up, left, right, down keeps expansion in scan order.
DIRECTIONS = [(0, -1), (-1, 0), (1, 0), (0, 1)]


def manhattan(a: Coord, b: Coord) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def passable_neighbors(grid: TerrainGrid, coord: Coord) -> Iterator[Coord]:
    x, y = coord
    for dx, dy in DIRECTIONS:
        nx, ny = x + dx, y + dy
        if grid.is_valid_position(nx, ny):
            yield nx, ny


def bfs_distances(grid: TerrainGrid, start: Coord) -> Dict[Coord, int]:
    """Step counts from ``start`` to every passable cell connected to it.

    The start cell is always included (distance 0) even if it is not passable.
    """
    distances = {start: 0}
    queue: deque[Coord] = deque([start])
    while queue:
        coord = queue.popleft()
        for nb in passable_neighbors(grid, coord):
            if nb in distances:
                continue
            distances[nb] = distances[coord] + 1
            queue.append(nb)
    return distances


def reachable_cells(grid: TerrainGrid, start: Coord) -> Set[Coord]:
    """Flood fill over passable cells from ``start``."""
    return set(bfs_distances(grid, start))


def grid_shortest_path(grid: TerrainGrid, start: Coord, goal: Coord) -> Optional[List[Coord]]:
    """Return a BFS shortest path of (x, y) coordinates, or None if unreachable.

    Path includes both start and goal. Used as a reference for the A* planner.
    """
    if start == goal:
        return [start]
    if not grid.is_valid_position(*goal):
        return None

    parents: Dict[Coord, Coord] = {}
    visited = {start}
    queue: deque[Coord] = deque([start])
    while queue:
        coord = queue.popleft()
        for nb in passable_neighbors(grid, coord):
            if nb in visited:
                continue
            visited.add(nb)
            parents[nb] = coord
            if nb == goal:
                path = [goal]
                while path[-1] != start:
                    path.append(parents[path[-1]])
                return path[::-1]
            queue.append(nb)
    return None


def cells_within(grid: TerrainGrid, center: Coord, radius: int) -> Iterable[Coord]:
    """Cells inside the Chebyshev square of ``radius`` around ``center``, clamped to the grid.

    Radius 1 is the centre cell plus its eight neighbours. Yields in scan order.
    """
    cx, cy = center
    for y in range(max(0, cy - radius), min(grid.height, cy + radius + 1)):
        for x in range(max(0, cx - radius), min(grid.width, cx + radius + 1)):
            yield x, y
