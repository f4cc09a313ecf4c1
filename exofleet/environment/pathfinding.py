"""A* path planning over the terrain grid.

Movement is four-directional with a uniform step cost, so the Manhattan
distance is an admissible and consistent heuristic and the first time the goal
is popped its path is a shortest one.

Tie-breaking is fully deterministic. The open set is ordered by
``(f, h, row, col)``: lowest total estimate first, then the node closer to the
goal, then the lowest (row, column). Two planners fed the same grid return the
same path, which keeps runs reproducible.
"""

from __future__ import annotations

import heapq
from typing import Dict, List

from ..schemas import Coord
from .grid import OutOfBoundsError, TerrainGrid
from .helpers import manhattan, passable_neighbors


class PathNotFound(Exception):
    """No passable route joins start and goal.

    Expected during normal play (goal is an obstacle or lies in another
    component); robots catch it and fall back to a greedy local move.
    """

    def __init__(self, start: Coord, goal: Coord, reason: str = "no passable route") -> None:
        super().__init__(f"No path from {start} to {goal}: {reason}")
        self.start = start
        self.goal = goal
        self.reason = reason


def find_path(grid: TerrainGrid, start: Coord, goal: Coord) -> List[Coord]:
    """Return the shortest path from ``start`` to ``goal`` inclusive.

    Args:
        grid: Terrain to plan over
        start: (x, y) of the first cell; it does not need to be passable
        goal: (x, y) of the destination

    Returns:
        List of coordinates starting with ``start`` and ending with ``goal``.
        ``[start]`` when both are the same cell.

    Raises:
        OutOfBoundsError: If either endpoint lies outside the grid
        PathNotFound: If the goal is an obstacle or cannot be reached
    """
    for x, y in (start, goal):
        if not grid.in_bounds(x, y):
            raise OutOfBoundsError(x, y, grid.width, grid.height)
    if start == goal:
        return [start]
    if not grid.is_valid_position(*goal):
        raise PathNotFound(start, goal, "goal is an obstacle")

    h0 = manhattan(start, goal)
    open_heap = [(h0, h0, start[1], start[0])]
    g_score: Dict[Coord, int] = {start: 0}
    parents: Dict[Coord, Coord] = {}
    closed = set()

    while open_heap:
        _, _, y, x = heapq.heappop(open_heap)
        current = (x, y)
        if current in closed:
            continue  # stale heap entry
        if current == goal:
            return _reconstruct_path(parents, start, goal)
        closed.add(current)

        g_next = g_score[current] + 1
        for nb in passable_neighbors(grid, current):
            if nb in closed or g_next >= g_score.get(nb, g_next + 1):
                continue
            g_score[nb] = g_next
            parents[nb] = current
            h = manhattan(nb, goal)
            heapq.heappush(open_heap, (g_next + h, h, nb[1], nb[0]))

    raise PathNotFound(start, goal)


def _reconstruct_path(parents: Dict[Coord, Coord], start: Coord, goal: Coord) -> List[Coord]:
    path = [goal]
    while path[-1] != start:
        path.append(parents[path[-1]])
    path.reverse()
    return path
