"""Target selection for robots.

All candidates are ranked by Manhattan distance from the robot, with ties going
to the first cell in scan order (row by row, then column). Reachability is judged
on the real terrain: passability never changes after generation, so the region
connected to the station can be computed once and shared by every robot.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from ..environment.grid import TerrainGrid
from ..environment.helpers import bfs_distances, cells_within, manhattan, passable_neighbors
from ..knowledge import KnowledgeStore
from ..schemas import Coord, RobotKind


@dataclass(frozen=True)
class FrontierTarget:
    """An unexplored cell and the reachable cell to stand on to observe it."""

    cell: Coord
    goal: Coord
    distance: int


def reachable_region(grid: TerrainGrid, position: Coord) -> Dict[Coord, int]:
    """Passable cells connected to ``position`` (with station distances when shared)."""
    distances = grid.station_distances()
    if position in distances:
        return distances
    return bfs_distances(grid, position)


def find_frontier_target(
    grid: TerrainGrid,
    memory: KnowledgeStore,
    region: Dict[Coord, int],
    position: Coord,
    sensor_radius: int,
) -> Optional[FrontierTarget]:
    """Nearest unexplored cell the robot can either walk onto or see from a reachable cell.

    Cells buried deeper inside obstacle fields than the sensor radius can never be
    observed and are not frontier.
    """
    best: Optional[FrontierTarget] = None
    for cell in memory.unexplored_cells():
        distance = manhattan(position, cell)
        if best is not None and distance >= best.distance:
            continue
        if cell in region:
            goal = cell
        else:
            viewpoints = [v for v in cells_within(grid, cell, sensor_radius) if v in region]
            if not viewpoints:
                continue
            goal = min(viewpoints, key=lambda v: (manhattan(position, v), v[1], v[0]))
        if goal == position:
            continue
        best = FrontierTarget(cell=cell, goal=goal, distance=distance)
    return best


def find_resource_target(
    memory: KnowledgeStore,
    region: Dict[Coord, int],
    position: Coord,
    kind: RobotKind,
) -> Optional[Coord]:
    """Nearest remembered resource that ``kind`` can harvest, or None."""
    best: Optional[Coord] = None
    best_distance = 0
    for coord, record in memory.records():
        if not kind.collects(record.tile_snapshot) or coord not in region:
            continue
        distance = manhattan(position, coord)
        if best is None or distance < best_distance:
            best, best_distance = coord, distance
    return best


def greedy_step(grid: TerrainGrid, memory: KnowledgeStore, position: Coord) -> Optional[Coord]:
    """One-step fallback move toward the closest unexplored cell.

    Picks the passable neighbour minimizing the distance to any unexplored cell.
    Returns None when the robot is boxed in or nothing is left unexplored.
    """
    unexplored = list(memory.unexplored_cells())
    if not unexplored:
        return None
    best: Optional[Coord] = None
    best_key = None
    for nb in passable_neighbors(grid, position):
        key = (min(manhattan(nb, cell) for cell in unexplored), nb[1], nb[0])
        if best_key is None or key < best_key:
            best, best_key = nb, key
    return best
