"""Snapshot building: freeze the live simulation into read-only models.

Snapshots copy every value they expose, so later ticks never change a snapshot
that has already been handed to a consumer.
"""

from typing import Iterable, List

from .agents.robot import Robot
from .environment.grid import TerrainGrid
from .schemas import GridSnapshot, RobotSnapshot, SimulationSnapshot, StationSnapshot
from .station import Station


def build_robot_snapshot(robot: Robot) -> RobotSnapshot:
    return RobotSnapshot(
        id=robot.id,
        kind=robot.kind,
        mode=robot.mode,
        position=robot.position,
        energy=robot.energy,
        max_energy=robot.max_energy,
        inventory=robot.inventory.model_copy(),
        exploration_coverage=robot.memory.coverage(),
        last_sync_time=robot.last_sync_time,
    )


def build_station_snapshot(station: Station, grid: TerrainGrid, robot_count: int) -> StationSnapshot:
    return StationSnapshot(
        position=station.position,
        resources=station.resources.model_copy(),
        exploration_coverage=station.exploration_coverage(),
        conflict_count=station.conflict_count,
        robot_count=robot_count,
        current_time=station.current_time,
        status_message=station.status_message(grid),
    )


def build_grid_snapshot(grid: TerrainGrid, station: Station) -> GridSnapshot:
    return GridSnapshot(
        width=grid.width,
        height=grid.height,
        tiles=[list(row) for row in grid.tiles],
        explored=station.global_memory.explored_mask(),
    )


def build_snapshot(
    iteration: int,
    grid: TerrainGrid,
    station: Station,
    robots: Iterable[Robot],
    *,
    mission_complete: bool,
    all_missions_complete: bool,
) -> SimulationSnapshot:
    """Capture grid, fleet and station state at the end of a tick."""
    robot_snapshots: List[RobotSnapshot] = [build_robot_snapshot(robot) for robot in robots]
    return SimulationSnapshot(
        iteration=iteration,
        grid=build_grid_snapshot(grid, station),
        robots=robot_snapshots,
        station=build_station_snapshot(station, grid, len(robot_snapshots)),
        mission_complete=mission_complete,
        all_missions_complete=all_missions_complete,
    )
