"""Tests for robot sensing, movement and mode-driven behaviour."""

import pytest

from exofleet.agents import Robot, find_frontier_target, find_resource_target
from exofleet.environment import PathNotFound, TerrainGrid
from exofleet.knowledge import KnowledgeStore
from exofleet.schemas import Inventory, RobotKind, RobotMode, RobotProfile, Tile
from exofleet.station import Station

OPEN_5X5 = [
    ".....",
    ".....",
    "..S..",
    ".....",
    ".....",
]


def make_world(layout, kind=RobotKind.EXPLORER):
    grid = TerrainGrid.from_ascii(layout)
    station = Station.for_grid(grid)
    robot = station.deploy_robot(kind)
    return grid, station, robot


def reveal_all(grid: TerrainGrid, memory: KnowledgeStore, timestamp: int = 0) -> None:
    for (x, y), tile in grid.cells():
        memory.observe(x, y, tile, timestamp, 0, RobotKind.EXPLORER)


def tick(grid, station, robot, times=1):
    for _ in range(times):
        station.tick()
        robot.update(grid, station)


def test_sense_records_neighbourhood_once_per_timestamp():
    grid, _, robot = make_world(OPEN_5X5)

    assert robot.sense(grid, 0) == 9
    assert robot.sense(grid, 0) == 0
    assert robot.sense(grid, 1) == 9
    assert robot.memory.get(1, 1).timestamp == 1


def test_sense_clips_at_grid_edges():
    grid, _, robot = make_world(["S.M"])

    assert robot.sense(grid, 0) == 2
    assert not robot.memory.is_discovered(2, 0)


def test_first_tick_leaves_idle_and_shares_sightings():
    grid, station, robot = make_world(OPEN_5X5)

    tick(grid, station, robot)

    assert robot.mode is RobotMode.EXPLORING
    assert robot.position == (2, 1)
    assert robot.energy == robot.max_energy - 1
    assert station.global_memory.discovered_count() == 9
    assert robot.last_sync_time == 1


def test_explorer_harvests_and_delivers_mineral():
    grid, station, robot = make_world(["S.M"])

    tick(grid, station, robot, times=10)

    assert grid.count_resources() == 0
    assert grid.get_tile(2, 0) is Tile.EMPTY
    assert station.resources.minerals == 1
    assert robot.inventory.is_empty()
    assert robot.at_home
    assert robot.mode is RobotMode.IDLE


def test_harvest_overwrites_stale_memory_record():
    grid, station, robot = make_world(["S.M"])

    tick(grid, station, robot, times=2)

    assert robot.position == (2, 0)
    assert robot.inventory.minerals == 1
    assert robot.memory.get(2, 0).tile_snapshot is Tile.EMPTY


def test_full_inventory_returns_home_and_unloads():
    grid, station, robot = make_world(["S...."], kind=RobotKind.MINERAL_COLLECTOR)
    robot.position = (2, 0)
    robot.inventory = Inventory(minerals=5)

    tick(grid, station, robot)
    assert robot.mode is RobotMode.RETURNING_TO_STATION
    assert robot.position == (1, 0)

    tick(grid, station, robot)
    assert robot.at_home
    assert robot.inventory.is_empty()
    assert station.resources.minerals == 5
    assert robot.energy == robot.max_energy


def test_low_energy_robot_heads_home():
    grid, station, robot = make_world(["S...."])
    robot.position = (3, 0)
    robot.energy = 10

    tick(grid, station, robot)

    assert robot.mode is RobotMode.RETURNING_TO_STATION
    assert robot.position == (2, 0)
    assert robot.energy == 9


def test_low_energy_includes_distance_home():
    grid = TerrainGrid.from_ascii(["S...."])
    robot = Robot(
        id=1,
        kind=RobotKind.EXPLORER,
        profile=RobotProfile(max_energy=50, low_energy_threshold=2),
        home_station=grid.station,
        memory=KnowledgeStore(grid.width, grid.height),
        position=(4, 0),
        energy=5,
    )

    assert robot.is_low_energy(grid)
    robot.energy = 6
    assert not robot.is_low_energy(grid)


def test_flat_robot_does_not_move_or_go_negative():
    grid, station, robot = make_world(["S...."])
    robot.position = (3, 0)
    robot.energy = 0

    tick(grid, station, robot)

    assert robot.position == (3, 0)
    assert robot.energy == 0


def test_unreachable_frontier_falls_back_to_greedy_step(monkeypatch):
    grid, station, robot = make_world(OPEN_5X5)

    def no_route(grid, start, goal):
        raise PathNotFound(start, goal)

    monkeypatch.setattr("exofleet.agents.robot.find_path", no_route)

    tick(grid, station, robot)

    assert robot.mode is RobotMode.EXPLORING
    assert robot.position == (2, 1)
    assert not robot.planned_path


def test_single_cell_world_goes_idle():
    grid, station, robot = make_world(["S"])

    tick(grid, station, robot)

    assert robot.mode is RobotMode.IDLE
    assert station.global_memory.is_complete()


def test_frontier_behind_obstacle_is_observed_from_neighbour():
    grid = TerrainGrid.from_ascii(["S.#"])
    memory = KnowledgeStore(grid.width, grid.height)
    memory.observe(0, 0, Tile.STATION, 0, 1, RobotKind.EXPLORER)
    memory.observe(1, 0, Tile.EMPTY, 0, 1, RobotKind.EXPLORER)

    target = find_frontier_target(grid, memory, grid.station_distances(), (0, 0), sensor_radius=1)

    assert target.cell == (2, 0)
    assert target.goal == (1, 0)


def test_buried_cells_are_not_frontier():
    grid = TerrainGrid.from_ascii(["S.###"])
    memory = KnowledgeStore(grid.width, grid.height)
    for (x, y), tile in grid.cells():
        if (x, y) != (4, 0):
            memory.observe(x, y, tile, 0, 1, RobotKind.EXPLORER)

    assert find_frontier_target(grid, memory, grid.station_distances(), (0, 0), sensor_radius=1) is None


def test_resource_target_respects_robot_kind():
    grid = TerrainGrid.from_ascii(["M.S.E"])
    memory = KnowledgeStore(grid.width, grid.height)
    reveal_all(grid, memory)
    region = grid.station_distances()

    assert find_resource_target(memory, region, (2, 0), RobotKind.MINERAL_COLLECTOR) == (0, 0)
    assert find_resource_target(memory, region, (2, 0), RobotKind.ENERGY_COLLECTOR) == (4, 0)
    assert find_resource_target(memory, region, (2, 0), RobotKind.SCIENTIFIC_COLLECTOR) is None
    # Equal distance: first in scan order.
    assert find_resource_target(memory, region, (2, 0), RobotKind.EXPLORER) == (0, 0)


def survey_gate_world(kind, coverage):
    # A 10x10 open map; the station's memory is filled row by row up to ``coverage``.
    layout = ["." * 10 for _ in range(10)]
    layout[0] = "S" + "." * 8 + "M"
    grid, station, robot = make_world(layout, kind)
    for (x, y), tile in list(grid.cells())[: round(coverage * 100)]:
        station.global_memory.observe(x, y, tile, 0, 0, RobotKind.EXPLORER)
    return grid, station, robot


@pytest.mark.parametrize(
    "kind, coverage, expected",
    [
        (RobotKind.MINERAL_COLLECTOR, 0.2, RobotMode.IDLE),
        (RobotKind.MINERAL_COLLECTOR, 0.3, RobotMode.EXPLORING),
        (RobotKind.SCIENTIFIC_COLLECTOR, 0.3, RobotMode.IDLE),
        (RobotKind.SCIENTIFIC_COLLECTOR, 0.6, RobotMode.EXPLORING),
        (RobotKind.EXPLORER, 0.0, RobotMode.EXPLORING),
    ],
)
def test_collectors_wait_for_survey_coverage(kind, coverage, expected):
    grid, station, robot = survey_gate_world(kind, coverage)

    tick(grid, station, robot)

    assert robot.mode is expected


def test_collector_out_in_the_field_goes_home_before_survey_threshold():
    grid, station, robot = survey_gate_world(RobotKind.SCIENTIFIC_COLLECTOR, 0.0)
    robot.position = (3, 0)
    robot.mode = RobotMode.EXPLORING

    tick(grid, station, robot)

    assert robot.mode is RobotMode.RETURNING_TO_STATION
    assert robot.position == (2, 0)
