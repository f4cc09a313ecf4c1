"""Tests for procedural terrain generation."""

import pytest

from exofleet.environment import (
    GenerationFailure,
    TerrainGrid,
    ValueNoise2D,
    build_terrain,
    cells_within,
    connect_resources,
    expose_hidden_cells,
    generate_terrain,
    reachable_cells,
    terrain_from_layout,
)
from exofleet.schemas import NoiseThresholds, SimulationConfig, TerrainConfig, Tile

# Roughly half the map turns to rock with these cut-offs, which forces corridor carving.
ROCKY = TerrainConfig(
    thresholds=NoiseThresholds(obstacle=0.0, energy=-0.1, mineral=-0.2, scientific=-0.3),
    noise_scale=6.0,
)


@pytest.mark.parametrize("seed", range(20))
def test_every_resource_reachable_from_station(seed):
    grid = generate_terrain(20, 20, seed)
    reachable = reachable_cells(grid, grid.station)

    for coord in grid.resource_positions():
        assert coord in reachable


@pytest.mark.parametrize("seed", range(10))
def test_rocky_terrain_still_fully_connected(seed):
    grid = generate_terrain(24, 18, seed, ROCKY)
    reachable = reachable_cells(grid, grid.station)

    assert grid.count_resources() > 0
    assert all(coord in reachable for coord in grid.resource_positions())


def test_same_seed_same_terrain():
    first = generate_terrain(16, 16, 1234)
    second = generate_terrain(16, 16, 1234)
    other = generate_terrain(16, 16, 4321)

    assert first.tiles == second.tiles
    assert first.tiles != other.tiles


def test_station_defaults_to_center_with_clear_safe_zone():
    grid = generate_terrain(20, 20, 5)

    assert grid.station == (10, 10)
    stations = [coord for coord, tile in grid.cells() if tile is Tile.STATION]
    assert stations == [(10, 10)]
    for x, y in cells_within(grid, grid.station, 2):
        if (x, y) != grid.station:
            assert grid.get_tile(x, y) is Tile.EMPTY


def test_safe_zone_is_clamped_at_the_edge():
    config = TerrainConfig(station_position=(0, 0), safe_zone_radius=3)
    grid = generate_terrain(10, 8, 9, config)

    assert grid.station == (0, 0)
    for x, y in cells_within(grid, (0, 0), 3):
        if (x, y) != (0, 0):
            assert grid.get_tile(x, y) is Tile.EMPTY


def test_single_cell_grid_is_just_the_station():
    grid = generate_terrain(1, 1, 0)

    assert grid.tiles == [[Tile.STATION]]


@pytest.mark.parametrize("width, height", [(0, 5), (5, 0), (-3, 4)])
def test_degenerate_dimensions_fail(width, height):
    with pytest.raises(GenerationFailure):
        generate_terrain(width, height, 1)


def test_station_outside_grid_fails():
    with pytest.raises(GenerationFailure):
        generate_terrain(5, 5, 1, TerrainConfig(station_position=(7, 2)))


def test_connect_resources_carves_single_wall():
    grid = TerrainGrid.from_ascii(["S.#M"])

    carved = connect_resources(grid)

    assert carved == 1
    assert grid.get_tile(2, 0) is Tile.EMPTY
    assert (3, 0) in reachable_cells(grid, grid.station)


def test_connect_resources_crosses_fewest_obstacles():
    grid = TerrainGrid.from_ascii(
        [
            "S....",
            ".###.",
            ".#M##",
            ".###.",
            ".....",
        ]
    )

    carved = connect_resources(grid)

    assert carved == 1
    assert (2, 2) in reachable_cells(grid, grid.station)
    # Only one wall cell was opened; the rest of the ring is intact.
    obstacles = [coord for coord, tile in grid.cells() if tile is Tile.OBSTACLE]
    assert len(obstacles) == 8


def test_connect_resources_leaves_connected_grid_alone():
    layout = ["S.M", ".#.", "E.."]
    grid = TerrainGrid.from_ascii(layout)

    assert connect_resources(grid) == 0
    assert grid.to_ascii() == layout


def test_build_terrain_prefers_layout():
    config = SimulationConfig(layout=["M#S"])
    grid = build_terrain(config)

    assert (grid.width, grid.height) == (3, 1)
    assert grid.get_tile(1, 0) is Tile.EMPTY  # carved to reach the mineral


def test_value_noise_is_deterministic_and_bounded():
    noise = ValueNoise2D(seed=11)
    again = ValueNoise2D(seed=11)
    samples = [noise.fractal(x * 0.37, y * 0.53, octaves=3) for x in range(20) for y in range(20)]

    assert samples == [again.fractal(x * 0.37, y * 0.53, octaves=3) for x in range(20) for y in range(20)]
    assert all(-1.0 <= value <= 1.0 for value in samples)
    assert len(set(samples)) > 1


def assert_every_cell_observable(grid, sensor_radius=1):
    reachable = reachable_cells(grid, grid.station)
    for coord, _ in grid.cells():
        assert any(cell in reachable for cell in cells_within(grid, coord, sensor_radius)), coord


@pytest.mark.parametrize("seed", range(10))
def test_generated_cells_can_all_be_sensed(seed):
    assert_every_cell_observable(generate_terrain(20, 20, seed))
    assert_every_cell_observable(generate_terrain(24, 18, seed, ROCKY))


def test_wider_sensors_need_fewer_openings():
    grid = generate_terrain(24, 18, 3, ROCKY, sensor_radius=2)

    assert_every_cell_observable(grid, sensor_radius=2)


def test_expose_hidden_cells_opens_line_of_sight_without_digging_out_the_cell():
    grid = TerrainGrid.from_ascii(["S.###"])

    carved = expose_hidden_cells(grid, sensor_radius=1)

    assert carved == 2
    assert grid.to_ascii() == ["S...#"]


def test_longer_sensor_range_carves_less():
    grid = TerrainGrid.from_ascii(["S.###"])

    assert expose_hidden_cells(grid, sensor_radius=2) == 1
    assert grid.to_ascii() == ["S..##"]


def test_expose_hidden_cells_leaves_visible_rock_alone():
    layout = ["S.#", "..#", "###"]
    grid = TerrainGrid.from_ascii(layout)

    assert expose_hidden_cells(grid) == 0
    assert grid.to_ascii() == layout


def test_layouts_are_made_fully_observable():
    grid = terrain_from_layout(["S.####M"])

    assert grid.to_ascii() == ["S.....M"]
    assert_every_cell_observable(grid)
