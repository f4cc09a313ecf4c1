"""Tests for the A* path planner."""

import random

import pytest

from exofleet.environment import (
    OutOfBoundsError,
    PathNotFound,
    TerrainGrid,
    bfs_distances,
    find_path,
    generate_terrain,
    grid_shortest_path,
    manhattan,
)
from exofleet.schemas import NoiseThresholds, TerrainConfig

BUSY = TerrainConfig(thresholds=NoiseThresholds(obstacle=0.15, energy=0.1, mineral=0.0, scientific=-0.1), noise_scale=5.0)


def assert_walkable(grid, path):
    for a, b in zip(path, path[1:]):
        assert manhattan(a, b) == 1
        assert grid.is_valid_position(*b)


@pytest.mark.parametrize("seed", range(6))
def test_path_length_matches_bfs_from_station(seed):
    grid = generate_terrain(18, 18, seed, BUSY)
    distances = bfs_distances(grid, grid.station)

    for goal, distance in distances.items():
        path = find_path(grid, grid.station, goal)
        assert path[0] == grid.station
        assert path[-1] == goal
        assert len(path) - 1 == distance
        assert_walkable(grid, path)


@pytest.mark.parametrize("seed", range(6))
def test_path_length_matches_bfs_between_random_pairs(seed):
    grid = generate_terrain(18, 18, seed, BUSY)
    cells = sorted(bfs_distances(grid, grid.station))
    rng = random.Random(seed)

    for _ in range(40):
        start, goal = rng.choice(cells), rng.choice(cells)
        reference = grid_shortest_path(grid, start, goal)
        path = find_path(grid, start, goal)
        assert len(path) == len(reference)
        assert_walkable(grid, path)


def test_start_equals_goal():
    grid = TerrainGrid.from_ascii(["S.."])

    assert find_path(grid, (1, 0), (1, 0)) == [(1, 0)]


def test_goal_obstacle_raises_path_not_found():
    grid = TerrainGrid.from_ascii(["S.#"])

    with pytest.raises(PathNotFound) as info:
        find_path(grid, (0, 0), (2, 0))
    assert info.value.goal == (2, 0)


def test_disconnected_goal_raises_path_not_found():
    grid = TerrainGrid.from_ascii(
        [
            "S.#..",
            "..#..",
            "###..",
        ]
    )

    with pytest.raises(PathNotFound):
        find_path(grid, (0, 0), (4, 2))
    assert grid_shortest_path(grid, (0, 0), (4, 2)) is None


def test_out_of_bounds_endpoint_fails_fast():
    grid = TerrainGrid.from_ascii(["S.."])

    with pytest.raises(OutOfBoundsError):
        find_path(grid, (0, 0), (3, 0))


def test_ties_break_toward_lower_row_then_column():
    grid = TerrainGrid.from_ascii(
        [
            "S..",
            "...",
            "...",
        ]
    )

    path = find_path(grid, (0, 0), (2, 2))

    assert path == [(0, 0), (1, 0), (2, 0), (2, 1), (2, 2)]
    assert find_path(grid, (0, 0), (2, 2)) == path


def test_path_detours_around_wall():
    grid = TerrainGrid.from_ascii(
        [
            "S#.",
            ".#.",
            "...",
        ]
    )

    path = find_path(grid, (0, 0), (2, 0))

    assert len(path) - 1 == 6
    assert_walkable(grid, path)
