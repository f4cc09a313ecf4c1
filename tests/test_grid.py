"""Tests for the terrain grid container."""

import pytest

from exofleet.environment import GenerationFailure, OutOfBoundsError, TerrainGrid
from exofleet.schemas import ResourceKind, Tile

LAYOUT = [
    "M.#..",
    ".E#..",
    "..S..",
    "*....",
    ".....",
]


def test_from_ascii_places_station_and_tiles():
    grid = TerrainGrid.from_ascii(LAYOUT)

    assert (grid.width, grid.height) == (5, 5)
    assert grid.station == (2, 2)
    assert grid.get_tile(2, 2) is Tile.STATION
    assert grid.get_tile(0, 0) is Tile.MINERAL
    assert grid.get_tile(1, 1) is Tile.ENERGY
    assert grid.get_tile(0, 3) is Tile.SCIENTIFIC
    assert grid.get_tile(2, 0) is Tile.OBSTACLE
    assert grid.to_ascii() == LAYOUT


def test_get_tile_out_of_bounds_fails_fast():
    grid = TerrainGrid.from_ascii(LAYOUT)

    with pytest.raises(OutOfBoundsError):
        grid.get_tile(5, 0)
    with pytest.raises(OutOfBoundsError):
        grid.get_tile(0, -1)
    # Still an IndexError for callers that treat it generically.
    with pytest.raises(IndexError):
        grid.get_tile(-1, 2)


def test_is_valid_position():
    grid = TerrainGrid.from_ascii(LAYOUT)

    assert grid.is_valid_position(0, 0)  # resource tiles are passable
    assert grid.is_valid_position(2, 2)  # so is the station
    assert not grid.is_valid_position(2, 0)  # obstacle
    assert not grid.is_valid_position(5, 5)  # out of bounds
    assert not grid.is_valid_position(-1, 0)


def test_consume_resource_empties_tile_once():
    grid = TerrainGrid.from_ascii(LAYOUT)
    before = grid.count_resources()

    assert grid.consume_resource(0, 0) is ResourceKind.MINERAL
    assert grid.get_tile(0, 0) is Tile.EMPTY
    assert grid.count_resources() == before - 1

    # Second call on the same cell: nothing to collect, nothing changes.
    assert grid.consume_resource(0, 0) is None
    assert grid.count_resources() == before - 1


def test_consume_resource_on_terrain_is_noop():
    grid = TerrainGrid.from_ascii(LAYOUT)

    assert grid.consume_resource(2, 2) is None
    assert grid.consume_resource(2, 0) is None
    assert grid.get_tile(2, 2) is Tile.STATION
    assert grid.get_tile(2, 0) is Tile.OBSTACLE


def test_resource_positions_are_in_scan_order():
    grid = TerrainGrid.from_ascii(LAYOUT)

    assert grid.resource_positions() == [(0, 0), (1, 1), (0, 3)]
    assert grid.resource_positions(ResourceKind.ENERGY) == [(1, 1)]


@pytest.mark.parametrize("rows", [["....."], ["S..S"], []])
def test_layout_must_hold_exactly_one_station(rows):
    with pytest.raises(GenerationFailure):
        TerrainGrid.from_ascii(rows)


def test_layout_rejects_unknown_symbols():
    with pytest.raises(GenerationFailure):
        TerrainGrid.from_ascii(["S?."])


def test_station_tile_cannot_be_moved():
    grid = TerrainGrid.from_ascii(LAYOUT)

    with pytest.raises(ValueError):
        grid.set_tile(2, 2, Tile.EMPTY)
    with pytest.raises(ValueError):
        grid.set_tile(0, 4, Tile.STATION)


def test_distance_to_station_routes_around_obstacles():
    grid = TerrainGrid.from_ascii(
        [
            "..#..",
            "..#..",
            "..S..",
        ]
    )

    assert grid.distance_to_station((2, 2)) == 0
    assert grid.distance_to_station((1, 0)) == 3
    assert grid.distance_to_station((3, 0)) == 3
    assert grid.distance_to_station((2, 0)) is None  # obstacle
