"""Terrain grid container.

The grid's topology (dimensions, station cell) is fixed once built; only its
contents change, and only in one direction: resource tiles become Empty when
harvested. Obstacles are never re-created after generation, so a cell that is
reachable from the station stays reachable for the whole run.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

from ..schemas import Coord, ResourceKind, Tile


class OutOfBoundsError(IndexError):
    """Raised when a coordinate outside the grid is read or written.

    Coordinates are always derived from the grid itself, so this signals an
    internal bug rather than a recoverable condition.
    """

    def __init__(self, x: int, y: int, width: int, height: int) -> None:
        super().__init__(f"Cell ({x}, {y}) is outside the {width}x{height} grid")
        self.x = x
        self.y = y


class GenerationFailure(RuntimeError):
    """Raised when a grid or its station cannot be constructed from the given parameters."""


@dataclass
class TerrainGrid:
    """Fixed-size 2D tile grid with a single station cell.

    Tiles are stored row-major (``tiles[y][x]``). Build instances with
    ``generate_terrain`` or ``TerrainGrid.from_ascii`` rather than by hand; both
    establish the single-station invariant.
    """

    width: int
    height: int
    tiles: List[List[Tile]]
    station: Coord
    # Shortest-path distances from the station over passable cells. Passability
    # never changes after construction, so this is computed once on demand.
    _station_distances: Optional[Dict[Coord, int]] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise GenerationFailure(f"Grid dimensions must be positive, got {self.width}x{self.height}")
        if len(self.tiles) != self.height or any(len(row) != self.width for row in self.tiles):
            raise GenerationFailure("Tile rows do not match the declared grid dimensions")
        sx, sy = self.station
        if not self.in_bounds(sx, sy):
            raise GenerationFailure(f"Station {self.station} lies outside the {self.width}x{self.height} grid")
        stations = [coord for coord, tile in self.cells() if tile is Tile.STATION]
        if stations != [tuple(self.station)]:
            raise GenerationFailure(f"Grid must hold exactly one station tile at {self.station}, found {stations}")
        self.station = (sx, sy)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_ascii(cls, rows: Sequence[str]) -> "TerrainGrid":
        """Build a grid from an ASCII layout.

        Symbols: ``.`` empty, ``#`` obstacle, ``E`` energy, ``M`` mineral,
        ``*`` scientific, ``S`` station (exactly one).

        Raises:
            GenerationFailure: If the layout is empty, ragged, or does not hold exactly one station
        """
        if not rows:
            raise GenerationFailure("Layout has no rows")
        try:
            tiles = [[Tile.from_symbol(symbol) for symbol in row] for row in rows]
        except ValueError as exc:
            raise GenerationFailure(str(exc)) from exc
        stations = [(x, y) for y, row in enumerate(tiles) for x, tile in enumerate(row) if tile is Tile.STATION]
        if len(stations) != 1:
            raise GenerationFailure(f"Layout must contain exactly one station 'S', found {len(stations)}")
        return cls(width=len(rows[0]), height=len(rows), tiles=tiles, station=stations[0])

    def to_ascii(self) -> List[str]:
        return ["".join(tile.symbol for tile in row) for row in self.tiles]

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_tile(self, x: int, y: int) -> Tile:
        """Return the tile at (x, y). Out-of-range access raises OutOfBoundsError."""
        if not self.in_bounds(x, y):
            raise OutOfBoundsError(x, y, self.width, self.height)
        return self.tiles[y][x]

    def is_valid_position(self, x: int, y: int) -> bool:
        """True if (x, y) is inside the grid and not an Obstacle."""
        return self.in_bounds(x, y) and self.tiles[y][x].is_passable

    def cells(self) -> Iterator[Tuple[Coord, Tile]]:
        """Yield ((x, y), tile) in scan order (row by row)."""
        for y, row in enumerate(self.tiles):
            for x, tile in enumerate(row):
                yield (x, y), tile

    def resource_positions(self, kind: Optional[ResourceKind] = None) -> List[Coord]:
        """Coordinates of remaining resource tiles in scan order, optionally of one kind."""
        return [
            coord
            for coord, tile in self.cells()
            if tile.is_resource and (kind is None or tile.resource is kind)
        ]

    def count_resources(self, kind: Optional[ResourceKind] = None) -> int:
        return len(self.resource_positions(kind))

    def station_distances(self) -> Dict[Coord, int]:
        """Shortest step counts from the station to every cell it can reach."""
        if self._station_distances is None:
            from .helpers import bfs_distances

            self._station_distances = bfs_distances(self, self.station)
        return self._station_distances

    def distance_to_station(self, coord: Coord) -> Optional[int]:
        """Steps from ``coord`` back to the station, or None if cut off."""
        return self.station_distances().get(coord)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def set_tile(self, x: int, y: int, tile: Tile) -> None:
        """Overwrite a terrain tile. Used by generation; the station cell is fixed."""
        if not self.in_bounds(x, y):
            raise OutOfBoundsError(x, y, self.width, self.height)
        if (x, y) == self.station or tile is Tile.STATION:
            raise ValueError("The station tile is placed once and never moved")
        self.tiles[y][x] = tile
        self._station_distances = None

    def consume_resource(self, x: int, y: int) -> Optional[ResourceKind]:
        """Harvest the resource at (x, y), leaving an Empty tile.

        Returns:
            The harvested resource kind, or None when there was nothing to collect
            (the tile is not a resource). That case is benign and leaves the grid untouched.
        """
        tile = self.get_tile(x, y)
        if not tile.is_resource:
            return None
        # Resource and Empty tiles are both passable: cached distances stay valid.
        self.tiles[y][x] = Tile.EMPTY
        return tile.resource
