"""Procedural terrain generation.

Pipeline:
1. Sample a seeded, smoothly varying noise field over the grid.
2. Map each sample to a tile kind through the configured thresholds.
3. Clear a resource-free safe zone around the station and place the station.
4. Flood-fill from the station; every resource left outside the reachable
   region gets a corridor carved to it through the fewest obstacles possible.
5. Any cell too deep inside rock to be sensed from the reachable region gets
   the same treatment, so a full survey can always finish.

Steps 4 and 5 turn "resources are probably reachable" into a guarantee. Because no
cell is ever turned back into an obstacle afterwards, reachability holds for the
rest of the run.
"""

from __future__ import annotations

import random
from collections import deque
from typing import Dict, List, Optional, Sequence, Set

from ..logging_utils import log_deterministic, log_info
from ..schemas import Coord, SimulationConfig, TerrainConfig, Tile
from .grid import GenerationFailure, TerrainGrid
from .helpers import DIRECTIONS, cells_within, reachable_cells

_LATTICE_SIZE = 256


def _lerp(a: float, b: float, t: float) -> float:
    return a + (b - a) * t


def _fade(t: float) -> float:
    # Smoothstep keeps the field continuous in its first derivative at lattice lines.
    return t * t * (3.0 - 2.0 * t)


class ValueNoise2D:
    """Seeded 2D value noise.

    Random values in [-1, 1] sit on an integer lattice (hashed through a shuffled
    permutation table) and are blended with smoothstep weights between lattice
    points. The same seed always yields the same field.
    """

    def __init__(self, seed: int):
        rng = random.Random(seed)
        self._values = [rng.uniform(-1.0, 1.0) for _ in range(_LATTICE_SIZE)]
        perm = list(range(_LATTICE_SIZE))
        rng.shuffle(perm)
        self._perm = perm + perm

    def _lattice(self, ix: int, iy: int) -> float:
        mask = _LATTICE_SIZE - 1
        return self._values[self._perm[(self._perm[ix & mask] + iy) & mask]]

    def sample(self, x: float, y: float) -> float:
        x0 = int(x // 1)
        y0 = int(y // 1)
        tx = _fade(x - x0)
        ty = _fade(y - y0)
        top = _lerp(self._lattice(x0, y0), self._lattice(x0 + 1, y0), tx)
        bottom = _lerp(self._lattice(x0, y0 + 1), self._lattice(x0 + 1, y0 + 1), tx)
        return _lerp(top, bottom, ty)

    def fractal(self, x: float, y: float, octaves: int = 1, persistence: float = 0.5) -> float:
        """Sum ``octaves`` layers of doubling frequency, normalized back into [-1, 1]."""
        total = 0.0
        amplitude = 1.0
        frequency = 1.0
        norm = 0.0
        for _ in range(octaves):
            total += self.sample(x * frequency, y * frequency) * amplitude
            norm += amplitude
            amplitude *= persistence
            frequency *= 2.0
        return total / norm


def generate_terrain(
    width: int,
    height: int,
    seed: Optional[int] = None,
    config: Optional[TerrainConfig] = None,
    *,
    sensor_radius: int = 1,
) -> TerrainGrid:
    """Generate a terrain grid with every resource reachable from the station.

    Args:
        width: Grid width in cells
        height: Grid height in cells
        seed: Noise seed; None draws (and logs) a random one
        config: Noise thresholds, scale, safe zone and station placement
        sensor_radius: Every cell ends up within this Chebyshev distance of a
            cell reachable from the station

    Returns:
        A TerrainGrid whose resource tiles are all connected to the station and
        whose every cell can be sensed from the station's region.

    Raises:
        GenerationFailure: If the dimensions are not positive or the station
            position lies outside the grid.
    """
    config = config or TerrainConfig()
    if width <= 0 or height <= 0:
        raise GenerationFailure(f"Cannot place a station on a {width}x{height} grid")

    station = tuple(config.station_position) if config.station_position else (width // 2, height // 2)
    sx, sy = station
    if not (0 <= sx < width and 0 <= sy < height):
        raise GenerationFailure(f"Station position {station} lies outside the {width}x{height} grid")

    if seed is None:
        seed = random.randrange(2**32)
        log_info(f"[Terrain] No seed given, drew seed {seed}")

    noise = ValueNoise2D(seed)
    tiles: List[List[Tile]] = []
    for y in range(height):
        row = []
        for x in range(width):
            value = noise.fractal(
                x / width * config.noise_scale,
                y / height * config.noise_scale,
                octaves=config.octaves,
                persistence=config.persistence,
            )
            row.append(config.thresholds.classify(value))
        tiles.append(row)

    _clear_safe_zone(tiles, station, config.safe_zone_radius)
    tiles[sy][sx] = Tile.STATION

    grid = TerrainGrid(width=width, height=height, tiles=tiles, station=(sx, sy))
    carved = connect_resources(grid)
    carved += expose_hidden_cells(grid, sensor_radius)
    log_deterministic(
        f"[Terrain] Generated {width}x{height} grid (seed {seed}): "
        f"{grid.count_resources()} resources, {carved} obstacle(s) carved"
    )
    return grid


def _clear_safe_zone(tiles: List[List[Tile]], station: Coord, radius: int) -> None:
    sx, sy = station
    height = len(tiles)
    width = len(tiles[0])
    for y in range(max(0, sy - radius), min(height, sy + radius + 1)):
        for x in range(max(0, sx - radius), min(width, sx + radius + 1)):
            tiles[y][x] = Tile.EMPTY


def connect_resources(grid: TerrainGrid) -> int:
    """Carve corridors so every resource tile is reachable from the station.

    Resources are handled in scan order. For each one outside the station's
    region, a 0-1 BFS finds the route into that region crossing the fewest
    obstacles, and those obstacles become Empty.

    Returns:
        Number of obstacle tiles converted.
    """
    reachable = reachable_cells(grid, grid.station)
    carved = 0
    for coord in grid.resource_positions():
        if coord in reachable:
            continue
        carved += _carve(grid, _cheapest_corridor(grid, [coord], reachable))
        log_deterministic(f"[Terrain] Carved corridor to isolated resource at {coord}")
        reachable = reachable_cells(grid, grid.station)
    return carved


def expose_hidden_cells(grid: TerrainGrid, sensor_radius: int = 1) -> int:
    """Carve corridors so every cell can be sensed from the station's region.

    A cell is hidden when no reachable cell lies within ``sensor_radius``
    (Chebyshev) of it. Hidden cells are handled in scan order: the 0-1 BFS starts
    from every cell in the hidden cell's sensing square and opens the fewest
    obstacles needed to join one of them to the region.

    Returns:
        Number of obstacle tiles converted.
    """
    reachable = reachable_cells(grid, grid.station)
    carved = 0
    for coord, _ in grid.cells():
        viewpoints = list(cells_within(grid, coord, sensor_radius))
        if any(cell in reachable for cell in viewpoints):
            continue
        carved += _carve(grid, _cheapest_corridor(grid, viewpoints, reachable))
        log_deterministic(f"[Terrain] Opened a line of sight to hidden cell {coord}")
        reachable = reachable_cells(grid, grid.station)
    return carved


def _carve(grid: TerrainGrid, corridor: List[Coord]) -> int:
    carved = 0
    for x, y in corridor:
        if grid.get_tile(x, y) is Tile.OBSTACLE:
            grid.set_tile(x, y, Tile.EMPTY)
            carved += 1
    return carved


def _cheapest_corridor(grid: TerrainGrid, sources: Sequence[Coord], region: Set[Coord]) -> List[Coord]:
    """Route from any of ``sources`` into ``region`` minimizing obstacles crossed.

    Entering an obstacle costs 1, anything else 0; a source that is itself an
    obstacle starts at cost 1. Ties resolve through the source order and the
    fixed neighbour order, so the corridor is deterministic.
    """
    cost: Dict[Coord, int] = {}
    parents: Dict[Coord, Coord] = {}
    queue: deque[Coord] = deque()
    for source in sources:
        cost[source] = 1 if grid.get_tile(*source) is Tile.OBSTACLE else 0
    # Cheap sources go first so the deque stays ordered by cost.
    queue.extend(source for source in sources if cost[source] == 0)
    queue.extend(source for source in sources if cost[source] == 1)
    while queue:
        coord = queue.popleft()
        if coord in region:
            return _walk_back(parents, coord)
        x, y = coord
        for dx, dy in DIRECTIONS:
            nb = (x + dx, y + dy)
            if not grid.in_bounds(*nb):
                continue
            step = 1 if grid.get_tile(*nb) is Tile.OBSTACLE else 0
            new_cost = cost[coord] + step
            if new_cost >= cost.get(nb, new_cost + 1):
                continue
            cost[nb] = new_cost
            parents[nb] = coord
            if step:
                queue.append(nb)
            else:
                queue.appendleft(nb)
    # Unreachable only if the region is empty, which cannot happen: it holds the station.
    raise GenerationFailure(f"No corridor from {sources[0]} to the station region")


def _walk_back(parents: Dict[Coord, Coord], end: Coord) -> List[Coord]:
    path = [end]
    while path[-1] in parents:
        path.append(parents[path[-1]])
    return path


def build_terrain(config: SimulationConfig) -> TerrainGrid:
    """Build the run's grid from a SimulationConfig: explicit layout or generated.

    Hidden cells are exposed for the shortest sensor range in the fleet, so any
    robot kind can finish the survey.
    """
    sensor_radius = min(profile.sensor_radius for profile in config.robot_profiles.values())
    if config.layout:
        return terrain_from_layout(config.layout, sensor_radius)
    return generate_terrain(config.width, config.height, config.seed, config.terrain, sensor_radius=sensor_radius)


def terrain_from_layout(layout: Sequence[str], sensor_radius: int = 1) -> TerrainGrid:
    """Parse an ASCII layout, guaranteeing every resource is reachable and every cell observable."""
    grid = TerrainGrid.from_ascii(layout)
    carved = connect_resources(grid)
    carved += expose_hidden_cells(grid, sensor_radius)
    log_deterministic(
        f"[Terrain] Loaded {grid.width}x{grid.height} layout: "
        f"{grid.count_resources()} resources, {carved} obstacle(s) carved"
    )
    return grid
