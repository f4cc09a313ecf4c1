"""
Pydantic schemas for the exofleet simulation.

All shared data structures live here: the closed vocabularies (tiles, resource
kinds, robot kinds and modes), the configuration models read once at start-up,
and the immutable snapshot models emitted once per tick.

Design Philosophy:
- Enums subclass ``str`` so snapshots and scenario files carry plain strings
- Configuration is validated up front (bad thresholds or profiles fail before tick 1)
- Snapshots are frozen; consumers can hold on to them across ticks
"""

from enum import Enum
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Grid coordinates are (x, y): x is the column, y is the row.
Coord = Tuple[int, int]


# ============================================================================
# Vocabulary
# ============================================================================


class ResourceKind(str, Enum):
    """Collectable resource types found on the planet surface."""

    ENERGY = "energy"
    MINERAL = "mineral"
    SCIENTIFIC = "scientific"

    @property
    def tile(self) -> "Tile":
        return Tile(self.value)


class Tile(str, Enum):
    """Terrain kind of a single grid cell."""

    EMPTY = "empty"
    OBSTACLE = "obstacle"
    ENERGY = "energy"
    MINERAL = "mineral"
    SCIENTIFIC = "scientific"
    STATION = "station"

    @property
    def is_resource(self) -> bool:
        return self in (Tile.ENERGY, Tile.MINERAL, Tile.SCIENTIFIC)

    @property
    def is_passable(self) -> bool:
        return self is not Tile.OBSTACLE

    @property
    def resource(self) -> Optional[ResourceKind]:
        """Resource kind carried by this tile, or None for terrain tiles."""
        if not self.is_resource:
            return None
        return ResourceKind(self.value)

    @property
    def symbol(self) -> str:
        return TILE_SYMBOLS[self]

    @classmethod
    def from_symbol(cls, symbol: str) -> "Tile":
        for tile, tile_symbol in TILE_SYMBOLS.items():
            if tile_symbol == symbol:
                return tile
        raise ValueError(f"Unknown tile symbol {symbol!r}")


# ASCII layout symbols, used by scenario layouts and debug dumps.
TILE_SYMBOLS: Dict[Tile, str] = {
    Tile.EMPTY: ".",
    Tile.OBSTACLE: "#",
    Tile.ENERGY: "E",
    Tile.MINERAL: "M",
    Tile.SCIENTIFIC: "*",
    Tile.STATION: "S",
}


class RobotKind(str, Enum):
    """Closed set of robot kinds.

    Explorers map the surface and may pick up any resource once nothing is left to
    explore. Collectors are each tied to a single resource kind.
    """

    EXPLORER = "explorer"
    ENERGY_COLLECTOR = "energy_collector"
    MINERAL_COLLECTOR = "mineral_collector"
    SCIENTIFIC_COLLECTOR = "scientific_collector"

    @property
    def resource(self) -> Optional[ResourceKind]:
        return _COLLECTOR_RESOURCES.get(self)

    @property
    def is_explorer(self) -> bool:
        return self is RobotKind.EXPLORER

    def collects(self, tile: Tile) -> bool:
        """Return True if a robot of this kind may harvest ``tile``."""
        if not tile.is_resource:
            return False
        if self.is_explorer:
            return True
        return tile.resource is self.resource

    @classmethod
    def collector_for(cls, resource: ResourceKind) -> "RobotKind":
        for kind, kind_resource in _COLLECTOR_RESOURCES.items():
            if kind_resource is resource:
                return kind
        raise ValueError(f"No collector for resource {resource!r}")


_COLLECTOR_RESOURCES: Dict[RobotKind, ResourceKind] = {
    RobotKind.ENERGY_COLLECTOR: ResourceKind.ENERGY,
    RobotKind.MINERAL_COLLECTOR: ResourceKind.MINERAL,
    RobotKind.SCIENTIFIC_COLLECTOR: ResourceKind.SCIENTIFIC,
}


class RobotMode(str, Enum):
    """Behavioural state of a robot."""

    EXPLORING = "exploring"
    COLLECTING = "collecting"
    RETURNING_TO_STATION = "returning_to_station"
    IDLE = "idle"


class CompletionPolicy(str, Enum):
    """When the simulation loop stops.

    resources_harvested: every resource tile is gone and all cargo delivered.
    full_survey: additionally the whole map is in global memory and the fleet is
    parked idle at the station.
    """

    RESOURCES_HARVESTED = "resources_harvested"
    FULL_SURVEY = "full_survey"


# ============================================================================
# Economy Schemas
# ============================================================================


class Inventory(BaseModel):
    """Cargo carried by a robot. Capacity applies to the total of all fields."""

    energy: int = Field(0, ge=0, description="Energy cells carried")
    minerals: int = Field(0, ge=0, description="Mineral units carried")
    science: int = Field(0, ge=0, description="Scientific samples carried")

    def total(self) -> int:
        return self.energy + self.minerals + self.science

    def is_empty(self) -> bool:
        return self.total() == 0

    def add(self, resource: ResourceKind, amount: int = 1) -> None:
        if resource is ResourceKind.ENERGY:
            self.energy += amount
        elif resource is ResourceKind.MINERAL:
            self.minerals += amount
        else:
            self.science += amount


class RobotCost(BaseModel):
    """Price of building one robot."""

    energy: int = Field(50, ge=0, description="Station energy debited per robot")
    minerals: int = Field(15, ge=0, description="Station minerals debited per robot")


class StationResources(BaseModel):
    """Stockpile held by the station. Every field stays non-negative."""

    energy: int = Field(100, ge=0, description="Energy reserves")
    minerals: int = Field(0, ge=0, description="Minerals delivered")
    science: int = Field(0, ge=0, description="Scientific samples delivered")

    def can_afford(self, cost: RobotCost) -> bool:
        return self.energy >= cost.energy and self.minerals >= cost.minerals


class RobotProfile(BaseModel):
    """Per-kind robot stats and build cost."""

    cost: RobotCost = Field(default_factory=RobotCost, description="Build cost")
    max_energy: int = Field(..., gt=0, description="Energy after a full recharge")
    inventory_capacity: int = Field(5, gt=0, description="Total cargo units carried before returning")
    low_energy_threshold: int = Field(..., ge=0, description="Return to station below this energy")
    sensor_radius: int = Field(1, ge=1, description="Chebyshev radius sensed each tick (1 = adjacent cells)")
    work_coverage_threshold: float = Field(
        0.0, ge=0.0, le=1.0, description="Station exploration coverage required before leaving to work"
    )

    @model_validator(mode="after")
    def _threshold_below_capacity(self) -> "RobotProfile":
        if self.low_energy_threshold >= self.max_energy:
            raise ValueError(
                f"low_energy_threshold ({self.low_energy_threshold}) must be below max_energy ({self.max_energy})"
            )
        return self


def default_robot_profiles() -> Dict[RobotKind, RobotProfile]:
    """Stock profiles.

    Energy thresholds sit at 30% of each kind's battery. Collectors stay parked
    until the station has mapped 30% of the surface, science until 60%.
    """
    return {
        RobotKind.EXPLORER: RobotProfile(max_energy=80, inventory_capacity=5, low_energy_threshold=24),
        RobotKind.ENERGY_COLLECTOR: RobotProfile(
            max_energy=120, inventory_capacity=5, low_energy_threshold=36, work_coverage_threshold=0.3
        ),
        RobotKind.MINERAL_COLLECTOR: RobotProfile(
            max_energy=100, inventory_capacity=5, low_energy_threshold=30, work_coverage_threshold=0.3
        ),
        RobotKind.SCIENTIFIC_COLLECTOR: RobotProfile(
            max_energy=60, inventory_capacity=3, low_energy_threshold=18, work_coverage_threshold=0.6
        ),
    }


# ============================================================================
# Configuration Schemas
# ============================================================================


class NoiseThresholds(BaseModel):
    """Noise cut-offs mapping a sample in [-1, 1] to a tile kind.

    Checked from the top: above ``obstacle`` is an Obstacle, above ``energy`` an
    Energy tile, and so on; anything at or below ``scientific`` is Empty.
    """

    obstacle: float = 0.5
    energy: float = 0.3
    mineral: float = 0.1
    scientific: float = 0.0

    @model_validator(mode="after")
    def _descending(self) -> "NoiseThresholds":
        if not (self.obstacle > self.energy > self.mineral > self.scientific):
            raise ValueError("noise thresholds must be strictly descending: obstacle > energy > mineral > scientific")
        return self

    def classify(self, value: float) -> Tile:
        if value > self.obstacle:
            return Tile.OBSTACLE
        if value > self.energy:
            return Tile.ENERGY
        if value > self.mineral:
            return Tile.MINERAL
        if value > self.scientific:
            return Tile.SCIENTIFIC
        return Tile.EMPTY


class TerrainConfig(BaseModel):
    """Procedural terrain parameters."""

    thresholds: NoiseThresholds = Field(default_factory=NoiseThresholds)
    noise_scale: float = Field(4.0, gt=0, description="Noise frequency across the whole map")
    octaves: int = Field(1, ge=1, le=8, description="Number of summed noise octaves")
    persistence: float = Field(0.5, gt=0, le=1, description="Amplitude falloff per octave")
    safe_zone_radius: int = Field(2, ge=0, description="Resource-free radius around the station")
    station_position: Optional[Tuple[int, int]] = Field(
        None, description="Station (x, y); defaults to the grid center"
    )


class SimulationConfig(BaseModel):
    """Everything the core reads once at construction."""

    name: str = Field("exofleet", description="Human-readable scenario name")
    description: str = Field("", description="Scenario description")
    width: int = Field(20, description="Grid width in cells")
    height: int = Field(20, description="Grid height in cells")
    seed: Optional[int] = Field(None, description="Generation seed; None draws one at random")
    terrain: TerrainConfig = Field(default_factory=TerrainConfig)
    layout: Optional[List[str]] = Field(
        None, description="Explicit ASCII map (one string per row); replaces generation when set"
    )
    robot_profiles: Dict[RobotKind, RobotProfile] = Field(default_factory=default_robot_profiles)
    initial_fleet: List[RobotKind] = Field(
        default_factory=lambda: list(RobotKind),
        description="Robot kinds deployed at tick 0, in id order",
    )
    initial_resources: StationResources = Field(default_factory=StationResources)
    completion_policy: CompletionPolicy = CompletionPolicy.RESOURCES_HARVESTED
    max_ticks: Optional[int] = Field(5000, ge=1, description="Hard cap on ticks; None runs until completion")
    spawn_interval: int = Field(1, ge=1, description="Attempt a robot build every N ticks")
    tick_interval_seconds: float = Field(0.0, ge=0, description="Pause between ticks in the async loop")
    rescue_stranded_robots: bool = Field(True, description="Tow robots that run flat back to the station")
    snapshot_queue_size: int = Field(100, ge=1, description="Outbound snapshot buffer before drop-oldest")

    @field_validator("robot_profiles")
    @classmethod
    def _fill_missing_profiles(cls, value: Dict[RobotKind, RobotProfile]) -> Dict[RobotKind, RobotProfile]:
        profiles = default_robot_profiles()
        profiles.update(value)
        return profiles

    @model_validator(mode="after")
    def _layout_dimensions(self) -> "SimulationConfig":
        # An explicit layout fixes the grid size.
        if self.layout:
            widths = {len(row) for row in self.layout}
            if len(widths) != 1:
                raise ValueError("layout rows must all have the same length")
            self.width = widths.pop()
            self.height = len(self.layout)
        return self

    def profile_for(self, kind: RobotKind) -> RobotProfile:
        return self.robot_profiles[kind]


# ============================================================================
# Snapshot Schemas
# ============================================================================


class RobotSnapshot(BaseModel):
    """Read-only view of one robot at the end of a tick."""

    model_config = ConfigDict(frozen=True)

    id: int
    kind: RobotKind
    mode: RobotMode
    position: Coord
    energy: int
    max_energy: int
    inventory: Inventory
    exploration_coverage: float = Field(..., description="Fraction of the map in this robot's memory")
    last_sync_time: int


class StationSnapshot(BaseModel):
    """Read-only view of the station at the end of a tick."""

    model_config = ConfigDict(frozen=True)

    position: Coord
    resources: StationResources
    exploration_coverage: float = Field(..., description="Fraction of cells discovered in global memory")
    conflict_count: int
    robot_count: int
    current_time: int
    status_message: str


class GridSnapshot(BaseModel):
    """Terrain contents plus the global exploration mask."""

    model_config = ConfigDict(frozen=True)

    width: int
    height: int
    tiles: List[List[Tile]] = Field(..., description="Row-major tiles, indexed [y][x]")
    explored: List[List[bool]] = Field(..., description="Row-major discovered flags from global memory")


class SimulationSnapshot(BaseModel):
    """Immutable point-in-time view of the whole simulation, one per tick."""

    model_config = ConfigDict(frozen=True)

    iteration: int
    grid: GridSnapshot
    robots: List[RobotSnapshot]
    station: StationSnapshot
    mission_complete: bool
    all_missions_complete: bool
