"""Autonomous surface robot.

Each tick ``Robot.update`` runs four phases:
1. Sense: record the current cell and its neighbours (within sensor radius)
   into the robot's own memory.
2. Dock: when standing on the home station, recharge, unload cargo and sync
   knowledge with the station.
3. Decide: summarize the situation into a SensedState and ask the pure
   ``next_mode`` function for this tick's mode.
4. Act: move one step (or harvest) according to the mode.

The grid and station are passed in explicitly on every call; a robot keeps no
reference to either between ticks.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Deque, Dict, Optional

from ..environment.grid import TerrainGrid
from ..environment.helpers import cells_within, manhattan
from ..environment.pathfinding import PathNotFound, find_path
from ..knowledge import KnowledgeRecord, KnowledgeStore
from ..logging_utils import log_verbose, log_warning
from ..schemas import Coord, Inventory, RobotKind, RobotMode, RobotProfile
from .modes import SensedState, next_mode
from .targeting import (
    FrontierTarget,
    find_frontier_target,
    find_resource_target,
    greedy_step,
    reachable_region,
)

if TYPE_CHECKING:  # pragma: no cover
    from ..station import Station

MOVE_COST = 1


@dataclass
class Robot:
    """A robot, its cargo, its memory and its current plan."""

    id: int
    kind: RobotKind
    profile: RobotProfile
    home_station: Coord
    memory: KnowledgeStore
    position: Optional[Coord] = None
    energy: Optional[int] = None
    inventory: Inventory = field(default_factory=Inventory)
    mode: RobotMode = RobotMode.IDLE
    planned_path: Deque[Coord] = field(default_factory=deque)
    target: Optional[Coord] = None
    last_sync_time: int = 0
    # Per-tick scratch filled by assess() and consumed by the act phase.
    _region: Dict[Coord, int] = field(default_factory=dict, init=False, repr=False, compare=False)
    _frontier: Optional[FrontierTarget] = field(default=None, init=False, repr=False, compare=False)
    _resource: Optional[Coord] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.home_station = tuple(self.home_station)
        self.position = tuple(self.position) if self.position is not None else self.home_station
        if self.energy is None:
            self.energy = self.profile.max_energy
        if self.energy < 0:
            raise ValueError("Robot energy cannot be negative")

    @property
    def name(self) -> str:
        return f"{self.kind.value}-{self.id}"

    @property
    def max_energy(self) -> int:
        return self.profile.max_energy

    @property
    def at_home(self) -> bool:
        return self.position == self.home_station

    @property
    def inventory_full(self) -> bool:
        return self.inventory.total() >= self.profile.inventory_capacity

    def is_low_energy(self, grid: TerrainGrid) -> bool:
        """Below the profile threshold, or only just enough charge left to walk home."""
        if self.at_home:
            return False
        if self.energy < self.profile.low_energy_threshold:
            return True
        distance_home = grid.distance_to_station(self.position)
        return distance_home is not None and self.energy <= distance_home + MOVE_COST

    # ------------------------------------------------------------------
    # Tick entry point
    # ------------------------------------------------------------------

    def update(self, grid: TerrainGrid, station: "Station") -> None:
        """Advance this robot by one tick."""
        self.sense(grid, station.current_time)
        if self.at_home:
            self.dock(station)

        sensed = self.assess(grid, station.exploration_coverage())
        previous = self.mode
        self.mode = next_mode(self.mode, sensed)
        if self.mode is not previous:
            self._clear_plan()
            log_verbose(f"[{self.name}] {previous.value} -> {self.mode.value} at {self.position}")

        if self.mode is RobotMode.EXPLORING:
            self._explore(grid)
        elif self.mode is RobotMode.COLLECTING:
            self._collect(grid, station.current_time)
        elif self.mode is RobotMode.RETURNING_TO_STATION:
            self._return_home(grid, station)
        # Idle robots stay put and re-check next tick.

    def sense(self, grid: TerrainGrid, timestamp: int) -> int:
        """Record every cell within sensor range. Returns the number of records written."""
        written = 0
        for x, y in cells_within(grid, self.position, self.profile.sensor_radius):
            if self.memory.observe(x, y, grid.get_tile(x, y), timestamp, self.id, self.kind):
                written += 1
        return written

    def dock(self, station: "Station") -> None:
        """Recharge, unload cargo and sync memory with the station."""
        self.energy = self.max_energy
        if not self.inventory.is_empty():
            cargo = self.inventory
            station.deposit_resources(minerals=cargo.minerals, science=cargo.science, energy=cargo.energy)
            log_verbose(
                f"[{self.name}] Unloaded {cargo.minerals} minerals, {cargo.science} science, {cargo.energy} energy"
            )
            self.inventory = Inventory()
        station.share_knowledge(self)

    def assess(self, grid: TerrainGrid, survey_coverage: float = 1.0) -> SensedState:
        """Summarize the robot's situation for the mode transition.

        ``survey_coverage`` is the station's exploration coverage; below the
        profile's ``work_coverage_threshold`` the robot is kept at the station.
        """
        low_energy = self.is_low_energy(grid)
        inventory_full = self.inventory_full
        survey_ready = survey_coverage >= self.profile.work_coverage_threshold
        self._region = reachable_region(grid, self.position)
        self._frontier = None
        self._resource = None
        heading_home = low_energy or inventory_full or self.mode is RobotMode.RETURNING_TO_STATION
        if survey_ready and (self.at_home or not heading_home):
            self._frontier = find_frontier_target(
                grid, self.memory, self._region, self.position, self.profile.sensor_radius
            )
            self._resource = find_resource_target(self.memory, self._region, self.position, self.kind)
        return SensedState(
            low_energy=low_energy,
            inventory_full=inventory_full,
            at_home=self.at_home,
            frontier_available=self._frontier is not None,
            resource_available=self._resource is not None,
            survey_ready=survey_ready,
        )

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def _explore(self, grid: TerrainGrid) -> None:
        plan_is_fresh = (
            self.target is not None
            and not self.memory.is_discovered(*self.target)
            and self._next_step_valid(grid)
        )
        if not plan_is_fresh:
            frontier = self._frontier
            if frontier is None:
                return
            try:
                path = find_path(grid, self.position, frontier.goal)
            except PathNotFound as exc:
                log_verbose(f"[{self.name}] {exc}; stepping greedily")
                self._clear_plan()
                step = greedy_step(grid, self.memory, self.position)
                if step is not None:
                    self._move(step)
                return
            self.planned_path = deque(path[1:])
            self.target = frontier.cell
        self._advance(grid)

    def _collect(self, grid: TerrainGrid, now: int) -> None:
        plan_is_fresh = (
            self.target is not None
            and self._remembers_collectable(self.target)
            and self._next_step_valid(grid)
        )
        if not plan_is_fresh:
            target = self._resource
            if target is None:
                return
            self._clear_plan()
            self.target = target
            if target != self.position:
                try:
                    path = find_path(grid, self.position, target)
                except PathNotFound as exc:
                    log_verbose(f"[{self.name}] {exc}; dropping target")
                    self._clear_plan()
                    return
                self.planned_path = deque(path[1:])
        self._advance(grid)
        if self.position == self.target:
            self._harvest(grid, now)

    def _return_home(self, grid: TerrainGrid, station: "Station") -> None:
        if self.at_home:
            return
        if self.target != self.home_station or not self._next_step_valid(grid):
            try:
                path = find_path(grid, self.position, self.home_station)
            except PathNotFound as exc:
                log_warning(f"[{self.name}] Cut off from the station: {exc}")
                self._clear_plan()
                return
            self.planned_path = deque(path[1:])
            self.target = self.home_station
        self._advance(grid)
        if self.at_home:
            self._clear_plan()
            self.dock(station)

    def _harvest(self, grid: TerrainGrid, now: int) -> None:
        x, y = self.position
        tile = grid.get_tile(x, y)
        if self.kind.collects(tile):
            resource = grid.consume_resource(x, y)
            self.inventory.add(resource)
            log_verbose(f"[{self.name}] Collected {resource.value} at {self.position}")
        else:
            log_verbose(f"[{self.name}] Nothing to collect at {self.position}")
        # Harvesting changed the cell after this tick's sensing pass: overwrite that record.
        self.memory.record(
            x,
            y,
            KnowledgeRecord(tile_snapshot=grid.get_tile(x, y), timestamp=now, source_id=self.id, source_kind=self.kind),
        )
        self._clear_plan()

    # ------------------------------------------------------------------
    # Movement
    # ------------------------------------------------------------------

    def _remembers_collectable(self, coord: Coord) -> bool:
        record = self.memory.get(*coord)
        return record is not None and self.kind.collects(record.tile_snapshot)

    def _next_step_valid(self, grid: TerrainGrid) -> bool:
        if not self.planned_path:
            return False
        step = self.planned_path[0]
        return manhattan(step, self.position) == 1 and grid.is_valid_position(*step)

    def _advance(self, grid: TerrainGrid) -> bool:
        """Take the next step of the planned path."""
        if not self._next_step_valid(grid):
            self.planned_path.clear()
            return False
        if not self._move(self.planned_path[0]):
            return False
        self.planned_path.popleft()
        return True

    def _move(self, step: Coord) -> bool:
        if self.energy < MOVE_COST:
            log_verbose(f"[{self.name}] Out of energy at {self.position}")
            return False
        self.position = step
        self.energy -= MOVE_COST
        return True

    def _clear_plan(self) -> None:
        self.planned_path.clear()
        self.target = None
