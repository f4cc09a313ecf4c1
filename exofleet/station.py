"""
The base station: economy, robot factory, knowledge hub and mission judge.

The station is the only place where knowledge crosses between robots. A robot
that docks hands over its memory, the station merges it into global memory
(station wins ties), and the robot leaves carrying the merged result.

Economy:
- Deposits only ever add to the stockpile. Each delivered mineral is also
  refined into one unit of energy reserves.
- Building a robot debits the kind's cost all at once, or not at all.
- An unaffordable build is normal and is simply retried on a later tick.
"""

from typing import Dict, Iterable, List, Optional

from .agents.robot import Robot
from .environment.grid import TerrainGrid
from .knowledge import KnowledgeStore, MergeResult
from .logging_utils import log_info, log_success, log_verbose, log_warning
from .schemas import (
    Coord,
    RobotKind,
    RobotMode,
    RobotProfile,
    StationResources,
    default_robot_profiles,
)
from .spawning import PhasedSpawnPolicy, SpawnPolicy


class Station:
    """Central station at a fixed grid position."""

    def __init__(
        self,
        position: Coord,
        width: int,
        height: int,
        *,
        resources: Optional[StationResources] = None,
        robot_profiles: Optional[Dict[RobotKind, RobotProfile]] = None,
        spawn_policy: Optional[SpawnPolicy] = None,
        next_robot_id: int = 1,
    ):
        """Create a station.

        Args:
            position: (x, y) of the station tile
            width: Grid width (sizes global memory)
            height: Grid height (sizes global memory)
            resources: Starting stockpile; defaults to 100 energy and nothing else
            robot_profiles: Per-kind stats and build costs; defaults to the stock profiles
            spawn_policy: Heuristic choosing which kind to build; defaults to PhasedSpawnPolicy
            next_robot_id: First id handed out
        """
        self.position: Coord = tuple(position)
        self.resources = resources.model_copy() if resources is not None else StationResources()
        self.robot_profiles = dict(robot_profiles) if robot_profiles is not None else default_robot_profiles()
        self.spawn_policy = spawn_policy or PhasedSpawnPolicy()
        self.global_memory = KnowledgeStore(width, height)
        self.conflict_count = 0
        self.next_robot_id = next_robot_id
        self.current_time = 0

    @classmethod
    def for_grid(cls, grid: TerrainGrid, **kwargs) -> "Station":
        return cls(grid.station, grid.width, grid.height, **kwargs)

    def tick(self) -> None:
        self.current_time += 1

    # ------------------------------------------------------------------
    # Fleet
    # ------------------------------------------------------------------

    def deploy_robot(self, kind: RobotKind) -> Robot:
        """Create a robot at the station without charging for it (initial fleet)."""
        robot = Robot(
            id=self.next_robot_id,
            kind=kind,
            profile=self.robot_profiles[kind],
            home_station=self.position,
            memory=self.global_memory.copy(),
            last_sync_time=self.current_time,
        )
        self.next_robot_id += 1
        return robot

    def try_create_robot(self, grid: TerrainGrid) -> Optional[Robot]:
        """Build the robot the spawn policy asks for, if the stockpile covers it.

        Returns:
            The new robot, positioned at the station with a copy of global memory,
            or None when nothing is needed or the cost cannot be met.
        """
        kind = self.spawn_policy.choose_kind(self, grid)
        if kind is None:
            return None
        cost = self.robot_profiles[kind].cost
        if not self.resources.can_afford(cost):
            log_verbose(
                f"[Station] Cannot afford {kind.value} yet "
                f"(energy {self.resources.energy}/{cost.energy}, minerals {self.resources.minerals}/{cost.minerals})"
            )
            return None
        self.resources.energy -= cost.energy
        self.resources.minerals -= cost.minerals
        robot = self.deploy_robot(kind)
        log_success(f"[Station] Built {robot.name} at t={self.current_time}")
        return robot

    def rescue(self, robot: Robot) -> None:
        """Tow a robot that ran flat back to the station at half charge."""
        log_warning(f"[Station] Rescuing {robot.name} stranded at {robot.position}")
        robot.position = self.position
        robot.energy = robot.max_energy // 2
        robot.planned_path.clear()
        robot.target = None
        robot.mode = RobotMode.IDLE

    # ------------------------------------------------------------------
    # Economy and knowledge
    # ------------------------------------------------------------------

    def deposit_resources(self, minerals: int = 0, science: int = 0, energy: int = 0) -> None:
        """Add delivered cargo to the stockpile; minerals also feed the energy reserves.

        Raises:
            ValueError: If any amount is negative
        """
        if minerals < 0 or science < 0 or energy < 0:
            raise ValueError(f"Deposits cannot be negative (minerals={minerals}, science={science}, energy={energy})")
        self.resources.minerals += minerals
        self.resources.science += science
        self.resources.energy += energy + minerals

    def share_knowledge(self, robot: Robot) -> MergeResult:
        """Merge a docked robot's memory with global memory; both end up with the result."""
        result = KnowledgeStore.merge(self.global_memory, robot.memory)
        if result.conflicts:
            self.conflict_count += result.conflicts
            log_info(
                f"[Station] {result.conflicts} conflicting record(s) from {robot.name} resolved in the station's favour"
            )
        self.global_memory = result.store
        robot.memory = result.store.copy()
        robot.last_sync_time = self.current_time
        log_verbose(f"[Station] Synced {robot.name}: {result.adopted} cell(s) learned")
        return result

    # ------------------------------------------------------------------
    # Mission status
    # ------------------------------------------------------------------

    def exploration_coverage(self) -> float:
        return self.global_memory.coverage()

    def is_mission_complete(self, grid: TerrainGrid) -> bool:
        return grid.count_resources() == 0

    def is_all_missions_complete(self, grid: TerrainGrid, robots: Iterable[Robot]) -> bool:
        if not self.is_mission_complete(grid) or not self.global_memory.is_complete():
            return False
        return all(robot.mode is RobotMode.IDLE and robot.at_home for robot in robots)

    def status_message(self, grid: TerrainGrid) -> str:
        """One-line mission status for dashboards."""
        coverage = self.exploration_coverage()
        if self.is_mission_complete(grid):
            phase = "Mission complete: all resources harvested"
        elif coverage < 0.3:
            phase = "Initial exploration"
        elif coverage < 0.6:
            phase = "Resource collection"
        else:
            phase = "Scientific research"

        parts: List[str] = [f"{phase} ({coverage:.0%} explored)"]
        kind = self.spawn_policy.choose_kind(self, grid)
        if kind is not None:
            cost = self.robot_profiles[kind].cost
            parts.append(
                f"next {kind.value}: energy {min(self.resources.energy, cost.energy)}/{cost.energy}, "
                f"minerals {min(self.resources.minerals, cost.minerals)}/{cost.minerals}"
            )
        parts.append(f"conflicts {self.conflict_count}")
        return " | ".join(parts)
