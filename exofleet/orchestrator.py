"""
Main simulation loop.

Coordinates one tick at a time, always in the same order:
1. Advance the station clock
2. Update each robot in ascending id order (each update has the grid and the
   station to itself; later robots see earlier robots' moves)
3. Tow home any robot that ran flat (when enabled)
4. Evaluate the completion flags
5. Let the station build a robot, unless the run is about to stop
6. Freeze a snapshot and hand it to the outbound channel (never blocks)

``step()`` runs a single tick synchronously. ``run()`` drives ticks from asyncio
until the completion policy is met, the tick cap is hit, or a stop is requested.
Stop requests are only honoured between ticks.
"""

import asyncio
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence
from uuid import uuid4

from .agents.robot import Robot
from .broadcast import SnapshotChannel, SnapshotSink
from .environment.generation import build_terrain
from .environment.grid import TerrainGrid
from .logging_utils import log_deterministic, log_error, log_info, log_success
from .schemas import CompletionPolicy, SimulationConfig, SimulationSnapshot
from .snapshot import build_snapshot
from .spawning import SpawnPolicy
from .station import Station

TickListener = Callable[[SimulationSnapshot], None]


class SimulationLoop:
    """Owns the grid, the station and the fleet for one run."""

    def __init__(
        self,
        grid: TerrainGrid,
        station: Station,
        robots: Optional[Iterable[Robot]] = None,
        *,
        config: Optional[SimulationConfig] = None,
        sinks: Optional[Sequence[SnapshotSink]] = None,
        tick_listeners: Optional[Sequence[TickListener]] = None,
    ):
        """Initialize the loop.

        Args:
            grid: Terrain for the run
            station: The station on that terrain
            robots: Initial fleet (any order; updated by ascending id)
            config: Run settings (completion policy, caps, pacing); defaults to SimulationConfig()
            sinks: Snapshot consumers fed through a non-blocking channel during ``run``
            tick_listeners: Callables invoked with every snapshot; failures are logged, not raised
        """
        self.grid = grid
        self.station = station
        self.robots: List[Robot] = sorted(robots or [], key=lambda robot: robot.id)
        self.config = config or SimulationConfig()
        self.sinks: List[SnapshotSink] = list(sinks or [])
        self.tick_listeners: List[TickListener] = list(tick_listeners or [])
        self.run_id = uuid4()
        self.iteration = 0
        self.last_snapshot: Optional[SimulationSnapshot] = None
        self._stop_requested = False

    @classmethod
    def from_config(
        cls,
        config: SimulationConfig,
        *,
        spawn_policy: Optional[SpawnPolicy] = None,
        sinks: Optional[Sequence[SnapshotSink]] = None,
        tick_listeners: Optional[Sequence[TickListener]] = None,
    ) -> "SimulationLoop":
        """Build terrain, station and initial fleet from a SimulationConfig.

        Raises:
            GenerationFailure: If the terrain or station cannot be built
        """
        grid = build_terrain(config)
        station = Station.for_grid(
            grid,
            resources=config.initial_resources,
            robot_profiles=config.robot_profiles,
            spawn_policy=spawn_policy,
        )
        robots = [station.deploy_robot(kind) for kind in config.initial_fleet]
        return cls(grid, station, robots, config=config, sinks=sinks, tick_listeners=tick_listeners)

    def add_tick_listener(self, listener: TickListener) -> None:
        self.tick_listeners.append(listener)

    def request_stop(self) -> None:
        """Ask ``run`` to stop after the current tick."""
        self._stop_requested = True

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------

    def step(self) -> SimulationSnapshot:
        """Run one tick and return its snapshot."""
        self.iteration += 1
        self.station.tick()

        for robot in self.robots:
            robot.update(self.grid, self.station)
            if self.config.rescue_stranded_robots and robot.energy == 0 and not robot.at_home:
                self.station.rescue(robot)

        mission_complete = self.station.is_mission_complete(self.grid)
        all_missions_complete = mission_complete and self.station.is_all_missions_complete(self.grid, self.robots)

        if not self._goal_reached(mission_complete, all_missions_complete) and self._spawn_due():
            robot = self.station.try_create_robot(self.grid)
            if robot is not None:
                self.robots.append(robot)

        snapshot = build_snapshot(
            self.iteration,
            self.grid,
            self.station,
            self.robots,
            mission_complete=mission_complete,
            all_missions_complete=all_missions_complete,
        )
        self.last_snapshot = snapshot
        self._notify_listeners(snapshot)
        return snapshot

    def is_finished(self, snapshot: SimulationSnapshot) -> bool:
        """True once the configured completion policy is satisfied."""
        return self._goal_reached(snapshot.mission_complete, snapshot.all_missions_complete)

    def _goal_reached(self, mission_complete: bool, all_missions_complete: bool) -> bool:
        if self.config.completion_policy is CompletionPolicy.FULL_SURVEY:
            return all_missions_complete
        # Harvest counts as done once the last unit has been delivered, not just picked up.
        return mission_complete and all(robot.inventory.is_empty() for robot in self.robots)

    def _spawn_due(self) -> bool:
        return self.iteration % self.config.spawn_interval == 0

    def _notify_listeners(self, snapshot: SimulationSnapshot) -> None:
        for listener in self.tick_listeners:
            try:
                listener(snapshot)
            except Exception as exc:
                log_error(f"[Loop] Tick listener failed at iteration {snapshot.iteration}: {exc}")

    # ------------------------------------------------------------------
    # Async driver
    # ------------------------------------------------------------------

    async def run(
        self,
        max_ticks: Optional[int] = None,
        *,
        stop_event: Optional[asyncio.Event] = None,
    ) -> Dict[str, Any]:
        """Run ticks until completion, the tick cap, or an external stop.

        Args:
            max_ticks: Tick cap for this call; defaults to ``config.max_ticks`` (None = unbounded)
            stop_event: Optional event checked between ticks

        Returns:
            Dict with run_id, ticks (run by this call), completed, stopped and final_snapshot
        """
        limit = max_ticks if max_ticks is not None else self.config.max_ticks
        channel = SnapshotChannel(self.sinks, maxsize=self.config.snapshot_queue_size)
        await channel.start()

        log_info(
            f"Starting exofleet run {self.run_id}: {self.grid.width}x{self.grid.height} grid, "
            f"{len(self.robots)} robots, {self.grid.count_resources()} resources, "
            f"policy {self.config.completion_policy.value}"
        )

        ticks = 0
        completed = False
        stopped = False
        try:
            while limit is None or ticks < limit:
                if self._stop_requested or (stop_event is not None and stop_event.is_set()):
                    stopped = True
                    break
                snapshot = self.step()
                ticks += 1
                channel.offer(snapshot)
                if self.is_finished(snapshot):
                    completed = True
                    break
                # Always yield so the channel's dispatcher can drain between ticks.
                await asyncio.sleep(self.config.tick_interval_seconds)
        finally:
            await channel.close()

        final = self.last_snapshot
        if completed:
            log_success(
                f"Run {self.run_id} complete after {self.iteration} ticks: "
                f"{final.station.resources.minerals} minerals, {final.station.resources.science} science, "
                f"{final.station.resources.energy} energy, {len(self.robots)} robots"
            )
        elif stopped:
            log_info(f"Run {self.run_id} stopped on request after {self.iteration} ticks")
        else:
            log_deterministic(f"Run {self.run_id} reached the tick limit ({ticks}) before completing")

        return {
            "run_id": self.run_id,
            "ticks": ticks,
            "completed": completed,
            "stopped": stopped,
            "final_snapshot": final,
        }
