"""
SpawnPolicy interface: which robot kind the station should build next.

The station owns the economy (affordability, debiting, id assignment); a policy
only answers "what do we need?". Policies are plain heuristics, not an optimizer.

Two policies ship with the library:
1. PhasedSpawnPolicy (default) - walks through mission phases driven by exploration
   coverage: explorers first, then collectors for scarce resources, then science.
2. ResourceImbalancePolicy - after a short exploration phase, builds the collector
   for whichever resource kind has the most tiles left on the map.

Custom policies subclass SpawnPolicy and are handed to the Station.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Dict, Optional

from .environment.grid import TerrainGrid
from .schemas import ResourceKind, RobotKind

if TYPE_CHECKING:  # pragma: no cover
    from .station import Station


def count_remaining_resources(grid: TerrainGrid) -> Dict[ResourceKind, int]:
    """Count resource tiles still on the map, per kind."""
    counts = {kind: 0 for kind in ResourceKind}
    for _, tile in grid.cells():
        if tile.is_resource:
            counts[tile.resource] += 1
    return counts


class SpawnPolicy(ABC):
    """Decides which robot kind the station needs, if any."""

    @abstractmethod
    def choose_kind(self, station: "Station", grid: TerrainGrid) -> Optional[RobotKind]:
        """Return the kind to build now, or None when no robot is needed."""
        pass


class PhasedSpawnPolicy(SpawnPolicy):
    """Exploration-phase heuristic.

    Coverage is read from the station's global memory:
    - Below ``survey_phase_end``: explorers, the map is mostly unknown.
    - Below ``collection_phase_end``: an energy collector when energy tiles are
      scarce or reserves are low, else a mineral collector when minerals are scarce
      or the stockpile is short, else another explorer.
    - Beyond: science once reserves allow, then mop up energy and minerals, then
      explorers until the survey is complete.
    """

    def __init__(
        self,
        survey_phase_end: float = 0.5,
        collection_phase_end: float = 0.8,
        scarce_energy_tiles: int = 3,
        scarce_mineral_tiles: int = 5,
        energy_reserve_target: int = 100,
        mineral_stock_target: int = 30,
    ):
        self.survey_phase_end = survey_phase_end
        self.collection_phase_end = collection_phase_end
        self.scarce_energy_tiles = scarce_energy_tiles
        self.scarce_mineral_tiles = scarce_mineral_tiles
        self.energy_reserve_target = energy_reserve_target
        self.mineral_stock_target = mineral_stock_target

    def choose_kind(self, station: "Station", grid: TerrainGrid) -> Optional[RobotKind]:
        coverage = station.exploration_coverage()
        if coverage < self.survey_phase_end:
            return RobotKind.EXPLORER

        remaining = count_remaining_resources(grid)
        energy_left = remaining[ResourceKind.ENERGY]
        minerals_left = remaining[ResourceKind.MINERAL]
        science_left = remaining[ResourceKind.SCIENTIFIC]
        reserves = station.resources

        if coverage < self.collection_phase_end:
            if energy_left and (energy_left <= self.scarce_energy_tiles or reserves.energy < self.energy_reserve_target):
                return RobotKind.ENERGY_COLLECTOR
            if minerals_left and (
                minerals_left <= self.scarce_mineral_tiles or reserves.minerals < self.mineral_stock_target
            ):
                return RobotKind.MINERAL_COLLECTOR
            return RobotKind.EXPLORER

        if science_left and reserves.energy >= self.energy_reserve_target:
            return RobotKind.SCIENTIFIC_COLLECTOR
        if energy_left:
            return RobotKind.ENERGY_COLLECTOR
        if minerals_left:
            return RobotKind.MINERAL_COLLECTOR
        if coverage < 1.0:
            return RobotKind.EXPLORER
        return None


class ResourceImbalancePolicy(SpawnPolicy):
    """Build the collector for the most plentiful remaining resource.

    Explorers are built until coverage reaches ``survey_threshold``. Ties between
    resource kinds go to the first kind in ResourceKind order.
    """

    def __init__(self, survey_threshold: float = 0.3):
        self.survey_threshold = survey_threshold

    def choose_kind(self, station: "Station", grid: TerrainGrid) -> Optional[RobotKind]:
        coverage = station.exploration_coverage()
        if coverage < self.survey_threshold:
            return RobotKind.EXPLORER
        remaining = count_remaining_resources(grid)
        most = max(ResourceKind, key=lambda kind: remaining[kind])
        if remaining[most]:
            return RobotKind.collector_for(most)
        if coverage < 1.0:
            return RobotKind.EXPLORER
        return None
