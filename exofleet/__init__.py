"""
exofleet - robot fleet exploration simulation.

A fleet of robots explores a procedurally generated planetary grid, harvests
typed resources and shares what it learns through a central station, one
deterministic tick at a time.

Nothing here needs files, a database or global configuration: build a
SimulationConfig (or load a scenario), hand it to SimulationLoop and attach any
snapshot sinks you want.
"""

__version__ = "0.1.0"

# Main simulation components
from .orchestrator import SimulationLoop
from .station import Station
from .agents import Robot, SensedState, next_mode

# Environment
from .environment import (
    GenerationFailure,
    OutOfBoundsError,
    PathNotFound,
    TerrainGrid,
    build_terrain,
    find_path,
    generate_terrain,
)

# Knowledge
from .knowledge import KnowledgeRecord, KnowledgeStore, MergeResult, merge_records

# Pluggable strategies
from .spawning import PhasedSpawnPolicy, ResourceImbalancePolicy, SpawnPolicy
from .broadcast import (
    InMemorySnapshotSink,
    JsonLinesSnapshotSink,
    QueueBroadcaster,
    SnapshotChannel,
    SnapshotSink,
)

# Core schemas
from .schemas import (
    CompletionPolicy,
    Inventory,
    ResourceKind,
    RobotCost,
    RobotKind,
    RobotMode,
    RobotProfile,
    SimulationConfig,
    SimulationSnapshot,
    StationResources,
    TerrainConfig,
    Tile,
)

# Scenario loader helpers
from .scenario import ScenarioLoader, load_scenario

__all__ = [
    # Main classes
    "SimulationLoop",
    "Station",
    "Robot",
    "SensedState",
    "next_mode",
    # Environment
    "TerrainGrid",
    "GenerationFailure",
    "OutOfBoundsError",
    "PathNotFound",
    "build_terrain",
    "find_path",
    "generate_terrain",
    # Knowledge
    "KnowledgeRecord",
    "KnowledgeStore",
    "MergeResult",
    "merge_records",
    # Strategies
    "SpawnPolicy",
    "PhasedSpawnPolicy",
    "ResourceImbalancePolicy",
    "SnapshotSink",
    "InMemorySnapshotSink",
    "JsonLinesSnapshotSink",
    "QueueBroadcaster",
    "SnapshotChannel",
    # Schemas
    "CompletionPolicy",
    "Inventory",
    "ResourceKind",
    "RobotCost",
    "RobotKind",
    "RobotMode",
    "RobotProfile",
    "SimulationConfig",
    "SimulationSnapshot",
    "StationResources",
    "TerrainConfig",
    "Tile",
    # Scenarios
    "ScenarioLoader",
    "load_scenario",
]
