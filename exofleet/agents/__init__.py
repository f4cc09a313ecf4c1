"""Robot agents: mode machine, target selection and the robot itself."""

from .modes import SensedState, next_mode
from .robot import MOVE_COST, Robot
from .targeting import (
    FrontierTarget,
    find_frontier_target,
    find_resource_target,
    greedy_step,
    reachable_region,
)

__all__ = [
    "Robot",
    "MOVE_COST",
    "SensedState",
    "next_mode",
    "FrontierTarget",
    "find_frontier_target",
    "find_resource_target",
    "greedy_step",
    "reachable_region",
]
