"""Robot mode transitions as a pure function.

``next_mode`` looks only at the current mode and a ``SensedState`` summary, so the
whole state machine can be exercised without a grid or a station.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..schemas import RobotMode


@dataclass(frozen=True)
class SensedState:
    """What a robot knows about itself and its surroundings this tick."""

    low_energy: bool = False
    inventory_full: bool = False
    at_home: bool = False
    frontier_available: bool = False  # an unexplored cell can be reached or observed
    resource_available: bool = False  # a collectable resource is known and reachable
    survey_ready: bool = True  # the station has mapped enough for this kind to start work


def next_mode(mode: RobotMode, sensed: SensedState) -> RobotMode:
    """Return the robot's mode for this tick.

    Rules, in priority order:
    1. Low energy or a full hold sends the robot home (unless it is already there).
    2. A robot still on its way home keeps going.
    3. Until the survey is far enough along for its kind, a robot waits Idle at
       the station, heading home first if it is out.
    4. Collecting continues while a matching resource is known; otherwise the
       robot drops back to exploring.
    5. Exploring/Idle: explore while a frontier exists, else collect a known
       resource, else park. Parking means Idle at the station; a robot with
       nothing to do elsewhere heads home first.
    """
    if (sensed.low_energy or sensed.inventory_full) and not sensed.at_home:
        return RobotMode.RETURNING_TO_STATION

    if mode is RobotMode.RETURNING_TO_STATION and not sensed.at_home:
        return RobotMode.RETURNING_TO_STATION

    if not sensed.survey_ready:
        return RobotMode.IDLE if sensed.at_home else RobotMode.RETURNING_TO_STATION

    if mode is RobotMode.COLLECTING:
        # Nothing left to collect: look around again; the next tick decides whether to park.
        return RobotMode.COLLECTING if sensed.resource_available else RobotMode.EXPLORING

    if sensed.frontier_available:
        return RobotMode.EXPLORING
    if sensed.resource_available:
        return RobotMode.COLLECTING
    if sensed.at_home:
        return RobotMode.IDLE
    return RobotMode.RETURNING_TO_STATION
