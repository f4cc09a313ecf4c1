"""Tests for the pure robot mode transition function."""

import pytest

from exofleet.agents import SensedState, next_mode
from exofleet.schemas import RobotMode

IDLE = RobotMode.IDLE
EXPLORING = RobotMode.EXPLORING
COLLECTING = RobotMode.COLLECTING
RETURNING = RobotMode.RETURNING_TO_STATION


@pytest.mark.parametrize("mode", list(RobotMode))
def test_low_energy_away_from_home_always_returns(mode):
    sensed = SensedState(low_energy=True, frontier_available=True, resource_available=True)

    assert next_mode(mode, sensed) is RETURNING


@pytest.mark.parametrize("mode", [EXPLORING, COLLECTING, IDLE])
def test_full_inventory_away_from_home_returns(mode):
    sensed = SensedState(inventory_full=True, resource_available=True)

    assert next_mode(mode, sensed) is RETURNING


def test_returning_robot_keeps_going_until_home():
    assert next_mode(RETURNING, SensedState(frontier_available=True)) is RETURNING
    assert next_mode(RETURNING, SensedState(at_home=True, frontier_available=True)) is EXPLORING
    assert next_mode(RETURNING, SensedState(at_home=True)) is IDLE


def test_idle_with_frontier_starts_exploring():
    assert next_mode(IDLE, SensedState(at_home=True, frontier_available=True)) is EXPLORING


def test_exploration_takes_priority_over_collection():
    sensed = SensedState(frontier_available=True, resource_available=True)

    assert next_mode(EXPLORING, sensed) is EXPLORING


def test_explored_out_switches_to_collecting():
    assert next_mode(EXPLORING, SensedState(resource_available=True)) is COLLECTING


def test_collecting_persists_while_resource_known():
    sensed = SensedState(frontier_available=True, resource_available=True)

    assert next_mode(COLLECTING, sensed) is COLLECTING


def test_collecting_without_targets_falls_back_to_exploring():
    assert next_mode(COLLECTING, SensedState()) is EXPLORING
    assert next_mode(COLLECTING, SensedState(at_home=True)) is EXPLORING


def test_nothing_to_do_parks_at_home():
    assert next_mode(EXPLORING, SensedState(at_home=True)) is IDLE
    assert next_mode(IDLE, SensedState(at_home=True)) is IDLE


def test_nothing_to_do_away_from_home_heads_back():
    assert next_mode(EXPLORING, SensedState()) is RETURNING


def test_full_hold_at_home_does_not_return():
    sensed = SensedState(at_home=True, inventory_full=True, frontier_available=True)

    assert next_mode(IDLE, sensed) is EXPLORING


@pytest.mark.parametrize("mode", [IDLE, EXPLORING, COLLECTING])
def test_robot_not_cleared_to_work_heads_home(mode):
    sensed = SensedState(survey_ready=False, frontier_available=True, resource_available=True)

    assert next_mode(mode, sensed) is RETURNING


def test_robot_not_cleared_to_work_waits_idle_at_home():
    sensed = SensedState(at_home=True, survey_ready=False, frontier_available=True, resource_available=True)

    assert next_mode(IDLE, sensed) is IDLE
    assert next_mode(RETURNING, sensed) is IDLE


def test_low_energy_still_wins_over_survey_gate():
    assert next_mode(COLLECTING, SensedState(low_energy=True, survey_ready=False)) is RETURNING
