"""Tests for environment-driven configuration."""

import pytest

from exofleet.config import Config
from exofleet.schemas import CompletionPolicy


def test_defaults_validate_and_build_simulation_config(monkeypatch):
    monkeypatch.setattr(Config, "GRID_WIDTH", 12)
    monkeypatch.setattr(Config, "GRID_HEIGHT", 8)
    monkeypatch.setattr(Config, "SEED", 3)
    monkeypatch.setattr(Config, "COMPLETION_POLICY", "full_survey")

    config = Config.simulation_defaults()

    assert (config.width, config.height, config.seed) == (12, 8, 3)
    assert config.completion_policy is CompletionPolicy.FULL_SURVEY


@pytest.mark.parametrize(
    "attribute, value",
    [
        ("GRID_WIDTH", 0),
        ("MAX_TICKS", -5),
        ("TICK_INTERVAL_SECONDS", -1.0),
        ("COMPLETION_POLICY", "forever"),
    ],
)
def test_validate_rejects_bad_values(monkeypatch, attribute, value):
    monkeypatch.setattr(Config, attribute, value)

    with pytest.raises(ValueError):
        Config.validate()


def test_unbounded_ticks_are_allowed(monkeypatch):
    monkeypatch.setattr(Config, "MAX_TICKS", None)

    assert Config.simulation_defaults().max_ticks is None


def test_display_lists_settings(monkeypatch):
    monkeypatch.setattr(Config, "GRID_WIDTH", 30)
    monkeypatch.setattr(Config, "GRID_HEIGHT", 10)
    monkeypatch.setattr(Config, "SEED", None)

    text = Config.display()

    assert "Grid: 30x10" in text
    assert "Seed: random" in text
