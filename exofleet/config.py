"""
exofleet Configuration

Loads run defaults from environment variables (and a .env file, if present).
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from .schemas import CompletionPolicy, SimulationConfig

# Load .env file if it exists
load_dotenv()


def _optional_int(value: Optional[str]) -> Optional[int]:
    if value is None or value.strip() == "":
        return None
    return int(value)


class Config:
    """Application configuration loaded from environment variables."""

    # Grid
    GRID_WIDTH: int = int(os.getenv("EXOFLEET_GRID_WIDTH", "20"))
    GRID_HEIGHT: int = int(os.getenv("EXOFLEET_GRID_HEIGHT", "20"))
    SEED: Optional[int] = _optional_int(os.getenv("EXOFLEET_SEED"))

    # Run control
    MAX_TICKS: Optional[int] = _optional_int(os.getenv("EXOFLEET_MAX_TICKS", "5000"))
    TICK_INTERVAL_SECONDS: float = float(os.getenv("EXOFLEET_TICK_INTERVAL_SECONDS", "0"))
    COMPLETION_POLICY: str = os.getenv("EXOFLEET_COMPLETION_POLICY", CompletionPolicy.RESOURCES_HARVESTED.value)

    # Project Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent
    SCENARIOS_DIR: Path = Path(os.getenv("EXOFLEET_SCENARIOS_DIR", str(PROJECT_ROOT / "examples" / "scenarios")))

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise ValueError on unusable values."""
        if cls.GRID_WIDTH <= 0 or cls.GRID_HEIGHT <= 0:
            raise ValueError(
                f"EXOFLEET_GRID_WIDTH and EXOFLEET_GRID_HEIGHT must be positive, "
                f"got {cls.GRID_WIDTH}x{cls.GRID_HEIGHT}"
            )
        if cls.MAX_TICKS is not None and cls.MAX_TICKS <= 0:
            raise ValueError("EXOFLEET_MAX_TICKS must be positive (leave it empty for no limit)")
        if cls.TICK_INTERVAL_SECONDS < 0:
            raise ValueError("EXOFLEET_TICK_INTERVAL_SECONDS cannot be negative")
        valid_policies = [policy.value for policy in CompletionPolicy]
        if cls.COMPLETION_POLICY not in valid_policies:
            raise ValueError(
                f"EXOFLEET_COMPLETION_POLICY must be one of {valid_policies}, got '{cls.COMPLETION_POLICY}'"
            )

    @classmethod
    def simulation_defaults(cls) -> SimulationConfig:
        """Build a SimulationConfig from the environment-level defaults."""
        cls.validate()
        return SimulationConfig(
            width=cls.GRID_WIDTH,
            height=cls.GRID_HEIGHT,
            seed=cls.SEED,
            max_ticks=cls.MAX_TICKS,
            tick_interval_seconds=cls.TICK_INTERVAL_SECONDS,
            completion_policy=CompletionPolicy(cls.COMPLETION_POLICY),
        )

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "exofleet Configuration:",
            f"  Grid: {cls.GRID_WIDTH}x{cls.GRID_HEIGHT}",
            f"  Seed: {cls.SEED if cls.SEED is not None else 'random'}",
            f"  Max Ticks: {cls.MAX_TICKS if cls.MAX_TICKS is not None else 'unlimited'}",
            f"  Tick Interval: {cls.TICK_INTERVAL_SECONDS}s",
            f"  Completion Policy: {cls.COMPLETION_POLICY}",
            f"  Scenarios: {cls.SCENARIOS_DIR}",
        ]
        return "\n".join(lines)
