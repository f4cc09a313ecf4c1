"""
Scenario loading for JSON-defined simulation set-ups.

A scenario file is a JSON object whose keys are SimulationConfig fields. Only
``name`` is required; everything else falls back to the library defaults.

Scenario file structure:
```json
{
  "name": "Twin Craters",
  "description": "...",
  "width": 24,
  "height": 24,
  "seed": 7,
  "terrain": {"safe_zone_radius": 3, "thresholds": {"obstacle": 0.45}},
  "robot_profiles": {"explorer": {"max_energy": 90, "low_energy_threshold": 27, "sensor_radius": 2}},
  "initial_fleet": ["explorer", "mineral_collector"],
  "initial_resources": {"energy": 150, "minerals": 15},
  "completion_policy": "full_survey"
}
```

A ``layout`` list of ASCII rows can replace procedural generation (see
TerrainGrid.from_ascii for the symbols).

Usage:
    loader = ScenarioLoader()
    config = loader.load("default")
    loop = SimulationLoop.from_config(config)
"""

import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import Config
from .schemas import SimulationConfig

REQUIRED_FIELDS = ("name",)


class ScenarioLoader:
    """Load and validate scenarios from a directory of JSON files.

    Directory structure:
    - Default: Config.SCENARIOS_DIR ({PROJECT_ROOT}/examples/scenarios/)
    - Override via constructor: ScenarioLoader(Path("/custom/scenarios"))
    - Scenario files: {scenario_name}.json; files starting with "_" are ignored by listings

    Validation:
    - Required fields must be present
    - Unknown top-level keys are rejected (typos should not silently fall back to defaults)
    - Field values are validated by SimulationConfig (pydantic ValidationError is a ValueError)
    """

    def __init__(self, scenarios_dir: Optional[Path] = None):
        self.scenarios_dir = Path(scenarios_dir) if scenarios_dir is not None else Config.SCENARIOS_DIR

    def _path(self, scenario_name: str) -> Path:
        return self.scenarios_dir / f"{scenario_name}.json"

    def load(self, scenario_name: str) -> SimulationConfig:
        """Load a scenario by name.

        Args:
            scenario_name: File name without the .json extension

        Returns:
            Validated SimulationConfig

        Raises:
            FileNotFoundError: If the scenario file does not exist
            ValueError: If the scenario is missing fields, has unknown keys or invalid values
            json.JSONDecodeError: If the file is not valid JSON
        """
        scenario_path = self._path(scenario_name)
        if not scenario_path.exists():
            raise FileNotFoundError(f"Scenario '{scenario_name}' not found at {scenario_path}")

        data = json.loads(scenario_path.read_text())
        return self.parse(data)

    def parse(self, data: Dict[str, Any]) -> SimulationConfig:
        """Validate an already-decoded scenario dict."""
        self._validate_scenario(data)
        return SimulationConfig.model_validate(data)

    def _validate_scenario(self, data: Any) -> None:
        if not isinstance(data, dict):
            raise ValueError("Scenario must be a JSON object")
        missing = [name for name in REQUIRED_FIELDS if name not in data]
        if missing:
            raise ValueError(f"Scenario missing required fields: {missing}")
        unknown = sorted(set(data) - set(SimulationConfig.model_fields))
        if unknown:
            raise ValueError(f"Scenario has unknown fields: {unknown}")

    def list_scenarios(self) -> List[str]:
        """List available scenario names (without .json extension), sorted."""
        if not self.scenarios_dir.exists():
            return []
        return sorted(f.stem for f in self.scenarios_dir.glob("*.json") if not f.name.startswith("_"))

    def get_scenario_info(self, scenario_name: str) -> Dict[str, Any]:
        """Summarize a scenario without building anything.

        Returns:
            Dict with name, description, grid size, generation mode, fleet size and completion policy
        """
        config = self.load(scenario_name)
        return {
            "name": config.name,
            "description": config.description or "No description",
            "size": f"{config.width}x{config.height}",
            "terrain": "layout" if config.layout else f"generated (seed {config.seed})",
            "initial_fleet": len(config.initial_fleet),
            "completion_policy": config.completion_policy.value,
        }


def load_scenario(scenario_name: str, scenarios_dir: Optional[Path] = None) -> SimulationConfig:
    """Convenience function to load a scenario by name."""
    return ScenarioLoader(scenarios_dir).load(scenario_name)
