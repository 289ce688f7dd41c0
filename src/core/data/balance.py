"""
Balancing constants and their YAML loader.

The numbers in BalanceConfig drive every combat formula. The defaults are the
live game balance; a YAML file with the same camelCase keys may override any
of them for experiments or tests.
"""
import os
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

import yaml


class BalanceConfigError(ValueError):
    """Raised when a balance file contains unknown or invalid entries."""


@dataclass(frozen=True)
class BalanceConfig:
    """All tunable combat numbers."""
    maximum_energy: int = 10
    maximum_damage: int = 10
    start_damage: int = 5

    power_multiplier_coefficient: float = 0.05
    power_multiplier_base: float = 1.05
    power_multiplier_offset: float = 1
    power_normalization_level: int = 5

    experience_multiplier_offset: int = 10
    level_up_cost_base: float = 1.11
    action_learn_cost_coefficient: float = 0.05
    action_learn_cost_offset: int = 11

    damage_multiplier_base: float = 2
    damage_multiplier_coefficient: float = 0.2
    damage_multiplier_normalization: float = 5

    action_level_discount: float = 0.5
    action_experience_discount: float = 0.5
    action_energy_discount: float = 0.5

    learnable_action_capacity: int = 7
    key_action_capacity: int = 10

    maximum_health_scale: float = 25

    reward_gold_scale: float = 100
    reward_experience_scale: float = 10
    reward_steepness: float = 1.5
    reward_center: float = 3

    turn_timeout: float = 15
    battle_cleanup_delay: float = 2
    walk_interval: float = 0.1

    enemy_power_distance: float = 128

    def to_json(self) -> dict[str, Any]:
        """Serialize using the camelCase keys understood by the client."""
        return {_to_camel_case(item.name): getattr(self, item.name) for item in fields(self)}


DEFAULT_BALANCE = BalanceConfig()


def _to_camel_case(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(word.title() for word in tail)


_FIELD_BY_KEY = {_to_camel_case(item.name): item for item in fields(BalanceConfig)}


class BalanceLoader:
    """Loads balance overrides from YAML files."""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or str(Path(__file__).parent / "balance.yaml")

    def load_config(self) -> BalanceConfig:
        """
        Load the balance file and merge it over the defaults.

        Returns:
            BalanceConfig: The merged configuration

        Raises:
            FileNotFoundError: If the configured file does not exist
            BalanceConfigError: If the file has unknown keys or bad values
        """
        config_file = Path(self.config_path)
        if not os.path.isabs(self.config_path):
            config_file = Path.cwd() / self.config_path
        if not config_file.exists():
            raise FileNotFoundError(f"Balance file not found: {config_file}")

        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return self.parse_config(data.get("balance", data))

    @staticmethod
    def parse_config(data: dict[str, Any], base: BalanceConfig = DEFAULT_BALANCE) -> BalanceConfig:
        """
        Apply a mapping of camelCase overrides to a base configuration.

        Args:
            data: Mapping of override keys to numbers
            base: Configuration the overrides are applied to

        Returns:
            BalanceConfig: A new configuration with the overrides applied
        """
        if not isinstance(data, dict):
            raise BalanceConfigError("Balance data must be a mapping")

        overrides: dict[str, Any] = {}
        for key, value in data.items():
            item = _FIELD_BY_KEY.get(key)
            if item is None:
                raise BalanceConfigError(f"Unknown balance key '{key}'")
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise BalanceConfigError(f"Balance key '{key}' must be numeric, got {value!r}")
            overrides[item.name] = value

        return replace(base, **overrides)


def load_balance_config(config_path: Optional[str] = None) -> BalanceConfig:
    """Load the packaged balance file, or the file at config_path."""
    return BalanceLoader(config_path).load_config()
