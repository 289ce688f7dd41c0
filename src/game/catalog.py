"""
Action and species catalog.

The catalog is an explicit value built once per process (or per test) and
passed to the world. Building it validates the static data: duplicate serial
integers and malformed records abort construction with CatalogError.
"""
import os
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml

from ..core.data.game_enums import ActionKind
from ..core.engine.actions import Action
from .entities.species import Species

DEFAULT_ACTIONS_PATH = Path(__file__).parent.parent / "core" / "engine" / "actions.yaml"
DEFAULT_SPECIES_PATH = Path(__file__).parent / "entities" / "species.yaml"


class CatalogError(ValueError):
    """Raised when catalog data is inconsistent or malformed."""


class Catalog:
    """Registry of every action and species, keyed by serial integer."""

    def __init__(self, actions: Iterable[Action], species: Iterable[Species]):
        self.actions: list[Action] = []
        self.action_map: dict[int, Action] = {}
        self.species_list: list[Species] = []
        self.species_map: dict[int, Species] = {}

        for action in actions:
            if action.serial_integer in self.action_map:
                raise CatalogError(f"Duplicate action serial integer {action.serial_integer}")
            self.actions.append(action)
            self.action_map[action.serial_integer] = action

        for item in species:
            if item.serial_integer in self.species_map:
                raise CatalogError(f"Duplicate species serial integer {item.serial_integer}")
            self.species_list.append(item)
            self.species_map[item.serial_integer] = item

        if not self.species_list:
            raise CatalogError("Catalog requires at least one species")

        for item in self.species_list:
            item.initialize_discounts(self.actions)

    def get_action(self, serial_integer: Any) -> Optional[Action]:
        """Look up an action; unknown or non-integer ids give None."""
        if isinstance(serial_integer, bool) or not isinstance(serial_integer, int):
            return None
        return self.action_map.get(serial_integer)

    def get_species(self, serial_integer: int) -> Optional[Species]:
        return self.species_map.get(serial_integer)

    def get_species_by_name(self, name: str) -> Optional[Species]:
        for item in self.species_list:
            if item.name == name:
                return item
        return None

    @property
    def free_actions(self) -> list[Action]:
        return [action for action in self.actions if action.kind == ActionKind.FREE]

    @property
    def learnable_actions(self) -> list[Action]:
        return [action for action in self.actions if action.kind == ActionKind.LEARNABLE]

    def to_json(self) -> dict[str, Any]:
        return {
            "actions": [action.to_json() for action in self.actions],
            "species": [item.to_json() for item in self.species_list],
        }


def build_catalog(
    action_records: Iterable[dict[str, Any]],
    species_records: Iterable[dict[str, Any]]
) -> Catalog:
    """Parse catalog records and validate them.

    Raises:
        CatalogError: If a record is malformed or a serial integer repeats
    """
    try:
        actions = [Action.from_json(record) for record in action_records]
        species = [Species.from_json(record) for record in species_records]
    except (ValueError, TypeError, AttributeError) as e:
        raise CatalogError(f"Malformed catalog record: {e}") from e
    return Catalog(actions, species)


class CatalogLoader:
    """Loads action and species catalogs from YAML files."""

    def __init__(self, actions_path: Optional[str] = None, species_path: Optional[str] = None):
        self.actions_path = actions_path or str(DEFAULT_ACTIONS_PATH)
        self.species_path = species_path or str(DEFAULT_SPECIES_PATH)

    def _read_records(self, path: str, key: str) -> list[dict[str, Any]]:
        config_file = Path(path)
        if not os.path.isabs(path):
            config_file = Path.cwd() / path
        if not config_file.exists():
            raise FileNotFoundError(f"Catalog file not found: {config_file}")

        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        records = data.get(key)
        if not isinstance(records, list):
            raise CatalogError(f"Catalog file {config_file} must contain a '{key}' list")
        return records

    def load_catalog(self) -> Catalog:
        """
        Load and validate both catalog files.

        Returns:
            Catalog: The validated catalog

        Raises:
            FileNotFoundError: If a catalog file does not exist
            CatalogError: If the data is malformed or inconsistent
        """
        return build_catalog(
            self._read_records(self.actions_path, "actions"),
            self._read_records(self.species_path, "species"),
        )


def load_default_catalog() -> Catalog:
    """Load the catalog shipped with the package."""
    return CatalogLoader().load_catalog()
