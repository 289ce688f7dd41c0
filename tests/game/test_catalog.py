"""Tests for the action and species catalog."""

import pytest

from src.core.engine.actions import Action
from src.game.catalog import Catalog, CatalogError, CatalogLoader, build_catalog
from src.game.entities.species import Species


def action_record(serial_integer, name="Wave"):
    return {"serialInteger": serial_integer, "name": name, "type": "free", "baseEnergyCost": 0}


def species_record(serial_integer, name="slime"):
    return {"serialInteger": serial_integer, "name": name, "discounts": []}


class TestDefaultCatalog:

    def test_contents(self, catalog):
        assert len(catalog.actions) == 19
        assert len(catalog.species_list) == 5
        assert [action.name for action in catalog.free_actions] == ["Do Nothing", "Punch", "Rest", "Focus"]
        assert len(catalog.learnable_actions) == 15

    def test_lookup(self, catalog):
        assert catalog.get_action(2).name == "Punch"
        assert catalog.get_action(999) is None
        assert catalog.get_action("2") is None
        assert catalog.get_action(True) is None
        assert catalog.get_species(3).name == "crystal"
        assert catalog.get_species_by_name("robot").serial_integer == 4
        assert catalog.get_species_by_name("dragon") is None

    def test_discounts_are_initialized(self, catalog):
        assert catalog.get_species_by_name("slime").discounted_serials == frozenset({3, 12})
        assert catalog.get_species_by_name("spider").discounted_serials == frozenset({9})
        assert catalog.get_species_by_name("mushroom").discounted_serials == frozenset({10})
        assert catalog.get_species_by_name("crystal").discounted_serials == frozenset({7, 8, 16})
        assert catalog.get_species_by_name("robot").discounted_serials == frozenset({11, 13, 14})

    def test_to_json(self, catalog):
        data = catalog.to_json()
        assert len(data["actions"]) == 19
        assert data["species"][0]["discountedActions"] == [3, 12]


class TestCatalogValidation:

    def test_duplicate_action_serial_raises(self):
        with pytest.raises(CatalogError, match="Duplicate action"):
            build_catalog([action_record(1), action_record(1, "Bow")], [species_record(0)])

    def test_duplicate_species_serial_raises(self):
        with pytest.raises(CatalogError, match="Duplicate species"):
            Catalog([], [Species(0, "slime"), Species(0, "spider")])

    def test_no_species_raises(self):
        with pytest.raises(CatalogError):
            Catalog([Action(1, "Wave", 0)], [])

    def test_malformed_record_raises(self):
        with pytest.raises(CatalogError, match="Malformed"):
            build_catalog([{"name": "Nameless"}], [species_record(0)])
        with pytest.raises(CatalogError):
            build_catalog([action_record(1)], [{"serialInteger": 0, "discounts": [{"effect": "teleport"}]}])


class TestCatalogLoader:

    def test_missing_file_raises(self, tmp_path):
        loader = CatalogLoader(actions_path=str(tmp_path / "actions.yaml"))
        with pytest.raises(FileNotFoundError):
            loader.load_catalog()

    def test_file_without_list_raises(self, tmp_path):
        actions_path = tmp_path / "actions.yaml"
        actions_path.write_text("actions: {}\n")
        with pytest.raises(CatalogError):
            CatalogLoader(actions_path=str(actions_path)).load_catalog()

    def test_custom_files(self, tmp_path):
        actions_path = tmp_path / "actions.yaml"
        species_path = tmp_path / "species.yaml"
        actions_path.write_text(
            "actions:\n"
            "  - {serialInteger: 1, name: Wave, type: free, baseEnergyCost: 0}\n"
        )
        species_path.write_text("species:\n  - {serialInteger: 0, name: blob}\n")
        catalog = CatalogLoader(str(actions_path), str(species_path)).load_catalog()
        assert catalog.get_action(1).name == "Wave"
        assert catalog.species_list[0].name == "blob"
