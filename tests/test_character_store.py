"""Tests for JSON character persistence."""

import json
from datetime import datetime, timezone

import pytest

from module_planner.engine.build_engine import CharacterBuildService
from module_planner.models.catalog import Catalog
from module_planner.models.character import Character, ResourcePool
from module_planner.models.module import ModuleDefinition, ModuleOption, ModuleType
from module_planner.models.trait import TraitDefinition, TraitType
from module_planner.store.character_store import (
    JsonCharacterStore,
    character_from_dict,
    character_to_dict,
)


def _catalog() -> Catalog:
    return Catalog(
        modules=[ModuleDefinition(
            "Acrobat", "Acrobat", ModuleType.SECONDARY,
            options=(ModuleOption("1", "Acrobat", data="AS3=1"), ModuleOption("2a", "Safe Fall")),
        )],
        traits=[TraitDefinition("Fearless", "Fearless", TraitType.POSITIVE)],
    )


def _built() -> CharacterBuildService:
    s = CharacterBuildService.new_character(_catalog(), name="Vex", race="Human")
    s.add_module("Acrobat")
    s.select_option("Acrobat", "1")
    s.select_option("Acrobat", "2a")
    s.add_trait("Fearless")
    return s


class TestMapping:
    def test_document_layout(self):
        data = character_to_dict(_built().state)
        assert data["name"] == "Vex"
        assert data["modulePoints"] == {"total": 5, "spent": 4}
        module = data["modules"][0]
        assert module["moduleId"] == "Acrobat"
        assert module["unlockCost"] == 2
        assert [o["location"] for o in module["selectedOptions"]] == ["1", "2a"]
        assert [o["cost"] for o in module["selectedOptions"]] == [0, 1]
        assert data["traits"][0]["traitId"] == "Fearless"
        assert "effective" not in data

    def test_json_serialisable(self):
        json.dumps(character_to_dict(_built().state))

    def test_round_trip_preserves_build(self):
        original = _built().state
        restored = character_from_dict(json.loads(json.dumps(character_to_dict(original))))
        assert restored.module_points == original.module_points
        assert restored.modules == original.modules
        assert restored.traits == original.traits
        assert restored.resources == original.resources
        assert restored.effective is None

    def test_restored_character_recomputes_same_stats(self):
        s = _built()
        restored = character_from_dict(character_to_dict(s.state))
        again = CharacterBuildService(restored, _catalog())
        assert again.stats == s.stats
        assert again.validate() == []

    def test_legacy_document_defaults(self):
        data = {
            "name": "Old",
            "race": "Jhen",
            "modulePoints": {"total": 10, "spent": 5},
            "modules": [{
                "moduleId": "Acrobat",
                "selectedOptions": [{"location": "1"}, {"location": "2a"}],
            }],
        }
        c = character_from_dict(data)
        selected = c.find_module("Acrobat")
        assert selected.unlock_cost == 1
        assert [o.cost for o in selected.selected_options] == [None, None]
        assert selected.date_added.tzinfo is not None
        assert c.attributes["physique"] == 1
        assert CharacterBuildService(c, _catalog()).validate() == []

    def test_removing_legacy_module_refunds_what_was_charged(self):
        data = {
            "modulePoints": {"total": 10, "spent": 5},
            "modules": [{
                "moduleId": "Acrobat",
                "selectedOptions": [{"location": "1"}, {"location": "2a"}],
            }],
        }
        s = CharacterBuildService(character_from_dict(data), _catalog())
        assert s.remove_module("Acrobat")
        assert s.character.module_points.spent == 0
        assert s.available_points() == 10
        assert s.validate() == []

    def test_naive_timestamps_become_utc(self):
        data = {"traits": [{
            "traitId": "Fearless", "type": "positive", "dateAdded": "2024-01-02T03:04:05",
        }]}
        trait = character_from_dict(data).traits[0]
        assert trait.date_added == datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

    def test_invalid_ledger_rejected(self):
        with pytest.raises(ValueError, match="spent must be within"):
            character_from_dict({"modulePoints": {"total": 1, "spent": 3}})


class TestJsonCharacterStore:
    def test_save_and_load(self, tmp_path):
        store = JsonCharacterStore(tmp_path / "chars")
        character = _built().state
        path = store.save("vex", character)
        assert path.exists()

        loaded = store.load("vex")
        assert loaded.name == "Vex"
        assert loaded.modules == character.modules

    def test_load_missing(self, tmp_path):
        assert JsonCharacterStore(tmp_path).load("nobody") is None

    def test_overwrite(self, tmp_path):
        store = JsonCharacterStore(tmp_path)
        store.save("a", Character(name="First"))
        store.save("a", Character(name="Second"))
        assert store.load("a").name == "Second"
        assert list(tmp_path.glob("*.tmp")) == []

    def test_delete_and_list(self, tmp_path):
        store = JsonCharacterStore(tmp_path)
        store.save("b", Character())
        store.save("a", Character())
        assert store.list_ids() == ["a", "b"]
        assert store.delete("a")
        assert not store.delete("a")
        assert store.list_ids() == ["b"]

    def test_list_missing_directory(self, tmp_path):
        assert JsonCharacterStore(tmp_path / "none").list_ids() == []

    @pytest.mark.parametrize("bad", ["", "../x", "a/b", "a.json"])
    def test_invalid_ids(self, tmp_path, bad):
        with pytest.raises(ValueError, match="Invalid character id"):
            JsonCharacterStore(tmp_path).save(bad, Character())

    def test_resource_pools_persisted(self, tmp_path):
        store = JsonCharacterStore(tmp_path)
        c = Character()
        c.resources["health"] = ResourcePool(current=3, max=10)
        store.save("hurt", c)
        assert store.load("hurt").resources["health"] == ResourcePool(3, 10)
