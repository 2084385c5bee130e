"""Tests for loading the JSON catalog."""

import json
import logging
from pathlib import Path

import pytest

from module_planner.models.module import ModuleType
from module_planner.models.trait import TraitType
from module_planner.parser.catalog_parser import (
    CatalogError,
    load_catalog,
    parse_module,
    parse_trait,
    race_description,
)


DATA_DIR = Path(__file__).resolve().parent.parent / "data"


def _write(path: Path, payload) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(payload, str):
        path.write_text(payload)
    else:
        path.write_text(json.dumps(payload))


def _module_json(name: str = "Acrobat", **extra) -> dict:
    data = {
        "name": name,
        "description": "Moves well.",
        "ruleset": 0,
        "options": [
            {"name": name, "location": "1", "data": "AS3=1"},
            {"name": "Safe Fall", "location": "2a", "data": "TG"},
        ],
    }
    data.update(extra)
    return data


class TestParseModule:
    def test_fields(self):
        module = parse_module(_module_json(), "secondary")
        assert module.id == "Acrobat"
        assert module.type is ModuleType.SECONDARY
        assert module.locations == ("1", "2a")
        assert module.option_at("1").data == "AS3=1"
        assert module.option_at("1").cost is None

    def test_explicit_id_and_cost(self):
        data = _module_json(id="acro-1")
        data["options"][1]["cost"] = 2
        module = parse_module(data, ModuleType.CORE)
        assert module.id == "acro-1"
        assert module.option_at("2a").cost == 2

    def test_null_data_becomes_empty(self):
        data = _module_json()
        data["options"][1]["data"] = None
        assert parse_module(data, "core").option_at("2a").data == ""

    def test_racial_description_fallback(self):
        module = parse_module({"name": "Jhen", "options": []}, "racial")
        assert module.description.startswith("Amphibious")

    def test_unknown_race_description(self):
        assert "unique species" in race_description("Martian")

    def test_missing_name(self):
        with pytest.raises(CatalogError, match="no name"):
            parse_module({"options": []}, "core")

    def test_option_without_location(self):
        with pytest.raises(CatalogError, match="no location"):
            parse_module({"name": "X", "options": [{"name": "Y"}]}, "core")

    def test_bad_type(self):
        with pytest.raises(ValueError):
            parse_module(_module_json(), "epic")


class TestParseTrait:
    def test_fields(self):
        trait = parse_trait({
            "name": "Tough", "type": "positive", "description": "d", "effects": ["AH=3"],
        })
        assert trait.id == "Tough"
        assert trait.type is TraitType.POSITIVE
        assert trait.effects == ("AH=3",)

    def test_effects_optional(self):
        assert parse_trait({"name": "Slow", "type": "negative"}).effects == ()

    def test_invalid_type(self):
        with pytest.raises(CatalogError, match="invalid type"):
            parse_trait({"name": "Odd", "type": "neutral"})


class TestLoadCatalog:
    def test_reads_directory_layout(self, tmp_path):
        _write(tmp_path / "modules" / "secondary" / "acrobat.json", _module_json())
        _write(tmp_path / "modules" / "core" / "soldier.json", _module_json("Soldier"))
        _write(tmp_path / "traits" / "slow.json", {"name": "Slow", "type": "negative"})

        catalog = load_catalog(tmp_path)
        assert catalog.get_module("Acrobat").type is ModuleType.SECONDARY
        assert catalog.get_module("Soldier").type is ModuleType.CORE
        assert catalog.get_trait("Slow").type is TraitType.NEGATIVE

    def test_type_comes_from_directory(self, tmp_path):
        _write(tmp_path / "modules" / "core" / "a.json", _module_json(mtype="racial"))
        assert load_catalog(tmp_path).get_module("Acrobat").type is ModuleType.CORE

    def test_bad_files_logged_and_skipped(self, tmp_path, caplog):
        _write(tmp_path / "modules" / "core" / "good.json", _module_json("Good"))
        _write(tmp_path / "modules" / "core" / "broken.json", "{not json")
        _write(tmp_path / "modules" / "core" / "list.json", [1, 2])
        _write(tmp_path / "modules" / "core" / "nameless.json", {"options": []})
        _write(tmp_path / "traits" / "odd.json", {"name": "Odd", "type": "neutral"})

        with caplog.at_level(logging.ERROR, logger="module_planner.parser.catalog_parser"):
            catalog = load_catalog(tmp_path)
        assert [m.id for m in catalog.modules()] == ["Good"]
        assert catalog.traits() == []
        assert "broken.json" in caplog.text
        assert "nameless.json" in caplog.text
        assert "odd.json" in caplog.text

    def test_unknown_type_directory_skipped(self, tmp_path):
        _write(tmp_path / "modules" / "legendary" / "a.json", _module_json())
        assert load_catalog(tmp_path).modules() == []

    def test_duplicate_ids_keep_first(self, tmp_path, caplog):
        _write(tmp_path / "modules" / "core" / "a.json", _module_json("Same"))
        _write(tmp_path / "modules" / "secondary" / "b.json", _module_json("Same"))
        with caplog.at_level(logging.WARNING, logger="module_planner.parser.catalog_parser"):
            catalog = load_catalog(tmp_path)
        assert len(catalog.modules()) == 1
        assert catalog.get_module("Same").type is ModuleType.CORE
        assert "Duplicate module id" in caplog.text

    def test_missing_directories(self, tmp_path):
        catalog = load_catalog(tmp_path)
        assert len(catalog) == 0

    @pytest.mark.skipif(not DATA_DIR.is_dir(), reason="bundled catalog not present")
    def test_bundled_catalog(self):
        catalog = load_catalog(DATA_DIR)
        acrobat = catalog.get_module("Acrobat")
        assert acrobat is not None
        assert acrobat.locations == ("1", "2a", "2b", "3", "4a", "4b", "5")
        assert acrobat.option_at("5").data == "AD2=1:AV=1:AS3=1"
        assert catalog.get_trait("Fearless").is_positive
        assert catalog.get_module("Human").description.startswith("Adaptable")
