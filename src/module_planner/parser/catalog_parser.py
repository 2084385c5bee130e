"""Load module and trait definitions from a JSON catalog directory.

Directory layout:

  <root>/modules/racial/*.json
  <root>/modules/core/*.json
  <root>/modules/secondary/*.json
  <root>/traits/*.json

A module's type comes from the directory it sits in, never from the file.
Each file holds one definition. Ids default to the name when a file has no
"id" field. Files that fail to read or parse are logged and skipped so one
bad file does not take the whole catalog down.
"""

import json
import logging
from pathlib import Path

from module_planner.models.catalog import Catalog
from module_planner.models.module import ModuleDefinition, ModuleOption, ModuleType
from module_planner.models.trait import TraitDefinition, TraitType


logger = logging.getLogger(__name__)


# Fallback descriptions for racial modules that ship without one.
_RACE_DESCRIPTIONS: dict[str, str] = {
    "human": (
        "Adaptable and innovative, humans are versatile explorers who have "
        "spread throughout the galaxy, establishing colonies and trade networks."
    ),
    "jhen": (
        "Amphibious beings with enhanced sensory abilities, the Jhen are "
        "naturally attuned to water environments and excel at navigation and "
        "exploration."
    ),
    "protoelf": (
        "Descendants of ancient genetic engineers, Protoelves have enhanced "
        "reflexes and mental capabilities along with extended lifespans."
    ),
    "vxyahlian": (
        "Insect-like beings with exoskeletons and heightened engineering "
        "skills, Vxyahlians are natural builders and technologists."
    ),
    "zssesh": (
        "Reptilian species with natural resilience to harsh environments, the "
        "Zssesh have remarkable regenerative capabilities and physical endurance."
    ),
}
_DEFAULT_RACE_DESCRIPTION = (
    "A unique species with distinctive physiological and cultural traits."
)


class CatalogError(ValueError):
    """Raised for a catalog entry that is missing required fields."""


def race_description(race_name: str) -> str:
    return _RACE_DESCRIPTIONS.get(race_name.lower(), _DEFAULT_RACE_DESCRIPTION)


def _require_name(data: dict, kind: str) -> str:
    name = data.get("name")
    if not isinstance(name, str) or not name.strip():
        raise CatalogError(f"{kind} entry has no name")
    return name.strip()


def parse_option(data: dict) -> ModuleOption:
    """Parse one entry of a module's "options" list."""
    location = data.get("location")
    if not isinstance(location, str) or not location:
        raise CatalogError(f"Option {data.get('name')!r} has no location")
    cost = data.get("cost")
    return ModuleOption(
        location=location,
        name=str(data.get("name", "")),
        description=str(data.get("description", "")),
        data=str(data.get("data") or ""),
        cost=int(cost) if cost is not None else None,
    )


def parse_module(data: dict, module_type: ModuleType | str) -> ModuleDefinition:
    """Parse a module JSON object. Raises CatalogError on missing fields."""
    name = _require_name(data, "Module")
    mtype = ModuleType(module_type)
    description = str(data.get("description") or "")
    if mtype == ModuleType.RACIAL and not description:
        description = race_description(name)
    return ModuleDefinition(
        id=str(data.get("id") or name),
        name=name,
        type=mtype,
        ruleset=int(data.get("ruleset") or 0),
        description=description,
        options=tuple(parse_option(o) for o in data.get("options") or ()),
    )


def parse_trait(data: dict) -> TraitDefinition:
    """Parse a trait JSON object. Raises CatalogError on missing fields."""
    name = _require_name(data, "Trait")
    try:
        trait_type = TraitType(data.get("type"))
    except ValueError:
        raise CatalogError(
            f"Trait {name!r} has invalid type {data.get('type')!r}"
        ) from None
    return TraitDefinition(
        id=str(data.get("id") or name),
        name=name,
        type=trait_type,
        description=str(data.get("description") or ""),
        effects=tuple(str(e) for e in data.get("effects") or ()),
    )


def _read_json(path: Path) -> dict | None:
    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Error reading %s: %s", path, exc)
        return None
    if not isinstance(data, dict):
        logger.error("Error reading %s: expected a JSON object", path)
        return None
    return data


def load_modules(modules_dir: Path) -> list[ModuleDefinition]:
    """Read every module file under *modules_dir*/<type>/."""
    modules: list[ModuleDefinition] = []
    if not modules_dir.is_dir():
        logger.warning("Modules directory %s does not exist", modules_dir)
        return modules
    for type_dir in sorted(p for p in modules_dir.iterdir() if p.is_dir()):
        try:
            module_type = ModuleType(type_dir.name)
        except ValueError:
            logger.warning("Skipping unknown module type directory %s", type_dir)
            continue
        for path in sorted(type_dir.glob("*.json")):
            data = _read_json(path)
            if data is None:
                continue
            try:
                modules.append(parse_module(data, module_type))
            except (CatalogError, TypeError, ValueError) as exc:
                logger.error("Error parsing %s: %s", path, exc)
    return modules


def load_traits(traits_dir: Path) -> list[TraitDefinition]:
    """Read every trait file in *traits_dir*."""
    traits: list[TraitDefinition] = []
    if not traits_dir.is_dir():
        logger.warning("Traits directory %s does not exist", traits_dir)
        return traits
    for path in sorted(traits_dir.glob("*.json")):
        data = _read_json(path)
        if data is None:
            continue
        try:
            traits.append(parse_trait(data))
        except (CatalogError, TypeError, ValueError) as exc:
            logger.error("Error parsing %s: %s", path, exc)
    return traits


def load_catalog(directory: str | Path) -> Catalog:
    """Build a Catalog from a catalog directory.

    Later files whose id repeats an earlier one are logged and dropped.
    """
    root = Path(directory)
    modules = _dedupe(load_modules(root / "modules"), "module")
    traits = _dedupe(load_traits(root / "traits"), "trait")
    logger.info("Loaded %d modules and %d traits from %s", len(modules), len(traits), root)
    return Catalog(modules, traits)


def _dedupe(items, kind: str) -> list:
    seen: set[str] = set()
    result = []
    for item in items:
        if item.id in seen:
            logger.warning("Duplicate %s id %r ignored", kind, item.id)
            continue
        seen.add(item.id)
        result.append(item)
    return result
