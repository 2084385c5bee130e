"""JSON persistence for characters.

Only the base build is stored: identity, attributes, base skills, resource
pools, languages, the module point ledger and the selections. The effective
view is derived and gets rebuilt by the build service after loading.

Key names follow the stored-document layout (camelCase). Records written
before costs were tracked per selection load with ``cost=None`` on their
options and the standard unlock fee on their modules.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from module_planner.engine.cost_schedule import LEGACY_UNLOCK_COST
from module_planner.models.character import (
    Character,
    ResourcePool,
    SelectedModule,
    SelectedOption,
    SelectedTrait,
)
from module_planner.models.ledger import PointLedger


logger = logging.getLogger(__name__)

_ID_RE = re.compile(r"^[A-Za-z0-9_-]+$")


# ---------------------------------------------------------------------------
# Mapping
# ---------------------------------------------------------------------------


def _dt_out(value: datetime) -> str:
    return value.isoformat()


def _dt_in(value: str | None) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def character_to_dict(character: Character) -> dict[str, Any]:
    """JSON-safe dict of *character*'s stored state."""
    return {
        "name": character.name,
        "race": character.race,
        "attributes": dict(character.attributes),
        "skills": dict(character.skills),
        "craftingSkills": dict(character.crafting_skills),
        "weaponSkills": dict(character.weapon_skills),
        "resources": {
            name: {"current": pool.current, "max": pool.max}
            for name, pool in character.resources.items()
        },
        "languages": list(character.languages),
        "movement": character.movement,
        "modulePoints": {
            "total": character.module_points.total,
            "spent": character.module_points.spent,
        },
        "modules": [
            {
                "moduleId": m.module_id,
                "unlockCost": m.unlock_cost,
                "dateAdded": _dt_out(m.date_added),
                "selectedOptions": [
                    {
                        "location": o.location,
                        "selectedAt": _dt_out(o.selected_at),
                        "cost": o.cost,
                    }
                    for o in m.selected_options
                ],
            }
            for m in character.modules
        ],
        "traits": [
            {
                "traitId": t.trait_id,
                "name": t.name,
                "type": t.type,
                "description": t.description,
                "dateAdded": _dt_out(t.date_added),
            }
            for t in character.traits
        ],
    }


def character_from_dict(data: dict[str, Any]) -> Character:
    """Rebuild a Character from character_to_dict() output.

    Missing sections fall back to the Character defaults. Raises
    ValueError for malformed values.
    """
    character = Character(
        name=data.get("name", "Unnamed"),
        race=data.get("race", ""),
    )
    character.attributes.update({k: int(v) for k, v in data.get("attributes", {}).items()})
    character.skills.update({k: int(v) for k, v in data.get("skills", {}).items()})
    character.crafting_skills.update(
        {k: int(v) for k, v in data.get("craftingSkills", {}).items()}
    )
    character.weapon_skills.update(
        {k: int(v) for k, v in data.get("weaponSkills", {}).items()}
    )
    for name, pool in data.get("resources", {}).items():
        character.resources[name] = ResourcePool(
            current=int(pool.get("current", 0)), max=int(pool.get("max", 0))
        )
    character.languages = list(data.get("languages", []))
    character.movement = int(data.get("movement", character.movement))

    points = data.get("modulePoints")
    if points is not None:
        character.module_points = PointLedger(
            total=int(points.get("total", 0)), spent=int(points.get("spent", 0))
        )

    for raw in data.get("modules", []):
        options = []
        for opt in raw.get("selectedOptions", []):
            cost = opt.get("cost")
            options.append(SelectedOption(
                location=str(opt["location"]),
                selected_at=_dt_in(opt.get("selectedAt")),
                cost=int(cost) if cost is not None else None,
            ))
        character.modules.append(SelectedModule(
            module_id=str(raw["moduleId"]),
            selected_options=options,
            unlock_cost=int(raw.get("unlockCost", LEGACY_UNLOCK_COST)),
            date_added=_dt_in(raw.get("dateAdded")),
        ))

    for raw in data.get("traits", []):
        character.traits.append(SelectedTrait(
            trait_id=str(raw["traitId"]),
            name=raw.get("name", ""),
            type=raw.get("type", "negative"),
            description=raw.get("description", ""),
            date_added=_dt_in(raw.get("dateAdded")),
        ))
    return character


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------


class JsonCharacterStore:
    """One JSON file per character id under a directory."""

    __slots__ = ("directory",)

    def __init__(self, directory: str | Path) -> None:
        self.directory = Path(directory)

    def _path(self, character_id: str) -> Path:
        if not _ID_RE.match(character_id or ""):
            raise ValueError(f"Invalid character id: {character_id!r}")
        return self.directory / f"{character_id}.json"

    def save(self, character_id: str, character: Character) -> Path:
        """Write *character*, replacing any previous file atomically."""
        path = self._path(character_id)
        self.directory.mkdir(parents=True, exist_ok=True)
        payload = json.dumps(character_to_dict(character), indent=2)
        fd, tmp = tempfile.mkstemp(dir=self.directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp, path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug("Saved character %r to %s", character_id, path)
        return path

    def load(self, character_id: str) -> Character | None:
        path = self._path(character_id)
        if not path.exists():
            return None
        data = json.loads(path.read_text(encoding="utf-8"))
        return character_from_dict(data)

    def delete(self, character_id: str) -> bool:
        path = self._path(character_id)
        if not path.exists():
            return False
        path.unlink()
        logger.debug("Deleted character %r", character_id)
        return True

    def list_ids(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(p.stem for p in self.directory.glob("*.json"))
