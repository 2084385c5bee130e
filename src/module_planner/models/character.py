"""Character build data model.

Represents a player's build: base attributes and skills, resource pools,
the module point ledger, selected modules/options and traits. ``effective``
holds the last full recompute and is owned by the build engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from module_planner.models.constants import (
    ATTRIBUTES,
    CRAFTING_SKILLS,
    RESOURCES,
    SKILLS,
    WEAPON_SKILL_TALENT,
)
from module_planner.models.ledger import PointLedger

if TYPE_CHECKING:
    from module_planner.models.derived_stats import CharacterStats


def _now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class ResourcePool:
    current: int = 0
    max: int = 0


@dataclass(slots=True)
class SelectedOption:
    """One chosen option location within a selected module.

    ``cost`` is what was charged when the option was taken; None marks
    historical data imported without a recorded cost.
    """
    location: str
    selected_at: datetime = field(default_factory=_now)
    cost: int | None = None


@dataclass(slots=True)
class SelectedModule:
    module_id: str
    selected_options: list[SelectedOption] = field(default_factory=list)
    unlock_cost: int = 0
    date_added: datetime = field(default_factory=_now)

    @property
    def locations(self) -> list[str]:
        return [o.location for o in self.selected_options]

    def find_option(self, location: str) -> SelectedOption | None:
        for option in self.selected_options:
            if option.location == location:
                return option
        return None


@dataclass(slots=True)
class SelectedTrait:
    """Snapshot of a trait catalog row taken when the trait was added."""
    trait_id: str
    name: str
    type: str
    description: str = ""
    date_added: datetime = field(default_factory=_now)

    @property
    def is_positive(self) -> bool:
        return self.type == "positive"


@dataclass
class Character:
    """A character build.

    Attribute, skill and resource maps are keyed by the names in
    ``models.constants``.
    """

    # Identity
    name: str = "Unnamed"
    race: str = ""

    # Core attributes, 1-3 each
    attributes: dict[str, int] = field(
        default_factory=lambda: {a: 1 for a in ATTRIBUTES}
    )

    # Base skill values (die size) before module bonuses
    skills: dict[str, int] = field(default_factory=lambda: {s: 0 for s in SKILLS})
    crafting_skills: dict[str, int] = field(
        default_factory=lambda: {c: 0 for c in CRAFTING_SKILLS}
    )
    weapon_skills: dict[str, int] = field(
        default_factory=lambda: {w: 0 for w in WEAPON_SKILL_TALENT}
    )

    # Current/max pools; max is rewritten on every recompute
    resources: dict[str, ResourcePool] = field(
        default_factory=lambda: {r: ResourcePool() for r in RESOURCES}
    )

    languages: list[str] = field(default_factory=list)
    movement: int = 5

    module_points: PointLedger = field(default_factory=PointLedger)
    modules: list[SelectedModule] = field(default_factory=list)
    traits: list[SelectedTrait] = field(default_factory=list)

    # Derived view, recomputed by the build engine
    effective: CharacterStats | None = None

    def find_module(self, module_id: str) -> SelectedModule | None:
        for module in self.modules:
            if module.module_id == module_id:
                return module
        return None

    def find_trait(self, trait_id: str) -> SelectedTrait | None:
        for trait in self.traits:
            if trait.trait_id == trait_id:
                return trait
        return None
