"""Effect models.

The bonus chain is: selected option/trait → effect-code string → EffectDelta
→ effective stats. EffectDelta is the compiled, summable form of one or more
effect codes; ``merged`` combines two deltas without mutating either.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class ActionUsage:
    """Usage bookkeeping from an X/Z/Y code: 'reaction, 2 uses per day'."""
    kind: str            # "action" | "reaction" | "freeAction"
    daily: bool = False  # recharges daily instead of per encounter
    uses: int = 1


@dataclass(frozen=True, slots=True)
class Action:
    """An action synthesised from an option named '<Kind> : <Name>'."""
    name: str
    description: str
    type: str            # ActionType value
    source_module: str
    source_option: str


def _add_counts(into: dict[str, int], other: dict[str, int]) -> None:
    for key, value in other.items():
        into[key] = into.get(key, 0) + value


@dataclass(slots=True)
class EffectDelta:
    """Structured bonuses compiled from effect codes."""

    # Numeric bonuses keyed by skill/craft/weapon/mitigation name
    skills: dict[str, int] = field(default_factory=dict)
    crafting_skills: dict[str, int] = field(default_factory=dict)
    weapon_skills: dict[str, int] = field(default_factory=dict)
    mitigation: dict[str, int] = field(default_factory=dict)

    health: int = 0
    movement: int = 0
    initiative: int = 0

    # Set-valued grants
    immunities: set[str] = field(default_factory=set)
    vision: set[str] = field(default_factory=set)
    languages: set[str] = field(default_factory=set)

    # Verbatim trait flags (e.g. "TG"), in first-seen order
    trait_flags: list[str] = field(default_factory=list)

    # Raw X/Z/Y code → usage; later codes overwrite earlier ones
    action_usage: dict[str, ActionUsage] = field(default_factory=dict)

    # Unevaluated W… clauses
    conditional_effects: list[str] = field(default_factory=list)

    def merged(self, other: EffectDelta) -> EffectDelta:
        """Return a new delta holding self folded with *other*."""
        result = self.copy()
        _add_counts(result.skills, other.skills)
        _add_counts(result.crafting_skills, other.crafting_skills)
        _add_counts(result.weapon_skills, other.weapon_skills)
        _add_counts(result.mitigation, other.mitigation)
        result.health += other.health
        result.movement += other.movement
        result.initiative += other.initiative
        result.immunities |= other.immunities
        result.vision |= other.vision
        result.languages |= other.languages
        for flag in other.trait_flags:
            if flag not in result.trait_flags:
                result.trait_flags.append(flag)
        result.action_usage.update(other.action_usage)
        result.conditional_effects.extend(other.conditional_effects)
        return result

    def copy(self) -> EffectDelta:
        return copy.deepcopy(self)

    def is_empty(self) -> bool:
        return self == EffectDelta()
