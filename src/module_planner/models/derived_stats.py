"""Effective stat calculator: folds effect deltas onto a character's base.

Formula structure is fixed here; constants come from GameSettings. The
calculation is always a full recompute from the character's base values
plus every delta that applies, so running it twice on the same inputs gives
the same CharacterStats.
"""

import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from module_planner.models.character import Character, ResourcePool
from module_planner.models.constants import (
    ATTRIBUTE_MIN,
    CRAFTING_SKILLS,
    MITIGATION_TYPES,
    SKILL_GOVERNING_ATTRIBUTE,
    WEAPON_SKILL_TALENT,
    ActionType,
    Attribute,
)
from module_planner.models.effect import Action, ActionUsage, EffectDelta
from module_planner.models.game_settings import GameSettings
from module_planner.models.module import ModuleDefinition, ModuleOption


_ACTION_NAME_RE = re.compile(
    r"^\s*(free action|reaction|action)\s*:\s*(.+?)\s*$", re.IGNORECASE
)

_ACTION_TYPE_BY_LABEL: dict[str, str] = {
    t.value.lower(): t.value for t in ActionType
}


class DerivedStats:
    """Attribute-derived base values using GameSettings-driven formulas."""

    def __init__(self, settings: GameSettings) -> None:
        self._settings = settings

    def health_max(self, physique: int) -> int:
        """Health = health_base + physique * health_physique_mult."""
        base = self._settings.get_int("health_base", 8)
        mult = self._settings.get_int("health_physique_mult", 2)
        return base + physique * mult

    def stamina_max(self, physique: int) -> int:
        return self._settings.get_int("stamina_base", 5) + physique

    def resolve_max(self, mind: int) -> int:
        return self._settings.get_int("resolve_base", 5) + mind

    def initiative(self, agility: int, mind: int) -> int:
        return agility + mind


@dataclass(frozen=True, slots=True)
class SkillRating:
    """Die size (value) and number of dice rolled (talent)."""
    value: int
    talent: int


@dataclass
class CharacterStats:
    """Complete effective stat snapshot for a character build."""

    attributes: dict[str, int] = field(default_factory=dict)

    skills: dict[str, SkillRating] = field(default_factory=dict)
    crafting_skills: dict[str, SkillRating] = field(default_factory=dict)
    weapon_skills: dict[str, SkillRating] = field(default_factory=dict)

    # Attack/damage/crit bonuses per weapon family (AZ codes)
    weapon_bonuses: dict[str, int] = field(default_factory=dict)
    mitigation: dict[str, int] = field(default_factory=dict)

    resources: dict[str, ResourcePool] = field(default_factory=dict)
    initiative: int = 0
    movement: int = 0

    immunities: list[str] = field(default_factory=list)
    vision: list[str] = field(default_factory=list)
    languages: list[str] = field(default_factory=list)

    trait_flags: list[str] = field(default_factory=list)
    action_usage: dict[str, ActionUsage] = field(default_factory=dict)
    conditional_effects: list[str] = field(default_factory=list)
    actions: list[Action] = field(default_factory=list)

    # Folded bonuses for reference
    bonuses: EffectDelta = field(default_factory=EffectDelta)


def fold_effects(deltas: Iterable[EffectDelta]) -> EffectDelta:
    """Sum numeric fields and union set fields across *deltas*."""
    folded = EffectDelta()
    for delta in deltas:
        folded = folded.merged(delta)
    return folded


def resolve_pool(previous: ResourcePool | None, new_max: int) -> ResourcePool:
    """Apply the top-up policy to one resource.

    A pool that was full (current >= max) stays full at the new max. A
    depleted pool keeps its current value, clamped to the new max.
    """
    if previous is None or previous.current >= previous.max:
        return ResourcePool(current=new_max, max=new_max)
    return ResourcePool(current=min(previous.current, new_max), max=new_max)


def parse_action_name(name: str) -> tuple[str, str] | None:
    """Split '<Kind> : <Name>' into (ActionType value, name), or None."""
    match = _ACTION_NAME_RE.match(name)
    if not match:
        return None
    label, action_name = match.groups()
    return _ACTION_TYPE_BY_LABEL[label.lower()], action_name


def derive_actions(
    selections: Iterable[tuple[ModuleDefinition, ModuleOption]],
) -> list[Action]:
    """Synthesise Action records from selected options named as actions.

    The first option to grant a given action name wins.
    """
    actions: list[Action] = []
    seen: set[str] = set()
    for module, option in selections:
        parsed = parse_action_name(option.name)
        if parsed is None:
            continue
        action_type, action_name = parsed
        key = action_name.casefold()
        if key in seen:
            continue
        seen.add(key)
        actions.append(Action(
            name=action_name,
            description=option.description,
            type=action_type,
            source_module=module.name,
            source_option=option.location,
        ))
    return actions


def _rating_map(
    base_values: dict[str, int],
    names: Iterable[str],
    talents: dict[str, int],
    bonuses: dict[str, int],
) -> dict[str, SkillRating]:
    return {
        name: SkillRating(
            value=base_values.get(name, 0) + bonuses.get(name, 0),
            talent=talents.get(name, 0),
        )
        for name in names
    }


def compute_stats(
    character: Character,
    deltas: Iterable[EffectDelta] = (),
    actions: Iterable[Action] = (),
    settings: GameSettings | None = None,
) -> CharacterStats:
    """Compute the effective stats for *character* with *deltas* applied.

    Does not modify *character*; the caller decides whether to store the
    returned resources back onto it.
    """
    calc = DerivedStats(settings or GameSettings.defaults())
    bonuses = fold_effects(deltas)

    attributes = dict(character.attributes)
    physique = attributes.get(Attribute.PHYSIQUE.value, ATTRIBUTE_MIN)
    agility = attributes.get(Attribute.AGILITY.value, ATTRIBUTE_MIN)
    mind = attributes.get(Attribute.MIND.value, ATTRIBUTE_MIN)

    # Talent follows the governing attribute
    skill_talents = {
        skill: attributes.get(attr, ATTRIBUTE_MIN)
        for skill, attr in SKILL_GOVERNING_ATTRIBUTE.items()
    }
    skills = _rating_map(
        character.skills, SKILL_GOVERNING_ATTRIBUTE, skill_talents, bonuses.skills
    )
    crafting = _rating_map(
        character.crafting_skills, CRAFTING_SKILLS, {}, bonuses.crafting_skills
    )
    weapon_skills = _rating_map(
        character.weapon_skills, WEAPON_SKILL_TALENT, dict(WEAPON_SKILL_TALENT), {}
    )

    mitigation = {m: bonuses.mitigation.get(m, 0) for m in MITIGATION_TYPES}

    maxima = {
        "health": calc.health_max(physique) + bonuses.health,
        "stamina": calc.stamina_max(physique),
        "resolve": calc.resolve_max(mind),
    }
    resources = {
        name: resolve_pool(character.resources.get(name), new_max)
        for name, new_max in maxima.items()
    }

    languages = list(character.languages)
    for language in sorted(bonuses.languages):
        if language not in languages:
            languages.append(language)

    return CharacterStats(
        attributes=attributes,
        skills=skills,
        crafting_skills=crafting,
        weapon_skills=weapon_skills,
        weapon_bonuses=dict(bonuses.weapon_skills),
        mitigation=mitigation,
        resources=resources,
        initiative=calc.initiative(agility, mind) + bonuses.initiative,
        movement=character.movement + bonuses.movement,
        immunities=sorted(bonuses.immunities),
        vision=sorted(bonuses.vision),
        languages=languages,
        trait_flags=list(bonuses.trait_flags),
        action_usage=dict(bonuses.action_usage),
        conditional_effects=list(bonuses.conditional_effects),
        actions=list(actions),
        bonuses=bonuses,
    )
