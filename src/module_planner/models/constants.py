"""Attributes, skills, and effect-code lookup tables.

Sub-code tables mirror the catalog's effect-code wire format: the keys are
the single characters (or, for immunities, decimal strings) that follow the
category prefix in an option's ``data`` string. All tables are read-only.
"""

from enum import Enum
from types import MappingProxyType


class Attribute(str, Enum):
    """Core attributes. Each starts at 1 and caps at 3."""
    PHYSIQUE = "physique"
    AGILITY = "agility"
    MIND = "mind"
    KNOWLEDGE = "knowledge"
    SOCIAL = "social"


ATTRIBUTES: tuple[str, ...] = tuple(a.value for a in Attribute)

ATTRIBUTE_MIN = 1
ATTRIBUTE_MAX = 3


# Skill → governing attribute. A skill's talent (dice rolled) equals the
# governing attribute; its value (die size) starts from the base skill value.
SKILL_GOVERNING_ATTRIBUTE = MappingProxyType({
    "fitness": Attribute.PHYSIQUE.value,
    "deflect": Attribute.PHYSIQUE.value,
    "might": Attribute.PHYSIQUE.value,
    "evade": Attribute.AGILITY.value,
    "stealth": Attribute.AGILITY.value,
    "coordination": Attribute.AGILITY.value,
    "resilience": Attribute.MIND.value,
    "concentration": Attribute.MIND.value,
    "senses": Attribute.MIND.value,
    "science": Attribute.KNOWLEDGE.value,
    "technology": Attribute.KNOWLEDGE.value,
    "medicine": Attribute.KNOWLEDGE.value,
    "xenology": Attribute.KNOWLEDGE.value,
    "negotiation": Attribute.SOCIAL.value,
    "behavior": Attribute.SOCIAL.value,
    "presence": Attribute.SOCIAL.value,
})

SKILLS: tuple[str, ...] = tuple(SKILL_GOVERNING_ATTRIBUTE)

# Weapon skills don't follow an attribute; talent is fixed per skill.
WEAPON_SKILL_TALENT = MappingProxyType({
    "rangedWeapons": 1,
    "meleeWeapons": 1,
    "weaponSystems": 0,
    "heavyRangedWeapons": 0,
})

CRAFTING_SKILLS: tuple[str, ...] = (
    "engineering",
    "fabrication",
    "biosculpting",
    "synthesis",
)

MITIGATION_TYPES: tuple[str, ...] = (
    "kinetic",
    "cold",
    "heat",
    "electrical",
    "mental",
    "toxic",
    "sonic",
    "radiation",
)

RESOURCES: tuple[str, ...] = ("health", "stamina", "resolve")


# Pseudo-skill: ``ASH=n`` is an initiative bonus, not a skill bonus.
INITIATIVE = "initiative"

# AS<SUB>
SKILL_CODES = MappingProxyType({
    "1": "fitness",
    "2": "deflect",
    "3": "might",
    "4": "evade",
    "5": "stealth",
    "6": "coordination",
    "7": "resilience",
    "8": "concentration",
    "9": "senses",
    "A": "science",
    "B": "technology",
    "C": "medicine",
    "D": "xenology",
    "E": "negotiation",
    "F": "behavior",
    "G": "presence",
    "H": INITIATIVE,
})

# AC<SUB>
CRAFT_CODES = MappingProxyType({
    "1": "engineering",
    "2": "fabrication",
    "3": "biosculpting",
    "4": "synthesis",
})

# AZ<SUB>: attack/damage/crit/brutal-crit/upgrade bonuses per weapon family.
WEAPON_CODES = MappingProxyType({
    "1": "attackWithUnarmed",
    "2": "attackWithMeleeWeapons",
    "3": "attackWithRangedWeapons",
    "4": "attackWithHeavyRangedWeapons",
    "5": "attackWithWeaponSystems",
    "6": "attackWithPlasmaBlade",
    "7": "damageWithUnarmed",
    "8": "damageWithMeleeWeapons",
    "9": "damageWithRangedWeapons",
    "A": "damageWithHeavyRangedWeapons",
    "B": "damageWithWeaponSystems",
    "C": "damageWithPlasmaBlade",
    "D": "critsWithUnarmed",
    "E": "critsWithMeleeWeapons",
    "F": "critsWithRangedWeapons",
    "G": "critsWithHeavyRangedWeapons",
    "H": "critsWithWeaponSystems",
    "I": "critsWithPlasmaBlade",
    "J": "brutalCritsWithUnarmed",
    "K": "brutalCritsWithMeleeWeapons",
    "L": "brutalCritsWithRangedWeapons",
    "M": "brutalCritsWithHeavyRangedWeapons",
    "N": "brutalCritsWithWeaponSystems",
    "O": "brutalCritsWithPlasmaBlade",
    "P": "upgradedUnarmed",
    "Q": "upgradedMeleeWeapons",
    "R": "upgradedRangedWeapons",
    "S": "upgradedHeavyRangedWeapons",
    "T": "upgradedWeaponSystems",
    "U": "upgradedPlasmaBlade",
})

# AD<SUB>
MITIGATION_CODES = MappingProxyType({
    str(i): name for i, name in enumerate(MITIGATION_TYPES, start=1)
})

# I<code>
IMMUNITY_CODES = MappingProxyType({
    "1": "afraid",
    "2": "bleeding",
    "3": "blinded",
    "4": "confused",
    "5": "dazed",
    "6": "deafened",
    "7": "exhausted",
    "8": "hidden",
    "9": "ignited",
    "10": "biological",
    "11": "prone",
    "12": "sleeping",
    "13": "stasis",
    "14": "stunned",
    "15": "trapped",
    "16": "unconscious",
    "17": "wounded",
    "20": "prone",  # legacy duplicate still present in older catalog rows
})

# VD<SUB>
VISION_CODES = MappingProxyType({
    "1": "thermal",
    "2": "void",
    "3": "normal",
    "4": "enhanced",
})


class ActionType(str, Enum):
    """Kinds of derived action a module option can grant."""
    ACTION = "Action"
    REACTION = "Reaction"
    FREE_ACTION = "Free Action"


# X/Z/Y usage codes → action kind (usage bookkeeping, keyed by raw code).
ACTION_USAGE_KINDS = MappingProxyType({
    "X": "action",
    "Z": "reaction",
    "Y": "freeAction",
})
