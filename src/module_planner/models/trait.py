"""Trait catalog data model."""

from dataclasses import dataclass, field
from enum import Enum


class TraitType(str, Enum):
    POSITIVE = "positive"   # perk, costs module points
    NEGATIVE = "negative"   # flaw, free


@dataclass(frozen=True, slots=True)
class TraitDefinition:
    """A parsed trait catalog entry.

    ``effects`` holds effect-code strings in the same grammar as module
    option data.
    """
    id: str
    name: str
    type: TraitType
    description: str = ""
    effects: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_positive(self) -> bool:
        return self.type == TraitType.POSITIVE
