"""Module catalog data model.

A module is a purchasable package of abilities laid out as a tiered option
tree. Each option is addressed by its location string (``"1"``, ``"2a"``,
``"3"``...) and carries an effect-code ``data`` string. Definitions are
frozen: the catalog is loaded once and shared read-only.
"""

from dataclasses import dataclass, field
from enum import Enum


class ModuleType(str, Enum):
    RACIAL = "racial"
    CORE = "core"
    SECONDARY = "secondary"


@dataclass(frozen=True, slots=True)
class ModuleOption:
    """One node of a module's option tree."""
    location: str
    name: str
    description: str = ""
    data: str = ""             # effect codes, e.g. "AS3=1:ASH=1"
    cost: int | None = None    # catalog display value; charging uses the cost schedule


@dataclass(frozen=True, slots=True)
class ModuleDefinition:
    """A parsed module catalog entry."""
    id: str
    name: str
    type: ModuleType
    ruleset: int = 0
    description: str = ""
    options: tuple[ModuleOption, ...] = field(default_factory=tuple)

    def option_at(self, location: str) -> ModuleOption | None:
        """Return the option at *location*, or None."""
        for option in self.options:
            if option.location == location:
                return option
        return None

    @property
    def locations(self) -> tuple[str, ...]:
        return tuple(o.location for o in self.options)
