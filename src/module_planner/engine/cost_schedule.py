"""Module point cost schedules.

Two schedules exist in stored data:

  flat    unlocking a module costs 2 and includes its root option "1";
          every other option costs 1. Canonical for new selections.
  tiered  legacy pricing: an option in tier 5+ costs 3, anything lower 2.
          Still needed to refund options recorded without a charged cost.

Costs are a function of (module, location); the module carries its ruleset
so a BuildConfig can route rulesets to different schedules.
"""

from __future__ import annotations

from typing import Protocol

from module_planner.graph.dependency_graph import parse_location
from module_planner.models.module import ModuleDefinition


MODULE_UNLOCK_COST = 2
# Unlock fee charged before unlock costs were recorded per module.
LEGACY_UNLOCK_COST = 1


class CostSchedule(Protocol):
    name: str

    def module_cost(self, module: ModuleDefinition) -> int: ...

    def option_cost(self, module: ModuleDefinition, location: str) -> int: ...


class FlatCostSchedule:
    name = "flat"

    def __init__(self, unlock_cost: int = MODULE_UNLOCK_COST, option_cost: int = 1) -> None:
        self._unlock_cost = unlock_cost
        self._option_cost = option_cost

    def module_cost(self, module: ModuleDefinition) -> int:
        return self._unlock_cost

    def option_cost(self, module: ModuleDefinition, location: str) -> int:
        # The unlock fee already paid for the root option; sibling tier-1
        # branches are charged like any other option.
        loc = parse_location(location)
        if loc.tier == 1 and not loc.is_branch:
            return 0
        return self._option_cost


class TieredCostSchedule:
    name = "tiered"

    def __init__(self, unlock_cost: int = MODULE_UNLOCK_COST) -> None:
        self._unlock_cost = unlock_cost

    def module_cost(self, module: ModuleDefinition) -> int:
        return self._unlock_cost

    def option_cost(self, module: ModuleDefinition, location: str) -> int:
        return legacy_option_cost(location)


def legacy_option_cost(location: str) -> int:
    """Tiered price of one option; needs only the location."""
    if parse_location(location).tier >= 5:
        return 3
    return 2


COST_SCHEDULES: dict[str, CostSchedule] = {
    FlatCostSchedule.name: FlatCostSchedule(),
    TieredCostSchedule.name: TieredCostSchedule(),
}

LEGACY_SCHEDULE: CostSchedule = COST_SCHEDULES[TieredCostSchedule.name]


def get_schedule(name: str) -> CostSchedule:
    """Look up a schedule by name. Raises ValueError for unknown names."""
    try:
        return COST_SCHEDULES[name]
    except KeyError:
        raise ValueError(
            f"Unknown cost schedule {name!r}; expected one of {sorted(COST_SCHEDULES)}"
        ) from None
