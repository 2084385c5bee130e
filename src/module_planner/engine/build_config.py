"""Configuration knobs for the build engine.

Defaults match the current ruleset. Rulesets that price options
differently can be routed to another cost schedule by ruleset number.
"""

from dataclasses import dataclass, field

from module_planner.engine.cost_schedule import CostSchedule, get_schedule


@dataclass(slots=True)
class BuildConfig:
    """Tuneable parameters that aren't stored in the catalog."""

    max_traits: int = 3
    starting_points: int = 5          # module points for a new character
    positive_trait_cost: int = 1
    negative_trait_cost: int = 0
    cost_schedule: str = "flat"
    ruleset_cost_schedules: dict[int, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.max_traits < 0:
            raise ValueError(f"max_traits must be >= 0, got {self.max_traits}")
        get_schedule(self.cost_schedule)
        for name in self.ruleset_cost_schedules.values():
            get_schedule(name)

    def schedule_for(self, ruleset: int) -> CostSchedule:
        """Cost schedule used for modules of *ruleset*."""
        return get_schedule(self.ruleset_cost_schedules.get(ruleset, self.cost_schedule))

    def trait_cost(self, is_positive: bool) -> int:
        return self.positive_trait_cost if is_positive else self.negative_trait_cost
