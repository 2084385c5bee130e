"""Ruleset formula constants with typed accessors.

Every accessor takes a default so formulas work with an empty settings
object; GameSettings.defaults() returns the current ruleset's values.
"""

from dataclasses import dataclass, field


# Current ruleset defaults for all constants used in stat formulas.
_RULESET_DEFAULTS: dict[str, int] = {
    # Health max: base + physique * mult
    "health_base": 8,
    "health_physique_mult": 2,
    # Stamina max: base + physique
    "stamina_base": 5,
    # Resolve max: base + mind
    "resolve_base": 5,
}


@dataclass
class GameSettings:
    """Typed accessor over ruleset constants.

    Use defaults() for the current ruleset or pass overrides directly.
    """

    _values: dict[str, int] = field(default_factory=dict)

    def get_int(self, key: str, default: int) -> int:
        """Get an integer constant, falling back to the provided default."""
        val = self._values.get(key)
        if val is None:
            return default
        return int(val)

    @classmethod
    def defaults(cls) -> "GameSettings":
        """Return current ruleset defaults."""
        return cls(_values=dict(_RULESET_DEFAULTS))

    def with_overrides(self, **overrides: int) -> "GameSettings":
        values = dict(self._values)
        values.update(overrides)
        return GameSettings(_values=values)
