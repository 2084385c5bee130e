"""Module point ledger.

Tracks the points a character has earned (``total``) and committed
(``spent``). Callers check ``can_afford`` before mutating anything else so a
failed charge never leaves partial state behind.
"""

from dataclasses import dataclass


class InsufficientPointsError(ValueError):
    """Raised when a charge exceeds the available points."""


@dataclass(slots=True)
class PointLedger:
    total: int = 5
    spent: int = 0

    def __post_init__(self) -> None:
        if self.total < 0:
            raise ValueError(f"total must be >= 0, got {self.total}")
        if self.spent < 0 or self.spent > self.total:
            raise ValueError(
                f"spent must be within [0, {self.total}], got {self.spent}"
            )

    def available(self) -> int:
        return self.total - self.spent

    def can_afford(self, cost: int) -> bool:
        return self.available() >= cost

    def charge(self, cost: int) -> None:
        if cost < 0:
            raise ValueError(f"cost must be >= 0, got {cost}")
        if not self.can_afford(cost):
            raise InsufficientPointsError(
                f"Need {cost} point(s), only {self.available()} available"
            )
        self.spent += cost

    def refund(self, cost: int) -> None:
        if cost < 0:
            raise ValueError(f"cost must be >= 0, got {cost}")
        self.spent = max(0, self.spent - cost)

    def award(self, points: int) -> None:
        """Add earned points to the total."""
        if points < 0:
            raise ValueError(f"points must be >= 0, got {points}")
        self.total += points
