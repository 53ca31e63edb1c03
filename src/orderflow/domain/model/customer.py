"""Customer loyalty record, as seen by the fulfillment core.

The customer store is owned by another part of the platform; this core only
reads the loyalty snapshot and increments points.  Every increment is keyed
by ``(order_id, kind)`` and the keys already credited are kept on the
record, which is what makes crediting idempotent.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from orderflow.domain.exceptions import ValidationError


class LoyaltyTier(Enum):
    BRONZE = "bronze"
    SILVER = "silver"
    GOLD = "gold"


class AccrualKind(Enum):
    PURCHASE = "purchase"
    DELIVERY_BONUS = "delivery-bonus"


@dataclass(frozen=True)
class Accrual:
    kind: AccrualKind
    points: int

    def guard_key(self, order_id: int) -> str:
        return f"{order_id}:{self.kind.value}"


@dataclass(frozen=True)
class LoyaltySnapshot:
    tier: LoyaltyTier = LoyaltyTier.BRONZE
    points: int = 0

    def __post_init__(self) -> None:
        if self.points < 0:
            raise ValidationError("Loyalty points cannot be negative")


@dataclass
class Customer:
    id: str
    name: str = ""
    loyalty: LoyaltySnapshot = field(default_factory=LoyaltySnapshot)
    awarded: set[str] = field(default_factory=set)
    version: int = 0

    def has_been_credited(self, order_id: int, kind: AccrualKind) -> bool:
        return f"{order_id}:{kind.value}" in self.awarded

    def credit(self, order_id: int, accrual: Accrual) -> bool:
        """Add ``accrual.points`` unless this order already earned this kind.

        Returns True when points were added.  The tier is left alone; tier
        upgrades belong to the customer service.
        """
        if accrual.points < 0:
            raise ValidationError("Accrued points cannot be negative")
        key = accrual.guard_key(order_id)
        if key in self.awarded:
            return False
        self.awarded.add(key)
        self.loyalty = LoyaltySnapshot(
            tier=self.loyalty.tier,
            points=self.loyalty.points + accrual.points,
        )
        return True
