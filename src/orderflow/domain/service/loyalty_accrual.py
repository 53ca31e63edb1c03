"""Domain service: Loyalty Accrual Calculator.

A pure function of the order total and the status being entered.  It says
what an order *earns* at that status; whether the points are actually
credited is decided by the guard keys on the Customer record, so calling
this any number of times for the same order is harmless.
"""

from __future__ import annotations

from decimal import Decimal

from orderflow.domain.model.customer import Accrual, AccrualKind
from orderflow.domain.model.order import OrderStatus
from orderflow.domain.model.value_objects import Money

DELIVERY_BONUS_RATE = Decimal("0.10")

# Purchase points are earned once the order is confirmed or further along.
PURCHASE_EARNING_STATUSES = frozenset(
    {
        OrderStatus.CONFIRMED,
        OrderStatus.PROCESSING,
        OrderStatus.SHIPPED,
        OrderStatus.DELIVERED,
    }
)


def accruals_for(order_total: Money, new_status: OrderStatus) -> list[Accrual]:
    """Points an order earns on entering ``new_status``.

    * purchase: ``floor(total)`` for confirmed and every later step
    * delivery bonus: ``floor(total * 0.10)`` on delivered
    """
    accruals: list[Accrual] = []
    if new_status in PURCHASE_EARNING_STATUSES:
        accruals.append(Accrual(AccrualKind.PURCHASE, order_total.floor()))
    if new_status == OrderStatus.DELIVERED:
        accruals.append(
            Accrual(AccrualKind.DELIVERY_BONUS, order_total.floor(DELIVERY_BONUS_RATE))
        )
    return accruals
