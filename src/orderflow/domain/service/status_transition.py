"""Domain service: Status Transition Engine.

The one authority for changing an order's status, used by operator
requests, the cancellation workflow and the carrier reconciler alike.
It coordinates two aggregates: the Order (status + timeline) and the
Customer (loyalty points).
"""

from __future__ import annotations

from dataclasses import dataclass

import structlog

from orderflow.domain.exceptions import ValidationError
from orderflow.domain.model.customer import Customer
from orderflow.domain.model.order import Order, OrderStatus
from orderflow.domain.service.loyalty_accrual import accruals_for

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    previous_status: OrderStatus
    status: OrderStatus
    changed: bool
    points_credited: int = 0


class StatusTransitionEngine:

    def transition(
        self,
        order: Order,
        new_status: OrderStatus,
        note: str,
        customer: Customer,
    ) -> TransitionResult:
        """Apply ``new_status`` to ``order`` and credit any loyalty earned.

        Re-submitting the current status is a successful no-op.  An illegal
        edge raises InvalidTransitionError before anything is touched.
        """
        if customer.id != order.customer.customer_id:
            raise ValidationError(
                f"Customer {customer.id} does not own order {order.order_number}"
            )

        previous = order.status
        if not order.transition_to(new_status, note):
            return TransitionResult(previous, previous, changed=False)

        credited = 0
        for accrual in accruals_for(order.total, new_status):
            if customer.credit(order.id, accrual):
                credited += accrual.points
        order.customer.loyalty = customer.loyalty

        logger.info(
            "order_status_changed",
            order_id=order.id,
            order_number=order.order_number,
            previous_status=previous.value,
            status=new_status.value,
            points_credited=credited,
        )
        return TransitionResult(previous, new_status, changed=True, points_credited=credited)
