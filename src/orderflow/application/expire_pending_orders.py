"""Application service: expire unpaid pending orders.

An order still ``pending`` with no captured payment after ``max_age`` is
cancelled through the normal cancellation workflow, with a note saying
why.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import structlog

from orderflow.application.cancel_order import CancelOrderHandler
from orderflow.application.dto import ExpiryResultDTO
from orderflow.domain.exceptions import DomainException
from orderflow.domain.model.order import Order, OrderStatus
from orderflow.domain.repository.order_repository import OrderRepository

logger = structlog.get_logger(__name__)

DEFAULT_MAX_AGE_HOURS = 12


class ExpirePendingOrdersHandler:

    def __init__(self, order_repo: OrderRepository, canceller: CancelOrderHandler) -> None:
        self._order_repo = order_repo
        self._canceller = canceller

    def handle(
        self,
        max_age_hours: float = DEFAULT_MAX_AGE_HOURS,
        now: datetime | None = None,
    ) -> ExpiryResultDTO:
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(hours=max_age_hours)
        stale = [o for o in self._order_repo.list_all() if _is_expired(o, cutoff)]
        result = ExpiryResultDTO(examined=len(stale))
        reason = f"Auto-cancelled: payment not received within {max_age_hours:g} hours"

        for order in stale:
            try:
                self._canceller.handle(order.id, reason=reason)  # type: ignore[arg-type]
            except DomainException as exc:
                result.errors += 1
                logger.warning(
                    "pending_order_expiry_failed", order_id=order.id, error=str(exc)
                )
                continue
            result.cancelled.append(order.order_number)

        logger.info(
            "pending_orders_expired",
            examined=result.examined,
            cancelled=len(result.cancelled),
            errors=result.errors,
        )
        return result


def _is_expired(order: Order, cutoff: datetime) -> bool:
    return (
        order.status == OrderStatus.PENDING
        and not order.payment.is_paid
        and order.created_at < cutoff
    )
