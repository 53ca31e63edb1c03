"""Application service: Cancel Order use case.

Cancels the order first, then refunds it when a refund applies.  COD and
unpaid orders are cancelled without touching the gateway; the result says
why.  A failed refund does not undo the cancellation: the order stays
``cancelled`` with its refund marked ``failed`` so it can be retried.
"""

from __future__ import annotations

import structlog

from orderflow.application.dto import CancellationResultDTO, order_to_dto
from orderflow.application.order_store import OrderStore
from orderflow.application.refund_order import RefundOrderHandler
from orderflow.application.update_status import UpdateOrderStatusHandler
from orderflow.domain.exceptions import (
    AlreadyRefundedError,
    GatewayFailure,
    InvalidTransitionError,
)
from orderflow.domain.model.order import Order, OrderStatus

logger = structlog.get_logger(__name__)

# Statuses an order can no longer be cancelled from by this workflow.
_NOT_CANCELLABLE = frozenset({OrderStatus.CANCELLED, OrderStatus.DELIVERED})


class CancelOrderHandler:

    def __init__(
        self,
        store: OrderStore,
        status_updater: UpdateOrderStatusHandler,
        refunds: RefundOrderHandler,
    ) -> None:
        self._store = store
        self._status_updater = status_updater
        self._refunds = refunds

    def handle(self, order_id: int, reason: str = "") -> CancellationResultDTO:
        reason = reason or "Order cancelled"

        def cancel(order: Order) -> tuple[OrderStatus, str | None]:
            if order.status in _NOT_CANCELLABLE:
                raise InvalidTransitionError(
                    f"Order {order.order_number} is already {order.status.value}"
                )
            previous = order.status
            self._status_updater.apply(order, OrderStatus.CANCELLED, reason)
            return previous, self._skip_reason(order)

        previous, skipped = self._store.mutate(order_id, cancel)
        logger.info(
            "order_cancelled",
            order_id=order_id,
            previous_status=previous.value,
            refund_skipped=skipped,
        )

        refund_error = None
        if skipped is None:
            try:
                self._refunds.handle(order_id, reason=reason)
            except AlreadyRefundedError:
                skipped = "already_refunded"
            except GatewayFailure as exc:
                refund_error = str(exc)
                logger.warning(
                    "cancellation_refund_failed", order_id=order_id, error=refund_error
                )

        order = self._store.get(order_id)
        return CancellationResultDTO(
            order=order_to_dto(order),
            previous_status=previous.value,
            refund_status=order.payment.refund.status.value,
            refund_skipped=skipped,
            refund_error=refund_error,
        )

    @staticmethod
    def _skip_reason(order: Order) -> str | None:
        if order.payment.is_cod:
            return "cod_order"
        if order.payment.refund.in_flight_or_done:
            return "already_refunded"
        return order.refund_skip_reason()
