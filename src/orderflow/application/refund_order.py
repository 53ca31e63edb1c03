"""Application service: Refund Order use case.

A refund runs in three steps so that the payment gateway is never called
while the order is locked:

1. under the order lock, check eligibility and mark the refund
   ``processing`` with a fresh receipt (this is what stops a second
   concurrent refund);
2. call the gateway with no lock held;
3. under the lock again, record the gateway's answer.

Any error out of the gateway call is written to the refund record as a
failure and re-raised as GatewayFailure.  A refund left ``processing``
for longer than ``stale_after`` (the process died, or the answer was
lost) is looked up at the gateway by its receipt and settled before a
new attempt is allowed.  The order's status is never changed by a refund.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import structlog

from orderflow.application.dto import RefundResultDTO, order_to_dto
from orderflow.application.order_store import OrderStore
from orderflow.domain.exceptions import GatewayFailure, ValidationError
from orderflow.domain.model.order import Order
from orderflow.domain.model.value_objects import Money
from orderflow.domain.port.payment_gateway import GatewayRefund, PaymentGateway

logger = structlog.get_logger(__name__)

DEFAULT_STALE_AFTER = timedelta(minutes=15)


class RefundOrderHandler:

    def __init__(
        self,
        store: OrderStore,
        gateway: PaymentGateway,
        stale_after: timedelta = DEFAULT_STALE_AFTER,
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._stale_after = stale_after

    @property
    def stale_after(self) -> timedelta:
        return self._stale_after

    def handle(
        self,
        order_id: int,
        amount: str | Decimal | None = None,
        reason: str = "",
    ) -> RefundResultDTO:
        reason = reason or "Refund requested"
        self.resolve_stale(order_id)

        def begin(order: Order) -> tuple[int, str, Money, str]:
            requested = (
                Money.of(amount, order.total.currency) if amount is not None else None
            )
            attempt = order.begin_refund(requested, reason)
            if not order.payment.transaction_id:
                raise ValidationError(
                    f"Order {order.order_number} has no payment transaction to refund"
                )
            refund = order.payment.refund
            return attempt, order.payment.transaction_id, refund.amount, refund.receipt

        attempt, transaction_id, refund_amount, receipt = self._store.mutate(order_id, begin)
        logger.info(
            "refund_initiated",
            order_id=order_id,
            attempt=attempt,
            amount=str(refund_amount),
            receipt=receipt,
        )

        try:
            gateway_refund = self._gateway.refund(
                transaction_id, refund_amount, reason, receipt
            )
        except GatewayFailure as exc:
            self._record_failure(order_id, attempt, exc)
            raise
        except Exception as exc:
            failure = GatewayFailure(f"Unexpected gateway error: {exc!r}")
            self._record_failure(order_id, attempt, failure)
            raise failure from exc

        if gateway_refund.is_failed:
            failure = GatewayFailure(
                f"Gateway reported refund {gateway_refund.refund_id} as failed"
            )
            self._record_failure(order_id, attempt, failure)
            raise failure

        order = self._store.mutate(order_id, _settle(attempt, gateway_refund))
        logger.info(
            "refund_completed",
            order_id=order_id,
            refund_id=gateway_refund.refund_id,
            amount=str(refund_amount),
        )
        return _result(order)

    def resolve_stale(
        self, order_id: int, now: datetime | None = None
    ) -> RefundResultDTO | None:
        """Settle a refund stuck in ``processing`` from the gateway's records.

        Returns None when the order has no stale refund.  A gateway error
        leaves the refund ``processing`` for a later try.
        """
        now = now or datetime.now(timezone.utc)
        order = self._store.get(order_id)
        if not order.refund_is_stale(now, self._stale_after):
            return None

        refund = order.payment.refund
        attempt, receipt = refund.attempts, refund.receipt
        found = None
        if receipt and order.payment.transaction_id:
            found = self._gateway.fetch_refund(order.payment.transaction_id, receipt)

        if found is None:
            settle = _fail(attempt, f"No refund found at gateway for receipt {receipt}")
        elif found.is_failed:
            settle = _fail(attempt, f"Gateway reported refund {found.refund_id} as failed")
        else:
            settle = _settle(attempt, found)

        order = self._store.mutate(order_id, settle)
        logger.info(
            "stale_refund_resolved",
            order_id=order_id,
            attempt=attempt,
            receipt=receipt,
            refund_status=order.payment.refund.status.value,
        )
        return _result(order)

    def _record_failure(self, order_id: int, attempt: int, exc: GatewayFailure) -> None:
        self._store.mutate(order_id, _fail(attempt, str(exc)))
        logger.warning("refund_failed", order_id=order_id, attempt=attempt, error=str(exc))


def _settle(attempt: int, gateway_refund: GatewayRefund):
    def complete(order: Order) -> Order:
        order.complete_refund(attempt, gateway_refund.refund_id)
        return order

    return complete


def _fail(attempt: int, error_message: str):
    def fail(order: Order) -> Order:
        order.fail_refund(attempt, error_message)
        return order

    return fail


def _result(order: Order) -> RefundResultDTO:
    refund = order.payment.refund
    return RefundResultDTO(
        order=order_to_dto(order),
        refund_id=refund.refund_id,
        amount=str(refund.amount) if refund.amount is not None else "",
        status=refund.status.value,
    )
