"""Application service: Sync Shipment use case.

Polls the carrier for one order and folds the answer into the order:

* an unchanged carrier status is a no-op;
* a status that is behind or equal to the order's is recorded only
  (carriers report late and out of order);
* a forward status goes through the normal status transition;
* a carrier cancellation runs the full cancellation workflow, so the
  refund rules apply exactly as for an operator cancel.
"""

from __future__ import annotations

import structlog

from orderflow.application.cancel_order import CancelOrderHandler
from orderflow.application.dto import (
    CancellationResultDTO,
    SyncResultDTO,
    order_to_dto,
)
from orderflow.application.order_store import OrderStore
from orderflow.application.update_status import UpdateOrderStatusHandler
from orderflow.domain.exceptions import ValidationError
from orderflow.domain.model.order import Order, OrderStatus
from orderflow.domain.port.carrier import Carrier
from orderflow.domain.service.carrier_status import map_carrier_status

logger = structlog.get_logger(__name__)

UNCHANGED = "unchanged"
RECORDED = "recorded"
TRANSITIONED = "transitioned"
CANCELLED = "cancelled"


class SyncShipmentHandler:

    def __init__(
        self,
        store: OrderStore,
        carrier: Carrier,
        status_updater: UpdateOrderStatusHandler,
        canceller: CancelOrderHandler,
    ) -> None:
        self._store = store
        self._carrier = carrier
        self._status_updater = status_updater
        self._canceller = canceller

    def handle(self, order_id: int) -> SyncResultDTO:
        order = self._store.get(order_id)
        if order.shipment is None or not order.shipment.awb:
            raise ValidationError(f"Order {order.order_number} has no AWB to track")
        awb = order.shipment.awb

        carrier_status = self._carrier.get_status(awb)
        mapped = map_carrier_status(carrier_status)

        def apply(current: Order) -> str:
            if not current.record_carrier_status(carrier_status):
                return UNCHANGED
            if mapped is None or mapped == OrderStatus.CANCELLED:
                return RECORDED
            if mapped == current.status or current.is_behind(mapped):
                return RECORDED
            note = f"Carrier status: {carrier_status}"
            self._status_updater.apply(current, mapped, note)
            return TRANSITIONED

        action = self._store.mutate(order_id, apply)

        cancellation = None
        if action == RECORDED and mapped == OrderStatus.CANCELLED:
            cancellation = self._cancel_for_carrier(order_id, awb, carrier_status)
            if cancellation is not None:
                action = CANCELLED

        logger.info(
            "shipment_synced",
            order_id=order_id,
            awb=awb,
            carrier_status=carrier_status,
            mapped_status=mapped.value if mapped else None,
            action=action,
        )
        order_dto = (
            cancellation.order
            if cancellation is not None
            else order_to_dto(self._store.get(order_id))
        )
        return SyncResultDTO(
            order=order_dto,
            carrier_status=carrier_status,
            mapped_status=mapped.value if mapped else None,
            action=action,
            cancellation=cancellation,
        )

    def _cancel_for_carrier(
        self, order_id: int, awb: str, carrier_status: str
    ) -> CancellationResultDTO | None:
        order = self._store.get(order_id)
        if order.status == OrderStatus.CANCELLED:
            return None
        if not order.can_transition_to(OrderStatus.CANCELLED):
            logger.warning(
                "carrier_cancellation_ignored",
                order_id=order_id,
                awb=awb,
                status=order.status.value,
                carrier_status=carrier_status,
            )
            return None
        return self._canceller.handle(
            order_id, reason=f"Cancelled by carrier: {carrier_status}"
        )
