"""Application service: Create Shipment use case.

The carrier is called outside the order lock; its answer is attached
under the lock after checking again that no shipment appeared meanwhile.
"""

from __future__ import annotations

import structlog

from orderflow.application.dto import ShipmentDTO
from orderflow.application.order_store import OrderStore
from orderflow.domain.exceptions import AlreadyExistsError, ValidationError
from orderflow.domain.model.order import Order, OrderStatus, Shipment
from orderflow.domain.port.carrier import Carrier

logger = structlog.get_logger(__name__)

_UNSHIPPABLE = frozenset({OrderStatus.CANCELLED, OrderStatus.REFUNDED})


class CreateShipmentHandler:

    def __init__(self, store: OrderStore, carrier: Carrier) -> None:
        self._store = store
        self._carrier = carrier

    def handle(self, order_id: int) -> ShipmentDTO:
        order = self._store.get(order_id)
        order.assert_no_shipment()
        if order.status in _UNSHIPPABLE:
            raise ValidationError(
                f"Cannot ship order {order.order_number}: it is {order.status.value}"
            )

        created = self._carrier.create_shipment(order)

        def attach(current: Order) -> Shipment:
            shipment = Shipment(
                shipment_id=created.shipment_id,
                awb=created.awb,
                tracking_url=created.tracking_url,
            )
            current.attach_shipment(shipment)
            return shipment

        try:
            shipment = self._store.mutate(order_id, attach)
        except AlreadyExistsError:
            logger.error(
                "carrier_shipment_orphaned", order_id=order_id, awb=created.awb
            )
            raise

        logger.info(
            "shipment_created",
            order_id=order_id,
            awb=shipment.awb,
            shipment_id=shipment.shipment_id,
        )
        return ShipmentDTO(
            shipment_id=shipment.shipment_id,
            awb=shipment.awb,
            tracking_url=shipment.tracking_url,
            carrier_status=shipment.carrier_status,
        )
