"""Application service: Set Invoice Number use case (last write wins)."""

from __future__ import annotations

import structlog

from orderflow.application.dto import OrderDTO, order_to_dto
from orderflow.application.order_store import OrderStore
from orderflow.domain.model.order import Order

logger = structlog.get_logger(__name__)


class SetInvoiceHandler:

    def __init__(self, store: OrderStore) -> None:
        self._store = store

    def handle(self, order_id: int, invoice_no: str) -> OrderDTO:
        def assign(order: Order) -> Order:
            order.set_invoice(invoice_no)
            return order

        order = self._store.mutate(order_id, assign)
        logger.info("invoice_assigned", order_id=order_id, invoice_no=order.invoice_no)
        return order_to_dto(order)
