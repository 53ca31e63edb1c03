"""Application service: bulk shipment reconciliation.

Syncs every order that has an AWB and is not yet delivered, cancelled
or refunded.  One order failing is logged and counted; the batch goes on.
"""

from __future__ import annotations

import structlog

from orderflow.application.dto import BulkSyncResultDTO, SyncDetailDTO
from orderflow.application.sync_shipment import SyncShipmentHandler
from orderflow.domain.exceptions import DomainException
from orderflow.domain.repository.order_repository import OrderRepository

logger = structlog.get_logger(__name__)

DEFAULT_BATCH_LIMIT = 100


class ReconcileShipmentsHandler:

    def __init__(self, order_repo: OrderRepository, sync: SyncShipmentHandler) -> None:
        self._order_repo = order_repo
        self._sync = sync

    def handle(self, limit: int = DEFAULT_BATCH_LIMIT) -> BulkSyncResultDTO:
        orders = self._order_repo.list_open_shipments(limit)
        result = BulkSyncResultDTO(total=len(orders))

        for order in orders:
            awb = order.shipment.awb if order.shipment else ""
            try:
                synced = self._sync.handle(order.id)  # type: ignore[arg-type]
            except DomainException as exc:
                result.errors += 1
                result.details.append(
                    SyncDetailDTO(order.order_number, awb, error=str(exc))
                )
                logger.warning(
                    "shipment_sync_failed",
                    order_id=order.id,
                    awb=awb,
                    error=str(exc),
                    retryable=exc.retryable,
                )
                continue

            result.synced += 1
            if synced.cancellation_detected:
                result.cancelled += 1
            result.details.append(
                SyncDetailDTO(order.order_number, awb, action=synced.action)
            )

        logger.info(
            "shipment_reconciliation_finished",
            total=result.total,
            synced=result.synced,
            cancelled=result.cancelled,
            errors=result.errors,
        )
        return result
