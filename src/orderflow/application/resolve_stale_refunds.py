"""Application service: settle refunds stuck in ``processing``.

Walks every order whose refund has been ``processing`` longer than the
refund handler's ``stale_after`` and asks the gateway what happened to it.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog

from orderflow.application.dto import RefundSweepResultDTO
from orderflow.application.refund_order import RefundOrderHandler
from orderflow.domain.exceptions import DomainException
from orderflow.domain.repository.order_repository import OrderRepository

logger = structlog.get_logger(__name__)


class ResolveStaleRefundsHandler:

    def __init__(self, order_repo: OrderRepository, refunds: RefundOrderHandler) -> None:
        self._order_repo = order_repo
        self._refunds = refunds

    def handle(self, now: datetime | None = None) -> RefundSweepResultDTO:
        now = now or datetime.now(timezone.utc)
        stale = [
            o for o in self._order_repo.list_all()
            if o.refund_is_stale(now, self._refunds.stale_after)
        ]
        result = RefundSweepResultDTO(examined=len(stale))

        for order in stale:
            try:
                resolved = self._refunds.resolve_stale(order.id, now=now)  # type: ignore[arg-type]
            except DomainException as exc:
                result.errors += 1
                logger.warning("stale_refund_unresolved", order_id=order.id, error=str(exc))
                continue
            if resolved is not None:
                result.resolved.append((order.order_number, resolved.status))

        logger.info(
            "stale_refunds_swept",
            examined=result.examined,
            resolved=len(result.resolved),
            errors=result.errors,
        )
        return result
