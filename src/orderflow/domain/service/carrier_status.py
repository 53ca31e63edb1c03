"""Carrier status vocabulary -> order status.

Carriers report free-form strings ("Picked Up", "In Transit",
"RTO Initiated", ...).  Only this table knows what they mean for an order.
Rules are tried top to bottom; the first match wins.
"""

from __future__ import annotations

import re

from orderflow.domain.model.order import OrderStatus

_RULES: tuple[tuple[re.Pattern[str], OrderStatus | None], ...] = (
    (re.compile(r"cancel|\brto\b|\brts\b|return|reject"), OrderStatus.CANCELLED),
    (re.compile(r"pending|scheduled|not[ _]picked|awaiting"), None),
    (re.compile(r"out[ _]for[ _]delivery|undeliver|not[ _]delivered"), OrderStatus.SHIPPED),
    (re.compile(r"deliver"), OrderStatus.DELIVERED),
    (
        re.compile(r"picked|pick[ _]up|handed|dispatch|transit|shipped|in[ _]route"),
        OrderStatus.SHIPPED,
    ),
    (re.compile(r"packed|bagged|manifest"), OrderStatus.PROCESSING),
)


def map_carrier_status(carrier_status: str | None) -> OrderStatus | None:
    """Return the order status the carrier status implies, if any.

    ``OrderStatus.CANCELLED`` means the carrier cancelled or is returning
    the shipment.  None means the status carries no order-level meaning
    (e.g. "Pending pickup" or an unknown string).
    """
    if not carrier_status:
        return None
    normalized = carrier_status.strip().lower()
    for pattern, status in _RULES:
        if pattern.search(normalized):
            return status
    return None  # unknown
