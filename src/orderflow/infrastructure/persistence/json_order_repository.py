"""JSON-file-backed implementation of OrderRepository."""

from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from orderflow.domain.exceptions import ConcurrencyError
from orderflow.domain.model.customer import LoyaltySnapshot, LoyaltyTier
from orderflow.domain.model.order import (
    CustomerRef,
    Order,
    OrderItem,
    OrderStatus,
    Payment,
    PaymentMethod,
    PaymentStatus,
    Refund,
    RefundStatus,
    Shipment,
    TimelineEntry,
    order_number_for,
)
from orderflow.domain.model.value_objects import Money, Quantity
from orderflow.domain.repository.order_repository import OrderRepository
from orderflow.infrastructure.persistence.file_lock import exclusive_lock


class JsonOrderRepository(OrderRepository):

    def __init__(self, file_path: Path, order_prefix: str = "ORD") -> None:
        self._file_path = file_path
        self._order_prefix = order_prefix
        self._ensure_file()

    # --- OrderRepository interface --------------------------------------------

    def next_id(self) -> int:
        return _next_id(self._load_raw())

    def get_by_id(self, order_id: int) -> Order | None:
        for raw in self._load_raw():
            if raw["id"] == order_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Order]:
        return [self._to_domain(raw) for raw in self._load_raw()]

    def save(self, order: Order) -> None:
        with exclusive_lock(self._file_path):
            orders = self._load_raw()

            if order.id is None:
                order.id = _next_id(orders)
                order.order_number = order_number_for(
                    self._order_prefix, order.id, order.created_at
                )
                order.version = 1
                orders.append(self._to_raw(order))
                self._persist_raw(orders)
                return

            for i, raw in enumerate(orders):
                if raw["id"] == order.id:
                    if raw.get("version", 0) != order.version:
                        raise ConcurrencyError(
                            f"Order {order.order_number} was modified concurrently "
                            f"(stored v{raw.get('version', 0)}, loaded v{order.version})"
                        )
                    order.version += 1
                    orders[i] = self._to_raw(order)
                    break
            else:
                order.version += 1
                orders.append(self._to_raw(order))

            self._persist_raw(orders)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(order: Order) -> dict:
        currency = order.total.currency
        refund = order.payment.refund
        shipment = order.shipment
        return {
            "id": order.id,
            "order_number": order.order_number,
            "version": order.version,
            "status": order.status.value,
            "currency": currency,
            "customer": {
                "id": order.customer.customer_id,
                "tier": order.customer.loyalty.tier.value,
                "points": order.customer.loyalty.points,
            },
            "items": [
                {
                    "product_id": item.product_id,
                    "product_name": item.product_name,
                    "quantity": item.quantity.value,
                    "unit_price": str(item.unit_price.amount),
                    "size": item.size,
                    "color": item.color,
                }
                for item in order.items
            ],
            "subtotal": str(order.subtotal.amount),
            "tax": str(order.tax.amount),
            "shipping_cost": str(order.shipping_cost.amount),
            "total": str(order.total.amount),
            "payment": {
                "method": order.payment.method.value,
                "status": order.payment.status.value,
                "transaction_id": order.payment.transaction_id,
                "refund": {
                    "status": refund.status.value,
                    "refund_id": refund.refund_id,
                    "receipt": refund.receipt,
                    "amount": str(refund.amount.amount) if refund.amount else None,
                    "reason": refund.reason,
                    "initiated_at": _iso(refund.initiated_at),
                    "completed_at": _iso(refund.completed_at),
                    "error_message": refund.error_message,
                    "attempts": refund.attempts,
                },
            },
            "shipment": (
                {
                    "shipment_id": shipment.shipment_id,
                    "awb": shipment.awb,
                    "tracking_url": shipment.tracking_url,
                    "carrier_status": shipment.carrier_status,
                    "last_synced_at": _iso(shipment.last_synced_at),
                }
                if shipment is not None
                else None
            ),
            "invoice_no": order.invoice_no,
            "timeline": [
                {
                    "status": entry.status.value,
                    "message": entry.message,
                    "updated_at": entry.updated_at.isoformat(),
                }
                for entry in order.timeline
            ],
            "created_at": order.created_at.isoformat(),
            "updated_at": order.updated_at.isoformat(),
        }

    @staticmethod
    def _to_domain(raw: dict) -> Order:
        currency = raw["currency"]

        def money(value: str) -> Money:
            return Money(Decimal(value), currency)

        raw_payment = raw["payment"]
        raw_refund = raw_payment["refund"]
        raw_shipment = raw.get("shipment")
        order = Order(
            id=raw["id"],
            order_number=raw["order_number"],
            customer=CustomerRef(
                customer_id=raw["customer"]["id"],
                loyalty=LoyaltySnapshot(
                    tier=LoyaltyTier(raw["customer"]["tier"]),
                    points=raw["customer"]["points"],
                ),
            ),
            items=tuple(
                OrderItem(
                    product_id=i["product_id"],
                    product_name=i["product_name"],
                    quantity=Quantity(i["quantity"]),
                    unit_price=money(i["unit_price"]),
                    size=i.get("size", ""),
                    color=i.get("color", ""),
                )
                for i in raw["items"]
            ),
            subtotal=money(raw["subtotal"]),
            tax=money(raw["tax"]),
            shipping_cost=money(raw["shipping_cost"]),
            total=money(raw["total"]),
            payment=Payment(
                method=PaymentMethod(raw_payment["method"]),
                status=PaymentStatus(raw_payment["status"]),
                transaction_id=raw_payment.get("transaction_id"),
                refund=Refund(
                    status=RefundStatus(raw_refund["status"]),
                    refund_id=raw_refund.get("refund_id"),
                    receipt=raw_refund.get("receipt"),
                    amount=money(raw_refund["amount"]) if raw_refund.get("amount") else None,
                    reason=raw_refund.get("reason", ""),
                    initiated_at=_parse_dt(raw_refund.get("initiated_at")),
                    completed_at=_parse_dt(raw_refund.get("completed_at")),
                    error_message=raw_refund.get("error_message"),
                    attempts=raw_refund.get("attempts", 0),
                ),
            ),
            status=OrderStatus(raw["status"]),
            shipment=(
                Shipment(
                    shipment_id=raw_shipment["shipment_id"],
                    awb=raw_shipment["awb"],
                    tracking_url=raw_shipment.get("tracking_url", ""),
                    carrier_status=raw_shipment.get("carrier_status"),
                    last_synced_at=_parse_dt(raw_shipment.get("last_synced_at")),
                )
                if raw_shipment
                else None
            ),
            invoice_no=raw.get("invoice_no"),
            timeline=[
                TimelineEntry(
                    status=OrderStatus(t["status"]),
                    message=t["message"],
                    updated_at=datetime.fromisoformat(t["updated_at"]),
                )
                for t in raw.get("timeline", [])
            ],
            created_at=datetime.fromisoformat(raw["created_at"]),
            updated_at=datetime.fromisoformat(raw["updated_at"]),
            version=raw.get("version", 0),
        )
        order.assert_totals()
        return order

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> list[dict]:
        return json.loads(self._file_path.read_text(encoding="utf-8"))

    def _persist_raw(self, orders: list[dict]) -> None:
        tmp_path = self._file_path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(orders, indent=2) + "\n", encoding="utf-8")
        tmp_path.replace(self._file_path)

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("[]", encoding="utf-8")


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


def _next_id(orders: list[dict]) -> int:
    return max((o["id"] for o in orders), default=0) + 1
