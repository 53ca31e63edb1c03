"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.  Results of mutations
carry both the previous and the new state so any caller can reconcile
its own view of the order.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from orderflow.domain.model.order import Order

_TIME_FORMAT = "%Y-%m-%d %H:%M:%S UTC"


@dataclass(frozen=True)
class OrderItemSpec:
    """Input: one line of a checkout basket."""

    product_id: str
    product_name: str
    quantity: int
    unit_price: str
    size: str = ""
    color: str = ""


@dataclass(frozen=True)
class OrderLineItemDTO:
    product_name: str
    quantity: int
    unit_price: str
    line_total: str
    size: str
    color: str


@dataclass(frozen=True)
class TimelineEntryDTO:
    status: str
    message: str
    updated_at: str


@dataclass(frozen=True)
class RefundDTO:
    status: str
    refund_id: str | None
    amount: str | None
    reason: str
    attempts: int
    error_message: str | None


@dataclass(frozen=True)
class ShipmentDTO:
    shipment_id: str
    awb: str
    tracking_url: str
    carrier_status: str | None


@dataclass(frozen=True)
class OrderDTO:
    """Output: a complete order as displayed to the operator."""

    id: int
    order_number: str
    customer_id: str
    loyalty_tier: str
    loyalty_points: int
    status: str
    items: list[OrderLineItemDTO]
    subtotal: str
    tax: str
    shipping_cost: str
    total: str
    payment_method: str
    payment_status: str
    transaction_id: str | None
    refund: RefundDTO
    shipment: ShipmentDTO | None
    invoice_no: str | None
    timeline: list[TimelineEntryDTO]
    created_at: str
    updated_at: str


@dataclass(frozen=True)
class StatusChangeDTO:
    order: OrderDTO
    previous_status: str
    status: str
    changed: bool
    points_credited: int


@dataclass(frozen=True)
class RefundResultDTO:
    order: OrderDTO
    refund_id: str | None
    amount: str
    status: str


@dataclass(frozen=True)
class CancellationResultDTO:
    order: OrderDTO
    previous_status: str
    refund_status: str
    refund_skipped: str | None = None  # "cod_order" | "not_paid"
    refund_error: str | None = None


@dataclass(frozen=True)
class SyncResultDTO:
    order: OrderDTO
    carrier_status: str
    mapped_status: str | None
    action: str  # "unchanged" | "recorded" | "transitioned" | "cancelled"
    cancellation: CancellationResultDTO | None = None

    @property
    def cancellation_detected(self) -> bool:
        return self.action == "cancelled"


@dataclass(frozen=True)
class SyncDetailDTO:
    order_number: str
    awb: str
    action: str | None = None
    error: str | None = None


@dataclass
class BulkSyncResultDTO:
    """Accumulated by the reconciler while it walks the batch."""

    total: int = 0
    synced: int = 0
    cancelled: int = 0
    errors: int = 0
    details: list[SyncDetailDTO] = field(default_factory=list)


@dataclass
class ExpiryResultDTO:
    examined: int = 0
    cancelled: list[str] = field(default_factory=list)
    errors: int = 0


@dataclass
class RefundSweepResultDTO:
    examined: int = 0
    resolved: list[tuple[str, str]] = field(default_factory=list)  # (order number, refund status)
    errors: int = 0


# --- Mapping -----------------------------------------------------------------


def order_to_dto(order: Order) -> OrderDTO:
    refund = order.payment.refund
    shipment = order.shipment
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        order_number=order.order_number,
        customer_id=order.customer.customer_id,
        loyalty_tier=order.customer.loyalty.tier.value,
        loyalty_points=order.customer.loyalty.points,
        status=order.status.value,
        items=[
            OrderLineItemDTO(
                product_name=item.product_name,
                quantity=item.quantity.value,
                unit_price=str(item.unit_price),
                line_total=str(item.line_total),
                size=item.size,
                color=item.color,
            )
            for item in order.items
        ],
        subtotal=str(order.subtotal),
        tax=str(order.tax),
        shipping_cost=str(order.shipping_cost),
        total=str(order.total),
        payment_method=order.payment.method.value,
        payment_status=order.payment.status.value,
        transaction_id=order.payment.transaction_id,
        refund=RefundDTO(
            status=refund.status.value,
            refund_id=refund.refund_id,
            amount=str(refund.amount) if refund.amount is not None else None,
            reason=refund.reason,
            attempts=refund.attempts,
            error_message=refund.error_message,
        ),
        shipment=(
            ShipmentDTO(
                shipment_id=shipment.shipment_id,
                awb=shipment.awb,
                tracking_url=shipment.tracking_url,
                carrier_status=shipment.carrier_status,
            )
            if shipment is not None
            else None
        ),
        invoice_no=order.invoice_no,
        timeline=[
            TimelineEntryDTO(
                status=entry.status.value,
                message=entry.message,
                updated_at=entry.updated_at.strftime(_TIME_FORMAT),
            )
            for entry in order.timeline
        ],
        created_at=order.created_at.strftime(_TIME_FORMAT),
        updated_at=order.updated_at.strftime(_TIME_FORMAT),
    )
