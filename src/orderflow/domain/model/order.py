"""Order aggregate, the core of the domain.

The Order is an aggregate root that owns its line items, its payment (with
the embedded refund record), its carrier shipment and its status timeline.
All business invariants are enforced here; the domain services and
application handlers only coordinate.

Status flow::

    pending -> confirmed -> processing -> shipped -> delivered

Forward skips are allowed.  ``cancelled`` and ``refunded`` are side exits
from any non-terminal status, and ``refunded`` may also follow
``cancelled`` or ``delivered``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum

from orderflow.domain.exceptions import (
    AlreadyExistsError,
    AlreadyRefundedError,
    ConcurrencyError,
    InvalidTransitionError,
    NotApplicableError,
    ValidationError,
)
from orderflow.domain.model.customer import LoyaltySnapshot
from orderflow.domain.model.value_objects import Money, Quantity


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderStatus(Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class PaymentMethod(Enum):
    RAZORPAY = "razorpay"
    COD = "cod"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    PAYPAL = "paypal"
    STRIPE = "stripe"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    REFUNDED = "refunded"


class RefundStatus(Enum):
    NONE = "none"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# State machine: the single source of truth for legal status edges.
# Every OrderStatus member must appear as a key.
# ---------------------------------------------------------------------------
ALLOWED_SUCCESSORS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset(
        {
            OrderStatus.CONFIRMED,
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
            OrderStatus.REFUNDED,
        }
    ),
    OrderStatus.CONFIRMED: frozenset(
        {
            OrderStatus.PROCESSING,
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
            OrderStatus.REFUNDED,
        }
    ),
    OrderStatus.PROCESSING: frozenset(
        {
            OrderStatus.SHIPPED,
            OrderStatus.DELIVERED,
            OrderStatus.CANCELLED,
            OrderStatus.REFUNDED,
        }
    ),
    OrderStatus.SHIPPED: frozenset(
        {OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED}
    ),
    OrderStatus.DELIVERED: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.CANCELLED: frozenset({OrderStatus.REFUNDED}),
    OrderStatus.REFUNDED: frozenset(),
}

# Normal fulfillment path, in order.  Used to tell a stale carrier report
# (behind the order) from a real move forward.
FORWARD_FLOW: tuple[OrderStatus, ...] = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PROCESSING,
    OrderStatus.SHIPPED,
    OrderStatus.DELIVERED,
)

# No carrier polling once an order reaches one of these.
CLOSED_STATUSES = frozenset(
    {OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.REFUNDED}
)

MAX_INVOICE_NO_LENGTH = 64


# ---------------------------------------------------------------------------
# Parts of the aggregate
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class OrderItem:
    """Captures the product, variant and price at checkout time.

    Never mutated after the order is created (price lock preserved).
    """

    product_id: str
    product_name: str
    quantity: Quantity
    unit_price: Money
    size: str = ""
    color: str = ""

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity.value


@dataclass(frozen=True)
class TimelineEntry:
    status: OrderStatus
    message: str
    updated_at: datetime


@dataclass
class Refund:
    status: RefundStatus = RefundStatus.NONE
    refund_id: str | None = None
    receipt: str | None = None
    amount: Money | None = None
    reason: str = ""
    initiated_at: datetime | None = None
    completed_at: datetime | None = None
    error_message: str | None = None
    attempts: int = 0

    @property
    def in_flight_or_done(self) -> bool:
        return self.status in (RefundStatus.PROCESSING, RefundStatus.COMPLETED)


@dataclass
class Payment:
    method: PaymentMethod
    status: PaymentStatus = PaymentStatus.PENDING
    transaction_id: str | None = None
    refund: Refund = field(default_factory=Refund)

    @property
    def is_cod(self) -> bool:
        return self.method == PaymentMethod.COD

    @property
    def is_paid(self) -> bool:
        return self.status == PaymentStatus.PAID


@dataclass
class Shipment:
    shipment_id: str
    awb: str
    tracking_url: str = ""
    carrier_status: str | None = None
    last_synced_at: datetime | None = None


@dataclass
class CustomerRef:
    """Weak reference to the customer plus a denormalized loyalty snapshot."""

    customer_id: str
    loyalty: LoyaltySnapshot = field(default_factory=LoyaltySnapshot)


# ---------------------------------------------------------------------------
# Aggregate root
# ---------------------------------------------------------------------------
@dataclass
class Order:
    """Aggregate root for customer orders.

    Use the ``Order.create()`` factory for new orders; it enforces all
    business rules.  The ``__init__`` is intentionally simple so the
    repository can reconstitute persisted orders without re-validating.
    """

    id: int | None
    order_number: str
    customer: CustomerRef
    items: tuple[OrderItem, ...]
    subtotal: Money
    tax: Money
    shipping_cost: Money
    total: Money
    payment: Payment
    status: OrderStatus = OrderStatus.PENDING
    shipment: Shipment | None = None
    invoice_no: str | None = None
    timeline: list[TimelineEntry] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    version: int = 0

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        customer: CustomerRef,
        items: list[OrderItem],
        payment: Payment,
        tax: Money | None = None,
        shipping_cost: Money | None = None,
    ) -> Order:
        """Create a new pending order; the total is derived, never supplied."""
        if not customer.customer_id or not customer.customer_id.strip():
            raise ValidationError("Customer is required")
        if not items:
            raise ValidationError("Order must contain at least one item")

        currency = items[0].unit_price.currency
        subtotal = Money.zero(currency)
        for item in items:
            subtotal = subtotal + item.line_total
        tax = tax or Money.zero(currency)
        shipping_cost = shipping_cost or Money.zero(currency)

        if payment.status not in (PaymentStatus.PENDING, PaymentStatus.PAID):
            raise ValidationError("New orders start with a pending or paid payment")
        if payment.is_cod and payment.is_paid:
            raise ValidationError("COD orders cannot be prepaid")

        now = _utcnow()
        order = Order(
            id=None,
            order_number="",
            customer=customer,
            items=tuple(items),
            subtotal=subtotal,
            tax=tax,
            shipping_cost=shipping_cost,
            total=subtotal + tax + shipping_cost,
            payment=payment,
            created_at=now,
            updated_at=now,
        )
        order.timeline.append(
            TimelineEntry(OrderStatus.PENDING, "Order placed", now)
        )
        return order

    # --- Invariants -----------------------------------------------------------

    @property
    def totals_consistent(self) -> bool:
        return self.subtotal + self.tax + self.shipping_cost == self.total

    def assert_totals(self) -> None:
        if not self.totals_consistent:
            raise ValidationError(
                f"Order {self.order_number}: subtotal {self.subtotal} + tax {self.tax} "
                f"+ shipping {self.shipping_cost} != total {self.total}"
            )

    # --- Status ---------------------------------------------------------------

    def can_transition_to(self, new_status: OrderStatus) -> bool:
        return new_status in ALLOWED_SUCCESSORS[self.status]

    def transition_to(self, new_status: OrderStatus, note: str) -> bool:
        """Move to ``new_status`` and append the matching timeline entry.

        Returns False (and changes nothing) when the order already has
        that status.  Status and timeline are updated together or not at
        all.
        """
        if new_status == self.status:
            return False
        if not self.can_transition_to(new_status):
            raise InvalidTransitionError(
                f"Cannot move order {self.order_number} from "
                f"{self.status.value} to {new_status.value}"
            )
        now = _utcnow()
        entry = TimelineEntry(new_status, note, now)
        self.timeline.append(entry)
        self.status = new_status
        self.updated_at = now
        return True

    def is_behind(self, carrier_status: OrderStatus) -> bool:
        """True if ``carrier_status`` is an earlier step of the normal flow."""
        if carrier_status not in FORWARD_FLOW or self.status not in FORWARD_FLOW:
            return False
        return FORWARD_FLOW.index(carrier_status) < FORWARD_FLOW.index(self.status)

    # --- Refund ---------------------------------------------------------------

    def refund_skip_reason(self) -> str | None:
        """Why no gateway refund applies to this order, or None if one does."""
        if self.payment.is_cod:
            return "cod_order"
        if not self.payment.is_paid:
            return "not_paid"
        return None

    def begin_refund(self, amount: Money | None, reason: str) -> int:
        """Mark the refund as processing; returns the attempt number.

        Eligibility is evaluated in a fixed order: payment method, existing
        refund, payment status, then the amount.  The amount is rounded to
        whole paise before it is checked.
        """
        if self.payment.is_cod:
            raise NotApplicableError("cod order")
        refund = self.payment.refund
        if refund.in_flight_or_done or self.payment.status == PaymentStatus.REFUNDED:
            state = refund.status.value if refund.in_flight_or_done else "completed"
            raise AlreadyRefundedError(
                f"Refund for order {self.order_number} is already {state}"
            )
        if not self.payment.is_paid:
            raise NotApplicableError("not paid")

        amount = (amount if amount is not None else self.total).to_minor_unit()
        if amount.is_zero:
            raise ValidationError("Refund amount must be greater than zero")
        if amount > self.total:
            raise ValidationError(
                f"Refund amount {amount} cannot exceed order total {self.total}"
            )

        now = _utcnow()
        refund.attempts += 1
        refund.status = RefundStatus.PROCESSING
        refund.amount = amount
        refund.reason = reason
        refund.receipt = f"{self.order_number}-r{refund.attempts}"
        refund.refund_id = None
        refund.initiated_at = now
        refund.completed_at = None
        refund.error_message = None
        self.updated_at = now
        return refund.attempts

    def refund_is_stale(self, now: datetime, max_age: timedelta) -> bool:
        """True if a refund has been ``processing`` for at least ``max_age``."""
        refund = self.payment.refund
        return (
            refund.status == RefundStatus.PROCESSING
            and refund.initiated_at is not None
            and now - refund.initiated_at >= max_age
        )

    def complete_refund(self, attempt: int, refund_id: str) -> None:
        refund = self._assert_refund_attempt(attempt)
        now = _utcnow()
        refund.status = RefundStatus.COMPLETED
        refund.refund_id = refund_id
        refund.completed_at = now
        self.payment.status = PaymentStatus.REFUNDED
        self.updated_at = now

    def fail_refund(self, attempt: int, error_message: str) -> None:
        """Record a gateway failure.  The order status is left untouched."""
        refund = self._assert_refund_attempt(attempt)
        refund.status = RefundStatus.FAILED
        refund.error_message = error_message
        self.updated_at = _utcnow()

    def _assert_refund_attempt(self, attempt: int) -> Refund:
        refund = self.payment.refund
        if refund.status != RefundStatus.PROCESSING or refund.attempts != attempt:
            raise ConcurrencyError(
                f"Refund attempt {attempt} for order {self.order_number} "
                f"is no longer current"
            )
        return refund

    # --- Shipment -------------------------------------------------------------

    def assert_no_shipment(self) -> None:
        if self.shipment is not None and self.shipment.awb:
            raise AlreadyExistsError(
                f"Shipment already exists for order {self.order_number} "
                f"(AWB {self.shipment.awb})"
            )

    def attach_shipment(self, shipment: Shipment) -> None:
        self.assert_no_shipment()
        if not shipment.awb:
            raise ValidationError("Carrier shipment has no AWB")
        self.shipment = shipment
        self.updated_at = _utcnow()

    @property
    def has_open_shipment(self) -> bool:
        return (
            self.shipment is not None
            and bool(self.shipment.awb)
            and self.status not in CLOSED_STATUSES
        )

    def record_carrier_status(self, carrier_status: str) -> bool:
        """Remember the carrier's raw status.  False if it is unchanged."""
        if self.shipment is None:
            raise ValidationError(f"Order {self.order_number} has no shipment")
        if self.shipment.carrier_status == carrier_status:
            return False
        now = _utcnow()
        self.shipment.carrier_status = carrier_status
        self.shipment.last_synced_at = now
        self.updated_at = now
        return True

    # --- Invoice --------------------------------------------------------------

    def set_invoice(self, invoice_no: str) -> None:
        invoice_no = (invoice_no or "").strip()
        if not invoice_no:
            raise ValidationError("Invoice number is required")
        if len(invoice_no) > MAX_INVOICE_NO_LENGTH:
            raise ValidationError(
                f"Invoice number longer than {MAX_INVOICE_NO_LENGTH} characters"
            )
        self.invoice_no = invoice_no
        self.updated_at = _utcnow()


def order_number_for(prefix: str, order_id: int, created_at: datetime) -> str:
    """Human order number, e.g. ``ORD251019000042``."""
    return f"{prefix}{created_at:%y%m%d}{order_id:06d}"
