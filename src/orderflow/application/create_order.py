"""Application service: Create Order use case.

Stands in for the storefront checkout: it turns a basket into a
``pending`` order with prices captured as given, and snapshots the
customer's current loyalty standing onto the order.
"""

from __future__ import annotations

from decimal import Decimal

import structlog

from orderflow.application.dto import OrderDTO, OrderItemSpec, order_to_dto
from orderflow.application.order_store import OrderStore
from orderflow.domain.exceptions import ValidationError
from orderflow.domain.model.customer import LoyaltySnapshot
from orderflow.domain.model.order import (
    CustomerRef,
    Order,
    OrderItem,
    Payment,
    PaymentMethod,
    PaymentStatus,
)
from orderflow.domain.model.value_objects import DEFAULT_CURRENCY, Money, Quantity
from orderflow.domain.repository.customer_repository import CustomerRepository

logger = structlog.get_logger(__name__)


class CreateOrderHandler:

    def __init__(
        self,
        store: OrderStore,
        customer_repo: CustomerRepository,
        currency: str = DEFAULT_CURRENCY,
    ) -> None:
        self._store = store
        self._customer_repo = customer_repo
        self._currency = currency

    def handle(
        self,
        customer_id: str,
        item_specs: list[OrderItemSpec],
        payment_method: str = PaymentMethod.RAZORPAY.value,
        paid: bool = False,
        transaction_id: str | None = None,
        tax: str | Decimal | None = None,
        shipping_cost: str | Decimal | None = None,
    ) -> OrderDTO:
        """Create a new pending order.

        Steps:
        1. Build OrderItems from the basket (price snapshot).
        2. Attach the customer's current loyalty snapshot.
        3. Let the Order aggregate validate all business rules.
        4. Persist (ID and order number are assigned here) and return a DTO.
        """
        items = [
            OrderItem(
                product_id=spec.product_id,
                product_name=spec.product_name,
                quantity=Quantity(spec.quantity),
                unit_price=Money.of(spec.unit_price, self._currency),
                size=spec.size,
                color=spec.color,
            )
            for spec in item_specs
        ]

        if paid and not transaction_id:
            raise ValidationError("A paid order needs the gateway transaction ID")
        payment = Payment(
            method=_parse_method(payment_method),
            status=PaymentStatus.PAID if paid else PaymentStatus.PENDING,
            transaction_id=transaction_id,
        )

        customer = self._customer_repo.get_by_id(customer_id)
        loyalty = customer.loyalty if customer is not None else LoyaltySnapshot()

        order = Order.create(
            customer=CustomerRef(customer_id=customer_id, loyalty=loyalty),
            items=items,
            payment=payment,
            tax=Money.of(tax, self._currency) if tax is not None else None,
            shipping_cost=(
                Money.of(shipping_cost, self._currency)
                if shipping_cost is not None
                else None
            ),
        )
        self._store.add(order)
        logger.info(
            "order_created",
            order_id=order.id,
            order_number=order.order_number,
            total=str(order.total),
            payment_method=order.payment.method.value,
        )
        return order_to_dto(order)


def _parse_method(value: str) -> PaymentMethod:
    try:
        return PaymentMethod(value.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(m.value for m in PaymentMethod)
        raise ValidationError(
            f"Unknown payment method '{value}' (expected one of: {allowed})"
        ) from exc
