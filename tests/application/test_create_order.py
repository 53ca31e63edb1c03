"""Integration tests for the CreateOrder use case.

Uses in-memory fake repositories, no file I/O.
"""

import pytest

from orderflow.application.dto import OrderItemSpec
from orderflow.domain.exceptions import ValidationError
from orderflow.domain.model.customer import Customer, LoyaltySnapshot, LoyaltyTier


def _basket() -> list[OrderItemSpec]:
    return [
        OrderItemSpec("kurta-1", "Kurta", 2, "499", size="M", color="indigo"),
        OrderItemSpec("cap-1", "Cap", 1, "299"),
    ]


class TestCreateOrderHappyPath:

    def test_creates_pending_order_with_totals(self, app):
        dto = app.create_order.handle(
            "cust-1", _basket(), tax="90", shipping_cost="50"
        )
        assert dto.status == "pending"
        assert dto.subtotal == "INR 1297.00"
        assert dto.total == "INR 1437.00"
        assert dto.items[0].size == "M"
        assert [t.status for t in dto.timeline] == ["pending"]

    def test_assigns_id_and_order_number(self, app):
        first = app.create_order.handle("cust-1", _basket())
        second = app.create_order.handle("cust-1", _basket())
        assert (first.id, second.id) == (1, 2)
        assert first.order_number.startswith("ORD")
        assert first.order_number.endswith("000001")

    def test_paid_order_keeps_transaction(self, app):
        dto = app.create_order.handle(
            "cust-1", _basket(), paid=True, transaction_id="pay_9"
        )
        assert dto.payment_status == "paid"
        assert dto.transaction_id == "pay_9"

    def test_snapshots_customer_loyalty(self, app):
        app.customers.save(
            Customer("cust-1", loyalty=LoyaltySnapshot(LoyaltyTier.SILVER, 40))
        )
        dto = app.create_order.handle("cust-1", _basket())
        assert (dto.loyalty_tier, dto.loyalty_points) == ("silver", 40)


class TestCreateOrderValidation:

    def test_paid_without_transaction_rejected(self, app):
        with pytest.raises(ValidationError, match="transaction ID"):
            app.create_order.handle("cust-1", _basket(), paid=True)

    def test_unknown_payment_method_rejected(self, app):
        with pytest.raises(ValidationError, match="Unknown payment method"):
            app.create_order.handle("cust-1", _basket(), payment_method="barter")

    def test_zero_quantity_rejected(self, app):
        with pytest.raises(ValidationError, match="must be positive"):
            app.create_order.handle("cust-1", [OrderItemSpec("x", "X", 0, "10")])

    def test_nothing_persisted_on_failure(self, app):
        with pytest.raises(ValidationError):
            app.create_order.handle("cust-1", [])
        assert app.orders.list_all() == []
