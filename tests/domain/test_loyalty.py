"""Unit tests for loyalty accrual and the customer record."""

import pytest

from orderflow.domain.exceptions import ValidationError
from orderflow.domain.model.customer import (
    Accrual,
    AccrualKind,
    Customer,
    LoyaltySnapshot,
    LoyaltyTier,
)
from orderflow.domain.model.order import OrderStatus
from orderflow.domain.model.value_objects import Money
from orderflow.domain.service.loyalty_accrual import accruals_for


class TestAccrualsFor:

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.CONFIRMED, OrderStatus.PROCESSING, OrderStatus.SHIPPED],
    )
    def test_purchase_points(self, status):
        assert accruals_for(Money.of("999.99"), status) == [
            Accrual(AccrualKind.PURCHASE, 999)
        ]

    def test_delivery_earns_purchase_and_bonus(self):
        assert accruals_for(Money.of("250"), OrderStatus.DELIVERED) == [
            Accrual(AccrualKind.PURCHASE, 250),
            Accrual(AccrualKind.DELIVERY_BONUS, 25),
        ]

    @pytest.mark.parametrize(
        "status",
        [OrderStatus.PENDING, OrderStatus.CANCELLED, OrderStatus.REFUNDED],
    )
    def test_no_points(self, status):
        assert accruals_for(Money.of("500"), status) == []


class TestCustomerCredit:

    def test_credit_is_idempotent_per_kind(self):
        customer = Customer("cust-1")
        purchase = Accrual(AccrualKind.PURCHASE, 100)

        assert customer.credit(7, purchase) is True
        assert customer.credit(7, purchase) is False
        assert customer.loyalty.points == 100
        assert customer.has_been_credited(7, AccrualKind.PURCHASE)
        assert not customer.has_been_credited(7, AccrualKind.DELIVERY_BONUS)

    def test_other_orders_earn_separately(self):
        customer = Customer("cust-1")
        customer.credit(1, Accrual(AccrualKind.PURCHASE, 10))
        customer.credit(2, Accrual(AccrualKind.PURCHASE, 20))
        assert customer.loyalty.points == 30

    def test_tier_is_never_changed(self):
        customer = Customer("cust-1", loyalty=LoyaltySnapshot(LoyaltyTier.GOLD, 5))
        customer.credit(1, Accrual(AccrualKind.PURCHASE, 10_000))
        assert customer.loyalty.tier == LoyaltyTier.GOLD

    def test_negative_points_rejected(self):
        with pytest.raises(ValidationError):
            LoyaltySnapshot(points=-1)
