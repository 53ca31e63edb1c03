"""Tests for the CancelOrder workflow."""

import pytest

from orderflow.domain.exceptions import InvalidTransitionError
from orderflow.domain.model.order import (
    OrderStatus,
    PaymentMethod,
    PaymentStatus,
    RefundStatus,
)
from tests.fakes import make_order


class TestCancelOrder:

    def test_paid_order_is_cancelled_and_refunded(self, app):
        order_id = app.add(make_order("1000"))
        app.update_status.handle(order_id, "confirmed")
        timeline_before = len(app.store.get(order_id).timeline)

        result = app.cancel.handle(order_id, reason="Customer changed mind")

        order = app.store.get(order_id)
        assert result.previous_status == "confirmed"
        assert order.status == OrderStatus.CANCELLED
        assert order.payment.refund.status == RefundStatus.COMPLETED
        assert order.payment.refund.amount.amount == 1000
        assert len(order.timeline) == timeline_before + 1
        assert order.timeline[-1].status == OrderStatus.CANCELLED
        assert order.timeline[-1].message == "Customer changed mind"
        assert result.refund_status == "completed"
        assert result.refund_skipped is None

    def test_cod_order_skips_refund(self, app):
        order_id = app.add(make_order("250", method=PaymentMethod.COD, paid=False))

        result = app.cancel.handle(order_id)

        assert result.order.status == "cancelled"
        assert result.refund_status == "none"
        assert result.refund_skipped == "cod_order"
        assert app.gateway.calls == []

    def test_unpaid_order_skips_refund(self, app):
        order_id = app.add(make_order(paid=False))
        result = app.cancel.handle(order_id)
        assert result.refund_skipped == "not_paid"
        assert app.gateway.calls == []

    def test_already_refunded_order_is_not_refunded_again(self, app):
        order_id = app.add(make_order("1000"))
        app.refund.handle(order_id)

        result = app.cancel.handle(order_id)

        assert result.refund_skipped == "already_refunded"
        assert len(app.gateway.calls) == 1

    def test_refund_failure_keeps_cancellation(self, app):
        order_id = app.add(make_order("1000"))
        app.gateway.configure(should_succeed=False, failure_reason="Gateway down")

        result = app.cancel.handle(order_id)

        order = app.store.get(order_id)
        assert order.status == OrderStatus.CANCELLED
        assert order.payment.refund.status == RefundStatus.FAILED
        assert order.payment.status == PaymentStatus.PAID
        assert result.refund_error == "Gateway down"

    @pytest.mark.parametrize("status", ["cancelled", "delivered"])
    def test_closed_orders_rejected(self, app, status):
        order_id = app.add(make_order(paid=False))
        app.update_status.handle(order_id, status)

        with pytest.raises(InvalidTransitionError, match=f"already {status}"):
            app.cancel.handle(order_id)

    def test_cancelling_awards_no_points(self, app):
        order_id = app.add(make_order("500", paid=False))
        app.cancel.handle(order_id)
        assert app.customers.points("cust-1") == 0
