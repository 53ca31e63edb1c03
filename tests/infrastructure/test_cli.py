"""End-to-end tests for the click CLI, backed by JSON files under tmp_path."""

import pytest
from click.testing import CliRunner

from orderflow.infrastructure.bootstrap import Container
from orderflow.infrastructure.cli.main import cli
from orderflow.infrastructure.config import Settings


@pytest.fixture
def container(tmp_path):
    return Container(Settings(data_dir=tmp_path))


def _run(container, *args):
    return CliRunner().invoke(cli, list(args), obj=container)


def _create(container, *extra):
    return _run(
        container,
        "order", "create",
        "--customer", "cust-1",
        "--items", "Kurta:2:400:M:indigo,Cap:1:200",
        *extra,
    )


class TestOrderCommands:

    def test_create_and_show(self, container):
        result = _create(container, "--tax", "50", "--shipping", "50")
        assert result.exit_code == 0, result.output
        assert "created" in result.output

        shown = _run(container, "order", "show", "--id", "1")
        assert shown.exit_code == 0
        assert "Kurta" in shown.output
        assert "INR 1100.00" in shown.output
        assert "Order placed" in shown.output

    def test_bad_item_format(self, container):
        result = _run(container, "order", "create", "--customer", "c", "--items", "Kurta:2")
        assert result.exit_code != 0
        assert "Product:Qty:Price" in result.output

    def test_status_change_reports_points(self, container):
        _create(container, "--payment", "cod")
        result = _run(container, "order", "status", "--id", "1", "--status", "delivered")
        assert result.exit_code == 0, result.output
        assert "pending -> delivered" in result.output
        assert "Loyalty points credited: 1100" in result.output

    def test_illegal_transition_is_a_clean_error(self, container):
        _create(container)
        _run(container, "order", "status", "--id", "1", "--status", "delivered")
        result = _run(container, "order", "status", "--id", "1", "--status", "shipped")
        assert result.exit_code == 1
        assert "Error: Cannot move order" in result.output

    def test_cancel_paid_order_refunds(self, container):
        _create(container, "--paid", "--txn", "pay_1")
        result = _run(container, "order", "cancel", "--id", "1", "--reason", "Out of stock")
        assert result.exit_code == 0, result.output
        assert "Refund completed" in result.output

    def test_cancel_cod_order_skips_refund(self, container):
        _create(container, "--payment", "cod")
        result = _run(container, "order", "cancel", "--id", "1")
        assert "Refund skipped: cod_order" in result.output

    def test_refund_twice(self, container):
        _create(container, "--paid", "--txn", "pay_1")
        first = _run(container, "order", "refund", "--id", "1", "--amount", "500")
        second = _run(container, "order", "refund", "--id", "1")
        assert first.exit_code == 0, first.output
        assert "INR 500.00" in first.output
        assert second.exit_code == 1
        assert "already completed" in second.output

    def test_shipment_lifecycle(self, container):
        _create(container)
        created = _run(container, "order", "create-shipment", "--id", "1")
        assert created.exit_code == 0, created.output
        again = _run(container, "order", "create-shipment", "--id", "1")
        assert again.exit_code == 1
        assert "already exists" in again.output

        synced = _run(container, "order", "sync-shipment", "--id", "1")
        assert synced.exit_code == 0, synced.output
        assert "order is processing" in synced.output

    def test_invoice(self, container):
        _create(container)
        result = _run(container, "order", "invoice", "--id", "1", "--invoice-no", "INV-42")
        assert result.exit_code == 0
        assert "INV-42" in result.output

    def test_missing_order(self, container):
        result = _run(container, "order", "show", "--id", "9")
        assert result.exit_code == 1
        assert "Order #9 not found" in result.output


class TestReconcileCommands:

    def test_once(self, container):
        _create(container)
        _run(container, "order", "create-shipment", "--id", "1")
        result = _run(container, "reconcile", "once")
        assert result.exit_code == 0, result.output
        assert "Synced 1/1" in result.output

    def test_expire_pending_keeps_fresh_orders(self, container):
        _create(container)
        result = _run(container, "reconcile", "expire-pending")
        assert result.exit_code == 0, result.output
        assert "Cancelled 0 of 0" in result.output

    def test_refunds_with_nothing_stuck(self, container):
        _create(container, "--paid", "--txn", "pay_1")
        _run(container, "order", "refund", "--id", "1")
        result = _run(container, "reconcile", "refunds")
        assert result.exit_code == 0, result.output
        assert "Resolved 0 of 0 stale refunds" in result.output
