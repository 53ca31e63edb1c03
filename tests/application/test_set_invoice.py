"""Tests for the SetInvoice use case."""

import pytest

from orderflow.domain.exceptions import EntityNotFoundError, ValidationError
from tests.fakes import make_order


class TestSetInvoice:

    def test_last_write_wins(self, app):
        order_id = app.add(make_order())
        app.set_invoice.handle(order_id, "INV-1")
        dto = app.set_invoice.handle(order_id, " INV-2 ")
        assert dto.invoice_no == "INV-2"
        assert app.store.get(order_id).invoice_no == "INV-2"

    def test_does_not_touch_timeline(self, app):
        order_id = app.add(make_order())
        app.set_invoice.handle(order_id, "INV-1")
        assert len(app.store.get(order_id).timeline) == 1

    def test_blank_rejected(self, app):
        order_id = app.add(make_order())
        with pytest.raises(ValidationError, match="required"):
            app.set_invoice.handle(order_id, "   ")
        assert app.store.get(order_id).invoice_no is None

    def test_missing_order(self, app):
        with pytest.raises(EntityNotFoundError):
            app.set_invoice.handle(404, "INV-1")
