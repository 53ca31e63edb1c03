"""Composition root: wires concrete implementations to domain interfaces.

This is the only place in the codebase that knows about *all* layers.
Every other module depends only on abstractions.
"""

from __future__ import annotations

from datetime import timedelta

from orderflow.application.cancel_order import CancelOrderHandler
from orderflow.application.create_order import CreateOrderHandler
from orderflow.application.create_shipment import CreateShipmentHandler
from orderflow.application.expire_pending_orders import ExpirePendingOrdersHandler
from orderflow.application.locks import KeyedLocks
from orderflow.application.order_store import OrderStore
from orderflow.application.reconcile_shipments import ReconcileShipmentsHandler
from orderflow.application.refund_order import RefundOrderHandler
from orderflow.application.resolve_stale_refunds import ResolveStaleRefundsHandler
from orderflow.application.set_invoice import SetInvoiceHandler
from orderflow.application.show_order import ShowOrderHandler
from orderflow.application.sync_shipment import SyncShipmentHandler
from orderflow.application.update_status import UpdateOrderStatusHandler
from orderflow.domain.port.carrier import Carrier
from orderflow.domain.port.payment_gateway import PaymentGateway
from orderflow.infrastructure.carrier.delhivery_carrier import DelhiveryCarrier
from orderflow.infrastructure.carrier.fake_carrier import FakeCarrier
from orderflow.infrastructure.config import Settings
from orderflow.infrastructure.gateway.fake_gateway import FakeGateway
from orderflow.infrastructure.gateway.razorpay_gateway import RazorpayGateway
from orderflow.infrastructure.persistence.json_customer_repository import (
    JsonCustomerRepository,
)
from orderflow.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)

# One lock table per process; every OrderStore must share it.
_LOCKS = KeyedLocks()


def order_repository(settings: Settings) -> JsonOrderRepository:
    return JsonOrderRepository(settings.data_dir / "orders.json", settings.order_prefix)


def customer_repository(settings: Settings) -> JsonCustomerRepository:
    return JsonCustomerRepository(settings.data_dir / "customers.json")


def payment_gateway(settings: Settings) -> PaymentGateway:
    if settings.gateway == "razorpay":
        return RazorpayGateway(
            key_id=settings.razorpay_key_id,
            key_secret=settings.razorpay_key_secret,
            base_url=settings.razorpay_base_url,
            timeout=settings.http_timeout_seconds,
        )
    return FakeGateway()


def carrier(settings: Settings) -> Carrier:
    if settings.carrier == "delhivery":
        return DelhiveryCarrier(
            token=settings.delhivery_token,
            pickup_location=settings.delhivery_pickup_location,
            base_url=settings.delhivery_base_url,
            timeout=settings.http_timeout_seconds,
        )
    return FakeCarrier()


class Container:
    """Builds each handler once, sharing one store, gateway and carrier."""

    def __init__(
        self,
        settings: Settings,
        gateway: PaymentGateway | None = None,
        carrier_adapter: Carrier | None = None,
    ) -> None:
        self.settings = settings
        self.orders = order_repository(settings)
        self.customers = customer_repository(settings)
        self.store = OrderStore(self.orders, _LOCKS)
        self.gateway = gateway or payment_gateway(settings)
        self.carrier = carrier_adapter or carrier(settings)

        self.create_order = CreateOrderHandler(self.store, self.customers)
        self.show_order = ShowOrderHandler(self.orders)
        self.update_status = UpdateOrderStatusHandler(self.store, self.customers)
        self.refund_order = RefundOrderHandler(
            self.store,
            self.gateway,
            stale_after=timedelta(minutes=settings.refund_stale_minutes),
        )
        self.cancel_order = CancelOrderHandler(
            self.store, self.update_status, self.refund_order
        )
        self.create_shipment = CreateShipmentHandler(self.store, self.carrier)
        self.sync_shipment = SyncShipmentHandler(
            self.store, self.carrier, self.update_status, self.cancel_order
        )
        self.set_invoice = SetInvoiceHandler(self.store)
        self.reconcile_shipments = ReconcileShipmentsHandler(
            self.orders, self.sync_shipment
        )
        self.expire_pending_orders = ExpirePendingOrdersHandler(
            self.orders, self.cancel_order
        )
        self.resolve_stale_refunds = ResolveStaleRefundsHandler(
            self.orders, self.refund_order
        )
