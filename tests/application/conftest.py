"""Wiring shared by the application tests: every handler over in-memory fakes."""

from dataclasses import dataclass

import pytest

from orderflow.application.cancel_order import CancelOrderHandler
from orderflow.application.create_order import CreateOrderHandler
from orderflow.application.create_shipment import CreateShipmentHandler
from orderflow.application.expire_pending_orders import ExpirePendingOrdersHandler
from orderflow.application.order_store import OrderStore
from orderflow.application.reconcile_shipments import ReconcileShipmentsHandler
from orderflow.application.refund_order import RefundOrderHandler
from orderflow.application.resolve_stale_refunds import ResolveStaleRefundsHandler
from orderflow.application.set_invoice import SetInvoiceHandler
from orderflow.application.sync_shipment import SyncShipmentHandler
from orderflow.application.update_status import UpdateOrderStatusHandler
from orderflow.domain.model.order import Order
from orderflow.infrastructure.carrier.fake_carrier import FakeCarrier
from orderflow.infrastructure.gateway.fake_gateway import FakeGateway
from tests.fakes import FakeCustomerRepository, FakeOrderRepository, make_store


@dataclass
class App:
    orders: FakeOrderRepository
    customers: FakeCustomerRepository
    store: OrderStore
    gateway: FakeGateway
    carrier: FakeCarrier
    create_order: CreateOrderHandler
    update_status: UpdateOrderStatusHandler
    refund: RefundOrderHandler
    cancel: CancelOrderHandler
    create_shipment: CreateShipmentHandler
    sync_shipment: SyncShipmentHandler
    set_invoice: SetInvoiceHandler
    reconcile: ReconcileShipmentsHandler
    expire_pending: ExpirePendingOrdersHandler
    resolve_stale_refunds: ResolveStaleRefundsHandler

    def add(self, order: Order) -> int:
        self.store.add(order)
        return order.id  # type: ignore[return-value]


@pytest.fixture
def app() -> App:
    orders = FakeOrderRepository()
    customers = FakeCustomerRepository()
    store = make_store(orders)
    gateway = FakeGateway()
    carrier = FakeCarrier()
    update_status = UpdateOrderStatusHandler(store, customers)
    refund = RefundOrderHandler(store, gateway)
    cancel = CancelOrderHandler(store, update_status, refund)
    sync = SyncShipmentHandler(store, carrier, update_status, cancel)
    return App(
        orders=orders,
        customers=customers,
        store=store,
        gateway=gateway,
        carrier=carrier,
        create_order=CreateOrderHandler(store, customers),
        update_status=update_status,
        refund=refund,
        cancel=cancel,
        create_shipment=CreateShipmentHandler(store, carrier),
        sync_shipment=sync,
        set_invoice=SetInvoiceHandler(store),
        reconcile=ReconcileShipmentsHandler(orders, sync),
        expire_pending=ExpirePendingOrdersHandler(orders, cancel),
        resolve_stale_refunds=ResolveStaleRefundsHandler(orders, refund),
    )
