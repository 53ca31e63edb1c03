"""Application service: Update Order Status use case.

Operator status changes, cancellations and carrier reconciliation all
funnel through ``apply`` so that every transition is checked against the
same table and credits loyalty the same way.
"""

from __future__ import annotations

from orderflow.application.dto import StatusChangeDTO, order_to_dto
from orderflow.application.order_store import OrderStore
from orderflow.domain.exceptions import ValidationError
from orderflow.domain.model.customer import Customer
from orderflow.domain.model.order import Order, OrderStatus
from orderflow.domain.repository.customer_repository import CustomerRepository
from orderflow.domain.service.status_transition import (
    StatusTransitionEngine,
    TransitionResult,
)


def parse_status(value: str) -> OrderStatus:
    try:
        return OrderStatus(value.strip().lower())
    except ValueError as exc:
        allowed = ", ".join(s.value for s in OrderStatus)
        raise ValidationError(
            f"Unknown order status '{value}' (expected one of: {allowed})"
        ) from exc


class UpdateOrderStatusHandler:

    def __init__(
        self,
        store: OrderStore,
        customer_repo: CustomerRepository,
        engine: StatusTransitionEngine | None = None,
    ) -> None:
        self._store = store
        self._customer_repo = customer_repo
        self._engine = engine or StatusTransitionEngine()

    def handle(self, order_id: int, status: str, note: str = "") -> StatusChangeDTO:
        new_status = parse_status(status)
        note = note or f"Status updated to {new_status.value}"

        def change(order: Order) -> tuple[TransitionResult, Order]:
            return self.apply(order, new_status, note), order

        result, order = self._store.mutate(order_id, change)
        return StatusChangeDTO(
            order=order_to_dto(order),
            previous_status=result.previous_status.value,
            status=result.status.value,
            changed=result.changed,
            points_credited=result.points_credited,
        )

    def apply(self, order: Order, new_status: OrderStatus, note: str) -> TransitionResult:
        """Transition an order already held under ``OrderStore.mutate``.

        The customer record is locked after the order and saved before it,
        so a failed order save that gets retried finds the accrual guard
        keys already in place.
        """
        customer_id = order.customer.customer_id
        with self._store.locks.hold(f"customer:{customer_id}"):
            customer = self._customer_repo.get_by_id(customer_id)
            if customer is None:
                customer = Customer(id=customer_id, loyalty=order.customer.loyalty)
            awarded_before = set(customer.awarded)

            result = self._engine.transition(order, new_status, note, customer)

            if customer.awarded != awarded_before:
                self._customer_repo.save(customer)
        return result
