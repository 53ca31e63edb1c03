"""Abstract repository for Order aggregate."""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderflow.domain.model.order import Order


class OrderRepository(ABC):

    @abstractmethod
    def next_id(self) -> int:
        """Generate the next unique order ID."""

    @abstractmethod
    def get_by_id(self, order_id: int) -> Order | None:
        """Return an order by its ID, or None if not found."""

    @abstractmethod
    def save(self, order: Order) -> None:
        """Persist a new or updated order.

        New orders get their ID and order number here.  Updates are
        optimistic: if the stored version differs from ``order.version``
        a ConcurrencyError is raised; otherwise the version is bumped.
        """

    @abstractmethod
    def list_all(self) -> list[Order]:
        """Return every order, oldest first."""

    def list_open_shipments(self, limit: int | None = None) -> list[Order]:
        """Orders with a carrier AWB that have not reached a closed status."""
        orders = [o for o in self.list_all() if o.has_open_shipment]
        return orders[:limit] if limit is not None else orders
