"""Abstract repository for the customer loyalty record."""

from __future__ import annotations

from abc import ABC, abstractmethod

from orderflow.domain.model.customer import Customer


class CustomerRepository(ABC):

    @abstractmethod
    def get_by_id(self, customer_id: str) -> Customer | None:
        """Return a customer by ID, or None if not found."""

    @abstractmethod
    def save(self, customer: Customer) -> None:
        """Persist a customer, with the same version check as orders."""
