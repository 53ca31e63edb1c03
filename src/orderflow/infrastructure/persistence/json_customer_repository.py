"""JSON-file-backed implementation of CustomerRepository."""

from __future__ import annotations

import json
from pathlib import Path

from orderflow.domain.exceptions import ConcurrencyError
from orderflow.domain.model.customer import Customer, LoyaltySnapshot, LoyaltyTier
from orderflow.domain.repository.customer_repository import CustomerRepository
from orderflow.infrastructure.persistence.file_lock import exclusive_lock


class JsonCustomerRepository(CustomerRepository):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._ensure_file()

    def get_by_id(self, customer_id: str) -> Customer | None:
        raw = self._load_raw().get(customer_id)
        return self._to_domain(customer_id, raw) if raw is not None else None

    def save(self, customer: Customer) -> None:
        with exclusive_lock(self._file_path):
            customers = self._load_raw()
            stored = customers.get(customer.id)
            stored_version = stored.get("version", 0) if stored is not None else 0
            if stored_version != customer.version:
                raise ConcurrencyError(
                    f"Customer {customer.id} was modified concurrently "
                    f"(stored v{stored_version}, loaded v{customer.version})"
                )
            customer.version += 1
            customers[customer.id] = self._to_raw(customer)
            self._persist_raw(customers)

    # --- Serialization --------------------------------------------------------

    @staticmethod
    def _to_raw(customer: Customer) -> dict:
        return {
            "name": customer.name,
            "tier": customer.loyalty.tier.value,
            "points": customer.loyalty.points,
            "awarded": sorted(customer.awarded),
            "version": customer.version,
        }

    @staticmethod
    def _to_domain(customer_id: str, raw: dict) -> Customer:
        return Customer(
            id=customer_id,
            name=raw.get("name", ""),
            loyalty=LoyaltySnapshot(
                tier=LoyaltyTier(raw.get("tier", LoyaltyTier.BRONZE.value)),
                points=raw.get("points", 0),
            ),
            awarded=set(raw.get("awarded", [])),
            version=raw.get("version", 0),
        )

    # --- File helpers ---------------------------------------------------------

    def _load_raw(self) -> dict[str, dict]:
        return json.loads(self._file_path.read_text(encoding="utf-8"))

    def _persist_raw(self, customers: dict[str, dict]) -> None:
        tmp_path = self._file_path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(customers, indent=2) + "\n", encoding="utf-8")
        tmp_path.replace(self._file_path)

    def _ensure_file(self) -> None:
        if not self._file_path.exists():
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            self._file_path.write_text("{}", encoding="utf-8")
