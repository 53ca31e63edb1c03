"""Carrier port: abstract interface for shipping carrier integrations.

All carrier adapters must implement this interface. The application code
programs against the port; adapters are swapped via configuration.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from orderflow.domain.model.order import Order


@dataclass(frozen=True)
class CarrierShipment:
    shipment_id: str
    awb: str
    tracking_url: str


class Carrier(ABC):
    """Abstract interface for carrier adapters."""

    @abstractmethod
    def create_shipment(self, order: Order) -> CarrierShipment:
        """Register a forward shipment for the order.

        Raises CarrierFailure when the carrier rejects the request or
        cannot be reached.
        """

    @abstractmethod
    def get_status(self, awb: str) -> str:
        """Return the carrier's current status string for ``awb``.

        The vocabulary is the carrier's own; see
        ``orderflow.domain.service.carrier_status`` for the mapping.
        """
