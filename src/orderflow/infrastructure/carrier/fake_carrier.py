"""Fake carrier adapter, deterministic carrier for testing and development.

Generates mock AWBs and reports whatever status it was last told to for a
given AWB.  Success or failure is configurable.
"""

from __future__ import annotations

from uuid import uuid4

from orderflow.domain.exceptions import CarrierFailure
from orderflow.domain.model.order import Order
from orderflow.domain.port.carrier import Carrier, CarrierShipment


class FakeCarrier(Carrier):
    """Fake carrier that always succeeds by default."""

    def __init__(self, default_status: str = "Manifested") -> None:
        self.should_succeed = True
        self.failure_reason = "Carrier unavailable"
        self.default_status = default_status
        self.statuses: dict[str, str] = {}
        self.failing: dict[str, str] = {}
        self.calls: list[dict] = []

    def configure(
        self, should_succeed: bool = True, failure_reason: str = "Carrier unavailable"
    ) -> None:
        """Configure the fake carrier behavior for testing."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason

    def set_status(self, awb: str, status: str) -> None:
        self.statuses[awb] = status

    def fail_for(self, awb: str, reason: str) -> None:
        """Make tracking calls for one AWB fail."""
        self.failing[awb] = reason

    def create_shipment(self, order: Order) -> CarrierShipment:
        self.calls.append({"method": "create_shipment", "order_number": order.order_number})
        if not self.should_succeed:
            raise CarrierFailure(self.failure_reason)

        awb = f"FAKE{uuid4().hex[:10].upper()}"
        self.statuses.setdefault(awb, self.default_status)
        return CarrierShipment(
            shipment_id=f"ship-{uuid4().hex[:8]}",
            awb=awb,
            tracking_url=f"https://fake-carrier.example.com/track/{awb}",
        )

    def get_status(self, awb: str) -> str:
        self.calls.append({"method": "get_status", "awb": awb})
        if not self.should_succeed:
            raise CarrierFailure(self.failure_reason)
        if awb in self.failing:
            raise CarrierFailure(self.failing[awb])
        return self.statuses.get(awb, self.default_status)
