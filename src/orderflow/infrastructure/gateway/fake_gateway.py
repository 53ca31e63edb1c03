"""Configurable fake payment gateway for development and testing.

Simulates the gateway without any external calls.  It can be told to
succeed or fail at runtime and records every call it receives, so tests
can assert on what was (or was not) sent.
"""

from __future__ import annotations

from uuid import uuid4

from orderflow.domain.exceptions import GatewayFailure
from orderflow.domain.model.value_objects import Money
from orderflow.domain.port.payment_gateway import GatewayRefund, PaymentGateway


class FakeGateway(PaymentGateway):
    """Configurable fake payment gateway."""

    def __init__(self) -> None:
        self.should_succeed: bool = True
        self.failure_reason: str = "Refund declined by gateway"
        self.refund_status: str = "processed"
        self.calls: list[dict] = []
        self.refunds: dict[tuple[str, str], GatewayRefund] = {}

    def configure(
        self,
        should_succeed: bool,
        failure_reason: str = "Refund declined by gateway",
        refund_status: str = "processed",
    ) -> None:
        """Configure gateway behavior at runtime."""
        self.should_succeed = should_succeed
        self.failure_reason = failure_reason
        self.refund_status = refund_status

    def refund(
        self,
        transaction_id: str,
        amount: Money,
        reason: str,
        receipt: str | None = None,
    ) -> GatewayRefund:
        self.calls.append(
            {
                "method": "refund",
                "transaction_id": transaction_id,
                "amount": amount,
                "reason": reason,
                "receipt": receipt,
            }
        )
        if not self.should_succeed:
            raise GatewayFailure(self.failure_reason)
        result = GatewayRefund(
            refund_id=f"fake_rfnd_{uuid4().hex[:12]}", status=self.refund_status
        )
        if receipt is not None:
            self.refunds[(transaction_id, receipt)] = result
        return result

    def fetch_refund(self, transaction_id: str, receipt: str) -> GatewayRefund | None:
        self.calls.append(
            {"method": "fetch_refund", "transaction_id": transaction_id, "receipt": receipt}
        )
        if not self.should_succeed:
            raise GatewayFailure(self.failure_reason)
        return self.refunds.get((transaction_id, receipt))

    def settle(self, transaction_id: str, receipt: str, status: str = "processed") -> None:
        """Change the status the gateway reports for an existing refund."""
        current = self.refunds[(transaction_id, receipt)]
        self.refunds[(transaction_id, receipt)] = GatewayRefund(current.refund_id, status)
