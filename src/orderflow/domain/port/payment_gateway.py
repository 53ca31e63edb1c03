"""Payment gateway port (abstract interface).

Defines the contract that all payment gateway adapters must implement.
This enables swapping between FakeGateway (dev/test) and RazorpayGateway
(production) without changing any domain or application code.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from orderflow.domain.model.value_objects import Money


@dataclass(frozen=True)
class GatewayRefund:
    """A refund as the gateway reports it.

    ``status`` uses the gateway vocabulary: ``pending``, ``processed`` or
    ``failed``.
    """

    refund_id: str
    status: str

    @property
    def is_processed(self) -> bool:
        return self.status == "processed"

    @property
    def is_failed(self) -> bool:
        return self.status == "failed"


class PaymentGateway(ABC):
    """Abstract payment gateway interface."""

    @abstractmethod
    def refund(
        self,
        transaction_id: str,
        amount: Money,
        reason: str,
        receipt: str | None = None,
    ) -> GatewayRefund:
        """Refund ``amount`` of a captured payment.

        ``receipt`` tags the refund at the gateway so that it can be found
        again with :meth:`fetch_refund` if the answer is lost.  Any
        rejection, transport error, timeout or unreadable reply is raised
        as GatewayFailure.
        """

    @abstractmethod
    def fetch_refund(self, transaction_id: str, receipt: str) -> GatewayRefund | None:
        """Look up the refund created for ``receipt``; None if there is none."""
