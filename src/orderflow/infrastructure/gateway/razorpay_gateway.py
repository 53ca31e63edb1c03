"""Razorpay adapter for the payment gateway port.

Talks to the Razorpay REST API over httpx with HTTP basic auth (key id
and key secret).  Amounts go over the wire in paise.
"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from orderflow.domain.exceptions import GatewayFailure
from orderflow.domain.model.value_objects import Money
from orderflow.domain.port.payment_gateway import GatewayRefund, PaymentGateway

logger = structlog.get_logger(__name__)


class RazorpayGateway(PaymentGateway):

    def __init__(
        self,
        key_id: str,
        key_secret: str,
        base_url: str = "https://api.razorpay.com/v1",
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url,
            auth=(key_id, key_secret),
            headers={"Content-Type": "application/json"},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    def refund(
        self,
        transaction_id: str,
        amount: Money,
        reason: str,
        receipt: str | None = None,
    ) -> GatewayRefund:
        payload: dict[str, Any] = {
            "amount": amount.minor_units,
            "notes": {"reason": reason},
        }
        if receipt is not None:
            payload["receipt"] = receipt
        body = self._request("POST", f"/payments/{transaction_id}/refund", json=payload)
        result = _to_refund(body)
        logger.debug(
            "razorpay_refund_created",
            transaction_id=transaction_id,
            refund_id=result.refund_id,
            status=result.status,
        )
        return result

    def fetch_refund(self, transaction_id: str, receipt: str) -> GatewayRefund | None:
        body = self._request("GET", f"/payments/{transaction_id}/refunds")
        items = body.get("items", [])
        if not isinstance(items, list):
            raise GatewayFailure("Razorpay refund list has an unexpected shape")
        for item in items:
            if isinstance(item, dict) and item.get("receipt") == receipt:
                return _to_refund(item)
        return None

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise GatewayFailure(f"Razorpay refund timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise GatewayFailure(f"Razorpay unreachable: {exc}") from exc

        if response.is_error:
            raise GatewayFailure(
                f"Razorpay rejected refund ({response.status_code}): {_error_text(response)}"
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise GatewayFailure("Razorpay returned a non-JSON response") from exc
        if not isinstance(body, dict):
            raise GatewayFailure("Razorpay returned an unexpected response shape")
        return body


def _to_refund(body: dict[str, Any]) -> GatewayRefund:
    refund_id = body.get("id")
    if not refund_id or not isinstance(refund_id, str):
        raise GatewayFailure("Razorpay refund response has no refund id")
    return GatewayRefund(refund_id=refund_id, status=str(body.get("status", "processed")))


def _error_text(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text
    error = body.get("error", {}) if isinstance(body, dict) else body
    if isinstance(error, dict):
        return error.get("description") or response.text
    return str(error)
