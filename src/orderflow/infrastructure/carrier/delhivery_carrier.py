"""Delhivery adapter for the carrier port.

Shipments are registered through the CMU ``create.json`` endpoint (a form
post with a JSON ``data`` field) and tracked through ``packages/json``.
Both use ``Authorization: Token <api token>``.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog

from orderflow.domain.exceptions import CarrierFailure
from orderflow.domain.model.order import Order
from orderflow.domain.port.carrier import Carrier, CarrierShipment

logger = structlog.get_logger(__name__)

CREATE_PATH = "/api/cmu/create.json"
TRACK_PATH = "/api/v1/packages/json/"
TRACKING_URL = "https://www.delhivery.com/track/package/{awb}"


class DelhiveryCarrier(Carrier):

    def __init__(
        self,
        token: str,
        pickup_location: str,
        base_url: str = "https://track.delhivery.com",
        timeout: float = 15.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._pickup_location = pickup_location
        self._client = httpx.Client(
            base_url=base_url,
            headers={"Authorization": f"Token {token}", "Accept": "application/json"},
            timeout=httpx.Timeout(timeout),
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    # --- Carrier interface ----------------------------------------------------

    def create_shipment(self, order: Order) -> CarrierShipment:
        payload = {
            "pickup_location": {"name": self._pickup_location},
            "shipments": [self._shipment_payload(order)],
        }
        body = self._request(
            "POST",
            CREATE_PATH,
            data={"format": "json", "data": json.dumps(payload)},
        )

        packages = body.get("packages") or []
        package = packages[0] if packages else {}
        awb = package.get("waybill") or package.get("awb")
        if not body.get("success", bool(awb)) or not awb:
            remarks = package.get("remarks") or body.get("rmk") or "no waybill returned"
            raise CarrierFailure(f"Delhivery did not create shipment: {remarks}")

        logger.debug("delhivery_shipment_created", order_number=order.order_number, awb=awb)
        return CarrierShipment(
            shipment_id=str(body.get("upload_wbn") or awb),
            awb=awb,
            tracking_url=TRACKING_URL.format(awb=awb),
        )

    def get_status(self, awb: str) -> str:
        body = self._request("GET", TRACK_PATH, params={"waybill": awb})
        status = _latest_status(body)
        if not status:
            raise CarrierFailure(f"Delhivery returned no status for AWB {awb}")
        return status

    # --- Helpers --------------------------------------------------------------

    def _shipment_payload(self, order: Order) -> dict[str, Any]:
        cod = order.payment.is_cod
        total = float(order.total.amount)
        return {
            "client_order_id": order.order_number,
            "order": order.order_number,
            "payment_mode": "COD" if cod else "Prepaid",
            "total_amount": total,
            "cod_amount": total if cod else 0,
            "seller_inv": order.invoice_no or order.order_number,
            "seller_inv_date": order.created_at.date().isoformat(),
            "products_desc": ", ".join(item.product_name for item in order.items),
            "quantity": sum(item.quantity.value for item in order.items),
            "country": "India",
        }

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise CarrierFailure(f"Delhivery timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise CarrierFailure(f"Delhivery unreachable: {exc}") from exc

        if response.is_error:
            raise CarrierFailure(
                f"Delhivery returned {response.status_code}: {response.text[:200]}"
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise CarrierFailure("Delhivery returned a non-JSON response") from exc
        if not isinstance(body, dict):
            raise CarrierFailure("Delhivery returned an unexpected response shape")
        return body


def _latest_status(body: dict[str, Any]) -> str | None:
    """Pull the current status out of a tracking response.

    The documented shape is ``ShipmentData[0].Shipment.Status.Status``; older
    accounts answer with a ``packages`` list instead.
    """
    shipment_data = body.get("ShipmentData") or []
    if shipment_data:
        status = (shipment_data[0].get("Shipment") or {}).get("Status") or {}
        if status.get("Status"):
            return status["Status"]
    packages = body.get("packages") or []
    if packages:
        package = packages[0]
        return package.get("current_status") or package.get("status")
    return None
