"""Tests for the Razorpay and Delhivery adapters over httpx.MockTransport."""

import json
from urllib.parse import parse_qs

import httpx
import pytest

from orderflow.domain.exceptions import CarrierFailure, GatewayFailure
from orderflow.domain.model.value_objects import Money
from orderflow.infrastructure.carrier.delhivery_carrier import DelhiveryCarrier
from orderflow.infrastructure.gateway.razorpay_gateway import RazorpayGateway
from tests.fakes import make_order


def _gateway(handler) -> RazorpayGateway:
    return RazorpayGateway(
        "rzp_key", "rzp_secret", base_url="https://rzp.test/v1",
        transport=httpx.MockTransport(handler),
    )


def _carrier(handler) -> DelhiveryCarrier:
    return DelhiveryCarrier(
        "dl-token", "Main Warehouse", base_url="https://dl.test",
        transport=httpx.MockTransport(handler),
    )


class TestRazorpayGateway:

    def test_refund_posts_paise_with_basic_auth(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "rfnd_1", "status": "processed"})

        result = _gateway(handler).refund("pay_1", Money.of("1000.50"), "damaged")

        assert result.refund_id == "rfnd_1"
        assert seen["path"] == "/v1/payments/pay_1/refund"
        assert seen["auth"].startswith("Basic ")
        assert seen["body"] == {"amount": 100050, "notes": {"reason": "damaged"}}

    def test_rejection_becomes_gateway_failure(self):
        def handler(request):
            return httpx.Response(
                400,
                json={"error": {"description": "The payment has been fully refunded"}},
            )

        with pytest.raises(GatewayFailure, match="fully refunded"):
            _gateway(handler).refund("pay_1", Money.of("10"), "x")

    def test_timeout_becomes_gateway_failure(self):
        def handler(request):
            raise httpx.ReadTimeout("too slow", request=request)

        with pytest.raises(GatewayFailure, match="timed out"):
            _gateway(handler).refund("pay_1", Money.of("10"), "x")

    def test_amount_is_rounded_to_paise_and_receipt_sent(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"id": "rfnd_2", "status": "pending"})

        result = _gateway(handler).refund("pay_1", Money.of("10.005"), "x", "ORD1-r1")

        assert seen["body"]["amount"] == 1001
        assert seen["body"]["receipt"] == "ORD1-r1"
        assert result.status == "pending"

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, text="<html>OK</html>"),
            httpx.Response(200, json=["rfnd_1"]),
            httpx.Response(200, json={"status": "processed"}),
        ],
    )
    def test_unreadable_success_reply_becomes_gateway_failure(self, response):
        with pytest.raises(GatewayFailure):
            _gateway(lambda request: response).refund("pay_1", Money.of("10"), "x")

    def test_fetch_refund_finds_receipt(self):
        seen = {}

        def handler(request):
            seen["path"] = request.url.path
            return httpx.Response(
                200,
                json={
                    "count": 2,
                    "items": [
                        {"id": "rfnd_old", "receipt": "ORD1-r1", "status": "failed"},
                        {"id": "rfnd_new", "receipt": "ORD1-r2", "status": "processed"},
                    ],
                },
            )

        found = _gateway(handler).fetch_refund("pay_1", "ORD1-r2")

        assert seen["path"] == "/v1/payments/pay_1/refunds"
        assert found.refund_id == "rfnd_new"
        assert found.is_processed

    def test_fetch_refund_missing_receipt(self):
        def handler(request):
            return httpx.Response(200, json={"count": 0, "items": []})

        assert _gateway(handler).fetch_refund("pay_1", "ORD1-r1") is None


class TestDelhiveryCarrier:

    def test_create_shipment(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["auth"] = request.headers["Authorization"]
            seen["form"] = parse_qs(request.content.decode())
            return httpx.Response(
                200,
                json={
                    "success": True,
                    "upload_wbn": "UPL-9",
                    "packages": [{"status": "Success", "waybill": "AWB123"}],
                },
            )

        order = make_order("250")
        order.order_number = "ORD251019000001"

        created = _carrier(handler).create_shipment(order)

        assert created.awb == "AWB123"
        assert created.shipment_id == "UPL-9"
        assert seen["path"] == "/api/cmu/create.json"
        assert seen["auth"] == "Token dl-token"
        payload = json.loads(seen["form"]["data"][0])
        assert payload["pickup_location"] == {"name": "Main Warehouse"}
        assert payload["shipments"][0]["payment_mode"] == "Prepaid"
        assert payload["shipments"][0]["client_order_id"] == "ORD251019000001"

    def test_create_without_waybill_fails(self):
        def handler(request):
            return httpx.Response(
                200,
                json={"success": False, "packages": [{"remarks": ["Pincode not serviceable"]}]},
            )

        with pytest.raises(CarrierFailure, match="Pincode"):
            _carrier(handler).create_shipment(make_order())

    def test_get_status_from_shipment_data(self):
        def handler(request):
            assert request.url.params["waybill"] == "AWB123"
            return httpx.Response(
                200,
                json={"ShipmentData": [{"Shipment": {"Status": {"Status": "In Transit"}}}]},
            )

        assert _carrier(handler).get_status("AWB123") == "In Transit"

    def test_get_status_from_packages(self):
        def handler(request):
            return httpx.Response(200, json={"packages": [{"current_status": "Delivered"}]})

        assert _carrier(handler).get_status("AWB123") == "Delivered"

    def test_server_error_becomes_carrier_failure(self):
        def handler(request):
            return httpx.Response(503, text="maintenance")

        with pytest.raises(CarrierFailure, match="503"):
            _carrier(handler).get_status("AWB123")

    def test_empty_tracking_response_fails(self):
        def handler(request):
            return httpx.Response(200, json={"ShipmentData": []})

        with pytest.raises(CarrierFailure, match="no status"):
            _carrier(handler).get_status("AWB123")
