"""Unit tests for the orders API client."""

import json
from typing import Any
from unittest.mock import patch

import httpx
import pytest

from conftest import ORDER_ID
from src.client.orders_client import OrdersApiClient, OrdersApiError

ORDER_PAYLOAD = {"customer_id": "c", "shop_id": "s", "items": [], "total_amount": 0, "address": "x"}


@pytest.fixture(autouse=True)
def no_retry_wait() -> Any:
    """Skip the pause between order creation attempts."""
    with patch("tenacity.nap.time.sleep"):
        yield


def make_client(handler: Any) -> OrdersApiClient:
    return OrdersApiClient("http://orders.test/", transport=httpx.MockTransport(handler))


class TestCreateOrder:
    """Tests for OrdersApiClient.create_order."""

    def test_create_order_retries_once_after_connection_failure(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return httpx.Response(201, json={"id": ORDER_ID, "status": "pending"})

        with make_client(handler) as client:
            order = client.create_order(ORDER_PAYLOAD)

        assert order["id"] == ORDER_ID
        assert len(calls) == 2
        assert calls[0].url.path == "/api/orders"
        assert json.loads(calls[1].content) == ORDER_PAYLOAD

    def test_create_order_gives_up_after_second_network_failure(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        with make_client(handler) as client:
            with pytest.raises(OrdersApiError, match="Network error"):
                client.create_order(ORDER_PAYLOAD)

        assert len(calls) == 2

    def test_create_order_does_not_retry_timeout(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            raise httpx.ReadTimeout("read timed out", request=request)

        with make_client(handler) as client:
            with pytest.raises(OrdersApiError, match="Connection timed out"):
                client.create_order(ORDER_PAYLOAD)

        assert len(calls) == 1

    def test_create_order_does_not_retry_rejection(self) -> None:
        calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(
                400,
                json={"error": "validation_error", "message": "Order total 1.00 does not match computed total 460.00"},
            )

        with make_client(handler) as client:
            with pytest.raises(OrdersApiError) as exc_info:
                client.create_order(ORDER_PAYLOAD)

        assert len(calls) == 1
        assert exc_info.value.status_code == 400
        assert exc_info.value.message.startswith("Order total 1.00")
        assert exc_info.value.payload["error"] == "validation_error"


class TestOtherCalls:
    """Tests for the remaining endpoints."""

    def test_list_customer_orders_unwraps_items(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.path == "/api/orders/user/cust-1"
            return httpx.Response(200, json={"items": [{"id": ORDER_ID}]})

        with make_client(handler) as client:
            assert client.list_customer_orders("cust-1") == [{"id": ORDER_ID}]

    def test_update_status_sends_patch(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "PATCH"
            assert json.loads(request.content) == {"status": "confirmed"}
            return httpx.Response(200, json={"id": ORDER_ID, "status": "confirmed"})

        with make_client(handler) as client:
            assert client.update_status(ORDER_ID, "confirmed")["status"] == "confirmed"

    def test_confirm_payment_surfaces_processor_status(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                402,
                json={
                    "error": "payment_error",
                    "message": "Payment not successful. Status: requires_payment_method",
                },
            )

        with make_client(handler) as client:
            with pytest.raises(OrdersApiError) as exc_info:
                client.confirm_payment(ORDER_ID, "pi_test_123")

        assert exc_info.value.status_code == 402
        assert "requires_payment_method" in exc_info.value.message

    def test_webhook_style_detail_message(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"detail": "Invalid signature"})

        with make_client(handler) as client:
            with pytest.raises(OrdersApiError, match="Invalid signature"):
                client.get_order(ORDER_ID)

    def test_non_json_error_body(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        with make_client(handler) as client:
            with pytest.raises(OrdersApiError, match="Request failed with status 502"):
                client.get_payment_status("pi_test_123")

    def test_create_payment_intent_omits_unset_fields(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content) == {"order_id": ORDER_ID}
            return httpx.Response(200, json={"client_secret": "secret", "payment_intent_id": "pi_1"})

        with make_client(handler) as client:
            result = client.create_payment_intent(ORDER_ID)

        assert result["payment_intent_id"] == "pi_1"

    def test_from_settings(self, test_settings: Any) -> None:
        client = OrdersApiClient.from_settings(test_settings)

        assert str(client._client.base_url).rstrip("/") == test_settings.api_base_url.rstrip("/")
        client.close()
