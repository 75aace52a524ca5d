"""HTTP client for the orders API, used by frontends and operational scripts."""

import logging
from typing import Any

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
)

from src.core.config import Settings

logger = logging.getLogger(__name__)

# Order creation is retried once, and only when the request never reached the
# server. Timeouts and HTTP error responses are surfaced immediately.
CREATE_ORDER_ATTEMPTS = 2
RETRY_WAIT_SECONDS = 0.5


class OrdersApiError(Exception):
    """Error response or transport failure talking to the orders API."""

    def __init__(self, message: str, status_code: int | None = None, payload: Any = None) -> None:
        self.message = message
        self.status_code = status_code
        self.payload = payload
        super().__init__(message)


class OrdersApiClient:
    """Thin synchronous wrapper around the orders and payments endpoints."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: API root, e.g. http://localhost:5000.
            timeout: Per-request timeout in seconds.
            transport: Optional transport for testing.
        """
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "OrdersApiClient":
        """Build a client from application settings."""
        return cls(settings.api_base_url, timeout=settings.api_timeout_seconds)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "OrdersApiClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @staticmethod
    def _handle(response: httpx.Response) -> Any:
        if response.is_success:
            return response.json()

        try:
            body = response.json()
        except ValueError:
            body = None

        message = None
        if isinstance(body, dict):
            message = body.get("message") or body.get("detail")
        if not isinstance(message, str):
            message = f"Request failed with status {response.status_code}"
        raise OrdersApiError(message, status_code=response.status_code, payload=body)

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = self._client.request(method, path, **kwargs)
        except httpx.TimeoutException as e:
            raise OrdersApiError("Connection timed out. Please try again.") from e
        return self._handle(response)

    @retry(
        retry=retry_if_exception_type(httpx.NetworkError),
        stop=stop_after_attempt(CREATE_ORDER_ATTEMPTS),
        wait=wait_fixed(RETRY_WAIT_SECONDS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    def _post_order(self, payload: dict[str, Any]) -> httpx.Response:
        return self._client.post("/api/orders", json=payload)

    def create_order(self, payload: dict[str, Any]) -> dict[str, Any]:
        """Place an order.

        Args:
            payload: Body matching the order creation schema.

        Returns:
            dict: The created order.

        Raises:
            OrdersApiError: On rejection, timeout, or a network failure that
                persisted through the retry.
        """
        try:
            response = self._post_order(payload)
        except httpx.TimeoutException as e:
            raise OrdersApiError("Connection timed out. Please try again.") from e
        except httpx.NetworkError as e:
            logger.error("Order creation failed after retry: %s", str(e))
            raise OrdersApiError("Network error. Please check your connection to the server.") from e
        return self._handle(response)

    def get_order(self, order_id: str) -> dict[str, Any]:
        return self._request("GET", f"/api/orders/{order_id}")

    def list_customer_orders(self, customer_id: str) -> list[dict[str, Any]]:
        return self._request("GET", f"/api/orders/user/{customer_id}")["items"]

    def list_shop_orders(self, shop_id: str) -> list[dict[str, Any]]:
        return self._request("GET", f"/api/orders/shop/{shop_id}")["items"]

    def update_status(self, order_id: str, status: str) -> dict[str, Any]:
        return self._request("PATCH", f"/api/orders/{order_id}/status", json={"status": status})

    def create_payment_intent(
        self,
        order_id: str,
        amount: int | None = None,
        currency: str | None = None,
    ) -> dict[str, Any]:
        """Create a payment intent and return its client secret and id."""
        body: dict[str, Any] = {"order_id": order_id}
        if amount is not None:
            body["amount"] = amount
        if currency is not None:
            body["currency"] = currency
        return self._request("POST", "/api/payments/create-intent", json=body)

    def confirm_payment(self, order_id: str, payment_intent_id: str) -> dict[str, Any]:
        """Ask the server to verify a completed payment and confirm the order."""
        return self._request(
            "POST",
            f"/api/payments/confirm/{order_id}",
            json={"payment_intent_id": payment_intent_id},
        )

    def get_payment_status(self, payment_intent_id: str) -> dict[str, Any]:
        return self._request("GET", f"/api/payments/status/{payment_intent_id}")
