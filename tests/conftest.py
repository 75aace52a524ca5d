"""Pytest configuration and fixtures."""

import os
from collections.abc import Generator
from decimal import Decimal
from typing import Any
from unittest.mock import MagicMock, patch

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing application modules
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("SUPABASE_URL", "https://test-project.supabase.co")
os.environ.setdefault("SUPABASE_SECRET_KEY", "test-secret-key")
os.environ.setdefault("STRIPE_SECRET_KEY", "sk_test_stripe_secret_key")
os.environ.setdefault("STRIPE_WEBHOOK_SECRET", "whsec_test_webhook_secret")

CUSTOMER_ID = "11111111-1111-4111-8111-111111111111"
SHOP_ID = "22222222-2222-4222-8222-222222222222"
OTHER_SHOP_ID = "33333333-3333-4333-8333-333333333333"
FOOD_A_ID = "aaaaaaaa-aaaa-4aaa-8aaa-aaaaaaaaaaaa"
FOOD_B_ID = "bbbbbbbb-bbbb-4bbb-8bbb-bbbbbbbbbbbb"
ORDER_ID = "660e8400-e29b-41d4-a716-446655440000"
OFFER_ID = "44444444-4444-4444-8444-444444444444"


class SupabaseStub:
    """MagicMock-backed Supabase client with one mock per table.

    Each helper configures the query-builder chain a service uses, so tests
    read as "the shops table returns this row".
    """

    def __init__(self) -> None:
        self.client = MagicMock()
        self.tables: dict[str, MagicMock] = {}
        self.client.table.side_effect = self.table

    def table(self, name: str) -> MagicMock:
        if name not in self.tables:
            self.tables[name] = MagicMock(name=f"table:{name}")
        return self.tables[name]

    @staticmethod
    def _respond(execute: MagicMock, results: tuple[Any, ...]) -> None:
        if len(results) == 1:
            execute.return_value = MagicMock(data=results[0])
        else:
            execute.side_effect = [MagicMock(data=result) for result in results]

    def set_row(self, name: str, *rows: Any) -> None:
        """Rows returned by select().eq("id", ...).maybe_single(), in call order."""
        execute = self.table(name).select.return_value.eq.return_value.maybe_single.return_value.execute
        self._respond(execute, rows)

    def set_in(self, name: str, rows: list[dict[str, Any]]) -> None:
        """Rows returned by select().in_("id", ...)."""
        self.table(name).select.return_value.in_.return_value.execute.return_value = MagicMock(data=rows)

    def set_filtered_list(self, name: str, rows: list[dict[str, Any]]) -> None:
        """Rows returned by select().eq(...).order(...)."""
        self.table(name).select.return_value.eq.return_value.order.return_value.execute.return_value = (
            MagicMock(data=rows)
        )

    def set_list(self, name: str, rows: list[dict[str, Any]]) -> None:
        """Rows returned by select().order(...)."""
        self.table(name).select.return_value.order.return_value.execute.return_value = MagicMock(data=rows)

    def set_insert(self, name: str, rows: list[dict[str, Any]]) -> None:
        self.table(name).insert.return_value.execute.return_value = MagicMock(data=rows)

    def set_update(self, name: str, *rows: list[dict[str, Any]]) -> None:
        """Rows returned by update().eq("id", ...).eq(guard, ...), in call order."""
        execute = self.table(name).update.return_value.eq.return_value.eq.return_value.execute
        self._respond(execute, rows)

    def inserted(self, name: str) -> list[dict[str, Any]]:
        return [call.args[0] for call in self.table(name).insert.call_args_list]

    def updated(self, name: str) -> list[dict[str, Any]]:
        return [call.args[0] for call in self.table(name).update.call_args_list]

    def update_guards(self, name: str) -> list[tuple[Any, ...]]:
        """(column, value) each update was conditioned on."""
        return [call.args for call in self.table(name).update.return_value.eq.return_value.eq.call_args_list]


def make_order_row(**overrides: Any) -> dict[str, Any]:
    """Build a stored order row with two lines (A x2, B x1)."""
    row = {
        "id": ORDER_ID,
        "customer_id": CUSTOMER_ID,
        "shop_id": SHOP_ID,
        "items": [
            {"food_item_id": FOOD_A_ID, "quantity": 2, "price": 200.0},
            {"food_item_id": FOOD_B_ID, "quantity": 1, "price": 200.0},
        ],
        "total_amount": 460.0,
        "address": "12 MG Road, Bengaluru",
        "structured_address": None,
        "status": "pending",
        "payment_method": "card",
        "payment_status": "pending",
        "payment_id": None,
        "payment_intent_id": None,
        "applied_offer_id": None,
        "scheduled_for": None,
        "created_at": "2026-10-01T10:00:00+00:00",
        "updated_at": "2026-10-01T10:00:00+00:00",
        "customer": {"id": CUSTOMER_ID, "name": "Asha", "email": "asha@example.com"},
        "shop": {"id": SHOP_ID, "name": "Dosa Corner", "logo": None},
    }
    row.update(overrides)
    return row


def make_food_items() -> list[dict[str, Any]]:
    """Menu rows for food items A (100.00) and B (200.00) of the test shop."""
    return [
        {"id": FOOD_A_ID, "name": "Masala Dosa", "price": 100.0, "image": None, "shop_id": SHOP_ID},
        {"id": FOOD_B_ID, "name": "Filter Coffee Combo", "price": 200.0, "image": None, "shop_id": SHOP_ID},
    ]


@pytest.fixture
def test_settings() -> Generator[Any, None, None]:
    """Provide test settings with cleared cache.

    Yields:
        Settings: Test configuration settings.
    """
    from src.core.config import get_settings

    get_settings.cache_clear()
    settings = get_settings()
    yield settings
    get_settings.cache_clear()


@pytest.fixture
def fee_settings(test_settings: Any) -> Any:
    """Settings with a 15% delivery fee and 10% tax, so 400.00 of food costs 500.00."""
    return test_settings.model_copy(
        update={"delivery_fee_rate": Decimal("0.15"), "tax_rate": Decimal("0.10")}
    )


@pytest.fixture
def db() -> SupabaseStub:
    """Provide a per-table Supabase stub."""
    return SupabaseStub()


@pytest.fixture
def mock_supabase_client() -> Generator[MagicMock, None, None]:
    """Provide a mocked Supabase client for the health check.

    Yields:
        MagicMock: Mocked Supabase client for testing.
    """
    mock_client = MagicMock()

    mock_response = MagicMock()
    mock_response.data = []
    mock_client.table.return_value.select.return_value.limit.return_value.execute.return_value = (
        mock_response
    )

    with patch("src.core.supabase.get_supabase_client", return_value=mock_client):
        yield mock_client


@pytest.fixture
def mock_stripe() -> Generator[MagicMock, None, None]:
    """Replace the Stripe module used by the payment service."""
    stripe_mock = MagicMock()
    with patch("src.services.payment_service.get_stripe", return_value=stripe_mock):
        yield stripe_mock


@pytest.fixture
def client(
    mock_supabase_client: MagicMock, db: SupabaseStub, test_settings: Any
) -> Generator[TestClient, None, None]:
    """Provide a test client whose services talk to the table stub.

    Args:
        mock_supabase_client: Mocked Supabase client fixture.
        db: Table stub used by order and payment services.
        test_settings: Fresh settings from the test environment.

    Yields:
        TestClient: FastAPI test client.
    """
    from src.main import app

    with patch("src.services.order_service.get_supabase_client", return_value=db.client):
        with TestClient(app) as test_client:
            yield test_client
