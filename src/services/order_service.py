"""Order business logic service."""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

from supabase import Client

from src.api.middleware.error_handler import BusinessRuleError, NotFoundError, ValidationError
from src.core.config import Settings
from src.core.supabase import get_supabase_client
from src.models.catalog import Customer, FoodItem, Offer, Shop
from src.models.order import Order, OrderCreate, OrderUpdate
from src.schemas.order import OrderCreateRequest
from src.services.order_status import ORDER_STATUSES, ensure_transition, is_valid_status
from src.services.pricing import PricedLine, compute_order_pricing, ensure_total_matches

logger = logging.getLogger(__name__)

# Customer and shop are embedded through their foreign keys. Food items live
# inside the items JSON array and are expanded with a second query.
ORDER_SELECT = "*, customer:users(id, name, email), shop:shops(id, name, logo)"
FOOD_ITEM_SUMMARY_COLUMNS = "id, name, price, image"


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a timestamp returned by PostgREST into an aware datetime."""
    if value is None:
        return None
    if isinstance(value, datetime):
        parsed = value
    else:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def next_updated_at(previous: Any) -> str:
    """Return a modification timestamp strictly later than ``previous``.

    Args:
        previous: The order's current updated_at value, if any.

    Returns:
        str: ISO 8601 timestamp.
    """
    now = datetime.now(timezone.utc)
    previous_dt = parse_timestamp(previous)
    if previous_dt is not None and now <= previous_dt:
        now = previous_dt + timedelta(microseconds=1)
    return now.isoformat()


def parse_id(value: Any, label: str) -> str:
    """Normalize an identifier or raise a validation error naming it.

    Args:
        value: Raw identifier from the request.
        label: Human-readable name used in the error message.

    Returns:
        str: Canonical lowercase UUID string.

    Raises:
        ValidationError: If the value is not a UUID.
    """
    try:
        return str(UUID(str(value)))
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {label} ID format: {value}") from e


class OrderService:
    """Service for order creation, lookup and status transitions."""

    def __init__(self, settings: Settings, supabase_client: Client | None = None) -> None:
        """Initialize order service.

        Args:
            settings: Application settings (fee schedule, tolerances).
            supabase_client: Optional Supabase client for testing.
        """
        self.settings = settings
        self.client = supabase_client or get_supabase_client()

    def _fetch_one(self, table: str, columns: str, row_id: str) -> dict[str, Any] | None:
        response = (
            self.client.table(table)
            .select(columns)
            .eq("id", row_id)
            .maybe_single()
            .execute()
        )
        return response.data if response and response.data else None

    def _fetch_food_items(self, ids: list[str], columns: str) -> dict[str, FoodItem]:
        if not ids:
            return {}
        response = self.client.table("food_items").select(columns).in_("id", ids).execute()
        return {str(row["id"]): row for row in response.data or []}

    def _expand(self, rows: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Attach food item summaries to every line of every order."""
        ids = sorted({str(item["food_item_id"]) for row in rows for item in row.get("items") or []})
        food_items = self._fetch_food_items(ids, FOOD_ITEM_SUMMARY_COLUMNS)

        expanded = []
        for row in rows:
            items = [
                {**item, "food_item": food_items.get(str(item["food_item_id"]))}
                for item in row.get("items") or []
            ]
            expanded.append({**row, "items": items})
        return expanded

    def _validate_offer(self, offer_id: str, shop_id: str, subtotal: Decimal) -> Offer:
        offer: Offer | None = self._fetch_one("offers", "*", offer_id)
        if not offer:
            raise NotFoundError(f"Offer not found: {offer_id}")

        if str(offer.get("shop_id")) != shop_id:
            raise BusinessRuleError(f"Offer {offer.get('code', offer_id)} is not valid for this shop")

        expiry = parse_timestamp(offer.get("expiry_date"))
        if expiry is not None and expiry < datetime.now(timezone.utc):
            raise BusinessRuleError(f"Offer {offer.get('code', offer_id)} has expired")

        minimum = offer.get("minimum_order") or 0
        if subtotal < Decimal(str(minimum)):
            raise BusinessRuleError(f"Order subtotal must be at least {minimum} to use this offer")

        return offer

    async def create_order(self, data: OrderCreateRequest) -> dict[str, Any]:
        """Validate and persist a new order.

        Every check runs before the single insert, so a rejected request
        never leaves a partial order behind.

        Args:
            data: Order creation request.

        Returns:
            dict: The persisted order with customer, shop and food items expanded.

        Raises:
            ValidationError: Malformed ids, past schedule, or total mismatch.
            NotFoundError: Customer, shop, food item or offer missing.
            BusinessRuleError: Shop not approved, food item or offer of another shop.
        """
        customer_id = parse_id(data.customer_id, "customer")
        shop_id = parse_id(data.shop_id, "shop")

        customer: Customer | None = self._fetch_one("users", "id", customer_id)
        if not customer:
            logger.warning("Customer not found with ID: %s", customer_id)
            raise NotFoundError("Customer not found")

        shop: Shop | None = self._fetch_one("shops", "id, name, status", shop_id)
        if not shop:
            raise NotFoundError("Shop not found")
        if shop.get("status") != "approved":
            raise BusinessRuleError("Shop is not approved for orders")

        requested_ids = [parse_id(item.food_item_id, "food item") for item in data.items]
        food_items = self._fetch_food_items(sorted(set(requested_ids)), "id, name, price, shop_id")

        lines: list[PricedLine] = []
        for food_item_id, item in zip(requested_ids, data.items):
            food_item = food_items.get(food_item_id)
            if not food_item:
                raise NotFoundError(f"Food item not found: {food_item_id}")
            if str(food_item.get("shop_id")) != shop_id:
                raise BusinessRuleError(f"Food item {food_item.get('name', food_item_id)} does not belong to this shop")
            lines.append(
                PricedLine(
                    food_item_id=food_item_id,
                    unit_price=Decimal(str(food_item["price"])),
                    quantity=item.quantity,
                )
            )

        offer = None
        offer_id = None
        if data.applied_offer_id:
            offer_id = parse_id(data.applied_offer_id, "offer")
            subtotal = sum((line.line_total for line in lines), Decimal("0"))
            offer = self._validate_offer(offer_id, shop_id, subtotal)

        scheduled_for = None
        if data.scheduled_for is not None:
            scheduled_for = parse_timestamp(data.scheduled_for)
            if scheduled_for <= datetime.now(timezone.utc):
                raise ValidationError("Scheduled delivery time must be in the future")

        pricing = compute_order_pricing(lines, self.settings, offer)
        ensure_total_matches(data.total_amount, pricing, self.settings.total_tolerance)

        now = datetime.now(timezone.utc).isoformat()
        order_data: OrderCreate = {
            "customer_id": customer_id,
            "shop_id": shop_id,
            "items": [
                {
                    "food_item_id": line.food_item_id,
                    "quantity": line.quantity,
                    "price": float(line.line_total),
                }
                for line in lines
            ],
            "total_amount": float(pricing.total),
            "address": data.address,
            "structured_address": (
                data.structured_address.model_dump() if data.structured_address else None
            ),
            "applied_offer_id": offer_id,
            "payment_method": data.payment_method,
            "status": "pending",
            "payment_status": "pending",
            "payment_id": None,
            "payment_intent_id": None,
            "scheduled_for": scheduled_for.isoformat() if scheduled_for else None,
            "created_at": now,
            "updated_at": now,
        }

        response = self.client.table("orders").insert(order_data).execute()
        if not response.data:
            raise Exception("Failed to create order")

        order_id = response.data[0]["id"]
        logger.info(
            "Created order %s for customer %s at shop %s (%d items, total %s, %s)",
            order_id,
            customer_id,
            shop_id,
            len(lines),
            pricing.total,
            data.payment_method,
        )
        return await self.get_order(order_id)

    def find_order_row(self, order_id: Any) -> Order | None:
        """Get the raw order row, or None if the id is malformed or unknown."""
        try:
            normalized = parse_id(order_id, "order")
        except ValidationError:
            return None
        return self._fetch_one("orders", "*", normalized)

    def get_order_row(self, order_id: Any) -> Order:
        """Get the raw order row.

        Raises:
            ValidationError: If the id is malformed.
            NotFoundError: If no order has this id.
        """
        row = self._fetch_one("orders", "*", parse_id(order_id, "order"))
        if not row:
            raise NotFoundError("Order not found")
        return row

    async def get_order(self, order_id: Any) -> dict[str, Any]:
        """Get an order by ID with references expanded.

        Args:
            order_id: The order's UUID.

        Returns:
            dict: The expanded order.

        Raises:
            NotFoundError: If the order does not exist.
        """
        row = self._fetch_one("orders", ORDER_SELECT, parse_id(order_id, "order"))
        if not row:
            raise NotFoundError("Order not found")
        return self._expand([row])[0]

    async def list_orders(self) -> list[dict[str, Any]]:
        """Get all orders, newest first."""
        response = (
            self.client.table("orders")
            .select(ORDER_SELECT)
            .order("created_at", desc=True)
            .execute()
        )
        return self._expand(response.data or [])

    async def list_orders_for_customer(self, customer_id: Any) -> list[dict[str, Any]]:
        """Get all orders placed by a customer, newest first."""
        response = (
            self.client.table("orders")
            .select(ORDER_SELECT)
            .eq("customer_id", parse_id(customer_id, "customer"))
            .order("created_at", desc=True)
            .execute()
        )
        return self._expand(response.data or [])

    async def list_orders_for_shop(self, shop_id: Any) -> list[dict[str, Any]]:
        """Get all orders received by a shop, newest first."""
        response = (
            self.client.table("orders")
            .select(ORDER_SELECT)
            .eq("shop_id", parse_id(shop_id, "shop"))
            .order("created_at", desc=True)
            .execute()
        )
        return self._expand(response.data or [])

    async def update_status(self, order_id: Any, status: str) -> dict[str, Any]:
        """Move an order to a new lifecycle status.

        Requesting the status the order already has succeeds without a write.

        Args:
            order_id: The order's UUID.
            status: Target status.

        Returns:
            dict: The expanded order after the change.

        Raises:
            ValidationError: Unknown status or malformed id.
            NotFoundError: Order does not exist.
            BusinessRuleError: Transition not allowed, or the status changed concurrently.
        """
        if not is_valid_status(status):
            raise ValidationError(
                f"Invalid status: {status}. Must be one of: {', '.join(ORDER_STATUSES)}"
            )

        order = self.get_order_row(order_id)
        current = order["status"]

        if current == status:
            logger.info("Order %s already %s, nothing to update", order["id"], status)
            return await self.get_order(order["id"])

        ensure_transition(current, status)
        if self.apply_update(order, {"status": status}, unchanged="status") is None:
            raise BusinessRuleError("Order was modified by another request, please retry")

        logger.info("Order %s status changed %s -> %s", order["id"], current, status)
        return await self.get_order(order["id"])

    def apply_update(self, order: Order, update: OrderUpdate, unchanged: str) -> Order | None:
        """Write fields to an order row and refresh updated_at.

        The write only matches while ``unchanged`` still holds the value it
        had in ``order``, so two requests that read the same row cannot both
        apply their update.

        Args:
            order: The order row as last read.
            update: Columns to change.
            unchanged: Column that must not have changed since ``order`` was read.

        Returns:
            dict | None: The updated row, or None if no row matched.
        """
        payload = {**update, "updated_at": next_updated_at(order.get("updated_at"))}
        response = (
            self.client.table("orders")
            .update(payload)
            .eq("id", str(order["id"]))
            .eq(unchanged, order[unchanged])
            .execute()
        )
        if response and response.data:
            return response.data[0]

        logger.warning(
            "Order %s update %s not applied: row missing or %s no longer %s",
            order["id"],
            sorted(update),
            unchanged,
            order[unchanged],
        )
        return None
