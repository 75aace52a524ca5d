"""Order model type definitions for database operations."""

from datetime import datetime
from typing import Literal, TypedDict
from uuid import UUID

# Enum values matching the database enums
OrderStatus = Literal["pending", "confirmed", "preparing", "ready", "delivered", "cancelled"]
PaymentStatus = Literal["pending", "paid", "failed", "refunded"]
PaymentMethod = Literal["card", "upi", "cod", "wallet"]
AddressLabel = Literal["home", "work", "other"]


class OrderItem(TypedDict):
    """Structure for a single line item in an order.

    Stored as part of the items JSONB array. ``price`` is the unit price
    multiplied by the quantity at the time the order was placed.
    """

    food_item_id: str
    quantity: int
    price: float


class StructuredAddress(TypedDict, total=False):
    """Decomposed delivery address stored in the structured_address JSONB column."""

    name: str
    phone: str
    house_number: str
    street: str
    landmark: str | None
    city: str
    state: str
    pincode: str
    label: AddressLabel


class Order(TypedDict):
    """Order table row representation.

    Maps directly to the database schema. Payment state lives inline on the
    row as a projection of the payment_events log.
    """

    id: UUID
    customer_id: UUID
    shop_id: UUID
    items: list[OrderItem]
    total_amount: float
    address: str
    structured_address: StructuredAddress | None
    status: OrderStatus
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    payment_id: str | None
    payment_intent_id: str | None
    applied_offer_id: UUID | None
    scheduled_for: datetime | None
    created_at: datetime
    updated_at: datetime


class OrderCreate(TypedDict, total=False):
    """Data inserted when a customer places an order."""

    customer_id: str
    shop_id: str
    items: list[OrderItem]
    total_amount: float
    address: str
    structured_address: StructuredAddress | None
    status: OrderStatus
    payment_method: PaymentMethod
    payment_status: PaymentStatus
    applied_offer_id: str | None
    scheduled_for: str | None
    created_at: str
    updated_at: str


class OrderUpdate(TypedDict, total=False):
    """Data that can be updated on an order.

    Used by status transitions and payment reconciliation.
    """

    status: OrderStatus
    payment_status: PaymentStatus
    payment_id: str
    payment_intent_id: str
    updated_at: str
