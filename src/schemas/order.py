"""Order Pydantic schemas for API request/response models."""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.models.order import AddressLabel, OrderStatus, PaymentMethod, PaymentStatus


class StructuredAddressSchema(BaseModel):
    """Schema for a decomposed delivery address."""

    model_config = ConfigDict(from_attributes=True)

    name: str = Field(min_length=1, description="Recipient name")
    phone: str = Field(min_length=1, description="Recipient phone number")
    house_number: str = Field(min_length=1, description="House or flat number")
    street: str = Field(min_length=1, description="Street")
    landmark: str | None = Field(default=None, description="Nearby landmark")
    city: str = Field(min_length=1, description="City")
    state: str = Field(min_length=1, description="State")
    pincode: str = Field(min_length=1, description="Postal code")
    label: AddressLabel = Field(default="home", description="Address label")


class OrderItemCreate(BaseModel):
    """Schema for a single requested line item."""

    food_item_id: str = Field(description="Food item identifier")
    quantity: int = Field(ge=1, description="Quantity ordered")


class OrderCreateRequest(BaseModel):
    """Schema for creating an order via POST /orders.

    Identifiers are accepted as plain strings so a malformed id gets a
    descriptive error naming the offending value.
    """

    customer_id: str = Field(description="Placing customer identifier")
    shop_id: str = Field(description="Fulfilling shop identifier")
    items: list[OrderItemCreate] = Field(min_length=1, description="Requested line items")
    total_amount: Decimal = Field(ge=0, description="Order total as shown to the customer")
    address: str = Field(min_length=1, description="Free-text delivery address")
    structured_address: StructuredAddressSchema | None = Field(default=None, description="Decomposed delivery address")
    applied_offer_id: str | None = Field(default=None, description="Promotional offer identifier")
    payment_method: PaymentMethod = Field(default="card", description="Payment method")
    scheduled_for: datetime | None = Field(default=None, description="Deferred delivery time")


class OrderStatusUpdate(BaseModel):
    """Schema for PATCH /orders/{order_id}/status."""

    status: str = Field(description="Target order status")


class CustomerSummary(BaseModel):
    """Expanded customer reference."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str | None = None


class ShopSummary(BaseModel):
    """Expanded shop reference."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    logo: str | None = None


class FoodItemSummary(BaseModel):
    """Expanded food item reference."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    price: float
    image: str | None = None


class OrderItemResponse(BaseModel):
    """Schema for a stored line item."""

    model_config = ConfigDict(from_attributes=True)

    food_item_id: UUID = Field(description="Food item identifier")
    food_item: FoodItemSummary | None = Field(default=None, description="Expanded food item")
    quantity: int = Field(ge=1, description="Quantity ordered")
    price: float = Field(description="Unit price multiplied by quantity")


class OrderResponse(BaseModel):
    """Schema for order API responses, with references expanded."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(description="Order unique identifier")
    customer_id: UUID = Field(description="Customer identifier")
    customer: CustomerSummary | None = Field(default=None, description="Expanded customer")
    shop_id: UUID = Field(description="Shop identifier")
    shop: ShopSummary | None = Field(default=None, description="Expanded shop")
    items: list[OrderItemResponse] = Field(description="Order line items")
    total_amount: float = Field(description="Order total")
    address: str = Field(description="Free-text delivery address")
    structured_address: StructuredAddressSchema | None = Field(default=None, description="Decomposed delivery address")
    status: OrderStatus = Field(description="Order status")
    payment_method: PaymentMethod = Field(description="Payment method")
    payment_status: PaymentStatus = Field(description="Payment status")
    payment_id: str | None = Field(default=None, description="Processor payment reference")
    payment_intent_id: str | None = Field(default=None, description="Processor payment intent reference")
    applied_offer_id: UUID | None = Field(default=None, description="Applied offer identifier")
    scheduled_for: datetime | None = Field(default=None, description="Deferred delivery time")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last modification timestamp")


class OrderListResponse(BaseModel):
    """Schema for order list API responses."""

    model_config = ConfigDict(from_attributes=True)

    items: list[OrderResponse] = Field(description="List of orders")
