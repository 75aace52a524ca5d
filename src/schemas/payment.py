"""Payment Pydantic schemas for API request/response models."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from src.schemas.order import OrderResponse, PaymentStatus


class PaymentIntentCreate(BaseModel):
    """Schema for POST /payments/create-intent."""

    order_id: str | None = Field(default=None, description="Order to collect payment for")
    amount: int | None = Field(
        default=None,
        gt=0,
        description="Amount in the smallest currency unit; defaults to the order total",
    )
    currency: str | None = Field(
        default=None,
        min_length=3,
        max_length=3,
        description="ISO currency code; defaults to the configured currency",
    )


class PaymentIntentResponse(BaseModel):
    """Schema for payment intent creation response."""

    client_secret: str = Field(description="Secret the client uses to confirm the payment")
    payment_intent_id: str = Field(description="Stripe PaymentIntent ID")


class PaymentConfirmRequest(BaseModel):
    """Schema for POST /payments/confirm/{order_id}."""

    payment_intent_id: str = Field(min_length=1, description="Stripe PaymentIntent ID")


class PaymentConfirmResponse(BaseModel):
    """Schema for payment confirmation response."""

    success: bool = Field(description="Whether the payment was recorded")
    order: OrderResponse = Field(description="Updated order")


class PaymentStatusResponse(BaseModel):
    """Processor-side state of a payment intent."""

    status: str = Field(description="Stripe PaymentIntent status")
    amount: int = Field(description="Amount in the smallest currency unit")
    currency: str = Field(description="ISO currency code")


class PaymentEventResponse(BaseModel):
    """Schema for a payment audit log entry."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    order_id: UUID
    event_type: str
    source: str
    payment_intent_id: str | None = None
    processor_event_id: str | None = None
    payment_status: PaymentStatus
    amount: int | None = None
    currency: str | None = None
    created_at: datetime


class PaymentEventListResponse(BaseModel):
    """Schema for the payment audit log of one order."""

    items: list[PaymentEventResponse] = Field(description="Payment events, oldest first")


class WebhookAck(BaseModel):
    """Acknowledgment returned to the payment processor."""

    received: bool = True
