"""Payment event model type definitions."""

from datetime import datetime
from typing import Literal, TypedDict
from uuid import UUID

from src.models.order import PaymentStatus

PaymentEventType = Literal["intent_created", "payment_succeeded", "payment_failed"]
PaymentEventSource = Literal["api", "webhook", "reconciliation"]


class PaymentEvent(TypedDict):
    """payment_events table row.

    Append-only: rows are inserted and never updated. The latest applied
    event for an order determines ``orders.payment_status``.
    """

    id: UUID
    order_id: UUID
    event_type: PaymentEventType
    source: PaymentEventSource
    payment_intent_id: str | None
    processor_event_id: str | None
    payment_status: PaymentStatus
    amount: int | None
    currency: str | None
    created_at: datetime
