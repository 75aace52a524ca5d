"""Payment API routes for Stripe PaymentIntents and webhooks."""

import logging

from fastapi import APIRouter, HTTPException, Request, status

from src.api.deps import PaymentServiceDep
from src.schemas.order import OrderResponse
from src.schemas.payment import (
    PaymentConfirmRequest,
    PaymentConfirmResponse,
    PaymentEventListResponse,
    PaymentEventResponse,
    PaymentIntentCreate,
    PaymentIntentResponse,
    PaymentStatusResponse,
    WebhookAck,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post(
    "/create-intent",
    response_model=PaymentIntentResponse,
    summary="Create Stripe PaymentIntent",
    description="Creates a PaymentIntent for an order and returns the client secret used to confirm it.",
)
async def create_payment_intent(
    data: PaymentIntentCreate,
    service: PaymentServiceDep,
) -> PaymentIntentResponse:
    """Create a payment intent for an order.

    Args:
        data: Order id and optional amount/currency.
        service: Payment service.

    Returns:
        PaymentIntentResponse: Client secret and intent id.
    """
    result = await service.create_payment_intent(
        order_id=data.order_id,
        amount=data.amount,
        currency=data.currency,
    )
    return PaymentIntentResponse(**result)


@router.post(
    "/confirm/{order_id}",
    response_model=PaymentConfirmResponse,
    summary="Confirm payment",
    description="Re-checks the PaymentIntent with Stripe and marks the order paid and confirmed.",
)
async def confirm_payment(
    order_id: str,
    data: PaymentConfirmRequest,
    service: PaymentServiceDep,
) -> PaymentConfirmResponse:
    """Confirm a payment the client completed.

    Raises:
        PaymentError: 402 with the Stripe status if the intent has not succeeded.
    """
    order = await service.confirm_payment(order_id, data.payment_intent_id)
    return PaymentConfirmResponse(success=True, order=OrderResponse(**order))


@router.get(
    "/status/{payment_intent_id}",
    response_model=PaymentStatusResponse,
    summary="Get payment status",
)
async def get_payment_status(
    payment_intent_id: str,
    service: PaymentServiceDep,
) -> PaymentStatusResponse:
    """Return the Stripe-side status of a PaymentIntent."""
    result = await service.get_payment_status(payment_intent_id)
    return PaymentStatusResponse(**result)


@router.get(
    "/events/{order_id}",
    response_model=PaymentEventListResponse,
    summary="List payment events",
    description="Returns the append-only payment history of an order.",
)
async def list_payment_events(order_id: str, service: PaymentServiceDep) -> PaymentEventListResponse:
    """Return the payment audit log of an order."""
    events = await service.list_payment_events(order_id)
    return PaymentEventListResponse(items=[PaymentEventResponse(**event) for event in events])


@router.post(
    "/webhook",
    response_model=WebhookAck,
    status_code=status.HTTP_200_OK,
    summary="Handle Stripe webhooks",
    description="Receives and processes Stripe webhook events. Requires valid signature.",
)
async def stripe_webhook(request: Request, service: PaymentServiceDep) -> WebhookAck:
    """Handle Stripe webhook events.

    The Stripe signature is verified against the raw body before anything
    is processed. Once verified the event is always acknowledged, whether or
    not a matching order exists.

    Handles:
    - payment_intent.succeeded: marks the order paid and confirmed
    - payment_intent.payment_failed: marks the payment failed, status unchanged

    Args:
        request: FastAPI request object for reading raw body and headers.
        service: Payment service.

    Returns:
        WebhookAck: Acknowledgment.

    Raises:
        HTTPException: 400 if the signature header is missing or invalid.
    """
    payload = await request.body()

    sig_header = request.headers.get("stripe-signature")
    if not sig_header:
        logger.error("Missing Stripe-Signature header in webhook request")
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing Stripe-Signature header",
        )

    logger.debug("Webhook payload size: %d bytes", len(payload))

    try:
        event = service.verify_webhook_signature(payload, sig_header)
    except ValueError as e:
        logger.error("Webhook rejected: %s", str(e))
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid signature",
        ) from e

    logger.info("Processing Stripe webhook event %s: %s", event["id"], event["type"])
    await service.handle_webhook_event(event)

    return WebhookAck(received=True)
