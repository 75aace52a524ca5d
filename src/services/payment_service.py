"""Payment intent, confirmation and webhook reconciliation service."""

import logging
from datetime import datetime, timezone
from typing import Any

import stripe
from supabase import Client

from src.api.middleware.error_handler import (
    BusinessRuleError,
    PaymentError,
    PaymentProcessorError,
    ServiceUnavailableError,
    ValidationError,
)
from src.core.config import Settings
from src.core.stripe import get_stripe
from src.core.supabase import get_supabase_client
from src.models.order import Order, OrderUpdate
from src.models.payment_event import PaymentEvent, PaymentEventSource, PaymentEventType
from src.services.order_service import OrderService
from src.services.order_status import can_transition
from src.services.pricing import to_minor_units

logger = logging.getLogger(__name__)

SUCCEEDED = "succeeded"

EVENT_PAYMENT_SUCCEEDED = "payment_intent.succeeded"
EVENT_PAYMENT_FAILED = "payment_intent.payment_failed"


def intent_order_id(intent: Any) -> str | None:
    """Read the order id stamped into a PaymentIntent's metadata.

    Stripe objects support item access and ``in`` but not dict methods.
    """
    metadata = intent["metadata"] if "metadata" in intent else None
    if metadata is not None and "order_id" in metadata:
        return metadata["order_id"]
    return None


class PaymentService:
    """Service for Stripe PaymentIntents and order payment state."""

    def __init__(
        self,
        settings: Settings,
        supabase_client: Client | None = None,
        order_service: OrderService | None = None,
    ) -> None:
        """Initialize payment service with clients.

        Args:
            settings: Application settings (Stripe secrets, currency).
            supabase_client: Optional Supabase client for testing.
            order_service: Optional order service sharing the same client.
        """
        self.settings = settings
        self.client = supabase_client or get_supabase_client()
        self.stripe = get_stripe()
        self.orders = order_service or OrderService(settings, self.client)

    def _require_stripe(self) -> None:
        if not self.settings.stripe_secret_key:
            raise ServiceUnavailableError(
                "Stripe is not configured. Please set STRIPE_SECRET_KEY environment variable."
            )

    def _record_event(
        self,
        order_id: str,
        event_type: PaymentEventType,
        source: PaymentEventSource,
        payment_status: str,
        payment_intent_id: str | None = None,
        processor_event_id: str | None = None,
        amount: int | None = None,
        currency: str | None = None,
    ) -> None:
        """Append an entry to the payment audit log."""
        self.client.table("payment_events").insert(
            {
                "order_id": str(order_id),
                "event_type": event_type,
                "source": source,
                "payment_intent_id": payment_intent_id,
                "processor_event_id": processor_event_id,
                "payment_status": payment_status,
                "amount": amount,
                "currency": currency,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }
        ).execute()

    async def create_payment_intent(
        self,
        order_id: str | None,
        amount: int | None = None,
        currency: str | None = None,
    ) -> dict[str, Any]:
        """Create a Stripe PaymentIntent for an order.

        The order keeps status pending/pending until the payment is confirmed.

        Args:
            order_id: Order to collect payment for.
            amount: Amount in the smallest currency unit. Defaults to the order total.
            currency: ISO currency code. Defaults to the configured currency.

        Returns:
            dict: Contains client_secret and payment_intent_id.

        Raises:
            ValidationError: Missing order id or amount not matching the order total.
            NotFoundError: Order does not exist.
            BusinessRuleError: Order already paid or cancelled.
            PaymentProcessorError: If the Stripe API call fails.
        """
        if not order_id:
            raise ValidationError("Order ID is required")
        self._require_stripe()

        order = self.orders.get_order_row(order_id)

        if order.get("payment_status") == "paid":
            raise BusinessRuleError("Order has already been paid")
        if order.get("status") == "cancelled":
            raise BusinessRuleError("Cannot collect payment for a cancelled order")

        expected_amount = to_minor_units(order["total_amount"])
        if amount is None:
            amount = expected_amount
        elif amount != expected_amount:
            raise ValidationError(
                f"Payment amount {amount} does not match order total {expected_amount}"
            )
        currency = (currency or self.settings.default_currency).lower()

        try:
            intent = self.stripe.PaymentIntent.create(
                amount=amount,
                currency=currency,
                metadata={"order_id": str(order["id"])},
                idempotency_key=f"order-{order['id']}-{amount}-{currency}",
            )
        except stripe.StripeError as e:
            logger.error("Stripe error creating payment intent for order %s: %s", order["id"], str(e))
            raise PaymentProcessorError(f"Payment intent creation failed: {e.user_message or str(e)}") from e

        if self.orders.apply_update(order, {"payment_intent_id": intent.id}, unchanged="payment_status") is None:
            raise BusinessRuleError("Order was modified by another request, please retry")
        self._record_event(
            order["id"],
            "intent_created",
            "api",
            order.get("payment_status", "pending"),
            payment_intent_id=intent.id,
            amount=amount,
            currency=currency,
        )

        logger.info("Created payment intent %s for order %s (%d %s)", intent.id, order["id"], amount, currency)
        return {
            "client_secret": intent.client_secret,
            "payment_intent_id": intent.id,
        }

    def _retrieve_intent(self, payment_intent_id: str) -> Any:
        self._require_stripe()
        try:
            return self.stripe.PaymentIntent.retrieve(payment_intent_id)
        except stripe.StripeError as e:
            logger.error("Stripe error retrieving payment intent %s: %s", payment_intent_id, str(e))
            raise PaymentProcessorError(f"Could not retrieve payment intent: {e.user_message or str(e)}") from e

    def _apply_success(
        self,
        order: Order,
        payment_intent_id: str,
        source: PaymentEventSource,
        processor_event_id: str | None = None,
        amount: int | None = None,
        currency: str | None = None,
    ) -> Order | None:
        """Mark an order paid, at most once per payment intent.

        The write is conditional on the payment status read with ``order``,
        so when confirmation and the webhook race on the same pending row
        only one of them updates the order and records the event.

        Returns:
            dict | None: The updated row, ``order`` if it was already paid,
            or None if a concurrent writer got there first.
        """
        if order.get("payment_status") == "paid":
            if order.get("payment_id") == payment_intent_id:
                logger.info(
                    "Payment %s already recorded for order %s, skipping (%s)",
                    payment_intent_id,
                    order["id"],
                    source,
                )
            else:
                logger.warning(
                    "Order %s already paid with %s, ignoring success for %s",
                    order["id"],
                    order.get("payment_id"),
                    payment_intent_id,
                )
            return order

        update: OrderUpdate = {"payment_status": "paid", "payment_id": payment_intent_id}
        if can_transition(order["status"], "confirmed"):
            update["status"] = "confirmed"
        else:
            logger.warning(
                "Order %s is %s, recording payment %s without status change",
                order["id"],
                order["status"],
                payment_intent_id,
            )

        updated = self.orders.apply_update(order, update, unchanged="payment_status")
        if updated is None:
            logger.info(
                "Payment %s for order %s applied concurrently, skipping (%s)",
                payment_intent_id,
                order["id"],
                source,
            )
            return None

        self._record_event(
            order["id"],
            "payment_succeeded",
            source,
            "paid",
            payment_intent_id=payment_intent_id,
            processor_event_id=processor_event_id,
            amount=amount,
            currency=currency,
        )
        logger.info("Order %s paid via %s (%s)", order["id"], payment_intent_id, source)
        return updated

    def _apply_failure(
        self,
        order: Order,
        payment_intent_id: str,
        source: PaymentEventSource,
        processor_event_id: str | None = None,
    ) -> Order | None:
        """Mark an order's payment as failed without touching its status.

        Failures of an intent other than the one the order tracks are ignored.
        """
        recorded_intent = order.get("payment_intent_id")
        if recorded_intent and recorded_intent != payment_intent_id:
            logger.info(
                "Ignoring failure of %s for order %s, which tracks %s",
                payment_intent_id,
                order["id"],
                recorded_intent,
            )
            return None
        if order.get("payment_status") in ("paid", "refunded"):
            logger.warning(
                "Ignoring failed payment %s for order %s in payment status %s",
                payment_intent_id,
                order["id"],
                order.get("payment_status"),
            )
            return order
        if order.get("payment_status") == "failed" and order.get("payment_intent_id") == payment_intent_id:
            logger.info("Failure of %s already recorded for order %s", payment_intent_id, order["id"])
            return order

        updated = self.orders.apply_update(
            order,
            {"payment_status": "failed", "payment_intent_id": payment_intent_id},
            unchanged="payment_status",
        )
        if updated is None:
            return None

        self._record_event(
            order["id"],
            "payment_failed",
            source,
            "failed",
            payment_intent_id=payment_intent_id,
            processor_event_id=processor_event_id,
        )
        logger.info("Order %s payment failed via %s (%s)", order["id"], payment_intent_id, source)
        return updated

    async def confirm_payment(self, order_id: str, payment_intent_id: str) -> dict[str, Any]:
        """Finalize an order after the client reports a successful payment.

        The intent status is re-read from Stripe rather than trusted from the
        client. Nothing is written unless Stripe reports the intent succeeded.

        Args:
            order_id: The order's UUID.
            payment_intent_id: Stripe PaymentIntent ID.

        Returns:
            dict: The expanded order.

        Raises:
            PaymentError: If the intent has not succeeded.
            ValidationError: If the intent belongs to a different order.
            NotFoundError: If the order does not exist.
        """
        intent = self._retrieve_intent(payment_intent_id)

        if intent.status != SUCCEEDED:
            logger.warning(
                "Payment %s for order %s not successful: %s",
                payment_intent_id,
                order_id,
                intent.status,
            )
            raise PaymentError(
                f"Payment not successful. Status: {intent.status}",
                processor_status=intent.status,
            )

        order = self.orders.get_order_row(order_id)

        owner = intent_order_id(intent)
        if owner and owner != str(order["id"]):
            raise ValidationError(f"Payment intent {payment_intent_id} does not belong to this order")

        self._apply_success(order, payment_intent_id, "api", amount=intent.amount, currency=intent.currency)
        return await self.orders.get_order(order["id"])

    async def get_payment_status(self, payment_intent_id: str) -> dict[str, Any]:
        """Get the processor-side status of a payment intent.

        Returns:
            dict: status, amount and currency as reported by Stripe.
        """
        intent = self._retrieve_intent(payment_intent_id)
        return {
            "status": intent.status,
            "amount": intent.amount,
            "currency": intent.currency,
        }

    async def list_payment_events(self, order_id: str) -> list[PaymentEvent]:
        """Get the payment audit log for an order, oldest first."""
        order = self.orders.get_order_row(order_id)
        response = (
            self.client.table("payment_events")
            .select("*")
            .eq("order_id", str(order["id"]))
            .order("created_at")
            .execute()
        )
        return response.data or []

    def verify_webhook_signature(self, payload: bytes, sig_header: str) -> stripe.Event:
        """Verify Stripe webhook signature and return event.

        Args:
            payload: Raw webhook payload bytes.
            sig_header: Stripe-Signature header value.

        Returns:
            stripe.Event: Verified event.

        Raises:
            ValueError: If signature is invalid or the webhook secret is not configured.
        """
        if not self.settings.stripe_webhook_secret:
            raise ValueError("Stripe webhook secret is not configured. Please set STRIPE_WEBHOOK_SECRET environment variable.")

        try:
            return self.stripe.Webhook.construct_event(
                payload, sig_header, self.settings.stripe_webhook_secret
            )
        except stripe.SignatureVerificationError as e:
            logger.warning("Invalid webhook signature: %s", str(e))
            raise ValueError("Invalid webhook signature") from e
        except ValueError as e:
            # construct_event raises ValueError for a body that is not JSON
            logger.warning("Invalid webhook payload: %s", str(e))
            raise ValueError("Invalid webhook payload") from e

    async def handle_webhook_event(self, event: stripe.Event) -> Order | None:
        """Apply a verified Stripe event to the matching order.

        Missing orders are logged and ignored; the caller always acknowledges.

        Args:
            event: Verified Stripe event.

        Returns:
            dict | None: Updated order row, or None if nothing was applied.
        """
        event_id = event["id"]
        event_type = event["type"]
        if event_type not in (EVENT_PAYMENT_SUCCEEDED, EVENT_PAYMENT_FAILED):
            logger.info("Unhandled webhook event type: %s", event_type)
            return None

        intent = event["data"]["object"]
        order_id = intent_order_id(intent)
        if not order_id:
            logger.warning("Webhook %s missing order_id in metadata: %s", event_id, intent["id"])
            return None

        order = self.orders.find_order_row(order_id)
        if not order:
            logger.warning("Order not found for webhook %s: %s", event_id, order_id)
            return None

        if event_type == EVENT_PAYMENT_SUCCEEDED:
            return self._apply_success(
                order,
                intent["id"],
                "webhook",
                processor_event_id=event_id,
                amount=intent["amount"],
                currency=intent["currency"],
            )
        return self._apply_failure(order, intent["id"], "webhook", processor_event_id=event_id)

    async def reconcile_pending_payments(self, limit: int = 100) -> dict[str, int]:
        """Re-check orders whose payment intent never reported an outcome.

        Args:
            limit: Maximum number of orders to examine.

        Returns:
            dict: Counts of examined, paid, failed and still pending orders.
        """
        self._require_stripe()
        response = (
            self.client.table("orders")
            .select("*")
            .eq("payment_status", "pending")
            .not_.is_("payment_intent_id", "null")
            .order("created_at")
            .limit(limit)
            .execute()
        )

        counts = {"examined": 0, "paid": 0, "failed": 0, "pending": 0}
        for order in response.data or []:
            counts["examined"] += 1
            intent_id = order["payment_intent_id"]
            try:
                intent = self.stripe.PaymentIntent.retrieve(intent_id)
            except stripe.StripeError as e:
                logger.error("Could not retrieve %s for order %s: %s", intent_id, order["id"], str(e))
                counts["pending"] += 1
                continue

            if intent.status == SUCCEEDED:
                self._apply_success(
                    order, intent_id, "reconciliation", amount=intent.amount, currency=intent.currency
                )
                counts["paid"] += 1
            elif intent.status in ("requires_payment_method", "canceled") and getattr(intent, "last_payment_error", None):
                self._apply_failure(order, intent_id, "reconciliation")
                counts["failed"] += 1
            else:
                counts["pending"] += 1

        logger.info("Payment reconciliation finished: %s", counts)
        return counts

