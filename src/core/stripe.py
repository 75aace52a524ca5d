"""Stripe SDK setup.

The SDK is configured through module-level attributes, so the module itself
is the client. Services obtain it through ``get_stripe()`` so tests can
substitute a mock.
"""

import logging
from typing import Any

import stripe

from src.core.config import Settings

logger = logging.getLogger(__name__)

# The SDK retries idempotent requests (PaymentIntent.create carries an
# idempotency key) on connection errors and 409/429/5xx responses.
MAX_NETWORK_RETRIES = 2


def configure_stripe(settings: Settings) -> None:
    """Apply the secret key and client options from settings.

    Called once from the application lifespan and from scripts. Without a
    secret key payment operations raise ``ServiceUnavailableError``.
    """
    if not settings.stripe_secret_key:
        logger.warning("STRIPE_SECRET_KEY is not set; payment endpoints will return 503")
        return

    stripe.api_key = settings.stripe_secret_key
    stripe.max_network_retries = MAX_NETWORK_RETRIES
    stripe.set_app_info(settings.app_name)
    logger.info(
        "Stripe configured (%s mode, webhooks %s)",
        "test" if settings.is_stripe_test_mode else "live",
        "enabled" if settings.stripe_webhook_secret else "disabled",
    )


def get_stripe() -> Any:
    """Return the configured Stripe module."""
    return stripe


async def check_payment_processor(settings: Settings) -> dict[str, Any]:
    """Report whether payments can be taken, without calling Stripe.

    Returns:
        dict: ``healthy`` flag and an ``error`` naming the missing setting.
    """
    if not settings.stripe_secret_key:
        return {"healthy": False, "error": "STRIPE_SECRET_KEY is not set"}
    if not settings.stripe_webhook_secret:
        return {"healthy": False, "error": "STRIPE_WEBHOOK_SECRET is not set"}
    return {"healthy": True}
