#!/usr/bin/env python
"""Script to reconcile orders whose payment outcome was never recorded.

This script:
1. Finds orders with a Stripe PaymentIntent but payment_status still pending
2. Retrieves each PaymentIntent from Stripe
3. Marks succeeded intents as paid/confirmed and failed intents as failed

It covers webhooks that were never delivered and clients that closed before
confirming. Safe to run repeatedly: already-recorded payments are skipped.

Usage:
    python scripts/reconcile_pending_payments.py [--limit N]

Requirements:
    - STRIPE_SECRET_KEY, SUPABASE_URL and SUPABASE_SECRET_KEY must be set
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add the project root to the path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.core.config import get_settings
from src.core.stripe import configure_stripe
from src.services.payment_service import PaymentService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


async def main(limit: int) -> int:
    """Run one reconciliation pass.

    Returns:
        int: Process exit code.
    """
    settings = get_settings()
    if not settings.stripe_secret_key:
        logger.error("STRIPE_SECRET_KEY is not set")
        return 1

    configure_stripe(settings)
    service = PaymentService(settings)
    counts = await service.reconcile_pending_payments(limit=limit)

    logger.info(
        "Examined %d orders: %d paid, %d failed, %d still pending",
        counts["examined"],
        counts["paid"],
        counts["failed"],
        counts["pending"],
    )
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--limit", type=int, default=100, help="Maximum orders to examine")
    args = parser.parse_args()
    sys.exit(asyncio.run(main(args.limit)))
