"""Supabase client for the order store."""

import logging
from functools import lru_cache
from typing import Any

from supabase import Client, create_client

from src.core.config import get_settings

logger = logging.getLogger(__name__)


@lru_cache
def get_supabase_client() -> Client:
    """Process-wide Supabase client.

    Built with the secret key, which bypasses row level security: the
    service writes ``orders`` and ``payment_events`` and reads ``users``,
    ``shops``, ``food_items`` and ``offers`` on behalf of every caller.
    """
    settings = get_settings()
    return create_client(settings.supabase_url, settings.supabase_secret_key)


async def check_database_connection() -> dict[str, Any]:
    """Probe the orders table.

    Returns:
        dict: ``healthy`` flag and, on failure, the ``error`` text.
    """
    try:
        get_supabase_client().table("orders").select("id").limit(1).execute()
    except Exception as e:
        logger.warning("Database readiness check failed: %s", str(e))
        return {"healthy": False, "error": str(e)}
    return {"healthy": True}
