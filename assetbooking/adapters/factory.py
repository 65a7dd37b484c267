"""
Builds the configured booking store.
"""

import logging

from ..config import AppConfig
from .base import BookingStore
from .failover_store import FailoverStore
from .local_store import LocalStore
from .supabase_store import SupabaseStore

logger = logging.getLogger(__name__)


def create_store(config: AppConfig, force_local: bool = False) -> BookingStore:
    """
    Select the store for the configured backend.

    The hosted backend is always paired with the local store as fallback.
    Without Supabase credentials the local store is used on its own.
    """
    local_store = LocalStore(config.local_store.path)

    if force_local or config.backend == "local":
        return local_store

    if not config.supabase.is_configured():
        logger.warning("Supabase URL or API key missing, using local store only")
        return local_store

    supabase_store = SupabaseStore(
        url=config.supabase.url,
        api_key=config.supabase.api_key,
        timeout=config.supabase.timeout_seconds,
        assets_table=config.supabase.assets_table,
        bookings_table=config.supabase.bookings_table,
    )
    return FailoverStore(
        primary=supabase_store,
        fallback=local_store,
        cooldown_seconds=config.failover_cooldown_seconds,
    )
