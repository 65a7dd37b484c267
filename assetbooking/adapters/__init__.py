"""
Adapters layer - Booking stores (Supabase, local file, failover).
"""

from .base import BookingStore
from .factory import create_store
from .failover_store import FailoverStore
from .local_store import LocalStore
from .supabase_store import SupabaseStore

__all__ = ["BookingStore", "create_store", "FailoverStore", "LocalStore", "SupabaseStore"]
