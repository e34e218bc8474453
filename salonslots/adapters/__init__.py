"""
Adapters layer - Booking stores (in-memory and Supabase REST).
"""

from .memory_store import MemoryBookingStore
from .supabase_client import SupabaseClient

__all__ = ["MemoryBookingStore", "SupabaseClient"]
