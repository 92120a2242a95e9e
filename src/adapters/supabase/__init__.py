"""
Supabase adapters - PostgREST record store and Supabase Storage object store.
"""

from .client import SupabaseCredentials, create_supabase_gateways
from .records import SupabaseProjectRepo
from .storage import SupabaseObjectStore

__all__ = [
    "SupabaseCredentials",
    "SupabaseObjectStore",
    "SupabaseProjectRepo",
    "create_supabase_gateways",
]
