from functools import lru_cache

from supabase import Client, create_client

from kinbook.config import settings


@lru_cache(maxsize=1)
def get_supabase() -> Client:
    """Supabase client (created once, on first use)."""
    if not settings.SUPABASE_URL or not settings.SUPABASE_KEY:
        raise RuntimeError("SUPABASE_URL and SUPABASE_KEY must be set")

    return create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
