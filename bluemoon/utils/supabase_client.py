"""Supabase client initialization and utilities."""

from typing import Optional

from supabase import create_client, Client

from bluemoon.config.settings import settings
from bluemoon.config.logger import app_logger

_supabase_client: Optional[Client] = None
_supabase_admin_client: Optional[Client] = None


def _build_client(key: str, key_name: str) -> Client:
    if not settings.SUPABASE_URL or not key:
        raise ValueError(
            f"Supabase URL and {key_name} must be configured. "
            f"Set SUPABASE_URL and SUPABASE_{key_name} in .env"
        )
    try:
        client = create_client(settings.SUPABASE_URL, key)
    except Exception as e:
        app_logger.error(f"Failed to initialize Supabase client ({key_name}): {e}")
        raise
    app_logger.info(f"Supabase client initialized ({key_name})")
    return client


def get_supabase_client() -> Client:
    """Get or create the Supabase client bound to the anon key.

    Used to verify user access tokens against Supabase Auth.

    Raises:
        ValueError: If Supabase URL or anon key is not configured
    """
    global _supabase_client

    if _supabase_client is None:
        _supabase_client = _build_client(settings.SUPABASE_ANON_KEY, "ANON_KEY")
    return _supabase_client


def get_supabase_admin_client() -> Client:
    """Get or create the Supabase client bound to the service role key.

    The activity log store and profile lookups go through this client,
    since both bypass row level security.

    Raises:
        ValueError: If Supabase URL or service role key is not configured
    """
    global _supabase_admin_client

    if _supabase_admin_client is None:
        _supabase_admin_client = _build_client(settings.SUPABASE_SERVICE_ROLE_KEY, "SERVICE_ROLE_KEY")
    return _supabase_admin_client
