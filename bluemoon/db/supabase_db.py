"""Supabase REST API database operations shared across the app.

Operations go through Supabase's REST API (HTTPS port 443) using the
service role client.
"""

from typing import Optional, Dict, Any

from bluemoon.utils.supabase_client import get_supabase_admin_client
from bluemoon.config.logger import app_logger


# ============================================
# Profile Operations
# ============================================

async def get_profile_by_id(user_id: str) -> Optional[Dict[str, Any]]:
    """Get the ``profiles`` row (role, username, apartment) for an auth user."""
    try:
        client = get_supabase_admin_client()
        response = client.table('profiles').select('*').eq('id', user_id).limit(1).execute()

        if response.data:
            return response.data[0]
        return None
    except Exception as e:
        app_logger.error(f"Failed to get profile by ID: {e}")
        raise


# ============================================
# Health Check
# ============================================

async def ping_supabase() -> tuple[bool, str]:
    """Check if Supabase connection is healthy."""
    try:
        client = get_supabase_admin_client()
        client.table('profiles').select('id').limit(1).execute()
        return True, "Supabase REST API connection healthy"
    except Exception as e:
        return False, f"Supabase connection failed: {str(e)}"
