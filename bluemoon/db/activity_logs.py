"""Activity log store on the Supabase ``activity_logs`` table.

The table is append-only from the application's point of view: rows are
inserted by the audit interceptor or by manual logging, read by the
reporting endpoints, and removed only by the retention cleanup.
"""

from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from starlette.concurrency import run_in_threadpool

from bluemoon.config.logger import app_logger
from bluemoon.config.settings import settings
from bluemoon.models.activity_log import ActivityEvent
from bluemoon.utils.supabase_client import get_supabase_admin_client

STAT_STATUSES = ("success", "failure", "warning")
RECENT_ACTIVITY_LIMIT = 10

# Characters with meaning inside a PostgREST or=(...) filter
_SEARCH_RESERVED = str.maketrans("", "", ",()")


def _table():
    return get_supabase_admin_client().table(settings.ACTIVITY_LOG_TABLE)


def _insert(record: Dict[str, Any]):
    return _table().insert(record).execute()


async def create_activity_log(event: ActivityEvent) -> Dict[str, Any]:
    """Insert one activity log row and return it.

    The blocking Supabase call runs in the threadpool, off the event loop.
    """
    try:
        response = await run_in_threadpool(_insert, event.to_record())
    except Exception as e:
        app_logger.error(f"ACTIVITY insert failed: {e}")
        raise

    if not response.data:
        raise RuntimeError("Failed to insert activity log - no data returned")
    return response.data[0]


async def get_activity_logs(
    page: int = 1,
    limit: int = 50,
    user_id: Optional[str] = None,
    action: Optional[str] = None,
    resource_type: Optional[str] = None,
    status: Optional[str] = None,
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    search: Optional[str] = None,
) -> Tuple[List[Dict[str, Any]], int]:
    """Get activity logs with filters and pagination, newest first.

    Returns:
        The page of rows and the total number of rows matching the filters.
    """
    offset = (page - 1) * limit

    try:
        query = _table().select('*', count='exact')

        for column, value in (
            ('user_id', user_id),
            ('action', action),
            ('resource_type', resource_type),
            ('status', status),
        ):
            if value:
                query = query.eq(column, value)

        if start_date:
            query = query.gte('created_at', start_date.isoformat())
        if end_date:
            query = query.lte('created_at', end_date.isoformat())

        if search:
            term = search.translate(_SEARCH_RESERVED).strip()
            if term:
                query = query.or_(
                    f"username.ilike.%{term}%,action.ilike.%{term}%,resource_type.ilike.%{term}%"
                )

        response = (
            query
            .order('created_at', desc=True)
            .range(offset, offset + limit - 1)
            .execute()
        )
    except Exception as e:
        app_logger.error(f"Failed to fetch activity logs: {e}")
        raise

    rows = response.data or []
    total = response.count if response.count is not None else len(rows)
    return rows, total


async def get_activity_log_by_id(log_id: str) -> Optional[Dict[str, Any]]:
    try:
        response = _table().select('*').eq('id', log_id).limit(1).execute()
    except Exception as e:
        app_logger.error(f"Failed to fetch activity log {log_id}: {e}")
        raise

    if response.data:
        return response.data[0]
    return None


def summarize_activity(rows: List[Dict[str, Any]]) -> Dict[str, Any]:
    """Aggregate counts over activity rows ordered newest first."""
    by_status = dict.fromkeys(STAT_STATUSES, 0)
    by_status.update(Counter(row.get('status') for row in rows))

    return {
        "total": len(rows),
        "by_action": dict(Counter(row.get('action') for row in rows)),
        "by_resource_type": dict(Counter(row.get('resource_type') for row in rows)),
        "by_status": by_status,
        "recent_activity": rows[:RECENT_ACTIVITY_LIMIT],
    }


async def get_activity_stats(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Activity statistics for the given ``created_at`` window."""
    try:
        query = _table().select('id, username, action, resource_type, resource_id, status, created_at')
        if start_date:
            query = query.gte('created_at', start_date.isoformat())
        if end_date:
            query = query.lte('created_at', end_date.isoformat())
        response = query.order('created_at', desc=True).execute()
    except Exception as e:
        app_logger.error(f"Failed to fetch activity stats: {e}")
        raise

    return summarize_activity(response.data or [])


async def delete_old_activity_logs(days_to_keep: int = 90) -> int:
    """Retention cleanup: delete rows older than ``days_to_keep`` days.

    This is the only delete path for activity logs.

    Returns:
        Number of rows removed.
    """
    cutoff = datetime.now(timezone.utc) - timedelta(days=days_to_keep)

    try:
        response = _table().delete().lt('created_at', cutoff.isoformat()).execute()
    except Exception as e:
        app_logger.error(f"Failed to delete old activity logs: {e}")
        raise

    deleted = len(response.data or [])
    app_logger.info(f"ACTIVITY cleanup removed {deleted} rows older than {cutoff.isoformat()}")
    return deleted
