"""Activity log API routes.

Read side of the audit trail plus manual logging and retention cleanup.
Paths under this prefix are excluded from the activity logger itself.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request, status

from bluemoon.api.activity_logs.schemas import (
    ActivityLogCreateRequest,
    ActivityLogResponse,
    ActivityStatsResponse,
    CleanupResponse,
)
from bluemoon.config.logger import app_logger
from bluemoon.db import activity_logs as store
from bluemoon.middleware.activity_logger import log_activity
from bluemoon.models.activity_log import ActivityStatus, Actor
from bluemoon.utils.auth import CurrentUser, RequireAdmin, RequireAdminOrManager
from bluemoon.utils.responses import (
    PaginatedResponse,
    SuccessResponse,
    paginated_response,
    success_response,
)

router = APIRouter(prefix="/api/activity-logs", tags=["activity-logs"])


def _store_failure(operation: str, error: Exception) -> HTTPException:
    app_logger.error(f"{operation} failed: {error}")
    return HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"Failed to {operation}",
    )


@router.get("", response_model=PaginatedResponse[ActivityLogResponse])
async def list_activity_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=1000),
    user_id: Optional[str] = Query(None, description="Filter by user ID"),
    action: Optional[str] = Query(None, description="Filter by action"),
    resource_type: Optional[str] = Query(None, description="Filter by resource type"),
    status_filter: Optional[ActivityStatus] = Query(None, alias="status", description="Filter by status"),
    start_date: Optional[datetime] = Query(None, description="Logs from this time"),
    end_date: Optional[datetime] = Query(None, description="Logs until this time"),
    search: Optional[str] = Query(None, description="Search username, action or resource type"),
    actor: Actor = RequireAdminOrManager,
):
    """List all activity logs (admin/manager only)."""
    app_logger.info(f"Activity logs listed by {actor.label} (role: {actor.role})")
    try:
        rows, total = await store.get_activity_logs(
            page=page,
            limit=limit,
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            status=status_filter,
            start_date=start_date,
            end_date=end_date,
            search=search,
        )
    except Exception as e:
        raise _store_failure("fetch activity logs", e)

    return paginated_response(data=rows, page=page, limit=limit, total=total)


@router.get("/me", response_model=PaginatedResponse[ActivityLogResponse])
async def list_my_activity_logs(
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=1000),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    actor: Actor = CurrentUser,
):
    """List the current user's own activity logs."""
    try:
        rows, total = await store.get_activity_logs(
            page=page,
            limit=limit,
            user_id=actor.id,
            start_date=start_date,
            end_date=end_date,
        )
    except Exception as e:
        raise _store_failure("fetch activity logs", e)

    return paginated_response(data=rows, page=page, limit=limit, total=total)


@router.get("/stats", response_model=SuccessResponse[ActivityStatsResponse])
async def activity_stats(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    actor: Actor = RequireAdminOrManager,
):
    """Activity counts by action, resource type and status (admin/manager only)."""
    try:
        stats = await store.get_activity_stats(start_date=start_date, end_date=end_date)
    except Exception as e:
        raise _store_failure("fetch activity statistics", e)

    return success_response(data=stats, message="Activity statistics retrieved successfully")


@router.post("", response_model=SuccessResponse[ActivityLogResponse], status_code=status.HTTP_201_CREATED)
async def create_activity_log(
    payload: ActivityLogCreateRequest,
    request: Request,
    actor: Actor = CurrentUser,
):
    """Record an activity manually for the current user."""
    created = await log_activity(
        request,
        action=payload.action,
        resource_type=payload.resource_type,
        resource_id=payload.resource_id,
        details=payload.details,
        status=payload.status,
    )
    if created is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create activity log",
        )

    return success_response(data=created, message="Activity log created successfully")


@router.delete("/cleanup", response_model=SuccessResponse[CleanupResponse])
async def cleanup_activity_logs(
    days_to_keep: int = Query(90, ge=1, description="Number of days of logs to keep"),
    actor: Actor = RequireAdmin,
):
    """Delete activity logs older than ``days_to_keep`` days (admin only)."""
    try:
        deleted = await store.delete_old_activity_logs(days_to_keep)
    except Exception as e:
        raise _store_failure("cleanup old logs", e)

    app_logger.info(f"ACTIVITY cleanup by {actor.label}: kept {days_to_keep} days, removed {deleted}")
    return success_response(
        data=CleanupResponse(days_to_keep=days_to_keep, deleted=deleted),
        message=f"Successfully deleted logs older than {days_to_keep} days",
    )


@router.get("/{log_id}", response_model=SuccessResponse[ActivityLogResponse])
async def get_activity_log(log_id: str, actor: Actor = CurrentUser):
    """Get one activity log by ID."""
    try:
        row = await store.get_activity_log_by_id(log_id)
    except Exception as e:
        raise _store_failure("fetch activity log", e)

    if not row:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Activity log not found",
        )

    return success_response(data=row, message="Activity log retrieved successfully")
