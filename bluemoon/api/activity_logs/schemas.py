"""Activity log request and response schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from bluemoon.models.activity_log import ActivityStatus


class ActivityLogCreateRequest(BaseModel):
    """Request schema for logging an activity manually."""

    action: str = Field(..., min_length=1, max_length=100, description="Action name, e.g. 'bills_export'")
    resource_type: str = Field(..., min_length=1, max_length=50, description="Resource type, e.g. 'bills'")
    resource_id: Optional[str] = Field(default=None, description="Affected resource ID")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Free-form details")
    status: ActivityStatus = Field(default="success", description="Outcome of the action")

    model_config = {"json_schema_extra": {"example": {
        "action": "bills_export",
        "resource_type": "bills",
        "resource_id": None,
        "details": {"format": "csv", "period": "2025-10"},
        "status": "success"
    }}}


class ActivityLogResponse(BaseModel):
    """Response schema for one activity log row."""

    id: Any = Field(..., description="Activity log ID")
    user_id: Optional[str] = Field(default=None, description="Actor user ID")
    username: Optional[str] = Field(default=None, description="Actor username or email")
    action: str = Field(..., description="Derived or manual action name")
    resource_type: Optional[str] = Field(default=None, description="Resource type")
    resource_id: Optional[str] = Field(default=None, description="Resource ID")
    details: Optional[Dict[str, Any]] = Field(default=None, description="Redacted request snapshot")
    ip_address: Optional[str] = Field(default=None, description="Client IP address")
    user_agent: Optional[str] = Field(default=None, description="Client user agent")
    status: str = Field(..., description="success, warning or failure")
    created_at: Optional[datetime] = Field(default=None, description="Time the row was written")

    model_config = {"json_schema_extra": {"example": {
        "id": 42,
        "user_id": "123e4567-e89b-12d3-a456-426614174000",
        "username": "admin1",
        "action": "vehicles_delete",
        "resource_type": "vehicles",
        "resource_id": "7",
        "details": {"method": "DELETE", "path": "/api/vehicles/7", "statusCode": 200},
        "ip_address": "10.0.0.12",
        "user_agent": "Mozilla/5.0",
        "status": "success",
        "created_at": "2025-10-19T08:15:00Z"
    }}}


class ActivityStatsResponse(BaseModel):
    """Response schema for activity statistics."""

    total: int
    by_action: Dict[str, int]
    by_resource_type: Dict[str, int]
    by_status: Dict[str, int]
    recent_activity: List[Dict[str, Any]]


class CleanupResponse(BaseModel):
    """Response schema for the retention cleanup."""

    days_to_keep: int
    deleted: int
