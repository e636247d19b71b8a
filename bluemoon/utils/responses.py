"""Response envelopes for the activity log API."""

from datetime import datetime, timezone
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

from bluemoon.config.settings import settings

T = TypeVar("T")

_EXAMPLE_LOG = {
    "id": 42,
    "user_id": "123e4567-e89b-12d3-a456-426614174000",
    "username": "admin1",
    "action": "vehicles_delete",
    "resource_type": "vehicles",
    "resource_id": "7",
    "status": "success",
    "created_at": "2025-10-19T08:15:00Z",
}


class ResponseMetadata(BaseModel):
    app_name: str = settings.APP_NAME
    app_version: str = settings.APP_VERSION
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SuccessResponse(BaseModel, Generic[T]):
    """Single-object envelope."""

    success: bool = True
    message: str = "Operation completed successfully"
    data: T
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)

    model_config = {"json_schema_extra": {"example": {
        "success": True,
        "message": "Activity log retrieved successfully",
        "data": _EXAMPLE_LOG,
    }}}


class ErrorResponse(BaseModel):
    """Body of unhandled 500 errors."""

    success: bool = False
    error: str
    detail: Optional[str] = None
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)


class PaginationMeta(BaseModel):
    page: int = Field(ge=1)
    limit: int = Field(ge=1, le=1000)
    total: int = Field(ge=0)
    pages: int = Field(ge=0)
    has_next: bool
    has_prev: bool

    @classmethod
    def from_counts(cls, page: int, limit: int, total: int) -> "PaginationMeta":
        pages = -(-total // limit)
        return cls(
            page=page,
            limit=limit,
            total=total,
            pages=pages,
            has_next=page < pages,
            has_prev=page > 1,
        )


class PaginatedResponse(BaseModel, Generic[T]):
    """Page of activity logs with offset pagination metadata."""

    success: bool = True
    message: str = "Activity logs retrieved successfully"
    data: List[T]
    pagination: PaginationMeta
    metadata: ResponseMetadata = Field(default_factory=ResponseMetadata)

    model_config = {"json_schema_extra": {"example": {
        "success": True,
        "message": "Activity logs retrieved successfully",
        "data": [_EXAMPLE_LOG],
        "pagination": {"page": 1, "limit": 50, "total": 1, "pages": 1, "has_next": False, "has_prev": False},
    }}}


def success_response(data: T, message: str = "Operation completed successfully") -> SuccessResponse[T]:
    return SuccessResponse(data=data, message=message)


def error_response(error: str, detail: Optional[str] = None) -> ErrorResponse:
    return ErrorResponse(error=error, detail=detail)


def paginated_response(data: List[T], page: int, limit: int, total: int) -> PaginatedResponse[T]:
    return PaginatedResponse(data=data, pagination=PaginationMeta.from_counts(page, limit, total))
