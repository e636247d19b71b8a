"""Activity log models (append-only audit trail)."""

from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict

ActivityStatus = Literal["success", "failure", "warning"]


class Actor(BaseModel):
    """Authenticated identity attached to a request by the auth dependency."""

    id: str
    email: Optional[str] = None
    username: Optional[str] = None
    full_name: Optional[str] = None
    role: str = "user"
    apartment_number: Optional[str] = None

    @property
    def label(self) -> Optional[str]:
        return self.username or self.email


class ActivityEvent(BaseModel):
    """One audited action, as handed to the activity log store.

    Immutable once built. ``id`` and ``created_at`` are assigned by the
    store when the row is inserted.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str
    username: Optional[str] = None
    action: str
    resource_type: str
    resource_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    status: ActivityStatus = "success"

    def to_record(self) -> Dict[str, Any]:
        """Row payload for the ``activity_logs`` table."""
        return self.model_dump()
