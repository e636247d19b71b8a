"""Models module."""

from bluemoon.models.activity_log import ActivityEvent, ActivityStatus, Actor

__all__ = [
    "Actor",
    "ActivityEvent",
    "ActivityStatus",
]
