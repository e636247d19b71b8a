"""
Activity audit middleware.

Records an activity log entry for successful, state-changing requests made
by an authenticated user. The handler's response is passed through
untouched; the write itself is attached to the response as a background
task, so it runs only after the body has been sent to the client.

Audit logging is best-effort: a failed write is reported to the local log
and never reaches the client.
"""

import asyncio
import json
import re
from typing import Any, Awaitable, Callable, Dict, Iterable, NamedTuple, Optional

from fastapi import Request
from starlette.background import BackgroundTask, BackgroundTasks
from starlette.responses import Response

from bluemoon.config.logger import app_logger
from bluemoon.config.settings import settings
from bluemoon.db.activity_logs import create_activity_log
from bluemoon.models.activity_log import ActivityEvent, Actor
from bluemoon.utils.auth import get_request_actor

ActivityWriter = Callable[[ActivityEvent], Awaitable[Any]]

DEFAULT_ACTIONS = ("POST", "PUT", "PATCH", "DELETE")
DEFAULT_EXCLUDE_PATHS = ("/api/health", "/api/activity-logs")

DIGITS_PATTERN = re.compile(r"[0-9]+")
UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)

# Checked in order, before the generic resource/verb rule
SPECIAL_ACTIONS = (
    ("/login", "login"),
    ("/logout", "logout"),
    ("/register", "register"),
)

METHOD_VERBS = {
    "POST": "create",
    "PUT": "update",
    "PATCH": "update",
    "DELETE": "delete",
    "GET": "view",
}

# Top-level keys only; nested objects are copied as-is
SENSITIVE_QUERY_KEYS = ("password", "token")
SENSITIVE_BODY_KEYS = ("password", "token", "accessToken")


class ActivityInfo(NamedTuple):
    action: str
    resource_type: str
    resource_id: Optional[str]


def _is_resource_id(segment: str) -> bool:
    return bool(DIGITS_PATTERN.fullmatch(segment) or UUID_PATTERN.fullmatch(segment))


def derive_activity_info(method: str, path: str) -> ActivityInfo:
    """Derive action, resource type and resource id from method and path.

    ``/api/vehicles/<uuid>`` with DELETE gives
    ``("vehicles_delete", "vehicles", "<uuid>")``.
    """
    parts = [part for part in path.split("/") if part]
    if parts and parts[0] == "api":
        parts = parts[1:]

    resource_type = parts[0] if parts else "unknown"
    resource_id = parts[1] if len(parts) > 1 and _is_resource_id(parts[1]) else None

    for keyword, special in SPECIAL_ACTIONS:
        if keyword in path:
            return ActivityInfo(special, resource_type, resource_id)

    method = method.upper()
    verb = METHOD_VERBS.get(method, method.lower())
    return ActivityInfo(f"{resource_type}_{verb}", resource_type, resource_id)


def _without(data: Dict[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    safe = dict(data)
    for key in keys:
        safe.pop(key, None)
    return safe


def extract_details(
    method: str,
    path: str,
    status_code: int,
    query: Optional[Dict[str, Any]] = None,
    body: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Redacted snapshot of the request for the ``details`` column."""
    details: Dict[str, Any] = {
        "method": method,
        "path": path,
        "statusCode": status_code,
    }
    if query:
        details["query"] = _without(query, SENSITIVE_QUERY_KEYS)
    if body:
        details["body"] = _without(body, SENSITIVE_BODY_KEYS)
    return details


def _query_dict(request: Request) -> Dict[str, Any]:
    """Query parameters; a repeated key maps to the list of its values."""
    params = request.query_params
    query: Dict[str, Any] = {}
    for key in params.keys():
        values = params.getlist(key)
        query[key] = values if len(values) > 1 else values[0]
    return query


def _client_ip(request: Request) -> Optional[str]:
    return request.client.host if request.client else None


def build_event(
    actor: Actor,
    request: Request,
    action: str,
    resource_type: str,
    resource_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    status: str = "success",
) -> ActivityEvent:
    return ActivityEvent(
        user_id=actor.id,
        username=actor.label,
        action=action,
        resource_type=resource_type,
        resource_id=resource_id,
        details=details,
        ip_address=_client_ip(request),
        user_agent=request.headers.get("user-agent"),
        status=status,
    )


async def _read_json_body(request: Request) -> Optional[Dict[str, Any]]:
    """JSON object body of the request, or None.

    Starlette caches the body read here and replays it to the handler.
    """
    raw = await request.body()
    if not raw:
        return None
    try:
        body = json.loads(raw)
    except ValueError:
        return None
    return body if isinstance(body, dict) else None


class ActivityLogger:
    """HTTP middleware that audits successful requests of authenticated users.

    Register with ``app.middleware("http")(ActivityLogger(...))``. The
    actor is read from ``request.state.user`` after the handler returns,
    so routes must resolve it through the ``get_current_user`` dependency.

    Args:
        actions: HTTP methods to audit.
        log_get_requests: Also audit GET (and other read) requests.
        exclude_paths: Path prefixes that are never audited.
        writer: Coroutine function persisting an :class:`ActivityEvent`.
        max_concurrent_writes: Cap on audit writes in flight at once.
    """

    def __init__(
        self,
        actions: Iterable[str] = DEFAULT_ACTIONS,
        log_get_requests: bool = False,
        exclude_paths: Iterable[str] = DEFAULT_EXCLUDE_PATHS,
        writer: Optional[ActivityWriter] = None,
        max_concurrent_writes: int = 10,
    ):
        self.actions = frozenset(method.upper() for method in actions)
        self.log_get_requests = log_get_requests
        self.exclude_paths = tuple(exclude_paths)
        self.writer = writer or create_activity_log
        self._write_slots = asyncio.Semaphore(max_concurrent_writes)

    @classmethod
    def from_settings(cls, writer: Optional[ActivityWriter] = None) -> "ActivityLogger":
        return cls(
            actions=settings.ACTIVITY_LOG_ACTIONS,
            log_get_requests=settings.ACTIVITY_LOG_GET_REQUESTS,
            exclude_paths=settings.ACTIVITY_LOG_EXCLUDE_PATHS,
            writer=writer,
            max_concurrent_writes=settings.ACTIVITY_LOG_MAX_CONCURRENT_WRITES,
        )

    def is_eligible(self, method: str, path: str) -> bool:
        """Method and path part of the logging policy."""
        if not (self.log_get_requests or method.upper() in self.actions):
            return False
        return not any(path.startswith(prefix) for prefix in self.exclude_paths)

    async def __call__(self, request: Request, call_next) -> Response:
        method = request.method
        path = request.url.path

        if not self.is_eligible(method, path):
            return await call_next(request)

        body = await _read_json_body(request)
        response = await call_next(request)

        actor = get_request_actor(request)
        if actor is None or response.status_code >= 400:
            return response

        info = derive_activity_info(method, path)
        event = build_event(
            actor,
            request,
            action=info.action,
            resource_type=info.resource_type,
            resource_id=info.resource_id,
            details=extract_details(
                method,
                path,
                response.status_code,
                query=_query_dict(request),
                body=body,
            ),
            status="success" if response.status_code < 300 else "warning",
        )
        self._schedule(response, event)
        return response

    def _schedule(self, response: Response, event: ActivityEvent) -> None:
        task = BackgroundTask(self.write, event)
        if response.background is None:
            response.background = task
            return
        response.background = BackgroundTasks(tasks=[response.background, task])

    async def write(self, event: ActivityEvent) -> None:
        """Persist ``event``; failures are logged and dropped."""
        async with self._write_slots:
            try:
                await self.writer(event)
            except Exception as e:
                app_logger.error(
                    f"ACTIVITY WRITE FAILED: {event.action} by {event.user_id}: {e}"
                )
                return
        app_logger.debug(f"ACTIVITY recorded: {event.action} by {event.username}")


async def log_activity(
    request: Request,
    action: str,
    resource_type: str,
    resource_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    status: str = "success",
    writer: Optional[ActivityWriter] = None,
) -> Optional[Any]:
    """Record an activity for the current request's actor directly.

    Skips method/path derivation. Never raises: without an authenticated
    actor, or when the write fails, a warning is logged and None returned.
    """
    actor = get_request_actor(request)
    if actor is None:
        app_logger.warning("ACTIVITY skipped: no authenticated user")
        return None

    try:
        event = build_event(
            actor,
            request,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details,
            status=status,
        )
        return await (writer or create_activity_log)(event)
    except Exception as e:
        app_logger.error(f"ACTIVITY WRITE FAILED: {action} by {actor.id}: {e}")
        return None
