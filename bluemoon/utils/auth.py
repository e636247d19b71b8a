"""Authentication utilities and dependency injection.

``get_current_user`` resolves the bearer token to an :class:`Actor` and
stores it on ``request.state.user``, where the activity logger picks it
up once the handler has finished.
"""

from typing import Any, Dict, Optional

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from bluemoon.config.logger import app_logger
from bluemoon.config.settings import settings
from bluemoon.db.supabase_db import get_profile_by_id
from bluemoon.models.activity_log import Actor
from bluemoon.utils.local_tokens import decode_local_token
from bluemoon.utils.supabase_client import get_supabase_client

# HTTP Bearer token security scheme
security_scheme = HTTPBearer(
    scheme_name="Bearer",
    description="Supabase access token",
    auto_error=False,  # We'll handle errors manually for better control
)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_auth_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security_scheme),
) -> str:
    """Extract the Bearer token from the Authorization header.

    Raises:
        HTTPException: If token is missing
    """
    if not credentials:
        raise _unauthorized("No token provided")

    token = credentials.credentials.strip()
    if not token:
        raise _unauthorized("Missing authentication token")

    return token


def _actor_from_metadata(user: Any) -> Actor:
    """Minimal actor built from auth user metadata when no profile row exists."""
    metadata: Dict[str, Any] = getattr(user, "user_metadata", None) or {}
    email = getattr(user, "email", None)
    local_part = email.split("@")[0] if email else None
    return Actor(
        id=str(user.id),
        email=email,
        username=local_part or "user",
        full_name=metadata.get("full_name") or local_part or "User",
        role=metadata.get("role") or "user",
        apartment_number=metadata.get("apartment_number"),
    )


async def _resolve_supabase_actor(token: str) -> Actor:
    try:
        result = get_supabase_client().auth.get_user(token)
    except Exception as exc:
        app_logger.debug(f"Supabase token verification failed: {exc}")
        raise _unauthorized("Invalid or expired token") from exc

    user = getattr(result, "user", None)
    if user is None:
        raise _unauthorized("Invalid or expired token")

    profile = await get_profile_by_id(str(user.id))
    if not profile:
        app_logger.warning(f"Profile not found for user {user.id}, using auth metadata")
        return _actor_from_metadata(user)

    return Actor(
        id=str(user.id),
        email=profile.get("email") or user.email,
        username=profile.get("username"),
        full_name=profile.get("full_name"),
        role=profile.get("role") or "user",
        apartment_number=profile.get("apartment_number"),
    )


def _resolve_local_actor(token: str) -> Actor:
    try:
        payload = decode_local_token(token)
    except ValueError as exc:
        raise _unauthorized(str(exc)) from exc

    if not payload.get("sub"):
        raise _unauthorized("Invalid token payload")

    return Actor(
        id=str(payload["sub"]),
        email=payload.get("email"),
        username=payload.get("username"),
        role=payload.get("role") or "user",
    )


async def get_current_user(
    request: Request,
    token: str = Depends(get_auth_token),
) -> Actor:
    """Resolve the authenticated actor and attach it to the request.

    Verifies against Supabase Auth when it is configured, otherwise
    against locally signed tokens (dev only).

    Raises:
        HTTPException: 401 if the token cannot be verified
    """
    try:
        if settings.supabase_auth_enabled:
            actor = await _resolve_supabase_actor(token)
        else:
            actor = _resolve_local_actor(token)
    except HTTPException:
        raise
    except Exception as e:
        app_logger.error(f"Auth dependency error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        )

    request.state.user = actor
    return actor


async def require_admin(actor: Actor = Depends(get_current_user)) -> Actor:
    if actor.role != "admin":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Admin privileges required.",
        )
    return actor


async def require_admin_or_manager(actor: Actor = Depends(get_current_user)) -> Actor:
    if actor.role not in ("admin", "manager"):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Admin or Manager privileges required.",
        )
    return actor


def get_request_actor(request: Request) -> Optional[Actor]:
    """Actor attached by ``get_current_user``, or None for anonymous requests."""
    actor = getattr(request.state, "user", None)
    if isinstance(actor, Actor) and actor.id and actor.label:
        return actor
    return None


# Convenience aliases for cleaner imports
CurrentUser = Depends(get_current_user)
RequireAdmin = Depends(require_admin)
RequireAdminOrManager = Depends(require_admin_or_manager)
