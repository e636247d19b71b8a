"""Locally signed JWT helpers, used when Supabase Auth is not configured."""

from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from bluemoon.config.settings import settings
from bluemoon.models.activity_log import Actor


def create_local_token(actor: Actor) -> str:
    """Create an HS256 access token carrying the actor's identity and role."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": actor.id,
        "email": actor.email,
        "username": actor.username,
        "role": actor.role,
        "exp": now + timedelta(seconds=settings.LOCAL_AUTH_TOKEN_EXP_SECONDS),
        "iat": now,
    }
    return jwt.encode(payload, settings.LOCAL_AUTH_SECRET, algorithm="HS256")


def decode_local_token(token: str) -> dict:
    """Decode and verify a local token.

    Raises:
        ValueError: If token is invalid or expired
    """
    try:
        return jwt.decode(token, settings.LOCAL_AUTH_SECRET, algorithms=["HS256"])
    except JWTError as exc:
        raise ValueError(f"Invalid token: {exc}") from exc
