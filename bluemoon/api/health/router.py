"""Health endpoints. Excluded from activity logging by default."""

import os
import subprocess
from typing import Optional

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from bluemoon.db.supabase_db import ping_supabase

router = APIRouter(prefix="/api/health", tags=["health"])

_git_sha_cache: Optional[str] = None


def get_git_sha() -> str:
    """Get the current Git commit SHA (cached to avoid blocking)."""
    global _git_sha_cache
    if _git_sha_cache is not None:
        return _git_sha_cache

    try:
        result = subprocess.run(
            ["git", "rev-parse", "HEAD"],
            capture_output=True,
            text=True,
            check=True,
            timeout=1.0
        )
        _git_sha_cache = result.stdout.strip()[:8]
    except (subprocess.CalledProcessError, FileNotFoundError, subprocess.TimeoutExpired):
        _git_sha_cache = "local-dev"
    return _git_sha_cache


@router.get("")
async def health():
    """Liveness with build information for CI/CD monitoring."""
    return {
        "status": "ok",
        "build": os.getenv("BUILD_NUMBER", "local-dev"),
        "sha": os.getenv("GIT_SHA", os.getenv("GITHUB_SHA", get_git_sha())),
        "env": os.getenv("ENVIRONMENT", os.getenv("ENV", "development")),
    }


@router.get("/db")
async def health_db():
    """Checks the Supabase REST API connection backing the activity log store."""
    is_ok, message = await ping_supabase()
    if not is_ok:
        return JSONResponse(
            status_code=503,
            content={"status": "degraded", "db": "unavailable", "message": message}
        )
    return {"status": "ok", "db": "available", "connection": "Supabase REST API", "message": message}
