from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from bluemoon.config.logger import app_logger, log_request
from bluemoon.config.settings import settings
from bluemoon.db.supabase_db import ping_supabase
from bluemoon.middleware.activity_logger import ActivityLogger
from bluemoon.utils.responses import error_response
from bluemoon.api.activity_logs.router import router as activity_logs_router
from bluemoon.api.health.router import router as health_router


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager for startup and shutdown events."""
    # Startup
    app_logger.info(f"{settings.APP_NAME} starting up")

    if settings.supabase_auth_enabled:
        is_ok, message = await ping_supabase()
        if is_ok:
            app_logger.info(f"Supabase connection: {message}")
        else:
            app_logger.warning(f"Supabase connection issue: {message}")
            app_logger.warning("Activity logs will not be persisted. Check SUPABASE_* environment variables.")
    else:
        app_logger.warning("Supabase Auth not configured - accepting locally signed tokens (dev only)")

    yield

    # Shutdown
    app_logger.info(f"{settings.APP_NAME} shutting down")


app = FastAPI(
    title=settings.APP_NAME,
    description=settings.APP_DESCRIPTION,
    version=settings.APP_VERSION,
    lifespan=lifespan,
)

# Activity audit; registered before CORS/request logging so it runs innermost
app.middleware("http")(ActivityLogger.from_settings())

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Logging middleware
@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all HTTP requests with timing information using Loguru."""
    start_time = datetime.now()

    try:
        response = await call_next(request)
    except Exception as e:
        process_time = (datetime.now() - start_time).total_seconds()
        log_request(request, process_time, error=e)
        raise

    process_time = (datetime.now() - start_time).total_seconds()
    log_request(request, process_time, status_code=response.status_code)
    return response


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    app_logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content=error_response("Internal server error", detail=type(exc).__name__).model_dump(mode="json"),
    )


app.include_router(health_router)
app.include_router(activity_logs_router)


if __name__ == "__main__":
    import uvicorn

    app_logger.info(f"Starting {settings.APP_NAME} server")

    uvicorn.run(
        app,
        host="0.0.0.0",
        port=8000,
        log_config=None  # Use our custom logger
    )
