"""
Loguru setup for BlueMoon Backend.

Everything goes to the console and ``app.log``; errors also go to
``errors.log``. Records whose message starts with a tag are copied to a
dedicated file: ``REQUEST`` lines from the timing middleware to
``requests.log`` and ``ACTIVITY`` lines (audit skips, write failures,
retention cleanups) to ``activity.log``.
"""

import sys
from pathlib import Path
from typing import Optional

from fastapi import Request
from loguru import logger

from bluemoon.config.settings import settings

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
TAGGED_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"

# file name, minimum level, rotation, retention, message tag
FILE_SINKS = (
    ("app.log", "DEBUG", "10 MB", "7 days", None),
    ("errors.log", "ERROR", "5 MB", "30 days", None),
    ("requests.log", "INFO", "20 MB", "14 days", "REQUEST"),
    ("activity.log", "DEBUG", "10 MB", "30 days", "ACTIVITY"),
)


def _tagged(tag: str):
    return lambda record: record["message"].startswith(tag)


def setup_logger(log_level: str = "INFO", logs_dir: str = "logs") -> None:
    """Replace loguru's default handler with the console and file sinks."""
    logs_path = Path(logs_dir)
    logs_path.mkdir(parents=True, exist_ok=True)

    logger.remove()
    logger.add(
        sys.stdout,
        format=CONSOLE_FORMAT,
        level=log_level,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    for filename, level, rotation, retention, tag in FILE_SINKS:
        logger.add(
            logs_path / filename,
            format=TAGGED_FORMAT if tag else FILE_FORMAT,
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            encoding="utf-8",
            backtrace=True,
            diagnose=False,
            filter=_tagged(tag) if tag else None,
        )


def log_request(
    request: Request,
    process_time: float,
    status_code: Optional[int] = None,
    error: Optional[Exception] = None,
) -> None:
    """One REQUEST line per finished request; failures at ERROR level."""
    client_ip = request.client.host if request.client else "-"

    if error is not None:
        logger.error(
            "REQUEST ERROR: {} {} from {} - {}: {} ({:.4f}s)",
            request.method, request.url.path, client_ip,
            type(error).__name__, error, process_time,
        )
        return

    logger.info(
        "REQUEST: {} {} from {} - {} ({:.4f}s)",
        request.method, request.url.path, client_ip, status_code, process_time,
    )


setup_logger(settings.LOG_LEVEL, settings.LOG_DIR)

# Export logger for use in other modules
app_logger = logger
