"""
Centralized logging configuration for PrintVend.

Every log line carries the name of the thread that produced it. Request
handlers and event-stream threads run side by side, so the thread name is
the quickest way to tell a machine's SSE stream apart from the requests
that publish into it.

Features:
    - Thread name on every record
    - Console output (always enabled)
    - Rotating application and error-only logs (optional, for production)
    - Chatty library loggers (urllib3, werkzeug access log) held at WARNING

Log Format:
    2025-12-03 10:15:30 [INFO    ] [MainThread] print_vend.app - Starting PrintVend in production mode
    2025-12-03 10:15:31 [INFO    ] [Events-a1b2c3d4] print_vend.routes.events - Stream a1b2c3d4 opened for machine M1 as machine
    2025-12-03 10:15:32 [INFO    ] [Thread-7] print_vend.job.9f8e7d6c - queued -> printing

Usage:
    from logging_config import setup_logging, get_logger, get_job_logger

    setup_logging(log_level=logging.INFO, enable_file_logging=True)

    logger = get_logger(__name__)
    get_job_logger(job.id).info("queued -> printing")
"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional


APP_LOGGER_NAME = "print_vend"

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(name)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Per-file rotation: 10 MB, 5 backups
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUP_COUNT = 5

# Libraries that log every HTTP call or request at INFO/DEBUG
NOISY_LOGGERS: List[str] = ["urllib3", "werkzeug"]


class ThreadContextFilter(logging.Filter):
    """Adds ``thread_name`` (used by the format string) and ``thread_id``."""

    def filter(self, record: logging.LogRecord) -> bool:
        current_thread = threading.current_thread()
        record.thread_name = current_thread.name
        record.thread_id = threading.get_ident()
        return True


def _rotating_handler(path: Path, level: int, formatter: logging.Formatter,
                      thread_filter: logging.Filter) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=path,
        maxBytes=MAX_LOG_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    handler.addFilter(thread_filter)
    return handler


def setup_logging(
    app_name: str = APP_LOGGER_NAME,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
) -> logging.Logger:
    """
    Configure the application logger.

    Safe to call more than once; each call replaces the handlers, so every
    app built by ``create_app`` (one per test) starts from a clean logger.

    Args:
        app_name: Name of the application logger; modules log under it
        log_level: Minimum level for the application logger
        log_dir: Directory for log files (default: ./logs next to this file)
        enable_file_logging: Add ``<app_name>.log`` and ``<app_name>_error.log``

    Returns:
        The configured application logger
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(log_level)
    logger.propagate = False
    logger.handlers.clear()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)
    thread_filter = ThreadContextFilter()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(thread_filter)
    logger.addHandler(console_handler)

    if enable_file_logging:
        log_dir = log_dir or Path(__file__).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        app_log_file = log_dir / f"{app_name}.log"
        logger.addHandler(_rotating_handler(app_log_file, log_level, formatter, thread_filter))
        logger.addHandler(
            _rotating_handler(log_dir / f"{app_name}_error.log", logging.ERROR, formatter, thread_filter)
        )
        logger.info(f"File logging enabled: {app_log_file}")

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    logger.info(f"Logging configured at level {logging.getLevelName(log_level)}")
    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger under the application namespace.

    Example:
        logger = get_logger(__name__)   # in services/job_service.py
        # -> "print_vend.services.job_service"
    """
    if not name.startswith(APP_LOGGER_NAME):
        name = f"{APP_LOGGER_NAME}.{name}"
    return logging.getLogger(name)


def get_job_logger(job_id: str) -> logging.Logger:
    """
    Logger for one print job, named by the first 8 characters of its id.

    ``grep print_vend.job.9f8e7d6c`` then shows a job's whole history:
    creation, payment and every transition.
    """
    return logging.getLogger(f"{APP_LOGGER_NAME}.job.{job_id[:8]}")


def set_thread_name(name: str) -> None:
    """Rename the current thread; the name shows up in the [thread] field."""
    threading.current_thread().name = name
