"""
Logging for the review chat client: JSON records for files and production
consoles, plus helpers for chat events, timings and tracked errors.
"""

import json
import logging
import logging.handlers
import time
import traceback
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from config.app_config import AppConfig, get_config
from services.chat_service.errors import ChatError


# Attributes every LogRecord carries; anything else came in through `extra=`
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

NOISY_LOGGERS = ("urllib3", "requests", "watchdog")


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per record
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc_value, exc_tb = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": traceback.format_exception(exc_type, exc_value, exc_tb),
            }

        extra = {k: v for k, v in vars(record).items() if k not in _STANDARD_ATTRS}
        if extra:
            entry["extra"] = extra

        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(config: Optional[AppConfig] = None) -> logging.Logger:
    """
    Configure the root logger from the logging section of the config

    Debug runs get a readable console line; other runs log JSON. A rotating
    JSON file is added when file logging is enabled.
    """
    config = config or get_config()
    level = getattr(logging, config.logging.level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console = logging.StreamHandler()
    console.setLevel(level)
    if config.debug:
        console.setFormatter(logging.Formatter(config.logging.format + " [%(filename)s:%(lineno)d]"))
    else:
        console.setFormatter(StructuredFormatter())
    root_logger.addHandler(console)

    if config.logging.enable_file_logging:
        log_path = Path(config.logging.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=5 * 1024 * 1024,
            backupCount=3,
            encoding="utf-8"
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


@contextmanager
def log_execution_time(logger: logging.Logger, operation: str, **extra_fields):
    """
    Log how long a block took, and whether it raised

    Failures are logged as warnings and re-raised unchanged.
    """
    started = time.perf_counter()
    logger.debug(f"Starting {operation}", extra={"operation": operation, **extra_fields})

    try:
        yield
    except Exception as e:
        logger.warning(f"Failed {operation}: {e}", extra={
            "operation": operation,
            "duration_seconds": round(time.perf_counter() - started, 4),
            "status": "error",
            "error_type": type(e).__name__,
            "error_message": str(e),
            **extra_fields
        })
        raise

    logger.info(f"Completed {operation}", extra={
        "operation": operation,
        "duration_seconds": round(time.perf_counter() - started, 4),
        "status": "success",
        **extra_fields
    })


def log_user_interaction(logger: logging.Logger, interaction_type: str, **details):
    """Record something the user did on the page (submit, rejected send)"""
    logger.info("User interaction", extra={
        "event_type": "user_interaction",
        "interaction_type": interaction_type,
        **details
    })


def log_chat_event(logger: logging.Logger, event_type: str, paper_id: str, **details):
    """
    Record a chat session event

    Args:
        logger: Logger instance
        event_type: "loaded", "message_appended", "send_failed", ...
        paper_id: Paper the chat belongs to
        **details: Additional event fields
    """
    logger.info("Chat event", extra={
        "event_type": "chat_event",
        "chat_event_type": event_type,
        "paper_id": paper_id,
        **details
    })


class ErrorTracker:
    """
    Counts errors by type and context and logs each one
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.error_counts: Dict[str, int] = {}

    def track_error(self, error: Exception, context: str = "", **extra_info):
        """
        Count and log an error

        Chat conditions (not logged in, load or send refused) are already
        shown on the page; they are logged as warnings without a traceback.
        Anything else is logged as an error with its traceback.
        """
        error_type = type(error).__name__
        error_key = f"{error_type}:{context}"
        self.error_counts[error_key] = self.error_counts.get(error_key, 0) + 1

        extra = {
            "event_type": "error",
            "error_type": error_type,
            "error_message": str(error),
            "context": context,
            "error_count": self.error_counts[error_key],
            **extra_info
        }

        if isinstance(error, ChatError):
            self.logger.warning(f"{context}: {error}", extra=extra)
        else:
            self.logger.error(f"Error in {context}: {error}", extra=extra, exc_info=error)

    def get_error_summary(self) -> Dict[str, Any]:
        return {
            "total_errors": sum(self.error_counts.values()),
            "unique_errors": len(self.error_counts),
            "error_breakdown": dict(self.error_counts),
        }


_logging_ready = False
_error_tracker: Optional[ErrorTracker] = None


def initialize_logging() -> ErrorTracker:
    """Configure logging once per process and return the shared tracker"""
    global _logging_ready, _error_tracker

    if not _logging_ready:
        setup_logging()
        _logging_ready = True

    if _error_tracker is None:
        _error_tracker = ErrorTracker(logging.getLogger("review_chat.errors"))

    return _error_tracker


def get_error_tracker() -> ErrorTracker:
    if _error_tracker is None:
        return initialize_logging()
    return _error_tracker
