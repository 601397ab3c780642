"""
Structured logging configuration for the application.

Provides JSON-formatted logs plus helpers that scrub credentials and tokens
from log context before anything is written.
"""

import logging
import sys
from typing import Any, Dict, Optional
from datetime import datetime, timezone
from pythonjsonlogger import jsonlogger

from app.core.config import settings


SENSITIVE_FIELDS = {
    "password",
    "hashed_password",
    "token",
    "access_token",
    "accessToken",
    "refresh_token",
    "refreshToken",
    "csrf_token",
    "secret",
    "api_key",
    "apiKey",
}

REDACTED = "[REDACTED]"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    Custom JSON formatter that adds standard fields to all log records.
    """

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)

        # Add timestamp in ISO format
        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()

        # Add log level
        log_record['level'] = record.levelname

        # Add logger name
        log_record['logger'] = record.name

        # Add module and function info
        log_record['module'] = record.module
        log_record['function'] = record.funcName

        # Add line number for errors/warnings
        if record.levelno >= logging.WARNING:
            log_record['line'] = record.lineno
            log_record['pathname'] = record.pathname


def setup_logging(log_level: str = "INFO", json_logs: bool = True) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_logs: Whether to use JSON formatting (True for production, False for development)
    """
    # Remove any existing handlers
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Create console handler
    console_handler = logging.StreamHandler(sys.stdout)

    if json_logs:
        # Production: JSON formatted logs
        formatter = CustomJsonFormatter(
            '%(timestamp)s %(level)s %(logger)s %(module)s %(funcName)s %(message)s'
        )
    else:
        # Development: Human-readable logs
        formatter = logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

    console_handler.setFormatter(formatter)

    # Configure root logger
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.addHandler(console_handler)

    # Set specific log levels for noisy libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def redact(data: Any) -> Any:
    """
    Return a copy of ``data`` with sensitive keys replaced by ``[REDACTED]``.

    Walks nested dicts and lists (including dicts inside lists). Non-container
    values are returned unchanged.
    """
    if isinstance(data, dict):
        return {
            key: REDACTED if key in SENSITIVE_FIELDS else redact(value)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [redact(item) for item in data]
    return data


def log_error(
    logger: logging.Logger,
    error: BaseException,
    message: str,
    context: Optional[Dict[str, Any]] = None,
    level: int = logging.ERROR,
) -> None:
    """
    Log an error with sanitized context.

    Stack traces are attached outside production only.
    """
    logger.log(
        level,
        message,
        extra={
            "context": redact(context or {}),
            "error_type": type(error).__name__,
            "error_message": str(error),
        },
        exc_info=error if not settings.is_production else None,
    )
