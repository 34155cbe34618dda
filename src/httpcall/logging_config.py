"""
Structured Logging Utilities

This module centralizes structured logging setup for the execution engine.
It provides helpers for masking sensitive fields, emitting JSON log records,
and generating correlation identifiers that tie the attempts of one logical
call together.
"""

from __future__ import annotations

import json
import logging
import sys
import uuid
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import TYPE_CHECKING, Dict

if TYPE_CHECKING:  # pragma: no cover - import cycle guard for type checkers only
    from .settings import LoggingSettings

LOGGER_NAME = "httpcall"

_SENSITIVE_KEYS = {
    "authorization",
    "cookie",
    "api_key",
    "apikey",
    "token",
    "secret",
    "password",
    "x-jwt-token",
    "x-auth-token",
}


def mask_sensitive_data(payload: Dict[str, object]) -> Dict[str, object]:
    """Remove secrets from structured payloads prior to logging.

    Args:
        payload: Arbitrary key-value pairs that may contain credentials or
            tokens gathered from outgoing requests.

    Returns:
        Copy of the payload where common secret fields are replaced with
        `***masked***`.

    Examples:
        >>> mask_sensitive_data({"authorization": "Bearer abc", "status": 200})
        {'authorization': '***masked***', 'status': 200}
    """
    masked: Dict[str, object] = {}
    for key, value in payload.items():
        if key.lower() in _SENSITIVE_KEYS:
            masked[key] = "***masked***"
        elif isinstance(value, str) and "apikey" in value.lower():
            masked[key] = "***masked***"
        else:
            masked[key] = value
    return masked


def generate_correlation_id() -> str:
    """Create a short-lived identifier that links related log entries.

    Returns:
        Twelve character hexadecimal identifier.

    Examples:
        >>> cid = generate_correlation_id()
        >>> len(cid)
        12
    """
    return uuid.uuid4().hex[:12]


class JSONFormatter(logging.Formatter):
    """Formatter emitting JSON structured logs.

    Examples:
        >>> formatter = JSONFormatter()
        >>> isinstance(formatter.format(logging.makeLogRecord({'msg': 'test'})), str)
        True
    """

    def format(self, record: logging.LogRecord) -> str:
        """Serialize a logging record into a JSON line.

        Args:
            record: Log record emitted by the engine or its hooks.

        Returns:
            JSON string with masked secrets and the record's ``extra_fields``.
        """
        now = datetime.now(timezone.utc)
        log_obj: Dict[str, object] = {
            "timestamp": now.isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            log_obj.update(extra_fields)
        if record.exc_info:
            log_obj["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(mask_sensitive_data(log_obj), default=str)


def setup_logging(config: "LoggingSettings") -> logging.Logger:
    """Configure structured logging handlers for the ``httpcall`` logger.

    Args:
        config: Logging configuration containing level and optional JSON
            log file location.

    Returns:
        Configured logger instance scoped to the package.

    Examples:
        >>> from httpcall.settings import LoggingSettings
        >>> logger = setup_logging(LoggingSettings(level="DEBUG"))
        >>> logger.name
        'httpcall'
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for handler in list(logger.handlers):
        if getattr(handler, "_httpcall_managed", False):
            logger.removeHandler(handler)
            handler.close()

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    stream_handler._httpcall_managed = True  # type: ignore[attr-defined]
    logger.addHandler(stream_handler)

    if config.json_log_file is not None:
        config.json_log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            config.json_log_file,
            maxBytes=int(config.max_log_size_mb * 1024 * 1024),
            backupCount=config.backup_count,
        )
        file_handler.setFormatter(JSONFormatter())
        file_handler._httpcall_managed = True  # type: ignore[attr-defined]
        logger.addHandler(file_handler)

    logger.propagate = True
    return logger


__all__ = ["setup_logging", "mask_sensitive_data", "generate_correlation_id", "JSONFormatter"]
