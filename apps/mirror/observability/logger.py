"""Structured logging for mirror observability.

Provides context-aware logging with automatic request/artifact tagging.
"""

import json
import logging
import sys
from contextvars import ContextVar
from datetime import datetime
from typing import Any

# Context variables for automatic tagging
_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)
_artifact_key: ContextVar[str | None] = ContextVar("artifact_key", default=None)


def set_context(
    request_id: str | None = None,
    artifact_key: str | None = None,
) -> None:
    """Set logging context variables."""
    if request_id is not None:
        _request_id.set(request_id)
    if artifact_key is not None:
        _artifact_key.set(artifact_key)


def clear_context() -> None:
    """Clear all logging context variables."""
    _request_id.set(None)
    _artifact_key.set(None)


def get_request_id() -> str | None:
    return _request_id.get()


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Add context from contextvars
        if request_id := _request_id.get():
            log_data["request_id"] = request_id
        if artifact_key := _artifact_key.get():
            log_data["artifact_key"] = artifact_key

        if hasattr(record, "extra_data"):
            log_data["data"] = record.extra_data

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


class StructuredLogger:
    """Logger with structured output and context awareness."""

    def __init__(self, name: str, level: int = logging.INFO):
        """Initialize structured logger.

        Args:
            name: Logger name
            level: Logging level
        """
        self._logger = logging.getLogger(name)
        self._logger.setLevel(level)

        # Add handler if not already configured
        if not self._logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(StructuredFormatter())
            self._logger.addHandler(handler)
            self._logger.propagate = False

    def _log(
        self,
        level: int,
        msg: str,
        *args: Any,
        extra_data: dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> None:
        """Log with optional extra data."""
        extra = kwargs.pop("extra", {})
        if extra_data:
            extra["extra_data"] = extra_data
        self._logger.log(level, msg, *args, extra=extra, **kwargs)

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args: Any, **kwargs: Any) -> None:
        """Log exception with traceback."""
        self._log(logging.ERROR, msg, *args, exc_info=True, **kwargs)

    def cache_hit(self, key: str, size_bytes: int, **extra: Any) -> None:
        """Log cache hit event."""
        self.info(
            f"cache hit {key}",
            extra_data={"event": "cache_hit", "key": key, "size_bytes": size_bytes, **extra},
        )

    def cache_miss(self, key: str, reason: str, **extra: Any) -> None:
        """Log cache miss event."""
        self.info(
            f"cache miss {key} ({reason})",
            extra_data={"event": "cache_miss", "key": key, "reason": reason, **extra},
        )

    def dangling_entry(self, key: str, path: str, **extra: Any) -> None:
        """Log a valid entry whose blob is missing or unreadable."""
        self.warning(
            f"dangling cache entry {key} -> {path}",
            extra_data={"event": "dangling_entry", "key": key, "path": path, **extra},
        )

    def upstream_fetch(
        self,
        key: str,
        size_bytes: int | None = None,
        latency_ms: int | None = None,
        **extra: Any,
    ) -> None:
        """Log completed upstream fetch."""
        self.info(
            f"fetched {key} from upstream",
            extra_data={
                "event": "upstream_fetch",
                "key": key,
                "size_bytes": size_bytes,
                "latency_ms": latency_ms,
                **extra,
            },
        )

    def cache_recorded(self, key: str, path: str, **extra: Any) -> None:
        """Log cache entry written."""
        self.info(
            f"cached {key}",
            extra_data={"event": "cache_recorded", "key": key, "path": path, **extra},
        )


# Global logger cache
_loggers: dict[str, StructuredLogger] = {}


def get_logger(name: str) -> StructuredLogger:
    """Get or create a structured logger.

    Args:
        name: Logger name

    Returns:
        StructuredLogger instance
    """
    if name not in _loggers:
        _loggers[name] = StructuredLogger(name)
    return _loggers[name]
