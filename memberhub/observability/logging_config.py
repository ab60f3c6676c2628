"""
Structured logging configuration for MemberHub.

Uses Python's built-in logging with a JSONFormatter for production and a
coloured formatter for local work. All modules keep using
`logging.getLogger(__name__)`.

Environments:
- production: JSON to stdout (machine-readable)
- development/staging/test: Colored text to stderr (human-readable)

Usage:
    from memberhub.observability.logging_config import configure_logging

    configure_logging()  # auto-detects from MEMBERHUB_ENV

    logger = logging.getLogger(__name__)
    logger.info("tenant_resolved", extra={"subdomain": "acme"})
"""

from __future__ import annotations

import contextvars
import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Optional

# ─── Tenant Context ───────────────────────────────────────────────────

_tenant_context: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "memberhub_tenant_id", default=None
)


def set_tenant_id(tenant_id: Optional[str]) -> None:
    """
    Set the active tenant on the current context.

    Called by the session manager whenever its tenant tag changes, so
    every log record emitted afterwards carries the tenant_id.
    """
    _tenant_context.set(tenant_id)


def get_tenant_id() -> Optional[str]:
    """Get the active tenant_id, or None outside a tenant context."""
    return _tenant_context.get()


def clear_tenant_id() -> None:
    """Clear the tenant_id from the current context."""
    _tenant_context.set(None)


# ─── Context Filter ───────────────────────────────────────────────────


class ContextFilter(logging.Filter):
    """
    Injects tenant_id into every log record from the context variable.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        tenant_id = get_tenant_id()
        if tenant_id and not hasattr(record, "tenant_id"):
            record.tenant_id = tenant_id  # type: ignore[attr-defined]
        return True


# ─── JSON Formatter (Production) ──────────────────────────────────────


_STANDARD_FIELDS = frozenset({
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "exc_info", "exc_text", "stack_info",
    "lineno", "funcName", "created", "msecs", "relativeCreated",
    "thread", "threadName", "processName", "process", "message",
    "taskName",
})


class JSONFormatter(logging.Formatter):
    """
    Outputs log records as single-line JSON objects.

    Output format:
        {"timestamp": "...", "level": "INFO", "logger": "memberhub.tenancy.session",
         "message": "session_initialized", "tenant_id": "abc123", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _STANDARD_FIELDS and not key.startswith("_"):
                try:
                    json.dumps(value)
                    entry[key] = value
                except (TypeError, ValueError):
                    entry[key] = str(value)

        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


# ─── Dev Formatter (Local Development) ────────────────────────────────


class DevFormatter(logging.Formatter):
    """
    Colorful, human-readable logs for local development.

    Format: [HH:MM:SS] LEVEL logger: message [key=value key=value]
    """

    COLORS = {
        logging.DEBUG: "\033[36m",     # Cyan
        logging.INFO: "\033[32m",      # Green
        logging.WARNING: "\033[33m",   # Yellow
        logging.ERROR: "\033[31m",     # Red
        logging.CRITICAL: "\033[41m",  # Red background
    }
    RESET = "\033[0m"

    _EXTRA_KEYS = (
        "tenant_id", "subdomain", "collection", "user_id",
        "email", "status_code", "duration_ms",
    )

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, self.RESET)
        timestamp = self.formatTime(record, "%H:%M:%S")

        extras = []
        for key in self._EXTRA_KEYS:
            value = getattr(record, key, None)
            if value is not None:
                extras.append(f"{key}={value}")

        extra_str = f" [{' '.join(extras)}]" if extras else ""

        formatted = (
            f"{self.RESET}[{timestamp}] "
            f"{color}{record.levelname:<8}{self.RESET} "
            f"{record.name}: {record.getMessage()}{extra_str}"
        )

        if record.exc_info and record.exc_info[1]:
            formatted += f"\n{self.formatException(record.exc_info)}"

        return formatted


# ─── Configuration ────────────────────────────────────────────────────


def configure_logging(
    env: Optional[str] = None,
    level: int = logging.INFO,
) -> None:
    """
    Configure the root logger based on environment.

    Args:
        env: Override environment. If None, reads from MEMBERHUB_ENV
             (defaults to "development").
        level: Log level (default: INFO).
    """
    env = env or os.environ.get("MEMBERHUB_ENV", "development").lower().strip()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    if env == "production":
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(DevFormatter())

    handler.addFilter(ContextFilter())
    root_logger.addHandler(handler)

    # Silence noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
