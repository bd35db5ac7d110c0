"""
Structured JSON logging configuration.

Every log line carries: timestamp, level, logger, message, correlation_id,
plus whichever decision fields (actor_id, role, permission, outcome, rule)
the emitting code attached through `extra=`.
"""

import json
import logging
from contextvars import ContextVar
from datetime import datetime, timezone

# Context variable for the current correlation ID (request, job, CLI run)
_correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")

DECISION_FIELDS = ("actor_id", "role", "permission", "action", "outcome", "rule", "target_id")


def get_correlation_id() -> str:
    return _correlation_id_var.get()


def set_correlation_id(value: str):
    """Set the correlation ID; returns the token for `reset_correlation_id`."""
    return _correlation_id_var.set(value)


def reset_correlation_id(token) -> None:
    _correlation_id_var.reset(token)


class JSONFormatter(logging.Formatter):
    """Emit each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "correlation_id": get_correlation_id(),
        }

        for name in DECISION_FIELDS:
            if hasattr(record, name):
                log_entry[name] = getattr(record, name)

        if record.exc_info and record.exc_info[1]:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Replace the root logger's handlers with a single stream handler."""
    handler = logging.StreamHandler()
    if log_format == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))
