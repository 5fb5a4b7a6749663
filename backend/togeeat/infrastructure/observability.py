"""Structured Logging — one JSON object per line, matching ids as top-level keys.

Invariants:
    - Every record carries timestamp (UTC, from the record itself), level, logger, message
    - Keys in EXTRA_FIELDS are copied from `extra=` only when set
    - setup_logging is idempotent: calling it twice never duplicates output

Design Decisions:
    - Stdlib logging with a custom formatter, no logging framework
    - LOG_FORMAT=text gives a plain line format for local runs and tests
"""

import json
import logging
from datetime import datetime, timezone

EXTRA_FIELDS = (
    "matching_id", "user_id", "target_user_id", "error_code",
    "closed_count", "path",
)

# chatty third-party loggers kept at WARNING unless the root is DEBUG
_QUIET_LOGGERS = ("sqlalchemy.engine", "uvicorn.access")

_handler: logging.Handler | None = None


class JSONFormatter(logging.Formatter):
    """Render a LogRecord as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc,
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            (key, record.__dict__[key]) for key in EXTRA_FIELDS
            if record.__dict__.get(key) is not None
        )
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> None:
    """Install (or replace) the process-wide log handler."""
    global _handler
    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)

    _handler = logging.StreamHandler()
    _handler.setFormatter(
        JSONFormatter() if fmt == "json"
        else logging.Formatter("%(asctime)s %(levelname)s %(name)s - %(message)s"),
    )
    root.addHandler(_handler)

    root_level = getattr(logging, level.upper(), logging.INFO)
    root.setLevel(root_level)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(root_level, logging.WARNING))
