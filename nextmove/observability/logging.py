"""
Structured logging for the planner, CLI and API.

JSON lines when stderr is not a terminal, human-readable lines otherwise.
Request and user ids set through RequestContext are attached to every
record emitted inside the context.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from .context import get_request_id, get_user_id

# Attributes every LogRecord carries; anything else came in through `extra=`.
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime", "taskName"}


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}


class JSONFormatter(logging.Formatter):
    """
    One JSON object per line:

    {"timestamp": "2026-03-11T09:30:00.000Z", "level": "INFO",
     "logger": "nextmove.daily_plan", "message": "...",
     "request_id": "nm-...", "user_id": "u-1", ...extra}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request_id = get_request_id()
        if request_id:
            entry["request_id"] = request_id
        user_id = get_user_id()
        if user_id:
            entry["user_id"] = user_id
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        entry.update(_extras(record))
        return json.dumps(entry, default=str)


class HumanFormatter(logging.Formatter):
    """Readable lines for local runs."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%Y-%m-%d %H:%M:%S")
        request_id = get_request_id()
        rid = f"[{request_id[:12]}] " if request_id else ""
        line = f"{timestamp} [{record.levelname}] {record.name}: {rid}{record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(level: str = "INFO", json_format: bool | None = None) -> None:
    """
    Install one stderr handler on the root logger.

    Args:
        level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_format: force JSON on or off; None picks JSON when stderr is
            not a TTY
    """
    if json_format is None:
        json_format = not sys.stderr.isatty()

    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        raise ValueError(f"Unknown log level: {level}")

    root = logging.getLogger()
    root.setLevel(numeric)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_format else HumanFormatter())
    root.addHandler(handler)

