"""
Logging setup for the portal.

Two output shapes share one set of structured fields:

    readable  coloured single line, review context appended in brackets
    json      one object per line for the log collector

The shape follows the environment (readable under DEBUG/TESTING, json
otherwise) unless LOG_FORMAT says otherwise; LOG_LEVEL sets the level.
A filter copies request_id and user_id from flask.g onto every record so
service-level log lines can be joined with the access log.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

from flask import g, has_app_context

# Fields services attach through ``extra=``, in output order
CONTEXT_FIELDS = (
    "request_id",
    "user_id",
    "student_id",
    "project_id",
    "stage_number",
    "department",
    "outcome",
    "score_percent",
)
ACCESS_FIELDS = ("method", "path", "status", "duration_ms", "remote_addr")

# Shown inline by the readable formatter
_INLINE_FIELDS = ("student_id", "project_id", "stage_number", "outcome", "score_percent")

_LEVEL_COLORS = {
    logging.DEBUG: "\033[36m",
    logging.INFO: "\033[32m",
    logging.WARNING: "\033[33m",
    logging.ERROR: "\033[31m",
    logging.CRITICAL: "\033[35m",
}
_RESET = "\033[0m"


class RequestContextFilter(logging.Filter):
    """Fill request_id / user_id from the active request, if any."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_app_context():
            if getattr(record, "request_id", None) is None:
                record.request_id = g.get("request_id")
            if getattr(record, "user_id", None) is None:
                user = g.get("current_user")
                record.user_id = user.id if user is not None else None
        return True


def _context(record: logging.LogRecord, fields) -> dict:
    values = {}
    for key in fields:
        value = getattr(record, key, None)
        if value is not None:
            values[key] = value
    return values


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "where": f"{record.module}.{record.funcName}:{record.lineno}",
        }
        entry.update(_context(record, CONTEXT_FIELDS + ACCESS_FIELDS))
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """``HH:MM:SS LEVEL logger: message [student_id=.. outcome=..] (12ms)``"""

    def format(self, record: logging.LogRecord) -> str:
        stamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        color = _LEVEL_COLORS.get(record.levelno, "")
        line = f"{color}{stamp} {record.levelname:<8}{_RESET} {record.name}: {record.getMessage()}"

        inline = _context(record, _INLINE_FIELDS)
        if inline:
            line += " [" + " ".join(f"{k}={v}" for k, v in inline.items()) + "]"
        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            line += f" ({duration:.0f}ms)"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _pick_format(app) -> str:
    explicit = os.getenv("LOG_FORMAT", "").lower()
    if explicit in ("json", "readable"):
        return explicit
    if app.config.get("DEBUG") or app.config.get("TESTING"):
        return "readable"
    return "json"


def configure_logging(app):
    """Install one stderr handler on the root logger for this app."""
    fmt = _pick_format(app)
    default_level = "DEBUG" if app.config.get("DEBUG") else "INFO"
    level_name = os.getenv("LOG_LEVEL", default_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if fmt == "json" else ReadableFormatter())
    handler.addFilter(RequestContextFilter())

    # Replace rather than add, so creating several apps (tests) keeps one handler.
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for noisy in ("werkzeug", "sqlalchemy.engine", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not app.config.get("TESTING"):
        app.logger.info("Logging configured: level=%s format=%s", level_name, fmt)
