"""Logging setup.

One stdout handler on the root logger. ``LOG_FORMAT=json`` writes one JSON
object per record with any ``extra={...}`` fields merged in, ``text`` writes
a readable line. Both carry the request id bound by the request context
middleware, and both pass through ``redact`` so bearer tokens and DSN
passwords never reach the log sink.
"""

import contextvars
import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Optional

request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")

# Attributes every LogRecord has; anything else on a record came from ``extra``.
_STANDARD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

_TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(request_id)s] %(name)s: %(message)s"

_SECRET_PATTERNS = [
    re.compile(r"(?i)(bearer\s+)[\w.\-]{20,}"),
    re.compile(r"\b(eyJ[\w\-]+\.)[\w\-]+\.[\w\-]+"),
    re.compile(r"(://[^:/@\s]+:)[^@\s]+(?=@)"),
    re.compile(r"(?i)((?:secret|password|token)\s*[=:]\s*)[^\s,'\"]{8,}"),
]
_MASK = "***REDACTED***"


def redact(text: str) -> str:
    """Mask credentials in *text*, keeping the prefix that identifies them."""
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(lambda m: m.group(1) + _MASK, text)
    return text


class _ContextFilter(logging.Filter):
    """Stamp the request id on every record and redact its message."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_var.get() or "-"
        record.msg = redact(record.getMessage())
        record.args = None
        if record.exc_text:
            record.exc_text = redact(record.exc_text)
        return True


class _JsonFormatter(logging.Formatter):

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.request_id != "-":
            entry["request_id"] = record.request_id
        entry.update(
            (k, v) for k, v in vars(record).items()
            if k not in _STANDARD_ATTRS and k not in entry and k != "request_id"
        )
        if record.exc_info:
            entry["exception"] = redact(self.formatException(record.exc_info))
        return json.dumps(entry, default=str)


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Install the DocGate handler on the root logger, replacing any others.

    Args:
        log_level: Level name; defaults to INFO.
        log_format: ``"json"`` (default) or ``"text"``.
    """
    level = (log_level or "INFO").upper()
    use_json = (log_format or "json").lower() == "json"

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(_ContextFilter())
    handler.setFormatter(_JsonFormatter() if use_json else logging.Formatter(_TEXT_FORMAT))

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    # Quiet chatty libraries; the request middleware already logs each request.
    for name in ("uvicorn.access", "sqlalchemy.engine"):
        logging.getLogger(name).setLevel(logging.WARNING)
