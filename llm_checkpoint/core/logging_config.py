"""Logging setup for llm-checkpoint.

Text output for a terminal, one JSON object per line (``log_format=json``)
for editors and tools that parse the service's output. Records logged while
an HTTP request is handled carry its request id.
"""

import contextvars
import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Optional


# Set by RequestContextMiddleware for the duration of a request.
request_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("request_id", default="")

_TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"

# Loggers that are too chatty at INFO for a local service.
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine")


class _JsonFormatter(logging.Formatter):
    """One JSON line per record.

    ``extra`` fields (``file_id``, ``version_id``, ``file_path`` ...) are
    lifted to top-level keys.
    """

    _RESERVED = frozenset(logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys())

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        rid = request_id_var.get()
        if rid:
            payload["request_id"] = rid

        for key, value in record.__dict__.items():
            if key not in self._RESERVED and key not in payload:
                payload[key] = value

        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str)


# Snapshot contents and git output are arbitrary workspace text. Credentials
# quoted in an error message must not reach the log.
_SECRET_PATTERNS = [
    re.compile(r'\bgh[pousr]_[A-Za-z0-9]{20,}\b'),         # GitHub tokens
    re.compile(r'(?i)(bearer\s+)[A-Za-z0-9._\-]{20,}'),
    re.compile(r'(?i)((?:api_key|secret|password|token)[=:]\s*)[^\s,\'"]{8,}'),
    re.compile(r'(https?://[^:/\s]+:)[^@\s]+(?=@)'),       # credentials in remote URLs
]

_REDACTED = "***REDACTED***"


def redact(text: str) -> str:
    """Replace credentials in *text*, keeping any ``key=`` style prefix."""
    for pattern in _SECRET_PATTERNS:
        text = pattern.sub(lambda m: (m.group(1) if m.lastindex else "") + _REDACTED, text)
    return text


class _SecretFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        if record.args:
            record.msg = record.getMessage()
            record.args = None
        record.msg = redact(str(record.msg))
        if record.exc_text:
            record.exc_text = redact(record.exc_text)
        return True


def setup_logging(log_level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """Configure the root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL. Defaults to INFO.
        log_format: ``"json"`` or ``"text"``. Defaults to ``"text"``.
    """
    level = (log_level or "INFO").upper()
    fmt = (log_format or "text").lower()

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(_SecretFilter())
    if fmt == "json":
        handler.setFormatter(_JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(fmt=_TEXT_FORMAT, datefmt=_TEXT_DATEFMT))

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug("Logging configured", extra={"level": level, "format": fmt})
