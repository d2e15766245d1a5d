"""Centralized logging configuration."""

import json
import logging
import re
import sys
from datetime import datetime, timezone

from app.core.config import settings

# Gemini takes the credential as a query parameter, so URLs must be scrubbed before logging
_KEY_PARAM = re.compile(r"([?&]key=)[^&\s]+")


def redact_key(text: str) -> str:
    """Mask the value of any ``key=`` query parameter in *text*."""
    return _KEY_PARAM.sub(r"\1***", text)


_traceback_formatter = logging.Formatter()


class RedactingFilter(logging.Filter):
    """Strip API keys from log messages, arguments and tracebacks."""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.args:
            record.msg = record.getMessage()
            record.args = None
        record.msg = redact_key(str(record.msg))
        # Formatter.format reuses exc_text when it is already set
        if record.exc_info and record.exc_info[1] and not record.exc_text:
            record.exc_text = _traceback_formatter.formatException(record.exc_info)
        if record.exc_text:
            record.exc_text = redact_key(record.exc_text)
        return True


class JSONFormatter(logging.Formatter):
    """Structured JSON log formatter for production."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_text:
            log_data["exception"] = redact_key(record.exc_text)
        elif record.exc_info and record.exc_info[1]:
            log_data["exception"] = redact_key(self.formatException(record.exc_info))
        if hasattr(record, "request_id"):
            log_data["request_id"] = record.request_id
        return json.dumps(log_data, ensure_ascii=False)


def setup_logging() -> None:
    """Configure logging for the entire application."""
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.addFilter(RedactingFilter())

    if settings.log_json:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

    root.addHandler(handler)

    # httpx logs full request URLs, which carry the key
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
