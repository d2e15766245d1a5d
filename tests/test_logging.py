"""Tests for credential redaction in logs."""

import json
import logging
import sys

from app.core.logging import JSONFormatter, RedactingFilter, redact_key


def test_redact_key_in_url():
    url = "https://example.test/models/m:generateContent?key=AIzaSecret123&alt=json"
    assert redact_key(url) == "https://example.test/models/m:generateContent?key=***&alt=json"


def test_redact_leaves_other_text():
    assert redact_key("attempt 2/5 failed: status 503") == "attempt 2/5 failed: status 503"


def test_filter_redacts_args():
    record = logging.LogRecord("t", logging.INFO, __file__, 1, "calling %s", ("https://x.test/?key=abc",), None)
    assert RedactingFilter().filter(record) is True
    assert record.getMessage() == "calling https://x.test/?key=***"


def test_json_formatter():
    record = logging.LogRecord("app.test", logging.WARNING, __file__, 1, "hello %d", (3,), None)
    record.request_id = "r1"
    data = json.loads(JSONFormatter().format(record))
    assert data["level"] == "WARNING"
    assert data["logger"] == "app.test"
    assert data["message"] == "hello 3"
    assert data["request_id"] == "r1"


def _record_with_traceback() -> logging.LogRecord:
    try:
        raise RuntimeError("failed calling https://x.test/m:generateContent?key=AIzaSecret123")
    except RuntimeError:
        exc_info = sys.exc_info()
    return logging.LogRecord("app.test", logging.ERROR, __file__, 1, "boom", None, exc_info)


def test_text_formatter_redacts_traceback():
    record = _record_with_traceback()
    RedactingFilter().filter(record)

    output = logging.Formatter("%(levelname)s | %(message)s").format(record)

    assert "AIzaSecret123" not in output
    assert "key=***" in output
    assert "RuntimeError" in output


def test_json_formatter_redacts_traceback():
    record = _record_with_traceback()
    RedactingFilter().filter(record)

    data = json.loads(JSONFormatter().format(record))

    assert "AIzaSecret123" not in data["exception"]
    assert "key=***" in data["exception"]
