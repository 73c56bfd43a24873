"""Tests for settings and the structured log formatter."""

import json
import logging
import sys

from captable_engine.config import get_settings
from captable_engine.log_config import JsonFormatter


def _record(msg, *args, **extra):
    record = logging.LogRecord(
        name="captable_engine.audit",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_settings_defaults(monkeypatch):
    for name in ("CAPTABLE_LOG_LEVEL", "CAPTABLE_LOG_FORMAT", "CAPTABLE_STRICT_VALIDATION"):
        monkeypatch.delenv(name, raising=False)

    settings = get_settings()

    assert settings.log_level == "INFO"
    assert settings.log_format == "json"
    assert settings.strict_validation is False


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("CAPTABLE_LOG_LEVEL", "DEBUG")
    monkeypatch.setenv("CAPTABLE_LOG_FORMAT", "plain")

    settings = get_settings()

    assert settings.log_level == "DEBUG"
    assert settings.log_format == "plain"


def test_json_formatter_fields():
    payload = json.loads(JsonFormatter("audit").format(_record("issuance.create %s", "is_1", record_id="is_1")))

    assert payload["message"] == "issuance.create is_1"
    assert payload["level"] == "INFO"
    assert payload["logger"] == "captable_engine.audit"
    assert payload["stream"] == "audit"
    assert payload["record_id"] == "is_1"
    assert payload["timestamp"].endswith("+00:00")


def test_json_formatter_includes_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        record = _record("failed")
        record.exc_info = sys.exc_info()

    payload = json.loads(JsonFormatter().format(record))

    assert payload["stream"] == "engine"
    assert "ValueError: boom" in payload["exc_info"]
    assert "record_id" not in payload
