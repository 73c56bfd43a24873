import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Optional

from captable_engine.config import get_settings

AUDIT_LOGGER_NAME = "captable_engine.audit"


class JsonFormatter(logging.Formatter):
    """One JSON object per record; ``stream_label`` tells engine and audit lines apart."""

    def __init__(self, stream_label: str = "engine") -> None:
        super().__init__()
        self.stream_label = stream_label

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "stream": self.stream_label,
        }
        record_id = getattr(record, "record_id", None)
        if record_id is not None:
            payload["record_id"] = record_id
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def configure_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> None:
    settings = get_settings()
    log_level = (level or settings.log_level).upper()
    log_format = fmt or settings.log_format
    if log_format == "json":
        default_formatter = {"()": JsonFormatter, "stream_label": "engine"}
        audit_formatter = {"()": JsonFormatter, "stream_label": "audit"}
    else:
        default_formatter = {"format": "%(asctime)s %(levelname)s %(name)s %(message)s"}
        audit_formatter = {"format": "%(asctime)s AUDIT %(name)s %(message)s"}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": default_formatter,
                "audit": audit_formatter,
            },
            "handlers": {
                "default": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "default",
                    "stream": "ext://sys.stderr",
                },
                "audit": {
                    "class": "logging.StreamHandler",
                    "level": log_level,
                    "formatter": "audit",
                    "stream": "ext://sys.stderr",
                },
            },
            "loggers": {
                "captable_engine": {"handlers": ["default"], "level": log_level, "propagate": False},
                AUDIT_LOGGER_NAME: {"handlers": ["audit"], "level": log_level, "propagate": False},
            },
        }
    )
    logging.getLogger(__name__).info("Logging configured level=%s format=%s", log_level, log_format)


def get_audit_logger() -> logging.Logger:
    return logging.getLogger(AUDIT_LOGGER_NAME)
