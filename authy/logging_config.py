"""
Logging configuration for the authy web integration.

Structured JSON lines on stdout. The level comes from LOG_LEVEL
(default INFO).
"""

import json
import logging
import os
from datetime import UTC, datetime


# Credential fields never written to the log
REDACTED_FIELDS = frozenset(
    {"access_token", "refresh_token", "client_secret", "code", "state", "value"}
)
REDACTED = "[redacted]"


def _redact(fields: dict) -> dict:
    return {k: REDACTED if k in REDACTED_FIELDS else v for k, v in fields.items()}


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record.

    Fields passed as extra={"extra_fields": {...}} are merged in, with
    token values, codes and client secrets masked.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_object = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "severity": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            log_object.update(_redact(extra_fields))

        if record.exc_info:
            log_object["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_object, default=str)


def setup_global_logging(level: str | None = None) -> None:
    """
    Install the JSON formatter on the root logger.

    Calling it again only updates the level; handlers are not duplicated.

    Args:
        level: Log level name, defaults to LOG_LEVEL or INFO
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    root_logger = logging.getLogger()

    if not any(isinstance(h.formatter, JsonFormatter) for h in root_logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        root_logger.addHandler(handler)

    root_logger.setLevel(level)
