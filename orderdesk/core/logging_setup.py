from __future__ import annotations

import json
import logging
import re
from datetime import datetime, timezone

from orderdesk.core.config import DB_ECHO, LOG_LEVEL
from orderdesk.core.operation_context import get_operation, get_operation_id

_SENSITIVE_PATTERNS = [
    re.compile(r"(password\s*[:=]\s*)([^\s\",}]+)", re.IGNORECASE),
    re.compile(r"(secret\s*[:=]\s*)([^\s\",}]+)", re.IGNORECASE),
    re.compile(r"(token\s*[:=]\s*)([^\s\",}]+)", re.IGNORECASE),
    # user:password@host in database URLs
    re.compile(r"(\b[a-z][a-z0-9+.-]*://[^:/@\s]+:)([^@\s]+)(?=@)", re.IGNORECASE),
]

_OPTIONAL_FIELDS = ("duration_ms", "step", "rowcount", "steps")


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "operation_id": getattr(record, "operation_id", None) or get_operation_id(),
            "operation": getattr(record, "operation", None) or get_operation(),
            "module": record.name,
            "message": self._mask(record.getMessage()),
        }
        for field in _OPTIONAL_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                payload[field] = value
        if record.exc_info:
            payload["exception"] = self._mask(self.formatException(record.exc_info))
        return json.dumps(payload, ensure_ascii=False, default=str)

    def _mask(self, value: str) -> str:
        masked = value
        for pattern in _SENSITIVE_PATTERNS:
            masked = pattern.sub(r"\1***", masked)
        return masked


def configure_logging(level: str | None = None) -> None:
    resolved_level = (level or LOG_LEVEL).upper()
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(resolved_level)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter("%(message)s"))
    root_logger.addHandler(handler)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO if DB_ECHO else logging.WARNING)
