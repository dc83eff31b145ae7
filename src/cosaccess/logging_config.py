from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any


_RESERVED_RECORD_FIELDS = set(logging.makeLogRecord({}).__dict__.keys())
_SECRET_MARKERS = ("key", "secret", "token", "password")


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def mask(value: str | None) -> str:
    if not value:
        return ""
    if len(value) <= 4:
        return "****"
    return f"****{value[-4:]}"


def redact(options: dict[str, Any]) -> dict[str, Any]:
    """Copy of an option mapping with credential-like values masked."""
    redacted: dict[str, Any] = {}
    for key, value in options.items():
        if isinstance(value, dict):
            redacted[key] = redact(value)
        elif isinstance(value, str) and any(marker in key.lower() for marker in _SECRET_MARKERS):
            redacted[key] = mask(value)
        else:
            redacted[key] = value
    return redacted


def _context(record: logging.LogRecord) -> dict[str, Any]:
    """Fields passed through `extra=` or `with_context`, secrets masked."""
    return redact({
        key: value for key, value in record.__dict__.items()
        if key not in _RESERVED_RECORD_FIELDS and not key.startswith("_")
    })


class _ServiceFormatter(logging.Formatter):
    def __init__(self, service: str) -> None:
        super().__init__()
        self.service = service

    def timestamp(self) -> datetime:
        return datetime.now(timezone.utc)


class JsonFormatter(_ServiceFormatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": self.timestamp().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "service": self.service,
            "message": record.getMessage(),
        }

        context = _context(record)
        if context:
            payload["context"] = context

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, separators=(",", ":"))


class TextFormatter(_ServiceFormatter):
    def format(self, record: logging.LogRecord) -> str:
        message = f"{self.timestamp():%Y-%m-%dT%H:%M:%S%z} {record.levelname} {record.name} service={self.service} message={record.getMessage()}"

        context = _context(record)
        if context:
            message += " " + " ".join(f"{key}={value!r}" for key, value in sorted(context.items()))

        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def configure_logging(level: str | None = None, service: str = "cosaccess") -> None:
    env_level = level or os.getenv("LOG_LEVEL", "INFO")
    resolved_level = getattr(logging, env_level.upper(), logging.INFO)
    use_json = _parse_bool(os.getenv("LOG_JSON"), default=False)

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(JsonFormatter(service=service) if use_json else TextFormatter(service=service))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(resolved_level)
    # botocore logs request bodies and signing material at DEBUG
    logging.getLogger("botocore").setLevel(max(resolved_level, logging.INFO))
    logging.getLogger("urllib3").setLevel(max(resolved_level, logging.WARNING))
    logging.captureWarnings(True)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def with_context(logger: logging.Logger, **context: Any) -> logging.LoggerAdapter:
    return logging.LoggerAdapter(logger, extra=context)
