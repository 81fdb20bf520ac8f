from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
import sys
from typing import Any

from crawlwatch.logging_context import get_engine_session_id, get_request_id

DEFAULT_REDACT_FIELDS = frozenset(
    {
        "api_key",
        "authorization",
        "cookie",
        "engine_token",
        "token",
    }
)
REDACTED = "[REDACTED]"

_STANDARD_RECORD_FIELDS = set(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}
_NOISY_RECORD_FIELDS = {"color_message"}
_FRAMEWORK_LOGGERS = ("uvicorn", "uvicorn.error")
# The engine subscription and command client go through httpx; per-request lines drown the event log.
_CHATTY_CLIENT_LOGGERS = ("httpx", "httpcore")
_HEAD_FIELDS = ("timestamp", "level", "logger", "event")


def parse_redact_fields(raw: str | None) -> set[str]:
    extra = {field.strip().lower() for field in (raw or "").split(",") if field.strip()}
    return set(DEFAULT_REDACT_FIELDS) | extra


def configure_logging(
    *,
    level: str,
    log_format: str,
    redact_fields: set[str],
    include_uvicorn_access: bool,
) -> None:
    root_level = _normalize_level(level)
    formatter: logging.Formatter
    if log_format.strip().lower() == "json":
        formatter = JsonLogFormatter(redact_fields=redact_fields)
    else:
        formatter = ConsoleLogFormatter(redact_fields=redact_fields)

    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setLevel(root_level)
    handler.addFilter(ContextFilter())
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(root_level)
    root_logger.addHandler(handler)

    for name in _FRAMEWORK_LOGGERS:
        _propagate_to_root(name, root_level)
    _propagate_to_root("uvicorn.access", root_level if include_uvicorn_access else logging.WARNING)
    for name in _CHATTY_CLIENT_LOGGERS:
        logging.getLogger(name).setLevel(max(root_level, logging.WARNING))


def _propagate_to_root(name: str, level: int) -> None:
    framework_logger = logging.getLogger(name)
    framework_logger.handlers.clear()
    framework_logger.propagate = True
    framework_logger.setLevel(level)


class ContextFilter(logging.Filter):
    """Stamps the current request id and engine session id onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        for attribute, getter in (("request_id", get_request_id), ("session_id", get_engine_session_id)):
            if getattr(record, attribute, None):
                continue
            value = getter()
            if value:
                setattr(record, attribute, value)
        return True


def redact(key: str, value: Any, fields: set[str] | frozenset[str]) -> Any:
    if key.lower() in fields:
        return REDACTED
    if isinstance(value, dict):
        return {nested_key: redact(nested_key, nested, fields) for nested_key, nested in value.items()}
    if isinstance(value, (list, tuple)):
        return [redact(key, item, fields) for item in value]
    return value


def _record_payload(record: logging.LogRecord, redact_fields: set[str]) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "timestamp": _format_timestamp(record.created),
        "level": record.levelname.lower(),
        "logger": record.name,
        "event": getattr(record, "event", record.getMessage()),
    }
    for key, value in record.__dict__.items():
        if key in _STANDARD_RECORD_FIELDS or key in _NOISY_RECORD_FIELDS or key.startswith("_"):
            continue
        if key == "event":
            continue
        payload[key] = redact(key, value, redact_fields)
    return payload


class JsonLogFormatter(logging.Formatter):
    def __init__(self, *, redact_fields: set[str]) -> None:
        super().__init__()
        self._redact_fields = {field.lower() for field in redact_fields}

    def format(self, record: logging.LogRecord) -> str:
        payload = _record_payload(record, self._redact_fields)
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


_CONSOLE_SHORT_KEYS = {
    "physical_page": "pp",
    "expression": "expr",
    "event_name": "evt",
}


class ConsoleLogFormatter(logging.Formatter):
    """One line per record: ``time LVL [session] logger event | rid | fields``."""

    def __init__(self, *, redact_fields: set[str]) -> None:
        super().__init__()
        self._redact_fields = {field.lower() for field in redact_fields}

    def format(self, record: logging.LogRecord) -> str:
        payload = _record_payload(record, self._redact_fields)
        session_id = payload.pop("session_id", None)
        request_id = payload.pop("request_id", None)

        head = [payload["timestamp"], _short_level(payload["level"])]
        if session_id:
            head.append(f"[{session_id}]")
        head.extend([payload["logger"], str(payload["event"])])
        parts = [" ".join(head)]

        if request_id:
            parts.append(f"rid={request_id}")
        method = payload.pop("method", None)
        path = payload.pop("path", None)
        if method and path:
            status_code = payload.pop("status_code", None)
            duration_ms = payload.pop("duration_ms", None)
            request_line = f"{method} {path}"
            if status_code is not None:
                request_line += f" {status_code}"
            if duration_ms is not None:
                request_line += f" {duration_ms}ms"
            parts.append(request_line)

        fields = [
            f"{_CONSOLE_SHORT_KEYS.get(key, key)}={payload[key]}"
            for key in sorted(payload)
            if key not in _HEAD_FIELDS
        ]
        if fields:
            parts.append(" ".join(fields))

        line = " | ".join(parts)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _normalize_level(level: str) -> int:
    mapping = logging.getLevelNamesMapping()
    return mapping.get(level.strip().upper(), logging.INFO)


def _format_timestamp(created_ts: float) -> str:
    moment = datetime.fromtimestamp(created_ts, tz=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.") + f"{moment.microsecond // 1000:03d}Z"


def _short_level(level: str) -> str:
    mapping = {
        "debug": "DBG",
        "info": "INF",
        "warning": "WRN",
        "error": "ERR",
        "critical": "CRT",
    }
    return mapping.get(level.lower(), level[:3].upper())
