from __future__ import annotations

from contextvars import ContextVar

_request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
_session_id_ctx: ContextVar[str | None] = ContextVar("engine_session_id", default=None)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


def set_request_id(value: str | None) -> None:
    _request_id_ctx.set(value)


def get_engine_session_id() -> str | None:
    return _session_id_ctx.get()


def set_engine_session_id(value: str | None) -> None:
    """Tag log records emitted while an engine session is being folded."""
    _session_id_ctx.set(value)
