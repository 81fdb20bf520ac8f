"""Structured logging helper shared by the services."""

from __future__ import annotations

import logging
from typing import Any


def structured_log(
    logger: logging.Logger,
    level: str,
    event: str,
    /,
    **fields: Any,
) -> None:
    """Emit ``event`` as the log message with ``fields`` attached as extras.

    The JSON formatter reads the event name back from the message, so it is
    not repeated in ``extra``. Fields set to ``None`` are dropped to keep the
    console lines short.

    Usage:
        structured_log(logger, "info", "session.started", session_id="s-1")
    """
    extra = {key: value for key, value in fields.items() if value is not None}
    log_method = getattr(logger, level.lower())
    log_method(event, extra=extra)
