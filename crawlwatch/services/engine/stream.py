"""Server-sent event stream published by the crawling engine."""

from __future__ import annotations

from collections.abc import AsyncIterable, AsyncIterator
import json
import logging
from typing import Any

import httpx

from crawlwatch.logging_utils import structured_log

logger = logging.getLogger(__name__)


async def iter_sse_messages(lines: AsyncIterable[str]) -> AsyncIterator[tuple[str, Any]]:
    """Group SSE lines into ``(event name, decoded data)`` pairs.

    Messages without an ``event:`` field may carry ``{"name", "payload"}`` in
    their data instead. Data that is not JSON is passed through as text.
    """
    event_name = ""
    data_lines: list[str] = []
    async for raw_line in lines:
        line = raw_line.rstrip("\r")
        if line == "":
            if data_lines or event_name:
                message = _build_message(event_name, data_lines)
                if message is not None:
                    yield message
            event_name = ""
            data_lines = []
            continue
        if line.startswith(":"):
            continue
        field_name, _, value = line.partition(":")
        value = value[1:] if value.startswith(" ") else value
        if field_name == "event":
            event_name = value.strip()
        elif field_name == "data":
            data_lines.append(value)

    if data_lines or event_name:
        message = _build_message(event_name, data_lines)
        if message is not None:
            yield message


def _build_message(event_name: str, data_lines: list[str]) -> tuple[str, Any] | None:
    raw_data = "\n".join(data_lines)
    try:
        data: Any = json.loads(raw_data) if raw_data else {}
    except RecursionError:
        structured_log(logger, "warning", "engine.stream_message_too_deep", event_name=event_name or None)
        return None
    except ValueError:
        data = raw_data
    if event_name:
        return event_name, data
    if isinstance(data, dict) and isinstance(data.get("name"), str):
        return data["name"], data.get("payload")
    structured_log(logger, "debug", "engine.stream_message_unnamed")
    return None


class EngineEventStream:
    def __init__(self, *, base_url: str, events_path: str, connect_timeout_seconds: float = 10.0) -> None:
        self.url = f"{base_url.rstrip('/')}/{events_path.lstrip('/')}"
        self._timeout = httpx.Timeout(connect_timeout_seconds, read=None)

    async def messages(self) -> AsyncIterator[tuple[str, Any]]:
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            async with client.stream("GET", self.url, headers={"Accept": "text/event-stream"}) as response:
                response.raise_for_status()
                structured_log(logger, "info", "engine.stream_connected", url=self.url)
                async for message in iter_sse_messages(response.aiter_lines()):
                    yield message
