from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator
import json
import logging
from typing import Any

from crawlwatch.logging_utils import structured_log

logger = logging.getLogger(__name__)

SUBSCRIBER_QUEUE_SIZE = 256


class SnapshotPublisher:
    """Fans dashboard snapshots out to every connected stream client."""

    def __init__(self, *, queue_size: int = SUBSCRIBER_QUEUE_SIZE) -> None:
        self._subscribers: set[asyncio.Queue[dict[str, Any]]] = set()
        self._queue_size = queue_size

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue[dict[str, Any]]:
        queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.add(queue)
        structured_log(logger, "debug", "dashboard.subscriber_added", subscribers=len(self._subscribers))
        return queue

    def unsubscribe(self, queue: asyncio.Queue[dict[str, Any]]) -> None:
        self._subscribers.discard(queue)

    def publish(self, event_type: str, data: dict[str, Any]) -> None:
        message = {"type": event_type, "data": data}
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(message)
            except asyncio.QueueFull:
                structured_log(logger, "warning", "dashboard.subscriber_queue_full", event_type=event_type)


async def snapshot_stream(publisher: SnapshotPublisher, initial: dict[str, Any]) -> AsyncGenerator[str, None]:
    queue = publisher.subscribe()
    try:
        yield _format_sse("snapshot", initial)
        while True:
            message = await queue.get()
            yield _format_sse(message["type"], message["data"])
    except asyncio.CancelledError:
        structured_log(logger, "debug", "dashboard.stream_disconnected")
        raise
    finally:
        publisher.unsubscribe(queue)


def _format_sse(event_type: str, data: dict[str, Any]) -> str:
    return f"event: {event_type}\ndata: {json.dumps(data, default=str)}\n\n"
