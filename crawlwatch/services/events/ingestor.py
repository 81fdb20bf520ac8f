from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable
import logging
from typing import Any

import httpx

from crawlwatch.logging_utils import structured_log
from crawlwatch.services.events.decoding import decode_event
from crawlwatch.services.events.types import LifecycleEvent

logger = logging.getLogger(__name__)

EventSink = Callable[[LifecycleEvent], None]
MessageSource = Callable[[], AsyncIterator[tuple[str, Any]]]


class EventIngestor:
    """Decodes raw engine messages and forwards them to a single sink."""

    def __init__(self, *, sink: EventSink, reconnect_delay_seconds: float = 3.0) -> None:
        self._sink = sink
        self._reconnect_delay_seconds = max(0.0, float(reconnect_delay_seconds))

    def ingest(self, name: Any, payload: Any) -> bool:
        event = decode_event(name, payload)
        if event is None:
            structured_log(logger, "debug", "ingestor.event_ignored", event_name=str(name))
            return False
        self._sink(event)
        return True

    async def consume(self, messages: AsyncIterator[tuple[str, Any]]) -> int:
        dispatched = 0
        async for name, payload in messages:
            if self.ingest(name, payload):
                dispatched += 1
        return dispatched

    async def run(self, source: MessageSource) -> None:
        """Keep a subscription open until cancelled, reconnecting after any subscription error."""
        while True:
            try:
                dispatched = await self.consume(source())
                structured_log(logger, "info", "ingestor.stream_closed", dispatched=dispatched)
            except asyncio.CancelledError:
                raise
            except httpx.HTTPError as exc:
                structured_log(
                    logger,
                    "warning",
                    "ingestor.subscription_failed",
                    error=str(exc) or type(exc).__name__,
                    retry_in_seconds=self._reconnect_delay_seconds,
                )
            except Exception as exc:
                structured_log(
                    logger,
                    "error",
                    "ingestor.subscription_failed",
                    error=str(exc) or type(exc).__name__,
                    error_type=type(exc).__name__,
                    retry_in_seconds=self._reconnect_delay_seconds,
                )
            await asyncio.sleep(self._reconnect_delay_seconds)
