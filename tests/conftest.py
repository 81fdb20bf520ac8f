from __future__ import annotations

from collections.abc import Callable
import json
from typing import Any

import httpx
import pytest

from crawlwatch.services.dashboard.runtime import DashboardRuntime
from crawlwatch.services.engine.client import EngineClient


class FakeEngine:
    """Answers engine commands from a table of canned responses."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.responses: dict[str, Callable[[dict[str, Any]], httpx.Response]] = {}

    def reply(self, command: str, payload: Any, *, status_code: int = 200) -> None:
        self.responses[command] = lambda _body: httpx.Response(
            status_code,
            content=json.dumps(payload).encode("utf-8"),
            headers={"content-type": "application/json"},
        )

    def raise_error(self, command: str, error: Exception) -> None:
        def _raise(_body: dict[str, Any]) -> httpx.Response:
            raise error

        self.responses[command] = _raise

    def commands(self) -> list[str]:
        return [command for command, _ in self.calls]

    async def __call__(self, *, command: str, body: dict[str, Any], timeout_seconds: float) -> httpx.Response:
        self.calls.append((command, body))
        handler = self.responses.get(command)
        if handler is None:
            return httpx.Response(404, json={"error": f"unknown command {command}"})
        return handler(body)


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def engine_client(fake_engine: FakeEngine) -> EngineClient:
    return EngineClient(base_url="http://engine.test", request_fn=fake_engine)


@pytest.fixture
def runtime(engine_client: EngineClient) -> DashboardRuntime:
    return DashboardRuntime(client=engine_client, reconnect_delay_seconds=0)
