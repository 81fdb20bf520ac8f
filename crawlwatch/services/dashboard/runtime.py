from __future__ import annotations

import asyncio
from collections.abc import Coroutine
import logging
from typing import Any

from crawlwatch.logging_utils import structured_log
from crawlwatch.services.diagnostics.types import PaginationDiagnosticReport
from crawlwatch.services.engine.client import EngineClient
from crawlwatch.services.engine.errors import EngineCommandError
from crawlwatch.services.engine.stream import EngineEventStream
from crawlwatch.services.dashboard.publisher import SnapshotPublisher
from crawlwatch.services.events.ingestor import EventIngestor
from crawlwatch.services.events.types import LifecycleEvent
from crawlwatch.services.operations import application as operations
from crawlwatch.services.operations.types import OperationInProgressError, OperationTracker
from crawlwatch.services.progress.projection import project_progress
from crawlwatch.services.session.controller import SessionLifecycleController
from crawlwatch.services.session.types import Effect, RecomputeRange

logger = logging.getLogger(__name__)


class DashboardRuntime:
    """Wires the event subscription, the session controller and the engine client together.

    All state changes happen on the event loop thread: events are applied in
    the ingestor task and effects are scheduled as separate tasks that never
    block event processing.
    """

    def __init__(
        self,
        *,
        client: EngineClient,
        stream: EngineEventStream | None = None,
        publisher: SnapshotPublisher | None = None,
        reconnect_delay_seconds: float = 3.0,
        items_per_page: int = 12,
        validation_max_span: int = 0,
        sync_max_span: int = 0,
    ) -> None:
        self.client = client
        self.stream = stream
        self.publisher = publisher or SnapshotPublisher()
        self.controller = SessionLifecycleController()
        self.tracker = OperationTracker()
        self.ingestor = EventIngestor(sink=self.handle_event, reconnect_delay_seconds=reconnect_delay_seconds)
        self.items_per_page = max(1, int(items_per_page))
        self.validation_max_span = max(0, int(validation_max_span))
        self.sync_max_span = max(0, int(sync_max_span))
        self.latest_report: PaginationDiagnosticReport | None = None
        self._site_total_pages: int | None = None
        self._subscription: asyncio.Task[None] | None = None
        self._background_tasks: set[asyncio.Task[Any]] = set()

    # ── Lifecycle ────────────────────────────────────────────────────

    async def start(self) -> None:
        if self.stream is None or self._subscription is not None:
            return
        self._subscription = asyncio.create_task(
            self.ingestor.run(self.stream.messages),
            name="crawlwatch-engine-subscription",
        )
        structured_log(logger, "info", "dashboard.subscription_started", url=self.stream.url)

    async def stop(self) -> None:
        tasks = list(self._background_tasks)
        if self._subscription is not None:
            tasks.append(self._subscription)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._subscription = None
        self._background_tasks.clear()
        structured_log(logger, "info", "dashboard.subscription_stopped")

    # ── Events ───────────────────────────────────────────────────────

    def handle_event(self, event: LifecycleEvent) -> None:
        effects = self.controller.handle(event)
        self.publisher.publish("snapshot", self.snapshot())
        for effect in effects:
            self._schedule(self._run_effect(effect))

    def _schedule(self, coroutine: Coroutine[Any, Any, Any]) -> None:
        task = asyncio.get_running_loop().create_task(coroutine)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)

    async def _run_effect(self, effect: Effect) -> None:
        if isinstance(effect, RecomputeRange):
            try:
                await self.recompute_range()
            except (EngineCommandError, OperationInProgressError) as exc:
                structured_log(
                    logger,
                    "warning",
                    "dashboard.range_recompute_skipped",
                    reason=effect.reason,
                    error=str(exc),
                )

    # ── Commands ─────────────────────────────────────────────────────

    @property
    def site_total_pages(self) -> int | None:
        if self._site_total_pages:
            return self._site_total_pages
        return self.controller.progress.database.total_pages

    async def recompute_range(self) -> dict[str, Any]:
        total_pages, plan = await operations.recompute_range(self.client, self.tracker)
        if total_pages > 0:
            self._site_total_pages = total_pages
        self.controller.accept_plan(plan.to_dict())
        self.publisher.publish("snapshot", self.snapshot())
        return plan.to_dict()

    async def start_validation(self, *, expression: str | None, scan_pages: int | None = None):
        return await operations.start_validation(
            self.client,
            self.tracker,
            expression=expression,
            total_pages=self.site_total_pages,
            max_span=self.validation_max_span,
            scan_pages=scan_pages,
        )

    async def start_sync(self, *, expression: str | None, dry_run: bool = False):
        return await operations.start_sync(
            self.client,
            self.tracker,
            expression=expression,
            total_pages=self.site_total_pages,
            max_span=self.sync_max_span,
            dry_run=dry_run,
            report=self.latest_report,
        )

    async def scan_diagnostics(self):
        outcome = await operations.scan_diagnostics(self.client, self.tracker, items_per_page=self.items_per_page)
        self.latest_report = outcome.report
        if outcome.report.total_pages_site:
            self._site_total_pages = outcome.report.total_pages_site
        return outcome

    async def repair_slots(self, *, dry_run: bool = False):
        if self.latest_report is None:
            return None
        return await operations.repair_slots(
            self.client,
            self.tracker,
            report=self.latest_report,
            items_per_page=self.items_per_page,
            dry_run=dry_run,
        )

    async def request_shutdown(self) -> None:
        await operations.request_shutdown(self.client, self.tracker)

    # ── Projection ───────────────────────────────────────────────────

    def snapshot(self) -> dict[str, Any]:
        controller = self.controller
        return {
            "session": {
                "state": controller.state.value,
                "session_id": controller.session_id,
                "failure_reason": controller.failure_reason,
                "started_at": controller.started_at,
                "ended_at": controller.ended_at,
            },
            "progress": project_progress(controller.progress),
            "suggested_range": controller.suggested_range,
            "next_plan": controller.next_plan,
            "site_total_pages": self.site_total_pages,
            "operations": self.tracker.as_dict(),
        }
