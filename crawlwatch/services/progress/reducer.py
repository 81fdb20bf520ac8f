"""Folds decoded lifecycle events into the progress state of one engine session."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from crawlwatch.services.events.types import (
    BatchEvent,
    DatabaseStatsEvent,
    DetailConcurrencyEvent,
    EventKind,
    GroupPhase,
    LifecycleEvent,
    NextPlanReadyEvent,
    PageTaskEvent,
    ProductGroupEvent,
    ProductLifecycleEvent,
    SessionEvent,
    SessionReportEvent,
    StageEvent,
    SyncEvent,
    UnitStatus,
    ValidationEvent,
)
from crawlwatch.services.progress.aggregator import StageAggregator
from crawlwatch.services.progress.types import (
    BatchPanel,
    ConcurrencyPanel,
    DatabasePanel,
    PersistPanel,
    StageName,
    SyncPanel,
    ValidationPanel,
)


def _new_stages() -> dict[StageName, StageAggregator]:
    return {stage: StageAggregator(stage) for stage in StageName}


@dataclass
class SessionProgress:
    stages: dict[StageName, StageAggregator] = field(default_factory=_new_stages)
    batch: BatchPanel = field(default_factory=BatchPanel)
    concurrency: ConcurrencyPanel = field(default_factory=ConcurrencyPanel)
    validation: ValidationPanel = field(default_factory=ValidationPanel)
    sync: SyncPanel = field(default_factory=SyncPanel)
    persist: PersistPanel = field(default_factory=PersistPanel)
    database: DatabasePanel = field(default_factory=DatabasePanel)

    def stage(self, name: StageName) -> StageAggregator:
        return self.stages[name]


def _apply_page_task(progress: SessionProgress, event: PageTaskEvent) -> None:
    stage = progress.stage(StageName.PAGE_LISTING)
    if event.status == UnitStatus.STARTED:
        stage.on_started(event.page)
    elif event.status == UnitStatus.COMPLETED:
        stage.on_completed(event.page)
    elif event.status == UnitStatus.FAILED:
        stage.on_failed(event.page, event.final_failure)


def _apply_product(progress: SessionProgress, event: ProductLifecycleEvent) -> None:
    if event.status != "failed":
        return
    # Single product failures carry no group; they count as one failed detail fetch.
    progress.stage(StageName.DETAIL_FETCH).on_group_report(0, 0, 1)


def _apply_product_group(progress: SessionProgress, event: ProductGroupEvent) -> None:
    if event.phase == GroupPhase.FETCH:
        progress.stage(StageName.DETAIL_FETCH).on_group_report(
            event.group_size, event.succeeded, event.failed
        )
        return
    progress.stage(StageName.PERSIST).on_group_report(event.group_size, event.succeeded, event.failed)
    panel = progress.persist
    panel.groups += 1
    panel.duplicates += event.duplicates
    panel.duration_ms += event.duration_ms
    panel.last_group_size = event.group_size


def _apply_concurrency(progress: SessionProgress, event: DetailConcurrencyEvent) -> None:
    panel = progress.concurrency
    panel.downshifts += 1
    panel.new_limit = event.new_limit
    panel.reason = event.reason


def _apply_batch(progress: SessionProgress, event: BatchEvent) -> None:
    panel = progress.batch
    if event.kind == EventKind.BATCH_STARTED:
        panel.current += 1
        panel.pages_estimated += event.pages_in_batch
        panel.batch_id = event.batch_id or panel.batch_id
        panel.pages_in_batch = event.pages_in_batch or panel.pages_in_batch
    elif event.kind == EventKind.BATCH_COMPLETED:
        panel.completed += 1
    elif event.kind == EventKind.BATCH_FAILED:
        panel.failed += 1


def _apply_validation(progress: SessionProgress, event: ValidationEvent) -> None:
    if event.kind == EventKind.VALIDATION_STARTED:
        progress.validation = ValidationPanel(started=True, target_pages=max(0, event.scan_pages or 0))
        return

    panel = progress.validation
    if event.kind == EventKind.VALIDATION_PAGE_SCANNED:
        if event.physical_page is not None and event.physical_page > 0:
            progress.stage(StageName.VALIDATION).on_completed(event.physical_page)
            panel.last_page = event.physical_page
        panel.pages_scanned += 1
        panel.products_checked += max(0, event.products_found or 0)
    elif event.kind == EventKind.VALIDATION_DIVERGENCE:
        panel.divergences += 1
    elif event.kind == EventKind.VALIDATION_ANOMALY:
        panel.anomalies += 1
    elif event.kind == EventKind.VALIDATION_COMPLETED:
        panel.completed = True
        if event.pages_scanned is not None:
            panel.pages_scanned = event.pages_scanned
        if event.divergences is not None:
            panel.divergences = event.divergences
        if event.products_checked is not None and event.products_checked > 0:
            panel.products_checked = event.products_checked
        if event.anomalies is not None:
            panel.anomalies = event.anomalies
        panel.duration_ms = event.duration_ms


def _apply_stage(progress: SessionProgress, event: StageEvent) -> None:
    # Only validation has a panel fed from generic stage boundaries.
    if "validation" not in event.stage_type:
        return
    panel = progress.validation
    if event.kind == EventKind.STAGE_STARTED:
        panel.started = True
        panel.completed = False
        if event.items_count is not None and event.items_count > 0:
            panel.target_pages = event.items_count
    elif event.kind == EventKind.STAGE_COMPLETED:
        panel.completed = True
        if event.processed_items is not None and event.processed_items > 0:
            panel.pages_scanned = event.processed_items


def _planned_sync_pages(ranges: tuple[tuple[int, int], ...]) -> int | None:
    planned = sum(max(0, start - end + 1) for start, end in ranges)
    return planned or None


def _apply_sync(progress: SessionProgress, event: SyncEvent) -> None:
    if event.kind == EventKind.SYNC_STARTED:
        progress.sync = SyncPanel(active=True, planned_pages=_planned_sync_pages(event.ranges))
        return

    panel = progress.sync
    stage = progress.stage(StageName.SYNC)
    page = event.physical_page if event.physical_page is not None and event.physical_page > 0 else None
    if event.kind == EventKind.SYNC_PAGE_STARTED:
        if page is not None:
            stage.on_started(page)
            panel.last_page = page
    elif event.kind == EventKind.SYNC_PAGE_COMPLETED:
        if page is not None:
            stage.on_completed(page)
        panel.pages_processed += 1
        panel.inserted += max(0, event.inserted or 0)
        panel.updated += max(0, event.updated or 0)
        panel.skipped += max(0, event.skipped or 0)
        panel.failed += max(0, event.failed or 0)
    elif event.kind == EventKind.SYNC_WARNING:
        panel.last_warning = event.warning
    elif event.kind == EventKind.SYNC_COMPLETED:
        panel.active = False
        for name in ("pages_processed", "inserted", "updated", "skipped", "failed"):
            value = getattr(event, name)
            if value is not None:
                setattr(panel, name, max(0, value))
        panel.duration_ms = event.duration_ms


def _apply_database_stats(progress: SessionProgress, event: DatabaseStatsEvent) -> None:
    panel = progress.database
    if event.total_product_details is not None:
        panel.total_product_details = event.total_product_details
    if event.min_page is not None:
        panel.min_page = event.min_page
    if event.max_page is not None:
        panel.max_page = event.max_page


def _apply_session_report(progress: SessionProgress, event: SessionReportEvent) -> None:
    panel = progress.database
    if event.products_inserted is not None:
        panel.products_inserted = event.products_inserted
    if event.products_updated is not None:
        panel.products_updated = event.products_updated
    if event.total_pages is not None:
        panel.total_pages = event.total_pages


def _session_level(progress: SessionProgress, event: Any) -> None:
    """Session transitions and plans belong to the lifecycle controller."""


_HANDLERS: dict[type, Callable[[SessionProgress, Any], None]] = {
    SessionEvent: _session_level,
    NextPlanReadyEvent: _session_level,
    BatchEvent: _apply_batch,
    PageTaskEvent: _apply_page_task,
    ProductLifecycleEvent: _apply_product,
    ProductGroupEvent: _apply_product_group,
    DetailConcurrencyEvent: _apply_concurrency,
    StageEvent: _apply_stage,
    ValidationEvent: _apply_validation,
    SyncEvent: _apply_sync,
    DatabaseStatsEvent: _apply_database_stats,
    SessionReportEvent: _apply_session_report,
}


def handled_event_types() -> frozenset[type]:
    return frozenset(_HANDLERS)


def apply_event(progress: SessionProgress, event: LifecycleEvent) -> None:
    handler = _HANDLERS.get(type(event))
    if handler is None:
        raise TypeError(f"Unhandled lifecycle event type: {type(event).__name__}")
    handler(progress, event)
