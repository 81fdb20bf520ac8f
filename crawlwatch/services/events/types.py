from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class EventKind(StrEnum):
    SESSION_STARTED = "session-started"
    SESSION_COMPLETED = "session-completed"
    SESSION_FAILED = "session-failed"
    SESSION_TIMEOUT = "session-timeout"
    SHUTDOWN_COMPLETED = "shutdown-completed"
    NEXT_PLAN_READY = "next-plan-ready"
    BATCH_STARTED = "batch-started"
    BATCH_COMPLETED = "batch-completed"
    BATCH_FAILED = "batch-failed"
    PAGE_TASK_STARTED = "page-task-started"
    PAGE_TASK_COMPLETED = "page-task-completed"
    PAGE_TASK_FAILED = "page-task-failed"
    PRODUCT_LIFECYCLE = "product-lifecycle"
    PRODUCT_LIFECYCLE_GROUP = "product-lifecycle-group"
    DETAIL_CONCURRENCY_DOWNSHIFTED = "detail-concurrency-downshifted"
    STAGE_STARTED = "stage-started"
    STAGE_COMPLETED = "stage-completed"
    VALIDATION_STARTED = "validation-started"
    VALIDATION_PAGE_SCANNED = "validation-page-scanned"
    VALIDATION_DIVERGENCE = "validation-divergence"
    VALIDATION_ANOMALY = "validation-anomaly"
    VALIDATION_COMPLETED = "validation-completed"
    SYNC_STARTED = "sync-started"
    SYNC_PAGE_STARTED = "sync-page-started"
    SYNC_PAGE_COMPLETED = "sync-page-completed"
    SYNC_WARNING = "sync-warning"
    SYNC_COMPLETED = "sync-completed"
    DATABASE_STATS = "database-stats"
    SESSION_REPORT = "session-report"


class UnitStatus(StrEnum):
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
    GROUP_REPORT = "group-report"


class GroupPhase(StrEnum):
    FETCH = "fetch"
    PERSIST = "persist"


@dataclass(frozen=True)
class SessionEvent:
    kind: EventKind
    session_id: str | None = None
    reason: str | None = None


@dataclass(frozen=True)
class NextPlanReadyEvent:
    plan: dict[str, Any]
    kind: EventKind = EventKind.NEXT_PLAN_READY


@dataclass(frozen=True)
class BatchEvent:
    kind: EventKind
    batch_id: str | None = None
    pages_in_batch: int = 0


@dataclass(frozen=True)
class PageTaskEvent:
    kind: EventKind
    page: int
    status: UnitStatus
    final_failure: bool = False


@dataclass(frozen=True)
class ProductLifecycleEvent:
    status: str
    product_ref: str | None = None
    kind: EventKind = EventKind.PRODUCT_LIFECYCLE


@dataclass(frozen=True)
class ProductGroupEvent:
    phase: GroupPhase
    group_size: int
    succeeded: int
    failed: int
    duplicates: int = 0
    duration_ms: int = 0
    group_id: str | None = None
    kind: EventKind = EventKind.PRODUCT_LIFECYCLE_GROUP
    status: UnitStatus = UnitStatus.GROUP_REPORT


@dataclass(frozen=True)
class DetailConcurrencyEvent:
    new_limit: int | None = None
    reason: str | None = None
    kind: EventKind = EventKind.DETAIL_CONCURRENCY_DOWNSHIFTED


@dataclass(frozen=True)
class StageEvent:
    """Generic stage boundary; engines without dedicated validation events send these."""

    kind: EventKind
    stage_type: str = ""
    items_count: int | None = None
    processed_items: int | None = None


@dataclass(frozen=True)
class ValidationEvent:
    kind: EventKind
    scan_pages: int | None = None
    physical_page: int | None = None
    products_found: int | None = None
    products_checked: int | None = None
    pages_scanned: int | None = None
    divergences: int | None = None
    anomalies: int | None = None
    duration_ms: int | None = None


@dataclass(frozen=True)
class SyncEvent:
    kind: EventKind
    ranges: tuple[tuple[int, int], ...] = field(default_factory=tuple)
    physical_page: int | None = None
    inserted: int | None = None
    updated: int | None = None
    skipped: int | None = None
    failed: int | None = None
    pages_processed: int | None = None
    duration_ms: int | None = None
    warning: str | None = None


@dataclass(frozen=True)
class DatabaseStatsEvent:
    total_product_details: int | None = None
    min_page: int | None = None
    max_page: int | None = None
    kind: EventKind = EventKind.DATABASE_STATS


@dataclass(frozen=True)
class SessionReportEvent:
    products_inserted: int | None = None
    products_updated: int | None = None
    total_pages: int | None = None
    kind: EventKind = EventKind.SESSION_REPORT


LifecycleEvent = (
    SessionEvent
    | NextPlanReadyEvent
    | BatchEvent
    | PageTaskEvent
    | ProductLifecycleEvent
    | ProductGroupEvent
    | DetailConcurrencyEvent
    | StageEvent
    | ValidationEvent
    | SyncEvent
    | DatabaseStatsEvent
    | SessionReportEvent
)
