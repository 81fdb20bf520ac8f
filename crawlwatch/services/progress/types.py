from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class StageName(StrEnum):
    PAGE_LISTING = "page_listing"
    DETAIL_FETCH = "detail_fetch"
    VALIDATION = "validation"
    PERSIST = "persist"
    SYNC = "sync"


@dataclass(frozen=True)
class StageCounters:
    started: int = 0
    completed: int = 0
    failed: int = 0
    retried: int = 0
    inflight: int = 0

    def as_dict(self) -> dict[str, int]:
        return {
            "started": self.started,
            "completed": self.completed,
            "failed": self.failed,
            "retried": self.retried,
            "inflight": self.inflight,
        }


@dataclass
class BatchPanel:
    current: int = 0
    completed: int = 0
    failed: int = 0
    batch_id: str | None = None
    pages_in_batch: int = 0
    pages_estimated: int = 0


@dataclass
class ConcurrencyPanel:
    downshifts: int = 0
    new_limit: int | None = None
    reason: str | None = None


@dataclass
class ValidationPanel:
    started: bool = False
    completed: bool = False
    target_pages: int = 0
    pages_scanned: int = 0
    products_checked: int = 0
    divergences: int = 0
    anomalies: int = 0
    last_page: int | None = None
    duration_ms: int | None = None


@dataclass
class SyncPanel:
    active: bool = False
    planned_pages: int | None = None
    pages_processed: int = 0
    inserted: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    last_page: int | None = None
    last_warning: str | None = None
    duration_ms: int | None = None


@dataclass
class PersistPanel:
    groups: int = 0
    duplicates: int = 0
    duration_ms: int = 0
    last_group_size: int = 0


@dataclass
class DatabasePanel:
    total_product_details: int | None = None
    min_page: int | None = None
    max_page: int | None = None
    products_inserted: int | None = None
    products_updated: int | None = None
    total_pages: int | None = None
