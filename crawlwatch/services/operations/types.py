from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from crawlwatch.services.diagnostics.types import PaginationDiagnosticReport, RepairPlanEntry
from crawlwatch.services.ranges.types import PageRange


class OperationName(StrEnum):
    VALIDATION = "validation"
    SYNC = "sync"
    DIAGNOSTIC_SCAN = "diagnostic_scan"
    DIAGNOSTIC_REPAIR = "diagnostic_repair"
    RANGE_RECOMPUTE = "range_recompute"
    SHUTDOWN = "shutdown"


class OperationStatus(StrEnum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class OperationInProgressError(RuntimeError):
    def __init__(self, operation: OperationName) -> None:
        super().__init__(f"Operation already running: {operation.value}")
        self.operation = operation


@dataclass
class OperationRecord:
    status: OperationStatus = OperationStatus.IDLE
    last_error: str | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class PreparedRanges:
    original_expression: str
    expression: str
    ranges: list[PageRange]
    changed: bool
    notices: list[str] = field(default_factory=list)

    @property
    def oldest_page(self) -> int:
        return max(page_range.start for page_range in self.ranges)

    @property
    def newest_page(self) -> int:
        return min(page_range.end for page_range in self.ranges)


@dataclass(frozen=True)
class OperationOutcome:
    prepared: PreparedRanges
    result: dict[str, Any]


@dataclass(frozen=True)
class DiagnosticsOutcome:
    report: PaginationDiagnosticReport
    coarse_expression: str | None
    slot_plan: list[RepairPlanEntry]

    @property
    def repair_needed(self) -> bool:
        return self.coarse_expression is not None or bool(self.slot_plan)


@dataclass(frozen=True)
class RepairOutcome:
    repair_needed: bool
    plan: list[RepairPlanEntry]
    result: dict[str, Any] | None = None


class OperationTracker:
    """Last known status of each operator-triggered command."""

    def __init__(self) -> None:
        self._records: dict[OperationName, OperationRecord] = {name: OperationRecord() for name in OperationName}

    def get(self, name: OperationName) -> OperationRecord:
        return self._records[name]

    def begin(self, name: OperationName) -> None:
        record = self._records[name]
        if record.status == OperationStatus.RUNNING:
            raise OperationInProgressError(name)
        record.status = OperationStatus.RUNNING
        record.last_error = None
        record.updated_at = datetime.now(UTC)

    def succeed(self, name: OperationName) -> None:
        record = self._records[name]
        record.status = OperationStatus.SUCCEEDED
        record.updated_at = datetime.now(UTC)

    def fail(self, name: OperationName, error: str) -> None:
        record = self._records[name]
        record.status = OperationStatus.FAILED
        record.last_error = error
        record.updated_at = datetime.now(UTC)

    def as_dict(self) -> dict[str, dict[str, Any]]:
        return {
            name.value: {
                "status": record.status.value,
                "last_error": record.last_error,
                "updated_at": record.updated_at,
            }
            for name, record in self._records.items()
        }
