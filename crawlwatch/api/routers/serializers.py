from __future__ import annotations

from dataclasses import asdict
from typing import Any

from crawlwatch.services.diagnostics.types import PaginationDiagnosticReport, RepairPlanEntry
from crawlwatch.services.operations.types import PreparedRanges
from crawlwatch.services.ranges.expressions import covered_page_count


def serialize_prepared(prepared: PreparedRanges) -> dict[str, Any]:
    return {
        "original_expression": prepared.original_expression,
        "expression": prepared.expression,
        "ranges": [page_range.as_pair() for page_range in prepared.ranges],
        "changed": prepared.changed,
        "notices": list(prepared.notices),
        "page_count": covered_page_count(prepared.ranges),
    }


def serialize_report(report: PaginationDiagnosticReport) -> dict[str, Any]:
    return asdict(report)


def serialize_plan(plan: list[RepairPlanEntry]) -> list[dict[str, Any]]:
    return [entry.to_command_dict() for entry in plan]
