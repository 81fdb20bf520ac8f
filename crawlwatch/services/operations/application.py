"""Operator-triggered engine commands: validation, sync, diagnostics and repair.

Every command goes through the same steps: user input is parsed and clamped
into a corrected range expression, an empty result aborts before the engine
is contacted, and engine failures are logged and recorded on the operation
tracker before propagating to the caller. Progress counters are never
touched here; they only move on engine events.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
import logging
from typing import Any, TypeVar

from crawlwatch.logging_utils import structured_log
from crawlwatch.services.diagnostics.reconciler import (
    derive_coarse_repair_range,
    derive_slot_repair_plan,
)
from crawlwatch.services.diagnostics.types import PaginationDiagnosticReport
from crawlwatch.services.engine.client import EngineClient
from crawlwatch.services.engine.errors import EngineCommandError
from crawlwatch.services.engine.types import CrawlingRangePlan
from crawlwatch.services.operations.types import (
    DiagnosticsOutcome,
    OperationName,
    OperationOutcome,
    OperationTracker,
    PreparedRanges,
    RepairOutcome,
)
from crawlwatch.services.ranges.clamping import (
    clamp_to_max_span,
    clamp_to_site_bounds,
    describe_clamp,
)
from crawlwatch.services.ranges.errors import RangeExpressionError
from crawlwatch.services.ranges.expressions import parse_expression, serialize

logger = logging.getLogger(__name__)

T = TypeVar("T")


def prepare_ranges(
    raw_expression: str | None,
    *,
    total_pages: int | None,
    max_span: int = 0,
) -> PreparedRanges:
    original = (raw_expression or "").strip()
    parsed = parse_expression(original)
    if not parsed:
        raise RangeExpressionError(original)

    notices: list[str] = []
    token_count = sum(1 for token in original.split(",") if token.strip())
    dropped = token_count - len(parsed)
    if dropped > 0:
        notices.append(f"ignored {dropped} unparseable token(s)")

    ranges = parsed
    changed = False
    if total_pages is not None and total_pages > 0:
        site_clamp = clamp_to_site_bounds(ranges, total_pages)
        if site_clamp.changed:
            notices.append(describe_clamp(ranges, site_clamp.ranges, reason=f"clamped to site pages 1-{total_pages}"))
            ranges = site_clamp.ranges
            changed = True
    if max_span > 0:
        span_clamp = clamp_to_max_span(ranges, max_span)
        if span_clamp.changed:
            notices.append(describe_clamp(ranges, span_clamp.ranges, reason=f"limited to {max_span} pages per range"))
            ranges = span_clamp.ranges
            changed = True

    return PreparedRanges(
        original_expression=original,
        expression=serialize(ranges),
        ranges=ranges,
        changed=changed,
        notices=notices,
    )


async def _run_tracked(
    tracker: OperationTracker,
    name: OperationName,
    call: Callable[[], Awaitable[T]],
    **log_fields: Any,
) -> T:
    tracker.begin(name)
    try:
        result = await call()
    except EngineCommandError as exc:
        tracker.fail(name, exc.message)
        structured_log(
            logger,
            "error",
            "operations.command_failed",
            operation=name.value,
            command=exc.command,
            error=exc.message,
            **log_fields,
        )
        raise
    except Exception as exc:
        tracker.fail(name, str(exc) or type(exc).__name__)
        raise
    tracker.succeed(name)
    structured_log(logger, "info", "operations.command_completed", operation=name.value, **log_fields)
    return result


async def start_validation(
    client: EngineClient,
    tracker: OperationTracker,
    *,
    expression: str | None,
    total_pages: int | None,
    max_span: int = 0,
    scan_pages: int | None = None,
) -> OperationOutcome:
    prepared = prepare_ranges(expression, total_pages=total_pages, max_span=max_span)
    result = await _run_tracked(
        tracker,
        OperationName.VALIDATION,
        lambda: client.start_validation(
            start_physical_page=prepared.oldest_page,
            end_physical_page=prepared.newest_page,
            scan_pages=scan_pages,
            ranges_expr=prepared.expression,
        ),
        expression=prepared.expression,
    )
    return OperationOutcome(prepared=prepared, result=result)


async def start_sync(
    client: EngineClient,
    tracker: OperationTracker,
    *,
    expression: str | None,
    total_pages: int | None,
    max_span: int = 0,
    dry_run: bool = False,
    report: PaginationDiagnosticReport | None = None,
) -> OperationOutcome:
    notices: list[str] = []
    if not (expression or "").strip() and report is not None:
        derived = derive_coarse_repair_range(report.group_summaries, report.total_pages_site)
        if derived:
            expression = derived
            notices.append(f"range derived from diagnostics: {derived}")

    prepared = prepare_ranges(expression, total_pages=total_pages, max_span=max_span)
    if notices:
        prepared = PreparedRanges(
            original_expression=prepared.original_expression,
            expression=prepared.expression,
            ranges=prepared.ranges,
            changed=prepared.changed,
            notices=notices + prepared.notices,
        )
    result = await _run_tracked(
        tracker,
        OperationName.SYNC,
        lambda: client.start_partial_sync(prepared.expression, dry_run=dry_run),
        expression=prepared.expression,
        dry_run=dry_run,
    )
    return OperationOutcome(prepared=prepared, result=result)


def reconcile_report(report: PaginationDiagnosticReport, *, items_per_page: int) -> DiagnosticsOutcome:
    return DiagnosticsOutcome(
        report=report,
        coarse_expression=derive_coarse_repair_range(report.group_summaries, report.total_pages_site),
        slot_plan=derive_slot_repair_plan(report.group_summaries, items_per_page=items_per_page),
    )


async def scan_diagnostics(
    client: EngineClient,
    tracker: OperationTracker,
    *,
    items_per_page: int,
) -> DiagnosticsOutcome:
    report = await _run_tracked(
        tracker,
        OperationName.DIAGNOSTIC_SCAN,
        client.scan_db_pagination_mismatches,
    )
    outcome = reconcile_report(report, items_per_page=items_per_page)
    structured_log(
        logger,
        "info",
        "operations.diagnostics_reconciled",
        groups=len(report.group_summaries),
        coarse_expression=outcome.coarse_expression,
        slot_pages=len(outcome.slot_plan),
    )
    return outcome


async def repair_slots(
    client: EngineClient,
    tracker: OperationTracker,
    *,
    report: PaginationDiagnosticReport,
    items_per_page: int,
    dry_run: bool = False,
) -> RepairOutcome:
    plan = derive_slot_repair_plan(report.group_summaries, items_per_page=items_per_page)
    if not plan:
        structured_log(logger, "info", "operations.no_repair_needed")
        return RepairOutcome(repair_needed=False, plan=[])
    result = await _run_tracked(
        tracker,
        OperationName.DIAGNOSTIC_REPAIR,
        lambda: client.start_diagnostic_sync(plan, dry_run=dry_run),
        pages=len(plan),
        dry_run=dry_run,
    )
    return RepairOutcome(repair_needed=True, plan=plan, result=result)


async def recompute_range(client: EngineClient, tracker: OperationTracker) -> tuple[int, CrawlingRangePlan]:
    async def _plan() -> tuple[int, CrawlingRangePlan]:
        site = await client.check_site_status()
        plan = await client.calculate_crawling_range(
            total_pages_on_site=site.total_pages,
            products_on_last_page=site.products_on_last_page,
        )
        return site.total_pages, plan

    return await _run_tracked(tracker, OperationName.RANGE_RECOMPUTE, _plan)


async def request_shutdown(client: EngineClient, tracker: OperationTracker) -> None:
    await _run_tracked(tracker, OperationName.SHUTDOWN, client.request_graceful_shutdown)
