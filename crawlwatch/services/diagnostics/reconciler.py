"""Turns a pagination diagnostic report into repair work.

Two granularities are derived from the same snapshot:

* a coarse page-range expression (``derive_coarse_repair_range``) that
  re-scans every problematic page plus its neighbours, and
* a slot-level plan (``derive_slot_repair_plan``) naming the exact missing
  slot indices per physical page.

Both functions are pure.
"""

from __future__ import annotations

from collections.abc import Sequence

from crawlwatch.services.diagnostics.types import DiagnosticGroupSummary, RepairPlanEntry
from crawlwatch.services.ranges.expressions import compress_pages, serialize

DEFAULT_ITEMS_PER_PAGE = 12


def problem_pages(summaries: Sequence[DiagnosticGroupSummary]) -> list[int]:
    pages = {
        summary.current_page_number
        for summary in summaries
        if summary.needs_repair
        and summary.current_page_number is not None
        and summary.current_page_number > 0
    }
    return sorted(pages, reverse=True)


def _expand_neighbours(pages: Sequence[int], total_pages: int | None) -> set[int]:
    expanded = set(pages)
    # Group boundaries drift by one page when the site inserts new items.
    if total_pages is not None and total_pages > 1:
        for page in pages:
            if page - 1 >= 1:
                expanded.add(page - 1)
            if page + 1 <= total_pages:
                expanded.add(page + 1)
    return expanded


def derive_coarse_repair_range(
    summaries: Sequence[DiagnosticGroupSummary],
    total_pages: int | None,
) -> str | None:
    pages = problem_pages(summaries)
    if not pages:
        return None
    expanded = _expand_neighbours(pages, total_pages)
    return serialize(compress_pages(expanded))


def derive_slot_repair_plan(
    summaries: Sequence[DiagnosticGroupSummary],
    *,
    items_per_page: int = DEFAULT_ITEMS_PER_PAGE,
) -> list[RepairPlanEntry]:
    plan: list[RepairPlanEntry] = []
    for summary in summaries:
        physical_page = summary.current_page_number
        if physical_page is None or physical_page < 1:
            continue
        missing = sorted({index for index in summary.missing_indices if 0 <= index < items_per_page})
        if not missing:
            continue
        plan.append(RepairPlanEntry(physical_page=physical_page, missing_slot_indices=missing))
    return plan
