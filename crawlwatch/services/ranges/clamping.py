from __future__ import annotations

from collections.abc import Sequence

from crawlwatch.services.ranges.expressions import serialize
from crawlwatch.services.ranges.types import ClampResult, PageRange


def _bound(value: int, *, low: int, high: int) -> int:
    return max(low, min(high, value))


def clamp_to_site_bounds(ranges: Sequence[PageRange], total_pages: int) -> ClampResult:
    """Pull every bound into ``[1, total_pages]``.

    A range that was valid before the site shrank can end up inverted once its
    bounds are clamped independently; such ranges are swapped back into
    ``start >= end`` order. A non-positive ``total_pages`` means the site size
    is unknown and the ranges pass through untouched.
    """
    if total_pages < 1:
        return ClampResult(ranges=list(ranges), changed=False)

    clamped: list[PageRange] = []
    changed = False
    for page_range in ranges:
        start = _bound(page_range.start, low=1, high=total_pages)
        end = _bound(page_range.end, low=1, high=total_pages)
        if start != page_range.start or end != page_range.end:
            changed = True
        if start < end:
            start, end = end, start
        clamped.append(PageRange(start=start, end=end))
    return ClampResult(ranges=clamped, changed=changed)


def clamp_to_max_span(ranges: Sequence[PageRange], limit: int) -> ClampResult:
    """Shrink ranges wider than ``limit`` pages from the newer side.

    Validation and sync scan from the oldest page forward, so ``start`` is
    kept and ``end`` moves up to ``start - limit + 1``. Inverted input ranges
    are reordered first so ``start`` is always the oldest page. ``limit <= 0``
    disables the clamp.
    """
    if limit < 1:
        return ClampResult(ranges=list(ranges), changed=False)

    clamped: list[PageRange] = []
    changed = False
    for page_range in ranges:
        start = max(page_range.start, page_range.end)
        end = min(page_range.start, page_range.end)
        if start - end + 1 > limit:
            end = max(end, start - limit + 1)
            changed = True
        clamped.append(PageRange(start=start, end=end))
    return ClampResult(ranges=clamped, changed=changed)


def describe_clamp(before: Sequence[PageRange], after: Sequence[PageRange], *, reason: str) -> str:
    return f"{reason}: {serialize(before)} -> {serialize(after)}"
