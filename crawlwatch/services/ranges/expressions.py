"""Parsing and formatting of multi-range page expressions such as ``498-492,489``."""

from __future__ import annotations

from collections.abc import Iterable
import re

from crawlwatch.services.ranges.types import PageRange

# Dash and tilde look-alikes that operators paste from spreadsheets and IMEs.
_DASH_VARIANTS = "–—−﹣－"
_TILDE_VARIANTS = "〜～"
_SEPARATORS = ("-", "~")
_DIGITS_RE = re.compile(r"[0-9]+")
_WHITESPACE_RE = re.compile(r"\s+")

_NORMALIZE_TABLE = str.maketrans(
    {
        **{char: "-" for char in _DASH_VARIANTS},
        **{char: "~" for char in _TILDE_VARIANTS},
    }
)


def normalize_token(token: str) -> str:
    return _WHITESPACE_RE.sub("", token).translate(_NORMALIZE_TABLE)


def _parse_page(value: str) -> int | None:
    if not _DIGITS_RE.fullmatch(value):
        return None
    page = int(value)
    if page < 1:
        return None
    return page


def parse_single(token: str) -> PageRange | None:
    normalized = normalize_token(token)
    if not normalized:
        return None

    separator_at = min(
        (index for index in (normalized.find(sep) for sep in _SEPARATORS) if index >= 0),
        default=-1,
    )
    if separator_at < 0:
        page = _parse_page(normalized)
        return PageRange(start=page, end=page) if page is not None else None

    first = _parse_page(normalized[:separator_at])
    second = _parse_page(normalized[separator_at + 1 :])
    if first is None or second is None:
        return None
    return PageRange(start=max(first, second), end=min(first, second))


def parse_expression(expr: str | None) -> list[PageRange]:
    ranges: list[PageRange] = []
    for token in (expr or "").split(","):
        parsed = parse_single(token.strip())
        if parsed is not None:
            ranges.append(parsed)
    return ranges


def format_range(page_range: PageRange) -> str:
    if page_range.start == page_range.end:
        return str(page_range.start)
    return f"{page_range.start}-{page_range.end}"


def serialize(ranges: Iterable[PageRange]) -> str:
    return ",".join(format_range(page_range) for page_range in ranges)


def expand_pages(ranges: Iterable[PageRange]) -> list[int]:
    """Every covered page once, oldest first."""
    pages: set[int] = set()
    for page_range in ranges:
        pages.update(page_range.pages())
    return sorted(pages, reverse=True)


def compress_pages(pages: Iterable[int]) -> list[PageRange]:
    """Run-length encode pages into descending contiguous ranges."""
    ordered = sorted({page for page in pages if page >= 1}, reverse=True)
    if not ordered:
        return []

    ranges: list[PageRange] = []
    run_start = run_end = ordered[0]
    for page in ordered[1:]:
        if page + 1 == run_end:
            run_end = page
            continue
        ranges.append(PageRange(start=run_start, end=run_end))
        run_start = run_end = page
    ranges.append(PageRange(start=run_start, end=run_end))
    return ranges


def covered_page_count(ranges: Iterable[PageRange]) -> int:
    """Number of distinct pages covered, counted from merged spans."""
    spans = sorted(
        (max(1, min(page_range.start, page_range.end)), max(page_range.start, page_range.end))
        for page_range in ranges
    )
    total = 0
    covered_up_to = 0
    for low, high in spans:
        low = max(low, covered_up_to + 1)
        if high >= low:
            total += high - low + 1
            covered_up_to = high
    return total
