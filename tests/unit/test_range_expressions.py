from __future__ import annotations

import pytest

from crawlwatch.services.ranges import (
    PageRange,
    RangeExpressionError,
    clamp_to_max_span,
    clamp_to_site_bounds,
    compress_pages,
    describe_clamp,
    expand_pages,
    parse_expression,
    parse_single,
    serialize,
)
from crawlwatch.services.ranges.expressions import covered_page_count, normalize_token


def test_parse_single_reads_ranges_and_singletons() -> None:
    assert parse_single("498-492") == PageRange(start=498, end=492)
    assert parse_single("489") == PageRange(start=489, end=489)
    assert parse_single(" 12 ~ 10 ") == PageRange(start=12, end=10)


def test_parse_single_orders_reversed_bounds_oldest_first() -> None:
    assert parse_single("492-498") == PageRange(start=498, end=492)


@pytest.mark.parametrize("token", ["", "abc", "10-", "-10", "0", "5-0", "1.5", "10-x", "+3"])
def test_parse_single_rejects_malformed_tokens(token: str) -> None:
    assert parse_single(token) is None


@pytest.mark.parametrize(
    "token",
    ["498–492", "498—492", "498−492", "498﹣492", "498－492", "498〜492", "498～492"],
)
def test_parse_single_accepts_unicode_dash_and_tilde_variants(token: str) -> None:
    assert parse_single(token) == PageRange(start=498, end=492)


def test_normalize_token_strips_whitespace_and_maps_variants() -> None:
    assert normalize_token(" 10 – 8 ") == "10-8"
    assert normalize_token("7～3") == "7~3"


def test_parse_expression_drops_bad_tokens_and_keeps_order() -> None:
    ranges = parse_expression("30-25, nope, 5,,12-10")

    assert ranges == [
        PageRange(start=30, end=25),
        PageRange(start=5, end=5),
        PageRange(start=12, end=10),
    ]


def test_parse_expression_handles_empty_input() -> None:
    assert parse_expression("") == []
    assert parse_expression(None) == []


def test_serialize_round_trips_canonical_expression() -> None:
    assert serialize(parse_expression("498-492,489")) == "498-492,489"


@pytest.mark.parametrize("expression", ["1", "20-18,3,7-7", "100~90, 95-85", "5-9"])
def test_round_trip_preserves_covered_pages(expression: str) -> None:
    parsed = parse_expression(expression)

    assert set(expand_pages(parse_expression(serialize(parsed)))) == set(expand_pages(parsed))


def test_expand_and_compress_pages() -> None:
    ranges = parse_expression("10-8,9-6,2")

    assert expand_pages(ranges) == [10, 9, 8, 7, 6, 2]
    assert compress_pages([2, 10, 9, 8, 7, 6, 6]) == [PageRange(10, 6), PageRange(2, 2)]
    assert covered_page_count(ranges) == 6
    assert compress_pages([0, -3]) == []


def test_clamp_to_site_bounds_pulls_range_inside_site() -> None:
    result = clamp_to_site_bounds(parse_expression("510-495"), 500)

    assert result.ranges == [PageRange(start=500, end=495)]
    assert result.changed is True


def test_clamp_to_site_bounds_swaps_range_inverted_by_clamping() -> None:
    result = clamp_to_site_bounds([PageRange(start=10, end=0)], 5)

    assert result.ranges == [PageRange(start=5, end=1)]
    assert result.changed is True


def test_clamp_to_site_bounds_reports_unchanged_ranges() -> None:
    ranges = parse_expression("20-10,4")
    result = clamp_to_site_bounds(ranges, 50)

    assert result.ranges == ranges
    assert result.changed is False


def test_clamp_to_site_bounds_skips_unknown_site_size() -> None:
    ranges = parse_expression("510-495")

    assert clamp_to_site_bounds(ranges, 0).ranges == ranges
    assert clamp_to_site_bounds(ranges, 0).changed is False


def test_clamp_to_max_span_keeps_oldest_page() -> None:
    result = clamp_to_max_span(parse_expression("498-480"), 5)

    assert result.ranges == [PageRange(start=498, end=494)]
    assert result.ranges[0].span == 5
    assert result.changed is True


def test_clamp_to_max_span_normalizes_inverted_input() -> None:
    result = clamp_to_max_span([PageRange(start=480, end=498)], 5)

    assert result.ranges == [PageRange(start=498, end=494)]
    assert result.changed is True


def test_clamp_to_max_span_disabled_or_within_limit() -> None:
    ranges = parse_expression("498-480")

    assert clamp_to_max_span(ranges, 0).changed is False
    assert clamp_to_max_span(ranges, 19).changed is False
    assert clamp_to_max_span(ranges, 19).ranges == ranges


def test_describe_clamp_shows_before_and_after() -> None:
    before = parse_expression("510-495")
    after = clamp_to_site_bounds(before, 500).ranges

    assert describe_clamp(before, after, reason="clamped") == "clamped: 510-495 -> 500-495"


def test_range_expression_error_keeps_expression() -> None:
    error = RangeExpressionError("abc")

    assert error.expression == "abc"
    assert isinstance(error, ValueError)


def test_covered_page_count_merges_overlapping_and_nested_ranges() -> None:
    assert covered_page_count([PageRange(5, 5), PageRange(10, 1)]) == 10
    assert covered_page_count(parse_expression("20-18,19-15,3,3")) == 7
    assert covered_page_count([]) == 0


def test_covered_page_count_does_not_enumerate_huge_ranges() -> None:
    ranges = parse_expression("1000000000-1,5-2")

    assert covered_page_count(ranges) == 1_000_000_000
