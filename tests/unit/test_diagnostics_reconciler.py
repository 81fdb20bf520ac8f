from __future__ import annotations

from crawlwatch.services.diagnostics.reconciler import (
    derive_coarse_repair_range,
    derive_slot_repair_plan,
    problem_pages,
)
from crawlwatch.services.diagnostics.types import (
    DiagnosticGroupSummary,
    PaginationDiagnosticReport,
    RepairPlanEntry,
)
from crawlwatch.services.ranges import expand_pages, parse_expression


def _summary(page: int | None, **fields) -> DiagnosticGroupSummary:
    return DiagnosticGroupSummary(page_id=page, current_page_number=page, **fields)


def test_single_gap_expands_to_neighbours_and_names_missing_slot() -> None:
    summaries = [_summary(10, status="gap", missing_indices=[2])]

    coarse = derive_coarse_repair_range(summaries, 20)

    assert coarse == "11-9"
    assert set(expand_pages(parse_expression(coarse))) == {9, 10, 11}
    assert derive_slot_repair_plan(summaries) == [
        RepairPlanEntry(physical_page=10, missing_slot_indices=[2])
    ]


def test_nothing_actionable_yields_no_range_or_plan() -> None:
    summaries = [_summary(3), _summary(4, status="ok")]

    assert derive_coarse_repair_range(summaries, 20) is None
    assert derive_slot_repair_plan(summaries) == []


def test_coarse_range_clips_neighbours_to_site_and_merges_runs() -> None:
    summaries = [
        _summary(1, duplicate_indices=[4, 4]),
        _summary(20, out_of_range_count=2),
        _summary(7, status="gap"),
        _summary(8, missing_indices=[0]),
    ]

    assert derive_coarse_repair_range(summaries, 20) == "20-19,9-6,2-1"


def test_coarse_range_skips_neighbour_expansion_for_single_page_site() -> None:
    assert derive_coarse_repair_range([_summary(1, status="gap")], 1) == "1"
    assert derive_coarse_repair_range([_summary(3, status="gap")], None) == "3"


def test_problem_pages_ignores_unresolvable_pages() -> None:
    summaries = [_summary(None, status="gap"), _summary(0, status="gap"), _summary(5, status="gap")]

    assert problem_pages(summaries) == [5]


def test_slot_plan_filters_indices_outside_slot_domain() -> None:
    summaries = [
        _summary(4, missing_indices=[11, -1, 12, 3, 3]),
        _summary(5, missing_indices=[40]),
        _summary(None, missing_indices=[1]),
    ]

    assert derive_slot_repair_plan(summaries, items_per_page=12) == [
        RepairPlanEntry(physical_page=4, missing_slot_indices=[3, 11])
    ]


def test_report_parsing_tolerates_partial_payloads() -> None:
    report = PaginationDiagnosticReport.from_api_dict(
        {
            "total_products": 240,
            "total_pages_site": "20",
            "group_summaries": [
                {"page_id": 10, "current_page_number": 10, "status": "Gap", "missing_indices": [2, "x"]},
                "not-a-group",
                {"current_page_number": None},
            ],
        }
    )

    assert report.total_products == 240
    assert report.total_pages_site == 20
    assert report.items_on_last_page is None
    assert len(report.group_summaries) == 2
    first = report.group_summaries[0]
    assert first.status == "gap"
    assert first.missing_indices == [2]
    assert first.needs_repair is True
    assert report.group_summaries[1].needs_repair is False


def test_repair_plan_entry_command_shape() -> None:
    entry = RepairPlanEntry(physical_page=10, missing_slot_indices=[2, 5])

    assert entry.to_command_dict() == {"physical_page": 10, "miss_indices": [2, 5]}
