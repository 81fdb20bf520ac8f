from __future__ import annotations

import typing

import pytest

from crawlwatch.services.events.decoding import decode_event
from crawlwatch.services.events.types import (
    EventKind,
    GroupPhase,
    LifecycleEvent,
    PageTaskEvent,
    ProductGroupEvent,
    UnitStatus,
)
from crawlwatch.services.progress import SessionProgress, StageName, apply_event
from crawlwatch.services.progress.projection import project_progress
from crawlwatch.services.progress.reducer import handled_event_types


def _feed(progress: SessionProgress, *messages: tuple[str, dict]) -> None:
    for name, payload in messages:
        event = decode_event(name, payload)
        assert event is not None, name
        apply_event(progress, event)


def test_every_lifecycle_event_type_has_a_handler() -> None:
    assert handled_event_types() == frozenset(typing.get_args(LifecycleEvent))


def test_unknown_event_type_is_rejected() -> None:
    with pytest.raises(TypeError):
        apply_event(SessionProgress(), object())


def test_page_tasks_drive_page_listing_stage() -> None:
    progress = SessionProgress()
    _feed(
        progress,
        ("actor-page-task-started", {"page": 7}),
        ("actor-page-task-started", {"page": 8}),
        ("actor-page-task-completed", {"page": 7}),
        ("actor-page-task-completed", {"page": 7}),
        ("actor-page-task-failed", {"page": 8, "final_failure": False}),
        ("actor-page-task-failed", {"page": 8, "final_failure": True}),
    )

    counters = progress.stage(StageName.PAGE_LISTING).counters
    assert counters.started == 2
    assert counters.completed == 1
    assert counters.failed == 1
    assert counters.retried == 1
    assert counters.inflight == 0


def test_product_groups_split_by_phase() -> None:
    progress = SessionProgress()
    apply_event(progress, ProductGroupEvent(phase=GroupPhase.FETCH, group_size=12, succeeded=10, failed=2))
    apply_event(
        progress,
        ProductGroupEvent(
            phase=GroupPhase.PERSIST,
            group_size=10,
            succeeded=9,
            failed=0,
            duplicates=1,
            duration_ms=40,
        ),
    )

    fetch = progress.stage(StageName.DETAIL_FETCH).counters
    persist = progress.stage(StageName.PERSIST).counters
    assert (fetch.started, fetch.completed, fetch.failed) == (12, 10, 2)
    assert (persist.started, persist.completed, persist.inflight) == (10, 9, 1)
    assert progress.persist.groups == 1
    assert progress.persist.duplicates == 1
    assert progress.persist.duration_ms == 40
    assert progress.persist.last_group_size == 10


def test_single_product_failure_counts_on_detail_fetch() -> None:
    progress = SessionProgress()
    _feed(
        progress,
        ("product-lifecycle", {"status": "failed", "product_ref": "p-1"}),
        ("product-lifecycle", {"status": "completed"}),
    )

    counters = progress.stage(StageName.DETAIL_FETCH).counters
    assert (counters.started, counters.failed) == (1, 1)


def test_batch_panel_tracks_batches() -> None:
    progress = SessionProgress()
    _feed(
        progress,
        ("batch-started", {"batch_id": "b1", "pages_in_batch": 5}),
        ("batch-completed", {"batch_id": "b1"}),
        ("batch-started", {"batch_id": "b2", "pages": 3}),
        ("batch-failed", {"batch_id": "b2"}),
    )

    panel = progress.batch
    assert panel.current == 2
    assert panel.completed == 1
    assert panel.failed == 1
    assert panel.batch_id == "b2"
    assert panel.pages_estimated == 8


def test_validation_events_fill_panel_and_stage() -> None:
    progress = SessionProgress()
    _feed(
        progress,
        ("validation-started", {"scan_pages": 3}),
        ("validation-page-scanned", {"physical_page": 498, "products_found": 12}),
        ("validation-page-scanned", {"physical_page": 498, "products_found": 12}),
        ("validation-page-scanned", {"physical_page": 497, "products_found": 11}),
        ("validation-divergence", {"physical_page": 497}),
        ("validation-anomaly", {}),
        ("validation-completed", {"pages_scanned": 2, "duration_ms": 900}),
    )

    panel = progress.validation
    assert panel.started is True
    assert panel.completed is True
    assert panel.target_pages == 3
    assert panel.pages_scanned == 2
    assert panel.products_checked == 35
    assert panel.divergences == 1
    assert panel.anomalies == 1
    assert panel.last_page == 497
    assert panel.duration_ms == 900
    assert progress.stage(StageName.VALIDATION).counters.completed == 2


def test_validation_started_resets_previous_run() -> None:
    progress = SessionProgress()
    _feed(
        progress,
        ("validation-started", {"scan_pages": 3}),
        ("validation-divergence", {}),
        ("validation-started", {"scan_pages": 5}),
    )

    assert progress.validation.divergences == 0
    assert progress.validation.target_pages == 5


def test_sync_events_fill_panel_and_stage() -> None:
    progress = SessionProgress()
    _feed(
        progress,
        ("sync-started", {"ranges": [[498, 492], [489, 489]]}),
        ("sync-page-started", {"physical_page": 498}),
        ("sync-page-completed", {"physical_page": 498, "inserted": 3, "updated": 2, "skipped": 7}),
        ("sync-page-started", {"physical_page": 497}),
        ("sync-warning", {"code": "slot_conflict", "detail": "page 497 slot 4"}),
    )

    panel = progress.sync
    assert panel.active is True
    assert panel.planned_pages == 8
    assert panel.pages_processed == 1
    assert (panel.inserted, panel.updated, panel.skipped) == (3, 2, 7)
    assert panel.last_page == 497
    assert panel.last_warning == "slot_conflict: page 497 slot 4"
    counters = progress.stage(StageName.SYNC).counters
    assert (counters.started, counters.completed, counters.inflight) == (2, 1, 1)

    _feed(progress, ("sync-completed", {"pages_processed": 8, "inserted": 10, "duration_ms": 1200}))

    assert panel.active is False
    assert panel.pages_processed == 8
    assert panel.inserted == 10
    assert panel.updated == 2
    assert panel.duration_ms == 1200


def test_database_stats_and_session_report_merge_into_database_panel() -> None:
    progress = SessionProgress()
    _feed(
        progress,
        ("database-stats", {"total_product_details": 5880, "min_page": 1, "max_page": 490}),
        ("session-report", {"products_inserted": 24, "products_updated": 3, "total_pages": 498}),
        ("database-stats", {"total_product_details": 5904}),
    )

    panel = progress.database
    assert panel.total_product_details == 5904
    assert (panel.min_page, panel.max_page) == (1, 490)
    assert (panel.products_inserted, panel.products_updated, panel.total_pages) == (24, 3, 498)


def test_projection_lists_every_stage() -> None:
    progress = SessionProgress()
    apply_event(progress, PageTaskEvent(kind=EventKind.PAGE_TASK_STARTED, page=1, status=UnitStatus.STARTED))

    projected = project_progress(progress)

    assert set(projected["stages"]) == {stage.value for stage in StageName}
    assert projected["stages"]["page_listing"] == {
        "started": 1,
        "completed": 0,
        "failed": 0,
        "retried": 0,
        "inflight": 1,
    }
    assert projected["sync"]["active"] is False
    assert projected["database"]["total_pages"] is None


def test_validation_completed_takes_products_checked_total() -> None:
    progress = SessionProgress()
    _feed(
        progress,
        ("validation-started", {"scan_pages": 2}),
        ("validation-page-scanned", {"physical_page": 10, "products_found": 12}),
        ("validation-completed", {"pages_scanned": 2, "products_checked": 24}),
    )

    assert progress.validation.products_checked == 24


def test_validation_completed_keeps_running_products_when_total_is_zero() -> None:
    progress = SessionProgress()
    _feed(
        progress,
        ("validation-started", {"scan_pages": 1}),
        ("validation-page-scanned", {"physical_page": 10, "products_found": 12}),
        ("validation-completed", {"products_checked": 0}),
    )

    assert progress.validation.products_checked == 12


def test_generic_validation_stage_events_drive_validation_panel() -> None:
    progress = SessionProgress()
    _feed(
        progress,
        ("actor-stage-started", {"stage_type": "ProductValidation", "items_count": 40}),
    )

    assert progress.validation.started is True
    assert progress.validation.completed is False
    assert progress.validation.target_pages == 40

    _feed(
        progress,
        ("actor-stage-completed", {"stage_type": "ProductValidation", "result": {"processed_items": 38}}),
    )

    assert progress.validation.completed is True
    assert progress.validation.pages_scanned == 38
    assert progress.validation.target_pages == 40


def test_generic_stage_events_for_other_stages_are_ignored() -> None:
    progress = SessionProgress()
    _feed(
        progress,
        ("actor-stage-started", {"stage_type": "ListPageCollection", "items_count": 40}),
        ("actor-stage-completed", {"stage_type": "ListPageCollection", "result": {"processed_items": 40}}),
    )

    assert progress.validation.started is False
    assert progress.validation.completed is False
    assert progress.validation.target_pages == 0


def test_concurrency_downshift_updates_panel() -> None:
    progress = SessionProgress()
    _feed(
        progress,
        ("actor-detail-concurrency-downshifted", {"new_limit": 8, "reason": "rate limited"}),
        ("actor-detail-concurrency-downshifted", {"new_limit": "4", "reason": "timeouts"}),
    )

    panel = progress.concurrency
    assert panel.downshifts == 2
    assert panel.new_limit == 4
    assert panel.reason == "timeouts"
    assert project_progress(progress)["concurrency"] == {"downshifts": 2, "new_limit": 4, "reason": "timeouts"}
