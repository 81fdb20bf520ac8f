"""Decoding of raw ``(name, payload)`` pairs from the engine into lifecycle events.

Decoding is total: anything unrecognised or malformed becomes ``None`` and is
dropped by the caller, so one bad message never breaks the subscription.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
import logging
import math
from typing import Any

from crawlwatch.logging_utils import structured_log
from crawlwatch.services.events.types import (
    BatchEvent,
    DatabaseStatsEvent,
    DetailConcurrencyEvent,
    EventKind,
    GroupPhase,
    LifecycleEvent,
    NextPlanReadyEvent,
    PageTaskEvent,
    ProductGroupEvent,
    ProductLifecycleEvent,
    SessionEvent,
    SessionReportEvent,
    StageEvent,
    SyncEvent,
    UnitStatus,
    ValidationEvent,
)

logger = logging.getLogger(__name__)

ENGINE_EVENT_PREFIX = "actor-"
SYNC_WARNING_MAX_LENGTH = 160


def normalize_event_name(name: Any) -> str:
    if not isinstance(name, str):
        return ""
    normalized = name.strip().lower()
    if normalized.startswith(ENGINE_EVENT_PREFIX):
        normalized = normalized[len(ENGINE_EVENT_PREFIX) :]
    return normalized


def _int_value(value: Any) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float):
        if not math.isfinite(value):
            return None
        return int(value)
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _first_int(payload: Mapping[str, Any], *keys: str) -> int | None:
    for key in keys:
        value = _int_value(payload.get(key))
        if value is not None:
            return value
    return None


def _non_negative(value: int | None) -> int:
    return max(0, value or 0)


_TRUE_STRINGS = frozenset({"true", "1", "yes"})


def _flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    if isinstance(value, float) and not math.isfinite(value):
        return False
    if isinstance(value, (bool, int, float)):
        return bool(value)
    return False


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _decode_session(kind: EventKind, payload: Mapping[str, Any]) -> SessionEvent:
    return SessionEvent(
        kind=kind,
        session_id=_optional_str(payload.get("session_id")),
        reason=_optional_str(payload.get("reason") or payload.get("error")),
    )


def _decode_next_plan(kind: EventKind, payload: Mapping[str, Any]) -> NextPlanReadyEvent | None:
    plan = payload.get("plan", payload)
    if not isinstance(plan, Mapping):
        return None
    return NextPlanReadyEvent(plan=dict(plan))


def _decode_batch(kind: EventKind, payload: Mapping[str, Any]) -> BatchEvent:
    return BatchEvent(
        kind=kind,
        batch_id=_optional_str(payload.get("batch_id")),
        pages_in_batch=_non_negative(
            _first_int(payload, "pages_in_batch", "pages", "items_total", "pages_count")
        ),
    )


_PAGE_TASK_STATUS = {
    EventKind.PAGE_TASK_STARTED: UnitStatus.STARTED,
    EventKind.PAGE_TASK_COMPLETED: UnitStatus.COMPLETED,
    EventKind.PAGE_TASK_FAILED: UnitStatus.FAILED,
}


def _decode_page_task(kind: EventKind, payload: Mapping[str, Any]) -> PageTaskEvent | None:
    page = _int_value(payload.get("page"))
    if page is None or page < 1:
        return None
    return PageTaskEvent(
        kind=kind,
        page=page,
        status=_PAGE_TASK_STATUS[kind],
        final_failure=_flag(payload.get("final_failure")),
    )


def _decode_product(kind: EventKind, payload: Mapping[str, Any]) -> ProductLifecycleEvent | None:
    status = _optional_str(payload.get("status"))
    if status is None:
        return None
    return ProductLifecycleEvent(
        status=status.lower(),
        product_ref=_optional_str(payload.get("product_ref") or payload.get("url")),
    )


def _decode_product_group(kind: EventKind, payload: Mapping[str, Any]) -> ProductGroupEvent | None:
    try:
        phase = GroupPhase(str(payload.get("phase", "")).strip().lower())
    except ValueError:
        return None
    group_size = _non_negative(_first_int(payload, "group_size", "started"))
    succeeded = _int_value(payload.get("succeeded"))
    if succeeded is None:
        # Fetch groups omit ``succeeded`` when every product in the group succeeded.
        succeeded = group_size if phase == GroupPhase.FETCH else 0
    return ProductGroupEvent(
        phase=phase,
        group_size=group_size,
        succeeded=max(0, succeeded),
        failed=_non_negative(_int_value(payload.get("failed"))),
        duplicates=_non_negative(_int_value(payload.get("duplicates"))),
        duration_ms=_non_negative(_int_value(payload.get("duration_ms"))),
        group_id=_optional_str(payload.get("group_id")),
    )


def _decode_concurrency(kind: EventKind, payload: Mapping[str, Any]) -> DetailConcurrencyEvent:
    return DetailConcurrencyEvent(
        new_limit=_int_value(payload.get("new_limit")),
        reason=_optional_str(payload.get("reason")),
    )


def _decode_stage(kind: EventKind, payload: Mapping[str, Any]) -> StageEvent:
    result = payload.get("result")
    processed = _int_value(result.get("processed_items")) if isinstance(result, Mapping) else None
    return StageEvent(
        kind=kind,
        stage_type=str(payload.get("stage_type") or "").strip().lower(),
        items_count=_int_value(payload.get("items_count")),
        processed_items=processed,
    )


def _decode_validation(kind: EventKind, payload: Mapping[str, Any]) -> ValidationEvent:
    return ValidationEvent(
        kind=kind,
        scan_pages=_int_value(payload.get("scan_pages")),
        physical_page=_int_value(payload.get("physical_page")),
        products_found=_int_value(payload.get("products_found")),
        products_checked=_int_value(payload.get("products_checked")),
        pages_scanned=_int_value(payload.get("pages_scanned")),
        divergences=_int_value(payload.get("divergences")),
        anomalies=_int_value(payload.get("anomalies")),
        duration_ms=_int_value(payload.get("duration_ms")),
    )


def _decode_sync_ranges(value: Any) -> tuple[tuple[int, int], ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    pairs: list[tuple[int, int]] = []
    for item in value:
        if not isinstance(item, (list, tuple)) or len(item) != 2:
            continue
        start, end = _int_value(item[0]), _int_value(item[1])
        if start is None or end is None:
            continue
        pairs.append((start, end))
    return tuple(pairs)


def _decode_sync(kind: EventKind, payload: Mapping[str, Any]) -> SyncEvent:
    warning = None
    if kind == EventKind.SYNC_WARNING:
        code = str(payload.get("code") or "")
        detail = str(payload.get("detail") or "")
        warning = f"{code}: {detail}"[:SYNC_WARNING_MAX_LENGTH]
    return SyncEvent(
        kind=kind,
        ranges=_decode_sync_ranges(payload.get("ranges")),
        physical_page=_int_value(payload.get("physical_page")),
        inserted=_int_value(payload.get("inserted")),
        updated=_int_value(payload.get("updated")),
        skipped=_int_value(payload.get("skipped")),
        failed=_int_value(payload.get("failed")),
        pages_processed=_int_value(payload.get("pages_processed")),
        duration_ms=_int_value(payload.get("duration_ms")),
        warning=warning,
    )


def _decode_database_stats(kind: EventKind, payload: Mapping[str, Any]) -> DatabaseStatsEvent:
    return DatabaseStatsEvent(
        total_product_details=_int_value(payload.get("total_product_details")),
        min_page=_int_value(payload.get("min_page")),
        max_page=_int_value(payload.get("max_page")),
    )


def _decode_session_report(kind: EventKind, payload: Mapping[str, Any]) -> SessionReportEvent:
    return SessionReportEvent(
        products_inserted=_int_value(payload.get("products_inserted")),
        products_updated=_int_value(payload.get("products_updated")),
        total_pages=_int_value(payload.get("total_pages")),
    )


_Decoder = Callable[[EventKind, Mapping[str, Any]], "LifecycleEvent | None"]

DECODERS: dict[EventKind, _Decoder] = {
    EventKind.SESSION_STARTED: _decode_session,
    EventKind.SESSION_COMPLETED: _decode_session,
    EventKind.SESSION_FAILED: _decode_session,
    EventKind.SESSION_TIMEOUT: _decode_session,
    EventKind.SHUTDOWN_COMPLETED: _decode_session,
    EventKind.NEXT_PLAN_READY: _decode_next_plan,
    EventKind.BATCH_STARTED: _decode_batch,
    EventKind.BATCH_COMPLETED: _decode_batch,
    EventKind.BATCH_FAILED: _decode_batch,
    EventKind.PAGE_TASK_STARTED: _decode_page_task,
    EventKind.PAGE_TASK_COMPLETED: _decode_page_task,
    EventKind.PAGE_TASK_FAILED: _decode_page_task,
    EventKind.PRODUCT_LIFECYCLE: _decode_product,
    EventKind.PRODUCT_LIFECYCLE_GROUP: _decode_product_group,
    EventKind.DETAIL_CONCURRENCY_DOWNSHIFTED: _decode_concurrency,
    EventKind.STAGE_STARTED: _decode_stage,
    EventKind.STAGE_COMPLETED: _decode_stage,
    EventKind.VALIDATION_STARTED: _decode_validation,
    EventKind.VALIDATION_PAGE_SCANNED: _decode_validation,
    EventKind.VALIDATION_DIVERGENCE: _decode_validation,
    EventKind.VALIDATION_ANOMALY: _decode_validation,
    EventKind.VALIDATION_COMPLETED: _decode_validation,
    EventKind.SYNC_STARTED: _decode_sync,
    EventKind.SYNC_PAGE_STARTED: _decode_sync,
    EventKind.SYNC_PAGE_COMPLETED: _decode_sync,
    EventKind.SYNC_WARNING: _decode_sync,
    EventKind.SYNC_COMPLETED: _decode_sync,
    EventKind.DATABASE_STATS: _decode_database_stats,
    EventKind.SESSION_REPORT: _decode_session_report,
}


def decode_event(name: Any, payload: Any) -> LifecycleEvent | None:
    try:
        kind = EventKind(normalize_event_name(name))
    except ValueError:
        return None
    if payload is None:
        payload = {}
    if not isinstance(payload, Mapping):
        structured_log(logger, "debug", "events.payload_not_mapping", event_name=kind.value)
        return None
    try:
        return DECODERS[kind](kind, payload)
    except (TypeError, ValueError, KeyError) as exc:
        structured_log(
            logger,
            "debug",
            "events.decode_failed",
            event_name=kind.value,
            error=str(exc),
        )
        return None
