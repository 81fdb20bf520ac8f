from __future__ import annotations

from collections.abc import Iterator

from fastapi.testclient import TestClient
import httpx
import pytest

from crawlwatch.api.deps import get_runtime
from crawlwatch.http.middleware import REQUEST_ID_HEADER
from crawlwatch.main import app
from crawlwatch.services.operations.types import OperationName


@pytest.fixture
def api_client(runtime) -> Iterator[TestClient]:
    app.dependency_overrides[get_runtime] = lambda: runtime
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_healthz_echoes_request_id(api_client) -> None:
    response = api_client.get("/healthz", headers={REQUEST_ID_HEADER: "req-42"})

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}
    assert response.headers[REQUEST_ID_HEADER] == "req-42"


def test_progress_snapshot_envelope(api_client) -> None:
    response = api_client.get("/api/v1/progress", headers={REQUEST_ID_HEADER: "req-1"})

    assert response.status_code == 200
    body = response.json()
    assert body["meta"] == {"request_id": "req-1"}
    data = body["data"]
    assert data["session"]["state"] == "idle"
    assert data["progress"]["stages"]["page_listing"] == {
        "started": 0,
        "completed": 0,
        "failed": 0,
        "retried": 0,
        "inflight": 0,
    }
    assert set(data["operations"]) == {name.value for name in OperationName}


def test_normalize_returns_corrected_expression_and_notices(api_client) -> None:
    response = api_client.post(
        "/api/v1/ranges/normalize",
        json={"expression": "510–495, 489", "total_pages": 500},
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["expression"] == "500-495,489"
    assert data["ranges"] == [[500, 495], [489, 489]]
    assert data["changed"] is True
    assert data["page_count"] == 7
    assert data["notices"] == ["clamped to site pages 1-500: 510-495,489 -> 500-495,489"]


def test_normalize_counts_huge_unclamped_range(api_client) -> None:
    response = api_client.post("/api/v1/ranges/normalize", json={"expression": "1000000000-1"})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["ranges"] == [[1000000000, 1]]
    assert data["page_count"] == 1_000_000_000


def test_normalize_rejects_expression_without_ranges(api_client) -> None:
    response = api_client.post("/api/v1/ranges/normalize", json={"expression": "abc"})

    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "invalid_range_expression"
    assert error["details"] == {"expression": "abc"}


def test_request_validation_uses_error_envelope(api_client) -> None:
    response = api_client.post("/api/v1/ranges/normalize", json={"expression": "1", "extra": True})

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "validation_error"


def test_start_validation_without_range_makes_no_engine_call(api_client, fake_engine) -> None:
    response = api_client.post("/api/v1/operations/validation", json={})

    assert response.status_code == 422
    assert fake_engine.calls == []


def test_start_sync_returns_prepared_range_and_result(api_client, fake_engine) -> None:
    fake_engine.reply("start_partial_sync", {"accepted": True})

    response = api_client.post("/api/v1/operations/sync", json={"expression": "498-492,489", "dry_run": True})

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["prepared"]["expression"] == "498-492,489"
    assert data["result"] == {"accepted": True}
    assert fake_engine.calls == [("start_partial_sync", {"ranges": "498-492,489", "dry_run": True})]


def test_engine_rejection_maps_to_bad_gateway(api_client, fake_engine, runtime) -> None:
    fake_engine.reply("start_partial_sync", {"error": "sync already running"}, status_code=409)

    response = api_client.post("/api/v1/operations/sync", json={"expression": "5-1"})

    assert response.status_code == 502
    error = response.json()["error"]
    assert error["code"] == "engine_command_failed"
    assert error["message"] == "sync already running"
    assert error["details"] == {"command": "start_partial_sync", "engine_status_code": 409}
    assert runtime.snapshot()["operations"]["sync"]["status"] == "failed"


def test_operation_already_running_is_a_conflict(api_client, runtime) -> None:
    runtime.tracker.begin(OperationName.SYNC)

    response = api_client.post("/api/v1/operations/sync", json={"expression": "5-1"})

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "operation_in_progress"


def test_recompute_range_returns_plan(api_client, fake_engine) -> None:
    fake_engine.reply("check_site_status", {"total_pages": 498, "products_on_last_page": 5})
    fake_engine.reply("calculate_crawling_range", {"range": [498, 480]})

    response = api_client.post("/api/v1/operations/range/recompute")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["site_total_pages"] == 498
    assert data["plan"]["range"] == [498, 480]


def test_shutdown_request(api_client, fake_engine) -> None:
    fake_engine.reply("request_graceful_shutdown", {"ok": True})

    response = api_client.post("/api/v1/operations/shutdown")

    assert response.status_code == 200
    assert response.json()["data"] == {"message": "Graceful shutdown requested."}
    assert fake_engine.commands() == ["request_graceful_shutdown"]


def test_shutdown_request_with_no_content_reply(api_client, fake_engine) -> None:
    fake_engine.responses["request_graceful_shutdown"] = lambda _body: httpx.Response(204)

    response = api_client.post("/api/v1/operations/shutdown")

    assert response.status_code == 200
    assert response.json()["data"] == {"message": "Graceful shutdown requested."}


def test_diagnostics_scan_and_repair(api_client, fake_engine) -> None:
    fake_engine.reply(
        "scan_db_pagination_mismatches",
        {
            "total_products": 228,
            "total_pages_site": 20,
            "items_on_last_page": 12,
            "group_summaries": [
                {"page_id": 10, "current_page_number": 10, "status": "gap", "missing_indices": [2]},
            ],
        },
    )
    fake_engine.reply("start_diagnostic_sync", {"accepted": True})

    before_scan = api_client.post("/api/v1/diagnostics/repair", json={})
    assert before_scan.status_code == 409
    assert before_scan.json()["error"]["code"] == "diagnostics_not_scanned"

    scan = api_client.post("/api/v1/diagnostics/scan")
    assert scan.status_code == 200
    scan_data = scan.json()["data"]
    assert scan_data["coarse_expression"] == "11-9"
    assert scan_data["slot_plan"] == [{"physical_page": 10, "miss_indices": [2]}]
    assert scan_data["repair_needed"] is True
    assert scan_data["report"]["group_summaries"][0]["missing_indices"] == [2]

    repair = api_client.post("/api/v1/diagnostics/repair", json={"dry_run": True})
    assert repair.status_code == 200
    assert repair.json()["data"] == {
        "repair_needed": True,
        "plan": [{"physical_page": 10, "miss_indices": [2]}],
        "result": {"accepted": True},
    }


def test_diagnostics_with_nothing_actionable(api_client, fake_engine) -> None:
    fake_engine.reply(
        "scan_db_pagination_mismatches",
        {"total_pages_site": 2, "group_summaries": [{"current_page_number": 1, "status": "ok"}]},
    )

    scan = api_client.post("/api/v1/diagnostics/scan")
    repair = api_client.post("/api/v1/diagnostics/repair", json={})

    assert scan.json()["data"]["repair_needed"] is False
    assert scan.json()["data"]["coarse_expression"] is None
    assert repair.json()["data"] == {"repair_needed": False, "plan": [], "result": None}
    assert fake_engine.commands() == ["scan_db_pagination_mismatches"]
