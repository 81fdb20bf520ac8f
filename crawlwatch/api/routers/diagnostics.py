from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from crawlwatch.api.deps import get_runtime
from crawlwatch.api.errors import ApiException
from crawlwatch.api.responses import success_payload
from crawlwatch.api.routers.serializers import serialize_plan, serialize_report
from crawlwatch.api.schemas import (
    DiagnosticsRepairEnvelope,
    DiagnosticsRepairRequest,
    DiagnosticsScanEnvelope,
)
from crawlwatch.services.dashboard.runtime import DashboardRuntime

router = APIRouter(prefix="/diagnostics", tags=["api-diagnostics"])


@router.post(
    "/scan",
    response_model=DiagnosticsScanEnvelope,
)
async def scan_diagnostics(
    request: Request,
    runtime: DashboardRuntime = Depends(get_runtime),
):
    outcome = await runtime.scan_diagnostics()
    return success_payload(
        request,
        data={
            "report": serialize_report(outcome.report),
            "coarse_expression": outcome.coarse_expression,
            "slot_plan": serialize_plan(outcome.slot_plan),
            "repair_needed": outcome.repair_needed,
        },
    )


@router.post(
    "/repair",
    response_model=DiagnosticsRepairEnvelope,
)
async def repair_slots(
    payload: DiagnosticsRepairRequest,
    request: Request,
    runtime: DashboardRuntime = Depends(get_runtime),
):
    outcome = await runtime.repair_slots(dry_run=payload.dry_run)
    if outcome is None:
        raise ApiException(
            status_code=409,
            code="diagnostics_not_scanned",
            message="Run a diagnostics scan before requesting a repair.",
        )
    return success_payload(
        request,
        data={
            "repair_needed": outcome.repair_needed,
            "plan": serialize_plan(outcome.plan),
            "result": outcome.result,
        },
    )
