from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from crawlwatch.api.deps import get_runtime
from crawlwatch.api.responses import success_payload
from crawlwatch.api.routers.serializers import serialize_prepared
from crawlwatch.api.schemas import (
    MessageEnvelope,
    OperationStartedEnvelope,
    RangeRecomputeEnvelope,
    SyncStartRequest,
    ValidationStartRequest,
)
from crawlwatch.services.dashboard.runtime import DashboardRuntime

router = APIRouter(prefix="/operations", tags=["api-operations"])


@router.post(
    "/validation",
    response_model=OperationStartedEnvelope,
)
async def start_validation(
    payload: ValidationStartRequest,
    request: Request,
    runtime: DashboardRuntime = Depends(get_runtime),
):
    outcome = await runtime.start_validation(
        expression=payload.expression,
        scan_pages=payload.scan_pages,
    )
    return success_payload(
        request,
        data={
            "prepared": serialize_prepared(outcome.prepared),
            "result": outcome.result,
        },
    )


@router.post(
    "/sync",
    response_model=OperationStartedEnvelope,
)
async def start_sync(
    payload: SyncStartRequest,
    request: Request,
    runtime: DashboardRuntime = Depends(get_runtime),
):
    outcome = await runtime.start_sync(
        expression=payload.expression,
        dry_run=payload.dry_run,
    )
    return success_payload(
        request,
        data={
            "prepared": serialize_prepared(outcome.prepared),
            "result": outcome.result,
        },
    )


@router.post(
    "/range/recompute",
    response_model=RangeRecomputeEnvelope,
)
async def recompute_range(
    request: Request,
    runtime: DashboardRuntime = Depends(get_runtime),
):
    plan = await runtime.recompute_range()
    return success_payload(
        request,
        data={
            "site_total_pages": runtime.site_total_pages,
            "plan": plan,
        },
    )


@router.post(
    "/shutdown",
    response_model=MessageEnvelope,
)
async def request_shutdown(
    request: Request,
    runtime: DashboardRuntime = Depends(get_runtime),
):
    await runtime.request_shutdown()
    return success_payload(request, data={"message": "Graceful shutdown requested."})
