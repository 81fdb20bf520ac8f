from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from crawlwatch.api.deps import get_runtime
from crawlwatch.api.responses import success_payload
from crawlwatch.api.schemas import ProgressSnapshotEnvelope
from crawlwatch.services.dashboard.publisher import snapshot_stream
from crawlwatch.services.dashboard.runtime import DashboardRuntime

router = APIRouter(prefix="/progress", tags=["api-progress"])


@router.get(
    "",
    response_model=ProgressSnapshotEnvelope,
)
async def get_progress(
    request: Request,
    runtime: DashboardRuntime = Depends(get_runtime),
):
    return success_payload(request, data=runtime.snapshot())


@router.get("/stream")
async def stream_progress(
    runtime: DashboardRuntime = Depends(get_runtime),
):
    return StreamingResponse(
        snapshot_stream(runtime.publisher, runtime.snapshot()),
        media_type="text/event-stream",
    )
