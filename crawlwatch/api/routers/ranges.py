from __future__ import annotations

from fastapi import APIRouter, Request

from crawlwatch.api.responses import success_payload
from crawlwatch.api.routers.serializers import serialize_prepared
from crawlwatch.api.schemas import PreparedRangesEnvelope, RangeNormalizeRequest
from crawlwatch.services.operations.application import prepare_ranges

router = APIRouter(prefix="/ranges", tags=["api-ranges"])


@router.post(
    "/normalize",
    response_model=PreparedRangesEnvelope,
)
async def normalize_ranges(
    payload: RangeNormalizeRequest,
    request: Request,
):
    prepared = prepare_ranges(
        payload.expression,
        total_pages=payload.total_pages,
        max_span=payload.max_span,
    )
    return success_payload(request, data=serialize_prepared(prepared))
