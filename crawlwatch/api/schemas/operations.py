from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from crawlwatch.api.schemas.common import ApiMeta
from crawlwatch.api.schemas.ranges import PreparedRangesData


class ValidationStartRequest(BaseModel):
    expression: str | None = Field(default=None, max_length=2000)
    scan_pages: int | None = Field(default=None, ge=1)

    model_config = ConfigDict(extra="forbid")


class SyncStartRequest(BaseModel):
    expression: str | None = Field(default=None, max_length=2000)
    dry_run: bool = False

    model_config = ConfigDict(extra="forbid")


class OperationStartedData(BaseModel):
    prepared: PreparedRangesData
    result: dict[str, Any]

    model_config = ConfigDict(extra="forbid")


class OperationStartedEnvelope(BaseModel):
    data: OperationStartedData
    meta: ApiMeta

    model_config = ConfigDict(extra="forbid")


class RangeRecomputeData(BaseModel):
    site_total_pages: int | None = None
    plan: dict[str, Any]

    model_config = ConfigDict(extra="forbid")


class RangeRecomputeEnvelope(BaseModel):
    data: RangeRecomputeData
    meta: ApiMeta

    model_config = ConfigDict(extra="forbid")
