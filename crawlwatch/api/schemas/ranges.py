from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from crawlwatch.api.schemas.common import ApiMeta


class RangeNormalizeRequest(BaseModel):
    expression: str = Field(max_length=2000)
    total_pages: int | None = Field(default=None, ge=0)
    max_span: int = Field(default=0, ge=0)

    model_config = ConfigDict(extra="forbid")


class PreparedRangesData(BaseModel):
    original_expression: str
    expression: str
    ranges: list[tuple[int, int]]
    changed: bool
    notices: list[str]
    page_count: int

    model_config = ConfigDict(extra="forbid")


class PreparedRangesEnvelope(BaseModel):
    data: PreparedRangesData
    meta: ApiMeta

    model_config = ConfigDict(extra="forbid")
