from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from crawlwatch.api.schemas.common import ApiMeta


class StageCountersData(BaseModel):
    started: int
    completed: int
    failed: int
    retried: int
    inflight: int

    model_config = ConfigDict(extra="forbid")


class ProgressData(BaseModel):
    stages: dict[str, StageCountersData]
    batch: dict[str, Any]
    concurrency: dict[str, Any]
    validation: dict[str, Any]
    sync: dict[str, Any]
    persist: dict[str, Any]
    database: dict[str, Any]

    model_config = ConfigDict(extra="forbid")


class SessionData(BaseModel):
    state: str
    session_id: str | None = None
    failure_reason: str | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None

    model_config = ConfigDict(extra="forbid")


class OperationRecordData(BaseModel):
    status: str
    last_error: str | None = None
    updated_at: datetime | None = None

    model_config = ConfigDict(extra="forbid")


class ProgressSnapshotData(BaseModel):
    session: SessionData
    progress: ProgressData
    suggested_range: dict[str, Any] | None = None
    next_plan: dict[str, Any] | None = None
    site_total_pages: int | None = None
    operations: dict[str, OperationRecordData]

    model_config = ConfigDict(extra="forbid")


class ProgressSnapshotEnvelope(BaseModel):
    data: ProgressSnapshotData
    meta: ApiMeta

    model_config = ConfigDict(extra="forbid")
