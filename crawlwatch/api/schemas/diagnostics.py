from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict

from crawlwatch.api.schemas.common import ApiMeta


class DiagnosticGroupData(BaseModel):
    page_id: int | None = None
    current_page_number: int | None = None
    status: str
    duplicate_indices: list[int]
    missing_indices: list[int]
    out_of_range_count: int

    model_config = ConfigDict(extra="forbid")


class DiagnosticReportData(BaseModel):
    total_products: int
    total_pages_site: int | None = None
    items_on_last_page: int | None = None
    group_summaries: list[DiagnosticGroupData]

    model_config = ConfigDict(extra="forbid")


class RepairPlanEntryData(BaseModel):
    physical_page: int
    miss_indices: list[int]

    model_config = ConfigDict(extra="forbid")


class DiagnosticsScanData(BaseModel):
    report: DiagnosticReportData
    coarse_expression: str | None = None
    slot_plan: list[RepairPlanEntryData]
    repair_needed: bool

    model_config = ConfigDict(extra="forbid")


class DiagnosticsScanEnvelope(BaseModel):
    data: DiagnosticsScanData
    meta: ApiMeta

    model_config = ConfigDict(extra="forbid")


class DiagnosticsRepairRequest(BaseModel):
    dry_run: bool = False

    model_config = ConfigDict(extra="forbid")


class DiagnosticsRepairData(BaseModel):
    repair_needed: bool
    plan: list[RepairPlanEntryData]
    result: dict[str, Any] | None = None

    model_config = ConfigDict(extra="forbid")


class DiagnosticsRepairEnvelope(BaseModel):
    data: DiagnosticsRepairData
    meta: ApiMeta

    model_config = ConfigDict(extra="forbid")
