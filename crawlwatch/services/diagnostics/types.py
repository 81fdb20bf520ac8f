from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


def _int_or_none(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _int_list(value: Any) -> list[int]:
    if not isinstance(value, (list, tuple)):
        return []
    parsed = (_int_or_none(item) for item in value)
    return [item for item in parsed if item is not None]


@dataclass(frozen=True)
class DiagnosticGroupSummary:
    """Slot-occupancy health of the records stored for one physical page."""

    page_id: int | None
    current_page_number: int | None
    status: str = "ok"
    duplicate_indices: list[int] = field(default_factory=list)
    missing_indices: list[int] = field(default_factory=list)
    out_of_range_count: int = 0

    @property
    def needs_repair(self) -> bool:
        return (
            self.status != "ok"
            or bool(self.duplicate_indices)
            or bool(self.missing_indices)
            or self.out_of_range_count > 0
        )

    @classmethod
    def from_api_dict(cls, data: dict[str, Any]) -> DiagnosticGroupSummary:
        status = data.get("status")
        return cls(
            page_id=_int_or_none(data.get("page_id")),
            current_page_number=_int_or_none(data.get("current_page_number")),
            status=str(status).strip().lower() if status else "ok",
            duplicate_indices=_int_list(data.get("duplicate_indices")),
            missing_indices=_int_list(data.get("missing_indices")),
            out_of_range_count=max(0, _int_or_none(data.get("out_of_range_count")) or 0),
        )


@dataclass(frozen=True)
class PaginationDiagnosticReport:
    total_products: int = 0
    total_pages_site: int | None = None
    items_on_last_page: int | None = None
    group_summaries: list[DiagnosticGroupSummary] = field(default_factory=list)

    @classmethod
    def from_api_dict(cls, data: dict[str, Any]) -> PaginationDiagnosticReport:
        raw_groups = data.get("group_summaries")
        groups = [
            DiagnosticGroupSummary.from_api_dict(item)
            for item in (raw_groups if isinstance(raw_groups, list) else [])
            if isinstance(item, dict)
        ]
        return cls(
            total_products=_int_or_none(data.get("total_products")) or 0,
            total_pages_site=_int_or_none(data.get("total_pages_site")),
            items_on_last_page=_int_or_none(data.get("items_on_last_page")),
            group_summaries=groups,
        )


@dataclass(frozen=True)
class RepairPlanEntry:
    physical_page: int
    missing_slot_indices: list[int]

    def to_command_dict(self) -> dict[str, Any]:
        return {"physical_page": self.physical_page, "miss_indices": list(self.missing_slot_indices)}
