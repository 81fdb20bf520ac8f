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


@dataclass(frozen=True)
class SiteStatus:
    total_pages: int
    products_on_last_page: int

    @classmethod
    def from_api_dict(cls, data: dict[str, Any]) -> SiteStatus:
        body = data.get("data") if isinstance(data.get("data"), dict) else data
        return cls(
            total_pages=max(0, _int_or_none(body.get("total_pages")) or 0),
            products_on_last_page=max(0, _int_or_none(body.get("products_on_last_page")) or 0),
        )


@dataclass(frozen=True)
class CrawlingRangePlan:
    range: tuple[int, int] | None
    crawling_info: dict[str, Any] = field(default_factory=dict)
    batch_plan: Any = None

    @classmethod
    def from_api_dict(cls, data: dict[str, Any]) -> CrawlingRangePlan:
        raw_range = data.get("range")
        parsed_range = None
        if isinstance(raw_range, (list, tuple)) and len(raw_range) == 2:
            start, end = _int_or_none(raw_range[0]), _int_or_none(raw_range[1])
            if start is not None and end is not None:
                parsed_range = (start, end)
        crawling_info = data.get("crawling_info")
        return cls(
            range=parsed_range,
            crawling_info=crawling_info if isinstance(crawling_info, dict) else {},
            batch_plan=data.get("batch_plan"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "range": list(self.range) if self.range is not None else None,
            "crawling_info": self.crawling_info,
            "batch_plan": self.batch_plan,
        }
