from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PageRange:
    """Inclusive span of physical pages.

    ``start`` is the older (larger) page and ``end`` the newer (smaller) one,
    so a well-formed range satisfies ``start >= end >= 1``.
    """

    start: int
    end: int

    @property
    def span(self) -> int:
        return self.start - self.end + 1

    def pages(self) -> range:
        return range(self.start, self.end - 1, -1)

    def as_pair(self) -> tuple[int, int]:
        return (self.start, self.end)


@dataclass(frozen=True)
class ClampResult:
    ranges: list[PageRange]
    changed: bool
