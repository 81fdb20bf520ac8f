"""Per-stage progress counters built from an unordered, duplicate-prone event stream.

A stage is fed either per unit (``on_started``/``on_completed``/``on_failed``,
keyed by page number or another stable id) or per group
(``on_group_report``). Per-unit accounting goes through set membership, so
replaying an event never moves a counter. Group reports are running totals
and are expected exactly once per group.

Counters are derived on every read; ``inflight`` is never stored.
"""

from __future__ import annotations

from collections.abc import Hashable

from crawlwatch.services.progress.types import StageCounters, StageName


class StageAggregator:
    def __init__(self, stage: StageName) -> None:
        self.stage = stage
        self._seen: set[Hashable] = set()
        self._completed: set[Hashable] = set()
        self._failed_final: set[Hashable] = set()
        self._attempts: dict[Hashable, int] = {}
        self._retried = 0
        self._group_started = 0
        self._group_completed = 0
        self._group_failed = 0

    # ── Per-unit accounting ──────────────────────────────────────────

    def on_started(self, unit_id: Hashable) -> None:
        self._seen.add(unit_id)
        self._attempts[unit_id] = self._attempts.get(unit_id, 0) + 1

    def on_completed(self, unit_id: Hashable) -> None:
        self._seen.add(unit_id)
        self._completed.add(unit_id)
        # A unit that eventually succeeded is no longer a terminal failure.
        self._failed_final.discard(unit_id)

    def on_failed(self, unit_id: Hashable, final_failure: bool) -> None:
        self._seen.add(unit_id)
        if not final_failure:
            self._retried += 1
            return
        if unit_id not in self._completed:
            self._failed_final.add(unit_id)

    # ── Group accounting ─────────────────────────────────────────────

    def on_group_report(self, group_size: int, succeeded: int, failed: int) -> None:
        self._group_started += max(0, group_size)
        self._group_completed += max(0, succeeded)
        self._group_failed += max(0, failed)
        # Outcomes reported outside a group (single failures) still count as started.
        self._group_started = max(self._group_started, self._group_completed + self._group_failed)

    # ── Reads ────────────────────────────────────────────────────────

    def attempts(self, unit_id: Hashable) -> int:
        return self._attempts.get(unit_id, 0)

    def units_with_retries(self) -> int:
        return sum(1 for count in self._attempts.values() if count > 1)

    @property
    def counters(self) -> StageCounters:
        started = len(self._seen) + self._group_started
        completed = len(self._completed) + self._group_completed
        failed = len(self._failed_final) + self._group_failed
        return StageCounters(
            started=started,
            completed=completed,
            failed=failed,
            retried=self._retried,
            inflight=max(0, started - (completed + failed)),
        )
