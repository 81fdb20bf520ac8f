from __future__ import annotations

from datetime import UTC, datetime
import logging
from typing import Any

from crawlwatch.logging_context import set_engine_session_id
from crawlwatch.logging_utils import structured_log
from crawlwatch.services.events.types import (
    EventKind,
    LifecycleEvent,
    NextPlanReadyEvent,
    SessionEvent,
)
from crawlwatch.services.progress.reducer import SessionProgress, apply_event
from crawlwatch.services.session.types import Effect, RecomputeRange, SessionState

logger = logging.getLogger(__name__)

_TERMINAL_TRANSITIONS = {
    EventKind.SESSION_COMPLETED: SessionState.COMPLETED,
    EventKind.SESSION_FAILED: SessionState.FAILED,
    EventKind.SESSION_TIMEOUT: SessionState.TIMED_OUT,
    EventKind.SHUTDOWN_COMPLETED: SessionState.TIMED_OUT,
}


class SessionLifecycleController:
    """Owns the session state machine and the progress of the current session.

    ``handle`` never performs I/O. Outbound work is returned as effects for
    the runtime to schedule without blocking event processing.
    """

    def __init__(self) -> None:
        self.state = SessionState.IDLE
        self.progress = SessionProgress()
        self.session_id: str | None = None
        self.failure_reason: str | None = None
        self.started_at: datetime | None = None
        self.ended_at: datetime | None = None
        self.next_plan: dict[str, Any] | None = None
        self.suggested_range: dict[str, Any] | None = None

    def handle(self, event: LifecycleEvent) -> list[Effect]:
        if isinstance(event, SessionEvent):
            return self._handle_session_event(event)
        if isinstance(event, NextPlanReadyEvent):
            self.next_plan = event.plan
            structured_log(logger, "info", "session.next_plan_ready")
            return [RecomputeRange(reason=EventKind.NEXT_PLAN_READY.value)]
        apply_event(self.progress, event)
        return []

    def accept_plan(self, plan: dict[str, Any]) -> None:
        self.suggested_range = plan

    def _handle_session_event(self, event: SessionEvent) -> list[Effect]:
        if event.kind == EventKind.SESSION_STARTED:
            self._start(event)
            return []

        target = _TERMINAL_TRANSITIONS[event.kind]
        if self.state != SessionState.RUNNING:
            structured_log(
                logger,
                "debug",
                "session.terminal_event_ignored",
                event_name=event.kind.value,
                state=self.state.value,
            )
            return []

        self.state = target
        self.ended_at = datetime.now(UTC)
        if target == SessionState.FAILED:
            self.failure_reason = event.reason
        structured_log(
            logger,
            "warning" if target == SessionState.FAILED else "info",
            "session.ended",
            state=target.value,
            event_name=event.kind.value,
            reason=event.reason,
        )
        return [RecomputeRange(reason=event.kind.value)]

    def _start(self, event: SessionEvent) -> None:
        previous = self.state
        self.state = SessionState.RUNNING
        self.progress = SessionProgress()
        self.session_id = event.session_id
        self.failure_reason = None
        self.started_at = datetime.now(UTC)
        self.ended_at = None
        set_engine_session_id(event.session_id)
        structured_log(
            logger,
            "info",
            "session.started",
            session_id=event.session_id,
            previous_state=previous.value,
        )
