from __future__ import annotations

from fastapi import Request

from crawlwatch.services.dashboard.runtime import DashboardRuntime


def get_runtime(request: Request) -> DashboardRuntime:
    return request.app.state.runtime
