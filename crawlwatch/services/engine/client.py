from __future__ import annotations

from collections.abc import Awaitable, Callable, Sequence
import logging
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from crawlwatch.logging_utils import structured_log
from crawlwatch.services.diagnostics.types import PaginationDiagnosticReport, RepairPlanEntry
from crawlwatch.services.engine.errors import (
    EngineCommandError,
    EngineCommandRejectedError,
    EngineUnavailableError,
)
from crawlwatch.services.engine.types import CrawlingRangePlan, SiteStatus

logger = logging.getLogger(__name__)

RequestFn = Callable[..., Awaitable[httpx.Response]]

USER_AGENT = "crawlwatch/1.0"


class EngineClient:
    """Issues commands to the crawling engine over its HTTP command endpoint.

    Read-only commands are retried on network errors; commands that start
    work on the engine are sent once.
    """

    def __init__(
        self,
        *,
        base_url: str,
        timeout_seconds: float = 30.0,
        request_fn: RequestFn | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._request_fn = request_fn or self._default_request

    async def _default_request(
        self,
        *,
        command: str,
        body: dict[str, Any],
        timeout_seconds: float,
    ) -> httpx.Response:
        async with httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout_seconds,
            headers={"User-Agent": USER_AGENT},
        ) as client:
            return await client.post(f"/commands/{command}", json=body)

    async def _send(self, command: str, body: dict[str, Any]) -> httpx.Response:
        return await self._request_fn(
            command=command,
            body=body,
            timeout_seconds=self.timeout_seconds,
        )

    @retry(
        retry=retry_if_exception_type((httpx.NetworkError, httpx.TimeoutException)),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=1, max=8),
        reraise=True,
    )
    async def _send_with_retry(self, command: str, body: dict[str, Any]) -> httpx.Response:
        return await self._send(command, body)

    async def _call(
        self,
        command: str,
        body: dict[str, Any] | None = None,
        *,
        retryable: bool = False,
        allow_empty: bool = False,
    ) -> Any:
        payload = body or {}
        try:
            if retryable:
                response = await self._send_with_retry(command, payload)
            else:
                response = await self._send(command, payload)
        except httpx.HTTPError as exc:
            structured_log(logger, "warning", "engine.command_unreachable", command=command, error=str(exc))
            raise EngineUnavailableError(command, str(exc) or type(exc).__name__) from exc

        if response.status_code >= 400:
            message = _error_message(response)
            structured_log(
                logger,
                "warning",
                "engine.command_rejected",
                command=command,
                status_code=response.status_code,
                error=message,
            )
            raise EngineCommandRejectedError(command, message, status_code=response.status_code)

        if allow_empty and not response.content.strip():
            structured_log(logger, "debug", "engine.command_completed", command=command, empty_body=True)
            return None

        try:
            data = response.json()
        except ValueError as exc:
            raise EngineCommandError(command, "engine returned a non-JSON body") from exc
        structured_log(logger, "debug", "engine.command_completed", command=command)
        return data

    async def _call_mapping(self, command: str, body: dict[str, Any] | None = None, *, retryable: bool = False) -> dict[str, Any]:
        data = await self._call(command, body, retryable=retryable)
        if not isinstance(data, dict):
            raise EngineCommandError(command, "engine returned an unexpected payload")
        return data

    # ── Commands ─────────────────────────────────────────────────────

    async def check_site_status(self) -> SiteStatus:
        data = await self._call_mapping("check_site_status", retryable=True)
        return SiteStatus.from_api_dict(data)

    async def calculate_crawling_range(
        self,
        *,
        total_pages_on_site: int,
        products_on_last_page: int,
    ) -> CrawlingRangePlan:
        data = await self._call_mapping(
            "calculate_crawling_range",
            {
                "total_pages_on_site": total_pages_on_site,
                "products_on_last_page": products_on_last_page,
            },
            retryable=True,
        )
        return CrawlingRangePlan.from_api_dict(data)

    async def start_validation(
        self,
        *,
        start_physical_page: int,
        end_physical_page: int,
        scan_pages: int | None,
        ranges_expr: str,
    ) -> dict[str, Any]:
        return await self._call_mapping(
            "start_validation",
            {
                "start_physical_page": start_physical_page,
                "end_physical_page": end_physical_page,
                "scan_pages": scan_pages,
                "ranges_expr": ranges_expr,
            },
        )

    async def start_partial_sync(self, ranges: str, *, dry_run: bool = False) -> dict[str, Any]:
        return await self._call_mapping("start_partial_sync", {"ranges": ranges, "dry_run": dry_run})

    async def scan_db_pagination_mismatches(self) -> PaginationDiagnosticReport:
        data = await self._call_mapping("scan_db_pagination_mismatches", retryable=True)
        return PaginationDiagnosticReport.from_api_dict(data)

    async def start_diagnostic_sync(
        self,
        groups: Sequence[RepairPlanEntry],
        *,
        dry_run: bool = False,
    ) -> dict[str, Any]:
        return await self._call_mapping(
            "start_diagnostic_sync",
            {"groups": [entry.to_command_dict() for entry in groups], "dry_run": dry_run},
        )

    async def request_graceful_shutdown(self) -> None:
        await self._call("request_graceful_shutdown", allow_empty=True)


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text[:500] or f"HTTP {response.status_code}"
    if isinstance(data, dict):
        error = data.get("error") or data.get("message") or data.get("detail")
        if isinstance(error, dict):
            error = error.get("message")
        if error:
            return str(error)[:500]
    return f"HTTP {response.status_code}"
