from __future__ import annotations

from secrets import token_urlsafe
import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from crawlwatch.logging_context import set_request_id
from crawlwatch.logging_utils import structured_log

REQUEST_ID_HEADER = "X-Request-ID"

logger = logging.getLogger(__name__)


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Assigns a request id to every call and logs one line per finished request.

    Engine failures surface as 502 responses; they are logged at warning so
    they stand out from ordinary traffic.
    """

    def __init__(
        self,
        app,
        *,
        log_requests: bool = True,
        skip_paths: tuple[str, ...] = (),
    ) -> None:
        super().__init__(app)
        self._log_requests = log_requests
        self._skip_paths = tuple(path for path in skip_paths if path)

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or token_urlsafe(12)
        request.state.request_id = request_id
        set_request_id(request_id)
        started = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "request.failed",
                extra={
                    "method": request.method,
                    "path": request.url.path,
                    "duration_ms": _elapsed_ms(started),
                },
            )
            raise
        else:
            response.headers[REQUEST_ID_HEADER] = request_id
            if self._should_log(request.url.path):
                structured_log(
                    logger,
                    "warning" if response.status_code >= 500 else "info",
                    "request.completed",
                    method=request.method,
                    path=request.url.path,
                    status_code=response.status_code,
                    duration_ms=_elapsed_ms(started),
                )
            return response
        finally:
            set_request_id(None)

    def _should_log(self, path: str) -> bool:
        if not self._log_requests:
            return False
        return not any(path.startswith(prefix) for prefix in self._skip_paths)


def parse_skip_paths(raw_value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in raw_value.split(",") if part.strip())
