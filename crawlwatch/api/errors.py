from __future__ import annotations

from collections.abc import Callable
from typing import Any

from fastapi import FastAPI, HTTPException, Request
from fastapi.exception_handlers import (
    http_exception_handler as fastapi_http_exception_handler,
)
from fastapi.exception_handlers import (
    request_validation_exception_handler as fastapi_validation_exception_handler,
)
from fastapi.exceptions import RequestValidationError

from crawlwatch.api.responses import error_response
from crawlwatch.services.engine.errors import EngineCommandError, EngineCommandRejectedError
from crawlwatch.services.operations.types import OperationInProgressError
from crawlwatch.services.ranges.errors import RangeExpressionError

_ERROR_CODES = {
    400: "bad_request",
    404: "not_found",
    409: "conflict",
    422: "validation_error",
    500: "internal_error",
    502: "engine_error",
}


class ApiException(Exception):
    def __init__(
        self,
        *,
        status_code: int,
        code: str,
        message: str,
        details: Any | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details


def _from_range_error(exc: RangeExpressionError) -> ApiException:
    return ApiException(
        status_code=422,
        code="invalid_range_expression",
        message="No valid page range found. Example: 498-492,489",
        details={"expression": exc.expression},
    )


def _from_operation_conflict(exc: OperationInProgressError) -> ApiException:
    return ApiException(
        status_code=409,
        code="operation_in_progress",
        message=str(exc),
        details={"operation": exc.operation.value},
    )


def _from_engine_error(exc: EngineCommandError) -> ApiException:
    details: dict[str, Any] = {"command": exc.command}
    if isinstance(exc, EngineCommandRejectedError):
        details["engine_status_code"] = exc.status_code
    return ApiException(
        status_code=502,
        code="engine_command_failed",
        message=exc.message,
        details=details,
    )


# Service-layer errors surface to API clients through ApiException.
_SERVICE_ERRORS: dict[type[Exception], Callable[[Any], ApiException]] = {
    RangeExpressionError: _from_range_error,
    OperationInProgressError: _from_operation_conflict,
    EngineCommandError: _from_engine_error,
}


def _is_api_path(path: str) -> bool:
    return path.startswith("/api/")


def _render(request: Request, exc: ApiException):
    return error_response(
        request,
        status_code=exc.status_code,
        code=exc.code,
        message=exc.message,
        details=exc.details,
    )


def register_api_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ApiException)
    async def _handle_api_exception(request: Request, exc: ApiException):
        return _render(request, exc)

    for error_type, convert in _SERVICE_ERRORS.items():

        async def _handle_service_error(request: Request, exc: Exception, convert=convert):
            return _render(request, convert(exc))

        app.add_exception_handler(error_type, _handle_service_error)

    @app.exception_handler(HTTPException)
    async def _handle_http_exception(request: Request, exc: HTTPException):
        if not _is_api_path(request.url.path):
            return await fastapi_http_exception_handler(request, exc)
        return error_response(
            request,
            status_code=exc.status_code,
            code=_ERROR_CODES.get(exc.status_code, "error"),
            message=str(exc.detail) if exc.detail is not None else "Request failed.",
            details=exc.detail if isinstance(exc.detail, (dict, list)) else None,
        )

    @app.exception_handler(RequestValidationError)
    async def _handle_validation_exception(request: Request, exc: RequestValidationError):
        if not _is_api_path(request.url.path):
            return await fastapi_validation_exception_handler(request, exc)
        return error_response(
            request,
            status_code=422,
            code="validation_error",
            message="Request validation failed.",
            details=exc.errors(),
        )
