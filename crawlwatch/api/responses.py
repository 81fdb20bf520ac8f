from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from starlette.requests import Request
from starlette.responses import JSONResponse


def _envelope(request: Request, **body: Any) -> dict[str, Any]:
    request_id = getattr(getattr(request, "state", None), "request_id", None)
    return jsonable_encoder({**body, "meta": {"request_id": request_id}})


def success_payload(request: Request, *, data: Any) -> dict[str, Any]:
    return _envelope(request, data=data)


def error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: Any | None = None,
) -> JSONResponse:
    content = _envelope(
        request,
        error={"code": code, "message": message, "details": details},
    )
    return JSONResponse(status_code=status_code, content=content)
