from __future__ import annotations

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI

from crawlwatch.api.errors import register_api_exception_handlers
from crawlwatch.api.router import router as api_router
from crawlwatch.http.middleware import RequestLoggingMiddleware, parse_skip_paths
from crawlwatch.logging_config import configure_logging, parse_redact_fields
from crawlwatch.services.dashboard.runtime import DashboardRuntime
from crawlwatch.services.engine.client import EngineClient
from crawlwatch.services.engine.stream import EngineEventStream
from crawlwatch.settings import settings

logger = logging.getLogger(__name__)

configure_logging(
    level=settings.log_level,
    log_format=settings.log_format,
    redact_fields=parse_redact_fields(settings.log_redact_fields),
    include_uvicorn_access=settings.log_uvicorn_access,
)

runtime = DashboardRuntime(
    client=EngineClient(
        base_url=settings.engine_base_url,
        timeout_seconds=settings.engine_timeout_seconds,
    ),
    stream=EngineEventStream(
        base_url=settings.engine_base_url,
        events_path=settings.engine_events_path,
    ),
    reconnect_delay_seconds=settings.engine_reconnect_delay_seconds,
    items_per_page=settings.diagnostics_items_per_page,
    validation_max_span=settings.validation_max_span_pages,
    sync_max_span=settings.sync_max_span_pages,
)


def _log_startup() -> None:
    logger.info(
        "app.startup",
        extra={
            "event": "app.startup",
            "engine_base_url": settings.engine_base_url,
            "engine_subscribe_enabled": settings.engine_subscribe_enabled,
            "log_format": settings.log_format,
        },
    )


@asynccontextmanager
async def lifespan(application: FastAPI):
    _log_startup()
    if settings.engine_subscribe_enabled:
        await application.state.runtime.start()
    yield
    await application.state.runtime.stop()


app = FastAPI(title=settings.app_name, lifespan=lifespan)
app.state.runtime = runtime
register_api_exception_handlers(app)
app.add_middleware(
    RequestLoggingMiddleware,
    log_requests=settings.log_requests,
    skip_paths=parse_skip_paths(settings.log_request_skip_paths),
)
app.include_router(api_router)


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}
