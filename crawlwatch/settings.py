from dataclasses import dataclass
import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    return int(value)


def _env_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None:
        return default
    return float(value)


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip() or default


@dataclass(frozen=True)
class Settings:
    app_name: str = os.getenv("APP_NAME", "crawlwatch")
    engine_base_url: str = _env_str("ENGINE_BASE_URL", "http://127.0.0.1:7878")
    engine_events_path: str = _env_str("ENGINE_EVENTS_PATH", "/events")
    engine_timeout_seconds: float = _env_float("ENGINE_TIMEOUT_SECONDS", 30.0)
    engine_reconnect_delay_seconds: float = _env_float(
        "ENGINE_RECONNECT_DELAY_SECONDS",
        3.0,
    )
    engine_subscribe_enabled: bool = _env_bool("ENGINE_SUBSCRIBE_ENABLED", True)
    # 0 disables the span limit.
    validation_max_span_pages: int = _env_int("VALIDATION_MAX_SPAN_PAGES", 0)
    sync_max_span_pages: int = _env_int("SYNC_MAX_SPAN_PAGES", 0)
    diagnostics_items_per_page: int = _env_int("DIAGNOSTICS_ITEMS_PER_PAGE", 12)
    log_level: str = _env_str("LOG_LEVEL", "INFO")
    log_format: str = _env_str("LOG_FORMAT", "console")
    log_requests: bool = _env_bool("LOG_REQUESTS", True)
    log_uvicorn_access: bool = _env_bool("LOG_UVICORN_ACCESS", False)
    log_request_skip_paths: str = _env_str(
        "LOG_REQUEST_SKIP_PATHS",
        "/healthz,/api/v1/progress/stream",
    )
    log_redact_fields: str = os.getenv("LOG_REDACT_FIELDS", "")


settings = Settings()
