from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_REQUEST_RETRIES = 3
DEFAULT_REQUEST_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class AppConfig:
    app_name: str
    app_version: str
    environment: str
    search_backend_url: str
    search_index_name: str
    request_retries: int
    request_timeout_seconds: float
    search_debug: bool


def _read_optional_env(name: str) -> str | None:
    value = os.getenv(name)
    if not value:
        return None
    stripped = value.strip()
    return stripped if stripped else None


def _read_str_env(name: str, default: str) -> str:
    return _read_optional_env(name) or default


def _read_bool_env(name: str, default: bool) -> bool:
    value = _read_optional_env(name)
    if value is None:
        return default
    normalized = value.lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _read_int_env(name: str, default: int) -> int:
    value = _read_optional_env(name)
    if value is None:
        return default
    try:
        parsed = int(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_float_env(name: str, default: float) -> float:
    value = _read_optional_env(name)
    if value is None:
        return default
    try:
        parsed = float(value)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def load_app_config() -> AppConfig:
    return AppConfig(
        app_name=_read_str_env("APP_NAME", "docsearch"),
        app_version=_read_str_env("APP_VERSION", "0.1.0"),
        environment=_read_str_env("APP_ENV", "development"),
        search_backend_url=_read_str_env(
            "SEARCH_BACKEND_URL", "http://localhost:9200"
        ),
        search_index_name=_read_str_env("SEARCH_INDEX_NAME", "documents"),
        request_retries=_read_int_env(
            "SEARCH_REQUEST_RETRIES", default=DEFAULT_REQUEST_RETRIES
        ),
        request_timeout_seconds=_read_float_env(
            "SEARCH_REQUEST_TIMEOUT_SECONDS", default=DEFAULT_REQUEST_TIMEOUT_SECONDS
        ),
        search_debug=_read_bool_env("SEARCH_DEBUG", default=False),
    )
