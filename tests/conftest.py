from __future__ import annotations

import pytest

CONFIG_ENV_VARS = (
    "APP_NAME",
    "APP_VERSION",
    "APP_ENV",
    "SEARCH_BACKEND_URL",
    "SEARCH_INDEX_NAME",
    "SEARCH_REQUEST_RETRIES",
    "SEARCH_REQUEST_TIMEOUT_SECONDS",
    "SEARCH_DEBUG",
)


@pytest.fixture(autouse=True)
def clear_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
