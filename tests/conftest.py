from __future__ import annotations

from collections.abc import Callable

import pytest

from trading_cli.config import Settings

CLI_ENV_VARS = (
    "PLATFORM_API_BASE_URL",
    "PLATFORM_API_BEARER_TOKEN",
    "PLATFORM_API_TOKEN",
    "PLATFORM_API_KEY",
    "PLATFORM_API_TIMEOUT_SECONDS",
    "REVIEW_WEB_BASE_URL",
    "TRADE_NEXUS_WEB_BASE_URL",
    "TRADING_CLI_LOG_LEVEL",
    "FORCE_COLOR",
)


@pytest.fixture(autouse=True)
def _isolated_cli_environment(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    for name in CLI_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    # Keep a developer's .env out of the settings under test.
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def make_settings() -> Callable[..., Settings]:
    def _make(**overrides: object) -> Settings:
        values: dict[str, object] = {"platform_api_base_url": "http://localhost:3000"}
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make
