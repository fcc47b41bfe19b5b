"""CLI configuration."""

from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from trading_cli.errors import ConfigurationError

DEFAULT_PLATFORM_API_BASE_URL = "http://localhost:3000"
DEFAULT_REVIEW_WEB_BASE_URL = "https://trade-nexus.lona.agency"
DEFAULT_TIMEOUT_SECONDS = 15.0


def _non_empty(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


class Settings(BaseSettings):
    """CLI settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Platform API
    platform_api_base_url: str = DEFAULT_PLATFORM_API_BASE_URL
    platform_api_timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS

    # Credentials
    platform_api_bearer_token: str = ""
    platform_api_token: str = ""
    platform_api_key: str = ""

    # Review web
    review_web_base_url: str = ""
    trade_nexus_web_base_url: str = ""

    # Logging
    trading_cli_log_level: str = ""

    @property
    def access_token(self) -> str | None:
        """Bearer token; PLATFORM_API_BEARER_TOKEN wins over PLATFORM_API_TOKEN."""
        return _non_empty(self.platform_api_bearer_token) or _non_empty(self.platform_api_token)

    @property
    def api_key(self) -> str | None:
        return _non_empty(self.platform_api_key)

    @property
    def has_credentials(self) -> bool:
        return self.access_token is not None or self.api_key is not None

    @property
    def configured_review_web_base_url(self) -> str:
        return (
            _non_empty(self.review_web_base_url)
            or _non_empty(self.trade_nexus_web_base_url)
            or DEFAULT_REVIEW_WEB_BASE_URL
        )


def load_settings() -> Settings:
    """Read settings for one invocation; malformed values become a ConfigurationError."""
    try:
        return Settings()
    except PydanticValidationError as exc:
        issue = exc.errors()[0]
        variable = ".".join(str(part) for part in issue.get("loc", ())).upper() or "environment"
        raise ConfigurationError(
            f"Invalid configuration value for {variable}: {issue.get('msg', 'invalid value')}.",
            code="CONFIG_INVALID",
        ) from exc
