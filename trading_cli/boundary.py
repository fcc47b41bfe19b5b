"""Platform API boundary guard.

The CLI is a client lane of the Platform API only. It must never call Lona,
live-engine, or market-data/exchange providers directly, so the configured
base URL is checked against an exact-host allow-list and a provider hint
block-list before any request is made.
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

from trading_cli.errors import ConfigurationError

PLATFORM_API_HOST = "api-nexus.lona.agency"

ALLOWED_LOCAL_LOOPBACK_HOSTS = frozenset(
    {
        "localhost",
        "127.0.0.1",
        "0.0.0.0",
        "::1",
        "[::1]",
    }
)

BLOCKED_PROVIDER_HOST_HINTS = (
    "lona",
    "live-engine",
    "binance",
    "alpaca",
    "kraken",
    "coinbase",
)


@dataclass(frozen=True)
class HostAllowPolicy:
    platform_host: str = PLATFORM_API_HOST
    loopback_hosts: frozenset[str] = ALLOWED_LOCAL_LOOPBACK_HOSTS
    blocked_host_hints: tuple[str, ...] = BLOCKED_PROVIDER_HOST_HINTS

    def is_platform_host(self, hostname: str) -> bool:
        return hostname == self.platform_host or hostname in self.loopback_hosts

    def points_to_provider(self, hostname: str) -> bool:
        return any(hint in hostname for hint in self.blocked_host_hints)


DEFAULT_HOST_POLICY = HostAllowPolicy()


def _absolute_http_hostname(url: str, *, setting: str) -> str:
    invalid = ConfigurationError(
        f"{setting} must be an absolute http(s) URL.",
        code="BASE_URL_INVALID",
    )
    try:
        parts = urlsplit(url)
        # Accessing port validates it.
        _ = parts.port
    except ValueError as exc:
        raise invalid from exc
    if parts.scheme.lower() not in {"http", "https"} or not parts.hostname:
        raise invalid
    return parts.hostname.lower()


def assert_platform_api_base_url(url: str, policy: HostAllowPolicy = DEFAULT_HOST_POLICY) -> None:
    """Raise ConfigurationError unless ``url`` targets the Platform API host or loopback."""
    normalized = url.strip()
    if not normalized:
        raise ConfigurationError("PLATFORM_API_BASE_URL is required.", code="BASE_URL_REQUIRED")

    hostname = _absolute_http_hostname(normalized, setting="PLATFORM_API_BASE_URL")
    is_platform_host = policy.is_platform_host(hostname)

    if policy.points_to_provider(hostname) and not is_platform_host:
        raise ConfigurationError(
            "Boundary violation: CLI must target Platform API only (no direct provider hosts).",
            code="BOUNDARY_VIOLATION",
            details={"host": hostname},
        )

    if not is_platform_host:
        raise ConfigurationError(
            f"PLATFORM_API_BASE_URL host must be {policy.platform_host} or a local loopback host.",
            code="PLATFORM_HOST_REQUIRED",
            details={"host": hostname},
        )


def normalize_web_base_url(url: str, *, setting: str = "REVIEW_WEB_BASE_URL") -> str:
    """Validate an absolute http(s) web origin and trim its trailing slash."""
    normalized = url.strip()
    _absolute_http_hostname(normalized, setting=setting)
    return normalized[:-1] if normalized.endswith("/") else normalized
