"""Async HTTP client for the Platform API v2 validation routes."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from types import TracebackType
from typing import Any, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from trading_cli.config import DEFAULT_TIMEOUT_SECONDS, Settings
from trading_cli.errors import (
    ConfigurationError,
    ParseError,
    RemoteApiError,
    RequiredFieldError,
    TransportError,
)
from trading_cli.observability import log_command_event
from trading_cli.schemas import (
    BotKeyMetadataResponse,
    BotKeyRotationResponse,
    BotRegistrationResponse,
    CreateValidationReviewRenderRequest,
    ValidationReviewRenderResponse,
    ValidationReviewRunDetailResponse,
    ValidationReviewRunListResponse,
    ValidationRunResponse,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(frozen=True)
class PlatformApiClientConfig:
    base_url: str
    access_token: str | None = None
    api_key: str | None = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS


def _path_param(value: str) -> str:
    return quote(value, safe="")


def _require(value: object, field: str, operation: str) -> None:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise RequiredFieldError(
            field,
            f"Required parameter {field} was null or undefined when calling {operation}().",
        )


class PlatformApiClient:
    """Typed client over the canonical Platform API validation routes.

    One instance serves one CLI invocation; calls are awaited one at a time
    and every call is bounded by the configured timeout.
    """

    def __init__(
        self,
        *,
        config: PlatformApiClientConfig,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._config = config
        base_url = config.base_url[:-1] if config.base_url.endswith("/") else config.base_url
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=httpx.Timeout(config.timeout_seconds),
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Validation runs
    # ------------------------------------------------------------------

    async def create_validation_run(
        self,
        *,
        body: Any,
        request_id: str,
        idempotency_key: str,
    ) -> ValidationRunResponse:
        """POST /v2/validation-runs"""
        operation = "createValidationRunV2"
        _require(body, "createValidationRunRequest", operation)
        payload = await self.request_json(
            "POST",
            "/v2/validation-runs",
            operation=operation,
            request_id=request_id,
            idempotency_key=idempotency_key,
            body=body,
        )
        return self._parse(ValidationRunResponse, payload, operation)

    async def create_validation_review_render(
        self,
        *,
        run_id: str,
        render_format: str,
        request_id: str,
        idempotency_key: str,
    ) -> ValidationReviewRenderResponse:
        """POST /v2/validation-review/runs/{runId}/renders"""
        operation = "createValidationReviewRenderV2"
        _require(run_id, "runId", operation)
        _require(render_format, "format", operation)
        body = CreateValidationReviewRenderRequest(format=render_format).model_dump()
        payload = await self.request_json(
            "POST",
            f"/v2/validation-review/runs/{_path_param(run_id)}/renders",
            operation=operation,
            request_id=request_id,
            idempotency_key=idempotency_key,
            body=body,
        )
        return self._parse(ValidationReviewRenderResponse, payload, operation)

    async def get_validation_review_run(self, *, run_id: str, request_id: str) -> ValidationReviewRunDetailResponse:
        """GET /v2/validation-review/runs/{runId}"""
        operation = "getValidationReviewRunV2"
        _require(run_id, "runId", operation)
        payload = await self.request_json(
            "GET",
            f"/v2/validation-review/runs/{_path_param(run_id)}",
            operation=operation,
            request_id=request_id,
        )
        return self._parse(ValidationReviewRunDetailResponse, payload, operation)

    async def get_validation_review_render(
        self,
        *,
        run_id: str,
        render_format: str,
        request_id: str,
    ) -> ValidationReviewRenderResponse:
        """GET /v2/validation-review/runs/{runId}/renders/{format}"""
        operation = "getValidationReviewRenderV2"
        _require(run_id, "runId", operation)
        _require(render_format, "format", operation)
        payload = await self.request_json(
            "GET",
            f"/v2/validation-review/runs/{_path_param(run_id)}/renders/{_path_param(render_format)}",
            operation=operation,
            request_id=request_id,
        )
        return self._parse(ValidationReviewRenderResponse, payload, operation)

    async def list_validation_review_runs(
        self,
        *,
        request_id: str,
        status: str | None = None,
        final_decision: str | None = None,
        cursor: str | None = None,
        limit: int | None = None,
    ) -> ValidationReviewRunListResponse:
        """GET /v2/validation-review/runs

        Returns a cursor-paginated { items: [], nextCursor }.
        """
        operation = "listValidationReviewRunsV2"
        params: dict[str, Any] = {}
        if status is not None:
            params["status"] = status
        if final_decision is not None:
            params["finalDecision"] = final_decision
        if cursor is not None:
            params["cursor"] = cursor
        if limit is not None:
            params["limit"] = limit
        payload = await self.request_json(
            "GET",
            "/v2/validation-review/runs",
            operation=operation,
            request_id=request_id,
            params=params,
        )
        return self._parse(ValidationReviewRunListResponse, payload, operation)

    # ------------------------------------------------------------------
    # Validation bots
    # ------------------------------------------------------------------

    async def register_bot_invite_code(
        self,
        *,
        body: Any,
        request_id: str,
        idempotency_key: str,
    ) -> BotRegistrationResponse:
        """POST /v2/validation-bots/registrations/invite-code"""
        operation = "registerValidationBotInviteCodeV2"
        _require(body, "createBotInviteRegistrationRequest", operation)
        payload = await self.request_json(
            "POST",
            "/v2/validation-bots/registrations/invite-code",
            operation=operation,
            request_id=request_id,
            idempotency_key=idempotency_key,
            body=body,
        )
        return self._parse(BotRegistrationResponse, payload, operation)

    async def register_bot_partner_bootstrap(
        self,
        *,
        body: Any,
        request_id: str,
        idempotency_key: str,
    ) -> BotRegistrationResponse:
        """POST /v2/validation-bots/registrations/partner-bootstrap"""
        operation = "registerValidationBotPartnerBootstrapV2"
        _require(body, "createBotPartnerBootstrapRequest", operation)
        payload = await self.request_json(
            "POST",
            "/v2/validation-bots/registrations/partner-bootstrap",
            operation=operation,
            request_id=request_id,
            idempotency_key=idempotency_key,
            body=body,
        )
        return self._parse(BotRegistrationResponse, payload, operation)

    async def rotate_bot_key(
        self,
        *,
        bot_id: str,
        body: Any,
        request_id: str,
        idempotency_key: str,
    ) -> BotKeyRotationResponse:
        """POST /v2/validation-bots/{botId}/keys/rotate"""
        operation = "rotateValidationBotKeyV2"
        _require(bot_id, "botId", operation)
        payload = await self.request_json(
            "POST",
            f"/v2/validation-bots/{_path_param(bot_id)}/keys/rotate",
            operation=operation,
            request_id=request_id,
            idempotency_key=idempotency_key,
            body=body,
        )
        return self._parse(BotKeyRotationResponse, payload, operation)

    async def revoke_bot_key(
        self,
        *,
        bot_id: str,
        key_id: str,
        body: Any,
        request_id: str,
        idempotency_key: str,
    ) -> BotKeyMetadataResponse:
        """POST /v2/validation-bots/{botId}/keys/{keyId}/revoke"""
        operation = "revokeValidationBotKeyV2"
        _require(bot_id, "botId", operation)
        _require(key_id, "keyId", operation)
        payload = await self.request_json(
            "POST",
            f"/v2/validation-bots/{_path_param(bot_id)}/keys/{_path_param(key_id)}/revoke",
            operation=operation,
            request_id=request_id,
            idempotency_key=idempotency_key,
            body=body,
        )
        return self._parse(BotKeyMetadataResponse, payload, operation)

    # ------------------------------------------------------------------
    # Internal request helpers
    # ------------------------------------------------------------------

    async def request_json(
        self,
        method: str,
        path: str,
        *,
        operation: str,
        request_id: str,
        idempotency_key: str | None = None,
        body: Any = None,
        params: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send one request and decode its JSON object body."""
        headers = self._headers(request_id=request_id, idempotency_key=idempotency_key)
        try:
            async with asyncio.timeout(self._config.timeout_seconds):
                response = await self._client.request(
                    method,
                    path,
                    headers=headers,
                    json=body,
                    params=dict(params) if params else None,
                )
        except (httpx.TimeoutException, TimeoutError) as exc:
            raise TransportError(
                f"{method} {path} timed out after {self._config.timeout_seconds:g}s.",
                cause=exc,
            ) from exc
        except httpx.TransportError as exc:
            raise TransportError(str(exc) or type(exc).__name__, cause=exc) from exc

        log_command_event(
            logger,
            level=logging.DEBUG,
            message="Platform API call completed.",
            command=operation,
            operation="platform_api_call",
            request_id=request_id,
            resource_type="route",
            resource_id=path,
            status_code=response.status_code,
            method=method,
        )
        self._raise_for_status(response, method=method, path=path)
        return self._decode(response, method=method, path=path, operation=operation)

    def _headers(self, *, request_id: str, idempotency_key: str | None = None) -> dict[str, str]:
        headers = {
            "Accept": "application/json",
            "X-Request-Id": request_id,
        }
        if self._config.access_token:
            headers["Authorization"] = f"Bearer {self._config.access_token}"
        if self._config.api_key:
            headers["X-API-Key"] = self._config.api_key
        if idempotency_key is not None:
            headers["Idempotency-Key"] = idempotency_key
        return headers

    @staticmethod
    def _raise_for_status(response: httpx.Response, *, method: str, path: str) -> None:
        """Raise RemoteApiError for non-2xx responses."""
        if response.is_success:
            return
        raise RemoteApiError(
            status_code=response.status_code,
            method=method,
            path=path,
            body=response.text,
        )

    @staticmethod
    def _decode(response: httpx.Response, *, method: str, path: str, operation: str) -> dict[str, Any]:
        if not response.text.strip():
            return {}
        try:
            payload = response.json()
        except ValueError as exc:
            raise ParseError(f"Platform API response was not valid JSON ({method} {path}).") from exc
        if not isinstance(payload, dict):
            raise ParseError(f"{operation} expected JSON object response.")
        return payload

    @staticmethod
    def _parse(model: type[ModelT], payload: dict[str, Any], operation: str) -> ModelT:
        try:
            return model.model_validate(payload)
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
            raise ParseError(
                f"{operation} response did not match the expected shape at '{field}': {first.get('msg')}.",
            ) from exc

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> PlatformApiClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.aclose()


AUTH_REQUIRED_MESSAGE = "Authentication required: set PLATFORM_API_BEARER_TOKEN (preferred) or PLATFORM_API_KEY."


def build_platform_api_client(
    settings: Settings,
    *,
    require_auth: bool,
    transport: httpx.AsyncBaseTransport | None = None,
) -> PlatformApiClient:
    """Build a client from settings, failing before any I/O when credentials are required but absent."""
    if require_auth and not settings.has_credentials:
        raise ConfigurationError(AUTH_REQUIRED_MESSAGE, code="AUTH_REQUIRED")
    return PlatformApiClient(
        config=PlatformApiClientConfig(
            base_url=settings.platform_api_base_url.strip(),
            access_token=settings.access_token,
            api_key=settings.api_key,
            timeout_seconds=settings.platform_api_timeout_seconds,
        ),
        transport=transport,
    )
