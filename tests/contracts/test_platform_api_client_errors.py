"""Contract tests for Platform API client header injection and error translation."""

from __future__ import annotations

import asyncio
import json

import httpx
import pytest

from trading_cli.clients.platform_api_client import (
    AUTH_REQUIRED_MESSAGE,
    PlatformApiClient,
    PlatformApiClientConfig,
    build_platform_api_client,
)
from trading_cli.errors import (
    ConfigurationError,
    ParseError,
    RemoteApiError,
    RequiredFieldError,
    TransportError,
)

BASE_URL = "http://localhost:3000/"

RENDER_RESPONSE = {
    "requestId": "req-render-001",
    "render": {
        "runId": "valrun-20260220-0001",
        "format": "html",
        "status": "queued",
        "requestedAt": "2026-02-20T10:00:00Z",
        "updatedAt": "2026-02-20T10:00:00Z",
    },
}


def _client(handler, **config: object) -> PlatformApiClient:
    return PlatformApiClient(
        config=PlatformApiClientConfig(base_url=BASE_URL, **config),
        transport=httpx.MockTransport(handler),
    )


def test_mutating_calls_send_auth_request_id_and_idempotency_headers() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json=RENDER_RESPONSE)

    async def _run() -> None:
        async with _client(handler, access_token="token-001", api_key="key-001") as client:
            response = await client.create_validation_review_render(
                run_id="valrun-20260220-0001",
                render_format="html",
                request_id="req-1",
                idempotency_key="idem-1",
            )
        assert response.render.status == "queued"

    asyncio.run(_run())

    request = seen[0]
    assert request.method == "POST"
    assert request.url.path == "/v2/validation-review/runs/valrun-20260220-0001/renders"
    assert request.headers["Authorization"] == "Bearer token-001"
    assert request.headers["X-API-Key"] == "key-001"
    assert request.headers["X-Request-Id"] == "req-1"
    assert request.headers["Idempotency-Key"] == "idem-1"
    assert json.loads(request.content) == {"format": "html"}


def test_reads_omit_idempotency_and_auth_when_unconfigured() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"requestId": "req-list-001", "items": [], "nextCursor": None})

    async def _run() -> None:
        async with _client(handler) as client:
            await client.list_validation_review_runs(request_id="req-list", status="completed", limit=25)

    asyncio.run(_run())

    request = seen[0]
    assert "Idempotency-Key" not in request.headers
    assert "Authorization" not in request.headers
    assert request.url.params["status"] == "completed"
    assert request.url.params["limit"] == "25"
    assert "finalDecision" not in request.url.params


def test_non_2xx_responses_raise_remote_api_error() -> None:
    body = {"requestId": "req-remote", "error": {"code": "NOT_FOUND", "message": "Run not found."}}

    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json=body)

    async def _run() -> None:
        async with _client(handler, api_key="key-001") as client:
            await client.get_validation_review_run(run_id="missing", request_id="req-1")

    with pytest.raises(RemoteApiError) as exc_info:
        asyncio.run(_run())
    assert exc_info.value.status_code == 404
    assert exc_info.value.path == "/v2/validation-review/runs/missing"
    assert json.loads(exc_info.value.body) == body


def test_connection_failures_raise_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    async def _run() -> None:
        async with _client(handler) as client:
            await client.get_validation_review_run(run_id="valrun-1", request_id="req-1")

    with pytest.raises(TransportError) as exc_info:
        asyncio.run(_run())
    assert exc_info.value.message == "connection refused"
    assert isinstance(exc_info.value.cause, httpx.ConnectError)


def test_timeouts_raise_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    async def _run() -> None:
        async with _client(handler, timeout_seconds=15.0) as client:
            await client.get_validation_review_run(run_id="valrun-1", request_id="req-1")

    with pytest.raises(TransportError) as exc_info:
        asyncio.run(_run())
    assert exc_info.value.message == "GET /v2/validation-review/runs/valrun-1 timed out after 15s."


def test_whole_call_is_bounded_by_timeout() -> None:
    async def handler(request: httpx.Request) -> httpx.Response:
        await asyncio.sleep(5)
        return httpx.Response(200, json={})

    async def _run() -> None:
        async with _client(handler, timeout_seconds=0.05) as client:
            await client.get_validation_review_run(run_id="valrun-1", request_id="req-1")

    with pytest.raises(TransportError) as exc_info:
        asyncio.run(_run())
    assert exc_info.value.code == "TRANSPORT_ERROR"
    assert exc_info.value.message == "GET /v2/validation-review/runs/valrun-1 timed out after 0.05s."


@pytest.mark.parametrize("content", [b"<html>not-json</html>", b"[1, 2]"])
def test_non_object_or_invalid_json_raises_parse_error(content: bytes) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=content)

    async def _run() -> None:
        async with _client(handler) as client:
            await client.request_json("GET", "/v1/strategies", operation="list-strategies", request_id="req-1")

    with pytest.raises(ParseError):
        asyncio.run(_run())


def test_empty_body_decodes_to_empty_object() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(204)

    async def _run() -> dict[str, object]:
        async with _client(handler) as client:
            return await client.request_json("POST", "/v2/ping", operation="ping", request_id="req-1")

    assert asyncio.run(_run()) == {}


def test_response_shape_mismatch_raises_parse_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"requestId": "req-1"})

    async def _run() -> None:
        async with _client(handler) as client:
            await client.get_validation_review_run(run_id="valrun-1", request_id="req-1")

    with pytest.raises(ParseError) as exc_info:
        asyncio.run(_run())
    assert "'artifact'" in exc_info.value.message


def test_blank_path_parameters_raise_required_field_error() -> None:
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(200, json={})

    async def _run() -> None:
        async with _client(handler) as client:
            await client.revoke_bot_key(bot_id="bot-001", key_id=" ", body=None, request_id="r", idempotency_key="i")

    with pytest.raises(RequiredFieldError) as exc_info:
        asyncio.run(_run())
    assert exc_info.value.field == "keyId"
    assert calls == []


def test_client_factory_requires_credentials_when_asked(make_settings) -> None:
    with pytest.raises(ConfigurationError) as exc_info:
        build_platform_api_client(make_settings(), require_auth=True)
    assert exc_info.value.code == "AUTH_REQUIRED"
    assert exc_info.value.message == AUTH_REQUIRED_MESSAGE


def test_bearer_token_wins_over_legacy_token(make_settings) -> None:
    settings = make_settings(platform_api_bearer_token="preferred", platform_api_token="legacy")
    assert settings.access_token == "preferred"
    assert make_settings(platform_api_token="legacy").access_token == "legacy"
