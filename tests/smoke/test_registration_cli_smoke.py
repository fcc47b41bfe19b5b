"""End-to-end smoke tests for bot registration and key lifecycle commands."""

from __future__ import annotations

import json

import httpx

from trading_cli.cli.main import run

RAW_KEY = "tnx_bot_abc123.secret-value"
PARTNER_SECRET = "partner-secret-do-not-echo"

BOT = {
    "id": "bot-001",
    "tenantId": "tenant-001",
    "ownerUserId": "user-001",
    "name": "Alpha Bot",
    "status": "active",
    "registrationPath": "invite_code",
    "trialExpiresAt": "2026-03-20T00:00:00Z",
    "metadata": {"team": "alpha"},
    "createdAt": "2026-02-20T10:00:00Z",
    "updatedAt": "2026-02-20T10:00:00Z",
}

KEY = {
    "id": "key-001",
    "botId": "bot-001",
    "keyPrefix": "tnx_bot_abc123",
    "status": "active",
    "createdAt": "2026-02-20T10:00:00Z",
    "lastUsedAt": None,
    "revokedAt": None,
}


def _registration_response(path: str) -> dict[str, object]:
    return {
        "requestId": "req-registration-001",
        "bot": {**BOT, "registrationPath": path},
        "registration": {
            "id": "reg-001",
            "botId": "bot-001",
            "registrationPath": path,
            "status": "completed",
            "audit": {"source": "cli"},
            "createdAt": "2026-02-20T10:00:00Z",
        },
        "issuedKey": {"rawKey": RAW_KEY, "key": KEY},
    }


class MockPlatformApi:
    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/v2/validation-bots/registrations/invite-code":
            return httpx.Response(201, json=_registration_response("invite_code"))
        if path == "/v2/validation-bots/registrations/partner-bootstrap":
            return httpx.Response(201, json=_registration_response("partner_bootstrap"))
        if path == "/v2/validation-bots/bot-001/keys/rotate":
            return httpx.Response(
                201,
                json={
                    "requestId": "req-rotate-001",
                    "botId": "bot-001",
                    "issuedKey": {"rawKey": RAW_KEY, "key": {**KEY, "id": "key-002"}},
                },
            )
        if path == "/v2/validation-bots/bot-001/keys/key-001/revoke":
            return httpx.Response(
                200,
                json={
                    "requestId": "req-revoke-001",
                    "botId": "bot-001",
                    "key": {**KEY, "status": "revoked", "revokedAt": "2026-02-21T10:00:00Z", "rawKey": RAW_KEY},
                    "rawKey": RAW_KEY,
                },
            )
        return httpx.Response(404, json={"error": {"code": "NOT_FOUND", "message": f"No route {path}"}})


def test_register_invite_emits_one_time_key_without_auth(capsys, make_settings) -> None:
    api = MockPlatformApi()

    exit_code = run(
        [
            "register",
            "invite",
            "--invite-code",
            "INV-001",
            "--bot-name",
            "Alpha Bot",
            "--metadata-json",
            '{"team": "alpha"}',
        ],
        settings=make_settings(),
        transport=httpx.MockTransport(api),
    )

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["command"] == "register invite"
    assert payload["bot"]["trialExpiresAt"] == "2026-03-20T00:00:00.000Z"
    assert payload["registration"]["id"] == "reg-001"
    assert payload["issuedKey"]["rawKey"] == RAW_KEY
    assert payload["issuedKey"]["warning"] == "Store this key now. It will not be shown again."
    assert payload["idempotencyKey"].startswith("idem-validation-bot-")

    request = api.requests[0]
    assert "Authorization" not in request.headers
    assert json.loads(request.content) == {
        "inviteCode": "INV-001",
        "botName": "Alpha Bot",
        "metadata": {"team": "alpha"},
    }


def test_invite_code_alias_under_bot_prefix(capsys, make_settings) -> None:
    api = MockPlatformApi()

    exit_code = run(
        ["bot", "register", "invite-code", "--invite-code", "INV-001", "--bot-name", "Alpha Bot"],
        settings=make_settings(platform_api_bearer_token="token-001"),
        transport=httpx.MockTransport(api),
    )

    assert exit_code == 0
    assert json.loads(capsys.readouterr().out)["command"] == "register invite"
    assert api.requests[0].headers["Authorization"] == "Bearer token-001"


def test_register_partner_never_echoes_partner_secret(capsys, make_settings) -> None:
    api = MockPlatformApi()

    exit_code = run(
        [
            "register",
            "partner",
            "--partner-key",
            "partner-001",
            "--partner-secret",
            PARTNER_SECRET,
            "--owner-email",
            "ops@example.com",
            "--bot-name",
            "Alpha Bot",
        ],
        settings=make_settings(),
        transport=httpx.MockTransport(api),
    )

    assert exit_code == 0
    out = capsys.readouterr().out
    assert PARTNER_SECRET not in out
    assert json.loads(out)["command"] == "register partner"
    assert json.loads(api.requests[0].content)["partnerSecret"] == PARTNER_SECRET


def test_register_with_both_metadata_sources_fails(capsys, make_settings, tmp_path) -> None:
    metadata_file = tmp_path / "metadata.json"
    metadata_file.write_text("{}", encoding="utf-8")
    api = MockPlatformApi()

    exit_code = run(
        [
            "register",
            "invite",
            "--invite-code",
            "INV-001",
            "--bot-name",
            "Alpha Bot",
            "--metadata-json",
            "{}",
            "--metadata-file",
            str(metadata_file),
        ],
        settings=make_settings(),
        transport=httpx.MockTransport(api),
    )

    assert exit_code == 1
    assert api.requests == []
    assert json.loads(capsys.readouterr().err)["message"] == "Specify only one of --metadata-json or --metadata-file."


def test_key_rotate_requires_auth_and_sends_reason(capsys, make_settings) -> None:
    api = MockPlatformApi()

    exit_code = run(
        ["key", "rotate", "--bot-id", "bot-001", "--reason", "scheduled rotation", "--idempotency-key", "idem-rot"],
        settings=make_settings(platform_api_bearer_token="token-001"),
        transport=httpx.MockTransport(api),
    )

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["command"] == "key rotate"
    assert payload["idempotencyKey"] == "idem-rot"
    assert payload["issuedKey"]["key"]["id"] == "key-002"
    assert payload["issuedKey"]["warning"] == "Store this key now. It will not be shown again."
    request = api.requests[0]
    assert request.headers["Authorization"] == "Bearer token-001"
    assert request.headers["Idempotency-Key"] == "idem-rot"
    assert json.loads(request.content) == {"reason": "scheduled rotation"}


def test_key_rotate_without_credentials_fails_before_request(capsys, make_settings) -> None:
    api = MockPlatformApi()

    exit_code = run(["key", "rotate", "--bot-id", "bot-001"], settings=make_settings(), transport=httpx.MockTransport(api))

    assert exit_code == 1
    assert api.requests == []
    assert json.loads(capsys.readouterr().err)["code"] == "AUTH_REQUIRED"


def test_key_revoke_output_never_contains_raw_key(capsys, make_settings) -> None:
    api = MockPlatformApi()

    exit_code = run(
        ["bot", "key", "revoke", "--bot-id", "bot-001", "--key-id", "key-001"],
        settings=make_settings(platform_api_key="key-admin"),
        transport=httpx.MockTransport(api),
    )

    assert exit_code == 0
    out = capsys.readouterr().out
    assert "rawKey" not in out
    assert RAW_KEY not in out
    payload = json.loads(out)
    assert payload["command"] == "key revoke"
    assert payload["key"]["status"] == "revoked"
    assert payload["key"]["revokedAt"] == "2026-02-21T10:00:00.000Z"
    assert api.requests[0].content == b""


def test_key_revoke_requires_key_id(capsys, make_settings) -> None:
    exit_code = run(
        ["key", "revoke", "--bot-id", "bot-001"],
        settings=make_settings(platform_api_key="key-admin"),
        transport=httpx.MockTransport(MockPlatformApi()),
    )

    assert exit_code == 1
    assert json.loads(capsys.readouterr().err)["message"] == "--key-id is required."
