"""Consumer-side envelope probes for Platform API research, strategy, and conversation routes.

Each probe sends the request the CLI lane would send and checks only the
response envelope the CLI depends on, raising ParseError on a mismatch.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import quote

from trading_cli.clients.platform_api_client import PlatformApiClient
from trading_cli.errors import ParseError

CONSUMER_REQUEST_ID = "req-cli-consumer-mock-001"
CONSUMER_METADATA = {"source": "trading-cli-consumer-test"}


@dataclass(frozen=True)
class MarketScanEnvelope:
    request_id: str
    strategy_ideas: list[Any]


@dataclass(frozen=True)
class StrategiesEnvelope:
    request_id: str
    items: list[Any]


@dataclass(frozen=True)
class ConversationSessionEnvelope:
    request_id: str
    session_id: str


@dataclass(frozen=True)
class ConversationTurnEnvelope:
    request_id: str
    session_id: str
    turn_id: str


def _as_record(value: object, operation: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise ParseError(f"{operation} expected JSON object response.")
    return value


def _required_string(payload: dict[str, Any], field: str, operation: str) -> str:
    value = payload.get(field)
    if not isinstance(value, str) or not value.strip():
        raise ParseError(f"{operation} expected non-empty string field '{field}'.")
    return value


def _required_list(payload: dict[str, Any], field: str, operation: str) -> list[Any]:
    value = payload.get(field)
    if not isinstance(value, list):
        raise ParseError(f"{operation} expected array field '{field}'.")
    return value


async def fetch_market_scan_envelope(
    client: PlatformApiClient,
    *,
    request_id: str = CONSUMER_REQUEST_ID,
) -> MarketScanEnvelope:
    operation = "market-scan"
    payload = await client.request_json(
        "POST",
        "/v1/research/market-scan",
        operation=operation,
        request_id=request_id,
        body={
            "assetClasses": ["crypto"],
            "capital": 25000,
            "constraints": {"maxPositionPct": 20, "maxDrawdownPct": 12},
        },
    )
    return MarketScanEnvelope(
        request_id=_required_string(payload, "requestId", operation),
        strategy_ideas=_required_list(payload, "strategyIdeas", operation),
    )


async def fetch_strategies_envelope(
    client: PlatformApiClient,
    *,
    request_id: str = CONSUMER_REQUEST_ID,
) -> StrategiesEnvelope:
    operation = "list-strategies"
    payload = await client.request_json("GET", "/v1/strategies", operation=operation, request_id=request_id)
    return StrategiesEnvelope(
        request_id=_required_string(payload, "requestId", operation),
        items=_required_list(payload, "items", operation),
    )


async def create_conversation_session_envelope(
    client: PlatformApiClient,
    *,
    request_id: str = CONSUMER_REQUEST_ID,
) -> ConversationSessionEnvelope:
    operation = "create-conversation-session"
    payload = await client.request_json(
        "POST",
        "/v2/conversations/sessions",
        operation=operation,
        request_id=request_id,
        body={
            "channel": "openclaw",
            "topic": "cli consumer contract test",
            "metadata": dict(CONSUMER_METADATA),
        },
    )
    session = _as_record(payload.get("session"), f"{operation}.session")
    return ConversationSessionEnvelope(
        request_id=_required_string(payload, "requestId", operation),
        session_id=_required_string(session, "id", f"{operation}.session"),
    )


async def create_conversation_turn_envelope(
    client: PlatformApiClient,
    session_id: str,
    *,
    request_id: str = CONSUMER_REQUEST_ID,
) -> ConversationTurnEnvelope:
    """Post a user turn and check that both envelope levels echo the session id."""
    operation = "create-conversation-turn"
    payload = await client.request_json(
        "POST",
        f"/v2/conversations/sessions/{quote(session_id, safe='')}/turns",
        operation=operation,
        request_id=request_id,
        body={
            "role": "user",
            "message": "scan and deploy",
            "metadata": dict(CONSUMER_METADATA),
        },
    )
    response_session_id = _required_string(payload, "sessionId", operation)
    if response_session_id != session_id:
        raise ParseError(
            f"{operation} expected sessionId '{session_id}' but received '{response_session_id}'.",
        )
    turn = _as_record(payload.get("turn"), f"{operation}.turn")
    turn_session_id = _required_string(turn, "sessionId", f"{operation}.turn")
    if turn_session_id != session_id:
        raise ParseError(
            f"{operation}.turn expected sessionId '{session_id}' but received '{turn_session_id}'.",
        )
    return ConversationTurnEnvelope(
        request_id=_required_string(payload, "requestId", operation),
        session_id=response_session_id,
        turn_id=_required_string(turn, "id", f"{operation}.turn"),
    )
