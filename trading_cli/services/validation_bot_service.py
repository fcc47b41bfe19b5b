"""Validation bot registration and API-key lifecycle workflows."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from trading_cli.clients.platform_api_client import build_platform_api_client
from trading_cli.config import Settings
from trading_cli.errors import ValidationError
from trading_cli.identity import VALIDATION_BOT_NAMESPACE, RequestIdentity
from trading_cli.normalizer import issued_key_envelope, summarize_bot, summarize_key, summarize_registration
from trading_cli.observability import log_command_event
from trading_cli.schemas import (
    BotRegistrationResponse,
    CreateBotInviteRegistrationRequest,
    CreateBotKeyRevocationRequest,
    CreateBotKeyRotationRequest,
    CreateBotPartnerBootstrapRequest,
)
from trading_cli.services.command_payloads import (
    PayloadField,
    build_command_payload,
    non_empty,
    parse_optional_metadata,
)

logger = logging.getLogger(__name__)

BOT_USAGE = [
    "trading-cli register invite --invite-code <code> --bot-name <name>",
    "trading-cli register partner --partner-key <key> --partner-secret <secret> --owner-email <email> "
    "--bot-name <name>",
    "trading-cli key rotate --bot-id <botId> [--reason <text>]",
    "trading-cli key revoke --bot-id <botId> --key-id <keyId> [--reason <text>]",
    "trading-cli bot register invite --invite-code <code> --bot-name <name>",
    "trading-cli bot register partner --partner-key <key> --partner-secret <secret> --owner-email <email> "
    "--bot-name <name>",
    "trading-cli bot key rotate --bot-id <botId> [--reason <text>]",
    "trading-cli bot key revoke --bot-id <botId> --key-id <keyId> [--reason <text>]",
]


def _missing(flag: str) -> str:
    return f"{flag} is required when --input is not provided."


def build_invite_registration_payload(
    *,
    input_path: str | None = None,
    invite_code: str | None = None,
    bot_name: str | None = None,
    metadata_json: str | None = None,
    metadata_file: str | None = None,
) -> Any:
    payload = build_command_payload(
        input_path=input_path,
        label="register invite payload",
        fields=[
            PayloadField("inviteCode", non_empty(invite_code), _missing("--invite-code")),
            PayloadField("botName", non_empty(bot_name), _missing("--bot-name")),
        ],
        extras=lambda: {"metadata": parse_optional_metadata(metadata_json, metadata_file)},
    )
    if non_empty(input_path):
        return payload
    return CreateBotInviteRegistrationRequest.model_validate(payload).model_dump(exclude_none=True)


def build_partner_bootstrap_payload(
    *,
    input_path: str | None = None,
    partner_key: str | None = None,
    partner_secret: str | None = None,
    owner_email: str | None = None,
    bot_name: str | None = None,
    metadata_json: str | None = None,
    metadata_file: str | None = None,
) -> Any:
    payload = build_command_payload(
        input_path=input_path,
        label="register partner payload",
        fields=[
            PayloadField("partnerKey", non_empty(partner_key), _missing("--partner-key")),
            PayloadField("partnerSecret", non_empty(partner_secret), _missing("--partner-secret")),
            PayloadField("ownerEmail", non_empty(owner_email), _missing("--owner-email")),
            PayloadField("botName", non_empty(bot_name), _missing("--bot-name")),
        ],
        extras=lambda: {"metadata": parse_optional_metadata(metadata_json, metadata_file)},
    )
    if non_empty(input_path):
        return payload
    return CreateBotPartnerBootstrapRequest.model_validate(payload).model_dump(exclude_none=True)


def _registration_envelope(command: str, response: BotRegistrationResponse, idempotency_key: str) -> dict[str, Any]:
    return {
        "status": "ok",
        "command": command,
        "requestId": response.requestId,
        "idempotencyKey": idempotency_key,
        "bot": summarize_bot(response.bot),
        "registration": summarize_registration(response.registration),
        "issuedKey": issued_key_envelope(response.issuedKey),
    }


class BotRegistrationOrchestrator:
    """Bot registration (unauthenticated) and key rotation/revocation (authenticated)."""

    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = settings
        self._transport = transport

    async def register_invite(
        self,
        *,
        input_path: str | None = None,
        invite_code: str | None = None,
        bot_name: str | None = None,
        metadata_json: str | None = None,
        metadata_file: str | None = None,
        request_id: str | None = None,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        payload = build_invite_registration_payload(
            input_path=input_path,
            invite_code=invite_code,
            bot_name=bot_name,
            metadata_json=metadata_json,
            metadata_file=metadata_file,
        )
        identity = RequestIdentity.derive(
            request_id=request_id,
            idempotency_key=idempotency_key,
            namespace=VALIDATION_BOT_NAMESPACE,
        )
        async with build_platform_api_client(
            self._settings, require_auth=False, transport=self._transport
        ) as client:
            response = await client.register_bot_invite_code(
                body=payload,
                request_id=identity.request_id,
                idempotency_key=identity.idempotency_key,
            )
        self._log_registration("register invite", response)
        return _registration_envelope("register invite", response, identity.idempotency_key)

    async def register_partner(
        self,
        *,
        input_path: str | None = None,
        partner_key: str | None = None,
        partner_secret: str | None = None,
        owner_email: str | None = None,
        bot_name: str | None = None,
        metadata_json: str | None = None,
        metadata_file: str | None = None,
        request_id: str | None = None,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        payload = build_partner_bootstrap_payload(
            input_path=input_path,
            partner_key=partner_key,
            partner_secret=partner_secret,
            owner_email=owner_email,
            bot_name=bot_name,
            metadata_json=metadata_json,
            metadata_file=metadata_file,
        )
        identity = RequestIdentity.derive(
            request_id=request_id,
            idempotency_key=idempotency_key,
            namespace=VALIDATION_BOT_NAMESPACE,
        )
        async with build_platform_api_client(
            self._settings, require_auth=False, transport=self._transport
        ) as client:
            response = await client.register_bot_partner_bootstrap(
                body=payload,
                request_id=identity.request_id,
                idempotency_key=identity.idempotency_key,
            )
        self._log_registration("register partner", response)
        return _registration_envelope("register partner", response, identity.idempotency_key)

    async def rotate_key(
        self,
        *,
        bot_id: str | None = None,
        reason: str | None = None,
        request_id: str | None = None,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        resolved_bot_id = non_empty(bot_id)
        if resolved_bot_id is None:
            raise ValidationError("--bot-id is required.")
        identity = RequestIdentity.derive(
            request_id=request_id,
            idempotency_key=idempotency_key,
            namespace=VALIDATION_BOT_NAMESPACE,
        )
        resolved_reason = non_empty(reason)
        body = CreateBotKeyRotationRequest(reason=resolved_reason).model_dump() if resolved_reason else None
        async with build_platform_api_client(
            self._settings, require_auth=True, transport=self._transport
        ) as client:
            response = await client.rotate_bot_key(
                bot_id=resolved_bot_id,
                body=body,
                request_id=identity.request_id,
                idempotency_key=identity.idempotency_key,
            )
        log_command_event(
            logger,
            level=logging.INFO,
            message="Validation bot key rotated.",
            command="key rotate",
            operation="rotate_bot_key",
            request_id=response.requestId,
            resource_type="validation_bot_key",
            resource_id=response.issuedKey.key.id,
            botId=response.botId,
        )
        return {
            "status": "ok",
            "command": "key rotate",
            "requestId": response.requestId,
            "idempotencyKey": identity.idempotency_key,
            "botId": response.botId,
            "issuedKey": issued_key_envelope(response.issuedKey),
        }

    async def revoke_key(
        self,
        *,
        bot_id: str | None = None,
        key_id: str | None = None,
        reason: str | None = None,
        request_id: str | None = None,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        """Revoke one key; the envelope carries key metadata only."""
        resolved_bot_id = non_empty(bot_id)
        resolved_key_id = non_empty(key_id)
        if resolved_bot_id is None:
            raise ValidationError("--bot-id is required.")
        if resolved_key_id is None:
            raise ValidationError("--key-id is required.")
        identity = RequestIdentity.derive(
            request_id=request_id,
            idempotency_key=idempotency_key,
            namespace=VALIDATION_BOT_NAMESPACE,
        )
        resolved_reason = non_empty(reason)
        body = CreateBotKeyRevocationRequest(reason=resolved_reason).model_dump() if resolved_reason else None
        async with build_platform_api_client(
            self._settings, require_auth=True, transport=self._transport
        ) as client:
            response = await client.revoke_bot_key(
                bot_id=resolved_bot_id,
                key_id=resolved_key_id,
                body=body,
                request_id=identity.request_id,
                idempotency_key=identity.idempotency_key,
            )
        log_command_event(
            logger,
            level=logging.INFO,
            message="Validation bot key revoked.",
            command="key revoke",
            operation="revoke_bot_key",
            request_id=response.requestId,
            resource_type="validation_bot_key",
            resource_id=response.key.id,
            botId=response.botId,
        )
        return {
            "status": "ok",
            "command": "key revoke",
            "requestId": response.requestId,
            "idempotencyKey": identity.idempotency_key,
            "botId": response.botId,
            "key": summarize_key(response.key),
        }

    @staticmethod
    def _log_registration(command: str, response: BotRegistrationResponse) -> None:
        log_command_event(
            logger,
            level=logging.INFO,
            message="Validation bot registered.",
            command=command,
            operation="register_bot",
            request_id=response.requestId,
            resource_type="validation_bot",
            resource_id=response.bot.id,
            registrationId=response.registration.id,
        )
