"""Validation bot registration and key CLI commands."""

import asyncio

import typer

from trading_cli.cli.context import command_context
from trading_cli.services.validation_bot_service import BOT_USAGE, BotRegistrationOrchestrator

register_app = typer.Typer()
key_app = typer.Typer()
bot_app = typer.Typer()


def _emit_usage(ctx: typer.Context, show_usage: bool) -> None:
    if show_usage or ctx.invoked_subcommand is None:
        command_context(ctx).emit({"status": "ok", "command": "bot", "usage": BOT_USAGE})
        raise typer.Exit()


@register_app.callback(invoke_without_command=True)
def register_root(
    ctx: typer.Context,
    show_usage: bool = typer.Option(False, "--help", "-h", hidden=True),
) -> None:
    """Register a validation bot."""
    _emit_usage(ctx, show_usage)


@key_app.callback(invoke_without_command=True)
def key_root(
    ctx: typer.Context,
    show_usage: bool = typer.Option(False, "--help", "-h", hidden=True),
) -> None:
    """Rotate or revoke validation bot API keys."""
    _emit_usage(ctx, show_usage)


@bot_app.callback(invoke_without_command=True)
def bot_root(
    ctx: typer.Context,
    show_usage: bool = typer.Option(False, "--help", "-h", hidden=True),
) -> None:
    """Validation bot commands (bot register ..., bot key ...)."""
    _emit_usage(ctx, show_usage)


def register_invite(
    ctx: typer.Context,
    input_path: str | None = typer.Option(None, "--input", help="JSON payload file sent verbatim"),
    invite_code: str | None = typer.Option(None, "--invite-code", help="Invite code"),
    bot_name: str | None = typer.Option(None, "--bot-name", help="Bot display name"),
    metadata_json: str | None = typer.Option(None, "--metadata-json", help="Inline JSON object"),
    metadata_file: str | None = typer.Option(None, "--metadata-file", help="JSON object file"),
    request_id: str | None = typer.Option(None, "--request-id", help="Correlation id override"),
    idempotency_key: str | None = typer.Option(None, "--idempotency-key", help="Idempotency key override"),
) -> None:
    """Register a bot with an invite code."""
    state = command_context(ctx)
    orchestrator = BotRegistrationOrchestrator(state.settings, transport=state.transport)
    envelope = asyncio.run(
        orchestrator.register_invite(
            input_path=input_path,
            invite_code=invite_code,
            bot_name=bot_name,
            metadata_json=metadata_json,
            metadata_file=metadata_file,
            request_id=request_id,
            idempotency_key=idempotency_key,
        )
    )
    state.emit(envelope)


register_app.command("invite")(register_invite)
register_app.command("invite-code", hidden=True)(register_invite)


@register_app.command("partner")
def register_partner(
    ctx: typer.Context,
    input_path: str | None = typer.Option(None, "--input", help="JSON payload file sent verbatim"),
    partner_key: str | None = typer.Option(None, "--partner-key", help="Partner key"),
    partner_secret: str | None = typer.Option(None, "--partner-secret", help="Partner secret"),
    owner_email: str | None = typer.Option(None, "--owner-email", help="Bot owner email"),
    bot_name: str | None = typer.Option(None, "--bot-name", help="Bot display name"),
    metadata_json: str | None = typer.Option(None, "--metadata-json", help="Inline JSON object"),
    metadata_file: str | None = typer.Option(None, "--metadata-file", help="JSON object file"),
    request_id: str | None = typer.Option(None, "--request-id", help="Correlation id override"),
    idempotency_key: str | None = typer.Option(None, "--idempotency-key", help="Idempotency key override"),
) -> None:
    """Register a bot through partner bootstrap."""
    state = command_context(ctx)
    orchestrator = BotRegistrationOrchestrator(state.settings, transport=state.transport)
    envelope = asyncio.run(
        orchestrator.register_partner(
            input_path=input_path,
            partner_key=partner_key,
            partner_secret=partner_secret,
            owner_email=owner_email,
            bot_name=bot_name,
            metadata_json=metadata_json,
            metadata_file=metadata_file,
            request_id=request_id,
            idempotency_key=idempotency_key,
        )
    )
    state.emit(envelope)


@key_app.command("rotate")
def rotate_key(
    ctx: typer.Context,
    bot_id: str | None = typer.Option(None, "--bot-id", help="Bot id"),
    reason: str | None = typer.Option(None, "--reason", help="Audit reason"),
    request_id: str | None = typer.Option(None, "--request-id", help="Correlation id override"),
    idempotency_key: str | None = typer.Option(None, "--idempotency-key", help="Idempotency key override"),
) -> None:
    """Issue a replacement API key for a bot."""
    state = command_context(ctx)
    orchestrator = BotRegistrationOrchestrator(state.settings, transport=state.transport)
    envelope = asyncio.run(
        orchestrator.rotate_key(
            bot_id=bot_id,
            reason=reason,
            request_id=request_id,
            idempotency_key=idempotency_key,
        )
    )
    state.emit(envelope)


@key_app.command("revoke")
def revoke_key(
    ctx: typer.Context,
    bot_id: str | None = typer.Option(None, "--bot-id", help="Bot id"),
    key_id: str | None = typer.Option(None, "--key-id", help="Key id"),
    reason: str | None = typer.Option(None, "--reason", help="Audit reason"),
    request_id: str | None = typer.Option(None, "--request-id", help="Correlation id override"),
    idempotency_key: str | None = typer.Option(None, "--idempotency-key", help="Idempotency key override"),
) -> None:
    """Revoke a bot API key."""
    state = command_context(ctx)
    orchestrator = BotRegistrationOrchestrator(state.settings, transport=state.transport)
    envelope = asyncio.run(
        orchestrator.revoke_key(
            bot_id=bot_id,
            key_id=key_id,
            reason=reason,
            request_id=request_id,
            idempotency_key=idempotency_key,
        )
    )
    state.emit(envelope)


bot_app.add_typer(register_app, name="register", help="Register a validation bot")
bot_app.add_typer(key_app, name="key", help="Rotate or revoke bot API keys")
