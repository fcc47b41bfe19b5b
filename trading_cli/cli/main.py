"""trading-cli - main entry point and command router."""

import logging
import sys
from collections.abc import Sequence

import httpx
import typer
from rich.console import Console

from trading_cli.boundary import assert_platform_api_base_url
from trading_cli.cli.bot_commands import bot_app, key_app, register_app
from trading_cli.cli.context import CommandContext
from trading_cli.cli.review_run_commands import review_run_app, validation_app
from trading_cli.config import Settings, load_settings
from trading_cli.errors import CliError, ValidationError, classify_error
from trading_cli.observability import configure_logging, log_command_event

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="trading-cli",
    help="Platform API client for validation review runs and validation bots",
    add_completion=False,
    context_settings={"help_option_names": []},
)

app.add_typer(review_run_app, name="review-run", help="Trigger, retrieve, and render validation review runs")
app.add_typer(validation_app, name="validation", help="Alias namespace: validation run ...")
app.add_typer(register_app, name="register", help="Register a validation bot")
app.add_typer(key_app, name="key", help="Rotate or revoke bot API keys")
app.add_typer(bot_app, name="bot", help="Validation bot commands")

TOP_LEVEL_COMMANDS = frozenset({"review-run", "validation", "register", "key", "bot"})
HELP_OPTIONS = frozenset({"-h", "--help"})

# typer may run on its own bundled copy of click; match the exception types it raises.
CLICK_EXCEPTION = next(base for base in typer.BadParameter.__mro__ if base.__name__ == "ClickException")

READY_COMMANDS = [
    "review-run trigger",
    "review-run retrieve",
    "review-run render",
    "validation run trigger",
    "validation run retrieve",
    "validation run render",
    "register invite",
    "register partner",
    "key rotate",
    "key revoke",
]


def _fail(stderr: Console, error: object, args: Sequence[str]) -> int:
    envelope = classify_error(error)
    log_command_event(
        logger,
        level=logging.DEBUG,
        message="Command failed.",
        command=" ".join(args[:2]),
        operation="route",
        request_id=envelope.request_id,
        status_code=envelope.http_status,
        errorCode=envelope.code,
    )
    stderr.print_json(data=envelope.to_payload(), highlight=False)
    return 1


def run(
    argv: Sequence[str],
    *,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """Run one CLI invocation and return its process exit code.

    Success envelopes go to stdout and error envelopes to stderr. Every
    failure is classified here, once, into the canonical error envelope.
    """
    args = list(argv)
    stderr = Console(stderr=True)
    try:
        settings = settings or load_settings()
    except CliError as exc:
        return _fail(stderr, exc, args)

    configure_logging(settings.trading_cli_log_level)
    state = CommandContext(settings=settings, transport=transport, stderr=stderr)
    base_url = settings.platform_api_base_url

    try:
        assert_platform_api_base_url(base_url)
    except CliError as exc:
        return _fail(stderr, exc, args)

    if not args or args[0] in HELP_OPTIONS:
        state.emit(
            {
                "status": "ok",
                "message": "trading-cli ready",
                "target": base_url,
                "commands": READY_COMMANDS,
            }
        )
        return 0

    if args[0] not in TOP_LEVEL_COMMANDS:
        error = ValidationError(
            f"Unknown command '{args[0]}'. Use 'review-run', 'validation run', 'register', 'key', or 'bot'.",
            code="UNKNOWN_COMMAND",
            details={"command": args, "target": base_url},
        )
        return _fail(stderr, error, args)

    command = typer.main.get_command(app)
    try:
        result = command.main(args=args, prog_name="trading-cli", standalone_mode=False, obj=state)
    except CLICK_EXCEPTION as exc:
        return _fail(stderr, ValidationError(exc.format_message()), args)
    except typer.Abort:
        return _fail(stderr, ValidationError("Aborted."), args)
    except Exception as exc:
        return _fail(stderr, exc, args)
    return result if isinstance(result, int) else 0


def main() -> None:
    sys.exit(run(sys.argv[1:]))


if __name__ == "__main__":
    main()
