"""Per-invocation state handed to every CLI command."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import httpx
import typer
from rich.console import Console

from trading_cli.config import Settings


@dataclass
class CommandContext:
    settings: Settings
    transport: httpx.AsyncBaseTransport | None = None
    stdout: Console = field(default_factory=Console)
    stderr: Console = field(default_factory=lambda: Console(stderr=True))

    def emit(self, payload: dict[str, Any]) -> None:
        self.stdout.print_json(data=payload, highlight=False)

    def emit_error(self, payload: dict[str, Any]) -> None:
        self.stderr.print_json(data=payload, highlight=False)


def command_context(ctx: typer.Context) -> CommandContext:
    state = ctx.find_object(CommandContext)
    if state is None:
        raise RuntimeError("trading-cli commands must be invoked through trading_cli.cli.main.run().")
    return state
