"""Structured observability helpers for CLI runtime logs."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler

PACKAGE_LOGGER = "trading_cli"


def command_log_fields(
    *,
    command: str,
    operation: str,
    request_id: str | None = None,
    resource_type: str | None = None,
    resource_id: str | None = None,
    status_code: int | None = None,
    **details: object,
) -> dict[str, object]:
    fields: dict[str, object] = {
        "component": "cli",
        "command": command,
        "operation": operation,
    }
    if request_id is not None:
        fields["requestId"] = request_id
    if resource_type is not None:
        fields["resourceType"] = resource_type
    if resource_id is not None:
        fields["resourceId"] = resource_id
    if status_code is not None:
        fields["statusCode"] = status_code
    for key, value in details.items():
        if value is None:
            continue
        fields[key] = value
    return fields


def log_command_event(
    logger: logging.Logger,
    *,
    level: int,
    message: str,
    command: str,
    operation: str,
    request_id: str | None = None,
    resource_type: str | None = None,
    resource_id: str | None = None,
    status_code: int | None = None,
    **details: object,
) -> None:
    logger.log(
        level,
        message,
        extra=command_log_fields(
            command=command,
            operation=operation,
            request_id=request_id,
            resource_type=resource_type,
            resource_id=resource_id,
            status_code=status_code,
            **details,
        ),
    )


def configure_logging(level_name: str) -> None:
    """Attach a stderr RichHandler when a log level is configured.

    Without a level the package logger keeps only its NullHandler so stderr
    carries nothing but error envelopes.
    """
    name = level_name.strip().upper()
    if not name:
        return
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        level = logging.WARNING
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.setLevel(level)
    if any(isinstance(handler, RichHandler) for handler in logger.handlers):
        return
    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=False)
    logger.addHandler(handler)
