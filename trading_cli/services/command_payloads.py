"""Request payload construction and flag parsing shared by CLI commands."""

from __future__ import annotations

import json
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from trading_cli.errors import ParseError, ValidationError
from trading_cli.schemas import (
    VALIDATION_PROFILES,
    VALIDATION_RENDER_FORMATS,
    VALIDATION_RUN_DECISIONS,
    VALIDATION_RUN_STATUSES,
)

DEFAULT_PROFILE = "STANDARD"
MIN_LIST_LIMIT = 1
MAX_LIST_LIMIT = 100
WHOLE_NUMBER_PATTERN = re.compile(r"([0-9]+)(?:\.0+)?")


def non_empty(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


def parse_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_json_file(path: str, label: str) -> Any:
    try:
        return json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ParseError(f"Unable to parse {label} at {path}: {exc}") from exc


def parse_json_object(raw: str, label: str) -> dict[str, Any]:
    try:
        parsed = json.loads(raw)
    except ValueError as exc:
        raise ParseError(f"Unable to parse {label} as JSON: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ValidationError(f"{label} must be a JSON object.")
    return parsed


def parse_optional_metadata(metadata_json: str | None, metadata_file: str | None) -> dict[str, Any] | None:
    inline = non_empty(metadata_json)
    path = non_empty(metadata_file)
    if inline and path:
        raise ValidationError("Specify only one of --metadata-json or --metadata-file.")
    if inline:
        return parse_json_object(inline, "--metadata-json")
    if path:
        metadata = parse_json_file(path, "--metadata-file")
        if not isinstance(metadata, dict):
            raise ValidationError("--metadata-file must be a JSON object.")
        return metadata
    return None


@dataclass(frozen=True)
class PayloadField:
    """A discrete flag that must be present when no input file is given."""

    key: str
    value: Any
    missing_message: str


def build_command_payload(
    *,
    input_path: str | None,
    label: str,
    fields: Sequence[PayloadField],
    extras: Callable[[], dict[str, Any]] | None = None,
) -> Any:
    """Build a request body from a trusted JSON file, or else from discrete flags.

    A file path wins outright and its content is returned verbatim without
    field-level checks. Otherwise the first missing field raises
    ValidationError, and ``extras`` is evaluated only once every required
    field is present.
    """
    path = non_empty(input_path)
    if path:
        return parse_json_file(path, label)

    payload: dict[str, Any] = {}
    for field in fields:
        if not field.value:
            raise ValidationError(field.missing_message)
        payload[field.key] = field.value
    if extras is not None:
        payload.update(extras())
    return payload


def _choices(values: Sequence[str]) -> str:
    return ", ".join(values)


def parse_profile(value: str | None) -> str:
    profile = non_empty(value)
    if profile is None:
        return DEFAULT_PROFILE
    if profile.upper() not in VALIDATION_PROFILES:
        raise ValidationError(
            f"Unsupported --profile value '{value}'. Expected one of: {_choices(VALIDATION_PROFILES)}.",
        )
    return profile.upper()


def parse_render_formats(value: str | None) -> list[str]:
    formats = parse_csv(non_empty(value))
    for render_format in formats:
        if render_format not in VALIDATION_RENDER_FORMATS:
            raise ValidationError(
                f"Unsupported render format '{render_format}'. "
                f"Expected one of: {_choices(VALIDATION_RENDER_FORMATS)}.",
            )
    # dict preserves first-seen order
    return list(dict.fromkeys(formats))


def parse_render_format(value: str | None, option_name: str = "--render-format") -> str | None:
    formats = parse_render_formats(value)
    if not formats:
        return None
    if len(formats) > 1:
        raise ValidationError(f"{option_name} accepts a single value (html or pdf).")
    return formats[0]


def parse_status_filter(value: str | None) -> str | None:
    status = non_empty(value)
    if status is None:
        return None
    if status.lower() not in VALIDATION_RUN_STATUSES:
        raise ValidationError(
            f"Unsupported --status value '{value}'. Expected one of: {_choices(VALIDATION_RUN_STATUSES)}.",
        )
    return status.lower()


def parse_final_decision_filter(value: str | None) -> str | None:
    decision = non_empty(value)
    if decision is None:
        return None
    if decision.lower() not in VALIDATION_RUN_DECISIONS:
        raise ValidationError(
            f"Unsupported --final-decision value '{value}'. "
            f"Expected one of: {_choices(VALIDATION_RUN_DECISIONS)}.",
        )
    return decision.lower()


def parse_limit(value: str | None) -> int | None:
    raw = non_empty(value)
    if raw is None:
        return None
    invalid = ValidationError(f"--limit must be an integer between {MIN_LIST_LIMIT} and {MAX_LIST_LIMIT}.")
    match = WHOLE_NUMBER_PATTERN.fullmatch(raw)
    if match is None:
        raise invalid
    number = int(match.group(1))
    if not MIN_LIST_LIMIT <= number <= MAX_LIST_LIMIT:
        raise invalid
    return number
