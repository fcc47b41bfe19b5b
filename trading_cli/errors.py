"""Error taxonomy and the canonical CLI error envelope."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError as PydanticValidationError


class CliError(Exception):
    """Domain error mapped to the CLI error envelope."""

    default_code = "CLI_ERROR"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details


class ConfigurationError(CliError):
    """Bad or forbidden base URL, invalid web base URL, or missing credentials."""

    default_code = "CONFIGURATION_ERROR"


class ValidationError(CliError):
    """Malformed CLI input detected before any network call."""

    default_code = "VALIDATION_ERROR"


class ParseError(CliError):
    """Unparseable JSON file or response body."""

    default_code = "PARSE_ERROR"


class RequiredFieldError(CliError):
    """A required request parameter was absent when the call was assembled."""

    default_code = "REQUIRED_FIELD_MISSING"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class TransportError(CliError):
    """Connection failure or timeout while talking to the Platform API."""

    default_code = "TRANSPORT_ERROR"

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class RemoteApiError(CliError):
    """Non-2xx Platform API response."""

    default_code = "REMOTE_API_ERROR"

    def __init__(self, *, status_code: int, method: str, path: str, body: str) -> None:
        super().__init__(f"Platform API request failed ({method} {path}): HTTP {status_code}")
        self.status_code = status_code
        self.method = method
        self.path = path
        self.body = body


@dataclass(frozen=True)
class ErrorEnvelope:
    message: str
    code: str | None = None
    request_id: str | None = None
    details: Any = None
    http_status: int | None = None

    def to_payload(self) -> dict[str, Any]:
        """Build the canonical error payload, omitting absent fields."""
        payload: dict[str, Any] = {
            "status": "error",
            "message": self.message,
        }
        if self.code is not None:
            payload["code"] = self.code
        if self.request_id is not None:
            payload["requestId"] = self.request_id
        if self.details is not None:
            payload["details"] = self.details
        if self.http_status is not None:
            payload["httpStatus"] = self.http_status
        return payload


def _non_blank(value: object) -> str | None:
    if not isinstance(value, str):
        return None
    return value if value.strip() else None


def _parse_remote_body(body: str) -> dict[str, Any]:
    try:
        payload = json.loads(body)
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _remote_error_envelope(error: RemoteApiError) -> ErrorEnvelope:
    payload = _parse_remote_body(error.body)
    remote = payload.get("error")
    if not isinstance(remote, dict):
        remote = {}
    request_id = _non_blank(payload.get("requestId"))
    return ErrorEnvelope(
        message=_non_blank(remote.get("message"))
        or f"Platform API request failed with HTTP {error.status_code}.",
        code=_non_blank(remote.get("code")),
        request_id=request_id.strip() if request_id else None,
        details=remote.get("details"),
        http_status=error.status_code,
    )


def _pydantic_error_envelope(error: PydanticValidationError) -> ErrorEnvelope:
    issues = error.errors()
    if not issues:
        return ErrorEnvelope(message=str(error), code=ValidationError.default_code)
    first = issues[0]
    field = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
    if first.get("type") == "missing":
        message = f"CLI request is missing required field '{field}'."
    else:
        message = f"CLI request field '{field}' is invalid: {first.get('msg', 'invalid value')}."
    return ErrorEnvelope(message=message, code=ValidationError.default_code)


def classify_error(error: object) -> ErrorEnvelope:
    """Map any failure into the single error envelope shape, most specific first."""
    if isinstance(error, RemoteApiError):
        return _remote_error_envelope(error)

    if isinstance(error, RequiredFieldError):
        return ErrorEnvelope(
            message=f"CLI request is missing required field '{error.field}'. {error.message}",
            code=error.code,
        )

    if isinstance(error, TransportError):
        return ErrorEnvelope(
            message=f"Platform API connection failed: {error.message}",
            code=error.code,
        )

    if isinstance(error, PydanticValidationError):
        return _pydantic_error_envelope(error)

    if isinstance(error, CliError):
        return ErrorEnvelope(message=error.message, code=error.code, details=error.details)

    if isinstance(error, BaseException):
        message = str(error)
        return ErrorEnvelope(message=message if message.strip() else type(error).__name__)

    return ErrorEnvelope(message=str(error))
