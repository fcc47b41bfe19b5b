"""Request correlation ids and idempotency keys for CLI operations."""

from __future__ import annotations

import time
from dataclasses import dataclass
from uuid import uuid4

REVIEW_RUN_NAMESPACE = "review-run"
VALIDATION_BOT_NAMESPACE = "validation-bot"


def _seed(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def derive_request_id(seed: str | None = None, *, namespace: str = REVIEW_RUN_NAMESPACE) -> str:
    seeded = _seed(seed)
    if seeded:
        return seeded
    return f"req-{namespace}-{int(time.time() * 1000)}"


def derive_idempotency_key(seed: str | None = None, *, namespace: str = REVIEW_RUN_NAMESPACE) -> str:
    seeded = _seed(seed)
    if seeded:
        return seeded
    return f"idem-{namespace}-{uuid4()}"


def step_suffix(base: str, label: str, ordinal: int | None = None) -> str:
    if ordinal is None:
        return f"{base}-{label}"
    return f"{base}-{label}-{ordinal}"


@dataclass(frozen=True)
class RequestIdentity:
    request_id: str
    idempotency_key: str

    @classmethod
    def derive(
        cls,
        *,
        request_id: str | None = None,
        idempotency_key: str | None = None,
        namespace: str = REVIEW_RUN_NAMESPACE,
    ) -> RequestIdentity:
        """Use caller overrides verbatim, otherwise generate fresh values."""
        return cls(
            request_id=derive_request_id(request_id, namespace=namespace),
            idempotency_key=derive_idempotency_key(idempotency_key, namespace=namespace),
        )

    def for_step(self, label: str, ordinal: int | None = None) -> RequestIdentity:
        """Derive the identity of one step of a compound operation.

        A pure function of (base identity, label, ordinal): replaying a command
        with the same seeds reproduces every step identity, and two steps never
        share an idempotency slot.
        """
        return RequestIdentity(
            request_id=step_suffix(self.request_id, label, ordinal),
            idempotency_key=step_suffix(self.idempotency_key, label, ordinal),
        )
