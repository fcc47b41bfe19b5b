"""Flat, JSON-serializable projections of Platform API responses.

Every projection lists its fields explicitly so response fields outside the
summary contract never reach CLI output.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any
from urllib.parse import quote

from trading_cli.schemas import (
    RENDER_COMPLETED_STATUS,
    Bot,
    BotIssuedApiKey,
    BotKeyMetadata,
    BotRegistration,
    ValidationReviewRender,
    ValidationReviewRenderResponse,
    ValidationReviewRunDetailResponse,
    ValidationReviewRunSummary,
    ValidationRun,
    ValidationRunArtifact,
)

REVIEW_WEB_PATH = "/validation"
ISSUED_KEY_WARNING = "Store this key now. It will not be shown again."


def to_timestamp(value: datetime | None) -> str | None:
    """Render a timestamp as UTC ISO-8601 with millisecond precision."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def is_render_pending(render: ValidationReviewRender) -> bool:
    return render.status != RENDER_COMPLETED_STATUS


def build_review_web_link(review_web_base_url: str, run_id: str) -> dict[str, str]:
    base = review_web_base_url[:-1] if review_web_base_url.endswith("/") else review_web_base_url
    path = f"{REVIEW_WEB_PATH}?runId={quote(run_id, safe='')}"
    return {
        "runId": run_id,
        "path": path,
        "url": f"{base}{path}",
        "fallbackUrl": f"{base}{REVIEW_WEB_PATH}",
    }


def normalize_run(run: ValidationRun) -> dict[str, Any]:
    return {
        "id": run.id,
        "status": run.status,
        "profile": run.profile,
        "schemaVersion": run.schemaVersion,
        "finalDecision": run.finalDecision,
        "createdAt": to_timestamp(run.createdAt),
        "updatedAt": to_timestamp(run.updatedAt),
    }


def normalize_render(render: ValidationReviewRender) -> dict[str, Any]:
    return {
        "runId": render.runId,
        "format": render.format,
        "status": render.status,
        "artifactRef": render.artifactRef,
        "downloadUrl": render.downloadUrl,
        "checksumSha256": render.checksumSha256,
        "expiresAt": to_timestamp(render.expiresAt),
        "requestedAt": to_timestamp(render.requestedAt),
        "updatedAt": to_timestamp(render.updatedAt),
    }


def render_outcome(response: ValidationReviewRenderResponse) -> dict[str, Any]:
    return {
        "requestId": response.requestId,
        "render": normalize_render(response.render),
        "pending": is_render_pending(response.render),
    }


def summarize_review_artifact(response: ValidationReviewRunDetailResponse) -> dict[str, Any]:
    wrapper = response.artifact
    run = wrapper.run
    # LLM snapshot artifacts carry no trader review block.
    trader_review_status = (
        wrapper.artifact.traderReview.status if isinstance(wrapper.artifact, ValidationRunArtifact) else None
    )
    return {
        "runId": run.id,
        "status": run.status,
        "profile": run.profile,
        "finalDecision": run.finalDecision,
        "traderReviewStatus": trader_review_status,
        "commentCount": len(wrapper.comments),
        "pendingDecision": wrapper.decision is None,
        "createdAt": to_timestamp(run.createdAt),
        "updatedAt": to_timestamp(run.updatedAt),
        "schemaVersion": wrapper.schemaVersion,
        "renderCount": len(wrapper.renders),
    }


def summarize_review_list_item(item: ValidationReviewRunSummary, review_web_base_url: str) -> dict[str, Any]:
    return {
        "id": item.id,
        "status": item.status,
        "profile": item.profile,
        "finalDecision": item.finalDecision,
        "traderReviewStatus": item.traderReviewStatus,
        "commentCount": item.commentCount,
        "pendingDecision": item.pendingDecision,
        "createdAt": to_timestamp(item.createdAt),
        "updatedAt": to_timestamp(item.updatedAt),
        "reviewWeb": build_review_web_link(review_web_base_url, item.id),
    }


def raw_review_artifact(response: ValidationReviewRunDetailResponse) -> dict[str, Any]:
    return response.artifact.model_dump(mode="json")


# ------------------------------------------------------------------
# Validation bots
# ------------------------------------------------------------------

def summarize_bot(bot: Bot) -> dict[str, Any]:
    return {
        "id": bot.id,
        "tenantId": bot.tenantId,
        "ownerUserId": bot.ownerUserId,
        "name": bot.name,
        "status": bot.status,
        "registrationPath": bot.registrationPath,
        "trialExpiresAt": to_timestamp(bot.trialExpiresAt),
        "metadata": bot.metadata,
        "createdAt": to_timestamp(bot.createdAt),
        "updatedAt": to_timestamp(bot.updatedAt),
    }


def summarize_registration(registration: BotRegistration) -> dict[str, Any]:
    return {
        "id": registration.id,
        "botId": registration.botId,
        "registrationPath": registration.registrationPath,
        "status": registration.status,
        "audit": registration.audit,
        "createdAt": to_timestamp(registration.createdAt),
    }


def summarize_key(key: BotKeyMetadata) -> dict[str, Any]:
    return {
        "id": key.id,
        "botId": key.botId,
        "keyPrefix": key.keyPrefix,
        "status": key.status,
        "createdAt": to_timestamp(key.createdAt),
        "lastUsedAt": to_timestamp(key.lastUsedAt),
        "revokedAt": to_timestamp(key.revokedAt),
    }


def issued_key_envelope(issued_key: BotIssuedApiKey) -> dict[str, Any]:
    return {
        "key": summarize_key(issued_key.key),
        "rawKey": issued_key.rawKey,
        "warning": ISSUED_KEY_WARNING,
    }
