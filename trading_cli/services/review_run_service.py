"""Validation review-run workflows: trigger, retrieve, and render."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from trading_cli.boundary import normalize_web_base_url
from trading_cli.clients.platform_api_client import build_platform_api_client
from trading_cli.config import Settings
from trading_cli.errors import ValidationError
from trading_cli.identity import REVIEW_RUN_NAMESPACE, RequestIdentity, derive_request_id, step_suffix
from trading_cli.normalizer import (
    build_review_web_link,
    normalize_run,
    raw_review_artifact,
    render_outcome,
    summarize_review_artifact,
    summarize_review_list_item,
)
from trading_cli.observability import log_command_event
from trading_cli.schemas import CreateValidationRunRequest, ValidationPolicyProfile
from trading_cli.services.command_payloads import (
    PayloadField,
    build_command_payload,
    non_empty,
    parse_csv,
    parse_final_decision_filter,
    parse_limit,
    parse_profile,
    parse_render_format,
    parse_render_formats,
    parse_status_filter,
)

logger = logging.getLogger(__name__)

REVIEW_RUN_USAGE = [
    "trading-cli review-run trigger --strategy-id <id> --requested-indicators <csv> --dataset-ids <csv> "
    "--backtest-report-ref <ref> [--render html,pdf]",
    "trading-cli review-run trigger --input <payload.json> [--render html,pdf]",
    "trading-cli review-run retrieve --run-id <runId> [--render-format html|pdf] [--raw]",
    "trading-cli review-run render --run-id <runId> --format html|pdf",
    "trading-cli review-run retrieve [--status queued|running|completed|failed] "
    "[--final-decision pending|pass|conditional_pass|fail] [--limit 25]",
]


def default_validation_policy(profile: str) -> dict[str, Any]:
    """Fixed gate set sent with every flag-built validation run."""
    return ValidationPolicyProfile(
        profile=profile,
        blockMergeOnFail=True,
        blockReleaseOnFail=True,
        blockMergeOnAgentFail=True,
        blockReleaseOnAgentFail=False,
        requireTraderReview=True,
        hardFailOnMissingIndicators=True,
        failClosedOnEvidenceUnavailable=True,
    ).model_dump()


def build_validation_run_payload(
    *,
    input_path: str | None = None,
    strategy_id: str | None = None,
    provider_ref_id: str | None = None,
    prompt: str | None = None,
    requested_indicators: str | None = None,
    dataset_ids: str | None = None,
    backtest_report_ref: str | None = None,
    profile: str | None = None,
) -> Any:
    payload = build_command_payload(
        input_path=input_path,
        label="review-run trigger payload",
        fields=[
            PayloadField(
                "strategyId",
                non_empty(strategy_id),
                "--strategy-id is required when --input is not provided.",
            ),
            PayloadField(
                "requestedIndicators",
                parse_csv(non_empty(requested_indicators)),
                "--requested-indicators must contain at least one comma-separated indicator.",
            ),
            PayloadField(
                "datasetIds",
                parse_csv(non_empty(dataset_ids)),
                "--dataset-ids must contain at least one comma-separated dataset id.",
            ),
            PayloadField(
                "backtestReportRef",
                non_empty(backtest_report_ref),
                "--backtest-report-ref is required when --input is not provided.",
            ),
        ],
        extras=lambda: {
            "providerRefId": non_empty(provider_ref_id),
            "prompt": non_empty(prompt),
            "policy": default_validation_policy(parse_profile(profile)),
        },
    )
    if non_empty(input_path):
        return payload
    return CreateValidationRunRequest.model_validate(payload).model_dump(exclude_none=True)


class ReviewRunOrchestrator:
    """Turns review-run verbs into Platform API calls and output envelopes."""

    def __init__(self, settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._settings = settings
        self._transport = transport

    def _review_web_base_url(self) -> str:
        return normalize_web_base_url(self._settings.configured_review_web_base_url)

    async def trigger(
        self,
        *,
        input_path: str | None = None,
        strategy_id: str | None = None,
        provider_ref_id: str | None = None,
        prompt: str | None = None,
        requested_indicators: str | None = None,
        dataset_ids: str | None = None,
        backtest_report_ref: str | None = None,
        profile: str | None = None,
        render: str | None = None,
        request_id: str | None = None,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        """Create a validation run, then request each render format in order."""
        payload = build_validation_run_payload(
            input_path=input_path,
            strategy_id=strategy_id,
            provider_ref_id=provider_ref_id,
            prompt=prompt,
            requested_indicators=requested_indicators,
            dataset_ids=dataset_ids,
            backtest_report_ref=backtest_report_ref,
            profile=profile,
        )
        render_formats = parse_render_formats(render)
        identity = RequestIdentity.derive(
            request_id=request_id,
            idempotency_key=idempotency_key,
            namespace=REVIEW_RUN_NAMESPACE,
        )
        client = build_platform_api_client(self._settings, require_auth=True, transport=self._transport)
        async with client:
            review_web_base_url = self._review_web_base_url()
            run_response = await client.create_validation_run(
                body=payload,
                request_id=identity.request_id,
                idempotency_key=identity.idempotency_key,
            )
            run_id = run_response.run.id
            log_command_event(
                logger,
                level=logging.INFO,
                message="Validation run created.",
                command="review-run trigger",
                operation="create_validation_run",
                request_id=run_response.requestId,
                resource_type="validation_run",
                resource_id=run_id,
            )

            renders: list[dict[str, Any]] = []
            for index, render_format in enumerate(render_formats):
                step = identity.for_step(f"render-{render_format}", index)
                render_response = await client.create_validation_review_render(
                    run_id=run_id,
                    render_format=render_format,
                    request_id=step.request_id,
                    idempotency_key=step.idempotency_key,
                )
                renders.append(render_outcome(render_response))

        return {
            "status": "ok",
            "command": "review-run trigger",
            "requestId": run_response.requestId,
            "idempotencyKey": identity.idempotency_key,
            "runId": run_id,
            "run": normalize_run(run_response.run),
            "reviewWeb": build_review_web_link(review_web_base_url, run_id),
            "renders": renders,
        }

    async def retrieve(
        self,
        *,
        run_id: str | None = None,
        status: str | None = None,
        final_decision: str | None = None,
        cursor: str | None = None,
        limit: str | None = None,
        render_format: str | None = None,
        raw: bool = False,
        request_id: str | None = None,
    ) -> dict[str, Any]:
        """Fetch one review run by id, or list review runs when no id is given."""
        resolved_run_id = non_empty(run_id)
        resolved_request_id = derive_request_id(request_id, namespace=REVIEW_RUN_NAMESPACE)
        if resolved_run_id is not None:
            return await self._retrieve_one(
                run_id=resolved_run_id,
                render_format=parse_render_format(render_format),
                raw=raw,
                request_id=resolved_request_id,
            )
        return await self._list(
            status=parse_status_filter(status),
            final_decision=parse_final_decision_filter(final_decision),
            cursor=non_empty(cursor),
            limit=parse_limit(limit),
            request_id=resolved_request_id,
        )

    async def _retrieve_one(
        self,
        *,
        run_id: str,
        render_format: str | None,
        raw: bool,
        request_id: str,
    ) -> dict[str, Any]:
        client = build_platform_api_client(self._settings, require_auth=True, transport=self._transport)
        async with client:
            review_web_base_url = self._review_web_base_url()
            detail = await client.get_validation_review_run(run_id=run_id, request_id=request_id)
            render_status = None
            if render_format is not None:
                render_status = await client.get_validation_review_render(
                    run_id=run_id,
                    render_format=render_format,
                    request_id=step_suffix(request_id, f"render-{render_format}"),
                )

        envelope: dict[str, Any] = {
            "status": "ok",
            "command": "review-run retrieve",
            "requestId": detail.requestId,
            "runId": run_id,
            "summary": summarize_review_artifact(detail),
            "reviewWeb": build_review_web_link(review_web_base_url, run_id),
        }
        if render_status is not None:
            envelope["render"] = render_outcome(render_status)
        if raw:
            envelope["artifact"] = raw_review_artifact(detail)
        return envelope

    async def _list(
        self,
        *,
        status: str | None,
        final_decision: str | None,
        cursor: str | None,
        limit: int | None,
        request_id: str,
    ) -> dict[str, Any]:
        client = build_platform_api_client(self._settings, require_auth=True, transport=self._transport)
        async with client:
            review_web_base_url = self._review_web_base_url()
            listing = await client.list_validation_review_runs(
                request_id=request_id,
                status=status,
                final_decision=final_decision,
                cursor=cursor,
                limit=limit,
            )

        return {
            "status": "ok",
            "command": "review-run retrieve",
            "requestId": listing.requestId,
            "filters": {
                "status": status,
                "finalDecision": final_decision,
                "cursor": cursor,
                "limit": limit,
            },
            "items": [summarize_review_list_item(item, review_web_base_url) for item in listing.items],
            "nextCursor": listing.nextCursor,
        }

    async def render(
        self,
        *,
        run_id: str | None = None,
        render_format: str | None = None,
        request_id: str | None = None,
        idempotency_key: str | None = None,
    ) -> dict[str, Any]:
        """Request a single render for an existing run."""
        resolved_run_id = non_empty(run_id)
        if resolved_run_id is None:
            raise ValidationError("--run-id is required.")
        resolved_format = parse_render_format(render_format, "--format")
        if resolved_format is None:
            raise ValidationError("--format is required and must be one of: html,pdf.")

        identity = RequestIdentity.derive(
            request_id=request_id,
            idempotency_key=idempotency_key,
            namespace=REVIEW_RUN_NAMESPACE,
        )
        client = build_platform_api_client(self._settings, require_auth=True, transport=self._transport)
        async with client:
            review_web_base_url = self._review_web_base_url()
            response = await client.create_validation_review_render(
                run_id=resolved_run_id,
                render_format=resolved_format,
                request_id=identity.request_id,
                idempotency_key=identity.idempotency_key,
            )

        outcome = render_outcome(response)
        return {
            "status": "ok",
            "command": "review-run render",
            "requestId": response.requestId,
            "idempotencyKey": identity.idempotency_key,
            "runId": resolved_run_id,
            "format": resolved_format,
            "reviewWeb": build_review_web_link(review_web_base_url, resolved_run_id),
            "render": outcome["render"],
            "pending": outcome["pending"],
        }
