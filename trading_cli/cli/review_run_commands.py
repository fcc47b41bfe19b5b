"""Validation review-run CLI commands."""

import asyncio

import typer

from trading_cli.cli.context import command_context
from trading_cli.services.review_run_service import REVIEW_RUN_USAGE, ReviewRunOrchestrator

review_run_app = typer.Typer()


@review_run_app.callback(invoke_without_command=True)
def review_run_root(
    ctx: typer.Context,
    show_usage: bool = typer.Option(False, "--help", "-h", hidden=True),
) -> None:
    """Trigger, retrieve, and render validation review runs."""
    if show_usage or ctx.invoked_subcommand is None:
        command_context(ctx).emit({"status": "ok", "command": "review-run", "usage": REVIEW_RUN_USAGE})
        raise typer.Exit()


@review_run_app.command("trigger")
def trigger(
    ctx: typer.Context,
    input_path: str | None = typer.Option(None, "--input", help="JSON payload file sent verbatim"),
    strategy_id: str | None = typer.Option(None, "--strategy-id", help="Strategy to validate"),
    provider_ref_id: str | None = typer.Option(None, "--provider-ref-id", help="Provider reference id"),
    prompt: str | None = typer.Option(None, "--prompt", help="Strategy prompt"),
    requested_indicators: str | None = typer.Option(
        None, "--requested-indicators", help="Comma-separated indicators"
    ),
    dataset_ids: str | None = typer.Option(None, "--dataset-ids", help="Comma-separated dataset ids"),
    backtest_report_ref: str | None = typer.Option(None, "--backtest-report-ref", help="Backtest report reference"),
    profile: str | None = typer.Option(None, "--profile", help="FAST, STANDARD (default) or EXPERT"),
    render: str | None = typer.Option(None, "--render", help="Comma-separated render formats (html,pdf)"),
    request_id: str | None = typer.Option(None, "--request-id", help="Correlation id override"),
    idempotency_key: str | None = typer.Option(None, "--idempotency-key", help="Idempotency key override"),
) -> None:
    """Create a validation run and optionally queue renders."""
    state = command_context(ctx)
    orchestrator = ReviewRunOrchestrator(state.settings, transport=state.transport)
    envelope = asyncio.run(
        orchestrator.trigger(
            input_path=input_path,
            strategy_id=strategy_id,
            provider_ref_id=provider_ref_id,
            prompt=prompt,
            requested_indicators=requested_indicators,
            dataset_ids=dataset_ids,
            backtest_report_ref=backtest_report_ref,
            profile=profile,
            render=render,
            request_id=request_id,
            idempotency_key=idempotency_key,
        )
    )
    state.emit(envelope)


def retrieve(
    ctx: typer.Context,
    run_id: str | None = typer.Option(None, "--run-id", help="Review run id; omit to list runs"),
    status: str | None = typer.Option(None, "--status", help="List filter: queued, running, completed, failed"),
    final_decision: str | None = typer.Option(
        None, "--final-decision", help="List filter: pending, pass, conditional_pass, fail"
    ),
    cursor: str | None = typer.Option(None, "--cursor", help="Pagination cursor"),
    limit: str | None = typer.Option(None, "--limit", help="Page size between 1 and 100"),
    render_format: str | None = typer.Option(None, "--render-format", help="Also fetch render status (html or pdf)"),
    raw: bool = typer.Option(False, "--raw", help="Include the full review artifact"),
    request_id: str | None = typer.Option(None, "--request-id", help="Correlation id override"),
) -> None:
    """Retrieve one review run, or list review runs."""
    state = command_context(ctx)
    orchestrator = ReviewRunOrchestrator(state.settings, transport=state.transport)
    envelope = asyncio.run(
        orchestrator.retrieve(
            run_id=run_id,
            status=status,
            final_decision=final_decision,
            cursor=cursor,
            limit=limit,
            render_format=render_format,
            raw=raw,
            request_id=request_id,
        )
    )
    state.emit(envelope)


review_run_app.command("retrieve")(retrieve)
review_run_app.command("get", hidden=True)(retrieve)


@review_run_app.command("render")
def render(
    ctx: typer.Context,
    run_id: str | None = typer.Option(None, "--run-id", help="Review run id"),
    render_format: str | None = typer.Option(None, "--format", help="html or pdf"),
    request_id: str | None = typer.Option(None, "--request-id", help="Correlation id override"),
    idempotency_key: str | None = typer.Option(None, "--idempotency-key", help="Idempotency key override"),
) -> None:
    """Request a render of an existing review run."""
    state = command_context(ctx)
    orchestrator = ReviewRunOrchestrator(state.settings, transport=state.transport)
    envelope = asyncio.run(
        orchestrator.render(
            run_id=run_id,
            render_format=render_format,
            request_id=request_id,
            idempotency_key=idempotency_key,
        )
    )
    state.emit(envelope)


validation_app = typer.Typer()
validation_app.add_typer(review_run_app, name="run", help="Alias of review-run")


@validation_app.callback(invoke_without_command=True)
def validation_root(
    ctx: typer.Context,
    show_usage: bool = typer.Option(False, "--help", "-h", hidden=True),
) -> None:
    """Validation run commands (validation run ...)."""
    if show_usage or ctx.invoked_subcommand is None:
        command_context(ctx).emit({"status": "ok", "command": "validation run", "usage": REVIEW_RUN_USAGE})
        raise typer.Exit()
