"""Contract tests for CLI flag parsers and request payload builders."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from trading_cli.errors import ParseError, ValidationError
from trading_cli.services.command_payloads import (
    parse_csv,
    parse_final_decision_filter,
    parse_limit,
    parse_optional_metadata,
    parse_profile,
    parse_render_format,
    parse_render_formats,
    parse_status_filter,
)
from trading_cli.services.review_run_service import build_validation_run_payload
from trading_cli.services.validation_bot_service import (
    build_invite_registration_payload,
    build_partner_bootstrap_payload,
)


def test_csv_parsing_trims_and_drops_blanks() -> None:
    assert parse_csv(" ema , ,rsi,") == ["ema", "rsi"]
    assert parse_csv(None) == []


@pytest.mark.parametrize("value", ["0", "101", "abc", "1.5", "-3", "nan", "1_0", "1e2", "+5"])
def test_limit_outside_range_or_not_integer_fails(value: str) -> None:
    with pytest.raises(ValidationError) as exc_info:
        parse_limit(value)
    assert exc_info.value.message == "--limit must be an integer between 1 and 100."


@pytest.mark.parametrize(
    ("value", "expected"),
    [("1", 1), ("100", 100), (" 25 ", 25), ("25.0", 25), (None, None), ("", None)],
)
def test_limit_within_range_passes(value: str | None, expected: int | None) -> None:
    assert parse_limit(value) == expected


def test_profile_defaults_to_standard_and_upper_cases() -> None:
    assert parse_profile(None) == "STANDARD"
    assert parse_profile("expert") == "EXPERT"
    with pytest.raises(ValidationError) as exc_info:
        parse_profile("turbo")
    assert exc_info.value.message == "Unsupported --profile value 'turbo'. Expected one of: FAST, STANDARD, EXPERT."


def test_render_formats_dedupe_in_first_seen_order() -> None:
    assert parse_render_formats("pdf,html,pdf") == ["pdf", "html"]
    assert parse_render_formats(None) == []
    with pytest.raises(ValidationError):
        parse_render_formats("html,docx")


def test_single_render_format_rejects_multiple_values() -> None:
    assert parse_render_format("html") == "html"
    assert parse_render_format("html,html") == "html"
    with pytest.raises(ValidationError) as exc_info:
        parse_render_format("html,pdf", "--format")
    assert exc_info.value.message == "--format accepts a single value (html or pdf)."


def test_list_filters_are_lower_cased_and_validated() -> None:
    assert parse_status_filter("COMPLETED") == "completed"
    assert parse_final_decision_filter("Conditional_Pass") == "conditional_pass"
    with pytest.raises(ValidationError):
        parse_status_filter("archived")
    with pytest.raises(ValidationError):
        parse_final_decision_filter("maybe")


def test_metadata_sources_are_mutually_exclusive(tmp_path: Path) -> None:
    metadata_file = tmp_path / "metadata.json"
    metadata_file.write_text('{"team": "alpha"}', encoding="utf-8")

    with pytest.raises(ValidationError) as exc_info:
        parse_optional_metadata('{"team": "alpha"}', str(metadata_file))
    assert exc_info.value.message == "Specify only one of --metadata-json or --metadata-file."

    assert parse_optional_metadata(None, str(metadata_file)) == {"team": "alpha"}
    assert parse_optional_metadata('{"team": "beta"}', None) == {"team": "beta"}
    assert parse_optional_metadata(None, None) is None


def test_inline_metadata_must_be_a_json_object() -> None:
    with pytest.raises(ValidationError) as exc_info:
        parse_optional_metadata("[1, 2]", None)
    assert exc_info.value.message == "--metadata-json must be a JSON object."
    with pytest.raises(ParseError):
        parse_optional_metadata("{not json", None)


def test_validation_run_payload_from_flags_synthesizes_policy() -> None:
    payload = build_validation_run_payload(
        strategy_id="strat-001",
        requested_indicators="ema, rsi",
        dataset_ids="dataset-btc-1h",
        backtest_report_ref="blob://backtests/bt-001.json",
        profile="fast",
    )

    assert payload == {
        "strategyId": "strat-001",
        "requestedIndicators": ["ema", "rsi"],
        "datasetIds": ["dataset-btc-1h"],
        "backtestReportRef": "blob://backtests/bt-001.json",
        "policy": {
            "profile": "FAST",
            "blockMergeOnFail": True,
            "blockReleaseOnFail": True,
            "blockMergeOnAgentFail": True,
            "blockReleaseOnAgentFail": False,
            "requireTraderReview": True,
            "hardFailOnMissingIndicators": True,
            "failClosedOnEvidenceUnavailable": True,
        },
    }


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"strategy_id": None}, "--strategy-id is required when --input is not provided."),
        (
            {"requested_indicators": " , "},
            "--requested-indicators must contain at least one comma-separated indicator.",
        ),
        ({"dataset_ids": ""}, "--dataset-ids must contain at least one comma-separated dataset id."),
        ({"backtest_report_ref": "  "}, "--backtest-report-ref is required when --input is not provided."),
    ],
)
def test_validation_run_payload_reports_first_missing_field(overrides: dict[str, object], message: str) -> None:
    values: dict[str, object] = {
        "strategy_id": "strat-001",
        "requested_indicators": "ema",
        "dataset_ids": "dataset-btc-1h",
        "backtest_report_ref": "blob://backtests/bt-001.json",
    }
    values.update(overrides)
    with pytest.raises(ValidationError) as exc_info:
        build_validation_run_payload(**values)
    assert exc_info.value.message == message


def test_input_file_is_sent_verbatim_without_field_checks(tmp_path: Path) -> None:
    payload_file = tmp_path / "payload.json"
    payload = {"strategyId": "strat-file", "custom": {"nested": [1, 2]}}
    payload_file.write_text(json.dumps(payload), encoding="utf-8")

    assert build_validation_run_payload(input_path=str(payload_file), strategy_id=None) == payload


def test_unreadable_input_file_is_a_parse_error(tmp_path: Path) -> None:
    missing = tmp_path / "missing.json"
    with pytest.raises(ParseError) as exc_info:
        build_validation_run_payload(input_path=str(missing))
    assert exc_info.value.message.startswith(f"Unable to parse review-run trigger payload at {missing}:")


def test_invite_payload_requires_code_then_name() -> None:
    with pytest.raises(ValidationError) as exc_info:
        build_invite_registration_payload(bot_name="Alpha Bot")
    assert exc_info.value.message == "--invite-code is required when --input is not provided."
    with pytest.raises(ValidationError) as exc_info:
        build_invite_registration_payload(invite_code="INV-001")
    assert exc_info.value.message == "--bot-name is required when --input is not provided."


def test_partner_payload_includes_metadata() -> None:
    payload = build_partner_bootstrap_payload(
        partner_key="partner-001",
        partner_secret="partner-secret-001",
        owner_email="ops@example.com",
        bot_name="Alpha Bot",
        metadata_json='{"region": "eu"}',
    )
    assert payload == {
        "partnerKey": "partner-001",
        "partnerSecret": "partner-secret-001",
        "ownerEmail": "ops@example.com",
        "botName": "Alpha Bot",
        "metadata": {"region": "eu"},
    }
