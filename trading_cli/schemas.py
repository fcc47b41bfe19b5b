"""Pydantic schemas for the Platform API v2 validation and validation-bot routes."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, get_args

from pydantic import BaseModel, ConfigDict, Field

ValidationProfile = Literal["FAST", "STANDARD", "EXPERT"]
ValidationRunDecision = Literal["pending", "pass", "conditional_pass", "fail"]
ValidationRunStatus = Literal["queued", "running", "completed", "failed"]
ValidationRenderFormat = Literal["html", "pdf"]

VALIDATION_PROFILES: tuple[str, ...] = get_args(ValidationProfile)
VALIDATION_RUN_DECISIONS: tuple[str, ...] = get_args(ValidationRunDecision)
VALIDATION_RUN_STATUSES: tuple[str, ...] = get_args(ValidationRunStatus)
VALIDATION_RENDER_FORMATS: tuple[str, ...] = get_args(ValidationRenderFormat)

RENDER_COMPLETED_STATUS = "completed"


class PlatformModel(BaseModel):
    """Response model that keeps fields it does not declare."""

    model_config = ConfigDict(extra="allow")


# ------------------------------------------------------------------
# Validation runs
# ------------------------------------------------------------------

class ValidationPolicyProfile(BaseModel):
    profile: str = Field(min_length=1)
    blockMergeOnFail: bool
    blockReleaseOnFail: bool
    blockMergeOnAgentFail: bool
    blockReleaseOnAgentFail: bool
    requireTraderReview: bool
    hardFailOnMissingIndicators: bool
    failClosedOnEvidenceUnavailable: bool


class CreateValidationRunRequest(BaseModel):
    strategyId: str = Field(min_length=1)
    providerRefId: str | None = None
    prompt: str | None = None
    requestedIndicators: list[str] = Field(min_length=1)
    datasetIds: list[str] = Field(min_length=1)
    backtestReportRef: str = Field(min_length=1)
    policy: ValidationPolicyProfile


class ValidationRun(PlatformModel):
    id: str
    status: str
    profile: str
    schemaVersion: str | None = None
    finalDecision: str
    createdAt: datetime
    updatedAt: datetime


class ValidationRunResponse(PlatformModel):
    requestId: str
    run: ValidationRun


# ------------------------------------------------------------------
# Validation review
# ------------------------------------------------------------------

class CreateValidationReviewRenderRequest(BaseModel):
    format: ValidationRenderFormat


class ValidationReviewRender(PlatformModel):
    runId: str
    format: str
    status: str
    artifactRef: str | None = None
    downloadUrl: str | None = None
    checksumSha256: str | None = None
    expiresAt: datetime | None = None
    requestedAt: datetime | None = None
    updatedAt: datetime | None = None


class ValidationReviewRenderResponse(PlatformModel):
    requestId: str
    render: ValidationReviewRender


class ValidationTraderReview(PlatformModel):
    required: bool = False
    status: str
    comments: list[str] = Field(default_factory=list)


class ValidationRunArtifact(PlatformModel):
    schemaVersion: Literal["validation-run.v1"]
    runId: str
    traderReview: ValidationTraderReview


class ValidationLlmSnapshotArtifact(PlatformModel):
    schemaVersion: Literal["validation-llm-snapshot.v1"]
    runId: str


class ValidationReviewRunArtifact(PlatformModel):
    schemaVersion: str
    run: ValidationRun
    artifact: ValidationRunArtifact | ValidationLlmSnapshotArtifact
    comments: list[dict[str, Any]] = Field(default_factory=list)
    decision: dict[str, Any] | None = None
    renders: list[dict[str, Any]] = Field(default_factory=list)


class ValidationReviewRunDetailResponse(PlatformModel):
    requestId: str
    artifact: ValidationReviewRunArtifact


class ValidationReviewRunSummary(PlatformModel):
    id: str
    status: str
    profile: str
    finalDecision: str
    traderReviewStatus: str | None = None
    commentCount: int = 0
    pendingDecision: bool
    createdAt: datetime
    updatedAt: datetime


class ValidationReviewRunListResponse(PlatformModel):
    requestId: str
    items: list[ValidationReviewRunSummary] = Field(default_factory=list)
    nextCursor: str | None = None


# ------------------------------------------------------------------
# Validation bots
# ------------------------------------------------------------------

class CreateBotInviteRegistrationRequest(BaseModel):
    inviteCode: str = Field(min_length=1)
    botName: str = Field(min_length=1)
    metadata: dict[str, Any] | None = None


class CreateBotPartnerBootstrapRequest(BaseModel):
    partnerKey: str = Field(min_length=1)
    partnerSecret: str = Field(min_length=1)
    ownerEmail: str = Field(min_length=1)
    botName: str = Field(min_length=1)
    metadata: dict[str, Any] | None = None


class CreateBotKeyRotationRequest(BaseModel):
    reason: str | None = None


class CreateBotKeyRevocationRequest(BaseModel):
    reason: str | None = None


class Bot(PlatformModel):
    id: str
    tenantId: str | None = None
    ownerUserId: str | None = None
    name: str
    status: str
    registrationPath: str | None = None
    trialExpiresAt: datetime | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    createdAt: datetime
    updatedAt: datetime


class BotRegistration(PlatformModel):
    id: str
    botId: str
    registrationPath: str | None = None
    status: str
    audit: dict[str, Any] = Field(default_factory=dict)
    createdAt: datetime


class BotKeyMetadata(PlatformModel):
    id: str
    botId: str
    keyPrefix: str | None = None
    status: str
    createdAt: datetime
    lastUsedAt: datetime | None = None
    revokedAt: datetime | None = None


class BotIssuedApiKey(PlatformModel):
    rawKey: str = Field(min_length=1)
    key: BotKeyMetadata


class BotRegistrationResponse(PlatformModel):
    requestId: str
    bot: Bot
    registration: BotRegistration
    issuedKey: BotIssuedApiKey


class BotKeyRotationResponse(PlatformModel):
    requestId: str
    botId: str
    issuedKey: BotIssuedApiKey


class BotKeyMetadataResponse(PlatformModel):
    requestId: str
    botId: str
    key: BotKeyMetadata
