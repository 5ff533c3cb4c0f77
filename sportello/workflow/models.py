"""Pydantic models for plans, validation findings and build results.

These are the canonical shapes every pipeline stage consumes. Raw model
output only ever reaches them through ``plan_normalizer`` (plans) or the
stage parsers (documentation, semantic reports).
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sportello.config import (
    MAX_BUILD_ATTEMPTS,
    Collection,
    ContentType,
    FinalOutcome,
    InteractionPattern,
    Severity,
    StageStatus,
)

PIPELINE_STAGES = ("architect", "builder", "tester", "scribe", "persist")


# =============================================================================
# Plan
# =============================================================================


class PlanMetadata(BaseModel):
    """Registry-facing description of a page."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(description="Display title")
    icon: str = Field(default="✨", description="Single emoji shown in the project index")
    description: str = Field(default="", description="One-line caption")
    collection: Collection = Field(default=Collection.UNSORTED)


class Plan(BaseModel):
    """The Architect's plan for one page. Immutable once normalized."""

    model_config = ConfigDict(frozen=True)

    slug: str = Field(description="Unique kebab-case identifier")
    content_type: ContentType
    interaction_pattern: InteractionPattern = InteractionPattern.DIRECT_TOUCH
    files: tuple[str, ...] = Field(min_length=1, description="Markup file first, optional script")
    metadata: PlanMetadata
    features: tuple[str, ...] = ()

    @property
    def markup_path(self) -> str:
        return self.files[0]

    @property
    def script_path(self) -> str | None:
        if len(self.files) > 1 and self.files[1].endswith(".js"):
            return self.files[1]
        return None

    @property
    def is_game(self) -> bool:
        return self.content_type is ContentType.GAME


# =============================================================================
# Validation
# =============================================================================


class Issue(BaseModel):
    """A single validation finding."""

    model_config = ConfigDict(frozen=True)

    code: str = Field(description="Stable symbolic identifier")
    message: str
    severity: Severity

    def to_feedback_line(self, index: int) -> str:
        """Format the issue for the next Builder prompt."""
        return f"{index}. [{self.severity.value}] {self.code}: {self.message}"


class ValidationReport(BaseModel):
    """Findings split by severity, as returned by the Validator."""

    issues: list[Issue] = Field(default_factory=list, description="Critical findings")
    warnings: list[Issue] = Field(default_factory=list)

    def add(self, issue: Issue) -> None:
        if issue.severity is Severity.CRITICAL:
            self.issues.append(issue)
        else:
            self.warnings.append(issue)

    def merge(self, other: "ValidationReport") -> "ValidationReport":
        """Concatenate two reports, this one's findings first."""
        return ValidationReport(
            issues=[*self.issues, *other.issues],
            warnings=[*self.warnings, *other.warnings],
        )

    @property
    def codes(self) -> list[str]:
        return [finding.code for finding in (*self.issues, *self.warnings)]


# =============================================================================
# Build attempts and results
# =============================================================================


class BuildAttempt(BaseModel):
    """One Builder+Tester cycle."""

    attempt_number: int = Field(ge=1, le=MAX_BUILD_ATTEMPTS)
    generated_markup: str | None = None
    generated_script: str | None = None
    issues: list[Issue] = Field(default_factory=list)
    warnings: list[Issue] = Field(default_factory=list)
    score: int | None = Field(default=None, ge=0, le=100)
    error: str | None = Field(default=None, description="Generation failure, if any")

    @property
    def has_markup(self) -> bool:
        return bool(self.generated_markup)

    @property
    def tested(self) -> bool:
        return self.score is not None

    @property
    def passed(self) -> bool:
        return self.tested and not self.issues

    @property
    def findings(self) -> list[Issue]:
        """Issues then warnings, as left on this attempt by the Tester."""
        return [*self.issues, *self.warnings]


class Documentation(BaseModel):
    """Scribe output: reconciled metadata plus release text."""

    metadata: PlanMetadata
    release_notes: str
    how_to_play: str | None = None
    known_issues: list[str] = Field(default_factory=list)
    fallback: bool = Field(default=False, description="True when the plan metadata was reused")


class BuildResult(BaseModel):
    """Terminal audit record of one pipeline run."""

    build_id: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    request: str
    plan: Plan | None = None
    attempts: list[BuildAttempt] = Field(default_factory=list)
    final_outcome: FinalOutcome
    stage_statuses: dict[str, StageStatus] = Field(default_factory=dict)
    documentation: Documentation | None = None
    persisted: bool = False
    live_url: str | None = None
    error: str | None = None
    duration_seconds: float = 0.0

    @model_validator(mode="after")
    def _check_outcome(self) -> "BuildResult":
        if self.final_outcome is FinalOutcome.OK:
            last = self.final_attempt
            if last is None or not last.passed:
                raise ValueError(
                    "final_outcome 'ok' requires a last attempt without critical issues"
                )
        return self

    @property
    def final_attempt(self) -> BuildAttempt | None:
        return self.attempts[-1] if self.attempts else None

    @property
    def shipped_attempt(self) -> BuildAttempt | None:
        """Latest attempt that produced markup (the artifact that survives)."""
        for attempt in reversed(self.attempts):
            if attempt.has_markup:
                return attempt
        return None

    @property
    def final_score(self) -> int | None:
        shipped = self.shipped_attempt
        return shipped.score if shipped else None

    @property
    def terminal_state(self) -> str:
        """``completed``, ``completed_not_persisted`` or ``abandoned``."""
        if self.final_outcome is FinalOutcome.ABANDONED:
            return "abandoned"
        return "completed" if self.persisted else "completed_not_persisted"

