"""Burr Actions for the Sportello build pipeline.

Each action is one step of the state machine. Domain logic lives in
:mod:`sportello.workflow.stages`; the actions move values in and out of
state, record stage statuses, and set the verdict keys the transitions in
:mod:`sportello.workflow.workflow_specs` branch on.

The @action decorator specifies:
- reads: State keys this action needs to read
- writes: State keys this action will write to
"""

import logging

from burr.core import State, action

from sportello.agents.output_utils import StructuredOutputError
from sportello.config import AgentRole, FinalOutcome, StageStatus
from sportello.telemetry import record_error, stage_span

from .agent_runner import GenerationError
from .build_logs import NO_RECENT_BUILDS
from .models import BuildAttempt
from .plan_normalizer import PlanValidationError
from .scoring import should_retry
from .stages import build_content, document_content, evaluate_attempt, plan_content

logger = logging.getLogger(__name__)

# Verdicts written by ``build`` and ``test`` for the transition conditions
VERDICT_BUILT = "built"
VERDICT_RETRY = "retry"
VERDICT_PASSED = "passed"
VERDICT_EXHAUSTED = "exhausted"
VERDICT_ABANDONED = "abandoned"

EXHAUSTED_ERROR = "Max attempts reached with unresolved issues"

STATUS_KEYS = (
    "architect_status",
    "build_status",
    "test_status",
    "scribe_status",
    "persist_status",
)


def _shipped_attempt(attempts: list[BuildAttempt]) -> BuildAttempt | None:
    for attempt in reversed(attempts):
        if attempt.has_markup:
            return attempt
    return None


def final_outcome_for(attempts: list[BuildAttempt], abandoned: bool) -> FinalOutcome:
    """``ok`` only when the last attempt passed, ``degraded`` otherwise."""
    if abandoned:
        return FinalOutcome.ABANDONED
    if attempts and attempts[-1].passed:
        return FinalOutcome.OK
    return FinalOutcome.DEGRADED


# =============================================================================
# Architect
# =============================================================================


@action(
    reads=["request", "preferred_type", "generate", "log_store"],
    writes=["plan", "architect_status", "current_stage", "error"],
)
async def architect(state: State) -> State:
    """Stage 1: plan the page. Any failure abandons the run."""
    log_store = state["log_store"]
    recent_patterns = log_store.recent_patterns_summary() if log_store else NO_RECENT_BUILDS

    with stage_span("architect", "Architect") as span:
        try:
            plan = await plan_content(
                state["generate"],
                state["request"],
                recent_patterns,
                state["preferred_type"],
            )
        except (GenerationError, StructuredOutputError, PlanValidationError) as e:
            record_error(span, e, role=AgentRole.ARCHITECT.value)
            logger.error(f"Architect planning failed: {e}")
            return state.update(
                architect_status=StageStatus.FAILED.value,
                current_stage="architect",
                error=f"Architect planning failed: {e}",
            )

        span.set_attribute("plan.slug", plan.slug)
        span.set_attribute("plan.content_type", plan.content_type.value)
        span.set_attribute("plan.interaction_pattern", plan.interaction_pattern.value)

    return state.update(
        plan=plan,
        architect_status=StageStatus.SUCCESS.value,
        current_stage="architect",
    )


# =============================================================================
# Build / Test loop
# =============================================================================


@action(
    reads=["plan", "attempts", "prior_issues", "max_attempts", "generate", "artifact_store"],
    writes=["attempts", "build_status", "build_verdict", "current_stage", "error"],
)
async def build(state: State) -> State:
    """Stage 2: generate one attempt.

    A hard generation failure consumes the attempt. The verdict then says
    whether to retry, fall through with an earlier attempt's markup, or
    abandon because nothing was ever built.
    """
    attempts = list(state["attempts"])
    attempt_number = len(attempts) + 1
    max_attempts = state["max_attempts"]

    with stage_span("build", "Builder", attempt=attempt_number) as span:
        try:
            attempt = await build_content(
                state["generate"],
                state["plan"],
                attempt_number,
                state["prior_issues"],
                state["artifact_store"],
            )
        except GenerationError as e:
            record_error(span, e, role=AgentRole.BUILDER.value)
            logger.error(f"Builder attempt {attempt_number}/{max_attempts} failed: {e}")
            attempts.append(BuildAttempt(attempt_number=attempt_number, error=str(e)))

            if attempt_number < max_attempts:
                verdict = VERDICT_RETRY
            elif _shipped_attempt(attempts) is not None:
                verdict = VERDICT_EXHAUSTED
            else:
                verdict = VERDICT_ABANDONED
            span.set_attribute("build.verdict", verdict)

            return state.update(
                attempts=attempts,
                build_status=StageStatus.FAILED.value,
                build_verdict=verdict,
                current_stage="build",
                error=str(e),
            )

    attempts.append(attempt)
    return state.update(
        attempts=attempts,
        build_status=StageStatus.SUCCESS.value,
        build_verdict=VERDICT_BUILT,
        current_stage="build",
    )


@action(
    reads=["plan", "attempts", "max_attempts", "min_accept_score", "validator"],
    writes=["attempts", "prior_issues", "test_status", "test_verdict", "current_stage", "error"],
)
async def test(state: State) -> State:
    """Stage 3: validate and score the latest attempt, then decide the loop."""
    attempts = list(state["attempts"])
    current = attempts[-1]
    attempts_left = state["max_attempts"] - current.attempt_number

    with stage_span("test", "Tester", attempt=current.attempt_number) as span:
        tested = await evaluate_attempt(state["validator"], state["plan"], current)
        attempts[-1] = tested

        span.set_attribute("test.score", tested.score)
        span.set_attribute("test.issue_count", len(tested.issues))
        span.set_attribute("test.warning_count", len(tested.warnings))

        if should_retry(tested, attempts_left, state["min_accept_score"]):
            verdict = VERDICT_RETRY
            logger.warning(f"Attempt {tested.attempt_number} failed, retrying with fixes...")
        elif tested.passed:
            verdict = VERDICT_PASSED
            logger.info(f"Build passed on attempt {tested.attempt_number}")
        else:
            verdict = VERDICT_EXHAUSTED
            logger.warning(f"Build failed after {tested.attempt_number} attempts")
        span.set_attribute("test.verdict", verdict)

    updates = {
        "attempts": attempts,
        "prior_issues": tested.issues or tested.warnings,
        "test_status": StageStatus.SUCCESS.value,
        "test_verdict": verdict,
        "current_stage": "test",
    }
    if verdict == VERDICT_EXHAUSTED:
        updates["error"] = EXHAUSTED_ERROR
    return state.update(**updates)


# =============================================================================
# Scribe / Persist
# =============================================================================


@action(
    reads=["plan", "attempts", "generate"],
    writes=["documentation", "scribe_status", "current_stage"],
)
async def scribe(state: State) -> State:
    """Stage 4: document the shipped attempt. Falls back, never fails."""
    attempts = state["attempts"]
    shipped = _shipped_attempt(attempts)
    outstanding = None
    if final_outcome_for(attempts, abandoned=False) is FinalOutcome.DEGRADED and shipped:
        outstanding = shipped.findings

    with stage_span("scribe", "Scribe") as span:
        docs = await document_content(state["generate"], state["plan"], shipped, outstanding)
        span.set_attribute("scribe.fallback", docs.fallback)

    return state.update(
        documentation=docs,
        scribe_status=StageStatus.SUCCESS.value,
        current_stage="scribe",
    )


@action(
    reads=["plan", "attempts", "documentation", "publisher"],
    writes=["persisted", "persist_status", "current_stage"],
)
async def persist(state: State) -> State:
    """Stage 5: hand the shipped files and metadata to the publisher."""
    plan = state["plan"]
    publisher = state["publisher"]
    if publisher is None:
        logger.info("No publisher configured, skipping persist")
        return state.update(
            persisted=False,
            persist_status=StageStatus.SKIPPED.value,
            current_stage="persist",
        )

    shipped = _shipped_attempt(state["attempts"])
    files = {plan.markup_path: shipped.generated_markup}
    if plan.script_path and shipped.generated_script:
        files[plan.script_path] = shipped.generated_script

    with stage_span("persist", "Persist") as span:
        try:
            persisted = await publisher.persist(
                plan.slug, files, state["documentation"].metadata
            )
        except Exception as e:  # Intentional catch-all: external collaborator boundary
            record_error(span, e)
            logger.error(f"Publisher raised during persist: {e}", exc_info=True)
            persisted = False
        span.set_attribute("persist.success", persisted)

    return state.update(
        persisted=persisted,
        persist_status=(StageStatus.SUCCESS if persisted else StageStatus.FAILED).value,
        current_stage="persist",
    )


@action(
    reads=[*STATUS_KEYS, "error"],
    writes=[*STATUS_KEYS, "current_stage"],
)
def abandon(state: State) -> State:
    """Terminal: mark every stage that never ran as skipped."""
    logger.error(f"Pipeline abandoned: {state['error']}")
    skipped = {
        key: StageStatus.SKIPPED.value
        for key in STATUS_KEYS
        if state[key] == StageStatus.PENDING.value
    }
    return state.update(current_stage="abandon", **skipped)
