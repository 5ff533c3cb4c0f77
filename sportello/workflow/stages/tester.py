"""Tester stage: validate and score one attempt's markup."""

import logging

from sportello.workflow.models import BuildAttempt, Plan
from sportello.workflow.scoring import score_issues
from sportello.workflow.validators import MarkupValidator

logger = logging.getLogger(__name__)


async def evaluate_attempt(
    validator: MarkupValidator, plan: Plan, attempt: BuildAttempt
) -> BuildAttempt:
    """Return a copy of ``attempt`` carrying its findings and score.

    Stored artifacts are never touched. The attempt must have markup.
    """
    if not attempt.has_markup:
        raise ValueError(f"attempt {attempt.attempt_number} has no markup to test")

    report = await validator.validate(attempt.generated_markup, plan)
    score = score_issues(report.issues, report.warnings)
    tested = attempt.model_copy(
        update={"issues": report.issues, "warnings": report.warnings, "score": score}
    )

    if tested.passed:
        logger.info(f"Tests passed! Score: {score}/100 ({len(report.warnings)} warnings)")
    else:
        logger.info(
            f"Tests failed with {len(report.issues)} issues, "
            f"{len(report.warnings)} warnings (score {score}/100)"
        )
        for i, issue in enumerate(report.issues, 1):
            logger.info(f"   {issue.to_feedback_line(i)}")
    return tested
