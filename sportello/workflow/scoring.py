"""Quality scoring and the retry decision for the build/test loop."""

from collections.abc import Sequence

from sportello.config import CRITICAL_PENALTY, MAX_SCORE, WARNING_PENALTY

from .models import BuildAttempt, Issue


def score_issues(issues: Sequence[Issue], warnings: Sequence[Issue]) -> int:
    """Reduce findings to a 0-100 score.

    Starts at ``MAX_SCORE`` and subtracts ``CRITICAL_PENALTY`` per issue and
    ``WARNING_PENALTY`` per warning, floored at zero.
    """
    penalty = CRITICAL_PENALTY * len(issues) + WARNING_PENALTY * len(warnings)
    return max(0, MAX_SCORE - penalty)


def should_retry(
    attempt: BuildAttempt,
    attempts_left: int,
    min_accept_score: int | None = None,
) -> bool:
    """Decide whether a tested attempt sends the loop back to the Builder.

    Critical issues always retry while attempts remain. A critical-free
    attempt is accepted immediately unless ``min_accept_score`` is set and
    the score falls below it.
    """
    if attempts_left <= 0:
        return False
    if attempt.issues:
        return True
    if min_accept_score is not None and attempt.score is not None:
        return attempt.score < min_accept_score
    return False
