"""Optional model-based validation tier.

Asks the Tester role to re-read the page for mismatches that pattern checks
cannot see. Strictly additive: any failure here yields an empty report.
"""

import logging
from typing import Any

from sportello.agents.output_utils import StructuredOutputError, extract_structured
from sportello.config import ISSUE_CODES, SEMANTIC_MARKUP_LIMIT, AgentRole, Severity
from sportello.workflow.agent_runner import GenerateFn, GenerationError
from sportello.workflow.models import Issue, Plan, ValidationReport

logger = logging.getLogger(__name__)

DEFAULT_SEMANTIC_CODE = "SEMANTIC_MISMATCH"


def build_review_prompt(markup: str, plan: Plan) -> str:
    """Render the review request for the Tester role."""
    if len(markup) > SEMANTIC_MARKUP_LIMIT:
        markup = markup[:SEMANTIC_MARKUP_LIMIT] + "\n... [truncated]"

    features = ", ".join(plan.features) or "none listed"
    if plan.is_game:
        controls_rule = "This IS a game: MISSING game controls are critical failures."
    else:
        controls_rule = (
            "This is NOT a game: game controls (d-pad, mobile-controls) are critical failures."
        )

    return (
        f"Validate this generated page for: {plan.metadata.title}\n\n"
        f"Expected content type: {plan.content_type.value}\n"
        f"Interaction pattern: {plan.interaction_pattern.value}\n"
        f"Expected features: {features}\n\n"
        f"IMPORTANT:\n- {controls_rule}\n\n"
        f"Markup to validate:\n{markup}\n\n"
        "Return a JSON validation report."
    )


def _to_issue(entry: Any, severity: Severity) -> Issue | None:
    if isinstance(entry, str):
        return Issue(code=DEFAULT_SEMANTIC_CODE, message=entry, severity=severity)
    if isinstance(entry, dict):
        message = entry.get("message") or entry.get("description")
        if not message:
            return None
        code = str(entry.get("code") or "").strip().upper()
        if code not in ISSUE_CODES:
            code = DEFAULT_SEMANTIC_CODE
        return Issue(code=code, message=str(message), severity=severity)
    return None


def parse_review(data: dict) -> ValidationReport:
    """Map a ``{"issues": [...], "warnings": [...]}`` reply onto a report.

    Entries may be plain strings or ``{code, message}`` objects; anything
    else is dropped. Severity comes from the list, not from the entry, and a
    code outside ``ISSUE_CODES`` becomes ``SEMANTIC_MISMATCH``.
    """
    report = ValidationReport()
    for key, severity in (("issues", Severity.CRITICAL), ("warnings", Severity.WARNING)):
        entries = data.get(key) or []
        if not isinstance(entries, list):
            continue
        for entry in entries:
            issue = _to_issue(entry, severity)
            if issue is not None:
                report.add(issue)
    return report


class SemanticReviewer:
    """Model-backed review tier, composed after the deterministic tiers."""

    def __init__(self, generate: GenerateFn):
        self._generate = generate

    async def review(self, markup: str, plan: Plan) -> ValidationReport:
        try:
            response = await self._generate(
                AgentRole.TESTER.value, build_review_prompt(markup, plan)
            )
            return parse_review(extract_structured(response))
        except (GenerationError, StructuredOutputError) as e:
            logger.warning(f"Semantic review skipped: {e}")
        except Exception as e:  # Intentional catch-all: optional tier never fails validation
            logger.error(f"Semantic review failed unexpectedly: {e}", exc_info=True)
        return ValidationReport()
