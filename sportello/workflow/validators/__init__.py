"""Markup validators used by the Tester stage.

Two deterministic tiers run on every attempt:
- Structural: document completeness, viewport, theme link, leftovers
- Pattern conformance: required/forbidden features from the pattern policy

An optional semantic tier (model-based) can be appended; its findings are
concatenated after the deterministic ones.
"""

import logging

from sportello.workflow.models import Plan, ValidationReport

from .pattern_conformance import check_canvas, check_pattern_conformance
from .semantic import SemanticReviewer, build_review_prompt, parse_review
from .structural import check_structure

logger = logging.getLogger(__name__)


def validate_markup(markup: str, plan: Plan) -> ValidationReport:
    """Run the deterministic tiers.

    Same ``(markup, plan)`` always yields the same findings in the same order.
    """
    report = ValidationReport()
    for issue in check_structure(markup):
        report.add(issue)
    for issue in check_pattern_conformance(markup, plan):
        report.add(issue)
    return report


class MarkupValidator:
    """Validator facade: deterministic tiers plus the optional semantic tier."""

    def __init__(self, semantic_reviewer: SemanticReviewer | None = None):
        self.semantic_reviewer = semantic_reviewer

    @property
    def semantic_enabled(self) -> bool:
        return self.semantic_reviewer is not None

    async def validate(self, markup: str, plan: Plan) -> ValidationReport:
        report = validate_markup(markup, plan)
        if self.semantic_reviewer is None:
            return report

        semantic = await self.semantic_reviewer.review(markup, plan)
        if semantic.codes:
            logger.info(f"Semantic tier added: {', '.join(semantic.codes)}")
        return report.merge(semantic)


__all__ = [
    "MarkupValidator",
    "SemanticReviewer",
    "build_review_prompt",
    "check_canvas",
    "check_pattern_conformance",
    "check_structure",
    "parse_review",
    "validate_markup",
]
