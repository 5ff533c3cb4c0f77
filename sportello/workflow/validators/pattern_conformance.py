"""Pattern-conformance validation tier.

Enforces the interaction-pattern policy table against generated markup,
plus the canvas sizing checks that apply whenever a drawing surface exists.
"""

from sportello.config import CANVAS_MAX_WIDTH, Severity
from sportello.workflow.models import Issue, Plan
from sportello.workflow.pattern_policy import get_pattern_rule

from ._markup_patterns import (
    RE_CANVAS_RESPONSIVE,
    RE_CANVAS_TAG,
    canvas_widths,
    has_feature,
    strip_comments,
)


def check_pattern_conformance(markup: str, plan: Plan) -> list[Issue]:
    """Check required and forbidden features for the plan's pattern.

    Args:
        markup: Generated page markup.
        plan: Normalized plan; only ``interaction_pattern`` and
            ``content_type`` are consulted.

    Returns:
        Findings in policy-table order, followed by canvas findings.
    """
    rule = get_pattern_rule(plan.interaction_pattern)
    pattern = rule.pattern.value
    visible = strip_comments(markup)
    findings: list[Issue] = []

    for requirement in rule.required:
        if requirement.games_only and not plan.is_game:
            continue
        if not has_feature(visible, requirement.feature):
            findings.append(
                Issue(
                    code=requirement.code,
                    message=f"'{pattern}' pages require {requirement.feature.value}",
                    severity=requirement.severity,
                )
            )

    for prohibition in rule.forbidden:
        if has_feature(visible, prohibition.feature):
            findings.append(
                Issue(
                    code=prohibition.code,
                    message=f"'{pattern}' pages must not include {prohibition.feature.value}",
                    severity=prohibition.severity,
                )
            )

    findings.extend(check_canvas(visible))
    return findings


def check_canvas(markup: str) -> list[Issue]:
    """Canvas sizing checks. Empty when the page has no canvas."""
    if not RE_CANVAS_TAG.search(markup):
        return []

    findings: list[Issue] = []
    oversized = [width for width in canvas_widths(markup) if width > CANVAS_MAX_WIDTH]
    if oversized:
        findings.append(
            Issue(
                code="CANVAS_TOO_LARGE",
                message=(
                    f"Canvas width {max(oversized)}px exceeds the {CANVAS_MAX_WIDTH}px "
                    "mobile limit"
                ),
                severity=Severity.WARNING,
            )
        )

    if not RE_CANVAS_RESPONSIVE.search(markup):
        findings.append(
            Issue(
                code="CANVAS_NOT_RESPONSIVE",
                message="Canvas has no responsive max-width rule (e.g. max-width: 95vw)",
                severity=Severity.WARNING,
            )
        )

    return findings
