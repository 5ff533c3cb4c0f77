"""Structural validation tier.

Type-agnostic checks. Most findings here mean the generation was truncated
or still carries wrapper formatting, whatever the content type.
"""

from sportello.config import THEME_STYLESHEET, Severity
from sportello.workflow.models import Issue

from ._markup_patterns import (
    RE_BODY,
    RE_DOCUMENT_CLOSE,
    RE_DOCUMENT_ROOT,
    RE_HEAD,
    RE_HOME_LINK,
    RE_MARKDOWN_FENCE,
    RE_PLACEHOLDER,
    RE_SCRIPT_CLOSE,
    RE_SCRIPT_OPEN,
    RE_THEME_LINK,
    RE_VIEWPORT,
    has_padding_conflict,
)

_DOCUMENT_PARTS = (
    (RE_DOCUMENT_ROOT, "<html> document root"),
    (RE_HEAD, "<head> section"),
    (RE_BODY, "<body> section"),
    (RE_DOCUMENT_CLOSE, "closing </html> tag"),
)


def check_structure(markup: str) -> list[Issue]:
    """Run the structural tier.

    Args:
        markup: Generated page markup.

    Returns:
        Findings in a fixed check order (critical and warning mixed).
    """
    findings: list[Issue] = []

    for pattern, label in _DOCUMENT_PARTS:
        if not pattern.search(markup):
            findings.append(
                Issue(
                    code="INCOMPLETE_DOCUMENT",
                    message=f"Missing {label}; the document is incomplete or truncated",
                    severity=Severity.CRITICAL,
                )
            )

    if not RE_VIEWPORT.search(markup):
        findings.append(
            Issue(
                code="MISSING_VIEWPORT",
                message='Missing <meta name="viewport"> tag for mobile rendering',
                severity=Severity.CRITICAL,
            )
        )

    if not RE_THEME_LINK.search(markup):
        findings.append(
            Issue(
                code="MISSING_THEME_LINK",
                message=f"Missing stylesheet link to {THEME_STYLESHEET}",
                severity=Severity.CRITICAL,
            )
        )

    if not RE_HOME_LINK.search(markup):
        findings.append(
            Issue(
                code="MISSING_HOME_LINK",
                message="Missing navigation link back to the home page (index.html)",
                severity=Severity.WARNING,
            )
        )

    opened = len(RE_SCRIPT_OPEN.findall(markup))
    closed = len(RE_SCRIPT_CLOSE.findall(markup))
    if opened != closed:
        findings.append(
            Issue(
                code="MISMATCHED_SCRIPT_BLOCKS",
                message=f"Mismatched script tags: {opened} opening vs {closed} closing",
                severity=Severity.CRITICAL,
            )
        )

    if RE_MARKDOWN_FENCE.search(markup):
        findings.append(
            Issue(
                code="MARKDOWN_ARTIFACTS",
                message="Markdown code fences (```) found in the output",
                severity=Severity.CRITICAL,
            )
        )

    if RE_PLACEHOLDER.search(markup):
        findings.append(
            Issue(
                code="INCOMPLETE_CODE",
                message="Placeholder markers (TODO, FIXME or ...) left in the code",
                severity=Severity.WARNING,
            )
        )

    if has_padding_conflict(markup):
        findings.append(
            Issue(
                code="PADDING_CONFLICT",
                message="body rule sets both padding and padding-top; keep a single declaration",
                severity=Severity.WARNING,
            )
        )

    return findings
