"""Builder stage: one fresh generation of the plan's files per attempt.

Each attempt is conditioned on the previous attempt's critical issues (never
a diff of earlier output) and its artifacts are written straight to the
artifact store, overwriting whatever the previous attempt left there.
"""

import logging
import re
from collections.abc import Sequence

from sportello.agents.output_utils import clean_markdown_fences
from sportello.config import MAX_BUILD_ATTEMPTS, THEME_STYLESHEET, TOKENS_SCRIPT, AgentRole
from sportello.publishing.publisher import ArtifactStore
from sportello.publishing.site_repository import PublishError
from sportello.workflow.agent_runner import GenerateFn, GenerationError
from sportello.workflow.models import BuildAttempt, Issue, Plan
from sportello.workflow.pattern_policy import get_pattern_rule
from sportello.workflow.validators._markup_patterns import (
    RE_HOME_LINK,
    RE_THEME_LINK,
    RE_VIEWPORT,
)

logger = logging.getLogger(__name__)

VIEWPORT_TAG = '<meta name="viewport" content="width=device-width, initial-scale=1.0">'
THEME_LINK_TAG = f'<link rel="stylesheet" href="../{THEME_STYLESHEET}">'
HOME_LINK_TAG = '<a href="../index.html" class="home-link">← HOME</a>'

_HEAD_CLOSE_RE = re.compile(r"</head\s*>", re.IGNORECASE)
_BODY_OPEN_RE = re.compile(r"<body\b[^>]*>", re.IGNORECASE)


# =============================================================================
# Prompts
# =============================================================================


def format_feedback(prior_issues: Sequence[Issue]) -> str:
    """Render prior findings as the retry feedback block."""
    lines = ["PREVIOUS ATTEMPT FAILED WITH THESE ISSUES:"]
    lines.extend(issue.to_feedback_line(i) for i, issue in enumerate(prior_issues, 1))
    lines.append("")
    lines.append("Fix ALL these issues in this attempt.")
    return "\n".join(lines)


def build_builder_prompt(plan: Plan, attempt_number: int, prior_issues: Sequence[Issue]) -> str:
    """Render the markup generation request for one attempt."""
    content_type = plan.content_type.value
    pattern = plan.interaction_pattern.value
    article = "an" if content_type[0] in "aeiou" else "a"
    features = ", ".join(plan.features) or "none listed"

    prompt = f"""Build {article} {content_type}: {plan.metadata.title}

Plan details:
- Content type: {content_type}
- Slug: {plan.slug}
- Files to generate: {", ".join(plan.files)}
- Key features: {features}
- Interaction pattern: {pattern}
- Collection: {plan.metadata.collection.value}
- Attempt: {attempt_number}/{MAX_BUILD_ATTEMPTS}

CRITICAL CONTROL REQUIREMENTS FOR PATTERN "{pattern}":
{get_pattern_rule(plan.interaction_pattern).describe()}

Requirements:
1. Generate COMPLETE, working code appropriate for {content_type}
2. Include all required mobile-first elements (viewport, responsive breakpoints)
3. Use the noir terminal theme consistently
4. Follow the EXACT control requirements for interaction pattern "{pattern}" above
5. NO placeholders or TODO comments

Generate the HTML file content now."""

    if prior_issues:
        prompt += "\n\n" + format_feedback(prior_issues)
    return prompt


def build_script_prompt(plan: Plan) -> str:
    features = ", ".join(plan.features) or plan.metadata.description
    return f"""Generate the JavaScript file {plan.script_path} for {plan.metadata.title}.

This script must work with the page {plan.markup_path} you just created.
Include:
- Logic for: {features}
- Mobile touch event handlers (touchstart + click fallback)
- Proper event prevention to avoid zoom on mobile
- Complete, working implementation

Return ONLY the JavaScript code, no markdown."""


# =============================================================================
# Post-processing
# =============================================================================


def ensure_essential_elements(markup: str) -> str:
    """Inject the viewport, theme link and home link when they are missing.

    Injection needs the ``</head>`` and ``<body>`` anchors; markup without
    them is returned unchanged for the validator to flag.
    """
    head_additions = []
    if not RE_VIEWPORT.search(markup):
        head_additions.append(VIEWPORT_TAG)
    if not RE_THEME_LINK.search(markup):
        head_additions.append(THEME_LINK_TAG)

    if head_additions:
        head_close = _HEAD_CLOSE_RE.search(markup)
        if head_close:
            injected = "".join(f"    {tag}\n" for tag in head_additions)
            markup = markup[: head_close.start()] + injected + markup[head_close.start() :]

    if not RE_HOME_LINK.search(markup):
        body_open = _BODY_OPEN_RE.search(markup)
        if body_open:
            insert_at = body_open.end()
            markup = markup[:insert_at] + f"\n    {HOME_LINK_TAG}" + markup[insert_at:]

    return markup


def _write_artifact(artifact_store: ArtifactStore | None, path: str, content: str) -> None:
    if artifact_store is None:
        return
    try:
        artifact_store.write(path, content)
        logger.info(f"Generated {path} ({len(content)} chars)")
    except (OSError, PublishError) as e:
        logger.error(f"Failed to write artifact {path}: {e}")


# =============================================================================
# Stage entry point
# =============================================================================


async def build_content(
    generate: GenerateFn,
    plan: Plan,
    attempt_number: int,
    prior_issues: Sequence[Issue] = (),
    artifact_store: ArtifactStore | None = None,
) -> BuildAttempt:
    """Generate the plan's files for one attempt.

    A failed companion-script generation is logged and leaves
    ``generated_script`` empty; the markup still counts.

    Raises:
        GenerationError: The markup generation failed or came back empty.
    """
    logger.info(f"Builder working (attempt {attempt_number}/{MAX_BUILD_ATTEMPTS})")

    response = await generate(
        AgentRole.BUILDER.value, build_builder_prompt(plan, attempt_number, prior_issues)
    )
    markup = clean_markdown_fences(response)
    if not markup:
        raise GenerationError(AgentRole.BUILDER.value, "markup was empty after cleaning")
    markup = ensure_essential_elements(markup)
    _write_artifact(artifact_store, plan.markup_path, markup)

    script = None
    if plan.script_path:
        try:
            script_response = await generate(
                AgentRole.BUILDER.value, build_script_prompt(plan), max_tokens=TOKENS_SCRIPT
            )
            script = clean_markdown_fences(script_response) or None
        except GenerationError as e:
            logger.warning(f"Companion script generation failed, keeping markup only: {e}")
        if script:
            _write_artifact(artifact_store, plan.script_path, script)

    return BuildAttempt(
        attempt_number=attempt_number,
        generated_markup=markup,
        generated_script=script,
    )
