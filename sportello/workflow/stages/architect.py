"""Architect stage: request text to a normalized ``Plan``."""

import logging

from sportello.agents.output_utils import extract_structured
from sportello.config import AgentRole, ContentType
from sportello.workflow.agent_runner import GenerateFn
from sportello.workflow.models import Plan
from sportello.workflow.plan_normalizer import normalize_plan

logger = logging.getLogger(__name__)


def build_architect_prompt(
    request: str,
    recent_patterns: str,
    preferred_type: ContentType | str | None = None,
) -> str:
    """Render the planning request.

    Args:
        request: The user's free-form request.
        recent_patterns: Summary of recurring issues from recent builds.
        preferred_type: Optional content-type hint from the caller.
    """
    parts = [f"User request: {request}"]
    if preferred_type:
        hint = preferred_type.value if isinstance(preferred_type, ContentType) else preferred_type
        parts.append(f"Preferred type: {hint}")
    parts.append(f"Recent patterns and issues to avoid:\n{recent_patterns}")
    parts.append(
        "Plan a simple, mobile-first page that satisfies this request. "
        "Return a complete JSON plan."
    )
    return "\n\n".join(parts)


async def plan_content(
    generate: GenerateFn,
    request: str,
    recent_patterns: str,
    preferred_type: ContentType | str | None = None,
) -> Plan:
    """Ask the Architect for a plan and normalize it.

    Raises:
        GenerationError: The generate call failed.
        StructuredOutputError: The response held no JSON object.
        PlanValidationError: The JSON object is not a usable plan.
    """
    prompt = build_architect_prompt(request, recent_patterns, preferred_type)
    response = await generate(AgentRole.ARCHITECT.value, prompt)
    plan = normalize_plan(extract_structured(response))

    logger.info(
        f"Plan created: {plan.metadata.title} ({plan.content_type.value}, "
        f"{plan.interaction_pattern.value})"
    )
    logger.info(f"Files: {', '.join(plan.files)} | Collection: {plan.metadata.collection.value}")
    return plan
