"""Scribe stage: reconciled metadata and release notes.

Never fails the pipeline. By the time it runs the content exists, so any
generation or parsing fault falls back to the plan's own metadata.
"""

import logging

from pydantic import ValidationError

from sportello.agents.output_utils import StructuredOutputError, extract_structured
from sportello.config import AgentRole
from sportello.workflow.agent_runner import GenerateFn, GenerationError
from sportello.workflow.models import BuildAttempt, Documentation, Issue, Plan, PlanMetadata

logger = logging.getLogger(__name__)


def build_scribe_prompt(plan: Plan, attempt: BuildAttempt | None) -> str:
    score = attempt.score if attempt and attempt.score is not None else "n/a"
    game_hint = "3. Brief \"How to play\" instructions\n" if plan.is_game else ""
    return f"""Generate documentation for: {plan.metadata.title}

Type: {plan.content_type.value}
Features: {", ".join(plan.features)}
Files: {", ".join(plan.files)}
Test score: {score}/100

Generate:
1. Refined metadata entry for the project registry
2. Short release notes (2-3 sentences)
{game_hint}
Return as JSON."""


def fallback_documentation(plan: Plan) -> Documentation:
    """Documentation built from the plan alone."""
    return Documentation(
        metadata=plan.metadata,
        release_notes=f"built {plan.metadata.title} - should work smooth",
        fallback=True,
    )


def parse_documentation(data: dict, plan: Plan) -> Documentation:
    """Merge a Scribe reply over the plan metadata.

    Missing fields keep the plan's values; the collection always comes from
    the plan.
    """
    raw_metadata = data.get("metadata")
    if not isinstance(raw_metadata, dict):
        raw_metadata = {}

    metadata = PlanMetadata(
        title=str(raw_metadata.get("title") or plan.metadata.title),
        icon=str(raw_metadata.get("icon") or plan.metadata.icon),
        description=str(raw_metadata.get("description") or plan.metadata.description),
        collection=plan.metadata.collection,
    )
    how_to_play = data.get("howToPlay")
    release_notes = data.get("releaseNotes") or f"built {plan.metadata.title} - check it out"
    return Documentation(
        metadata=metadata,
        release_notes=str(release_notes),
        how_to_play=str(how_to_play) if how_to_play else None,
    )


async def document_content(
    generate: GenerateFn,
    plan: Plan,
    attempt: BuildAttempt | None,
    outstanding: list[Issue] | None = None,
) -> Documentation:
    """Produce documentation for the shipped attempt.

    Args:
        generate: The generate capability.
        plan: The run's plan.
        attempt: The attempt whose artifact ships.
        outstanding: Findings left on a degraded build; recorded as known issues.
    """
    logger.info("Scribe generating docs...")
    try:
        response = await generate(AgentRole.SCRIBE.value, build_scribe_prompt(plan, attempt))
        docs = parse_documentation(extract_structured(response), plan)
        logger.info(f'Documentation complete. Caption: "{docs.metadata.description}"')
    except (GenerationError, StructuredOutputError, ValidationError) as e:
        logger.warning(f"Scribe failed, falling back to plan metadata: {e}")
        docs = fallback_documentation(plan)

    if outstanding:
        known_issues = [f"[{i.severity.value}] {i.code}: {i.message}" for i in outstanding]
        docs = docs.model_copy(update={"known_issues": known_issues})
    return docs
