"""Burr Workflow Runner for the build pipeline.

``BuildPipelineRunner`` is the high-level execution layer: it builds the
Burr application for one request, runs it to a terminal action, and folds
the final state into a ``BuildResult``. Nothing escapes ``run()``; every
failure ends as a named outcome on the result.
"""

import logging
import time
import uuid
from collections.abc import Callable
from typing import Any

from burr.core import State

from sportello.config import ContentType, FinalOutcome, PipelineSettings, StageStatus
from sportello.publishing import SiteRepository, SiteRepositoryPublisher
from sportello.publishing.publisher import ArtifactStore, Publisher
from sportello.telemetry import workflow_span

from .agent_runner import AgentGenerator, GenerateFn
from .build_logs import BuildLogHook, BuildLogStore
from .burr_actions import final_outcome_for
from .models import PIPELINE_STAGES, BuildResult
from .validators import MarkupValidator, SemanticReviewer
from .workflow_builder import build_workflow
from .workflow_specs import BUILD_PIPELINE_SPEC

logger = logging.getLogger(__name__)

# BuildResult stage name -> Burr status key
STAGE_STATUS_KEYS = dict(
    zip(
        PIPELINE_STAGES,
        ("architect_status", "build_status", "test_status", "scribe_status", "persist_status"),
        strict=True,
    )
)


def new_build_id() -> str:
    return f"build-{uuid.uuid4().hex[:8]}"


class BuildPipelineRunner:
    """Runs Architect, Builder/Tester loop, Scribe and Persist for a request.

    Args:
        generate: The ``generate(role, prompt)`` capability.
        publisher: Persist capability; ``None`` skips persisting.
        artifact_store: Where each attempt's files are written as they are built.
        settings: Runtime settings (attempt limit, semantic tier, base URL...).
        log_store: Build-log directory; ``None`` disables build logs.
        validator: Override the validator built from ``settings``.
        on_stage_start: Callback ``(stage, index, total)``.
        on_stage_complete: Callback ``(stage, index, total, result)``.
        enable_tracking: Enable the Burr tracking UI.
    """

    def __init__(
        self,
        generate: GenerateFn,
        publisher: Publisher | None = None,
        artifact_store: ArtifactStore | None = None,
        settings: PipelineSettings | None = None,
        log_store: BuildLogStore | None = None,
        validator: MarkupValidator | None = None,
        on_stage_start: Callable | None = None,
        on_stage_complete: Callable | None = None,
        enable_tracking: bool = False,
    ):
        self.generate = generate
        self.publisher = publisher
        self.artifact_store = artifact_store
        self.settings = settings or PipelineSettings()
        self.log_store = log_store
        if validator is None:
            reviewer = SemanticReviewer(generate) if self.settings.semantic_validation else None
            validator = MarkupValidator(semantic_reviewer=reviewer)
        self.validator = validator
        self.on_stage_start = on_stage_start
        self.on_stage_complete = on_stage_complete
        self.enable_tracking = enable_tracking

    @classmethod
    def from_settings(cls, settings: PipelineSettings, **kwargs: Any) -> "BuildPipelineRunner":
        """Wire the production collaborators: agents, site repository, build logs."""
        repository = SiteRepository(settings.site_root)
        kwargs.setdefault("generate", AgentGenerator(timeout=settings.generate_timeout))
        kwargs.setdefault("publisher", SiteRepositoryPublisher(repository))
        kwargs.setdefault("artifact_store", repository)
        kwargs.setdefault("log_store", BuildLogStore(settings.log_dir))
        return cls(settings=settings, **kwargs)

    def create_workflow(
        self,
        request: str,
        build_id: str,
        preferred_type: ContentType | str | None = None,
    ) -> Any:
        """Build the Burr application for one request."""
        hooks = []
        if self.log_store is not None:
            hooks.append(BuildLogHook(log_store=self.log_store, build_id=build_id))

        initial_state = {
            "request": request,
            "preferred_type": preferred_type,
            "build_id": build_id,
            "max_attempts": self.settings.max_attempts,
            "min_accept_score": self.settings.min_accept_score,
            "persisted": False,
            "generate": self.generate,
            "validator": self.validator,
            "publisher": self.publisher,
            "artifact_store": self.artifact_store,
            "log_store": self.log_store,
        }
        return build_workflow(
            BUILD_PIPELINE_SPEC,
            initial_state,
            app_id=build_id,
            on_stage_start=self.on_stage_start,
            on_stage_complete=self.on_stage_complete,
            enable_tracking=self.enable_tracking,
            hooks=hooks,
        )

    async def run(
        self,
        request: str,
        preferred_type: ContentType | str | None = None,
    ) -> BuildResult:
        """Run the pipeline to completion.

        Args:
            request: The user's free-form request.
            preferred_type: Optional content-type hint for the Architect.

        Returns:
            The terminal ``BuildResult``.
        """
        start_time = time.time()
        build_id = new_build_id()

        with workflow_span(
            workflow_name=BUILD_PIPELINE_SPEC.name,
            request=request,
            build_id=build_id,
        ) as span:
            try:
                app = self.create_workflow(request, build_id, preferred_type)

                logger.info("=" * 60)
                logger.info("BUILD PIPELINE STARTED")
                logger.info(f"Build ID: {build_id}")
                logger.info(f"Request provided (length={len(request)})")
                logger.info("=" * 60)

                final_action, _, final_state = await app.arun(
                    halt_after=BUILD_PIPELINE_SPEC.halt_after,
                    inputs={},
                )
                result = self._build_result(
                    build_id, request, final_action.name, final_state, time.time() - start_time
                )

            except Exception as e:  # Intentional catch-all: top-level pipeline boundary
                logger.error(f"Build pipeline failed: {e}", exc_info=True)
                result = BuildResult(
                    build_id=build_id,
                    request=request,
                    final_outcome=FinalOutcome.ABANDONED,
                    stage_statuses={stage: StageStatus.SKIPPED for stage in PIPELINE_STAGES},
                    error=str(e),
                    duration_seconds=time.time() - start_time,
                )

            span.set_attribute("workflow.duration_seconds", result.duration_seconds)
            span.set_attribute("workflow.outcome", result.final_outcome.value)
            span.set_attribute("workflow.attempts", len(result.attempts))
            span.set_attribute("workflow.persisted", result.persisted)

        self._log_completion(result)
        return result

    def _build_result(
        self,
        build_id: str,
        request: str,
        final_action: str,
        state: State,
        duration: float,
    ) -> BuildResult:
        attempts = list(state["attempts"])
        outcome = final_outcome_for(attempts, abandoned=final_action == "abandon")

        stage_statuses = {}
        for stage, key in STAGE_STATUS_KEYS.items():
            status = StageStatus(state.get(key, StageStatus.PENDING.value))
            stage_statuses[stage] = StageStatus.SKIPPED if status is StageStatus.PENDING else status

        plan = state.get("plan")
        persisted = bool(state.get("persisted"))
        live_url = None
        if persisted and plan is not None and self.settings.site_base_url:
            live_url = f"{self.settings.site_base_url.rstrip('/')}/{plan.markup_path}"

        return BuildResult(
            build_id=build_id,
            request=request,
            plan=plan,
            attempts=attempts,
            final_outcome=outcome,
            stage_statuses=stage_statuses,
            documentation=state.get("documentation"),
            persisted=persisted,
            live_url=live_url,
            error=None if outcome is FinalOutcome.OK else state.get("error"),
            duration_seconds=duration,
        )

    def _log_completion(self, result: BuildResult) -> None:
        logger.info("=" * 60)
        logger.info(f"BUILD PIPELINE FINISHED: {result.final_outcome.value.upper()}")
        logger.info(f"Attempts: {len(result.attempts)} | Score: {result.final_score}")
        logger.info(f"State: {result.terminal_state} | Time: {result.duration_seconds:.1f}s")
        if result.error:
            logger.info(f"Error: {result.error}")
        logger.info("=" * 60)

        if self.log_store is not None:
            self.log_store.append(
                result.build_id,
                {
                    "stage": "complete",
                    "final_outcome": result.final_outcome.value,
                    "attempts": len(result.attempts),
                    "score": result.final_score,
                    "persisted": result.persisted,
                    "duration": f"{result.duration_seconds:.1f}s",
                    "error": result.error,
                },
            )
