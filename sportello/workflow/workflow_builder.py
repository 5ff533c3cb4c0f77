"""Turns a WorkflowSpec into a runnable Burr Application.

Also home to the hook that forwards stage boundaries to the runner's
``on_stage_start`` / ``on_stage_complete`` observers.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from burr.core import ApplicationBuilder
from burr.lifecycle import PostRunStepHook, PreRunStepHook
from burr.tracking import LocalTrackingClient

from sportello.workflow.workflow_specs import WorkflowSpec

logger = logging.getLogger(__name__)

StageStartFn = Callable[[str, int, int], None]
StageCompleteFn = Callable[[str, int, int, dict], None]


@dataclass
class StageObserverHook(PostRunStepHook, PreRunStepHook):
    """Reports each action to the observers as ``(stage, index, total, ...)``.

    ``index`` is the stage's position in ``stages``; actions outside it
    (``abandon``) report index 0. Observer exceptions are logged and dropped.
    """

    stages: Sequence[str] = field(default_factory=list)
    on_stage_start: StageStartFn | None = None
    on_stage_complete: StageCompleteFn | None = None

    def _position(self, stage: str) -> tuple[int, int]:
        index = self.stages.index(stage) if stage in self.stages else 0
        return index, max(len(self.stages), 1)

    def _notify(self, callback: Callable | None, *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.error(f"Stage observer {getattr(callback, '__name__', callback)} failed: {e}")

    def pre_run_step(self, *, action, **kwargs):
        index, total = self._position(action.name)
        logger.info(f"Stage {action.name} started ({index + 1}/{total})")
        self._notify(self.on_stage_start, action.name, index, total)

    def post_run_step(self, *, action, state, **kwargs):
        index, total = self._position(action.name)
        snapshot = {
            "status": state.get(f"{action.name}_status", "unknown"),
            "build_verdict": state.get("build_verdict"),
            "test_verdict": state.get("test_verdict"),
            "attempt": len(state.get("attempts") or []),
        }
        logger.info(f"Stage {action.name} finished (status={snapshot['status']})")
        self._notify(self.on_stage_complete, action.name, index, total, snapshot)


def _tracker_for(project: str):
    try:
        tracker = LocalTrackingClient(project=project)
    except (OSError, RuntimeError) as e:
        logger.warning(f"Could not enable Burr tracking for {project}: {e}")
        return None
    logger.info(f"Burr tracking enabled: {project}")
    return tracker


def build_workflow(
    spec: WorkflowSpec,
    initial_state: dict[str, Any],
    app_id: str,
    on_stage_start: StageStartFn | None = None,
    on_stage_complete: StageCompleteFn | None = None,
    enable_tracking: bool = False,
    hooks: Sequence[Any] = (),
) -> Any:
    """Build the Burr Application for one run of ``spec``.

    Args:
        spec: Workflow specification.
        initial_state: Run-specific state (request, collaborators, limits),
            layered over the spec's defaults.
        app_id: Burr app ID; the runner passes the build ID.
        on_stage_start: Observer called before each action.
        on_stage_complete: Observer called after each action.
        enable_tracking: Record the run in the local Burr tracking UI.
        hooks: Extra Burr lifecycle hooks (build logging).
    """
    # Collaborators (generate, validator, publisher, stores) are live objects
    # in state, so runs are never persisted by Burr.
    state = {**spec.build_default_state(), **initial_state}

    observer = StageObserverHook(
        stages=spec.stages,
        on_stage_start=on_stage_start,
        on_stage_complete=on_stage_complete,
    )
    builder = (
        ApplicationBuilder()
        .with_actions(**spec.actions)
        .with_transitions(*spec.transitions)
        .with_state(**state)
        .with_entrypoint(spec.entrypoint)
        .with_hooks(observer, *hooks)
        .with_identifiers(app_id=app_id)
    )
    if enable_tracking:
        tracker = _tracker_for(spec.tracking_project)
        if tracker is not None:
            builder = builder.with_tracker(tracker)

    logger.debug(f"Built workflow {spec.name} (app_id={app_id})")
    return builder.build()
