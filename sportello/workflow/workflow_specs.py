"""Declarative workflow specifications.

A WorkflowSpec defines a workflow as data: actions, transitions, state keys.
The shared ``build_workflow()`` in ``workflow_builder.py`` turns a spec into
a Burr Application.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from burr.core import default, when

from .burr_actions import (
    VERDICT_ABANDONED,
    VERDICT_EXHAUSTED,
    VERDICT_RETRY,
    abandon,
    architect,
    build,
    persist,
    scribe,
    test,
)


@dataclass
class WorkflowSpec:
    """Declarative workflow definition.

    Attributes:
        name: Workflow name, used for spans and app IDs.
        actions: Mapping of action name to Burr action callable.
        transitions: List of Burr transition tuples.
        entrypoint: Name of the first action.
        tracking_project: Burr tracking project name.
        stages: Ordered action names (progress tracking). Each gets a
            ``{stage}_status: "pending"`` state key.
        halt_after: Terminal action names.
        extra_state_keys: Additional state keys that default to "".
        null_state_keys: State keys that default to None.
        list_state_keys: State keys that default to an empty list.
    """

    name: str
    actions: dict[str, Callable]
    transitions: list[tuple]
    entrypoint: str
    tracking_project: str
    stages: list[str]
    halt_after: list[str]
    extra_state_keys: list[str] = field(default_factory=list)
    null_state_keys: list[str] = field(default_factory=list)
    list_state_keys: list[str] = field(default_factory=list)

    def build_default_state(self) -> dict[str, Any]:
        """Build the default state dict for this workflow.

        Returns:
            Dict of state key to default value.
        """
        state: dict[str, Any] = {}
        for stage in self.stages:
            state[f"{stage}_status"] = "pending"
        for key in self.extra_state_keys:
            state.setdefault(key, "")
        for key in self.null_state_keys:
            state[key] = None
        for key in self.list_state_keys:
            state[key] = []
        return state


# ---------------------------------------------------------------------------
# Workflow Spec Definitions
# ---------------------------------------------------------------------------

BUILD_PIPELINE_SPEC = WorkflowSpec(
    name="content-build",
    actions={
        "architect": architect,
        "build": build,
        "test": test,
        "scribe": scribe,
        "persist": persist,
        "abandon": abandon,
    },
    transitions=[
        ("architect", "abandon", when(architect_status="failed")),
        ("architect", "build", default),
        ("build", "abandon", when(build_verdict=VERDICT_ABANDONED)),
        ("build", "build", when(build_verdict=VERDICT_RETRY)),
        ("build", "scribe", when(build_verdict=VERDICT_EXHAUSTED)),
        ("build", "test", default),
        ("test", "build", when(test_verdict=VERDICT_RETRY)),
        ("test", "scribe", default),
        ("scribe", "persist"),
    ],
    entrypoint="architect",
    tracking_project="sportello-builds",
    stages=["architect", "build", "test", "scribe", "persist"],
    halt_after=["persist", "abandon"],
    extra_state_keys=["current_stage", "build_verdict", "test_verdict"],
    null_state_keys=["plan", "documentation", "error"],
    list_state_keys=["attempts", "prior_issues"],
)

WORKFLOW_SPECS: dict[str, WorkflowSpec] = {
    BUILD_PIPELINE_SPEC.name: BUILD_PIPELINE_SPEC,
}
