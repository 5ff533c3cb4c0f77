"""Burr-based build pipeline for Sportello.

The policy table, models, normalizer, validators and scorer are plain
Python with no engine dependency. The Burr state machine and its runner
load lazily on first access.
"""

from .models import (
    PIPELINE_STAGES,
    BuildAttempt,
    BuildResult,
    Documentation,
    Issue,
    Plan,
    PlanMetadata,
    ValidationReport,
)
from .pattern_policy import PATTERN_POLICY, PageFeature, PatternRule, get_pattern_rule
from .plan_normalizer import PlanValidationError, normalize_plan
from .request_classifier import is_content_request
from .scoring import score_issues, should_retry


# Lazy import for Burr-dependent modules
def __getattr__(name):
    """Lazy import for Burr-dependent modules."""
    if name in ("BuildPipelineRunner", "BUILD_PIPELINE_SPEC"):
        from .burr_workflow import BuildPipelineRunner
        from .workflow_specs import BUILD_PIPELINE_SPEC

        if name == "BuildPipelineRunner":
            return BuildPipelineRunner
        return BUILD_PIPELINE_SPEC
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    # Burr workflow (lazy loaded)
    "BUILD_PIPELINE_SPEC",
    "BuildPipelineRunner",
    # Models
    "PIPELINE_STAGES",
    "BuildAttempt",
    "BuildResult",
    "Documentation",
    "Issue",
    "Plan",
    "PlanMetadata",
    "ValidationReport",
    # Policy, normalizer, scoring
    "PATTERN_POLICY",
    "PageFeature",
    "PatternRule",
    "PlanValidationError",
    "get_pattern_rule",
    "is_content_request",
    "normalize_plan",
    "score_issues",
    "should_retry",
]
