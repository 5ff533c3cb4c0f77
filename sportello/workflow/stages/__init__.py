"""Stage functions for the build pipeline.

Each module holds the domain logic of one stage; the Burr actions in
:mod:`sportello.workflow.burr_actions` only move values in and out of state.
"""

from .architect import build_architect_prompt, plan_content
from .builder import (
    build_builder_prompt,
    build_content,
    build_script_prompt,
    ensure_essential_elements,
    format_feedback,
)
from .scribe import (
    build_scribe_prompt,
    document_content,
    fallback_documentation,
    parse_documentation,
)
from .tester import evaluate_attempt

__all__ = [
    "build_architect_prompt",
    "build_builder_prompt",
    "build_content",
    "build_scribe_prompt",
    "build_script_prompt",
    "document_content",
    "ensure_essential_elements",
    "evaluate_attempt",
    "fallback_documentation",
    "format_feedback",
    "parse_documentation",
    "plan_content",
]
