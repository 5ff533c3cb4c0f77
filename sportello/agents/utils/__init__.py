"""Prompt loading and model construction for the pipeline agents."""

from sportello.agents.utils.prompt_loader import (
    AVAILABLE_AGENTS,
    PromptLoadError,
    clear_prompt_cache,
    load_agent_prompt,
)

__all__ = [
    "AVAILABLE_AGENTS",
    "PromptLoadError",
    "clear_prompt_cache",
    "load_agent_prompt",
]
