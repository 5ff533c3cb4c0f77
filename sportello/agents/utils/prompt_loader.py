"""System prompts for the pipeline agents.

Each role ships ``worker_<role>/worker_<role>_prompt.txt`` inside the
``sportello.agents`` package. Prompts are read once per process.
"""

import logging
from functools import lru_cache
from pathlib import Path

logger = logging.getLogger(__name__)

AGENTS_DIR = Path(__file__).resolve().parent.parent

# Roles with a prompt directory shipped in this package
AVAILABLE_AGENTS = sorted(path.name for path in AGENTS_DIR.glob("worker_*") if path.is_dir())


class PromptLoadError(Exception):
    """A prompt file is missing or unreadable."""


def _normalize_agent_name(agent_name: str) -> str:
    """Map ``builder``, ``builder_agent`` and ``worker_builder`` to ``worker_builder``."""
    name = agent_name.removesuffix("_agent")
    return name if name.startswith("worker_") else f"worker_{name}"


@lru_cache(maxsize=None)
def _read_prompt(prompt_key: str) -> str:
    prompt_file = AGENTS_DIR / prompt_key / f"{prompt_key}_prompt.txt"
    try:
        text = prompt_file.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise PromptLoadError(
            f"Prompt file not found for agent '{prompt_key}'. Expected file: {prompt_file}"
        ) from None
    except OSError as e:
        raise PromptLoadError(f"Could not read prompt file {prompt_file}: {e}") from e
    logger.info(f"Loaded prompt for '{prompt_key}' from {prompt_file}")
    return text


def load_agent_prompt(agent_name: str) -> str:
    """Return the system prompt for a role.

    Raises:
        PromptLoadError: If the prompt file cannot be found or read.
    """
    try:
        return _read_prompt(_normalize_agent_name(agent_name))
    except PromptLoadError as e:
        logger.error(str(e))
        raise


def clear_prompt_cache() -> None:
    """Forget cached prompts so edited files are re-read."""
    _read_prompt.cache_clear()
