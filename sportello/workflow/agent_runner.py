"""The ``generate`` capability used by every pipeline stage.

Stages depend only on the ``GenerateFn`` shape: an async callable taking a
role and a prompt and returning text, raising ``GenerationError`` on any
failure. ``AgentGenerator`` is the production implementation backed by
Strands agents; tests substitute plain async functions.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

from sportello.agents.output_utils import extract_text_from_result
from sportello.agents.utils.prompt_loader import PromptLoadError
from sportello.config import DEFAULT_GENERATE_TIMEOUT

logger = logging.getLogger(__name__)


class GenerateFn(Protocol):
    """``generate(role, prompt) -> text``; may be slow, may fail."""

    def __call__(
        self, role: str, prompt: str, *, max_tokens: int | None = None
    ) -> Awaitable[str]: ...


class GenerationError(RuntimeError):
    """A generate call failed: timeout, empty response or provider fault."""

    def __init__(self, role: str, message: str, timed_out: bool = False):
        super().__init__(f"{role} generation failed: {message}")
        self.role = role
        self.timed_out = timed_out


# =============================================================================
# Error Handling Helpers
# =============================================================================


def _is_token_limit_error(error: Exception) -> bool:
    """Check if an error is a token/context limit error from the provider."""
    error_str = str(error).lower()

    token_limit_indicators = [
        "maxtoken",
        "max_token",
        "context length",
        "context_length_exceeded",
        "too long",
        "exceeds the max",
        "input is too long",
        "input too large",
    ]

    return any(indicator in error_str for indicator in token_limit_indicators)


_TRANSIENT_INDICATORS = [
    "response ended prematurely",
    "connection reset",
    "connection aborted",
    "broken pipe",
    "timed out",
    "read timed out",
    "network is unreachable",
    "internal server error",
    "rate limit",
    "overloaded",
]

_MAX_RETRIES = 2
_RETRY_DELAY_SECONDS = 5


def _is_transient_error(error: Exception) -> bool:
    """Check if an error is a transient network error worth retrying.

    Walks the full exception chain (__cause__) to catch errors wrapped
    by the Strands SDK's EventLoopException.
    """
    parts = [str(error).lower()]
    cause = error.__cause__
    while cause:
        parts.append(str(cause).lower())
        cause = cause.__cause__
    combined = " ".join(parts)
    return any(indicator in combined for indicator in _TRANSIENT_INDICATORS)


def _get_user_friendly_error(error: Exception, role: str) -> str:
    if _is_token_limit_error(error):
        return (
            f"Token limit exceeded for {role}. The request or plan may be too long, "
            "or DEFAULT_MAX_TOKENS is too small for a full page."
        )
    return str(error)


# =============================================================================
# Agent-backed generator
# =============================================================================


class AgentGenerator:
    """``GenerateFn`` backed by one fresh Strands agent per call.

    Args:
        timeout: Wall-clock limit for a single call, retries excluded.
        agent_factory: Callable building an agent for a role; defaults to
            ``create_agent_by_name``.
        trace_attributes: Extra OpenTelemetry attributes for every agent.
        retry_delay: Seconds to wait before retrying a transient error.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_GENERATE_TIMEOUT,
        agent_factory: Callable[..., Any] | None = None,
        trace_attributes: dict[str, Any] | None = None,
        retry_delay: float = _RETRY_DELAY_SECONDS,
    ):
        if agent_factory is None:
            from sportello.agents.factory import create_agent_by_name

            agent_factory = create_agent_by_name
        self.timeout = timeout
        self._agent_factory = agent_factory
        self._trace_attributes = trace_attributes or {}
        self._retry_delay = retry_delay

    async def __call__(self, role: str, prompt: str, *, max_tokens: int | None = None) -> str:
        start_time = time.time()
        try:
            agent = self._agent_factory(
                role,
                max_tokens_override=max_tokens,
                trace_attributes=self._trace_attributes,
            )
        except (ValueError, PromptLoadError) as e:
            raise GenerationError(role, f"could not create agent: {e}") from e

        logger.info(f"Running {role} with prompt length: {len(prompt)}")

        # Retry loop for transient network errors (e.g. stream drops).
        for attempt in range(_MAX_RETRIES + 1):
            try:
                result = await asyncio.wait_for(agent.invoke_async(prompt), timeout=self.timeout)
                break
            except TimeoutError as e:
                logger.error(f"{role} generation timed out after {self.timeout:.0f}s")
                raise GenerationError(
                    role, f"timed out after {self.timeout:.0f}s", timed_out=True
                ) from e
            except Exception as e:
                if (
                    attempt < _MAX_RETRIES
                    and _is_transient_error(e)
                    and not _is_token_limit_error(e)
                ):
                    logger.warning(
                        "%s transient error (attempt %d/%d): %s. Retrying in %ss...",
                        role,
                        attempt + 1,
                        _MAX_RETRIES + 1,
                        e,
                        self._retry_delay,
                    )
                    await asyncio.sleep(self._retry_delay)
                    continue
                logger.error(
                    f"{role} generation failed: {e}",
                    extra={"role": role, "error_type": type(e).__name__},
                )
                raise GenerationError(role, _get_user_friendly_error(e, role)) from e

        output_text = extract_text_from_result(result)
        if not output_text:
            raise GenerationError(role, "model returned empty output")

        logger.info(
            f"{role} produced {len(output_text)} chars in {time.time() - start_time:.1f}s"
        )
        return output_text
