"""Strands hooks that time each generate call and tag its span.

Injected by ``agent_factory``; observational only.
"""

import logging
import time

from opentelemetry import trace
from strands.hooks import (
    AfterInvocationEvent,
    BeforeInvocationEvent,
    HookProvider,
    HookRegistry,
)

logger = logging.getLogger(__name__)


class SportelloAgentHooks(HookProvider):
    """Per-role timing, token usage and stop reason for one agent.

    Args:
        role: Pipeline role the agent plays (architect, builder, ...).
    """

    def __init__(self, role: str | None = None):
        self.role = role
        self._started: float | None = None
        self.execution_time: float = 0.0

    def register_hooks(self, registry: HookRegistry, **kwargs) -> None:
        registry.add_callback(BeforeInvocationEvent, self._started_call)
        registry.add_callback(AfterInvocationEvent, self._finished_call)

    def _started_call(self, event: BeforeInvocationEvent) -> None:
        self._started = time.monotonic()
        logger.debug(f"[{self.role or 'agent'}] generate call started")

    def _finished_call(self, event: AfterInvocationEvent) -> None:
        self.execution_time = time.monotonic() - (self._started or time.monotonic())
        label = self.role or getattr(event.agent, "name", "agent")

        if not event.result:
            logger.warning(
                f"[{label}] generate call returned no result after {self.execution_time:.1f}s"
            )
            return

        stop_reason = str(getattr(event.result, "stop_reason", "unknown"))
        usage = self._usage(event.result)
        logger.info(
            f"[{label}] generate call finished in {self.execution_time:.1f}s "
            f"(stop_reason={stop_reason}, output_tokens={usage.get('outputTokens', '?')})"
        )

        span = trace.get_current_span()
        span.set_attribute("agent.role", label)
        span.set_attribute("agent.execution_time_seconds", self.execution_time)
        span.set_attribute("agent.stop_reason", stop_reason)
        for key in ("inputTokens", "outputTokens"):
            if key in usage:
                span.set_attribute(f"agent.usage.{key}", usage[key])

    @staticmethod
    def _usage(result) -> dict:
        metrics = getattr(result, "metrics", None)
        usage = getattr(metrics, "accumulated_usage", None)
        return usage if isinstance(usage, dict) else {}
