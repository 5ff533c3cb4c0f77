"""
Builds the Strands agent behind each pipeline role.

Every role (architect, builder, tester, scribe) goes through the same path:
its ``AgentConfig`` from ``sportello/config.py`` picks the prompt, model
tier, token budget and timeouts.
"""

import logging
from dataclasses import replace
from typing import Any

from strands import Agent

from sportello.agents.hooks import SportelloAgentHooks
from sportello.agents.utils.model_provider import create_model, get_model_id_for_tier
from sportello.agents.utils.prompt_loader import load_agent_prompt
from sportello.config import AGENT_CONFIGS

logger = logging.getLogger(__name__)


def create_agent_by_name(
    agent_name: str,
    model_id: str | None = None,
    max_tokens_override: int | None = None,
    trace_attributes: dict[str, Any] | None = None,
) -> Agent:
    """
    Create a fresh single-turn agent for a pipeline role.

    Args:
        agent_name: Role name ('architect', 'builder', 'tester' or 'scribe')
        model_id: Model ID override; resolved from the role's tier otherwise
        max_tokens_override: Token budget override (companion scripts get
            less than full pages)
        trace_attributes: Extra OpenTelemetry attributes such as ``build.id``

    Raises:
        ValueError: If the role is unknown or no model can be resolved
        PromptLoadError: If the role's prompt file cannot be loaded
    """
    config = AGENT_CONFIGS.get(agent_name)
    if config is None:
        raise ValueError(
            f"Unknown agent name: {agent_name}. Available agents: {', '.join(AGENT_CONFIGS)}"
        )
    if max_tokens_override is not None:
        config = replace(config, max_tokens=max_tokens_override)

    model_settings = {
        "model_id": model_id or get_model_id_for_tier(config.model_tier.value),
        "max_tokens": config.max_tokens,
        "temperature": config.temperature,
        **config.timeout_config.to_dict(),
    }
    if config.streaming is not None:
        model_settings["streaming"] = config.streaming

    agent = Agent(
        system_prompt=load_agent_prompt(config.prompt_key),
        name=config.name,
        model=create_model(**model_settings),
        hooks=[SportelloAgentHooks(role=agent_name)],
        # No console streaming; the runner reads the final result only
        callback_handler=None,
        trace_attributes={"agent.name": agent_name, **(trace_attributes or {})},
    )
    logger.debug(
        f"Created {config.name}: model={model_settings['model_id']}, "
        f"max_tokens={config.max_tokens}"
    )
    return agent
