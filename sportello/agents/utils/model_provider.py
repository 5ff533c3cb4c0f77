"""Model construction for the pipeline agents.

``LLM_PROVIDER`` picks the backend (``bedrock`` when unset). Every backend
resolves a model ID the same way:

  1. the explicit ``model_id`` argument
  2. ``{PROVIDER}_{TIER}_MODEL_ID`` (e.g. ``OPENROUTER_HEAVY_MODEL_ID``)
  3. for the reasoning tier, ``{PROVIDER}_HEAVY_MODEL_ID``
  4. the built-in default in ``PROVIDER_DEFAULTS``

Bedrock ships with the core install. Anthropic and the OpenAI-compatible
backends (OpenAI, OpenRouter) are extras imported on first use.

AWS credentials come from boto3's standard chain; set ``AWS_PROFILE`` to
pick a profile and ``AWS_REGION`` for the Bedrock region.
"""

import logging
import os
from collections.abc import Callable
from enum import Enum
from typing import Any

from botocore.config import Config
from strands.models.bedrock import BedrockModel

logger = logging.getLogger(__name__)

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

DEFAULT_MAX_TOKENS = 5000


class LLMProvider(Enum):
    """Supported LLM backends."""

    BEDROCK = "bedrock"
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    OPENROUTER = "openrouter"


# Fallback model per provider and tier
PROVIDER_DEFAULTS: dict[LLMProvider, dict[str, str]] = {
    LLMProvider.BEDROCK: {
        "reasoning": "anthropic.claude-3-5-sonnet-20241022-v2:0",
        "heavy": "anthropic.claude-3-5-sonnet-20241022-v2:0",
        "light": "anthropic.claude-3-5-sonnet-20241022-v2:0",
    },
    LLMProvider.ANTHROPIC: {
        "reasoning": "claude-sonnet-4-20250514",
        "heavy": "claude-sonnet-4-20250514",
        "light": "claude-3-5-haiku-20241022",
    },
    LLMProvider.OPENAI: {
        "reasoning": "o3-mini",
        "heavy": "gpt-4o",
        "light": "gpt-4o-mini",
    },
    LLMProvider.OPENROUTER: {
        "reasoning": "moonshotai/kimi-k2.5",
        "heavy": "moonshotai/kimi-k2.5",
        "light": "z-ai/glm-4.6:exacto",
    },
}

_TIERS = ("reasoning", "heavy", "light")


def get_active_provider() -> LLMProvider:
    """Return the provider named by ``LLM_PROVIDER``.

    Raises:
        ValueError: If the value is not a known provider.
    """
    raw = os.getenv("LLM_PROVIDER", LLMProvider.BEDROCK.value).strip().lower()
    try:
        return LLMProvider(raw)
    except ValueError:
        valid = ", ".join(p.value for p in LLMProvider)
        raise ValueError(f"Unknown LLM_PROVIDER '{raw}'. Valid options: {valid}") from None


def _tier_env_key(provider: LLMProvider, tier: str) -> str:
    return f"{provider.value.upper()}_{tier.upper()}_MODEL_ID"


def get_model_id_for_tier(tier: str) -> str:
    """Resolve the model ID for ``tier`` under the active provider.

    Raises:
        ValueError: If the tier is unknown.
    """
    if tier not in _TIERS:
        raise ValueError(f"Invalid tier '{tier}'. Must be one of: {', '.join(sorted(_TIERS))}")

    provider = get_active_provider()
    env_key = _tier_env_key(provider, tier)
    model_id = os.getenv(env_key)
    if model_id:
        return model_id

    if tier == "reasoning":
        heavy_key = _tier_env_key(provider, "heavy")
        model_id = os.getenv(heavy_key)
        if model_id:
            logger.warning("%s not set, falling back to %s", env_key, heavy_key)
            return model_id

    model_id = PROVIDER_DEFAULTS[provider][tier]
    logger.info("Using default model for %s/%s: %s", provider.value, tier, model_id)
    return model_id


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


def _create_bedrock(
    model_id: str,
    max_tokens: int,
    streaming: bool,
    temperature: float,
    read_timeout: float = 300.0,
    connect_timeout: float = 60.0,
    region_name: str | None = None,
    **kwargs: Any,
) -> BedrockModel:
    # Page generations stream for minutes, far past boto3's 60s read default
    region_name = region_name or os.getenv("AWS_REGION")
    if not region_name:
        raise ValueError("AWS_REGION is not set. Please configure it in your .env file.")

    # Transport-level retries only; dropped streams are retried by the generator
    client_config = Config(
        read_timeout=read_timeout,
        connect_timeout=connect_timeout,
        retries={"max_attempts": 3, "mode": "standard"},
    )
    logger.debug(
        f"Bedrock client: region={region_name}, read_timeout={read_timeout}s, "
        f"connect_timeout={connect_timeout}s"
    )
    return BedrockModel(
        model_id=model_id,
        region_name=region_name,
        boto_client_config=client_config,
        streaming=streaming,
        temperature=temperature,
        max_tokens=max_tokens,
        **kwargs,
    )


def _create_anthropic(
    model_id: str, max_tokens: int, streaming: bool, temperature: float, **transport: Any
):
    try:
        from strands.models.anthropic import AnthropicModel
    except ImportError as e:
        raise ImportError(
            "The anthropic provider needs the 'anthropic' extra: "
            "pip install 'sportello[anthropic]'"
        ) from e

    api_key = os.getenv("ANTHROPIC_API_KEY")
    return AnthropicModel(
        client_args={"api_key": api_key} if api_key else None,
        model_id=model_id,
        max_tokens=max_tokens,
        params={"temperature": temperature},
    )


def _openai_compatible(label: str, model_id: str, params: dict, client_args: dict):
    try:
        from strands.models.openai import OpenAIModel
    except ImportError as e:
        raise ImportError(
            f"The {label} provider needs the 'openai' extra: pip install 'sportello[openai]'"
        ) from e
    return OpenAIModel(client_args=client_args or None, model_id=model_id, params=params)


def _create_openai(
    model_id: str, max_tokens: int, streaming: bool, temperature: float, **transport: Any
):
    api_key = os.getenv("OPENAI_API_KEY")
    return _openai_compatible(
        "openai",
        model_id,
        {"max_tokens": max_tokens, "temperature": temperature},
        {"api_key": api_key} if api_key else {},
    )


def _create_openrouter(
    model_id: str, max_tokens: int, streaming: bool, temperature: float, **transport: Any
):
    api_key = os.getenv("OPENROUTER_API_KEY")
    if not api_key:
        raise ValueError("OPENROUTER_API_KEY is not set. Please configure it in your .env file.")
    return _openai_compatible(
        "openrouter",
        model_id,
        {"max_tokens": max_tokens, "temperature": temperature},
        {"api_key": api_key, "base_url": os.getenv("OPENROUTER_BASE_URL", OPENROUTER_BASE_URL)},
    )


# Bedrock consumes the transport kwargs (timeouts, region); the others ignore them
_PROVIDER_FACTORIES: dict[LLMProvider, Callable[..., Any]] = {
    LLMProvider.BEDROCK: _create_bedrock,
    LLMProvider.ANTHROPIC: _create_anthropic,
    LLMProvider.OPENAI: _create_openai,
    LLMProvider.OPENROUTER: _create_openrouter,
}


def create_model(
    model_id: str | None = None,
    tier: str = "light",
    max_tokens: int | None = None,
    streaming: bool = True,
    temperature: float = 0.7,
    **kwargs,
):
    """Create a Strands model for the active provider.

    Args:
        model_id: Model identifier; resolved from ``tier`` when ``None``.
        tier: ``"reasoning"``, ``"heavy"`` or ``"light"``.
        max_tokens: Response budget. Falls back to ``DEFAULT_MAX_TOKENS``
            from the environment, then 5000.
        streaming: Stream responses (Bedrock only).
        temperature: Sampling temperature.
        **kwargs: Transport settings such as ``read_timeout``.
    """
    provider = get_active_provider()
    model_id = model_id or get_model_id_for_tier(tier)
    if max_tokens is None:
        max_tokens = int(os.getenv("DEFAULT_MAX_TOKENS", str(DEFAULT_MAX_TOKENS)))

    logger.info(
        "Creating %s model: model_id=%s, tier=%s, max_tokens=%s",
        provider.value,
        model_id,
        tier,
        max_tokens,
    )
    return _PROVIDER_FACTORIES[provider](
        model_id=model_id,
        max_tokens=max_tokens,
        streaming=streaming,
        temperature=temperature,
        **kwargs,
    )
