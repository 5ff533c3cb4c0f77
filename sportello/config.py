"""Centralized configuration for Sportello.

This module provides a single source of truth for all configuration constants
used by the content pipeline.

Design Principles:
- Closed vocabularies (content types, interaction patterns, collections) as enums
- Scoring and retry policy constants in one place
- Agent configurations defined declaratively
- Runtime settings read from the environment with safe defaults
"""

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# =============================================================================
# Enums for Type Safety
# =============================================================================


class ContentType(Enum):
    """Kinds of page the Architect may plan."""

    GAME = "game"
    LETTER = "letter"
    RECIPE = "recipe"
    INFOGRAPHIC = "infographic"
    STORY = "story"
    LOG = "log"
    PARODY = "parody"
    UTILITY = "utility"
    VISUALIZATION = "visualization"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid content types as strings."""
        return [content_type.value for content_type in cls]


class InteractionPattern(Enum):
    """How the reader interacts with a generated page."""

    DIRECTIONAL_MOVEMENT = "directional-movement"
    DIRECT_TOUCH = "direct-touch"
    HYBRID_CONTROLS = "hybrid-controls"
    FORM_BASED = "form-based"
    PASSIVE_SCROLL = "passive-scroll"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid interaction patterns as strings."""
        return [pattern.value for pattern in cls]


class Collection(Enum):
    """Collections a published page can be filed under."""

    ARCADE_GAMES = "arcade-games"
    STORIES_CONTENT = "stories-content"
    UTILITIES_APPS = "utilities-apps"
    UNSORTED = "unsorted"


class Severity(Enum):
    """Validation finding severity."""

    CRITICAL = "critical"  # Fails the attempt and drives a retry
    WARNING = "warning"  # Lowers the score only


class StageStatus(Enum):
    """Recorded outcome of a pipeline stage."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid status values as strings."""
        return [status.value for status in cls]


class FinalOutcome(Enum):
    """Terminal classification of a pipeline run."""

    OK = "ok"
    DEGRADED = "degraded"
    ABANDONED = "abandoned"


class AgentRole(Enum):
    """Roles the generate capability can be asked to play."""

    ARCHITECT = "architect"
    BUILDER = "builder"
    TESTER = "tester"
    SCRIBE = "scribe"


class ModelTier(Enum):
    """Model tier for cost/quality routing."""

    HEAVY = "heavy"  # Code generation and planning
    LIGHT = "light"  # Short structured outputs
    REASONING = "reasoning"  # Strongest model, reserved for review


# Legacy content-type names still produced by older prompts
CONTENT_TYPE_ALIASES: dict[str, ContentType] = {
    "arcade-game": ContentType.GAME,
    "arcade": ContentType.GAME,
}

DEFAULT_INTERACTION_PATTERN = InteractionPattern.DIRECT_TOUCH


# =============================================================================
# Pipeline Policy
# =============================================================================

# Build+Test cycles per run. Never raised above this ceiling.
MAX_BUILD_ATTEMPTS = 3

# Scoring. A single critical issue must always cost more than a warning.
MAX_SCORE = 100
CRITICAL_PENALTY = 20
WARNING_PENALTY = 5

# Declared canvas width (px) above which a drawing surface is not mobile friendly
CANVAS_MAX_WIDTH = 450

# Markup sent to the semantic review is truncated to this many characters
SEMANTIC_MARKUP_LIMIT = 8000

# Every code a validation Issue may carry. Model-reported codes outside this
# set collapse to SEMANTIC_MISMATCH.
ISSUE_CODES = frozenset(
    {
        "INCOMPLETE_DOCUMENT",
        "MISSING_VIEWPORT",
        "MISSING_THEME_LINK",
        "MISSING_HOME_LINK",
        "MISMATCHED_SCRIPT_BLOCKS",
        "MARKDOWN_ARTIFACTS",
        "INCOMPLETE_CODE",
        "PADDING_CONFLICT",
        "MISSING_DIRECTIONAL_CONTROLS",
        "UNWANTED_DIRECTIONAL_CONTROLS",
        "MISSING_TOUCH_HANDLERS",
        "MISSING_ACTION_CONTROL",
        "MISSING_FORM_ELEMENTS",
        "UNWANTED_GAME_CONTROLS",
        "CANVAS_TOO_LARGE",
        "CANVAS_NOT_RESPONSIVE",
        "NO_RESPONSIVE_BREAKPOINTS",
        "SEMANTIC_MISMATCH",
    }
)

# Shared stylesheet every page must link
THEME_STYLESHEET = "page-theme.css"

# Project registry file at the site repository root
REGISTRY_FILENAME = "projectmetadata.json"


# =============================================================================
# Timeout Configuration
# =============================================================================


@dataclass(frozen=True)
class TimeoutConfig:
    """Timeout configuration for model calls."""

    read_timeout: float
    connect_timeout: float
    streaming: bool = True

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for function kwargs."""
        return {
            "read_timeout": self.read_timeout,
            "connect_timeout": self.connect_timeout,
            "streaming": self.streaming,
        }


TIMEOUT_STANDARD = TimeoutConfig(read_timeout=300.0, connect_timeout=60.0)
TIMEOUT_EXTENDED = TimeoutConfig(read_timeout=600.0, connect_timeout=60.0)

# Wall-clock limit for one generate call (seconds)
DEFAULT_GENERATE_TIMEOUT = 240.0


# =============================================================================
# Token Limits
# =============================================================================

# Full page generation (markup + inline CSS/JS)
TOKENS_BUILD = 12000

# Companion script generation
TOKENS_SCRIPT = 8000

# JSON plans, validation reports and documentation
TOKENS_STRUCTURED = 2000


# =============================================================================
# Agent Configuration
# =============================================================================


@dataclass
class AgentConfig:
    """Configuration for a pipeline agent.

    Attributes:
        name: Agent name (used for logging and identification)
        prompt_key: Key for loading prompt from worker_* directory
        max_tokens: Maximum tokens for response generation
        timeout_config: Timeout configuration to use
        model_tier: Tier used to resolve the model ID
        temperature: Sampling temperature
        streaming: Whether to enable streaming (overrides timeout_config if set)
    """

    name: str
    prompt_key: str
    max_tokens: int = TOKENS_STRUCTURED
    timeout_config: TimeoutConfig = field(default_factory=lambda: TIMEOUT_STANDARD)
    model_tier: ModelTier = ModelTier.LIGHT
    temperature: float = 0.7
    streaming: bool | None = None


# Agent configurations - single source of truth for all agent settings
AGENT_CONFIGS: dict[str, AgentConfig] = {
    "architect": AgentConfig(
        name="architect_agent",
        prompt_key="worker_architect",
        max_tokens=TOKENS_STRUCTURED,
        model_tier=ModelTier.HEAVY,
    ),
    "builder": AgentConfig(
        name="builder_agent",
        prompt_key="worker_builder",
        max_tokens=TOKENS_BUILD,
        timeout_config=TIMEOUT_EXTENDED,
        model_tier=ModelTier.HEAVY,
    ),
    # Low temperature keeps review verdicts stable between runs
    "tester": AgentConfig(
        name="tester_agent",
        prompt_key="worker_tester",
        max_tokens=TOKENS_STRUCTURED,
        model_tier=ModelTier.REASONING,
        temperature=0.3,
    ),
    "scribe": AgentConfig(
        name="scribe_agent",
        prompt_key="worker_scribe",
        max_tokens=TOKENS_STRUCTURED,
        temperature=0.8,
    ),
}


# =============================================================================
# Runtime Settings
# =============================================================================


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("true", "1", "yes")


def _env_number(name: str, default: float | None, cast: type) -> Any:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return cast(raw)
    except ValueError:
        logger.warning(f"Invalid value for {name}: '{raw}', using default {default}")
        return default


@dataclass
class PipelineSettings:
    """Runtime settings for a pipeline runner.

    All values can be read from environment variables via ``from_env()``.
    """

    site_root: Path = field(default_factory=lambda: Path("site"))
    log_dir: Path = field(default_factory=lambda: Path("logs") / "build-logs")
    max_attempts: int = MAX_BUILD_ATTEMPTS
    semantic_validation: bool = False
    min_accept_score: int | None = None
    generate_timeout: float = DEFAULT_GENERATE_TIMEOUT
    site_base_url: str | None = None

    def __post_init__(self) -> None:
        if not 1 <= self.max_attempts <= MAX_BUILD_ATTEMPTS:
            clamped = max(1, min(self.max_attempts, MAX_BUILD_ATTEMPTS))
            logger.warning(f"max_attempts={self.max_attempts} out of range, using {clamped}")
            self.max_attempts = clamped

    @classmethod
    def from_env(cls) -> "PipelineSettings":
        """Create settings from environment variables."""
        return cls(
            site_root=Path(os.getenv("SPORTELLO_SITE_ROOT", "site")),
            log_dir=Path(os.getenv("SPORTELLO_LOG_DIR", str(Path("logs") / "build-logs"))),
            max_attempts=_env_number("SPORTELLO_MAX_ATTEMPTS", MAX_BUILD_ATTEMPTS, int),
            semantic_validation=_env_bool("SPORTELLO_SEMANTIC_VALIDATION", False),
            min_accept_score=_env_number("SPORTELLO_MIN_ACCEPT_SCORE", None, int),
            generate_timeout=_env_number(
                "SPORTELLO_GENERATE_TIMEOUT", DEFAULT_GENERATE_TIMEOUT, float
            ),
            site_base_url=os.getenv("SPORTELLO_SITE_BASE_URL") or None,
        )
