"""Interaction-pattern policy table.

Maps each interaction pattern to the page features it requires and forbids.
The Builder renders its control instructions from this table and the
pattern-conformance validator derives its checks from it, so adding a
pattern means adding one row here and one detector in
``validators/_markup_patterns.py``.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from sportello.config import DEFAULT_INTERACTION_PATTERN, InteractionPattern, Severity


class PageFeature(Enum):
    """Detectable page features the policy can require or forbid."""

    DIRECTIONAL_CONTROLS = "directional control surface (on-screen D-pad, .mobile-controls)"
    RESPONSIVE_BREAKPOINTS = "responsive breakpoints (@media max-width rules)"
    INPUT_HANDLERS = "touch/click or keyboard event handlers"
    ACTION_CONTROL = "a distinct action button or touch zone"
    FORM_ELEMENTS = "form input elements (<input>, <select>, <textarea>)"
    GAME_LOOP_WRAPPER = "game-loop wrapper element (.game-wrapper, .game-container)"


@dataclass(frozen=True)
class FeatureRule:
    """One required or forbidden feature with the finding it produces.

    Attributes:
        feature: The page feature being checked.
        code: Issue code emitted when the rule is violated.
        severity: Severity of that issue.
        games_only: Only enforce the rule for content classified as a game.
    """

    feature: PageFeature
    code: str
    severity: Severity = Severity.CRITICAL
    games_only: bool = False


@dataclass(frozen=True)
class PatternRule:
    """Policy row for one interaction pattern."""

    pattern: InteractionPattern
    required: tuple[FeatureRule, ...] = field(default_factory=tuple)
    forbidden: tuple[FeatureRule, ...] = field(default_factory=tuple)
    builder_instruction: str = ""

    def describe(self) -> str:
        """Render the rule as generation instructions for the Builder."""
        lines = [self.builder_instruction]
        for rule in self.required:
            qualifier = " (games)" if rule.games_only else ""
            lines.append(f"- REQUIRED{qualifier}: {rule.feature.value}")
        for rule in self.forbidden:
            lines.append(f"- FORBIDDEN: {rule.feature.value}")
        return "\n".join(lines)


# =============================================================================
# Policy Table
# =============================================================================

_DIRECTIONAL_REQUIRED = FeatureRule(
    PageFeature.DIRECTIONAL_CONTROLS, "MISSING_DIRECTIONAL_CONTROLS"
)
_BREAKPOINTS_REQUIRED = FeatureRule(PageFeature.RESPONSIVE_BREAKPOINTS, "NO_RESPONSIVE_BREAKPOINTS")
_DIRECTIONAL_FORBIDDEN = FeatureRule(
    PageFeature.DIRECTIONAL_CONTROLS, "UNWANTED_DIRECTIONAL_CONTROLS"
)

_POLICY: dict[InteractionPattern, PatternRule] = {
    InteractionPattern.DIRECTIONAL_MOVEMENT: PatternRule(
        pattern=InteractionPattern.DIRECTIONAL_MOVEMENT,
        required=(_DIRECTIONAL_REQUIRED, _BREAKPOINTS_REQUIRED),
        builder_instruction=(
            "MUST include an on-screen D-pad (.mobile-controls) wired to a "
            "handleDirection() function, shown on touch devices."
        ),
    ),
    InteractionPattern.DIRECT_TOUCH: PatternRule(
        pattern=InteractionPattern.DIRECT_TOUCH,
        required=(
            FeatureRule(PageFeature.INPUT_HANDLERS, "MISSING_TOUCH_HANDLERS"),
            FeatureRule(
                PageFeature.RESPONSIVE_BREAKPOINTS,
                "NO_RESPONSIVE_BREAKPOINTS",
                severity=Severity.WARNING,
                games_only=True,
            ),
        ),
        forbidden=(_DIRECTIONAL_FORBIDDEN,),
        builder_instruction=(
            "NO D-pad. Use direct touch/click handlers on the canvas or elements, "
            "or keyboard listeners."
        ),
    ),
    InteractionPattern.HYBRID_CONTROLS: PatternRule(
        pattern=InteractionPattern.HYBRID_CONTROLS,
        required=(
            _DIRECTIONAL_REQUIRED,
            _BREAKPOINTS_REQUIRED,
            FeatureRule(
                PageFeature.ACTION_CONTROL, "MISSING_ACTION_CONTROL", severity=Severity.WARNING
            ),
        ),
        builder_instruction=(
            "MUST include BOTH a D-pad (.mobile-controls) AND a separate action "
            "button (#actionBtn) or touch zone."
        ),
    ),
    InteractionPattern.FORM_BASED: PatternRule(
        pattern=InteractionPattern.FORM_BASED,
        required=(
            FeatureRule(
                PageFeature.FORM_ELEMENTS, "MISSING_FORM_ELEMENTS", severity=Severity.WARNING
            ),
        ),
        forbidden=(_DIRECTIONAL_FORBIDDEN,),
        builder_instruction=(
            "Use form elements (<input>, <select>, <button>) and persist entries "
            "with localStorage. No game controls."
        ),
    ),
    InteractionPattern.PASSIVE_SCROLL: PatternRule(
        pattern=InteractionPattern.PASSIVE_SCROLL,
        forbidden=(
            FeatureRule(PageFeature.DIRECTIONAL_CONTROLS, "UNWANTED_GAME_CONTROLS"),
            FeatureRule(PageFeature.GAME_LOOP_WRAPPER, "UNWANTED_GAME_CONTROLS"),
        ),
        builder_instruction="NO game controls at all. Scroll-based reading content only.",
    ),
}

PATTERN_POLICY = MappingProxyType(_POLICY)


def get_pattern_rule(pattern: InteractionPattern | str | None) -> PatternRule:
    """Look up the policy row for a pattern.

    Accepts the enum, its string value, or None (the default pattern).

    Raises:
        ValueError: If a string does not name a known pattern.
    """
    if pattern is None:
        pattern = DEFAULT_INTERACTION_PATTERN
    elif isinstance(pattern, str):
        pattern = InteractionPattern(pattern)
    return PATTERN_POLICY[pattern]
