"""Compiled markup detectors shared by the validator tiers.

Checks work on the serialized markup with lightweight patterns rather than a
parser. Everything that inspects markup goes through the functions here, so
swapping in a real HTML parser only touches this module.
"""

import re

from sportello.config import THEME_STYLESHEET
from sportello.workflow.pattern_policy import PageFeature

# ---------------------------------------------------------------------------
# Document structure
# ---------------------------------------------------------------------------

RE_HTML_COMMENT = re.compile(r"<!--.*?-->", re.DOTALL)

RE_DOCUMENT_ROOT = re.compile(r"<html\b", re.IGNORECASE)
RE_HEAD = re.compile(r"<head\b", re.IGNORECASE)
RE_BODY = re.compile(r"<body\b", re.IGNORECASE)
RE_DOCUMENT_CLOSE = re.compile(r"</html\s*>", re.IGNORECASE)

RE_VIEWPORT = re.compile(r"<meta\b[^>]*\bname\s*=\s*[\"']?viewport\b", re.IGNORECASE)
RE_THEME_LINK = re.compile(
    r"<link\b[^>]*\bhref\s*=\s*[\"'][^\"']*" + re.escape(THEME_STYLESHEET), re.IGNORECASE
)
RE_HOME_LINK = re.compile(
    r"\bhref\s*=\s*[\"'][^\"']*index\.html|\bHOME\b|\bclass\s*=\s*[\"'][^\"']*\bhome-link\b"
)

RE_SCRIPT_OPEN = re.compile(r"<script\b", re.IGNORECASE)
RE_SCRIPT_CLOSE = re.compile(r"</script\s*>", re.IGNORECASE)

RE_MARKDOWN_FENCE = re.compile(r"```")

# TODO/FIXME/ellipsis inside a comment, or a line holding nothing but an ellipsis
RE_PLACEHOLDER = re.compile(
    r"(?://|/\*|<!--)\s*(?:(?:TODO|FIXME)\b|\.\.\.|…)|^\s*(?:\.\.\.|…)\s*$",
    re.MULTILINE,
)

RE_BODY_RULE = re.compile(r"(?:^|[\s,;}>])body\s*\{([^}]*)\}", re.IGNORECASE)
RE_PADDING_SHORTHAND = re.compile(r"(?<![-\w])padding\s*:", re.IGNORECASE)
RE_PADDING_TOP = re.compile(r"(?<![-\w])padding-top\s*:", re.IGNORECASE)

# ---------------------------------------------------------------------------
# Page features (policy table vocabulary)
# ---------------------------------------------------------------------------

_CLASS_OR_ID = r"(?:\bclass(?:Name)?|\bid)\s*=\s*[\"'][^\"']*"

RE_DIRECTIONAL_CONTROLS = re.compile(
    _CLASS_OR_ID + r"\b(?:mobile-controls|d-?pad)\b"
    r"|classList\.add\(\s*[\"'](?:mobile-controls|d-?pad)\b",
    re.IGNORECASE,
)
RE_RESPONSIVE_BREAKPOINTS = re.compile(r"@media\b[^{]*\bmax-width", re.IGNORECASE)
RE_INPUT_HANDLERS = re.compile(
    r"addEventListener\(\s*[\"'](?:touchstart|touchend|touchmove|pointerdown|pointerup"
    r"|mousedown|click|keydown|keyup|keypress|input|change|submit)[\"']"
    r"|\bon(?:click|touchstart|touchend|pointerdown|mousedown|keydown|keyup|keypress"
    r"|input|change|submit)\s*=",
    re.IGNORECASE,
)
RE_ACTION_CONTROL = re.compile(
    _CLASS_OR_ID + r"\b(?:actionBtn|action-btn|action-button|action-zone|touch-zone)\b",
    re.IGNORECASE,
)
RE_FORM_ELEMENTS = re.compile(r"<(?:input|select|textarea)\b", re.IGNORECASE)
RE_GAME_LOOP_WRAPPER = re.compile(
    _CLASS_OR_ID + r"\b(?:game-wrapper|game-container)\b", re.IGNORECASE
)

FEATURE_DETECTORS: dict[PageFeature, re.Pattern[str]] = {
    PageFeature.DIRECTIONAL_CONTROLS: RE_DIRECTIONAL_CONTROLS,
    PageFeature.RESPONSIVE_BREAKPOINTS: RE_RESPONSIVE_BREAKPOINTS,
    PageFeature.INPUT_HANDLERS: RE_INPUT_HANDLERS,
    PageFeature.ACTION_CONTROL: RE_ACTION_CONTROL,
    PageFeature.FORM_ELEMENTS: RE_FORM_ELEMENTS,
    PageFeature.GAME_LOOP_WRAPPER: RE_GAME_LOOP_WRAPPER,
}

# ---------------------------------------------------------------------------
# Canvas
# ---------------------------------------------------------------------------

RE_CANVAS_TAG = re.compile(r"<canvas\b[^>]*>", re.IGNORECASE)
RE_CANVAS_WIDTH = re.compile(r"\bwidth\s*=\s*[\"']?(\d+)", re.IGNORECASE)
RE_CANVAS_RESPONSIVE = re.compile(
    r"canvas[^{}<>;]*\{[^}]*max-width|<canvas\b[^>]*\bstyle\s*=\s*[\"'][^\"']*max-width",
    re.IGNORECASE,
)


def strip_comments(markup: str) -> str:
    """Drop HTML comments so commented-out markup is never detected."""
    return RE_HTML_COMMENT.sub("", markup)


def has_feature(markup: str, feature: PageFeature) -> bool:
    """Check whether comment-free markup contains a policy feature."""
    return FEATURE_DETECTORS[feature].search(markup) is not None


def canvas_widths(markup: str) -> list[int]:
    """Declared pixel widths of every canvas element, in document order."""
    widths = []
    for tag in RE_CANVAS_TAG.findall(markup):
        match = RE_CANVAS_WIDTH.search(tag)
        if match:
            widths.append(int(match.group(1)))
    return widths


def has_padding_conflict(markup: str) -> bool:
    """True when one body rule sets both the padding shorthand and padding-top."""
    for rule in RE_BODY_RULE.findall(markup):
        if RE_PADDING_SHORTHAND.search(rule) and RE_PADDING_TOP.search(rule):
            return True
    return False
