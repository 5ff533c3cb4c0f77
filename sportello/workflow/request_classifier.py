"""Keyword classifier for requests that ask for new page content."""

import re

CONTENT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "games": (
        "game", "arcade", "play", "platformer", "puzzle", "snake", "tetris", "pong",
        "breakout", "maze", "shooter", "adventure", "frogger", "pacman",
        "space invaders", "tic tac toe", "chess", "checkers", "solitaire", "sudoku",
        "wordle", "trivia", "quiz", "challenge", "level", "score", "highscore",
        "controls", "joystick", "d-pad",
    ),
    "letters": (
        "letter", "note", "message", "write to", "correspondence", "introduction", "memo",
    ),
    "recipes": (
        "recipe", "cook", "ingredient", "bake", "dish", "meal", "preparation", "cuisine",
    ),
    "infographics": (
        "infographic", "chart", "graph", "data viz", "visualization", "statistics",
        "comparison", "analysis",
    ),
    "stories": (
        "story", "narrative", "tale", "chronicle", "journey", "fiction", "choose your own",
    ),
    "logs": (
        "log", "field guide", "inventory", "report", "documentation", "catalog",
        "list of", "collection of",
    ),
    "parodies": (
        "parody", "satire", "mockup", "spoof", "infomercial", "mock", "funny", "humorous",
    ),
    "utilities": (
        "planner", "tracker", "calculator", "tool", "utility", "schedule", "calendar",
        "todo", "checklist", "organizer",
    ),
    "creation": (
        "create", "build", "make", "design", "generate", "interactive", "page", "website",
    ),
}

# Keywords match at a word start so "cooking" counts but "blog" does not
_CONTENT_RE = re.compile(
    r"\b(?:"
    + "|".join(
        re.escape(keyword)
        for keywords in CONTENT_KEYWORDS.values()
        for keyword in sorted(keywords, key=len, reverse=True)
    )
    + r")",
    re.IGNORECASE,
)


def is_content_request(text: str) -> bool:
    """True when ``text`` reads like a request for a game, page or other content."""
    if not text:
        return False
    return _CONTENT_RE.search(text) is not None


def matched_categories(text: str) -> list[str]:
    """Categories whose keywords appear in ``text``, in declaration order."""
    lowered = text.lower()
    return [
        category
        for category, keywords in CONTENT_KEYWORDS.items()
        if any(re.search(r"\b" + re.escape(keyword), lowered) for keyword in keywords)
    ]
