"""Shared test fixtures and helpers.

Sample markup per interaction pattern, plan factories and a scripted fake
``generate`` capability, so no test needs a live model.
"""

import json

import pytest

from sportello.config import Collection, ContentType, InteractionPattern
from sportello.workflow.models import Plan, PlanMetadata

# ---------------------------------------------------------------------------
# Markup samples
# ---------------------------------------------------------------------------

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{title}</title>
    <link rel="stylesheet" href="../page-theme.css">
    <style>
        body {{ margin: 0; padding: 16px; }}
{style}
    </style>
</head>
<body>
    <a href="../index.html" class="home-link">← HOME</a>
{body}
    <script>
{script}
    </script>
</body>
</html>
"""

BREAKPOINTS_CSS = "        @media (max-width: 600px) { .board { width: 100%; } }"
CANVAS_CSS = "        canvas { display: block; max-width: 95vw; }"

DPAD_HTML = """    <div class="mobile-controls">
        <button onclick="handleDirection('up')">▲</button>
        <button onclick="handleDirection('left')">◀</button>
        <button onclick="handleDirection('right')">▶</button>
        <button onclick="handleDirection('down')">▼</button>
    </div>"""
ACTION_BUTTON_HTML = '    <button id="actionBtn">FIRE</button>'
CANVAS_HTML = '    <canvas id="board" width="400" height="400"></canvas>'
FORM_HTML = """    <form id="entryForm">
        <input type="text" id="entry" placeholder="Add a task">
        <button type="submit">Add</button>
    </form>"""
ARTICLE_HTML = """    <article class="board">
        <h1>Sourdough Loaf</h1>
        <p>Mix the starter with flour and water, rest overnight, bake hot.</p>
    </article>"""

DIRECTION_SCRIPT = (
    "        const state = {};\n"
    "        function handleDirection(dir) { state.dir = dir; }"
)
TOUCH_SCRIPT = (
    "        const board = document.getElementById('board');\n"
    "        board.addEventListener('touchstart', (e) => { e.preventDefault(); tap(); });\n"
    "        function tap() {}"
)
KEYBOARD_SCRIPT = (
    "        document.addEventListener('keydown', (e) => check(e.key));\n"
    "        function check(k) {}"
)
FORM_SCRIPT = (
    "        document.getElementById('entryForm').addEventListener('submit', (e) => {\n"
    "            e.preventDefault();\n"
    "            localStorage.setItem('entry', document.getElementById('entry').value);\n"
    "        });"
)


def build_page(title="Sample", body="", script="", style=""):
    """Render a structurally complete page around the given fragments."""
    return _PAGE_TEMPLATE.format(title=title, body=body, script=script, style=style)


# One sample per pattern that satisfies exactly that pattern's rules
CONFORMING_MARKUP = {
    InteractionPattern.DIRECTIONAL_MOVEMENT: build_page(
        "Neon Snake",
        body=f"{CANVAS_HTML}\n{DPAD_HTML}",
        script=DIRECTION_SCRIPT,
        style=f"{CANVAS_CSS}\n{BREAKPOINTS_CSS}",
    ),
    InteractionPattern.DIRECT_TOUCH: build_page(
        "Tap Burst",
        body=CANVAS_HTML,
        script=TOUCH_SCRIPT,
        style=f"{CANVAS_CSS}\n{BREAKPOINTS_CSS}",
    ),
    InteractionPattern.HYBRID_CONTROLS: build_page(
        "Star Blaster",
        body=f"{CANVAS_HTML}\n{DPAD_HTML}\n{ACTION_BUTTON_HTML}",
        script=DIRECTION_SCRIPT,
        style=f"{CANVAS_CSS}\n{BREAKPOINTS_CSS}",
    ),
    InteractionPattern.FORM_BASED: build_page(
        "Chore Tracker", body=FORM_HTML, script=FORM_SCRIPT, style=BREAKPOINTS_CSS
    ),
    InteractionPattern.PASSIVE_SCROLL: build_page(
        "Sourdough Loaf", body=ARTICLE_HTML, style=BREAKPOINTS_CSS
    ),
}

# Content type that goes with each sample above
PATTERN_CONTENT_TYPES = {
    InteractionPattern.DIRECTIONAL_MOVEMENT: ContentType.GAME,
    InteractionPattern.DIRECT_TOUCH: ContentType.GAME,
    InteractionPattern.HYBRID_CONTROLS: ContentType.GAME,
    InteractionPattern.FORM_BASED: ContentType.UTILITY,
    InteractionPattern.PASSIVE_SCROLL: ContentType.RECIPE,
}


def make_plan(
    slug="neon-snake",
    content_type=ContentType.GAME,
    pattern=InteractionPattern.DIRECTIONAL_MOVEMENT,
    files=None,
    title="Neon Snake",
    collection=Collection.ARCADE_GAMES,
    features=("grid movement", "score counter"),
):
    return Plan(
        slug=slug,
        content_type=content_type,
        interaction_pattern=pattern,
        files=tuple(files or (f"src/{slug}.html",)),
        metadata=PlanMetadata(
            title=title, icon="🐍", description=f"{title} for phones", collection=collection
        ),
        features=tuple(features),
    )


def raw_plan_json(**overrides):
    """Architect-style JSON plan text."""
    raw = {
        "slug": "snake",
        "contentType": "game",
        "interactionPattern": "directional-movement",
        "files": ["snake.html"],
        "metadata": {
            "title": "Snake",
            "icon": "🐍",
            "description": "Classic snake with a D-pad",
            "collection": "arcade-games",
        },
        "features": ["grid movement", "growing tail", "score"],
    }
    raw.update(overrides)
    return json.dumps(raw)


# ---------------------------------------------------------------------------
# Fake generate capability
# ---------------------------------------------------------------------------


class ScriptedGenerate:
    """Async ``generate(role, prompt)`` replaying canned responses per role.

    Each role maps to a list of responses consumed in order; the last one
    repeats once the list runs out. A response that is an exception instance
    is raised instead of returned. Every call is recorded.
    """

    def __init__(self, responses):
        self._responses = {role: list(values) for role, values in responses.items()}
        self.calls = []

    async def __call__(self, role, prompt, **kwargs):
        self.calls.append((role, prompt, kwargs))
        queue = self._responses.get(role)
        if not queue:
            raise AssertionError(f"unexpected generate call for role {role!r}")
        response = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(response, Exception):
            raise response
        return response

    def prompts_for(self, role):
        return [prompt for called_role, prompt, _ in self.calls if called_role == role]


class RecordingPublisher:
    """In-memory publisher recording every persist call."""

    def __init__(self, result=True, error=None):
        self.result = result
        self.error = error
        self.calls = []

    async def persist(self, slug, files, metadata_patch):
        self.calls.append((slug, dict(files), metadata_patch))
        if self.error is not None:
            raise self.error
        return self.result


class MemoryArtifactStore:
    def __init__(self):
        self.files = {}
        self.writes = []

    def write(self, path, content):
        self.files[path] = content
        self.writes.append(path)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def scripted_generate():
    """Factory: ``scripted_generate({"architect": [...], "builder": [...]})``."""
    return ScriptedGenerate


@pytest.fixture
def artifact_store():
    return MemoryArtifactStore()
