"""Tests for the optional model-based validation tier."""

import json

import pytest
from conftest import make_plan

from sportello.config import SEMANTIC_MARKUP_LIMIT, ContentType, InteractionPattern, Severity
from sportello.workflow.agent_runner import GenerationError
from sportello.workflow.validators import SemanticReviewer, build_review_prompt, parse_review


class TestBuildReviewPrompt:
    def test_game_rule(self):
        prompt = build_review_prompt("<html></html>", make_plan())
        assert "This IS a game" in prompt
        assert "Interaction pattern: directional-movement" in prompt

    def test_non_game_rule(self):
        plan = make_plan(
            slug="sourdough",
            content_type=ContentType.RECIPE,
            pattern=InteractionPattern.PASSIVE_SCROLL,
            title="Sourdough",
        )
        assert "This is NOT a game" in build_review_prompt("<html></html>", plan)

    def test_long_markup_truncated(self):
        markup = "x" * (SEMANTIC_MARKUP_LIMIT + 500)
        prompt = build_review_prompt(markup, make_plan())
        assert "x" * SEMANTIC_MARKUP_LIMIT + "\n... [truncated]" in prompt
        assert "x" * (SEMANTIC_MARKUP_LIMIT + 1) not in prompt


class TestParseReview:
    def test_severity_comes_from_list(self):
        report = parse_review(
            {
                "issues": [{"code": "missing_viewport", "message": "no viewport tag"}],
                "warnings": ["colors are off-theme"],
            }
        )
        assert report.issues[0].code == "MISSING_VIEWPORT"
        assert report.issues[0].severity is Severity.CRITICAL
        assert report.warnings[0].code == "SEMANTIC_MISMATCH"
        assert report.warnings[0].severity is Severity.WARNING

    @pytest.mark.parametrize("code", ["lol whatever", "WRONG_GAME", "", None])
    def test_unknown_code_becomes_semantic_mismatch(self, code):
        report = parse_review({"issues": [{"code": code, "message": "this is pong"}]})
        assert report.issues[0].code == "SEMANTIC_MISMATCH"
        assert report.issues[0].message == "this is pong"

    def test_description_accepted_as_message(self):
        report = parse_review({"issues": [{"description": "no score shown"}]})
        assert report.issues[0].message == "no score shown"

    def test_malformed_entries_dropped(self):
        report = parse_review({"issues": [{"code": "X"}, 42, None], "warnings": "nope"})
        assert report.issues == []
        assert report.warnings == []


class TestSemanticReviewer:
    @pytest.mark.asyncio
    async def test_uses_tester_role(self, scripted_generate):
        generate = scripted_generate({"tester": [json.dumps({"issues": ["missing score"]})]})
        report = await SemanticReviewer(generate).review("<html></html>", make_plan())
        assert report.codes == ["SEMANTIC_MISMATCH"]
        assert generate.calls[0][0] == "tester"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reply",
        [GenerationError("tester", "timed out", timed_out=True), "not json", KeyError("boom")],
    )
    async def test_failures_yield_empty_report(self, scripted_generate, reply):
        generate = scripted_generate({"tester": [reply]})
        report = await SemanticReviewer(generate).review("<html></html>", make_plan())
        assert report.issues == []
        assert report.warnings == []
