"""Tests for the command-line entry point.

The runner is replaced so no model is ever called.
"""

import json
from pathlib import Path

import pytest
from conftest import make_plan

from sportello import cli
from sportello.config import Collection, FinalOutcome, Severity, StageStatus
from sportello.workflow.models import BuildAttempt, BuildResult, Documentation, Issue


def _result(outcome=FinalOutcome.OK, persisted=True, **overrides):
    plan = make_plan()
    attempts = [BuildAttempt(attempt_number=1, generated_markup="<html/>", score=100)]
    if outcome is FinalOutcome.DEGRADED:
        attempts = [
            BuildAttempt(
                attempt_number=1,
                generated_markup="<html/>",
                score=80,
                issues=[
                    Issue(
                        code="MISSING_VIEWPORT",
                        message="no viewport",
                        severity=Severity.CRITICAL,
                    )
                ],
            )
        ]
    fields = {
        "build_id": "build-abc12345",
        "request": "a snake game",
        "plan": plan,
        "attempts": attempts,
        "final_outcome": outcome,
        "stage_statuses": {"architect": StageStatus.SUCCESS, "persist": StageStatus.SUCCESS},
        "documentation": Documentation(
            metadata=plan.metadata, release_notes="snake time", how_to_play="Swipe"
        ),
        "persisted": persisted,
    }
    fields.update(overrides)
    return BuildResult(**fields)


class TestExitCodeFor:
    def test_ok(self):
        assert cli.exit_code_for(_result()) == cli.EXIT_OK

    def test_degraded(self):
        assert cli.exit_code_for(_result(FinalOutcome.DEGRADED)) == cli.EXIT_DEGRADED

    def test_abandoned_wins_over_not_persisted(self):
        result = _result(FinalOutcome.ABANDONED, persisted=False, attempts=[], plan=None)
        assert cli.exit_code_for(result) == cli.EXIT_ABANDONED

    @pytest.mark.parametrize("outcome", [FinalOutcome.OK, FinalOutcome.DEGRADED])
    def test_not_persisted(self, outcome):
        assert cli.exit_code_for(_result(outcome, persisted=False)) == cli.EXIT_NOT_PERSISTED


class TestFormatSummary:
    def test_ok_summary(self):
        text = cli.format_summary(_result(live_url="https://pages.example.org/src/neon-snake.html"))
        lines = text.splitlines()
        assert lines[0] == "Build build-abc12345: OK"
        assert "🐍 Neon Snake (game, directional-movement)" in lines[1]
        assert "attempts: 1  score: 100" in text
        assert "stages: architect=success, persist=success" in text
        assert "how to play: Swipe" in text
        assert "live: https://pages.example.org/src/neon-snake.html" in text
        assert "not persisted" not in text

    def test_not_persisted_flagged(self):
        assert "  not persisted" in cli.format_summary(_result(persisted=False))

    def test_abandoned_shows_error(self):
        result = _result(
            FinalOutcome.ABANDONED,
            persisted=False,
            attempts=[],
            plan=None,
            documentation=None,
            error="architect failed",
        )
        text = cli.format_summary(result)
        assert text.startswith("Build build-abc12345: ABANDONED")
        assert "score: None" in text
        assert "error: architect failed" in text
        assert "not persisted" not in text


class TestParser:
    def test_overrides(self):
        args = cli._build_parser().parse_args(
            ["a recipe", "--type", "recipe", "--max-attempts", "2", "--semantic", "--json"]
        )
        assert args.request == "a recipe"
        assert args.preferred_type == "recipe"
        assert args.max_attempts == 2
        assert args.semantic and args.json and not args.track

    def test_unknown_type_rejected(self):
        with pytest.raises(SystemExit):
            cli._build_parser().parse_args(["x", "--type", "opera"])


class FakeRunner:
    def __init__(self, result):
        self.result = result
        self.settings = None
        self.kwargs = None
        self.requests = []

    def from_settings(self, settings, **kwargs):
        self.settings = settings
        self.kwargs = kwargs
        return self

    async def run(self, request, preferred_type=None):
        self.requests.append((request, preferred_type))
        return self.result


@pytest.fixture
def fake_runner(monkeypatch):
    def install(result):
        runner = FakeRunner(result)
        monkeypatch.setattr(cli.BuildPipelineRunner, "from_settings", runner.from_settings)
        return runner

    monkeypatch.setattr(cli, "load_dotenv", lambda: None)
    monkeypatch.setattr(cli, "init_telemetry", lambda: None)
    monkeypatch.setattr(cli, "shutdown_telemetry", lambda: None)
    monkeypatch.delenv("SPORTELLO_MAX_ATTEMPTS", raising=False)
    monkeypatch.delenv("SPORTELLO_SEMANTIC_VALIDATION", raising=False)
    return install


class TestMain:
    def test_summary_and_exit_code(self, fake_runner, capsys, tmp_path):
        runner = fake_runner(_result(FinalOutcome.DEGRADED))

        with pytest.raises(SystemExit) as exc_info:
            cli.main(
                ["a snake game", "--site-root", str(tmp_path), "--max-attempts", "2", "--semantic"]
            )

        assert exc_info.value.code == cli.EXIT_DEGRADED
        assert runner.requests == [("a snake game", None)]
        assert runner.settings.site_root == Path(tmp_path)
        assert runner.settings.max_attempts == 2
        assert runner.settings.semantic_validation is True
        assert runner.kwargs == {"enable_tracking": False}
        assert capsys.readouterr().out.startswith("Build build-abc12345: DEGRADED")

    def test_json_output_drops_generated_files(self, fake_runner, capsys):
        fake_runner(_result())

        with pytest.raises(SystemExit) as exc_info:
            cli.main(["a snake game", "--json", "--type", "game"])

        assert exc_info.value.code == cli.EXIT_OK
        payload = json.loads(capsys.readouterr().out)
        assert payload["final_outcome"] == "ok"
        assert payload["plan"]["metadata"]["collection"] == Collection.ARCADE_GAMES.value
        assert "generated_markup" not in payload["attempts"][0]
        assert payload["attempts"][0]["score"] == 100

    def test_preferred_type_forwarded(self, fake_runner):
        runner = fake_runner(_result())
        with pytest.raises(SystemExit):
            cli.main(["soup please", "--type", "recipe"])
        assert runner.requests == [("soup please", "recipe")]
