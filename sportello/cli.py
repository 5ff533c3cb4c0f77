"""Command-line entry point for one pipeline run.

Usage:
    sportello "a snake game"
    sportello "a sourdough recipe" --type recipe --semantic
    python -m sportello.cli "a typing game" --site-root ./site --json

Exit codes: 0 ok, 1 degraded, 2 abandoned, 3 built but not persisted.
"""

import argparse
import asyncio
import logging
import sys
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

from sportello.config import ContentType, FinalOutcome, PipelineSettings
from sportello.telemetry import init_telemetry, shutdown_telemetry
from sportello.workflow.burr_workflow import BuildPipelineRunner
from sportello.workflow.models import BuildResult
from sportello.workflow.request_classifier import is_content_request

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_DEGRADED = 1
EXIT_ABANDONED = 2
EXIT_NOT_PERSISTED = 3

# Generated files are on disk already; keep JSON output readable
_BULKY_FIELDS = {"generated_markup", "generated_script"}


def exit_code_for(result: BuildResult) -> int:
    if result.final_outcome is FinalOutcome.ABANDONED:
        return EXIT_ABANDONED
    if not result.persisted:
        return EXIT_NOT_PERSISTED
    if result.final_outcome is FinalOutcome.DEGRADED:
        return EXIT_DEGRADED
    return EXIT_OK


def format_summary(result: BuildResult) -> str:
    """Plain-text report of a run."""
    lines = [f"Build {result.build_id}: {result.final_outcome.value.upper()}"]
    if result.plan is not None:
        lines.append(
            f"  {result.plan.metadata.icon} {result.plan.metadata.title} "
            f"({result.plan.content_type.value}, {result.plan.interaction_pattern.value})"
        )
    lines.append(f"  attempts: {len(result.attempts)}  score: {result.final_score}")
    lines.append(
        "  stages: "
        + ", ".join(f"{stage}={status.value}" for stage, status in result.stage_statuses.items())
    )
    if result.documentation is not None:
        lines.append(f"  notes: {result.documentation.release_notes}")
        if result.documentation.how_to_play:
            lines.append(f"  how to play: {result.documentation.how_to_play}")
        for known_issue in result.documentation.known_issues:
            lines.append(f"  known issue: {known_issue}")
    if result.live_url:
        lines.append(f"  live: {result.live_url}")
    if result.final_outcome is not FinalOutcome.ABANDONED and not result.persisted:
        lines.append("  not persisted")
    if result.error:
        lines.append(f"  error: {result.error}")
    return "\n".join(lines)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sportello",
        description="Generate, validate and publish a mobile-first page from a request",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("request", help="What to build, in plain words")
    parser.add_argument("--site-root", type=Path, help="Site directory (SPORTELLO_SITE_ROOT)")
    parser.add_argument("--log-dir", type=Path, help="Build log directory (SPORTELLO_LOG_DIR)")
    parser.add_argument(
        "--max-attempts", type=int, help="Build/test attempts, 1-3 (SPORTELLO_MAX_ATTEMPTS)"
    )
    parser.add_argument(
        "--semantic",
        action="store_true",
        help="Enable the model-based validation tier",
    )
    parser.add_argument(
        "--type",
        dest="preferred_type",
        choices=ContentType.values(),
        help="Preferred content type hint for the Architect",
    )
    parser.add_argument("--track", action="store_true", help="Enable Burr tracking UI")
    parser.add_argument("--json", action="store_true", help="Print the build result as JSON")
    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for a single build."""
    load_dotenv()
    args = _build_parser().parse_args(argv)

    init_telemetry()

    settings = PipelineSettings.from_env()
    overrides = {}
    if args.site_root is not None:
        overrides["site_root"] = args.site_root
    if args.log_dir is not None:
        overrides["log_dir"] = args.log_dir
    if args.max_attempts is not None:
        overrides["max_attempts"] = args.max_attempts
    if args.semantic:
        overrides["semantic_validation"] = True
    if overrides:
        settings = replace(settings, **overrides)

    if not is_content_request(args.request):
        logger.warning("Request does not look like a content request; building anyway")

    runner = BuildPipelineRunner.from_settings(settings, enable_tracking=args.track)
    try:
        result = asyncio.run(runner.run(args.request, preferred_type=args.preferred_type))
    finally:
        shutdown_telemetry()

    if args.json:
        print(result.model_dump_json(indent=2, exclude={"attempts": {"__all__": _BULKY_FIELDS}}))
    else:
        print(format_summary(result))

    sys.exit(exit_code_for(result))


if __name__ == "__main__":
    main()
