"""Per-build audit logs and the recent-issue summary fed to the Architect.

Each build gets ``<log_dir>/<build_id>.json``: a JSON array of entries, each
carrying an ISO-8601 UTC ``timestamp`` and a ``stage`` name. Writes are
best-effort; a log that cannot be written never fails a build.
"""

import json
import logging
import threading
from collections import Counter
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from burr.lifecycle import PostRunStepHook

logger = logging.getLogger(__name__)

NO_RECENT_BUILDS = "No recent builds. Use best practices."
RECENT_BUILDS_CLEAN = (
    "Recent builds passed tests. Keep enforcing mobile controls and noir theme."
)
TOP_ISSUE_COUNT = 5


def _utc_now() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class BuildLogStore:
    """Directory of JSON build logs.

    Args:
        log_dir: Directory holding ``<build_id>.json`` files.
    """

    def __init__(self, log_dir: Path | str) -> None:
        self.log_dir = Path(log_dir)
        self._lock = threading.Lock()

    def _path(self, build_id: str) -> Path:
        return self.log_dir / f"{build_id}.json"

    def read(self, build_id: str) -> list[dict[str, Any]]:
        """Entries of one build; missing or corrupt logs read as empty."""
        path = self._path(build_id)
        if not path.exists():
            return []
        try:
            entries = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Unreadable build log {path.name}: {e}")
            return []
        return entries if isinstance(entries, list) else []

    def append(self, build_id: str, entry: dict[str, Any]) -> None:
        """Append one timestamped entry. Failures are logged, not raised."""
        with self._lock:
            try:
                self.log_dir.mkdir(parents=True, exist_ok=True)
                entries = self.read(build_id)
                entries.append({"timestamp": _utc_now(), **entry})
                self._path(build_id).write_text(
                    json.dumps(entries, indent=2, default=str), encoding="utf-8"
                )
            except (OSError, TypeError, ValueError) as e:
                logger.error(f"Failed to write build log for {build_id}: {e}")

    def recent_builds(self, limit: int = 10) -> list[tuple[str, list[dict[str, Any]]]]:
        """Most recently modified builds first, as ``(build_id, entries)``.

        Raises:
            OSError: If the log directory cannot be listed.
        """
        if not self.log_dir.exists():
            return []
        files = sorted(
            self.log_dir.glob("*.json"), key=lambda p: p.stat().st_mtime, reverse=True
        )
        return [(path.stem, self.read(path.stem)) for path in files[:limit]]

    def recent_issue_codes(self, limit: int = 10) -> list[str]:
        """Critical issue codes from ``test`` entries of the last ``limit`` builds."""
        codes: list[str] = []
        for _build_id, entries in self.recent_builds(limit):
            for entry in entries:
                if not isinstance(entry, dict) or entry.get("stage") != "test":
                    continue
                test_result = entry.get("test_result") or {}
                for issue in test_result.get("issues") or []:
                    if isinstance(issue, dict):
                        key = issue.get("code") or issue.get("message")
                    else:
                        key = str(issue)
                    if key:
                        codes.append(str(key)[:80])
        return codes

    def recent_patterns_summary(self, limit: int = 10) -> str:
        """Human-readable digest of recurring issues for the Architect prompt."""
        try:
            codes = self.recent_issue_codes(limit)
        except OSError as e:
            logger.error(f"Error generating patterns summary: {e}")
            return NO_RECENT_BUILDS

        if not codes:
            return RECENT_BUILDS_CLEAN

        top = Counter(codes).most_common(TOP_ISSUE_COUNT)
        lines = [f"- {code} (seen {count} times)" for code, count in top]
        return "Recent recurrent issues:\n" + "\n".join(lines) + "\nPlease avoid repeating them."


# =============================================================================
# Burr hook
# =============================================================================


def _issue_dicts(issues: list) -> list[dict[str, str]]:
    return [issue.model_dump(mode="json") for issue in issues]


def _entry_for_action(action_name: str, state: Any) -> dict[str, Any] | None:
    """Build the log entry describing what ``action_name`` just did."""
    attempts = state.get("attempts") or []
    last = attempts[-1] if attempts else None

    if action_name == "architect":
        plan = state.get("plan")
        return {
            "stage": "plan",
            "status": state.get("architect_status"),
            "request": state.get("request"),
            "plan": plan.model_dump(mode="json") if plan is not None else None,
            "error": state.get("error"),
        }
    if action_name == "build" and last is not None:
        return {
            "stage": "build",
            "attempt": last.attempt_number,
            "status": state.get("build_status"),
            "build_result": {
                "markup_length": len(last.generated_markup or ""),
                "script_length": len(last.generated_script or ""),
                "error": last.error,
            },
        }
    if action_name == "test" and last is not None:
        return {
            "stage": "test",
            "attempt": last.attempt_number,
            "test_result": {
                "ok": last.passed,
                "issues": _issue_dicts(last.issues),
                "warnings": _issue_dicts(last.warnings),
                "score": last.score,
            },
            "verdict": state.get("test_verdict"),
        }
    if action_name == "scribe":
        docs = state.get("documentation")
        return {
            "stage": "scribe",
            "docs": docs.model_dump(mode="json") if docs is not None else None,
        }
    if action_name == "persist":
        return {
            "stage": "persist",
            "status": state.get("persist_status"),
            "persisted": state.get("persisted"),
        }
    if action_name == "abandon":
        return {"stage": "abandon", "error": state.get("error")}
    return None


@dataclass
class BuildLogHook(PostRunStepHook):
    """Append one build-log entry after every executed action."""

    log_store: BuildLogStore
    build_id: str

    def post_run_step(self, *, action, state, exception=None, **kwargs):
        if exception is not None:
            self.log_store.append(
                self.build_id, {"stage": "error", "action": action.name, "error": str(exception)}
            )
            return
        entry = _entry_for_action(action.name, state)
        if entry is not None:
            self.log_store.append(self.build_id, entry)
