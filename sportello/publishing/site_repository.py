"""Local content repository for generated pages.

Pages are plain files under the site root; the project registry
(``projectmetadata.json``) maps each slug to its index card.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Any

from sportello.config import REGISTRY_FILENAME

logger = logging.getLogger(__name__)


class PublishError(RuntimeError):
    """Raised when content cannot be written to the site repository."""


class SiteRepository:
    """File-backed site with a JSON project registry.

    Args:
        root: Directory holding the site (pages, theme, registry).
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)
        self.registry_path = self.root / REGISTRY_FILENAME
        self._lock = threading.Lock()

    def resolve(self, relative_path: str) -> Path:
        """Map a relative content path to a location inside the root.

        Raises:
            PublishError: If the path is absolute or escapes the root.
        """
        if Path(relative_path).is_absolute():
            raise PublishError(f"Content path must be relative: {relative_path}")
        root = self.root.resolve()
        target = (root / relative_path).resolve()
        if not target.is_relative_to(root):
            raise PublishError(f"Content path escapes the site root: {relative_path}")
        return target

    def write_file(self, relative_path: str, content: str) -> Path:
        """Write (or overwrite) one content file."""
        target = self.resolve(relative_path)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as e:
            raise PublishError(f"Could not write {relative_path}: {e}") from e
        return target

    def write(self, path: str, content: str) -> None:
        """Artifact-store entry point used by the Builder."""
        self.write_file(path, content)

    def read_file(self, relative_path: str) -> str | None:
        target = self.resolve(relative_path)
        if not target.exists():
            return None
        return target.read_text(encoding="utf-8")

    # -------------------------------------------------------------------------
    # Registry
    # -------------------------------------------------------------------------

    def _read_registry(self) -> dict[str, Any]:
        """Read the registry from disk. Caller must hold self._lock."""
        if not self.registry_path.exists():
            return {"projects": {}, "collections": {}}
        try:
            data = json.loads(self.registry_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise PublishError(f"Corrupted {REGISTRY_FILENAME}: {e}") from e
        except OSError as e:
            raise PublishError(f"Could not read {REGISTRY_FILENAME}: {e}") from e
        if not isinstance(data, dict):
            raise PublishError(f"{REGISTRY_FILENAME} must hold a JSON object")
        data.setdefault("projects", {})
        data.setdefault("collections", {})
        return data

    def load_registry(self) -> dict[str, Any]:
        with self._lock:
            return self._read_registry()

    def update_registry(self, slug: str, metadata: dict[str, Any]) -> None:
        """Add or replace the registry entry for ``slug``.

        Args:
            slug: Project key.
            metadata: ``title``, ``icon``, ``description`` and ``collection``.
        """
        with self._lock:
            data = self._read_registry()
            data["projects"][slug] = {
                "title": metadata.get("title", slug),
                "icon": metadata.get("icon", ""),
                "description": metadata.get("description", ""),
                "collection": metadata.get("collection", "unsorted"),
                "hidden": False,
            }
            try:
                self.root.mkdir(parents=True, exist_ok=True)
                self.registry_path.write_text(
                    json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8"
                )
            except OSError as e:
                raise PublishError(f"Could not write {REGISTRY_FILENAME}: {e}") from e

        logger.info(f"Updated {REGISTRY_FILENAME}: {slug} -> {metadata.get('collection')}")
