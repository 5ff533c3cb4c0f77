"""The ``persist`` capability and the Builder's artifact store."""

import asyncio
import logging
from typing import TYPE_CHECKING, Protocol

from .site_repository import PublishError, SiteRepository

if TYPE_CHECKING:
    from sportello.workflow.models import PlanMetadata

logger = logging.getLogger(__name__)


class ArtifactStore(Protocol):
    """Where the Builder drops each attempt's files (overwrite semantics)."""

    def write(self, path: str, content: str) -> None: ...


class Publisher(Protocol):
    """Durable write-through of a finished build."""

    async def persist(
        self, slug: str, files: dict[str, str], metadata_patch: "PlanMetadata"
    ) -> bool: ...


class SiteRepositoryPublisher:
    """Publisher writing content files and the registry entry to a ``SiteRepository``.

    Failures are reported as ``False``; nothing is retried here.
    """

    def __init__(self, repository: SiteRepository):
        self.repository = repository

    async def persist(
        self, slug: str, files: dict[str, str], metadata_patch: "PlanMetadata"
    ) -> bool:
        try:
            await asyncio.to_thread(self._persist_sync, slug, files, metadata_patch)
        except PublishError as e:
            logger.error(f"Persist failed for {slug}: {e}")
            return False
        logger.info(f"Persisted {slug} ({len(files)} files)")
        return True

    def _persist_sync(
        self, slug: str, files: dict[str, str], metadata_patch: "PlanMetadata"
    ) -> None:
        for path, content in files.items():
            self.repository.write_file(path, content)
        self.repository.update_registry(slug, metadata_patch.model_dump(mode="json"))
