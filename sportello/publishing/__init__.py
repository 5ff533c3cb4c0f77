"""Persistence collaborators: the site repository and its publisher."""

from .publisher import ArtifactStore, Publisher, SiteRepositoryPublisher
from .site_repository import PublishError, SiteRepository

__all__ = [
    "ArtifactStore",
    "PublishError",
    "Publisher",
    "SiteRepository",
    "SiteRepositoryPublisher",
]
