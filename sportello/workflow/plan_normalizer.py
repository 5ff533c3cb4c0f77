"""Plan normalization.

Turns the free-form plan object parsed from the Architect's response into the
canonical ``Plan`` model. Pure transform: no I/O, and the input is never
mutated.
"""

import logging
import re
from typing import Any

from pydantic import ValidationError

from sportello.config import (
    CONTENT_TYPE_ALIASES,
    DEFAULT_INTERACTION_PATTERN,
    Collection,
    ContentType,
    InteractionPattern,
)

from .models import Plan, PlanMetadata

logger = logging.getLogger(__name__)

REQUIRED_PLAN_FIELDS = ("slug", "contentType", "files", "metadata")

# Slugs that name nothing in particular
_GENERIC_SLUG_RE = re.compile(
    r"^(?:untitled|new|test|temp|tmp|page|game|app|project|content|item|example|sample|demo)"
    r"(?:-?\d+)?$|^(?:part|page|game|file|v)-?\d+$"
)
_SLUG_SEPARATORS_RE = re.compile(r"[\s_]+")
_SLUG_VALID_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


class PlanValidationError(ValueError):
    """Raised when an Architect plan cannot be normalized."""

    def __init__(self, message: str, missing_fields: list[str] | None = None):
        super().__init__(message)
        self.missing_fields = missing_fields or []


def normalize_plan(raw_plan: Any) -> Plan:
    """Normalize a raw Architect plan into a ``Plan``.

    Accepts ``contentType`` or the legacy ``type`` key for the content
    classification, ``features`` or the legacy ``mechanics`` key for the
    feature list, and defaults ``interactionPattern`` to ``direct-touch``.

    Args:
        raw_plan: Parsed JSON object from the Architect.

    Returns:
        The canonical plan.

    Raises:
        PlanValidationError: If a required field is absent or a value cannot
            be coerced onto the closed vocabularies.
    """
    if not isinstance(raw_plan, dict):
        raise PlanValidationError(f"Plan must be a JSON object, got {type(raw_plan).__name__}")

    content_type_raw = raw_plan.get("contentType") or raw_plan.get("type")
    fields = {
        "slug": raw_plan.get("slug"),
        "contentType": content_type_raw,
        "files": raw_plan.get("files"),
        "metadata": raw_plan.get("metadata"),
    }
    missing = [name for name in REQUIRED_PLAN_FIELDS if _is_absent(fields[name])]
    if missing:
        raise PlanValidationError(
            f"Plan missing required fields: {', '.join(missing)}", missing_fields=missing
        )

    slug = _normalize_slug(fields["slug"])
    content_type = _normalize_content_type(content_type_raw)
    pattern = _normalize_pattern(raw_plan.get("interactionPattern"))
    files = _normalize_files(fields["files"])
    metadata = _normalize_metadata(fields["metadata"])
    features = _normalize_features(raw_plan.get("features") or raw_plan.get("mechanics"))

    try:
        plan = Plan(
            slug=slug,
            content_type=content_type,
            interaction_pattern=pattern,
            files=files,
            metadata=metadata,
            features=features,
        )
    except ValidationError as e:
        raise PlanValidationError(f"Plan failed validation: {e}") from e

    logger.info(
        f"Plan normalized: {plan.slug} ({plan.content_type.value}, "
        f"{plan.interaction_pattern.value}), files={list(plan.files)}"
    )
    return plan


def _is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, (str, list, dict)) and not value)


def _normalize_slug(value: Any) -> str:
    slug = _SLUG_SEPARATORS_RE.sub("-", str(value).strip().lower()).strip("-")
    slug = re.sub(r"-{2,}", "-", slug)
    if not _SLUG_VALID_RE.match(slug):
        raise PlanValidationError(f"Slug '{value}' is not kebab-case")
    if _GENERIC_SLUG_RE.match(slug):
        raise PlanValidationError(f"Slug '{slug}' is a generic placeholder")
    return slug


def _normalize_content_type(value: Any) -> ContentType:
    key = str(value).strip().lower()
    if key in CONTENT_TYPE_ALIASES:
        return CONTENT_TYPE_ALIASES[key]
    try:
        return ContentType(key)
    except ValueError:
        raise PlanValidationError(
            f"Unknown content type '{value}'. Valid: {', '.join(ContentType.values())}"
        ) from None


def _normalize_pattern(value: Any) -> InteractionPattern:
    if _is_absent(value):
        return DEFAULT_INTERACTION_PATTERN
    try:
        return InteractionPattern(str(value).strip().lower())
    except ValueError:
        logger.warning(
            f"Unknown interaction pattern '{value}', "
            f"defaulting to {DEFAULT_INTERACTION_PATTERN.value}"
        )
        return DEFAULT_INTERACTION_PATTERN


def _normalize_files(value: Any) -> tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(f, str) and f.strip() for f in value):
        raise PlanValidationError("Plan 'files' must be a list of relative paths")
    files = tuple(f.strip().lstrip("/") for f in value)
    if not files[0].endswith(".html"):
        raise PlanValidationError(f"First plan file must be the markup file, got '{files[0]}'")
    return files


def _normalize_metadata(value: Any) -> PlanMetadata:
    if not isinstance(value, dict):
        raise PlanValidationError("Plan 'metadata' must be an object")
    title = str(value.get("title") or "").strip()
    if not title:
        raise PlanValidationError("Plan metadata has no title", missing_fields=["metadata.title"])

    collection_raw = str(value.get("collection") or "").strip().lower()
    try:
        collection = Collection(collection_raw)
    except ValueError:
        if collection_raw:
            logger.warning(f"Unknown collection '{collection_raw}', filing under unsorted")
        collection = Collection.UNSORTED

    return PlanMetadata(
        title=title,
        icon=str(value.get("icon") or "✨").strip(),
        description=str(value.get("description") or title).strip(),
        collection=collection,
    )


def _normalize_features(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        return ()
    return tuple(str(feature).strip() for feature in value if str(feature).strip())
