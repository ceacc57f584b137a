"""Validation functions for Settings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError

from opentimeline.memory.automatic_tags import AutomaticTags

if TYPE_CHECKING:
    from opentimeline.settings._settings import Settings

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

# Upper bound for composition thread pools
MAX_COMPOSITION_WORKERS = 64


def validate(settings: Settings) -> bool:
    """Validate all settings fields.

    Returns:
        True if any settings were normalized during validation, False otherwise.

    Raises:
        ValueError: If any field contains an invalid value.
    """
    changed = _validate_log_level(settings)
    _validate_database_path(settings)
    _validate_composition_workers(settings)
    _validate_strict_references(settings)
    _validate_automatic_tags(settings)
    return changed


def _validate_log_level(settings: Settings) -> bool:
    """Validate log_level is a known logging level, normalizing case."""
    if not isinstance(settings.log_level, str):
        raise ValueError(f"log_level must be a string, got {type(settings.log_level).__name__}")
    normalized = settings.log_level.upper()
    if normalized not in LOG_LEVELS:
        raise ValueError(f"log_level must be one of {list(LOG_LEVELS)}, got {settings.log_level}")
    if normalized != settings.log_level:
        logger.info("Normalizing log_level %r -> %r", settings.log_level, normalized)
        settings.log_level = normalized
        return True
    return False


def _validate_database_path(settings: Settings) -> None:
    if not isinstance(settings.database_path, str) or not settings.database_path.strip():
        raise ValueError("database_path must be a non-empty string")


def _validate_composition_workers(settings: Settings) -> None:
    workers = settings.composition_workers
    if isinstance(workers, bool) or not isinstance(workers, int):
        raise ValueError(f"composition_workers must be an integer, got {workers!r}")
    if not 1 <= workers <= MAX_COMPOSITION_WORKERS:
        raise ValueError(
            f"composition_workers must be between 1 and {MAX_COMPOSITION_WORKERS}, got {workers}"
        )


def _validate_strict_references(settings: Settings) -> None:
    if not isinstance(settings.strict_references, bool):
        raise ValueError(
            f"strict_references must be true or false, got {settings.strict_references!r}"
        )


def _validate_automatic_tags(settings: Settings) -> None:
    if not isinstance(settings.automatic_tags, list):
        raise ValueError("automatic_tags must be a list of rules")
    try:
        AutomaticTags.from_config(settings.automatic_tags)
    except ValidationError as e:
        raise ValueError(f"automatic_tags contains an invalid rule: {e}") from e
