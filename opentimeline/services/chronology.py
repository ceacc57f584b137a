"""Chronological ordering of resolved entities."""

import logging
from collections.abc import Iterable

from opentimeline.memory.entities import Entity

logger = logging.getLogger(__name__)


def chronological_key(entity: Entity) -> tuple[tuple[int, int, int], str, str]:
    """Sort key: start date (missing month/day sorts earliest), then name, then ID."""
    return (entity.start.sort_key, entity.name, entity.id)


def sort_entities(entities: Iterable[Entity]) -> list[Entity]:
    """Order entities by start date.

    Dates are compared year first; an entity without a month sorts before any
    entity of the same year with a month, and likewise for days. Exact date
    ties fall back to name, then ID, so the order is total and repeatable.

    Args:
        entities: Entities to order.

    Returns:
        A new, sorted list.
    """
    ordered = sorted(entities, key=chronological_key)
    logger.debug("Sorted %d entities chronologically", len(ordered))
    return ordered
