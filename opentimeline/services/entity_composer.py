"""Entity set composer - unions the entities every contributing timeline selects.

Each contributing timeline selects (a) its explicitly linked entities and
(b) every entity whose tags satisfy its expression. The results are merged as
a pure union: a later timeline never removes an entity chosen by another one.
"""

from __future__ import annotations

import contextvars
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field

from opentimeline.memory.automatic_tags import AutomaticTags
from opentimeline.memory.timeline_store import TimelineStore
from opentimeline.services.expression import Predicate, TagIndex, build_tag_index, parse
from opentimeline.utils.exceptions import NotFoundError, ParseError
from opentimeline.utils.validation import validate_positive

logger = logging.getLogger(__name__)


@dataclass
class Composition:
    """Entities selected by a set of contributing timelines.

    Attributes:
        entity_ids: Selected entity IDs, deduplicated.
        warnings: One message per skipped dangling entity link.
    """

    entity_ids: set[str] = field(default_factory=set)
    warnings: list[str] = field(default_factory=list)


@dataclass
class _TimelineSelection:
    entity_ids: list[str]
    warnings: list[str]


def compile_expressions(
    store: TimelineStore, timeline_ids: list[str]
) -> dict[str, Predicate | None]:
    """Parse the expression of every timeline once.

    Args:
        store: Store to read timelines from.
        timeline_ids: Timelines whose expressions to parse.

    Returns:
        Predicate (or None for no expression) per timeline ID.

    Raises:
        ParseError: For the first malformed expression, attributed to its timeline.
    """
    predicates: dict[str, Predicate | None] = {}
    for timeline_id in timeline_ids:
        timeline = store.get_timeline(timeline_id)
        expression = timeline.bool_expression if timeline else None
        try:
            predicates[timeline_id] = parse(expression)
        except ParseError as e:
            logger.warning("Timeline %s has a malformed expression: %s", timeline_id, e)
            raise e.for_timeline(timeline_id) from e
    return predicates


def compose(
    store: TimelineStore,
    contributing_ids: list[str],
    *,
    automatic_tags: AutomaticTags | None = None,
    max_workers: int = 1,
    strict_references: bool = False,
) -> Composition:
    """Union the entities selected by each contributing timeline.

    Args:
        store: Store (usually a snapshot) to read links, entities and tags from.
        contributing_ids: Output of the timeline graph resolver.
        automatic_tags: Optional tag rules applied to each entity's tags
            before expressions are evaluated.
        max_workers: Evaluate timelines on a thread pool when greater than 1.
            Results are merged in ``contributing_ids`` order either way.
        strict_references: Raise instead of skipping links to missing entities.

    Returns:
        The composed entity ID set and any warnings.

    Raises:
        ParseError: If a contributing timeline's expression is malformed.
        NotFoundError: For a dangling link when ``strict_references`` is set.
        ValueError: If ``max_workers`` is not positive.
    """
    validate_positive(max_workers, "max_workers")
    predicates = compile_expressions(store, contributing_ids)

    indexes: list[tuple[str, TagIndex]] = []
    if any(predicate is not None for predicate in predicates.values()):
        for entity in store.list_entities():
            tags = store.get_tags(entity.id)
            if automatic_tags:
                tags = automatic_tags.expand(tags)
            indexes.append((entity.id, build_tag_index(tags)))

    def select(timeline_id: str) -> _TimelineSelection:
        selected: list[str] = []
        warnings: list[str] = []
        for entity_id in store.list_linked_entities(timeline_id):
            if store.get_entity(entity_id) is None:
                if strict_references:
                    raise NotFoundError("entity", entity_id, referenced_by=timeline_id)
                message = f"Timeline {timeline_id} links missing entity {entity_id}; skipped"
                logger.warning(message)
                warnings.append(message)
                continue
            selected.append(entity_id)

        predicate = predicates[timeline_id]
        if predicate is not None:
            matched = [entity_id for entity_id, index in indexes if predicate.evaluate(index)]
            logger.debug("Timeline %s expression matched %d entities", timeline_id, len(matched))
            selected.extend(matched)
        return _TimelineSelection(selected, warnings)

    if max_workers > 1 and len(contributing_ids) > 1:
        logger.debug(
            "Composing %d timelines with max_workers=%d", len(contributing_ids), max_workers
        )
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            # Workers run in a copy of the caller's context to keep its correlation ID
            contexts = [contextvars.copy_context() for _ in contributing_ids]
            selections = list(
                executor.map(lambda ctx, tid: ctx.run(select, tid), contexts, contributing_ids)
            )
    else:
        selections = [select(timeline_id) for timeline_id in contributing_ids]

    composition = Composition()
    for selection in selections:
        composition.entity_ids.update(selection.entity_ids)
        composition.warnings.extend(selection.warnings)

    logger.debug(
        "Composed %d entities from %d timelines",
        len(composition.entity_ids),
        len(contributing_ids),
    )
    return composition
