"""Timeline service - resolves a root timeline into its ordered entity list.

This service handles:
- Capturing a consistent snapshot of the store (the only I/O step)
- Flattening the sub-timeline graph with cycle detection
- Composing entities from explicit links and tag expressions
- Ordering the result chronologically
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from opentimeline.memory.entities import Entity, ResolvedTimeline
from opentimeline.memory.timeline_database import compute_cycle_hash, find_subtimeline_cycles
from opentimeline.memory.timeline_store import TimelineCatalog, TimelineStore, take_snapshot
from opentimeline.services.chronology import sort_entities
from opentimeline.services.entity_composer import compose
from opentimeline.services.expression import parse
from opentimeline.services.timeline_graph import resolve_contributing
from opentimeline.settings import Settings
from opentimeline.utils.exceptions import ParseError
from opentimeline.utils.logging_config import log_context, log_performance
from opentimeline.utils.validation import validate_not_empty, validate_not_none

logger = logging.getLogger(__name__)


@dataclass
class IntegrityReport:
    """Authoring problems found across all timelines.

    Attributes:
        cycles: Each subtimeline cycle as timeline IDs, keyed by cycle hash.
        parse_errors: Malformed expressions, keyed by timeline ID.
    """

    cycles: dict[str, list[str]] = field(default_factory=dict)
    parse_errors: dict[str, ParseError] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.cycles and not self.parse_errors


class TimelineService:
    """Service for resolving timelines against a storage collaborator.

    The service is read-only over the store and keeps no per-call state, so
    it can be used concurrently for different root timelines.
    """

    def __init__(self, settings: Settings, store: TimelineStore):
        """
        Create a TimelineService bound to a store.

        Parameters:
            settings (Settings): Application settings (worker count, reference strictness,
                automatic tag rules).
            store (TimelineStore): Storage collaborator to read records from.
        """
        validate_not_none(store, "store")
        logger.debug("Initializing TimelineService")
        self.settings = settings
        self.store = store
        self.automatic_tags = settings.get_automatic_tags()

    def resolve(self, root_id: str) -> ResolvedTimeline:
        """
        Resolve a root timeline into its ordered entities plus diagnostics.

        Parameters:
            root_id (str): ID of the timeline to resolve.

        Returns:
            ResolvedTimeline: The timeline, its sorted entities, the contributing
            timeline IDs and any warnings about skipped dangling references.

        Raises:
            NotFoundError: If the root timeline does not exist (or any reference is
                dangling while ``strict_references`` is enabled).
            CycleError: If the root reaches a sub-timeline cycle.
            ParseError: If any contributing timeline has a malformed expression.
        """
        validate_not_empty(root_id, "root_id")
        with log_context(f"timeline-{root_id[:8]}"):
            with log_performance(logger, f"resolve timeline {root_id}"):
                snapshot = take_snapshot(self.store, root_id)

                warnings: list[str] = []
                contributing = resolve_contributing(
                    snapshot,
                    root_id,
                    strict_references=self.settings.strict_references,
                    warnings=warnings,
                )
                composition = compose(
                    snapshot,
                    contributing,
                    automatic_tags=self.automatic_tags,
                    max_workers=self.settings.composition_workers,
                    strict_references=self.settings.strict_references,
                )
                warnings.extend(composition.warnings)

                entities = sort_entities(snapshot.entities[i] for i in composition.entity_ids)
                timeline = snapshot.timelines[root_id]

        logger.info(
            "Resolved timeline '%s': %d entities from %d timelines (%d warnings)",
            timeline.name,
            len(entities),
            len(contributing),
            len(warnings),
        )
        return ResolvedTimeline(
            timeline=timeline,
            entities=entities,
            contributing_timeline_ids=contributing,
            warnings=warnings,
        )

    def render_timeline(self, root_id: str) -> list[Entity]:
        """
        Return the fully resolved, chronologically ordered entities of a timeline.

        Parameters:
            root_id (str): ID of the timeline to render.

        Returns:
            list[Entity]: Entities in display order.

        Raises:
            ResolutionError: A specific, attributable failure (ParseError, CycleError
                or NotFoundError); no partial result is ever returned.
        """
        return self.resolve(root_id).entities

    def check_integrity(self, catalog: TimelineCatalog | None = None) -> IntegrityReport:
        """
        Scan every timeline for sub-timeline cycles and malformed expressions.

        Unlike ``resolve`` this never raises for data problems; it collects them so
        authors can fix them in one pass.

        Parameters:
            catalog (TimelineCatalog | None): Store able to list all timelines and edges.
                Defaults to the bound store.

        Returns:
            IntegrityReport: Cycles keyed by hash and parse errors keyed by timeline ID.

        Raises:
            TypeError: If no catalog is given and the bound store cannot list timelines.
        """
        if catalog is None:
            if not isinstance(self.store, TimelineCatalog):
                raise TypeError("Bound store cannot enumerate timelines; pass a catalog")
            catalog = self.store

        report = IntegrityReport()
        for cycle in find_subtimeline_cycles(catalog.list_subtimeline_edges()):
            report.cycles[compute_cycle_hash(cycle)] = cycle

        for timeline in catalog.list_timelines():
            try:
                parse(timeline.bool_expression)
            except ParseError as e:
                report.parse_errors[timeline.id] = e.for_timeline(timeline.id)

        logger.info(
            "Integrity check: %d cycles, %d malformed expressions",
            len(report.cycles),
            len(report.parse_errors),
        )
        return report
