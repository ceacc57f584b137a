"""Read-only query contract for the storage collaborator, plus snapshots.

The resolution engine never talks to storage mid-pipeline. It takes a
snapshot first with ``take_snapshot`` (the only I/O step), then resolves,
composes and sorts against that snapshot, so concurrent edits in the store
cannot produce a partially updated result.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from opentimeline.memory.entities import Entity, SubtimelineEdge, Tag, Timeline

logger = logging.getLogger(__name__)


@runtime_checkable
class TimelineStore(Protocol):
    """Queries the engine needs. Missing records are reported as ``None``."""

    def get_entity(self, entity_id: str) -> Entity | None: ...

    def list_entities(self) -> Sequence[Entity]: ...

    def get_tags(self, entity_id: str) -> Sequence[Tag]: ...

    def get_timeline(self, timeline_id: str) -> Timeline | None: ...

    def list_subtimeline_children(self, parent_id: str) -> Sequence[str]: ...

    def list_linked_entities(self, timeline_id: str) -> Sequence[str]: ...


@runtime_checkable
class TimelineCatalog(TimelineStore, Protocol):
    """A store that can also enumerate all timelines and edges."""

    def list_timelines(self) -> Sequence[Timeline]: ...

    def list_subtimeline_edges(self) -> Sequence[SubtimelineEdge]: ...


@runtime_checkable
class SnapshotSource(Protocol):
    """A store that can copy out a consistent snapshot in one step."""

    def snapshot(self, root_id: str) -> StoreSnapshot: ...


@dataclass(frozen=True)
class StoreSnapshot:
    """In-memory copy of everything needed to resolve one root timeline.

    Implements ``TimelineStore`` so the resolver and composer run unchanged
    against either a live store or a snapshot.

    Attributes:
        entities: Every entity in the store, keyed by ID.
        tags: Tag multiset per entity ID.
        timelines: Timelines reachable from the root, keyed by ID.
        children: Subtimeline child IDs per reachable timeline ID.
        links: Explicitly linked entity IDs per reachable timeline ID.
    """

    entities: dict[str, Entity] = field(default_factory=dict)
    tags: dict[str, tuple[Tag, ...]] = field(default_factory=dict)
    timelines: dict[str, Timeline] = field(default_factory=dict)
    children: dict[str, tuple[str, ...]] = field(default_factory=dict)
    links: dict[str, tuple[str, ...]] = field(default_factory=dict)

    @classmethod
    def capture(cls, store: TimelineStore, root_id: str) -> StoreSnapshot:
        """Copy the records reachable from ``root_id`` out of ``store``.

        Walks subtimeline edges with a plain visited set; cycles are left in
        the copied edges for the resolver to report. Every entity and its tags
        are copied because expression matching scans the whole store.

        The copy is made with separate store queries, so a writer that commits
        between them can leave it inconsistent. Stores that can do better
        implement ``SnapshotSource``; use ``take_snapshot`` to prefer that.

        Args:
            store: Storage collaborator to read from.
            root_id: Root timeline ID.

        Returns:
            The snapshot. A missing root simply has no entry in ``timelines``.
        """
        timelines: dict[str, Timeline] = {}
        children: dict[str, tuple[str, ...]] = {}
        links: dict[str, tuple[str, ...]] = {}

        backlog = [root_id]
        seen: set[str] = set()
        while backlog:
            timeline_id = backlog.pop()
            if timeline_id in seen:
                continue
            seen.add(timeline_id)

            timeline = store.get_timeline(timeline_id)
            if timeline is None:
                continue
            timelines[timeline_id] = timeline
            child_ids = tuple(store.list_subtimeline_children(timeline_id))
            children[timeline_id] = child_ids
            links[timeline_id] = tuple(store.list_linked_entities(timeline_id))
            backlog.extend(child_ids)

        entities = {entity.id: entity for entity in store.list_entities()}
        tags = {entity_id: tuple(store.get_tags(entity_id)) for entity_id in entities}

        logger.debug(
            "Captured snapshot for %s: %d timelines, %d entities",
            root_id,
            len(timelines),
            len(entities),
        )
        return cls(
            entities=entities,
            tags=tags,
            timelines=timelines,
            children=children,
            links=links,
        )

    def get_entity(self, entity_id: str) -> Entity | None:
        return self.entities.get(entity_id)

    def list_entities(self) -> list[Entity]:
        return list(self.entities.values())

    def get_tags(self, entity_id: str) -> tuple[Tag, ...]:
        return self.tags.get(entity_id, ())

    def get_timeline(self, timeline_id: str) -> Timeline | None:
        return self.timelines.get(timeline_id)

    def list_subtimeline_children(self, parent_id: str) -> tuple[str, ...]:
        return self.children.get(parent_id, ())

    def list_linked_entities(self, timeline_id: str) -> tuple[str, ...]:
        return self.links.get(timeline_id, ())


def take_snapshot(store: TimelineStore, root_id: str) -> StoreSnapshot:
    """Snapshot ``root_id`` atomically when the store supports it.

    Falls back to ``StoreSnapshot.capture`` for stores that only answer
    individual queries.
    """
    if isinstance(store, SnapshotSource):
        return store.snapshot(root_id)
    return StoreSnapshot.capture(store, root_id)
