"""SQLite-backed timeline database implementing the TimelineStore queries."""

from __future__ import annotations

import logging
import sqlite3
import threading
from pathlib import Path
from typing import Any, Literal

from opentimeline.memory.entities import (
    Entity,
    SubtimelineEdge,
    Tag,
    Timeline,
    TimelineEntityLink,
)
from opentimeline.memory.timeline_store import StoreSnapshot
from opentimeline.memory.timeline_types import PartialDate
from opentimeline.utils.exceptions import DatabaseClosedError

from . import _cycles, _entities, _schema, _timelines
from ._cycles import compute_cycle_hash, find_subtimeline_cycles

logger = logging.getLogger(__name__)

# Schema version stamped on new databases
SCHEMA_VERSION = 1

__all__ = [
    "SCHEMA_VERSION",
    "TimelineDatabase",
    "compute_cycle_hash",
    "find_subtimeline_cycles",
]


class TimelineDatabase:
    """SQLite-backed store for entities, tags, timelines and their relations.

    Thread-safe implementation using RLock for all database operations.
    """

    def __init__(self, db_path: Path | str):
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file, or ":memory:".
        """
        if str(db_path) == ":memory:":
            self.db_path = Path(":memory:")
        else:
            self.db_path = Path(db_path)
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # Thread safety lock
        self._lock = threading.RLock()

        self.conn = sqlite3.connect(str(db_path), check_same_thread=False)
        self._closed = False  # Initialize immediately so __del__ can always clean up
        self.conn.row_factory = sqlite3.Row
        self.conn.execute("PRAGMA journal_mode=WAL")

        _schema.init_schema(self)

    def __del__(self) -> None:
        """Safety net for resource cleanup."""
        if hasattr(self, "_closed") and not self._closed:
            try:
                self.close()
            except Exception as e:
                # Log but don't raise during garbage collection
                logger.debug("Error during TimelineDatabase cleanup in __del__: %s", e)

    def _ensure_open(self) -> None:
        """Check that the database connection is still open.

        Raises:
            DatabaseClosedError: If the database has been closed.
        """
        if self._closed:
            raise DatabaseClosedError(f"Database connection is closed: {self.db_path}")

    def close(self) -> None:
        """Close database connection."""
        with self._lock:
            if self.conn and not self._closed:
                self.conn.close()
                self._closed = True
                logger.debug("Database connection closed: %s", self.db_path)

    def __enter__(self) -> TimelineDatabase:
        """Context manager entry."""
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> Literal[False]:
        """Context manager exit - ensures connection is closed."""
        self.close()
        return False  # Don't suppress exceptions

    # =========================================================================
    # Entity Operations (delegated to _entities)
    # =========================================================================

    def add_entity(
        self,
        name: str,
        start: PartialDate,
        end: PartialDate | None = None,
        tags: list[Tag] | None = None,
        entity_id: str | None = None,
    ) -> str:
        return _entities.add_entity(self, name, start, end, tags, entity_id)

    def add_entity_tag(self, entity_id: str, tag: Tag) -> None:
        _entities.add_entity_tag(self, entity_id, tag)

    def get_entity(self, entity_id: str) -> Entity | None:
        return _entities.get_entity(self, entity_id)

    def get_entity_by_name(self, name: str) -> Entity | None:
        return _entities.get_entity_by_name(self, name)

    def list_entities(self) -> list[Entity]:
        return _entities.list_entities(self)

    def count_entities(self) -> int:
        return _entities.count_entities(self)

    def get_tags(self, entity_id: str) -> list[Tag]:
        return _entities.get_tags(self, entity_id)

    # =========================================================================
    # Timeline Operations (delegated to _timelines)
    # =========================================================================

    def add_timeline(
        self,
        name: str,
        bool_expression: str | None = None,
        timeline_id: str | None = None,
    ) -> str:
        return _timelines.add_timeline(self, name, bool_expression, timeline_id)

    def get_timeline(self, timeline_id: str) -> Timeline | None:
        return _timelines.get_timeline(self, timeline_id)

    def get_timeline_by_name(self, name: str) -> Timeline | None:
        return _timelines.get_timeline_by_name(self, name)

    def list_timelines(self) -> list[Timeline]:
        return _timelines.list_timelines(self)

    def add_timeline_tag(self, timeline_id: str, tag: Tag) -> None:
        _timelines.add_timeline_tag(self, timeline_id, tag)

    def get_timeline_tags(self, timeline_id: str) -> list[Tag]:
        return _timelines.get_timeline_tags(self, timeline_id)

    def add_subtimeline(self, parent_id: str, child_id: str) -> None:
        _timelines.add_subtimeline(self, parent_id, child_id)

    def list_subtimeline_children(self, parent_id: str) -> list[str]:
        return _timelines.list_subtimeline_children(self, parent_id)

    def list_subtimeline_edges(self) -> list[SubtimelineEdge]:
        return _timelines.list_subtimeline_edges(self)

    def link_entity(self, timeline_id: str, entity_id: str) -> TimelineEntityLink:
        return _timelines.link_entity(self, timeline_id, entity_id)

    def list_entity_links(self) -> list[TimelineEntityLink]:
        return _timelines.list_entity_links(self)

    def list_linked_entities(self, timeline_id: str) -> list[str]:
        return _timelines.list_linked_entities(self, timeline_id)

    def snapshot(self, root_id: str) -> StoreSnapshot:
        """Capture everything needed to resolve ``root_id`` as of one moment.

        The lock keeps writers on this connection out, and the read
        transaction pins one WAL snapshot against writers in other processes.
        """
        with self._lock:
            self._ensure_open()
            started = not self.conn.in_transaction
            if started:
                self.conn.execute("BEGIN")
            try:
                return StoreSnapshot.capture(self, root_id)
            finally:
                if started:
                    self.conn.rollback()

    # =========================================================================
    # Graph Integrity (delegated to _cycles)
    # =========================================================================

    def find_subtimeline_cycles(self, max_cycle_length: int | None = None) -> list[list[str]]:
        return _cycles.find_subtimeline_cycles(self.list_subtimeline_edges(), max_cycle_length)
