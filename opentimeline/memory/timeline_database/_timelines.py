"""Timeline, subtimeline edge and timeline-entity link operations."""

from __future__ import annotations

import logging
import sqlite3
import uuid
from typing import TYPE_CHECKING

from opentimeline.memory.entities import SubtimelineEdge, Tag, Timeline, TimelineEntityLink

if TYPE_CHECKING:
    from . import TimelineDatabase

logger = logging.getLogger(__name__)


def add_timeline(
    db: TimelineDatabase,
    name: str,
    bool_expression: str | None = None,
    timeline_id: str | None = None,
) -> str:
    """Add a new timeline.

    The expression is stored verbatim; it is only parsed when the timeline
    is resolved.

    Args:
        db: TimelineDatabase instance.
        name: Unique timeline name
        bool_expression: Optional boolean tag expression
        timeline_id: Explicit ID; a UUIDv4 is generated when omitted

    Returns:
        Timeline ID

    Raises:
        ValueError: If the name is blank or the name/ID is already taken
    """
    timeline = Timeline(
        id=timeline_id or str(uuid.uuid4()), name=name, bool_expression=bool_expression
    )
    with db._lock:
        db._ensure_open()
        try:
            db.conn.execute(
                "INSERT INTO timelines (id, name, bool_expression) VALUES (?, ?, ?)",
                (timeline.id, timeline.name, timeline.bool_expression),
            )
        except sqlite3.IntegrityError as e:
            db.conn.rollback()
            raise ValueError(
                f"Timeline '{timeline.name}' conflicts with an existing timeline"
            ) from e
        db.conn.commit()

    logger.debug("Added timeline: %s id=%s", timeline.name, timeline.id)
    return timeline.id


def get_timeline(db: TimelineDatabase, timeline_id: str) -> Timeline | None:
    """Get a timeline by ID, or None if not found."""
    with db._lock:
        db._ensure_open()
        cursor = db.conn.cursor()
        cursor.execute("SELECT * FROM timelines WHERE id = ?", (timeline_id,))
        row = cursor.fetchone()
        return row_to_timeline(row) if row else None


def get_timeline_by_name(db: TimelineDatabase, name: str) -> Timeline | None:
    """Get a timeline by its exact (trimmed) name, or None if not found."""
    with db._lock:
        db._ensure_open()
        cursor = db.conn.cursor()
        cursor.execute("SELECT * FROM timelines WHERE name = ?", (name.strip(),))
        row = cursor.fetchone()
        return row_to_timeline(row) if row else None


def list_timelines(db: TimelineDatabase) -> list[Timeline]:
    """List all timelines, ordered by name."""
    with db._lock:
        db._ensure_open()
        cursor = db.conn.cursor()
        cursor.execute("SELECT * FROM timelines ORDER BY name")
        return [row_to_timeline(row) for row in cursor.fetchall()]


def add_timeline_tag(db: TimelineDatabase, timeline_id: str, tag: Tag) -> None:
    """Attach a tag to a timeline."""
    with db._lock:
        db._ensure_open()
        db.conn.execute(
            "INSERT INTO timeline_tags (timeline_id, name, value) VALUES (?, ?, ?)",
            (timeline_id, tag.name, tag.value),
        )
        db.conn.commit()


def get_timeline_tags(db: TimelineDatabase, timeline_id: str) -> list[Tag]:
    """Get the tag multiset of a timeline, in insertion order."""
    with db._lock:
        db._ensure_open()
        cursor = db.conn.cursor()
        cursor.execute(
            "SELECT name, value FROM timeline_tags WHERE timeline_id = ? ORDER BY rowid",
            (timeline_id,),
        )
        return [Tag(name=row["name"], value=row["value"]) for row in cursor.fetchall()]


def add_subtimeline(db: TimelineDatabase, parent_id: str, child_id: str) -> None:
    """Make ``child_id`` a subtimeline of ``parent_id``.

    Cycles are not rejected here; the resolver reports them when a timeline
    containing one is resolved.

    Args:
        db: TimelineDatabase instance.
        parent_id: Parent timeline ID
        child_id: Child timeline ID
    """
    with db._lock:
        db._ensure_open()
        db.conn.execute(
            "INSERT INTO subtimelines (timeline_parent_id, timeline_child_id) VALUES (?, ?)",
            (parent_id, child_id),
        )
        db.conn.commit()
    logger.debug("Added subtimeline edge %s -> %s", parent_id, child_id)


def list_subtimeline_children(db: TimelineDatabase, parent_id: str) -> list[str]:
    """Direct child timeline IDs of ``parent_id``, in insertion order."""
    with db._lock:
        db._ensure_open()
        cursor = db.conn.cursor()
        cursor.execute(
            "SELECT timeline_child_id FROM subtimelines "
            "WHERE timeline_parent_id = ? ORDER BY rowid",
            (parent_id,),
        )
        return [row[0] for row in cursor.fetchall()]


def list_subtimeline_edges(db: TimelineDatabase) -> list[SubtimelineEdge]:
    """Every parent -> child edge in the database."""
    with db._lock:
        db._ensure_open()
        cursor = db.conn.cursor()
        cursor.execute(
            "SELECT timeline_parent_id, timeline_child_id FROM subtimelines ORDER BY rowid"
        )
        return [SubtimelineEdge(parent_id=row[0], child_id=row[1]) for row in cursor.fetchall()]


def link_entity(db: TimelineDatabase, timeline_id: str, entity_id: str) -> TimelineEntityLink:
    """Explicitly include an entity in a timeline."""
    link = TimelineEntityLink(timeline_id=timeline_id, entity_id=entity_id)
    with db._lock:
        db._ensure_open()
        db.conn.execute(
            "INSERT INTO timeline_entities (timeline_id, entity_id) VALUES (?, ?)",
            (timeline_id, entity_id),
        )
        db.conn.commit()
    logger.debug("Linked entity %s to timeline %s", entity_id, timeline_id)
    return link


def list_entity_links(db: TimelineDatabase) -> list[TimelineEntityLink]:
    """Every explicit timeline -> entity link, in insertion order."""
    with db._lock:
        db._ensure_open()
        cursor = db.conn.cursor()
        cursor.execute("SELECT timeline_id, entity_id FROM timeline_entities ORDER BY rowid")
        return [
            TimelineEntityLink(timeline_id=row[0], entity_id=row[1]) for row in cursor.fetchall()
        ]


def list_linked_entities(db: TimelineDatabase, timeline_id: str) -> list[str]:
    """Entity IDs explicitly linked to ``timeline_id``, in insertion order."""
    with db._lock:
        db._ensure_open()
        cursor = db.conn.cursor()
        cursor.execute(
            "SELECT entity_id FROM timeline_entities WHERE timeline_id = ? ORDER BY rowid",
            (timeline_id,),
        )
        return [row[0] for row in cursor.fetchall()]


def row_to_timeline(row: sqlite3.Row) -> Timeline:
    """Convert a database row to a Timeline."""
    return Timeline(id=row["id"], name=row["name"], bool_expression=row["bool_expression"])
