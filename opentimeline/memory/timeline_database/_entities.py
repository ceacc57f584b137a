"""Entity and entity tag operations for TimelineDatabase."""

from __future__ import annotations

import logging
import sqlite3
import uuid
from typing import TYPE_CHECKING

from opentimeline.memory.entities import Entity, Tag
from opentimeline.memory.timeline_types import PartialDate

if TYPE_CHECKING:
    from . import TimelineDatabase

logger = logging.getLogger(__name__)


def add_entity(
    db: TimelineDatabase,
    name: str,
    start: PartialDate,
    end: PartialDate | None = None,
    tags: list[Tag] | None = None,
    entity_id: str | None = None,
) -> str:
    """Add a new entity (and optionally its tags) to the database.

    Args:
        db: TimelineDatabase instance.
        name: Unique entity name
        start: Start date
        end: Optional end date
        tags: Optional tag multiset
        entity_id: Explicit ID; a UUIDv4 is generated when omitted

    Returns:
        Entity ID

    Raises:
        ValueError: If the entity is invalid or the name/ID is already taken
    """
    entity = Entity(id=entity_id or str(uuid.uuid4()), name=name, start=start, end=end)
    end_fields = (end.year, end.month, end.day) if end else (None, None, None)

    with db._lock:
        db._ensure_open()
        cursor = db.conn.cursor()
        try:
            cursor.execute(
                """
                INSERT INTO entities (id, name, start_year, start_month, start_day,
                                      end_year, end_month, end_day)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (entity.id, entity.name, start.year, start.month, start.day, *end_fields),
            )
            for tag in tags or []:
                cursor.execute(
                    "INSERT INTO entity_tags (entity_id, name, value) VALUES (?, ?, ?)",
                    (entity.id, tag.name, tag.value),
                )
        except sqlite3.IntegrityError as e:
            db.conn.rollback()
            raise ValueError(f"Entity '{entity.name}' conflicts with an existing entity") from e
        db.conn.commit()

    logger.debug("Added entity: %s (%s) id=%s", entity.name, entity.start, entity.id)
    return entity.id


def add_entity_tag(db: TimelineDatabase, entity_id: str, tag: Tag) -> None:
    """Attach a tag to an entity. Duplicate tags are allowed.

    Args:
        db: TimelineDatabase instance.
        entity_id: Entity ID
        tag: Tag to add
    """
    with db._lock:
        db._ensure_open()
        db.conn.execute(
            "INSERT INTO entity_tags (entity_id, name, value) VALUES (?, ?, ?)",
            (entity_id, tag.name, tag.value),
        )
        db.conn.commit()
    logger.debug("Tagged entity %s with %s", entity_id, tag)


def get_entity(db: TimelineDatabase, entity_id: str) -> Entity | None:
    """Get an entity by ID.

    Args:
        db: TimelineDatabase instance.
        entity_id: Entity ID

    Returns:
        Entity or None if not found
    """
    with db._lock:
        db._ensure_open()
        cursor = db.conn.cursor()
        cursor.execute("SELECT * FROM entities WHERE id = ?", (entity_id,))
        row = cursor.fetchone()
        if row is None:
            return None
        return row_to_entity(row)


def get_entity_by_name(db: TimelineDatabase, name: str) -> Entity | None:
    """Get an entity by its exact (trimmed) name."""
    with db._lock:
        db._ensure_open()
        cursor = db.conn.cursor()
        cursor.execute("SELECT * FROM entities WHERE name = ?", (name.strip(),))
        row = cursor.fetchone()
        return row_to_entity(row) if row else None


def list_entities(db: TimelineDatabase) -> list[Entity]:
    """List all entities, ordered by name."""
    with db._lock:
        db._ensure_open()
        cursor = db.conn.cursor()
        cursor.execute("SELECT * FROM entities ORDER BY name")
        return [row_to_entity(row) for row in cursor.fetchall()]


def count_entities(db: TimelineDatabase) -> int:
    """Count all entities."""
    with db._lock:
        db._ensure_open()
        cursor = db.conn.cursor()
        cursor.execute("SELECT COUNT(*) FROM entities")
        result = cursor.fetchone()
        return int(result[0])


def get_tags(db: TimelineDatabase, entity_id: str) -> list[Tag]:
    """Get the tag multiset of an entity, in insertion order.

    Args:
        db: TimelineDatabase instance.
        entity_id: Entity ID

    Returns:
        Tags (empty for unknown entities)
    """
    with db._lock:
        db._ensure_open()
        cursor = db.conn.cursor()
        cursor.execute(
            "SELECT name, value FROM entity_tags WHERE entity_id = ? ORDER BY rowid",
            (entity_id,),
        )
        return [Tag(name=row["name"], value=row["value"]) for row in cursor.fetchall()]


def row_to_entity(row: sqlite3.Row) -> Entity:
    """Convert a database row to an Entity."""
    start = PartialDate(year=row["start_year"], month=row["start_month"], day=row["start_day"])
    end = None
    if row["end_year"] is not None:
        end = PartialDate(year=row["end_year"], month=row["end_month"], day=row["end_day"])
    return Entity(id=row["id"], name=row["name"], start=start, end=end)
