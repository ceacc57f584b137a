"""Database schema initialization for TimelineDatabase."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from . import TimelineDatabase

logger = logging.getLogger(__name__)

_TABLES = (
    """
    CREATE TABLE IF NOT EXISTS entities (
        id          TEXT NOT NULL UNIQUE,
        name        TEXT NOT NULL UNIQUE,
        start_year  INTEGER NOT NULL,
        start_month INTEGER,
        start_day   INTEGER,
        end_year    INTEGER,
        end_month   INTEGER,
        end_day     INTEGER,
        PRIMARY KEY (id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS entity_tags (
        entity_id TEXT NOT NULL,
        name      TEXT,
        value     TEXT NOT NULL,
        FOREIGN KEY (entity_id) REFERENCES entities (id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS timelines (
        id              TEXT NOT NULL UNIQUE,
        name            TEXT NOT NULL UNIQUE,
        bool_expression TEXT,
        PRIMARY KEY (id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS subtimelines (
        timeline_parent_id TEXT NOT NULL,
        timeline_child_id  TEXT NOT NULL,
        FOREIGN KEY (timeline_parent_id) REFERENCES timelines (id),
        FOREIGN KEY (timeline_child_id)  REFERENCES timelines (id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS timeline_entities (
        timeline_id TEXT NOT NULL,
        entity_id   TEXT NOT NULL,
        FOREIGN KEY (timeline_id) REFERENCES timelines (id),
        FOREIGN KEY (entity_id)   REFERENCES entities (id)
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS timeline_tags (
        timeline_id TEXT NOT NULL,
        name        TEXT,
        value       TEXT NOT NULL,
        FOREIGN KEY (timeline_id) REFERENCES timelines (id)
    )
    """,
)

_INDEXES = (
    "CREATE INDEX IF NOT EXISTS idx_entities_start_year ON entities(start_year)",
    "CREATE INDEX IF NOT EXISTS idx_entities_end_year ON entities(end_year)",
    "CREATE INDEX IF NOT EXISTS idx_entity_tags_entity_id ON entity_tags(entity_id)",
    "CREATE INDEX IF NOT EXISTS idx_entity_tags_name ON entity_tags(name)",
    "CREATE INDEX IF NOT EXISTS idx_entity_tags_value ON entity_tags(value)",
    "CREATE INDEX IF NOT EXISTS idx_subtimelines_parent ON subtimelines(timeline_parent_id)",
    "CREATE INDEX IF NOT EXISTS idx_subtimelines_child ON subtimelines(timeline_child_id)",
    "CREATE INDEX IF NOT EXISTS idx_timeline_entities_timeline ON timeline_entities(timeline_id)",
    "CREATE INDEX IF NOT EXISTS idx_timeline_entities_entity ON timeline_entities(entity_id)",
    "CREATE INDEX IF NOT EXISTS idx_timeline_tags_timeline_id ON timeline_tags(timeline_id)",
    "CREATE INDEX IF NOT EXISTS idx_timeline_tags_name ON timeline_tags(name)",
    "CREATE INDEX IF NOT EXISTS idx_timeline_tags_value ON timeline_tags(value)",
)


def init_schema(db: TimelineDatabase) -> None:
    """Initialize database schema with versioning.

    Creates all tables and indexes if they don't exist and stamps the
    schema version on new databases.

    Args:
        db: TimelineDatabase instance.
    """
    from . import SCHEMA_VERSION

    with db._lock:
        db._ensure_open()
        cursor = db.conn.cursor()

        cursor.execute(
            """
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY
            )
        """
        )
        cursor.execute("SELECT version FROM schema_version ORDER BY version DESC LIMIT 1")
        row = cursor.fetchone()
        current_version = row[0] if row else 0

        for statement in _TABLES:
            cursor.execute(statement)
        for statement in _INDEXES:
            cursor.execute(statement)

        if current_version < SCHEMA_VERSION:
            cursor.execute(
                "INSERT OR REPLACE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,)
            )
            logger.info("Timeline database schema at version %d", SCHEMA_VERSION)

        db.conn.commit()
