"""Data model and storage: dates, entities, tags, timelines and the SQLite store."""
