"""Async SQLite connection manager (singleton pattern)."""

from __future__ import annotations

import logging
from pathlib import Path

import aiosqlite

from ..search.text import normalize_search_text

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.sql"

_db: aiosqlite.Connection | None = None
_db_path: str = ""

# table -> SQL expression the normalized search column is derived from
SEARCH_TEXT_SOURCES = {
    "boards": "name || ' ' || coalesce(description, '')",
    "cards": "title || ' ' || coalesce(description, '')",
    "card_comments": "body",
    "card_checklists": "title",
    "card_checklist_items": "body",
    "attachments": "file_name || ' ' || coalesce(external_url, '')",
}


async def open_connection(db_path: str) -> aiosqlite.Connection:
    """Open a connection with the pragmas and SQL functions the schema relies on."""
    db = await aiosqlite.connect(db_path)
    db.row_factory = aiosqlite.Row
    await db.execute("PRAGMA foreign_keys=ON")
    await db.create_function("search_normalize", 1, normalize_search_text, deterministic=True)
    return db


async def init_db(db_path: str) -> None:
    """Initialize the database connection and run schema."""
    global _db, _db_path
    _db_path = db_path

    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    _db = await open_connection(db_path)
    if db_path != ":memory:":
        await _db.execute("PRAGMA journal_mode=WAL")

    await apply_schema(_db)


async def apply_schema(db: aiosqlite.Connection) -> None:
    """Create missing tables, indexes and triggers, then migrate older layouts."""
    await db.executescript(SCHEMA_PATH.read_text())
    await db.commit()
    await _run_migrations(db)


async def _run_migrations(db: aiosqlite.Connection) -> None:
    """Add the normalized search columns to databases created before they existed."""
    for table, source in SEARCH_TEXT_SOURCES.items():
        cursor = await db.execute(f"PRAGMA table_info({table})")
        existing = {row[1] for row in await cursor.fetchall()}
        if "search_text_normalized" in existing:
            continue

        logger.info("Adding search_text_normalized to %s", table)
        await db.execute(f"ALTER TABLE {table} ADD COLUMN search_text_normalized TEXT")
        await db.execute(f"UPDATE {table} SET search_text_normalized = search_normalize({source})")
        await db.execute(f"INSERT INTO {table}_fts({table}_fts) VALUES ('rebuild')")

    await db.commit()


async def get_db() -> aiosqlite.Connection:
    """Get the active database connection."""
    if _db is None:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    return _db


async def close_db() -> None:
    """Close the database connection."""
    global _db
    if _db is not None:
        await _db.close()
        _db = None
