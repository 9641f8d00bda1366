"""
SQLite persistence for match snapshots.

Table:
  - matches: one row per match, holding the serialized Match (undo history
    stripped) plus a few columns pulled out for filtering and ordering.

This is the shared store spectators read from. The undo history is local to
the scorer and is never written here.

Uses aiosqlite for async access. Database file: data/scorebook.db
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from scorebook.config import settings
from scorebook.engine.scoring import from_snapshot, to_snapshot
from scorebook.models import Match

logger = logging.getLogger(__name__)

DB_PATH = Path(settings.db_path)
DB_DIR = DB_PATH.parent

_db: aiosqlite.Connection | None = None

SCHEMA = """
CREATE TABLE IF NOT EXISTS matches (
    match_id    TEXT PRIMARY KEY,
    owner_id    TEXT,
    status      TEXT NOT NULL DEFAULT 'ongoing',
    timestamp   INTEGER NOT NULL,
    snapshot    TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_matches_owner
    ON matches(owner_id, timestamp);

CREATE INDEX IF NOT EXISTS idx_matches_status
    ON matches(status, timestamp);
"""


# ------------------------------------------------------------------ #
#  Connection management
# ------------------------------------------------------------------ #

async def init_db() -> None:
    """Create tables if they don't exist. Called once at app startup."""
    global _db
    DB_DIR.mkdir(parents=True, exist_ok=True)

    _db = await aiosqlite.connect(str(DB_PATH))
    _db.row_factory = aiosqlite.Row

    await _create_schema(_db)
    logger.info(f"SQLite database initialized at {DB_PATH}")


async def close_db() -> None:
    """Close the database connection."""
    global _db
    if _db:
        await _db.close()
        _db = None


def _get_db() -> aiosqlite.Connection:
    if _db is None:
        raise RuntimeError("Database not initialized; call init_db() first")
    return _db


async def _create_schema(db: aiosqlite.Connection) -> None:
    await db.executescript(SCHEMA)
    await db.commit()


async def reset_db() -> None:
    """Drop every stored match and recreate the empty schema."""
    db = _get_db()
    await db.execute("DROP TABLE IF EXISTS matches")
    await _create_schema(db)
    logger.info(f"Reset database at {DB_PATH}")


# ------------------------------------------------------------------ #
#  Matches CRUD
# ------------------------------------------------------------------ #

async def save_match(match: Match) -> None:
    """Insert or replace the stored snapshot for this match."""
    db = _get_db()
    now = datetime.now(timezone.utc).isoformat()
    await db.execute(
        """INSERT INTO matches (match_id, owner_id, status, timestamp, snapshot, updated_at)
           VALUES (?, ?, ?, ?, ?, ?)
           ON CONFLICT(match_id) DO UPDATE SET
               owner_id = excluded.owner_id,
               status = excluded.status,
               snapshot = excluded.snapshot,
               updated_at = excluded.updated_at""",
        (
            match.id,
            match.owner_id,
            match.status.value,
            match.timestamp,
            json.dumps(to_snapshot(match)),
            now,
        ),
    )
    await db.commit()


async def get_snapshot(match_id: str) -> dict | None:
    """Raw stored snapshot, as served to spectators."""
    db = _get_db()
    async with db.execute("SELECT snapshot FROM matches WHERE match_id = ?", (match_id,)) as cur:
        row = await cur.fetchone()
        return json.loads(row["snapshot"]) if row else None


async def get_match(match_id: str) -> Match | None:
    data = await get_snapshot(match_id)
    return from_snapshot(data) if data is not None else None


async def list_matches(status: str | None = None, owner_id: str | None = None) -> list[dict]:
    """Stored snapshots, newest match first."""
    db = _get_db()
    clauses = []
    params: list = []
    if status:
        clauses.append("status = ?")
        params.append(status)
    if owner_id:
        clauses.append("owner_id = ?")
        params.append(owner_id)
    where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
    query = f"SELECT snapshot FROM matches {where} ORDER BY timestamp DESC"
    async with db.execute(query, tuple(params)) as cur:
        return [json.loads(r["snapshot"]) for r in await cur.fetchall()]


async def delete_match(match_id: str) -> bool:
    """Delete a match. Returns True if a row was removed."""
    db = _get_db()
    cursor = await db.execute("DELETE FROM matches WHERE match_id = ?", (match_id,))
    await db.commit()
    return cursor.rowcount > 0
