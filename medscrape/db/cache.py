"""CRUD operations for the ``content_cache`` table.

These helpers raise :class:`sqlite3.Error` like every other DB function;
swallowing errors is the job of :class:`medscrape.firecrawl.cache.ContentCache`.
"""

from __future__ import annotations

import json
import sqlite3
from typing import Any, Optional

from medscrape.db.models import CachedContent


def _row_to_cached(row: sqlite3.Row) -> CachedContent:
    return CachedContent(
        id=row["id"],
        url=row["url"],
        content_type=row["content_type"],
        hash=row["hash"],
        content=json.loads(row["content"]),
        metadata=json.loads(row["metadata"]) if row["metadata"] else None,
        cached_at=row["cached_at"],
        expires_at=row["expires_at"],
    )


def get_fresh(conn: sqlite3.Connection, key_hash: str, now: float) -> Optional[CachedContent]:
    """Return the row for *key_hash* if it expires after *now*, else ``None``."""
    row = conn.execute(
        "SELECT * FROM content_cache WHERE hash = ? AND expires_at > ?",
        (key_hash, now),
    ).fetchone()
    return _row_to_cached(row) if row else None


def upsert(
    conn: sqlite3.Connection,
    *,
    url: str,
    content_type: str,
    key_hash: str,
    content: Any,
    metadata: Optional[dict[str, Any]],
    cached_at: float,
    expires_at: float,
) -> None:
    """Insert a cache row, or overwrite the existing row with the same hash."""
    with conn:
        conn.execute(
            """
            INSERT INTO content_cache
                (url, content_type, hash, content, metadata, cached_at, expires_at)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT(hash) DO UPDATE SET
                url          = excluded.url,
                content_type = excluded.content_type,
                content      = excluded.content,
                metadata     = excluded.metadata,
                cached_at    = excluded.cached_at,
                expires_at   = excluded.expires_at
            """,
            (
                url,
                content_type,
                key_hash,
                json.dumps(content),
                json.dumps(metadata) if metadata is not None else None,
                cached_at,
                expires_at,
            ),
        )


def delete_by_hash(conn: sqlite3.Connection, key_hash: str) -> int:
    """Delete the row with *key_hash*.  Returns the number of rows removed."""
    with conn:
        cur = conn.execute("DELETE FROM content_cache WHERE hash = ?", (key_hash,))
    return cur.rowcount


def delete_expired(conn: sqlite3.Connection, now: float) -> int:
    """Delete every row whose ``expires_at`` is not after *now*."""
    with conn:
        cur = conn.execute("DELETE FROM content_cache WHERE expires_at <= ?", (now,))
    return cur.rowcount

