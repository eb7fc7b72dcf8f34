"""Admin activity log: who ran which research operation, and how it went."""

from __future__ import annotations

import json
import sqlite3
from time import time
from typing import Any, Optional

from medscrape.db.models import ActivityEntry


def _row_to_entry(row: sqlite3.Row) -> ActivityEntry:
    return ActivityEntry(
        id=row["id"],
        action_type=row["action_type"],
        target=row["target"],
        actor_email=row["actor_email"],
        details=json.loads(row["details"] or "{}"),
        success=bool(row["success"]),
        error_message=row["error_message"],
        duration_ms=row["duration_ms"],
        created_at=row["created_at"],
    )


def record_activity(
    conn: sqlite3.Connection,
    action_type: str,
    *,
    target: Optional[str] = None,
    actor_email: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
    success: bool = True,
    error_message: Optional[str] = None,
    duration_ms: Optional[int] = None,
) -> ActivityEntry:
    """Append one row to ``activity_log`` and return it.

    Args:
        conn: Open DB connection.
        action_type: Short verb such as ``scrape``, ``crawl_start`` or
            ``rss_monitor``.
        target: URL, job id or query the action was about.
        actor_email: Admin who triggered the action, when known.
        details: Arbitrary JSON-serialisable detail blob.
        success: Whether the operation reported success.
        error_message: Failure message, if any.
        duration_ms: Wall-clock duration of the operation.
    """
    with conn:
        cur = conn.execute(
            """
            INSERT INTO activity_log
                (action_type, target, actor_email, details, success,
                 error_message, duration_ms, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                action_type,
                target,
                actor_email,
                json.dumps(details or {}),
                int(success),
                error_message,
                duration_ms,
                time(),
            ),
        )
    row = conn.execute(
        "SELECT * FROM activity_log WHERE id = ?", (cur.lastrowid,)
    ).fetchone()
    return _row_to_entry(row)


def list_activity(
    conn: sqlite3.Connection,
    action_type: Optional[str] = None,
    limit: int = 50,
) -> list[ActivityEntry]:
    """Return the most recent entries first, optionally filtered by type."""
    if action_type:
        rows = conn.execute(
            "SELECT * FROM activity_log WHERE action_type = ? "
            "ORDER BY created_at DESC, id DESC LIMIT ?",
            (action_type, limit),
        ).fetchall()
    else:
        rows = conn.execute(
            "SELECT * FROM activity_log ORDER BY created_at DESC, id DESC LIMIT ?",
            (limit,),
        ).fetchall()
    return [_row_to_entry(r) for r in rows]
