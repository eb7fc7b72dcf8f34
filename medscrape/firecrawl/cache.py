"""Best-effort content cache in front of the Firecrawl API.

Entries are keyed by ``sha256("<content_type>:<identifier>")`` and expire
``ttl_seconds`` after they are written.  Caching is an optimisation only: every
database or decoding error is logged and treated as a miss (reads) or dropped
(writes).
"""

from __future__ import annotations

import hashlib
import json
import sqlite3
import time
from typing import Any, Callable, Optional

from medscrape.db import cache as cache_db
from medscrape.db.models import CachedContent
from medscrape.utils.logging import get_logger

log = get_logger(__name__)


def cache_key(content_type: str, identifier: str) -> str:
    """Stable hash for a (content type, identifier) pair."""
    return hashlib.sha256(f"{content_type}:{identifier}".encode("utf-8")).hexdigest()


class ContentCache:
    def __init__(
        self,
        conn: Optional[sqlite3.Connection],
        ttl_seconds: float = 3600,
        enabled: bool = True,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._conn = conn
        self.ttl_seconds = ttl_seconds
        self.enabled = enabled
        self._clock = clock

    @property
    def available(self) -> bool:
        """Whether a database handle is attached at all."""
        return self._conn is not None

    def get(self, content_type: str, identifier: str) -> Optional[CachedContent]:
        """Return the fresh entry for (content_type, identifier), or ``None``."""
        if not self.enabled or self._conn is None:
            return None
        try:
            return cache_db.get_fresh(
                self._conn, cache_key(content_type, identifier), self._clock()
            )
        except (sqlite3.Error, json.JSONDecodeError) as exc:
            log.error("Error retrieving cached content for %s: %s", identifier, exc)
            return None

    def set(
        self,
        content_type: str,
        identifier: str,
        payload: Any,
        metadata: Optional[dict[str, Any]] = None,
    ) -> None:
        """Store *payload* (JSON-serialisable) for (content_type, identifier)."""
        if not self.enabled or self._conn is None:
            return
        now = self._clock()
        try:
            cache_db.upsert(
                self._conn,
                url=identifier,
                content_type=content_type,
                key_hash=cache_key(content_type, identifier),
                content=payload,
                metadata=metadata,
                cached_at=now,
                expires_at=now + self.ttl_seconds,
            )
        except (sqlite3.Error, TypeError, ValueError) as exc:
            log.error("Error caching content for %s: %s", identifier, exc)

    def delete(self, content_type: str, identifier: str) -> int:
        if self._conn is None:
            return 0
        try:
            return cache_db.delete_by_hash(self._conn, cache_key(content_type, identifier))
        except sqlite3.Error as exc:
            log.error("Error clearing cache for %s: %s", identifier, exc)
            return 0

    def purge_expired(self) -> int:
        """Delete every expired row.  Returns the number removed."""
        if self._conn is None:
            return 0
        try:
            return cache_db.delete_expired(self._conn, self._clock())
        except sqlite3.Error as exc:
            log.error("Error purging expired cache rows: %s", exc)
            return 0
