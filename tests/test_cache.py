"""Tests for the best-effort content cache."""

from __future__ import annotations

import sqlite3

import pytest

from medscrape.db.connection import get_connection
from medscrape.db.migrations import init_db
from medscrape.firecrawl.cache import ContentCache, cache_key


class Clock:
    def __init__(self, now: float = 10_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def conn():
    connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
    init_db(connection)
    yield connection
    connection.close()


@pytest.fixture()
def clock() -> Clock:
    return Clock()


@pytest.fixture()
def content_cache(conn, clock) -> ContentCache:
    return ContentCache(conn, ttl_seconds=3600, clock=clock)


class TestCacheKey:
    def test_stable(self):
        assert cache_key("scrape", "https://a.test") == cache_key("scrape", "https://a.test")

    def test_type_is_part_of_key(self):
        assert cache_key("scrape", "https://a.test") != cache_key("feed", "https://a.test")

    def test_is_sha256_hex(self):
        key = cache_key("scrape", "x")
        assert len(key) == 64
        int(key, 16)


class TestRoundTrip:
    def test_returns_same_payload(self, content_cache):
        payload = {"url": "https://a.test", "markdown": "# Título", "links": ["https://b.test"]}
        content_cache.set("scrape", "https://a.test", payload, metadata={"formats": ["markdown"]})

        cached = content_cache.get("scrape", "https://a.test")

        assert cached is not None
        assert cached.content == payload
        assert cached.metadata == {"formats": ["markdown"]}

    def test_other_type_misses(self, content_cache):
        content_cache.set("scrape", "https://a.test", {"x": 1})
        assert content_cache.get("feed", "https://a.test") is None

    def test_expires_after_ttl(self, content_cache, clock):
        content_cache.set("scrape", "https://a.test", {"x": 1})
        clock.now += 3599
        assert content_cache.get("scrape", "https://a.test") is not None
        clock.now += 1
        assert content_cache.get("scrape", "https://a.test") is None

    def test_expired_row_still_stored_until_purged(self, content_cache, clock, conn):
        content_cache.set("scrape", "https://a.test", {"x": 1})
        clock.now += 7200
        assert content_cache.get("scrape", "https://a.test") is None
        assert conn.execute("SELECT COUNT(*) FROM content_cache").fetchone()[0] == 1
        assert content_cache.purge_expired() == 1

    def test_ttl_change_applies_to_new_writes(self, content_cache, clock):
        content_cache.ttl_seconds = 10
        content_cache.set("scrape", "https://a.test", {"x": 1})
        clock.now += 11
        assert content_cache.get("scrape", "https://a.test") is None


class TestDisabledAndUnavailable:
    def test_disabled_cache_reads_and_writes_nothing(self, content_cache, conn):
        content_cache.enabled = False
        content_cache.set("scrape", "https://a.test", {"x": 1})
        assert content_cache.get("scrape", "https://a.test") is None
        assert conn.execute("SELECT COUNT(*) FROM content_cache").fetchone()[0] == 0

    def test_no_connection(self):
        cache = ContentCache(None)
        assert cache.available is False
        cache.set("scrape", "https://a.test", {"x": 1})
        assert cache.get("scrape", "https://a.test") is None
        assert cache.delete("scrape", "https://a.test") == 0
        assert cache.purge_expired() == 0

    def test_delete(self, content_cache):
        content_cache.set("scrape", "https://a.test", {"x": 1})
        assert content_cache.delete("scrape", "https://a.test") == 1
        assert content_cache.get("scrape", "https://a.test") is None


class TestErrorsAreSwallowed:
    def test_read_on_closed_connection_is_a_miss(self, clock):
        connection = get_connection(db_path=":memory:")  # type: ignore[arg-type]
        init_db(connection)
        cache = ContentCache(connection, clock=clock)
        connection.close()
        assert cache.get("scrape", "https://a.test") is None

    def test_write_on_missing_table_is_dropped(self, clock):
        connection = sqlite3.connect(":memory:")
        cache = ContentCache(connection, clock=clock)
        cache.set("scrape", "https://a.test", {"x": 1})
        assert cache.purge_expired() == 0
        connection.close()

    def test_unserialisable_payload_is_dropped(self, content_cache):
        content_cache.set("scrape", "https://a.test", {"x": object()})
        assert content_cache.get("scrape", "https://a.test") is None

    def test_corrupt_json_is_a_miss(self, content_cache, conn):
        content_cache.set("scrape", "https://a.test", {"x": 1})
        conn.execute("UPDATE content_cache SET content = '{not json'")
        conn.commit()
        assert content_cache.get("scrape", "https://a.test") is None
