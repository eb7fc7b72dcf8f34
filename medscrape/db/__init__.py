"""Database layer package.

Public re-exports so callers can write::

    from medscrape.db import get_connection, init_db, migrate
    from medscrape.db import activity
"""

from medscrape.db.connection import get_connection
from medscrape.db.migrations import init_db, migrate
from medscrape.db import activity, cache

__all__ = ["get_connection", "init_db", "migrate", "activity", "cache"]
