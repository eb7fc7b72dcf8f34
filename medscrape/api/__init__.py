"""FastAPI HTTP layer package.

Public re-export so callers can write::

    from medscrape.api import app

    uvicorn medscrape.api:app --reload
"""

from medscrape.api.app import app

__all__ = ["app"]
