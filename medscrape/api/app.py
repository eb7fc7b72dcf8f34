"""FastAPI application factory.

Lifespan
--------
On startup the app opens a single SQLite connection (shared across all
requests via ``request.app.state.db``), initialises the schema and builds one
:class:`~medscrape.firecrawl.service.FirecrawlService` on
``request.app.state.firecrawl``.  On shutdown it closes the connection.

Routers
-------
    /research  — scrape, search, structured extraction, medical parsing
    /crawl     — start a crawl job and poll its status
    /feeds     — RSS / Atom monitoring
    /admin     — health, cache clearing, runtime config, activity log
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from medscrape import __version__
from medscrape.db import get_connection, init_db, migrate
from medscrape.firecrawl.service import FirecrawlService

from medscrape.api.routers import admin as admin_router
from medscrape.api.routers import crawl as crawl_router
from medscrape.api.routers import feeds as feeds_router
from medscrape.api.routers import research as research_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Open the DB and build the service on startup; close the DB on shutdown."""
    conn = get_connection()
    init_db(conn)
    migrate(conn)
    app.state.db = conn
    app.state.firecrawl = FirecrawlService(conn)
    try:
        yield
    finally:
        conn.close()


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="medscrape API",
        description=(
            "Admin-facing research backend for the clinic site. Wraps the "
            "Firecrawl API with a rate limiter and a SQLite content cache and "
            "exposes scraping, crawling, search, schema-guided extraction, "
            "RSS monitoring and medical page parsing."
        ),
        version=__version__,
        lifespan=lifespan,
    )

    # Allow the admin frontend on any origin (tighten for production).
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(research_router.router, prefix="/research", tags=["research"])
    app.include_router(crawl_router.router, prefix="/crawl", tags=["crawl"])
    app.include_router(feeds_router.router, prefix="/feeds", tags=["feeds"])
    app.include_router(admin_router.router, prefix="/admin", tags=["admin"])

    return app


# Module-level instance used by uvicorn:
#   uvicorn medscrape.api.app:app --reload
app = create_app()
