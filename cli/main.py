"""medscrape CLI — entry-point for all backend operations.

Usage:
    medscrape --help
    python cli/main.py --help

Command groups:
    db        → database setup
    scrape / search / extract / medical  → single-shot research calls
    crawl     → start and poll crawl jobs
    rss       → feed monitoring
    health / cache / activity            → administration
    serve     → run the HTTP API
"""

from __future__ import annotations

import sys
from pathlib import Path

# Ensure the project root is on sys.path so that `from medscrape.xxx import ...`
# works when the CLI is invoked as `python cli/main.py` from any directory.
_ROOT = Path(__file__).resolve().parent.parent
if str(_ROOT) not in sys.path:
    sys.path.insert(0, str(_ROOT))

from typing import Optional

import typer

from cli.commands import feeds, research
from cli.commands.crawl import crawl_app
from cli.context import emit, open_service
from cli.rendering import activity_as_json, render_activity, render_health
from medscrape.config import settings
from medscrape.db import get_connection, init_db, migrate
from medscrape.db.activity import list_activity

app = typer.Typer(
    name="medscrape",
    help="medscrape research backend CLI.",
    no_args_is_help=True,
)

# ---------------------------------------------------------------------------
# DB commands
# ---------------------------------------------------------------------------
db_app = typer.Typer(help="Database operations.", no_args_is_help=True)
app.add_typer(db_app, name="db")


@db_app.command("init")
def db_init() -> None:
    """Initialise the SQLite database (create tables if they do not exist)."""
    conn = get_connection()
    init_db(conn)
    migrate(conn)
    conn.close()
    typer.echo(f"[db init] Database ready at {settings.db_path}")


# ---------------------------------------------------------------------------
# Research commands
# ---------------------------------------------------------------------------
app.command("scrape")(research.scrape)
app.command("search")(research.search)
app.command("extract")(research.extract)
app.command("medical")(research.medical)
app.add_typer(crawl_app, name="crawl")
app.command("rss")(feeds.rss)


# ---------------------------------------------------------------------------
# Admin commands
# ---------------------------------------------------------------------------
@app.command("health")
def health(
    json_output: bool = typer.Option(False, "--json", help="Print the raw status as JSON."),
) -> None:
    """Show API key, cache and rate-limit status."""
    with open_service() as (_, service):
        status = service.get_health_status()
    emit(status, json_output, render_health)


cache_app = typer.Typer(help="Content cache operations.", no_args_is_help=True)
app.add_typer(cache_app, name="cache")


@cache_app.command("clear")
def cache_clear(
    url: Optional[str] = typer.Option(None, "--url", help="Only drop entries for this URL."),
) -> None:
    """Drop cached entries for a URL, or every expired entry."""
    with open_service() as (_, service):
        deleted = service.clear_cache(url)
    scope = url or "expired entries"
    typer.echo(f"[cache clear] Removed {deleted} row(s) ({scope})")


@app.command("activity")
def activity(
    action_type: Optional[str] = typer.Option(None, "--type", help="Filter by action type."),
    limit: int = typer.Option(20, "--limit", "-n", help="Number of rows to show."),
    json_output: bool = typer.Option(False, "--json", help="Print rows as JSON."),
) -> None:
    """List recent admin activity, newest first."""
    conn = get_connection()
    init_db(conn)
    migrate(conn)
    try:
        entries = list_activity(conn, action_type=action_type, limit=limit)
    finally:
        conn.close()
    typer.echo(activity_as_json(entries) if json_output else render_activity(entries))


@app.command("serve")
def serve(
    host: str = typer.Option("127.0.0.1", help="Bind address."),
    port: int = typer.Option(8000, help="Bind port."),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes."),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("medscrape.api.app:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Entry-point
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    app()
