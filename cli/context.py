"""Shared plumbing for the medscrape CLI commands.

Every command opens the workspace DB, builds a :class:`FirecrawlService` over
it, prints the result (human-readable or ``--json``) and exits ``1`` when the
result reports a failure.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from typing import Any, Callable, Iterator, TypeVar

import typer
from pydantic import BaseModel, ValidationError

from medscrape.db import get_connection, init_db, migrate
from medscrape.firecrawl.service import FirecrawlService

_Model = TypeVar("_Model", bound=BaseModel)


@contextmanager
def open_service() -> Iterator[tuple[sqlite3.Connection, FirecrawlService]]:
    """Yield ``(conn, service)`` over the workspace DB; closes the DB on exit."""
    conn = get_connection()
    init_db(conn)
    migrate(conn)
    try:
        yield conn, FirecrawlService(conn)
    finally:
        conn.close()


def build_request(model: type[_Model], command: str, **fields: Any) -> _Model:
    """Validate CLI input into *model*, exiting with code 2 on bad input."""
    try:
        return model(**fields)
    except ValidationError as exc:
        for err in exc.errors():
            where = ".".join(str(p) for p in err["loc"]) or "input"
            typer.echo(f"[{command}] Invalid {where}: {err['msg']}", err=True)
        raise typer.Exit(code=2)


def emit(
    result: BaseModel | list[BaseModel],
    json_output: bool,
    render: Callable[[Any], str],
) -> None:
    if json_output:
        if isinstance(result, list):
            typer.echo(json.dumps([r.model_dump(mode="json") for r in result], indent=2))
        else:
            typer.echo(result.model_dump_json(indent=2))
    else:
        typer.echo(render(result))


def exit_on_failure(ok: bool) -> None:
    if not ok:
        raise typer.Exit(code=1)
