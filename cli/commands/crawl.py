"""Crawl job commands."""

from __future__ import annotations

from typing import List, Optional

import typer

from cli.context import build_request, emit, exit_on_failure, open_service
from cli.rendering import render_crawl_job
from medscrape.firecrawl.models import CrawlRequest

crawl_app = typer.Typer(help="Start and poll site crawls.", no_args_is_help=True)


@crawl_app.command("start")
def crawl_start(
    url: str = typer.Argument(..., help="Start URL."),
    max_depth: int = typer.Option(2, "--max-depth", help="Link depth, 1-10."),
    max_pages: int = typer.Option(100, "--max-pages", help="Page limit, 1-10000."),
    include: Optional[List[str]] = typer.Option(None, "--include", help="Path regex to include (repeatable)."),
    exclude: Optional[List[str]] = typer.Option(None, "--exclude", help="Path regex to exclude (repeatable)."),
    json_output: bool = typer.Option(False, "--json", help="Print the raw job as JSON."),
) -> None:
    """Start a crawl job and print its id."""
    request = build_request(
        CrawlRequest,
        "crawl start",
        url=url,
        max_depth=max_depth,
        max_pages=max_pages,
        include_patterns=include or None,
        exclude_patterns=exclude or None,
    )
    with open_service() as (_, service):
        job = service.crawl_website(request)
    emit(job, json_output, render_crawl_job)
    exit_on_failure(job.success)


@crawl_app.command("status")
def crawl_status(
    job_id: str = typer.Argument(..., help="Job id returned by 'crawl start'."),
    json_output: bool = typer.Option(False, "--json", help="Print the raw job as JSON."),
) -> None:
    """Show the current state of a crawl job."""
    with open_service() as (_, service):
        job = service.check_crawl_status(job_id)
    emit(job, json_output, render_crawl_job)
    exit_on_failure(job.success)
