"""RSS monitoring command."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

import typer

from cli.context import build_request, emit, exit_on_failure, open_service
from cli.rendering import render_feed
from medscrape.firecrawl.models import RSSFeedRequest


def rss(
    feed_url: str = typer.Argument(..., help="RSS or Atom feed URL."),
    keywords: Optional[List[str]] = typer.Option(None, "--keyword", "-k", help="Keep items mentioning this (repeatable)."),
    authors: Optional[List[str]] = typer.Option(None, "--author", help="Keep items by this author (repeatable)."),
    categories: Optional[List[str]] = typer.Option(None, "--category", help="Keep items in this category (repeatable)."),
    since: Optional[datetime] = typer.Option(None, "--since", help="Only items published after this time (UTC if no offset)."),
    full_content: bool = typer.Option(False, "--full-content", help="Scrape each item's page into markdown."),
    json_output: bool = typer.Option(False, "--json", help="Print the raw result as JSON."),
) -> None:
    """Fetch a feed and list the items that pass the filters."""
    filters = None
    if keywords or authors or categories:
        filters = {
            "keywords": keywords or None,
            "authors": authors or None,
            "categories": categories or None,
        }
    request = build_request(
        RSSFeedRequest,
        "rss",
        feed_url=feed_url,
        last_checked=since,
        extract_full_content=full_content,
        filters=filters,
    )
    with open_service() as (_, service):
        result = service.monitor_rss_feed(request)
    emit(result, json_output, render_feed)
    exit_on_failure(result.success)
