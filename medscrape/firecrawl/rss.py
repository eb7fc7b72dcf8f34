"""RSS / Atom parsing and item filtering.

``parse_feed`` handles real feed XML through ``feedparser``.
``parse_markdown_feed`` reads the markdown rendering the scrape endpoint
produces when it only hands back markdown.  Both return an empty list for
anything they cannot make sense of; a malformed feed is not an error.

``filter_items`` is a pure function over parsed items, so the monitoring
rules can be tested without any I/O.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Iterable, Optional

import feedparser

from medscrape.firecrawl.models import RSSFeedItem, RSSFilters, as_utc
from medscrape.firecrawl.text import html_to_text

_MARKDOWN_ITEM = re.compile(
    r"## (.+?)\n.*?Link:\s*\[.*?\]\((.+?)\).*?Published:\s*(.+?)\n([\s\S]+?)(?=##|$)"
)


def _parse_date(value: str) -> Optional[datetime]:
    value = value.strip()
    if not value:
        return None
    try:
        return as_utc(parsedate_to_datetime(value))
    except (TypeError, ValueError, IndexError):
        pass
    try:
        return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    except ValueError:
        return None


def _entry_date(entry: Any) -> Optional[datetime]:
    parsed = entry.get("published_parsed") or entry.get("updated_parsed")
    if parsed:
        return datetime(*parsed[:6], tzinfo=timezone.utc)
    return None


def _entry_to_item(entry: Any) -> Optional[RSSFeedItem]:
    link = (entry.get("link") or "").strip()
    if not link:
        return None

    content = None
    if entry.get("content"):
        content = html_to_text(entry["content"][0].get("value", ""), url=link) or None

    return RSSFeedItem(
        title=(entry.get("title") or "").strip(),
        link=link,
        description=html_to_text(entry.get("summary") or entry.get("description") or ""),
        pub_date=_entry_date(entry),
        author=entry.get("author") or None,
        categories=[t["term"] for t in entry.get("tags", []) if t.get("term")],
        content=content,
    )


def parse_feed(document: str) -> tuple[Optional[str], list[RSSFeedItem]]:
    """Parse RSS/Atom XML into ``(feed title, items)``."""
    if not document or not document.lstrip().startswith("<"):
        return None, []

    parsed = feedparser.parse(document)
    items = [i for i in (_entry_to_item(e) for e in parsed.entries) if i is not None]
    return parsed.feed.get("title"), items


def parse_markdown_feed(markdown: str) -> list[RSSFeedItem]:
    """Parse the ``## title / Link: [..](..) Published: ..`` markdown layout."""
    items: list[RSSFeedItem] = []
    for match in _MARKDOWN_ITEM.finditer(markdown or ""):
        title, link, published, description = match.groups()
        items.append(
            RSSFeedItem(
                title=title.strip(),
                link=link.strip(),
                description=description.strip(),
                pub_date=_parse_date(published),
            )
        )
    return items


def _any_substring(needles: Iterable[str], haystack: str) -> bool:
    haystack = haystack.lower()
    return any(n.lower() in haystack for n in needles)


def passes_filters(
    item: RSSFeedItem,
    filters: Optional[RSSFilters],
    last_checked: Optional[datetime] = None,
) -> bool:
    """Return ``True`` if *item* survives every configured filter.

    * keywords — any keyword is a substring of title + description.
    * categories / authors — any entry is a substring of one of the item's
      categories / its author; skipped when the item carries none.
    * date_range — inclusive; undated items pass.
    * last_checked — only items published after it; undated items pass.
    """
    if last_checked is not None and item.pub_date is not None:
        if item.pub_date <= as_utc(last_checked):
            return False

    if not filters:
        return True

    if filters.keywords:
        if not _any_substring(filters.keywords, f"{item.title} {item.description}"):
            return False

    if filters.date_range and item.pub_date is not None:
        if item.pub_date < filters.date_range.start or item.pub_date > filters.date_range.end:
            return False

    if filters.authors and item.author:
        if not _any_substring(filters.authors, item.author):
            return False

    if filters.categories and item.categories:
        if not any(_any_substring(filters.categories, c) for c in item.categories):
            return False

    return True


def filter_items(
    items: list[RSSFeedItem],
    filters: Optional[RSSFilters],
    last_checked: Optional[datetime] = None,
) -> list[RSSFeedItem]:
    return [i for i in items if passes_filters(i, filters, last_checked)]
