"""HTML-to-text conversion for feed descriptions and scraped pages."""

from __future__ import annotations

from typing import Optional

import trafilatura
from bs4 import BeautifulSoup


def _bs4_text(html: str) -> str:
    """Readable text via BeautifulSoup ``<main>``/``<article>`` heuristics."""
    soup = BeautifulSoup(html, "html.parser")
    # Strip non-content elements
    for tag in soup(["script", "style", "nav", "footer", "header"]):
        tag.decompose()
    container = soup.find("main") or soup.find("article") or soup.body
    if container is None:
        return soup.get_text(separator=" ", strip=True)
    return container.get_text(separator=" ", strip=True)


def html_to_text(html: str, url: Optional[str] = None) -> str:
    """Convert *html* to plain text.

    Tries ``trafilatura`` first, which does well on full article pages.  Short
    fragments such as RSS ``<description>`` bodies usually come back empty from
    it, so BeautifulSoup handles those.
    """
    if not html or not html.strip():
        return ""
    if "<" not in html:
        return html.strip()

    text: Optional[str] = trafilatura.extract(
        html,
        include_links=False,
        include_images=False,
        include_tables=True,
        no_fallback=False,
        url=url,
    )
    if not text:
        text = _bs4_text(html)
    return text or ""
