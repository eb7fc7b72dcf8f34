"""Scrape / crawl / search / extract orchestration over the Firecrawl API.

:class:`FirecrawlService` is the single entry point the admin API, the CLI
and scheduled jobs use.  It checks the content cache, builds the provider
request, calls the API through :class:`~medscrape.firecrawl.client.FirecrawlClient`
(which waits on the rate limiter), and normalises the response into the
models in :mod:`medscrape.firecrawl.models`.

None of the public methods raise on an external failure.  Each returns a
result object with ``success=False`` and ``error`` set (extraction returns a
``low``-confidence entry with ``extracted_data=None`` instead).
"""

from __future__ import annotations

import sqlite3
from datetime import timedelta
from typing import Any, Optional

from pydantic import ValidationError

from medscrape.config import settings
from medscrape.db.models import CachedContent
from medscrape.firecrawl.cache import ContentCache
from medscrape.firecrawl.client import FirecrawlClient
from medscrape.firecrawl.errors import FirecrawlError, FirecrawlResponseError
from medscrape.firecrawl.models import (
    CrawlJob,
    CrawlRequest,
    ExtractionRequest,
    ExtractionResult,
    HealthStatus,
    MedicalParseRequest,
    MedicalParseResult,
    PageMetadata,
    RSSFeedRequest,
    RSSFeedResult,
    ScrapeRequest,
    ScrapeResult,
    SearchHit,
    SearchRequest,
    SearchResult,
    as_utc,
    utcnow,
)
from medscrape.firecrawl.rate_limiter import RateLimitConfig, RateLimiter
from medscrape.firecrawl.responses import ScrapeData
from medscrape.firecrawl.rss import filter_items, parse_feed, parse_markdown_feed
from medscrape.firecrawl.sanitize import assess_source_quality, sanitize_medical_content
from medscrape.firecrawl.templates import detect_extraction_type, get_extraction_template
from medscrape.firecrawl.text import html_to_text
from medscrape.utils.logging import get_logger

log = get_logger(__name__)

# Cache content types.  Feeds are cached apart from pages because they are
# fetched with different formats.
SCRAPE = "scrape"
FEED = "feed"

DEFAULT_SCRAPE_FORMATS = ["markdown", "html", "links"]
DEFAULT_CRAWL_FORMATS = ["markdown", "html", "links"]

TIME_RANGE_TBS = {
    "day": "qdr:d",
    "week": "qdr:w",
    "month": "qdr:m",
    "year": "qdr:y",
    "all": "",
}

CRAWL_STATUS_MAP = {
    "pending": "pending",
    "scraping": "processing",
    "processing": "processing",
    "completed": "completed",
    "failed": "failed",
    "cancelled": "failed",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _is_filled(value: Any) -> bool:
    if value is None or value == "":
        return False
    if isinstance(value, (list, dict)) and not value:
        return False
    return True


def assess_extraction_confidence(data: Any) -> str:
    """Score extracted data by the share of its top-level fields that are filled.

    More than 80% filled is ``high``, at least half is ``medium``, anything
    less (or a non-object / empty object) is ``low``.
    """
    if not isinstance(data, dict) or not data:
        return "low"
    completeness = sum(1 for v in data.values() if _is_filled(v)) / len(data)
    if completeness > 0.8:
        return "high"
    if completeness >= 0.5:
        return "medium"
    return "low"


def build_scrape_body(request: ScrapeRequest) -> dict[str, Any]:
    """Translate a :class:`ScrapeRequest` into the ``/scrape`` JSON body.

    ``metadata`` is dropped from the formats list: the API always returns
    page metadata and rejects it as a format.
    """
    formats = [f for f in (request.formats or DEFAULT_SCRAPE_FORMATS) if f != "metadata"]
    if request.screenshot or request.full_page:
        shot = "screenshot@fullPage" if request.full_page else "screenshot"
        formats = [f for f in formats if f != "screenshot"] + [shot]
    body: dict[str, Any] = {"url": request.url, "formats": formats or ["markdown"]}

    if request.wait_for:
        body["waitFor"] = request.wait_for
    if request.actions:
        body["actions"] = [
            {
                k: v
                for k, v in {
                    "type": action.type,
                    "selector": action.selector,
                    "value": action.value,
                    "milliseconds": action.delay,
                }.items()
                if v is not None
            }
            for action in request.actions
        ]
    if request.headers:
        body["headers"] = request.headers
    if request.exclude_selectors:
        body["excludeTags"] = request.exclude_selectors
    if request.include_selectors:
        body["includeTags"] = request.include_selectors
    return body


def _split_keywords(raw: Any) -> Optional[list[str]]:
    if raw is None:
        return None
    parts = raw.split(",") if isinstance(raw, str) else raw
    return [p.strip() for p in parts if p and p.strip()]


def _normalise_page(url: str, data: ScrapeData) -> ScrapeResult:
    meta = data.metadata
    return ScrapeResult(
        url=url,
        title=meta.title if meta else None,
        markdown=data.markdown,
        html=data.html,
        raw_html=data.raw_html,
        screenshot=data.screenshot,
        links=data.links,
        metadata=PageMetadata(
            description=meta.description,
            keywords=_split_keywords(meta.keywords),
            author=meta.author,
            published_date=meta.publish_date,
            language=meta.language,
        )
        if meta
        else None,
        success=True,
    )


def _covers_formats(cached: CachedContent, formats: list[str]) -> bool:
    stored = (cached.metadata or {}).get("formats") or []
    return set(formats) <= set(stored)


def _extra_instructions(request: MedicalParseRequest) -> str:
    extras = []
    if request.include_references:
        extras.append("Include the full list of references cited.")
    if request.include_figures:
        extras.append("Describe each figure and table with its caption.")
    if request.include_supplementary:
        extras.append("Summarise any supplementary material that is linked.")
    return " ".join(extras)


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------

class FirecrawlService:
    """Cache-backed, rate-limited orchestrator over the Firecrawl API.

    Args:
        conn: SQLite connection holding the ``content_cache`` table.  Without
            one the service runs uncached.
        api_key: Overrides ``settings.firecrawl_api_key``.
        base_url: Overrides ``settings.firecrawl_base_url``.
        limiter: Shared :class:`RateLimiter`; built from settings if omitted.
        cache: Pre-built :class:`ContentCache`; built from *conn* if omitted.
    """

    def __init__(
        self,
        conn: Optional[sqlite3.Connection] = None,
        *,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        limiter: Optional[RateLimiter] = None,
        cache: Optional[ContentCache] = None,
    ) -> None:
        key = settings.firecrawl_api_key if api_key is None else api_key
        if not key:
            log.warning("FIRECRAWL_API_KEY not set; Firecrawl calls will fail")

        self.limiter = limiter or RateLimiter(RateLimitConfig.from_settings())
        self.cache = cache or ContentCache(
            conn,
            ttl_seconds=settings.cache_ttl_seconds,
            enabled=settings.cache_enabled,
        )
        self.client = FirecrawlClient(
            key,
            base_url or settings.firecrawl_base_url,
            self.limiter,
            timeout=settings.request_timeout,
        )

    # ------------------------------------------------------------------
    # Scrape
    # ------------------------------------------------------------------

    def scrape_url(self, request: ScrapeRequest) -> ScrapeResult:
        """Scrape one page.  Never raises."""
        return self._scrape(request, SCRAPE)

    def _scrape(self, request: ScrapeRequest, cache_type: str) -> ScrapeResult:
        """Scrape through the cache.

        Entries are keyed by URL only, so a cached page is reused only when it
        was fetched with every format this request asks for.
        """
        body = build_scrape_body(request)
        cached = self.cache.get(cache_type, request.url)
        if cached is not None and not _covers_formats(cached, body["formats"]):
            log.info(
                "Cached %s for %s lacks requested formats; refetching", cache_type, request.url
            )
            cached = None
        if cached is not None:
            try:
                result = ScrapeResult.model_validate(cached.content)
            except ValidationError:
                log.error("Ignoring malformed cache entry for %s", request.url)
            else:
                log.info("Returning cached %s for %s", cache_type, request.url)
                return result

        try:
            response = self.client.scrape(body)
            if not response.success or response.data is None:
                raise FirecrawlResponseError(response.error or "Scraping failed")
        except FirecrawlError as exc:
            log.error("Error scraping %s: %s", request.url, exc)
            return ScrapeResult(url=request.url, success=False, error=str(exc))

        result = _normalise_page(request.url, response.data)
        self.cache.set(
            cache_type,
            request.url,
            result.model_dump(mode="json"),
            metadata={"formats": body["formats"]},
        )
        return result

    # ------------------------------------------------------------------
    # Crawl
    # ------------------------------------------------------------------

    def crawl_website(self, request: CrawlRequest) -> CrawlJob:
        """Start a crawl job.  Poll it with :meth:`check_crawl_status`."""
        scrape_options: dict[str, Any] = {
            "formats": list(request.formats or DEFAULT_CRAWL_FORMATS)
        }
        if request.wait_for:
            scrape_options["waitFor"] = request.wait_for
        body: dict[str, Any] = {
            "url": request.url,
            "maxDepth": request.max_depth,
            "limit": request.max_pages,
            "scrapeOptions": scrape_options,
        }
        if request.include_patterns:
            body["includePaths"] = request.include_patterns
        if request.exclude_patterns:
            body["excludePaths"] = request.exclude_patterns

        try:
            response = self.client.start_crawl(body)
            if not response.success or not response.job_id:
                raise FirecrawlResponseError(response.error or "Crawl initiation failed")
        except FirecrawlError as exc:
            log.error("Error starting crawl of %s: %s", request.url, exc)
            return CrawlJob(job_id="", status="failed", success=False, error=str(exc))

        log.info("Crawl job %s started for %s", response.job_id, request.url)
        return CrawlJob(job_id=response.job_id, status="pending")

    def check_crawl_status(self, job_id: str) -> CrawlJob:
        """Re-query the provider for *job_id* and map its state onto :class:`CrawlJob`."""
        if not job_id.strip():
            return CrawlJob(
                job_id=job_id, status="failed", success=False, error="job id is required"
            )
        try:
            response = self.client.crawl_status(job_id)
        except FirecrawlError as exc:
            log.error("Error checking crawl %s: %s", job_id, exc)
            return CrawlJob(job_id=job_id, status="failed", success=False, error=str(exc))

        status = CRAWL_STATUS_MAP.get((response.status or "").lower(), "pending")
        fields: dict[str, Any] = {
            "job_id": job_id,
            "status": status,
            "total_pages": response.total,
            "completed_pages": response.completed,
        }
        if response.created_at is not None:
            fields["started_at"] = as_utc(response.created_at)

        if status == "completed":
            fields["completed_at"] = utcnow()
            fields["pages"] = [
                _normalise_page(
                    page.url or (page.metadata.source_url if page.metadata else None) or "",
                    page,
                )
                for page in response.data or []
            ]
        elif status == "failed":
            fields["success"] = False
            fields["error"] = response.error or "Crawl failed"

        return CrawlJob(**fields)

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def search_web(self, request: SearchRequest) -> SearchResult:
        body: dict[str, Any] = {"query": request.query, "limit": request.limit}
        if request.language:
            body["lang"] = request.language
        if request.country:
            body["country"] = request.country
        if request.time_range and TIME_RANGE_TBS[request.time_range]:
            body["tbs"] = TIME_RANGE_TBS[request.time_range]
        if request.scrape_results:
            body["scrapeOptions"] = {"formats": list(request.formats or ["markdown"])}

        try:
            response = self.client.search(body)
            if not response.success or response.data is None:
                raise FirecrawlResponseError(response.error or "Search failed")
        except FirecrawlError as exc:
            log.error("Error searching %r: %s", request.query, exc)
            return SearchResult(success=False, error=str(exc))

        hits = [
            SearchHit(
                title=item.title or "",
                url=item.url,
                description=item.description or "",
                markdown=item.markdown,
                html=item.html,
            )
            for item in response.data
        ]
        return SearchResult(results=hits, total_results=len(hits))

    # ------------------------------------------------------------------
    # Structured extraction
    # ------------------------------------------------------------------

    def extract_content(self, request: ExtractionRequest) -> list[ExtractionResult]:
        """Extract structured data from each URL in order, one entry per URL."""
        return [
            self._extract_one(
                url,
                schema=request.extraction_schema,
                prompt=request.prompt,
                system_prompt=request.system_prompt,
            )
            for url in request.urls
        ]

    def _extract_one(
        self,
        url: str,
        *,
        schema: Optional[dict[str, Any]] = None,
        prompt: Optional[str] = None,
        system_prompt: Optional[str] = None,
        extraction_type: Optional[str] = None,
    ) -> ExtractionResult:
        template = get_extraction_template(extraction_type or detect_extraction_type(url))
        body = {
            "urls": [url],
            "prompt": prompt or template.prompt,
            "systemPrompt": system_prompt or template.system_prompt,
            "schema": schema or template.schema,
        }
        try:
            response = self.client.extract(body)
            if not response.success or response.data is None:
                raise FirecrawlResponseError(response.error or "Extraction returned no data")
        except FirecrawlError as exc:
            log.error("Error extracting from %s: %s", url, exc)
            return ExtractionResult(
                url=url, extracted_data=None, confidence="low", error=str(exc)
            )

        return ExtractionResult(
            url=url,
            extracted_data=response.data,
            confidence=assess_extraction_confidence(response.data),
        )

    # ------------------------------------------------------------------
    # RSS monitoring
    # ------------------------------------------------------------------

    def monitor_rss_feed(self, request: RSSFeedRequest) -> RSSFeedResult:
        feed = self._scrape(
            ScrapeRequest(url=request.feed_url, formats=["rawHtml", "markdown"]), FEED
        )
        if not feed.success or not (feed.raw_html or feed.markdown):
            return RSSFeedResult(
                feed_url=request.feed_url,
                success=False,
                error=feed.error or "Failed to fetch RSS feed",
            )

        title, items = parse_feed(feed.raw_html or "")
        if not items and feed.markdown:
            items = parse_markdown_feed(feed.markdown)

        items = filter_items(items, request.filters, request.last_checked)

        if request.extract_full_content:
            for item in items:
                try:
                    page_request = ScrapeRequest(url=item.link, formats=["markdown"])
                except ValidationError:
                    log.warning("Skipping full content for non-http link %r", item.link)
                    continue
                page = self.scrape_url(page_request)
                if page.success:
                    item.markdown = page.markdown

        return RSSFeedResult(
            feed_url=request.feed_url,
            title=title or feed.title or "RSS Feed",
            items=items,
            next_check=utcnow() + timedelta(seconds=settings.rss_recheck_interval),
        )

    # ------------------------------------------------------------------
    # Medical website parsing
    # ------------------------------------------------------------------

    def parse_medical_website(self, request: MedicalParseRequest) -> MedicalParseResult:
        """Scrape, extract with a medical template, and annotate for review."""
        page = self.scrape_url(
            ScrapeRequest(url=request.url, formats=["markdown", "html", "links", "metadata"])
        )
        if not page.success:
            return MedicalParseResult.model_validate(page.model_dump())

        extraction_type = request.extraction_type or detect_extraction_type(request.url)
        template = get_extraction_template(extraction_type)
        prompt = f"{template.prompt} {_extra_instructions(request)}".strip()
        extraction = self._extract_one(
            request.url,
            schema=template.schema,
            prompt=prompt,
            system_prompt=template.system_prompt,
            extraction_type=extraction_type,
        )
        medical_content = (
            extraction.extracted_data if isinstance(extraction.extracted_data, dict) else None
        )

        text = page.markdown or html_to_text(page.html or "", url=request.url)
        report = sanitize_medical_content(text)
        if report.warnings:
            log.warning("Medical content warnings for %s: %s", request.url, report.warnings)

        return MedicalParseResult(
            **page.model_dump(),
            medical_content=medical_content,
            extraction_type=extraction_type,
            content_warnings=report.warnings,
            review_required=report.review_required,
            source_quality=assess_source_quality(text) if text else None,
        )

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def configure(
        self,
        cache_enabled: Optional[bool] = None,
        cache_ttl_seconds: Optional[float] = None,
        rate_limits: Optional[dict[str, Any]] = None,
    ) -> None:
        """Change cache and rate-limit settings at runtime.

        ``rate_limits`` keys are :class:`RateLimitConfig` field names; request
        history is kept across the change.
        """
        if cache_enabled is not None:
            self.cache.enabled = cache_enabled
        if cache_ttl_seconds is not None:
            self.cache.ttl_seconds = cache_ttl_seconds
        if rate_limits:
            self.limiter.reconfigure(**rate_limits)

    def clear_cache(self, url: Optional[str] = None) -> int:
        """Drop cached entries for *url*, or purge every expired row if omitted."""
        if url:
            return sum(self.cache.delete(t, url) for t in (SCRAPE, FEED))
        return self.cache.purge_expired()

    def get_health_status(self) -> HealthStatus:
        return HealthStatus(
            api_key_configured=bool(self.client.api_key),
            cache_available=self.cache.available,
            cache_enabled=self.cache.enabled,
            rate_limit_status="throttled" if self.limiter.is_throttled() else "operational",
            rate_limit_usage=self.limiter.usage(),
        )
