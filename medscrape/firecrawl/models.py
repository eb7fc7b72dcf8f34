"""Request and result models for the Firecrawl orchestrator.

These are the shapes callers (API routers, CLI, scheduled jobs) hand to and
get back from :class:`~medscrape.firecrawl.service.FirecrawlService`.  Input
validation happens when a request model is constructed, so the service never
sees a malformed request.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


ScrapeFormat = Literal["markdown", "html", "rawHtml", "screenshot", "links", "metadata"]
CrawlFormat = Literal["markdown", "html", "links"]
SearchFormat = Literal["markdown", "html"]
CrawlStatus = Literal["pending", "processing", "completed", "failed"]
TimeRange = Literal["day", "week", "month", "year", "all"]
Confidence = Literal["high", "medium", "low"]
ExtractionType = Literal[
    "pubmed",
    "clinicalTrial",
    "medicalJournal",
    "healthNews",
    "conferenceAbstract",
    "supplementProduct",
    "generic",
]


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so they compare with feed timestamps."""
    return value.replace(tzinfo=timezone.utc) if value.tzinfo is None else value


def _check_url(value: str) -> str:
    value = value.strip()
    if not value.lower().startswith(("http://", "https://")):
        raise ValueError(f"not an http(s) URL: {value!r}")
    return value


# ---------------------------------------------------------------------------
# Scrape
# ---------------------------------------------------------------------------

class WebAction(BaseModel):
    """A browser action performed before the page is captured."""

    type: Literal["click", "type", "wait", "scroll", "screenshot"]
    selector: Optional[str] = None
    value: Optional[Union[str, int]] = None
    delay: Optional[int] = Field(default=None, ge=0, description="Milliseconds.")


class ScrapeRequest(BaseModel):
    url: str
    formats: Optional[list[ScrapeFormat]] = None
    wait_for: Optional[int] = Field(
        default=None, ge=0, description="Milliseconds to wait for dynamic content."
    )
    screenshot: bool = False
    full_page: bool = False
    actions: list[WebAction] = Field(default_factory=list)
    headers: Optional[dict[str, str]] = None
    exclude_selectors: Optional[list[str]] = None
    include_selectors: Optional[list[str]] = None

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        return _check_url(value)


class PageMetadata(BaseModel):
    description: Optional[str] = None
    keywords: Optional[list[str]] = None
    author: Optional[str] = None
    published_date: Optional[str] = None
    language: Optional[str] = None


class ScrapeResult(BaseModel):
    url: str
    title: Optional[str] = None
    markdown: Optional[str] = None
    html: Optional[str] = None
    raw_html: Optional[str] = None
    screenshot: Optional[str] = None
    links: Optional[list[str]] = None
    metadata: Optional[PageMetadata] = None
    scraped_at: datetime = Field(default_factory=utcnow)
    success: bool
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Crawl
# ---------------------------------------------------------------------------

class CrawlRequest(BaseModel):
    url: str
    max_depth: int = Field(default=2, ge=1, le=10)
    max_pages: int = Field(default=100, ge=1, le=10000)
    include_patterns: Optional[list[str]] = None
    exclude_patterns: Optional[list[str]] = None
    formats: Optional[list[CrawlFormat]] = None
    wait_for: Optional[int] = Field(default=None, ge=0)

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        return _check_url(value)

    @field_validator("include_patterns", "exclude_patterns")
    @classmethod
    def validate_patterns(cls, value: Optional[list[str]]) -> Optional[list[str]]:
        for pattern in value or []:
            try:
                re.compile(pattern)
            except re.error as exc:
                raise ValueError(f"invalid path pattern {pattern!r}: {exc}") from exc
        return value


class CrawlJob(BaseModel):
    """Local view of a crawl job that lives on the provider side."""

    job_id: str
    status: CrawlStatus
    pages: Optional[list[ScrapeResult]] = None
    total_pages: Optional[int] = None
    completed_pages: Optional[int] = None
    started_at: datetime = Field(default_factory=utcnow)
    completed_at: Optional[datetime] = None
    success: bool = True
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Search
# ---------------------------------------------------------------------------

class SearchRequest(BaseModel):
    query: str = Field(min_length=1)
    limit: int = Field(default=10, ge=1, le=100)
    language: Optional[str] = None
    country: Optional[str] = None
    time_range: Optional[TimeRange] = None
    scrape_results: bool = False
    formats: Optional[list[SearchFormat]] = None


class SearchHit(BaseModel):
    title: str = ""
    url: str
    description: str = ""
    markdown: Optional[str] = None
    html: Optional[str] = None


class SearchResult(BaseModel):
    results: list[SearchHit] = Field(default_factory=list)
    total_results: int = 0
    searched_at: datetime = Field(default_factory=utcnow)
    success: bool = True
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Structured extraction
# ---------------------------------------------------------------------------

class ExtractionRequest(BaseModel):
    """One or more URLs to run schema-guided extraction over.

    ``schema``, ``prompt`` and ``system_prompt`` override the template that is
    picked from each URL; anything left unset comes from the template.
    """

    model_config = ConfigDict(populate_by_name=True)

    url: Union[str, list[str]]
    extraction_schema: Optional[dict[str, Any]] = Field(default=None, alias="schema")
    prompt: Optional[str] = None
    system_prompt: Optional[str] = None

    @field_validator("url")
    @classmethod
    def validate_urls(cls, value: Union[str, list[str]]) -> Union[str, list[str]]:
        if isinstance(value, str):
            return _check_url(value)
        if not value:
            raise ValueError("at least one URL is required")
        return [_check_url(v) for v in value]

    @property
    def urls(self) -> list[str]:
        return [self.url] if isinstance(self.url, str) else list(self.url)


class ExtractionResult(BaseModel):
    url: str
    extracted_data: Any = None
    confidence: Confidence
    extracted_at: datetime = Field(default_factory=utcnow)
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# RSS monitoring
# ---------------------------------------------------------------------------

class DateRange(BaseModel):
    start: datetime
    end: datetime

    @field_validator("start", "end")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @model_validator(mode="after")
    def check_order(self) -> "DateRange":
        if self.end < self.start:
            raise ValueError("date_range.end is before date_range.start")
        return self


class RSSFilters(BaseModel):
    keywords: Optional[list[str]] = None
    authors: Optional[list[str]] = None
    categories: Optional[list[str]] = None
    date_range: Optional[DateRange] = None


class RSSFeedRequest(BaseModel):
    feed_url: str
    last_checked: Optional[datetime] = None
    extract_full_content: bool = False
    filters: Optional[RSSFilters] = None

    @field_validator("feed_url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        return _check_url(value)

    @field_validator("last_checked")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None


class RSSFeedItem(BaseModel):
    title: str
    link: str
    description: str = ""
    pub_date: Optional[datetime] = None
    author: Optional[str] = None
    categories: list[str] = Field(default_factory=list)
    content: Optional[str] = None
    markdown: Optional[str] = None

    @field_validator("pub_date")
    @classmethod
    def assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value) if value is not None else None


class RSSFeedResult(BaseModel):
    feed_url: str
    title: str = "RSS Feed"
    items: list[RSSFeedItem] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=utcnow)
    next_check: Optional[datetime] = None
    success: bool = True
    error: Optional[str] = None


# ---------------------------------------------------------------------------
# Medical website parsing
# ---------------------------------------------------------------------------

class MedicalParseRequest(BaseModel):
    url: str
    extraction_type: Optional[ExtractionType] = None
    include_references: bool = False
    include_figures: bool = False
    include_supplementary: bool = False

    @field_validator("url")
    @classmethod
    def validate_url(cls, value: str) -> str:
        return _check_url(value)


class MedicalParseResult(ScrapeResult):
    medical_content: Optional[dict[str, Any]] = None
    extraction_type: Optional[ExtractionType] = None
    content_warnings: list[str] = Field(default_factory=list)
    review_required: bool = False
    source_quality: Optional[str] = None


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class HealthStatus(BaseModel):
    api_key_configured: bool
    cache_available: bool
    cache_enabled: bool
    rate_limit_status: Literal["operational", "throttled"]
    rate_limit_usage: dict[str, int] = Field(default_factory=dict)
