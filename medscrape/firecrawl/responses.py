"""Wire models for Firecrawl API responses.

The client validates every JSON body against one of these before the
orchestrator touches it, so a provider-side shape change surfaces as a
:class:`~medscrape.firecrawl.errors.FirecrawlResponseError` instead of a
stray ``None`` deep inside normalisation.  Unknown fields are ignored.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Union

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class _Wire(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class WireMetadata(_Wire):
    title: Optional[str] = None
    description: Optional[str] = None
    keywords: Optional[Union[str, list[str]]] = None
    author: Optional[str] = None
    publish_date: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("publishDate", "publishedTime")
    )
    language: Optional[str] = None
    source_url: Optional[str] = Field(default=None, alias="sourceURL")
    status_code: Optional[int] = Field(default=None, alias="statusCode")


class ScrapeData(_Wire):
    markdown: Optional[str] = None
    html: Optional[str] = None
    raw_html: Optional[str] = Field(default=None, alias="rawHtml")
    screenshot: Optional[str] = None
    links: Optional[list[str]] = None
    metadata: Optional[WireMetadata] = None


class ScrapeResponse(_Wire):
    success: bool
    data: Optional[ScrapeData] = None
    error: Optional[str] = None


class CrawlStartResponse(_Wire):
    success: bool
    job_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("id", "jobId"))
    error: Optional[str] = None


class CrawlPage(ScrapeData):
    url: Optional[str] = None


class CrawlStatusResponse(_Wire):
    status: Optional[str] = None
    total: Optional[int] = None
    completed: Optional[int] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    data: Optional[list[CrawlPage]] = None
    error: Optional[str] = None


class SearchItem(_Wire):
    title: Optional[str] = None
    url: str
    description: Optional[str] = None
    markdown: Optional[str] = None
    html: Optional[str] = None


class SearchResponse(_Wire):
    success: bool
    data: Optional[list[SearchItem]] = None
    error: Optional[str] = None


class ExtractResponse(_Wire):
    success: bool
    data: Any = None
    error: Optional[str] = None
