"""Thin HTTP client for the Firecrawl v1 REST API.

Every call waits for the rate limiter, authenticates with a bearer token and
validates the JSON body against the endpoint's wire model.  Failures are raised
as :class:`~medscrape.firecrawl.errors.FirecrawlError` subclasses; turning them
into result objects is the orchestrator's job.
"""

from __future__ import annotations

from typing import Any, Optional, TypeVar
from urllib.parse import quote

import httpx
from pydantic import BaseModel, ValidationError

from medscrape.firecrawl.errors import (
    FirecrawlAPIError,
    FirecrawlConfigError,
    FirecrawlResponseError,
    FirecrawlTransportError,
)
from medscrape.firecrawl.rate_limiter import RateLimiter
from medscrape.firecrawl.responses import (
    CrawlStartResponse,
    CrawlStatusResponse,
    ExtractResponse,
    ScrapeResponse,
    SearchResponse,
)
from medscrape.utils.logging import get_logger

log = get_logger(__name__)

_Wire = TypeVar("_Wire", bound=BaseModel)


class FirecrawlClient:
    def __init__(
        self,
        api_key: str,
        base_url: str,
        limiter: RateLimiter,
        timeout: float = 60.0,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.limiter = limiter
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def request(
        self,
        method: str,
        endpoint: str,
        body: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        """Send one request and return the decoded JSON object.

        Raises:
            FirecrawlConfigError: No API key configured.
            FirecrawlAPIError: Non-2xx status; the body is kept as text.
            FirecrawlTransportError: Connection-level failure or timeout.
            FirecrawlResponseError: Body is not a JSON object.
        """
        if not self.api_key:
            raise FirecrawlConfigError("Firecrawl API key not configured")

        self.limiter.wait_for_limit()

        try:
            with httpx.Client(timeout=self.timeout) as client:
                response = client.request(
                    method,
                    f"{self.base_url}{endpoint}",
                    json=body,
                    headers={
                        "Content-Type": "application/json",
                        "Authorization": f"Bearer {self.api_key}",
                    },
                )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            log.error("Firecrawl %s %s failed: %s", method, endpoint, exc)
            raise FirecrawlTransportError(f"{type(exc).__name__}: {exc}") from exc

        if response.is_error:
            log.error("Firecrawl %s %s -> HTTP %s", method, endpoint, response.status_code)
            raise FirecrawlAPIError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as exc:
            raise FirecrawlResponseError(f"{endpoint}: response is not JSON") from exc
        if not isinstance(data, dict):
            raise FirecrawlResponseError(f"{endpoint}: expected a JSON object")
        return data

    def _call(
        self,
        wire: type[_Wire],
        method: str,
        endpoint: str,
        body: Optional[dict[str, Any]] = None,
    ) -> _Wire:
        data = self.request(method, endpoint, body)
        try:
            return wire.model_validate(data)
        except ValidationError as exc:
            raise FirecrawlResponseError(
                f"{endpoint}: unexpected response shape ({exc.error_count()} error(s))"
            ) from exc

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    def scrape(self, body: dict[str, Any]) -> ScrapeResponse:
        return self._call(ScrapeResponse, "POST", "/scrape", body)

    def start_crawl(self, body: dict[str, Any]) -> CrawlStartResponse:
        return self._call(CrawlStartResponse, "POST", "/crawl", body)

    def crawl_status(self, job_id: str) -> CrawlStatusResponse:
        return self._call(CrawlStatusResponse, "GET", f"/crawl/{quote(job_id, safe='')}")

    def search(self, body: dict[str, Any]) -> SearchResponse:
        return self._call(SearchResponse, "POST", "/search", body)

    def extract(self, body: dict[str, Any]) -> ExtractResponse:
        return self._call(ExtractResponse, "POST", "/extract", body)
