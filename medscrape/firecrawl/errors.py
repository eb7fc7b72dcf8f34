"""Exception hierarchy for the Firecrawl integration.

The HTTP client raises these; the orchestrator catches :class:`FirecrawlError`
at every public method and turns it into a failure result.
"""

from __future__ import annotations


class FirecrawlError(Exception):
    """Base class for every error raised by the Firecrawl client."""


class FirecrawlConfigError(FirecrawlError):
    """The service is missing configuration it needs (e.g. the API key)."""


class FirecrawlAPIError(FirecrawlError):
    """The API answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"Firecrawl API error: {status_code} - {body}")


class FirecrawlTransportError(FirecrawlError):
    """The request never produced a response (DNS, connect, timeout, ...)."""


class FirecrawlResponseError(FirecrawlError):
    """The response body was not the shape the endpoint promises."""


class RateLimitTimeout(FirecrawlError):
    """``wait_for_limit`` gave up before a request slot freed up."""
