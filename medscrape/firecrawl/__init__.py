"""Firecrawl package — rate-limited, cached scraping / crawling / extraction."""

from medscrape.firecrawl.cache import ContentCache
from medscrape.firecrawl.errors import FirecrawlError
from medscrape.firecrawl.rate_limiter import RateLimitConfig, RateLimiter
from medscrape.firecrawl.service import FirecrawlService, assess_extraction_confidence
from medscrape.firecrawl.templates import detect_extraction_type, get_extraction_template

__all__ = [
    "ContentCache",
    "FirecrawlError",
    "FirecrawlService",
    "RateLimitConfig",
    "RateLimiter",
    "assess_extraction_confidence",
    "detect_extraction_type",
    "get_extraction_template",
]
