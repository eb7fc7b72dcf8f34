"""Research endpoints — scrape, search, extract, medical parsing.

Routes
------
POST /research/scrape    Body: ScrapeRequest          → ScrapeResult
POST /research/search    Body: SearchRequest          → SearchResult
POST /research/extract   Body: ExtractionRequest      → [ExtractionResult]
POST /research/medical   Body: MedicalParseRequest    → MedicalParseResult

Provider failures come back as ``200`` with ``success: false`` (or, for
extraction, ``error`` set per URL); malformed requests are rejected with
``422`` before anything is fetched.  Each call writes one activity-log row,
attributed to the ``X-Admin-Email`` header when present.
"""

from __future__ import annotations

import time
from typing import Optional

from fastapi import APIRouter, Header, Request

from medscrape.api.activity import log_activity
from medscrape.firecrawl.models import (
    ExtractionRequest,
    ExtractionResult,
    MedicalParseRequest,
    MedicalParseResult,
    ScrapeRequest,
    ScrapeResult,
    SearchRequest,
    SearchResult,
)

router = APIRouter()


@router.post("/scrape", response_model=ScrapeResult)
def scrape(
    body: ScrapeRequest,
    request: Request,
    x_admin_email: Optional[str] = Header(default=None),
) -> ScrapeResult:
    started = time.perf_counter()
    result = request.app.state.firecrawl.scrape_url(body)
    log_activity(
        request,
        "scrape",
        body.url,
        started,
        actor_email=x_admin_email,
        success=result.success,
        error=result.error,
    )
    return result


@router.post("/search", response_model=SearchResult)
def search(
    body: SearchRequest,
    request: Request,
    x_admin_email: Optional[str] = Header(default=None),
) -> SearchResult:
    started = time.perf_counter()
    result = request.app.state.firecrawl.search_web(body)
    log_activity(
        request,
        "search",
        body.query,
        started,
        actor_email=x_admin_email,
        success=result.success,
        error=result.error,
        details={"total_results": result.total_results},
    )
    return result


@router.post("/extract", response_model=list[ExtractionResult])
def extract(
    body: ExtractionRequest,
    request: Request,
    x_admin_email: Optional[str] = Header(default=None),
) -> list[ExtractionResult]:
    """Run schema-guided extraction over one URL or a list of URLs.

    The response holds exactly one entry per URL, in request order.
    """
    started = time.perf_counter()
    results = request.app.state.firecrawl.extract_content(body)
    errors = [r.error for r in results if r.error]
    log_activity(
        request,
        "extract",
        ", ".join(body.urls),
        started,
        actor_email=x_admin_email,
        success=not errors,
        error="; ".join(errors) or None,
        details={"confidence": [r.confidence for r in results]},
    )
    return results


@router.post("/medical", response_model=MedicalParseResult)
def parse_medical(
    body: MedicalParseRequest,
    request: Request,
    x_admin_email: Optional[str] = Header(default=None),
) -> MedicalParseResult:
    started = time.perf_counter()
    result = request.app.state.firecrawl.parse_medical_website(body)
    log_activity(
        request,
        "medical_parse",
        body.url,
        started,
        actor_email=x_admin_email,
        success=result.success,
        error=result.error,
        details={
            "extraction_type": result.extraction_type,
            "review_required": result.review_required,
        },
    )
    return result
