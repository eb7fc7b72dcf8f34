"""Crawl job endpoints.

Routes
------
POST /crawl              Body: CrawlRequest   → CrawlJob (pending)
GET  /crawl/{job_id}     Re-query the provider → CrawlJob
"""

from __future__ import annotations

import time
from typing import Optional

from fastapi import APIRouter, Header, Request

from medscrape.api.activity import log_activity
from medscrape.firecrawl.models import CrawlJob, CrawlRequest

router = APIRouter()


@router.post("", response_model=CrawlJob, status_code=202)
def start_crawl(
    body: CrawlRequest,
    request: Request,
    x_admin_email: Optional[str] = Header(default=None),
) -> CrawlJob:
    """Start a crawl.  Poll ``GET /crawl/{job_id}`` for progress."""
    started = time.perf_counter()
    job = request.app.state.firecrawl.crawl_website(body)
    log_activity(
        request,
        "crawl_start",
        body.url,
        started,
        actor_email=x_admin_email,
        success=job.success,
        error=job.error,
        details={"job_id": job.job_id, "max_depth": body.max_depth, "max_pages": body.max_pages},
    )
    return job


@router.get("/{job_id}", response_model=CrawlJob)
def crawl_status(
    job_id: str,
    request: Request,
    x_admin_email: Optional[str] = Header(default=None),
) -> CrawlJob:
    started = time.perf_counter()
    job = request.app.state.firecrawl.check_crawl_status(job_id)
    log_activity(
        request,
        "crawl_status",
        job_id,
        started,
        actor_email=x_admin_email,
        success=job.success,
        error=job.error,
        details={"status": job.status},
    )
    return job
