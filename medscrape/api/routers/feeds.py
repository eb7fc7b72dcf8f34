"""RSS / Atom feed monitoring.

Routes
------
POST /feeds/monitor    Body: RSSFeedRequest → RSSFeedResult
"""

from __future__ import annotations

import time
from typing import Optional

from fastapi import APIRouter, Header, Request

from medscrape.api.activity import log_activity
from medscrape.firecrawl.models import RSSFeedRequest, RSSFeedResult

router = APIRouter()


@router.post("/monitor", response_model=RSSFeedResult)
def monitor_feed(
    body: RSSFeedRequest,
    request: Request,
    x_admin_email: Optional[str] = Header(default=None),
) -> RSSFeedResult:
    """Fetch a feed, filter its items and optionally pull each item's page.

    Send the previous response's ``last_updated`` as ``last_checked`` to get
    only items published since then.
    """
    started = time.perf_counter()
    result = request.app.state.firecrawl.monitor_rss_feed(body)
    log_activity(
        request,
        "rss_monitor",
        body.feed_url,
        started,
        actor_email=x_admin_email,
        success=result.success,
        error=result.error,
        details={"items": len(result.items)},
    )
    return result
