"""Admin endpoints — health, cache, runtime configuration, activity log.

Routes
------
GET   /admin/health         Service health snapshot
POST  /admin/cache/clear    Body: {"url": optional}   → {"deleted": n}
PATCH /admin/config         Body: ConfigUpdate        → current config
GET   /admin/activity       ?action_type=&limit=      → recent activity rows
"""

from __future__ import annotations

import time
from dataclasses import asdict
from typing import Any, Optional

from fastapi import APIRouter, Header, HTTPException, Query, Request
from pydantic import BaseModel, Field

from medscrape.api.activity import log_activity
from medscrape.db.activity import list_activity
from medscrape.firecrawl.models import HealthStatus

router = APIRouter()


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class CacheClearRequest(BaseModel):
    url: Optional[str] = None


class RateLimitUpdate(BaseModel):
    max_requests_per_minute: Optional[int] = Field(default=None, ge=1)
    max_requests_per_hour: Optional[int] = Field(default=None, ge=1)
    max_requests_per_day: Optional[int] = Field(default=None, ge=1)
    burst_limit: Optional[int] = Field(default=None, ge=0)
    cooldown_period: Optional[float] = Field(default=None, gt=0)


class ConfigUpdate(BaseModel):
    cache_enabled: Optional[bool] = None
    cache_ttl_seconds: Optional[float] = Field(default=None, gt=0)
    rate_limits: Optional[RateLimitUpdate] = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _config_dict(service: Any) -> dict[str, Any]:
    return {
        "cache_enabled": service.cache.enabled,
        "cache_ttl_seconds": service.cache.ttl_seconds,
        "rate_limits": asdict(service.limiter.config),
    }


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/health", response_model=HealthStatus)
def health(request: Request) -> HealthStatus:
    return request.app.state.firecrawl.get_health_status()


@router.post("/cache/clear")
def clear_cache(
    request: Request,
    body: Optional[CacheClearRequest] = None,
    x_admin_email: Optional[str] = Header(default=None),
) -> dict[str, int]:
    """Drop cached entries for ``url``, or every expired entry if omitted."""
    started = time.perf_counter()
    url = body.url if body else None
    deleted = request.app.state.firecrawl.clear_cache(url)
    log_activity(
        request,
        "cache_clear",
        url,
        started,
        actor_email=x_admin_email,
        details={"deleted": deleted},
    )
    return {"deleted": deleted}


@router.patch("/config")
def update_config(
    body: ConfigUpdate,
    request: Request,
    x_admin_email: Optional[str] = Header(default=None),
) -> dict[str, Any]:
    """Change cache / rate-limit settings without a restart."""
    changes = body.model_dump(exclude_none=True)
    if not changes:
        raise HTTPException(status_code=422, detail="No fields provided to update.")

    started = time.perf_counter()
    service = request.app.state.firecrawl
    service.configure(
        cache_enabled=body.cache_enabled,
        cache_ttl_seconds=body.cache_ttl_seconds,
        rate_limits=body.rate_limits.model_dump(exclude_none=True) if body.rate_limits else None,
    )
    log_activity(
        request, "configure", None, started, actor_email=x_admin_email, details=changes
    )
    return _config_dict(service)


@router.get("/activity")
def activity(
    request: Request,
    action_type: Optional[str] = None,
    limit: int = Query(default=50, ge=1, le=500),
) -> list[dict[str, Any]]:
    entries = list_activity(request.app.state.db, action_type=action_type, limit=limit)
    return [asdict(e) for e in entries]
