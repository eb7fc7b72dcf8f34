"""Activity-log bookkeeping shared by the routers."""

from __future__ import annotations

import time
from typing import Any, Optional

from fastapi import Request

from medscrape.db.activity import record_activity


def log_activity(
    request: Request,
    action_type: str,
    target: Optional[str],
    started: float,
    *,
    actor_email: Optional[str] = None,
    success: bool = True,
    error: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
) -> None:
    """Write one ``activity_log`` row for a request that began at *started*.

    *started* is a :func:`time.perf_counter` reading.
    """
    record_activity(
        request.app.state.db,
        action_type,
        target=target,
        actor_email=actor_email,
        details=details,
        success=success,
        error_message=error,
        duration_ms=int((time.perf_counter() - started) * 1000),
    )
