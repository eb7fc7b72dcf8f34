"""In-process sliding-window rate limiter for outbound Firecrawl calls.

Each partition key keeps the timestamps of the requests it let through during
the last 24 hours.  A request is refused only when one of the minute / hour /
day ceilings has been reached *and* the 1-second burst window is full too.

State lives in memory, so it resets on restart and is not shared between
processes.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Optional

from medscrape.config import settings
from medscrape.firecrawl.errors import RateLimitTimeout

_MINUTE = 60.0
_HOUR = 3600.0
_DAY = 86400.0
_BURST_WINDOW = 1.0


@dataclass(frozen=True)
class RateLimitConfig:
    max_requests_per_minute: int = 60
    max_requests_per_hour: int = 500
    max_requests_per_day: int = 5000
    burst_limit: int = 10
    cooldown_period: float = 1.0  # seconds; upper bound on a single wait step

    def __post_init__(self) -> None:
        for name in (
            "max_requests_per_minute",
            "max_requests_per_hour",
            "max_requests_per_day",
        ):
            if getattr(self, name) < 1:
                raise ValueError(f"{name} must be at least 1")
        if self.burst_limit < 0:
            raise ValueError("burst_limit must not be negative")
        if self.cooldown_period <= 0:
            raise ValueError("cooldown_period must be positive")

    @classmethod
    def from_settings(cls) -> "RateLimitConfig":
        return cls(
            max_requests_per_minute=settings.rate_limit_per_minute,
            max_requests_per_hour=settings.rate_limit_per_hour,
            max_requests_per_day=settings.rate_limit_per_day,
            burst_limit=settings.rate_limit_burst,
            cooldown_period=settings.rate_limit_cooldown,
        )


class RateLimiter:
    """Sliding-window limiter keyed by partition.

    ``clock`` and ``sleep`` are injectable so tests can drive time by hand.
    """

    def __init__(
        self,
        config: Optional[RateLimitConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._config = config or RateLimitConfig()
        self._clock = clock
        self._sleep = sleep
        self._requests: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    @property
    def config(self) -> RateLimitConfig:
        return self._config

    def reconfigure(self, **changes: object) -> RateLimitConfig:
        """Replace some ceilings; request history is kept.

        Raises:
            ValueError: A ceiling below 1.
        """
        with self._lock:
            self._config = replace(self._config, **changes)  # type: ignore[arg-type]
            return self._config

    # ------------------------------------------------------------------
    # Internal helpers (call with the lock held)
    # ------------------------------------------------------------------

    def _window(self, key: str, now: float) -> list[float]:
        kept = [t for t in self._requests.get(key, []) if now - t < _DAY]
        self._requests[key] = kept
        return kept

    def _ceilings(self) -> list[tuple[float, int]]:
        return [
            (_MINUTE, self._config.max_requests_per_minute),
            (_HOUR, self._config.max_requests_per_hour),
            (_DAY, self._config.max_requests_per_day),
        ]

    def _denied(self, stamps: list[float], now: float) -> bool:
        exhausted = any(
            sum(1 for t in stamps if now - t < span) >= ceiling
            for span, ceiling in self._ceilings()
        )
        if not exhausted:
            return False
        burst = sum(1 for t in stamps if now - t < _BURST_WINDOW)
        return burst >= self._config.burst_limit

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def check_limit(self, key: str = "default") -> bool:
        """Return ``True`` and record the request if one more is permitted now."""
        with self._lock:
            now = self._clock()
            stamps = self._window(key, now)
            if self._denied(stamps, now):
                return False
            stamps.append(now)
            return True

    def time_until_available(self, key: str = "default") -> float:
        """Seconds until :meth:`check_limit` would succeed (0.0 if it would now).

        A denied key frees up as soon as *either* the burst window drops under
        its ceiling *or* every exhausted window drops under its own.
        """
        with self._lock:
            now = self._clock()
            stamps = sorted(self._window(key, now))
            if not self._denied(stamps, now):
                return 0.0

            burst = [t for t in stamps if now - t < _BURST_WINDOW]
            limit = self._config.burst_limit
            burst_free = burst[len(burst) - limit] + _BURST_WINDOW if limit > 0 else math.inf

            windows_free = now
            for span, ceiling in self._ceilings():
                in_window = [t for t in stamps if now - t < span]
                if len(in_window) >= ceiling:
                    # Oldest stamps must age out until only ceiling - 1 remain.
                    windows_free = max(
                        windows_free, in_window[len(in_window) - ceiling] + span
                    )

            return max(min(burst_free, windows_free) - now, 0.0)

    def wait_for_limit(self, key: str = "default", timeout: Optional[float] = None) -> None:
        """Block until a request slot is granted for *key*.

        Sleeps for the computed time until the next slot, capped at
        ``cooldown_period`` per step.

        Raises:
            RateLimitTimeout: If *timeout* seconds would pass before a slot frees.
        """
        deadline = None if timeout is None else self._clock() + timeout
        while not self.check_limit(key):
            delay = min(self.time_until_available(key), self._config.cooldown_period)
            delay = max(delay, 0.001)
            if deadline is not None and self._clock() + delay > deadline:
                raise RateLimitTimeout(
                    f"no request slot for {key!r} within {timeout:.1f}s"
                )
            self._sleep(delay)

    def usage(self, key: str = "default") -> dict[str, int]:
        """Request counts per window for *key*, without recording anything."""
        with self._lock:
            now = self._clock()
            stamps = self._window(key, now)
            return {
                "last_second": sum(1 for t in stamps if now - t < _BURST_WINDOW),
                "last_minute": sum(1 for t in stamps if now - t < _MINUTE),
                "last_hour": sum(1 for t in stamps if now - t < _HOUR),
                "last_day": len(stamps),
            }

    def is_throttled(self, key: str = "default") -> bool:
        with self._lock:
            now = self._clock()
            return self._denied(self._window(key, now), now)
