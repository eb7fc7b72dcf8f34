"""Dataclass models representing DB rows.

These are plain Python objects – not ORM models.  The DB layer serialises /
deserialises to and from these types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class CachedContent:
    id: int
    url: str
    content_type: str
    hash: str
    content: Any
    metadata: dict[str, Any] | None
    cached_at: float
    expires_at: float


@dataclass
class ActivityEntry:
    id: int
    action_type: str
    target: str | None
    actor_email: str | None
    details: dict[str, Any] = field(default_factory=dict)
    success: bool = True
    error_message: str | None = None
    duration_ms: int | None = None
    created_at: float = 0.0
