"""Centralised settings for the medscrape backend.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).  The cache and
rate-limit values are only starting points: ``FirecrawlService.configure()``
can change them at runtime.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_bool(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("MEDSCRAPE_WORKSPACE", Path.home() / ".medscrape")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database file."""
        return self.workspace_dir / "medscrape.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    # ------------------------------------------------------------------
    # Firecrawl API
    # ------------------------------------------------------------------
    firecrawl_api_key: str = field(
        default_factory=lambda: os.environ.get("FIRECRAWL_API_KEY", "")
    )
    firecrawl_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "FIRECRAWL_BASE_URL", "https://api.firecrawl.dev/v1"
        )
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("FIRECRAWL_REQUEST_TIMEOUT", "60.0"))
    )

    # ------------------------------------------------------------------
    # Content cache
    # ------------------------------------------------------------------
    cache_enabled: bool = field(
        default_factory=lambda: _env_bool("FIRECRAWL_CACHE_ENABLED", "true")
    )
    cache_ttl_seconds: int = field(
        default_factory=lambda: int(os.environ.get("FIRECRAWL_CACHE_TTL", "3600"))
    )

    # ------------------------------------------------------------------
    # Rate limiting
    # ------------------------------------------------------------------
    rate_limit_per_minute: int = field(
        default_factory=lambda: int(os.environ.get("FIRECRAWL_RATE_PER_MINUTE", "60"))
    )
    rate_limit_per_hour: int = field(
        default_factory=lambda: int(os.environ.get("FIRECRAWL_RATE_PER_HOUR", "500"))
    )
    rate_limit_per_day: int = field(
        default_factory=lambda: int(os.environ.get("FIRECRAWL_RATE_PER_DAY", "5000"))
    )
    rate_limit_burst: int = field(
        default_factory=lambda: int(os.environ.get("FIRECRAWL_RATE_BURST", "10"))
    )
    rate_limit_cooldown: float = field(
        default_factory=lambda: float(os.environ.get("FIRECRAWL_RATE_COOLDOWN", "1.0"))
    )

    # ------------------------------------------------------------------
    # RSS monitoring
    # ------------------------------------------------------------------
    rss_recheck_interval: int = field(
        default_factory=lambda: int(os.environ.get("RSS_RECHECK_INTERVAL", "3600"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("MEDSCRAPE_LOG_LEVEL", "INFO")
    )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton, import this everywhere:
#   from medscrape.config import settings
settings = Settings()
