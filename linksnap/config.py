"""Centralised settings for the Linksnap ingestion pipeline.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (one level up from the package)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)

_DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


def _csv(name: str) -> frozenset[str]:
    raw = os.environ.get(name, "")
    return frozenset(h.strip().lower() for h in raw.split(",") if h.strip())


def _flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Direct fetch
    # ------------------------------------------------------------------
    user_agent: str = field(
        default_factory=lambda: os.environ.get("USER_AGENT", _DEFAULT_USER_AGENT)
    )
    direct_timeout: float = field(
        default_factory=lambda: float(os.environ.get("DIRECT_TIMEOUT", "6.0"))
    )

    # ------------------------------------------------------------------
    # Rendering fetch (JS rendering / anti-bot service)
    # ------------------------------------------------------------------
    render_backend: str = field(
        default_factory=lambda: os.environ.get("RENDER_BACKEND", "scrapingant").lower()
    )
    scrapingant_api_key: str = field(
        default_factory=lambda: os.environ.get("SCRAPINGANT_API_KEY", "")
    )
    rendering_api_url: str = field(
        default_factory=lambda: os.environ.get(
            "RENDERING_API_URL", "https://api.scrapingant.com/v2/general"
        )
    )
    rendering_timeout: float = field(
        default_factory=lambda: float(os.environ.get("RENDERING_TIMEOUT", "12.0"))
    )
    # Extra hostnames that skip direct fetch, merged with the built-in set.
    render_first_hosts: frozenset[str] = field(
        default_factory=lambda: _csv("RENDER_FIRST_HOSTS")
    )

    # ------------------------------------------------------------------
    # Metadata fallback service
    # ------------------------------------------------------------------
    metadata_api_url: str = field(
        default_factory=lambda: os.environ.get(
            "METADATA_API_URL", "https://api.microlink.io"
        )
    )
    metadata_api_key: str = field(
        default_factory=lambda: os.environ.get("METADATA_API_KEY", "")
    )
    metadata_timeout: float = field(
        default_factory=lambda: float(os.environ.get("METADATA_TIMEOUT", "20.0"))
    )

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------
    max_text_length: int = field(
        default_factory=lambda: int(os.environ.get("MAX_TEXT_LENGTH", "10000"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("LOG_LEVEL", "INFO").upper()
    )
    log_json: bool = field(default_factory=lambda: _flag("LOG_JSON"))


# Module-level singleton, import this everywhere:
#   from linksnap.config import settings
settings = Settings()
