"""Configuration constants, language priority, and .env loading.

WHY: Centralizes every tunable value (upstream URLs, timeouts, retry
bounds, cache lifetime, and the language priority table) so they are easy
to find, update, and override per environment without touching logic.

HOW: python-dotenv loads the .env file on import. Constants are module-level
values read from environment variables with sensible defaults. The retry
defaults are consumed by RetryConfig.from_env(); nothing in the engine reads
them directly, so tests can inject their own configuration.

RULES:
- DEFAULT_LANGUAGE_PRIORITY is ordered by descending general platform usage
- LANGUAGE_PRIORITY env var (comma-separated) overrides the default table
- All timeouts are float seconds
- All defaults can be overridden via environment variables
"""

from __future__ import annotations

import os
from typing import List, Optional, Tuple

from dotenv import load_dotenv

# Load .env from the project root (where the service is run from)
load_dotenv()


def _env_float(name: str, default: float) -> float:
    """Read a float from the environment, falling back on missing or bad values."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_int(name: str, default: int) -> int:
    """Read an int from the environment, falling back on missing or bad values."""
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def parse_language_list(value: Optional[str]) -> List[str]:
    """Split a comma-separated language list into lowercase codes.

    RULES:
    - Blank entries are dropped
    - Duplicates are dropped, first occurrence wins
    - None or "" returns an empty list
    """
    if not value:
        return []
    seen: set = set()
    codes: List[str] = []
    for part in value.split(","):
        code = part.strip().lower()
        if code and code not in seen:
            seen.add(code)
            codes.append(code)
    return codes


# ---------------------------------------------------------------------------
# Upstream endpoints
# ---------------------------------------------------------------------------

YOUTUBE_BASE_URL = os.getenv("YOUTUBE_BASE_URL", "https://www.youtube.com").rstrip("/")
USER_AGENT = os.getenv(
    "CAPTION_USER_AGENT",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/124.0 Safari/537.36",
)
ACCEPT_LANGUAGE = os.getenv("CAPTION_ACCEPT_LANGUAGE", "en-US,en;q=0.9")

# Per-request network timeout; must stay below ATTEMPT_TIMEOUT_S
REQUEST_TIMEOUT_S = _env_float("REQUEST_TIMEOUT_S", 10.0)

# ---------------------------------------------------------------------------
# Retry envelope defaults
# ---------------------------------------------------------------------------

RETRY_MAX_ATTEMPTS = _env_int("RETRY_MAX_ATTEMPTS", 3)
RETRY_BASE_DELAY_S = _env_float("RETRY_BASE_DELAY_S", 1.0)
RETRY_MAX_DELAY_S = _env_float("RETRY_MAX_DELAY_S", 10.0)
ATTEMPT_TIMEOUT_S = _env_float("ATTEMPT_TIMEOUT_S", 30.0)

# ---------------------------------------------------------------------------
# Language selection
# ---------------------------------------------------------------------------

DEFAULT_LANGUAGE_PRIORITY: Tuple[str, ...] = (
    "en", "es", "pt", "hi", "ar", "fr", "de", "ru",
    "ja", "ko", "id", "tr", "it", "zh", "vi",
)
"""Broad global languages first, by descending general platform usage."""

LANGUAGE_PRIORITY: Tuple[str, ...] = tuple(
    parse_language_list(os.getenv("LANGUAGE_PRIORITY"))
) or DEFAULT_LANGUAGE_PRIORITY

SECONDARY_FALLBACK_LANGUAGE = os.getenv("SECONDARY_FALLBACK_LANGUAGE", "en").strip().lower() or "en"
"""Language the secondary backend asks for when the caller gives no hint."""

# ---------------------------------------------------------------------------
# Response and batching
# ---------------------------------------------------------------------------

CACHE_SECONDS = _env_int("CACHE_SECONDS", 3600)
BATCH_CONCURRENCY = _env_int("BATCH_CONCURRENCY", 5)
