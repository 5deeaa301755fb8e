"""
Graph Configuration - Single Source of Truth

All backend and search parameters defined here. Do not duplicate elsewhere.
Every value can be overridden through a FERRET_* environment variable.
"""

import os
from pathlib import Path

# Package root (where this file lives)
_PACKAGE_ROOT = Path(__file__).parent


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_optional_float(name: str) -> float | None:
    value = os.environ.get(name)
    if not value:
        return None
    return float(value)


# --- Backend ---
GRAPH_API_BASE = os.environ.get("FERRET_GRAPH_API_BASE", "https://graph.microsoft.com/v1.0")

# Name of the env var holding the caller-scoped bearer token.
# ferret makes no authorization decisions; it uses whatever token it is given.
ACCESS_TOKEN_ENV = "FERRET_ACCESS_TOKEN"

# Default timeout for every Graph call (seconds)
HTTP_TIMEOUT_SECONDS = float(os.environ.get("FERRET_HTTP_TIMEOUT", 60))

# Listings follow @odata.nextLink up to this many pages
MAX_PAGES = int(os.environ.get("FERRET_MAX_PAGES", 10))

# Content above this size (by Content-Length) is streamed in chunks
STREAMING_THRESHOLD_BYTES = int(os.environ.get("FERRET_STREAMING_THRESHOLD_MB", 50)) * 1024 * 1024


# --- Search ---
# Per-probe timeout. A slow container counts as a miss, not a stalled search.
PROBE_TIMEOUT_SECONDS = float(os.environ.get("FERRET_PROBE_TIMEOUT", 10))

# 1 = strictly sequential probing. >1 probes that many candidates at once,
# still honoring priority order when picking the winner.
PROBE_BATCH_SIZE = int(os.environ.get("FERRET_PROBE_BATCH_SIZE", 1))

# Filter passed to site search when no scope hint is given
SITE_SEARCH_FILTER = os.environ.get("FERRET_SITE_FILTER", "*")

# Upper bound on sites whose containers get enumerated
MAX_ENUMERATED_SITES = int(os.environ.get("FERRET_MAX_SITES", 10))

# By default an expired/invalid token is skipped like any other probe failure.
# Set to abort the whole search on the first 401 instead.
ABORT_ON_AUTH_EXPIRED = _env_bool("FERRET_ABORT_ON_AUTH_EXPIRED", False)


# --- Cache ---
# None = entries live until explicitly invalidated or cleared
CACHE_TTL_SECONDS = _env_optional_float("FERRET_CACHE_TTL")

# Cache fetched content as well as resolutions
CACHE_CONTENT = _env_bool("FERRET_CACHE_CONTENT", True)

# Content entries are LRU-evicted past either cap. Resolutions are never evicted.
CACHE_MAX_CONTENT_ENTRIES = int(os.environ.get("FERRET_CACHE_MAX_CONTENT_ENTRIES", 100))
CACHE_MAX_CONTENT_BYTES = int(os.environ.get("FERRET_CACHE_MAX_CONTENT_MB", 512)) * 1024 * 1024


# --- Content ---
MAX_FILE_SIZE_BYTES = int(os.environ.get("FERRET_MAX_FILE_SIZE_MB", 100)) * 1024 * 1024

# Classification rules (cache-library names, personal URL markers)
CLASSIFICATION_CONFIG_FILE = _PACKAGE_ROOT / "config" / "classification_markers.json"
