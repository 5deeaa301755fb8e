"""
Site and container classification.

Loads rules from config/classification_markers.json (single source of truth).
Tags every discovered site or container as business, personal, or cache so
the enumerator can search business containers first, defer personal ones,
and prune cache-like libraries that never hold user documents.

Pure functions: no backend calls, no logging.
"""

import json
import re
from functools import lru_cache
from typing import Any

from graph_config import CLASSIFICATION_CONFIG_FILE
from models import Classification, ContainerRef, Site


@lru_cache(maxsize=1)
def get_classification_config() -> dict[str, Any]:
    """
    Load classification configuration from JSON file.

    Cached for performance - config doesn't change during runtime.
    """
    config: dict[str, Any] = json.loads(CLASSIFICATION_CONFIG_FILE.read_text())
    return config


def _is_cache_name(name: str) -> bool:
    """Check a display name against the cache-library patterns."""
    config = get_classification_config()
    for pattern in config.get("cache_name_patterns", []):
        try:
            if re.search(pattern, name, re.IGNORECASE):
                return True
        except re.error:
            # Invalid regex pattern - skip it
            continue
    return False


def _has_personal_marker(web_url: str) -> bool:
    url = (web_url or "").lower()
    markers = get_classification_config().get("personal_url_markers", [])
    return any(marker in url for marker in markers)


def classify_container(container: ContainerRef) -> Classification:
    """
    Classify a container.

    Order matters: a cache-like library inside a personal site is still
    cache, so the name check runs first.

    Args:
        container: Container to classify

    Returns:
        Classification.CACHE, PERSONAL, or BUSINESS
    """
    if _is_cache_name(container.name.strip()):
        return Classification.CACHE

    personal_types = get_classification_config().get("personal_container_types", [])
    if container.container_type.lower() in personal_types:
        return Classification.PERSONAL
    if _has_personal_marker(container.web_url):
        return Classification.PERSONAL

    return Classification.BUSINESS


def classify_site(site: Site) -> Classification:
    """Classify a site by display name and URL (same rules as containers)."""
    if _is_cache_name(site.display_name.strip()):
        return Classification.CACHE
    if _has_personal_marker(site.web_url):
        return Classification.PERSONAL
    return Classification.BUSINESS
