"""
Site/container resolution: human-readable name to one container.

Tie-break when several results come back:
(a) exact display-name match
(b) case-insensitive match: equal first, then contains
(c) first result

Site matches resolve to the site's default document library. When no site
matches, the caller's own containers are tried by name (stages a-b only:
"first own container" would match any name at all).
"""

from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import Literal, TypeVar

import httpx

from adapters.interfaces import DirectoryBackend
from filters import classify_container
from logging_config import logger
from models import Classification, ContainerRef, FerretError, ResolutionNotFound
from validation import normalize_name

T = TypeVar("T")

TieBreakStage = Literal["exact", "case_insensitive", "first_result"]

# Display names of a site's default library
DEFAULT_LIBRARY_NAMES = ("documents", "shared documents")


def choose_by_name(
    query: str,
    results: Sequence[T],
    key: Callable[[T], str],
    *,
    allow_first: bool = True,
) -> tuple[T, TieBreakStage] | None:
    """
    Pick one result for a name query.

    Args:
        query: The requested name
        results: Candidates in backend order
        key: Display name of a candidate
        allow_first: Fall back to the first result when nothing matches by name

    Returns:
        (chosen result, stage that chose it), or None
    """
    if not results:
        return None

    for result in results:
        if key(result) == query:
            return result, "exact"

    lowered = query.lower()
    for result in results:
        if key(result).lower() == lowered:
            return result, "case_insensitive"
    for result in results:
        if lowered in key(result).lower():
            return result, "case_insensitive"

    if allow_first:
        return results[0], "first_result"
    return None


def pick_default_container(containers: Sequence[ContainerRef]) -> ContainerRef | None:
    """The library a site name stands for: Documents, else the first business library."""
    for container in containers:
        if container.name.strip().lower() in DEFAULT_LIBRARY_NAMES:
            return container
    for container in containers:
        if (
            container.container_type == "documentLibrary"
            and classify_container(container) is Classification.BUSINESS
        ):
            return container
    for container in containers:
        if classify_container(container) is not Classification.CACHE:
            return container
    return None


def _in_scope(container_or_url: str, scope_hint: str) -> bool:
    return scope_hint.lower() in container_or_url.lower()


async def _resolve_via_sites(
    backend: DirectoryBackend, name: str, scope_hint: str | None
) -> ContainerRef | None:
    try:
        sites = await backend.list_sites(name)
    except (FerretError, httpx.HTTPError) as e:
        logger.warning(f"Site search for '{name}' failed, trying own containers: {e}")
        return None

    if scope_hint:
        scoped = [s for s in sites if _in_scope(s.web_url, scope_hint) or _in_scope(s.display_name, scope_hint)]
        if scoped:
            sites = scoped
        else:
            logger.debug(f"No site matches scope '{scope_hint}', ignoring scope")

    chosen = choose_by_name(name, sites, key=lambda s: s.display_name)
    if chosen is None:
        return None
    site, stage = chosen

    try:
        containers = await backend.list_containers(site.id)
    except (FerretError, httpx.HTTPError) as e:
        logger.warning(f"Could not list containers of site {site.display_name} ({site.id}): {e}")
        return None

    container = pick_default_container(containers)
    if container is None:
        logger.info(f"Site {site.display_name} ({site.id}) has no usable container")
        return None

    logger.info(
        f"Resolved '{name}' to site {site.display_name} ({site.id}) "
        f"via {stage} match, container {container.name} ({container.id})"
    )
    return replace(container, site_id=site.id, site_name=site.display_name)


async def _resolve_via_own_containers(backend: DirectoryBackend, name: str) -> ContainerRef | None:
    try:
        own = await backend.list_own_containers()
    except (FerretError, httpx.HTTPError) as e:
        logger.warning(f"Listing own containers failed: {e}")
        return None

    chosen = choose_by_name(name, own, key=lambda c: c.name, allow_first=False)
    if chosen is None:
        return None
    container, stage = chosen
    logger.info(f"Resolved '{name}' to own container {container.name} ({container.id}) via {stage} match")
    return container


async def resolve_container(
    backend: DirectoryBackend,
    name: str,
    scope_hint: str | None = None,
) -> ContainerRef:
    """
    Resolve a human-readable site or container name to one container.

    Args:
        backend: Directory backend
        name: Site or library name ("contoso team", "Finance")
        scope_hint: Optional narrowing (URL fragment or site name)

    Returns:
        The chosen container, with site provenance when it came from a site

    Raises:
        ResolutionNotFound: Nothing matched at all
        ValueError: Empty name
    """
    name = normalize_name(name)

    container = await _resolve_via_sites(backend, name, scope_hint)
    if container is None:
        container = await _resolve_via_own_containers(backend, name)
    if container is None:
        raise ResolutionNotFound(name, scope_hint)
    return container
