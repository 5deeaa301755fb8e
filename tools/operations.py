"""
Entry points shared by server.py and cli.py.

Each do_* opens a Graph backend for the caller's token, runs one service
call, and returns a result or error object. Nothing raises past this layer.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from adapters.graph import GraphBackend
from adapters.services import credential_fingerprint, get_access_token
from cache import get_shared_cache
from logging_config import logger
from models import FerretError, FetchResult, OperationError, OperationResult

from .fetch.pipeline import FetchMode
from .service import LocatorService

# Single source of truth for valid cache() actions.
CACHE_ACTIONS = frozenset({"stats", "invalidate", "clear"})


@asynccontextmanager
async def open_service(access_token: str | None = None) -> AsyncIterator[LocatorService]:
    """
    LocatorService over a Graph backend for one call.

    The client closes when the call ends, or later if a shared search started
    by this call is still running on it. Cache entries are scoped to the token.
    """
    token = access_token or get_access_token()
    async with GraphBackend.from_token(token) as backend:
        yield LocatorService(backend, owner=credential_fingerprint(token))


def _error(e: Exception) -> OperationError:
    if isinstance(e, FerretError):
        return OperationError(kind=e.kind.value, message=e.message, details=e.details)
    if isinstance(e, ValueError):
        return OperationError(kind="invalid_input", message=str(e))
    logger.exception("Unexpected error")
    return OperationError(kind="unknown", message=str(e))


async def do_resolve(
    name: str,
    scope_hint: str | None = None,
    access_token: str | None = None,
) -> OperationResult | OperationError:
    """Resolve a site/container name."""
    try:
        async with open_service(access_token) as service:
            container = await service.resolve_container(name, scope_hint)
        return OperationResult("resolve", {"name": name, "container": container.to_dict()})
    except Exception as e:
        return _error(e)


async def do_locate(
    resource_id: str,
    container_hint: str | None = None,
    access_token: str | None = None,
) -> OperationResult | OperationError:
    """Find which container holds a resource."""
    try:
        async with open_service(access_token) as service:
            location = await service.locate_resource(resource_id, container_hint)
        return OperationResult("locate", {"resource_id": resource_id, **location.to_dict()})
    except Exception as e:
        return _error(e)


async def do_fetch(
    resource_id: str,
    *,
    extract_text: bool = False,
    mode: FetchMode = "binary",
    container_hint: str | None = None,
    access_token: str | None = None,
) -> FetchResult | OperationError:
    """Locate a resource and return its content."""
    try:
        async with open_service(access_token) as service:
            return await service.fetch_content(
                resource_id,
                extract_text=extract_text,
                mode=mode,
                container_hint=container_hint,
            )
    except Exception as e:
        return _error(e)


def do_cache(action: str, pattern: str | None = None) -> OperationResult | OperationError:
    """
    Inspect or reset the shared cache.

    Actions:
        stats: hit/miss counters and entry count
        invalidate: drop entries matching pattern ("site:contoso*", "item:01AB")
        clear: drop everything
    """
    if action not in CACHE_ACTIONS:
        return OperationError(
            kind="invalid_input",
            message=f"Unknown action {action!r}. Valid: {', '.join(sorted(CACHE_ACTIONS))}",
        )

    cache = get_shared_cache()
    if action == "stats":
        return OperationResult("cache", {"action": action, **cache.stats().to_dict()})
    if action == "clear":
        removed = cache.clear()
        return OperationResult("cache", {"action": action, "removed": removed})

    if not pattern or not pattern.strip():
        return OperationError(kind="invalid_input", message="invalidate requires a pattern")
    removed = cache.invalidate(pattern.strip())
    return OperationResult("cache", {"action": action, "pattern": pattern, "removed": removed})
