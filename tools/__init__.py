"""
Tools: resolve, locate, fetch, and the entry points behind the MCP tools.

Each stage has its own module with the implementation logic.
server.py and cli.py are thin wrappers that call the do_* functions.

Verb model (4 tools):
- resolve: Site/container name to one container
- locate: Opaque resource ID to the container that holds it
- fetch: Locate, then return content (binary or extracted text)
- cache: Inspect, invalidate, or clear the shared cache
"""

from .operations import do_resolve, do_locate, do_fetch, do_cache, CACHE_ACTIONS
from .service import LocatorService

__all__ = [
    "do_resolve", "do_locate", "do_fetch", "do_cache", "CACHE_ACTIONS",
    "LocatorService",
]
