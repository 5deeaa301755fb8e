#!/usr/bin/env python3
"""
ferret MCP Server

Finds documents by opaque ID across a federated SharePoint/OneDrive tenant
and returns their content.

Verb model (4 tools):
- resolve: Site/container name to one container
- locate: Opaque resource ID to the container that holds it
- fetch: Locate, then return content (base64 bytes or extracted text)
- cache: Inspect, invalidate, or clear the shared resolution cache

Documentation is provided via an MCP Resource, not a tool.

Architecture:
- extractors/: Pure functions (no MCP, no backend calls)
- adapters/: Thin Graph API wrappers and text extractors
- cache/: Shared cache and single-flight group
- tools/: Search and fetch logic (business logic)
- server.py: Thin MCP wrappers (this file)
"""

import os
import signal
from typing import Any

from mcp.server.fastmcp import FastMCP

from logging_config import configure_logging
from tools import do_resolve, do_locate, do_fetch, do_cache

# Initialize MCP server
mcp = FastMCP("ferret")


# ============================================================================
# TOOLS: Verb Model (thin wrappers)
# ============================================================================

@mcp.tool()
async def resolve(name: str, scope_hint: str | None = None, access_token: str | None = None) -> dict[str, Any]:
    """
    Resolve a human-readable site or library name to one container.

    Matching: exact name, then case-insensitive (equal, then contains),
    then the first search result. "contoso team" finds "Contoso Team Site".

    Args:
        name: Site or library name
        scope_hint: Optional narrowing (URL fragment or site name)
        access_token: Caller's Graph token (default: FERRET_ACCESS_TOKEN)

    Returns:
        container: id, name, container_type, web_url, site_id, site_name
    """
    return (await do_resolve(name, scope_hint, access_token)).to_dict()


@mcp.tool()
async def locate(resource_id: str, container_hint: str | None = None, access_token: str | None = None) -> dict[str, Any]:
    """
    Find which container holds an opaque resource ID.

    Searches known containers first, then business sites, then your own
    drives, then personal drives. Stops at the first hit.

    Args:
        resource_id: Drive item ID
        container_hint: Optional site/library name to search first
        access_token: Caller's Graph token (default: FERRET_ACCESS_TOKEN)

    Returns:
        container: Where the item lives
        item: Name, size, MIME type, web URL
        probes: Containers tried
        cache_hit: Whether the location came from cache
    """
    return (await do_locate(resource_id, container_hint, access_token)).to_dict()


@mcp.tool()
async def fetch(
    resource_id: str,
    extract_text: bool = False,
    mode: str = "binary",
    container_hint: str | None = None,
    access_token: str | None = None,
) -> dict[str, Any]:
    """
    Locate a resource and return its content.

    Binary by default (base64). Office files become text when extract_text
    is set or mode is "text"; PDFs only when extract_text is set. If text
    extraction fails you still get the original bytes (or, for spreadsheets
    in text mode, a placeholder describing the file).

    Args:
        resource_id: Drive item ID
        extract_text: Try to extract text from Office/PDF files
        mode: "binary" or "text"
        container_hint: Optional site/library name to search first
        access_token: Caller's Graph token (default: FERRET_ACCESS_TOKEN)

    Returns:
        format: "text" or "base64"
        text / data: The content
        content_type: MIME type
        stage: structured, decoded, raw_passthrough, placeholder, or binary
        container: Where the item was found
    """
    return (await do_fetch(
        resource_id,
        extract_text=extract_text,
        mode=mode,  # type: ignore[arg-type]
        container_hint=container_hint,
        access_token=access_token,
    )).to_dict()


@mcp.tool()
def cache(action: str = "stats", pattern: str | None = None) -> dict[str, Any]:
    """
    Inspect or reset the shared resolution cache.

    Args:
        action: "stats", "invalidate", or "clear"
        pattern: For invalidate. Glob ("site:contoso*") or substring ("01ABC")

    Keys look like:
        site:{name}[@scope]      resolved names
        item:{id}[@hint]         located resources
        content:{id}:{mode}:...  fetched content
    """
    return do_cache(action, pattern).to_dict()


# ============================================================================
# DOCUMENTATION RESOURCES
# ============================================================================

@mcp.resource("ferret://docs/overview")
def docs_overview() -> str:
    """How ferret searches, and what the errors mean."""
    return """# ferret

Item IDs only resolve inside the drive that holds them, and nothing tells
you which drive that is. ferret searches for you.

## Search order
1. Drives already known from earlier lookups (and your container_hint)
2. Business site document libraries
3. Your own drives
4. Personal (OneDrive) drives, last

Cache-like libraries (Preservation Hold Library, Style Library, ...) are skipped.

## Errors
- resolution_not_found: no site or library matched the name
- resource_not_accessible: every drive was checked; `attempts` says why each missed
- content_retrieval_failed: found, but empty, a folder, or the download failed
- auth_expired: no token, or the token was rejected

## Cache
Results are cached until invalidated. If a file moved or changed, call
cache(action="invalidate", pattern="{id}"). A pattern without wildcards
matches any key containing it, so this drops both location and content.
"""


# ============================================================================
# SERVER ENTRY POINT
# ============================================================================

def _shutdown_handler(signum: int, frame: object) -> None:
    """Handle termination signals by exiting immediately.

    os._exit() is required because sys.exit() raises SystemExit,
    which asyncio's event loop catches and ignores.
    """
    os._exit(0)


def main() -> None:
    configure_logging(os.environ.get("FERRET_LOG_LEVEL", "INFO"))
    signal.signal(signal.SIGTERM, _shutdown_handler)
    signal.signal(signal.SIGINT, _shutdown_handler)
    mcp.run()


if __name__ == "__main__":
    main()
