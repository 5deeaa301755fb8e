"""
CLI interface for ferret.

Usage:
    ferret resolve "Contoso Team"
    ferret locate <resource_id> [--hint "Contoso Team"]
    ferret fetch <resource_id> [--extract-text] [--mode text] [--output FILE]
    ferret cache stats|invalidate PATTERN|clear

This provides the same functionality as the MCP tools but via command line,
making it accessible to agents that don't support MCP.

The cache lives in-process, so across separate CLI invocations every call
starts cold.
"""

import argparse
import asyncio
import base64
import json
import os
from pathlib import Path

from logging_config import configure_logging
from models import FetchResult
from tools import do_resolve, do_locate, do_fetch, do_cache, CACHE_ACTIONS


def _print(payload: dict) -> None:
    print(json.dumps(payload, indent=2))


def cmd_resolve(args: argparse.Namespace) -> None:
    """Resolve a site/container name."""
    result = asyncio.run(do_resolve(args.name, args.scope))
    _print(result.to_dict())


def cmd_locate(args: argparse.Namespace) -> None:
    """Find which container holds a resource."""
    result = asyncio.run(do_locate(args.resource_id, args.hint))
    _print(result.to_dict())


def cmd_fetch(args: argparse.Namespace) -> None:
    """Fetch content. With --output, writes content to a file instead of stdout."""
    result = asyncio.run(do_fetch(
        args.resource_id,
        extract_text=args.extract_text,
        mode=args.mode,
        container_hint=args.hint,
    ))
    payload = result.to_dict()

    if args.output and isinstance(result, FetchResult):
        out = Path(args.output)
        if "text" in payload:
            out.write_text(payload.pop("text"), encoding="utf-8")
        else:
            out.write_bytes(base64.b64decode(payload.pop("data")))
        payload["output"] = str(out)

    _print(payload)


def cmd_cache(args: argparse.Namespace) -> None:
    """Inspect or reset the cache."""
    _print(do_cache(args.action, args.pattern).to_dict())


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Locate and fetch SharePoint/OneDrive items by ID",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    ferret resolve "contoso team"
    ferret locate 01ABCDEF2GHIJKLMNOP
    ferret fetch 01ABCDEF2GHIJKLMNOP --extract-text
    ferret fetch 01ABCDEF2GHIJKLMNOP --output report.pdf
    ferret cache invalidate "site:contoso*"

Set FERRET_ACCESS_TOKEN to a Graph bearer token first.
""",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("FERRET_LOG_LEVEL", "WARNING"),
        help="Log level for stderr (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # resolve
    resolve_p = subparsers.add_parser("resolve", help="Resolve a site/container name")
    resolve_p.add_argument("name", help="Site or library name")
    resolve_p.add_argument("--scope", help="Scope hint (URL fragment or site name)")
    resolve_p.set_defaults(func=cmd_resolve)

    # locate
    locate_p = subparsers.add_parser("locate", help="Find which container holds an item")
    locate_p.add_argument("resource_id", help="Drive item ID")
    locate_p.add_argument("--hint", help="Site/library name to search first")
    locate_p.set_defaults(func=cmd_locate)

    # fetch
    fetch_p = subparsers.add_parser("fetch", help="Fetch item content")
    fetch_p.add_argument("resource_id", help="Drive item ID")
    fetch_p.add_argument(
        "--extract-text",
        action="store_true",
        help="Extract text from Office/PDF files",
    )
    fetch_p.add_argument(
        "--mode",
        choices=["binary", "text"],
        default="binary",
        help="Output mode (default: binary)",
    )
    fetch_p.add_argument("--hint", help="Site/library name to search first")
    fetch_p.add_argument("--output", help="Write content to this file")
    fetch_p.set_defaults(func=cmd_fetch)

    # cache
    cache_p = subparsers.add_parser("cache", help="Inspect or reset the cache")
    cache_p.add_argument("action", choices=sorted(CACHE_ACTIONS))
    cache_p.add_argument("pattern", nargs="?", help="Pattern for invalidate")
    cache_p.set_defaults(func=cmd_cache)

    args = parser.parse_args()
    configure_logging(args.log_level)
    args.func(args)


if __name__ == "__main__":
    main()
