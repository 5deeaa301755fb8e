"""
Graph HTTP client initialization.

Shared by all adapters. Reads the caller token, builds the httpx client.

All clients use a fixed timeout to prevent indefinite hangs when the
backend is slow or connections stall.
"""

import hashlib
import os

import httpx

from graph_config import ACCESS_TOKEN_ENV, GRAPH_API_BASE, HTTP_TIMEOUT_SECONDS
from models import ErrorKind, FerretError

__all__ = [
    "get_access_token",
    "build_graph_client",
    "credential_fingerprint",
]


def get_access_token() -> str:
    """
    Read the caller-scoped bearer token from the environment.

    Raises:
        FerretError(AUTH_EXPIRED): If no token is configured
    """
    token = os.environ.get(ACCESS_TOKEN_ENV, "").strip()
    if not token:
        raise FerretError(
            ErrorKind.AUTH_EXPIRED,
            f"No access token. Set {ACCESS_TOKEN_ENV} or pass access_token.",
        )
    return token


def build_graph_client(
    access_token: str,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """
    Build an authenticated async Graph client.

    Args:
        access_token: Bearer token for the caller
        transport: Optional transport override (httpx.MockTransport in tests)
    """
    return httpx.AsyncClient(
        base_url=GRAPH_API_BASE,
        headers={
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        },
        timeout=HTTP_TIMEOUT_SECONDS,
        transport=transport,
    )


def credential_fingerprint(access_token: str) -> str:
    """
    Short stable identity for a token, safe to log and to key caches by.

    Results found with one token are never served to another: what a
    caller may see depends on its credential.
    """
    return hashlib.sha256(access_token.encode("utf-8")).hexdigest()[:16]
