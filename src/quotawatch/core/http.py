"""Shared pooled HTTP client used by provider fetchers."""

from __future__ import annotations

from contextlib import asynccontextmanager

import httpx

from quotawatch import __version__
from quotawatch.config.settings import get_config

USER_AGENT = f"quotawatch/{__version__}"

_client: httpx.AsyncClient | None = None


def get_timeout_config() -> httpx.Timeout:
    """Build request timeouts from the fetch config."""
    timeout = get_config().fetch.timeout
    return httpx.Timeout(timeout, connect=min(10.0, timeout))


def build_client(transport: httpx.AsyncBaseTransport | None = None) -> httpx.AsyncClient:
    limits = httpx.Limits(
        max_connections=get_config().fetch.max_concurrent * 4,
        max_keepalive_connections=5,
    )
    return httpx.AsyncClient(
        timeout=get_timeout_config(),
        limits=limits,
        follow_redirects=True,
        headers={"User-Agent": USER_AGENT},
        transport=transport,
    )


@asynccontextmanager
async def get_http_client():
    """Get or create the shared HTTP client.

    Usage:
        async with get_http_client() as client:
            response = await client.get(...)
    """
    global _client

    if _client is None or _client.is_closed:
        _client = build_client()

    # Kept open for reuse; closed by cleanup()
    yield _client


def set_http_client(client: httpx.AsyncClient | None) -> None:
    """Replace the shared client (tests inject a MockTransport-backed one)."""
    global _client
    _client = client


async def cleanup() -> None:
    """Close the HTTP client.

    Called from engine shutdown.
    """
    global _client
    if _client is not None:
        await _client.aclose()
        _client = None
