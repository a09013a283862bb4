"""HTTP client helpers shared by every PrintPal call."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional

import httpx

from . import __version__

USER_AGENT = f"printpal-python/{__version__}"


def build_headers(api_key: Optional[str], extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    headers: Dict[str, str] = {"User-Agent": USER_AGENT}
    if api_key:
        headers["X-API-Key"] = api_key
    if extra:
        headers.update(extra)
    return headers


@asynccontextmanager
async def http_client(
    base_url: str = "",
    api_key: Optional[str] = None,
    timeout: float = 60.0,
    headers: Optional[Dict[str, str]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """Provide a configured async HTTP client scoped to a single call."""

    async with httpx.AsyncClient(
        base_url=base_url,
        timeout=timeout,
        headers=build_headers(api_key, headers),
        transport=transport,
        follow_redirects=True,
    ) as client:
        yield client


__all__ = ["USER_AGENT", "build_headers", "http_client"]
