"""
Header sources for the response-headers probe.

A header source is ``async (target) -> Mapping[str, str]``.  Embedding
callers that already hold the root document's headers use
:func:`static_header_source`; standalone callers (CLI, API without
headers) use :class:`HttpHeaderSource`, which issues its own HEAD request.
"""
from __future__ import annotations

import logging
from typing import Mapping, Optional

import httpx

from siteguard.scanner.probes.base import USER_AGENT, HeaderSource
from siteguard.scanner.schemas import Target

logger = logging.getLogger(__name__)


def static_header_source(headers: Mapping[str, str]) -> HeaderSource:
    """Wrap an already-fetched header mapping."""
    frozen = httpx.Headers(dict(headers))

    async def _source(target: Target) -> Mapping[str, str]:
        return frozen

    return _source


class HttpHeaderSource:
    """Fetches the root document's headers with a HEAD request."""

    def __init__(
        self,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.timeout = timeout
        self.transport = transport

    async def __call__(self, target: Target) -> Mapping[str, str]:
        async with httpx.AsyncClient(
            timeout=self.timeout,
            transport=self.transport,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT, "Cache-Control": "no-store"},
        ) as client:
            response = await client.head(target.url)
        logger.debug("HEAD %s -> %d (%d headers)", target.url, response.status_code, len(response.headers))
        return response.headers
