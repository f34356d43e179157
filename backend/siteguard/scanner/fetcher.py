"""
Rate-Limited Fetcher

Issues a strictly sequential, paced series of GET requests against one
origin.  Each request is bounded by a per-request timeout; a timeout or
network error counts as "not exposed" for that URL and never stops the
remaining requests.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence

import httpx

from siteguard.scanner.schemas import FetchOutcome
from siteguard.utils.rate_limiter import FixedIntervalPacer

logger = logging.getLogger(__name__)

#: Substrings that mark a response body as an auto-generated directory index
DIRECTORY_LISTING_SIGNATURES = (
    "Index of /",
    "Directory Listing For",
    "<title>Index of",
    "<h1>Index of",
    "Parent Directory</a>",
    "Directory listing for",
    "Last modified</a>",
    "Name</a></th><th>Size</a>",
    "[To Parent Directory]",
)

FETCHER_USER_AGENT = "Mozilla/5.0 Website Security Scanner"


def is_directory_listing(body: str) -> bool:
    """True when *body* contains any directory-listing signature."""
    return any(signature in body for signature in DIRECTORY_LISTING_SIGNATURES)


class RateLimitedFetcher:
    """
    Paced HTTP GET executor.

    Args:
        client: HTTP client used for every request; its timeout is the
            per-request bound
        pacer: Enforces the minimum interval between two requests
    """

    def __init__(self, client: httpx.AsyncClient, pacer: FixedIntervalPacer) -> None:
        self.client = client
        self.pacer = pacer
        self.requests_sent = 0

    async def probe(self, url: str) -> FetchOutcome:
        """
        Fetch *url* once (after pacing) and classify the response.

        Never raises for network-level problems; they are recorded in
        ``FetchOutcome.error``.
        """
        await self.pacer.acquire()
        self.requests_sent += 1

        try:
            response = await self.client.get(url)
        except httpx.TimeoutException:
            logger.debug("Request to %s timed out", url)
            return FetchOutcome(url=url, error="Request timed out")
        except httpx.HTTPError as exc:
            logger.debug("Request to %s failed: %s", url, exc)
            return FetchOutcome(url=url, error=str(exc) or type(exc).__name__)

        if not response.is_success:
            return FetchOutcome(url=url, http_status=response.status_code)

        return FetchOutcome(
            url=url,
            exposed=True,
            http_status=response.status_code,
            indexing_enabled=is_directory_listing(response.text),
        )

    async def probe_all(self, urls: Sequence[str]) -> List[FetchOutcome]:
        """
        Probe *urls* one after another in order.

        Any exception escaping a single probe is recorded as a
        non-exposed outcome for that URL.
        """
        outcomes: List[FetchOutcome] = []
        for url in urls:
            try:
                outcomes.append(await self.probe(url))
            except Exception as exc:
                logger.warning("Unexpected error probing %s: %s", url, exc)
                outcomes.append(FetchOutcome(url=url, error=str(exc) or type(exc).__name__))
        return outcomes


def build_fetcher(
    timeout: float,
    max_requests_per_minute: int,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    sleep=None,
    clock=None,
) -> RateLimitedFetcher:
    """Create a fetcher with its own client; close it with ``fetcher.client.aclose()``."""
    client = httpx.AsyncClient(
        timeout=timeout,
        transport=transport,
        follow_redirects=True,
        headers={"User-Agent": FETCHER_USER_AGENT},
    )
    pacer = FixedIntervalPacer.per_minute(max_requests_per_minute, sleep=sleep, clock=clock)
    return RateLimitedFetcher(client, pacer)
