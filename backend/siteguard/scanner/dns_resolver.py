"""
TXT Record Resolution

Two interchangeable backends for the email-authentication probe:

  - ``DohTxtResolver``    – DNS-over-HTTPS JSON API (``dns.google/resolve``)
  - ``SystemTxtResolver`` – dnspython against the system nameservers

Both return TXT strings with surrounding quote characters removed and
raise on lookup failure; callers decide how a failure degrades.
"""

import abc
import asyncio
import logging
import re
from typing import List, Optional

import dns.exception
import dns.resolver
import httpx

from siteguard.errors import ProbeError, with_timeout

logger = logging.getLogger(__name__)

DOH_RESOLVE_URL = "https://dns.google/resolve"

_SURROUNDING_QUOTES = re.compile(r'^"|"$')


def strip_quotes(value: str) -> str:
    """Remove one leading and one trailing double quote."""
    return _SURROUNDING_QUOTES.sub("", value)


class TxtResolver(abc.ABC):
    """Interface for TXT lookups."""

    def __init__(self, timeout: float = 5.0):
        """
        Args:
            timeout: Per-lookup timeout in seconds
        """
        self.timeout = timeout

    async def resolve_txt(self, name: str) -> List[str]:
        """Return the TXT strings published at *name* (bounded by ``timeout``)."""
        return await with_timeout(self.timeout)(self._resolve_txt)(name)

    @abc.abstractmethod
    async def _resolve_txt(self, name: str) -> List[str]:
        """Backend-specific lookup, without the timeout bound."""


class DohTxtResolver(TxtResolver):
    """TXT lookups over the public DNS-over-HTTPS JSON API."""

    def __init__(
        self,
        timeout: float = 5.0,
        base_url: str = DOH_RESOLVE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(timeout)
        self.base_url = base_url
        self.transport = transport

    async def _resolve_txt(self, name: str) -> List[str]:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            response = await client.get(self.base_url, params={"name": name, "type": "TXT"})

        if response.status_code >= 400:
            raise ProbeError(f"DNS query failed with status {response.status_code}")

        data = response.json()
        records = []
        for answer in data.get("Answer") or []:
            if answer.get("data"):
                records.append(strip_quotes(answer["data"]))

        logger.debug("TXT records for %s: %d found", name, len(records))
        return records


class SystemTxtResolver(TxtResolver):
    """TXT lookups through dnspython and the system nameservers."""

    def __init__(self, timeout: float = 5.0, nameservers: Optional[List[str]] = None):
        super().__init__(timeout)
        self.resolver = dns.resolver.Resolver(configure=not nameservers)
        self.resolver.timeout = timeout
        self.resolver.lifetime = timeout

        if nameservers:
            self.resolver.nameservers = nameservers

    async def _resolve_txt(self, name: str) -> List[str]:
        loop = asyncio.get_running_loop()
        try:
            answers = await loop.run_in_executor(None, self._query_dns, name)
        except (dns.resolver.NXDOMAIN, dns.resolver.NoAnswer):
            logger.debug("No TXT records for %s", name)
            return []
        except dns.exception.Timeout as exc:
            raise ProbeError(f"DNS query timed out for {name}") from exc

        return self._parse_records(answers)

    def _query_dns(self, name: str):
        """Perform DNS query (blocking operation)."""
        return self.resolver.resolve(name, "TXT")

    def _parse_records(self, answers) -> List[str]:
        records = []
        for rdata in answers:
            chunks = getattr(rdata, "strings", None)
            if chunks:
                records.append(b"".join(chunks).decode("utf-8", errors="replace"))
            else:
                records.append(strip_quotes(str(rdata)))
        return records


def build_txt_resolver(
    backend: str,
    timeout: float = 5.0,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> TxtResolver:
    """Return the resolver for a configured ``dns_backend`` name."""
    if backend == "system":
        return SystemTxtResolver(timeout=timeout)
    return DohTxtResolver(timeout=timeout, transport=transport)
