"""
Email Authentication Probe

Checks that the target's domain publishes an SPF record (apex TXT) and a
DMARC record (``_dmarc.`` TXT).  Only presence is checked, not policy
correctness.  Each lookup degrades to "absent" on failure.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

from siteguard.scanner.dns_resolver import TxtResolver, build_txt_resolver
from siteguard.scanner.probes.base import BaseProbe, ScanContext
from siteguard.scanner.schemas import ProbeName, ProbeResult, ProbeStatus
from siteguard.utils.probe_metrics import ProbeMetrics

logger = logging.getLogger(__name__)

SPF_TAG = "v=spf1"
DMARC_TAG = "v=dmarc1"

ResolverFactory = Callable[[ScanContext], TxtResolver]


class RecordCheck:
    """Outcome of one TXT sub-check."""

    def __init__(self, exists: bool, record: str):
        self.exists = exists
        self.record = record

    @property
    def label(self) -> str:
        return "Found" if self.exists else "Not found"


def find_tagged(records: List[str], tag: str) -> Optional[str]:
    """First record containing *tag* (case-insensitive), if any."""
    for record in records:
        if tag in record.lower():
            return record
    return None


def _default_resolver(context: ScanContext) -> TxtResolver:
    settings = context.config.settings
    return build_txt_resolver(
        settings.dns_backend,
        timeout=settings.request_timeout,
        transport=context.transport,
    )


class EmailAuthProbe(BaseProbe):
    """SPF / DMARC presence check."""

    NAME = ProbeName.EMAIL_AUTH
    MAX_SCORE = 10
    ERROR_SCORE = 3

    def __init__(self, resolver_factory: Optional[ResolverFactory] = None) -> None:
        super().__init__()
        self.resolver_factory = resolver_factory or _default_resolver

    async def _check(self, resolver: TxtResolver, name: str, tag: str, label: str) -> RecordCheck:
        try:
            records = await resolver.resolve_txt(name)
        except Exception as exc:
            self._logger.warning("%s lookup for %s failed: %s", label, name, exc)
            return RecordCheck(False, f"Error: {exc}")

        record = find_tagged(records, tag)
        if record is None:
            return RecordCheck(False, f"No {label} record found")
        return RecordCheck(True, record)

    async def _evaluate(self, context: ScanContext, metrics: ProbeMetrics) -> ProbeResult:
        domain = context.target.hostname
        resolver = self.resolver_factory(context)

        spf, dmarc = await asyncio.gather(
            self._check(resolver, domain, SPF_TAG, "SPF"),
            self._check(resolver, f"_dmarc.{domain}", DMARC_TAG, "DMARC"),
        )
        metrics.increment("dns_lookups", 2)

        if spf.exists and dmarc.exists:
            status, score, message = ProbeStatus.PASSED, 10, "Domain has both SPF and DMARC records"
        elif spf.exists:
            status, score, message = ProbeStatus.WARNING, 5, "Domain has SPF but no DMARC record"
        elif dmarc.exists:
            status, score, message = ProbeStatus.WARNING, 3, "Domain has DMARC but no SPF record"
        else:
            status, score, message = ProbeStatus.FAILED, 0, "Domain has neither SPF nor DMARC records"

        return self._result(
            status,
            score,
            message,
            spf=spf.label,
            spfRecord=spf.record,
            dmarc=dmarc.label,
            dmarcRecord=dmarc.record,
        )
