"""
Directory Exposure Probe

Requests a fixed catalog of well-known sensitive paths on the target
origin through the rate-limited fetcher and counts the ones that answer
with a successful status.
"""
from __future__ import annotations

from typing import Optional, Sequence

from siteguard.scanner.fetcher import build_fetcher
from siteguard.scanner.probes.base import BaseProbe, ScanContext
from siteguard.scanner.schemas import DirectoryFinding, ProbeName, ProbeResult, ProbeStatus
from siteguard.utils.probe_metrics import ProbeMetrics

DEFAULT_DIRECTORY_CATALOG = (
    "/admin/",
    "/backup/",
    "/wp-admin/",
    "/config/",
    "/database/",
    "/db/",
    "/logs/",
    "/old/",
    "/temp/",
    "/test/",
    "/upload/",
    "/uploads/",
    "/files/",
    "/private/",
    "/dev/",
    "/.git/",
    "/.svn/",
    "/phpmyadmin/",
    "/server-status/",
    "/wp-content/",
)


def score_exposure(exposed_count: int):
    """Map the number of exposed paths to ``(status, score, message)``."""
    if exposed_count == 0:
        return ProbeStatus.PASSED, 10, "No exposed directories detected"
    if exposed_count <= 2:
        noun = "directory" if exposed_count == 1 else "directories"
        return ProbeStatus.WARNING, 5, f"{exposed_count} exposed {noun} detected"
    return ProbeStatus.FAILED, 0, f"{exposed_count} exposed directories detected"


class DirectoryExposureProbe(BaseProbe):
    """Paced enumeration of commonly exposed directories."""

    NAME = ProbeName.DIRECTORY_EXPOSURE
    MAX_SCORE = 10
    ERROR_SCORE = 5

    def __init__(self, catalog: Optional[Sequence[str]] = None, clock=None) -> None:
        super().__init__()
        self.catalog = tuple(catalog) if catalog is not None else DEFAULT_DIRECTORY_CATALOG
        self.clock = clock

    async def _evaluate(self, context: ScanContext, metrics: ProbeMetrics) -> ProbeResult:
        settings = context.config.settings
        paths = self.catalog[:settings.max_directories_to_check]
        origin = context.target.origin

        fetcher = build_fetcher(
            timeout=settings.request_timeout,
            max_requests_per_minute=settings.max_requests_per_minute,
            transport=context.transport,
            sleep=context.sleep,
            clock=self.clock,
        )
        try:
            outcomes = await fetcher.probe_all([origin + path for path in paths])
        finally:
            await fetcher.client.aclose()
        metrics.increment("requests_sent", fetcher.requests_sent)

        exposed = [
            DirectoryFinding(
                path=path,
                http_status=outcome.http_status,
                indexing_enabled=bool(outcome.indexing_enabled),
            )
            for path, outcome in zip(paths, outcomes)
            if outcome.exposed
        ]
        status, score, message = score_exposure(len(exposed))

        return self._result(
            status,
            score,
            message,
            exposedDirectories=[f.model_dump(by_alias=True) for f in exposed],
            checkedDirectories=list(paths),
            totalChecked=len(paths),
        )
