"""Transport security: is the target served over HTTPS?"""
from __future__ import annotations

from siteguard.scanner.probes.base import BaseProbe, ScanContext
from siteguard.scanner.schemas import ProbeName, ProbeResult, ProbeStatus
from siteguard.utils.probe_metrics import ProbeMetrics


class TransportProbe(BaseProbe):
    """Scheme-only check; makes no network call."""

    NAME = ProbeName.TRANSPORT
    MAX_SCORE = 20
    ERROR_SCORE = 0

    async def _evaluate(self, context: ScanContext, metrics: ProbeMetrics) -> ProbeResult:
        if context.target.is_https:
            return self._result(ProbeStatus.PASSED, self.MAX_SCORE, "Site is using HTTPS")
        return self._result(ProbeStatus.FAILED, 0, "Site is not using HTTPS")
