"""
Vulnerability Probe

Queries a malware-scan service (VirusTotal v3 domain report) for the
target hostname and scores its last analysis statistics.
"""
from __future__ import annotations

from siteguard.errors import ProbeError
from siteguard.scanner.probes.base import BaseProbe, ScanContext
from siteguard.scanner.schemas import ProbeName, ProbeResult, ProbeStatus
from siteguard.utils.probe_metrics import ProbeMetrics

DOMAIN_REPORT_URL = "https://www.virustotal.com/api/v3/domains/{domain}"

UNCONFIGURED_SCORE = 7
SUSPICIOUS_SCORE = 8


class VulnerabilityProbe(BaseProbe):
    """Malware-scan lookup for the target hostname."""

    NAME = ProbeName.VULNERABILITY
    MAX_SCORE = 15
    ERROR_SCORE = 5

    def __init__(self, api_url: str = DOMAIN_REPORT_URL) -> None:
        super().__init__()
        self.api_url = api_url

    async def _evaluate(self, context: ScanContext, metrics: ProbeMetrics) -> ProbeResult:
        credentials = context.config.credentials
        if not credentials.vulnerability_configured:
            self._logger.warning("Malware-scan API key not configured")
            return self._result(
                ProbeStatus.WARNING,
                UNCONFIGURED_SCORE,
                "Malware-scan check skipped (API key not configured)",
                apiConfigured=False,
            )

        url = self.api_url.format(domain=context.target.hostname)
        async with self._client(
            context,
            timeout=context.config.settings.request_timeout * 2,
            headers={"x-apikey": credentials.vulnerability_key},
        ) as client:
            response = await client.get(url)
            metrics.increment("requests_sent")

        if response.status_code == 404:
            return self._result(
                ProbeStatus.PASSED,
                self.MAX_SCORE,
                "Domain unknown to the malware-scan service",
                known=False,
                apiConfigured=True,
            )
        if response.status_code >= 400:
            raise ProbeError(f"Malware-scan API request failed with status {response.status_code}")

        attributes = (response.json().get("data") or {}).get("attributes") or {}
        stats = attributes.get("last_analysis_stats") or {}
        malicious = int(stats.get("malicious", 0))
        suspicious = int(stats.get("suspicious", 0))
        evidence = {
            "stats": stats,
            "reputation": attributes.get("reputation"),
            "known": True,
            "apiConfigured": True,
        }

        if malicious > 0:
            return self._result(
                ProbeStatus.FAILED,
                0,
                f"{malicious} engine(s) flagged the domain as malicious",
                **evidence,
            )
        if suspicious > 0:
            return self._result(
                ProbeStatus.WARNING,
                SUSPICIOUS_SCORE,
                f"{suspicious} engine(s) flagged the domain as suspicious",
                **evidence,
            )
        return self._result(
            ProbeStatus.PASSED,
            self.MAX_SCORE,
            "No known vulnerabilities or malware detected",
            **evidence,
        )
