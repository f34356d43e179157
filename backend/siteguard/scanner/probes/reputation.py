"""
Reputation Probe

Looks the target URL up in a threat-match service (Google Safe Browsing
v4 ``threatMatches:find``).  Without a configured key the probe returns a
degraded warning instead of skipping silently.
"""
from __future__ import annotations

from typing import Any, Dict

from siteguard.errors import ProbeError
from siteguard.scanner.probes.base import BaseProbe, ScanContext
from siteguard.scanner.schemas import ProbeName, ProbeResult, ProbeStatus
from siteguard.utils.probe_metrics import ProbeMetrics

THREAT_MATCH_URL = "https://safebrowsing.googleapis.com/v4/threatMatches:find"
CLIENT_ID = "siteguard-scanner"
CLIENT_VERSION = "1.0.0"

THREAT_TYPES = [
    "MALWARE",
    "SOCIAL_ENGINEERING",
    "UNWANTED_SOFTWARE",
    "POTENTIALLY_HARMFUL_APPLICATION",
]

UNCONFIGURED_SCORE = 7


def build_threat_request(url: str) -> Dict[str, Any]:
    return {
        "client": {"clientId": CLIENT_ID, "clientVersion": CLIENT_VERSION},
        "threatInfo": {
            "threatTypes": THREAT_TYPES,
            "platformTypes": ["ANY_PLATFORM"],
            "threatEntryTypes": ["URL"],
            "threatEntries": [{"url": url}],
        },
    }


class ReputationProbe(BaseProbe):
    """Threat-list lookup for the target URL."""

    NAME = ProbeName.REPUTATION
    MAX_SCORE = 15
    ERROR_SCORE = 5

    def __init__(self, api_url: str = THREAT_MATCH_URL) -> None:
        super().__init__()
        self.api_url = api_url

    async def _evaluate(self, context: ScanContext, metrics: ProbeMetrics) -> ProbeResult:
        credentials = context.config.credentials
        if not credentials.reputation_configured:
            self._logger.warning("Threat-match API key not configured")
            return self._result(
                ProbeStatus.WARNING,
                UNCONFIGURED_SCORE,
                "Threat-list check skipped (API key not configured)",
                threatTypes=[],
                apiConfigured=False,
            )

        async with self._client(context, timeout=context.config.settings.request_timeout * 2) as client:
            response = await client.post(
                self.api_url,
                params={"key": credentials.reputation_key},
                json=build_threat_request(context.target.url),
            )
            metrics.increment("requests_sent")

        if response.status_code >= 400:
            raise ProbeError(f"Threat-match API request failed with status {response.status_code}")

        matches = response.json().get("matches") or []
        if matches:
            threat_types = sorted({m.get("threatType", "UNKNOWN") for m in matches})
            return self._result(
                ProbeStatus.FAILED,
                0,
                "Site flagged by threat-list lookup",
                threatTypes=threat_types,
                apiConfigured=True,
            )

        return self._result(
            ProbeStatus.PASSED,
            self.MAX_SCORE,
            "No threats detected by threat-list lookup",
            threatTypes=[],
            apiConfigured=True,
        )
