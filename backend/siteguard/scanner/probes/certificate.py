"""
Certificate Health Probe

Asks an external certificate-analysis service (SSL Labs API v3) to grade
the target host, polling until the assessment reaches a terminal state.

The poll loop is an explicit bounded state machine::

    PENDING ──poll──▶ PENDING ... ──▶ READY | ERROR
        └─────────── attempts exhausted ──────────▶ EXHAUSTED
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx

from siteguard.errors import ProbeError, ProbeTimeoutError
from siteguard.scanner.probes.base import BaseProbe, ScanContext, Sleeper
from siteguard.scanner.schemas import ProbeName, ProbeResult, ProbeStatus
from siteguard.utils.probe_metrics import ProbeMetrics

logger = logging.getLogger(__name__)

SSL_LABS_ANALYZE_URL = "https://api.ssllabs.com/api/v3/analyze"

#: grade → (status, score); anything not listed scores as passed/15
GRADE_SCORES = {
    "F": (ProbeStatus.FAILED, 0),
    "C": (ProbeStatus.WARNING, 5),
}


class PollState(str, Enum):
    """States of the certificate-analysis poll loop."""
    PENDING = "pending"
    READY = "ready"
    ERROR = "error"
    EXHAUSTED = "exhausted"


def classify_status(service_status: Optional[str]) -> PollState:
    """Map the service's ``status`` field onto a poll state."""
    if service_status == "READY":
        return PollState.READY
    if service_status == "ERROR":
        return PollState.ERROR
    return PollState.PENDING


class CertificateAnalysisPoller:
    """
    Drives one assessment on the certificate-analysis service.

    Args:
        client: HTTP client used for every call
        interval: Seconds to suspend before each poll
        max_attempts: Poll ceiling; reaching it yields ``EXHAUSTED``
        sleep: Coroutine used to suspend between polls
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        interval: float,
        max_attempts: int,
        sleep: Sleeper,
        base_url: str = SSL_LABS_ANALYZE_URL,
    ) -> None:
        self.client = client
        self.interval = interval
        self.max_attempts = max_attempts
        self.sleep = sleep
        self.base_url = base_url
        self.state = PollState.PENDING
        self.attempts = 0
        self.payload: Dict[str, Any] = {}

    async def _fetch(self, hostname: str, poll: bool) -> Dict[str, Any]:
        params = {"host": hostname}
        if poll:
            params.update({"fromCache": "on", "all": "on"})
        response = await self.client.get(self.base_url, params=params)
        if response.status_code >= 400:
            raise ProbeError(
                f"Certificate analysis API error: HTTP {response.status_code}"
            )
        return response.json()

    async def step(self, hostname: str) -> PollState:
        """Suspend once, poll once, and advance the state machine."""
        if self.state is not PollState.PENDING:
            return self.state
        if self.attempts >= self.max_attempts:
            self.state = PollState.EXHAUSTED
            return self.state

        await self.sleep(self.interval)
        self.payload = await self._fetch(hostname, poll=True)
        self.attempts += 1
        self.state = classify_status(self.payload.get("status"))
        logger.debug(
            "Certificate analysis poll %d/%d for %s: %s",
            self.attempts, self.max_attempts, hostname, self.payload.get("status"),
        )
        return self.state

    async def run(self, hostname: str) -> PollState:
        """Start the assessment and poll until a terminal state."""
        self.payload = await self._fetch(hostname, poll=False)
        self.state = classify_status(self.payload.get("status"))
        while self.state is PollState.PENDING:
            await self.step(hostname)
        return self.state


def _iso_from_millis(value: Any) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromtimestamp(int(value) / 1000, tz=timezone.utc)


def extract_certificate_details(payload: Dict[str, Any], now: Optional[datetime] = None) -> Dict[str, Any]:
    """Summarise the leaf certificate (first entry in ``certs``)."""
    certs = payload.get("certs") or []
    if not certs:
        return {}

    cert = certs[0]
    now = now or datetime.now(timezone.utc)
    valid_from = _iso_from_millis(cert.get("notBefore"))
    valid_to = _iso_from_millis(cert.get("notAfter"))

    details: Dict[str, Any] = {
        "subject": cert.get("subject"),
        "issuer": cert.get("issuerSubject"),
        "validFrom": valid_from.isoformat() if valid_from else None,
        "validTo": valid_to.isoformat() if valid_to else None,
        "signatureAlgorithm": cert.get("sigAlg"),
    }
    if valid_to is not None:
        details["daysToExpiry"] = round((valid_to - now).total_seconds() / 86400)
    return details


def extract_endpoints(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    return [
        {
            "ipAddress": endpoint.get("ipAddress"),
            "serverName": endpoint.get("serverName"),
            "grade": endpoint.get("grade"),
            "statusMessage": endpoint.get("statusMessage"),
        }
        for endpoint in payload.get("endpoints") or []
    ]


def overall_grade(payload: Dict[str, Any]) -> Optional[str]:
    """``overallRating`` if present, else the first graded endpoint's grade."""
    if payload.get("overallRating"):
        return payload["overallRating"]
    for endpoint in payload.get("endpoints") or []:
        if endpoint.get("grade"):
            return endpoint["grade"]
    return None


class CertificateProbe(BaseProbe):
    """Grades the target's TLS certificate and configuration."""

    NAME = ProbeName.CERTIFICATE
    MAX_SCORE = 15
    ERROR_SCORE = 0

    def __init__(self, base_url: str = SSL_LABS_ANALYZE_URL) -> None:
        super().__init__()
        self.base_url = base_url

    def skipped_result(self) -> ProbeResult:
        """Deterministic result for targets not served over HTTPS."""
        return self._result(ProbeStatus.FAILED, 0, "Site is not using HTTPS", skipped=True)

    async def _evaluate(self, context: ScanContext, metrics: ProbeMetrics) -> ProbeResult:
        if not context.target.is_https:
            return self.skipped_result()

        settings = context.config.settings
        async with self._client(context, timeout=settings.request_timeout * 6) as client:
            poller = CertificateAnalysisPoller(
                client,
                interval=settings.certificate_poll_interval,
                max_attempts=settings.certificate_max_attempts,
                sleep=context.sleep,
                base_url=self.base_url,
            )
            state = await poller.run(context.target.hostname)
        metrics.increment("polls", poller.attempts)

        if state is PollState.EXHAUSTED:
            raise ProbeTimeoutError(
                f"Certificate analysis timed out after {poller.attempts} polls"
            )
        payload = poller.payload
        if state is PollState.ERROR:
            raise ProbeError(
                f"Certificate analysis returned an error: {payload.get('statusMessage', 'unknown')}"
            )

        grade = overall_grade(payload)
        status, score = GRADE_SCORES.get(grade, (ProbeStatus.PASSED, self.MAX_SCORE))
        if status is ProbeStatus.FAILED:
            message = "Poor SSL/TLS configuration"
        elif status is ProbeStatus.WARNING:
            message = "SSL/TLS configuration has issues"
        else:
            message = "SSL certificate is valid and well-configured"

        return self._result(
            status,
            score,
            message,
            grade=grade,
            endpoints=extract_endpoints(payload),
            polls=poller.attempts,
            **extract_certificate_details(payload),
        )
