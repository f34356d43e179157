"""
Probe Registry

The closed set of seven probes in fixed weight order.  Their maximum
scores sum to exactly 100.
"""
from __future__ import annotations

from typing import Dict, Mapping, Optional, Type

from siteguard.scanner.probes.base import BaseProbe
from siteguard.scanner.probes.certificate import CertificateProbe
from siteguard.scanner.probes.directory_exposure import DirectoryExposureProbe
from siteguard.scanner.probes.email_auth import EmailAuthProbe
from siteguard.scanner.probes.reputation import ReputationProbe
from siteguard.scanner.probes.response_headers import ResponseHeadersProbe
from siteguard.scanner.probes.transport import TransportProbe
from siteguard.scanner.probes.vulnerability import VulnerabilityProbe
from siteguard.scanner.schemas import ProbeName

PROBE_REGISTRY: Dict[ProbeName, Type[BaseProbe]] = {
    ProbeName.TRANSPORT: TransportProbe,
    ProbeName.CERTIFICATE: CertificateProbe,
    ProbeName.REPUTATION: ReputationProbe,
    ProbeName.VULNERABILITY: VulnerabilityProbe,
    ProbeName.EMAIL_AUTH: EmailAuthProbe,
    ProbeName.DIRECTORY_EXPOSURE: DirectoryExposureProbe,
    ProbeName.RESPONSE_HEADERS: ResponseHeadersProbe,
}

MAX_SCORES: Dict[ProbeName, int] = {
    name: probe_cls.MAX_SCORE for name, probe_cls in PROBE_REGISTRY.items()
}

ERROR_SCORES: Dict[ProbeName, int] = {
    name: probe_cls.ERROR_SCORE for name, probe_cls in PROBE_REGISTRY.items()
}


def check_weights(max_scores: Mapping[ProbeName, int]) -> None:
    """Raise ``ValueError`` unless the probe maximums sum to exactly 100."""
    total = sum(max_scores.values())
    if total != 100:
        raise ValueError(f"probe weights must sum to 100, got {total}")


check_weights(MAX_SCORES)


def build_probes(overrides: Optional[Mapping[ProbeName, BaseProbe]] = None) -> Dict[ProbeName, BaseProbe]:
    """Instantiate every registered probe, substituting any *overrides*."""
    overrides = overrides or {}
    return {
        name: overrides.get(name) or probe_cls()
        for name, probe_cls in PROBE_REGISTRY.items()
    }
