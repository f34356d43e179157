"""Probe implementations; see ``siteguard.scanner.registry`` for the fixed set."""

from .base import BaseProbe, ScanContext
from .certificate import CertificateProbe
from .directory_exposure import DirectoryExposureProbe
from .email_auth import EmailAuthProbe
from .reputation import ReputationProbe
from .response_headers import ResponseHeadersProbe
from .transport import TransportProbe
from .vulnerability import VulnerabilityProbe

__all__ = [
    "BaseProbe",
    "ScanContext",
    "CertificateProbe",
    "DirectoryExposureProbe",
    "EmailAuthProbe",
    "ReputationProbe",
    "ResponseHeadersProbe",
    "TransportProbe",
    "VulnerabilityProbe",
]
