"""
Scan Schemas

Pydantic models for the data that flows through one scan.

Schema hierarchy
----------------
    Report                  ← immutable envelope handed to callers
      ├── target            ← validated Target (url, scheme, hostname)
      ├── overall_score     ← 0..100, sum of probe scores (clamped)
      └── probe_results     ← ProbeName → ProbeResult, all seven slots
"""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class ProbeStatus(str, Enum):
    """Outcome of a single probe."""
    PASSED = "passed"
    WARNING = "warning"
    FAILED = "failed"
    ERROR = "error"
    PENDING = "pending"


class ProbeName(str, Enum):
    """The fixed set of probes, in weight order."""
    TRANSPORT = "transport"
    CERTIFICATE = "certificate"
    REPUTATION = "reputation"
    VULNERABILITY = "vulnerability"
    EMAIL_AUTH = "email_auth"
    DIRECTORY_EXPOSURE = "directory_exposure"
    RESPONSE_HEADERS = "response_headers"


class ImportanceTier(str, Enum):
    """Importance of a tracked response header."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# ---------------------------------------------------------------------------
# Target
# ---------------------------------------------------------------------------

class Target(BaseModel):
    """A validated absolute http(s) URL. Frozen once a scan starts."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Absolute URL as supplied by the caller")
    scheme: str = Field(..., description="'http' or 'https'")
    hostname: str = Field(..., description="Host part of the URL, lower-cased")
    port: Optional[int] = None

    @property
    def origin(self) -> str:
        # IPv6 literals need their brackets back in a URL authority
        host = f"[{self.hostname}]" if ":" in self.hostname else self.hostname
        if self.port:
            return f"{self.scheme}://{host}:{self.port}"
        return f"{self.scheme}://{host}"

    @property
    def is_https(self) -> bool:
        return self.scheme == "https"


# ---------------------------------------------------------------------------
# Probe results
# ---------------------------------------------------------------------------

class ProbeResult(BaseModel):
    """
    Result of one probe.

    ``score`` is bounded by the probe's own maximum; the registry checks
    that bound when the orchestrator stores the result.
    """

    model_config = ConfigDict(frozen=True)

    status: ProbeStatus = ProbeStatus.PENDING
    score: int = Field(0, ge=0, le=100)
    details: Dict[str, Any] = Field(default_factory=dict)

    @property
    def message(self) -> str:
        return self.details.get("message", "")


class DirectoryFinding(BaseModel):
    """A candidate path that answered with a successful HTTP status."""

    model_config = ConfigDict(frozen=True)

    path: str
    http_status: int = Field(..., ge=100, le=599, serialization_alias="httpStatus")
    indexing_enabled: bool = Field(False, serialization_alias="indexingEnabled")


class FetchOutcome(BaseModel):
    """Outcome of one paced request issued by the rate-limited fetcher."""

    url: str
    exposed: bool = False
    http_status: Optional[int] = None
    indexing_enabled: Optional[bool] = None
    error: Optional[str] = None


class HeaderCatalogEntry(BaseModel):
    """Static description of one tracked security header."""

    model_config = ConfigDict(frozen=True)

    name: str
    importance: ImportanceTier
    weight: int = Field(..., ge=1)
    description: str
    example: str = ""


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------

class Report(BaseModel):
    """
    Complete, immutable result of one scan.

    Every probe slot is filled with a non-pending result before a Report
    is built.
    """

    model_config = ConfigDict(frozen=True)

    target: Target
    generated_at: datetime
    overall_score: int = Field(..., ge=0, le=100)
    rating: str
    probe_results: Dict[ProbeName, ProbeResult]
    duration_seconds: Optional[float] = Field(None, ge=0.0)

    @property
    def failed_probes(self) -> List[ProbeName]:
        return [
            name for name, result in self.probe_results.items()
            if result.status in (ProbeStatus.FAILED, ProbeStatus.ERROR)
        ]

    def summary(self) -> Dict[str, Any]:
        """Return a compact summary dict."""
        return {
            "target": self.target.url,
            "overall_score": self.overall_score,
            "rating": self.rating,
            "statuses": {
                name.value: result.status.value
                for name, result in self.probe_results.items()
            },
            "duration_seconds": self.duration_seconds,
        }
