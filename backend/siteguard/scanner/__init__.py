"""
Scanner Module

This module provides the security check orchestration and scoring engine:
- Seven independent probes (transport, certificate, reputation,
  vulnerability, email authentication, directory exposure, response headers)
- A rate-limited fetcher for paced directory enumeration
- An orchestrator with per-probe failure isolation
- A scoring aggregator producing a 0-100 overall score
"""

from .orchestrator import ScanOrchestrator
from .registry import MAX_SCORES, PROBE_REGISTRY
from .schemas import (
    DirectoryFinding,
    HeaderCatalogEntry,
    ProbeName,
    ProbeResult,
    ProbeStatus,
    Report,
    Target,
)
from .scoring import aggregate_score, rating
from .target import validate_target

__all__ = [
    'ScanOrchestrator',
    'MAX_SCORES',
    'PROBE_REGISTRY',
    'DirectoryFinding',
    'HeaderCatalogEntry',
    'ProbeName',
    'ProbeResult',
    'ProbeStatus',
    'Report',
    'Target',
    'aggregate_score',
    'rating',
    'validate_target',
]
