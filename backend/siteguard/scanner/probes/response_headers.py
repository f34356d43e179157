"""
Response Headers Probe

Scores the root document's response headers against the weighted
catalog.  The headers come from a header source supplied by the caller
(which performs the HEAD request in its own execution context).
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping

from siteguard.errors import ProbeError
from siteguard.scanner.header_catalog import (
    HEADER_CATALOG,
    TOTAL_WEIGHT,
    analyze_header_value,
    normalize_headers,
)
from siteguard.scanner.probes.base import BaseProbe, ScanContext
from siteguard.scanner.schemas import ProbeName, ProbeResult, ProbeStatus
from siteguard.utils.probe_metrics import ProbeMetrics

PASS_RATIO = 0.7
WARN_RATIO = 0.4


def score_headers(headers: Mapping[str, str], max_score: int = 15) -> Dict[str, Any]:
    """
    Weigh *headers* against the catalog.

    Returns a dict with ``status``, ``score``, ``ratio`` and evidence.
    """
    normalized = normalize_headers(headers)
    present: List[str] = []
    missing: List[str] = []
    header_details: List[Dict[str, Any]] = []
    present_weight = 0

    for entry in HEADER_CATALOG:
        value = normalized.get(entry.name.lower())
        detail = {
            "name": entry.name,
            "importance": entry.importance.value,
            "weight": entry.weight,
            "description": entry.description,
        }
        if value:
            present.append(entry.name)
            present_weight += entry.weight
            detail.update(
                status="present",
                value=value,
                recommendations=analyze_header_value(entry.name, value),
            )
        else:
            missing.append(entry.name)
            detail.update(status="missing", example=entry.example)
        header_details.append(detail)

    ratio = present_weight / TOTAL_WEIGHT
    if ratio >= PASS_RATIO:
        status, message = ProbeStatus.PASSED, "Good security header implementation"
    elif ratio >= WARN_RATIO:
        status, message = ProbeStatus.WARNING, "Some important security headers are missing"
    else:
        status, message = ProbeStatus.FAILED, "Most security headers are missing"

    return {
        "status": status,
        "score": round(max_score * present_weight / TOTAL_WEIGHT),
        "ratio": ratio,
        "message": message,
        "presentHeaders": present,
        "missingHeaders": missing,
        "headerDetails": header_details,
        "totalScore": present_weight,
        "maxScore": TOTAL_WEIGHT,
    }


class ResponseHeadersProbe(BaseProbe):
    """Weighted presence check of security response headers."""

    NAME = ProbeName.RESPONSE_HEADERS
    MAX_SCORE = 15
    ERROR_SCORE = 5

    async def _evaluate(self, context: ScanContext, metrics: ProbeMetrics) -> ProbeResult:
        if context.header_source is None:
            raise ProbeError("No header source available for this scan")

        headers = await context.header_source(context.target)
        scored = score_headers(headers, self.MAX_SCORE)
        metrics.increment("headers_present", len(scored["presentHeaders"]))

        return self._result(
            scored.pop("status"),
            scored.pop("score"),
            scored.pop("message"),
            ratio=round(scored.pop("ratio"), 4),
            **scored,
        )
