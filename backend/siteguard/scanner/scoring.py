"""Scoring aggregator: probe results → 0..100 overall score."""
from __future__ import annotations

from typing import Mapping

from siteguard.scanner.schemas import ProbeName, ProbeResult

MAX_OVERALL_SCORE = 100

GOOD_THRESHOLD = 70
MEDIUM_THRESHOLD = 40


def aggregate_score(results: Mapping[ProbeName, ProbeResult]) -> int:
    """Sum of probe scores, clamped to at most 100."""
    return min(MAX_OVERALL_SCORE, sum(result.score for result in results.values()))


def rating(overall_score: int) -> str:
    """Coarse band for an overall score: good, medium or poor."""
    if overall_score >= GOOD_THRESHOLD:
        return "good"
    if overall_score >= MEDIUM_THRESHOLD:
        return "medium"
    return "poor"
