"""
Tests for the header catalog, header sources and the response-headers probe.
"""

import httpx
import pytest

from fakes import ALL_SECURITY_HEADERS
from siteguard.scanner.header_catalog import (
    HEADER_CATALOG,
    TOTAL_WEIGHT,
    analyze_csp,
    analyze_hsts,
)
from siteguard.scanner.header_source import HttpHeaderSource, static_header_source
from siteguard.scanner.probes.response_headers import ResponseHeadersProbe, score_headers
from siteguard.scanner.schemas import ImportanceTier, ProbeStatus
from siteguard.scanner.target import validate_target


class TestHeaderCatalog:

    def test_twelve_headers_weighing_nineteen(self):
        assert len(HEADER_CATALOG) == 12
        assert TOTAL_WEIGHT == 19

    def test_weights_follow_importance(self):
        expected = {ImportanceTier.HIGH: 3, ImportanceTier.MEDIUM: 2, ImportanceTier.LOW: 1}
        for entry in HEADER_CATALOG:
            assert entry.weight == expected[entry.importance]

    def test_csp_recommendations(self):
        recs = analyze_csp("script-src 'self' 'unsafe-inline' 'unsafe-eval'")
        assert len(recs) == 3

    def test_strong_hsts_has_no_recommendations(self):
        assert analyze_hsts("max-age=63072000; includeSubDomains; preload") == []

    def test_weak_hsts(self):
        recs = analyze_hsts("max-age=3600")
        assert any("31536000" in r for r in recs)
        assert any("includeSubDomains" in r for r in recs)


class TestScoreHeaders:

    def test_csp_and_nosniff_only(self):
        scored = score_headers({
            "Content-Security-Policy": "default-src 'self'",
            "X-Content-Type-Options": "nosniff",
        })
        assert scored["totalScore"] == 5
        assert scored["score"] == 4
        assert scored["status"] == ProbeStatus.FAILED
        assert scored["presentHeaders"] == ["Content-Security-Policy", "X-Content-Type-Options"]
        assert len(scored["missingHeaders"]) == 10

    def test_all_headers(self):
        scored = score_headers(ALL_SECURITY_HEADERS)
        assert scored["score"] == 15
        assert scored["status"] == ProbeStatus.PASSED
        assert scored["missingHeaders"] == []

    def test_no_headers(self):
        scored = score_headers({})
        assert scored["score"] == 0
        assert scored["status"] == ProbeStatus.FAILED

    def test_names_are_case_insensitive(self):
        scored = score_headers({"strict-transport-security": "max-age=31536000", "X-FRAME-OPTIONS": "DENY"})
        assert scored["presentHeaders"] == ["Strict-Transport-Security", "X-Frame-Options"]

    def test_warning_band(self):
        # 3 + 3 + 2 = 8 of 19
        scored = score_headers({
            "Content-Security-Policy": "default-src 'self'",
            "Strict-Transport-Security": "max-age=31536000",
            "X-Frame-Options": "DENY",
        })
        assert scored["status"] == ProbeStatus.WARNING
        assert scored["score"] == 6

    def test_empty_value_counts_as_missing(self):
        scored = score_headers({"X-Frame-Options": ""})
        assert "X-Frame-Options" in scored["missingHeaders"]

    def test_missing_header_details_carry_example(self):
        details = {d["name"]: d for d in score_headers({})["headerDetails"]}
        assert details["X-Content-Type-Options"]["example"] == "nosniff"
        assert details["X-Content-Type-Options"]["status"] == "missing"


class TestHeaderSources:

    @pytest.mark.asyncio
    async def test_static_source_is_case_insensitive(self):
        source = static_header_source({"X-Frame-Options": "DENY"})
        headers = await source(validate_target("https://example.com"))
        assert headers["x-frame-options"] == "DENY"

    @pytest.mark.asyncio
    async def test_http_source_issues_head(self):
        seen = []

        def handler(request):
            seen.append(request.method)
            return httpx.Response(200, headers={"X-Frame-Options": "SAMEORIGIN"})

        source = HttpHeaderSource(transport=httpx.MockTransport(handler))
        headers = await source(validate_target("https://example.com"))
        assert seen == ["HEAD"]
        assert headers["X-Frame-Options"] == "SAMEORIGIN"


class TestResponseHeadersProbe:

    @pytest.mark.asyncio
    async def test_scores_supplied_headers(self, make_context):
        context = make_context(header_source=static_header_source({
            "Content-Security-Policy": "default-src 'self'",
            "X-Content-Type-Options": "nosniff",
        }))
        result = await ResponseHeadersProbe().evaluate(context)
        assert result.status == ProbeStatus.FAILED
        assert result.score == 4
        assert result.details["maxScore"] == 19

    @pytest.mark.asyncio
    async def test_no_header_source_is_error(self, make_context):
        result = await ResponseHeadersProbe().evaluate(make_context())
        assert result.status == ProbeStatus.ERROR
        assert result.score == 5

    @pytest.mark.asyncio
    async def test_header_source_failure_is_error(self, make_context):
        async def failing(target):
            raise httpx.ConnectError("refused")

        result = await ResponseHeadersProbe().evaluate(make_context(header_source=failing))
        assert result.status == ProbeStatus.ERROR
        assert result.score == 5
        assert result.details["errorType"] == "ConnectError"
