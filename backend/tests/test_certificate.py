"""
Tests for the certificate-analysis poll loop and the certificate probe.
"""

from datetime import datetime, timezone

import httpx
import pytest

from fakes import FakeClock, make_config, ssl_labs_ready
from siteguard.scanner.probes.certificate import (
    CertificateAnalysisPoller,
    CertificateProbe,
    PollState,
    classify_status,
    extract_certificate_details,
    overall_grade,
)
from siteguard.scanner.schemas import ProbeStatus


def scripted_ssl_labs(*statuses, grade="A"):
    """Answer each call with the next status; the last one repeats."""
    calls = []

    def handler(request):
        calls.append(dict(request.url.params))
        status = statuses[min(len(calls) - 1, len(statuses) - 1)]
        body = {"status": status}
        if status == "READY":
            body["endpoints"] = [{"ipAddress": "93.184.216.34", "grade": grade}]
        if status == "ERROR":
            body["statusMessage"] = "Unable to resolve domain name"
        return httpx.Response(200, json=body)

    return handler, calls


class TestPollHelpers:

    @pytest.mark.parametrize("raw,state", [
        ("READY", PollState.READY),
        ("ERROR", PollState.ERROR),
        ("IN_PROGRESS", PollState.PENDING),
        ("DNS", PollState.PENDING),
        (None, PollState.PENDING),
    ])
    def test_classify_status(self, raw, state):
        assert classify_status(raw) is state

    def test_overall_grade_prefers_overall_rating(self):
        assert overall_grade({"overallRating": "B", "endpoints": [{"grade": "A"}]}) == "B"

    def test_overall_grade_falls_back_to_endpoint(self):
        assert overall_grade({"endpoints": [{"grade": None}, {"grade": "A+"}]}) == "A+"

    def test_overall_grade_missing(self):
        assert overall_grade({}) is None

    def test_certificate_details(self):
        now = datetime(2026, 1, 1, tzinfo=timezone.utc)
        not_after = datetime(2026, 1, 31, tzinfo=timezone.utc)
        details = extract_certificate_details({
            "certs": [{
                "subject": "CN=example.com",
                "issuerSubject": "CN=Example CA",
                "notBefore": 1735689600000,
                "notAfter": int(not_after.timestamp() * 1000),
                "sigAlg": "SHA256withRSA",
            }]
        }, now=now)
        assert details["subject"] == "CN=example.com"
        assert details["validTo"] == not_after.isoformat()
        assert details["daysToExpiry"] == 30

    def test_certificate_details_without_certs(self):
        assert extract_certificate_details({}) == {}


class TestCertificateAnalysisPoller:

    @pytest.mark.asyncio
    async def test_polls_until_ready(self):
        handler, calls = scripted_ssl_labs("DNS", "IN_PROGRESS", "IN_PROGRESS", "READY")
        clock = FakeClock()
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            poller = CertificateAnalysisPoller(client, interval=5, max_attempts=10, sleep=clock.sleep)
            state = await poller.run("example.com")

        assert state is PollState.READY
        assert poller.attempts == 3
        assert clock.sleeps == [5, 5, 5]
        assert "fromCache" not in calls[0]
        assert calls[1]["fromCache"] == "on" and calls[1]["all"] == "on"

    @pytest.mark.asyncio
    async def test_ready_on_first_call_does_not_poll(self):
        handler, calls = scripted_ssl_labs("READY")
        clock = FakeClock()
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            poller = CertificateAnalysisPoller(client, interval=5, max_attempts=10, sleep=clock.sleep)
            assert await poller.run("example.com") is PollState.READY

        assert len(calls) == 1
        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_exhausted_after_max_attempts(self):
        handler, calls = scripted_ssl_labs("IN_PROGRESS")
        clock = FakeClock()
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            poller = CertificateAnalysisPoller(client, interval=5, max_attempts=3, sleep=clock.sleep)
            state = await poller.run("example.com")

        assert state is PollState.EXHAUSTED
        assert poller.attempts == 3
        assert len(calls) == 4

    @pytest.mark.asyncio
    async def test_step_after_terminal_is_noop(self):
        handler, calls = scripted_ssl_labs("ERROR")
        clock = FakeClock()
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            poller = CertificateAnalysisPoller(client, interval=5, max_attempts=3, sleep=clock.sleep)
            await poller.run("example.com")
            assert await poller.step("example.com") is PollState.ERROR

        assert len(calls) == 1


class TestCertificateProbe:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("grade,status,score", [
        ("A+", ProbeStatus.PASSED, 15),
        ("A", ProbeStatus.PASSED, 15),
        ("B", ProbeStatus.PASSED, 15),
        ("C", ProbeStatus.WARNING, 5),
        ("F", ProbeStatus.FAILED, 0),
    ])
    async def test_grade_mapping(self, make_context, internet, grade, status, score):
        internet.route("api.ssllabs.com", ssl_labs_ready(grade))
        result = await CertificateProbe().evaluate(make_context())
        assert (result.status, result.score) == (status, score)
        assert result.details["grade"] == grade

    @pytest.mark.asyncio
    async def test_http_target_is_skipped(self, make_context, internet):
        result = await CertificateProbe().evaluate(make_context("http://example.com"))
        assert (result.status, result.score) == (ProbeStatus.FAILED, 0)
        assert result.details["skipped"] is True
        assert internet.requests_to("api.ssllabs.com") == []

    @pytest.mark.asyncio
    async def test_exhaustion_is_error(self, make_context, internet):
        handler, _ = scripted_ssl_labs("IN_PROGRESS")
        internet.route("api.ssllabs.com", handler)
        context = make_context(config=make_config(certificate_max_attempts=2))

        result = await CertificateProbe().evaluate(context)

        assert (result.status, result.score) == (ProbeStatus.ERROR, 0)
        assert result.details["errorType"] == "ProbeTimeoutError"

    @pytest.mark.asyncio
    async def test_service_error_status(self, make_context, internet):
        handler, _ = scripted_ssl_labs("IN_PROGRESS", "ERROR")
        internet.route("api.ssllabs.com", handler)
        result = await CertificateProbe().evaluate(make_context())
        assert result.status == ProbeStatus.ERROR
        assert "Unable to resolve domain name" in result.details["error"]

    @pytest.mark.asyncio
    async def test_http_failure(self, make_context, internet):
        internet.route("api.ssllabs.com", lambda r: httpx.Response(529))
        result = await CertificateProbe().evaluate(make_context())
        assert (result.status, result.score) == (ProbeStatus.ERROR, 0)
        assert "529" in result.details["error"]
