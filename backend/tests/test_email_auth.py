"""
Tests for TXT resolution backends and the email authentication probe.
"""

from unittest.mock import Mock, patch

import dns.exception
import dns.resolver
import httpx
import pytest

from fakes import doh_records
from siteguard.errors import ProbeError
from siteguard.scanner.dns_resolver import (
    DohTxtResolver,
    SystemTxtResolver,
    TxtResolver,
    build_txt_resolver,
    strip_quotes,
)
from siteguard.scanner.probes.email_auth import EmailAuthProbe, find_tagged
from siteguard.scanner.schemas import ProbeStatus


class StaticResolver:
    """TXT resolver answering from a dict; names mapped to an exception raise it."""

    def __init__(self, records):
        self.records = records
        self.queried = []

    async def resolve_txt(self, name):
        self.queried.append(name)
        answer = self.records.get(name, [])
        if isinstance(answer, Exception):
            raise answer
        return answer


def probe_with(records):
    resolver = StaticResolver(records)
    return EmailAuthProbe(resolver_factory=lambda context: resolver), resolver


class TestStripQuotes:

    def test_strips_one_pair(self):
        assert strip_quotes('"v=spf1 -all"') == "v=spf1 -all"

    def test_leaves_inner_quotes(self):
        assert strip_quotes('"a" "b"') == 'a" "b'

    def test_unquoted(self):
        assert strip_quotes("v=spf1") == "v=spf1"


class TestFindTagged:

    def test_case_insensitive(self):
        assert find_tagged(["google-site-verification=x", "V=SPF1 mx -all"], "v=spf1") == "V=SPF1 mx -all"

    def test_no_match(self):
        assert find_tagged(["v=DKIM1; k=rsa"], "v=dmarc1") is None


class TestDohTxtResolver:

    @pytest.mark.asyncio
    async def test_reads_answers(self):
        transport = httpx.MockTransport(doh_records({"example.com": ["v=spf1 -all", "other"]}))
        resolver = DohTxtResolver(transport=transport)
        assert await resolver.resolve_txt("example.com") == ["v=spf1 -all", "other"]

    @pytest.mark.asyncio
    async def test_no_answer_section(self):
        transport = httpx.MockTransport(doh_records({}))
        assert await DohTxtResolver(transport=transport).resolve_txt("example.com") == []

    @pytest.mark.asyncio
    async def test_http_error_raises(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(503))
        with pytest.raises(ProbeError, match="503"):
            await DohTxtResolver(transport=transport).resolve_txt("example.com")


class TestSystemTxtResolver:

    def test_init(self):
        resolver = SystemTxtResolver(timeout=3.0, nameservers=["8.8.8.8"])
        assert resolver.timeout == 3.0
        assert resolver.resolver.lifetime == 3.0
        assert resolver.resolver.nameservers == ["8.8.8.8"]

    def test_parse_records_joins_chunks(self):
        rdata = Mock()
        rdata.strings = [b"v=spf1 include:a.example.com ", b"-all"]
        assert SystemTxtResolver(nameservers=["127.0.0.1"])._parse_records([rdata]) == ["v=spf1 include:a.example.com -all"]

    @pytest.mark.asyncio
    async def test_nxdomain_is_empty(self):
        resolver = SystemTxtResolver(nameservers=["127.0.0.1"])
        with patch.object(resolver, "_query_dns", side_effect=dns.resolver.NXDOMAIN):
            assert await resolver.resolve_txt("missing.example.com") == []

    @pytest.mark.asyncio
    async def test_dns_timeout_raises(self):
        resolver = SystemTxtResolver(nameservers=["127.0.0.1"])
        with patch.object(resolver, "_query_dns", side_effect=dns.exception.Timeout):
            with pytest.raises(ProbeError, match="timed out"):
                await resolver.resolve_txt("slow.example.com")


class TestBuildTxtResolver:

    def test_backends(self):
        assert isinstance(build_txt_resolver("doh"), DohTxtResolver)
        with patch("dns.resolver.Resolver"):
            assert isinstance(build_txt_resolver("system"), SystemTxtResolver)


class TestEmailAuthProbe:

    @pytest.mark.asyncio
    async def test_spf_only(self, make_context):
        probe, resolver = probe_with({
            "example.com": ["v=spf1 include:_spf.example.com ~all"],
            "_dmarc.example.com": [],
        })
        result = await probe.evaluate(make_context())

        assert result.status == ProbeStatus.WARNING
        assert result.score == 5
        assert result.details["spf"] == "Found"
        assert result.details["spfRecord"] == "v=spf1 include:_spf.example.com ~all"
        assert result.details["dmarc"] == "Not found"
        assert result.details["dmarcRecord"] == "No DMARC record found"
        assert sorted(resolver.queried) == ["_dmarc.example.com", "example.com"]

    @pytest.mark.asyncio
    async def test_dmarc_only(self, make_context):
        probe, _ = probe_with({"_dmarc.example.com": ["v=DMARC1; p=none"]})
        result = await probe.evaluate(make_context())
        assert (result.status, result.score) == (ProbeStatus.WARNING, 3)

    @pytest.mark.asyncio
    async def test_both(self, make_context):
        probe, _ = probe_with({
            "example.com": ["v=spf1 -all"],
            "_dmarc.example.com": ["v=DMARC1; p=reject"],
        })
        result = await probe.evaluate(make_context())
        assert (result.status, result.score) == (ProbeStatus.PASSED, 10)

    @pytest.mark.asyncio
    async def test_neither(self, make_context):
        probe, _ = probe_with({"example.com": ["google-site-verification=abc"]})
        result = await probe.evaluate(make_context())
        assert (result.status, result.score) == (ProbeStatus.FAILED, 0)

    @pytest.mark.asyncio
    async def test_lookup_failure_degrades_to_absent(self, make_context):
        probe, _ = probe_with({
            "example.com": ProbeError("DNS query failed with status 500"),
            "_dmarc.example.com": ["v=DMARC1; p=reject"],
        })
        result = await probe.evaluate(make_context())

        assert (result.status, result.score) == (ProbeStatus.WARNING, 3)
        assert result.details["spf"] == "Not found"
        assert result.details["spfRecord"].startswith("Error:")

    @pytest.mark.asyncio
    async def test_default_resolver_uses_doh(self, make_context, internet):
        result = await EmailAuthProbe().evaluate(make_context())
        assert (result.status, result.score) == (ProbeStatus.PASSED, 10)
        assert len(internet.requests_to("dns.google")) == 2

    @pytest.mark.asyncio
    async def test_resolver_factory_failure_is_error(self, make_context):
        def factory(context):
            raise RuntimeError("no resolver")

        result = await EmailAuthProbe(resolver_factory=factory).evaluate(make_context())
        assert result.status == ProbeStatus.ERROR
        assert result.score == 3


class TestTxtResolverInterface:

    def test_base_resolver_is_abstract(self):
        with pytest.raises(TypeError):
            TxtResolver()
