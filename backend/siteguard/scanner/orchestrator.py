"""
Scan Orchestrator

Coordinates one scan of one target:
1. Validate the target (fails fast, before any probe runs)
2. Snapshot the current configuration
3. Run the transport probe; it decides whether the certificate probe runs
4. Run the remaining probes concurrently under a small concurrency ceiling,
   each isolated so one fault only affects its own slot
5. Aggregate scores and hand back an immutable Report
"""

import asyncio
import logging
import time
from datetime import datetime, timezone
from typing import Dict, Mapping, Optional, Union

import httpx

from siteguard.core.config import ConfigStore, ScanConfig
from siteguard.errors import ScanTimeoutError
from siteguard.scanner.header_source import HttpHeaderSource, static_header_source
from siteguard.scanner.probes.base import BaseProbe, HeaderSource, ScanContext, Sleeper
from siteguard.scanner.probes.certificate import CertificateProbe
from siteguard.scanner.registry import build_probes
from siteguard.scanner.schemas import ProbeName, ProbeResult, ProbeStatus, Report
from siteguard.scanner.scoring import aggregate_score, rating
from siteguard.scanner.target import validate_target
from siteguard.utils.probe_metrics import get_structured_logger

logger = logging.getLogger(__name__)
metrics_logger = get_structured_logger("siteguard.metrics")


class ScanOrchestrator:
    """
    Runs the fixed battery of probes against one target per ``scan`` call.

    No state is shared between scans: probes, context and results are
    created per call from a configuration snapshot.
    """

    def __init__(
        self,
        config: Union[ConfigStore, ScanConfig, None] = None,
        header_source: Optional[HeaderSource] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        probe_overrides: Optional[Mapping[ProbeName, BaseProbe]] = None,
        sleep: Optional[Sleeper] = None,
    ):
        """
        Initialize orchestrator.

        Args:
            config: A ConfigStore (read once per scan) or a fixed ScanConfig
            header_source: Supplies the root document's response headers;
                defaults to an HTTP HEAD request
            transport: httpx transport shared by every outbound call
            probe_overrides: Replacement probe instances by name
            sleep: Coroutine used for every pacing / polling delay
        """
        if isinstance(config, ConfigStore):
            self.config_store = config
        else:
            self.config_store = ConfigStore(config)
        self.header_source = header_source
        self.transport = transport
        self.probe_overrides = dict(probe_overrides or {})
        self.sleep = sleep or asyncio.sleep

    async def scan(self, url: str, headers: Optional[Mapping[str, str]] = None) -> Report:
        """
        Scan *url* and return its Report.

        Raises:
            TargetValidationError: For unsupported targets; no probe runs.
        """
        target = validate_target(url)
        config = self.config_store.current()
        started = time.monotonic()

        logger.info("Starting scan: target=%s", target.url)

        if headers is not None:
            header_source = static_header_source(headers)
        else:
            header_source = self.header_source or HttpHeaderSource(
                timeout=config.settings.request_timeout, transport=self.transport
            )

        context = ScanContext(
            target=target,
            config=config,
            header_source=header_source,
            transport=self.transport,
            sleep=self.sleep,
        )
        probes = build_probes(self.probe_overrides)
        results: Dict[ProbeName, ProbeResult] = {
            name: ProbeResult(status=ProbeStatus.PENDING) for name in probes
        }

        semaphore = asyncio.Semaphore(config.settings.max_concurrent_probes)

        async def run(name: ProbeName) -> None:
            async with semaphore:
                results[name] = await self._run_isolated(probes[name], context)

        # Transport first: it gates the certificate probe
        await run(ProbeName.TRANSPORT)

        independent = [
            name for name in probes
            if name not in (ProbeName.TRANSPORT, ProbeName.CERTIFICATE)
        ]
        if results[ProbeName.TRANSPORT].status == ProbeStatus.PASSED:
            independent.insert(0, ProbeName.CERTIFICATE)
        else:
            results[ProbeName.CERTIFICATE] = self._skipped_certificate(probes[ProbeName.CERTIFICATE])

        await asyncio.gather(*(run(name) for name in independent))

        for name, result in results.items():
            if result.status == ProbeStatus.PENDING:
                logger.error("Probe %s left pending; recording error", name.value)
                results[name] = probes[name].error_result(RuntimeError("probe did not complete"))

        overall = aggregate_score(results)
        report = Report(
            target=target,
            generated_at=datetime.now(timezone.utc),
            overall_score=overall,
            rating=rating(overall),
            probe_results=results,
            duration_seconds=round(time.monotonic() - started, 3),
        )

        metrics_logger.info(
            "Scan complete",
            extra={
                "scan_summary": report.summary(),
                "probe_metrics": {name: m.to_dict() for name, m in context.metrics.items()},
            },
        )
        logger.info("Scan complete: target=%s score=%d", target.url, overall)
        return report

    async def scan_with_timeout(
        self,
        url: str,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[float] = None,
    ) -> Report:
        """
        ``scan`` bounded by *timeout* seconds (default: ``check_timeout``).

        Raises:
            TargetValidationError: For unsupported targets.
            ScanTimeoutError: When the scan does not finish in time; in-flight
                probe work is cancelled.
        """
        validate_target(url)
        if timeout is None:
            timeout = self.config_store.current().settings.check_timeout
        try:
            return await asyncio.wait_for(self.scan(url, headers), timeout=timeout)
        except asyncio.TimeoutError:
            logger.error("Scan of %s timed out after %.1fs", url, timeout)
            raise ScanTimeoutError(f"Scan timed out after {timeout} seconds")

    async def _run_isolated(self, probe: BaseProbe, context: ScanContext) -> ProbeResult:
        """Evaluate one probe; a fault escaping it only fills its own slot."""
        try:
            return await probe.evaluate(context)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.error("Probe %s raised past its boundary: %s", probe.NAME.value, exc, exc_info=True)
            return probe.error_result(exc)

    @staticmethod
    def _skipped_certificate(probe: BaseProbe) -> ProbeResult:
        if isinstance(probe, CertificateProbe):
            return probe.skipped_result()
        return ProbeResult(
            status=ProbeStatus.FAILED,
            score=0,
            details={"message": "Site is not using HTTPS", "skipped": True},
        )
