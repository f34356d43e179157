"""
Base Probe

Every concrete probe (Transport, Certificate, Reputation, ...) extends
``BaseProbe``.  The base class provides:

  - A standard ``evaluate()`` lifecycle that never raises: any fault in
    ``_evaluate`` becomes a ``status=error`` result with the probe's
    fixed partial score
  - Score-range enforcement against ``MAX_SCORE``
  - Per-probe metrics and logging under ``probe.<name>``
  - A shared way to build ``httpx.AsyncClient`` instances so tests can
    inject a transport
"""
from __future__ import annotations

import abc
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Mapping, Optional

import httpx

from siteguard.core.config import ScanConfig
from siteguard.errors import truncate_message
from siteguard.scanner.schemas import ProbeName, ProbeResult, ProbeStatus, Target
from siteguard.utils.probe_metrics import ProbeMetrics

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 Website Security Scanner"

HeaderSource = Callable[[Target], Awaitable[Mapping[str, str]]]
Sleeper = Callable[[float], Awaitable[Any]]


@dataclass
class ScanContext:
    """
    Per-scan inputs shared by all probes.

    Created by the orchestrator at scan start and never mutated by probes
    except through their own ``metrics`` entry.
    """
    target: Target
    config: ScanConfig
    header_source: Optional[HeaderSource] = None
    transport: Optional[httpx.AsyncBaseTransport] = None
    sleep: Sleeper = asyncio.sleep
    metrics: dict = field(default_factory=dict)


class BaseProbe(abc.ABC):
    """
    Abstract base class for all probes.

    Subclasses set ``NAME``, ``MAX_SCORE`` and ``ERROR_SCORE`` and
    implement :meth:`_evaluate`.

    Usage example::

        class TransportProbe(BaseProbe):
            NAME = ProbeName.TRANSPORT
            MAX_SCORE = 20
            ERROR_SCORE = 0

            async def _evaluate(self, context, metrics):
                ...
    """

    NAME: ProbeName
    MAX_SCORE: int = 0
    ERROR_SCORE: int = 0

    def __init__(self) -> None:
        self._logger = logging.getLogger(f"probe.{self.NAME.value}")

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def evaluate(self, context: ScanContext) -> ProbeResult:
        """
        Run the probe and return its result.

        This method should *not* be overridden; override ``_evaluate``
        instead.  It only lets ``asyncio.CancelledError`` escape.
        """
        metrics = ProbeMetrics(self.NAME.value).start()
        context.metrics[self.NAME.value] = metrics

        self._logger.info("Starting %s probe: target=%s", self.NAME.value, context.target.url)

        try:
            result = await self._evaluate(context, metrics)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            self._logger.error(
                "%s probe failed: %s", self.NAME.value, exc, exc_info=True
            )
            result = self.error_result(exc)

        result = self._bounded(result)
        metrics.stop(
            status=result.status.value,
            score=result.score,
            error=result.details.get("error"),
        )
        self._logger.info(
            "%s probe complete: status=%s score=%d/%d",
            self.NAME.value, result.status.value, result.score, self.MAX_SCORE,
        )
        return result

    def error_result(self, exc: BaseException, message: Optional[str] = None) -> ProbeResult:
        """Build the fixed partial-score result for a contained fault."""
        error_text = truncate_message(str(exc) or type(exc).__name__)
        return ProbeResult(
            status=ProbeStatus.ERROR,
            score=self.ERROR_SCORE,
            details={
                "message": message or f"Error running {self.NAME.value} check: {error_text}",
                "error": error_text,
                "errorType": type(exc).__name__,
            },
        )

    # ------------------------------------------------------------------
    # Abstract methods (must implement in subclasses)
    # ------------------------------------------------------------------

    @abc.abstractmethod
    async def _evaluate(self, context: ScanContext, metrics: ProbeMetrics) -> ProbeResult:
        """
        Evaluate one security dimension of ``context.target``.

        May raise; :meth:`evaluate` converts any exception into an
        error result.
        """

    # ------------------------------------------------------------------
    # Convenience helpers for subclasses
    # ------------------------------------------------------------------

    def _result(self, status: ProbeStatus, score: int, message: str, **details: Any) -> ProbeResult:
        return ProbeResult(status=status, score=score, details={"message": message, **details})

    def _bounded(self, result: ProbeResult) -> ProbeResult:
        if 0 <= result.score <= self.MAX_SCORE and result.status != ProbeStatus.PENDING:
            return result
        self._logger.error(
            "%s probe produced out-of-contract result (status=%s score=%d)",
            self.NAME.value, result.status.value, result.score,
        )
        return self.error_result(
            ValueError(f"score {result.score} outside [0, {self.MAX_SCORE}] or status pending")
        )

    def _client(self, context: ScanContext, timeout: float, **kwargs: Any) -> httpx.AsyncClient:
        """Build an ``httpx.AsyncClient`` honouring an injected transport."""
        headers = kwargs.pop("headers", {})
        return httpx.AsyncClient(
            timeout=timeout,
            transport=context.transport,
            headers={"User-Agent": USER_AGENT, **headers},
            **kwargs,
        )
