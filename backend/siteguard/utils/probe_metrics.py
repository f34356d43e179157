"""
Probe Execution Metrics & Structured Logging

Provides:
  - ``JSONFormatter``          – one JSON object per log line, extras included
  - ``get_structured_logger``  – logger wired to ``JSONFormatter`` once
  - ``ProbeMetrics``           – timing, outcome and counters of one probe run
"""
from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Attributes every LogRecord carries; anything else was passed via ``extra``
_STANDARD_ATTRS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


# ---------------------------------------------------------------------------
# JSON log formatter
# ---------------------------------------------------------------------------

class JSONFormatter(logging.Formatter):
    """Render a record and its ``extra`` fields as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(
            (key, value) for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS
        )
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        try:
            return json.dumps(payload, default=str)
        except (TypeError, ValueError):
            return json.dumps({"level": record.levelname, "message": repr(payload)})


def get_structured_logger(name: str) -> logging.Logger:
    """
    Return logger *name* emitting through ``JSONFormatter``.

    Repeated calls reuse the handler installed by the first one.
    """
    log = logging.getLogger(name)
    if not any(isinstance(h.formatter, JSONFormatter) for h in log.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(JSONFormatter())
        log.addHandler(handler)
        log.propagate = False
    return log


# ---------------------------------------------------------------------------
# ProbeMetrics – one probe evaluation
# ---------------------------------------------------------------------------

@dataclass
class ProbeMetrics:
    """
    Collects execution metrics for a single probe evaluation::

        metrics = ProbeMetrics("directory_exposure").start()
        metrics.increment("requests_sent")
        metrics.stop(status="warning", score=5)
    """

    probe_name: str
    status: Optional[str] = None
    score: Optional[int] = None
    error: Optional[str] = None
    _started: Optional[float] = field(default=None, repr=False)
    _finished: Optional[float] = field(default=None, repr=False)
    _counters: Dict[str, int] = field(default_factory=dict, repr=False)

    def start(self) -> "ProbeMetrics":
        self._started = time.monotonic()
        return self

    def stop(
        self,
        status: Optional[str] = None,
        score: Optional[int] = None,
        error: Optional[str] = None,
    ) -> "ProbeMetrics":
        self._finished = time.monotonic()
        self.status, self.score, self.error = status, score, error
        return self

    @property
    def duration_seconds(self) -> Optional[float]:
        if self._started is None:
            return None
        end = time.monotonic() if self._finished is None else self._finished
        return round(end - self._started, 3)

    def increment(self, name: str, amount: int = 1) -> None:
        self._counters[name] = self._counters.get(name, 0) + amount

    @property
    def counters(self) -> Dict[str, int]:
        return dict(self._counters)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "probe": self.probe_name,
            "status": self.status,
            "score": self.score,
            "error": self.error,
            "duration_seconds": self.duration_seconds,
            "counters": self.counters,
        }
