"""
Turn response latency sampling.

One sample per assistant turn: from the moment the user stops speaking to
the moment the assistant starts. Samples accumulate in a fixed-size window;
when the window is full a nearest-rank P95 summary is emitted and the
window starts over. Observability only, never used for control flow.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

import structlog
from prometheus_client import Gauge, Histogram

logger = structlog.get_logger(__name__)

DEFAULT_WINDOW_SIZE = 20
DEFAULT_PERCENTILE = 95.0

_TURN_LATENCY_SECONDS = Histogram(
    "voice_controller_turn_latency_seconds",
    "Time from end of user speech to start of assistant speech",
    buckets=(0.2, 0.5, 0.75, 1.0, 1.5, 2.0, 3.0, 5.0, 8.0),
)
_TURN_LATENCY_P95_MS = Gauge(
    "voice_controller_turn_latency_p95_ms",
    "Nearest-rank P95 of the last full latency window (ms)",
)


def nearest_rank_percentile(samples: Sequence[float], percentile: float = DEFAULT_PERCENTILE) -> float:
    """
    Nearest-rank percentile: sort ascending, take index ceil(p/100 * n) - 1.

    Raises:
        ValueError: On an empty sample set or a percentile outside (0, 100]
    """
    if not samples:
        raise ValueError("percentile of an empty sample set")
    if not 0 < percentile <= 100:
        raise ValueError(f"percentile must be in (0, 100], got {percentile}")
    ordered = sorted(samples)
    rank = math.ceil(percentile * len(ordered) / 100.0)
    return ordered[max(rank, 1) - 1]


@dataclass(frozen=True)
class LatencySummary:
    sample_count: int
    p95_ms: float
    min_ms: float
    max_ms: float


class LatencyRecorder:
    """Rolling per-turn latency sampler with a P95 report every ``window_size`` samples."""

    def __init__(self, window_size: int = DEFAULT_WINDOW_SIZE):
        if window_size < 1:
            raise ValueError("window_size must be >= 1")
        self.window_size = window_size
        self._samples: List[float] = []
        self.last_summary: Optional[LatencySummary] = None

    @property
    def samples(self) -> List[float]:
        return list(self._samples)

    def record(self, latency_ms: float) -> Optional[LatencySummary]:
        """
        Add one sample.

        Returns:
            The summary when this sample completed a window, otherwise None.
        """
        latency_ms = max(0.0, float(latency_ms))
        self._samples.append(latency_ms)
        _TURN_LATENCY_SECONDS.observe(latency_ms / 1000.0)
        logger.debug("Turn latency recorded", latency_ms=round(latency_ms, 1),
                     window_fill=len(self._samples), window_size=self.window_size)

        if len(self._samples) < self.window_size:
            return None

        summary = LatencySummary(
            sample_count=len(self._samples),
            p95_ms=nearest_rank_percentile(self._samples, DEFAULT_PERCENTILE),
            min_ms=min(self._samples),
            max_ms=max(self._samples),
        )
        self._samples.clear()
        self.last_summary = summary
        _TURN_LATENCY_P95_MS.set(summary.p95_ms)
        logger.info(
            "Turn latency summary",
            samples=summary.sample_count,
            p95_ms=round(summary.p95_ms, 1),
            min_ms=round(summary.min_ms, 1),
            max_ms=round(summary.max_ms, 1),
        )
        return summary

    def reset(self) -> None:
        self._samples.clear()
