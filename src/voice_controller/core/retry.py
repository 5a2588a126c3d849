"""
Bounded, fixed-delay retry policy for call start failures.

Transport failures seen by the widget are short hiccups (dropped
websockets, signalling timeouts), so a small number of restarts after a
fixed delay is enough; there is no exponential backoff.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Optional

import structlog
from prometheus_client import Counter

from ..config.defaults import DEFAULT_MAX_RETRIES, DEFAULT_RETRY_DELAY_MS
from .models import Session

logger = structlog.get_logger(__name__)

MAX_RETRIES = DEFAULT_MAX_RETRIES

RETRYABLE_KEYWORDS: FrozenSet[str] = frozenset({
    "network",
    "connection",
    "timeout",
    "websocket",
    "meeting has ended",
    "failed to connect",
})

_RETRY_DECISIONS = Counter(
    "voice_controller_retries_total",
    "Retry policy decisions after transport errors",
    labelnames=("outcome",),
)


def is_retryable(message: Optional[str]) -> bool:
    """Case-insensitive keyword match against the retryable error set."""
    if not message:
        return False
    text = message.lower()
    return any(keyword in text for keyword in RETRYABLE_KEYWORDS)


@dataclass(frozen=True)
class RetryDecision:
    retry: bool
    attempt: int
    delay_ms: int
    status_message: str
    outcome: str  # scheduled | exhausted | non_retryable


class RetryPolicy:
    """Decides whether a failed call should be restarted automatically."""

    def __init__(self, max_retries: int = MAX_RETRIES, delay_ms: int = DEFAULT_RETRY_DELAY_MS):
        self.max_retries = max_retries
        self.delay_ms = delay_ms

    def evaluate(self, session: Session, error_message: str) -> RetryDecision:
        """
        Classify ``error_message`` and update the session's retry budget.

        The retry count is read from the live session at call time. A
        scheduled retry increments it; a terminal decision resets it to 0 so
        the next manual start gets a fresh budget.
        """
        retryable = is_retryable(error_message)

        if retryable and session.retry_count < self.max_retries:
            session.retry_count += 1
            decision = RetryDecision(
                retry=True,
                attempt=session.retry_count,
                delay_ms=self.delay_ms,
                status_message=f"Connection issue, retrying ({session.retry_count}/{self.max_retries})...",
                outcome="scheduled",
            )
        elif retryable:
            decision = RetryDecision(
                retry=False,
                attempt=session.retry_count,
                delay_ms=0,
                status_message=f"Connection failed after {self.max_retries} retries: {error_message}",
                outcome="exhausted",
            )
            session.retry_count = 0
        else:
            decision = RetryDecision(
                retry=False,
                attempt=session.retry_count,
                delay_ms=0,
                status_message=f"Error: {error_message}",
                outcome="non_retryable",
            )
            session.retry_count = 0

        _RETRY_DECISIONS.labels(decision.outcome).inc()
        logger.info(
            "Retry policy decision",
            outcome=decision.outcome,
            attempt=decision.attempt,
            max_retries=self.max_retries,
            error=error_message,
        )
        return decision
