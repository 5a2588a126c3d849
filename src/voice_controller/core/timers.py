"""
Named, cancelable delayed actions.

Each slot holds at most one pending handle. Arming an occupied slot cancels
the previous handle first, so two actions for the same slot can never both
be pending. Scheduling goes through the running asyncio loop's
``call_later`` unless a scheduler with the same method is injected.
"""

from __future__ import annotations

import asyncio
import inspect
from enum import Enum
from typing import Any, Callable, Dict, Optional, Set

import structlog

logger = structlog.get_logger(__name__)


class TimerSlot(Enum):
    SILENCE = "silence"        # contextual filler prompt after user silence
    ENDING = "ending"          # inactivity close after an assistant turn
    HANGUP = "hangup"          # grace delay in the ending state before stopping
    PROCESSING = "processing"  # busy-indicator debounce
    RETRY = "retry"            # delayed automatic restart after a transient error


class _PendingTimer:
    __slots__ = ("slot", "handle", "action")

    def __init__(self, slot: TimerSlot, action: Callable[[], Any]):
        self.slot = slot
        self.action = action
        self.handle = None


class TimerSet:
    """Single-shot timers keyed by slot."""

    def __init__(self, scheduler: Optional[Any] = None):
        """
        Args:
            scheduler: Object exposing ``call_later(delay_seconds, callback, *args)``
                and returning a handle with ``cancel()``. Defaults to the running
                asyncio loop, looked up when a timer is armed.
        """
        self._scheduler = scheduler
        self._pending: Dict[TimerSlot, _PendingTimer] = {}
        self._tasks: Set[asyncio.Future] = set()

    def _get_scheduler(self):
        if self._scheduler is not None:
            return self._scheduler
        return asyncio.get_running_loop()

    def arm(self, slot: TimerSlot, delay_ms: float, action: Callable[[], Any]) -> None:
        """Schedule ``action`` after ``delay_ms``, replacing anything pending in ``slot``."""
        self.cancel(slot)
        entry = _PendingTimer(slot, action)
        entry.handle = self._get_scheduler().call_later(max(0.0, delay_ms) / 1000.0, self._fire, entry)
        self._pending[slot] = entry
        logger.debug("Timer armed", slot=slot.value, delay_ms=delay_ms)

    def cancel(self, slot: TimerSlot) -> bool:
        """Cancel the pending handle in ``slot``. Returns True if one was pending."""
        entry = self._pending.pop(slot, None)
        if entry is None:
            return False
        entry.handle.cancel()
        logger.debug("Timer cancelled", slot=slot.value)
        return True

    def cancel_all(self) -> int:
        """Cancel every pending handle. Returns how many were cancelled."""
        cancelled = 0
        for slot in list(self._pending):
            if self.cancel(slot):
                cancelled += 1
        return cancelled

    def cancel_running(self) -> None:
        """Cancel coroutine actions that already fired but have not finished."""
        for task in list(self._tasks):
            task.cancel()
        self._tasks.clear()

    def is_armed(self, slot: TimerSlot) -> bool:
        return slot in self._pending

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def _fire(self, entry: _PendingTimer) -> None:
        # A handle replaced or cancelled after its callback was queued must not run
        if self._pending.get(entry.slot) is not entry:
            return
        del self._pending[entry.slot]
        logger.debug("Timer fired", slot=entry.slot.value)

        result = entry.action()
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result, loop=asyncio.get_running_loop())
            self._tasks.add(task)
            task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Future) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Timer action failed", error=str(exc), exc_info=exc)
