from __future__ import annotations

"""Cancellable delayed calls on the editor's single timeline.

Controllers never sleep or spawn threads: they ask a :class:`Scheduler` to
call them back later and may cancel the request.  Two implementations are
provided:

- :class:`EventQueueScheduler` keeps an explicit event queue driven by a
  virtual clock.  Tests and the CLI advance it by hand.
- :class:`TkAfterScheduler` delegates to a widget's ``after`` /
  ``after_cancel`` pair so callbacks run on the Tk event loop.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
import heapq
import itertools
import logging
from typing import Any, Callable, List, Optional

__all__ = ["Scheduler", "ScheduledCall", "EventQueueScheduler", "TkAfterScheduler"]

logger = logging.getLogger(__name__)


class Scheduler(ABC):
    """Source of cancellable one-shot timers."""

    @abstractmethod
    def call_later(self, delay_ms: int, callback: Callable[[], Any]) -> Any:
        """Run *callback* once after *delay_ms*; return a handle for :meth:`cancel`."""

    @abstractmethod
    def cancel(self, handle: Any) -> None:
        """Cancel a pending call.  Cancelling a fired or unknown handle is a no-op."""


@dataclass(order=True)
class ScheduledCall:
    due_ms: int
    seq: int
    callback: Callable[[], Any] = field(compare=False)
    cancelled: bool = field(default=False, compare=False)


class EventQueueScheduler(Scheduler):
    """Deterministic scheduler with a virtual millisecond clock."""

    def __init__(self) -> None:
        self.now_ms = 0
        self._queue: List[ScheduledCall] = []
        self._counter = itertools.count()

    def call_later(self, delay_ms: int, callback: Callable[[], Any]) -> ScheduledCall:
        call = ScheduledCall(self.now_ms + max(0, int(delay_ms)), next(self._counter), callback)
        heapq.heappush(self._queue, call)
        return call

    def cancel(self, handle: Optional[ScheduledCall]) -> None:
        if handle is not None:
            handle.cancelled = True

    @property
    def pending_count(self) -> int:
        return sum(1 for call in self._queue if not call.cancelled)

    def advance(self, ms: int) -> int:
        """Move the clock forward by *ms* and run every call that became due.

        Calls scheduled by callbacks run too when they fall inside the
        window.  Returns the number of callbacks run.
        """
        target = self.now_ms + max(0, int(ms))
        ran = 0
        while self._queue and self._queue[0].due_ms <= target:
            call = heapq.heappop(self._queue)
            if call.cancelled:
                continue
            self.now_ms = call.due_ms
            call.callback()
            ran += 1
        self.now_ms = target
        return ran

    def run_pending(self) -> int:
        """Run every pending call, advancing the clock as far as needed."""
        ran = 0
        while True:
            live = [call for call in self._queue if not call.cancelled]
            if not live:
                self._queue.clear()
                return ran
            ran += self.advance(max(0, min(c.due_ms for c in live) - self.now_ms))


class TkAfterScheduler(Scheduler):
    """Adapter for any object exposing Tk's ``after`` and ``after_cancel``."""

    def __init__(self, widget: Any) -> None:
        self.widget = widget

    def call_later(self, delay_ms: int, callback: Callable[[], Any]) -> Any:
        return self.widget.after(int(delay_ms), callback)

    def cancel(self, handle: Any) -> None:
        if handle is None:
            return
        try:
            self.widget.after_cancel(handle)
        except ValueError:
            # Tk rejects ids that already fired on some versions
            logger.debug("after_cancel ignored for handle %r", handle)
