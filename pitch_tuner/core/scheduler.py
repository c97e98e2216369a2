"""Single-threaded cooperative scheduler driving the frame loop."""

from __future__ import annotations

import itertools
import time
from dataclasses import dataclass, field
from typing import Callable, ClassVar, List, Optional

from ..logger import get_logger
from .interfaces import IScheduler

logger = get_logger(__name__)


@dataclass(eq=False)
class ScheduledCall:
    """Handle for a pending callback."""

    callback: Callable[[], None]
    due: float  # Monotonic time in seconds
    seq: int
    cancelled: bool = field(default=False)

    @property
    def active(self) -> bool:
        return not self.cancelled


class FrameScheduler(IScheduler):
    """Runs callbacks one at a time from a display-rate loop.

    Nothing runs on its own thread: callers drive it with run_pending() or
    run(). Callbacks scheduled while a tick is running wait for the next
    tick, so a callback that reschedules itself runs once per tick.
    """

    DEFAULT_REFRESH_RATE: ClassVar[float] = 60.0  # Hz

    def __init__(
        self,
        refresh_rate: float = DEFAULT_REFRESH_RATE,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if refresh_rate <= 0:
            raise ValueError(f"refresh_rate must be positive, got {refresh_rate}")
        self._interval = 1.0 / refresh_rate
        self._clock = clock
        self._sleep = sleep
        self._pending: List[ScheduledCall] = []
        self._counter = itertools.count()

    def schedule_next(self, callback: Callable[[], None]) -> ScheduledCall:
        return self._add(callback, self._clock())

    def call_later(self, delay_ms: float, callback: Callable[[], None]) -> ScheduledCall:
        return self._add(callback, self._clock() + max(0.0, delay_ms) / 1000.0)

    def cancel(self, handle: Optional[ScheduledCall]) -> None:
        if handle is None or handle.cancelled:
            return
        handle.cancelled = True
        if handle in self._pending:
            self._pending.remove(handle)

    def _add(self, callback: Callable[[], None], due: float) -> ScheduledCall:
        handle = ScheduledCall(callback=callback, due=due, seq=next(self._counter))
        self._pending.append(handle)
        return handle

    @property
    def pending(self) -> int:
        """Number of callbacks waiting to run."""
        return len(self._pending)

    def run_pending(self) -> int:
        """Run every callback that is due, in scheduling order.

        Returns:
            The number of callbacks that ran
        """
        now = self._clock()
        due = sorted(
            (call for call in self._pending if call.due <= now),
            key=lambda call: (call.due, call.seq),
        )
        ran = 0
        for call in due:
            # An earlier callback in this tick may have cancelled it
            if call.cancelled:
                continue
            self._pending.remove(call)
            call.cancelled = True
            call.callback()
            ran += 1
        return ran

    def run(
        self,
        until: Optional[Callable[[], bool]] = None,
        duration: Optional[float] = None,
    ) -> None:
        """Tick at the refresh rate until `until()` is true, the duration
        has passed, or nothing is left to run."""
        start = self._clock()
        while self._pending:
            if until is not None and until():
                break
            if duration is not None and self._clock() - start >= duration:
                break
            self.run_pending()
            self._sleep(self._interval)
        logger.debug("Scheduler loop finished")
