from __future__ import annotations

import heapq
import itertools
from collections.abc import Callable

FRAME_INTERVAL_MS = 16.0


def ease_out_cubic(t: float) -> float:
    t = min(max(t, 0.0), 1.0)
    return 1.0 - (1.0 - t) ** 3


class FrameScheduler:
    """Cooperative single-thread clock.

    Callbacks run only from ``advance``; time never moves on its own, which
    makes animation and debounce behaviour deterministic in tests.
    """

    def __init__(self) -> None:
        self._now_ms = 0.0
        self._queue: list[tuple[float, int, Callable[[], None]]] = []
        self._cancelled: set[int] = set()
        self._ids = itertools.count()

    @property
    def now_ms(self) -> float:
        return self._now_ms

    @property
    def pending(self) -> int:
        return sum(1 for _due, handle, _cb in self._queue if handle not in self._cancelled)

    def schedule(self, delay_ms: float, callback: Callable[[], None]) -> int:
        handle = next(self._ids)
        heapq.heappush(self._queue, (self._now_ms + max(delay_ms, 0.0), handle, callback))
        return handle

    def request_frame(self, callback: Callable[[], None]) -> int:
        return self.schedule(FRAME_INTERVAL_MS, callback)

    def cancel(self, handle: int) -> None:
        self._cancelled.add(handle)

    def advance(self, ms: float) -> int:
        """Move the clock forward, running due callbacks in time order.

        Callbacks scheduled while advancing run in the same call if they fall
        due before the new time. Returns the number of callbacks run.
        """
        target = self._now_ms + max(ms, 0.0)
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, handle, callback = heapq.heappop(self._queue)
            if handle in self._cancelled:
                self._cancelled.discard(handle)
                continue
            self._now_ms = due
            callback()
            ran += 1
        self._now_ms = target
        return ran

    def run_until_idle(self, limit_ms: float = 60_000.0) -> int:
        ran = 0
        deadline = self._now_ms + limit_ms
        while self._queue and self._queue[0][0] <= deadline:
            ran += self.advance(self._queue[0][0] - self._now_ms)
        return ran


class Debouncer:
    """Collapse bursts of calls into one callback after ``delay_ms`` of quiet."""

    def __init__(
        self,
        scheduler: FrameScheduler,
        delay_ms: float,
        callback: Callable[[], None],
    ) -> None:
        self.scheduler = scheduler
        self.delay_ms = delay_ms
        self.callback = callback
        self._handle: int | None = None

    def __call__(self) -> None:
        if self._handle is not None:
            self.scheduler.cancel(self._handle)
        self._handle = self.scheduler.schedule(self.delay_ms, self._fire)

    def _fire(self) -> None:
        self._handle = None
        self.callback()


class Animation:
    """Entrance animation driving ``on_frame(progress)`` up to 1.0.

    There is no cancellation; a later full redraw simply paints over any
    frame still in flight.
    """

    def __init__(
        self,
        scheduler: FrameScheduler,
        duration_ms: float,
        on_frame: Callable[[float], None],
        easing: Callable[[float], float] = ease_out_cubic,
    ) -> None:
        self.scheduler = scheduler
        self.duration_ms = duration_ms
        self.on_frame = on_frame
        self.easing = easing
        self._started_at: float | None = None
        self.finished = False

    def start(self) -> Animation:
        self._started_at = self.scheduler.now_ms
        if self.duration_ms <= 0:
            self.finished = True
            self.on_frame(1.0)
            return self
        self.on_frame(0.0)
        self.scheduler.request_frame(self._tick)
        return self

    def _tick(self) -> None:
        elapsed = self.scheduler.now_ms - (self._started_at or 0.0)
        linear = min(elapsed / self.duration_ms, 1.0)
        if linear >= 1.0:
            self.finished = True
            self.on_frame(1.0)
            return
        self.on_frame(self.easing(linear))
        self.scheduler.request_frame(self._tick)
