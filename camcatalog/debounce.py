from __future__ import annotations

import asyncio
import heapq
import itertools
from typing import Callable, Optional, Protocol

from camcatalog import get_logger
from camcatalog.config import DEFAULT_SEARCH_DEBOUNCE_MS

LOGGER = get_logger()


class DelayedTask(Protocol):
    def cancel(self) -> None: ...

    def cancelled(self) -> bool: ...


class Scheduler(Protocol):
    def call_later(self, delay: float, callback: Callable[[], None]) -> DelayedTask: ...

    def time(self) -> float: ...


class AsyncioScheduler:
    """Schedules callbacks on an asyncio event loop; handles are loop TimerHandles."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay: float, callback: Callable[[], None]) -> DelayedTask:
        return self.loop.call_later(delay, callback)

    def time(self) -> float:
        return self.loop.time()


class _ManualTask:
    __slots__ = ("due", "callback", "_cancelled", "_done")

    def __init__(self, due: float, callback: Callable[[], None]) -> None:
        self.due = due
        self.callback = callback
        self._cancelled = False
        self._done = False

    def cancel(self) -> None:
        if not self._done:
            self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled


class ManualScheduler:
    """Virtual clock. Nothing runs until ``advance`` moves time past a due point."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = start
        self._queue: list[tuple[float, int, _ManualTask]] = []
        self._seq = itertools.count()

    def time(self) -> float:
        return self._now

    def call_later(self, delay: float, callback: Callable[[], None]) -> DelayedTask:
        task = _ManualTask(self._now + max(0.0, delay), callback)
        heapq.heappush(self._queue, (task.due, next(self._seq), task))
        return task

    def pending(self) -> int:
        return sum(1 for _, _, task in self._queue if not task.cancelled())

    def advance(self, seconds: float) -> int:
        """Move the clock forward, running due callbacks in order. Returns how many ran."""
        target = self._now + seconds
        ran = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, task = heapq.heappop(self._queue)
            if task.cancelled():
                continue
            self._now = due
            task._done = True
            task.callback()
            ran += 1
        self._now = target
        return ran


class SearchDebouncer:
    """Forward only the last value of a burst of input changes.

    Each ``push`` cancels the pending emission and schedules a new one
    ``delay_ms`` later, so ``emit`` sees at most one value per quiet period.
    After ``close`` nothing is ever emitted again.
    """

    def __init__(
        self,
        emit: Callable[[str], None],
        scheduler: Scheduler,
        *,
        delay_ms: int = DEFAULT_SEARCH_DEBOUNCE_MS,
    ) -> None:
        self._emit = emit
        self._scheduler = scheduler
        self._delay = max(0, delay_ms) / 1000.0
        self._pending: Optional[DelayedTask] = None
        self._value: Optional[str] = None
        self._closed = False

    @property
    def pending(self) -> bool:
        return self._pending is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def push(self, value: str) -> None:
        if self._closed:
            return
        self._cancel_pending()
        self._value = value
        self._pending = self._scheduler.call_later(self._delay, self._fire)

    def flush(self) -> None:
        if self._pending is None or self._closed:
            return
        self._cancel_pending()
        self._deliver()

    def close(self) -> None:
        self._cancel_pending()
        self._value = None
        self._closed = True

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None

    def _fire(self) -> None:
        self._pending = None
        if self._closed:
            return
        self._deliver()

    def _deliver(self) -> None:
        value = self._value or ""
        self._value = None
        LOGGER.debug("Search input settled on %r", value)
        self._emit(value)
