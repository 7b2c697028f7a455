from __future__ import annotations

import threading
from typing import Any, Callable, List, Optional, Tuple

Callback = Callable[[], None]
Scheduler = Callable[[float, Callback], Any]  # returns a handle with .cancel()


def thread_scheduler(delay: float, fn: Callback) -> threading.Timer:
    """Runs fn once after delay seconds on a daemon timer thread."""
    timer = threading.Timer(delay, fn)
    timer.daemon = True
    timer.start()
    return timer


class _ManualHandle:
    def __init__(self) -> None:
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class ManualScheduler:
    """Collects scheduled calls and runs them only when asked. Used by the CLI and tests."""

    def __init__(self) -> None:
        self._queue: List[Tuple[float, Callback, _ManualHandle]] = []

    def __call__(self, delay: float, fn: Callback) -> _ManualHandle:
        handle = _ManualHandle()
        self._queue.append((delay, fn, handle))
        return handle

    def pending(self) -> int:
        return sum(1 for _, _, h in self._queue if not h.cancelled)

    def run_next(self) -> bool:
        """Runs the oldest live call. Returns False when nothing was pending."""
        while self._queue:
            _, fn, handle = self._queue.pop(0)
            if handle.cancelled:
                continue
            fn()
            return True
        return False

    def run_all(self, limit: int = 1000) -> int:
        ran = 0
        while ran < limit and self.run_next():
            ran += 1
        return ran


class StepTicker:
    """
    Owns at most one pending delayed call.

    Scheduling replaces whatever was pending. Leaving the context (or calling
    cancel) guarantees nothing scheduled through this ticker fires later.
    """

    def __init__(self, delay: float, scheduler: Optional[Scheduler] = None) -> None:
        self.delay = delay
        self._scheduler = scheduler or thread_scheduler
        self._lock = threading.Lock()
        self._handle: Any = None
        self._token = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._handle is not None

    def schedule(self, fn: Callback) -> None:
        with self._lock:
            self._cancel_locked()
            self._token += 1
            token = self._token

            def fire() -> None:
                with self._lock:
                    if token != self._token or self._handle is None:
                        return
                    self._handle = None
                fn()

            self._handle = self._scheduler(self.delay, fire)

    def cancel(self) -> bool:
        with self._lock:
            return self._cancel_locked()

    def _cancel_locked(self) -> bool:
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        self._token += 1
        return True

    def __enter__(self) -> 'StepTicker':
        return self

    def __exit__(self, *exc: Any) -> None:
        self.cancel()
