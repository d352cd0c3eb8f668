"""
Timer primitives shared by the roaming controller and the state machine.

Both components only need "run this callback in N seconds, and let me
cancel it". asyncio's event loop already provides exactly that through
loop.call_later(), so a Scheduler is anything with the same signature.
Tests pass a fake clock instead of a real loop.
"""

import logging
import threading
from typing import Any, Callable, Optional, Protocol

logger = logging.getLogger(__name__)


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Subset of asyncio.AbstractEventLoop used by the core."""

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> Cancellable: ...


class PeriodicTimer:
    """
    Fires a callback every `interval` seconds until stopped.

    The next fire is scheduled before the callback runs, so the cadence
    does not drift with callback duration (like setInterval).
    """

    def __init__(self, scheduler: Scheduler, interval: float, callback: Callable[[], None]):
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        self._scheduler = scheduler
        self._interval = interval
        self._callback = callback
        self._handle: Optional[Cancellable] = None

    @property
    def running(self) -> bool:
        return self._handle is not None

    @property
    def interval(self) -> float:
        return self._interval

    def start(self):
        """Start firing. No-op if already running."""
        if self._handle is not None:
            return
        self._schedule()

    def stop(self):
        """Stop firing. No-op if not running."""
        if self._handle is None:
            return
        self._handle.cancel()
        self._handle = None

    def _schedule(self):
        self._handle = self._scheduler.call_later(self._interval, self._fire)

    def _fire(self):
        if self._handle is None:
            return
        self._schedule()
        self._callback()


class PendingRevert:
    """
    Single-slot handle for a delayed callback.

    Installing a new task always cancels the previous one first, under a
    lock. Each install bumps a generation counter and the fired task checks
    it, so a replaced task never runs even if its timer was already
    dequeued when cancel() was called.
    """

    def __init__(self, scheduler: Scheduler):
        self._scheduler = scheduler
        self._lock = threading.Lock()
        self._handle: Optional[Cancellable] = None
        self._generation = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._handle is not None

    def replace(self, delay: Optional[float], callback: Optional[Callable[[], None]]):
        """
        Cancel whatever is pending and install `callback` to run after `delay`.

        Args:
            delay: Seconds until the callback runs; None installs nothing
            callback: Callable to run; None installs nothing
        """
        with self._lock:
            if self._handle is not None:
                self._handle.cancel()
                self._handle = None
            self._generation += 1

            if delay is None or callback is None:
                return

            self._handle = self._scheduler.call_later(
                delay, self._fire, self._generation, callback
            )

    def cancel(self):
        self.replace(None, None)

    def _fire(self, generation: int, callback: Callable[[], None]):
        with self._lock:
            if generation != self._generation:
                logger.debug("Dropping stale revert")
                return
            self._handle = None
        callback()
