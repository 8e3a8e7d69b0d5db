"""Debounced, sequence-numbered city autocomplete."""
from __future__ import annotations

import itertools
import threading
from typing import Callable, Generic, Optional, TypeVar

from utils.logging_utils import get_tagged_logger

logger = get_tagged_logger(__name__, tag="autocomplete")

T = TypeVar("T")


class RequestSequencer:
    """Hands out strictly increasing request numbers, safe across threads."""

    def __init__(self, start: int = 1):
        self._counter = itertools.count(start)
        self._lock = threading.Lock()
        self._latest = start - 1

    def next(self) -> int:
        with self._lock:
            self._latest = next(self._counter)
            return self._latest

    @property
    def latest(self) -> int:
        with self._lock:
            return self._latest


class Debouncer(Generic[T]):
    """Call `callback` with the last submitted value once input has been quiet for `wait_seconds`.

    Each submit() restarts the quiet period; earlier values are dropped.
    A callback already running is not interrupted.
    """

    def __init__(self, callback: Callable[[T], None], wait_seconds: float):
        self._callback = callback
        self.wait_seconds = wait_seconds
        self._timer: Optional[threading.Timer] = None
        self._running: Optional[threading.Thread] = None  # timer thread whose callback has not returned
        self._lock = threading.Lock()

    def submit(self, value: T) -> None:
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.wait_seconds, self._fire, args=(value,))
            self._timer.daemon = True
            self._timer.start()

    def cancel(self) -> None:
        """Drop any pending value. A callback already running is left to finish."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def flush(self) -> None:
        """Wait until the pending timer has fired and its callback has returned."""
        with self._lock:
            threads = [self._timer, self._running]
        current = threading.current_thread()
        for thread in threads:
            if thread is not None and thread is not current:
                thread.join()

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._timer is not None and self._timer.is_alive()

    @property
    def running(self) -> bool:
        with self._lock:
            return self._running is not None

    def _fire(self, value: T) -> None:
        current = threading.current_thread()
        with self._lock:
            if self._timer is not current:
                # cancelled or superseded after the wait elapsed
                return
            self._timer = None
            self._running = current
        logger.debug("Debounce window elapsed", extra={"value": value})
        try:
            self._callback(value)
        finally:
            with self._lock:
                if self._running is current:
                    self._running = None
