"""Deadlines and cancellation shared by long-running operations."""

from __future__ import annotations

import threading
import time


class ContextError(Exception):
    """Raised when an operation ends because its deadline is done."""


class DeadlineExceeded(ContextError):
    """The deadline passed before the operation completed."""

    def __init__(self, message: str = "context deadline exceeded") -> None:
        super().__init__(message)


class Cancelled(ContextError):
    """The deadline was cancelled before the operation completed."""

    def __init__(self, message: str = "context canceled") -> None:
        super().__init__(message)


class Deadline:
    """A point in time after which work should stop, which may also be cancelled.

    ``timeout`` is a number of seconds from now, or ``None`` for no time limit.
    A zero or negative timeout gives a deadline that is already done.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._expires = None if timeout is None else time.monotonic() + timeout
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._reason: type[ContextError] | None = None

    def _finish(self, reason: type[ContextError]) -> None:
        with self._lock:
            if self._reason is None:
                self._reason = reason
                self._event.set()

    def _check_expiry(self) -> None:
        if self._expires is not None and time.monotonic() >= self._expires:
            self._finish(DeadlineExceeded)

    def cancel(self) -> None:
        """Cancel the deadline; it has no effect once the deadline is done."""
        self._finish(Cancelled)

    def done(self) -> bool:
        """Return True once the deadline has passed or been cancelled."""
        self._check_expiry()
        return self._event.is_set()

    def wait(self, timeout: float | None = None) -> bool:
        """Block until the deadline is done or ``timeout`` seconds elapse."""
        limit = None if timeout is None else time.monotonic() + timeout
        while not self.done():
            waits = [t for t in (self.remaining(), None if limit is None else limit - time.monotonic()) if t is not None]
            step = min(waits) if waits else None
            if step is not None and step <= 0:
                if limit is not None and time.monotonic() >= limit:
                    return self.done()
                continue
            self._event.wait(step)
        return True

    def remaining(self) -> float | None:
        """Seconds left before the deadline, or None when there is no time limit."""
        if self._expires is None:
            return None
        return self._expires - time.monotonic()

    def error(self) -> ContextError | None:
        """The error describing why the deadline is done, or None while it is not."""
        if not self.done():
            return None
        assert self._reason is not None
        return self._reason()