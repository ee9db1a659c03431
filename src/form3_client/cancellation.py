"""
Cancellation tokens for in-flight requests.

A token is shared between the caller and the client. The caller may cancel it
from any thread, or give it a deadline up front; the client checks it before
sending and keeps watching it while the request is in flight.
"""

import threading
import time

from .config import Form3Error


class CancellationError(Form3Error):
    """The caller cancelled the request or its deadline passed."""

    pass


class CancellationToken:
    """Thread-safe cancel signal with an optional deadline."""

    def __init__(self, deadline: float | None = None):
        """
        Args:
            deadline: Absolute ``time.monotonic()`` value after which the
                token counts as cancelled
        """
        self._event = threading.Event()
        self._deadline = deadline

    @classmethod
    def with_timeout(cls, seconds: float) -> "CancellationToken":
        """Token that expires ``seconds`` from now."""
        return cls(deadline=time.monotonic() + seconds)

    def cancel(self) -> None:
        self._event.set()

    @property
    def deadline(self) -> float | None:
        return self._deadline

    @property
    def expired(self) -> bool:
        return self._deadline is not None and time.monotonic() >= self._deadline

    @property
    def cancelled(self) -> bool:
        """True once ``cancel()`` was called or the deadline passed."""
        return self._event.is_set() or self.expired

    @property
    def reason(self) -> str:
        if self._event.is_set():
            return "request cancelled"
        if self.expired:
            return "deadline exceeded"
        return ""

    def remaining(self) -> float | None:
        """Seconds until the deadline (never negative), or None without one."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def wait(self, timeout: float | None = None) -> bool:
        """Block until cancelled, the deadline passes, or ``timeout`` elapses.

        Returns:
            True if the token is cancelled when the wait ends
        """
        remaining = self.remaining()
        if remaining is not None and (timeout is None or remaining < timeout):
            timeout = remaining
        self._event.wait(timeout)
        return self.cancelled

    def raise_if_cancelled(self) -> None:
        if self.cancelled:
            raise CancellationError(self.reason)
