"""Cooperative cancellation and deadlines for logical calls.

A :class:`CancellationToken` governs the whole lifetime of one ``execute``
call.  Callers cancel it from another thread, or give it a deadline up front;
the engine derives a strictly shorter-lived child token for every attempt so
that an attempt-level timeout never outlives the call.  The implementation
avoids thread interruption: the engine checks the token before each attempt
and blocks on it (rather than on a bare timer) while waiting between retries,
so whichever fires first, the wait or the token, wins.
"""

from __future__ import annotations

import threading
import time
import weakref
from typing import Optional

from .errors import CallCancelledError, DeadlineExceededError

__all__ = ["CancellationToken"]


class CancellationToken:
    """Thread-safe cancellation token with an optional deadline.

    Args:
        timeout: Optional number of seconds after which the token expires on
            its own and reports :class:`DeadlineExceededError`.

    Examples:
        >>> token = CancellationToken()
        >>> token.is_cancelled()
        False
        >>> token.cancel("shutting down")
        >>> token.is_cancelled()
        True
    """

    def __init__(self, timeout: Optional[float] = None) -> None:
        """Initialize a new cancellation token."""
        self._is_cancelled = threading.Event()
        self._lock = threading.Lock()
        self._reason: Optional[str] = None
        self._children: "weakref.WeakSet[CancellationToken]" = weakref.WeakSet()
        self._deadline: Optional[float] = None
        if timeout is not None:
            self._deadline = time.monotonic() + max(0.0, float(timeout))

    @property
    def deadline(self) -> Optional[float]:
        """Monotonic deadline of this token, or ``None`` when unbounded."""
        return self._deadline

    def cancel(self, reason: Optional[str] = None) -> None:
        """Signal cancellation to this token and every token derived from it."""
        with self._lock:
            if not self._is_cancelled.is_set():
                self._reason = reason
                self._is_cancelled.set()
            children = list(self._children)
        for child in children:
            child.cancel(reason)

    def is_cancelled(self) -> bool:
        """Return ``True`` once cancelled explicitly or after the deadline passed."""
        if self._is_cancelled.is_set():
            return True
        return self._deadline is not None and time.monotonic() >= self._deadline

    def remaining(self) -> Optional[float]:
        """Seconds left before the deadline (never negative), or ``None`` when unbounded."""
        if self._deadline is None:
            return None
        return max(0.0, self._deadline - time.monotonic())

    def derive(self, timeout: Optional[float] = None) -> "CancellationToken":
        """Create a child token bounded by this token's deadline and ``timeout``.

        The child is cancelled whenever this token is cancelled; cancelling the
        child never affects this token.
        """
        child = CancellationToken()
        candidates = [d for d in (self._deadline,) if d is not None]
        if timeout is not None:
            candidates.append(time.monotonic() + max(0.0, float(timeout)))
        if candidates:
            child._deadline = min(candidates)
        with self._lock:
            self._children.add(child)
            cancelled = self._is_cancelled.is_set()
            reason = self._reason
        if cancelled:
            child.cancel(reason)
        return child

    def error(self) -> CallCancelledError:
        """Return the exception describing why this token fired."""
        if self._is_cancelled.is_set():
            return CallCancelledError(self._reason)
        return DeadlineExceededError()

    def raise_if_cancelled(self) -> None:
        """Raise :meth:`error` when the token has fired."""
        if self.is_cancelled():
            raise self.error()

    def sleep(self, seconds: float) -> None:
        """Block for ``seconds`` unless the token fires first.

        Raises:
            CallCancelledError: If the token is cancelled or its deadline
                passes before the wait completes.
        """
        end = time.monotonic() + max(0.0, float(seconds))
        while True:
            self.raise_if_cancelled()
            pause = end - time.monotonic()
            if pause <= 0:
                return
            remaining = self.remaining()
            if remaining is not None:
                pause = min(pause, remaining)
            self._is_cancelled.wait(pause)

    def __repr__(self) -> str:
        state = "cancelled" if self.is_cancelled() else "active"
        return f"CancellationToken({state}, remaining={self.remaining()})"
