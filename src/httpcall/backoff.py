"""Backoff policies: wait durations between timeout retries.

Every policy exposes the same two-method contract so the engine stays
agnostic to the strategy in use:

- ``reset()`` returns the policy to its initial wait value.
- ``next()`` returns the wait (seconds) before the next retry and advances
  the policy's internal progression.

The curve math is delegated to Tenacity's wait strategies; each policy only
tracks how many waits it has handed out since the last reset.  Policies are
not synchronised: sharing one instance between concurrent calls interleaves
their ``next()`` calls, which is the caller's responsibility to avoid.

Example:
    >>> backoff = ExponentialBackoff(initial=0.5, maximum=4.0)
    >>> [backoff.next() for _ in range(4)]
    [0.5, 1.0, 2.0, 4.0]
    >>> backoff.reset()
    >>> backoff.next()
    0.5
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Protocol, runtime_checkable

from tenacity import RetryCallState, wait_exponential, wait_fixed, wait_random_exponential
from tenacity.wait import wait_base

__all__ = [
    "Backoff",
    "ConstantBackoff",
    "ExponentialBackoff",
    "JitteredBackoff",
    "BackoffWait",
]


@runtime_checkable
class Backoff(Protocol):
    """Protocol implemented by every backoff policy."""

    def reset(self) -> None:
        """Return the policy to its initial wait value."""
        ...

    def next(self) -> float:
        """Return the next wait in seconds and advance the policy."""
        ...


class _CurveBackoff:
    """Counts waits handed out and evaluates a Tenacity wait strategy for each."""

    def __init__(self, strategy: wait_base) -> None:
        self._strategy = strategy
        self._attempt = 0

    def reset(self) -> None:
        self._attempt = 0

    def next(self) -> float:
        self._attempt += 1
        # Tenacity strategies only read ``attempt_number`` from the retry state.
        state = SimpleNamespace(attempt_number=self._attempt)
        return max(0.0, float(self._strategy(state)))  # type: ignore[arg-type]

    def __repr__(self) -> str:
        return f"{type(self).__name__}(attempt={self._attempt})"


class ConstantBackoff(_CurveBackoff):
    """Backoff that always waits the same interval.

    Args:
        interval: Seconds to wait before every retry.
    """

    def __init__(self, interval: float) -> None:
        if interval < 0:
            raise ValueError("interval must be >= 0")
        super().__init__(wait_fixed(interval))
        self.interval = float(interval)

    def reset(self) -> None:
        """No-op: a constant policy has no progression to clear."""

    def __repr__(self) -> str:
        return f"ConstantBackoff(interval={self.interval})"


class ExponentialBackoff(_CurveBackoff):
    """Backoff doubling (by default) from ``initial`` up to ``maximum``."""

    def __init__(self, initial: float, maximum: float, base: float = 2.0) -> None:
        if initial < 0 or maximum < 0:
            raise ValueError("initial and maximum must be >= 0")
        super().__init__(wait_exponential(multiplier=initial, max=maximum, exp_base=base))
        self.initial = float(initial)
        self.maximum = float(maximum)
        self.base = float(base)


class JitteredBackoff(_CurveBackoff):
    """Full-jitter exponential backoff: uniform in ``[0, initial * 2**n]`` capped at ``maximum``."""

    def __init__(self, initial: float, maximum: float) -> None:
        if initial < 0 or maximum < 0:
            raise ValueError("initial and maximum must be >= 0")
        super().__init__(wait_random_exponential(multiplier=initial, max=maximum))
        self.initial = float(initial)
        self.maximum = float(maximum)


class BackoffWait(wait_base):
    """Tenacity wait strategy that asks a :class:`Backoff` for every retry sleep."""

    def __init__(self, backoff: Backoff) -> None:
        self._backoff = backoff

    def __call__(self, retry_state: RetryCallState) -> float:
        return max(0.0, float(self._backoff.next()))
