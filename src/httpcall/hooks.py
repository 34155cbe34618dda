# === NAVMAP v1 ===
# {
#   "module": "httpcall.hooks",
#   "purpose": "Ordered pre-send/post-send hook pipeline.",
#   "sections": [
#     {
#       "id": "phase",
#       "name": "Phase",
#       "anchor": "class-phase",
#       "kind": "class"
#     },
#     {
#       "id": "attemptevent",
#       "name": "AttemptEvent",
#       "anchor": "class-attemptevent",
#       "kind": "class"
#     },
#     {
#       "id": "hook",
#       "name": "Hook",
#       "anchor": "class-hook",
#       "kind": "class"
#     },
#     {
#       "id": "hookpipeline",
#       "name": "HookPipeline",
#       "anchor": "class-hookpipeline",
#       "kind": "class"
#     }
#   ]
# }
# === /NAVMAP ===

"""Ordered pre-send/post-send hook pipeline.

Hooks observe and intercept every attempt of a logical call.  Each attempt
runs the whole pipeline twice: once before the request is sent (hooks may
mutate the request, e.g. add a trace header) and once after the transport
returns (hooks may record metrics or veto the outcome).  The first hook that
returns or raises an exception stops the run; the engine treats that as a
hard abort of the call, never as a retryable failure.

Example:
    >>> def require_auth(event):
    ...     if event.phase is Phase.PRE_SEND and "Authorization" not in event.request.headers:
    ...         return PermissionError("missing credentials")
    >>> pipeline = HookPipeline([require_auth])
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Callable, Iterable, Iterator, Mapping, Optional, Protocol, Union, runtime_checkable

import httpx

from .cancellation import CancellationToken

__all__ = ["Phase", "AttemptEvent", "Hook", "HookLike", "FunctionHook", "HookPipeline"]


class Phase(enum.Enum):
    """Point in an attempt at which the pipeline runs."""

    PRE_SEND = "pre-send"
    POST_SEND = "post-send"


@dataclass
class AttemptEvent:
    """One pass through the attempt loop, shared by reference with every hook.

    Attributes:
        request: In-flight request; hooks may mutate it during ``PRE_SEND``.
        data: Read-only extension data copied from the call options.
        phase: Current invocation point.
        attempt: Zero-based attempt index.
        response: Transport response (``POST_SEND`` only).
        error: Transport error (``POST_SEND`` only).
        scope: Cancellation token bounding the current attempt.
    """

    request: httpx.Request
    data: Mapping[str, str] = field(default_factory=dict)
    phase: Phase = Phase.PRE_SEND
    attempt: int = 0
    response: Optional[httpx.Response] = None
    error: Optional[BaseException] = None
    scope: Optional[CancellationToken] = None

    def __post_init__(self) -> None:
        self.data = MappingProxyType(dict(self.data))

    def begin(self, attempt: int, scope: Optional[CancellationToken] = None) -> None:
        """Enter the ``PRE_SEND`` phase of attempt ``attempt``."""
        self.phase = Phase.PRE_SEND
        self.attempt = attempt
        self.response = None
        self.error = None
        self.scope = scope

    def complete(
        self, response: Optional[httpx.Response], error: Optional[BaseException]
    ) -> None:
        """Enter the ``POST_SEND`` phase with the transport outcome."""
        self.phase = Phase.POST_SEND
        self.response = response
        self.error = error


@runtime_checkable
class Hook(Protocol):
    """Observer/interceptor invoked before and after every transport send."""

    def handle(self, event: AttemptEvent) -> Optional[BaseException]:
        """Inspect ``event``; return (or raise) an exception to abort the call."""
        ...


HookLike = Union[Hook, Callable[[AttemptEvent], Optional[BaseException]]]


class FunctionHook:
    """Adapt a plain callable to the :class:`Hook` protocol."""

    def __init__(self, fn: Callable[[AttemptEvent], Optional[BaseException]]) -> None:
        self._fn = fn

    def handle(self, event: AttemptEvent) -> Optional[BaseException]:
        return self._fn(event)

    def __repr__(self) -> str:
        return f"FunctionHook({getattr(self._fn, '__qualname__', self._fn)!r})"


def _as_hook(hook: HookLike) -> Hook:
    if isinstance(hook, Hook):
        return hook
    if callable(hook):
        return FunctionHook(hook)
    raise TypeError(f"hooks must be callables or define handle(), got {type(hook).__name__}")


class HookPipeline:
    """Immutable, ordered sequence of hooks with early termination on error."""

    def __init__(self, hooks: Iterable[HookLike] = ()) -> None:
        self._hooks: tuple[Hook, ...] = tuple(_as_hook(hook) for hook in hooks)

    def __add__(self, other: Union["HookPipeline", Iterable[HookLike]]) -> "HookPipeline":
        return HookPipeline([*self._hooks, *other])

    def __iter__(self) -> Iterator[Hook]:
        return iter(self._hooks)

    def __len__(self) -> int:
        return len(self._hooks)

    def run(self, event: AttemptEvent) -> None:
        """Invoke every hook in registration order.

        Raises:
            BaseException: The exception returned or raised by the first
                failing hook; later hooks are not invoked.
            TypeError: If a hook returns something other than ``None`` or an
                exception instance.
        """
        for hook in self._hooks:
            error = hook.handle(event)
            if error is None:
                continue
            if not isinstance(error, BaseException):
                raise TypeError(f"hook {hook!r} returned {type(error).__name__}, not an exception")
            raise error

    def __repr__(self) -> str:
        return f"HookPipeline({list(self._hooks)!r})"
