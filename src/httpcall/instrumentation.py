# === NAVMAP v1 ===
# {
#   "module": "httpcall.instrumentation",
#   "purpose": "Hook-based request instrumentation and telemetry.",
#   "sections": [
#     {
#       "id": "traceheaderhook",
#       "name": "TraceHeaderHook",
#       "anchor": "class-traceheaderhook",
#       "kind": "class"
#     },
#     {
#       "id": "requestloghook",
#       "name": "RequestLogHook",
#       "anchor": "class-requestloghook",
#       "kind": "class"
#     },
#     {
#       "id": "create-instrumentation-hooks",
#       "name": "create_instrumentation_hooks",
#       "anchor": "function-create-instrumentation-hooks",
#       "kind": "function"
#     },
#     {
#       "id": "redact-url",
#       "name": "_redact_url",
#       "anchor": "function-redact-url",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Hook-based request instrumentation and telemetry.

Emits one ``net.request`` log record per attempt made by the engine,
capturing method, redacted URL, status, attempt index, timing, and the error
type when the transport failed.  Also provides a hook that stamps every
logical call with a correlation header.
"""

from __future__ import annotations

import logging
import threading
import time
import weakref
from typing import Dict, List, Optional
from urllib.parse import urlparse, urlunparse

from .hooks import AttemptEvent, Phase
from .logging_config import generate_correlation_id
from .policy import TRACE_HEADER

logger = logging.getLogger(__name__)


class TraceHeaderHook:
    """Set a correlation header before send unless the request already has one.

    The header lives on the request object, which the engine reuses for every
    attempt, so all retries of one call share the same identifier.
    """

    def __init__(self, header: str = TRACE_HEADER) -> None:
        self.header = header

    def handle(self, event: AttemptEvent) -> None:
        if event.phase is Phase.PRE_SEND and self.header not in event.request.headers:
            event.request.headers[self.header] = generate_correlation_id()


class RequestLogHook:
    """Log a ``net.request`` record after every attempt.

    Timing is measured from this hook's ``PRE_SEND`` invocation to its
    ``POST_SEND`` invocation, so hooks registered after it are included.
    A start time whose attempt never reaches ``POST_SEND`` (another hook
    aborted the call) is dropped once the event is garbage collected.
    """

    def __init__(self, level: int = logging.INFO, log: Optional[logging.Logger] = None) -> None:
        self.level = level
        self._logger = log or logger
        self._started: Dict[int, float] = {}
        self._lock = threading.RLock()

    def handle(self, event: AttemptEvent) -> None:
        key = id(event)
        if event.phase is Phase.PRE_SEND:
            with self._lock:
                if key not in self._started:
                    weakref.finalize(event, self._forget, key)
                self._started[key] = time.perf_counter()
            return

        with self._lock:
            start = self._started.pop(key, None)
        elapsed_ms = None if start is None else (time.perf_counter() - start) * 1000
        response = event.response
        self._logger.log(
            self.level,
            "net.request",
            extra={
                "extra_fields": {
                    "method": event.request.method,
                    "url_redacted": _redact_url(str(event.request.url)),
                    "host": event.request.url.host or "unknown",
                    "status": response.status_code if response is not None else None,
                    "attempt": event.attempt,
                    "elapsed_ms": round(elapsed_ms, 3) if elapsed_ms is not None else None,
                    "error": type(event.error).__name__ if event.error is not None else None,
                    **dict(event.data),
                }
            },
        )

    def _forget(self, key: int) -> None:
        with self._lock:
            self._started.pop(key, None)


def create_instrumentation_hooks(level: int = logging.INFO) -> List[object]:
    """Return the default instrumentation hooks in registration order.

    Usage:
        >>> from httpcall import Engine
        >>> engine = Engine(hooks=create_instrumentation_hooks())  # doctest: +SKIP
    """
    return [TraceHeaderHook(), RequestLogHook(level=level)]


def _redact_url(url: str) -> str:
    """Strip query strings, fragments, and credentials from ``url``.

    Keeps only scheme + host + path.
    """
    parsed = urlparse(url)
    netloc = parsed.hostname or ""
    if parsed.port:
        netloc = f"{netloc}:{parsed.port}"
    return urlunparse((parsed.scheme, netloc, parsed.path, "", "", ""))


__all__ = [
    "TraceHeaderHook",
    "RequestLogHook",
    "create_instrumentation_hooks",
]
