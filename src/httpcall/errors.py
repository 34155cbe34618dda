"""Exception hierarchy for request building, execution, and body decoding.

A logical call can fail while encoding the request body, inside a hook, in
the transport, on a non-200 status, while decoding the response, or because
the caller cancelled it.  Transport failures surface as the ``httpx``
exceptions themselves and hook failures as whatever the hook produced; the
remaining categories are grouped here so callers can react to high-level
families (codec vs. status vs. cancellation) while still matching the
specialised subclasses.
"""

from __future__ import annotations

from typing import Optional

import httpx

__all__ = [
    "HttpCallError",
    "CodecError",
    "NoDataError",
    "NotSupportedError",
    "InvalidTypeError",
    "DecodeError",
    "StatusError",
    "CallCancelledError",
    "DeadlineExceededError",
    "is_status_error",
    "is_timeout_error",
]


class HttpCallError(RuntimeError):
    """Base exception for failures raised by the execution engine."""


class CodecError(HttpCallError):
    """Raised when a payload cannot be encoded or decoded."""


class NoDataError(CodecError):
    """Raised when a response body was requested but the body is empty."""

    def __init__(self, message: str = "no data") -> None:
        super().__init__(message)


class NotSupportedError(CodecError):
    """Raised for content types or value shapes the codec cannot handle."""

    def __init__(self, message: str = "not supported") -> None:
        super().__init__(message)


class InvalidTypeError(CodecError):
    """Raised when a value or destination has the wrong shape for the operation."""

    def __init__(self, message: str = "invalid type") -> None:
        super().__init__(message)


class DecodeError(CodecError):
    """Raised when a response body is malformed for its declared content type."""


class StatusError(HttpCallError):
    """Raised when the server answers with anything other than HTTP 200.

    Attributes:
        code: Numeric HTTP status code.
        reason: Status text reported by the server.
    """

    def __init__(self, code: int, reason: str = "") -> None:
        super().__init__(f"invalid http status, code={code}, reason={reason}")
        self.code = code
        self.reason = reason


class CallCancelledError(HttpCallError):
    """Raised when the call's cancellation token fires."""

    def __init__(self, reason: Optional[str] = None) -> None:
        super().__init__(reason or "call cancelled")
        self.reason = reason


class DeadlineExceededError(CallCancelledError):
    """Raised when the call's deadline passes before the call completes."""

    def __init__(self, reason: Optional[str] = None) -> None:
        super().__init__(reason or "deadline exceeded")


def is_status_error(exc: BaseException) -> bool:
    """Return ``True`` when ``exc`` represents a non-200 HTTP response."""

    return isinstance(exc, StatusError)


def is_timeout_error(exc: BaseException) -> bool:
    """Return ``True`` when ``exc`` is a transport-level timeout signal."""

    return isinstance(exc, httpx.TimeoutException)
