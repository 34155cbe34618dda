"""HTTP call execution engine.

Wraps an HTTPX client with the pieces every service-to-service call needs:
payload encoding and response decoding by content type, an ordered
pre-send/post-send hook pipeline, bounded per-attempt timeouts, retries on
transport timeouts with pluggable backoff, and cooperative cancellation.

Quick start:
    >>> from httpcall import CallOptions, Result, create_engine
    >>> engine = create_engine()  # doctest: +SKIP
    >>> items = Result(list)
    >>> engine.get("https://api.example.com/items", items, CallOptions(retry=2))  # doctest: +SKIP
"""

from .backoff import Backoff, BackoffWait, ConstantBackoff, ExponentialBackoff, JitteredBackoff
from .cancellation import CancellationToken
from .client import create_http_client
from .codec import (
    TYPE_FORM,
    TYPE_HTML,
    TYPE_JSON,
    TYPE_TEXT,
    TYPE_XML,
    PayloadKind,
    Result,
    classify_payload,
    decode,
    encode,
    parse_charset,
    parse_content_type,
    resolve_content_type,
)
from .engine import Engine, create_engine
from .errors import (
    CallCancelledError,
    CodecError,
    DeadlineExceededError,
    DecodeError,
    HttpCallError,
    InvalidTypeError,
    NoDataError,
    NotSupportedError,
    StatusError,
    is_status_error,
    is_timeout_error,
)
from .hooks import AttemptEvent, FunctionHook, Hook, HookLike, HookPipeline, Phase
from .instrumentation import RequestLogHook, TraceHeaderHook, create_instrumentation_hooks
from .logging_config import setup_logging
from .settings import CallOptions, ClientSettings, LoggingSettings

__version__ = "0.1.0"

__all__ = [
    "Backoff",
    "BackoffWait",
    "ConstantBackoff",
    "ExponentialBackoff",
    "JitteredBackoff",
    "CancellationToken",
    "create_http_client",
    "TYPE_FORM",
    "TYPE_HTML",
    "TYPE_JSON",
    "TYPE_TEXT",
    "TYPE_XML",
    "PayloadKind",
    "Result",
    "classify_payload",
    "decode",
    "encode",
    "parse_charset",
    "parse_content_type",
    "resolve_content_type",
    "Engine",
    "create_engine",
    "CallCancelledError",
    "CodecError",
    "DeadlineExceededError",
    "DecodeError",
    "HttpCallError",
    "InvalidTypeError",
    "NoDataError",
    "NotSupportedError",
    "StatusError",
    "is_status_error",
    "is_timeout_error",
    "AttemptEvent",
    "FunctionHook",
    "Hook",
    "HookLike",
    "HookPipeline",
    "Phase",
    "RequestLogHook",
    "TraceHeaderHook",
    "create_instrumentation_hooks",
    "setup_logging",
    "CallOptions",
    "ClientSettings",
    "LoggingSettings",
]
