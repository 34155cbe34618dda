"""Configuration models for the client and for individual calls.

:class:`ClientSettings` describes the long-lived transport (timeouts, pool
limits, TLS) and can be populated from ``HTTPCALL_*`` environment variables.
:class:`CallOptions` is the immutable per-call snapshot consumed by the
engine: timeout, retry budget, backoff policy, content negotiation, headers,
query, cookies, hooks, extension data, and the cancellation token.  Its
``with_*`` helpers return new snapshots rather than mutating in place.
"""

from __future__ import annotations

import base64
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from types import MappingProxyType
from typing import ClassVar, FrozenSet, Iterable, Optional, Tuple, Union

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .backoff import Backoff
from .cancellation import CancellationToken
from .hooks import HookLike
from .policy import (
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_CONTENT_TYPE,
    DEFAULT_KEEPALIVE_EXPIRY,
    DEFAULT_TIMEOUT,
    MAX_CONNECTIONS,
    MAX_KEEPALIVE_CONNECTIONS,
)

__all__ = ["LoggingSettings", "ClientSettings", "CallOptions", "Pairs"]

Pairs = Tuple[Tuple[str, str], ...]
PairsInput = Union[Mapping[str, object], Iterable[Tuple[str, object]]]


class LoggingSettings(BaseModel):
    """Logging-related configuration."""

    level: str = Field(default="INFO", description="Logging level (DEBUG, INFO, WARNING, ERROR)")
    json_log_file: Optional[Path] = Field(
        default=None, description="Optional JSON-lines log file; console only when unset"
    )
    max_log_size_mb: int = Field(default=10, gt=0, description="Maximum size of rotated log files")
    backup_count: int = Field(default=5, ge=0, description="Rotated log files to keep")

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        """Normalise logging levels and ensure they match the supported set."""

        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR"}
        upper = value.upper()
        if upper not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}")
        return upper

    model_config = {"validate_assignment": True}


class ClientSettings(BaseSettings):
    """Transport configuration, overridable through ``HTTPCALL_*`` variables.

    Nested logging fields use ``__`` as delimiter, e.g.
    ``HTTPCALL_LOGGING__LEVEL=DEBUG``.
    """

    base_url: str = Field(default="", description="Joined with relative call URLs")
    timeout: float = Field(
        default=DEFAULT_TIMEOUT, ge=0, description="Per-attempt timeout; 0 leaves attempts unbounded"
    )
    connect_timeout: float = Field(default=DEFAULT_CONNECT_TIMEOUT, gt=0)
    keepalive_expiry: float = Field(default=DEFAULT_KEEPALIVE_EXPIRY, ge=0)
    max_connections: int = Field(default=MAX_CONNECTIONS, ge=1)
    max_keepalive_connections: int = Field(default=MAX_KEEPALIVE_CONNECTIONS, ge=0)
    follow_redirects: bool = True
    verify_tls: bool = True
    http2: bool = Field(default=False, description="Requires the optional h2 package")
    user_agent: Optional[str] = None
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_prefix="HTTPCALL_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
        frozen=True,
    )

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        """Require an absolute http(s) base URL when one is configured."""

        value = value.strip()
        if value and not value.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return value


def _pairs(key: str, value: object) -> Pairs:
    if isinstance(value, str):
        return ((key, value),)
    if isinstance(value, Sequence) and not isinstance(value, (bytes, bytearray)):
        return tuple((key, str(item)) for item in value)
    return ((key, str(value)),)


def _coerce_pairs(values: PairsInput) -> Pairs:
    items = values.items() if isinstance(values, Mapping) else values
    result: Pairs = ()
    for key, value in items:
        result += _pairs(str(key), value)
    return result


@dataclass(frozen=True)
class CallOptions:
    """Immutable configuration snapshot for one logical call.

    Attributes:
        base_url: Overrides the client's base URL for relative call URLs.
        timeout: Per-attempt timeout in seconds; ``None`` uses the client
            setting and ``0`` leaves attempts unbounded.
        retry: Extra attempts allowed after the first, only for timeouts.
        backoff: Wait policy between retries; a fresh
            :class:`~httpcall.backoff.ConstantBackoff` is used when ``None``.
        content_type: Encoding for the request body and decode fallback.
        charset: Charset for text bodies and the ``Content-Type`` parameter.
        headers: Header pairs; keys are case-insensitive, repeats allowed.
        query: Query pairs appended to any query already on the URL.
        cookies: Cookie name/value pairs attached individually.
        data: Opaque extension data passed read-only to hooks.
        hooks: Call-level hooks, run before the client-level hooks.
        token: Cancellation token governing the whole call.
    """

    _ALLOWED_KEYS: ClassVar[FrozenSet[str]] = frozenset(
        {
            "base_url",
            "timeout",
            "retry",
            "backoff",
            "content_type",
            "charset",
            "headers",
            "query",
            "cookies",
            "data",
            "hooks",
            "token",
        }
    )

    base_url: Optional[str] = None
    timeout: Optional[float] = None
    retry: int = 0
    backoff: Optional[Backoff] = None
    content_type: str = DEFAULT_CONTENT_TYPE
    charset: Optional[str] = None
    headers: Pairs = ()
    query: Pairs = ()
    cookies: Pairs = ()
    data: Mapping[str, str] = field(default_factory=dict)
    hooks: Tuple[HookLike, ...] = ()
    token: Optional[CancellationToken] = None

    def __post_init__(self) -> None:
        if self.retry < 0:
            raise ValueError("retry must be >= 0")
        if self.timeout is not None and self.timeout < 0:
            raise ValueError("timeout must be >= 0")
        object.__setattr__(self, "headers", _coerce_pairs(self.headers))
        object.__setattr__(self, "query", _coerce_pairs(self.query))
        object.__setattr__(self, "cookies", _coerce_pairs(self.cookies))
        object.__setattr__(self, "data", MappingProxyType(dict(self.data)))
        object.__setattr__(self, "hooks", tuple(self.hooks))

    def with_overrides(self, overrides: Mapping[str, object]) -> CallOptions:
        """Return a new snapshot with ``overrides`` applied.

        Raises:
            TypeError: If any key is not a :class:`CallOptions` field.
        """
        if not overrides:
            return self
        unexpected = set(overrides) - self._ALLOWED_KEYS
        if unexpected:
            raise TypeError(f"Unexpected call option(s): {sorted(unexpected)}")
        return replace(self, **dict(overrides))

    def with_header(self, key: str, value: object) -> CallOptions:
        """Append a header; sequences add one value per element."""
        return replace(self, headers=self.headers + _pairs(key, value))

    def with_headers(self, headers: PairsInput) -> CallOptions:
        return replace(self, headers=self.headers + _coerce_pairs(headers))

    def with_query(self, key: str, value: object) -> CallOptions:
        """Append a query parameter; sequences add repeated keys."""
        return replace(self, query=self.query + _pairs(key, value))

    def with_queries(self, query: PairsInput) -> CallOptions:
        return replace(self, query=self.query + _coerce_pairs(query))

    def with_cookie(self, name: str, value: str) -> CallOptions:
        return replace(self, cookies=self.cookies + ((name, value),))

    def with_data(self, key: str, value: str) -> CallOptions:
        return replace(self, data={**self.data, key: value})

    def with_hook(self, hook: HookLike) -> CallOptions:
        return replace(self, hooks=self.hooks + (hook,))

    def with_authorization(self, auth: str) -> CallOptions:
        return self.with_header("Authorization", auth)

    def with_basic_auth(self, username: str, password: str) -> CallOptions:
        """Add an RFC 7617 ``Basic`` authorization header (base64, not URL-encoded)."""
        credentials = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
        return self.with_authorization(f"Basic {credentials}")

    def with_bearer_auth(self, token: str) -> CallOptions:
        return self.with_authorization(f"Bearer {token}")

    def with_x_jwt_token(self, token: str) -> CallOptions:
        return self.with_header("X-Jwt-Token", token)

    def with_x_auth_token(self, token: str) -> CallOptions:
        return self.with_header("X-Auth-Token", token)

    def __repr__(self) -> str:
        shown = ", ".join(
            f"{f.name}={getattr(self, f.name)!r}"
            for f in fields(self)
            if f.name not in {"headers", "cookies"}
        )
        return f"CallOptions({shown})"
