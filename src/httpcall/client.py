# === NAVMAP v1 ===
# {
#   "module": "httpcall.client",
#   "purpose": "HTTPX transport factory.",
#   "sections": [
#     {
#       "id": "create-http-client",
#       "name": "create_http_client",
#       "anchor": "function-create-http-client",
#       "kind": "function"
#     },
#     {
#       "id": "create-ssl-context",
#       "name": "_create_ssl_context",
#       "anchor": "function-create-ssl-context",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""HTTPX transport factory.

Builds the ``httpx.Client`` that the execution engine dispatches through.
Connection pooling, keepalives, DNS, and TLS stay entirely inside HTTPX; the
factory only translates :class:`~httpcall.settings.ClientSettings` into
timeouts, pool limits, and an SSL context.

Key design:
- **Explicit construction**: there is no process-wide client; every engine
  owns (or is handed) its own client.
- **No transport retries**: retry policy belongs to the engine, so the
  HTTPX transport is created with ``retries=0``.
"""

import logging
import ssl
from typing import Optional

import certifi
import httpx

from .settings import ClientSettings

logger = logging.getLogger(__name__)


def _create_ssl_context(verify: bool = True) -> ssl.SSLContext:
    """Create SSL context with secure defaults.

    Uses the certifi bundle for verification.

    Returns:
        Configured ssl.SSLContext for use with HTTPX
    """
    if not verify:
        ctx = ssl.create_default_context()
        ctx.check_hostname = False
        ctx.verify_mode = ssl.CERT_NONE
        logger.warning("TLS verification DISABLED (development only!)")
        return ctx

    ctx = ssl.create_default_context(cafile=certifi.where())
    ctx.check_hostname = True
    ctx.verify_mode = ssl.CERT_REQUIRED
    return ctx


def create_http_client(settings: Optional[ClientSettings] = None) -> httpx.Client:
    """Create the HTTPX client used as the engine's transport.

    Args:
        settings: Transport configuration; defaults (plus ``HTTPCALL_*``
            environment overrides) when omitted.

    Returns:
        Configured httpx.Client ready for use
    """
    settings = settings or ClientSettings()
    ssl_ctx = _create_ssl_context(settings.verify_tls)

    transport = httpx.HTTPTransport(
        verify=ssl_ctx,
        http2=settings.http2,
        retries=0,
    )

    headers = {}
    if settings.user_agent:
        headers["User-Agent"] = settings.user_agent

    client = httpx.Client(
        transport=transport,
        timeout=httpx.Timeout(
            settings.timeout or None,
            connect=settings.connect_timeout,
        ),
        limits=httpx.Limits(
            max_connections=settings.max_connections,
            max_keepalive_connections=settings.max_keepalive_connections,
            keepalive_expiry=settings.keepalive_expiry,
        ),
        headers=headers,
        follow_redirects=settings.follow_redirects,
    )

    logger.debug(
        "HTTPX client created",
        extra={
            "extra_fields": {
                "http2": settings.http2,
                "max_connections": settings.max_connections,
                "timeout": settings.timeout,
            }
        },
    )
    return client


__all__ = ["create_http_client"]
