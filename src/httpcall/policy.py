"""HTTP policy constants and defaults.

Timeout budgets, pooling limits, and content negotiation defaults shared by
the client factory, the call options, and the execution engine.
"""

# ============================================================================
# Timeout Budgets (seconds)
# ============================================================================

#: Whole-attempt timeout applied when a call does not configure its own
DEFAULT_TIMEOUT = 60.0

#: Connection establishment timeout (TCP + TLS handshake)
DEFAULT_CONNECT_TIMEOUT = 60.0

#: How long idle pooled connections are kept open
DEFAULT_KEEPALIVE_EXPIRY = 60.0


# ============================================================================
# Connection Pooling
# ============================================================================

#: Maximum concurrent connections (total across all hosts)
MAX_CONNECTIONS = 100

#: Maximum idle connections kept open for reuse
MAX_KEEPALIVE_CONNECTIONS = 20


# ============================================================================
# Retry & Negotiation
# ============================================================================

#: Wait between timeout retries when a call does not supply a backoff policy
DEFAULT_BACKOFF_INTERVAL = 1.0

#: Content type used to encode request bodies and as the decode fallback
DEFAULT_CONTENT_TYPE = "application/json"

#: Charset used when neither the call nor the response names one
DEFAULT_CHARSET = "utf-8"

#: The only status treated as success; every other code raises StatusError
SUCCESS_STATUS = 200

#: Header set by TraceHeaderHook when the request does not carry one
TRACE_HEADER = "X-Request-ID"


__all__ = [
    "DEFAULT_TIMEOUT",
    "DEFAULT_CONNECT_TIMEOUT",
    "DEFAULT_KEEPALIVE_EXPIRY",
    "MAX_CONNECTIONS",
    "MAX_KEEPALIVE_CONNECTIONS",
    "DEFAULT_BACKOFF_INTERVAL",
    "DEFAULT_CONTENT_TYPE",
    "DEFAULT_CHARSET",
    "SUCCESS_STATUS",
    "TRACE_HEADER",
]
