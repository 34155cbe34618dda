# === NAVMAP v1 ===
# {
#   "module": "httpcall.engine",
#   "purpose": "Request execution loop: build, hook, send, classify, retry, decode.",
#   "sections": [
#     {
#       "id": "engine",
#       "name": "Engine",
#       "anchor": "class-engine",
#       "kind": "class"
#     },
#     {
#       "id": "create-engine",
#       "name": "create_engine",
#       "anchor": "function-create-engine",
#       "kind": "function"
#     }
#   ]
# }
# === /NAVMAP ===

"""Request execution loop: build, hook, send, classify, retry, decode.

One ``execute`` call is one logical call spread over up to ``1 + retry``
physical attempts:

- **Building**: resolve the URL, encode the body once, attach headers, query
  pairs, and cookies.
- **Attempting**: re-attach the encoded body, bound the attempt by the call
  timeout, run the pre-send hooks, send, run the post-send hooks.
- **Classification**: HTTP 200 is decoded and returned; any other status is
  a :class:`~httpcall.errors.StatusError`; a transport timeout is retried
  after a backoff wait while budget remains; everything else is fatal.

The loop is driven by Tenacity.  Only the transport's own timeout from the
current attempt is retryable: hook errors, status errors, and decode errors
always end the call.  Retry waits sleep on the call's cancellation token, so
cancelling the call interrupts a wait in progress.

Example:
    >>> from httpcall import Engine, CallOptions, Result
    >>> with Engine() as engine:  # doctest: +SKIP
    ...     holder = Result(dict)
    ...     engine.get("https://api.example.com/items", holder, CallOptions(retry=2))
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional, cast

import httpx
from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt

from .backoff import BackoffWait, ConstantBackoff
from .cancellation import CancellationToken
from .client import create_http_client
from .codec import decode, encode, parse_charset, resolve_content_type
from .errors import CodecError, StatusError, is_timeout_error
from .hooks import AttemptEvent, HookLike, HookPipeline
from .policy import DEFAULT_BACKOFF_INTERVAL, SUCCESS_STATUS
from .settings import CallOptions, ClientSettings

logger = logging.getLogger(__name__)

__all__ = ["Engine", "create_engine"]


class _CallState:
    """Per-call bookkeeping shared between attempts."""

    def __init__(self) -> None:
        self.attempts = 0
        self.transport_error: Optional[BaseException] = None

    def is_retryable(self, exc: BaseException) -> bool:
        return exc is self.transport_error and is_timeout_error(exc)


class Engine:
    """Executes logical HTTP calls with hooks, timeout retries, and body decoding.

    Args:
        client: HTTPX client used as the transport.  When omitted one is built
            from ``settings`` and closed by :meth:`close`.
        settings: Client settings; supplies the default timeout and base URL.
        hooks: Client-level hooks, run after each call's own hooks.

    Concurrent calls on one engine are independent; the only state they can
    share is a backoff policy instance the caller passes to several calls.
    """

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        *,
        settings: Optional[ClientSettings] = None,
        hooks: Iterable[HookLike] = (),
    ) -> None:
        self.settings = settings or ClientSettings()
        self._owns_client = client is None
        self._client = client if client is not None else create_http_client(self.settings)
        self.hooks = HookPipeline(hooks)

    @property
    def client(self) -> httpx.Client:
        return self._client

    def close(self) -> None:
        """Close the transport if this engine created it."""
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "Engine":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def get(
        self,
        url: str,
        result: object = None,
        options: Optional[CallOptions] = None,
    ) -> httpx.Response:
        """Execute a ``GET`` without a request body."""
        return self.execute("GET", url, None, result, options)

    def post(
        self,
        url: str,
        body: object,
        result: object = None,
        options: Optional[CallOptions] = None,
    ) -> httpx.Response:
        """Execute a ``POST`` with ``body`` encoded per the configured content type."""
        return self.execute("POST", url, body, result, options)

    def execute(
        self,
        method: str,
        url: str,
        body: object = None,
        result: object = None,
        options: Optional[CallOptions] = None,
    ) -> httpx.Response:
        """Run one logical call.

        Args:
            method: HTTP method; uppercased.
            url: Absolute URL, or a path joined to the configured base URL.
            body: Request value; ``str``/``bytes`` are sent as-is, anything
                else is encoded per ``options.content_type``.
            result: Destination for the decoded body (a
                :class:`~httpcall.codec.Result` or mutable mapping); ``None``
                leaves the body undecoded.
            options: Per-call configuration snapshot.

        Returns:
            The HTTP 200 response.  Its body stays readable after decoding.

        Raises:
            CodecError: If the body cannot be encoded or the response decoded.
            StatusError: If the server answers with a status other than 200.
            CallCancelledError: If the call's token fires before completion.
            httpx.HTTPError: Transport failures; timeouts only once the retry
                budget is spent.
            Exception: Whatever a hook returns or raises.
        """
        options = options or CallOptions()
        token = options.token or CancellationToken()
        method = method.upper()

        payload = encode(options.content_type, body, options.charset)
        request = self._build_request(method, self._build_url(url, options.base_url), payload, options)
        event = AttemptEvent(request=request, data=options.data)
        hooks = HookPipeline(options.hooks) + self.hooks
        backoff = options.backoff if options.backoff is not None else ConstantBackoff(DEFAULT_BACKOFF_INTERVAL)
        timeout = self.settings.timeout if options.timeout is None else options.timeout

        state = _CallState()
        retrying = Retrying(
            retry=retry_if_exception(state.is_retryable),
            stop=stop_after_attempt(options.retry + 1),
            wait=BackoffWait(backoff),
            sleep=token.sleep,
            before_sleep=self._before_sleep,
            reraise=True,
        )
        response = retrying(self._attempt, state, event, hooks, payload, timeout, token)

        if result is not None:
            self._decode(response, result, options)

        logger.debug(
            "HTTP call completed",
            extra={
                "extra_fields": {
                    "method": method,
                    "url": str(request.url.copy_with(query=None)),
                    "status": response.status_code,
                    "attempts": state.attempts,
                }
            },
        )
        return response

    def _attempt(
        self,
        state: _CallState,
        event: AttemptEvent,
        hooks: HookPipeline,
        payload: Optional[bytes],
        timeout: float,
        token: CancellationToken,
    ) -> httpx.Response:
        index = state.attempts
        state.attempts += 1
        state.transport_error = None
        token.raise_if_cancelled()

        request = event.request
        if payload is not None:
            request.stream = httpx.ByteStream(payload)
        scope = token.derive(timeout) if timeout else token
        # None when neither the call timeout nor the token bounds the attempt.
        request.extensions = {**request.extensions, "timeout": httpx.Timeout(scope.remaining()).as_dict()}

        event.begin(index, scope)
        hooks.run(event)

        response: Optional[httpx.Response] = None
        error: Optional[Exception] = None
        try:
            response = self._client.send(request)
        except Exception as exc:  # surfaced below, after the post-send hooks have seen it
            error = exc

        event.complete(response, error)
        try:
            hooks.run(event)
        except BaseException:
            if response is not None:
                response.close()
            raise

        if error is not None:
            state.transport_error = error
            raise error
        response = cast(httpx.Response, response)
        if response.status_code != SUCCESS_STATUS:
            response.close()
            raise StatusError(response.status_code, response.reason_phrase)
        return response

    def _build_url(self, url: str, base_url: Optional[str]) -> str:
        """Join relative ``url`` to the call's base URL, else the client's."""
        if url.startswith(("http://", "https://")):
            return url
        base = base_url or self.settings.base_url
        if not base:
            return url
        return f"{base.rstrip('/')}/{url.lstrip('/')}"

    def _build_request(
        self,
        method: str,
        url: str,
        payload: Optional[bytes],
        options: CallOptions,
    ) -> httpx.Request:
        target = httpx.URL(url)
        if options.query:
            target = target.copy_with(params=[*target.params.multi_items(), *options.query])

        headers = httpx.Headers(list(options.headers))
        if payload is not None and "Content-Type" not in headers:
            content_type = options.content_type
            if options.charset:
                content_type = f"{content_type}; charset={options.charset}"
            headers["Content-Type"] = content_type
        if options.cookies:
            pieces = [headers["Cookie"]] if "Cookie" in headers else []
            pieces.extend(f"{name}={value}" for name, value in options.cookies)
            headers["Cookie"] = "; ".join(pieces)

        return self._client.build_request(method, target, headers=headers, content=payload)

    def _decode(self, response: httpx.Response, result: object, options: CallOptions) -> None:
        header = response.headers.get("Content-Type")
        content_type = resolve_content_type(header, options.content_type)
        charset = parse_charset(header) or options.charset
        try:
            decode(content_type, response.read(), result, charset)
        except CodecError:
            response.close()
            raise

    def _before_sleep(self, retry_state: RetryCallState) -> None:
        outcome = retry_state.outcome
        exc = outcome.exception() if outcome is not None and outcome.failed else None
        delay = 0.0
        if retry_state.next_action is not None and retry_state.next_action.sleep is not None:
            delay = max(float(retry_state.next_action.sleep), 0.0)
        logger.warning(
            "HTTP attempt timed out; retrying",
            extra={
                "extra_fields": {
                    "attempt": retry_state.attempt_number,
                    "delay": round(delay, 3),
                    "exception": repr(exc) if exc is not None else None,
                }
            },
        )


def create_engine(
    settings: Optional[ClientSettings] = None,
    hooks: Iterable[HookLike] = (),
) -> Engine:
    """Build an engine that owns a transport created from ``settings``.

    Use this instead of a process-wide default: construct one engine at
    start-up and pass it to the code that issues calls.
    """
    return Engine(settings=settings, hooks=hooks)
