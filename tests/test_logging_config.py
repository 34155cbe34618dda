"""Tests for structured logging helpers and request instrumentation hooks."""

import gc
import json
import logging

import httpx
import pytest

from httpcall import CallOptions
from httpcall.hooks import AttemptEvent, Phase
from httpcall.instrumentation import (
    RequestLogHook,
    TraceHeaderHook,
    _redact_url,
    create_instrumentation_hooks,
)
from httpcall.logging_config import (
    LOGGER_NAME,
    JSONFormatter,
    generate_correlation_id,
    mask_sensitive_data,
    setup_logging,
)
from httpcall.settings import LoggingSettings


@pytest.fixture
def restore_logger():
    logger = logging.getLogger(LOGGER_NAME)
    level, handlers = logger.level, list(logger.handlers)
    yield logger
    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)


def test_mask_sensitive_data():
    masked = mask_sensitive_data({"Authorization": "Bearer x", "status": 200, "url": "https://h?apikey=1"})
    assert masked == {"Authorization": "***masked***", "status": 200, "url": "***masked***"}


def test_correlation_ids_are_unique():
    ids = {generate_correlation_id() for _ in range(50)}
    assert len(ids) == 50
    assert all(len(value) == 12 for value in ids)


def test_json_formatter_merges_extra_fields():
    record = logging.makeLogRecord(
        {"msg": "net.request", "levelname": "INFO", "name": "httpcall", "extra_fields": {"status": 200, "token": "t"}}
    )
    payload = json.loads(JSONFormatter().format(record))
    assert payload["message"] == "net.request"
    assert payload["status"] == 200
    assert payload["token"] == "***masked***"
    assert payload["timestamp"].endswith("Z")


def test_setup_logging_writes_json_file(tmp_path, restore_logger):
    log_file = tmp_path / "logs" / "calls.jsonl"
    logger = setup_logging(LoggingSettings(level="DEBUG", json_log_file=log_file))
    logger.info("hello", extra={"extra_fields": {"attempt": 0}})
    for handler in logger.handlers:
        handler.flush()
    line = log_file.read_text(encoding="utf-8").strip().splitlines()[-1]
    assert json.loads(line)["attempt"] == 0
    assert logger.level == logging.DEBUG


def test_setup_logging_replaces_managed_handlers(restore_logger):
    setup_logging(LoggingSettings())
    before = len(restore_logger.handlers)
    setup_logging(LoggingSettings())
    assert len(restore_logger.handlers) == before


class TestInstrumentationHooks:
    def _event(self) -> AttemptEvent:
        return AttemptEvent(
            request=httpx.Request("GET", "https://user:pw@api.example.com:8443/items?key=secret"),
            data={"tenant": "acme"},
        )

    def test_trace_header_added_once(self):
        hook = TraceHeaderHook()
        event = self._event()
        hook.handle(event)
        first = event.request.headers["X-Request-ID"]
        event.begin(1)
        hook.handle(event)
        assert event.request.headers["X-Request-ID"] == first

    def test_trace_header_respects_existing_value(self):
        event = self._event()
        event.request.headers["X-Request-ID"] = "fixed"
        TraceHeaderHook().handle(event)
        assert event.request.headers["X-Request-ID"] == "fixed"

    def test_request_log_record(self, caplog):
        caplog.set_level(logging.INFO, logger="httpcall")
        hook = RequestLogHook()
        event = self._event()
        hook.handle(event)
        event.complete(httpx.Response(200), None)
        hook.handle(event)
        (record,) = [r for r in caplog.records if r.getMessage() == "net.request"]
        fields = record.extra_fields
        assert fields["status"] == 200
        assert fields["attempt"] == 0
        assert fields["url_redacted"] == "https://api.example.com:8443/items"
        assert fields["tenant"] == "acme"
        assert fields["elapsed_ms"] >= 0

    def test_request_log_records_transport_error(self, caplog):
        caplog.set_level(logging.INFO, logger="httpcall")
        hook = RequestLogHook()
        event = self._event()
        hook.handle(event)
        event.complete(None, httpx.ReadTimeout("slow"))
        hook.handle(event)
        (record,) = [r for r in caplog.records if r.getMessage() == "net.request"]
        assert record.extra_fields["error"] == "ReadTimeout"
        assert record.extra_fields["status"] is None

    def test_default_hook_set(self):
        hooks = create_instrumentation_hooks()
        assert [type(h) for h in hooks] == [TraceHeaderHook, RequestLogHook]


def test_redact_url_drops_query_and_credentials():
    assert _redact_url("https://u:p@example.org/a/b?x=1#frag") == "https://example.org/a/b"


@pytest.mark.parametrize("phase", [Phase.PRE_SEND, Phase.POST_SEND])
def test_request_log_hook_forgets_aborted_calls(scripted, phase):
    log_hook = RequestLogHook()

    def veto(event):
        if event.phase is phase:
            return PermissionError("vetoed")

    # Call hooks run before client hooks: a pre-send veto must follow the
    # log hook, a post-send veto must precede it.
    if phase is Phase.PRE_SEND:
        engine, _ = scripted(hooks=[log_hook, veto])
        options = CallOptions()
    else:
        engine, _ = scripted(hooks=[log_hook])
        options = CallOptions().with_hook(veto)

    for _ in range(5):
        with pytest.raises(PermissionError):
            engine.get("https://api.example.com/items", options=options)
    gc.collect()
    assert log_hook._started == {}


def test_request_log_hook_forgets_completed_calls(scripted):
    log_hook = RequestLogHook()
    engine, _ = scripted(hooks=[log_hook])
    for _ in range(3):
        engine.get("https://api.example.com/items")
    gc.collect()
    assert log_hook._started == {}
