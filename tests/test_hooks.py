"""Tests for the hook pipeline and attempt events."""

import httpx
import pytest

from httpcall.hooks import AttemptEvent, FunctionHook, Hook, HookPipeline, Phase


def _event(**data) -> AttemptEvent:
    return AttemptEvent(request=httpx.Request("GET", "https://api.example.com/items"), data=data)


class TestAttemptEvent:
    def test_defaults(self):
        event = _event()
        assert event.phase is Phase.PRE_SEND
        assert event.attempt == 0
        assert event.response is None
        assert event.error is None

    def test_data_is_read_only(self):
        event = _event(tenant="acme")
        assert event.data["tenant"] == "acme"
        with pytest.raises(TypeError):
            event.data["tenant"] = "other"  # type: ignore[index]

    def test_begin_clears_previous_outcome(self):
        event = _event()
        event.complete(None, httpx.ReadTimeout("slow"))
        event.begin(1)
        assert event.phase is Phase.PRE_SEND
        assert event.attempt == 1
        assert event.error is None

    def test_complete_sets_outcome(self):
        event = _event()
        response = httpx.Response(200)
        event.complete(response, None)
        assert event.phase is Phase.POST_SEND
        assert event.response is response


class TestHookPipeline:
    def test_runs_in_registration_order(self):
        seen = []
        pipeline = HookPipeline([lambda e: seen.append("a"), lambda e: seen.append("b")])
        pipeline.run(_event())
        assert seen == ["a", "b"]

    def test_returned_error_stops_pipeline(self):
        seen = []
        boom = PermissionError("denied")
        pipeline = HookPipeline([lambda e: boom, lambda e: seen.append("late")])
        with pytest.raises(PermissionError) as excinfo:
            pipeline.run(_event())
        assert excinfo.value is boom
        assert seen == []

    def test_raised_error_propagates(self):
        def explode(event):
            raise RuntimeError("hook failure")

        with pytest.raises(RuntimeError, match="hook failure"):
            HookPipeline([explode]).run(_event())

    def test_non_exception_return_is_type_error(self):
        with pytest.raises(TypeError):
            HookPipeline([lambda e: "oops"]).run(_event())

    def test_concatenation_preserves_order(self):
        seen = []
        call_level = HookPipeline([lambda e: seen.append("call")])
        client_level = HookPipeline([lambda e: seen.append("client")])
        combined = call_level + client_level
        combined.run(_event())
        assert seen == ["call", "client"]
        assert len(combined) == 2
        assert len(call_level) == 1

    def test_accepts_hook_objects(self):
        class Stamp:
            def handle(self, event):
                event.request.headers["X-Stamp"] = "1"

        event = _event()
        HookPipeline([Stamp()]).run(event)
        assert event.request.headers["X-Stamp"] == "1"

    def test_callables_are_wrapped(self):
        pipeline = HookPipeline([lambda e: None])
        (hook,) = list(pipeline)
        assert isinstance(hook, FunctionHook)
        assert isinstance(hook, Hook)

    def test_rejects_non_hooks(self):
        with pytest.raises(TypeError):
            HookPipeline([42])  # type: ignore[list-item]
