"""Tests for backoff policies and their Tenacity wait adapter."""

import pytest

from httpcall.backoff import (
    Backoff,
    BackoffWait,
    ConstantBackoff,
    ExponentialBackoff,
    JitteredBackoff,
)


class TestConstantBackoff:
    def test_always_returns_interval(self):
        backoff = ConstantBackoff(1.5)
        assert [backoff.next() for _ in range(4)] == [1.5, 1.5, 1.5, 1.5]

    def test_reset_is_noop(self):
        backoff = ConstantBackoff(0.25)
        backoff.next()
        backoff.reset()
        assert backoff.next() == 0.25

    def test_zero_interval_allowed(self):
        assert ConstantBackoff(0).next() == 0.0

    def test_negative_interval_rejected(self):
        with pytest.raises(ValueError):
            ConstantBackoff(-1)


class TestExponentialBackoff:
    def test_doubles_until_maximum(self):
        backoff = ExponentialBackoff(initial=0.5, maximum=4.0)
        assert [backoff.next() for _ in range(6)] == [0.5, 1.0, 2.0, 4.0, 4.0, 4.0]

    def test_reset_restarts_progression(self):
        backoff = ExponentialBackoff(initial=1.0, maximum=10.0)
        backoff.next()
        backoff.next()
        backoff.reset()
        assert backoff.next() == 1.0

    def test_custom_base(self):
        backoff = ExponentialBackoff(initial=1.0, maximum=100.0, base=3.0)
        assert [backoff.next() for _ in range(3)] == [1.0, 3.0, 9.0]


def test_jittered_backoff_stays_within_cap():
    backoff = JitteredBackoff(initial=0.1, maximum=0.5)
    waits = [backoff.next() for _ in range(20)]
    assert all(0.0 <= wait <= 0.5 for wait in waits)


def test_policies_satisfy_protocol():
    for policy in (ConstantBackoff(1), ExponentialBackoff(1, 2), JitteredBackoff(1, 2)):
        assert isinstance(policy, Backoff)


def test_backoff_wait_delegates_to_policy():
    class Recording:
        def __init__(self):
            self.calls = 0

        def reset(self):
            pass

        def next(self):
            self.calls += 1
            return self.calls * 0.1

    policy = Recording()
    wait = BackoffWait(policy)
    assert wait(None) == pytest.approx(0.1)
    assert wait(None) == pytest.approx(0.2)
    assert policy.calls == 2


def test_backoff_wait_clamps_negative_values():
    class Negative:
        def reset(self):
            pass

        def next(self):
            return -3.0

    assert BackoffWait(Negative())(None) == 0.0
