"""
Unit tests for the fixed-interval polling primitive.
"""
import pytest
from planit_deploy.UTILS.retry import poll


class CountingProbe:
    def __init__(self, succeed_on=None):
        self.calls = 0
        self.succeed_on = succeed_on

    def __call__(self):
        self.calls += 1
        return self.succeed_on is not None and self.calls >= self.succeed_on


def test_exhaustion_makes_exactly_max_attempts():
    probe = CountingProbe()
    sleeps = []
    assert poll(probe, interval=2, max_attempts=7, sleep=sleeps.append) is False
    assert probe.calls == 7
    assert sleeps == [2] * 6

def test_stops_polling_after_first_success():
    probe = CountingProbe(succeed_on=3)
    sleeps = []
    assert poll(probe, interval=2, max_attempts=50, sleep=sleeps.append) is True
    assert probe.calls == 3
    assert len(sleeps) == 2

def test_immediate_success_does_not_sleep():
    sleeps = []
    assert poll(lambda: True, interval=2, max_attempts=5, sleep=sleeps.append) is True
    assert sleeps == []

def test_zero_attempts_never_probes():
    probe = CountingProbe(succeed_on=1)
    assert poll(probe, interval=2, max_attempts=0, sleep=lambda s: None) is False
    assert probe.calls == 0

def test_probe_exception_propagates():
    def broken():
        raise ValueError("probe bug")
    with pytest.raises(ValueError):
        poll(broken, interval=1, max_attempts=3, sleep=lambda s: None)
