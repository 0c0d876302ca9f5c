"""Tests for counter-to-rate conversion."""

from varnishagent.engine.counter import CounterRate


class _FakeClock:
    def __init__(self, start: float = 1000.0, step: float = 1.0):
        self.now = start
        self.step = step

    def __call__(self) -> float:
        current = self.now
        self.now += self.step
        return current


def test_first_value_reports_zero():
    counter = CounterRate(clock=_FakeClock())
    assert counter.process(100) == 0.0
    assert counter.primed


def test_increase_reported_per_second():
    counter = CounterRate(clock=_FakeClock(step=1.0))
    counter.process(100)
    assert counter.process(150) == 50.0


def test_rate_normalized_by_elapsed_time():
    counter = CounterRate(clock=_FakeClock(step=10.0))
    counter.process(100)
    assert counter.process(150) == 5.0


def test_reset_reports_zero_not_negative():
    counter = CounterRate(clock=_FakeClock())
    counter.process(150)
    assert counter.process(100) == 0.0


def test_reset_rebaselines():
    counter = CounterRate(clock=_FakeClock())
    counter.process(150)
    counter.process(100)  # varnishd restarted
    assert counter.process(130) == 30.0


def test_no_elapsed_time_reports_zero():
    counter = CounterRate(clock=_FakeClock(step=0.0))
    counter.process(100)
    assert counter.process(200) == 0.0


def test_fresh_copy_has_no_baseline():
    counter = CounterRate(clock=_FakeClock())
    counter.process(100)
    copy = counter.fresh()
    assert not copy.primed
    assert copy.process(500) == 0.0
