"""Tests for the fixed-interval poll loop."""

from varnishagent.engine.scheduler import run_forever


class _CountingAgent:
    name = "cache1"

    def __init__(self):
        self.cycles = 0

    def poll_cycle(self) -> int:
        self.cycles += 1
        return 3


class _StepClock:
    """Each cycle appears to take one second."""

    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        self.now += 1.0
        return self.now


def test_runs_requested_number_of_cycles():
    agent = _CountingAgent()
    sleeps = []

    ran = run_forever(agent, interval_seconds=60, max_cycles=3, sleep=sleeps.append, clock=_StepClock())

    assert ran == 3
    assert agent.cycles == 3
    # No sleep after the last cycle
    assert len(sleeps) == 2


def test_sleep_accounts_for_cycle_time():
    sleeps = []
    run_forever(_CountingAgent(), interval_seconds=10, max_cycles=2, sleep=sleeps.append, clock=_StepClock())
    assert sleeps == [9.0]


def test_slow_cycle_does_not_sleep_negative():
    sleeps = []
    run_forever(_CountingAgent(), interval_seconds=0.5, max_cycles=2, sleep=sleeps.append, clock=_StepClock())
    assert sleeps == [0.0]
