"""
Cumulative counter to per-second rate conversion.

varnishstat counters only ever go up (until varnishd restarts), but the
backend wants rates. Each CounterRate remembers the last value and when
it was seen, and turns the next reading into units per second.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

log = logging.getLogger(__name__)


class CounterRate:

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._last_value: Optional[float] = None
        self._last_time: Optional[float] = None

    @property
    def primed(self) -> bool:
        """True once a baseline value has been recorded."""
        return self._last_value is not None

    def fresh(self) -> "CounterRate":
        """A new converter on the same clock, with no baseline."""
        return CounterRate(clock=self._clock)

    def process(self, value: float) -> float:
        """Return the rate since the previous call.

        The first call only records a baseline and returns 0.0. A value lower
        than the previous one means the counter was reset: 0.0 is returned
        and the new value becomes the baseline.
        """
        now = self._clock()
        prev_value, prev_time = self._last_value, self._last_time
        self._last_value, self._last_time = value, now

        if prev_value is None:
            return 0.0

        if value < prev_value:
            log.debug("Counter reset detected (%s -> %s)", prev_value, value)
            return 0.0

        elapsed = now - prev_time
        if elapsed <= 0:
            return 0.0

        return (value - prev_value) / elapsed
