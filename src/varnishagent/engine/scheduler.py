"""Fixed-interval poll loop. One cycle at a time, no overlap."""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from varnishagent.engine.agent import VarnishAgent

log = logging.getLogger(__name__)


def run_forever(
    agent: VarnishAgent,
    interval_seconds: float = 60.0,
    max_cycles: Optional[int] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> int:
    """Call agent.poll_cycle() every interval until interrupted.

    A slow cycle eats into the next sleep rather than shifting the schedule.
    Returns the number of cycles run; max_cycles is for tests and one-shot use.
    """
    log.info("Starting poll loop: agent=%s, interval=%.1fs", agent.name, interval_seconds)
    cycles = 0

    while max_cycles is None or cycles < max_cycles:
        started = clock()
        reported = agent.poll_cycle()
        cycles += 1

        elapsed = clock() - started
        log.info("Cycle %d reported %d metrics in %.2fs", cycles, reported, elapsed)

        if max_cycles is not None and cycles >= max_cycles:
            break
        sleep(max(0.0, interval_seconds - elapsed))

    return cycles
