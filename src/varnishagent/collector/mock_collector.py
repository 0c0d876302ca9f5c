"""
Stats source backed by the mock varnishstat generator.
Used for local development on machines without Varnish.
"""

from typing import List

from varnishagent.collector.base import StatsSource
from varnishagent.collector.varnishstat_parser import parse_varnishstat_data
from varnishagent.metrics import Metric
from varnishagent.mock.generator import MockVarnish


class MockStats(StatsSource):
    """Wraps the mock generator as a standard stats source."""

    def __init__(self, seed: int = 42):
        self._varnish = MockVarnish(seed=seed)

    def fetch(self) -> List[Metric]:
        return parse_varnishstat_data(self._varnish.stats())

    def name(self) -> str:
        return "Mock Varnish (2 backends, malloc storage)"
