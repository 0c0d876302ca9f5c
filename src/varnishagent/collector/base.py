"""
Base stats source interface.

A stats source is anything that can produce the current list of Metrics
for one poll cycle. This keeps the agent decoupled from where the data
actually comes from (local varnishstat, a remote varnish-agent, mock).
"""

from abc import ABC, abstractmethod
from typing import List

from varnishagent.metrics import Metric


class FetchError(Exception):
    """The stats source was unreachable or returned unusable data."""


class StatsSource(ABC):
    """Interface for all Varnish stats sources."""

    @abstractmethod
    def fetch(self) -> List[Metric]:
        """Fetch the current metrics. Raises FetchError on failure."""
        ...

    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this source."""
        ...

    def close(self):
        pass
