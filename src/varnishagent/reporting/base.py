"""
Base reporting sink interface.

The agent pushes one (name, unit, value) triple per metric, then calls
flush() once the cycle is complete. Sinks that talk to a backend batch
in report_metric() and send in flush().
"""

from abc import ABC, abstractmethod
from typing import Union

Number = Union[int, float]


class ReportingSink(ABC):

    @abstractmethod
    def report_metric(self, name: str, unit: str, value: Number):
        ...

    def flush(self):
        """Called once at the end of each successful poll cycle."""

    def discard(self):
        """Drop anything buffered by a cycle that failed part way."""

    def close(self):
        pass
