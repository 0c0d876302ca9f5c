"""Local sinks: a Rich table per cycle, or one JSON line per metric."""

from __future__ import annotations

import json
import sys
from datetime import datetime
from typing import IO, List, Optional, Tuple

from rich.console import Console
from rich.table import Table

from varnishagent.reporting.base import Number, ReportingSink


class ConsoleSink(ReportingSink):
    """Collects a cycle's metrics and prints them as a table on flush."""

    def __init__(self, console: Optional[Console] = None):
        self._console = console or Console()
        self._rows: List[Tuple[str, str, Number]] = []

    def report_metric(self, name: str, unit: str, value: Number):
        self._rows.append((name, unit, value))

    def flush(self):
        if not self._rows:
            return

        table = Table(
            title=f"Reported metrics ({datetime.now().strftime('%H:%M:%S')})",
            show_header=True,
            header_style="bold",
        )
        table.add_column("Metric", style="cyan")
        table.add_column("Unit")
        table.add_column("Value", justify="right")

        for name, unit, value in self._rows:
            formatted = f"{value:,.2f}" if isinstance(value, float) else f"{value:,}"
            table.add_row(name, unit, formatted)

        self._console.print(table)
        self._rows.clear()

    def discard(self):
        self._rows.clear()


class JsonlSink(ReportingSink):
    """Non-interactive output: one JSON object per reported metric per line.

    Meant for containers and log shippers where a Rich table isn't useful.
    """

    def __init__(self, stream: Optional[IO[str]] = None):
        self._stream = stream or sys.stdout

    def report_metric(self, name: str, unit: str, value: Number):
        record = {
            "timestamp": datetime.now().isoformat(),
            "name": name,
            "unit": unit,
            "value": value,
        }
        self._stream.write(json.dumps(record) + "\n")

    def flush(self):
        self._stream.flush()
