"""
The reporting agent.

Each poll cycle fetches the current Varnish stats, keeps the ones the
catalog knows about, converts counters to per-second rates and hands
(name, unit, value) triples to the sink. A failed cycle is logged and
skipped; the next one starts from scratch.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from varnishagent import __version__
from varnishagent.collector.base import StatsSource
from varnishagent.engine.catalog import MetaCatalog
from varnishagent.metrics import Metric
from varnishagent.reporting.base import ReportingSink

log = logging.getLogger(__name__)

GUID = "org.varnishagent.varnish"
VERSION = __version__

NAMESPACE = "Varnish"
RATE_SUFFIX = "/Second"


class VarnishAgent:

    def __init__(
        self,
        name: str,
        stats: StatsSource,
        catalog: MetaCatalog,
        sink: ReportingSink,
        labels: Optional[Dict[str, str]] = None,
    ):
        self.name = name
        self._stats = stats
        self._catalog = catalog
        self._sink = sink
        self._labels = labels or {}
        self._first_report = True
        self.agent_info = f"Agent Name: {name}. Agent Version: {VERSION}"

    @property
    def first_report(self) -> bool:
        return self._first_report

    def poll_cycle(self) -> int:
        """Fetch and report one round of metrics. Never raises."""
        log.debug("Gathering Varnish metrics. %s", self.agent_info)
        reported = 0

        try:
            metrics = self._stats.fetch()
            reported = self.report_metrics(metrics)
            self._sink.flush()
        except Exception as e:
            log.error("Failed to report: %s", e)
            self._sink.discard()
            reported = 0

        self._first_report = False
        return reported

    def report_metrics(self, metrics: List[Metric]) -> int:
        count = 0
        log.debug("Collected %d Varnish metrics. %s", len(metrics), self.agent_info)

        for metric in metrics:
            # Bitmaps have no meaningful numeric value to chart
            if metric.is_bitmap:
                if self._first_report:
                    log.debug("Not reporting unsupported metric %s", self.build_metric_spec(metric))
                continue

            meta = self._catalog.resolve(metric)
            if meta is None:
                # Lists what else is available for the catalog, once
                if self._first_report:
                    log.debug("Not reporting identified metric %s", self.build_metric_spec(metric))
                continue

            spec = self.build_metric_spec(metric)

            if metric.is_counter:
                if meta.counter is None:
                    if self._first_report:
                        log.debug("Not reporting counter without rate converter %s", spec)
                    continue
                unit = meta.unit + RATE_SUFFIX
                value = meta.counter.process(metric.value)
            elif metric.is_gauge:
                unit = meta.unit + RATE_SUFFIX
                value = metric.value
            else:
                unit = meta.unit
                value = metric.value

            log.debug("Metric '%s' = '%s'", spec, metric.value)
            self._sink.report_metric(spec, unit, value)
            count += 1

        log.debug("Reported %d metrics. %s", count, self.agent_info)
        return count

    def build_metric_spec(self, metric: Metric) -> str:
        """Varnish/<type>[/<ident>]/<label>. Separators inside parts are kept as-is."""
        parts = [NAMESPACE, metric.type]
        if metric.has_ident:
            parts.append(metric.ident)
        parts.append(self._labels.get(metric.name, metric.label))
        return "/".join(parts)
