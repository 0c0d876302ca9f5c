"""
Sink for the New Relic plugin metrics API.

Metrics are buffered for one poll cycle and posted in a single request
when the agent flushes. Names are sent as "Component/<name>[<unit>]",
which is how the plugin API carries the unit alongside each value.
"""

from __future__ import annotations

import logging
import os
import socket
import time
from typing import Callable, Dict, Optional

import httpx

from varnishagent.reporting.base import Number, ReportingSink

log = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://platform-api.newrelic.com/platform/v1/metrics"


class NewRelicSink(ReportingSink):

    def __init__(
        self,
        license_key: str,
        component_name: str,
        guid: str,
        version: str,
        interval_seconds: float = 60.0,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout_seconds: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._endpoint = endpoint
        self._component_name = component_name
        self._guid = guid
        self._version = version
        self._interval = interval_seconds
        self._clock = clock
        self._last_flush: Optional[float] = None
        self._metrics: Dict[str, Number] = {}
        self._client = httpx.Client(
            timeout=timeout_seconds,
            transport=transport,
            headers={
                "X-License-Key": license_key,
                "Content-Type": "application/json",
                "Accept": "application/json",
            },
        )

    @property
    def pending(self) -> int:
        return len(self._metrics)

    def report_metric(self, name: str, unit: str, value: Number):
        self._metrics[f"Component/{name}[{unit}]"] = value

    def _duration(self, now: float) -> int:
        # Whole seconds covered by this batch; the poll interval until we have a previous flush
        if self._last_flush is None:
            return max(1, int(round(self._interval)))
        return max(1, int(round(now - self._last_flush)))

    def build_payload(self, now: float) -> dict:
        return {
            "agent": {
                "host": socket.gethostname(),
                "pid": os.getpid(),
                "version": self._version,
            },
            "components": [
                {
                    "name": self._component_name,
                    "guid": self._guid,
                    "duration": self._duration(now),
                    "metrics": dict(self._metrics),
                }
            ],
        }

    def flush(self):
        """POST the buffered metrics. The buffer is dropped even if the send fails."""
        if not self._metrics:
            return

        now = self._clock()
        payload = self.build_payload(now)
        count = len(self._metrics)
        self._metrics.clear()

        response = self._client.post(self._endpoint, json=payload)
        response.raise_for_status()
        self._last_flush = now
        log.debug("Sent %d metrics to New Relic (status %d)", count, response.status_code)

    def discard(self):
        self._metrics.clear()

    def close(self):
        self._client.close()
