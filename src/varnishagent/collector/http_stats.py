"""
Stats source for a remote Varnish fronted by varnish-agent. Fetches
/stats, which returns the same JSON document as `varnishstat -j`.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import httpx

from varnishagent.collector.base import FetchError, StatsSource
from varnishagent.collector.varnishstat_parser import parse_varnishstat_json
from varnishagent.metrics import Metric

log = logging.getLogger(__name__)


class VarnishAgentHTTPStats(StatsSource):

    def __init__(
        self,
        base_url: str,
        user: Optional[str] = None,
        password: Optional[str] = None,
        timeout_seconds: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._stats_url = base_url.rstrip("/")
        if not self._stats_url.endswith("/stats"):
            self._stats_url += "/stats"

        auth = httpx.BasicAuth(user, password or "") if user else None
        self._client = httpx.Client(timeout=timeout_seconds, auth=auth, transport=transport)

    def fetch(self) -> List[Metric]:
        """GET /stats and parse the varnishstat JSON."""
        try:
            response = self._client.get(self._stats_url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise FetchError(f"Cannot fetch {self._stats_url}: {e}") from e

        return parse_varnishstat_json(response.text)

    def name(self) -> str:
        return f"varnish-agent ({self._stats_url})"

    def close(self):
        self._client.close()
