"""
Stats source for a local Varnish. Runs `varnishstat -1 -j` and parses
the JSON it prints. Needs to run as a user that can read the varnishd
shared memory log (usually root or the varnish group).
"""

from __future__ import annotations

import logging
import subprocess
from typing import List, Optional

from varnishagent.collector.base import FetchError, StatsSource
from varnishagent.collector.varnishstat_parser import parse_varnishstat_json
from varnishagent.metrics import Metric

log = logging.getLogger(__name__)

DEFAULT_VARNISHSTAT = "varnishstat"


class VarnishStats(StatsSource):

    def __init__(
        self,
        instance: Optional[str] = None,
        binary: str = DEFAULT_VARNISHSTAT,
        timeout_seconds: float = 5.0,
    ):
        self._instance = instance
        self._binary = binary
        self._timeout = timeout_seconds

    def command(self) -> List[str]:
        cmd = [self._binary, "-1", "-j"]
        if self._instance:
            cmd += ["-n", self._instance]
        return cmd

    def fetch(self) -> List[Metric]:
        cmd = self.command()
        log.debug("Running %s", " ".join(cmd))

        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self._timeout,
            )
        except subprocess.TimeoutExpired as e:
            raise FetchError(f"varnishstat timed out after {self._timeout}s") from e
        except OSError as e:
            raise FetchError(f"Cannot run {self._binary}: {e}") from e

        if result.returncode != 0:
            stderr = (result.stderr or "").strip()
            raise FetchError(f"varnishstat exited with code {result.returncode}: {stderr}")

        return parse_varnishstat_json(result.stdout)

    def name(self) -> str:
        if self._instance:
            return f"varnishstat (instance {self._instance})"
        return "varnishstat"
