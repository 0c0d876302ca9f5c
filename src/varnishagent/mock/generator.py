"""
Mock varnishstat generator.

Produces fake but believable `varnishstat -j` documents so we can develop
and test without a running varnishd. Numbers are loosely based on a
small site doing a few hundred requests per second with two backends.
"""

import math
import random
from datetime import datetime, timezone
from typing import Any, Dict

BACKENDS = ("boot.web1", "boot.web2")
STORAGES = ("s0", "Transient")


def _stat(description: str, flag: str, value, fmt: str = "i") -> Dict[str, Any]:
    return {"description": description, "flag": flag, "format": fmt, "value": value}


class MockVarnish:

    def __init__(self, seed: int = 42, tick_seconds: float = 60.0):
        self._rng = random.Random(seed)
        self._tick = 0
        self._tick_seconds = tick_seconds
        self._uptime = 0
        self._client_req = 0
        self._cache_hit = 0
        self._cache_miss = 0
        self._s_resp_bodybytes = 0
        self._backend_req = {b: 0 for b in BACKENDS}
        self._backend_conn = {b: 0 for b in BACKENDS}
        self._sma_bytes = {s: 0 for s in STORAGES}

    def stats(self) -> Dict[str, Any]:
        """Generate one varnishstat document, advancing the simulation clock."""
        self._tick += 1
        t = self._tick
        self._uptime += int(self._tick_seconds)

        # Sinusoidal traffic with the occasional burst
        rps = 300 + 150 * math.sin(t * 0.05)
        if self._rng.random() > 0.9:
            rps += self._rng.random() * 200
        requests = int(rps * self._tick_seconds)

        hit_ratio = min(0.97, max(0.5, 0.85 + self._rng.gauss(0, 0.03)))
        hits = int(requests * hit_ratio)
        misses = requests - hits

        self._client_req += requests
        self._cache_hit += hits
        self._cache_miss += misses
        self._s_resp_bodybytes += requests * self._rng.randint(8_000, 16_000)

        counters: Dict[str, Any] = {
            "MAIN.uptime": _stat("Child process uptime", "c", self._uptime, "d"),
            "MAIN.client_req": _stat("Good client requests received", "c", self._client_req),
            "MAIN.cache_hit": _stat("Cache hits", "c", self._cache_hit),
            "MAIN.cache_miss": _stat("Cache misses", "c", self._cache_miss),
            "MAIN.s_resp_bodybytes": _stat("Response body bytes", "c", self._s_resp_bodybytes, "B"),
            "MAIN.n_object": _stat("object structs made", "g", 40_000 + int(5_000 * math.sin(t * 0.02))),
            "MAIN.threads": _stat("Total number of threads", "g", 200),
            "MAIN.sess_queued": _stat("Sessions queued for thread", "c", t // 10),
        }

        for i, backend in enumerate(BACKENDS):
            share = 0.5 + (0.1 if i == 0 else -0.1)
            self._backend_req[backend] += int(misses * share)
            self._backend_conn[backend] += int(misses * share * 0.2)
            counters[f"VBE.{backend}.happy"] = _stat("Happy health probes", "b", 0xFFFFFFFF, "b")
            counters[f"VBE.{backend}.req"] = _stat("Backend requests sent", "c", self._backend_req[backend])
            counters[f"VBE.{backend}.conn"] = _stat("Concurrent connections to backend", "g", self._rng.randint(1, 20))
            counters[f"VBE.{backend}.bereq_hdrbytes"] = _stat("Request header bytes", "c", self._backend_req[backend] * 400, "B")

        for storage in STORAGES:
            self._sma_bytes[storage] += self._rng.randint(0, 10_000_000)
            counters[f"SMA.{storage}.c_bytes"] = _stat("Bytes allocated", "c", self._sma_bytes[storage], "B")
            counters[f"SMA.{storage}.g_bytes"] = _stat("Bytes outstanding", "g", self._sma_bytes[storage] // 3, "B")

        return {
            "version": 1,
            "timestamp": datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S"),
            "counters": counters,
        }
