"""
Parser for `varnishstat -j` JSON output. No external deps.

Handles both layouts varnishstat has shipped:

    Varnish >= 6.5   {"version": 1, "timestamp": ..., "counters": {"MAIN.uptime": {...}}}
    older releases   {"timestamp": ..., "MAIN.uptime": {...}, ...}

Older releases also put explicit "type" and "ident" fields on each entry;
newer ones only have the dotted key.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

from varnishagent.collector.base import FetchError
from varnishagent.metrics import Metric

log = logging.getLogger(__name__)


def split_stat_key(key: str, entry: Dict[str, Any]) -> Tuple[str, Optional[str], str]:
    """Split a dotted stat key into (type, ident, name).

    "MAIN.client_req"      -> ("MAIN", None, "client_req")
    "VBE.boot.default.req" -> ("VBE", "boot.default", "req")
    """
    stat_type = entry.get("type")
    if stat_type:
        ident = entry.get("ident") or None
        prefix = f"{stat_type}.{ident}." if ident else f"{stat_type}."
        name = key[len(prefix):] if key.startswith(prefix) else key.rsplit(".", 1)[-1]
        return stat_type, ident, name

    parts = key.split(".")
    if len(parts) == 1:
        return "MAIN", None, key
    ident = ".".join(parts[1:-1]) or None
    return parts[0], ident, parts[-1]


def parse_varnishstat_data(data: Any) -> List[Metric]:
    """Turn an already-decoded varnishstat document into Metrics."""
    if not isinstance(data, dict):
        raise FetchError("varnishstat output is not a JSON object")

    counters = data.get("counters", data)
    if not isinstance(counters, dict):
        raise FetchError("varnishstat 'counters' is not a JSON object")

    metrics: List[Metric] = []
    for key, entry in counters.items():
        # Skips "timestamp", "version" and anything else that isn't a stat
        if not isinstance(entry, dict) or "value" not in entry:
            continue

        value = entry["value"]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            log.debug("Skipping %s: non-numeric value %r", key, value)
            continue

        # These end up in the metric name
        bad_field = next(
            (f for f in ("type", "ident", "description") if entry.get(f) and not isinstance(entry[f], str)),
            None,
        )
        if bad_field:
            log.debug("Skipping %s: non-string %s %r", key, bad_field, entry[bad_field])
            continue

        flag = entry.get("flag", "")
        stat_type, ident, name = split_stat_key(key, entry)
        metrics.append(Metric.from_flag(
            type=stat_type,
            ident=ident,
            name=name,
            label=entry.get("description") or name,
            value=value,
            flag=flag if isinstance(flag, str) else "",
        ))

    return metrics


def parse_varnishstat_json(text: str) -> List[Metric]:
    try:
        data = json.loads(text)
    except ValueError as e:
        raise FetchError(f"varnishstat output is not valid JSON: {e}") from e
    return parse_varnishstat_data(data)
