"""
Metric metadata catalog.

The catalog decides which Varnish stats get reported and in which unit.
Entries are keyed "type/name" (e.g. "MAIN/client_req"). Stats that carry
an ident (one per backend, storage, ...) share the generic entry at first;
on first sight they get their own "type/ident/name" clone so each
instance keeps separate counter state.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Iterator, Mapping, Optional, Union

from varnishagent.engine.counter import CounterRate
from varnishagent.metrics import Metric

log = logging.getLogger(__name__)

# Shipped with the package so the defaults work from any working directory
CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"
DEFAULT_CATALOG_PATH = str(CONFIG_DIR / "metric.category.json")
DEFAULT_LABELS_PATH = str(CONFIG_DIR / "metric.labels.json")


class CatalogError(ValueError):
    """Catalog or labels configuration could not be loaded."""


@dataclass
class MetricMeta:
    unit: str
    counter: Optional[CounterRate] = None

    def clone(self) -> "MetricMeta":
        """Same unit, fresh converter state."""
        counter = self.counter.fresh() if self.counter else None
        return MetricMeta(unit=self.unit, counter=counter)


def meta_key(type: str, name: str, ident: Optional[str] = None) -> str:
    if ident:
        return f"{type}/{ident}/{name}"
    return f"{type}/{name}"


class MetaCatalog:

    def __init__(self, entries: Optional[Mapping[str, MetricMeta]] = None):
        self._entries: Dict[str, MetricMeta] = dict(entries or {})

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> Iterator[str]:
        return iter(self._entries.keys())

    def get(self, key: str) -> Optional[MetricMeta]:
        return self._entries.get(key)

    def resolve(self, metric: Metric) -> Optional[MetricMeta]:
        """Find the metadata for a metric, specializing per ident on first use.

        Only the clone step mutates the catalog. Not safe for concurrent
        callers; the agent runs one poll cycle at a time.
        """
        generic = self._entries.get(meta_key(metric.type, metric.name))
        if generic is None or not metric.has_ident:
            return generic

        key = meta_key(metric.type, metric.name, metric.ident)
        specific = self._entries.get(key)
        if specific is None:
            specific = generic.clone()
            self._entries[key] = specific
            log.debug("Specialized catalog entry %s", key)
        return specific

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Mapping[str, Union[str, Mapping]]],
        clock: Optional[Callable[[], float]] = None,
    ) -> "MetaCatalog":
        """Build a catalog from the parsed metric.category.json structure.

        Top-level keys are a metric type, or "type/ident" for entries that only
        apply to one instance. Each maps stat names to {"unit": ..., "counter": bool}
        or to a bare unit string.
        """
        if not isinstance(data, Mapping):
            raise CatalogError("Catalog must be a JSON object keyed by metric type")

        entries: Dict[str, MetricMeta] = {}
        for section, stats in data.items():
            if not isinstance(stats, Mapping):
                raise CatalogError(f"Catalog section '{section}' must be an object")

            for name, spec in stats.items():
                if isinstance(spec, str):
                    spec = {"unit": spec}
                if not isinstance(spec, Mapping):
                    raise CatalogError(f"Catalog entry '{section}/{name}' must be an object or unit string")

                unit = spec.get("unit")
                if not isinstance(unit, str) or not unit:
                    raise CatalogError(f"Catalog entry '{section}/{name}' has no unit")

                is_counter = spec.get("counter", True)
                if not isinstance(is_counter, bool):
                    raise CatalogError(f"Catalog entry '{section}/{name}' counter must be true or false")

                counter = None
                if is_counter:
                    counter = CounterRate(clock=clock) if clock else CounterRate()

                entries[f"{section}/{name}"] = MetricMeta(unit=unit, counter=counter)

        return cls(entries)


def load_catalog(path: Union[str, Path] = DEFAULT_CATALOG_PATH) -> MetaCatalog:
    path = Path(path)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise CatalogError(f"Cannot read catalog {path}: {e}") from e
    except ValueError as e:
        raise CatalogError(f"Catalog {path} is not valid JSON: {e}") from e

    catalog = MetaCatalog.from_dict(data)
    log.info("Loaded %d catalog entries from %s", len(catalog), path)
    return catalog


def load_labels(path: Union[str, Path, None] = DEFAULT_LABELS_PATH) -> Dict[str, str]:
    """Read the name -> display label overrides. A missing file means none."""
    if path is None:
        return {}

    path = Path(path)
    if not path.exists():
        log.debug("No labels file at %s, using raw labels", path)
        return {}

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise CatalogError(f"Cannot read labels {path}: {e}") from e
    except ValueError as e:
        raise CatalogError(f"Labels {path} is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise CatalogError(f"Labels {path} must be a JSON object")

    for name, label in data.items():
        if not isinstance(label, str):
            raise CatalogError(f"Label for '{name}' must be a string")

    return data
