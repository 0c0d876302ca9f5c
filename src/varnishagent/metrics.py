"""
Core metric definitions for the Varnish agent.

A Metric mirrors one entry of `varnishstat -j` output: a dotted key split
into type / ident / name, the counter description as label, and the
flag that tells us how the value behaves over time.
"""

from dataclasses import dataclass
from typing import Optional, Union

Number = Union[int, float]

# varnishstat flag characters
FLAG_COUNTER = "c"
FLAG_ACCUMULATOR = "a"  # Varnish 3 name for a counter
FLAG_GAUGE = "g"
FLAG_BITMAP = "b"


@dataclass(frozen=True)
class Metric:
    """A single raw stat reading for one poll cycle."""

    type: str
    name: str
    label: str
    value: Number
    ident: Optional[str] = None

    # Classification (at most one is set; none means a plain value)
    is_counter: bool = False
    is_gauge: bool = False
    is_bitmap: bool = False

    @property
    def has_ident(self) -> bool:
        return bool(self.ident)

    @classmethod
    def from_flag(
        cls,
        type: str,
        name: str,
        label: str,
        value: Number,
        flag: str = "",
        ident: Optional[str] = None,
    ) -> "Metric":
        """Build a Metric from a varnishstat flag character ('c', 'a', 'g', 'b', 'i')."""
        return cls(
            type=type,
            name=name,
            label=label,
            value=value,
            ident=ident or None,
            is_counter=flag in (FLAG_COUNTER, FLAG_ACCUMULATOR),
            is_gauge=flag == FLAG_GAUGE,
            is_bitmap=flag == FLAG_BITMAP,
        )

    @property
    def flag(self) -> str:
        if self.is_counter:
            return FLAG_COUNTER
        if self.is_gauge:
            return FLAG_GAUGE
        if self.is_bitmap:
            return FLAG_BITMAP
        return "i"

    def summary(self) -> dict:
        """Return a plain dict for display."""
        return {
            "type": self.type,
            "ident": self.ident,
            "name": self.name,
            "flag": self.flag,
            "value": self.value,
            "label": self.label,
        }
