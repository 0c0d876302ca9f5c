"""Varnish statistics agent: polls varnishstat and forwards unit-annotated metrics."""

__version__ = "1.1.0"
