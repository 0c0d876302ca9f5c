"""
varnishagent entry point.

Usage:
    varnishagent run --license-key KEY                Report local varnishstat to New Relic
    varnishagent --url http://cache1:6085 run         Report a remote varnish-agent
    varnishagent --mock once                          One cycle of simulated stats to the terminal
    varnishagent stats                                Dump raw stats for catalog authoring
"""

from __future__ import annotations

import logging

import click

from varnishagent import __version__
from varnishagent.collector.base import FetchError, StatsSource
from varnishagent.collector.http_stats import VarnishAgentHTTPStats
from varnishagent.collector.mock_collector import MockStats
from varnishagent.collector.varnishstat import DEFAULT_VARNISHSTAT, VarnishStats
from varnishagent.engine.agent import GUID, VarnishAgent
from varnishagent.engine.catalog import (
    DEFAULT_CATALOG_PATH,
    DEFAULT_LABELS_PATH,
    CatalogError,
    load_catalog,
    load_labels,
)
from varnishagent.engine.scheduler import run_forever
from varnishagent.reporting.base import ReportingSink
from varnishagent.reporting.console import ConsoleSink, JsonlSink
from varnishagent.reporting.newrelic import NewRelicSink


log = logging.getLogger("varnishagent")


@click.group()
@click.version_option(version=__version__, prog_name="varnishagent")
@click.option("--mock", is_flag=True, default=False, help="Use simulated Varnish stats")
@click.option("--url", default=None, envvar="VARNISHAGENT_URL",
              help="varnish-agent base URL (e.g. http://localhost:6085)")
@click.option("--user", default=None, envvar="VARNISHAGENT_USER", help="varnish-agent basic auth user")
@click.option("--password", default=None, envvar="VARNISHAGENT_PASSWORD", help="varnish-agent basic auth password")
@click.option("--instance", "-n", default=None, help="varnishd instance name passed to varnishstat -n")
@click.option("--varnishstat", default=DEFAULT_VARNISHSTAT, help="Path to the varnishstat binary")
@click.option("--catalog", default=DEFAULT_CATALOG_PATH, envvar="VARNISHAGENT_CATALOG",
              help="Metric catalog (metric.category.json)")
@click.option("--labels", default=DEFAULT_LABELS_PATH, envvar="VARNISHAGENT_LABELS",
              help="Label overrides (metric.labels.json)")
@click.option("--name", default="Varnish", help="Component name shown in the backend")
@click.option("--timeout", default=5.0, help="Stats fetch timeout in seconds")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging")
@click.pass_context
def cli(ctx, mock: bool, url: str, user: str, password: str, instance: str, varnishstat: str,
        catalog: str, labels: str, name: str, timeout: float, verbose: bool):
    """varnishagent - forward Varnish statistics to a metrics backend."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    ctx.ensure_object(dict)
    ctx.obj["mock"] = mock
    ctx.obj["url"] = url
    ctx.obj["user"] = user
    ctx.obj["password"] = password
    ctx.obj["instance"] = instance
    ctx.obj["varnishstat"] = varnishstat
    ctx.obj["catalog"] = catalog
    ctx.obj["labels"] = labels
    ctx.obj["name"] = name
    ctx.obj["timeout"] = timeout


def _build_source(obj: dict) -> StatsSource:
    if obj["mock"]:
        return MockStats()
    if obj["url"]:
        return VarnishAgentHTTPStats(
            base_url=obj["url"],
            user=obj["user"],
            password=obj["password"],
            timeout_seconds=obj["timeout"],
        )
    return VarnishStats(
        instance=obj["instance"],
        binary=obj["varnishstat"],
        timeout_seconds=obj["timeout"],
    )


def _build_sink(output: str, obj: dict, license_key: str, interval: float) -> ReportingSink:
    if output == "newrelic":
        if not license_key:
            raise click.UsageError("--license-key (or NEW_RELIC_LICENSE_KEY) is required for --output newrelic")
        return NewRelicSink(
            license_key=license_key,
            component_name=obj["name"],
            guid=GUID,
            version=__version__,
            interval_seconds=interval,
        )
    if output == "jsonl":
        return JsonlSink()
    return ConsoleSink()


def _build_agent(obj: dict, source: StatsSource, sink: ReportingSink) -> VarnishAgent:
    try:
        catalog = load_catalog(obj["catalog"])
        labels = load_labels(obj["labels"])
    except CatalogError as e:
        raise click.ClickException(str(e))
    return VarnishAgent(name=obj["name"], stats=source, catalog=catalog, sink=sink, labels=labels)


@cli.command()
@click.option("--interval", default=60.0, help="Poll interval in seconds")
@click.option("--output", type=click.Choice(["newrelic", "console", "jsonl"]), default="newrelic",
              help="Where to send metrics")
@click.option("--license-key", default=None, envvar="NEW_RELIC_LICENSE_KEY", help="New Relic license key")
@click.pass_context
def run(ctx, interval: float, output: str, license_key: str):
    """Poll and report on a fixed interval until interrupted."""
    sink = _build_sink(output, ctx.obj, license_key, interval)
    source = _build_source(ctx.obj)

    try:
        agent = _build_agent(ctx.obj, source, sink)
        log.info("Reporting %s from %s every %.0fs", agent.name, source.name(), interval)
        run_forever(agent, interval_seconds=interval)
    except KeyboardInterrupt:
        pass
    finally:
        source.close()
        sink.close()


@cli.command()
@click.option("--output", type=click.Choice(["newrelic", "console", "jsonl"]), default="console",
              help="Where to send metrics")
@click.option("--license-key", default=None, envvar="NEW_RELIC_LICENSE_KEY", help="New Relic license key")
@click.pass_context
def once(ctx, output: str, license_key: str):
    """Run a single poll cycle and exit."""
    sink = _build_sink(output, ctx.obj, license_key, 60.0)
    source = _build_source(ctx.obj)

    try:
        agent = _build_agent(ctx.obj, source, sink)
        reported = agent.poll_cycle()
    finally:
        source.close()
        sink.close()

    if reported == 0:
        click.echo("No metrics reported.", err=True)
        raise SystemExit(1)


@cli.command()
@click.pass_context
def stats(ctx):
    """Print the raw stats the source returns, for writing a catalog."""
    from rich.console import Console
    from rich.table import Table

    source = _build_source(ctx.obj)
    try:
        metrics = source.fetch()
    except FetchError as e:
        raise click.ClickException(str(e))
    finally:
        source.close()

    table = Table(title=source.name(), show_header=True, header_style="bold")
    table.add_column("Type", style="cyan")
    table.add_column("Ident")
    table.add_column("Name", style="cyan")
    table.add_column("Flag", width=4, justify="center")
    table.add_column("Value", justify="right")
    table.add_column("Label", style="dim")

    for metric in metrics:
        row = metric.summary()
        table.add_row(
            row["type"],
            row["ident"] or "",
            row["name"],
            row["flag"],
            str(row["value"]),
            row["label"],
        )

    Console().print(table)


if __name__ == "__main__":
    cli()
