"""Tests for the New Relic plugin API sink, using httpx's mock transport."""

import json

import httpx
import pytest

from varnishagent.reporting.newrelic import DEFAULT_ENDPOINT, NewRelicSink


class _Clock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _make_sink(handler, clock=None, **overrides) -> NewRelicSink:
    defaults = dict(
        license_key="abc123",
        component_name="cache1",
        guid="org.varnishagent.varnish",
        version="1.1.0",
        interval_seconds=60.0,
        transport=httpx.MockTransport(handler),
        clock=clock or _Clock(),
    )
    defaults.update(overrides)
    return NewRelicSink(**defaults)


def test_flush_posts_buffered_metrics():
    requests = []

    def handler(request):
        requests.append(request)
        return httpx.Response(200, json={"status": "ok"})

    sink = _make_sink(handler)
    sink.report_metric("Varnish/MAIN/Client Requests", "Requests/Second", 12.5)
    sink.report_metric("Varnish/MAIN/Threads", "Threads", 200)
    sink.flush()

    assert len(requests) == 1
    request = requests[0]
    assert str(request.url) == DEFAULT_ENDPOINT
    assert request.headers["X-License-Key"] == "abc123"

    body = json.loads(request.content)
    component = body["components"][0]
    assert component["name"] == "cache1"
    assert component["guid"] == "org.varnishagent.varnish"
    assert component["duration"] == 60
    assert component["metrics"] == {
        "Component/Varnish/MAIN/Client Requests[Requests/Second]": 12.5,
        "Component/Varnish/MAIN/Threads[Threads]": 200,
    }
    assert body["agent"]["version"] == "1.1.0"
    assert sink.pending == 0
    sink.close()


def test_empty_flush_sends_nothing():
    requests = []
    sink = _make_sink(lambda r: requests.append(r) or httpx.Response(200))
    sink.flush()
    assert requests == []
    sink.close()


def test_duration_tracks_time_since_last_flush():
    durations = []

    def handler(request):
        durations.append(json.loads(request.content)["components"][0]["duration"])
        return httpx.Response(200)

    clock = _Clock(100.0)
    sink = _make_sink(handler, clock=clock)

    sink.report_metric("Varnish/MAIN/Threads", "Threads", 1)
    sink.flush()
    clock.now = 145.0
    sink.report_metric("Varnish/MAIN/Threads", "Threads", 1)
    sink.flush()

    assert durations == [60, 45]
    sink.close()


def test_failed_post_raises_and_drops_batch():
    sink = _make_sink(lambda r: httpx.Response(503))
    sink.report_metric("Varnish/MAIN/Threads", "Threads", 1)

    with pytest.raises(httpx.HTTPStatusError):
        sink.flush()
    assert sink.pending == 0
    sink.close()


def test_discard_drops_pending_metrics():
    requests = []
    sink = _make_sink(lambda r: requests.append(r) or httpx.Response(200))

    sink.report_metric("Varnish/MAIN/Threads", "Threads", 1)
    sink.discard()
    assert sink.pending == 0

    sink.flush()
    assert requests == []
    sink.close()
