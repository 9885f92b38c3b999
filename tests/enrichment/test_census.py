"""Census geocoder client and route enrichment (7 tests)."""

from __future__ import annotations

import httpx
import pytest

from route_copilot.enrichment.census import CENSUS_URL, CensusClient, CensusEnricher
from route_copilot.observability import EventBus
from route_copilot.route.models import METERS_PER_MILE

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_DEG_LAT_M = 111_194.9266


def _client(handler) -> CensusClient:
    return CensusClient(client=httpx.Client(transport=httpx.MockTransport(handler)))


def _geographies(features: list) -> dict:
    return {"result": {"geographies": {"2020 Census Urban Areas": features}}}


def _route(miles: float) -> list[list[float]]:
    """Straight north from the equator."""
    return [[0.0, 0.0], [0.0, miles * METERS_PER_MILE / _DEG_LAT_M]]


class _FakeLookup:
    """Urban south of *urban_until_m*, rural beyond; None past *fail_above_m*."""

    def __init__(self, urban_until_m: float, fail_above_m: float | None = None) -> None:
        self.urban_until_m = urban_until_m
        self.fail_above_m = fail_above_m
        self.calls = 0

    def lookup(self, lng: float, lat: float) -> str | None:
        self.calls += 1
        meters = lat * _DEG_LAT_M
        if self.fail_above_m is not None and meters > self.fail_above_m:
            return None
        return "urban" if meters < self.urban_until_m else "rural"


# ---------------------------------------------------------------------------
# CensusClient
# ---------------------------------------------------------------------------


def test_lookup_urban_when_layer_has_features():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["params"] = dict(request.url.params)
        return httpx.Response(200, json=_geographies([{"NAME": "Albany, NY"}]))

    assert _client(handler).lookup(-73.75, 42.65) == "urban"
    assert seen["params"]["x"] == "-73.75"
    assert seen["params"]["y"] == "42.65"
    assert seen["params"]["format"] == "json"


def test_lookup_rural_when_layer_empty():
    client = _client(lambda request: httpx.Response(200, json=_geographies([])))
    assert client.lookup(-74.0, 42.0) == "rural"


def test_lookup_none_on_http_error():
    client = _client(lambda request: httpx.Response(503, json={}))
    assert client.lookup(-74.0, 42.0) is None


def test_lookup_none_on_transport_error_or_bad_body():
    def refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    assert _client(refuse).lookup(-74.0, 42.0) is None
    assert _client(lambda request: httpx.Response(200, text="<html>")).lookup(-74.0, 42.0) is None
    assert _client(lambda request: httpx.Response(200, json={"result": {}})).lookup(-74.0, 42.0) is None


def test_client_default_url():
    with CensusClient() as client:
        assert client.base_url == CENSUS_URL


# ---------------------------------------------------------------------------
# CensusEnricher
# ---------------------------------------------------------------------------


def test_segments_collapse_equal_labels():
    bus = EventBus()
    seen = []
    bus.subscribe(seen.append)
    fake = _FakeLookup(urban_until_m=1.2 * METERS_PER_MILE)
    segments = CensusEnricher(fake, events=bus, _sleep=lambda s: None).build_segments(_route(2.9))

    assert fake.calls == 7
    assert [s["character"] for s in segments] == ["urban", "rural"]
    assert segments[0]["start"] == 0.0
    assert segments[0]["end"] == pytest.approx(1.25 * METERS_PER_MILE, rel=1e-6)
    assert segments[1]["end"] == pytest.approx(2.9 * METERS_PER_MILE, rel=1e-6)
    assert seen[0].stage == "enrichment"
    assert seen[0].data["answered"] == 7


def test_unanswered_samples_leave_gaps():
    fake = _FakeLookup(urban_until_m=0.0, fail_above_m=1.7 * METERS_PER_MILE)
    segments = CensusEnricher(fake, _sleep=lambda s: None).build_segments(_route(2.9))
    assert len(segments) == 1
    assert segments[0]["character"] == "rural"
    assert segments[0]["end"] == pytest.approx(1.75 * METERS_PER_MILE, rel=1e-6)
    assert CensusEnricher(fake).build_segments([[0.0, 0.0]]) == []
