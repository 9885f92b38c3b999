"""End-to-end route pipeline (7 tests)."""

from __future__ import annotations

import math

from route_copilot.observability import EventBus
from route_copilot.pipeline import PipelineConfig, RouteInput, RoutePipeline
from route_copilot.route.models import METERS_PER_MILE, TECHNICAL, TRANSIT

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _polyline(turns: list[float]) -> list[list[float]]:
    """Coordinates 10 m apart following a per-step heading change."""
    lng, lat, heading = -75.0, 42.0, 0.0
    coords = [[lng, lat]]
    for turn in turns:
        heading += turn
        rad = math.radians(heading)
        lat += 10.0 * math.cos(rad) / 111_320.0
        lng += 10.0 * math.sin(rad) / (111_320.0 * math.cos(math.radians(lat)))
        coords.append([lng, lat])
    return coords


def _bend_route() -> list[list[float]]:
    """1 km straight, a 30° right arc, 1 km straight."""
    return _polyline([0.0] * 100 + [1.0] * 30 + [0.0] * 100)


def _twisty_events(start_mile: float, end_mile: float) -> list[dict]:
    events = []
    mile = start_mile + 0.05
    while mile < end_mile:
        events.append({"apexMile": round(mile, 3), "totalAngle": 35, "lengthMeters": 60, "direction": "LEFT"})
        mile += 0.1
    return events


def _record(bus: EventBus) -> list:
    seen = []
    bus.subscribe(seen.append)
    return seen


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


def test_empty_route_gives_empty_analysis():
    analysis = RoutePipeline().analyze(RouteInput())
    assert analysis.total_miles == 0.0
    assert analysis.zones == []
    assert analysis.callouts.fast == []
    assert analysis.callouts.standard == []


def test_highway_route_finds_bend_and_emits_stage_events():
    bus = EventBus()
    seen = _record(bus)
    analysis = RoutePipeline(events=bus).analyze(RouteInput(coordinates=_bend_route()))

    assert [z.character for z in analysis.zones] == [TRANSIT]
    assert len(analysis.bends) == 1
    types = [c.type for c in analysis.callouts.standard]
    assert "highway_bend" in types
    assert types[0] == "zone_announcement"
    assert [e.stage for e in seen] == ["curves", "zones", "bends", "callouts", "analysis"]


def test_twisty_then_open_route():
    events = _twisty_events(0.0, 3.0) + [{"mile": 50.0, "angle": 40}]
    route = RouteInput(flow_events=events, total_distance_m=8 * METERS_PER_MILE)
    analysis = RoutePipeline().analyze(route)

    assert analysis.zones[0].character == TECHNICAL
    assert analysis.zones[-1].character == TRANSIT
    assert all(c.mile <= 8.0 for c in analysis.curves)
    assert analysis.bends == []
    assert analysis.callouts.stats.original == len(analysis.curves)
    assert len(analysis.callouts.fast) <= len(analysis.callouts.standard)


def test_each_set_is_sorted_by_trigger():
    route = RouteInput(flow_events=_twisty_events(0.0, 3.0), total_distance_m=8 * METERS_PER_MILE)
    analysis = RoutePipeline().analyze(route)
    for callouts in (analysis.callouts.fast, analysis.callouts.standard):
        triggers = [c.trigger_mile for c in callouts]
        assert triggers == sorted(triggers)
        assert all(c.trigger_mile <= c.mile for c in callouts)


def test_zone_announcements_can_be_disabled():
    route = RouteInput(total_distance_m=2 * METERS_PER_MILE)
    analysis = RoutePipeline(PipelineConfig(zone_announcements=False)).analyze(route)
    assert analysis.callouts.standard == []
    with_announcements = RoutePipeline().analyze(route)
    assert [c.text for c in with_announcements.callouts.standard] == ["Clear. Open road."]


def test_to_dict_shape():
    data = RoutePipeline().analyze(RouteInput(total_distance_m=METERS_PER_MILE)).to_dict()
    assert set(data) == {"total_miles", "curves", "zones", "bends", "callouts", "stats"}
    assert set(data["callouts"]) == {"fast", "standard"}
    assert data["total_miles"] == 1.0


def test_analysis_is_deterministic():
    coords = _polyline(
        [0.0] * 100 + [1.0] * 30 + [0.0] * 60 + [-1.0] * 30 + [0.0] * 100 + [1.0] * 25 + [0.0] * 100
    )
    events = [
        {"apexMile": 0.30, "totalAngle": 22, "lengthMeters": 300, "direction": "LEFT"},
        {"apexMile": 0.35, "totalAngle": 24, "lengthMeters": 300, "direction": "RIGHT"},
    ]
    route = RouteInput(coordinates=coords, flow_events=events)
    first = RoutePipeline().analyze(route).to_dict()
    second = RoutePipeline().analyze(route).to_dict()

    assert first == second
    assert first["bends"]
    assert any(c["grouped_from"] for c in first["callouts"]["standard"])
