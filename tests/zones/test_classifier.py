"""Zone voting classifier (14 tests)."""

from __future__ import annotations

import pytest

from route_copilot.observability import EventBus
from route_copilot.route.models import RIGHT, TECHNICAL, TRANSIT, URBAN, Curve
from route_copilot.zones.classifier import (
    ClassificationStrategy,
    ClassifierConfig,
    VotingWeights,
    WindowVote,
    ZoneVotingClassifier,
    zone_at,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _curve(mile: float, angle: float, length: float = 0.2) -> Curve:
    return Curve(mile=mile, angle=angle, length_miles=length, direction=RIGHT)


def _twisty(start: float, end: float, angle: float = 30.0) -> list[Curve]:
    """One tight curve every 0.1 mi between *start* and *end*."""
    curves = []
    mile = start + 0.05
    while mile < end:
        curves.append(_curve(round(mile, 4), angle, length=0.05))
        mile += 0.1
    return curves


def _assert_tiles(zones, total_miles):
    assert zones[0].start_mile == 0.0
    assert zones[-1].end_mile == total_miles
    for prev, cur in zip(zones, zones[1:]):
        assert prev.end_mile == pytest.approx(cur.start_mile)
        assert prev.character != cur.character


# ---------------------------------------------------------------------------
# Window voting
# ---------------------------------------------------------------------------


def test_window_with_curve_cluster_is_technical():
    clf = ZoneVotingClassifier()
    curves = [_curve(0.1, 20), _curve(0.2, 22), _curve(0.3, 24)]
    vote = clf.vote_window(0.0, 0.4, curves, total_miles=5.0)
    assert vote.character == TECHNICAL
    assert any("3 curves in 0.5mi" in r for r in vote.reasons)


def test_window_with_one_small_curve_is_transit():
    clf = ZoneVotingClassifier()
    zones = clf.classify([_curve(0.2, 10)], total_miles=0.4)
    assert [z.character for z in zones] == [TRANSIT]
    vote = clf.vote_window(0.0, 0.4, [], total_miles=0.4)
    assert "sparse curves" in vote.reasons


def test_interstate_forces_transit_over_curves():
    clf = ZoneVotingClassifier()
    roads = [{"startMile": 0, "endMile": 3, "ref": "I-90"}]
    zones = clf.classify(_twisty(0, 3), total_miles=3.0, road_segments=roads)
    assert len(zones) == 1
    assert zones[0].character == TRANSIT
    assert "interstate I-90" in zones[0].reasons


def test_curve_voting_strategy_ignores_road_refs():
    config = ClassifierConfig(strategy=ClassificationStrategy.CURVE_VOTING)
    roads = [{"startMile": 0, "endMile": 3, "ref": "I-90"}]
    zones = ZoneVotingClassifier(config).classify(_twisty(0, 3), total_miles=3.0, road_segments=roads)
    assert [z.character for z in zones] == [TECHNICAL]


def test_tie_goes_to_configured_character():
    clf = ZoneVotingClassifier(ClassifierConfig(tie_character=TECHNICAL))
    vote = clf.vote_window(0.0, 0.5, [], total_miles=0.5)
    vote.score.technical = vote.score.transit
    assert clf._decide(vote) == TECHNICAL


# ---------------------------------------------------------------------------
# Whole-route classification
# ---------------------------------------------------------------------------


def test_no_curves_gives_single_transit_zone():
    zones = ZoneVotingClassifier().classify([], total_miles=3.0)
    assert len(zones) == 1
    assert (zones[0].start_mile, zones[0].end_mile, zones[0].character) == (0.0, 3.0, TRANSIT)


def test_mixed_route_tiles_without_gaps_and_respects_min_length():
    total = 8.0
    zones = ZoneVotingClassifier().classify(_twisty(0, 3), total_miles=total)
    _assert_tiles(zones, total)
    assert zones[0].character == TECHNICAL
    assert zones[-1].character == TRANSIT
    assert all(z.length_miles >= 0.5 - 1e-9 for z in zones)


def test_classification_is_deterministic():
    curves = _twisty(0, 3) + [_curve(5.5, 60)]
    census = [{"start": 0, "end": 20000, "character": "rural"}]
    a = ZoneVotingClassifier().classify(curves, 8.0, census)
    b = ZoneVotingClassifier().classify(curves, 8.0, census)
    assert [z.to_dict() for z in a] == [z.to_dict() for z in b]


def test_non_positive_length_gives_no_zones():
    assert ZoneVotingClassifier().classify([], 0.0) == []


def test_census_urban_near_route_ends_votes_urban():
    census = [
        {"start": 0, "end": 1609.34, "character": "urban"},
        {"start": 1609.34, "end": 6437.36, "character": "rural"},
        {"start": 6437.36, "end": 8046.7, "character": "urban"},
    ]
    zones = ZoneVotingClassifier().classify([], 5.0, census)
    _assert_tiles(zones, 5.0)
    assert [z.character for z in zones] == [URBAN, TRANSIT, URBAN]
    assert zones[0].end_mile == pytest.approx(0.75)
    assert zones[-1].start_mile == pytest.approx(4.0)


def test_urban_edge_forced_when_voting_misses_it():
    config = ClassifierConfig(weights=VotingWeights(census_urban=0))
    census = [
        {"start": 0, "end": 1609.34, "character": "urban"},
        {"start": 1609.34, "end": 8046.7, "character": "rural"},
    ]
    zones = ZoneVotingClassifier(config).classify([], 5.0, census)
    assert [z.character for z in zones] == [URBAN, TRANSIT]
    assert zones[0].end_mile == pytest.approx(1.0)
    assert zones[0].reasons == ["census urban at route start"]


def test_short_urban_route_keeps_mid_route_clear_of_urban():
    census = [{"start": 0, "end": 3600, "character": "urban"}]
    zones = ZoneVotingClassifier().classify([], 2.2, census)
    _assert_tiles(zones, 2.2)
    assert [z.character for z in zones] == [URBAN, TRANSIT, URBAN]
    assert zone_at(zones, 1.1).character == TRANSIT
    assert zones[0].end_mile <= 1.0
    assert zones[-1].start_mile >= 2.2 - 1.0
    assert all(z.length_miles >= 0.5 - 1e-9 for z in zones)


def test_zone_at_and_stage_event():
    bus = EventBus()
    seen = []
    bus.subscribe(seen.append)
    zones = ZoneVotingClassifier(events=bus).classify(_twisty(0, 3), total_miles=8.0)
    assert zone_at(zones, 0.0) is zones[0]
    assert zone_at(zones, 8.0) is zones[-1]
    assert zone_at(zones, 9.0) is None
    assert [e.stage for e in seen] == ["zones"]
    assert seen[0].data["zones"] == len(zones)


def test_all_zero_scores_default_to_transit():
    clf = ZoneVotingClassifier()
    vote = WindowVote(start_mile=0.0, end_mile=0.5)
    assert clf._decide(vote) == TRANSIT
