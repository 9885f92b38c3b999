"""Road reference classification and routing-step segments (5 tests)."""

from __future__ import annotations

import pytest

from route_copilot.route.road_refs import (
    INTERSTATE,
    LOCAL,
    STATE_ROUTE,
    UNKNOWN,
    US_HIGHWAY,
    build_road_segments,
    canonical_road_class,
    classify_road_ref,
)


@pytest.mark.parametrize(
    "ref,expected",
    [
        ("I-90", INTERSTATE),
        ("I 87;US 9", INTERSTATE),
        ("US 20", US_HIGHWAY),
        ("U.S. 1", US_HIGHWAY),
        ("NY 17", STATE_ROUTE),
        ("Route 66", STATE_ROUTE),
    ],
)
def test_classify_numbered_refs(ref, expected):
    assert classify_road_ref(ref) == expected


def test_classify_falls_back_to_name():
    assert classify_road_ref(None, "Garden State Parkway") == US_HIGHWAY
    assert classify_road_ref("", "Elm Street") == LOCAL
    assert classify_road_ref(None, None) == UNKNOWN


def test_canonical_road_class_aliases():
    assert canonical_road_class("Motorway") == INTERSTATE
    assert canonical_road_class("state_route") == STATE_ROUTE
    assert canonical_road_class("bridleway") is None
    assert canonical_road_class(None) is None


def test_build_road_segments_merges_same_ref():
    steps = [
        {"distance": 1609.34, "ref": "I-90", "name": "NY Thruway"},
        {"distance": 1609.34, "ref": "I-90", "name": "NY Thruway"},
        {"distance": 804.67, "name": "Main Street"},
    ]
    segments = build_road_segments(steps)
    assert len(segments) == 2
    assert segments[0]["roadClass"] == INTERSTATE
    assert segments[0]["startMile"] == 0.0
    assert segments[0]["endMile"] == pytest.approx(2.0)
    assert segments[1]["roadClass"] == LOCAL
    assert segments[1]["endMile"] == pytest.approx(2.5)


def test_build_road_segments_skips_bad_steps():
    steps = [{"distance": 0}, {"distance": "abc"}, "junk", {"distance": 100, "ref": "US 1"}]
    segments = build_road_segments(steps)
    assert len(segments) == 1
    assert segments[0]["startMile"] == 0.0
