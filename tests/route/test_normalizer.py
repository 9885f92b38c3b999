"""Curve normalisation and segment adapters (13 tests)."""

from __future__ import annotations

import pytest

from route_copilot.route.models import LEFT, RIGHT
from route_copilot.route.normalizer import (
    CensusSegment,
    CurveNormalizer,
    normalize_census_segments,
    normalize_road_segments,
)


def test_canonical_record_passes_through():
    curve = CurveNormalizer().normalize_one(
        {"mile": 1.5, "angle": 30, "lengthMiles": 0.05, "direction": "LEFT", "shape": "tight"}
    )
    assert curve is not None
    assert curve.mile == 1.5
    assert curve.angle == 30.0
    assert curve.length_miles == 0.05
    assert curve.direction == LEFT
    assert curve.shape == "tight"


def test_angle_key_fallbacks_and_degree_strings():
    n = CurveNormalizer()
    assert n.normalize_one({"mile": 1, "totalAngle": 40}).angle == 40.0
    assert n.normalize_one({"mile": 1, "maxAngle": "55°"}).angle == 55.0


def test_meter_position_converted_to_miles():
    curve = CurveNormalizer().normalize_one({"distanceFromStart": 1609.34, "angle": 20})
    assert curve.mile == pytest.approx(1.0)


def test_mile_key_preferred_over_meters():
    curve = CurveNormalizer().normalize_one({"apexMile": 2.0, "distanceFromStart": 99999, "angle": 20})
    assert curve.mile == 2.0


def test_negative_angle_means_left_when_direction_missing():
    curve = CurveNormalizer().normalize_one({"mile": 1, "angle": -25})
    assert curve.angle == 25.0
    assert curve.direction == LEFT


def test_direction_defaults_right():
    assert CurveNormalizer().normalize_one({"mile": 1, "angle": 25}).direction == RIGHT


def test_unusable_records_dropped():
    n = CurveNormalizer()
    assert n.normalize_one({"mile": 1}) is None
    assert n.normalize_one({"angle": 30}) is None
    assert n.normalize_one({"mile": 1, "angle": 0}) is None
    assert n.normalize_one({"mile": -1, "angle": 30}) is None
    assert n.normalize_one("not a record") is None


def test_small_angles_filtered_by_min_angle():
    assert CurveNormalizer(min_angle=12).normalize_one({"mile": 1, "angle": 10}) is None
    assert CurveNormalizer(min_angle=5).normalize_one({"mile": 1, "angle": 10}) is not None


def test_length_units_and_floor():
    n = CurveNormalizer()
    assert n.normalize_one({"mile": 1, "angle": 20, "lengthMeters": 160.934}).length_miles == pytest.approx(0.1)
    # a bare ``length`` larger than a plausible mile count is meters
    assert n.normalize_one({"mile": 1, "angle": 20, "length": 321.868}).length_miles == pytest.approx(0.2)
    assert n.normalize_one({"mile": 1, "angle": 20}).length_miles == 0.01


def test_shape_derived_from_curvature():
    n = CurveNormalizer()
    # 30 degrees over ~100 m -> 0.3 deg/m
    assert n.normalize_one({"mile": 1, "angle": 30, "lengthMeters": 100}).shape == "tight"
    # 30 degrees over ~300 m -> 0.1 deg/m
    assert n.normalize_one({"mile": 1, "angle": 30, "lengthMeters": 300}).shape == "medium"
    # 30 degrees over ~1000 m -> 0.03 deg/m
    assert n.normalize_one({"mile": 1, "angle": 30, "lengthMeters": 1000}).shape == "sweeper"


def test_normalize_sorts_stably_by_mile():
    curves = CurveNormalizer().normalize(
        [
            {"mile": 3, "angle": 20},
            {"mile": 1, "angle": 25, "direction": "LEFT"},
            {"mile": 1, "angle": 30, "direction": "RIGHT"},
            {"angle": 50},
        ]
    )
    assert [c.mile for c in curves] == [1, 1, 3]
    assert [c.angle for c in curves[:2]] == [25.0, 30.0]


def test_census_segments_accept_both_key_styles():
    segments = normalize_census_segments(
        [
            {"startDistance": 500, "endDistance": 900, "character": "urban"},
            {"start": 0, "end": 500, "character": "Rural"},
            {"start": 10, "end": 5, "character": "urban"},
            {"start": 0, "end": 5, "character": "suburban"},
        ]
    )
    assert segments == [CensusSegment(0, 500, "rural"), CensusSegment(500, 900, "urban")]
    assert segments[1].covers(700)


def test_road_segments_classified_from_ref_when_class_missing():
    segments = normalize_road_segments(
        [
            {"startMile": 2, "endMile": 5, "ref": "I-90"},
            {"startDistance": 0, "endDistance": 3218.68, "roadClass": "motorway"},
            {"startMile": 5, "endMile": 6, "name": "Main Street"},
        ]
    )
    assert [s.road_class for s in segments] == ["interstate", "interstate", "local"]
    assert segments[0].end_mile == pytest.approx(2.0)
    assert segments[1].covers(3.0)
