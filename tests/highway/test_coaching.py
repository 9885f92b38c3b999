"""Highway coaching metadata and spoken marker text (7 tests)."""

from __future__ import annotations

from route_copilot.route.models import LEFT, RIGHT, Bend
from route_copilot.highway.coaching import (
    HighwayMode,
    apply_coaching,
    generate_highway_callout,
    highway_callout_type,
    optimal_speed,
    severity,
)
from route_copilot.highway.detector import consolidate_sections, merge_s_sweeps


def _bend(direction: str, angle: int, start: float = 0.0, length: float = 100.0, bid: str = "hwy-1") -> Bend:
    return Bend(id=bid, direction=direction, angle=angle, length_m=length, distance_from_start=start, zone_index=0)


def test_optimal_speed_drops_with_angle_and_s_sweeps():
    assert optimal_speed(_bend(RIGHT, 8)) == 75
    assert optimal_speed(_bend(RIGHT, 12)) == 72
    assert optimal_speed(_bend(RIGHT, 18)) == 70
    assert optimal_speed(_bend(RIGHT, 25)) == 65
    assert optimal_speed(_bend(RIGHT, 35)) == 60
    s = merge_s_sweeps([_bend(LEFT, 35, 0, 50, "a"), _bend(RIGHT, 20, 100, bid="b")])[0]
    assert optimal_speed(s) == 55


def test_severity_bands():
    assert [severity(a) for a in (5, 15, 25, 35, 45)] == [1, 2, 3, 4, 5]


def test_apply_coaching_fills_fields():
    bend = apply_coaching([_bend(RIGHT, 12, length=400)])[0]
    assert bend.optimal_speed == 72
    assert bend.throttle_advice == "Light lift, smooth through"
    assert bend.severity == 2
    assert bend.modifier == "LONG"


def test_gentle_bend_text():
    assert generate_highway_callout(_bend(RIGHT, 12)) == "Gentle right sweep, 12 degrees"
    assert generate_highway_callout(_bend(LEFT, 12, length=400)) == "Long gentle left sweep, 12 degrees"
    assert generate_highway_callout(_bend(LEFT, 12, length=600)) == "Very long gentle left sweep, 12 degrees"


def test_bend_text_companion_adds_target():
    bend = apply_coaching([_bend(RIGHT, 20)])[0]
    assert generate_highway_callout(bend, HighwayMode.BASIC) == "Right sweep, 20 degrees."
    assert generate_highway_callout(bend, "companion") == "Right sweep, 20 degrees. Target 70."


def test_s_sweep_text():
    s = merge_s_sweeps([_bend(LEFT, 45, 1000, 50, "a"), _bend(RIGHT, 48, 1100, bid="b")])[0]
    apply_coaching([s])
    assert s.gap_m == 50
    assert generate_highway_callout(s) == "S sweep: left 45, then right 48. Quick transition."
    assert generate_highway_callout(s, HighwayMode.COMPANION).endswith("Target 55.")
    assert highway_callout_type(s) == "s_sweep"


def test_section_text_basic_and_companion():
    bends = [_bend(RIGHT, 10, 1000, bid="a"), _bend(LEFT, 20, 1300, bid="b"), _bend(RIGHT, 12, 1600, bid="c")]
    section = consolidate_sections(bends)[0]
    assert generate_highway_callout(section) == "Active section, 3 bends"
    assert generate_highway_callout(section, HighwayMode.COMPANION).startswith("Active section, 3 bends. Right entry 75.")
    assert highway_callout_type(section) == "highway_section"
    assert highway_callout_type(bends[0]) == "highway_bend"
