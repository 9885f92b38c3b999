"""Runtime callout set selection (3 tests)."""

from __future__ import annotations

from route_copilot.callouts.grouping import CalloutSets
from route_copilot.callouts.selector import CalloutSetSelector
from route_copilot.route.models import TECHNICAL, Callout


def _sets() -> CalloutSets:
    fast = [Callout(id=f"f{i}", mile=m + 0.1, trigger_mile=m, text=f"fast {i}") for i, m in enumerate((1.0, 3.0))]
    standard = [
        Callout(id=f"s{i}", mile=m + 0.1, trigger_mile=m, text=f"std {i}") for i, m in enumerate((1.0, 2.0, 3.0))
    ]
    return CalloutSets(fast=fast, standard=standard)


def test_set_name_by_speed_and_zone():
    sel = CalloutSetSelector()
    assert sel.set_name(100) == "fast"
    assert sel.set_name(95) == "standard"
    assert sel.set_name(60, TECHNICAL) == "fast"
    assert sel.set_name(50, TECHNICAL) == "standard"


def test_next_callout_strictly_ahead():
    sel = CalloutSetSelector()
    sets = _sets()
    assert sel.next_callout(sets, 0.0, 70).id == "s0"
    assert sel.next_callout(sets, 1.0, 70).id == "s1"
    assert sel.next_callout(sets, 1.5, 100).id == "f1"


def test_next_callout_none_past_last_trigger():
    assert CalloutSetSelector().next_callout(_sets(), 3.5, 70) is None
