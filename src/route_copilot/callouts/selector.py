"""CalloutSetSelector — picks the fast or standard callout set at runtime."""

from __future__ import annotations

import bisect
from dataclasses import dataclass

from route_copilot.callouts.grouping import FAST, STANDARD, CalloutSets
from route_copilot.route.models import TECHNICAL, Callout


@dataclass
class SelectorThresholds:
    """Speeds (mph) above which the fast set is used."""

    highway_mph: float = 95
    technical_mph: float = 55


class CalloutSetSelector:
    """Choose between pre-grouped sets by current speed and zone."""

    def __init__(self, thresholds: SelectorThresholds | None = None) -> None:
        self.thresholds = thresholds or SelectorThresholds()

    def set_name(self, speed_mph: float, zone: str | None = None) -> str:
        limit = self.thresholds.technical_mph if zone == TECHNICAL else self.thresholds.highway_mph
        return FAST.name if speed_mph > limit else STANDARD.name

    def select(self, sets: CalloutSets, speed_mph: float, zone: str | None = None) -> list[Callout]:
        return sets.get(self.set_name(speed_mph, zone))

    def next_callout(
        self,
        sets: CalloutSets,
        current_mile: float,
        speed_mph: float,
        zone: str | None = None,
    ) -> Callout | None:
        """First callout of the active set whose trigger lies strictly ahead."""
        callouts = self.select(sets, speed_mph, zone)
        triggers = [c.trigger_mile for c in callouts]
        idx = bisect.bisect_right(triggers, current_mile)
        return callouts[idx] if idx < len(callouts) else None
