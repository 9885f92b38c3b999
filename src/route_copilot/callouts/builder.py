"""CalloutBuilder — turns curves, bend markers and zones into a flat callout list.

Which curves are worth speaking depends on the zone: in town only the truly
sharp ones, on the highway anything a driver would feel at speed, in the
twisties nearly everything.  The lead distance follows the same logic.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from route_copilot.highway.coaching import HighwayMode, generate_highway_callout, highway_callout_type
from route_copilot.route.models import (
    LEFT,
    TECHNICAL,
    TRANSIT,
    URBAN,
    Bend,
    Callout,
    Curve,
    Zone,
    meters_to_miles,
)
from route_copilot.zones.classifier import zone_at

_logger = logging.getLogger(__name__)


@dataclass
class CalloutRules:
    """Angles in degrees, distances in miles."""

    danger_angle: float = 70
    hard_angle: float = 90
    technical_hard_angle: float = 45
    transit_tightens_angle: float = 40
    urban_min_angle: float = 70
    transit_min_angle: float = 20
    technical_min_angle: float = 12
    danger_lead_technical: float = 0.10
    danger_lead: float = 0.25
    technical_lead: float = 0.08
    urban_lead: float = 0.08
    transit_lead: float = 0.15
    exit_lookahead: float = 0.5
    wake_up_gap: float = 5.0
    """Silence (miles) after which the next callout is prefixed with a wake-up."""

    zone_announce_offset: float = meters_to_miles(50)


_ZONE_ANNOUNCEMENTS = {
    TECHNICAL: "Technical section. Stay sharp.",
    TRANSIT: "Clear. Open road.",
    URBAN: "Urban section.",
}


class CalloutBuilder:
    """Build the ungrouped callout list consumed by the grouping engine."""

    def __init__(self, rules: CalloutRules | None = None) -> None:
        self.rules = rules or CalloutRules()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build(
        self,
        curves: list[Curve],
        zones: list[Zone],
        bends: list[Bend] | None = None,
        mode: HighwayMode = HighwayMode.BASIC,
    ) -> list[Callout]:
        """Return callouts sorted by trigger mile."""
        callouts: list[Callout] = []
        for curve in curves:
            zone = zone_at(zones, curve.mile)
            character = zone.character if zone else TRANSIT
            if not self.should_callout(curve, character):
                continue
            callouts.append(self._curve_callout(curve, character, zones, len(callouts) + 1))

        for bend in bends or ():
            callouts.append(self._bend_callout(bend, mode))

        callouts.sort(key=lambda c: (c.trigger_mile, c.mile))
        self._add_wake_ups(callouts)
        _logger.debug("Built %d callouts from %d curves", len(callouts), len(curves))
        return callouts

    def should_callout(self, curve: Curve, character: str) -> bool:
        r = self.rules
        if curve.angle >= r.danger_angle:
            return True
        if character == URBAN:
            return curve.angle >= r.urban_min_angle
        if character == TECHNICAL:
            return curve.angle >= r.technical_min_angle
        return curve.angle >= r.transit_min_angle

    def zone_announcements(self, zones: list[Zone]) -> list[Callout]:
        """One short announcement just after the start of every zone."""
        out: list[Callout] = []
        for i, zone in enumerate(zones):
            text = _ZONE_ANNOUNCEMENTS.get(zone.character)
            if text is None:
                continue
            if zone.character == TRANSIT and i > 0:
                text = "Open road."
            mile = min(zone.start_mile + self.rules.zone_announce_offset, zone.end_mile)
            out.append(
                Callout(
                    id=f"zone-{i}",
                    mile=mile,
                    trigger_mile=mile,
                    text=text,
                    type="zone_announcement",
                    priority="normal",
                    zone=zone.character,
                    reason=f"{zone.character} zone starts",
                )
            )
        return out

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _curve_callout(self, curve: Curve, character: str, zones: list[Zone], n: int) -> Callout:
        r = self.rules
        danger = curve.angle >= r.danger_angle
        if danger:
            lead = r.danger_lead_technical if character == TECHNICAL else r.danger_lead
        elif character == TECHNICAL:
            lead = r.technical_lead
        elif character == URBAN:
            lead = r.urban_lead
        else:
            lead = r.transit_lead

        if danger:
            priority = "critical"
        elif curve.angle >= 40:
            priority = "high"
        else:
            priority = "medium"

        return Callout(
            id=f"curve-{n}",
            mile=curve.mile,
            trigger_mile=curve.mile - lead,
            text=self._curve_text(curve, character, zones),
            type="danger" if danger else "curve",
            priority=priority,
            zone=character,
            angle=curve.angle,
            direction=curve.direction,
            reason=f"{character} {curve.angle:.0f}°",
        )

    def _curve_text(self, curve: Curve, character: str, zones: list[Zone]) -> str:
        r = self.rules
        angle = f"{curve.angle:.0f}°"
        side = "left" if curve.direction == LEFT else "right"
        side_title = side.capitalize()

        if curve.angle >= r.danger_angle:
            if character == TRANSIT:
                ahead = zone_at(zones, curve.mile + r.exit_lookahead)
                if ahead is not None and ahead.character != TRANSIT:
                    return f"HARD {side.upper()} - EXIT"
            if curve.angle >= r.hard_angle:
                return f"CAUTION - Hard {side} {angle}"
            return f"CAUTION - {side_title} {angle}"

        if character == TECHNICAL:
            if curve.angle >= r.technical_hard_angle:
                return f"Hard {side} {angle}"
            return f"{side_title} {angle}"

        if curve.angle >= r.transit_tightens_angle:
            return f"{side_title} {angle}, tightens"
        return f"{side_title} {angle}"

    def _bend_callout(self, bend: Bend, mode: HighwayMode) -> Callout:
        mile = bend.mile
        return Callout(
            id=bend.id,
            mile=mile,
            trigger_mile=mile - self.rules.transit_lead,
            text=generate_highway_callout(bend, mode),
            type=highway_callout_type(bend),
            priority="medium",
            zone=TRANSIT,
            angle=float(bend.angle),
            direction=bend.direction,
            reason="highway bend",
        )

    def _add_wake_ups(self, callouts: list[Callout]) -> None:
        """Prefix the first callout after a long silent stretch."""
        last_mile = 0.0
        for callout in callouts:
            if callout.mile - last_mile >= self.rules.wake_up_gap and callout.type != "danger":
                callout.text = f"Bend ahead - {callout.text}"
            last_mile = callout.mile
