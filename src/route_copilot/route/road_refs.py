"""Road-reference classification and road-segment extraction from routing steps."""

from __future__ import annotations

import re

from route_copilot.route.models import meters_to_miles

INTERSTATE = "interstate"
US_HIGHWAY = "us_highway"
STATE_ROUTE = "state_route"
LOCAL = "local"
UNKNOWN = "unknown"

ROAD_CLASSES = (INTERSTATE, US_HIGHWAY, STATE_ROUTE, LOCAL, UNKNOWN)

_ALIASES = {
    "motorway": INTERSTATE,
    "trunk": US_HIGHWAY,
    "primary": STATE_ROUTE,
    "secondary": LOCAL,
    "tertiary": LOCAL,
    "residential": LOCAL,
}

_INTERSTATE_RE = re.compile(r"^I[\s-]?\d+")
_US_HIGHWAY_RE = re.compile(r"^U\.?S\.?[\s-]?\d+")
_STATE_RE = re.compile(r"^[A-Z]{2}[\s-]?\d+")
_ROUTE_RE = re.compile(r"^(ROUTE|RT\.?|RTE\.?)[\s-]?\d+")

# Named limited-access roads without a numbered reference.
_HIGHWAY_NAME_WORDS = ("TURNPIKE", "PARKWAY", "EXPRESSWAY", "FREEWAY", "THRUWAY", "INTERSTATE")


def classify_road_ref(ref: str | None, name: str | None = None) -> str:
    """Map a route reference (``"I-90"``, ``"US 20"``, ``"NY 17"``) to a road class.

    A route may carry several references separated by ``;``; the first one
    decides.  Falls back to the road name, then ``local`` for any named road.
    """
    if ref:
        primary = ref.split(";")[0].strip().upper()
        if _INTERSTATE_RE.match(primary):
            return INTERSTATE
        if _US_HIGHWAY_RE.match(primary):
            return US_HIGHWAY
        if _STATE_RE.match(primary) or _ROUTE_RE.match(primary):
            return STATE_ROUTE

    if name:
        upper = name.upper()
        if any(word in upper for word in _HIGHWAY_NAME_WORDS):
            return US_HIGHWAY
        return LOCAL

    return UNKNOWN


def canonical_road_class(value: str | None) -> str | None:
    """Normalise a road-class label, accepting common map-data synonyms."""
    if not value:
        return None
    label = str(value).strip().lower()
    if label in ROAD_CLASSES:
        return label
    return _ALIASES.get(label)


def build_road_segments(steps: list[dict]) -> list[dict]:
    """Turn routing-engine steps into road segments in miles.

    Each step needs a ``distance`` (meters) and may carry ``ref`` and ``name``.
    Consecutive steps on the same reference collapse into one segment.
    """
    segments: list[dict] = []
    position_m = 0.0
    for step in steps:
        if not isinstance(step, dict):
            continue
        try:
            distance = float(step.get("distance", 0.0))
        except (TypeError, ValueError):
            continue
        if distance <= 0:
            continue

        ref = step.get("ref") or None
        name = step.get("name") or None
        road_class = classify_road_ref(ref, name)
        start_mile = meters_to_miles(position_m)
        position_m += distance
        end_mile = meters_to_miles(position_m)

        last = segments[-1] if segments else None
        if last is not None and last["ref"] == ref and last["roadClass"] == road_class:
            last["endMile"] = end_mile
            continue
        segments.append(
            {
                "startMile": start_mile,
                "endMile": end_mile,
                "roadClass": road_class,
                "ref": ref,
                "name": name,
            }
        )
    return segments
