"""CurveNormalizer — maps heterogeneous curve records onto :class:`Curve`.

Upstream detectors disagree on field names and units (``angle`` vs
``totalAngle``, ``mile`` vs ``apexMile`` vs ``distanceFromStart`` in meters,
``"45°"`` strings, ...).  All of that tolerance lives here; everything
downstream consumes canonical :class:`Curve`, :class:`CensusSegment` and
:class:`RoadSegment` records only.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass

from route_copilot.route.models import LEFT, RIGHT, SHAPES, Curve, meters_to_miles
from route_copilot.route.road_refs import canonical_road_class, classify_road_ref

_logger = logging.getLogger(__name__)

# Candidate keys in priority order.  Position keys carry their unit.
_ANGLE_KEYS = ("angle", "totalAngle", "maxAngle", "total_angle")
_MILE_KEYS = ("mile", "apexMile", "triggerMile", "startMile", "apex_mile", "start_mile")
_METER_KEYS = ("apexDistance", "distanceFromStart", "startDistance", "distance_from_start")

_MIN_LENGTH_MILES = 0.01
# ``length`` without a unit: above this it can only be meters.
_AMBIGUOUS_LENGTH_MILES_MAX = 5.0

# Degrees of heading change per meter separating the shape classes.
_TIGHT_DEG_PER_M = 0.15
_MEDIUM_DEG_PER_M = 0.08

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


@dataclass(frozen=True)
class CensusSegment:
    """A stretch of route (meters) with a census urban/rural label."""

    start_m: float
    end_m: float
    character: str

    def covers(self, meters: float) -> bool:
        return self.start_m <= meters <= self.end_m


@dataclass(frozen=True)
class RoadSegment:
    """A stretch of route (miles) on a road of a known class."""

    start_mile: float
    end_mile: float
    road_class: str
    ref: str | None = None
    name: str | None = None

    def covers(self, mile: float) -> bool:
        return self.start_mile <= mile <= self.end_mile


def _to_number(value) -> float | None:
    """Parse ints, floats and strings such as ``"45°"``; None if unusable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        match = _NUMBER_RE.search(value)
        if match is None:
            return None
        number = float(match.group())
    else:
        return None
    return number if math.isfinite(number) else None


def _first_number(record: dict, keys: tuple[str, ...]) -> float | None:
    for key in keys:
        number = _to_number(record.get(key))
        if number is not None:
            return number
    return None


def _direction(raw, signed_angle: float) -> str:
    if isinstance(raw, str) and raw.strip():
        label = raw.strip().upper()
        if label.startswith("L"):
            return LEFT
        if label.startswith("R"):
            return RIGHT
    return LEFT if signed_angle < 0 else RIGHT


def _shape(raw, angle: float, length_miles: float) -> str:
    if isinstance(raw, str) and raw.strip().lower() in SHAPES:
        return raw.strip().lower()
    length_m = length_miles * 1609.34
    deg_per_m = angle / length_m if length_m > 0 else 0.0
    if deg_per_m > _TIGHT_DEG_PER_M:
        return "tight"
    if deg_per_m > _MEDIUM_DEG_PER_M:
        return "medium"
    return "sweeper"


class CurveNormalizer:
    """Convert raw curve records into sorted canonical :class:`Curve` objects.

    Parameters
    ----------
    min_angle:
        Curves whose resolved angle is below this (degrees) are dropped.
    """

    def __init__(self, min_angle: float = 12.0) -> None:
        self.min_angle = min_angle

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def normalize(self, records) -> list[Curve]:
        """Return valid curves from *records*, sorted by mile (stable)."""
        curves: list[Curve] = []
        dropped = 0
        for record in records or ():
            curve = self.normalize_one(record)
            if curve is None:
                dropped += 1
                continue
            curves.append(curve)
        if dropped:
            _logger.debug("Dropped %d of %d curve records", dropped, dropped + len(curves))
        curves.sort(key=lambda c: c.mile)
        return curves

    def normalize_one(self, record) -> Curve | None:
        """Map one record, or return None if it cannot yield a usable curve."""
        if not isinstance(record, dict):
            return None

        signed_angle = _first_number(record, _ANGLE_KEYS)
        if signed_angle is None:
            return None
        angle = abs(signed_angle)
        if angle <= 0 or angle < self.min_angle:
            return None

        mile = self._position_miles(record)
        if mile is None or mile < 0:
            return None

        length_miles = max(self._length_miles(record), _MIN_LENGTH_MILES)
        return Curve(
            mile=mile,
            angle=angle,
            length_miles=length_miles,
            direction=_direction(record.get("direction"), signed_angle),
            shape=_shape(record.get("shape"), angle, length_miles),
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _position_miles(record: dict) -> float | None:
        mile = _first_number(record, _MILE_KEYS)
        if mile is not None:
            return mile
        meters = _first_number(record, _METER_KEYS)
        if meters is not None:
            return meters_to_miles(meters)
        return None

    @staticmethod
    def _length_miles(record: dict) -> float:
        miles = _to_number(record.get("lengthMiles"))
        if miles is not None and miles > 0:
            return miles
        meters = _to_number(record.get("lengthMeters"))
        if meters is not None and meters > 0:
            return meters_to_miles(meters)
        length = _to_number(record.get("length"))
        if length is not None and length > 0:
            if length > _AMBIGUOUS_LENGTH_MILES_MAX:
                return meters_to_miles(length)
            return length
        return 0.0


# ---------------------------------------------------------------------------
# Segment adapters
# ---------------------------------------------------------------------------

def normalize_census_segments(records) -> list[CensusSegment]:
    """Accept ``start``/``startDistance`` and ``end``/``endDistance`` (meters)."""
    segments: list[CensusSegment] = []
    for record in records or ():
        if isinstance(record, CensusSegment):
            segments.append(record)
            continue
        if not isinstance(record, dict):
            continue
        start = _first_number(record, ("startDistance", "start", "start_m"))
        end = _first_number(record, ("endDistance", "end", "end_m"))
        character = str(record.get("character") or record.get("type") or "").lower()
        if start is None or end is None or end <= start or character not in ("urban", "rural"):
            continue
        segments.append(CensusSegment(start_m=start, end_m=end, character=character))
    segments.sort(key=lambda s: s.start_m)
    return segments


def normalize_road_segments(records) -> list[RoadSegment]:
    """Accept mile (``startMile``) or meter (``startDistance``) bounds.

    When no usable ``roadClass`` is present the class is derived from the
    segment's ``ref`` and ``name``.
    """
    segments: list[RoadSegment] = []
    for record in records or ():
        if isinstance(record, RoadSegment):
            segments.append(record)
            continue
        if not isinstance(record, dict):
            continue
        start = _first_number(record, ("startMile", "start_mile"))
        end = _first_number(record, ("endMile", "end_mile"))
        if start is None or end is None:
            start_m = _first_number(record, ("startDistance", "start_m"))
            end_m = _first_number(record, ("endDistance", "end_m"))
            if start_m is None or end_m is None:
                continue
            start, end = meters_to_miles(start_m), meters_to_miles(end_m)
        if end <= start:
            continue
        ref = record.get("ref") or None
        name = record.get("name") or None
        road_class = canonical_road_class(record.get("roadClass") or record.get("road_class"))
        if road_class is None:
            road_class = classify_road_ref(ref, name)
        segments.append(
            RoadSegment(start_mile=start, end_mile=end, road_class=road_class, ref=ref, name=name)
        )
    segments.sort(key=lambda s: s.start_mile)
    return segments
