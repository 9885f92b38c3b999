"""Route data structures: curves, zones, bends and callouts."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field

METERS_PER_MILE = 1609.34

URBAN = "urban"
TECHNICAL = "technical"
TRANSIT = "transit"
ZONE_CHARACTERS = (URBAN, TECHNICAL, TRANSIT)

LEFT = "LEFT"
RIGHT = "RIGHT"

SHAPES = ("tight", "medium", "sweeper")


def miles_to_meters(miles: float) -> float:
    return miles * METERS_PER_MILE


def meters_to_miles(meters: float) -> float:
    return meters / METERS_PER_MILE


@dataclass(frozen=True)
class Curve:
    """A detected curve on the route, in canonical units."""

    mile: float
    """Position of the curve along the route (miles from start)."""

    angle: float
    """Total heading change through the curve (degrees, always positive)."""

    length_miles: float
    """Length of the curve (miles, always positive)."""

    direction: str
    """``LEFT`` or ``RIGHT``."""

    shape: str = "medium"
    """``tight``, ``medium`` or ``sweeper``."""

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class ZoneScore:
    """Accumulated vote totals per zone character."""

    technical: float = 0.0
    transit: float = 0.0
    urban: float = 0.0

    def add(self, other: ZoneScore) -> None:
        self.technical += other.technical
        self.transit += other.transit
        self.urban += other.urban


@dataclass
class Zone:
    """A contiguous stretch of route with a single driving character.

    Zones partition ``[0, total_miles]`` without gaps or overlaps.  Meter
    positions are derived from the mile bounds so the two can never disagree.
    """

    start_mile: float
    end_mile: float
    character: str
    score: ZoneScore = field(default_factory=ZoneScore)
    reasons: list[str] = field(default_factory=list)

    @property
    def length_miles(self) -> float:
        return self.end_mile - self.start_mile

    @property
    def start_distance(self) -> float:
        """Zone start in meters."""
        return miles_to_meters(self.start_mile)

    @property
    def end_distance(self) -> float:
        """Zone end in meters."""
        return miles_to_meters(self.end_mile)

    def contains(self, mile: float) -> bool:
        return self.start_mile <= mile <= self.end_mile

    def add_reasons(self, reasons: list[str]) -> None:
        """Union *reasons* into this zone, keeping first-seen order."""
        for reason in reasons:
            if reason not in self.reasons:
                self.reasons.append(reason)

    def to_dict(self) -> dict:
        return {
            "start_mile": round(self.start_mile, 4),
            "end_mile": round(self.end_mile, 4),
            "start_distance": round(self.start_distance, 1),
            "end_distance": round(self.end_distance, 1),
            "length_miles": round(self.length_miles, 4),
            "character": self.character,
            "score": asdict(self.score),
            "reasons": list(self.reasons),
        }


@dataclass
class Bend:
    """A highway bend marker, or a composite S-sweep / section built from bends."""

    id: str
    direction: str
    angle: int
    """Heading change in degrees; for composites the largest child angle."""

    length_m: float
    distance_from_start: float
    """Route position of the bend start (meters)."""

    is_sweeper: bool = False
    is_s_sweep: bool = False
    is_section: bool = False
    bends: list[Bend] = field(default_factory=list)
    """Child bends of an S-sweep (two) or a section (three or more)."""

    combined_angle: int | None = None
    """S-sweep only: sum of both child angles."""

    gap_m: float | None = None
    """S-sweep only: straight distance between the two children."""

    bend_count: int = 1
    total_angle: int | None = None
    max_angle: int | None = None
    narration: str | None = None
    """Section only: the detailed rhythm narration."""

    zone_index: int | None = None
    """Index of the transit zone the bend was detected in."""

    optimal_speed: int | None = None
    throttle_advice: str | None = None
    severity: int | None = None
    modifier: str | None = None

    @property
    def length_miles(self) -> float:
        return meters_to_miles(self.length_m)

    @property
    def mile(self) -> float:
        return meters_to_miles(self.distance_from_start)

    @property
    def end_distance(self) -> float:
        return self.distance_from_start + self.length_m

    def significance(self, s_sweep_weight: float = 1.5) -> float:
        """Weight used when two markers compete for the same stretch."""
        if self.is_s_sweep and self.combined_angle is not None:
            return self.combined_angle * s_sweep_weight
        return float(self.angle)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["bends"] = [b.to_dict() for b in self.bends]
        data["length_miles"] = round(self.length_miles, 4)
        data["mile"] = round(self.mile, 4)
        return data


@dataclass
class GroupedChild:
    """Summary of a callout that was folded into a grouped callout."""

    mile: float
    text: str
    angle: float | None = None


@dataclass
class Callout:
    """A spoken cue scheduled at a route position.

    ``trigger_mile`` is where the cue is spoken; it never lies after ``mile``.
    """

    id: str
    mile: float
    trigger_mile: float
    text: str
    type: str = "curve"
    priority: str = "medium"
    zone: str | None = None
    angle: float | None = None
    direction: str | None = None
    reason: str = ""
    category: str | None = None
    """Chatter category that produced the callout, if any."""

    grouped_from: list[GroupedChild] | None = None
    covers_until_mile: float | None = None

    def __post_init__(self) -> None:
        self.trigger_mile = max(0.0, min(self.trigger_mile, self.mile))

    @property
    def trigger_distance(self) -> float:
        """Trigger position in meters."""
        return miles_to_meters(self.trigger_mile)

    def is_danger(self, danger_angle: float = 70.0) -> bool:
        return self.type == "danger" or (self.angle is not None and self.angle >= danger_angle)

    def to_dict(self) -> dict:
        return asdict(self)
