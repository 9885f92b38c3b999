"""Per-drive chatter session state and cooldown bookkeeping."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

SAFETY = "safety"
ZONE = "zone"
PROGRESS = "progress"
SPEED = "speed"
ROAD = "road"
TIME = "time"
DENSITY = "density"
PATTERN = "pattern"
CONTEXT = "context"

PRIORITY_ORDER = (SAFETY, ZONE, PROGRESS, SPEED, ROAD, TIME, DENSITY, PATTERN, CONTEXT)
"""Categories in the order they are considered on each tick."""

DEFAULT_COOLDOWNS: dict[str, float] = {
    SAFETY: 60.0,
    ZONE: 0.0,
    PROGRESS: 60.0,
    SPEED: 45.0,
    ROAD: 30.0,
    TIME: 120.0,
    DENSITY: 90.0,
    PATTERN: 180.0,
    CONTEXT: 600.0,
}


@dataclass
class ChatterConfig:
    """Chatter timing and thresholds.  Times in seconds, distances in meters."""

    global_gap_s: float = 20.0
    """Minimum silence between any two chatter callouts."""

    cooldowns: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_COOLDOWNS))
    min_speed_mph: float = 5.0
    history_size: int = 60
    speed_debounce_samples: int = 3
    """A speed band must hold for this many samples before it is commented on."""

    max_sample_gap_s: float = 10.0
    """Longer gaps between samples (a pause, a lost GPS fix) are not credited as driving time."""

    speed_limit_mph: float = 65.0
    zone_lookahead_m: float = 2000.0
    zone_announce_m: float = 1609.34
    milestones: tuple[int, ...] = (25, 50, 75, 90)
    density_lookahead_m: float = 4828.0
    density_sharp_angle: float = 45.0
    pattern_min_history: int = 30


@dataclass
class CooldownTracker:
    """Prevents a category from firing more than once per *cooldown_s* seconds."""

    cooldown_s: float
    _last_fire: float = field(default=float("-inf"), init=False, repr=False)

    def can_fire(self, now: float) -> bool:
        """Return True if enough time has passed since the last fire."""
        return (now - self._last_fire) >= self.cooldown_s

    def mark_fired(self, now: float) -> None:
        """Record that the category just fired."""
        self._last_fire = now

    @property
    def last_fired(self) -> float:
        return self._last_fire


@dataclass
class DriveSample:
    """One position/speed update from the navigation loop."""

    speed: float
    """Current speed (mph)."""

    distance_m: float
    """Distance traveled from the route start (meters)."""

    total_distance_m: float = 0.0
    zone: str | None = None
    """Character of the zone the driver is in."""

    expected_duration_s: float | None = None
    """Planned duration of the whole route, for ahead/behind schedule chatter."""

    bend_direction: str | None = None
    """``LEFT``/``RIGHT`` while the driver is inside a highway sweeper."""


@dataclass
class SpeedSample:
    speed: float
    timestamp: float
    distance_m: float


@dataclass
class RunningAverage:
    """Mean of a stream of values, kept as a running total and count."""

    total: float = 0.0
    count: int = 0

    def add(self, value: float) -> None:
        self.total += value
        self.count += 1

    @property
    def mean(self) -> float:
        return self.total / self.count if self.count else 0.0


@dataclass
class SegmentRecord:
    """Average speed over one completed zone segment."""

    zone: str
    avg_speed: float
    distance_m: float


@dataclass
class ChatterSessionState:
    """Everything one drive's chatter engine remembers.  Never shared between drives."""

    speed_history: deque = field(default_factory=lambda: deque(maxlen=60))
    max_speed: float = 0.0
    speed_at_last_callout: float = 0.0
    time_above_80: float = 0.0
    time_above_90: float = 0.0
    navigation_start: float | None = None
    last_sample_time: float | None = None
    speed_by_zone: dict[str, RunningAverage] = field(default_factory=dict)
    left_sweeper_speeds: RunningAverage = field(default_factory=RunningAverage)
    right_sweeper_speeds: RunningAverage = field(default_factory=RunningAverage)
    segment_speeds: RunningAverage = field(default_factory=RunningAverage)
    completed_segments: list[SegmentRecord] = field(default_factory=list)
    announced_milestones: set[int] = field(default_factory=set)
    announced_zones: set[str] = field(default_factory=set)
    global_cooldown: CooldownTracker = field(default_factory=lambda: CooldownTracker(20.0))
    cooldowns: dict[str, CooldownTracker] = field(default_factory=dict)
    emitted: int = 0

    @classmethod
    def create(cls, config: ChatterConfig) -> ChatterSessionState:
        return cls(
            speed_history=deque(maxlen=config.history_size),
            global_cooldown=CooldownTracker(config.global_gap_s),
            cooldowns={
                category: CooldownTracker(config.cooldowns.get(category, DEFAULT_COOLDOWNS[category]))
                for category in PRIORITY_ORDER
            },
        )

    def can_fire(self, category: str, now: float) -> bool:
        """Both the global gap and the category's own cooldown must have elapsed."""
        tracker = self.cooldowns.get(category)
        if tracker is not None and not tracker.can_fire(now):
            return False
        return self.global_cooldown.can_fire(now)

    def mark_fired(self, category: str, now: float) -> None:
        self.global_cooldown.mark_fired(now)
        tracker = self.cooldowns.get(category)
        if tracker is not None:
            tracker.mark_fired(now)
        self.emitted += 1
