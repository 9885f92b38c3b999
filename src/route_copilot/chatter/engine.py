"""ChatterSessionEngine — contextual co-driver chatter during a drive.

The navigation loop calls :meth:`ChatterSessionEngine.update` with every
position sample and :meth:`ChatterSessionEngine.next` whenever it has a quiet
moment.  ``next`` walks the categories in priority order (safety first,
time-of-day trivia last) and returns at most one callout.  A category is only
evaluated when both its own cooldown and the global gap have elapsed, so a
generator that declines to speak never consumes a one-time event.
"""

from __future__ import annotations

import logging
import random
import statistics
import time
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from route_copilot.chatter import phrases
from route_copilot.chatter.session import (
    CONTEXT,
    DENSITY,
    PATTERN,
    PRIORITY_ORDER,
    PROGRESS,
    ROAD,
    SAFETY,
    SPEED,
    TIME,
    ZONE,
    ChatterConfig,
    ChatterSessionState,
    DriveSample,
    RunningAverage,
    SegmentRecord,
    SpeedSample,
)
from route_copilot.route.models import (
    LEFT,
    METERS_PER_MILE,
    RIGHT,
    TECHNICAL,
    TRANSIT,
    URBAN,
    Bend,
    Callout,
    Curve,
    Zone,
)

_logger = logging.getLogger(__name__)

_PRIORITIES = {
    SAFETY: "high",
    ZONE: "high",
    PROGRESS: "normal",
    SPEED: "normal",
    ROAD: "normal",
    TIME: "low",
    DENSITY: "low",
    PATTERN: "low",
    CONTEXT: "low",
}

_FEET_PER_METER = 3.28


@dataclass
class ChatterContext:
    """Everything a chatter decision may look at besides session state."""

    sample: DriveSample
    zones: list[Zone] = field(default_factory=list)
    bends: list[Bend] = field(default_factory=list)
    curves: list[Curve] = field(default_factory=list)


def _speed_band(speed: float) -> int:
    if speed >= 95:
        return 4
    if speed >= 85:
        return 3
    if speed >= 75:
        return 2
    if speed >= 70:
        return 1
    return 0


def _format_eta(eta: datetime) -> str:
    hour = eta.hour % 12 or 12
    suffix = "AM" if eta.hour < 12 else "PM"
    return f"{hour}:{eta.minute:02d} {suffix}"


class ChatterSessionEngine:
    """Rate-limited, prioritized chatter for one drive.

    Parameters
    ----------
    config:
        Cooldowns and thresholds; see :class:`ChatterConfig`.
    _time_fn:
        Monotonic clock in seconds — injectable for testing.
    _now_fn:
        Wall clock used for ETAs and time-of-day remarks — injectable for testing.
    _rng:
        Random source for phrase choice and the occasional optional remark.
    """

    def __init__(
        self,
        config: ChatterConfig | None = None,
        _time_fn=time.monotonic,
        _now_fn=datetime.now,
        _rng: random.Random | None = None,
    ) -> None:
        self.config = config or ChatterConfig()
        self._time_fn = _time_fn
        self._now_fn = _now_fn
        self._rng = _rng or random.Random()
        self.state = ChatterSessionState.create(self.config)
        self._generators = {
            SAFETY: self._safety,
            ZONE: self._zone_transition,
            PROGRESS: self._progress,
            SPEED: self._speed,
            ROAD: self._road_ahead,
            TIME: self._time,
            DENSITY: self._density,
            PATTERN: self._pattern,
            CONTEXT: self._time_of_day,
        }

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def reset(self) -> None:
        """Forget everything about the current drive."""
        self.state = ChatterSessionState.create(self.config)

    def update(self, sample: DriveSample) -> None:
        """Fold one position/speed sample into the session state."""
        state = self.state
        now = self._time_fn()
        if state.navigation_start is None:
            state.navigation_start = now
        dt = 0.0 if state.last_sample_time is None else now - state.last_sample_time
        dt = min(max(dt, 0.0), self.config.max_sample_gap_s)
        state.last_sample_time = now

        speed = sample.speed
        state.speed_history.append(SpeedSample(speed=speed, timestamp=now, distance_m=sample.distance_m))
        state.max_speed = max(state.max_speed, speed)
        if speed >= 90:
            state.time_above_90 += dt
        if speed >= 80:
            state.time_above_80 += dt

        if sample.zone:
            state.speed_by_zone.setdefault(sample.zone, RunningAverage()).add(speed)
        if sample.bend_direction == LEFT:
            state.left_sweeper_speeds.add(speed)
        elif sample.bend_direction == RIGHT:
            state.right_sweeper_speeds.add(speed)
        state.segment_speeds.add(speed)

    def next(self, context: ChatterContext) -> Callout | None:
        """Return the highest-priority eligible chatter callout, or None."""
        sample = context.sample
        if sample.speed < self.config.min_speed_mph:
            return None
        now = self._time_fn()
        for category in PRIORITY_ORDER:
            if not self.state.can_fire(category, now):
                continue
            text = self._generators[category](context)
            if text:
                return self._emit(category, text, sample, now)
        return None

    def complete_segment(self, zone: str, distance_m: float) -> Callout | None:
        """Close the current zone segment and compare it with earlier ones of the same type."""
        state = self.state
        speeds = state.segment_speeds
        if speeds.count:
            state.completed_segments.append(SegmentRecord(zone=zone, avg_speed=speeds.mean, distance_m=distance_m))
        state.segment_speeds = RunningAverage()

        now = self._time_fn()
        if not state.can_fire(PATTERN, now):
            return None
        same = [s for s in state.completed_segments if s.zone == zone]
        if not speeds.count or len(same) < 2:
            return None
        last = state.completed_segments[-1]
        avg = sum(s.avg_speed for s in same) / len(same)
        diff = last.avg_speed - avg
        if diff > 5:
            text = self._pick(phrases.SEGMENT_FASTER, diff=round(diff), zone=zone)
        elif diff < -5:
            text = self._pick(phrases.SEGMENT_SLOWER, diff=round(abs(diff)), zone=zone)
        else:
            return None
        sample = DriveSample(speed=state.speed_history[-1].speed, distance_m=distance_m, zone=zone)
        return self._emit(PATTERN, text, sample, now)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _emit(self, category: str, text: str, sample: DriveSample, now: float) -> Callout:
        self.state.mark_fired(category, now)
        if category == SPEED:
            self.state.speed_at_last_callout = sample.speed
        mile = max(sample.distance_m, 0.0) / METERS_PER_MILE
        _logger.debug("chatter [%s] %s", category, text)
        return Callout(
            id=f"chatter-{self.state.emitted}",
            mile=mile,
            trigger_mile=mile,
            text=text,
            type="progress" if category == PROGRESS else "chatter",
            priority=_PRIORITIES[category],
            zone=sample.zone,
            reason=f"{category} chatter",
            category=category,
        )

    def _pick(self, pool: tuple[str, ...], **values) -> str:
        return self._rng.choice(pool).format(**values)

    def _chance(self, probability: float) -> bool:
        return self._rng.random() < probability

    def _elapsed(self) -> float:
        start = self.state.navigation_start
        return 0.0 if start is None else self._time_fn() - start

    # -- generators: each returns text or None, and mutates one-time state only when speaking

    def _safety(self, ctx: ChatterContext) -> str | None:
        state = self.state
        speed = ctx.sample.speed
        if state.time_above_90 > 300 and speed >= 85:
            mins = round(state.time_above_90 / 60)
            state.time_above_90 = 0.0
            return self._pick(phrases.SAFETY_HOT, mins=mins)
        if state.time_above_80 > 600 and speed >= 80 and self._chance(0.5):
            mins = round(state.time_above_80 / 60)
            state.time_above_80 = 0.0
            return self._pick(phrases.SAFETY_EIGHTY, mins=mins)
        return None

    def _zone_transition(self, ctx: ChatterContext) -> str | None:
        cfg = self.config
        position = ctx.sample.distance_m
        upcoming = next(
            (
                z for z in ctx.zones
                if z.start_distance > position and z.start_distance - position < cfg.zone_lookahead_m
            ),
            None,
        )
        if upcoming is None:
            return None
        key = f"{upcoming.character}-{upcoming.start_distance:.0f}"
        if key in self.state.announced_zones:
            return None
        distance = upcoming.start_distance - position
        if distance > cfg.zone_announce_m:
            return None

        if distance > 800:
            shown = f"{round(distance / METERS_PER_MILE, 1)} miles"
        else:
            shown = f"{round(distance * _FEET_PER_METER)} feet"

        if upcoming.character == TECHNICAL:
            text = self._pick(phrases.ZONE_TECHNICAL, distance=shown)
        elif upcoming.character == TRANSIT and ctx.sample.zone != TRANSIT:
            text = self._pick(phrases.ZONE_TRANSIT, distance=shown)
        elif upcoming.character == URBAN:
            text = self._pick(phrases.ZONE_URBAN, distance=shown)
        else:
            return None
        self.state.announced_zones.add(key)
        return text

    def _progress(self, ctx: ChatterContext) -> str | None:
        sample = ctx.sample
        if sample.total_distance_m <= 0:
            return None
        pct = round(sample.distance_m / sample.total_distance_m * 100)
        crossed = [m for m in self.config.milestones if pct >= m]
        if not crossed or max(crossed) in self.state.announced_milestones:
            return None
        # Furthest milestone only; the ones it skipped count as announced.
        milestone = max(crossed)
        self.state.announced_milestones.update(crossed)

        remaining = round((sample.total_distance_m - sample.distance_m) / METERS_PER_MILE, 1)
        elapsed = self._elapsed()
        avg = round((sample.distance_m / METERS_PER_MILE) / (elapsed / 3600)) if elapsed > 0 else round(sample.speed)
        pool = phrases.PROGRESS.get(milestone, ("{remaining} miles to go.",))
        return self._pick(pool, remaining=remaining, avg=avg)

    def _speed(self, ctx: ChatterContext) -> str | None:
        cfg = self.config
        state = self.state
        speed = round(ctx.sample.speed)
        history = list(state.speed_history)[-cfg.speed_debounce_samples:]
        band = _speed_band(speed)
        if len(history) < cfg.speed_debounce_samples or any(_speed_band(s.speed) != band for s in history):
            return None

        over = round(speed - cfg.speed_limit_mph)
        if speed >= 95:
            return self._pick(phrases.SPEED_VERY_HIGH, speed=speed, over=over)
        if speed >= 85:
            return self._pick(phrases.SPEED_HIGH, speed=speed, over=over)
        if speed - state.speed_at_last_callout >= 10 and speed >= 75:
            return self._pick(phrases.SPEED_CREEP, speed=speed)
        if speed >= 80 and speed > state.max_speed - 2:
            return self._pick(phrases.SPEED_NEW_MAX, speed=speed)
        if 70 <= speed <= 77 and self._chance(0.3):
            return self._pick(phrases.SPEED_CRUISE, speed=speed)
        return None

    def _road_ahead(self, ctx: ChatterContext) -> str | None:
        sample = ctx.sample
        position = sample.distance_m
        upcoming = next((b for b in ctx.bends if b.distance_from_start > position), None)
        if upcoming is not None:
            distance = upcoming.distance_from_start - position
        elif sample.total_distance_m > position:
            distance = sample.total_distance_m - position
        else:
            return None
        miles = distance / METERS_PER_MILE

        if miles > 2:
            return self._pick(phrases.ROAD_LONG_STRAIGHT, miles=round(miles, 1))
        if miles > 1:
            return self._pick(phrases.ROAD_MEDIUM_STRAIGHT) if self._chance(0.4) else None
        if upcoming is not None and 400 < distance < 800:
            if upcoming.is_section:
                return self._pick(
                    phrases.ROAD_SECTION,
                    feet=round(distance * _FEET_PER_METER),
                    count=upcoming.bend_count,
                )
            if upcoming.is_s_sweep and upcoming.bends:
                direction = "left" if upcoming.bends[0].direction == LEFT else "right"
                return self._pick(phrases.ROAD_S_SWEEP, direction=direction)
        return None

    def _time(self, ctx: ChatterContext) -> str | None:
        sample = ctx.sample
        elapsed = self._elapsed()
        if sample.total_distance_m <= 0 or sample.distance_m <= 0 or elapsed <= 0:
            return None
        progress = sample.distance_m / sample.total_distance_m

        if sample.expected_duration_s:
            mins = round((sample.expected_duration_s * progress - elapsed) / 60)
            if mins >= 5:
                return self._pick(phrases.TIME_WAY_AHEAD, mins=mins)
            if mins >= 2:
                return self._pick(phrases.TIME_AHEAD, mins=mins)
            if mins <= -3:
                return self._pick(phrases.TIME_WAY_BEHIND, mins=abs(mins))
            if mins <= -2:
                return self._pick(phrases.TIME_BEHIND, mins=abs(mins))

        if 0.3 < progress < 0.8 and self._chance(0.2):
            pace = sample.distance_m / elapsed
            remaining_s = (sample.total_distance_m - sample.distance_m) / pace
            eta = self._now_fn() + timedelta(seconds=remaining_s)
            return self._pick(phrases.TIME_ETA, eta=_format_eta(eta))
        return None

    def _density(self, ctx: ChatterContext) -> str | None:
        cfg = self.config
        lo = ctx.sample.distance_m
        hi = lo + cfg.density_lookahead_m
        curves = [c for c in ctx.curves if lo < c.mile * METERS_PER_MILE < hi]
        bends = [b for b in ctx.bends if lo < b.distance_from_start < hi]

        if len(curves) >= 8:
            sharp = sum(1 for c in curves if c.angle >= cfg.density_sharp_angle)
            if sharp >= 3:
                return self._pick(phrases.DENSITY_SHARP, count=len(curves), sharp=sharp)
            return self._pick(phrases.DENSITY_BUSY, count=len(curves))
        if len(curves) <= 2 and len(bends) <= 2 and self._chance(0.3):
            return self._pick(phrases.DENSITY_EASY, count=len(curves) + len(bends))
        return None

    def _pattern(self, ctx: ChatterContext) -> str | None:
        state = self.state
        if len(state.speed_history) < self.config.pattern_min_history:
            return None

        left, right = state.left_sweeper_speeds, state.right_sweeper_speeds
        if left.count >= 3 and right.count >= 3:
            left_avg, right_avg = left.mean, right.mean
            diff = abs(left_avg - right_avg)
            if diff > 5:
                slower, faster = ("left", "right") if left_avg < right_avg else ("right", "left")
                return self._pick(phrases.PATTERN_SWEEPERS, diff=round(diff), slower=slower, faster=faster)

        recent = [s.speed for s in list(state.speed_history)[-20:]]
        avg = sum(recent) / len(recent)
        spread = statistics.pstdev(recent)
        if spread < 3 and avg > 60:
            return self._pick(phrases.PATTERN_STEADY, avg=round(avg))
        if spread > 12:
            return self._pick(phrases.PATTERN_ERRATIC)

        zone = ctx.sample.zone
        zone_speeds = state.speed_by_zone.get(zone or "")
        if zone_speeds is not None and zone_speeds.count >= 10:
            diff = ctx.sample.speed - zone_speeds.mean
            if diff > 10:
                return self._pick(phrases.PATTERN_ZONE_FAST, diff=round(diff))
        return None

    def _time_of_day(self, ctx: ChatterContext) -> str | None:
        hour = self._now_fn().hour
        sample = ctx.sample
        progress = sample.distance_m / sample.total_distance_m if sample.total_distance_m > 0 else 0.0
        if hour >= 23 or hour <= 5:
            return self._pick(phrases.CONTEXT_LATE_NIGHT) if self._chance(0.05) else None
        if progress < 0.3 and (7 <= hour <= 9 or 16 <= hour <= 18) and self._chance(0.1):
            return self._pick(phrases.CONTEXT_RUSH_HOUR)
        return None
