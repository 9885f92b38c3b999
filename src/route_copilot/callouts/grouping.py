"""CalloutGroupingEngine — merges callouts that would be spoken too close together.

At 70 mph a curve every few hundred meters means overlapping speech.  Callouts
closer than the speed profile's minimum gap are folded into one rally-style
phrase ("Esses, 4 curves, max 35°", "Left into HARD RIGHT 85°").  Two
pre-computed sets are produced, one per speed profile, so the runtime can
switch between them without regrouping.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from route_copilot.observability import EventBus, emit
from route_copilot.route.models import TECHNICAL, URBAN, Callout, GroupedChild


@dataclass(frozen=True)
class SpeedProfile:
    """Assumed speeds (mph) used to turn a time gap into a distance gap."""

    name: str
    highway_mph: float
    technical_mph: float
    min_seconds: float = 6.0

    def min_gap_miles(self, zone: str | None) -> float:
        mph = self.technical_mph if zone == TECHNICAL else self.highway_mph
        return mph / 3600.0 * self.min_seconds


FAST = SpeedProfile("fast", highway_mph=120, technical_mph=70)
STANDARD = SpeedProfile("standard", highway_mph=90, technical_mph=50)


@dataclass
class GroupingConfig:
    danger_angle: float = 70
    hairpin_angle: float = 90
    high_priority_angle: float = 40
    group_lead_miles: float = 0.3
    sequence_lead_miles: float = 0.4
    default_angle: float = 20


@dataclass
class GroupingStats:
    original: int = 0
    fast: int = 0
    standard: int = 0
    fast_reduction: float = 0.0
    """Percentage of callouts removed by fast grouping."""

    standard_reduction: float = 0.0


@dataclass
class CalloutSets:
    fast: list[Callout] = field(default_factory=list)
    standard: list[Callout] = field(default_factory=list)
    stats: GroupingStats = field(default_factory=GroupingStats)

    def get(self, name: str) -> list[Callout]:
        return self.fast if name == FAST.name else self.standard

    def to_dict(self) -> dict:
        return {
            "fast": [c.to_dict() for c in self.fast],
            "standard": [c.to_dict() for c in self.standard],
            "stats": {
                "original": self.stats.original,
                "fast": self.stats.fast,
                "standard": self.stats.standard,
                "fast_reduction": self.stats.fast_reduction,
                "standard_reduction": self.stats.standard_reduction,
            },
        }


def _reduction(original: int, remaining: int) -> float:
    if original == 0:
        return 0.0
    return round((original - remaining) / original * 100, 1)


def _short_dir(callout: Callout) -> str:
    return "L" if (callout.direction or "").upper().startswith("L") else "R"


def _word(short: str) -> str:
    return "left" if short == "L" else "right"


class CalloutGroupingEngine:
    """Group close callouts per zone using a :class:`SpeedProfile`.

    Parameters
    ----------
    config:
        Angle thresholds and group lead distances.
    profiles:
        ``(fast, standard)`` profiles used by :meth:`build_sets`.
    events:
        Optional event bus receiving one ``callouts`` event per :meth:`build_sets`.
    """

    def __init__(
        self,
        config: GroupingConfig | None = None,
        profiles: tuple[SpeedProfile, SpeedProfile] = (FAST, STANDARD),
        events: EventBus | None = None,
    ) -> None:
        self.config = config or GroupingConfig()
        self.fast_profile, self.standard_profile = profiles
        self._events = events

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def build_sets(self, callouts: list[Callout]) -> CalloutSets:
        fast = self.group(callouts, self.fast_profile)
        standard = self.group(callouts, self.standard_profile)
        stats = GroupingStats(
            original=len(callouts),
            fast=len(fast),
            standard=len(standard),
            fast_reduction=_reduction(len(callouts), len(fast)),
            standard_reduction=_reduction(len(callouts), len(standard)),
        )
        emit(
            self._events,
            "callouts",
            "grouped callouts",
            original=stats.original,
            fast=stats.fast,
            standard=stats.standard,
            fast_reduction=stats.fast_reduction,
            standard_reduction=stats.standard_reduction,
        )
        return CalloutSets(fast=fast, standard=standard, stats=stats)

    def group(self, callouts: list[Callout], profile: SpeedProfile) -> list[Callout]:
        """Return the grouped list, sorted by ``(trigger_mile, mile)``.

        Urban callouts pass through untouched; technical and highway callouts
        are grouped separately with their own minimum gap.
        """
        urban = [c for c in callouts if c.zone == URBAN]
        technical = [c for c in callouts if c.zone == TECHNICAL]
        highway = [c for c in callouts if c.zone not in (URBAN, TECHNICAL)]

        result = list(urban)
        result.extend(self._group_zone(technical, profile.min_gap_miles(TECHNICAL)))
        result.extend(self._group_zone(highway, profile.min_gap_miles(None)))
        result.sort(key=lambda c: (c.trigger_mile, c.mile))
        return result

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _group_zone(self, callouts: list[Callout], min_gap: float) -> list[Callout]:
        ordered = sorted(callouts, key=lambda c: c.mile)
        out: list[Callout] = []
        group: list[Callout] = []
        for callout in ordered:
            if group:
                gap = callout.mile - group[-1].mile
                if 0 <= gap < min_gap:
                    group.append(callout)
                    continue
                out.append(self._process_group(group))
            group = [callout]
        if group:
            out.append(self._process_group(group))
        return out

    def _process_group(self, group: list[Callout]) -> Callout:
        if len(group) == 1:
            return group[0]
        dangers = [c for c in group if c.is_danger(self.config.danger_angle)]
        if not dangers:
            return self._simple_group(group)
        if len(dangers) == 1:
            return self._danger_with_context(group, dangers[0])
        return self._danger_sequence(group, dangers)

    def _angle(self, callout: Callout) -> float:
        return callout.angle if callout.angle is not None else self.config.default_angle

    def _trigger(self, group: list[Callout], lead: float) -> float:
        """Group trigger: *lead* before the first member, never after any member's own trigger."""
        return max(0.0, min([group[0].mile - lead] + [c.trigger_mile for c in group]))

    def _grouped(
        self,
        group: list[Callout],
        anchor: Callout,
        text: str,
        type_: str,
        priority: str,
        lead: float,
    ) -> Callout:
        """Merged callout for *group*; *anchor* is the member it points at (zone and direction)."""
        first, last = group[0], group[-1]
        return Callout(
            id=f"group-{first.mile:.2f}",
            mile=first.mile,
            trigger_mile=self._trigger(group, lead),
            text=text,
            type=type_,
            priority=priority,
            zone=anchor.zone,
            angle=max(self._angle(c) for c in group),
            direction=anchor.direction,
            reason=f"{len(group)} callouts grouped",
            grouped_from=[GroupedChild(mile=c.mile, text=c.text, angle=c.angle) for c in group],
            covers_until_mile=last.mile,
        )

    def _simple_group(self, group: list[Callout]) -> Callout:
        dirs = [_short_dir(c) for c in group]
        angles = [self._angle(c) for c in group]
        max_angle = max(angles)
        priority = "high" if max_angle >= self.config.high_priority_angle else "medium"
        return self._grouped(
            group,
            group[0],
            rally_text(dirs, angles),
            "grouped",
            priority,
            self.config.group_lead_miles,
        )

    def _danger_with_context(self, group: list[Callout], danger: Callout) -> Callout:
        idx = group.index(danger)
        angle = self._angle(danger)
        side = _word(_short_dir(danger))
        hard = f"HAIRPIN {side.upper()}" if angle >= self.config.hairpin_angle else f"HARD {side.upper()} {angle:.0f}°"
        before = group[idx - 1] if idx > 0 else None
        after = group[idx + 1] if idx < len(group) - 1 else None

        if before is not None and after is not None:
            lead_in = _word(_short_dir(before)).capitalize()
            out = _word(_short_dir(after))
            if angle >= self.config.hairpin_angle:
                text = f"{lead_in} tightens, {hard}, {out} out"
            else:
                text = f"{lead_in}, then {hard}, {out}"
        elif before is not None:
            text = f"{_word(_short_dir(before)).capitalize()} into {hard}"
        else:
            text = f"{hard}, exits {_word(_short_dir(after))}"

        return self._grouped(group, danger, text, "danger", "critical", self.config.group_lead_miles)

    def _danger_sequence(self, group: list[Callout], dangers: list[Callout]) -> Callout:
        hairpins = [d for d in dangers if self._angle(d) >= self.config.hairpin_angle]
        if len(hairpins) == 2:
            d1, d2 = _short_dir(hairpins[0]), _short_dir(hairpins[1])
            if d1 != d2:
                text = f"DOUBLE HAIRPIN {_word(d1)}-{_word(d2)}"
            else:
                text = f"TWO HAIRPINS {_word(d1)}"
        elif len(hairpins) >= 3:
            text = f"{len(hairpins)} HAIRPINS ahead, stay focused"
        elif len(dangers) == 2:
            first, second = dangers
            a1, a2 = self._angle(first), self._angle(second)
            d1, d2 = _short_dir(first), _short_dir(second)
            if d1 != d2:
                text = f"HARD {_word(d1).upper()} {a1:.0f}° into HARD {_word(d2).upper()} {a2:.0f}°"
            else:
                text = f"Two HARD {_word(d1)}s, {a1:.0f}° then {a2:.0f}°"
        else:
            max_angle = max(self._angle(d) for d in dangers)
            text = f"DANGER - {len(dangers)} hard curves ahead, max {max_angle:.0f}°"

        return self._grouped(group, dangers[0], text, "danger", "critical", self.config.sequence_lead_miles)


# ---------------------------------------------------------------------------
# Rally phrasing
# ---------------------------------------------------------------------------

def rally_text(dirs: list[str], angles: list[float]) -> str:
    """Pattern phrase for a run of non-danger curves.

    *dirs* are ``"L"``/``"R"`` flags aligned with *angles*.
    """
    n = len(dirs)
    max_angle = max(angles)
    alternating = all(dirs[i] != dirs[i - 1] for i in range(1, n))
    if alternating and n == 2:
        return f"Chicane {dirs[0].lower()}-{dirs[1].lower()}"
    if alternating and n >= 3:
        return f"Esses, {n} curves, max {max_angle:.0f}°"

    first = _word(dirs[0]).capitalize()
    if all(angles[i] > angles[i - 1] for i in range(1, n)):
        return f"{first} tightens to {angles[-1]:.0f}°"
    if all(angles[i] < angles[i - 1] for i in range(1, n)):
        return f"{first} {angles[0]:.0f}°, opens up"
    if len(set(dirs)) == 1:
        return f"{n} {_word(dirs[0])}s, max {max_angle:.0f}°"
    if n <= 3:
        return f"{'-'.join(_word(d) for d in dirs)}, max {max_angle:.0f}°"
    return f"{n} curves, max {max_angle:.0f}°, stay focused"
