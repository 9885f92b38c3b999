"""ZoneVotingClassifier — partitions a route into urban / technical / transit zones.

A window slides along the route.  Each window collects weighted votes from
curve statistics, census labels and road references, picks a winning
character, and owns the stretch up to the next window start.  Runs of equal
windows merge into zones; short zones are absorbed; urban edges are forced
where census data says the route starts or ends in town.
"""

from __future__ import annotations

import bisect
import logging
from dataclasses import dataclass, field
from enum import Enum

from route_copilot.observability import EventBus, emit
from route_copilot.route.models import (
    TECHNICAL,
    TRANSIT,
    URBAN,
    Curve,
    Zone,
    ZoneScore,
    miles_to_meters,
)
from route_copilot.route.normalizer import (
    CensusSegment,
    RoadSegment,
    normalize_census_segments,
    normalize_road_segments,
)
from route_copilot.route.road_refs import INTERSTATE, LOCAL, STATE_ROUTE, US_HIGHWAY

_logger = logging.getLogger(__name__)

_EPS = 1e-9


class ClassificationStrategy(str, Enum):
    """How much the classifier trusts road references."""

    CURVE_VOTING = "curve_voting"
    """Curves and census only; road references are ignored."""

    ROAD_REF_PRIMARY = "road_ref_primary"
    """Interstates force transit; other road classes add weighted votes."""


@dataclass
class VotingWeights:
    """Points added to a window's score when a signal fires."""

    curve_cluster: float = 4
    sustained_curves: float = 3
    danger_curve: float = 3
    high_angle_avg: float = 2
    tight_curves: float = 2
    long_gap: float = 4
    census_rural: float = 1
    sparse_window: float = 2
    census_urban: float = 10
    road_interstate: float = 15
    road_us_highway: float = 8
    road_state_route: float = 0
    road_local: float = 4


@dataclass
class VotingThresholds:
    """Angles in degrees, distances in miles."""

    min_angle_to_count: float = 12
    danger_angle: float = 50
    high_angle_avg: float = 25
    high_angle_min_curves: int = 2
    cluster_window_miles: float = 0.5
    cluster_min_curves: int = 3
    cluster_min_avg_angle: float = 18
    sustained_window_miles: float = 2.0
    sustained_min_curves: int = 4
    sustained_min_avg_angle: float = 20
    tight_length_miles: float = 0.1
    tight_min_curves: int = 2
    sparse_min_curves: int = 2
    gap_threshold_miles: float = 2.0
    window_miles: float = 0.5
    min_zone_length_miles: float = 0.5
    max_urban_miles: float = 1.0
    min_urban_edge_miles: float = 0.3
    urban_probe_miles: float = 0.5


@dataclass
class ClassifierConfig:
    weights: VotingWeights = field(default_factory=VotingWeights)
    thresholds: VotingThresholds = field(default_factory=VotingThresholds)
    strategy: ClassificationStrategy = ClassificationStrategy.ROAD_REF_PRIMARY
    tie_character: str = TRANSIT
    """Winner when technical and transit votes are equal."""


@dataclass
class WindowVote:
    """Votes collected for one analysis window."""

    start_mile: float
    end_mile: float
    score: ZoneScore = field(default_factory=ZoneScore)
    reasons: list[str] = field(default_factory=list)
    is_override: bool = False
    """True when a road reference forced transit and curve voting was skipped."""

    character: str = TRANSIT


class ZoneVotingClassifier:
    """Classify route windows by weighted voting and merge them into zones.

    Parameters
    ----------
    config:
        Weights, thresholds and strategy; defaults reproduce the tuned values.
    events:
        Optional :class:`~route_copilot.observability.EventBus` for the stage event.
    """

    def __init__(self, config: ClassifierConfig | None = None, events: EventBus | None = None) -> None:
        self.config = config or ClassifierConfig()
        if self.config.thresholds.window_miles <= 0:
            raise ValueError("window_miles must be positive")
        self._events = events

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def classify(
        self,
        curves: list[Curve],
        total_miles: float,
        census_segments=None,
        road_segments=None,
    ) -> list[Zone]:
        """Return zones covering exactly ``[0, total_miles]``.

        An empty list is returned only for a non-positive route length.
        """
        if not total_miles or total_miles <= 0:
            return []

        th = self.config.thresholds
        census = normalize_census_segments(census_segments)
        roads = normalize_road_segments(road_segments)
        counted = sorted(
            (c for c in curves if c.angle >= th.min_angle_to_count),
            key=lambda c: c.mile,
        )

        zones: list[Zone] = []
        step = th.window_miles / 2
        k = 0
        while k * step < total_miles - _EPS:
            start = k * step
            end = min(start + th.window_miles, total_miles)
            vote = self.vote_window(start, end, counted, total_miles, census, roads)
            owned_end = min(start + step, total_miles)
            zones.append(
                Zone(
                    start_mile=start,
                    end_mile=owned_end,
                    character=vote.character,
                    score=vote.score,
                    reasons=list(vote.reasons),
                )
            )
            k += 1

        zones = _merge_adjacent(zones)
        zones = self._absorb_short_zones(zones, total_miles)
        zones = self._apply_urban_edges(zones, census, total_miles)

        zones[0].start_mile = 0.0
        zones[-1].end_mile = total_miles

        emit(
            self._events,
            "zones",
            "classified route",
            total_miles=round(total_miles, 3),
            zones=len(zones),
            technical=sum(1 for z in zones if z.character == TECHNICAL),
            transit=sum(1 for z in zones if z.character == TRANSIT),
            urban=sum(1 for z in zones if z.character == URBAN),
            strategy=self.config.strategy.value,
        )
        return zones

    def vote_window(
        self,
        start: float,
        end: float,
        curves: list[Curve],
        total_miles: float,
        census: list[CensusSegment] | None = None,
        roads: list[RoadSegment] | None = None,
    ) -> WindowVote:
        """Score one window; *curves* must be sorted by mile."""
        w = self.config.weights
        th = self.config.thresholds
        vote = WindowVote(start_mile=start, end_mile=end)
        score = vote.score
        mid = (start + end) / 2

        if self.config.strategy is ClassificationStrategy.ROAD_REF_PRIMARY and roads:
            road = _road_at(roads, mid)
            if road is not None:
                if road.road_class == INTERSTATE:
                    score.transit += w.road_interstate
                    vote.reasons.append(f"interstate {road.ref or road.name or ''}".strip())
                    vote.is_override = True
                elif road.road_class == US_HIGHWAY:
                    score.transit += w.road_us_highway
                    vote.reasons.append(f"US highway {road.ref or road.name or ''}".strip())
                elif road.road_class == STATE_ROUTE:
                    score.transit += w.road_state_route
                elif road.road_class == LOCAL:
                    score.technical += w.road_local
                    vote.reasons.append("local road")

        if not vote.is_override:
            self._vote_curves(vote, start, mid, curves, total_miles)

        census_label = _census_at(census, miles_to_meters(mid)) if census else None
        if census_label == "rural":
            score.transit += w.census_rural
            vote.reasons.append("census rural")
        elif census_label == "urban":
            near_edge = mid < th.max_urban_miles or mid > total_miles - th.max_urban_miles
            if near_edge:
                score.urban += w.census_urban
                vote.reasons.append("census urban")

        vote.character = self._decide(vote)
        return vote

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _vote_curves(
        self,
        vote: WindowVote,
        start: float,
        mid: float,
        curves: list[Curve],
        total_miles: float,
    ) -> None:
        w = self.config.weights
        th = self.config.thresholds
        score = vote.score
        miles = [c.mile for c in curves]

        cluster = _curves_between(curves, miles, start, start + th.cluster_window_miles)
        sustained = _curves_between(curves, miles, start, start + th.sustained_window_miles)

        if len(cluster) >= th.cluster_min_curves:
            avg = _avg_angle(cluster)
            if avg >= th.cluster_min_avg_angle:
                score.technical += w.curve_cluster
                vote.reasons.append(f"{len(cluster)} curves in {th.cluster_window_miles:g}mi (avg {avg:.0f}°)")

        if len(sustained) >= th.sustained_min_curves:
            avg = _avg_angle(sustained)
            if avg >= th.sustained_min_avg_angle:
                score.technical += w.sustained_curves
                vote.reasons.append(f"{len(sustained)} curves in {th.sustained_window_miles:g}mi")

        dangers = [c for c in sustained if c.angle >= th.danger_angle]
        if dangers:
            score.technical += w.danger_curve
            vote.reasons.append(f"{len(dangers)} curves ≥{th.danger_angle:g}°")

        if len(cluster) >= th.high_angle_min_curves:
            avg = _avg_angle(cluster)
            if avg >= th.high_angle_avg:
                score.technical += w.high_angle_avg
                vote.reasons.append(f"high avg angle {avg:.0f}°")

        tight = [c for c in cluster if c.shape == "tight" or c.length_miles < th.tight_length_miles]
        if len(tight) >= th.tight_min_curves:
            score.technical += w.tight_curves
            vote.reasons.append(f"{len(tight)} tight curves")

        gap = _gap_at(miles, mid, total_miles)
        if gap >= th.gap_threshold_miles:
            score.transit += w.long_gap
            vote.reasons.append(f"{gap:.1f}mi gap")

        if len(sustained) < th.sparse_min_curves:
            score.transit += w.sparse_window
            vote.reasons.append("sparse curves")

    def _decide(self, vote: WindowVote) -> str:
        score = vote.score
        if vote.is_override:
            return TRANSIT
        if score.urban > 0:
            return URBAN
        if score.technical > score.transit:
            return TECHNICAL
        if score.transit > score.technical:
            return TRANSIT
        return self.config.tie_character

    def _absorb_short_zones(self, zones: list[Zone], total_miles: float) -> list[Zone]:
        """Fold sub-minimum zones into neighbours until none remain (or one zone is left).

        A non-urban zone is never folded into urban when that would stretch
        urban more than ``max_urban_miles`` from both route ends; it takes
        another neighbour, or is widened to the minimum length instead.
        """
        min_len = self.config.thresholds.min_zone_length_miles
        while len(zones) > 1:
            short = [i for i, z in enumerate(zones) if z.length_miles < min_len - _EPS]
            if not short:
                break
            idx = min(short, key=lambda i: (zones[i].length_miles, i))
            target = _absorption_target(zones, idx)
            zone = zones[idx]
            if zone.character != URBAN and zones[target].character == URBAN:
                if self._urban_reaches_mid_route(_absorbed_span(zones, idx, target), total_miles):
                    others = [
                        i for i in (idx - 1, idx + 1)
                        if 0 <= i < len(zones) and zones[i].character != URBAN
                    ]
                    if others:
                        target = others[0]
                    elif self._widen_mid_route(zones, idx, total_miles):
                        zones = _merge_adjacent([z for z in zones if z.length_miles > _EPS])
                        continue
            host = zones[target]
            host.start_mile = min(host.start_mile, zone.start_mile)
            host.end_mile = max(host.end_mile, zone.end_mile)
            host.score.add(zone.score)
            host.add_reasons([f"absorbed {zone.character} {zone.length_miles:.2f}mi"])
            del zones[idx]
            zones = _merge_adjacent(zones)
        return zones

    def _urban_reaches_mid_route(self, span: tuple[float, float], total_miles: float) -> bool:
        """True when *span* holds a point more than ``max_urban_miles`` from both ends."""
        max_urban = self.config.thresholds.max_urban_miles
        mid_lo, mid_hi = max_urban, total_miles - max_urban
        return mid_lo < mid_hi and span[1] > mid_lo + _EPS and span[0] < mid_hi - _EPS

    def _widen_mid_route(self, zones: list[Zone], idx: int, total_miles: float) -> bool:
        """Grow ``zones[idx]`` over the mid-route stretch, trimming its urban neighbours.

        Returns False, leaving *zones* untouched, when the neighbours are too
        short to give the zone its minimum length.
        """
        th = self.config.thresholds
        min_len = th.min_zone_length_miles
        zone = zones[idx]
        prev = zones[idx - 1] if idx > 0 else None
        nxt = zones[idx + 1] if idx < len(zones) - 1 else None
        lo = prev.start_mile if prev is not None else zone.start_mile
        hi = nxt.end_mile if nxt is not None else zone.end_mile
        if hi - lo < min_len - _EPS:
            return False

        start = min(zone.start_mile, max(lo, th.max_urban_miles))
        end = max(zone.end_mile, min(hi, total_miles - th.max_urban_miles))
        if end - start < min_len:
            pad = (min_len - (end - start)) / 2
            start, end = start - pad, end + pad
        if start < lo:
            start, end = lo, lo + max(min_len, end - start)
        if end > hi:
            start, end = max(lo, hi - max(min_len, end - start)), hi

        zone.start_mile, zone.end_mile = start, end
        zone.add_reasons(["kept clear of mid-route urban"])
        if prev is not None:
            prev.end_mile = start
        if nxt is not None:
            nxt.start_mile = end
        return True

    def _apply_urban_edges(
        self,
        zones: list[Zone],
        census: list[CensusSegment],
        total_miles: float,
    ) -> list[Zone]:
        """Force bounded urban zones where census marks a route endpoint as urban."""
        if not census or not zones:
            return zones
        th = self.config.thresholds
        min_len = max(th.min_urban_edge_miles, th.min_zone_length_miles)
        probe = min(th.urban_probe_miles, total_miles / 2)

        if _census_at(census, miles_to_meters(probe)) == "urban" and zones[0].character != URBAN:
            first = zones[0]
            urban_end = min(th.max_urban_miles, first.end_mile)
            if first.end_mile - urban_end < min_len - _EPS:
                urban_end = first.end_mile
            if urban_end >= min_len - _EPS:
                edge = Zone(0.0, urban_end, URBAN, reasons=["census urban at route start"])
                if urban_end >= first.end_mile - _EPS:
                    zones[0] = edge
                else:
                    first.start_mile = urban_end
                    zones.insert(0, edge)
                zones = _merge_adjacent(zones)

        probe_mile = total_miles - probe
        if _census_at(census, miles_to_meters(probe_mile)) == "urban" and zones[-1].character != URBAN:
            last = zones[-1]
            urban_start = max(total_miles - th.max_urban_miles, last.start_mile)
            if urban_start - last.start_mile < min_len - _EPS:
                urban_start = last.start_mile
            if total_miles - urban_start >= min_len - _EPS:
                edge = Zone(urban_start, total_miles, URBAN, reasons=["census urban at route end"])
                if urban_start <= last.start_mile + _EPS:
                    zones[-1] = edge
                else:
                    last.end_mile = urban_start
                    zones.append(edge)
                zones = _merge_adjacent(zones)

        return zones


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------

def _curves_between(curves: list[Curve], miles: list[float], lo: float, hi: float) -> list[Curve]:
    """Curves with ``lo <= mile < hi``."""
    return curves[bisect.bisect_left(miles, lo):bisect.bisect_left(miles, hi)]


def _avg_angle(curves: list[Curve]) -> float:
    return sum(c.angle for c in curves) / len(curves) if curves else 0.0


def _gap_at(miles: list[float], mile: float, total_miles: float) -> float:
    """Straight distance around *mile*: last curve at/before it to the next one after it."""
    idx = bisect.bisect_right(miles, mile)
    gap_start = miles[idx - 1] if idx > 0 else 0.0
    gap_end = miles[idx] if idx < len(miles) else total_miles
    return gap_end - gap_start


def _census_at(census: list[CensusSegment], meters: float) -> str | None:
    for seg in census:
        if seg.covers(meters):
            return seg.character
    return None


def _road_at(roads: list[RoadSegment], mile: float) -> RoadSegment | None:
    for seg in roads:
        if seg.covers(mile):
            return seg
    return None


def _merge_adjacent(zones: list[Zone]) -> list[Zone]:
    """Merge runs of equal-character zones, summing scores and unioning reasons."""
    merged: list[Zone] = []
    for zone in zones:
        if merged and merged[-1].character == zone.character:
            prev = merged[-1]
            prev.end_mile = zone.end_mile
            prev.score.add(zone.score)
            prev.add_reasons(zone.reasons)
        else:
            merged.append(zone)
    return merged


def _absorption_target(zones: list[Zone], idx: int) -> int:
    """Neighbour index that should swallow ``zones[idx]``.

    Neighbours sharing a character win outright (one absorption removes two
    boundaries); otherwise the longer neighbour, ties going to the previous one.
    """
    prev_idx = idx - 1 if idx > 0 else None
    next_idx = idx + 1 if idx < len(zones) - 1 else None
    if prev_idx is None:
        return next_idx
    if next_idx is None:
        return prev_idx
    if zones[prev_idx].character == zones[next_idx].character:
        return prev_idx
    if zones[next_idx].length_miles > zones[prev_idx].length_miles:
        return next_idx
    return prev_idx


def _absorbed_span(zones: list[Zone], idx: int, target: int) -> tuple[float, float]:
    """Extent of the host zone once ``zones[idx]`` is folded into ``zones[target]``."""
    host = zones[target]
    start, end = min(host.start_mile, zones[idx].start_mile), max(host.end_mile, zones[idx].end_mile)
    other = idx + (idx - target)
    if 0 <= other < len(zones) and zones[other].character == host.character:
        start, end = min(start, zones[other].start_mile), max(end, zones[other].end_mile)
    return start, end


def zone_at(zones: list[Zone], mile: float) -> Zone | None:
    """Zone containing *mile*, or None when *mile* is off the route."""
    for zone in zones:
        if zone.start_mile <= mile < zone.end_mile:
            return zone
    if zones and abs(mile - zones[-1].end_mile) < _EPS:
        return zones[-1]
    return None
