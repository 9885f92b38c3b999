"""HighwayBendDetector — finds gentle bends and sweepers inside transit zones.

Curve detectors tuned for mountain roads ignore the long, shallow bends that
matter at highway speed.  This detector works from raw geometry instead: the
route is resampled at a fixed interval, a sliding window accumulates heading
change, and any window turning more than ``min_angle`` is grown in both
directions while the turn keeps its sign.

Post-processing (each step is a public function so it can be tested alone):

1. :func:`merge_s_sweeps` — opposite bends close together become one S-sweep.
2. :func:`discard_outside_zones` — markers must start inside their zone.
3. :func:`consolidate_sections` — runs of 3+ close bends become one section.
4. :func:`enforce_min_spacing` — adjacent markers keep a minimum distance.
5. :func:`~route_copilot.highway.coaching.apply_coaching`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from route_copilot.highway.coaching import BASE_TARGET_MPH, apply_coaching, section_narration
from route_copilot.observability import EventBus, emit
from route_copilot.route.geometry import heading_change, headings, resample
from route_copilot.route.models import LEFT, RIGHT, TRANSIT, Bend, Zone

_logger = logging.getLogger(__name__)


@dataclass
class BendConfig:
    """Distances in meters, angles in degrees."""

    sample_interval_m: float = 10.0
    sliding_window_m: float = 200.0
    min_angle: float = 8
    max_angle: float = 45
    expand_min_step: float = 0.2
    """Smallest per-sample heading change that still extends a bend."""

    min_segment_points: int = 5
    s_sweep_max_gap_m: float = 200.0
    section_cluster_m: float = 400.0
    section_min_bends: int = 3
    section_fallback_length_m: float = 100.0
    min_spacing_m: float = 300.0
    replace_ratio: float = 1.3
    """A close marker replaces the kept one only when this much more significant."""

    s_sweep_weight: float = 1.5
    sweeper_min_angle: float = 8
    sweeper_max_angle: float = 25
    sweeper_min_length_m: float = 150.0
    base_speed_mph: int = BASE_TARGET_MPH


class HighwayBendDetector:
    """Detect bend / sweeper / S-sweep / section markers in transit zones.

    Args:
        config: Detection thresholds; see :class:`BendConfig`.
        events: Optional event bus receiving one ``bends`` stage event per run.
    """

    def __init__(self, config: BendConfig | None = None, events: EventBus | None = None) -> None:
        self.config = config or BendConfig()
        if self.config.sample_interval_m <= 0:
            raise ValueError("sample_interval_m must be positive")
        self._events = events

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def detect(self, coordinates, zones: list[Zone]) -> list[Bend]:
        """Return markers sorted by distance.  Non-transit zones are ignored."""
        cfg = self.config
        transit = [(i, z) for i, z in enumerate(zones) if z.character == TRANSIT]
        if not transit or not coordinates or len(coordinates) < 2:
            return []

        samples = resample(coordinates, cfg.sample_interval_m)
        if len(samples) < cfg.min_segment_points:
            return []

        raw: list[Bend] = []
        for zone_index, zone in transit:
            lo = zone.start_distance - cfg.sample_interval_m
            hi = zone.end_distance + cfg.sample_interval_m
            segment = [s for s in samples if lo <= s[1] <= hi]
            if len(segment) < cfg.min_segment_points:
                _logger.debug("Zone %d too short for bend detection (%d samples)", zone_index, len(segment))
                continue
            raw.extend(self._scan(segment, zone_index, start_id=len(raw) + 1))

        bends = merge_s_sweeps(raw, cfg.s_sweep_max_gap_m)
        bends = discard_outside_zones(bends, zones)
        bends = consolidate_sections(
            bends,
            cfg.section_cluster_m,
            cfg.section_min_bends,
            cfg.section_fallback_length_m,
            cfg.base_speed_mph,
        )
        bends = enforce_min_spacing(bends, cfg.min_spacing_m, cfg.replace_ratio, cfg.s_sweep_weight)
        apply_coaching(bends, cfg.base_speed_mph)

        emit(
            self._events,
            "bends",
            "detected highway bends",
            raw=len(raw),
            markers=len(bends),
            s_sweeps=sum(1 for b in bends if b.is_s_sweep),
            sections=sum(1 for b in bends if b.is_section),
            sweepers=sum(1 for b in bends if b.is_sweeper and not b.is_section),
        )
        return bends

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _scan(self, segment, zone_index: int, start_id: int) -> list[Bend]:
        """Sliding-window heading scan over one zone's samples."""
        cfg = self.config
        points = [p for p, _ in segment]
        distances = [d for _, d in segment]
        hdgs = headings(points)
        m = len(hdgs)
        window = max(2, int(cfg.sliding_window_m / cfg.sample_interval_m))
        used = [False] * m
        found: list[Bend] = []

        i = 0
        while i + window <= m:
            if any(used[i:i + window]):
                i += 1
                continue
            change = sum(heading_change(hdgs[j], hdgs[j + 1]) for j in range(i, i + window - 1))
            if abs(change) < cfg.min_angle:
                i += 1
                continue

            sign = 1.0 if change > 0 else -1.0
            start, end = i, i + window - 1
            total = change
            while start > 0 and not used[start - 1]:
                step = heading_change(hdgs[start - 1], hdgs[start])
                if step * sign <= cfg.expand_min_step:
                    break
                total += step
                start -= 1
            while end < m - 1 and not used[end + 1]:
                step = heading_change(hdgs[end], hdgs[end + 1])
                if step * sign <= cfg.expand_min_step:
                    break
                total += step
                end += 1

            angle = round(abs(total))
            if cfg.min_angle <= angle <= cfg.max_angle:
                length = distances[end + 1] - distances[start]
                found.append(
                    Bend(
                        id=f"hwy-{start_id + len(found)}",
                        direction=RIGHT if total > 0 else LEFT,
                        angle=angle,
                        length_m=round(length),
                        distance_from_start=round(distances[start]),
                        is_sweeper=(
                            cfg.sweeper_min_angle <= angle <= cfg.sweeper_max_angle
                            and length >= cfg.sweeper_min_length_m
                        ),
                        zone_index=zone_index,
                    )
                )
                for k in range(start, end + 1):
                    used[k] = True
            i = end + 1

        return found


# ---------------------------------------------------------------------------
# Post-processing passes
# ---------------------------------------------------------------------------

def merge_s_sweeps(bends: list[Bend], max_gap_m: float = 200.0) -> list[Bend]:
    """Pair consecutive opposite-direction bends separated by less than *max_gap_m*.

    The gap is measured from the end of the first bend to the start of the
    second.  Bends from different zones are never paired.
    """
    ordered = sorted(bends, key=lambda b: b.distance_from_start)
    result: list[Bend] = []
    i = 0
    while i < len(ordered):
        cur = ordered[i]
        nxt = ordered[i + 1] if i + 1 < len(ordered) else None
        if (
            nxt is not None
            and not cur.is_s_sweep
            and not nxt.is_s_sweep
            and cur.direction != nxt.direction
            and cur.zone_index == nxt.zone_index
        ):
            gap = nxt.distance_from_start - cur.end_distance
            if 0 <= gap < max_gap_m:
                result.append(
                    Bend(
                        id=f"{cur.id}-s",
                        direction=cur.direction,
                        angle=max(cur.angle, nxt.angle),
                        length_m=nxt.end_distance - cur.distance_from_start,
                        distance_from_start=cur.distance_from_start,
                        is_sweeper=cur.is_sweeper or nxt.is_sweeper,
                        is_s_sweep=True,
                        bends=[cur, nxt],
                        combined_angle=cur.angle + nxt.angle,
                        gap_m=gap,
                        bend_count=2,
                        zone_index=cur.zone_index,
                    )
                )
                i += 2
                continue
        result.append(cur)
        i += 1
    return result


def discard_outside_zones(bends: list[Bend], zones: list[Zone]) -> list[Bend]:
    """Keep markers whose start lies within their originating zone's bounds."""
    kept: list[Bend] = []
    for bend in bends:
        if bend.zone_index is None or not 0 <= bend.zone_index < len(zones):
            kept.append(bend)
            continue
        zone = zones[bend.zone_index]
        if zone.start_distance <= bend.distance_from_start <= zone.end_distance:
            kept.append(bend)
    return kept


def consolidate_sections(
    bends: list[Bend],
    cluster_m: float = 400.0,
    min_bends: int = 3,
    fallback_length_m: float = 100.0,
    base_speed: int = BASE_TARGET_MPH,
) -> list[Bend]:
    """Collapse chains of *min_bends* or more markers, each within *cluster_m* of the last."""
    ordered = sorted(bends, key=lambda b: b.distance_from_start)
    result: list[Bend] = []
    sections = 0
    i = 0
    while i < len(ordered):
        cluster = [ordered[i]]
        j = i + 1
        while j < len(ordered) and ordered[j].distance_from_start - cluster[-1].distance_from_start <= cluster_m:
            cluster.append(ordered[j])
            j += 1

        if len(cluster) < min_bends:
            result.append(ordered[i])
            i += 1
            continue

        sections += 1
        first, last = cluster[0], cluster[-1]
        total_angle = sum(b.combined_angle if b.is_s_sweep else b.angle for b in cluster)
        max_angle = max(b.combined_angle if b.is_s_sweep else b.angle for b in cluster)
        result.append(
            Bend(
                id=f"section-{sections}",
                direction=first.direction,
                angle=max_angle,
                length_m=last.distance_from_start - first.distance_from_start + (last.length_m or fallback_length_m),
                distance_from_start=first.distance_from_start,
                is_sweeper=True,
                is_section=True,
                bends=cluster,
                bend_count=len(cluster),
                total_angle=total_angle,
                max_angle=max_angle,
                narration=section_narration(cluster, base_speed),
                zone_index=first.zone_index,
            )
        )
        i = j
    return result


def enforce_min_spacing(
    bends: list[Bend],
    min_spacing_m: float = 300.0,
    replace_ratio: float = 1.3,
    s_sweep_weight: float = 1.5,
) -> list[Bend]:
    """Drop markers closer than *min_spacing_m* to the previous kept one.

    A close marker replaces the kept one instead when its significance is more
    than *replace_ratio* times larger.
    """
    kept: list[Bend] = []
    for bend in sorted(bends, key=lambda b: b.distance_from_start):
        if not kept:
            kept.append(bend)
            continue
        last = kept[-1]
        if bend.distance_from_start - last.distance_from_start >= min_spacing_m:
            kept.append(bend)
        elif bend.significance(s_sweep_weight) > last.significance(s_sweep_weight) * replace_ratio:
            kept[-1] = bend
    return kept
