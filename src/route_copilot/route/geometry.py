"""Great-circle geometry on ``[lng, lat]`` polylines."""

from __future__ import annotations

import bisect
import math
from typing import Sequence

EARTH_RADIUS_M = 6_371_000.0

Coordinate = Sequence[float]


# ---------------------------------------------------------------------------
# Point primitives
# ---------------------------------------------------------------------------

def haversine_m(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance in meters between two ``[lng, lat]`` points."""
    lng1, lat1 = math.radians(a[0]), math.radians(a[1])
    lng2, lat2 = math.radians(b[0]), math.radians(b[1])
    dlat = lat2 - lat1
    dlng = lng2 - lng1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlng / 2) ** 2
    return 2 * EARTH_RADIUS_M * math.asin(min(1.0, math.sqrt(h)))


def bearing_deg(a: Coordinate, b: Coordinate) -> float:
    """Initial bearing from *a* to *b*, clockwise from north in ``[0, 360)``."""
    lng1, lat1 = math.radians(a[0]), math.radians(a[1])
    lng2, lat2 = math.radians(b[0]), math.radians(b[1])
    dlng = lng2 - lng1
    y = math.sin(dlng) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlng)
    return math.degrees(math.atan2(y, x)) % 360.0


def heading_change(h1: float, h2: float) -> float:
    """Signed change from heading *h1* to *h2*, wrapped to ``(-180, 180]``.

    Positive values turn clockwise (right), negative counterclockwise (left).
    """
    diff = (h2 - h1) % 360.0
    if diff > 180.0:
        diff -= 360.0
    return diff


def lerp(a: Coordinate, b: Coordinate, ratio: float) -> tuple[float, float]:
    """Linear interpolation between two coordinates (fine at sampling scales)."""
    return (a[0] + (b[0] - a[0]) * ratio, a[1] + (b[1] - a[1]) * ratio)


# ---------------------------------------------------------------------------
# Polyline helpers
# ---------------------------------------------------------------------------

def cumulative_distances(coords: Sequence[Coordinate]) -> list[float]:
    """Distance in meters from the first point to every point of *coords*."""
    if not coords:
        return []
    distances = [0.0]
    for prev, cur in zip(coords, coords[1:]):
        distances.append(distances[-1] + haversine_m(prev, cur))
    return distances


def point_at_distance(
    coords: Sequence[Coordinate],
    distances: Sequence[float],
    target_m: float,
) -> tuple[float, float]:
    """Coordinate located *target_m* meters along the polyline (clamped to its ends)."""
    if not coords:
        raise ValueError("point_at_distance requires at least one coordinate")
    if target_m <= 0 or len(coords) == 1:
        return (coords[0][0], coords[0][1])
    if target_m >= distances[-1]:
        return (coords[-1][0], coords[-1][1])
    idx = bisect.bisect_right(distances, target_m)
    seg_len = distances[idx] - distances[idx - 1]
    ratio = 0.0 if seg_len <= 0 else (target_m - distances[idx - 1]) / seg_len
    return lerp(coords[idx - 1], coords[idx], ratio)


def resample(
    coords: Sequence[Coordinate],
    interval_m: float,
) -> list[tuple[tuple[float, float], float]]:
    """Resample a polyline at a fixed spacing.

    Returns ``(coordinate, distance)`` pairs starting at the first point, one
    every *interval_m* meters, plus the final point when it lies beyond the
    last full interval.  Zero-length segments in the input are skipped, so
    duplicated points never produce degenerate headings.
    """
    if interval_m <= 0:
        raise ValueError("interval_m must be positive")
    distances = cumulative_distances(coords)
    if len(coords) < 2 or distances[-1] <= 0:
        return []

    total = distances[-1]
    samples: list[tuple[tuple[float, float], float]] = []
    n_steps = int(total // interval_m)
    for k in range(n_steps + 1):
        d = k * interval_m
        samples.append((point_at_distance(coords, distances, d), d))
    if total - samples[-1][1] > interval_m * 0.5:
        samples.append(((coords[-1][0], coords[-1][1]), total))
    return samples


def headings(points: Sequence[Coordinate]) -> list[float]:
    """Bearing of each consecutive segment of *points*."""
    return [bearing_deg(a, b) for a, b in zip(points, points[1:])]
