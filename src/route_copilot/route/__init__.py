"""Route data model, geometry helpers and input normalisation."""

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
    GroupedChild,
    Zone,
    ZoneScore,
)
from route_copilot.route.normalizer import CensusSegment, CurveNormalizer, RoadSegment
from route_copilot.route.road_refs import build_road_segments, classify_road_ref

__all__ = [
    "LEFT",
    "METERS_PER_MILE",
    "RIGHT",
    "TECHNICAL",
    "TRANSIT",
    "URBAN",
    "Bend",
    "Callout",
    "CensusSegment",
    "Curve",
    "CurveNormalizer",
    "GroupedChild",
    "RoadSegment",
    "Zone",
    "ZoneScore",
    "build_road_segments",
    "classify_road_ref",
]
