"""RoutePipeline — runs every analysis stage for one route.

curves → zones → highway bends → callouts → grouped callout sets.
Each stage is pure; malformed input degrades to empty output, never an
exception.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from route_copilot.callouts.builder import CalloutBuilder, CalloutRules
from route_copilot.callouts.grouping import CalloutGroupingEngine, CalloutSets, GroupingConfig
from route_copilot.highway.coaching import HighwayMode
from route_copilot.highway.detector import BendConfig, HighwayBendDetector
from route_copilot.observability import EventBus, emit
from route_copilot.route.geometry import cumulative_distances
from route_copilot.route.models import Bend, Curve, Zone, meters_to_miles
from route_copilot.route.normalizer import CurveNormalizer
from route_copilot.zones.classifier import ClassifierConfig, ZoneVotingClassifier

_logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    bends: BendConfig = field(default_factory=BendConfig)
    rules: CalloutRules = field(default_factory=CalloutRules)
    grouping: GroupingConfig = field(default_factory=GroupingConfig)
    highway_mode: HighwayMode = HighwayMode.BASIC
    zone_announcements: bool = True


@dataclass
class RouteInput:
    """Raw route data as delivered by routing and curve detection."""

    coordinates: list = field(default_factory=list)
    """Ordered ``[lng, lat]`` points."""

    flow_events: list = field(default_factory=list)
    """Curve records in any of the tolerated field layouts."""

    total_distance_m: float | None = None
    """Route length; measured from the coordinates when omitted."""

    census_segments: list = field(default_factory=list)
    road_segments: list = field(default_factory=list)


@dataclass
class RouteAnalysis:
    total_miles: float
    curves: list[Curve] = field(default_factory=list)
    zones: list[Zone] = field(default_factory=list)
    bends: list[Bend] = field(default_factory=list)
    callouts: CalloutSets = field(default_factory=CalloutSets)

    def to_dict(self) -> dict:
        sets = self.callouts.to_dict()
        return {
            "total_miles": round(self.total_miles, 4),
            "curves": [c.to_dict() for c in self.curves],
            "zones": [z.to_dict() for z in self.zones],
            "bends": [b.to_dict() for b in self.bends],
            "callouts": {"fast": sets["fast"], "standard": sets["standard"]},
            "stats": sets["stats"],
        }


class RoutePipeline:
    """Wire the analysis stages together.

    Parameters
    ----------
    config:
        Per-stage configuration.
    events:
        Event bus shared by all stages; one event is emitted per stage.
    """

    def __init__(self, config: PipelineConfig | None = None, events: EventBus | None = None) -> None:
        self.config = config or PipelineConfig()
        self.events = events or EventBus()
        self.normalizer = CurveNormalizer(min_angle=self.config.classifier.thresholds.min_angle_to_count)
        self.classifier = ZoneVotingClassifier(self.config.classifier, self.events)
        self.detector = HighwayBendDetector(self.config.bends, self.events)
        self.builder = CalloutBuilder(self.config.rules)
        self.grouper = CalloutGroupingEngine(self.config.grouping, events=self.events)

    def analyze(self, route: RouteInput) -> RouteAnalysis:
        coordinates = route.coordinates or []
        total_m = route.total_distance_m
        if not total_m or total_m <= 0:
            distances = cumulative_distances(coordinates)
            total_m = distances[-1] if distances else 0.0
        total_miles = meters_to_miles(total_m)

        # ------------------------------------------------------------------
        # Step 1: Normalise curve records
        # ------------------------------------------------------------------
        curves = self.normalizer.normalize(route.flow_events)
        curves = [c for c in curves if c.mile <= total_miles] if total_miles > 0 else []
        emit(self.events, "curves", "normalised curve records", received=len(route.flow_events or []), kept=len(curves))

        if total_miles <= 0:
            emit(self.events, "analysis", "route has no length", level=logging.WARNING)
            return RouteAnalysis(total_miles=0.0)

        # ------------------------------------------------------------------
        # Step 2: Zones
        # ------------------------------------------------------------------
        zones = self.classifier.classify(curves, total_miles, route.census_segments, route.road_segments)

        # ------------------------------------------------------------------
        # Step 3: Highway bends (transit zones only)
        # ------------------------------------------------------------------
        bends = self.detector.detect(coordinates, zones)

        # ------------------------------------------------------------------
        # Step 4: Callouts, grouped per speed profile
        # ------------------------------------------------------------------
        callouts = self.builder.build(curves, zones, bends, self.config.highway_mode)
        sets = self.grouper.build_sets(callouts)
        if self.config.zone_announcements:
            for grouped in (sets.fast, sets.standard):
                grouped.extend(self.builder.zone_announcements(zones))
                grouped.sort(key=lambda c: (c.trigger_mile, c.mile))

        emit(
            self.events,
            "analysis",
            "route analysed",
            miles=round(total_miles, 2),
            curves=len(curves),
            zones=len(zones),
            bends=len(bends),
            fast=len(sets.fast),
            standard=len(sets.standard),
        )
        return RouteAnalysis(total_miles=total_miles, curves=curves, zones=zones, bends=bends, callouts=sets)
