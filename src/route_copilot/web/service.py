"""AnalysisService — wraps the route pipeline for the Web API."""

from __future__ import annotations

import logging

from route_copilot.callouts.grouping import CalloutSets
from route_copilot.callouts.selector import CalloutSetSelector
from route_copilot.enrichment.census import CensusClient, CensusEnricher
from route_copilot.highway.coaching import HighwayMode
from route_copilot.pipeline import PipelineConfig, RouteAnalysis, RouteInput, RoutePipeline
from route_copilot.route.models import Callout
from route_copilot.route.road_refs import build_road_segments
from route_copilot.settings import Settings
from route_copilot.web.schemas import AnalyzeRequest, CalloutPayload, NextCalloutRequest

_logger = logging.getLogger(__name__)


class AnalysisService:
    """Runs route analysis and runtime callout lookups.

    Parameters
    ----------
    settings:
        Process settings; read from the environment when None.
    census_client:
        Optional census client for testing injection.  If None and census
        enrichment is requested, a :class:`CensusClient` is created per call.
    """

    def __init__(self, settings: Settings | None = None, census_client=None) -> None:
        self.settings = settings or Settings.from_env()
        self._census = census_client

    def run_analysis(self, req: AnalyzeRequest) -> RouteAnalysis:
        """Analyse one route.

        Raises
        ------
        ValueError
            If the route has neither coordinates nor a total distance, or the
            requested highway mode is unknown.
        """
        if len(req.coordinates) < 2 and not req.total_distance_m:
            raise ValueError("Route needs at least two coordinates or a total distance")

        mode = self.settings.highway_mode
        if req.highway_mode:
            try:
                mode = HighwayMode(req.highway_mode.lower())
            except ValueError as exc:
                raise ValueError(f"Unknown highway mode {req.highway_mode!r}") from exc

        config = PipelineConfig(highway_mode=mode)
        config.classifier.strategy = self.settings.classifier_strategy

        census_segments = list(req.census_segments)
        if not census_segments and (req.enrich_census or self.settings.census_enabled):
            census_segments = self._census_segments(req.coordinates)

        road_segments = list(req.road_segments) or build_road_segments(req.route_steps)

        route = RouteInput(
            coordinates=req.coordinates,
            flow_events=req.flow_events,
            total_distance_m=req.total_distance_m,
            census_segments=census_segments,
            road_segments=road_segments,
        )
        return RoutePipeline(config).analyze(route)

    def next_callout(self, req: NextCalloutRequest) -> tuple[str, Callout | None]:
        """Return ``(set_name, callout)`` for the driver's position and speed."""
        sets = CalloutSets(
            fast=sorted((_from_payload(p) for p in req.fast), key=lambda c: (c.trigger_mile, c.mile)),
            standard=sorted((_from_payload(p) for p in req.standard), key=lambda c: (c.trigger_mile, c.mile)),
        )
        selector = CalloutSetSelector()
        set_name = selector.set_name(req.speed_mph, req.zone)
        return set_name, selector.next_callout(sets, req.current_mile, req.speed_mph, req.zone)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _census_segments(self, coordinates) -> list[dict]:
        s = self.settings
        if self._census is not None:
            enricher = CensusEnricher(self._census, batch_size=s.enrichment_batch_size, delay_s=s.enrichment_delay_s)
            return enricher.build_segments(coordinates)
        with CensusClient(s.census_url, s.census_timeout_s) as client:
            enricher = CensusEnricher(client, batch_size=s.enrichment_batch_size, delay_s=s.enrichment_delay_s)
            return enricher.build_segments(coordinates)


def _from_payload(payload: CalloutPayload) -> Callout:
    return Callout(**payload.model_dump())


def to_payload(callout: Callout) -> CalloutPayload:
    return CalloutPayload(
        id=callout.id,
        mile=callout.mile,
        trigger_mile=callout.trigger_mile,
        text=callout.text,
        type=callout.type,
        priority=callout.priority,
        zone=callout.zone,
        angle=callout.angle,
        direction=callout.direction,
    )
