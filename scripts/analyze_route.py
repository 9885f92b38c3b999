"""Route analysis script — zones, highway bends and callout sets from a route JSON file.

Usage:
  uv run python scripts/analyze_route.py --route route.json
  uv run python scripts/analyze_route.py --route route.json --mode companion --output analysis.json
  uv run python scripts/analyze_route.py --route route.json --census      # query the census geocoder

The route file holds ``coordinates`` ([lng, lat] pairs) and ``flowEvents``
(curve records), optionally ``totalDistance`` (meters), ``censusSegments``,
``roadSegments`` or ``steps`` (routing-engine steps with distance/ref/name).
"""

from __future__ import annotations

import argparse
import json
import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from route_copilot.enrichment.census import CensusClient, CensusEnricher  # noqa: E402
from route_copilot.highway.coaching import HighwayMode  # noqa: E402
from route_copilot.observability import EventBus, StageEvent  # noqa: E402
from route_copilot.pipeline import PipelineConfig, RouteInput, RoutePipeline  # noqa: E402
from route_copilot.route.road_refs import build_road_segments  # noqa: E402
from route_copilot.settings import Settings  # noqa: E402


def _print_event(event: StageEvent) -> None:
    details = ", ".join(f"{k}={v}" for k, v in event.data.items())
    print(f"     [{event.stage}] {event.message} {details}")


def main() -> None:
    ap = argparse.ArgumentParser(description="Analyse a driving route")
    ap.add_argument("--route", required=True, help="Route JSON file")
    ap.add_argument("--mode", choices=[m.value for m in HighwayMode], default=None, help="Highway callout mode")
    ap.add_argument("--census", action="store_true", help="Fetch census urban areas for the route")
    ap.add_argument("--output", default=None, help="Write the full analysis as JSON here")
    ap.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    settings = Settings.from_env()

    try:
        with open(args.route, encoding="utf-8") as fh:
            raw = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        print(f"  [!] Cannot read route file {args.route!r}: {exc}", file=sys.stderr)
        sys.exit(1)

    coordinates = raw.get("coordinates") or []
    census_segments = raw.get("censusSegments") or []
    if args.census and not census_segments:
        print("0/2  Querying census geocoder...")
        with CensusClient(settings.census_url, settings.census_timeout_s) as client:
            census_segments = CensusEnricher(
                client,
                batch_size=settings.enrichment_batch_size,
                delay_s=settings.enrichment_delay_s,
            ).build_segments(coordinates)
        print(f"     {len(census_segments)} census segments")

    route = RouteInput(
        coordinates=coordinates,
        flow_events=raw.get("flowEvents") or raw.get("curves") or [],
        total_distance_m=raw.get("totalDistance"),
        census_segments=census_segments,
        road_segments=raw.get("roadSegments") or build_road_segments(raw.get("steps") or []),
    )

    config = PipelineConfig(highway_mode=HighwayMode(args.mode) if args.mode else settings.highway_mode)
    config.classifier.strategy = settings.classifier_strategy
    events = EventBus()
    events.subscribe(_print_event)

    print("1/2  Running analysis...")
    analysis = RoutePipeline(config, events).analyze(route)

    print("2/2  Summary")
    print(f"     Route     : {analysis.total_miles:.1f} mi")
    for zone in analysis.zones:
        print(f"     {zone.start_mile:6.2f} - {zone.end_mile:6.2f} mi  {zone.character:<9}  {'; '.join(zone.reasons[:3])}")
    print(f"     Bends     : {len(analysis.bends)}")
    stats = analysis.callouts.stats
    print(
        f"     Callouts  : {stats.original} raw, {stats.fast} fast (-{stats.fast_reduction}%), "
        f"{stats.standard} standard (-{stats.standard_reduction}%)"
    )

    if args.output:
        with open(args.output, "w", encoding="utf-8") as fh:
            json.dump(analysis.to_dict(), fh, indent=2)
        print(f"\n[OK] Written: {args.output}")


if __name__ == "__main__":
    main()
