"""Drive simulator — replays a route at constant speed and prints what would be spoken.

Usage:
  uv run python scripts/simulate_drive.py --route route.json
  uv run python scripts/simulate_drive.py --route route.json --speed 80 --step 2 --seed 7

Time is simulated: one tick per ``--step`` seconds, no real waiting.
"""

from __future__ import annotations

import argparse
import json
import random
import sys

from dotenv import load_dotenv

load_dotenv()

from route_copilot.callouts.selector import CalloutSetSelector  # noqa: E402
from route_copilot.chatter.engine import ChatterContext, ChatterSessionEngine  # noqa: E402
from route_copilot.chatter.session import DriveSample  # noqa: E402
from route_copilot.pipeline import RouteInput, RoutePipeline  # noqa: E402
from route_copilot.route.models import METERS_PER_MILE  # noqa: E402
from route_copilot.zones.classifier import zone_at  # noqa: E402


def main() -> None:
    ap = argparse.ArgumentParser(description="Simulate a drive and print callouts and chatter")
    ap.add_argument("--route", required=True, help="Route JSON file")
    ap.add_argument("--speed", type=float, default=70.0, help="Constant speed (mph)")
    ap.add_argument("--step", type=float, default=1.0, help="Simulated seconds per tick")
    ap.add_argument("--seed", type=int, default=None, help="Random seed for phrase choice")
    args = ap.parse_args()

    try:
        with open(args.route, encoding="utf-8") as fh:
            raw = json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        print(f"  [!] Cannot read route file {args.route!r}: {exc}", file=sys.stderr)
        sys.exit(1)

    analysis = RoutePipeline().analyze(
        RouteInput(
            coordinates=raw.get("coordinates") or [],
            flow_events=raw.get("flowEvents") or raw.get("curves") or [],
            total_distance_m=raw.get("totalDistance"),
            census_segments=raw.get("censusSegments") or [],
            road_segments=raw.get("roadSegments") or [],
        )
    )
    total_m = analysis.total_miles * METERS_PER_MILE
    if total_m <= 0:
        print("  [!] Route has no length.", file=sys.stderr)
        sys.exit(1)

    clock = [0.0]
    engine = ChatterSessionEngine(_time_fn=lambda: clock[0], _rng=random.Random(args.seed))
    selector = CalloutSetSelector()
    expected_s = total_m / (65 * METERS_PER_MILE / 3600)
    meters_per_tick = args.speed * METERS_PER_MILE / 3600 * args.step

    spoken: set[str] = set()
    position = 0.0
    while position <= total_m:
        mile = position / METERS_PER_MILE
        zone = zone_at(analysis.zones, mile)
        character = zone.character if zone else None

        callout = selector.next_callout(analysis.callouts, mile, args.speed, character)
        # Speak a callout once the driver reaches its trigger point on the next tick.
        if callout is not None and callout.id not in spoken and callout.trigger_mile - mile < meters_per_tick / METERS_PER_MILE:
            spoken.add(callout.id)
            print(f"{clock[0]:7.0f}s  {mile:6.2f} mi  [{callout.type}] {callout.text}")

        sample = DriveSample(
            speed=args.speed,
            distance_m=position,
            total_distance_m=total_m,
            zone=character,
            expected_duration_s=expected_s,
        )
        engine.update(sample)
        chatter = engine.next(
            ChatterContext(sample=sample, zones=analysis.zones, bends=analysis.bends, curves=analysis.curves)
        )
        if chatter is not None:
            print(f"{clock[0]:7.0f}s  {mile:6.2f} mi  ({chatter.category}) {chatter.text}")

        position += meters_per_tick
        clock[0] += args.step

    print(f"\n[OK] Arrived: {analysis.total_miles:.1f} mi in {clock[0] / 60:.0f} simulated minutes")


if __name__ == "__main__":
    main()
