"""Census urban-area enrichment.

Samples the route every half mile, asks the Census geocoder whether each
sample falls inside an urban area, and collapses the answers into
``{start, end, character}`` segments (meters) for the zone classifier.
Unanswered samples leave gaps; the classifier treats those as "no census
signal".
"""

from __future__ import annotations

import logging

import httpx

from route_copilot.enrichment.batching import run_batched
from route_copilot.observability import EventBus, emit
from route_copilot.route.geometry import cumulative_distances, point_at_distance
from route_copilot.route.models import METERS_PER_MILE

_logger = logging.getLogger(__name__)

CENSUS_URL = "https://geocoding.geo.census.gov/geocoder/geographies/coordinates"
REQUEST_TIMEOUT_S = 10.0
URBAN_LAYER = "Urban Areas"


class CensusClient:
    """Point lookups against the Census geocoder.

    Args:
        base_url: Geocoder ``geographies/coordinates`` endpoint.
        timeout_s: Per-request timeout.
        layer: Geography layer whose presence marks a point as urban.
        client: Optional pre-built :class:`httpx.Client` (tests pass one with a mock transport).
    """

    def __init__(
        self,
        base_url: str = CENSUS_URL,
        timeout_s: float = REQUEST_TIMEOUT_S,
        layer: str = URBAN_LAYER,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url
        self.layer = layer
        self._client = client or httpx.Client(timeout=timeout_s)

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> CensusClient:
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def lookup(self, lng: float, lat: float) -> str | None:
        """Return ``"urban"``, ``"rural"``, or None if the lookup failed."""
        params = {
            "x": str(lng),
            "y": str(lat),
            "benchmark": "Public_AR_Current",
            "vintage": "Current_Current",
            "layers": self.layer,
            "format": "json",
        }
        try:
            response = self._client.get(self.base_url, params=params)
            response.raise_for_status()
            geographies = response.json()["result"]["geographies"]
        except httpx.HTTPStatusError as exc:
            _logger.warning(
                "Census geocoder returned status %d for lng=%s lat=%s",
                exc.response.status_code,
                lng,
                lat,
            )
            return None
        except (httpx.RequestError, ValueError, KeyError, TypeError) as exc:
            _logger.warning("Census lookup failed for lng=%s lat=%s: %s", lng, lat, exc)
            return None

        if not isinstance(geographies, dict):
            return None
        wanted = self.layer.lower()
        for name, features in geographies.items():
            if wanted in str(name).lower() and features:
                return "urban"
        return "rural"


class CensusEnricher:
    """Build census segments for a route polyline.

    Parameters
    ----------
    client:
        A :class:`CensusClient` (or anything with ``lookup(lng, lat)``).
    sample_interval_miles:
        Spacing of lookup points along the route.
    batch_size, delay_s:
        Concurrency limits passed to :func:`run_batched`.
    """

    def __init__(
        self,
        client,
        sample_interval_miles: float = 0.5,
        batch_size: int = 10,
        delay_s: float = 0.05,
        events: EventBus | None = None,
        _sleep=None,
    ) -> None:
        if sample_interval_miles <= 0:
            raise ValueError("sample_interval_miles must be positive")
        self._client = client
        self.sample_interval_m = sample_interval_miles * METERS_PER_MILE
        self.batch_size = batch_size
        self.delay_s = delay_s
        self._events = events
        self._sleep = _sleep

    def build_segments(self, coordinates) -> list[dict]:
        """Return ``{start, end, character}`` segments covering the answered samples."""
        if not coordinates or len(coordinates) < 2:
            return []
        distances = cumulative_distances(coordinates)
        total = distances[-1]
        if total <= 0:
            return []

        positions: list[float] = []
        d = 0.0
        while d < total:
            positions.append(d)
            d += self.sample_interval_m
        positions.append(total)
        points = [point_at_distance(coordinates, distances, p) for p in positions]

        kwargs = {"batch_size": self.batch_size, "delay_s": self.delay_s}
        if self._sleep is not None:
            kwargs["_sleep"] = self._sleep
        labels = run_batched(points, lambda p: self._client.lookup(p[0], p[1]), **kwargs)

        segments = _collapse(positions, labels, self.sample_interval_m / 2, total)
        answered = sum(1 for label in labels if label is not None)
        emit(
            self._events,
            "enrichment",
            "census segments built",
            level=logging.INFO if answered == len(labels) else logging.WARNING,
            samples=len(labels),
            answered=answered,
            segments=len(segments),
        )
        return segments


def _collapse(positions: list[float], labels: list[str | None], half: float, total: float) -> list[dict]:
    """Merge consecutive equal labels; each sample covers *half* meters either side."""
    segments: list[dict] = []
    for position, label in zip(positions, labels):
        if label is None:
            continue
        start = max(0.0, position - half)
        end = min(total, position + half)
        last = segments[-1] if segments else None
        if last is not None and last["character"] == label and start <= last["end"] + 1e-6:
            last["end"] = end
        else:
            segments.append({"start": start, "end": end, "character": label})
    return segments
