"""AnalysisService with an injected census client (3 tests)."""

from __future__ import annotations

import pytest

from route_copilot.settings import Settings
from route_copilot.web.schemas import AnalyzeRequest
from route_copilot.web.service import AnalysisService

# Straight north from the equator, about 3 miles.
_COORDS = [[0.0, 0.0], [0.0, 0.0434]]


class _UrbanEverywhere:
    def __init__(self) -> None:
        self.calls = 0

    def lookup(self, lng, lat):
        self.calls += 1
        return "urban"


def test_census_lookup_when_requested():
    census = _UrbanEverywhere()
    svc = AnalysisService(settings=Settings(enrichment_delay_s=0.0), census_client=census)
    analysis = svc.run_analysis(AnalyzeRequest(coordinates=_COORDS, enrich_census=True))
    assert census.calls > 0
    assert analysis.zones[0].character == "urban"
    assert analysis.zones[-1].character == "urban"


def test_census_skipped_when_segments_given():
    census = _UrbanEverywhere()
    svc = AnalysisService(settings=Settings(census_enabled=True), census_client=census)
    req = AnalyzeRequest(
        coordinates=_COORDS,
        census_segments=[{"start": 0, "end": 6000, "character": "rural"}],
    )
    analysis = svc.run_analysis(req)
    assert census.calls == 0
    assert [z.character for z in analysis.zones] == ["transit"]


def test_requires_route_extent():
    with pytest.raises(ValueError):
        AnalysisService(settings=Settings()).run_analysis(AnalyzeRequest(coordinates=[[0.0, 0.0]]))
