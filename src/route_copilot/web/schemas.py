"""Pydantic request/response schemas for the Web API."""

from __future__ import annotations

from pydantic import BaseModel, Field


class AnalyzeRequest(BaseModel):
    coordinates: list[list[float]] = Field(default_factory=list)
    flow_events: list[dict] = Field(default_factory=list)
    total_distance_m: float | None = None
    census_segments: list[dict] = Field(default_factory=list)
    road_segments: list[dict] = Field(default_factory=list)
    route_steps: list[dict] = Field(default_factory=list)
    """Routing-engine steps (``distance``, ``ref``, ``name``); used when road_segments is empty."""

    highway_mode: str | None = None
    enrich_census: bool = False


class HealthResponse(BaseModel):
    status: str
    version: str


class AnalyzeResponse(BaseModel):
    total_miles: float
    zones: list[dict]
    bends: list[dict]
    callouts: dict[str, list[dict]]
    stats: dict


class CalloutPayload(BaseModel):
    id: str
    mile: float
    trigger_mile: float
    text: str
    type: str = "curve"
    priority: str = "medium"
    zone: str | None = None
    angle: float | None = None
    direction: str | None = None


class NextCalloutRequest(BaseModel):
    fast: list[CalloutPayload] = Field(default_factory=list)
    standard: list[CalloutPayload] = Field(default_factory=list)
    current_mile: float = Field(ge=0)
    speed_mph: float = Field(ge=0)
    zone: str | None = None


class NextCalloutResponse(BaseModel):
    set_name: str
    callout: CalloutPayload | None = None
