"""FastAPI Web application for route analysis."""

from __future__ import annotations

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException

from route_copilot.web.schemas import (
    AnalyzeRequest,
    AnalyzeResponse,
    HealthResponse,
    NextCalloutRequest,
    NextCalloutResponse,
)
from route_copilot.web.service import AnalysisService, to_payload

load_dotenv()  # loads .env from project root; must run before env vars are consumed

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = FastAPI(title="Route Copilot", version=VERSION)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse)
def health() -> HealthResponse:
    return HealthResponse(status="ok", version=VERSION)


@app.post("/api/analyze", response_model=AnalyzeResponse)
def analyze(req: AnalyzeRequest) -> AnalyzeResponse:
    """Classify zones, detect highway bends and build both callout sets."""
    svc = AnalysisService()
    try:
        analysis = svc.run_analysis(req)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except Exception as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc

    data = analysis.to_dict()
    return AnalyzeResponse(
        total_miles=data["total_miles"],
        zones=data["zones"],
        bends=data["bends"],
        callouts=data["callouts"],
        stats=data["stats"],
    )


@app.post("/api/next-callout", response_model=NextCalloutResponse)
def next_callout(req: NextCalloutRequest) -> NextCalloutResponse:
    """Pick the active set for the current speed and return the next callout ahead."""
    svc = AnalysisService()
    set_name, callout = svc.next_callout(req)
    return NextCalloutResponse(
        set_name=set_name,
        callout=to_payload(callout) if callout is not None else None,
    )
