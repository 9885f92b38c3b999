"""Runtime co-driver chatter: session state and the prioritized engine."""

from route_copilot.chatter.engine import ChatterContext, ChatterSessionEngine
from route_copilot.chatter.session import (
    PRIORITY_ORDER,
    ChatterConfig,
    ChatterSessionState,
    CooldownTracker,
    DriveSample,
)

__all__ = [
    "PRIORITY_ORDER",
    "ChatterConfig",
    "ChatterContext",
    "ChatterSessionEngine",
    "ChatterSessionState",
    "CooldownTracker",
    "DriveSample",
]
