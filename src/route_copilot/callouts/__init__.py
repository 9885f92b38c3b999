"""Callout building, speed-profile grouping and runtime set selection."""

from route_copilot.callouts.builder import CalloutBuilder, CalloutRules
from route_copilot.callouts.grouping import (
    FAST,
    STANDARD,
    CalloutGroupingEngine,
    CalloutSets,
    GroupingConfig,
    GroupingStats,
    SpeedProfile,
)
from route_copilot.callouts.selector import CalloutSetSelector, SelectorThresholds

__all__ = [
    "FAST",
    "STANDARD",
    "CalloutBuilder",
    "CalloutGroupingEngine",
    "CalloutRules",
    "CalloutSetSelector",
    "CalloutSets",
    "GroupingConfig",
    "GroupingStats",
    "SelectorThresholds",
    "SpeedProfile",
]
