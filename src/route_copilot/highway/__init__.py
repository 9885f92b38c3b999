"""Highway bend / sweeper detection and coaching."""

from route_copilot.highway.coaching import HighwayMode, generate_highway_callout
from route_copilot.highway.detector import (
    BendConfig,
    HighwayBendDetector,
    consolidate_sections,
    enforce_min_spacing,
    merge_s_sweeps,
)

__all__ = [
    "BendConfig",
    "HighwayBendDetector",
    "HighwayMode",
    "consolidate_sections",
    "enforce_min_spacing",
    "generate_highway_callout",
    "merge_s_sweeps",
]
