"""Route character zones: the voting classifier and zone lookup."""

from route_copilot.zones.classifier import (
    ClassificationStrategy,
    ClassifierConfig,
    VotingThresholds,
    VotingWeights,
    WindowVote,
    ZoneVotingClassifier,
    zone_at,
)

__all__ = [
    "ClassificationStrategy",
    "ClassifierConfig",
    "VotingThresholds",
    "VotingWeights",
    "WindowVote",
    "ZoneVotingClassifier",
    "zone_at",
]
