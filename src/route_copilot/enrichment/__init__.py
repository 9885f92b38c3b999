"""External data enrichment (census urban areas) with batched lookups."""

from route_copilot.enrichment.batching import run_batched
from route_copilot.enrichment.census import CensusClient, CensusEnricher

__all__ = ["CensusClient", "CensusEnricher", "run_batched"]
