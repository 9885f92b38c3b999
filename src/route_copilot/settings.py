"""Process-level settings read from ``ROUTE_COPILOT_*`` environment variables."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from route_copilot.enrichment.census import CENSUS_URL, REQUEST_TIMEOUT_S
from route_copilot.highway.coaching import HighwayMode
from route_copilot.zones.classifier import ClassificationStrategy

_logger = logging.getLogger(__name__)

_PREFIX = "ROUTE_COPILOT_"


def _env_float(environ, name: str, default: float) -> float:
    raw = environ.get(_PREFIX + name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        _logger.warning("Ignoring invalid %s%s=%r", _PREFIX, name, raw)
        return default


def _env_bool(environ, name: str, default: bool) -> bool:
    raw = environ.get(_PREFIX + name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    census_url: str = CENSUS_URL
    census_timeout_s: float = REQUEST_TIMEOUT_S
    census_enabled: bool = False
    enrichment_batch_size: int = 10
    enrichment_delay_s: float = 0.05
    highway_mode: HighwayMode = HighwayMode.BASIC
    classifier_strategy: ClassificationStrategy = ClassificationStrategy.ROAD_REF_PRIMARY

    @classmethod
    def from_env(cls, environ=None) -> Settings:
        """Build settings from *environ* (defaults to ``os.environ``)."""
        env = os.environ if environ is None else environ
        defaults = cls()

        mode_raw = env.get(_PREFIX + "HIGHWAY_MODE", defaults.highway_mode.value)
        try:
            mode = HighwayMode(mode_raw.strip().lower())
        except ValueError:
            _logger.warning("Unknown highway mode %r, using %s", mode_raw, defaults.highway_mode.value)
            mode = defaults.highway_mode

        strategy_raw = env.get(_PREFIX + "CLASSIFIER_STRATEGY", defaults.classifier_strategy.value)
        try:
            strategy = ClassificationStrategy(strategy_raw.strip().lower())
        except ValueError:
            _logger.warning("Unknown classifier strategy %r, using default", strategy_raw)
            strategy = defaults.classifier_strategy

        return cls(
            census_url=env.get(_PREFIX + "CENSUS_URL", defaults.census_url),
            census_timeout_s=_env_float(env, "CENSUS_TIMEOUT_S", defaults.census_timeout_s),
            census_enabled=_env_bool(env, "CENSUS_ENABLED", defaults.census_enabled),
            enrichment_batch_size=max(1, int(_env_float(env, "BATCH_SIZE", defaults.enrichment_batch_size))),
            enrichment_delay_s=_env_float(env, "BATCH_DELAY_S", defaults.enrichment_delay_s),
            highway_mode=mode,
            classifier_strategy=strategy,
        )
