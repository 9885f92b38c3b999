"""Batched concurrent lookups against rate-limited services."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Sequence, TypeVar

_logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


def run_batched(
    items: Sequence[T],
    lookup: Callable[[T], R | None],
    batch_size: int = 10,
    delay_s: float = 0.05,
    _sleep=time.sleep,
) -> list[R | None]:
    """Apply *lookup* to every item, *batch_size* at a time, pausing between batches.

    Results keep the order of *items*.  An item whose lookup raises yields
    ``None`` instead of aborting the remaining lookups.
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")

    def _safe(item: T) -> R | None:
        try:
            return lookup(item)
        except Exception as exc:
            _logger.warning("Lookup failed for %r: %s", item, exc)
            return None

    results: list[R | None] = []
    with ThreadPoolExecutor(max_workers=batch_size) as pool:
        for start in range(0, len(items), batch_size):
            if start and delay_s > 0:
                _sleep(delay_s)
            batch = items[start:start + batch_size]
            results.extend(pool.map(_safe, batch))
    return results
