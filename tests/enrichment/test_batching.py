"""Batched lookups (4 tests)."""

from __future__ import annotations

import pytest

from route_copilot.enrichment.batching import run_batched


def test_results_keep_input_order():
    assert run_batched(list(range(7)), lambda x: x * 10, batch_size=3, _sleep=lambda s: None) == [
        0, 10, 20, 30, 40, 50, 60,
    ]


def test_pauses_between_batches_only():
    sleeps = []
    run_batched(list(range(5)), lambda x: x, batch_size=2, delay_s=0.5, _sleep=sleeps.append)
    assert sleeps == [0.5, 0.5]


def test_failed_lookup_yields_none():
    def lookup(x):
        if x == 2:
            raise RuntimeError("boom")
        return x

    assert run_batched([1, 2, 3], lookup, _sleep=lambda s: None) == [1, None, 3]


def test_rejects_non_positive_batch_size():
    with pytest.raises(ValueError):
        run_batched([1], lambda x: x, batch_size=0)
