"""Tests for ord_wallet.concurrent — run_per_item() helper."""

import time

import pytest

from ord_wallet.concurrent import run_per_item


class TestRunPerItem:
    def test_returns_results_in_order(self):
        """Results preserve the original item order."""
        assert run_per_item(str.upper, ["c", "a", "b"]) == ["C", "A", "B"]

    def test_first_exception_is_raised(self):
        def _maybe_fail(item):
            if item >= 2:
                raise ValueError(f"boom-{item}")
            return item

        with pytest.raises(ValueError, match="boom-2"):
            run_per_item(_maybe_fail, [1, 2, 3])

    def test_empty_list(self):
        assert run_per_item(lambda n: n, []) == []

    def test_runs_concurrently(self):
        """Each item sleeps 0.2s; together they take ~0.2s, not ~0.6s."""
        def _sleep(item):
            time.sleep(0.2)
            return item

        start = time.monotonic()
        assert run_per_item(_sleep, [1, 2, 3]) == [1, 2, 3]
        assert time.monotonic() - start < 0.5

    def test_max_workers_limits_parallelism(self):
        def _sleep(item):
            time.sleep(0.1)
            return item

        start = time.monotonic()
        run_per_item(_sleep, [1, 2, 3, 4], max_workers=1)
        assert time.monotonic() - start >= 0.35
