"""
ord_wallet.concurrent — Fan out ord server lookups

Uses ThreadPoolExecutor for the I/O-bound per-output and per-address
queries a wallet makes while collecting its outputs.
"""

from concurrent.futures import ThreadPoolExecutor


def run_per_item(fn, items, max_workers=8):
    """Run fn(item) concurrently for each item.

    Args:
        fn: Callable that takes one item.
        items: List of items.
        max_workers: Max concurrent threads (default 8).

    Returns:
        List of results in original items order. The first exception
        raised by fn (in items order) is re-raised.
    """
    if not items:
        return []

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        futures = [pool.submit(fn, item) for item in items]
        return [future.result() for future in futures]
