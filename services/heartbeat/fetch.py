"""
Bounded Concurrent Fetch
========================

Fan-out/fan-in helper: run a coroutine per item with at most `limit`
in flight and collect results in input order.

Version: 0.1.0
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from typing import TypeVar


T = TypeVar("T")
R = TypeVar("R")


async def concurrent_map(
    limit: int,
    items: Iterable[T],
    fn: Callable[[T], Awaitable[R]],
) -> list[R]:
    """
    Apply an async function to items with bounded parallelism.

    The first failure cancels the remaining calls and is re-raised.

    Args:
        limit: Maximum concurrent calls
        items: Inputs
        fn: Async function applied to each input

    Returns:
        Results in the same order as items
    """
    if limit <= 0:
        raise ValueError(f"limit must be positive, got {limit}")

    semaphore = asyncio.Semaphore(limit)

    async def _run_with_semaphore(item: T) -> R:
        async with semaphore:
            return await fn(item)

    tasks = [asyncio.ensure_future(_run_with_semaphore(item)) for item in items]
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
