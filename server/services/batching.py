"""Sequential batches of concurrent async work, results kept in input order."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, TypeVar

logger = logging.getLogger("sitebrief.summary")

T = TypeVar("T")
R = TypeVar("R")


async def run_in_batches(
    items: Sequence[T],
    worker: Callable[[int, T], Awaitable[R]],
    *,
    batch_size: int = 5,
    concurrency: Optional[int] = None,
    pause_s: float = 0.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    label: str = "batch",
) -> List[R]:
    """
    Run worker(index, item) for every item.

    Batch N+1 starts only after every unit of batch N resolved. Within a batch
    at most `concurrency` calls are in flight. `pause_s` is awaited between
    batches, never after the last. Worker exceptions propagate; units that must
    not abort the run catch their own errors.
    """
    batch_size = max(1, batch_size)
    sem = asyncio.Semaphore(max(1, concurrency or batch_size))
    total = (len(items) + batch_size - 1) // batch_size
    results: List[R] = []

    async def _guarded(index: int, item: T) -> R:
        async with sem:
            return await worker(index, item)

    for start in range(0, len(items), batch_size):
        batch = items[start:start + batch_size]
        logger.info("Processing %s %d/%d (%d units)", label, start // batch_size + 1, total, len(batch))
        batch_results = await asyncio.gather(
            *(_guarded(start + offset, item) for offset, item in enumerate(batch))
        )
        results.extend(batch_results)
        if pause_s > 0 and start + batch_size < len(items):
            await sleep(pause_s)
    return results
