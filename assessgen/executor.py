"""Run batches through the generation loop with bounded concurrency."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

from assessgen.models import Batch, BatchOutcome

_log = logging.getLogger("assessgen.executor")


async def run_batches(
    batches: Sequence[Batch],
    runner: Callable[[Batch], Awaitable[BatchOutcome]],
    concurrency: int,
) -> list[BatchOutcome]:
    """Run *batches* in groups of *concurrency*, waiting for each whole group.

    This is a barrier, not a sliding window: the next group starts only after
    every batch in the current one has finished.  Outcomes are appended at the
    join, so nothing is shared between batches while they run.
    """
    if concurrency < 1:
        raise ValueError(f"concurrency must be >= 1 (got {concurrency})")
    outcomes: list[BatchOutcome] = []
    total = len(batches)
    for start in range(0, total, concurrency):
        group = batches[start : start + concurrency]
        _log.info("Batches %d-%d of %d in flight", start + 1, start + len(group), total)
        results = await asyncio.gather(*(runner(b) for b in group))
        outcomes.extend(results)
    return outcomes
