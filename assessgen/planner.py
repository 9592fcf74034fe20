from __future__ import annotations

from collections.abc import Mapping

from assessgen.models import Batch, QuestionKind


def plan_batches(counts: Mapping[QuestionKind, int], max_batch_size: int) -> list[Batch]:
    """Split per-kind counts into single-kind batches of at most *max_batch_size*.

    Order follows *counts* iteration order, then chunk order.
    """
    if max_batch_size < 1:
        raise ValueError(f"max_batch_size must be >= 1 (got {max_batch_size})")
    batches = []
    for kind, count in counts.items():
        remaining = count
        while remaining > 0:
            size = min(remaining, max_batch_size)
            batches.append(Batch(kind, size))
            remaining -= size
    return batches
