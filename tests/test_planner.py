"""Tests for splitting per-kind counts into batches."""
from __future__ import annotations

import pytest

from assessgen.models import Batch, QuestionKind
from assessgen.planner import plan_batches

K = QuestionKind


class TestPlanBatches:
    def test_splits_by_max_size(self):
        batches = plan_batches({K.SINGLE_CORRECT: 12}, 5)
        assert batches == [Batch(K.SINGLE_CORRECT, 5), Batch(K.SINGLE_CORRECT, 5), Batch(K.SINGLE_CORRECT, 2)]

    def test_batches_are_single_kind_in_count_order(self):
        batches = plan_batches({K.TEXT: 3, K.TRUE_FALSE: 6}, 5)
        assert [(b.kind, b.size) for b in batches] == [
            (K.TEXT, 3), (K.TRUE_FALSE, 5), (K.TRUE_FALSE, 1),
        ]

    def test_zero_counts_produce_no_batches(self):
        assert plan_batches({K.TEXT: 0, K.URL: 0}, 5) == []

    def test_sizes_sum_to_counts(self):
        counts = {K.SINGLE_CORRECT: 7, K.MULTIPLE_CORRECT: 1, K.UPLOAD: 10}
        batches = plan_batches(counts, 3)
        for kind, n in counts.items():
            assert sum(b.size for b in batches if b.kind == kind) == n
        assert all(1 <= b.size <= 3 for b in batches)

    def test_exact_multiple(self):
        assert [b.size for b in plan_batches({K.TEXT: 10}, 5)] == [5, 5]

    def test_invalid_max_size(self):
        with pytest.raises(ValueError):
            plan_batches({K.TEXT: 1}, 0)
