"""Tests for quality ranking and final set assembly."""
from __future__ import annotations

import dataclasses

from assessgen.fallback import template_question
from assessgen.models import Difficulty, QuestionKind
from assessgen.ranking import (
    RANKING_KEYS,
    finalize,
    has_no_issues,
    is_not_template,
    rank_candidates,
    text_length,
)

K = QuestionKind


def _q(kind=K.TEXT, text="Explain how the immune system distinguishes self from non-self.", **changes):
    base = template_question(kind, Difficulty.MEDIUM, ["Immunity"])
    return dataclasses.replace(base, text=text, source="llm", **changes)


class TestPredicates:
    def test_has_no_issues(self):
        assert has_no_issues(_q())
        assert not has_no_issues(_q(text="Too short"))

    def test_is_not_template(self):
        assert is_not_template(_q())
        assert not is_not_template(_q(text="Describe [TOPIC] in your own words please."))
        assert not is_not_template(_q(text="Fill in this template question about cells."))
        assert not is_not_template(_q(text="Short question?"))

    def test_text_length(self):
        assert text_length(_q(text="abc")) == 3

    def test_key_order(self):
        assert [name for name, _ in RANKING_KEYS] == ["has_no_issues", "is_not_template", "text_length"]


class TestRankCandidates:
    def test_valid_beats_longer_invalid(self):
        valid = _q()
        invalid = _q(text="x" * 500, max_words=None, max_characters=None)
        assert rank_candidates([invalid, valid]) == [valid, invalid]

    def test_detailed_beats_template(self):
        detailed = _q(text="Explain antigen presentation.")
        templated = _q(text="Explain [CONCEPT] and why it matters to the body in detail.")
        assert rank_candidates([templated, detailed]) == [detailed, templated]

    def test_longer_wins_when_otherwise_equal(self):
        short = _q(text="Explain how vaccines work.")
        long = _q(text="Explain how vaccines train adaptive immunity.")
        assert rank_candidates([short, long]) == [long, short]

    def test_stable_for_ties(self):
        a = _q(text="Explain what antibodies do.")
        b = _q(text="Explain what complement do.")
        assert len(a.text) == len(b.text)
        assert rank_candidates([a, b]) == [a, b]
        assert rank_candidates([b, a]) == [b, a]


class TestFinalize:
    def test_takes_best_per_kind(self):
        pool = [
            _q(text="Too short"),
            _q(text="Explain how the thymus educates T cells."),
            _q(K.URL, text="Link a resource that explains how antibodies neutralise toxins."),
        ]
        final = finalize(pool, {K.TEXT: 1, K.URL: 1}, Difficulty.MEDIUM)
        assert [q.text for q in final] == [pool[1].text, pool[2].text]

    def test_backfills_missing(self):
        final = finalize([_q()], {K.TEXT: 3, K.TRUE_FALSE: 1}, Difficulty.EASY, content="Immunology basics")
        assert [q.kind for q in final] == [K.TEXT, K.TEXT, K.TEXT, K.TRUE_FALSE]
        assert [q.source for q in final] == ["llm", "fallback", "fallback", "fallback"]

    def test_zero_counts_skipped(self):
        assert finalize([_q()], {K.TEXT: 0}, Difficulty.EASY) == []

    def test_fresh_ids_and_assignment(self):
        pool = [_q(), _q(text="Explain the role of the complement system.")]
        final = finalize(pool, {K.TEXT: 2}, Difficulty.MEDIUM, assignment_id=42)
        assert {q.assignment_id for q in final} == {42}
        assert len({q.id for q in final}) == 2
        assert not {q.id for q in final} & {q.id for q in pool}
        assert all(q.assignment_id is None for q in pool)
