"""Rank the candidate pool and assemble the final question set."""
from __future__ import annotations

import dataclasses
import logging
import uuid
from collections import defaultdict
from collections.abc import Callable, Iterable, Mapping

from assessgen.fallback import fallback_questions
from assessgen.models import Difficulty, QuestionCandidate, QuestionKind
from assessgen.validator import structural_issues

_log = logging.getLogger("assessgen.ranking")

MIN_DETAILED_CHARS = 20
TEMPLATE_MARKERS = ("[", "template")


def has_no_issues(q: QuestionCandidate) -> bool:
    return not structural_issues(q)


def is_not_template(q: QuestionCandidate) -> bool:
    text = q.text or ""
    return len(text) >= MIN_DETAILED_CHARS and not any(m in text for m in TEMPLATE_MARKERS)


def text_length(q: QuestionCandidate) -> int:
    return len(q.text or "")


# Evaluated in order; earlier keys dominate later ones.  Higher is better.
RANKING_KEYS: list[tuple[str, Callable[[QuestionCandidate], int | bool]]] = [
    ("has_no_issues", has_no_issues),
    ("is_not_template", is_not_template),
    ("text_length", text_length),
]


def quality_key(q: QuestionCandidate) -> tuple:
    return tuple(fn(q) for _, fn in RANKING_KEYS)


def rank_candidates(candidates: Iterable[QuestionCandidate]) -> list[QuestionCandidate]:
    """Best first.  Stable, so equal candidates keep their pool order."""
    return sorted(candidates, key=quality_key, reverse=True)


def finalize(
    pool: Iterable[QuestionCandidate],
    required: Mapping[QuestionKind, int],
    difficulty: Difficulty,
    content: str | None = None,
    objectives: str | None = None,
    assignment_id: int | None = None,
) -> list[QuestionCandidate]:
    """Pick the best *required[kind]* candidates per kind, topping up with fallbacks.

    Every returned question gets a fresh id and the assignment id.
    """
    by_kind: dict[QuestionKind, list[QuestionCandidate]] = defaultdict(list)
    for q in pool:
        by_kind[q.kind].append(q)

    final: list[QuestionCandidate] = []
    for kind, count in required.items():
        if count <= 0:
            continue
        selected = rank_candidates(by_kind[kind])[:count]
        missing = count - len(selected)
        if missing:
            _log.warning("Only %d of %d %s questions available — adding %d fallbacks",
                         len(selected), count, kind.value, missing)
            selected += fallback_questions(kind, missing, difficulty, content, objectives)
        final.extend(selected)

    return [
        dataclasses.replace(q, id=str(uuid.uuid4()), assignment_id=assignment_id)
        for q in final
    ]
