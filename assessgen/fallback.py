"""Template questions built locally when the LLM can't deliver.

Everything here is deterministic and makes no LLM calls, so a batch can
always be completed.  Output always passes ``validator.structural_issues``.
"""
from __future__ import annotations

import re
import uuid
from collections import Counter

from assessgen.defaults import (
    DEFAULT_RESPONSE_TYPE,
    default_max_characters,
    default_max_words,
    default_points,
    graded_rubric,
    level_text,
)
from assessgen.models import Choice, Difficulty, QuestionCandidate, QuestionKind, Scoring

MAX_TERMS = 5
STOPWORDS = frozenset({"The", "This", "That", "These", "Those", "When", "Where", "Why", "How"})
_CAPITALIZED = re.compile(r"[A-Z][a-z]{2,}(?:\s+[A-Z][a-z]{2,}){0,2}")
_EDGE_PUNCT = "\"'`.,;:!?()[]{}<>*_-"


def extract_key_terms(content: str | None, objectives: str | None = None) -> list[str]:
    """Pick up to five terms to hang template questions on.

    Capitalized runs of up to three words come first; if that finds fewer
    than three, the most frequent words longer than four characters are added.
    """
    text = " ".join(t for t in (content, objectives) if t)
    if not text.strip():
        return []

    terms: dict[str, None] = {}
    for match in _CAPITALIZED.findall(text):
        if match not in STOPWORDS:
            terms.setdefault(match)

    if len(terms) < 3:
        words = (w.strip(_EDGE_PUNCT) for w in text.lower().split())
        counts = Counter(w for w in words if len(w) > 4)
        # most_common keeps first-seen order among equal counts
        for word, _ in counts.most_common(MAX_TERMS):
            terms.setdefault(word)

    return list(terms)[:MAX_TERMS]


def _question_text(kind: QuestionKind, term: str, level: str) -> str:
    if kind == QuestionKind.SINGLE_CORRECT:
        return f"Which of the following best describes {term}?"
    if kind == QuestionKind.MULTIPLE_CORRECT:
        return f"Select all of the following that correctly describe {term}."
    if kind == QuestionKind.TRUE_FALSE:
        return f"True or False: {term} is an important concept that is central to understanding this subject."
    if kind == QuestionKind.TEXT:
        return f"Explain the concept of {term} in detail, including its significance and applications."
    if kind == QuestionKind.URL:
        return f"Find and provide a URL to a resource that thoroughly explains {term}."
    if kind == QuestionKind.UPLOAD:
        return f"Create and upload a document that explains {term} at a {level} level of understanding."
    return f"Provide a link to a file that contains detailed information about {term}."


def _choices(kind: QuestionKind, term: str) -> list[Choice] | None:
    if kind == QuestionKind.SINGLE_CORRECT:
        return [
            Choice(f"{term} is a fundamental concept that forms the foundation of this subject area.", True, 1,
                   f"This is correct. {term} is indeed a fundamental concept in this subject area.", 1),
            Choice(f"{term} is a minor concept that has limited relevance to this subject area.", False, 0,
                   f"This is incorrect. {term} is not a minor concept but rather central to this subject area.", 2),
            Choice(f"{term} contradicts the main principles discussed in this subject area.", False, 0,
                   f"This is incorrect. {term} supports rather than contradicts the main principles "
                   "of this subject area.", 3),
            Choice(f"{term} is unrelated to this subject area and belongs to a different discipline altogether.",
                   False, 0,
                   f"This is incorrect. {term} is directly related to this subject area, not a concept "
                   "from a different discipline.", 4),
        ]
    if kind == QuestionKind.MULTIPLE_CORRECT:
        return [
            Choice(f"{term} is essential for understanding the core principles of this subject.", True, 1,
                   f"This is correct. {term} is essential for understanding this subject's core principles.", 1),
            Choice(f"{term} has practical applications in real-world scenarios related to this subject.", True, 1,
                   f"This is correct. {term} does have important real-world applications in this field.", 2),
            Choice(f"{term} is considered outdated and no longer relevant to modern understanding "
                   "of this subject.", False, 0,
                   f"This is incorrect. {term} remains highly relevant to the modern understanding "
                   "of this subject.", 3),
            Choice(f"{term} primarily contradicts the established theories in this subject area.", False, 0,
                   f"This is incorrect. {term} supports rather than contradicts established theories "
                   "in this subject.", 4),
        ]
    if kind == QuestionKind.TRUE_FALSE:
        return [Choice("true", True, 1,
                       f"This statement is correct. {term} is indeed central to understanding this subject.", 1)]
    return None


def _scoring(kind: QuestionKind, term: str, level: str) -> Scoring | None:
    if not kind.needs_rubric:
        return None
    rubrics = [
        graded_rubric(f"Understanding of {term}", (
            f"Excellent - Demonstrates comprehensive understanding of {term} at {level} level",
            f"Good - Shows solid understanding of {term} with minor gaps",
            f"Fair - Shows basic understanding of {term} with significant gaps",
            f"Poor - Shows minimal or incorrect understanding of {term}",
        )),
        graded_rubric("Application and Analysis", (
            f"Excellent - Applies concepts of {term} with insightful analysis",
            f"Good - Applies concepts of {term} with sound reasoning",
            "Fair - Shows basic application with limited analysis",
            "Poor - Fails to apply concepts effectively",
        )),
    ]
    if kind == QuestionKind.TEXT:
        rubrics.append(graded_rubric("Organization and Clarity", (
            "Excellent - Well-structured with clear, precise language",
            "Good - Generally organized with clear expression",
            "Fair - Somewhat disorganized with some clarity issues",
            "Poor - Poorly organized and difficult to follow",
        )))
    elif kind == QuestionKind.URL:
        rubrics.append(graded_rubric("Resource Quality", (
            f"Excellent - Authoritative source with comprehensive information about {term}",
            f"Good - Reliable source with relevant information about {term}",
            f"Fair - Basic source with limited information about {term}",
            "Poor - Unreliable or irrelevant source",
        )))
    else:
        rubrics.append(graded_rubric("Document Quality", (
            f"Excellent - Comprehensive, well-formatted document addressing {term}",
            f"Good - Complete document with good coverage of {term}",
            f"Fair - Basic document with limited coverage of {term}",
            "Poor - Incomplete or poorly formatted document",
        )))
    return Scoring(rubrics=rubrics)


def template_question(
    kind: QuestionKind,
    difficulty: Difficulty,
    terms: list[str],
) -> QuestionCandidate:
    term = terms[0] if terms else "the concept"
    level = level_text(difficulty)
    return QuestionCandidate(
        id=str(uuid.uuid4()),
        kind=kind,
        text=_question_text(kind, term, level),
        total_points=default_points(kind, difficulty),
        response_type=DEFAULT_RESPONSE_TYPE,
        choices=_choices(kind, term),
        scoring=_scoring(kind, term, level),
        max_words=default_max_words(kind, difficulty),
        max_characters=default_max_characters(kind, difficulty),
        randomized_choices=True if kind in (QuestionKind.SINGLE_CORRECT, QuestionKind.MULTIPLE_CORRECT) else None,
        difficulty=difficulty,
        source="fallback",
    )


def fallback_questions(
    kind: QuestionKind,
    count: int,
    difficulty: Difficulty,
    content: str | None = None,
    objectives: str | None = None,
) -> list[QuestionCandidate]:
    """Build *count* template questions of *kind*."""
    if count <= 0:
        return []
    terms = extract_key_terms(content, objectives)
    return [template_question(kind, difficulty, terms) for _ in range(count)]
