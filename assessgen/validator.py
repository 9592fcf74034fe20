"""Structural rules for generated questions and the validators built on them."""
from __future__ import annotations

import json
import logging
from collections import Counter
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Protocol

from assessgen.models import (
    SUBMISSION_KINDS,
    Difficulty,
    QuestionCandidate,
    QuestionKind,
    Scoring,
    ValidationResult,
)
from assessgen.parsing import format_instructions, parse_output
from assessgen.prompts import (
    VALIDATION_PROMPT,
    PromptSpec,
    content_section,
    format_required_counts,
    objectives_section,
)
from assessgen.schemas import ValidatorVerdict

if TYPE_CHECKING:
    from assessgen.providers.base import LLMProvider

_log = logging.getLogger("assessgen.validator")

# Key under which set-level (count) issues are reported.
SET_LEVEL = -1

MIN_QUESTION_CHARS = 15
MIN_SUBMISSION_QUESTION_CHARS = 20
MIN_FEEDBACK_CHARS = 5


def _rubric_issues(scoring: Scoring | None) -> list[str]:
    if scoring is None or not scoring.rubrics:
        return ["Must have scoring rubrics"]
    issues = []
    for i, rubric in enumerate(scoring.rubrics, 1):
        if len(rubric.criteria) < 2:
            issues.append(f"Rubric {i} needs at least 2 criteria")
            continue
        points = [c.points for c in rubric.criteria]
        if len(set(points)) != len(points):
            issues.append(f"Criteria in rubric {i} should have unique point values")
    return issues


def _choice_issues(q: QuestionCandidate) -> list[str]:
    if not q.choices or len(q.choices) < 2:
        return ["Choice questions need at least 2 choices"]
    issues = []
    correct = sum(1 for c in q.choices if c.is_correct)
    if correct == 0:
        issues.append("At least one choice must be correct")
    elif q.kind == QuestionKind.SINGLE_CORRECT and correct != 1:
        issues.append(
            f"Single correct questions must have exactly one correct answer, found {correct}"
        )
    if any(len((c.feedback or "").strip()) < MIN_FEEDBACK_CHARS for c in q.choices):
        issues.append("All choices should have meaningful feedback")
    texts = [c.text.lower().strip() for c in q.choices]
    if len(set(texts)) != len(texts):
        issues.append("Choices contain duplicates")
    return issues


def _true_false_issues(q: QuestionCandidate) -> list[str]:
    if not q.choices or len(q.choices) != 1:
        return ["True/False questions must have exactly 1 choice"]
    choice = q.choices[0]
    issues = []
    if choice.text not in ("true", "false"):
        issues.append('True/False questions must have a choice with text "true" or "false"')
    is_true = choice.text == "true"
    if choice.is_correct != is_true:
        issues.append(
            f'is_correct must match the choice value: if choice is "{choice.text}", '
            f"is_correct should be {str(is_true).lower()}"
        )
    if len((choice.feedback or "").strip()) < MIN_FEEDBACK_CHARS:
        issues.append(f"The choice must have meaningful feedback (at least {MIN_FEEDBACK_CHARS} characters)")
    if is_true and choice.points <= 0:
        issues.append("A correct TRUE/FALSE choice should have positive points")
    return issues


def structural_issues(q: QuestionCandidate) -> list[str]:
    """Return every structural problem with *q*; empty means it is well-formed."""
    issues = []
    text = (q.text or "").strip()
    if len(text) < MIN_QUESTION_CHARS:
        issues.append("Question text is missing or too short")
    if q.total_points < 0:
        issues.append("Total points must be non-negative")

    if q.kind == QuestionKind.TRUE_FALSE:
        issues.extend(_true_false_issues(q))
    elif q.kind.has_choices:
        issues.extend(_choice_issues(q))
    elif q.kind == QuestionKind.TEXT:
        if not q.max_words and not q.max_characters:
            issues.append("Text questions should have either a word or character limit")
        issues.extend(_rubric_issues(q.scoring))
    elif q.kind in SUBMISSION_KINDS:
        if len(text) < MIN_SUBMISSION_QUESTION_CHARS:
            issues.append("File-based questions should have clear, detailed instructions")
        if q.response_type is None:
            issues.append("File-based questions should have a specified response type")
        issues.extend(_rubric_issues(q.scoring))
    return issues


class Validator(Protocol):
    async def validate(
        self,
        candidates: Sequence[QuestionCandidate],
        required: Mapping[QuestionKind, int],
        difficulty: Difficulty,
        content: str | None = None,
        objectives: str | None = None,
    ) -> ValidationResult:
        ...


def _empty_result() -> ValidationResult:
    return ValidationResult(is_valid=False, issues={0: ["No questions provided for validation"]})


class RuleBasedValidator:
    """Validate with the local structural rules plus per-kind counts."""

    async def validate(self, candidates, required, difficulty, content=None, objectives=None):
        return self.check(candidates, required)

    def check(
        self,
        candidates: Sequence[QuestionCandidate],
        required: Mapping[QuestionKind, int],
    ) -> ValidationResult:
        if not candidates:
            return _empty_result()

        issues: dict[int, list[str]] = {}
        improvements: dict[int, str] = {}
        for i, q in enumerate(candidates):
            problems = structural_issues(q)
            if problems:
                issues[i] = problems
                improvements[i] = "Fix the following issues: " + ", ".join(problems)

        have = Counter(q.kind for q in candidates)
        count_issues = [
            f"Expected {required.get(kind, 0)} {kind.value} questions, got {have.get(kind, 0)}"
            for kind in QuestionKind
            if have.get(kind, 0) != required.get(kind, 0)
        ]
        if count_issues:
            issues[SET_LEVEL] = count_issues

        return ValidationResult(is_valid=not issues, issues=issues, improvements=improvements)


def _int_keys(d: Mapping[str, object]) -> dict:
    out = {}
    for key, value in d.items():
        try:
            out[int(key)] = value
        except (TypeError, ValueError):
            continue
    return out


def _merge(verdict: ValidationResult, rules: ValidationResult) -> ValidationResult:
    """Overlay the rule-based result on an LLM verdict.

    The LLM can only add problems: any structural or count issue rejects the
    set even when the LLM accepted it.
    """
    if rules.is_valid:
        return verdict
    issues = {k: list(v) for k, v in verdict.issues.items()}
    for k, v in rules.issues.items():
        issues.setdefault(k, []).extend(v)
    improvements = dict(verdict.improvements)
    for k, v in rules.improvements.items():
        improvements[k] = f"{improvements[k]}. {v}" if k in improvements else v
    return ValidationResult(is_valid=False, issues=issues, improvements=improvements)


class LLMValidator:
    """Ask the LLM to judge the set, always backed by the structural rules.

    The rules alone decide when the LLM call or its reply fails.
    """

    def __init__(self, llm: LLMProvider, temperature: float = 0.2):
        self.llm = llm
        self.temperature = temperature
        self.rules = RuleBasedValidator()

    async def validate(self, candidates, required, difficulty, content=None, objectives=None):
        if not candidates:
            return _empty_result()

        spec = PromptSpec(VALIDATION_PROMPT, {
            "questions": json.dumps([q.to_dict() for q in candidates], indent=2),
            "required_counts": format_required_counts(dict(required)),
            "difficulty_level": difficulty.value,
            "content_section": content_section(content, "CONTENT") or "(no specific content provided)",
            "objectives_section": objectives_section(objectives),
            "format_instructions": format_instructions(ValidatorVerdict),
        })
        try:
            response = await self.llm.generate(spec.render(), temperature=self.temperature)
        except Exception as e:
            _log.warning("LLM validation failed (%s) — using rule-based checks", e)
            return self.rules.check(candidates, required)

        result = parse_output(response, ValidatorVerdict)
        if not result.ok:
            _log.warning("LLM validation unparseable (%s) — using rule-based checks", result.reason)
            return self.rules.check(candidates, required)

        verdict = result.value
        issues = {k: v for k, v in _int_keys(verdict.question_issues).items() if v}
        improvements = {k: v for k, v in _int_keys(verdict.improvement_suggestions).items() if v}
        if verdict.is_valid:
            # Issues are only meaningful when the set is rejected.
            issues = {}
        elif not issues:
            issues = {SET_LEVEL: [verdict.overall_feedback or "Rejected by validator"]}
        llm_result = ValidationResult(verdict.is_valid, issues, improvements)
        return _merge(llm_result, self.rules.check(candidates, required))
