"""Drive the LLM to produce one batch of questions: generate, validate, refine, retry."""
from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
import uuid
from typing import TYPE_CHECKING

from assessgen.config import Settings
from assessgen.defaults import (
    DEFAULT_RESPONSE_TYPE,
    default_choices,
    default_max_characters,
    default_max_words,
    default_points,
    default_scoring,
    true_choice,
)
from assessgen.fallback import fallback_questions
from assessgen.models import (
    Batch,
    BatchOutcome,
    Choice,
    Criterion,
    Difficulty,
    GenerationRequest,
    QuestionCandidate,
    QuestionKind,
    ResponseType,
    Rubric,
    Scoring,
)
from assessgen.parsing import format_instructions, parse_output
from assessgen.prompts import (
    BATCH_PROMPT,
    REFINE_PROMPT,
    PromptSpec,
    content_section,
    difficulty_description,
    difficulty_guidance,
    kind_instructions,
    objectives_section,
)
from assessgen.schemas import (
    GeneratedChoice,
    GeneratedQuestion,
    GeneratedQuestions,
    GeneratedScoring,
    QuestionPatch,
)
from assessgen.validator import structural_issues

if TYPE_CHECKING:
    from assessgen.providers.base import LLMProvider
    from assessgen.validator import Validator

_log = logging.getLogger("assessgen.generator")

# Names the prompt uses for some kinds; LLMs echo them back as the type.
KIND_ALIASES = {
    "MULTIPLE_CHOICE": QuestionKind.SINGLE_CORRECT,
    "MULTIPLE_SELECT": QuestionKind.MULTIPLE_CORRECT,
    "TEXT_RESPONSE": QuestionKind.TEXT,
}


def _clean(text: str | None) -> str:
    return (text or "").replace("```", "").strip()


def _parse_kind(value: str) -> QuestionKind | None:
    key = value.strip().upper().replace("-", "_").replace(" ", "_")
    if key in KIND_ALIASES:
        return KIND_ALIASES[key]
    try:
        return QuestionKind(key)
    except ValueError:
        return None


def _parse_enum(enum_cls, value: str | None):
    if not value:
        return None
    try:
        return enum_cls(value.strip().upper())
    except ValueError:
        return None


def _true_false_choices(raw: list[GeneratedChoice] | None) -> list[Choice]:
    """Exactly one choice, literally "true" or "false", correctness matching the literal."""
    if not raw or len(raw) != 1:
        return [true_choice()]
    original = raw[0]
    is_true = _clean(original.choice).lower() == "true"
    feedback = _clean(original.feedback) or (
        "This statement is correct." if is_true else "This statement is incorrect."
    )
    if is_true:
        points = round(original.points) if original.points and original.points >= 1 else 1
    else:
        points = 0
    return [Choice(
        text="true" if is_true else "false",
        is_correct=is_true,
        points=points,
        feedback=feedback,
        id=1,
    )]


def _convert_choices(
    kind: QuestionKind,
    raw: list[GeneratedChoice] | None,
    difficulty: Difficulty | None,
) -> list[Choice] | None:
    if not kind.has_choices:
        return None
    if kind == QuestionKind.TRUE_FALSE:
        return _true_false_choices(raw)
    if raw is None:
        return default_choices(kind, difficulty)
    return [
        Choice(
            text=_clean(c.choice),
            is_correct=c.is_correct is True,
            points=round(c.points) if c.points is not None else (1 if c.is_correct else 0),
            feedback=_clean(c.feedback) or (
                "This is the correct answer." if c.is_correct else "This is not the correct answer."
            ),
            id=c.id or i + 1,
        )
        for i, c in enumerate(raw)
    ]


def _convert_scoring(raw: GeneratedScoring) -> Scoring:
    return Scoring(rubrics=[
        Rubric(
            question=_clean(r.rubric_question),
            criteria=[Criterion(_clean(c.description), round(c.points)) for c in r.criteria],
            show_to_learner=r.show_rubrics_to_learner is not False,
        )
        for r in raw.rubrics
    ])


def normalize_question(
    raw: GeneratedQuestion,
    kind: QuestionKind,
    difficulty: Difficulty,
) -> QuestionCandidate | None:
    """Convert one parsed question into a candidate, backfilling defaults.

    Returns None when the LLM produced a question of a different kind.
    """
    if _parse_kind(raw.type) != kind:
        return None
    level = _parse_enum(Difficulty, raw.difficulty_level) or difficulty

    if raw.scoring is not None and kind.needs_rubric:
        scoring = _convert_scoring(raw.scoring)
    else:
        scoring = default_scoring(kind, level)

    randomized = raw.randomized_choices
    if randomized is None and kind in (QuestionKind.SINGLE_CORRECT, QuestionKind.MULTIPLE_CORRECT):
        randomized = True

    return QuestionCandidate(
        id=str(uuid.uuid4()),
        kind=kind,
        text=_clean(raw.question),
        total_points=round(raw.total_points) if raw.total_points else default_points(kind, level),
        response_type=_parse_enum(ResponseType, raw.response_type) or DEFAULT_RESPONSE_TYPE,
        choices=_convert_choices(kind, raw.choices, level),
        scoring=scoring,
        max_words=raw.max_words or default_max_words(kind, level),
        max_characters=raw.max_characters or default_max_characters(kind, level),
        randomized_choices=randomized,
        difficulty=level,
        source="llm",
    )


def normalize_questions(
    raw: list[GeneratedQuestion],
    kind: QuestionKind,
    difficulty: Difficulty,
) -> list[QuestionCandidate]:
    out = []
    for q in raw:
        candidate = normalize_question(q, kind, difficulty)
        if candidate is None:
            _log.info("  Dropped question of type %r (batch is %s)", q.type, kind.value)
            continue
        out.append(candidate)
    return out


def build_batch_prompt(kind: QuestionKind, count: int, request: GenerationRequest) -> PromptSpec:
    return PromptSpec(BATCH_PROMPT, {
        "difficulty_level": request.difficulty.value,
        "difficulty_description": difficulty_description(request.difficulty),
        "content_section": content_section(request.content),
        "objectives_section": objectives_section(request.objectives),
        "kind_instructions": kind_instructions(kind, count),
        "kind": kind.value,
        "difficulty_guidance": difficulty_guidance(request.difficulty),
        "format_instructions": format_instructions(GeneratedQuestions),
    })


async def refine_candidate(
    llm: LLMProvider,
    candidate: QuestionCandidate,
    improvement: str,
    temperature: float = 0.3,
) -> QuestionCandidate:
    """Apply one round of targeted feedback to *candidate*.

    The LLM returns only the changed fields; each replaces the original field
    wholesale.  Any failure returns *candidate* itself, unchanged.
    """
    spec = PromptSpec(REFINE_PROMPT, {
        "original_question": json.dumps(candidate.to_dict(), indent=2),
        "improvement": improvement,
        "format_instructions": format_instructions(QuestionPatch),
    })
    try:
        response = await llm.generate(spec.render(), temperature=temperature)
    except Exception as e:
        _log.info("  Refine failed: %s", e)
        return candidate

    result = parse_output(response, QuestionPatch)
    if not result.ok:
        _log.info("  Refine: %s", result.reason)
        return candidate

    patch = result.value
    changes = {}
    if patch.question:
        changes["text"] = _clean(patch.question)
    if patch.choices is not None and candidate.kind.has_choices:
        changes["choices"] = _convert_choices(candidate.kind, patch.choices, candidate.difficulty)
    if patch.scoring is not None and candidate.kind.needs_rubric:
        changes["scoring"] = _convert_scoring(patch.scoring)
    if not changes:
        return candidate
    return dataclasses.replace(candidate, **changes)


class BatchGenerator:
    """Generation-validation loop for a single (kind, size) batch."""

    def __init__(self, llm: LLMProvider, validator: Validator, settings: Settings | None = None):
        self.llm = llm
        self.validator = validator
        self.settings = settings or Settings()

    async def run(self, batch: Batch, request: GenerationRequest) -> BatchOutcome:
        s = self.settings
        kind, size = batch.kind, batch.size
        retained: list[QuestionCandidate] = []
        errors: list[str] = []

        for attempt in range(s.max_retries):
            if attempt:
                await asyncio.sleep(s.retry_delay * 2 ** (attempt - 1))

            needed = size - len(retained)
            new: list[QuestionCandidate] = []
            if needed > 0:
                _log.info("Generate %d %s (attempt %d/%d, %d carried over)",
                          needed, kind.value, attempt + 1, s.max_retries, len(retained))
                prompt = build_batch_prompt(kind, needed, request).render()
                try:
                    response = await self.llm.generate(prompt, temperature=s.llm_temperature)
                except Exception as e:
                    _log.warning("  Attempt %d failed: %s", attempt + 1, e)
                    errors.append(str(e) or type(e).__name__)
                    continue

                parsed = parse_output(response, GeneratedQuestions)
                if not parsed.ok:
                    _log.info("  Attempt %d unparseable: %s", attempt + 1, parsed.reason)
                    _log.debug("  Raw response: %.300s", response)
                    errors.append(parsed.reason)
                    continue

                new = normalize_questions(parsed.value.questions, kind, request.difficulty)[:needed]
                if not new:
                    errors.append(f"no usable {kind.value} questions in response")
                    continue

            pool = retained + new
            result = await self.validator.validate(
                pool, {kind: size}, request.difficulty, request.content, request.objectives,
            )
            if result.is_valid and len(pool) == size:
                _log.info("  %s batch OK (%d questions)", kind.value, len(pool))
                return BatchOutcome(batch, True, pool, errors or None)
            if result.is_valid:
                _log.info("  Validator accepted %d of %d: carrying forward", len(pool), size)
                errors.append(f"Only {len(pool)} of {size} {kind.value} questions")
                retained = pool
                continue

            errors.append(f"Validation failed: {json.dumps(result.issues)}")
            flagged = {i for i in result.issues if 0 <= i < len(pool)}
            kept = [q for i, q in enumerate(pool) if i not in flagged]
            _log.info("  Validation failed: keeping %d, %d flagged", len(kept), len(flagged))

            if result.has_improvements:
                targets = [i for i in sorted(flagged) if i in result.improvements]
                refined = await asyncio.gather(*(
                    refine_candidate(self.llm, pool[i], result.improvements[i], s.refine_temperature)
                    for i in targets
                ))
                for i, q in zip(targets, refined):
                    if q is not pool[i] and not structural_issues(q):
                        kept.append(q)
                _log.info("  Refined %d of %d flagged", len(kept) - (len(pool) - len(flagged)), len(targets))

            retained = kept[:size]

        shortfall = size - len(retained)
        _log.warning("%s batch exhausted %d attempts — %d fallback questions",
                     kind.value, s.max_retries, shortfall)
        fallbacks = fallback_questions(kind, shortfall, request.difficulty, request.content, request.objectives)
        return BatchOutcome(batch, False, retained + fallbacks, errors or None)
