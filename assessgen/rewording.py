"""Generate reworded variants of an existing question."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from assessgen.errors import GenerationError
from assessgen.models import Choice, QuestionKind
from assessgen.parsing import format_instructions, parse_output
from assessgen.prompts import REWORD_PROMPT, PromptSpec
from assessgen.schemas import RewordedChoice, RewordingListing

if TYPE_CHECKING:
    from assessgen.providers.base import LLMProvider

_log = logging.getLogger("assessgen.reword")


@dataclass
class Rewording:
    id: int
    text: str
    choices: list[Choice] = field(default_factory=list)


def _merge_choices(
    kind: QuestionKind,
    reworded: list[RewordedChoice] | None,
    originals: list[Choice] | None,
) -> list[Choice]:
    """Reworded text, with points, feedback and ids falling back to the original choice."""
    if not reworded:
        return [
            Choice(c.text, c.is_correct, c.points, c.feedback, i + 1)
            for i, c in enumerate(originals or [])
        ]
    merged = []
    for i, rc in enumerate(reworded):
        orig = originals[i] if originals and i < len(originals) else None
        text, is_correct = rc.choice.strip(), rc.is_correct is True
        if kind == QuestionKind.TRUE_FALSE:
            text = text.lower()
            is_correct = text == "true"
        if rc.points is not None:
            points = round(rc.points)
        elif orig is not None:
            points = orig.points
        else:
            points = 1 if is_correct else 0
        if kind == QuestionKind.TRUE_FALSE:
            points = max(points, 1) if is_correct else 0
        merged.append(Choice(
            text=text,
            is_correct=is_correct,
            points=points,
            feedback=rc.feedback or (orig.feedback if orig else "") or (
                "This is the correct answer." if is_correct else "This is not the correct answer."
            ),
            id=orig.id if orig else i + 1,
        ))
    return merged


async def generate_rewordings(
    llm: LLMProvider,
    text: str,
    kind: QuestionKind,
    count: int,
    choices: list[Choice] | None = None,
    max_retries: int = 3,
    temperature: float = 0.7,
) -> list[Rewording]:
    """Ask for *count* rewordings of a question.

    Unlike batch generation there is no template to fall back on, so this
    raises GenerationError once every attempt has failed.
    """
    if count < 1:
        return []
    spec = PromptSpec(REWORD_PROMPT, {
        "kind": kind.value,
        "question_text": text,
        "original_choices": json.dumps([c.to_dict() for c in choices], indent=2) if choices
        else "No choices provided",
        "variation_count": str(count),
        "format_instructions": format_instructions(RewordingListing),
    })
    prompt = spec.render()

    for attempt in range(max_retries):
        _log.info("Reword (attempt %d/%d)", attempt + 1, max_retries)
        try:
            response = await llm.generate(prompt, temperature=temperature)
        except Exception as e:
            _log.warning("  Reword failed: %s", e)
            continue
        result = parse_output(response, RewordingListing)
        if not result.ok:
            _log.info("  Reword unparseable: %s", result.reason)
            continue
        variations = result.value.variations[:count]
        return [
            Rewording(
                id=v.id if v.id is not None else i + 1,
                text=v.variant_content.strip(),
                choices=_merge_choices(kind, v.choices, choices),
            )
            for i, v in enumerate(variations)
        ]

    raise GenerationError(f"Failed to generate question variations after {max_retries} attempts")
