"""Turn raw LLM text into typed values.

``parse_output`` never raises on bad LLM output: it returns either ``Parsed``
holding a fully validated model or ``ParseFailure`` with a reason that can be
logged or fed back to the LLM.
"""
from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from pydantic import BaseModel, ValidationError

M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class Parsed(Generic[M]):
    value: M
    ok: bool = True


@dataclass(frozen=True)
class ParseFailure:
    reason: str
    ok: bool = False


ParseResult = Union[Parsed, ParseFailure]


def extract_json(text: str) -> dict | None:
    """Extract a JSON object from an LLM response.

    Strips ``<think>`` blocks first (reasoning models draft JSON-like
    fragments there).  Tries code-fenced JSON first, then falls back to
    balanced top-level ``{…}`` blocks, preferring the *last* one since the
    LLM often drafts partial JSON before the final answer.
    """
    text = re.sub(r"<think>.*?</think>", "", text, flags=re.DOTALL).strip()

    m = re.search(r"```(?:json)?\s*\n?({.*?})\s*\n?```", text, re.DOTALL)
    if m:
        try:
            value = json.loads(m.group(1))
            if isinstance(value, dict):
                return value
        except json.JSONDecodeError:
            pass

    for candidate in reversed(_find_json_objects(text)):
        try:
            value = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(value, dict):
            return value

    return None


def _find_json_objects(text: str) -> list[str]:
    """Find balanced top-level ``{…}`` substrings in *text*."""
    results: list[str] = []
    i = 0
    while i < len(text):
        if text[i] != "{":
            i += 1
            continue
        depth = 0
        in_str = False
        escape = False
        for j in range(i, len(text)):
            ch = text[j]
            if escape:
                escape = False
                continue
            if ch == "\\":
                escape = True
                continue
            if ch == '"':
                in_str = not in_str
                continue
            if in_str:
                continue
            if ch == "{":
                depth += 1
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    results.append(text[i : j + 1])
                    i = j + 1
                    break
        else:
            # Unbalanced: skip this opening brace
            i += 1
    return results


def format_instructions(model: type[BaseModel]) -> str:
    schema = json.dumps(model.model_json_schema(), indent=2)
    return (
        "The output should be a single JSON object that conforms to the JSON "
        "schema below. Respond with the JSON only, no other text.\n\n"
        f"```json\n{schema}\n```"
    )


def parse_output(text: str | None, model: type[M]) -> ParseResult:
    if not text or not text.strip():
        return ParseFailure("empty response")
    data = extract_json(text)
    if data is None:
        return ParseFailure("response did not contain a JSON object")
    try:
        return Parsed(model.model_validate(data))
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()[:5]
        )
        return ParseFailure(f"response did not match {model.__name__}: {problems}")
