"""Infer which questions need the context of which others, as a DAG."""
from __future__ import annotations

import json
import logging
from collections.abc import Hashable, Mapping, Sequence
from typing import TYPE_CHECKING

from assessgen.models import DependencyMap, QuestionRef
from assessgen.parsing import format_instructions, parse_output
from assessgen.prompts import DEPENDENCY_PROMPT, PromptSpec
from assessgen.schemas import DependencyListing

if TYPE_CHECKING:
    from assessgen.providers.base import LLMProvider

_log = logging.getLogger("assessgen.deps")


def has_cycle(dependencies: Mapping[Hashable, Sequence | set]) -> bool:
    """Depth-first search with an explicit stack.

    A node is on the path from the moment it is pushed until all of its
    dependencies are exhausted; reaching an on-path node again is a back-edge.
    """
    visited: set = set()
    for root in dependencies:
        if root in visited:
            continue
        visited.add(root)
        on_path = {root}
        stack = [(root, iter(dependencies.get(root, ())))]
        while stack:
            node, children = stack[-1]
            for child in children:
                if child in on_path:
                    return True
                if child not in visited:
                    visited.add(child)
                    on_path.add(child)
                    stack.append((child, iter(dependencies.get(child, ()))))
                    break
            else:
                stack.pop()
                on_path.discard(node)
    return False


def fallback_dependencies(questions: Sequence[QuestionRef]) -> DependencyMap:
    """Lexical heuristic: question i depends on an earlier question j when its
    text mentions "question {j+1}", or mentions "previous question" and j is
    immediately before it.  Edges only point backwards, so this is acyclic.
    """
    deps: DependencyMap = {}
    for i, q in enumerate(questions):
        text = q.text.lower()
        deps[q.id] = {
            questions[j].id
            for j in range(i)
            if f"question {j + 1}" in text or (i == j + 1 and "previous question" in text)
        }
    return deps


def _as_refs(questions) -> list[QuestionRef]:
    refs = [q if isinstance(q, QuestionRef) else QuestionRef(q.id, q.text) for q in questions]
    if len({str(r.id) for r in refs}) != len(refs):
        raise ValueError("question ids must be unique")
    return refs


def _from_listing(listing: DependencyListing, refs: list[QuestionRef]) -> DependencyMap | None:
    """Map the LLM's entries back onto the input ids; None if anything doesn't line up."""
    if len(listing.dependencies) != len(refs):
        _log.warning("Expected %d dependency entries, got %d", len(refs), len(listing.dependencies))
        return None
    by_key = {str(r.id): r.id for r in refs}
    deps: DependencyMap = {}
    for entry in listing.dependencies:
        qid = by_key.get(str(entry.question_id))
        if qid is None or qid in deps:
            _log.warning("Unknown or repeated question id in dependencies: %r", entry.question_id)
            return None
        targets = set()
        for d in entry.context_questions:
            if str(d) not in by_key:
                _log.warning("Question %r depends on unknown id %r", entry.question_id, d)
                return None
            targets.add(by_key[str(d)])
        deps[qid] = targets
    return deps


async def build_dependency_graph(
    llm: LLMProvider,
    questions: Sequence,
    temperature: float = 0.2,
) -> DependencyMap:
    """Return a DependencyMap for *questions* (anything with ``id`` and ``text``).

    One LLM call, no retry.  Any failure, mismatch or cycle falls back to
    ``fallback_dependencies``; the result is always acyclic.
    """
    refs = _as_refs(questions)
    if not refs:
        return {}

    spec = PromptSpec(DEPENDENCY_PROMPT, {
        "questions": json.dumps([{"id": r.id, "text": r.text} for r in refs], indent=2, default=str),
        "format_instructions": format_instructions(DependencyListing),
    })
    try:
        response = await llm.generate(spec.render(), temperature=temperature)
    except Exception as e:
        _log.warning("Dependency inference failed (%s) — using lexical fallback", e)
        return fallback_dependencies(refs)

    result = parse_output(response, DependencyListing)
    if not result.ok:
        _log.warning("Dependency response unparseable (%s) — using lexical fallback", result.reason)
        return fallback_dependencies(refs)

    deps = _from_listing(result.value, refs)
    if deps is None:
        return fallback_dependencies(refs)
    if has_cycle(deps):
        _log.warning("Circular dependencies in response — using lexical fallback")
        return fallback_dependencies(refs)
    _log.info("Dependency graph: %d questions, %d edges", len(deps), sum(len(v) for v in deps.values()))
    return deps
