"""CLI entry point for assessgen.

Usage:
  python -m assessgen generate --kind KIND=N [--kind KIND=N ...]
                               [--difficulty LEVEL] [--assignment-type TYPE]
                               [--content FILE] [--objectives FILE]
  python -m assessgen graph --questions FILE
  python -m assessgen config
"""
from __future__ import annotations

import asyncio
import json
import logging
import sys
from pathlib import Path

from assessgen.errors import AssessgenError
from assessgen.models import AssignmentType, Difficulty, QuestionKind, difficulty_for_assignment


def main():
    logging.basicConfig(level=logging.INFO, format="%(name)s | %(message)s")
    args = sys.argv[1:]
    command = args[0] if args else ""

    try:
        if command == "generate":
            _generate(args[1:])
        elif command == "graph":
            _graph(args[1:])
        elif command == "config":
            _config()
        else:
            print(f"Unknown command: {command}" if command else "No command given")
            print("Commands: generate, graph, config")
            sys.exit(1)
    except (AssessgenError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _parse_flag(args: list[str], name: str, default: str | None) -> str | None:
    for i, a in enumerate(args):
        if a == name and i + 1 < len(args):
            return args[i + 1]
    return default


def _parse_all(args: list[str], name: str) -> list[str]:
    return [args[i + 1] for i, a in enumerate(args) if a == name and i + 1 < len(args)]


def _parse_counts(specs: list[str]) -> dict[QuestionKind, int]:
    """Turn ``["TEXT=2", "TRUE_FALSE=1"]`` into per-kind counts; repeats add up."""
    counts: dict[QuestionKind, int] = {}
    for spec in specs:
        name, sep, n = spec.partition("=")
        if not sep:
            raise ValueError(f"Expected KIND=N, got {spec!r}")
        try:
            kind = QuestionKind(name.strip().upper())
        except ValueError:
            raise ValueError(f"Unknown question kind: {name}") from None
        counts[kind] = counts.get(kind, 0) + int(n)
    return counts


def _parse_difficulty(args: list[str]) -> Difficulty:
    """--difficulty wins; otherwise --assignment-type implies one; else MEDIUM."""
    level = _parse_flag(args, "--difficulty", None)
    if level is not None:
        return Difficulty(level.upper())
    assignment = _parse_flag(args, "--assignment-type", None)
    if assignment is not None:
        return difficulty_for_assignment(AssignmentType(assignment.upper()))
    return Difficulty.MEDIUM


def _read_optional(path: str | None) -> str | None:
    return Path(path).read_text() if path else None


def _generate(args: list[str]):
    from assessgen.config import load_settings
    from assessgen.engine import QuestionEngine
    from assessgen.models import GenerationRequest
    from assessgen.providers import get_llm

    request = GenerationRequest(
        counts=_parse_counts(_parse_all(args, "--kind")),
        difficulty=_parse_difficulty(args),
        content=_read_optional(_parse_flag(args, "--content", None)),
        objectives=_read_optional(_parse_flag(args, "--objectives", None)),
    )
    request.check()

    settings = load_settings()
    engine = QuestionEngine(get_llm(settings), settings)
    questions = asyncio.run(engine.generate_questions(request))
    print(json.dumps([q.to_dict() for q in questions], indent=2, ensure_ascii=False))


def _graph(args: list[str]):
    from assessgen.config import load_settings
    from assessgen.engine import QuestionEngine
    from assessgen.models import QuestionRef
    from assessgen.providers import get_llm

    path = _parse_flag(args, "--questions", None)
    if path is None:
        raise ValueError("graph needs --questions FILE")
    refs = [QuestionRef(q["id"], q["text"]) for q in json.loads(Path(path).read_text())]

    settings = load_settings()
    engine = QuestionEngine(get_llm(settings), settings)
    graph = asyncio.run(engine.build_dependency_graph(refs))
    print(json.dumps({str(k): sorted(v, key=str) for k, v in graph.items()}, indent=2))


def _config():
    from assessgen.config import CONFIG_PATH, load_settings

    settings = load_settings()
    print(f"Config file: {CONFIG_PATH}{'' if CONFIG_PATH.exists() else ' (not found, using defaults)'}")
    print(json.dumps(settings.to_dict(), indent=2))


if __name__ == "__main__":
    main()
