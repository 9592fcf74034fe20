"""Top-level entry points: question sets, dependency graphs, rewordings."""
from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Sequence
from typing import TYPE_CHECKING

from assessgen import dependencies, rewording
from assessgen.config import Settings
from assessgen.executor import run_batches
from assessgen.generator import BatchGenerator
from assessgen.models import (
    Choice,
    DependencyMap,
    GenerationRequest,
    QuestionCandidate,
    QuestionKind,
)
from assessgen.planner import plan_batches
from assessgen.ranking import finalize
from assessgen.validator import LLMValidator, RuleBasedValidator

if TYPE_CHECKING:
    from assessgen.providers.base import LLMProvider
    from assessgen.validator import Validator

_log = logging.getLogger("assessgen.engine")


def make_validator(llm: LLMProvider, settings: Settings) -> Validator:
    if settings.validator == "llm":
        return LLMValidator(llm)
    return RuleBasedValidator()


class QuestionEngine:
    def __init__(
        self,
        llm: LLMProvider,
        settings: Settings | None = None,
        validator: Validator | None = None,
    ):
        self.llm = llm
        self.settings = settings or Settings()
        self.validator = validator or make_validator(llm, self.settings)

    async def generate_questions(self, request: GenerationRequest) -> list[QuestionCandidate]:
        """Return exactly ``request.counts[kind]`` questions of each kind.

        Raises InvalidRequestError before any LLM call if the request is
        malformed.  Every other failure ends in fallback questions.
        """
        request.check()
        if request.total == 0:
            return []

        s = self.settings
        batches = plan_batches(request.counts, s.batch_size)
        _log.info("Generating %d questions (%s) in %d batches with %s",
                  request.total, request.difficulty.value, len(batches), self.llm.name())

        generator = BatchGenerator(self.llm, self.validator, s)
        outcomes = await run_batches(
            batches, lambda b: generator.run(b, request), s.batch_concurrency,
        )

        failed = [o for o in outcomes if not o.success]
        if failed:
            _log.warning("%d of %d batches fell back to templates", len(failed), len(outcomes))

        pool = [q for o in outcomes for q in o.candidates]
        questions = finalize(
            pool,
            request.counts,
            request.difficulty,
            request.content,
            request.objectives,
            request.assignment_id,
        )
        sources = Counter(q.source for q in questions)
        _log.info("Done: %d questions (%d llm, %d fallback)",
                  len(questions), sources["llm"], sources["fallback"])
        return questions

    async def build_dependency_graph(self, questions: Sequence) -> DependencyMap:
        return await dependencies.build_dependency_graph(self.llm, questions)

    async def generate_rewordings(
        self,
        text: str,
        kind: QuestionKind,
        count: int,
        choices: list[Choice] | None = None,
    ) -> list[rewording.Rewording]:
        return await rewording.generate_rewordings(
            self.llm,
            text,
            kind,
            count,
            choices=choices,
            max_retries=self.settings.max_retries,
            temperature=self.settings.llm_temperature,
        )
