"""End-to-end tests for QuestionEngine with fake LLMs."""
from __future__ import annotations

import json
import re

import pytest

from assessgen.config import Settings
from assessgen.engine import QuestionEngine
from assessgen.errors import InvalidRequestError, UnsupportedKindError
from assessgen.models import Difficulty, GenerationRequest, QuestionKind, QuestionRef
from assessgen.validator import LLMValidator, RuleBasedValidator, structural_issues
from fakes import FailingLLM, FakeLLM, questions_reply, single_correct, text_question, true_false

K = QuestionKind

_GENERATE = re.compile(r"Generate (\d+) (\w+)")


def _by_prompt(prompt: str) -> str:
    """Answer every batch prompt with the requested number of valid questions."""
    m = _GENERATE.search(prompt)
    if m is None:
        return "unexpected prompt"
    n, label = int(m.group(1)), m.group(2)
    if label == "MULTIPLE_CHOICE":
        return questions_reply(*(single_correct(f"Which layer handles routing, variant {i}?") for i in range(n)))
    if label == "TRUE_FALSE":
        return questions_reply(*(true_false(f"Statement number {i} about photosynthesis.") for i in range(n)))
    if label == "TEXT_RESPONSE":
        return questions_reply(*(text_question(f"Explain congestion control, part {i}.") for i in range(n)))
    return "unsupported"


class TestGenerateQuestions:
    @pytest.mark.asyncio
    async def test_exact_counts(self, make_request, fast_settings):
        llm = FakeLLM(handler=_by_prompt)
        engine = QuestionEngine(llm, fast_settings)
        request = make_request({K.SINGLE_CORRECT: 7, K.TRUE_FALSE: 2, K.TEXT: 1}, assignment_id=9)
        questions = await engine.generate_questions(request)
        kinds = [q.kind for q in questions]
        assert kinds.count(K.SINGLE_CORRECT) == 7
        assert kinds.count(K.TRUE_FALSE) == 2
        assert kinds.count(K.TEXT) == 1
        assert all(q.source == "llm" for q in questions)
        assert all(q.assignment_id == 9 for q in questions)
        assert len({q.id for q in questions}) == 10
        # SINGLE_CORRECT splits into batches of 5 and 2, plus one each for the other kinds.
        assert llm.call_count == 4

    @pytest.mark.asyncio
    async def test_always_failing_oracle_falls_back(self, make_request):
        llm = FailingLLM()
        engine = QuestionEngine(llm, Settings(retry_delay=0, max_retries=2, batch_size=2))
        questions = await engine.generate_questions(make_request({K.SINGLE_CORRECT: 3, K.URL: 1}))
        assert len(questions) == 4
        assert all(q.source == "fallback" for q in questions)
        assert all(structural_issues(q) == [] for q in questions)
        # Three batches, each capped at max_retries calls.
        assert llm.call_count == 3 * 2

    @pytest.mark.asyncio
    async def test_failing_oracle_single_correct_fallbacks(self, make_request, fast_settings):
        engine = QuestionEngine(FailingLLM(), fast_settings)
        questions = await engine.generate_questions(make_request({K.SINGLE_CORRECT: 2}))
        assert len(questions) == 2
        for q in questions:
            assert q.kind == K.SINGLE_CORRECT
            assert len(q.choices) == 4
            assert sum(c.is_correct for c in q.choices) == 1
            assert all(c.feedback for c in q.choices)

    @pytest.mark.asyncio
    async def test_capitalized_true_accepted(self, make_request, fast_settings):
        llm = FakeLLM(responses=[questions_reply(true_false(choice="True"))])
        [q] = await QuestionEngine(llm, fast_settings).generate_questions(make_request({K.TRUE_FALSE: 1}))
        assert q.source == "llm"
        assert q.choices[0].text == "true"
        assert llm.call_count == 1

    @pytest.mark.asyncio
    async def test_invalid_request_raises_before_any_call(self, fast_settings):
        llm = FakeLLM(responses=["{}"])
        engine = QuestionEngine(llm, fast_settings)
        with pytest.raises(InvalidRequestError):
            await engine.generate_questions(GenerationRequest({K.TEXT: 1}))
        with pytest.raises(InvalidRequestError):
            await engine.generate_questions(GenerationRequest({K.TEXT: -1}, content="Cells"))
        with pytest.raises(UnsupportedKindError):
            await engine.generate_questions(GenerationRequest({"ESSAY": 1}, content="Cells"))
        with pytest.raises(ValueError):
            await engine.generate_questions(GenerationRequest({K.TEXT: 1}, difficulty="HARD", content="Cells"))
        assert llm.call_count == 0

    @pytest.mark.asyncio
    async def test_zero_counts(self, make_request, fast_settings):
        llm = FakeLLM(responses=["{}"])
        assert await QuestionEngine(llm, fast_settings).generate_questions(make_request({K.TEXT: 0})) == []
        assert llm.call_count == 0

    @pytest.mark.asyncio
    async def test_objectives_only(self, fast_settings):
        llm = FakeLLM(handler=_by_prompt)
        request = GenerationRequest({K.TEXT: 1}, Difficulty.EASY, objectives="Explain TCP slow start")
        [q] = await QuestionEngine(llm, fast_settings).generate_questions(request)
        assert q.kind == K.TEXT
        assert "CONTENT SAMPLE" not in llm.prompts[0]


class TestValidatorSelection:
    def test_rules_by_default(self):
        assert isinstance(QuestionEngine(FakeLLM()).validator, RuleBasedValidator)

    def test_llm_from_settings(self):
        engine = QuestionEngine(FakeLLM(), Settings(validator="llm"))
        assert isinstance(engine.validator, LLMValidator)

    def test_explicit_validator_wins(self):
        validator = RuleBasedValidator()
        assert QuestionEngine(FakeLLM(), Settings(validator="llm"), validator).validator is validator


class TestEngineDelegates:
    @pytest.mark.asyncio
    async def test_dependency_graph(self):
        llm = FakeLLM(responses=[json.dumps({"dependencies": [
            {"question_id": "a", "context_questions": []},
            {"question_id": "b", "context_questions": ["a"]},
        ]})])
        refs = [QuestionRef("a", "Define osmosis."), QuestionRef("b", "Explain turgor.")]
        assert await QuestionEngine(llm).build_dependency_graph(refs) == {"a": set(), "b": {"a"}}

    @pytest.mark.asyncio
    async def test_rewordings_use_max_retries(self):
        llm = FakeLLM(responses=["garbage"])
        engine = QuestionEngine(llm, Settings(max_retries=4))
        with pytest.raises(RuntimeError):
            await engine.generate_rewordings("Explain osmosis.", K.TEXT, 1)
        assert llm.call_count == 4


class TestLLMValidatorPath:
    @pytest.mark.asyncio
    async def test_llm_acceptance_cannot_pass_two_correct_answers(self, make_request):
        batch_calls = []

        def handler(prompt):
            if "QUESTIONS TO VALIDATE" in prompt:
                return json.dumps({"is_valid": True})
            if "IMPROVEMENT NEEDED" in prompt:
                return "cannot help"
            batch_calls.append(prompt)
            q = single_correct()
            if len(batch_calls) == 1:
                q["choices"][1]["is_correct"] = True
            return questions_reply(q)

        engine = QuestionEngine(FakeLLM(handler=handler), Settings(validator="llm", retry_delay=0))
        [q] = await engine.generate_questions(make_request({K.SINGLE_CORRECT: 1}))
        assert sum(c.is_correct for c in q.choices) == 1
        assert q.source == "llm"
        assert len(batch_calls) == 2


class TestRepeatedRuns:
    @pytest.mark.asyncio
    async def test_same_shape_with_flaky_oracle(self, make_request, fast_settings):
        calls = {"n": 0}

        def flaky(prompt):
            calls["n"] += 1
            if calls["n"] % 3 == 0:
                return ConnectionError("dropped")
            return _by_prompt(prompt)

        engine = QuestionEngine(FakeLLM(handler=flaky), fast_settings)
        request = make_request({K.SINGLE_CORRECT: 6, K.TRUE_FALSE: 2, K.TEXT: 3, K.LINK_FILE: 1})
        first = await engine.generate_questions(request)
        second = await engine.generate_questions(request)

        for questions in (first, second):
            kinds = [q.kind for q in questions]
            assert {kind: kinds.count(kind) for kind in request.counts} == dict(request.counts)
            assert all(structural_issues(q) == [] for q in questions)
        assert [q.kind for q in first] == [q.kind for q in second]
        assert not {q.id for q in first} & {q.id for q in second}
