"""Tests for prompt templates and their section helpers."""
from __future__ import annotations

import re

import pytest

from assessgen.generator import build_batch_prompt
from assessgen.models import Difficulty, GenerationRequest, QuestionKind
from assessgen.prompts import (
    CONTENT_SAMPLE_CHARS,
    PromptSpec,
    content_section,
    difficulty_guidance,
    format_required_counts,
    kind_instructions,
    objectives_section,
)

_SLOT = re.compile(r"(?<!\{)\{[a-z_]+\}(?!\})")


class TestBatchPrompt:
    @pytest.mark.parametrize("kind", list(QuestionKind))
    @pytest.mark.parametrize("difficulty", list(Difficulty))
    def test_all_slots_filled(self, kind, difficulty):
        request = GenerationRequest({kind: 3}, difficulty, content="Cell biology notes")
        prompt = build_batch_prompt(kind, 3, request).render()
        assert not _SLOT.search(prompt.split("FORMAT INSTRUCTIONS:")[0])
        assert f"DIFFICULTY LEVEL: {difficulty.value}" in prompt
        assert f'Set "type" to {kind.value}' in prompt

    def test_includes_content_and_objectives(self):
        request = GenerationRequest({QuestionKind.TEXT: 1}, content="Cell biology", objectives="Explain mitosis")
        prompt = build_batch_prompt(QuestionKind.TEXT, 1, request).render()
        assert "CONTENT SAMPLE:\nCell biology" in prompt
        assert "LEARNING OBJECTIVES:\nExplain mitosis" in prompt

    def test_missing_value_is_caller_bug(self):
        with pytest.raises(KeyError):
            PromptSpec("Hello {name}").render()


class TestSections:
    def test_content_truncated(self):
        text = "x" * (CONTENT_SAMPLE_CHARS + 10)
        section = content_section(text)
        assert section.endswith("x...")
        assert len(section) == len("CONTENT SAMPLE:\n") + CONTENT_SAMPLE_CHARS + 3

    def test_short_content_not_truncated(self):
        assert content_section("abc", "CONTENT") == "CONTENT:\nabc"

    def test_empty_sections(self):
        assert content_section(None) == ""
        assert objectives_section("") == ""

    def test_kind_instructions_count(self):
        assert kind_instructions(QuestionKind.TRUE_FALSE, 4).startswith("Generate 4 TRUE_FALSE questions")
        assert "Generate 2 LINK_FILE questions" in kind_instructions(QuestionKind.LINK_FILE, 2)

    def test_guidance_has_bullets(self):
        assert difficulty_guidance(Difficulty.BASIC).count("\n- ") >= 3

    def test_required_counts_lists_every_kind(self):
        text = format_required_counts({QuestionKind.TEXT: 2})
        assert "   - TEXT: 2 questions" in text
        assert "   - URL: 0 questions" in text
        assert len(text.splitlines()) == len(QuestionKind)
