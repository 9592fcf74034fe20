"""Prompt templates for question generation, refinement, validation and grading context."""
from __future__ import annotations

from dataclasses import dataclass, field

from assessgen.models import Difficulty, QuestionKind

CONTENT_SAMPLE_CHARS = 500


@dataclass(frozen=True)
class PromptSpec:
    """A template plus the named string values for its ``{slots}``.

    ``render()`` raises ``KeyError`` when a slot has no value; that is a bug
    in the caller, not an LLM failure.
    """

    template: str
    values: dict[str, str] = field(default_factory=dict)

    def render(self) -> str:
        return self.template.format(**self.values)


BATCH_PROMPT = """\
You are an expert teacher creating high-quality assessment questions at specific difficulty levels.

DIFFICULTY LEVEL: {difficulty_level}
DIFFICULTY DESCRIPTION: {difficulty_description}

{content_section}
{objectives_section}

QUESTION GENERATION REQUIREMENTS:
{kind_instructions}

QUALITY REQUIREMENTS:
- Points MUST be whole numbers only (integers, not decimals)
- For SINGLE_CORRECT and TRUE_FALSE questions: Total points = 1
- For MULTIPLE_CORRECT questions: Each correct choice = 1 point, incorrect choices = -1 point
- Questions must directly relate to the provided content/objectives
- All questions MUST match the specified difficulty level exactly
- Use clear, precise language with no grammatical errors
- Each question should focus on a different aspect of the material
- Set "type" to {kind} for every question
{difficulty_guidance}

FORMAT INSTRUCTIONS:
{format_instructions}
"""

REFINE_PROMPT = """\
You are tasked with improving a specific question based on feedback.

ORIGINAL QUESTION:
{original_question}

IMPROVEMENT NEEDED:
{improvement}

Your task:
1. Apply the suggested improvement to the question
2. Only return the parts of the question that need to be changed
3. Ensure the improved version maintains the same difficulty level and core testing concept

{format_instructions}
"""

VALIDATION_PROMPT = """\
You are an expert assessment quality validator evaluating a set of generated questions against specific requirements.

QUESTIONS TO VALIDATE:
{questions}

REQUIREMENTS:
1. Correct question types and counts:
{required_counts}

2. Target difficulty level: {difficulty_level}

3. Content alignment:
{content_section}
{objectives_section}

4. Type-specific quality criteria:
   - SINGLE_CORRECT: exactly one correct choice, plausible distractors, feedback on every choice
   - MULTIPLE_CORRECT: at least one correct choice, feedback on every choice, no duplicates
   - TEXT: word or character limit, rubric criteria with distinct point values
   - TRUE_FALSE: a single choice "true" or "false" whose is_correct matches its text
   - URL/UPLOAD/LINK_FILE: clear submission instructions, rubric criteria with distinct point values

5. General quality: no spelling or grammar errors, no ambiguity, complete information.

VALIDATION TASK:
1. Analyse each question thoroughly
2. Identify specific issues in each question, keyed by its 0-based index
3. Suggest concrete improvements for questions that need it, keyed by the same index
4. Decide whether the full set meets all requirements

{format_instructions}
"""

DEPENDENCY_PROMPT = """\
You are an expert assessment designer identifying contextual relationships between questions in an assignment.

A contextual relationship means that understanding or answering one question correctly may depend on \
knowledge from another question or its expected answer. This is used to build a dependency graph for grading.

QUESTIONS:
{questions}

INSTRUCTIONS:
1. Analyse each question to identify whether it builds upon or requires knowledge from other questions.
2. For each question, list the ids of the questions it depends on contextually.
   - If a question is independent, return an empty list.
   - Only include DIRECT dependencies.
3. Do not create circular dependencies (A depends on B depends on A).
4. Return an entry for EVERY question, even those with no dependencies.

{format_instructions}
"""

REWORD_PROMPT = """\
You are an expert assessment designer creating variations of a question while preserving its difficulty \
and core testing concept.

ORIGINAL QUESTION ({kind}):
{question_text}
ORIGINAL CHOICES: {original_choices}
NUMBER OF VARIATIONS REQUESTED: {variation_count}

QUALITY REQUIREMENTS:
1. Create exactly {variation_count} variations
2. Each variation must preserve the difficulty level and test the same knowledge, while being clearly \
distinct from the original and the other variations
3. For choice-based questions: keep the same pattern of correct/incorrect answers, reword ALL choices, \
keep the original point distribution (points are non-negative integers) and give feedback for every choice
4. For TRUE_FALSE questions: keep a single choice whose text is "true" or "false"
5. Avoid changing only minor words or punctuation

{format_instructions}
"""

_DIFFICULTY_DESCRIPTIONS = {
    Difficulty.BASIC: "Basic level - Tests recall and basic comprehension of fundamental concepts. "
    "Questions focus on definition, identification, and simple applications with straightforward answers.",
    Difficulty.EASY: "Easy level - Tests understanding of concepts and simple applications. "
    "Questions require comprehension and basic problem-solving with clearly defined parameters.",
    Difficulty.MEDIUM: "Medium level - Tests application and analysis of concepts. Questions require deeper "
    "understanding, ability to connect concepts, and solving problems with some complexity.",
    Difficulty.CHALLENGING: "Challenging level - Tests evaluation and synthesis of concepts. Questions require "
    "critical thinking, comparing different approaches, and solving complex problems with multiple variables.",
    Difficulty.ADVANCED: "Advanced level - Tests creation and innovation based on deep understanding. Questions "
    "require expertise, creative problem-solving, independent analysis, and handling exceptional cases.",
}

_DIFFICULTY_GUIDANCE = {
    Difficulty.BASIC: [
        "Focus on recall and recognition of fundamental concepts",
        'Use terms like "identify," "define," "list," "describe"',
        "Test simple factual knowledge with straightforward answers",
        "Questions should verify basic comprehension, not application",
    ],
    Difficulty.EASY: [
        "Test basic understanding and simple application",
        'Use terms like "explain," "summarize," "classify," "compare"',
        "Questions should require connecting related concepts",
        "Allow for some basic problem-solving with clear parameters",
    ],
    Difficulty.MEDIUM: [
        "Test application and analysis of concepts",
        'Use terms like "apply," "implement," "analyze," "differentiate"',
        "Questions should require deeper understanding of relationships",
        "Include some complexity that requires careful consideration",
    ],
    Difficulty.CHALLENGING: [
        "Test evaluation and synthesis of complex concepts",
        'Use terms like "evaluate," "assess," "critique," "formulate"',
        "Questions should involve comparing different approaches",
        "Require integration of multiple concepts to solve problems",
        "Include nuance that differentiates partial from complete understanding",
    ],
    Difficulty.ADVANCED: [
        "Test creation, innovation, and mastery",
        'Use terms like "create," "design," "develop," "optimize"',
        "Questions should require expert-level understanding",
        "Test ability to handle exceptional cases and edge scenarios",
        "Require independent critical analysis of complex situations",
    ],
}


def difficulty_description(level: Difficulty) -> str:
    return _DIFFICULTY_DESCRIPTIONS[level]


def difficulty_guidance(level: Difficulty) -> str:
    lines = "\n".join(f"- {g}" for g in _DIFFICULTY_GUIDANCE[level])
    return f"\nDIFFICULTY GUIDELINES:\n{lines}"


def kind_instructions(kind: QuestionKind, count: int) -> str:
    if kind == QuestionKind.SINGLE_CORRECT:
        return (
            f"Generate {count} MULTIPLE_CHOICE (SINGLE_CORRECT) questions:\n"
            "- Include exactly 4 choices for each question\n"
            "- One choice must be clearly correct (1 point)\n"
            "- All incorrect choices must have 0 points\n"
            "- Distractors should be plausible (not obviously wrong)\n"
            "- Each choice must have detailed feedback explaining why it is correct/incorrect"
        )
    if kind == QuestionKind.MULTIPLE_CORRECT:
        return (
            f"Generate {count} MULTIPLE_SELECT (MULTIPLE_CORRECT) questions:\n"
            "- Include exactly 4 choices for each question\n"
            "- 2 choices must be correct (1 point each), 2 incorrect (-1 points each)\n"
            "- All correct choices are required for full points\n"
            "- Each choice must have detailed feedback"
        )
    if kind == QuestionKind.TEXT:
        return (
            f"Generate {count} TEXT_RESPONSE questions:\n"
            "- Clear, specific prompt requiring detailed explanation\n"
            "- Include word/character limits appropriate to difficulty\n"
            "- Comprehensive rubric with 3 criteria, each with 4 levels\n"
            "- Criteria should focus on: Content Accuracy, Critical Thinking, and Organization"
        )
    if kind == QuestionKind.TRUE_FALSE:
        return (
            f"Generate {count} TRUE_FALSE questions:\n"
            "- Clear, unambiguous statements that are definitively true or false\n"
            "- Test significant concepts, not trivia\n"
            "- Provide only a SINGLE choice for each TRUE/FALSE question\n"
            '- For true statements: set "choice" to "true", "is_correct" to true, and "points" to 1\n'
            '- For false statements: set "choice" to "false", "is_correct" to false, and "points" to 0\n'
            "- Include detailed feedback explaining why the statement is true or false"
        )
    return (
        f"Generate {count} {kind.value} questions:\n"
        "- Clear expectations about what to submit\n"
        "- Detailed rubric with criteria specific to the expected submission\n"
        "- Appropriate response type setting"
    )


def content_section(content: str | None, label: str = "CONTENT SAMPLE") -> str:
    if not content:
        return ""
    sample = content[:CONTENT_SAMPLE_CHARS]
    more = "..." if len(content) > CONTENT_SAMPLE_CHARS else ""
    return f"{label}:\n{sample}{more}"


def objectives_section(objectives: str | None) -> str:
    return f"LEARNING OBJECTIVES:\n{objectives}" if objectives else ""


def format_required_counts(required: dict[QuestionKind, int]) -> str:
    return "\n".join(
        f"   - {kind.value}: {required.get(kind, 0)} questions" for kind in QuestionKind
    )
