"""Default point tables, limits, choices and rubrics per question kind.

Used to backfill fields the LLM left out and by the fallback synthesizer.
"""
from __future__ import annotations

from assessgen.models import (
    SUBMISSION_KINDS,
    Choice,
    Criterion,
    Difficulty,
    QuestionKind,
    ResponseType,
    Rubric,
    Scoring,
)

D = Difficulty

TEXT_POINTS = {D.BASIC: 5, D.EASY: 7, D.MEDIUM: 10, D.CHALLENGING: 15, D.ADVANCED: 20}
SUBMISSION_POINTS = {D.BASIC: 5, D.EASY: 8, D.MEDIUM: 10, D.CHALLENGING: 12, D.ADVANCED: 15}
TEXT_MAX_WORDS = {D.BASIC: 150, D.EASY: 250, D.MEDIUM: 400, D.CHALLENGING: 600, D.ADVANCED: 800}
TEXT_MAX_CHARACTERS = {
    D.BASIC: 1000, D.EASY: 1500, D.MEDIUM: 2500, D.CHALLENGING: 3500, D.ADVANCED: 5000,
}

# 5/3/1/0 for every rubric: criteria points must be unique within a rubric.
LEVEL_POINTS = (5, 3, 1, 0)

DEFAULT_RESPONSE_TYPE = ResponseType.OTHER


def default_points(kind: QuestionKind, difficulty: Difficulty | None = None) -> int:
    if kind.has_choices:
        return 1
    if kind == QuestionKind.TEXT:
        return TEXT_POINTS.get(difficulty, TEXT_POINTS[D.ADVANCED])
    if kind in SUBMISSION_KINDS:
        return SUBMISSION_POINTS.get(difficulty, SUBMISSION_POINTS[D.ADVANCED])
    return 5


def default_max_words(kind: QuestionKind, difficulty: Difficulty | None = None) -> int | None:
    if kind != QuestionKind.TEXT:
        return None
    return TEXT_MAX_WORDS.get(difficulty, TEXT_MAX_WORDS[D.ADVANCED])


def default_max_characters(kind: QuestionKind, difficulty: Difficulty | None = None) -> int | None:
    if kind != QuestionKind.TEXT:
        return None
    return TEXT_MAX_CHARACTERS.get(difficulty, TEXT_MAX_CHARACTERS[D.ADVANCED])


def level_text(difficulty: Difficulty | None) -> str:
    return difficulty.value.lower() if difficulty else "medium"


def true_choice(feedback: str = "This statement is correct based on the concept.") -> Choice:
    return Choice(text="true", is_correct=True, points=1, feedback=feedback, id=1)


def default_choices(kind: QuestionKind, difficulty: Difficulty | None = None) -> list[Choice] | None:
    level = level_text(difficulty)
    if kind == QuestionKind.SINGLE_CORRECT:
        return [
            Choice(f"This is the correct answer with appropriate {level}-level complexity", True, 1,
                   f"This is correct. It demonstrates understanding at the {level} level.", 1),
            Choice("This is a plausible but incorrect answer", False, 0,
                   "This is incorrect. It represents a common misconception.", 2),
            Choice("This is another plausible but incorrect answer", False, 0,
                   "This is incorrect. While it contains some truth, it misses critical elements.", 3),
            Choice("This is a clearly incorrect answer", False, 0,
                   "This is incorrect. It shows a fundamental misunderstanding of the concept.", 4),
        ]
    if kind == QuestionKind.MULTIPLE_CORRECT:
        return [
            Choice("This is the first correct answer", True, 1,
                   "This is correct. It accurately describes one aspect of the concept.", 1),
            Choice("This is the second correct answer", True, 1,
                   "This is also correct. It captures another important aspect.", 2),
            Choice("This is a plausible but incorrect answer", False, 0,
                   "This is incorrect. It seems plausible but misrepresents the concept.", 3),
            Choice("This is another plausible but incorrect answer", False, 0,
                   "This is incorrect. It represents a common misconception.", 4),
        ]
    if kind == QuestionKind.TRUE_FALSE:
        return [true_choice()]
    return None


def graded_rubric(question: str, descriptions: tuple[str, str, str, str]) -> Rubric:
    """A rubric whose four descriptions map onto 5/3/1/0 points."""
    return Rubric(
        question=question,
        criteria=[Criterion(desc, pts) for desc, pts in zip(descriptions, LEVEL_POINTS)],
    )


def default_scoring(kind: QuestionKind, difficulty: Difficulty | None = None) -> Scoring | None:
    if not kind.needs_rubric:
        return None
    level = level_text(difficulty)
    if kind == QuestionKind.TEXT:
        return Scoring(rubrics=[
            graded_rubric("Content Accuracy and Comprehensiveness", (
                f"Excellent - Complete and accurate answer demonstrating {level} understanding with comprehensive details",
                f"Good - Mostly accurate with minor omissions, showing adequate {level} understanding",
                f"Fair - Partially accurate with significant gaps in {level} understanding",
                f"Poor - Mostly incorrect or off-topic, lacking {level} understanding",
            )),
            graded_rubric("Critical Thinking and Analysis", (
                f"Excellent - Demonstrates exceptional critical analysis appropriate for {level} level",
                f"Good - Shows solid analytical thinking with some {level} depth",
                f"Fair - Exhibits basic analysis with limited {level} depth",
                f"Poor - Shows minimal or no analytical thinking at {level} level",
            )),
            graded_rubric("Organization and Clarity", (
                f"Excellent - Well-structured with clear, logical flow and precise language at {level} level",
                f"Good - Generally organized with mostly clear expression at {level} level",
                f"Fair - Somewhat disorganized with clarity issues at {level} level",
                f"Poor - Poorly organized and difficult to follow at {level} level",
            )),
        ])
    return Scoring(rubrics=[
        graded_rubric("Relevance to Question", (
            f"Excellent - Directly addresses the question with specific details at {level} level",
            f"Good - Mostly relevant with minor tangents at {level} level",
            f"Fair - Somewhat relevant but with major gaps at {level} level",
            f"Poor - Not relevant to the question at {level} level",
        )),
        graded_rubric("Quality and Depth of Content", (
            f"Excellent - High-quality, comprehensive content with insightful {level}-level analysis",
            f"Good - Good quality content with some {level}-level insights",
            f"Fair - Basic content that meets minimum {level}-level requirements",
            f"Poor - Low-quality or insufficient content for {level} level",
        )),
        graded_rubric("Professional Presentation", (
            f"Excellent - Professional, well-formatted presentation at {level} level",
            f"Good - Generally professional presentation with minor issues at {level} level",
            f"Fair - Basic presentation with notable issues at {level} level",
            f"Poor - Poor presentation unsuitable for {level} level",
        )),
    ])
