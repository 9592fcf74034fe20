"""Response shapes the LLM is asked to produce.

Each model doubles as the format contract embedded in a prompt (via its JSON
schema) and as the validator applied to the reply in ``parsing.parse_output``.
Numeric fields reject NaN and infinity, which ``json.loads`` lets through.
"""
from __future__ import annotations

from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class GeneratedChoice(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    choice: str = Field(min_length=1, description="Answer choice text, must match is_correct")
    id: Optional[int] = Field(default=None, description="Unique identifier for the choice")
    is_correct: bool = Field(default=False, description="Is this the correct answer?")
    points: Optional[float] = Field(default=None, description="Whole points assigned for this choice")
    feedback: Optional[str] = Field(default=None, description="Feedback for this choice")


class GeneratedCriterion(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    description: str = Field(description="Detailed description of criterion")
    points: float = Field(ge=0, description="Whole point value - higher = better")


class GeneratedRubric(BaseModel):
    rubric_question: str = Field(description="Question evaluating a key aspect of the response")
    criteria: list[GeneratedCriterion] = Field(description="3-5 criteria with different point values")
    show_rubrics_to_learner: Optional[bool] = None


class GeneratedScoring(BaseModel):
    type: str = "CRITERIA_BASED"
    rubrics: list[GeneratedRubric] = Field(default_factory=list)


class GeneratedQuestion(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    question: str = Field(min_length=1, description="Clear, specific question text")
    type: str = Field(description="The question type")
    response_type: Optional[str] = Field(default=None, description="CODE, ESSAY, REPORT or OTHER")
    total_points: Optional[float] = Field(default=None, ge=0, description="Total points for this question")
    difficulty_level: Optional[str] = None
    max_words: Optional[int] = Field(default=None, gt=0)
    max_characters: Optional[int] = Field(default=None, gt=0)
    randomized_choices: Optional[bool] = None
    scoring: Optional[GeneratedScoring] = None
    choices: Optional[list[GeneratedChoice]] = None


class GeneratedQuestions(BaseModel):
    questions: list[GeneratedQuestion]


class QuestionPatch(BaseModel):
    """Only the fields a refinement changed."""

    question: Optional[str] = Field(default=None, min_length=10)
    choices: Optional[list[GeneratedChoice]] = None
    scoring: Optional[GeneratedScoring] = None


class ValidatorVerdict(BaseModel):
    is_valid: bool
    question_issues: dict[str, list[str]] = Field(default_factory=dict)
    improvement_suggestions: dict[str, str] = Field(default_factory=dict)
    overall_feedback: str = ""


class DependencyEntry(BaseModel):
    question_id: Union[int, str] = Field(description="The id of the question")
    context_questions: list[Union[int, str]] = Field(
        default_factory=list,
        description="The ids of all the questions that this question depends upon contextually",
    )


class DependencyListing(BaseModel):
    dependencies: list[DependencyEntry]


class RewordedChoice(BaseModel):
    model_config = ConfigDict(allow_inf_nan=False)

    choice: str = Field(min_length=1)
    is_correct: bool
    points: Optional[float] = Field(default=None, ge=0)
    feedback: Optional[str] = None


class RewordedQuestion(BaseModel):
    id: Optional[int] = None
    variant_content: str = Field(min_length=10)
    choices: Optional[list[RewordedChoice]] = None


class RewordingListing(BaseModel):
    variations: list[RewordedQuestion] = Field(min_length=1)
