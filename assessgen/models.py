from __future__ import annotations

import enum
from collections.abc import Hashable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from assessgen.errors import InvalidRequestError, UnsupportedKindError


class QuestionKind(str, enum.Enum):
    SINGLE_CORRECT = "SINGLE_CORRECT"
    MULTIPLE_CORRECT = "MULTIPLE_CORRECT"
    TEXT = "TEXT"
    TRUE_FALSE = "TRUE_FALSE"
    URL = "URL"
    UPLOAD = "UPLOAD"
    LINK_FILE = "LINK_FILE"

    @property
    def has_choices(self) -> bool:
        return self in CHOICE_KINDS

    @property
    def needs_rubric(self) -> bool:
        return self in RUBRIC_KINDS


CHOICE_KINDS = frozenset({
    QuestionKind.SINGLE_CORRECT,
    QuestionKind.MULTIPLE_CORRECT,
    QuestionKind.TRUE_FALSE,
})
RUBRIC_KINDS = frozenset({
    QuestionKind.TEXT,
    QuestionKind.URL,
    QuestionKind.UPLOAD,
    QuestionKind.LINK_FILE,
})
SUBMISSION_KINDS = frozenset({QuestionKind.URL, QuestionKind.UPLOAD, QuestionKind.LINK_FILE})


class Difficulty(str, enum.Enum):
    """Target difficulty. Members compare in declaration order."""

    BASIC = "BASIC"
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    CHALLENGING = "CHALLENGING"
    ADVANCED = "ADVANCED"

    @property
    def rank(self) -> int:
        return list(Difficulty).index(self)

    def __lt__(self, other):
        if not isinstance(other, Difficulty):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, Difficulty):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, Difficulty):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, Difficulty):
            return NotImplemented
        return self.rank >= other.rank


class ResponseType(str, enum.Enum):
    CODE = "CODE"
    ESSAY = "ESSAY"
    REPORT = "REPORT"
    OTHER = "OTHER"


class AssignmentType(str, enum.Enum):
    QUIZ = "QUIZ"
    ASSIGNMENT = "ASSIGNMENT"
    PROJECT = "PROJECT"
    MIDTERM = "MIDTERM"
    FINAL = "FINAL"
    EXAM = "EXAM"
    TEST = "TEST"
    LAB = "LAB"
    HOMEWORK = "HOMEWORK"
    PRACTICE = "PRACTICE"
    ASSESSMENT = "ASSESSMENT"
    SURVEY = "SURVEY"
    EVALUATION = "EVALUATION"
    REVIEW = "REVIEW"
    REFLECTION = "REFLECTION"


_ASSIGNMENT_DIFFICULTY = {
    AssignmentType.PRACTICE: Difficulty.BASIC,
    AssignmentType.QUIZ: Difficulty.EASY,
    AssignmentType.HOMEWORK: Difficulty.EASY,
    AssignmentType.ASSIGNMENT: Difficulty.MEDIUM,
    AssignmentType.LAB: Difficulty.MEDIUM,
    AssignmentType.MIDTERM: Difficulty.CHALLENGING,
    AssignmentType.TEST: Difficulty.CHALLENGING,
    AssignmentType.FINAL: Difficulty.ADVANCED,
    AssignmentType.EXAM: Difficulty.ADVANCED,
}


def difficulty_for_assignment(assignment_type: AssignmentType) -> Difficulty:
    """Map an assignment type to the difficulty its questions are written at."""
    return _ASSIGNMENT_DIFFICULTY.get(assignment_type, Difficulty.MEDIUM)


@dataclass
class Choice:
    text: str
    is_correct: bool
    points: int
    feedback: str
    id: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "choice": self.text,
            "is_correct": self.is_correct,
            "points": self.points,
            "feedback": self.feedback,
        }


@dataclass
class Criterion:
    description: str
    points: int


@dataclass
class Rubric:
    question: str
    criteria: list[Criterion]
    show_to_learner: bool = True


@dataclass
class Scoring:
    rubrics: list[Rubric]
    type: str = "CRITERIA_BASED"
    show_rubrics_to_learner: bool = True

    def to_dict(self) -> dict:
        return {
            "type": self.type,
            "show_rubrics_to_learner": self.show_rubrics_to_learner,
            "rubrics": [
                {
                    "rubric_question": r.question,
                    "criteria": [
                        {"description": c.description, "points": c.points}
                        for c in r.criteria
                    ],
                }
                for r in self.rubrics
            ],
        }


@dataclass
class QuestionCandidate:
    kind: QuestionKind
    text: str
    total_points: int
    id: str = ""
    response_type: ResponseType | None = None
    choices: list[Choice] | None = None
    scoring: Scoring | None = None
    max_words: int | None = None
    max_characters: int | None = None
    randomized_choices: bool | None = None
    difficulty: Difficulty | None = None
    assignment_id: int | None = None
    source: str = "llm"  # llm | fallback

    def to_dict(self) -> dict:
        d: dict[str, Any] = {
            "id": self.id,
            "type": self.kind.value,
            "question": self.text,
            "total_points": self.total_points,
        }
        if self.response_type is not None:
            d["response_type"] = self.response_type.value
        if self.difficulty is not None:
            d["difficulty_level"] = self.difficulty.value
        if self.max_words is not None:
            d["max_words"] = self.max_words
        if self.max_characters is not None:
            d["max_characters"] = self.max_characters
        if self.randomized_choices is not None:
            d["randomized_choices"] = self.randomized_choices
        if self.choices is not None:
            d["choices"] = [c.to_dict() for c in self.choices]
        if self.scoring is not None:
            d["scoring"] = self.scoring.to_dict()
        if self.assignment_id is not None:
            d["assignment_id"] = self.assignment_id
        d["source"] = self.source
        return d


@dataclass(frozen=True)
class GenerationRequest:
    counts: Mapping[QuestionKind, int]
    difficulty: Difficulty = Difficulty.MEDIUM
    content: str | None = None
    objectives: str | None = None
    assignment_id: int | None = None

    def __post_init__(self):
        # Freeze a private copy so later caller mutation can't leak in.
        object.__setattr__(self, "counts", MappingProxyType(dict(self.counts)))

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def check(self) -> None:
        """Raise InvalidRequestError if the request can't be served."""
        if not (self.content and self.content.strip()) and not (
            self.objectives and self.objectives.strip()
        ):
            raise InvalidRequestError("Provide either content, learning objectives, or both")
        for kind, count in self.counts.items():
            if not isinstance(kind, QuestionKind):
                raise UnsupportedKindError(f"Unsupported question kind: {kind!r}")
            if isinstance(count, bool) or not isinstance(count, int) or count < 0:
                raise InvalidRequestError(
                    f"Count for {kind.value} must be a non-negative integer (got {count!r})"
                )
        if not isinstance(self.difficulty, Difficulty):
            raise InvalidRequestError(f"Unknown difficulty level: {self.difficulty!r}")


@dataclass
class ValidationResult:
    is_valid: bool
    issues: dict[int, list[str]] = field(default_factory=dict)
    improvements: dict[int, str] = field(default_factory=dict)

    @property
    def has_improvements(self) -> bool:
        return bool(self.improvements)


@dataclass(frozen=True)
class Batch:
    kind: QuestionKind
    size: int


@dataclass
class BatchOutcome:
    batch: Batch
    success: bool
    candidates: list[QuestionCandidate]
    errors: list[str] | None = None


@dataclass(frozen=True)
class QuestionRef:
    id: Hashable
    text: str


DependencyMap = dict[Hashable, set]
