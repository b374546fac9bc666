"""Domain models for the quiz session engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class AnswerMode(str, Enum):
    """How a question expects to be answered."""

    SINGLE = "single"
    MULTIPLE = "multiple"


class NavigationDirection(str, Enum):
    NEXT = "next"
    PREV = "prev"


@dataclass(frozen=True, slots=True)
class SingleAnswer:
    """A single selected option key (empty string means nothing was selected)."""

    key: str

    def keys(self) -> tuple[str, ...]:
        return (self.key,) if self.key else ()


@dataclass(frozen=True, slots=True)
class MultipleAnswer:
    """A set of selected option keys."""

    selected: frozenset[str] = frozenset()

    def keys(self) -> tuple[str, ...]:
        return tuple(sorted(self.selected))


Answer = Union[SingleAnswer, MultipleAnswer]


@dataclass(frozen=True, slots=True)
class Question:
    """Normalized quiz question; simulation status and answer mode are derived once at load."""

    index: int
    text: str
    options: dict[str, str] = field(default_factory=dict)
    correct_answer: Answer | None = None
    explanation: str | None = None
    question_number: str | None = None
    is_simulation: bool = False
    simulation_details: str | None = None
    answer_mode: AnswerMode = AnswerMode.SINGLE
    simulation: bool = field(init=False)

    def __post_init__(self) -> None:
        # True when the question cannot be graded.
        object.__setattr__(
            self,
            "simulation",
            self.is_simulation or not self.options or self.correct_answer is None,
        )


@dataclass(frozen=True, slots=True)
class QuizResult:
    """Permanent grading record for one answered question."""

    correct: bool
    your_answer: Answer
    correct_answer: Answer
    explanation: str
    question_text: str = ""


@dataclass(frozen=True, slots=True)
class SessionState:
    """Per-session quiz progress. Replaced, never mutated, by the engine."""

    current_index: int = 0
    score: int = 0
    results: dict[int, QuizResult] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class Feedback:
    """Render-facing projection of a stored result."""

    correct: bool
    your_answer_display: str
    correct_answer_display: str
    explanation: str
    selected_keys: tuple[str, ...]
    correct_keys: tuple[str, ...]
    multiple_correct: bool = False


class SummaryItemKind(str, Enum):
    GRADED = "graded"
    SIMULATION = "simulation"
    UNANSWERED = "unanswered"


@dataclass(frozen=True, slots=True)
class SummaryItem:
    """One line of the end-of-quiz review."""

    position: int
    kind: SummaryItemKind
    text_snippet: str
    question_number: str | None = None
    feedback: Feedback | None = None


@dataclass(frozen=True, slots=True)
class ResultsSummary:
    score: int
    total_questions: int
    percentage: float
    items: list[SummaryItem]
