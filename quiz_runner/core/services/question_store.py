"""Read-only store for the loaded question bank."""

from __future__ import annotations

from pathlib import Path

from quiz_runner.core.models import Question
from quiz_runner.core.question_bank_loader import QuestionBankError, load_question_bank


class QuestionStore:
    """Ordered, immutable collection of questions shared by every session."""

    def __init__(self, questions: list[Question]) -> None:
        if not questions:
            raise QuestionBankError("Quiz must contain at least one question.")
        for position, question in enumerate(questions):
            if question.index != position:
                raise QuestionBankError(
                    f"Question at position {position} carries index {question.index}."
                )
        self._questions: tuple[Question, ...] = tuple(questions)

    @classmethod
    def from_file(cls, file_path: Path) -> "QuestionStore":
        return cls(load_question_bank(file_path))

    def get_all(self) -> tuple[Question, ...]:
        return self._questions

    def get_question_count(self) -> int:
        return len(self._questions)

    def has_question(self, index: int) -> bool:
        return 0 <= index < len(self._questions)

    def get_question_at_index(self, index: int) -> Question:
        if not self.has_question(index):
            raise IndexError(f"Question index {index} out of range")
        return self._questions[index]
