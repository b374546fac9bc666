"""Quiz session state machine: navigation, grading and feedback.

Every operation takes a ``SessionState`` and returns a new one; the engine
keeps no per-session data of its own, so the hosting layer decides where
states live between requests.
"""

from __future__ import annotations

from collections.abc import Sequence
import logging
from typing import Union

from quiz_runner.constants.quiz_constants import (
    INVALID_SELECTION_EXPLANATION,
    MISSING_EXPLANATION_TEXT,
)
from quiz_runner.core.models import (
    Answer,
    AnswerMode,
    Feedback,
    MultipleAnswer,
    NavigationDirection,
    Question,
    QuizResult,
    ResultsSummary,
    SessionState,
    SingleAnswer,
)
from quiz_runner.core.services.feedback import build_feedback, feedback_for_current
from quiz_runner.core.services.question_store import QuestionStore
from quiz_runner.core.services.results_summary import build_results_summary

logger = logging.getLogger(__name__)

RawAnswer = Union[str, Sequence[str], None]


def grade_answer(question: Question, raw_answer: RawAnswer) -> QuizResult:
    """Grade a raw submission against a gradable question.

    Submissions that do not name valid option keys are still graded, as
    incorrect, with the invalid-selection explanation.
    """
    if question.correct_answer is None:
        raise ValueError(f"Question {question.index} has no correct answer and cannot be graded.")

    if question.answer_mode is AnswerMode.MULTIPLE:
        answer, valid = _parse_multiple(question, raw_answer)
    else:
        answer, valid = _parse_single(question, raw_answer)

    if not valid:
        return QuizResult(
            correct=False,
            your_answer=answer,
            correct_answer=question.correct_answer,
            explanation=INVALID_SELECTION_EXPLANATION,
            question_text=question.text,
        )

    return QuizResult(
        correct=answer == question.correct_answer,
        your_answer=answer,
        correct_answer=question.correct_answer,
        explanation=question.explanation or MISSING_EXPLANATION_TEXT,
        question_text=question.text,
    )


def _parse_single(question: Question, raw_answer: RawAnswer) -> tuple[Answer, bool]:
    if raw_answer is None:
        return SingleAnswer(""), False
    if isinstance(raw_answer, str):
        key = raw_answer.strip()
    else:
        items = [str(item).strip() for item in raw_answer]
        if len(items) != 1:
            return SingleAnswer(" ".join(item for item in items if item)), False
        key = items[0]
    return SingleAnswer(key), key in question.options


def _parse_multiple(question: Question, raw_answer: RawAnswer) -> tuple[Answer, bool]:
    if raw_answer is None:
        keys: list[str] = []
    elif isinstance(raw_answer, str):
        keys = raw_answer.split()
    else:
        keys = [str(item).strip() for item in raw_answer if str(item).strip()]
    selected = frozenset(keys)
    valid = bool(selected) and all(key in question.options for key in selected)
    return MultipleAnswer(selected), valid


class QuizEngine:
    """Pure transitions over a session state for one question store."""

    def __init__(self, store: QuestionStore) -> None:
        self._store = store

    @property
    def total_questions(self) -> int:
        return self._store.get_question_count()

    def initial_state(self) -> SessionState:
        return SessionState()

    def reset(self) -> SessionState:
        """Discard all progress; equivalent to a fresh session."""
        return self.initial_state()

    def is_complete(self, state: SessionState) -> bool:
        return state.current_index >= self.total_questions

    def current_question(self, state: SessionState) -> Question | None:
        if self.is_complete(state):
            return None
        return self._store.get_question_at_index(state.current_index)

    def navigate(self, state: SessionState, direction: NavigationDirection) -> SessionState:
        """Move one step. Boundary moves are no-ops; the index stops at the results screen."""
        if direction is NavigationDirection.NEXT:
            if state.current_index < self.total_questions:
                return SessionState(state.current_index + 1, state.score, state.results)
        elif direction is NavigationDirection.PREV:
            if state.current_index > 0:
                return SessionState(state.current_index - 1, state.score, state.results)
        logger.debug("Ignoring %s navigation at index %d", direction.value, state.current_index)
        return state

    def submit(
        self,
        state: SessionState,
        index: int,
        raw_answer: RawAnswer,
    ) -> tuple[SessionState, Feedback | None]:
        """Grade an answer for the current question.

        Submissions for another index, an out-of-range index, a simulation or
        an already graded question leave the state untouched and return no
        feedback.
        """
        if not self._store.has_question(index):
            logger.debug("Ignoring submission for out-of-range index %d", index)
            return state, None
        if index != state.current_index:
            logger.debug("Ignoring submission for index %d while at %d", index, state.current_index)
            return state, None
        question = self._store.get_question_at_index(index)
        if question.simulation:
            logger.debug("Ignoring submission for simulation %d", index)
            return state, None
        if index in state.results:
            logger.debug("Ignoring repeated submission for question %d", index)
            return state, None

        result = grade_answer(question, raw_answer)
        results = dict(state.results)
        results[index] = result
        score = state.score + 1 if result.correct else state.score
        return SessionState(state.current_index, score, results), build_feedback(result)

    def feedback_for_current(self, state: SessionState) -> Feedback | None:
        return feedback_for_current(state)

    def results_summary(self, state: SessionState) -> ResultsSummary | None:
        """Summary of every question, available only on the results screen."""
        if not self.is_complete(state):
            return None
        return build_results_summary(self._store.get_all(), state)
