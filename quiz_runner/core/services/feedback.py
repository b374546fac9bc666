"""Reconstruction of render-facing feedback from stored results."""

from __future__ import annotations

from quiz_runner.constants.quiz_constants import (
    ANSWER_DISPLAY_DELIMITER,
    NO_ANSWER_MARKER,
    NO_EXPLANATION_FALLBACK,
)
from quiz_runner.core.models import Answer, Feedback, QuizResult, SessionState


def format_answer(answer: Answer) -> str:
    """Join the keys of an answer for display; empty answers get the no-answer marker."""
    display = ANSWER_DISPLAY_DELIMITER.join(answer.keys())
    return display or NO_ANSWER_MARKER


def build_feedback(result: QuizResult) -> Feedback:
    """Project a stored result into feedback. Depends on nothing but the result."""
    correct_keys = result.correct_answer.keys()
    return Feedback(
        correct=result.correct,
        your_answer_display=format_answer(result.your_answer),
        correct_answer_display=format_answer(result.correct_answer),
        explanation=result.explanation or NO_EXPLANATION_FALLBACK,
        selected_keys=result.your_answer.keys(),
        correct_keys=correct_keys,
        multiple_correct=len(correct_keys) > 1,
    )


def feedback_for_current(state: SessionState) -> Feedback | None:
    """Feedback for the question at ``state.current_index``, if it has been graded."""
    result = state.results.get(state.current_index)
    if result is None:
        return None
    return build_feedback(result)
