"""End-of-quiz results summary."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from quiz_runner.constants.quiz_constants import MISSING_TEXT_MARKER, SUMMARY_SNIPPET_LENGTH
from quiz_runner.core.models import (
    Question,
    ResultsSummary,
    SessionState,
    SummaryItem,
    SummaryItemKind,
)
from quiz_runner.core.services.feedback import build_feedback


def score_percentage(score: int, total_questions: int) -> float:
    """Score as a percentage rounded half-up to one decimal place."""
    if total_questions <= 0:
        return 0.0
    ratio = Decimal(score * 100) / Decimal(total_questions)
    return float(ratio.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def build_results_summary(questions: tuple[Question, ...], state: SessionState) -> ResultsSummary:
    """Classify every question as graded, simulation or unanswered.

    Computed from scratch on each call; nothing is cached between renders.
    """
    items: list[SummaryItem] = []
    for question in questions:
        result = state.results.get(question.index)
        if question.simulation:
            kind = SummaryItemKind.SIMULATION
            feedback = None
            text = question.text
        elif result is not None:
            kind = SummaryItemKind.GRADED
            feedback = build_feedback(result)
            text = result.question_text or question.text
        else:
            kind = SummaryItemKind.UNANSWERED
            feedback = None
            text = question.text
        items.append(
            SummaryItem(
                position=question.index + 1,
                kind=kind,
                text_snippet=_snippet(text),
                question_number=question.question_number,
                feedback=feedback,
            )
        )

    total = len(questions)
    return ResultsSummary(
        score=state.score,
        total_questions=total,
        percentage=score_percentage(state.score, total),
        items=items,
    )


def _snippet(text: str) -> str:
    if not text:
        return MISSING_TEXT_MARKER
    return f"{text[:SUMMARY_SNIPPET_LENGTH]}..."
