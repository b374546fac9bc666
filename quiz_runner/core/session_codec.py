"""Conversion between ``SessionState`` and its JSON-compatible stored form.

Stored shape::

    {"current_index": 2, "score": 1,
     "results": {"0": {"correct": true, "your_answer": "B", "correct_answer": "B",
                       "explanation": "...", "question_text": "..."},
                 "1": {"correct": false, "your_answer": ["A"], "correct_answer": ["A", "C"],
                       "explanation": "...", "question_text": "..."}}}

A string answer is a single selection and a list is a multiple selection.
"""

from __future__ import annotations

import logging
from typing import Any

from quiz_runner.core.models import Answer, MultipleAnswer, QuizResult, SessionState, SingleAnswer

logger = logging.getLogger(__name__)


def dump_session_state(state: SessionState) -> dict[str, Any]:
    return {
        "current_index": state.current_index,
        "score": state.score,
        "results": {str(index): _dump_result(result) for index, result in sorted(state.results.items())},
    }


def load_session_state(payload: dict[str, Any] | None, total_questions: int) -> SessionState:
    """Rebuild a state, repairing anything inconsistent.

    Missing payloads give a fresh state, indexes outside ``[0, total_questions]``
    are clamped to 0, results for unknown questions are dropped and the score
    is recounted from the remaining results.
    """
    if not payload:
        return SessionState()

    raw_results = payload.get("results")
    if not isinstance(raw_results, dict):
        raw_results = {}

    results: dict[int, QuizResult] = {}
    for raw_index, raw_result in raw_results.items():
        try:
            index = int(raw_index)
            result = _load_result(raw_result)
        except (TypeError, ValueError, KeyError) as exc:
            logger.warning("Dropping unreadable stored result %r: %s", raw_index, exc)
            continue
        if 0 <= index < total_questions:
            results[index] = result

    try:
        current_index = int(payload.get("current_index", 0))
    except (TypeError, ValueError):
        current_index = 0
    if not 0 <= current_index <= total_questions:
        current_index = 0

    score = sum(1 for result in results.values() if result.correct)
    return SessionState(current_index=current_index, score=score, results=results)


def _dump_result(result: QuizResult) -> dict[str, Any]:
    return {
        "correct": result.correct,
        "your_answer": _dump_answer(result.your_answer),
        "correct_answer": _dump_answer(result.correct_answer),
        "explanation": result.explanation,
        "question_text": result.question_text,
    }


def _load_result(raw: dict[str, Any]) -> QuizResult:
    return QuizResult(
        correct=bool(raw["correct"]),
        your_answer=_load_answer(raw.get("your_answer")),
        correct_answer=_load_answer(raw["correct_answer"]),
        explanation=str(raw.get("explanation") or ""),
        question_text=str(raw.get("question_text") or ""),
    )


def _dump_answer(answer: Answer) -> str | list[str]:
    if isinstance(answer, MultipleAnswer):
        return list(answer.keys())
    return answer.key


def _load_answer(raw: Any) -> Answer:
    if isinstance(raw, list):
        return MultipleAnswer(frozenset(str(key) for key in raw))
    if raw is None:
        return SingleAnswer("")
    return SingleAnswer(str(raw))
