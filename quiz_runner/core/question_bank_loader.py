"""Loading and normalizing the JSON question bank.

File format: a top-level JSON list, one object per question::

    [
      {
        "question_number": "12",
        "question_text": "Which tool ...?",
        "options": {"A": "nmap", "B": "hydra", "C": "sqlmap"},
        "correct_answer": "A C",
        "explanation": "...",
        "is_simulation": false,
        "simulation_details": null
      }
    ]

``options`` may also be a plain list, in which case keys A, B, C, ... are
assigned in order. ``correct_answer`` holds one option key, or several keys
separated by whitespace for multiple-select questions. A question without
options or without a correct answer is treated as a simulation.

Architecture note:
    Simulation status and answer mode are derived here, once, so that the
    engine never has to re-inspect raw fields while grading or rendering.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from quiz_runner.constants.quiz_constants import OPTION_LETTERS
from quiz_runner.core.models import AnswerMode, MultipleAnswer, Question, SingleAnswer

logger = logging.getLogger(__name__)


class QuestionBankError(Exception):
    """Raised when the question bank cannot be loaded or is structurally invalid."""


def load_question_bank(file_path: Path) -> list[Question]:
    """Read, parse and normalize a question bank file."""
    if not file_path.is_file():
        raise QuestionBankError(f"Question bank '{file_path}' not found or not a file.")
    try:
        text = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise QuestionBankError(f"Could not read question bank '{file_path}': {exc}") from exc
    questions = parse_question_bank(text)
    logger.info("Loaded %d questions from %s", len(questions), file_path)
    return questions


def parse_question_bank(text: str) -> list[Question]:
    try:
        decoded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise QuestionBankError(f"Error parsing question bank JSON: {exc}") from exc
    if not isinstance(decoded, list):
        raise QuestionBankError("Question bank must be a JSON list of question objects.")
    if not decoded:
        raise QuestionBankError("The question bank is empty.")
    return [normalize_question(index, raw) for index, raw in enumerate(decoded)]


def normalize_question(index: int, raw: Any) -> Question:
    if not isinstance(raw, dict):
        raise QuestionBankError(f"Question {index + 1} must be a JSON object.")

    text = raw.get("question_text")
    text = "" if text is None else str(text)

    options = _normalize_options(index, raw.get("options"))
    correct_keys = _split_answer_keys(raw.get("correct_answer"))

    answer_mode = AnswerMode.MULTIPLE if len(correct_keys) > 1 else AnswerMode.SINGLE
    correct_answer = None
    if correct_keys:
        if answer_mode is AnswerMode.MULTIPLE:
            correct_answer = MultipleAnswer(frozenset(correct_keys))
        else:
            correct_answer = SingleAnswer(correct_keys[0])
        unknown = [key for key in correct_keys if key not in options]
        if options and unknown:
            logger.warning(
                "Question %d: correct answer key(s) %s are not among its options",
                index + 1,
                ", ".join(unknown),
            )

    question_number = raw.get("question_number")
    return Question(
        index=index,
        text=text.strip(),
        options=options,
        correct_answer=correct_answer,
        explanation=_optional_text(raw.get("explanation")),
        question_number=str(question_number) if question_number not in (None, "") else None,
        is_simulation=bool(raw.get("is_simulation", False)),
        simulation_details=_optional_text(raw.get("simulation_details")),
        answer_mode=answer_mode,
    )


def _normalize_options(index: int, raw_options: Any) -> dict[str, str]:
    if raw_options is None:
        return {}
    if isinstance(raw_options, list):
        if len(raw_options) > len(OPTION_LETTERS):
            raise QuestionBankError(f"Question {index + 1} has too many options.")
        return {letter: str(text) for letter, text in zip(OPTION_LETTERS, raw_options)}
    if isinstance(raw_options, dict):
        return {str(key).strip(): str(text) for key, text in raw_options.items()}
    raise QuestionBankError(f"Question {index + 1}: 'options' must be an object or a list.")


def _split_answer_keys(raw_answer: Any) -> list[str]:
    """Split a correct-answer value into distinct keys, keeping their order."""
    if raw_answer is None:
        return []
    if isinstance(raw_answer, list):
        tokens = [str(item).strip() for item in raw_answer]
    else:
        tokens = str(raw_answer).split()
    keys: list[str] = []
    for token in tokens:
        if token and token not in keys:
            keys.append(token)
    return keys


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None
