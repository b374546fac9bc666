from __future__ import annotations

import json

import pytest

from quiz_runner.constants.quiz_constants import (
    INVALID_SELECTION_EXPLANATION,
    MISSING_TEXT_MARKER,
    NO_ANSWER_MARKER,
)
from quiz_runner.core.models import (
    MultipleAnswer,
    NavigationDirection,
    SessionState,
    SingleAnswer,
    SummaryItemKind,
)
from quiz_runner.core.question_bank_loader import parse_question_bank
from quiz_runner.core.services.question_store import QuestionStore
from quiz_runner.core.services.quiz_engine import QuizEngine, grade_answer
from quiz_runner.core.services.results_summary import score_percentage

NEXT = NavigationDirection.NEXT
PREV = NavigationDirection.PREV


def _assert_score_matches_results(state: SessionState) -> None:
    assert state.score == sum(1 for result in state.results.values() if result.correct)


# --- Navigation ---


def test_prev_at_first_question_is_noop(engine: QuizEngine):
    state = engine.initial_state()
    assert engine.navigate(state, PREV) is state


def test_next_stops_at_results_screen(engine: QuizEngine):
    state = engine.initial_state()
    for _ in range(3):
        state = engine.navigate(state, NEXT)
    assert state.current_index == 3
    assert engine.is_complete(state)
    assert engine.navigate(state, NEXT).current_index == 3


def test_prev_then_next_returns_to_interior_index(engine: QuizEngine):
    state = engine.navigate(engine.initial_state(), NEXT)
    back = engine.navigate(state, PREV)
    assert back.current_index == 0
    assert engine.navigate(back, NEXT).current_index == 1


def test_navigation_does_not_require_an_answer(engine: QuizEngine):
    state = engine.navigate(engine.initial_state(), NEXT)
    assert state.current_index == 1
    assert state.results == {}


def test_prev_does_not_ungrade(engine: QuizEngine):
    state, _ = engine.submit(engine.initial_state(), 0, "B")
    state = engine.navigate(engine.navigate(state, NEXT), PREV)
    assert state.results[0].correct
    assert state.score == 1


# --- Grading ---


def test_single_select_correct_answer(engine: QuizEngine):
    state, feedback = engine.submit(engine.initial_state(), 0, "B")

    assert feedback is not None and feedback.correct
    assert state.score == 1
    assert state.results[0].your_answer == SingleAnswer("B")
    assert state.results[0].explanation == "HTTPS listens on 443."


def test_single_select_wrong_answer(engine: QuizEngine):
    state, feedback = engine.submit(engine.initial_state(), 0, "A")

    assert feedback is not None and not feedback.correct
    assert feedback.correct_answer_display == "B"
    assert state.score == 0


def test_single_select_accepts_one_element_list(engine: QuizEngine):
    state, feedback = engine.submit(engine.initial_state(), 0, ["B"])
    assert feedback.correct
    assert state.score == 1


def test_unknown_option_key_is_recorded_as_invalid(engine: QuizEngine):
    state, feedback = engine.submit(engine.initial_state(), 0, "Z")

    assert not feedback.correct
    assert feedback.explanation == INVALID_SELECTION_EXPLANATION
    assert state.results[0].your_answer == SingleAnswer("Z")

    again, second = engine.submit(state, 0, "B")
    assert second is None
    assert again is state
    assert again.results[0].your_answer == SingleAnswer("Z")


def test_missing_single_answer_is_recorded_as_invalid(engine: QuizEngine):
    state, feedback = engine.submit(engine.initial_state(), 0, None)

    assert not feedback.correct
    assert feedback.your_answer_display == NO_ANSWER_MARKER
    assert 0 in state.results


def _at_multi(engine: QuizEngine) -> SessionState:
    return engine.navigate(engine.initial_state(), NEXT)


@pytest.mark.parametrize("answer", [["A", "C"], ["C", "A"], "C A"])
def test_multi_select_exact_set_in_any_order_is_correct(engine: QuizEngine, answer):
    state, feedback = engine.submit(_at_multi(engine), 1, answer)

    assert feedback.correct
    assert state.results[1].your_answer == MultipleAnswer(frozenset({"A", "C"}))
    assert state.score == 1


@pytest.mark.parametrize("answer", [["A"], ["A", "B", "C"], ["B", "D"]])
def test_multi_select_subset_or_superset_is_incorrect(engine: QuizEngine, answer):
    state, feedback = engine.submit(_at_multi(engine), 1, answer)

    assert not feedback.correct
    assert feedback.explanation == "Passive techniques never touch the target."
    assert state.score == 0


@pytest.mark.parametrize("answer", [[], None, ["A", "Q"]])
def test_multi_select_invalid_submissions(engine: QuizEngine, answer):
    state, feedback = engine.submit(_at_multi(engine), 1, answer)

    assert not feedback.correct
    assert feedback.explanation == INVALID_SELECTION_EXPLANATION
    assert 1 in state.results


def test_multi_feedback_uses_plural_and_joined_display(engine: QuizEngine):
    _, feedback = engine.submit(_at_multi(engine), 1, ["C", "B"])

    assert feedback.multiple_correct
    assert feedback.your_answer_display == "B, C"
    assert feedback.correct_answer_display == "A, C"
    assert feedback.selected_keys == ("B", "C")
    assert feedback.correct_keys == ("A", "C")


def test_grade_answer_rejects_ungradable_question(store: QuestionStore):
    with pytest.raises(ValueError):
        grade_answer(store.get_question_at_index(2), "A")


# --- Ignored submissions ---


def test_submission_for_other_index_is_ignored(engine: QuizEngine):
    state = engine.initial_state()
    new_state, feedback = engine.submit(state, 1, ["A", "C"])
    assert feedback is None
    assert new_state is state


@pytest.mark.parametrize("index", [-1, 3, 99])
def test_submission_out_of_range_is_ignored(engine: QuizEngine, index: int):
    state = SessionState(current_index=3)
    assert engine.submit(state, index, "A") == (state, None)


def test_submission_to_simulation_is_ignored(engine: QuizEngine):
    state = SessionState(current_index=2)
    new_state, feedback = engine.submit(state, 2, "A")
    assert feedback is None
    assert 2 not in new_state.results


def test_duplicate_submission_keeps_first_result(engine: QuizEngine):
    state, _ = engine.submit(engine.initial_state(), 0, "A")
    first = state.results[0]

    state, feedback = engine.submit(state, 0, "B")

    assert feedback is None
    assert state.results[0] is first
    assert state.score == 0


def test_submit_does_not_mutate_previous_state(engine: QuizEngine):
    state = engine.initial_state()
    engine.submit(state, 0, "B")
    assert state.results == {}
    assert state.score == 0


def test_score_tracks_results_after_every_step(engine: QuizEngine):
    state = engine.initial_state()
    for index, answer in [(0, "B"), (1, ["A"]), (2, "A")]:
        state, _ = engine.submit(state, index, answer)
        _assert_score_matches_results(state)
        state = engine.navigate(state, NEXT)
    _assert_score_matches_results(state)


# --- Feedback reconstruction ---


def test_feedback_for_current_is_rebuilt_from_results(engine: QuizEngine):
    state, submitted = engine.submit(engine.initial_state(), 0, "B")
    state = engine.navigate(engine.navigate(state, NEXT), PREV)

    assert engine.feedback_for_current(state) == submitted
    assert engine.feedback_for_current(state) == engine.feedback_for_current(state)


def test_no_feedback_for_unanswered_question(engine: QuizEngine):
    assert engine.feedback_for_current(engine.initial_state()) is None


# --- Results summary and lifecycle ---


def test_scenario_three_question_bank(engine: QuizEngine):
    state = engine.initial_state()

    state, feedback = engine.submit(state, 0, "B")
    assert feedback.correct and state.score == 1

    state = engine.navigate(state, NEXT)
    state, feedback = engine.submit(state, 1, ["A"])
    assert not feedback.correct and state.score == 1

    state = engine.navigate(state, NEXT)
    assert state.current_index == 2
    assert engine.current_question(state).simulation
    assert engine.submit(state, 2, "A") == (state, None)
    assert engine.results_summary(state) is None

    state = engine.navigate(state, NEXT)
    assert state.current_index == 3
    assert engine.current_question(state) is None

    summary = engine.results_summary(state)
    assert summary.score == 1
    assert summary.total_questions == 3
    assert summary.percentage == 33.3
    assert [item.kind for item in summary.items] == [
        SummaryItemKind.GRADED,
        SummaryItemKind.GRADED,
        SummaryItemKind.SIMULATION,
    ]
    assert summary.items[0].feedback.correct
    assert not summary.items[1].feedback.correct
    assert summary.items[2].feedback is None


def test_summary_marks_unanswered_questions(engine: QuizEngine):
    summary = engine.results_summary(SessionState(current_index=3))

    assert [item.kind for item in summary.items] == [
        SummaryItemKind.UNANSWERED,
        SummaryItemKind.UNANSWERED,
        SummaryItemKind.SIMULATION,
    ]
    assert summary.items[0].position == 1
    assert summary.items[0].question_number == "101"
    assert summary.items[0].text_snippet == "Which port does HTTPS use by default?..."
    assert summary.percentage == 0.0


def test_summary_snippet_is_truncated():
    store = QuestionStore(parse_question_bank(json.dumps([{"question_text": "x" * 80}])))
    summary = QuizEngine(store).results_summary(SessionState(current_index=1))
    assert summary.items[0].text_snippet == "x" * 50 + "..."


def test_summary_uses_marker_for_question_without_text():
    bank = [
        {"question_text": "Pick", "options": {"A": "x"}, "correct_answer": "A"},
        {"is_simulation": True, "simulation_details": "Do the lab."},
    ]
    store = QuestionStore(parse_question_bank(json.dumps(bank)))
    summary = QuizEngine(store).results_summary(SessionState(current_index=2))

    assert summary.items[1].kind is SummaryItemKind.SIMULATION
    assert summary.items[1].text_snippet == MISSING_TEXT_MARKER


@pytest.mark.parametrize(
    "score, total, expected",
    [(1, 3, 33.3), (2, 3, 66.7), (1, 16, 6.3), (3, 3, 100.0), (0, 0, 0.0)],
)
def test_score_percentage_rounds_half_up(score: int, total: int, expected: float):
    assert score_percentage(score, total) == expected


def test_reset_clears_everything(engine: QuizEngine):
    state, _ = engine.submit(engine.initial_state(), 0, "B")
    state = engine.navigate(engine.navigate(state, NEXT), NEXT)

    fresh = engine.reset()

    assert fresh == SessionState()
    assert fresh.score == 0
    assert fresh.results == {}
    assert fresh.current_index == 0
