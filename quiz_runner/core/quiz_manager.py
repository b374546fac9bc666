"""Business logic connecting HTTP sessions to the quiz engine."""

from __future__ import annotations

from dataclasses import dataclass
import logging

from quiz_runner.constants.quiz_constants import THEMES
from quiz_runner.core.models import (
    Feedback,
    NavigationDirection,
    Question,
    ResultsSummary,
    SessionState,
)
from quiz_runner.core.services.question_store import QuestionStore
from quiz_runner.core.services.quiz_engine import QuizEngine, RawAnswer
from quiz_runner.core.services.session_registry import SessionRecord, SessionRegistry
from quiz_runner.core.session_codec import dump_session_state, load_session_state

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class QuizView:
    """Everything the presentation layer needs to draw one screen."""

    state: SessionState
    total_questions: int
    question: Question | None
    feedback: Feedback | None
    summary: ResultsSummary | None
    theme: str
    can_go_prev: bool
    can_go_next: bool
    next_label: str

    @property
    def is_complete(self) -> bool:
        return self.question is None

    @property
    def is_simulation(self) -> bool:
        return self.question is not None and self.question.simulation

    @property
    def has_been_answered(self) -> bool:
        return self.question is not None and self.question.index in self.state.results


class QuizManager:
    """Facade over the question store, session registry and quiz engine."""

    def __init__(self, store: QuestionStore, registry: SessionRegistry | None = None) -> None:
        self._store = store
        self._engine = QuizEngine(store)
        self._registry = registry if registry is not None else SessionRegistry()

    def get_question_count(self) -> int:
        return self._store.get_question_count()

    # --- Session Delegation ---

    def open_session(self, session_id: str | None = None) -> str:
        return self._registry.open_session(session_id)

    # --- Events ---

    def get_view(self, session_id: str) -> QuizView:
        with self._registry.locked(session_id) as record:
            state = self._load_state(record)
            return self._build_view(state, record.theme)

    def navigate(self, session_id: str, direction: NavigationDirection) -> QuizView:
        with self._registry.locked(session_id) as record:
            state = self._engine.navigate(self._load_state(record), direction)
            record.state_payload = dump_session_state(state)
            return self._build_view(state, record.theme)

    def submit_answer(self, session_id: str, question_index: int, answer: RawAnswer) -> QuizView:
        with self._registry.locked(session_id) as record:
            state, feedback = self._engine.submit(self._load_state(record), question_index, answer)
            if feedback is not None:
                record.state_payload = dump_session_state(state)
                logger.info(
                    "Session %s graded question %d: %s (score %d)",
                    session_id,
                    question_index + 1,
                    "correct" if feedback.correct else "incorrect",
                    state.score,
                )
            return self._build_view(state, record.theme, feedback)

    def reset(self, session_id: str) -> QuizView:
        with self._registry.locked(session_id) as record:
            state = self._engine.reset()
            record.state_payload = dump_session_state(state)
            logger.info("Session %s reset its quiz", session_id)
            return self._build_view(state, record.theme)

    def set_theme(self, session_id: str, theme: str) -> QuizView:
        with self._registry.locked(session_id) as record:
            if theme in THEMES:
                record.theme = theme
            else:
                logger.debug("Ignoring unknown theme %r", theme)
            return self._build_view(self._load_state(record), record.theme)

    # --- Helpers ---

    def _load_state(self, record: SessionRecord) -> SessionState:
        if record.state_payload is None:
            state = self._engine.initial_state()
            record.state_payload = dump_session_state(state)
            return state
        return load_session_state(record.state_payload, self._store.get_question_count())

    def _build_view(
        self,
        state: SessionState,
        theme: str,
        feedback: Feedback | None = None,
    ) -> QuizView:
        total = self._store.get_question_count()
        question = self._engine.current_question(state)
        if feedback is None and question is not None:
            feedback = self._engine.feedback_for_current(state)
        return QuizView(
            state=state,
            total_questions=total,
            question=question,
            feedback=feedback,
            summary=self._engine.results_summary(state),
            theme=theme,
            can_go_prev=state.current_index > 0,
            can_go_next=state.current_index < total,
            next_label=_next_label(question, total),
        )


def _next_label(question: Question | None, total_questions: int) -> str:
    if question is None:
        return "Next"
    if question.index == total_questions - 1:
        return "View Results"
    if question.simulation:
        return "Next Simulation/Question"
    return "Next Question"
