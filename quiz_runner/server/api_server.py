"""FastAPI server that exposes the quiz page and its JSON endpoints."""

from __future__ import annotations

import html
import logging
from typing import Literal

from fastapi import Depends, FastAPI, HTTPException, Request, Response
from fastapi.responses import HTMLResponse, RedirectResponse
from pydantic import BaseModel
import uvicorn

from quiz_runner.constants.about import APP_ABOUT_TEXT, APP_NAME, APP_VERSION, QUIZ_TITLE
from quiz_runner.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_runner.constants.quiz_constants import (
    MISSING_QUESTION_TEXT,
    MISSING_SIMULATION_TEXT,
    SESSION_COOKIE_NAME,
    SESSION_IDLE_TIMEOUT_SECONDS,
)
from quiz_runner.core.markdown_renderer import renderer
from quiz_runner.core.models import Feedback, NavigationDirection, Question, ResultsSummary
from quiz_runner.core.quiz_manager import QuizManager, QuizView

logger = logging.getLogger(__name__)

_STUDENT_PAGE_HTML = """<!doctype html>
<html lang="en">
  <head>
    <meta charset="utf-8" />
    <title>__QUIZ_TITLE__</title>
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <style>
      body { margin: 0; padding: 1.5rem; font-family: system-ui, sans-serif; display: flex; flex-direction: column; gap: 1rem; }
      body.default-theme { background: #f4f6fb; color: #1f2937; }
      body.minimalist-theme { background: #ffffff; color: #111111; font-family: Georgia, serif; }
      body.hacker-theme { background: #000000; color: #33ff66; font-family: 'Courier New', monospace; }
      .card { border-radius: 0.75rem; padding: 1.5rem; border: 1px solid rgba(127, 127, 127, 0.35); }
      .hidden { display: none; }
      .theme-selector a { margin-right: 0.75rem; color: inherit; }
      .options { display: flex; flex-direction: column; gap: 0.5rem; margin: 1rem 0; }
      .option-label { display: block; padding: 0.6rem 0.8rem; border-radius: 0.5rem; border: 1px solid rgba(127, 127, 127, 0.35); cursor: pointer; }
      .option-label.disabled { cursor: default; }
      .selected-correct { background: rgba(34, 197, 94, 0.25); }
      .selected-incorrect { background: rgba(239, 68, 68, 0.25); }
      .correct-answer-highlight { outline: 2px dashed rgba(34, 197, 94, 0.9); }
      .feedback.correct { border-left: 4px solid #22c55e; padding-left: 0.75rem; }
      .feedback.incorrect { border-left: 4px solid #ef4444; padding-left: 0.75rem; }
      .explanation, .simulation-details pre { white-space: pre-wrap; }
      .navigation { display: flex; justify-content: space-between; }
      .nav-button.disabled { opacity: 0.4; pointer-events: none; }
      .summary-correct { color: #16a34a; }
      .summary-incorrect { color: #dc2626; }
      .summary-simulation { color: #666666; }
      .summary-unanswered { color: orange; }
    </style>
  </head>
  <body class="default-theme">
    <nav class="theme-selector">
      <a href="?theme=default-theme">Default Theme</a>
      <a href="?theme=minimalist-theme">Minimalist Theme</a>
      <a href="?theme=hacker-theme">Hacker Theme</a>
    </nav>
    <h1>__QUIZ_TITLE__</h1>
    <div id="score-info" class="score-info"></div>

    <section class="card hidden" id="question-card">
      <div id="progress-info" class="progress-info"></div>
      <div id="question-text" class="question-text"></div>
      <p id="question-reference" class="question-reference hidden"></p>
      <div id="simulation-block" class="hidden">
        <div id="simulation-details" class="simulation-details hidden">
          <strong>Instructions:</strong>
          <pre id="simulation-details-text"></pre>
        </div>
        <p><em>This is a simulation question. Review the details and proceed to the next question.</em></p>
      </div>
      <form id="quiz-form" class="hidden">
        <div id="options" class="options"></div>
        <button type="submit" id="submit-button" class="button">Submit Answer</button>
      </form>
      <div id="feedback" class="feedback hidden"></div>
    </section>

    <section class="card hidden" id="results-card">
      <h2>Quiz Completed!</h2>
      <p id="final-score"></p>
      <h3>Review Your Answers:</h3>
      <ol id="results-summary" class="results-summary"></ol>
      <button type="button" id="results-reset" class="button">Take Quiz Again</button>
    </section>

    <div class="navigation">
      <a href="?action=prev" id="prev-button" class="nav-button">Previous</a>
      <a href="?action=next" id="next-button" class="nav-button">Next</a>
    </div>
    <div style="text-align: center;">
      <a href="?action=reset" id="reset-button" class="reset-link">Reset Quiz Now</a>
    </div>

    <script>
      const el = (id) => document.getElementById(id);
      let currentView = null;

      async function callApi(path, body) {
        const options = body === undefined
          ? { method: 'GET' }
          : { method: 'POST', headers: { 'Content-Type': 'application/json' }, body: JSON.stringify(body) };
        const response = await fetch(path, options);
        if (!response.ok) {
          throw new Error(`Request to ${path} failed with status ${response.status}`);
        }
        return response.json();
      }

      function setHidden(element, hidden) {
        element.classList.toggle('hidden', hidden);
      }

      function renderOptions(view) {
        const question = view.question;
        const feedback = view.feedback;
        const container = el('options');
        container.innerHTML = '';
        const multiple = question.answer_mode === 'multiple';
        question.options.forEach((option) => {
          const label = document.createElement('label');
          label.className = 'option-label';
          const input = document.createElement('input');
          input.type = multiple ? 'checkbox' : 'radio';
          input.name = 'answer';
          input.value = option.key;
          input.disabled = question.answered;
          if (feedback) {
            label.classList.add('disabled');
            const selected = feedback.selected_keys.includes(option.key);
            const isCorrectOption = feedback.correct_keys.includes(option.key);
            input.checked = selected;
            if (selected) {
              label.classList.add(isCorrectOption ? 'selected-correct' : 'selected-incorrect');
            } else if (!feedback.correct && isCorrectOption) {
              label.classList.add('correct-answer-highlight');
            }
          }
          const text = document.createElement('span');
          text.innerHTML = option.html;
          label.append(input, document.createTextNode(`${option.key}. `), text);
          container.appendChild(label);
        });
        el('submit-button').disabled = question.answered;
      }

      function renderFeedback(feedback) {
        const box = el('feedback');
        box.innerHTML = '';
        setHidden(box, !feedback);
        if (!feedback) return;
        box.className = `feedback ${feedback.correct ? 'correct' : 'incorrect'}`;
        const verdict = document.createElement('p');
        if (feedback.correct) {
          verdict.innerHTML = '<strong>Correct!</strong>';
        } else {
          const plural = feedback.multiple_correct ? 'Correct answers were' : 'Correct answer was';
          verdict.innerHTML = '<strong>Incorrect.</strong> ';
          verdict.appendChild(document.createTextNode(
            `Your answer: ${feedback.your_answer}. ${plural}: ${feedback.correct_answer}.`));
        }
        const heading = document.createElement('p');
        heading.innerHTML = '<strong>Explanation:</strong>';
        const explanation = document.createElement('pre');
        explanation.className = 'explanation';
        explanation.textContent = feedback.explanation;
        box.append(verdict, heading, explanation);
      }

      function renderQuestion(view) {
        const question = view.question;
        const label = question.is_simulation ? 'Simulation' : 'Question';
        el('progress-info').textContent = `${label} ${question.position} of ${view.total_questions}`;
        el('question-text').innerHTML = question.question_html;
        const reference = el('question-reference');
        setHidden(reference, !question.question_number);
        reference.textContent = question.question_number ? `Reference: Question #: ${question.question_number}` : '';
        setHidden(el('simulation-block'), !question.is_simulation);
        setHidden(el('quiz-form'), question.is_simulation);
        if (question.is_simulation) {
          setHidden(el('simulation-details'), !question.simulation_details);
          el('simulation-details-text').textContent = question.simulation_details || '';
          renderFeedback(null);
        } else {
          renderOptions(view);
          renderFeedback(view.feedback);
        }
      }

      function renderSummary(summary) {
        el('final-score').textContent =
          `Your final score is: ${summary.score} out of ${summary.total_questions} (${summary.percentage}%)`;
        const list = el('results-summary');
        list.innerHTML = '';
        summary.items.forEach((item) => {
          const entry = document.createElement('li');
          const reference = item.question_number ? ` (#${item.question_number})` : '';
          const title = document.createElement('strong');
          title.textContent = `Question ${item.position}${reference}: `;
          entry.appendChild(title);
          entry.appendChild(document.createTextNode(`${item.text_snippet} `));
          const status = document.createElement('span');
          if (item.kind === 'simulation') {
            status.className = 'summary-simulation';
            status.textContent = '(Simulation - Skipped)';
          } else if (item.kind === 'unanswered') {
            status.className = 'summary-unanswered';
            status.textContent = '(Not Answered)';
          } else {
            status.className = item.correct ? 'summary-correct' : 'summary-incorrect';
            status.textContent = item.correct ? '(Correct)' : '(Incorrect)';
          }
          entry.appendChild(status);
          if (item.kind === 'graded') {
            let detail = ` - You answered: ${item.your_answer}.`;
            if (!item.correct) detail += ` Correct was: ${item.correct_answer}.`;
            entry.appendChild(document.createTextNode(detail));
          }
          list.appendChild(entry);
        });
      }

      function render(view) {
        currentView = view;
        document.body.className = view.theme;
        el('score-info').textContent = `Current Score: ${view.score} / ${view.total_questions}`;
        setHidden(el('question-card'), view.complete);
        setHidden(el('results-card'), !view.complete);
        if (view.complete) {
          renderSummary(view.summary);
        } else {
          renderQuestion(view);
        }
        el('prev-button').classList.toggle('disabled', !view.can_go_prev);
        el('next-button').classList.toggle('disabled', !view.can_go_next);
        el('next-button').textContent = view.next_label;
      }

      async function navigate(direction) {
        render(await callApi('/navigate', { direction }));
      }

      async function resetQuiz() {
        render(await callApi('/reset', {}));
        window.history.replaceState(null, '', window.location.pathname);
      }

      el('prev-button').addEventListener('click', (event) => { event.preventDefault(); navigate('prev'); });
      el('next-button').addEventListener('click', (event) => { event.preventDefault(); navigate('next'); });
      el('reset-button').addEventListener('click', (event) => { event.preventDefault(); resetQuiz(); });
      el('results-reset').addEventListener('click', resetQuiz);

      el('quiz-form').addEventListener('submit', async (event) => {
        event.preventDefault();
        if (!currentView || !currentView.question) return;
        const checked = Array.from(document.querySelectorAll('input[name="answer"]:checked')).map((input) => input.value);
        const multiple = currentView.question.answer_mode === 'multiple';
        const answer = multiple ? checked : (checked.length ? checked[0] : null);
        render(await callApi('/answer', { question_index: currentView.question.index, answer }));
      });

      callApi('/state').then(render).catch((error) => {
        el('score-info').textContent = error.message;
      });
    </script>
  </body>
</html>
"""


class NavigatePayload(BaseModel):
    """Payload schema for navigation requests."""

    direction: Literal["next", "prev"]


class AnswerPayload(BaseModel):
    """Payload schema for submitted answers."""

    question_index: int
    answer: str | list[str] | None = None


class ThemePayload(BaseModel):
    theme: str


def _render_student_page() -> str:
    return _STUDENT_PAGE_HTML.replace("__QUIZ_TITLE__", html.escape(QUIZ_TITLE))


def _open_session(request: Request, manager: QuizManager) -> str:
    return manager.open_session(request.cookies.get(SESSION_COOKIE_NAME))


def _set_session_cookie(response: Response, session_id: str) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_id,
        max_age=SESSION_IDLE_TIMEOUT_SECONDS,
        samesite="lax",
        httponly=True,
    )


def _feedback_payload(feedback: Feedback | None) -> dict[str, object] | None:
    if feedback is None:
        return None
    return {
        "correct": feedback.correct,
        "your_answer": feedback.your_answer_display,
        "correct_answer": feedback.correct_answer_display,
        "explanation": feedback.explanation,
        "selected_keys": list(feedback.selected_keys),
        "correct_keys": list(feedback.correct_keys),
        "multiple_correct": feedback.multiple_correct,
    }


def _question_payload(question: Question | None, answered: bool) -> dict[str, object] | None:
    if question is None:
        return None
    return {
        "index": question.index,
        "position": question.index + 1,
        "question_number": question.question_number,
        "question_html": renderer.render_fragment(
            question.text,
            fallback=MISSING_SIMULATION_TEXT if question.simulation else MISSING_QUESTION_TEXT,
        ),
        "is_simulation": question.simulation,
        "simulation_details": question.simulation_details if question.simulation else None,
        "answer_mode": question.answer_mode.value,
        "options": [
            {"key": key, "html": renderer.render_inline(text)}
            for key, text in question.options.items()
        ],
        "answered": answered,
    }


def _summary_payload(summary: ResultsSummary | None) -> dict[str, object] | None:
    if summary is None:
        return None
    items = []
    for item in summary.items:
        entry: dict[str, object] = {
            "position": item.position,
            "kind": item.kind.value,
            "question_number": item.question_number,
            "text_snippet": item.text_snippet,
        }
        if item.feedback is not None:
            entry["correct"] = item.feedback.correct
            entry["your_answer"] = item.feedback.your_answer_display
            entry["correct_answer"] = item.feedback.correct_answer_display
        items.append(entry)
    return {
        "score": summary.score,
        "total_questions": summary.total_questions,
        "percentage": summary.percentage,
        "items": items,
    }


def view_to_payload(view: QuizView) -> dict[str, object]:
    """Serialize a quiz view for the student page."""
    return {
        "theme": view.theme,
        "total_questions": view.total_questions,
        "current_index": view.state.current_index,
        "score": view.state.score,
        "complete": view.is_complete,
        "can_go_prev": view.can_go_prev,
        "can_go_next": view.can_go_next,
        "next_label": view.next_label,
        "question": _question_payload(view.question, view.has_been_answered),
        "feedback": _feedback_payload(view.feedback),
        "summary": _summary_payload(view.summary),
    }


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, description=APP_ABOUT_TEXT)
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    @app.get("/", response_class=HTMLResponse)
    def serve_student_page(
        request: Request,
        action: str | None = None,
        theme: str | None = None,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> Response:
        session_id = _open_session(request, manager)
        if action is None and theme is None:
            response: Response = HTMLResponse(_render_student_page())
        else:
            if theme is not None:
                manager.set_theme(session_id, theme)
            if action == "reset":
                manager.reset(session_id)
            elif action in ("next", "prev"):
                manager.navigate(session_id, NavigationDirection(action))
            elif action is not None:
                logger.debug("Ignoring unknown action %r", action)
            # Redirect so the query string does not linger in the address bar.
            response = RedirectResponse(url="/", status_code=303)
        _set_session_cookie(response, session_id)
        return response

    @app.get("/state")
    def get_state(
        request: Request,
        response: Response,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        session_id = _open_session(request, manager)
        _set_session_cookie(response, session_id)
        return view_to_payload(manager.get_view(session_id))

    @app.post("/navigate")
    def navigate(
        payload: NavigatePayload,
        request: Request,
        response: Response,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        session_id = _open_session(request, manager)
        _set_session_cookie(response, session_id)
        view = manager.navigate(session_id, NavigationDirection(payload.direction))
        return view_to_payload(view)

    @app.post("/answer")
    def submit_answer(
        payload: AnswerPayload,
        request: Request,
        response: Response,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        session_id = _open_session(request, manager)
        _set_session_cookie(response, session_id)
        try:
            view = manager.submit_answer(session_id, payload.question_index, payload.answer)
        except ValueError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return view_to_payload(view)

    @app.post("/reset")
    def reset_quiz(
        request: Request,
        response: Response,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        session_id = _open_session(request, manager)
        _set_session_cookie(response, session_id)
        return view_to_payload(manager.reset(session_id))

    @app.post("/theme")
    def set_theme(
        payload: ThemePayload,
        request: Request,
        response: Response,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        session_id = _open_session(request, manager)
        _set_session_cookie(response, session_id)
        return view_to_payload(manager.set_theme(session_id, payload.theme))

    return app


def start_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> None:
    """Run the FastAPI server until interrupted."""
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)
    server.run()
