"""Quiz-related constants shared across the engine, manager and server."""

DEFAULT_QUESTION_BANK_PATH: str = "questions_bank.json"

# Display markers used when a result is rendered.
INVALID_SELECTION_EXPLANATION: str = "Invalid selection. The submitted answer did not match the available options."
NO_ANSWER_MARKER: str = "[No Answer Selected]"
NO_EXPLANATION_FALLBACK: str = "No explanation available."
MISSING_EXPLANATION_TEXT: str = "No explanation provided."
MISSING_TEXT_MARKER: str = "[No Text]"
MISSING_QUESTION_TEXT: str = "No content provided."
MISSING_SIMULATION_TEXT: str = "Simulation details missing."
ANSWER_DISPLAY_DELIMITER: str = ", "
SUMMARY_SNIPPET_LENGTH: int = 50

OPTION_LETTERS: str = "ABCDEFGHIJKLMNOPQRSTUVWXYZ"

THEMES: tuple[str, ...] = ("default-theme", "minimalist-theme", "hacker-theme")
DEFAULT_THEME: str = "default-theme"

SESSION_COOKIE_NAME: str = "quiz_runner_session"
SESSION_IDLE_TIMEOUT_SECONDS: int = 4 * 60 * 60
