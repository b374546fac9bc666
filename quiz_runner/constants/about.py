"""Static metadata describing Quiz Runner."""

APP_NAME = "Quiz Runner"
APP_VERSION = "0.1"
QUIZ_TITLE = "CompTIA Pentester+ PT0-003 Quiz"
APP_ABOUT_TEXT = (
    "Quiz Runner serves a question bank one question at a time in the browser, "
    "grades single and multiple choice answers, and ends with a review of every question."
)
