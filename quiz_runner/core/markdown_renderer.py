"""Markdown rendering for question and option text.

Raw HTML in the question bank is never passed through: markdown-it escapes
it when ``html`` is disabled, so the bank can be rendered directly into the
student page.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import html

from markdown_it import MarkdownIt

from quiz_runner.constants.quiz_constants import MISSING_QUESTION_TEXT


@dataclass(slots=True)
class MarkdownRenderer:
    """Converts question bank markdown into HTML fragments."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html, "breaks": True})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str, fallback: str = MISSING_QUESTION_TEXT) -> str:
        """Render block markdown (question prompts); blank text renders ``fallback``."""
        sanitized = (markdown_text or "").strip()
        if not sanitized:
            return f"<p><em>{html.escape(fallback)}</em></p>"
        return self._markdown.render(sanitized)

    def render_inline(self, markdown_text: str) -> str:
        """Render a single line of markdown without a wrapping paragraph (option labels)."""
        return self._markdown.renderInline((markdown_text or "").strip())


renderer = MarkdownRenderer()
# Shared instance; MarkdownIt is safe for concurrent read-only renders.
