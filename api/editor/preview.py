"""
Preview rendering for the active view.

Markdown is rendered to HTML for display only; the rendered HTML never feeds
back into the canonical content. Every preview is sanitized.
"""

from __future__ import annotations

import markdown

from core import sanitize

MARKDOWN_EXTENSIONS = ["extra", "sane_lists"]

PLACEHOLDER = '<p class="text-muted-foreground">Preview will appear here...</p>'


def render_markdown(text: str) -> str:
    return markdown.markdown(text or "", extensions=MARKDOWN_EXTENSIONS, output_format="html")


def render(mode: str, value: str) -> str:
    if not (value or "").strip():
        return PLACEHOLDER
    raw = render_markdown(value) if mode == "markdown" else value
    return sanitize.clean_html(raw)
