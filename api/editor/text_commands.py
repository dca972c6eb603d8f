"""
Toolbar commands for the Markdown and HTML views.

These are text manipulations, not document transforms: they wrap the selected
text in a delimiter pair or prefix the line holding the selection. An empty
selection inserts at the cursor.
"""

from __future__ import annotations

from dataclasses import dataclass

from core import errors


@dataclass(frozen=True)
class Wrap:
    before: str
    after: str = ""


@dataclass(frozen=True)
class LinePrefix:
    prefix: str


MARKDOWN_COMMANDS: dict[str, Wrap | LinePrefix] = {
    "bold": Wrap("**", "**"),
    "italic": Wrap("*", "*"),
    "code": Wrap("`", "`"),
    "heading1": LinePrefix("# "),
    "heading2": LinePrefix("## "),
    "heading3": LinePrefix("### "),
    "bullet_list": LinePrefix("- "),
    "ordered_list": LinePrefix("1. "),
    "blockquote": LinePrefix("> "),
    "code_block": Wrap("```\n", "\n```"),
    "link": Wrap("[", "](url)"),
    "horizontal_rule": Wrap("---\n"),
}


def _tag(name: str, attrs: str = "") -> Wrap:
    return Wrap(f"<{name}{attrs}>", f"</{name}>")


HTML_COMMANDS: dict[str, Wrap | LinePrefix] = {
    "bold": _tag("strong"),
    "italic": _tag("em"),
    "code": _tag("code"),
    "heading1": _tag("h1"),
    "heading2": _tag("h2"),
    "heading3": _tag("h3"),
    "bullet_list": _tag("ul"),
    "ordered_list": _tag("ol"),
    "blockquote": _tag("blockquote"),
    "code_block": Wrap("<pre><code>", "</code></pre>"),
    "link": _tag("a", ' href=""'),
    "horizontal_rule": Wrap("<hr>"),
    "table": _tag("table"),
}


@dataclass(frozen=True)
class TextEdit:
    text: str
    selection_start: int
    selection_end: int


def _clamp(text: str, start: int | None, end: int | None) -> tuple[int, int]:
    length = len(text)
    start = length if start is None else max(0, min(start, length))
    end = start if end is None else max(0, min(end, length))
    return (start, end) if start <= end else (end, start)


def apply(
    commands: dict[str, Wrap | LinePrefix],
    command: str,
    text: str,
    start: int | None = None,
    end: int | None = None,
) -> TextEdit:
    """
    Apply `command` to `text` around [start, end).

    Returns the new text and where the originally selected text now sits.
    """
    action = commands.get(command)
    if action is None:
        raise errors.ValidationError(f"Unsupported command in this view: {command}")

    start, end = _clamp(text, start, end)
    if isinstance(action, LinePrefix):
        line_start = text.rfind("\n", 0, start) + 1
        shift = len(action.prefix)
        new_text = text[:line_start] + action.prefix + text[line_start:]
        return TextEdit(new_text, start + shift, end + shift)

    selected = text[start:end]
    new_text = text[:start] + action.before + selected + action.after + text[end:]
    return TextEdit(new_text, start + len(action.before), end + len(action.before))


def apply_markdown(command: str, text: str, start: int | None = None, end: int | None = None) -> TextEdit:
    return apply(MARKDOWN_COMMANDS, command, text, start, end)


def apply_html(command: str, text: str, start: int | None = None, end: int | None = None) -> TextEdit:
    return apply(HTML_COMMANDS, command, text, start, end)
