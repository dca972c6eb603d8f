"""
Representation sync for one post being edited.

An `EditorSession` keeps a single canonical content value while exposing
three mutually exclusive views:

- structured: the rich document in `document.py`
- markdown: plain text
- html: plain text

Switching views never re-parses Markdown or HTML back into the document. The
document only changes through structural commands or the initial load, so the
structured view can show something other than what will be saved. What gets
saved is `canonical`: the value emitted by the most recent edit, whichever
view it came from.
"""

from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Callable

from core import errors

from . import document, preview, text_commands, transforms
from .document import Mark, Node
from .transforms import Selection

logger = logging.getLogger(__name__)

HISTORY_LIMIT = 100


class EditorMode(StrEnum):
    STRUCTURED = "structured"
    MARKDOWN = "markdown"
    HTML = "html"


STRUCTURED_COMMANDS = frozenset(
    {
        "bold",
        "italic",
        "strike",
        "code",
        "heading1",
        "heading2",
        "heading3",
        "bullet_list",
        "ordered_list",
        "blockquote",
        "code_block",
        "link",
        "horizontal_rule",
        "insert_text",
        "split_block",
        "undo",
        "redo",
    }
)

_MARK_COMMANDS = {"bold", "italic", "strike", "code"}

ChangeListener = Callable[[str], None]


@dataclass
class _Snapshot:
    document: Node
    selection: Selection


class EditorSession:
    def __init__(
        self,
        *,
        owner_id: str,
        post_id: str | None = None,
        canonical_html: str = "",
        session_id: str | None = None,
        content: dict[str, Any] | None = None,
    ) -> None:
        self.id = session_id or str(uuid.uuid4())
        self.owner_id = owner_id
        self.post_id = post_id
        self.mode = EditorMode.STRUCTURED
        hydrated = document.from_blob(content, canonical_html)
        if hydrated is not None:
            self.document = hydrated
        elif canonical_html:
            self.document = document.from_html(canonical_html)
        else:
            self.document = document.empty_document()
        self.canonical = canonical_html or ""
        self.markdown_text = ""
        self.html_text = ""
        self.markdown_edited = False
        self.html_edited = False
        self.selection = Selection()
        self.stored_marks: tuple[Mark, ...] | None = None
        self.saving = False
        self._undo: list[_Snapshot] = []
        self._redo: list[_Snapshot] = []
        self._listeners: list[ChangeListener] = []
        # Set by whoever owns the session (see registry.py).
        self.watcher: Any = None

    @classmethod
    def for_new_post(cls, owner_id: str) -> "EditorSession":
        return cls(owner_id=owner_id)

    @classmethod
    def for_existing_post(
        cls, owner_id: str, post_id: str, content_html: str, content: dict[str, Any] | None = None
    ) -> "EditorSession":
        return cls(owner_id=owner_id, post_id=post_id, canonical_html=content_html, content=content)

    # -- change notification ---------------------------------------------------

    def on_change(self, listener: ChangeListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _emit(self, value: str) -> None:
        self.canonical = value
        for listener in list(self._listeners):
            listener(value)

    # -- views -----------------------------------------------------------------

    def switch_mode(self, mode: EditorMode | str) -> None:
        mode = EditorMode(mode)
        if mode == EditorMode.MARKDOWN and not self.markdown_edited:
            # Plain text, not a Markdown serialization: formatting is lost here.
            self.markdown_text = document.plain_text(self.document)
        elif mode == EditorMode.HTML and not self.html_edited:
            self.html_text = document.to_html(self.document)
        logger.debug("editor_mode_switched session_id=%s from=%s to=%s", self.id, self.mode, mode)
        self.mode = mode

    def active_text(self) -> str:
        if self.mode == EditorMode.MARKDOWN:
            return self.markdown_text
        if self.mode == EditorMode.HTML:
            return self.html_text
        return document.to_html(self.document)

    def edit_text(self, value: str) -> None:
        """A keystroke in the Markdown or HTML view: the raw text becomes the canonical content."""
        if self.mode == EditorMode.MARKDOWN:
            self.markdown_text = value
            self.markdown_edited = True
        elif self.mode == EditorMode.HTML:
            self.html_text = value
            self.html_edited = True
        else:
            raise errors.ValidationError("Text edits apply to the Markdown and HTML views only.")
        self._emit(value)

    def preview(self) -> str:
        return preview.render(self.mode.value, self.active_text())

    # -- commands --------------------------------------------------------------

    def run_command(
        self,
        command: str,
        *,
        selection: Selection | None = None,
        text: str | None = None,
        href: str | None = None,
        start: int | None = None,
        end: int | None = None,
    ) -> dict[str, Any]:
        """
        Run a toolbar command in the active view.

        Structured view: `selection` addresses the document. Text views:
        `start`/`end` are offsets into the active text.
        """
        if self.mode == EditorMode.STRUCTURED:
            self._run_structured(command, selection or self.selection, text=text, href=href)
            return {"selection": self.selection}

        apply = text_commands.apply_markdown if self.mode == EditorMode.MARKDOWN else text_commands.apply_html
        result = apply(command, self.active_text(), start, end)
        self.edit_text(result.text)
        return {"selection_start": result.selection_start, "selection_end": result.selection_end}

    def _run_structured(self, command: str, selection: Selection, *, text: str | None, href: str | None) -> None:
        if command not in STRUCTURED_COMMANDS:
            raise errors.ValidationError(f"Unsupported command in the structured view: {command}")
        if command == "undo":
            self.undo()
            return
        if command == "redo":
            self.redo()
            return

        if command in _MARK_COMMANDS and selection.empty:
            self._toggle_stored_mark(command, selection)
            return

        before = _Snapshot(copy.deepcopy(self.document), self.selection)

        if command in _MARK_COMMANDS:
            new_selection = transforms.toggle_mark(self.document, selection, Mark(command))
        elif command.startswith("heading"):
            level = int(command[-1])
            new_selection = transforms.toggle_textblock(self.document, selection, "heading", {"level": level})
        elif command == "code_block":
            new_selection = transforms.toggle_textblock(self.document, selection, "code_block")
        elif command in ("bullet_list", "ordered_list"):
            new_selection = transforms.toggle_list(self.document, selection, command)
        elif command == "blockquote":
            new_selection = transforms.toggle_blockquote(self.document, selection)
        elif command == "link":
            new_selection = transforms.set_link(self.document, selection, href)
        elif command == "horizontal_rule":
            new_selection = transforms.insert_block_at_cursor(self.document, selection, Node("horizontal_rule"))
        elif command == "insert_text":
            new_selection = transforms.insert_text(self.document, selection, text or "", self.stored_marks)
            self.stored_marks = None
        else:  # split_block
            new_selection = transforms.split_block(self.document, selection)

        self._commit(before, new_selection)

    def _toggle_stored_mark(self, command: str, selection: Selection) -> None:
        current = self.stored_marks
        if current is None:
            current = transforms.marks_at_selection(self.document, selection)
        if any(m.type == command for m in current):
            self.stored_marks = tuple(m for m in current if m.type != command)
        else:
            self.stored_marks = document.sort_marks(current + (Mark(command),))
        self.selection = selection

    def insert_image(self, src: str, *, alt: str | None = None, title: str | None = None) -> None:
        if self.mode != EditorMode.STRUCTURED:
            raise errors.ValidationError("Images can only be inserted in the structured view.")
        attrs = {"src": src}
        if alt:
            attrs["alt"] = alt
        if title:
            attrs["title"] = title
        before = _Snapshot(copy.deepcopy(self.document), self.selection)
        new_selection = transforms.insert_block_at_cursor(self.document, self.selection, Node("image", attrs=attrs))
        self._commit(before, new_selection)

    def _commit(self, before: _Snapshot, selection: Selection) -> None:
        self._undo.append(before)
        del self._undo[:-HISTORY_LIMIT]
        self._redo.clear()
        self.selection = selection
        self._emit(document.to_html(self.document))

    def undo(self) -> bool:
        if not self._undo:
            return False
        self._redo.append(_Snapshot(copy.deepcopy(self.document), self.selection))
        snapshot = self._undo.pop()
        self.document, self.selection = snapshot.document, snapshot.selection
        self._emit(document.to_html(self.document))
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        self._undo.append(_Snapshot(copy.deepcopy(self.document), self.selection))
        snapshot = self._redo.pop()
        self.document, self.selection = snapshot.document, snapshot.selection
        self._emit(document.to_html(self.document))
        return True

    def select(self, selection: Selection) -> None:
        self.selection = selection
        self.stored_marks = None

    # -- save support ------------------------------------------------------------

    def begin_save(self) -> None:
        if self.saving:
            raise errors.ConflictError("A save for this post is already in progress.")
        self.saving = True

    def end_save(self, post_id: str | None = None) -> None:
        self.saving = False
        if post_id:
            self.post_id = post_id

    def structured_blob(self) -> dict[str, Any]:
        return document.to_blob(self.document)

    def snapshot(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "post_id": self.post_id,
            "mode": self.mode.value,
            "canonical": self.canonical,
            "text": self.active_text(),
            "document": document.to_json(self.document),
            "selection": {"block": self.selection.block, "start": self.selection.start, "end": self.selection.end},
            "can_undo": bool(self._undo),
            "can_redo": bool(self._redo),
            "saving": self.saving,
        }
