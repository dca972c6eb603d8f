"""
Structural transforms for the structured view.

Every function mutates `doc` in place and returns the resulting `Selection`.
Selections address one text block (its index in document order) and a
character range inside it; ranges spanning several blocks are not supported.
Formatting commands toggle: applying one to already-formatted content removes it.
"""

from __future__ import annotations

from dataclasses import dataclass

from core import errors

from .document import (
    LIST_TYPES,
    Mark,
    Node,
    node_at,
    sort_marks,
    textblock_paths,
)


@dataclass(frozen=True)
class Selection:
    block: int = 0
    start: int = 0
    end: int | None = None

    @property
    def empty(self) -> bool:
        return self.end is None or self.end == self.start

    def collapsed(self, offset: int) -> "Selection":
        return Selection(block=self.block, start=offset, end=offset)


def _resolve(doc: Node, selection: Selection) -> tuple[tuple[int, ...], Node, int, int]:
    paths = textblock_paths(doc)
    if not paths:
        raise errors.ValidationError("The document has no text block to edit.")
    if not 0 <= selection.block < len(paths):
        raise errors.ValidationError(f"Selection block {selection.block} is out of range.")
    path = paths[selection.block]
    block = node_at(doc, path)
    length = block.text_length()
    start = max(0, min(selection.start, length))
    end = start if selection.end is None else max(0, min(selection.end, length))
    if end < start:
        start, end = end, start
    return path, block, start, end


def _index_of(doc: Node, block: Node) -> int:
    for i, path in enumerate(textblock_paths(doc)):
        if node_at(doc, path) is block:
            return i
    raise errors.ValidationError("Text block disappeared during the edit.")


# -- inline runs -------------------------------------------------------------


def _split_at(runs: list[Node], offset: int) -> int:
    """Ensure a run boundary at `offset`; return the index of the first run after it."""
    pos = 0
    for i, run in enumerate(runs):
        if offset == pos:
            return i
        if pos < offset < pos + len(run.text):
            cut = offset - pos
            runs[i : i + 1] = [
                Node("text", text=run.text[:cut], marks=run.marks),
                Node("text", text=run.text[cut:], marks=run.marks),
            ]
            return i + 1
        pos += len(run.text)
    return len(runs)


def _normalize_runs(runs: list[Node]) -> list[Node]:
    merged: list[Node] = []
    for run in runs:
        if not run.text:
            continue
        if merged and merged[-1].marks == run.marks:
            merged[-1] = Node("text", text=merged[-1].text + run.text, marks=run.marks)
        else:
            merged.append(run)
    return merged


def _slice(runs: list[Node], start: int, end: int) -> tuple[list[Node], list[Node], list[Node]]:
    runs = [Node("text", text=r.text, marks=r.marks) for r in runs]
    i = _split_at(runs, start)
    j = _split_at(runs, end)
    return runs[:i], runs[i:j], runs[j:]


def marks_at(block: Node, offset: int) -> tuple[Mark, ...]:
    """Marks of the character before `offset` (the marks new text inherits)."""
    pos = 0
    previous: tuple[Mark, ...] = ()
    for run in block.content:
        if pos < offset <= pos + len(run.text):
            return run.marks
        pos += len(run.text)
        previous = run.marks
    return previous if offset > 0 else ()


def _has_mark(marks: tuple[Mark, ...], mark_type: str) -> bool:
    return any(m.type == mark_type for m in marks)


def range_has_mark(block: Node, start: int, end: int, mark_type: str) -> bool:
    _, middle, _ = _slice(block.content, start, end)
    return bool(middle) and all(_has_mark(run.marks, mark_type) for run in middle)


def toggle_mark(doc: Node, selection: Selection, mark: Mark) -> Selection:
    _, block, start, end = _resolve(doc, selection)
    if start == end:
        return Selection(selection.block, start, end)
    if block.type == "code_block":
        raise errors.ValidationError("Inline formatting is not available inside a code block.")
    remove = range_has_mark(block, start, end, mark.type)
    before, middle, after = _slice(block.content, start, end)
    for run in middle:
        kept = tuple(m for m in run.marks if m.type != mark.type)
        run.marks = sort_marks(kept if remove else kept + (mark,))
    block.content = _normalize_runs(before + middle + after)
    return Selection(selection.block, start, end)


def remove_mark(doc: Node, selection: Selection, mark_type: str) -> Selection:
    _, block, start, end = _resolve(doc, selection)
    before, middle, after = _slice(block.content, start, end)
    for run in middle:
        run.marks = tuple(m for m in run.marks if m.type != mark_type)
    block.content = _normalize_runs(before + middle + after)
    return Selection(selection.block, start, end)


def insert_text(doc: Node, selection: Selection, value: str, marks: tuple[Mark, ...] | None = None) -> Selection:
    """Replace the selected range with `value`; the cursor lands after it."""
    _, block, start, end = _resolve(doc, selection)
    if marks is None:
        marks = marks_at(block, start)
    if block.type == "code_block":
        marks = ()
    before, _, after = _slice(block.content, start, end)
    inserted = [Node("text", text=value, marks=sort_marks(marks))] if value else []
    block.content = _normalize_runs(before + inserted + after)
    return selection.collapsed(start + len(value))


def delete_range(doc: Node, selection: Selection) -> Selection:
    return insert_text(doc, selection, "")


# -- block structure ---------------------------------------------------------


def _split_block(block: Node, offset: int) -> tuple[Node, Node]:
    before, _, after = _slice(block.content, offset, offset)
    head = Node(block.type, attrs=dict(block.attrs), content=_normalize_runs(before))
    tail = Node(block.type, attrs=dict(block.attrs), content=_normalize_runs(after))
    return head, tail


def split_block(doc: Node, selection: Selection) -> Selection:
    """Enter: split the text block at the cursor, deleting any selected text first."""
    selection = delete_range(doc, selection)
    path, block, start, _ = _resolve(doc, selection)
    head, tail = _split_block(block, start)
    if block.type == "heading" and not tail.content:
        tail = Node("paragraph")

    parent = node_at(doc, path[:-1])
    index = path[-1]
    if parent.type == "list_item" and index == 0 and len(path) >= 2:
        # First block of a list item: the split creates a new sibling item.
        item_path = path[:-1]
        list_node = node_at(doc, item_path[:-1])
        rest = parent.content[1:]
        parent.content = [head]
        list_node.content.insert(item_path[-1] + 1, Node("list_item", content=[tail, *rest]))
    else:
        parent.content[index : index + 1] = [head, tail]
    return Selection(_index_of(doc, tail), 0, 0)


def insert_block_at_cursor(doc: Node, selection: Selection, node: Node) -> Selection:
    """
    Insert a leaf block (image, horizontal rule) at the cursor.

    The current text block is split around the insertion point; an empty
    leading half is dropped and the cursor moves to the start of the trailing
    half so consecutive insertions keep their order.
    """
    selection = delete_range(doc, selection)
    path, block, start, _ = _resolve(doc, selection)
    head, tail = _split_block(block, start)
    replacement = ([head] if head.content else []) + [node, tail]
    parent = node_at(doc, path[:-1])
    index = path[-1]
    parent.content[index : index + 1] = replacement
    return Selection(_index_of(doc, tail), 0, 0)


def toggle_textblock(doc: Node, selection: Selection, block_type: str, attrs: dict | None = None) -> Selection:
    """Switch the current block to `block_type`, or back to a paragraph if it already is one."""
    _, block, start, end = _resolve(doc, selection)
    attrs = attrs or {}
    same = block.type == block_type and all(block.attrs.get(k) == v for k, v in attrs.items())
    if same:
        block.type, block.attrs = "paragraph", {}
    else:
        block.type, block.attrs = block_type, dict(attrs)
        if block_type == "code_block":
            value = block.text_content()
            block.content = [Node("text", text=value)] if value else []
    return Selection(selection.block, start, end)


def _ancestors(doc: Node, path: tuple[int, ...]) -> list[tuple[tuple[int, ...], Node]]:
    """(path, node) of every container above the block, innermost first."""
    result = []
    for depth in range(len(path) - 1, 0, -1):
        sub = path[:depth]
        result.append((sub, node_at(doc, sub)))
    return result


def _wrap(doc: Node, path: tuple[int, ...], wrapper: Node) -> None:
    parent = node_at(doc, path[:-1])
    block = parent.content[path[-1]]
    target = wrapper
    while target.content:
        target = target.content[0]
    target.content = [block]
    parent.content[path[-1]] = wrapper


def toggle_list(doc: Node, selection: Selection, list_type: str) -> Selection:
    if list_type not in LIST_TYPES:
        raise errors.ValidationError(f"Unknown list type: {list_type}")
    path, block, start, end = _resolve(doc, selection)
    for sub, node in _ancestors(doc, path):
        if node.type == "list_item":
            list_path = sub[:-1]
            list_node = node_at(doc, list_path)
            if list_node.type != list_type:
                list_node.type = list_type
                list_node.attrs = {}
            else:
                _lift_list_item(doc, list_path, sub[-1])
            return Selection(_index_of(doc, block), start, end)
    _wrap(doc, path, Node(list_type, content=[Node("list_item")]))
    return Selection(_index_of(doc, block), start, end)


def _lift_list_item(doc: Node, list_path: tuple[int, ...], item_index: int) -> None:
    """Move one list item's blocks out of the list, splitting the list around it."""
    container = node_at(doc, list_path[:-1])
    list_node = container.content[list_path[-1]]
    item = list_node.content[item_index]
    before = list_node.content[:item_index]
    after = list_node.content[item_index + 1 :]
    replacement: list[Node] = []
    if before:
        replacement.append(Node(list_node.type, attrs=dict(list_node.attrs), content=before))
    replacement.extend(item.content)
    if after:
        replacement.append(Node(list_node.type, content=after))
    container.content[list_path[-1] : list_path[-1] + 1] = replacement


def toggle_blockquote(doc: Node, selection: Selection) -> Selection:
    path, block, start, end = _resolve(doc, selection)
    for sub, node in _ancestors(doc, path):
        if node.type == "blockquote":
            container = node_at(doc, sub[:-1])
            container.content[sub[-1] : sub[-1] + 1] = node.content
            return Selection(_index_of(doc, block), start, end)
    _wrap(doc, path, Node("blockquote"))
    return Selection(_index_of(doc, block), start, end)


def set_link(doc: Node, selection: Selection, href: str | None) -> Selection:
    """Link the selection to `href`; with no href, or on an already linked range, unlink it."""
    _, block, start, end = _resolve(doc, selection)
    if not href or range_has_mark(block, start, end, "link"):
        return remove_mark(doc, selection, "link")
    return toggle_mark(doc, selection, Mark("link", href=href))


def marks_at_selection(doc: Node, selection: Selection) -> tuple[Mark, ...]:
    _, block, start, _ = _resolve(doc, selection)
    return marks_at(block, start)
