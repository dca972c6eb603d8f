"""
Structured document model for the rich editing view.

A document is a tree of `Node`s:

- containers: `doc`, `blockquote`, `bullet_list`, `ordered_list`, `list_item`
- text blocks: `paragraph`, `heading` (attrs: level), `code_block` (attrs: language)
- leaf blocks: `horizontal_rule`, `image` (attrs: src, alt, title)
- inline: `text` nodes carrying a tuple of `Mark`s

Hard line breaks are "\\n" inside text and serialize as <br>.

The model converts to HTML, to plain text and to JSON, and can be parsed from
HTML. It is never rebuilt from Markdown.
"""

from __future__ import annotations

import html
import re
from dataclasses import dataclass, field
from typing import Any, Iterator

import lxml.html
from lxml import etree

CONTAINER_TYPES = frozenset({"doc", "blockquote", "bullet_list", "ordered_list", "list_item"})
TEXTBLOCK_TYPES = frozenset({"paragraph", "heading", "code_block"})
LEAF_TYPES = frozenset({"horizontal_rule", "image"})
LIST_TYPES = frozenset({"bullet_list", "ordered_list"})

MARK_TYPES = ("link", "bold", "italic", "strike", "code")
_MARK_RANK = {name: i for i, name in enumerate(MARK_TYPES)}

DOC_FORMAT = "inkwell-doc/1"


@dataclass(frozen=True)
class Mark:
    type: str
    href: str | None = None

    def open_tag(self) -> str:
        if self.type == "link":
            return f'<a href="{html.escape(self.href or "", quote=True)}" target="_blank" rel="noopener noreferrer nofollow">'
        return f"<{_MARK_TAGS[self.type]}>"

    def close_tag(self) -> str:
        if self.type == "link":
            return "</a>"
        return f"</{_MARK_TAGS[self.type]}>"


_MARK_TAGS = {"bold": "strong", "italic": "em", "strike": "s", "code": "code"}


def sort_marks(marks) -> tuple[Mark, ...]:
    return tuple(sorted(set(marks), key=lambda m: _MARK_RANK.get(m.type, len(MARK_TYPES))))


@dataclass
class Node:
    type: str
    attrs: dict[str, Any] = field(default_factory=dict)
    content: list["Node"] = field(default_factory=list)
    text: str = ""
    marks: tuple[Mark, ...] = ()

    @property
    def is_textblock(self) -> bool:
        return self.type in TEXTBLOCK_TYPES

    @property
    def is_container(self) -> bool:
        return self.type in CONTAINER_TYPES

    def text_content(self) -> str:
        if self.type == "text":
            return self.text
        return "".join(child.text_content() for child in self.content)

    def text_length(self) -> int:
        return len(self.text_content())


def text(value: str, *marks: Mark) -> Node:
    return Node("text", text=value, marks=sort_marks(marks))


def paragraph(*children: Node) -> Node:
    return Node("paragraph", content=list(children))


def empty_document() -> Node:
    return Node("doc", content=[paragraph()])


def textblock_paths(doc: Node) -> list[tuple[int, ...]]:
    """
    Paths (child indices from the root) of every text block, in document order.
    """
    paths: list[tuple[int, ...]] = []

    def walk(node: Node, path: tuple[int, ...]) -> None:
        for i, child in enumerate(node.content):
            if child.is_textblock:
                paths.append(path + (i,))
            elif child.is_container:
                walk(child, path + (i,))

    walk(doc, ())
    return paths


def node_at(doc: Node, path: tuple[int, ...]) -> Node:
    node = doc
    for index in path:
        node = node.content[index]
    return node


def iter_textblocks(doc: Node) -> Iterator[Node]:
    for path in textblock_paths(doc):
        yield node_at(doc, path)


# -- serialization ---------------------------------------------------------


def _escape(value: str) -> str:
    return html.escape(value, quote=False)


def _inline_html(nodes: list[Node]) -> str:
    """
    Serialize inline runs, keeping marks shared by neighbours open across them.
    """
    out: list[str] = []
    open_marks: list[Mark] = []
    for node in nodes:
        wanted = list(sort_marks(node.marks))
        keep = 0
        while keep < len(open_marks) and keep < len(wanted) and open_marks[keep] == wanted[keep]:
            keep += 1
        for mark in reversed(open_marks[keep:]):
            out.append(mark.close_tag())
        for mark in wanted[keep:]:
            out.append(mark.open_tag())
        open_marks = wanted
        out.append("<br>".join(_escape(part) for part in node.text.split("\n")))
    for mark in reversed(open_marks):
        out.append(mark.close_tag())
    return "".join(out)


def _node_html(node: Node) -> str:
    kind = node.type
    if kind == "paragraph":
        return f"<p>{_inline_html(node.content)}</p>"
    if kind == "heading":
        level = int(node.attrs.get("level", 1))
        return f"<h{level}>{_inline_html(node.content)}</h{level}>"
    if kind == "code_block":
        language = node.attrs.get("language")
        cls = f' class="language-{html.escape(language, quote=True)}"' if language else ""
        return f"<pre><code{cls}>{_escape(node.text_content())}</code></pre>"
    if kind == "horizontal_rule":
        return "<hr>"
    if kind == "image":
        parts = [f'src="{html.escape(node.attrs.get("src") or "", quote=True)}"']
        for name in ("alt", "title"):
            if node.attrs.get(name):
                parts.append(f'{name}="{html.escape(node.attrs[name], quote=True)}"')
        return f"<img {' '.join(parts)}>"
    inner = "".join(_node_html(child) for child in node.content)
    if kind == "blockquote":
        return f"<blockquote>{inner}</blockquote>"
    if kind == "bullet_list":
        return f"<ul>{inner}</ul>"
    if kind == "ordered_list":
        start = int(node.attrs.get("start", 1))
        return f'<ol start="{start}">{inner}</ol>' if start != 1 else f"<ol>{inner}</ol>"
    if kind == "list_item":
        return f"<li>{inner}</li>"
    return inner


def to_html(doc: Node) -> str:
    return "".join(_node_html(child) for child in doc.content)


def plain_text(doc: Node) -> str:
    """
    Text of every text block joined by a blank line. All markup is dropped.
    """
    return "\n\n".join(block.text_content() for block in iter_textblocks(doc))


def to_json(node: Node) -> dict[str, Any]:
    data: dict[str, Any] = {"type": node.type}
    if node.attrs:
        data["attrs"] = dict(node.attrs)
    if node.type == "text":
        data["text"] = node.text
        if node.marks:
            data["marks"] = [
                {"type": m.type, **({"attrs": {"href": m.href}} if m.href is not None else {})} for m in node.marks
            ]
    elif node.content:
        data["content"] = [to_json(child) for child in node.content]
    return data


def from_json(data: dict[str, Any]) -> Node:
    marks = tuple(
        Mark(type=str(m["type"]), href=(m.get("attrs") or {}).get("href")) for m in data.get("marks") or []
    )
    return Node(
        type=str(data["type"]),
        attrs=dict(data.get("attrs") or {}),
        content=[from_json(child) for child in data.get("content") or []],
        text=str(data.get("text") or ""),
        marks=sort_marks(marks),
    )


def to_blob(doc: Node) -> dict[str, Any]:
    """
    The stored structured blob. Only used to re-hydrate the structured view.
    """
    return {"format": DOC_FORMAT, "doc": to_json(doc)}


def from_blob(blob: Any, html: str) -> Node | None:
    """
    Re-hydrate a stored blob, or None when it cannot stand in for `html`.

    A blob written after a text-view edit describes an older document than
    the stored HTML, so it is only used when it serializes back to that HTML.
    """
    if not isinstance(blob, dict) or blob.get("format") != DOC_FORMAT or not isinstance(blob.get("doc"), dict):
        return None
    doc = from_json(blob["doc"])
    return doc if to_html(doc) == html else None


# -- parsing ---------------------------------------------------------------

_WS = re.compile(r"\s+")
_SKIP_TAGS = frozenset({"script", "style", "head", "title", "template"})
_INLINE_MARKS = {
    "strong": "bold",
    "b": "bold",
    "em": "italic",
    "i": "italic",
    "s": "strike",
    "strike": "strike",
    "del": "strike",
    "code": "code",
}
_HEADINGS = {f"h{level}": level for level in range(1, 7)}
_BLOCK_TAGS = frozenset(
    {"p", "pre", "blockquote", "ul", "ol", "li", "hr", "img", "div", "section", "article", "table", "figure"}
) | frozenset(_HEADINGS)


class _BlockBuilder:
    """Collects loose inline runs into paragraphs between block elements."""

    def __init__(self) -> None:
        self.blocks: list[Node] = []
        self.inline: list[Node] = []

    def add_text(self, value: str | None, marks: tuple[Mark, ...]) -> None:
        if value:
            _append_text(self.inline, _WS.sub(" ", value), marks)

    def flush(self) -> None:
        runs = _trim_runs(self.inline)
        if runs:
            self.blocks.append(Node("paragraph", content=runs))
        self.inline = []

    def add_block(self, node: Node) -> None:
        self.flush()
        self.blocks.append(node)


def _append_text(runs: list[Node], value: str, marks: tuple[Mark, ...]) -> None:
    if not value:
        return
    marks = sort_marks(marks)
    if runs and runs[-1].marks == marks:
        runs[-1].text += value
    else:
        runs.append(Node("text", text=value, marks=marks))


def _trim_runs(runs: list[Node]) -> list[Node]:
    runs = [Node("text", text=r.text, marks=r.marks) for r in runs]
    if runs:
        runs[0].text = runs[0].text.lstrip(" ")
        runs[-1].text = runs[-1].text.rstrip(" ")
    return [r for r in runs if r.text]


def _is_element(el) -> bool:
    return isinstance(el.tag, str)


def _parse_inline(el, marks: tuple[Mark, ...], runs: list[Node]) -> None:
    """Append the inline content of `el` (not its tail) to `runs`."""
    if el.text:
        _append_text(runs, _WS.sub(" ", el.text), marks)
    for child in el:
        if _is_element(child) and child.tag not in _SKIP_TAGS:
            tag = child.tag.lower()
            if tag == "br":
                _append_text(runs, "\n", marks)
            else:
                _parse_inline(child, marks + _marks_for(child), runs)
        if child.tail:
            _append_text(runs, _WS.sub(" ", child.tail), marks)


def _marks_for(el) -> tuple[Mark, ...]:
    tag = el.tag.lower()
    if tag == "a":
        return (Mark("link", href=el.get("href") or ""),)
    if tag in _INLINE_MARKS:
        return (Mark(_INLINE_MARKS[tag]),)
    return ()


def _textblock(kind: str, el, attrs: dict[str, Any] | None = None) -> Node:
    runs: list[Node] = []
    _parse_inline(el, (), runs)
    return Node(kind, attrs=attrs or {}, content=_trim_runs(runs))


def _parse_blocks(el, builder: _BlockBuilder, marks: tuple[Mark, ...] = ()) -> None:
    """Walk the children of `el`, emitting blocks into `builder`."""
    builder.add_text(el.text, marks)
    for child in el:
        if _is_element(child) and child.tag.lower() not in _SKIP_TAGS:
            _parse_element(child, builder, marks)
        builder.add_text(child.tail, marks)


def _parse_element(el, builder: _BlockBuilder, marks: tuple[Mark, ...]) -> None:
    tag = el.tag.lower()
    if tag == "p" and el.find(".//img") is not None:
        # Images are block nodes: hoist them out and split the paragraph around them.
        builder.flush()
        _parse_blocks(el, builder, marks)
        builder.flush()
    elif tag == "p":
        builder.add_block(_textblock("paragraph", el))
    elif tag in _HEADINGS:
        builder.add_block(_textblock("heading", el, {"level": _HEADINGS[tag]}))
    elif tag == "pre":
        code = el.find("code")
        language = None
        if code is not None:
            for cls in (code.get("class") or "").split():
                if cls.startswith("language-"):
                    language = cls[len("language-"):]
        value = el.text_content()
        runs = [Node("text", text=value)] if value else []
        builder.add_block(Node("code_block", attrs={"language": language} if language else {}, content=runs))
    elif tag == "blockquote":
        builder.add_block(Node("blockquote", content=_parse_children(el) or [paragraph()]))
    elif tag in ("ul", "ol"):
        items = [
            Node("list_item", content=_parse_children(li) or [paragraph()])
            for li in el
            if _is_element(li) and li.tag.lower() == "li"
        ]
        if items:
            attrs: dict[str, Any] = {}
            if tag == "ol" and (el.get("start") or "").isdigit() and int(el.get("start")) != 1:
                attrs["start"] = int(el.get("start"))
            builder.add_block(Node("ordered_list" if tag == "ol" else "bullet_list", attrs=attrs, content=items))
    elif tag == "hr":
        builder.add_block(Node("horizontal_rule"))
    elif tag == "img":
        attrs = {"src": el.get("src") or ""}
        for name in ("alt", "title"):
            if el.get(name):
                attrs[name] = el.get(name)
        builder.add_block(Node("image", attrs=attrs))
    elif tag == "br":
        _append_text(builder.inline, "\n", marks)
    elif tag in _BLOCK_TAGS or _contains_block(el):
        # div/section/table and friends are flattened into their children.
        builder.flush()
        _parse_blocks(el, builder, marks)
        builder.flush()
    else:
        runs = builder.inline
        _parse_inline(el, marks + _marks_for(el), runs)


def _contains_block(el) -> bool:
    return any(_is_element(d) and d.tag.lower() in _BLOCK_TAGS for d in el.iterdescendants())


def _parse_children(el) -> list[Node]:
    builder = _BlockBuilder()
    _parse_blocks(el, builder)
    builder.flush()
    return builder.blocks


def from_html(source: str | None) -> Node:
    """
    Parse stored HTML into a document. Unsupported markup degrades to text.
    """
    if not (source or "").strip():
        return empty_document()
    try:
        root = lxml.html.fragment_fromstring(source, create_parent="div")
    except (etree.ParserError, ValueError):
        return Node("doc", content=[paragraph(text(source.strip()))])
    blocks = _parse_children(root)
    return Node("doc", content=blocks or [paragraph()])
