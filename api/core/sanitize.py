"""
Allow-list HTML sanitizer for anything rendered for display.

Every preview and every stored body shown to a reader goes through
`clean_html`. Skipping it is a security defect, not a recoverable error.
"""

from __future__ import annotations

import bleach

ALLOWED_TAGS = frozenset(
    {
        "a",
        "abbr",
        "b",
        "blockquote",
        "br",
        "code",
        "del",
        "div",
        "em",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "hr",
        "i",
        "img",
        "li",
        "ol",
        "p",
        "pre",
        "s",
        "span",
        "strike",
        "strong",
        "sub",
        "sup",
        "table",
        "tbody",
        "td",
        "tfoot",
        "th",
        "thead",
        "tr",
        "u",
        "ul",
    }
)

# Applied to every allowed tag.
ALLOWED_ATTRIBUTES = ["href", "src", "alt", "title", "class", "target", "rel"]

ALLOWED_PROTOCOLS = frozenset({"http", "https", "mailto"})


def clean_html(html: str | None) -> str:
    return bleach.clean(
        html or "",
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRIBUTES,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
        strip_comments=True,
    )
