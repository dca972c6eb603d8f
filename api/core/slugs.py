"""
Slug normalization shared by post titles and tag names.
"""

from __future__ import annotations

import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def normalize(text: str | None) -> str:
    """
    Lower-case `text`, collapse every run outside [a-z0-9] into one hyphen and
    trim hyphens from both ends.

    Never raises. Returns "" for empty or fully non-alphanumeric input; callers
    must reject an empty slug rather than store it.
    """
    return _NON_ALNUM.sub("-", (text or "").lower()).strip("-")
