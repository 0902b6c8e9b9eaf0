"""Caption text normalization.

WHY: Caption payloads carry HTML entities (often double-escaped), inline
styling tags, and line breaks inside a single cue. Every decoder needs the
same clean, single-line text.

HOW: One pass decodes a fixed entity table, strips tag-like markup, collapses
whitespace runs, and trims. Passes repeat until the text stops changing, so
double-escaped input ("&amp;#39;") is fully decoded and the function is
idempotent.

RULES:
- Pure and total: never raises, None/"" returns ""
- Only the fixed entity set is decoded (no general HTML unescape)
- Each pass either shortens the text or leaves it unchanged after at most
  one whitespace substitution, so the loop always terminates
"""

from __future__ import annotations

import re
from typing import Optional

# Order matters: "&amp;" first so "&amp;lt;" decodes to "&lt;" within a pass.
_ENTITIES = (
    ("&amp;", "&"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
    ("&#39;", "'"),
    ("&apos;", "'"),
    ("&nbsp;", " "),
)

_TAG_RE = re.compile(r"<[^>]*>")
_WHITESPACE_RE = re.compile(r"\s+")


def _normalize_once(text: str) -> str:
    for entity, replacement in _ENTITIES:
        text = text.replace(entity, replacement)
    text = _TAG_RE.sub("", text)
    text = _WHITESPACE_RE.sub(" ", text)
    return text.strip()


def normalize_text(text: Optional[str]) -> str:
    """Return caption text free of entities, markup, and extra whitespace."""
    if not text:
        return ""
    previous = None
    while text != previous:
        previous = text
        text = _normalize_once(text)
    return text
