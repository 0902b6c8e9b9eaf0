"""Video ID validation and extraction.

WHY: The engine must only ever see well-formed IDs. A bad ID is a caller
error, answered before any upstream request is made and never retried.

RULES:
- A video ID is exactly 11 characters of [A-Za-z0-9_-]
- extract_video_id accepts bare IDs and watch/short/embed/v/youtu.be URLs
"""

from __future__ import annotations

import re
from typing import Optional

VIDEO_ID_RE = re.compile(r"^[A-Za-z0-9_-]{11}$")

_URL_PATTERNS = (
    re.compile(
        r"(?:youtube\.com/watch\?(?:[^#]*&)?v=|youtu\.be/|youtube\.com/embed/"
        r"|youtube\.com/v/|youtube\.com/shorts/)([A-Za-z0-9_-]{11})"
    ),
    re.compile(r"^([A-Za-z0-9_-]{11})$"),
)


def is_valid_video_id(video_id: Optional[str]) -> bool:
    return bool(video_id) and VIDEO_ID_RE.fullmatch(video_id) is not None


def extract_video_id(value: Optional[str]) -> Optional[str]:
    """Return the video ID in a bare ID or URL, or None if there is none."""
    if not value:
        return None
    trimmed = value.strip()
    for pattern in _URL_PATTERNS:
        match = pattern.search(trimmed)
        if match:
            return match.group(1)
    return None
