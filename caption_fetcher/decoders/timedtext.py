"""Decoder for the legacy timed-text markup format.

WHY: Some tracks ignore the ``fmt`` parameter and answer with the original
``<transcript><text start=".." dur="..">..</text></transcript>`` markup. The
markup is frequently not well-formed XML (stray ampersands, truncated
bodies), so a strict XML parser would throw away good cues.

HOW: Scans the body with a tolerant pattern for ``<text ...>...</text>``
elements, reads ``start`` and ``dur`` from the attributes regardless of
order, and normalizes the inner text.

RULES:
- Never raises on content: malformed or unmatched fragments are skipped
- Elements without a numeric ``start`` are skipped
- Missing or non-numeric ``dur`` means 0
- Elements whose normalized text is empty are dropped
"""

from __future__ import annotations

import re
from typing import Dict, List

from caption_fetcher.core.ir import CaptionSegment
from caption_fetcher.core.normalizer import normalize_text
from caption_fetcher.decoders.base import BaseDecoder, non_negative

_TEXT_ELEMENT_RE = re.compile(r"<text\b([^>]*)>(.*?)</text>", re.DOTALL | re.IGNORECASE)
_ATTRIBUTE_RE = re.compile(r"""([\w:-]+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")


def _parse_attributes(raw: str) -> Dict[str, str]:
    attributes: Dict[str, str] = {}
    for match in _ATTRIBUTE_RE.finditer(raw):
        value = match.group(2) if match.group(2) is not None else match.group(3)
        attributes[match.group(1).lower()] = value
    return attributes


def _to_float(value: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return float("nan")


class TimedTextDecoder(BaseDecoder):
    """Tolerant decoder for ``<text start dur>`` caption markup."""

    @property
    def name(self) -> str:
        return "timedtext"

    def decode(self, payload: bytes) -> List[CaptionSegment]:
        body = payload.decode("utf-8", errors="replace")

        segments: List[CaptionSegment] = []
        for match in _TEXT_ELEMENT_RE.finditer(body):
            attributes = _parse_attributes(match.group(1))

            start = _to_float(attributes.get("start", ""))
            if start != start:  # NaN
                continue
            duration = _to_float(attributes.get("dur", "0"))
            if duration != duration:
                duration = 0.0

            text = normalize_text(match.group(2))
            if not text:
                continue

            segments.append(CaptionSegment(
                start_s=non_negative(start),
                duration_s=non_negative(duration),
                text=text,
            ))

        return segments
