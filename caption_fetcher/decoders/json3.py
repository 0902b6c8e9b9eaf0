"""Decoder for the modern segmented-event caption format (``fmt=json3``).

WHY: json3 is the format we request explicitly. It carries millisecond
timing per event and splits each cue into sub-segments (one per word for
auto-generated tracks), so the cue text must be reassembled.

HOW: Parses the body as JSON, walks ``events`` in order, and concatenates
each event's ``segs[].utf8`` into one segment.

RULES:
- Malformed top-level JSON (or a non-object document) raises DecodeError
- A document without an ``events`` list decodes to [] (caller falls back)
- Events without ``segs`` are dropped (window/style events)
- Events whose normalized text is empty are dropped
- Events with non-numeric timing are skipped, not fatal
- tStartMs/dDurationMs are converted to seconds; missing duration is 0
"""

from __future__ import annotations

import json
from typing import List

from caption_fetcher.core.errors import DecodeError
from caption_fetcher.core.ir import CaptionSegment
from caption_fetcher.core.normalizer import normalize_text
from caption_fetcher.decoders.base import BaseDecoder, non_negative


class Json3Decoder(BaseDecoder):
    """Decoder for ``{"events": [{"tStartMs", "dDurationMs", "segs"}]}`` payloads."""

    @property
    def name(self) -> str:
        return "json3"

    def decode(self, payload: bytes) -> List[CaptionSegment]:
        try:
            document = json.loads(payload)
        except (ValueError, UnicodeDecodeError) as exc:
            raise DecodeError("invalid json3 payload: {}".format(exc))

        if not isinstance(document, dict):
            raise DecodeError("json3 payload is not an object")

        events = document.get("events")
        if not isinstance(events, list):
            return []

        segments: List[CaptionSegment] = []
        for event in events:
            if not isinstance(event, dict):
                continue
            segs = event.get("segs")
            if not segs or not isinstance(segs, list):
                continue

            text = normalize_text(
                "".join(str(seg.get("utf8", "")) for seg in segs if isinstance(seg, dict))
            )
            if not text:
                continue

            try:
                start_ms = float(event.get("tStartMs", 0) or 0)
                duration_ms = float(event.get("dDurationMs", 0) or 0)
            except (TypeError, ValueError):
                continue

            segments.append(CaptionSegment(
                start_s=non_negative(start_ms / 1000.0),
                duration_s=non_negative(duration_ms / 1000.0),
                text=text,
            ))

        return segments
