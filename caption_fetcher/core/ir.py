"""Intermediate representation dataclasses for caption acquisition.

WHY: The resolver, selector, fetcher, decoders, and assembler all pass the
same few shapes between them. A single well-typed module keeps those shapes
explicit and decouples each stage from the upstream's raw JSON.

HOW: Three dataclasses form the flow:
  CaptionTrack      one available caption stream (language, kind, locator)
  CaptionSegment    one timed line of already-normalized caption text
  AcquisitionResult the winning segments plus language and method tag

RULES:
- All times are float seconds, never negative
- CaptionTrack.locator is request-scoped: never cache or reuse it
- Segment order is decoder emission order; nothing re-sorts it
- A successful AcquisitionResult has at least one non-empty segment
"""

from __future__ import annotations

from dataclasses import dataclass, field

KIND_MANUAL = "manual"
KIND_AUTO = "auto"


@dataclass(frozen=True)
class CaptionTrack:
    """One caption track declared by the watch page's player configuration.

    RULES:
    - locator: absolute timed-text URL, session-bound and short-lived
    - language_code: upstream code as declared ("en", "en-US", "pt-BR")
    - kind: "manual" for uploaded captions, "auto" for speech recognition
    - display_name: upstream label, informational only
    """

    locator: str
    language_code: str
    kind: str
    display_name: str = ""

    def matches_language(self, language: str) -> bool:
        """Prefix match: "en" matches "en", "en-US", "en-GB" (case-insensitive)."""
        code = self.language_code.lower()
        wanted = language.lower()
        return code == wanted or code.startswith(wanted + "-")


@dataclass(frozen=True)
class CaptionSegment:
    """A single timed caption line."""

    start_s: float
    duration_s: float
    text: str

    def to_dict(self) -> dict:
        return {"start": self.start_s, "duration": self.duration_s, "text": self.text}


@dataclass
class AcquisitionResult:
    """The outcome of a successful acquisition.

    RULES:
    - segments: ordered as emitted by the decoder (chronological upstream order)
    - language_code: declared code of the winning track/backend, "" if unknown
    - method: diagnostic tag of the tier or path that succeeded
    """

    segments: list[CaptionSegment] = field(default_factory=list)
    language_code: str = ""
    method: str = ""

    @property
    def raw(self) -> str:
        """Segment texts joined with single spaces, trimmed."""
        return " ".join(segment.text for segment in self.segments).strip()

    def has_text(self) -> bool:
        return any(segment.text for segment in self.segments)
