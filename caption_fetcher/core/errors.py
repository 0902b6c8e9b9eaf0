"""Classified failure reasons and the exceptions that carry them.

WHY: Callers never see raw upstream exceptions. Every failure is mapped to a
small closed set of reasons, each with a user-facing message, so the response
boundary can report what went wrong without leaking internals.

HOW: FailureReason is a str enum. AcquisitionError is the base exception and
always carries a reason. Subclasses mark where the failure came from.

RULES:
- Every reason has exactly one user-facing message in REASON_MESSAGES
- EMPTY_REASONS are legitimate "no transcript exists" states, not faults
- REASON_SPECIFICITY ranks reasons when two paths fail differently
"""

from __future__ import annotations

import enum
from typing import Optional


class FailureReason(str, enum.Enum):
    """Closed set of classified acquisition failures."""

    INVALID_INPUT = "invalid_input"
    CAPTIONS_DISABLED = "captions_disabled"
    NO_TRANSCRIPT = "no_transcript"
    VIDEO_UNAVAILABLE = "video_unavailable"
    ACCESS_RESTRICTED = "access_restricted"
    RATE_LIMITED = "rate_limited"
    NETWORK = "network"
    DECODE = "decode"
    EXHAUSTED = "exhausted"


REASON_MESSAGES = {
    FailureReason.INVALID_INPUT: "Invalid videoId format. Expected 11 character YouTube video ID.",
    FailureReason.CAPTIONS_DISABLED: "Transcripts are disabled for this video",
    FailureReason.NO_TRANSCRIPT: "No transcript available for this video",
    FailureReason.VIDEO_UNAVAILABLE: "Video not found or has been removed",
    FailureReason.ACCESS_RESTRICTED: "Video is private or restricted - transcripts not accessible",
    FailureReason.RATE_LIMITED: "Upstream is rate limiting requests - please try again later",
    FailureReason.NETWORK: "Network error - please try again",
    FailureReason.DECODE: "Transcript could not be decoded",
    FailureReason.EXHAUSTED: "Transcript not available",
}

EMPTY_REASONS = frozenset({FailureReason.CAPTIONS_DISABLED, FailureReason.NO_TRANSCRIPT})

# Higher wins. Concrete statements about the video beat transport noise.
REASON_SPECIFICITY = {
    FailureReason.VIDEO_UNAVAILABLE: 7,
    FailureReason.ACCESS_RESTRICTED: 7,
    FailureReason.CAPTIONS_DISABLED: 6,
    FailureReason.NO_TRANSCRIPT: 5,
    FailureReason.RATE_LIMITED: 4,
    FailureReason.DECODE: 3,
    FailureReason.NETWORK: 2,
    FailureReason.EXHAUSTED: 1,
    FailureReason.INVALID_INPUT: 0,
}


class AcquisitionError(Exception):
    """Base class for every classified acquisition failure.

    RULES:
    - reason is always set
    - detail is the internal description (logged, never shown to callers)
    """

    def __init__(self, reason: FailureReason, detail: Optional[str] = None) -> None:
        self.reason = reason
        self.detail = detail or REASON_MESSAGES[reason]
        super().__init__(self.detail)

    @property
    def user_message(self) -> str:
        return REASON_MESSAGES[self.reason]


class UpstreamError(AcquisitionError):
    """Raised when an upstream HTTP call fails or returns a non-2xx status.

    WHY: Callers need to tell transport failures apart from classified
    video states; this wraps httpx errors and bad status codes.
    """

    def __init__(self, status_code: Optional[int], message: str) -> None:
        self.status_code = status_code
        if status_code == 429:
            reason = FailureReason.RATE_LIMITED
        else:
            reason = FailureReason.NETWORK
        if status_code is None:
            detail = "Upstream request failed: {}".format(message)
        else:
            detail = "Upstream error {}: {}".format(status_code, message)
        super().__init__(reason, detail)


class TrackDirectoryError(AcquisitionError):
    """Raised when the caption track directory cannot be resolved."""


class DecodeError(ValueError):
    """Raised by a decoder when a payload is structurally malformed."""


class StrategiesExhausted(AcquisitionError):
    """Raised when every fallback tier failed to yield text."""


class AcquisitionFailure(AcquisitionError):
    """Terminal failure: primary and secondary paths are both exhausted."""


def most_specific(*reasons: Optional[FailureReason]) -> FailureReason:
    """Pick the most informative reason, EXHAUSTED if none are given."""
    present = [r for r in reasons if r is not None]
    if not present:
        return FailureReason.EXHAUSTED
    return max(present, key=lambda r: REASON_SPECIFICITY[r])


def reason_of(exc: BaseException) -> FailureReason:
    """Classify an arbitrary exception raised during acquisition."""
    if isinstance(exc, AcquisitionError):
        return exc.reason
    if isinstance(exc, DecodeError):
        return FailureReason.DECODE
    if isinstance(exc, (TimeoutError, OSError)):
        return FailureReason.NETWORK
    return FailureReason.EXHAUSTED
